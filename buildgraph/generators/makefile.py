# SPDX-License-Identifier: MIT
"""Makefile generators: POSIX make, NMake and MinGW make.

The generated file holds, in order:
- one ``NAME?=default`` (NMake: ``NAME=default``) or ``NAME=value`` line
  per Variable
- one rule per node, with the first top-level target first so that it
  is the default goal
- an empty ``.PHONY:`` rule

Phony targets are written ``clean: .PHONY ...``. ``.PHONY`` never exists
as a file, so such targets always run, under make and NMake alike.

Command text keeps its ``$(VAR)`` references; make substitutes them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from buildgraph.configure.platform import POSIX, get_platform
from buildgraph.core.errors import UnrecognizedNodeError
from buildgraph.core.graph import dependencies
from buildgraph.core.node import (
    Application,
    DynamicExtension,
    DynamicLibrary,
    Entry,
    ObjectFile,
    ObjectLibrary,
    Solution,
    StaticExtension,
    StaticLibrary,
    Variable,
)
from buildgraph.generators.generator import BaseGenerator
from buildgraph.util.files import write_if_changed

if TYPE_CHECKING:
    from buildgraph.configure.platform import Platform
    from buildgraph.core.node import Node, Project
    from buildgraph.tools.toolchain import Toolset

logger = logging.getLogger(__name__)


class MakefileGenerator(BaseGenerator):
    """Generator for POSIX make.

    Example:
        gen = MakefileGenerator(select_toolset("gcc", "ld"))
        gen.generate(solution, Path("build"))
    """

    default_filename = "Makefile"

    # NMake has no conditional assignment
    conditional_assign = "?="

    def __init__(self, toolset: Toolset, name: str = "makefile") -> None:
        super().__init__(name, toolset)
        self._variables: list[str] = []
        self._rules: list[str] = []
        self._default_rule: str | None = None

    @property
    def shell_platform(self) -> Platform:
        return POSIX

    def generate(
        self, solution: Solution, output_dir: Path, filename: str | None = None
    ) -> Path:
        """Write the makefile for solution into output_dir.

        Returns:
            Path of the makefile.
        """
        path = Path(output_dir) / (filename or self.default_filename)
        write_if_changed(path, self.render(solution))
        return path

    def render(self, solution: Solution) -> str:
        """The makefile text for solution."""
        self.prepare(solution)
        self._variables = []
        self._rules = []
        self._default_rule = None
        for dep in solution.depends:
            self.emit(dep, solution)
            if self._default_rule is None and self._rules and not isinstance(dep, Variable):
                self._default_rule = self._rules[-1]

        rules = list(self._rules)
        if self._default_rule is not None:
            rules.remove(self._default_rule)
            rules.insert(0, self._default_rule)

        parts = []
        if self._variables:
            parts.append("\n".join(self._variables) + "\n\n")
        parts.extend(rules)
        parts.append(".PHONY:\n")
        return "".join(parts)

    def emit(self, node: Node, parent: Project | None = None) -> None:
        """Emit rules for node and, before it, everything it depends on."""
        if isinstance(node, (DynamicExtension, StaticExtension)):
            return
        if not self.mark_visited(node):
            return

        if isinstance(node, (Application, DynamicLibrary, StaticLibrary)):
            for dep in node.depends:
                self.emit(dep, node)
            self.add_rule(self.project_entry(node))
        elif isinstance(node, ObjectLibrary):
            pic = self.needs_pic(node)
            for obj in node.objects:
                if self.mark_visited(obj):
                    self.add_rule(obj.gen_entry(self.toolset, node, pic=pic))
        elif isinstance(node, ObjectFile):
            self.add_rule(node.gen_entry(self.toolset, parent, pic=self.needs_pic(node)))
        elif isinstance(node, Entry):
            for dep in dependencies(node):
                self.emit(dep)
            self.add_rule(node)
        elif isinstance(node, Variable):
            self._variables.append(self.variable_line(node))
        elif isinstance(node, Solution):
            for dep in node.depends:
                self.emit(dep, node)
        else:
            raise UnrecognizedNodeError(node, self.name)

    def project_entry(self, project: Application | DynamicLibrary | StaticLibrary) -> Entry:
        """Entry for a linked project: member objects and other deps first."""
        members: list[Node | str] = []
        others: list[Node | str] = []
        for dep in project.depends:
            if isinstance(dep, ObjectLibrary):
                members.extend(dep.objects)
            else:
                others.append(dep)
        return Entry(
            target=project.output,
            depends=members + others,
            commands=[project.command(self.toolset), *project.post_build_commands],
        )

    def variable_line(self, var: Variable) -> str:
        if var.value is None and var.default is not None:
            return f"{var.name}{self.conditional_assign}{var.default}"
        return f"{var.name}={var.resolved}"

    def prerequisite(self, dep: Node | str) -> str | None:
        platform = self.shell_platform
        if isinstance(dep, str):
            return platform.local_path(dep)
        if isinstance(dep, Variable):
            return f"$({dep.name})"
        if isinstance(dep, Entry):
            return dep.target if dep.phony else platform.local_path(dep.target)
        if isinstance(dep, (DynamicExtension, StaticExtension)):
            return None  # only contribute to the command line
        if isinstance(dep, (ObjectFile, StaticLibrary, DynamicLibrary, Application)):
            return platform.local_path(dep.output)
        raise UnrecognizedNodeError(dep, self.name)

    def rule(self, entry: Entry) -> str:
        """Rule text for an entry, followed by a blank line."""
        if entry.phony:
            target = [f"{entry.target}:", ".PHONY"]
        else:
            target = [f"{self.shell_platform.local_path(entry.target)}:"]
        depends: list[Node | str] = []
        for dep in entry.depends:
            # object libraries have no file of their own
            if isinstance(dep, ObjectLibrary):
                depends.extend(dep.objects)
            else:
                depends.append(dep)
        prerequisites = [p for p in map(self.prerequisite, depends) if p]
        lines = [" ".join(target + prerequisites)]
        for command in entry.commands:
            text = self.gen_cmd(command)
            if text:
                lines.append(f"\t{text}")
        return "\n".join(lines) + "\n\n"

    def add_rule(self, entry: Entry) -> None:
        self._rules.append(self.rule(entry))


class NmakeGenerator(MakefileGenerator):
    """Generator for Microsoft NMake. Shell commands use the target platform."""

    default_filename = "makefile.vc"
    conditional_assign = "="

    def __init__(self, toolset: Toolset) -> None:
        super().__init__(toolset, name="nmake")

    @property
    def shell_platform(self) -> Platform:
        return get_platform()


class MingwMakeGenerator(MakefileGenerator):
    """Generator for mingw32-make on Windows. Shell commands use the target platform."""

    def __init__(self, toolset: Toolset) -> None:
        super().__init__(toolset, name="mingw-make")

    @property
    def shell_platform(self) -> Platform:
        return get_platform()

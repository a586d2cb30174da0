# SPDX-License-Identifier: MIT
"""Direct execution backend.

Runs every command of the graph through the host shell, dependencies
first, stopping at the first command that fails.

A file target whose output already exists is skipped. Nothing else is
compared: a stale object is not rebuilt because its source changed. Use
the Makefile or Visual Studio backend for real incremental builds.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from buildgraph.configure.platform import host_platform
from buildgraph.core.errors import CommandFailedError, UnrecognizedNodeError
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

if TYPE_CHECKING:
    from collections.abc import Callable

    from buildgraph.configure.platform import Platform
    from buildgraph.core.node import Node, Project
    from buildgraph.tools.toolchain import Toolset

    # Runs one shell command in a directory and returns its exit status
    Runner = Callable[[str, Path | None], int]

logger = logging.getLogger(__name__)


def run_shell(command: str, cwd: Path | None = None) -> int:
    """Run a command through the shell and wait for it to finish."""
    return subprocess.run(command, shell=True, cwd=cwd).returncode


class ExecutionGenerator(BaseGenerator):
    """Build a graph by running its commands directly.

    Example:
        gen = ExecutionGenerator(select_toolset("gcc", "ld"), jobs=4)
        gen.run(solution, cwd="build")
    """

    def __init__(
        self,
        toolset: Toolset,
        *,
        runner: Runner | None = None,
        jobs: int = 1,
    ) -> None:
        """Create an execution backend.

        Args:
            toolset: Tools used to build command lines.
            runner: Runs a command and returns its exit status; run_shell
                when None.
            jobs: How many object files of one object library may compile
                at the same time.
        """
        super().__init__("execution", toolset)
        self.runner = runner or run_shell
        self.jobs = max(1, jobs)
        self.cwd: Path | None = None

    @property
    def shell_platform(self) -> Platform:
        return host_platform()

    def generate(self, solution: Solution, output_dir: Path | None = None) -> None:
        self.run(solution, cwd=output_dir)

    def run(self, solution: Solution, cwd: Path | str | None = None) -> None:
        """Build everything reachable from solution.

        Raises:
            CommandFailedError: A command exited with a nonzero status.
        """
        self.cwd = Path(cwd) if cwd is not None else None
        self.prepare(solution)
        self.visit(solution)

    def visit(self, node: Node, parent: Project | None = None) -> None:
        if isinstance(node, (DynamicExtension, StaticExtension)):
            return
        if not self.mark_visited(node):
            return

        if isinstance(node, (Application, DynamicLibrary, StaticLibrary)):
            for dep in node.depends:
                self.visit(dep, node)
            self.run_target(
                Entry(
                    target=node.output,
                    commands=[node.command(self.toolset), *node.post_build_commands],
                )
            )
        elif isinstance(node, ObjectLibrary):
            self.build_objects(node)
        elif isinstance(node, ObjectFile):
            self.run_target(node.gen_entry(self.toolset, parent, pic=self.needs_pic(node)))
        elif isinstance(node, Entry):
            for dep in dependencies(node):
                self.visit(dep)
            self.run_target(node)
        elif isinstance(node, Solution):
            for dep in node.depends:
                self.visit(dep, node)
        elif isinstance(node, Variable):
            pass  # collected by prepare()
        else:
            raise UnrecognizedNodeError(node, self.name)

    def build_objects(self, library: ObjectLibrary) -> None:
        """Compile the members of an object library, possibly in parallel."""
        pic = self.needs_pic(library)
        entries = [
            obj.gen_entry(self.toolset, library, pic=pic)
            for obj in library.objects
            if self.mark_visited(obj)
        ]
        if self.jobs == 1 or len(entries) < 2:
            for entry in entries:
                self.run_target(entry)
            return

        with ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="compile") as pool:
            futures = [pool.submit(self.run_target, entry) for entry in entries]
            try:
                for future in futures:
                    future.result()
            except CommandFailedError:
                for future in futures:
                    future.cancel()
                raise

    def target_exists(self, target: str) -> bool:
        path = Path(target)
        if self.cwd is not None and not path.is_absolute():
            path = self.cwd / path
        return path.exists()

    def run_target(self, entry: Entry) -> None:
        """Run an entry's commands unless its output file already exists.

        Raises:
            CommandFailedError: A command exited with a nonzero status.
        """
        if not entry.phony and self.target_exists(entry.target):
            logger.debug("Skipping %s (exists)", entry.target)
            return
        for command in entry.commands:
            text = self.reify(command)
            if not text:
                continue
            logger.info("Running: %s", text)
            returncode = self.runner(text, self.cwd)
            if returncode != 0:
                raise CommandFailedError(text, returncode)

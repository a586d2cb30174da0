# SPDX-License-Identifier: MIT
"""Generator protocol and the shared graph-walking base class.

Generators take a prepared build graph and either run it or write files
for another build tool. Every generator walks the graph the same way:
dependencies before dependents, each node at most once per pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from buildgraph.configure.platform import get_platform
from buildgraph.core.commands import render_command
from buildgraph.core.graph import iter_nodes, prepare
from buildgraph.core.node import DynamicLibrary, ObjectFile, ObjectLibrary
from buildgraph.core.subst import reify

if TYPE_CHECKING:
    from pathlib import Path

    from buildgraph.configure.platform import Platform
    from buildgraph.core.commands import Command
    from buildgraph.core.node import Node, Solution
    from buildgraph.tools.toolchain import Toolset


@runtime_checkable
class Generator(Protocol):
    """Protocol for build graph backends."""

    @property
    def name(self) -> str:
        """Generator name (e.g., 'execution', 'makefile', 'visual-studio')."""
        ...

    def generate(self, solution: Solution, output_dir: Path) -> None:
        """Run or serialize the graph rooted at solution.

        Args:
            solution: The root of the build graph.
            output_dir: Directory to write output files to (or run in).
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality.

    Attributes:
        toolset: Tools used to build command lines.
        variables: Variable map collected by prepare().
    """

    def __init__(self, name: str, toolset: Toolset) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
            toolset: Tools used to build command lines.
        """
        self._name = name
        self.toolset = toolset
        self.variables: dict[str, str] = {}
        self._visited: set[int] = set()
        self._pic_nodes: set[int] = set()

    @property
    def name(self) -> str:
        return self._name

    @property
    def shell_platform(self) -> Platform:
        """Platform whose shell primitives commands are rendered for."""
        return get_platform()

    def prepare(self, solution: Solution) -> None:
        """Start a new pass over the graph.

        Validates the toolset, resolves outputs, collects variables and
        clears the visited set.

        Raises:
            UnsupportedToolchainError: For an unsupported toolset.
        """
        self.toolset.validate()
        self.variables = prepare(solution)
        self._visited = set()
        self._pic_nodes = {
            id(dep)
            for node in iter_nodes(solution)
            if isinstance(node, DynamicLibrary)
            for dep in node.depends
            if isinstance(dep, (ObjectFile, ObjectLibrary))
        }

    def mark_visited(self, node: Node) -> bool:
        """Mark a node as processed in this pass.

        Returns:
            False if the node was already processed, True otherwise.
        """
        if id(node) in self._visited:
            return False
        self._visited.add(id(node))
        return True

    def needs_pic(self, node: ObjectFile | ObjectLibrary) -> bool:
        """Whether an object or object library is linked into any dynamic library."""
        return id(node) in self._pic_nodes

    def gen_cmd(self, command: Command) -> str:
        """Render a command for this generator's shell."""
        return render_command(command, self.shell_platform, self.toolset.stripper)

    def reify(self, command: Command) -> str:
        """Render a command and substitute variables into it."""
        return reify(self.gen_cmd(command), self.variables)

    def generate(self, solution: Solution, output_dir: Path) -> None:
        """Generate build files. Subclasses must implement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"

# SPDX-License-Identifier: MIT
"""Tool base classes and the Toolset that groups them.

Each tool turns a normalized option set into a command line for one
vendor. Tools are identified by a ``name`` ('gcc', 'ld', 'cl', ...) and
an ``id`` ('gnu', 'msc', 'llvm', 'tcc') that doubles as the scope tag for
ScopedFlag. An explicit executable path may replace the default
executable name.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from buildgraph.core.errors import ConfigurationError, ToolNotFoundError
from buildgraph.core.flags import filter_flags

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.configure.config import ProgramInfo
    from buildgraph.core.flags import Flag
    from buildgraph.core.node import Debug, Node, Optimization

logger = logging.getLogger(__name__)


def append_suffix(path: str, suffix: str) -> str:
    """Append suffix to path unless it is already there."""
    if not suffix or path.endswith(suffix):
        return path
    return path + suffix


class BaseTool(ABC):
    """Common state of every tool.

    Class attributes:
        name: Tool name ('gcc', 'link', ...).
        id: Toolchain family used as the flag scope.
        default_exec: Executable used when no override is given.
    """

    name: str = ""
    id: str = ""
    default_exec: str = ""

    def __init__(self, exec_file: str | None = None) -> None:
        """Create a tool.

        Args:
            exec_file: Executable path overriding the default.
        """
        self.exec_file = exec_file
        self.program: ProgramInfo | None = None

    @property
    def executable(self) -> str:
        return self.exec_file or self.default_exec

    def filter(self, flags: Sequence[Flag]) -> list[str]:
        """Flags that apply to this tool's family."""
        return filter_flags(flags, self.id)

    def check(self, required: bool = False) -> bool:
        """Look the executable up and record its version.

        Raises:
            ToolNotFoundError: If required and the executable is missing.
        """
        from buildgraph.configure.config import find_program

        self.program = find_program(self.executable)
        if self.program is None:
            if required:
                raise ToolNotFoundError(self.executable)
            logger.warning("%s not found (looked for %s)", self.name, self.executable)
            return False
        logger.debug("Found %s: %s (%s)", self.name, self.program.path, self.program.version)
        return True

    def __repr__(self) -> str:
        if self.exec_file:
            return f"{self.__class__.__name__}(exec_file={self.exec_file!r})"
        return f"{self.__class__.__name__}()"


class Compiler(BaseTool):
    """A C/C++ compiler."""

    @abstractmethod
    def command(
        self,
        output: str,
        source: str,
        *,
        includes: Sequence[Flag] = (),
        definitions: Sequence[Flag] = (),
        cflags: Sequence[Flag] = (),
        optimization: Optimization | None = None,
        debug: Debug | None = None,
        pic: bool = False,
        preprocess: bool = False,
    ) -> str:
        """Command line that compiles (or only preprocesses) one source file.

        The object suffix is added to ``output`` unless it is already
        present or the command only preprocesses.

        Raises:
            ConfigurationError: Unsupported optimization or debug value.
        """


class Linker(BaseTool):
    """A linker producing applications and dynamic libraries."""

    @abstractmethod
    def command(
        self,
        output: str,
        depends: Sequence[Node],
        *,
        searches: Sequence[Flag] = (),
        ldflags: Sequence[Flag] = (),
        dynamic: bool = False,
    ) -> str:
        """Command line that links ``depends`` into ``output``."""

    @abstractmethod
    def accept(self, node: Node) -> str | None:
        """Linker input for one dependency, or None if it contributes none.

        Raises:
            UnrecognizedNodeError: The node class has no linker meaning.
        """

    def inputs(self, depends: Sequence[Node]) -> list[str]:
        """Linker inputs for a dependency list, in order."""
        result = []
        for dep in depends:
            value = self.accept(dep)
            if value:
                result.append(value)
        return result


class Archiver(BaseTool):
    """A static library archiver."""

    @abstractmethod
    def command(self, output: str, inputs: Sequence[str]) -> str:
        """Command line that archives ``inputs`` into ``output``."""


class Stripper(BaseTool):
    """A symbol stripper."""

    default_options: tuple[Flag, ...] = ()

    @abstractmethod
    def command(self, path: str, options: Sequence[Flag] | None = None) -> str:
        """Command line that strips ``path`` in place."""


@dataclass
class Toolset:
    """The tools used to build one graph.

    Attributes:
        compiler: Compiler for object files.
        linker: Linker for applications and dynamic libraries.
        archiver: Archiver for static libraries.
        stripper: Optional stripper for StripCommand.
    """

    compiler: Compiler
    linker: Linker
    archiver: Archiver
    stripper: Stripper | None = None

    def validate(self) -> None:
        """Reject compiler/linker pairs that can't work together.

        Raises:
            UnsupportedToolchainError: For an unsupported pairing.
        """
        from buildgraph.toolchains import check_pairing

        check_pairing(self.compiler.name, self.linker.name)

    def check(self, required: bool = False) -> bool:
        """Check every tool is installed."""
        tools: list[BaseTool] = [self.compiler, self.linker, self.archiver]
        if self.stripper is not None:
            tools.append(self.stripper)
        found = [tool.check(required) for tool in tools]
        return all(found)


def level_error(kind: str, value: object, tool: str) -> ConfigurationError:
    return ConfigurationError(f"unsupported {kind} level {value!r} for {tool}")

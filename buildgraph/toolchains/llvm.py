# SPDX-License-Identifier: MIT
"""LLVM toolchain pieces.

The Clang compiler shares GCC's command line and lives in gcc.py. This
module provides llvm-link, which merges bitcode objects, and llvm-ar.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildgraph.configure.platform import get_platform
from buildgraph.core.errors import UnrecognizedNodeError
from buildgraph.core.node import (
    Application,
    DynamicExtension,
    DynamicLibrary,
    Entry,
    ObjectFile,
    ObjectLibrary,
    StaticExtension,
    StaticLibrary,
    Variable,
)
from buildgraph.toolchains.gcc import GnuArchiver
from buildgraph.tools.toolchain import Linker, append_suffix

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.core.flags import Flag
    from buildgraph.core.node import Node


class LlvmLinker(Linker):
    """llvm-link.

    It only merges objects, so library search paths and every kind of
    library dependency are dropped from the command.
    """

    name = "llvm-link"
    id = "llvm"
    default_exec = "llvm-link"

    def command(
        self,
        output: str,
        depends: Sequence[Node],
        *,
        searches: Sequence[Flag] = (),
        ldflags: Sequence[Flag] = (),
        dynamic: bool = False,
    ) -> str:
        platform = get_platform()
        suffix = platform.shared_lib_suffix if dynamic else platform.exe_suffix
        parts = [self.executable, "-o", append_suffix(platform.local_path(output), suffix)]
        parts.extend(self.filter(ldflags))
        parts.extend(self.inputs(depends))
        return " ".join(parts)

    def accept(self, node: Node) -> str | None:
        platform = get_platform()
        if isinstance(node, ObjectFile):
            return platform.local_path(node.output)
        if isinstance(node, ObjectLibrary):
            return " ".join(platform.local_path(obj.output) for obj in node.objects)
        if isinstance(
            node,
            (
                DynamicExtension,
                StaticExtension,
                StaticLibrary,
                DynamicLibrary,
                Application,
                Variable,
                Entry,
            ),
        ):
            return None
        raise UnrecognizedNodeError(node, self.name)


class LlvmArchiver(GnuArchiver):
    """llvm-ar; same command line as GNU ar."""

    name = "llvm-ar"
    id = "llvm"
    default_exec = "llvm-ar"

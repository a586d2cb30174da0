# SPDX-License-Identifier: MIT
"""MSVC toolchain implementation.

Provides:
- cl compiler
- link linker
- lib librarian

Paths are written in Windows form regardless of how they were declared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildgraph.configure.platform import WINDOWS, get_platform
from buildgraph.core.errors import UnrecognizedNodeError
from buildgraph.core.flags import ScopedFlag, filter_flag
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
from buildgraph.tools.toolchain import (
    Archiver,
    Compiler,
    Linker,
    append_suffix,
    level_error,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.core.flags import Flag
    from buildgraph.core.node import Debug, Node, Optimization


def _local(path: str) -> str:
    return WINDOWS.local_path(path)


def import_library(node: Application | DynamicLibrary) -> str:
    """The import library a Windows binary is linked through."""
    return _local(node.implib or f"{node.basename}.lib")


class MsvcCompiler(Compiler):
    """Microsoft cl.

    Optimization: True -> /O2, a nonzero level n -> /On, a letter x -> /Ox,
    False or 0 -> nothing. Debug: True or any level -> /Od /Zi.
    """

    name = "cl"
    id = "msc"
    default_exec = "cl"

    letter_levels = ("s", "t", "x", "d", "1", "2")

    def optimization_flag(self, level: Optimization) -> str | None:
        if level is True:
            return "/O2"
        if level is False or level == 0:
            return None
        if isinstance(level, int):
            return f"/O{level}"
        if isinstance(level, str) and level in self.letter_levels:
            return f"/O{level}"
        raise level_error("optimization", level, self.name)

    def debug_flags(self, level: Debug) -> str | None:
        if level is False:
            return None
        if isinstance(level, int):
            return "/Od /Zi"
        raise level_error("debug", level, self.name)

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
        parts = [self.executable, "/nologo", "/P" if preprocess else "/c"]
        parts.extend(f"/I{_local(inc)}" for inc in self.filter(includes))
        parts.extend(f"/D{define}" for define in self.filter(definitions))
        if optimization is not None:
            flag = self.optimization_flag(optimization)
            if flag:
                parts.append(flag)
        if debug is not None:
            flag = self.debug_flags(debug)
            if flag:
                parts.append(flag)
        parts.extend(self.filter(cflags))

        output = _local(output)
        if preprocess:
            parts.append(f"/Fi{output}")
        else:
            parts.append(f"/Fo{append_suffix(output, get_platform().object_suffix)}")
        parts.append(_local(source))
        return " ".join(parts)


class MsvcLinker(Linker):
    """Microsoft link."""

    name = "link"
    id = "msc"
    default_exec = "link"

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
        parts = [self.executable, "/NOLOGO"]
        if dynamic:
            parts.append("/DLL")
        parts.append(f"/OUT:{append_suffix(_local(output), suffix)}")
        parts.extend(f"/LIBPATH:{_local(s)}" for s in self.filter(searches))
        parts.extend(self.filter(ldflags))
        parts.extend(self.inputs(depends))
        return " ".join(parts)

    def accept(self, node: Node) -> str | None:
        if isinstance(node, (ObjectFile, StaticExtension, StaticLibrary)):
            return _local(node.output)
        if isinstance(node, ObjectLibrary):
            return " ".join(_local(obj.output) for obj in node.objects)
        if isinstance(node, DynamicExtension):
            # The static modifier has no meaning for import libraries
            if isinstance(node.name, ScopedFlag):
                return filter_flag(node.name, self.id)
            return append_suffix(node.name, ".lib")
        if isinstance(node, (Application, DynamicLibrary)):
            return import_library(node)
        if isinstance(node, (Variable, Entry)):
            return None
        raise UnrecognizedNodeError(node, self.name)


class MsvcLibrarian(Archiver):
    """Microsoft lib."""

    name = "lib"
    id = "msc"
    default_exec = "lib"

    def command(self, output: str, inputs: Sequence[str]) -> str:
        output = append_suffix(_local(output), get_platform().static_lib_suffix)
        return " ".join([self.executable, "/NOLOGO", f"/OUT:{output}", *map(_local, inputs)])

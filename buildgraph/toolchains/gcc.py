# SPDX-License-Identifier: MIT
"""GCC-family toolchain implementation.

Provides:
- GCC, Clang and TCC C compilers
- GNU linker (driven through gcc, which accepts options like -m32 that
  plain ld rejects)
- GNU archiver (ar)
- GNU strip
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildgraph.configure.platform import get_platform
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
    Stripper,
    append_suffix,
    level_error,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.core.flags import Flag
    from buildgraph.core.node import Debug, Node, Optimization


class GccCompiler(Compiler):
    """GCC C compiler.

    Optimization: True -> -O2, False -> -O0, n -> -On, "s"/"z"/"g" -> -Os/-Oz/-Og.
    Debug: True -> -g -g3, False -> nothing, n -> -gn.
    """

    name = "gcc"
    id = "gnu"
    default_exec = "gcc"

    letter_levels: tuple[str, ...] = ("s", "z", "g")
    debug_flag = "-g -g3"

    def optimization_flag(self, level: Optimization) -> str:
        if level is True:
            return "-O2"
        if level is False:
            return "-O0"
        if isinstance(level, int):
            return f"-O{level}"
        if isinstance(level, str) and level in self.letter_levels:
            return f"-O{level}"
        raise level_error("optimization", level, self.name)

    def debug_flags(self, level: Debug) -> str | None:
        if level is True:
            return self.debug_flag
        if level is False:
            return None
        if isinstance(level, int):
            return f"-g{level}"
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
        platform = get_platform()
        parts = [self.executable, "-E" if preprocess else "-c"]
        if pic:
            parts.append("-fPIC")
        parts.extend(f"-I{platform.local_path(inc)}" for inc in self.filter(includes))
        parts.extend(f"-D{define}" for define in self.filter(definitions))
        if optimization is not None:
            parts.append(self.optimization_flag(optimization))
        if debug is not None:
            flag = self.debug_flags(debug)
            if flag:
                parts.append(flag)
        parts.extend(self.filter(cflags))

        output = platform.local_path(output)
        if not preprocess:
            output = append_suffix(output, platform.object_suffix)
        parts.extend(["-o", output, platform.local_path(source)])
        return " ".join(parts)


class ClangCompiler(GccCompiler):
    """Clang C compiler; GCC-compatible command line."""

    name = "clang"
    default_exec = "clang"


class TccCompiler(GccCompiler):
    """Tiny C Compiler.

    Has no letter optimization levels, and debug True is a plain -g.
    """

    name = "tcc"
    id = "tcc"
    default_exec = "tcc"

    letter_levels = ()
    debug_flag = "-g"


class GnuLinker(Linker):
    """GNU linker, invoked through the gcc driver."""

    name = "ld"
    id = "gnu"
    default_exec = "gcc"

    search_prefix = "-L"

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
        parts = [self.executable]
        if dynamic:
            parts.append("-shared")
        parts.extend(["-o", append_suffix(platform.local_path(output), suffix)])
        parts.extend(self.search_args(searches))
        parts.extend(self.filter(ldflags))
        parts.extend(self.inputs(depends))
        return " ".join(parts)

    def search_args(self, searches: Sequence[Flag]) -> list[str]:
        platform = get_platform()
        return [f"{self.search_prefix}{platform.local_path(s)}" for s in self.filter(searches)]

    def accept(self, node: Node) -> str | None:
        platform = get_platform()
        if isinstance(node, (ObjectFile, StaticExtension, StaticLibrary, DynamicLibrary)):
            return platform.local_path(node.output)
        if isinstance(node, ObjectLibrary):
            return " ".join(platform.local_path(obj.output) for obj in node.objects)
        if isinstance(node, DynamicExtension):
            return self.library_arg(node)
        if isinstance(node, (Application, Variable, Entry)):
            return None
        raise UnrecognizedNodeError(node, self.name)

    def library_arg(self, ext: DynamicExtension) -> str | None:
        if isinstance(ext.name, ScopedFlag):
            lib = filter_flag(ext.name, self.id)
            return f"-l{lib}" if lib else None
        static = "-static " if "static" in ext.flags else ""
        return f"{static}-l{ext.name}"


class GnuArchiver(Archiver):
    """GNU ar."""

    name = "ar"
    id = "gnu"
    default_exec = "ar"

    def command(self, output: str, inputs: Sequence[str]) -> str:
        platform = get_platform()
        output = append_suffix(platform.local_path(output), platform.static_lib_suffix)
        return " ".join(
            [self.executable, "rcs", output, *(platform.local_path(i) for i in inputs)]
        )


class GnuStripper(Stripper):
    """GNU strip. Strips debug and local symbols by default."""

    name = "strip"
    id = "gnu"
    default_exec = "strip"

    default_options: tuple[Flag, ...] = (
        ScopedFlag("gnu", "-S"),
        ScopedFlag("gnu", "-x"),
        ScopedFlag("gnu", "-X"),
    )

    def command(self, path: str, options: Sequence[Flag] | None = None) -> str:
        if options is None:
            options = self.default_options
        return " ".join([self.executable, *self.filter(options), path])

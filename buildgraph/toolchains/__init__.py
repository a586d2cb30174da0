# SPDX-License-Identifier: MIT
"""Toolchain definitions (GCC, Clang, TCC, LLVM, MSVC) and toolset selection."""

from __future__ import annotations

from buildgraph.core.errors import UnsupportedToolchainError
from buildgraph.toolchains.gcc import (
    ClangCompiler,
    GccCompiler,
    GnuArchiver,
    GnuLinker,
    GnuStripper,
    TccCompiler,
)
from buildgraph.toolchains.llvm import LlvmArchiver, LlvmLinker
from buildgraph.toolchains.msvc import MsvcCompiler, MsvcLibrarian, MsvcLinker
from buildgraph.tools.toolchain import Archiver, Compiler, Linker, Toolset

COMPILERS: dict[str, type[Compiler]] = {
    "gcc": GccCompiler,
    "clang": ClangCompiler,
    "tcc": TccCompiler,
    "cl": MsvcCompiler,
}

LINKERS: dict[str, type[Linker]] = {
    "ld": GnuLinker,
    "llvm-link": LlvmLinker,
    "link": MsvcLinker,
}

ARCHIVERS: dict[str, type[Archiver]] = {
    "ld": GnuArchiver,
    "llvm-link": LlvmArchiver,
    "link": MsvcLibrarian,
}

# Compiler -> linkers it can be paired with
SUPPORTED_PAIRS: dict[str, tuple[str, ...]] = {
    "gcc": ("ld",),
    "clang": ("ld", "llvm-link"),
    "cl": ("link",),
}


def check_pairing(compiler: str, linker: str) -> None:
    """Reject an unsupported compiler/linker pairing.

    Raises:
        UnsupportedToolchainError: If the pair isn't supported.
    """
    if linker not in SUPPORTED_PAIRS.get(compiler, ()):
        raise UnsupportedToolchainError(compiler, linker)


def select_toolset(
    compiler: str,
    linker: str,
    *,
    compiler_exec: str | None = None,
    linker_exec: str | None = None,
    strip: bool = False,
    strip_exec: str | None = None,
) -> Toolset:
    """Build a Toolset from a compiler and linker name.

    Supported pairs are gcc+ld, clang+ld, clang+llvm-link and cl+link.

    Args:
        compiler: Compiler name.
        linker: Linker name.
        compiler_exec: Compiler executable overriding the default.
        linker_exec: Linker executable overriding the default.
        strip: Include a GNU stripper.
        strip_exec: Stripper executable overriding the default.

    Raises:
        UnsupportedToolchainError: If the pair isn't supported.

    Example:
        toolset = select_toolset("clang", "ld", compiler_exec="/opt/llvm/bin/clang")
    """
    check_pairing(compiler, linker)
    return Toolset(
        compiler=COMPILERS[compiler](compiler_exec),
        linker=LINKERS[linker](linker_exec),
        archiver=ARCHIVERS[linker](),
        stripper=GnuStripper(strip_exec) if strip else None,
    )


__all__ = [
    "ARCHIVERS",
    "COMPILERS",
    "LINKERS",
    "SUPPORTED_PAIRS",
    "check_pairing",
    "select_toolset",
    # GCC family
    "ClangCompiler",
    "GccCompiler",
    "GnuArchiver",
    "GnuLinker",
    "GnuStripper",
    "TccCompiler",
    # LLVM
    "LlvmArchiver",
    "LlvmLinker",
    # MSVC
    "MsvcCompiler",
    "MsvcLibrarian",
    "MsvcLinker",
]

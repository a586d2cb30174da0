# SPDX-License-Identifier: MIT
"""Tests for the LLVM linker and archiver."""

import pytest

from buildgraph.core.errors import UnrecognizedNodeError
from buildgraph.core.flags import ScopedFlag
from buildgraph.core.node import (
    DynamicExtension,
    DynamicLibrary,
    ObjectFile,
    ObjectLibrary,
    Solution,
    StaticExtension,
    StaticLibrary,
)
from buildgraph.toolchains.llvm import LlvmArchiver, LlvmLinker


class TestLlvmLinker:
    def test_objects_only(self):
        depends = [
            ObjectFile("a.c", output="a.o"),
            ObjectLibrary("objs", depends=[ObjectFile("b.c", output="b.o")]),
            DynamicExtension("m"),
            StaticExtension("libz.a"),
            StaticLibrary("core", output="core.a"),
            DynamicLibrary("plugin", output="plugin.so"),
        ]
        assert LlvmLinker().command("app", depends) == "llvm-link -o app a.o b.o"

    def test_searches_dropped(self):
        cmd = LlvmLinker().command(
            "app",
            [ObjectFile("a.c", output="a.o")],
            searches=["lib"],
            ldflags=[ScopedFlag("llvm", "-v"), ScopedFlag("gnu", "-pthread")],
        )
        assert cmd == "llvm-link -o app -v a.o"

    def test_unknown_node(self):
        with pytest.raises(UnrecognizedNodeError, match="llvm-link"):
            LlvmLinker().accept(Solution("all"))


class TestLlvmArchiver:
    def test_command(self):
        assert LlvmArchiver().command("core", ["a.o"]) == "llvm-ar rcs core.a a.o"

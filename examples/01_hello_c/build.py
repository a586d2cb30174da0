#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Build script for a simple C program.

This example demonstrates:
- Selecting a toolset with --toolset (gcc+ld by default)
- An object library feeding one application
- Toolchain-scoped warning flags
- Any backend chosen with --backend

Variables:
    OPT - optimization level (default: 2)
"""

from pathlib import Path

from buildgraph import (
    Application,
    ObjectFile,
    ObjectLibrary,
    ScopedFlag,
    Solution,
    get_backend,
    get_build_dir,
    get_toolset,
    get_var,
    make_generator,
    select_toolset,
)

# =============================================================================
# Build Script
# =============================================================================

build_dir = Path(get_build_dir())
src_dir = Path(__file__).parent / "src"

compiler, linker = get_toolset()
toolset = select_toolset(compiler, linker)

objects = ObjectLibrary(
    "hello_objs",
    depends=[ObjectFile(str(src_dir / "hello.c"), output="hello")],
    cflags=[ScopedFlag("gnu", "-Wall"), ScopedFlag("gnu", "-Wextra"), ScopedFlag("msc", "/W4")],
    optimization=int(get_var("OPT", "2")),
)
hello = Application("hello", depends=[objects])
solution = Solution("hello_c", depends=[hello])

generator = make_generator(get_backend(), toolset)
generator.generate(solution, build_dir)

print(f"Generated {build_dir}")

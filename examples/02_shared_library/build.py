#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Example with a shared library, a program using it, and a clean target.

This example shows:
- One object library compiled position independent because a dynamic
  library links it
- Include directories and definitions inherited by every object file
- A per-file override (optimization) on a single source
- libm referenced as a dynamic extension
- A phony entry built from platform-neutral commands
- A make variable with an overridable default
- An optional build.toml (buildgraph generate --config build.toml) that
  picks the toolset and backend and supplies variables and warning flags

Variables:
    PREFIX - where 'install' copies the program (default: /usr/local)
"""

from pathlib import Path

from buildgraph import (
    Application,
    DynamicExtension,
    DynamicLibrary,
    Entry,
    ObjectFile,
    ObjectLibrary,
    ScopedFlag,
    Solution,
    Variable,
    get_backend,
    get_build_dir,
    get_config,
    get_toolset,
    make_generator,
    select_toolset,
)
from buildgraph.core.commands import CreateCommand, DeleteCommand

# =============================================================================
# Build Script
# =============================================================================

build_dir = Path(get_build_dir())
root = Path(__file__).parent
src_dir = root / "src"

# Loading the config selects its target platform, so do it before any nodes
config = get_config()
if config is not None:
    toolset = config.toolset()
    backend = config.backend
    options = config.generator_options()
    config_variables = config.variable_nodes()
    warnings = config.flag_list("cflags")
else:
    toolset = select_toolset(*get_toolset())
    backend = get_backend()
    options = {}
    config_variables = []
    warnings = [ScopedFlag("gnu", "-Wall"), ScopedFlag("msc", "/W3")]


# Objects go to obj/ under the build directory
objdir = Entry("obj", commands=[CreateCommand("obj/")])


def obj(name: str, **kwargs) -> ObjectFile:
    return ObjectFile(
        str(src_dir / f"{name}.c"), output=f"obj/{name}", depends=["obj"], **kwargs
    )


geometry = ObjectLibrary(
    "geometry",
    depends=[obj("vector"), obj("shapes", optimization=3)],
    includes=[str(root / "include")],
    definitions=["GEOMETRY_BUILD"],
    cflags=warnings,
    optimization=2,
)
libgeometry = DynamicLibrary(
    "geometry", output="libgeometry", depends=[geometry, DynamicExtension("m")]
)
demo = Application(
    "demo",
    depends=[objdir, obj("main", includes=[str(root / "include")]), libgeometry],
)

prefix = Variable("PREFIX", default="/usr/local")
install = Entry(
    "install",
    phony=True,
    depends=[demo],
    commands=[CreateCommand("$(PREFIX)/bin/"), "cp demo $(PREFIX)/bin/demo"],
)
clean = Entry(
    "clean",
    phony=True,
    commands=[DeleteCommand("obj/"), DeleteCommand("demo", directory=False)],
)

variables = list(config_variables)
if not any(v.name == "PREFIX" for v in variables):
    variables.append(prefix)
solution = Solution("shared_library", depends=[*variables, demo, install, clean])

generator = make_generator(backend, toolset, **options)
generator.generate(solution, build_dir)

print(f"Generated {build_dir}")

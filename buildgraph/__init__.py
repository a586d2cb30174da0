# SPDX-License-Identifier: MIT
"""
buildgraph: a build-graph compiler/linker driver.

Describe object files, libraries and applications as a dependency graph,
pick a toolset (gcc+ld, clang+ld, clang+llvm-link or cl+link) and a
backend, then either run the build directly or write a Makefile, an
NMake file or a Visual Studio solution.
"""

from __future__ import annotations

import json
import os

__version__ = "0.1.0"

from buildgraph.configure.config import BuildConfig, load_config  # noqa: E402
from buildgraph.configure.platform import get_platform, set_target_platform  # noqa: E402
from buildgraph.core.flags import ScopedFlag  # noqa: E402
from buildgraph.core.node import (  # noqa: E402
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
from buildgraph.generators import make_generator  # noqa: E402
from buildgraph.toolchains import select_toolset  # noqa: E402

# Internal storage for CLI variables
_cli_vars: dict[str, str] | None = None


def get_var(name: str, default: str | None = None) -> str | None:
    """Get a build variable set on the command line or from environment.

    Variables can be set when invoking buildgraph:
        buildgraph generate PORT=linux OPT=2

    In your build.py, access them with:
        port = get_var('PORT', default='posix')

    Precedence (highest to lowest):
        1. Command line: buildgraph generate VAR=value
        2. Environment variable: VAR=value buildgraph generate

    Args:
        name: Variable name.
        default: Default value if not set.

    Returns:
        The variable value, or default if not set.
    """
    global _cli_vars

    # Lazy-load CLI vars from environment on first access
    if _cli_vars is None:
        raw = os.environ.get("BUILDGRAPH_VARS")
        if raw:
            try:
                _cli_vars = json.loads(raw)
            except json.JSONDecodeError:
                _cli_vars = {}
        else:
            _cli_vars = {}

    if name in _cli_vars:
        return _cli_vars[name]

    return os.environ.get(name, default)


def get_backend(default: str = "makefile") -> str:
    """Get the backend chosen with ``buildgraph generate --backend``."""
    return os.environ.get("BUILDGRAPH_BACKEND") or default


def get_toolset(default: str = "gcc+ld") -> tuple[str, str]:
    """Get the (compiler, linker) pair chosen with ``--toolset compiler+linker``."""
    value = os.environ.get("BUILDGRAPH_TOOLSET") or default
    compiler, _, linker = value.partition("+")
    return compiler, linker or "ld"


def get_build_dir(default: str = "build") -> str:
    """Get the build directory chosen with ``buildgraph generate -B``."""
    return os.environ.get("BUILDGRAPH_BUILD_DIR") or default


def get_config() -> BuildConfig | None:
    """Load the configuration file chosen with ``buildgraph generate --config``.

    The file's target platform is selected as a side effect, so call this
    before creating any nodes.

    Returns:
        The loaded BuildConfig, or None when no file was given.

    Raises:
        ConfigurationError: If the file can't be read or parsed.
    """
    path = os.environ.get("BUILDGRAPH_CONFIG")
    if not path:
        return None
    config = load_config(path)
    config.apply()
    return config


__all__ = [
    # Version
    "__version__",
    # CLI variable access
    "get_backend",
    "get_build_dir",
    "get_config",
    "get_toolset",
    "get_var",
    # Graph nodes
    "Application",
    "DynamicExtension",
    "DynamicLibrary",
    "Entry",
    "ObjectFile",
    "ObjectLibrary",
    "ScopedFlag",
    "Solution",
    "StaticExtension",
    "StaticLibrary",
    "Variable",
    # Platform, configuration, toolsets and backends
    "BuildConfig",
    "load_config",
    "get_platform",
    "make_generator",
    "select_toolset",
    "set_target_platform",
]

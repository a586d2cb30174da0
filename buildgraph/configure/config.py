# SPDX-License-Identifier: MIT
"""Build configuration for buildgraph.

A build can be configured from a TOML file instead of (or in addition
to) Python code:

    platform = "linux"
    backend = "makefile"

    [toolset]
    compiler = "clang"
    linker = "ld"
    compiler-exec = "/usr/bin/clang-17"
    strip = true

    [visual-studio]
    x86 = false

    [variables]
    REBOL = "r3"

    [flags]
    cflags = ["-DNDEBUG", "<gnu:-Wall>", "<msc:/W4>"]

This module also locates programs on PATH for Tool.check().
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from buildgraph.configure.platform import set_target_platform
from buildgraph.core.errors import ConfigurationError
from buildgraph.core.flags import parse_flag
from buildgraph.core.node import Variable

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

if TYPE_CHECKING:
    from buildgraph.configure.platform import Platform
    from buildgraph.core.flags import Flag
    from buildgraph.tools.toolchain import Toolset

logger = logging.getLogger(__name__)


@dataclass
class ProgramInfo:
    """Information about a found program.

    Attributes:
        path: Path to the program executable.
        version: Version string if detected.
    """

    path: Path
    version: str | None = None


def find_program(name: str, version_flag: str = "--version") -> ProgramInfo | None:
    """Find a program on PATH (or at an explicit path) and its version."""
    result = shutil.which(name)
    if result is None:
        return None
    path = Path(result)
    return ProgramInfo(path=path, version=_get_program_version(path, version_flag))


def _get_program_version(path: Path, version_flag: str) -> str | None:
    """Try to get the version of a program."""
    try:
        result = subprocess.run(
            [str(path), version_flag],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, OSError):
        return None
    if result.returncode != 0:
        return None
    # First non-empty line
    for line in result.stdout.split("\n"):
        line = line.strip()
        if line:
            return line
    return None


@dataclass
class BuildConfig:
    """Settings loaded from a build configuration file.

    Attributes:
        compiler: Compiler name ('gcc', 'clang', 'cl').
        linker: Linker name ('ld', 'llvm-link', 'link').
        compiler_exec: Compiler executable override.
        linker_exec: Linker executable override.
        strip: Whether the toolset includes a stripper.
        strip_exec: Stripper executable override.
        platform: Target platform name, or None for the host.
        backend: Generator backend name.
        x86: Visual Studio: build for Win32 instead of x64.
        variables: Build variables, emitted as Variable nodes.
        flags: Named flag lists ('cflags', 'ldflags', ...) parsed into Flags.
    """

    compiler: str = "gcc"
    linker: str = "ld"
    compiler_exec: str | None = None
    linker_exec: str | None = None
    strip: bool = False
    strip_exec: str | None = None
    platform: str | None = None
    backend: str = "makefile"
    x86: bool = False
    variables: dict[str, str] = field(default_factory=dict)
    flags: dict[str, list[Flag]] = field(default_factory=dict)

    def toolset(self) -> Toolset:
        """The configured Toolset.

        Raises:
            UnsupportedToolchainError: For an unsupported compiler/linker pair.
        """
        from buildgraph.toolchains import select_toolset

        return select_toolset(
            self.compiler,
            self.linker,
            compiler_exec=self.compiler_exec,
            linker_exec=self.linker_exec,
            strip=self.strip,
            strip_exec=self.strip_exec,
        )

    def apply(self) -> Platform:
        """Select the configured target platform.

        Must run before graph construction, since outputs and command
        syntax follow the target platform. Without a platform setting
        the host platform is used.

        Returns:
            The selected Platform.
        """
        return set_target_platform(self.platform)

    def variable_nodes(self) -> list[Variable]:
        return [Variable(name, value=value) for name, value in self.variables.items()]

    def flag_list(self, name: str) -> list[Flag]:
        """Flags from the [flags] table, or an empty list."""
        return list(self.flags.get(name, []))

    def generator_options(self) -> dict[str, Any]:
        """Backend options that come from the file."""
        if self.backend in ("visual-studio", "vs2015"):
            return {"x86": self.x86}
        return {}


def _optional_str(table: dict[str, Any], key: str) -> str | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string, got {value!r}")
    return value


def config_from_dict(data: dict[str, Any]) -> BuildConfig:
    """Build a BuildConfig from parsed TOML data.

    Raises:
        ConfigurationError: For values of the wrong type.
    """
    toolset = data.get("toolset", {})
    vs = data.get("visual-studio", {})
    variables = data.get("variables", {})
    if not isinstance(variables, dict):
        raise ConfigurationError("[variables] must be a table")

    flags: dict[str, list[Flag]] = {}
    for name, values in data.get("flags", {}).items():
        if not isinstance(values, list):
            raise ConfigurationError(f"flags.{name} must be a list")
        flags[name] = [parse_flag(str(v)) for v in values]

    config = BuildConfig(
        compiler=toolset.get("compiler", "gcc"),
        linker=toolset.get("linker", "ld"),
        compiler_exec=_optional_str(toolset, "compiler-exec"),
        linker_exec=_optional_str(toolset, "linker-exec"),
        strip=bool(toolset.get("strip", False)),
        strip_exec=_optional_str(toolset, "strip-exec"),
        platform=_optional_str(data, "platform"),
        backend=data.get("backend", "makefile"),
        x86=bool(vs.get("x86", False)),
        variables={str(k): str(v) for k, v in variables.items()},
        flags=flags,
    )
    return config


def load_config(path: Path | str) -> BuildConfig:
    """Load a build configuration file.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid TOML in {path}: {e}") from e
    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data)

# SPDX-License-Identifier: MIT
"""Tests for buildgraph.configure.config."""

import sys
from pathlib import Path

import pytest

from buildgraph.configure.config import (
    BuildConfig,
    ProgramInfo,
    config_from_dict,
    find_program,
    load_config,
)
from buildgraph.configure.platform import WINDOWS, get_platform, host_platform
from buildgraph.core.errors import ConfigurationError, UnsupportedToolchainError
from buildgraph.core.flags import ScopedFlag
from buildgraph.toolchains import ClangCompiler, GnuLinker, GnuStripper

CONFIG_TEXT = """\
platform = "linux"
backend = "visual-studio"

[toolset]
compiler = "clang"
linker = "ld"
compiler-exec = "/usr/bin/clang-17"
strip = true

[visual-studio]
x86 = true

[variables]
REBOL = "r3"
JOBS = 4

[flags]
cflags = ["-DNDEBUG", "<gnu:-Wall>", "<msc:/W4>"]
"""


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        path = tmp_path / "build.toml"
        path.write_text(CONFIG_TEXT)

        config = load_config(path)
        assert config.compiler == "clang"
        assert config.linker == "ld"
        assert config.compiler_exec == "/usr/bin/clang-17"
        assert config.strip is True
        assert config.platform == "linux"
        assert config.backend == "visual-studio"
        assert config.x86 is True
        assert config.variables == {"REBOL": "r3", "JOBS": "4"}
        assert config.flags["cflags"] == [
            "-DNDEBUG",
            ScopedFlag("gnu", "-Wall"),
            ScopedFlag("msc", "/W4"),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="cannot read"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "build.toml"
        path.write_text("compiler = \n")
        with pytest.raises(ConfigurationError, match="invalid TOML"):
            load_config(path)


class TestConfigFromDict:
    def test_defaults(self):
        config = config_from_dict({})
        assert config == BuildConfig()
        assert config.compiler == "gcc"
        assert config.linker == "ld"
        assert config.backend == "makefile"

    def test_variables_must_be_table(self):
        with pytest.raises(ConfigurationError, match="must be a table"):
            config_from_dict({"variables": ["a"]})

    def test_flags_must_be_lists(self):
        with pytest.raises(ConfigurationError, match="flags.cflags must be a list"):
            config_from_dict({"flags": {"cflags": "-O2"}})

    def test_exec_must_be_string(self):
        with pytest.raises(ConfigurationError, match="compiler-exec must be a string"):
            config_from_dict({"toolset": {"compiler-exec": 3}})

    def test_malformed_flag(self):
        with pytest.raises(ConfigurationError, match="malformed scoped flag"):
            config_from_dict({"flags": {"cflags": ["<gnu>"]}})


class TestBuildConfig:
    def test_toolset(self):
        config = BuildConfig(compiler="clang", compiler_exec="clang-17", strip=True)
        toolset = config.toolset()
        assert isinstance(toolset.compiler, ClangCompiler)
        assert toolset.compiler.executable == "clang-17"
        assert isinstance(toolset.linker, GnuLinker)
        assert isinstance(toolset.stripper, GnuStripper)

    def test_bad_pairing(self):
        with pytest.raises(UnsupportedToolchainError):
            BuildConfig(compiler="cl", linker="ld").toolset()

    def test_variable_nodes(self):
        nodes = BuildConfig(variables={"A": "1"}).variable_nodes()
        assert [(v.name, v.value) for v in nodes] == [("A", "1")]

    def test_apply_selects_platform(self):
        assert BuildConfig(platform="windows").apply() is WINDOWS
        assert get_platform() is WINDOWS

    def test_apply_without_platform_uses_host(self):
        BuildConfig(platform="windows").apply()
        assert BuildConfig().apply() == host_platform()
        assert get_platform() == host_platform()

    def test_flag_list(self):
        config = config_from_dict({"flags": {"cflags": ["-DNDEBUG", "<gnu:-Wall>"]}})
        assert config.flag_list("cflags") == ["-DNDEBUG", ScopedFlag("gnu", "-Wall")]
        assert config.flag_list("ldflags") == []

    def test_generator_options(self):
        assert BuildConfig(backend="vs2015", x86=True).generator_options() == {"x86": True}
        assert BuildConfig(backend="makefile", x86=True).generator_options() == {}


class TestFindProgram:
    def test_finds_python(self):
        info = find_program(sys.executable)
        assert isinstance(info, ProgramInfo)
        assert info.path == Path(sys.executable)

    def test_missing_program(self):
        assert find_program("definitely-not-a-real-program-xyz") is None

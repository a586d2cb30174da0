# SPDX-License-Identifier: MIT
"""Tests for the Visual Studio generator."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from buildgraph.configure.platform import WINDOWS, set_target_platform
from buildgraph.core.errors import ConfigurationError, UnrecognizedNodeError
from buildgraph.core.flags import ScopedFlag
from buildgraph.core.node import (
    Application,
    DynamicExtension,
    DynamicLibrary,
    Entry,
    ObjectFile,
    ObjectLibrary,
    Solution,
    StaticLibrary,
    Variable,
)
from buildgraph.generators.visual_studio import (
    GUID_POOL,
    MSBUILD_NAMESPACE,
    Vs2015Generator,
    VisualStudioGenerator,
    find_compile_as,
    find_optimization,
    find_stack_size,
    find_subsystem,
)
from buildgraph.toolchains import select_toolset

NS = {"ms": MSBUILD_NAMESPACE}


@pytest.fixture(autouse=True)
def windows_target():
    set_target_platform(WINDOWS)


@pytest.fixture
def msvc_toolset():
    return select_toolset("cl", "link")


@pytest.fixture
def hello_solution():
    objs = ObjectLibrary("objs", depends=[ObjectFile("src/a.c"), ObjectFile("src/b.c")])
    app = Application("app", depends=[objs, DynamicExtension("user32")])
    return Solution("hello", depends=[app])


def load_project(path: Path) -> ET.Element:
    return ET.parse(path).getroot()


def text_of(root: ET.Element, path: str) -> str | None:
    element = root.find(path, NS)
    return None if element is None else element.text


class TestHelpers:
    def test_find_compile_as(self):
        assert find_compile_as(["/TP"]) == "CompileAsCpp"
        assert find_compile_as([ScopedFlag("msc", "/TC")]) == "CompileAsC"
        assert find_compile_as([ScopedFlag("gnu", "/TP")]) is None

    def test_find_stack_size(self):
        assert find_stack_size(["/LTCG", "/STACK:1048576"]) == "1048576"
        assert find_stack_size([]) is None

    def test_find_subsystem(self):
        assert find_subsystem(["/subsystem:windows"]) == "windows"

    @pytest.mark.parametrize(
        "level, value",
        [
            (None, "Disabled"),
            (False, "Disabled"),
            (0, "Disabled"),
            (True, "MaxSpeed"),
            (2, "MaxSpeed"),
            (1, "MinSpace"),
            ("s", "MinSpace"),
            ("x", "Full"),
        ],
    )
    def test_find_optimization(self, level, value):
        assert find_optimization(level) == value

    def test_find_optimization_rejects_unknown(self):
        with pytest.raises(ConfigurationError, match="msbuild"):
            find_optimization(3)


class TestSolution:
    def test_generates_files(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        sln = VisualStudioGenerator(msvc_toolset).generate(hello_solution, tmp_path)
        assert sln == tmp_path / "hello.sln"
        assert (tmp_path / "objs.vcxproj").exists()
        assert (tmp_path / "app.vcxproj").exists()

    def test_solution_text(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        """Dependencies are listed before dependents and take GUIDs in pool order."""
        text = VisualStudioGenerator(msvc_toolset).generate(hello_solution, tmp_path).read_text()
        objs_id, app_id = GUID_POOL[0], GUID_POOL[1]
        lines = text.splitlines()

        assert lines[0] == "Microsoft Visual Studio Solution File, Format Version 12.00"
        assert lines[1] == (
            'Project("{8BC9CEB8-8B4A-11D0-8D11-00A0C91BC942}") = "objs", "objs.vcxproj", '
            f'"{objs_id}"'
        )
        assert lines[2] == "EndProject"
        assert f'"app", "app.vcxproj", "{app_id}"' in lines[3]
        assert lines[4:7] == [
            "\tProjectSection(ProjectDependencies) = postProject",
            f"\t\t{objs_id} = {objs_id}",
            "\tEndProjectSection",
        ]
        assert "\t\tRelease|x64 = Release|x64" in lines
        assert f"\t\t{app_id}.Release|x64.ActiveCfg = Release|x64" in lines
        assert f"\t\t{app_id}.Release|x64.Build.0 = Release|x64" in lines
        assert lines[-1] == "EndGlobal"

    def test_deterministic(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        gen = VisualStudioGenerator(msvc_toolset)
        first = gen.generate(hello_solution, tmp_path / "one").read_text()
        second = gen.generate(hello_solution, tmp_path / "two").read_text()
        assert first == second

    def test_debug_and_x86(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        hello_solution.debug = True
        text = VisualStudioGenerator(msvc_toolset, x86=True).generate(hello_solution, tmp_path).read_text()
        assert "\t\tDebug|Win32 = Debug|Win32" in text

    def test_pool_exhausted(self, tmp_path: Path, msvc_toolset) -> None:
        entries = [Entry(f"step{i}", commands=["echo"], phony=True) for i in range(len(GUID_POOL) + 1)]
        with pytest.raises(ConfigurationError, match="GUID pool"):
            VisualStudioGenerator(msvc_toolset).generate(Solution("big", depends=entries), tmp_path)

    def test_unknown_project_node(self, tmp_path: Path, msvc_toolset) -> None:
        solution = Solution("outer", depends=[Solution("inner")])
        with pytest.raises(UnrecognizedNodeError):
            VisualStudioGenerator(msvc_toolset).generate(solution, tmp_path)


class TestProject:
    def test_application_project(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        VisualStudioGenerator(msvc_toolset).generate(hello_solution, tmp_path)
        root = load_project(tmp_path / "app.vcxproj")

        assert root.tag == f"{{{MSBUILD_NAMESPACE}}}Project"
        assert text_of(root, "ms:PropertyGroup[@Label='Globals']/ms:ProjectGuid") == GUID_POOL[1]
        assert text_of(root, "ms:PropertyGroup[@Label='Globals']/ms:ProjectName") == "app"
        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:ConfigurationType") == "Application"
        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:PlatformToolset") == "v141"
        assert text_of(root, "ms:PropertyGroup/ms:TargetName") == "app"
        assert text_of(root, "ms:PropertyGroup/ms:TargetExt") == ".exe"
        assert text_of(root, "ms:ItemDefinitionGroup/ms:Link/ms:AdditionalDependencies") == "user32.lib"
        assert text_of(root, "ms:ItemDefinitionGroup/ms:Link/ms:SubSystem") == "Console"

        objects = [e.get("Include") for e in root.iterfind("ms:ItemGroup/ms:Object", NS)]
        assert objects == ["src\\a.obj", "src\\b.obj"]
        reference = root.find("ms:ItemGroup/ms:ProjectReference", NS)
        assert reference.get("Include") == "objs.vcxproj"
        assert text_of(reference, "ms:Project") == GUID_POOL[0]

    def test_object_library_project(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        VisualStudioGenerator(msvc_toolset).generate(hello_solution, tmp_path)
        root = load_project(tmp_path / "objs.vcxproj")

        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:ConfigurationType") == "StaticLibrary"
        sources = [e.get("Include") for e in root.iterfind("ms:ItemGroup/ms:ClCompile", NS)]
        assert sources == ["src\\a.c", "src\\b.c"]
        assert text_of(root, "ms:ItemDefinitionGroup/ms:Lib/ms:AdditionalOptions") == (
            "/machine:x64 %(AdditionalOptions)"
        )

    def test_compile_settings(self, tmp_path: Path, msvc_toolset) -> None:
        lib = StaticLibrary(
            "core",
            depends=[ObjectFile("a.c", definitions=["LOCAL"], optimization="s")],
            includes=["inc/x", ScopedFlag("gnu", "posix")],
            definitions=["FOO", ScopedFlag("msc", "_WIN32_WINNT=0x0601")],
            cflags=[ScopedFlag("msc", "/TP")],
            optimization=True,
        )
        VisualStudioGenerator(msvc_toolset).generate(Solution("s", depends=[lib]), tmp_path)
        root = load_project(tmp_path / "core.vcxproj")
        compile_ = "ms:ItemDefinitionGroup/ms:ClCompile/"

        assert text_of(root, compile_ + "ms:AdditionalIncludeDirectories") == (
            "inc\\x;%(AdditionalIncludeDirectories)"
        )
        assert text_of(root, compile_ + "ms:PreprocessorDefinitions") == (
            "FOO;_WIN32_WINNT=0x0601;%(PreprocessorDefinitions)"
        )
        assert text_of(root, compile_ + "ms:Optimization") == "MaxSpeed"
        assert text_of(root, compile_ + "ms:CompileAs") == "CompileAsCpp"
        assert root.find(compile_ + "ms:BasicRuntimeChecks", NS) is None
        assert text_of(root, compile_ + "ms:RuntimeLibrary") == "MultiThreadedDLL"

        item = root.find("ms:ItemGroup/ms:ClCompile", NS)
        assert text_of(item, "ms:Optimization") == "MinSpace"
        assert text_of(item, "ms:PreprocessorDefinitions") == "LOCAL;%(PreprocessorDefinitions)"
        assert text_of(item, "ms:ObjectFileName") == "a.obj"

    def test_link_settings(self, tmp_path: Path, msvc_toolset) -> None:
        core = StaticLibrary("core", depends=[ObjectFile("c.c")])
        plugin = DynamicLibrary("plugin", depends=[ObjectFile("p.c")], implib="lib/plugin_imp.lib")
        app = Application(
            "app",
            depends=[ObjectFile("main.c"), core, plugin],
            searches=["third_party/lib"],
            ldflags=["/stack:1048576", "/subsystem:windows", "/LTCG", ScopedFlag("gnu", "-pthread")],
        )
        VisualStudioGenerator(msvc_toolset).generate(Solution("s", depends=[app]), tmp_path)
        root = load_project(tmp_path / "app.vcxproj")
        link = "ms:ItemDefinitionGroup/ms:Link/"

        assert text_of(root, link + "ms:AdditionalDependencies") == "core.lib;lib\\plugin_imp.lib"
        assert text_of(root, link + "ms:AdditionalLibraryDirectories") == (
            "core.dir\\Release;plugin.dir\\Release;third_party\\lib;%(AdditionalLibraryDirectories)"
        )
        assert text_of(root, link + "ms:AdditionalOptions") == "/machine:x64 /LTCG %(AdditionalOptions)"
        assert text_of(root, link + "ms:StackReserveSize") == "1048576"
        assert text_of(root, link + "ms:SubSystem") == "windows"
        assert text_of(root, link + "ms:ImportLibrary") == "app.lib"

    def test_dynamic_library_target_ext(self, tmp_path: Path, msvc_toolset) -> None:
        lib = DynamicLibrary("plugin", depends=[ObjectFile("p.c")])
        VisualStudioGenerator(msvc_toolset).generate(Solution("s", depends=[lib]), tmp_path)
        root = load_project(tmp_path / "plugin.vcxproj")
        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:ConfigurationType") == "DynamicLibrary"
        assert text_of(root, "ms:PropertyGroup/ms:TargetExt") == ".dll"

    def test_utility_project(self, tmp_path: Path, msvc_toolset) -> None:
        """Entries become Utility projects running their commands before the build."""
        gen_header = Entry("gen", commands=["python gen.py $(OUT)", "echo done"], phony=True)
        solution = Solution("s", depends=[Variable("OUT", value="config.h"), gen_header])
        VisualStudioGenerator(msvc_toolset).generate(solution, tmp_path)
        root = load_project(tmp_path / "gen.vcxproj")

        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:ConfigurationType") == "Utility"
        assert text_of(root, "ms:PropertyGroup[@Label='Globals']/ms:RootNamespace") == "gen"
        assert text_of(root, "ms:ItemDefinitionGroup/ms:PreBuildEvent/ms:Command") == (
            "python gen.py config.h\necho done"
        )

    def test_post_build_event(self, tmp_path: Path, msvc_toolset) -> None:
        app = Application("app", depends=[ObjectFile("a.c")], post_build_commands=["copy app.exe dist"])
        VisualStudioGenerator(msvc_toolset).generate(Solution("s", depends=[app]), tmp_path)
        root = load_project(tmp_path / "app.vcxproj")
        assert text_of(root, "ms:ItemDefinitionGroup/ms:PostBuildEvent/ms:Command") == "copy app.exe dist"

    def test_debug_build(self, tmp_path: Path, msvc_toolset) -> None:
        app = Application("app", depends=[ObjectFile("a.c")])
        VisualStudioGenerator(msvc_toolset).generate(Solution("s", depends=[app], debug=True), tmp_path)
        root = load_project(tmp_path / "app.vcxproj")
        assert text_of(root, "ms:ItemDefinitionGroup/ms:ClCompile/ms:RuntimeLibrary") == "MultiThreadedDebugDLL"
        assert text_of(root, "ms:ItemDefinitionGroup/ms:ClCompile/ms:BasicRuntimeChecks") == "EnableFastChecks"
        assert text_of(root, "ms:PropertyGroup/ms:OutDir") == "app.dir\\Debug\\"


class TestVs2015Generator:
    def test_toolset_version(self, tmp_path: Path, msvc_toolset, hello_solution) -> None:
        gen = Vs2015Generator(msvc_toolset)
        gen.generate(hello_solution, tmp_path)
        root = load_project(tmp_path / "app.vcxproj")
        assert gen.name == "vs2015"
        assert text_of(root, "ms:PropertyGroup[@Label='Configuration']/ms:PlatformToolset") == "v140"

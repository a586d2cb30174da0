# SPDX-License-Identifier: MIT
"""Visual Studio solution generator.

Writes one .vcxproj per project node and a .sln that ties them together.
Phony entries become Utility projects whose commands run as a pre-build
event. Project GUIDs come from a fixed pool, so regenerating a solution
for the same graph reproduces the same files.

The solution has a single configuration: Release (Debug when the
Solution node sets ``debug``) for x64, or Win32 with ``x86=True``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path, PureWindowsPath
from typing import TYPE_CHECKING

from buildgraph.configure.platform import WINDOWS
from buildgraph.core.errors import ConfigurationError, UnrecognizedNodeError
from buildgraph.core.flags import ScopedFlag, filter_flag, filter_flags
from buildgraph.core.graph import dependencies
from buildgraph.core.node import (
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
from buildgraph.generators.generator import BaseGenerator
from buildgraph.util.files import write_if_changed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.configure.platform import Platform
    from buildgraph.core.flags import Flag
    from buildgraph.core.node import Node, Optimization, Project
    from buildgraph.tools.toolchain import Toolset

logger = logging.getLogger(__name__)

SOLUTION_FORMAT_VERSION = "12.00"
TOOLS_VERSION = "15.0"
TARGET_WINDOWS_VERSION = "10.0.17134.0"
MSBUILD_NAMESPACE = "http://schemas.microsoft.com/developer/msbuild/2003"
VC_PROJECT_TYPE = "{8BC9CEB8-8B4A-11D0-8D11-00A0C91BC942}"
MSC = "msc"

GUID_POOL: tuple[str, ...] = (
    "{feba3ac1-cb28-421d-ae18-f4d85ec86f56}",
    "{ab8d2c55-dd90-4be5-b632-cc5aa9b2ae8f}",
    "{1d7d6eda-d664-4694-95ca-630ee049afe8}",
    "{c8af96e8-7d16-4c98-9c60-6dd9aafec31f}",
    "{a4724751-acc7-4b14-9021-f12744a9c15e}",
    "{1a937e41-3a08-4735-94dd-ab9a4b4df0ea}",
    "{9de42f7c-7060-497a-a1ad-02944afd1fa9}",
    "{49ce80a5-c3f3-4b0a-bbdf-b4efe48f6250}",
    "{b5686769-2039-40d4-bf1d-c0b3df77aa5e}",
    "{fc927e45-049f-448f-87ed-a458a07d532e}",
    "{4127412b-b471-402a-bd18-e891de7842e0}",
    "{0e140421-7f17-49f1-a3ba-0c952766c368}",
    "{2cbec086-bf07-4a0a-bf7a-cc9b450e0082}",
    "{d2d14156-38e0-46b5-a22b-780e8e6d3380}",
    "{01f70fc0-fa70-48f5-ab6c-ecbd9b3b8630}",
    "{ab185938-0cee-4455-8585-d38283d30816}",
    "{5d53ce20-0de9-4df8-9dca-cbc462db399d}",
    "{00cb2282-6568-43e9-a36b-f719dedf86aa}",
    "{cd81af55-2c02-46e9-b5e4-1d74245183e2}",
    "{d670cd39-3fdb-46c7-a63b-d910bcfcd9bf}",
    "{58d19a29-fe72-4c32-97d4-c7eabb3fc22f}",
    "{4ca0596a-61ab-4a05-971d-10f3346f5c3c}",
    "{7d4a3355-74b3-45a3-9fc9-e8a4ef92c678}",
    "{e8b967b5-437e-44ba-aca4-0dbb4e4b4bba}",
    "{14218ad6-7626-4d5f-9ddb-4f1633699d81}",
    "{f7a13215-b889-4358-95fe-a95fd0081878}",
    "{a95d235d-af5a-4b7b-a5c3-640fe34333e5}",
    "{f5c1f9da-c24b-4160-b121-d16d0ae5b143}",
    "{d08ce3e5-c68d-4f2c-b949-95554081ebfa}",
    "{4e9e6993-4898-4121-9674-d9924dcead2d}",
    "{8c972c49-d2ed-4cd1-a11e-5f62a0ca18f6}",
    "{f4af8888-f2b9-473a-a630-b95dc29b33e3}",
    "{015eb329-e714-44f1-b6a2-6f08fcbe5ca0}",
    "{82521230-c50a-4687-b0bb-99fe47ebb2ef}",
    "{4eb6851f-1b4e-4c40-bdb8-f006eca60bd3}",
    "{59a8f079-5fb8-4d54-894d-536b120f048e}",
    "{7f4e6cf3-7a50-4e96-95ed-e001acb44a04}",
    "{0f3c59b5-479c-4883-8d90-33fc6ca5926c}",
    "{44ea8d3d-4509-4977-a00e-579dbf50ff75}",
    "{8782fd76-184b-4f0a-b9fe-260d30bb21ae}",
    "{7c4813f4-6ffb-4dba-8cf5-6b8c0a390904}",
    "{452822f8-e133-47ea-9788-7da10de23dc0}",
    "{6ea04743-626f-43f3-86be-a9fad5cd9215}",
    "{91c41a9d-4f5a-441a-9e80-c51551c754c3}",
    "{2a676e01-5fd1-4cbd-a3eb-461b45421433}",
    "{07bb66be-d5c7-4c08-88cd-534cf18d65c7}",
    "{f3e1c165-8ae5-4735-beb7-ca2d95f979eb}",
    "{608f81e0-3057-4a3b-bb9d-2a8a9883f54b}",
    "{e20f9729-4575-459a-98be-c69167089b8c}",
)

_PROJECT_NODES = (ObjectLibrary, StaticLibrary, DynamicLibrary, Application, Entry)
_STACK_PATTERN = re.compile(r"/stack:(\d+)$", re.IGNORECASE)
_SUBSYSTEM_PATTERN = re.compile(r"/subsystem:(.+)$", re.IGNORECASE)


def _local(path: str) -> str:
    return WINDOWS.local_path(path)


def find_compile_as(cflags: Sequence[Flag]) -> str | None:
    """CompileAs value selected by a /TP or /TC flag."""
    for flag in filter_flags(cflags, MSC):
        if flag.startswith("/TP"):
            return "CompileAsCpp"
        if flag.startswith("/TC"):
            return "CompileAsC"
    return None


def find_stack_size(ldflags: Sequence[Flag]) -> str | None:
    """StackReserveSize selected by /stack:N."""
    for flag in filter_flags(ldflags, MSC):
        match = _STACK_PATTERN.match(flag)
        if match:
            return match.group(1)
    return None


def find_subsystem(ldflags: Sequence[Flag]) -> str | None:
    """SubSystem selected by /subsystem:NAME."""
    for flag in filter_flags(ldflags, MSC):
        match = _SUBSYSTEM_PATTERN.match(flag)
        if match:
            return match.group(1)
    return None


def is_optimized(level: Optimization | None) -> bool:
    return level not in (None, False, 0, "0", "no", "off")


def find_optimization(level: Optimization | None) -> str:
    """MSBuild Optimization value for an optimization level.

    Raises:
        ConfigurationError: For a level MSBuild can't express.
    """
    if not is_optimized(level):
        return "Disabled"
    if level is True or level in (2, "2"):
        return "MaxSpeed"
    if level in (1, "1", "s"):
        return "MinSpace"
    if level == "x":
        return "Full"
    raise ConfigurationError(f"unrecognized optimization level for msbuild: {level!r}")


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrib: str) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib)
    if text is not None:
        element.text = text
    return element


class VisualStudioGenerator(BaseGenerator):
    """Generator for Visual Studio 2017 solutions.

    Example:
        gen = VisualStudioGenerator(select_toolset("cl", "link"), x86=True)
        gen.generate(solution, Path("build/vs"))
    """

    platform_toolset = "v141"

    def __init__(self, toolset: Toolset, *, x86: bool = False, name: str = "visual-studio") -> None:
        """Create a Visual Studio generator.

        Args:
            toolset: Tools used to build command lines (normally cl+link).
            x86: Target Win32 instead of x64.
            name: Generator name.
        """
        super().__init__(name, toolset)
        self.x86 = x86
        self.cpu = "x86" if x86 else "x64"
        self.platform_name = "Win32" if x86 else "x64"
        self.build_type = "Release"
        self._pool: list[str] = []
        self._ids: dict[int, str] = {}
        self._projects: list[Project | Entry] = []

    @property
    def shell_platform(self) -> Platform:
        return WINDOWS

    @property
    def config(self) -> str:
        return f"{self.build_type}|{self.platform_name}"

    @property
    def debug(self) -> bool:
        return self.build_type == "Debug"

    def project_id(self, node: Node) -> str:
        """GUID of a project, taken from the pool on first use.

        Raises:
            ConfigurationError: The pool is exhausted.
        """
        key = id(node)
        if key not in self._ids:
            if not self._pool:
                raise ConfigurationError(
                    f"too many projects: GUID pool of {len(GUID_POOL)} exhausted"
                )
            self._ids[key] = self._pool.pop(0)
        return self._ids[key]

    @staticmethod
    def project_name(node: Project | Entry) -> str:
        if isinstance(node, Entry):
            return node.target
        return node.name

    def generate(self, solution: Solution, output_dir: Path) -> Path:
        """Write the .vcxproj files and the .sln into output_dir.

        Returns:
            Path of the .sln file.
        """
        output_dir = Path(output_dir)
        self.prepare(solution)
        self.build_type = "Debug" if solution.debug else "Release"
        self._pool = list(GUID_POOL)
        self._ids = {}
        self._projects = []

        for dep in solution.depends:
            self.generate_project(dep, output_dir)

        path = output_dir / f"{solution.name}.sln"
        write_if_changed(path, self.solution_text())
        return path

    def generate_project(self, node: Node, output_dir: Path) -> None:
        """Write the .vcxproj for node after those of its dependencies."""
        if isinstance(node, (ObjectFile, DynamicExtension, StaticExtension, Variable)):
            return
        if not isinstance(node, _PROJECT_NODES):
            raise UnrecognizedNodeError(node, self.name)
        if not self.mark_visited(node):
            return

        for dep in dependencies(node):
            self.generate_project(dep, output_dir)

        name = self.project_name(node)
        logger.info("Generating project file for %s", name)
        self.project_id(node)
        self._projects.append(node)
        write_if_changed(output_dir / f"{name}.vcxproj", self.project_text(node))

    # -- .sln ------------------------------------------------------------

    def solution_text(self) -> str:
        lines = [f"Microsoft Visual Studio Solution File, Format Version {SOLUTION_FORMAT_VERSION}"]
        for project in self._projects:
            name = self.project_name(project)
            pid = self.project_id(project)
            lines.append(f'Project("{VC_PROJECT_TYPE}") = "{name}", "{name}.vcxproj", "{pid}"')
            deps = [dep for dep in dependencies(project) if isinstance(dep, _PROJECT_NODES)]
            if deps:
                lines.append("\tProjectSection(ProjectDependencies) = postProject")
                for dep in deps:
                    dep_id = self.project_id(dep)
                    lines.append(f"\t\t{dep_id} = {dep_id}")
                lines.append("\tEndProjectSection")
            lines.append("EndProject")

        lines.append("Global")
        lines.append("\tGlobalSection(SolutionConfigurationPlatforms) = preSolution")
        lines.append(f"\t\t{self.config} = {self.config}")
        lines.append("\tEndGlobalSection")
        lines.append("\tGlobalSection(ProjectConfigurationPlatforms) = postSolution")
        for project in self._projects:
            pid = self.project_id(project)
            lines.append(f"\t\t{pid}.{self.config}.ActiveCfg = {self.config}")
            lines.append(f"\t\t{pid}.{self.config}.Build.0 = {self.config}")
        lines.append("\tEndGlobalSection")
        lines.append("EndGlobal")
        return "\n".join(lines) + "\n"

    # -- .vcxproj --------------------------------------------------------

    def configuration_type(self, node: Node) -> str:
        if isinstance(node, (StaticLibrary, ObjectLibrary)):
            return "StaticLibrary"
        if isinstance(node, DynamicLibrary):
            return "DynamicLibrary"
        if isinstance(node, Application):
            return "Application"
        if isinstance(node, Entry):
            return "Utility"
        raise UnrecognizedNodeError(node, self.name)

    def target_ext(self, node: Project) -> str:
        if isinstance(node, DynamicLibrary):
            return WINDOWS.shared_lib_suffix
        if isinstance(node, Application):
            return WINDOWS.exe_suffix
        return WINDOWS.static_lib_suffix

    def project_text(self, node: Project | Entry) -> str:
        name = self.project_name(node)
        is_entry = isinstance(node, Entry)

        root = ET.Element(
            "Project", DefaultTargets="Build", ToolsVersion=TOOLS_VERSION, xmlns=MSBUILD_NAMESPACE
        )
        configs = _sub(root, "ItemGroup", Label="ProjectConfigurations")
        config = _sub(configs, "ProjectConfiguration", Include=self.config)
        _sub(config, "Configuration", self.build_type)
        _sub(config, "Platform", self.platform_name)

        globals_ = _sub(root, "PropertyGroup", Label="Globals")
        _sub(globals_, "ProjectGuid", self.project_id(node))
        _sub(globals_, "WindowsTargetPlatformVersion", TARGET_WINDOWS_VERSION)
        if is_entry:
            _sub(globals_, "RootNamespace", name)
        else:
            _sub(globals_, "Platform", self.platform_name)
            _sub(globals_, "Keyword", "Win32Proj")
            _sub(globals_, "ProjectName", name)

        _sub(root, "Import", Project=r"$(VCTargetsPath)\Microsoft.Cpp.Default.props")
        props = _sub(root, "PropertyGroup", Label="Configuration")
        _sub(props, "ConfigurationType", self.configuration_type(node))
        _sub(props, "UseOfMfc", "false")
        _sub(props, "CharacterSet", "Unicode")
        _sub(props, "PlatformToolset", self.platform_toolset)
        _sub(root, "Import", Project=r"$(VCTargetsPath)\Microsoft.Cpp.props")
        ext_settings = _sub(root, "ImportGroup", Label="ExtensionSettings")
        _sub(ext_settings, "Import", Project=r"$(VCTargetsPath)\BuildCustomizations\masm.props")
        sheets = _sub(root, "ImportGroup", Label="PropertySheets")
        user_props = r"$(UserRootDir)\Microsoft.Cpp.$(Platform).user.props"
        _sub(
            sheets,
            "Import",
            Project=user_props,
            Condition=f"exists('{user_props}')",
            Label="LocalAppDataPlatform",
        )
        _sub(root, "PropertyGroup", Label="UserMacros")

        output_props = _sub(root, "PropertyGroup")
        if not isinstance(node, Entry):
            project_dir = f"{name}.dir\\{self.build_type}\\"
            _sub(output_props, "OutDir", project_dir)
            _sub(output_props, "IntDir", project_dir)
            _sub(output_props, "TargetName", PureWindowsPath(_local(node.basename)).name)
            _sub(output_props, "TargetExt", self.target_ext(node))

        definitions = _sub(root, "ItemDefinitionGroup")
        if isinstance(node, Entry):
            _sub(definitions, "ClCompile")
            commands = [c for c in map(self.reify, node.commands) if c]
            if commands:
                event = _sub(definitions, "PreBuildEvent")
                _sub(event, "Command", "\n".join(commands))
        else:
            self.add_compile_settings(definitions, node)
            if isinstance(node, (Application, DynamicLibrary)):
                self.add_link_settings(definitions, node)
            else:
                lib = _sub(definitions, "Lib")
                _sub(lib, "AdditionalOptions", f"/machine:{self.cpu} %(AdditionalOptions)")
            post = [c for c in map(self.reify, node.post_build_commands) if c]
            if post:
                event = _sub(definitions, "PostBuildEvent")
                _sub(event, "Command", "\n".join(post))

        self.add_sources(_sub(root, "ItemGroup"), node)

        references = [dep for dep in dependencies(node) if isinstance(dep, _PROJECT_NODES)]
        if references:
            group = _sub(root, "ItemGroup")
            for dep in references:
                ref = _sub(group, "ProjectReference", Include=f"{self.project_name(dep)}.vcxproj")
                _sub(ref, "Project", self.project_id(dep))

        _sub(root, "Import", Project=r"$(VCTargetsPath)\Microsoft.Cpp.targets")
        ext_targets = _sub(root, "ImportGroup", Label="ExtensionTargets")
        _sub(ext_targets, "Import", Project=r"$(VCTargetsPath)\BuildCustomizations\masm.targets")

        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'

    def add_compile_settings(self, parent: ET.Element, project: Project) -> None:
        compile_ = _sub(parent, "ClCompile")
        includes = [_local(i) for i in filter_flags(project.includes, MSC)]
        _sub(
            compile_,
            "AdditionalIncludeDirectories",
            ";".join([*includes, "%(AdditionalIncludeDirectories)"]),
        )
        _sub(compile_, "AssemblerListingLocation", f"{self.build_type}/")
        # Runtime checks can't be combined with optimization
        if not is_optimized(project.optimization):
            _sub(compile_, "BasicRuntimeChecks", "EnableFastChecks")
        compile_as = find_compile_as(project.cflags)
        if compile_as:
            _sub(compile_, "CompileAs", compile_as)
        _sub(compile_, "DebugInformationFormat", "ProgramDatabase" if self.debug else "")
        _sub(compile_, "ExceptionHandling", "Sync")
        _sub(compile_, "InlineFunctionExpansion", "Disabled" if self.debug else "AnySuitable")
        _sub(compile_, "Optimization", find_optimization(project.optimization))
        _sub(compile_, "PrecompiledHeader", "NotUsing")
        runtime = "MultiThreadedDebugDLL" if self.debug else "MultiThreadedDLL"
        _sub(compile_, "RuntimeLibrary", runtime)
        _sub(compile_, "RuntimeTypeInfo", "true")
        _sub(compile_, "WarningLevel", "Level3")
        defines = filter_flags(project.definitions, MSC)
        _sub(compile_, "PreprocessorDefinitions", ";".join([*defines, "%(PreprocessorDefinitions)"]))
        _sub(compile_, "ObjectFileName", "$(IntDir)")
        _sub(compile_, "AdditionalOptions", " ".join(filter_flags(project.cflags, MSC)))

    def link_inputs(self, project: Project) -> tuple[list[str], list[str]]:
        """Libraries and extra library directories for a linked project."""
        libraries: list[str] = []
        directories: list[str] = []
        for dep in project.depends:
            if isinstance(dep, DynamicExtension):
                lib = filter_flag(dep.name, MSC) if isinstance(dep.name, ScopedFlag) else dep.name
                if lib:
                    libraries.append(lib if lib.endswith(".lib") else f"{lib}.lib")
            elif isinstance(dep, StaticExtension):
                libraries.append(_local(dep.output))
            elif isinstance(dep, (StaticLibrary, DynamicLibrary, Application)):
                implib = getattr(dep, "implib", None)
                libraries.append(_local(implib or f"{dep.basename}.lib"))
                directories.append(f"{dep.name}.dir\\{self.build_type}")
        return libraries, directories

    def add_link_settings(self, parent: ET.Element, project: Application | DynamicLibrary) -> None:
        libraries, directories = self.link_inputs(project)
        directories.extend(_local(s) for s in filter_flags(project.searches, MSC))
        options = [
            flag
            for flag in filter_flags(project.ldflags, MSC)
            if not (_STACK_PATTERN.match(flag) or _SUBSYSTEM_PATTERN.match(flag))
        ]
        basename = _local(project.basename)

        link = _sub(parent, "Link")
        _sub(
            link,
            "AdditionalOptions",
            " ".join([f"/machine:{self.cpu}", *options, "%(AdditionalOptions)"]),
        )
        _sub(link, "AdditionalDependencies", ";".join(libraries))
        _sub(
            link,
            "AdditionalLibraryDirectories",
            ";".join([*directories, "%(AdditionalLibraryDirectories)"]),
        )
        _sub(link, "GenerateDebugInformation", "Debug" if self.debug else "false")
        _sub(link, "IgnoreSpecificDefaultLibraries", "%(IgnoreSpecificDefaultLibraries)")
        _sub(link, "ImportLibrary", _local(project.implib or f"{project.basename}.lib"))
        _sub(link, "ProgramDataBaseFile", f"{basename}.pdb")
        stack_size = find_stack_size(project.ldflags)
        if stack_size:
            _sub(link, "StackReserveSize", stack_size)
        _sub(link, "SubSystem", find_subsystem(project.ldflags) or "Console")
        _sub(link, "Version", "")

    def add_sources(self, group: ET.Element, node: Project | Entry) -> None:
        """ClCompile items for object files, Object items for object library members."""
        if isinstance(node, Entry):
            return
        for dep in node.depends:
            if isinstance(dep, ObjectFile):
                self.add_compile_item(group, dep)
            elif isinstance(dep, ObjectLibrary):
                for obj in dep.objects:
                    _sub(group, "Object", Include=_local(obj.output))

    def add_compile_item(self, group: ET.Element, obj: ObjectFile) -> None:
        item = _sub(group, "ClCompile", Include=_local(obj.source))
        compile_as = find_compile_as(obj.cflags)
        if compile_as:
            _sub(item, "CompileAs", compile_as)
        if obj.optimization is not None:
            _sub(item, "Optimization", find_optimization(obj.optimization))
        includes = [_local(i) for i in filter_flags(obj.includes, MSC)]
        if includes:
            _sub(
                item,
                "AdditionalIncludeDirectories",
                ";".join([*includes, "%(AdditionalIncludeDirectories)"]),
            )
        defines = filter_flags(obj.definitions, MSC)
        if defines:
            _sub(
                item,
                "PreprocessorDefinitions",
                ";".join([*defines, "%(PreprocessorDefinitions)"]),
            )
        if obj.output:
            _sub(item, "ObjectFileName", _local(obj.output))
        options = filter_flags(obj.cflags, MSC)
        if options:
            _sub(item, "AdditionalOptions", " ".join(["%(AdditionalOptions)", *options]))


class Vs2015Generator(VisualStudioGenerator):
    """Generator for Visual Studio 2015 solutions."""

    platform_toolset = "v140"

    def __init__(self, toolset: Toolset, *, x86: bool = False) -> None:
        super().__init__(toolset, x86=x86, name="vs2015")

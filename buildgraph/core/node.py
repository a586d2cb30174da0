# SPDX-License-Identifier: MIT
"""Dependency graph node types.

The graph is built from a closed set of node classes:

    ObjectFile        one translation unit
    ObjectLibrary     a named bundle of object files, linked by its members
    StaticLibrary     an archive
    DynamicLibrary    a shared object / DLL
    Application       an executable
    Solution          the root; its depends are everything to build
    DynamicExtension  a prebuilt library referenced by name ('m' -> -lm)
    StaticExtension   a prebuilt archive or object referenced by path
    Variable          a named substitution value
    Entry             a phony or file target with explicit commands

Nodes compare and hash by identity: the same node reached through two
paths is still one node, and is processed once per pass.

Example:
    core = ObjectLibrary("core", depends=[ObjectFile("a.c"), ObjectFile("b.c")])
    app = Application("app", depends=[core, DynamicExtension("m")])
    solution = Solution("all", depends=[app])
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from buildgraph.core.flags import Flag, ScopedFlag

if TYPE_CHECKING:
    from buildgraph.core.commands import Command
    from buildgraph.tools.toolchain import Archiver, Compiler, Linker, Toolset

# True/False, a level number, or a letter level such as "s"
Optimization = Union[bool, int, str]
# True/False or a level number
Debug = Union[bool, int]


@dataclass(frozen=True)
class BuildSettings:
    """The effective compile settings of one object file.

    Produced by ObjectFile.settings() from the object's own values and
    those of the project it is compiled for.
    """

    includes: list[Flag]
    definitions: list[Flag]
    cflags: list[Flag]
    optimization: Optimization | None = None
    debug: Debug | None = None
    pic: bool = False


@dataclass(eq=False)
class ObjectFile:
    """One compiled translation unit.

    Attributes:
        source: Source file path.
        output: Object file path; derived from the source when empty.
        includes: Include directories.
        definitions: Preprocessor definitions ('NAME' or 'NAME=value').
        cflags: Extra compiler flags.
        optimization: Optimization level, inherited from the project if None.
        debug: Debug level, inherited from the project if None.
        compiler: Compiler for this file only.
        depends: Extra files the object depends on (generated headers etc.).
    """

    source: str
    output: str = ""
    basename: str = ""
    includes: list[Flag] = field(default_factory=list)
    definitions: list[Flag] = field(default_factory=list)
    cflags: list[Flag] = field(default_factory=list)
    optimization: Optimization | None = None
    debug: Debug | None = None
    compiler: Compiler | None = None
    depends: list[str] = field(default_factory=list)

    def settings(self, parent: Project | None = None, pic: bool = False) -> BuildSettings:
        """Compose this file's settings with its project's.

        Include directories and definitions are this file's followed by the
        project's. Compiler flags are the project's followed by this file's,
        so local flags come last and take precedence. Optimization and debug
        are overridden by a local value. Objects built for a dynamic library
        are always position independent.
        """
        if parent is None:
            return BuildSettings(
                includes=list(self.includes),
                definitions=list(self.definitions),
                cflags=list(self.cflags),
                optimization=self.optimization,
                debug=self.debug,
                pic=pic,
            )
        return BuildSettings(
            includes=[*self.includes, *parent.includes],
            definitions=[*self.definitions, *parent.definitions],
            cflags=[*parent.cflags, *self.cflags],
            optimization=(
                self.optimization if self.optimization is not None else parent.optimization
            ),
            debug=self.debug if self.debug is not None else parent.debug,
            pic=pic or isinstance(parent, DynamicLibrary),
        )

    def select_compiler(self, toolset: Toolset, parent: Project | None = None) -> Compiler:
        if self.compiler is not None:
            return self.compiler
        if parent is not None and parent.compiler is not None:
            return parent.compiler
        return toolset.compiler

    def command(
        self,
        toolset: Toolset,
        parent: Project | None = None,
        *,
        pic: bool = False,
        preprocess: bool = False,
    ) -> str:
        """The compile command for this file."""
        settings = self.settings(parent, pic)
        return self.select_compiler(toolset, parent).command(
            self.output,
            self.source,
            includes=settings.includes,
            definitions=settings.definitions,
            cflags=settings.cflags,
            optimization=settings.optimization,
            debug=settings.debug,
            pic=settings.pic,
            preprocess=preprocess,
        )

    def gen_entry(
        self, toolset: Toolset, parent: Project | None = None, *, pic: bool = False
    ) -> Entry:
        """An Entry that builds this object from its source."""
        return Entry(
            target=self.output,
            depends=[*self.depends, self.source],
            commands=[self.command(toolset, parent, pic=pic)],
        )


@dataclass(eq=False)
class Project:
    """Base class of the named, settings-carrying node classes.

    Attributes:
        name: Project name; the output stem when no output is given.
        depends: Nodes this project is built from or after.
        output: Output path; derived from the name when empty.
        basename: Output path without its suffix (set by setup_output).
        includes, definitions, cflags, optimization, debug: Compile
            settings handed down to this project's object files.
        compiler: Compiler used for this project's object files.
        post_build_commands: Commands run after the project is built.
    """

    name: str
    depends: list[Node] = field(default_factory=list)
    output: str = ""
    basename: str = ""
    includes: list[Flag] = field(default_factory=list)
    definitions: list[Flag] = field(default_factory=list)
    cflags: list[Flag] = field(default_factory=list)
    optimization: Optimization | None = None
    debug: Debug | None = None
    compiler: Compiler | None = None
    post_build_commands: list[Command] = field(default_factory=list)

    @property
    def objects(self) -> list[ObjectFile]:
        """Object files listed directly in depends."""
        return [dep for dep in self.depends if isinstance(dep, ObjectFile)]


@dataclass(eq=False)
class ObjectLibrary(Project):
    """A bundle of object files. Linkers receive its members, never itself."""


@dataclass(eq=False)
class StaticLibrary(Project):
    """A static archive of object files.

    Attributes:
        archiver: Archiver for this library; the toolset's when None.
    """

    archiver: Archiver | None = None

    def command(self, toolset: Toolset) -> str:
        archiver = self.archiver or toolset.archiver
        return archiver.command(self.output, archive_inputs(self.depends))


@dataclass(eq=False)
class LinkedProject(Project):
    """Base for projects produced by a linker.

    Attributes:
        linker: Linker for this project; the toolset's when None.
        searches: Library search directories.
        ldflags: Extra linker flags.
        implib: Import library path (Windows), basename.lib when None.
    """

    linker: Linker | None = None
    searches: list[Flag] = field(default_factory=list)
    ldflags: list[Flag] = field(default_factory=list)
    implib: str | None = None

    dynamic = False

    def command(self, toolset: Toolset) -> str:
        linker = self.linker or toolset.linker
        return linker.command(
            self.output,
            self.depends,
            searches=self.searches,
            ldflags=self.ldflags,
            dynamic=self.dynamic,
        )


@dataclass(eq=False)
class DynamicLibrary(LinkedProject):
    """A shared object or DLL. Its object files are built position independent."""

    dynamic = True


@dataclass(eq=False)
class Application(LinkedProject):
    """An executable."""


@dataclass(eq=False)
class Solution(Project):
    """The root of a build graph.

    Its depends list every node to build. The Visual Studio backend
    builds the Debug configuration when ``debug`` is set.
    """


@dataclass(eq=False)
class DynamicExtension:
    """A prebuilt shared library referenced by name.

    Attributes:
        name: Library name ('m' for libm), or a ScopedFlag carrying the
            literal linker argument for one toolchain.
        flags: Modifiers; 'static' asks GNU linkers for a static link.
    """

    name: str | ScopedFlag
    flags: list[str] = field(default_factory=list)


@dataclass(eq=False)
class StaticExtension:
    """A prebuilt archive or object file passed to the linker by path."""

    output: str


@dataclass(eq=False)
class Variable:
    """A named build-time value.

    Makefile backends emit it as a make variable, so it can be overridden
    on the make command line when only a default is given.
    """

    name: str
    value: str | None = None
    default: str | None = None

    @property
    def resolved(self) -> str:
        if self.value is not None:
            return self.value
        return self.default or ""


@dataclass(eq=False)
class Entry:
    """A target with an explicit command list.

    Attributes:
        target: Output file, or a plain word when phony.
        commands: Commands that produce the target.
        depends: Nodes or file paths that must be built first.
        phony: The target is a name, not a file.
    """

    target: str
    commands: list[Command] = field(default_factory=list)
    depends: list[Node | str] = field(default_factory=list)
    phony: bool = False


Node = Union[
    ObjectFile,
    ObjectLibrary,
    StaticLibrary,
    DynamicLibrary,
    Application,
    Solution,
    DynamicExtension,
    StaticExtension,
    Variable,
    Entry,
]


def archive_inputs(depends: list[Node]) -> list[str]:
    """Files an archiver takes for a list of dependencies.

    Object libraries contribute their member objects. Anything that isn't
    an object or archive (extensions, variables, entries) is left out.
    """
    inputs: list[str] = []
    for dep in depends:
        if isinstance(dep, ObjectFile):
            inputs.append(dep.output)
        elif isinstance(dep, ObjectLibrary):
            inputs.extend(obj.output for obj in dep.objects)
        elif isinstance(dep, StaticExtension):
            inputs.append(dep.output)
    return inputs


def source_stem(path: str) -> str:
    """A path without its last extension."""
    return os.path.splitext(path)[0]

# SPDX-License-Identifier: MIT
"""Build graph backends for buildgraph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from buildgraph.core.errors import ConfigurationError
from buildgraph.generators.execution import ExecutionGenerator
from buildgraph.generators.generator import BaseGenerator, Generator
from buildgraph.generators.makefile import (
    MakefileGenerator,
    MingwMakeGenerator,
    NmakeGenerator,
)
from buildgraph.generators.visual_studio import Vs2015Generator, VisualStudioGenerator

if TYPE_CHECKING:
    from buildgraph.tools.toolchain import Toolset

GENERATORS: dict[str, type[BaseGenerator]] = {
    "execution": ExecutionGenerator,
    "makefile": MakefileGenerator,
    "nmake": NmakeGenerator,
    "mingw-make": MingwMakeGenerator,
    "visual-studio": VisualStudioGenerator,
    "vs2015": Vs2015Generator,
}


def make_generator(backend: str, toolset: Toolset, **options: Any) -> BaseGenerator:
    """Create a backend by name.

    Args:
        backend: One of the GENERATORS keys.
        toolset: Tools used to build command lines.
        **options: Backend options (``x86`` for Visual Studio, ``jobs`` and
            ``runner`` for execution).

    Raises:
        ConfigurationError: For an unknown backend.
    """
    cls = GENERATORS.get(backend)
    if cls is None:
        known = ", ".join(sorted(GENERATORS))
        raise ConfigurationError(f"unknown backend {backend!r} (expected one of: {known})")
    return cls(toolset, **options)


__all__ = [
    "GENERATORS",
    "BaseGenerator",
    "ExecutionGenerator",
    "Generator",
    "MakefileGenerator",
    "MingwMakeGenerator",
    "NmakeGenerator",
    "Vs2015Generator",
    "VisualStudioGenerator",
    "make_generator",
]

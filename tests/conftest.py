# SPDX-License-Identifier: MIT
"""Shared fixtures for buildgraph tests."""

from __future__ import annotations

import pytest

from buildgraph.configure.platform import POSIX, set_target_platform
from buildgraph.core.node import Application, DynamicExtension, ObjectFile, ObjectLibrary, Solution
from buildgraph.toolchains import select_toolset
from buildgraph.tools.toolchain import Toolset


@pytest.fixture(autouse=True)
def posix_target():
    """Build for plain POSIX unless a test selects another platform."""
    set_target_platform(POSIX)
    yield
    set_target_platform(None)


@pytest.fixture
def gnu_toolset() -> Toolset:
    return select_toolset("gcc", "ld")


@pytest.fixture
def hello_graph() -> tuple[Solution, Application, ObjectLibrary]:
    """An application linking two objects from an object library and libm."""
    objs = ObjectLibrary("objs", depends=[ObjectFile("src/a.c"), ObjectFile("src/b.c")])
    app = Application("app", depends=[objs, DynamicExtension("m")])
    return Solution("all", depends=[app]), app, objs

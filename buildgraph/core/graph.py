# SPDX-License-Identifier: MIT
"""Graph-wide passes: output resolution and variable collection.

Every pass keeps its own visited set keyed by node identity, so a node
shared by several dependents is handled once per pass and re-running a
pass on the same graph starts from a clean slate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildgraph.configure.platform import get_platform
from buildgraph.core.errors import UnrecognizedNodeError
from buildgraph.core.node import (
    Application,
    DynamicExtension,
    DynamicLibrary,
    Entry,
    ObjectFile,
    ObjectLibrary,
    Project,
    Solution,
    StaticExtension,
    StaticLibrary,
    Variable,
    source_stem,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from buildgraph.configure.platform import Platform
    from buildgraph.core.node import Node

logger = logging.getLogger(__name__)


def output_suffix(node: Node, platform: Platform) -> str | None:
    """The platform suffix for a node's output, or None if it has no output."""
    if isinstance(node, Application):
        return platform.exe_suffix
    if isinstance(node, DynamicLibrary):
        return platform.shared_lib_suffix
    if isinstance(node, (StaticLibrary, ObjectLibrary)):
        return platform.static_lib_suffix
    if isinstance(node, ObjectFile):
        return platform.object_suffix
    if isinstance(node, (Solution, DynamicExtension, StaticExtension, Variable, Entry)):
        return None
    raise UnrecognizedNodeError(node, "setup_output")


def setup_output(node: Node, platform: Platform | None = None) -> None:
    """Resolve a node's output path and basename.

    An empty output is derived from the object's source (extension
    removed) or the project's name, then given the platform suffix. An
    output that lacks the suffix gets it appended. An output that already
    ends with the suffix is left alone, so resolving twice changes nothing.
    """
    if platform is None:
        platform = get_platform()
    suffix = output_suffix(node, platform)
    if suffix is None or not isinstance(node, (ObjectFile, Project)):
        return

    if not node.output:
        stem = node.source if isinstance(node, ObjectFile) else node.name
        basename = source_stem(stem)
        node.output = basename + suffix
    elif suffix and node.output.endswith(suffix):
        basename = node.output[: -len(suffix)]
    elif not suffix:
        basename = node.output
    else:
        basename = node.output
        node.output = basename + suffix
    node.basename = basename


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield every node reachable from root, dependencies first, each once."""
    visited: set[int] = set()

    def visit(node: Node) -> Iterator[Node]:
        if id(node) in visited:
            return
        visited.add(id(node))
        for dep in dependencies(node):
            yield from visit(dep)
        yield node

    yield from visit(root)


def dependencies(node: Node) -> list[Node]:
    """Child nodes of a node. File-path dependencies are not nodes."""
    if isinstance(node, Project):
        return list(node.depends)
    if isinstance(node, Entry):
        return [dep for dep in node.depends if not isinstance(dep, str)]
    if isinstance(node, (ObjectFile, DynamicExtension, StaticExtension, Variable)):
        return []
    raise UnrecognizedNodeError(node, "graph")


def setup_outputs(root: Node, platform: Platform | None = None) -> None:
    """Resolve outputs for every node reachable from root."""
    if platform is None:
        platform = get_platform()
    for node in iter_nodes(root):
        setup_output(node, platform)


def collect_variables(root: Node) -> dict[str, str]:
    """Map every reachable Variable's name to its value (or default).

    When a name is declared twice, the first declaration in dependency
    order wins.
    """
    variables: dict[str, str] = {}
    for node in iter_nodes(root):
        if isinstance(node, Variable) and node.name not in variables:
            variables[node.name] = node.resolved
    return variables


def prepare(root: Node, platform: Platform | None = None) -> dict[str, str]:
    """Resolve outputs and collect variables ahead of a generator pass.

    Returns:
        The variable map for the Reifier.
    """
    setup_outputs(root, platform)
    variables = collect_variables(root)
    logger.debug("Prepared graph with %d variables", len(variables))
    return variables

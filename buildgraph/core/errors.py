# SPDX-License-Identifier: MIT
"""Custom exceptions for buildgraph.

All buildgraph exceptions inherit from BuildGraphError. Every error is
fatal to the current pass; nothing is retried.
"""

from __future__ import annotations

from typing import Any


class BuildGraphError(Exception):
    """Base class for all buildgraph exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(BuildGraphError):
    """Invalid build configuration.

    Raised for unsupported optimization or debug values, bad toolset
    pairings, malformed flags and similar problems in the graph description.
    """


class UnsupportedToolchainError(ConfigurationError):
    """A compiler/linker pairing that is not supported.

    Attributes:
        compiler: The requested compiler name.
        linker: The requested linker name.
    """

    def __init__(self, compiler: str, linker: str) -> None:
        self.compiler = compiler
        self.linker = linker
        super().__init__(f"unsupported toolset: {compiler} with {linker}")


class UnrecognizedNodeError(ConfigurationError):
    """A node class that a consumer does not know how to handle.

    Attributes:
        node: The offending node.
        consumer: What was processing the node (e.g. 'makefile', 'ld').
    """

    def __init__(self, node: Any, consumer: str) -> None:
        self.node = node
        self.consumer = consumer
        super().__init__(
            f"{consumer}: unrecognized node class {type(node).__name__}: {node!r}"
        )


class MalformedFlagError(ConfigurationError):
    """A scoped flag literal that cannot be parsed.

    Attributes:
        flag: The offending text.
    """

    def __init__(self, flag: str) -> None:
        self.flag = flag
        super().__init__(f"malformed scoped flag: {flag!r}")


class ToolNotFoundError(ConfigurationError):
    """Required tool was not found.

    Attributes:
        tool: The name of the tool that was not found.
    """

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}")


class SubstitutionError(BuildGraphError):
    """Error during variable substitution."""


class MissingVariableError(SubstitutionError):
    """Referenced variable does not exist.

    Attributes:
        variable: The name of the missing variable.
    """

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"undefined variable: ${variable}")


class CircularReferenceError(SubstitutionError):
    """Variable substitution never reaches a fixed point.

    Attributes:
        chain: The variables still being expanded when substitution gave up.
    """

    def __init__(self, chain: list[str]) -> None:
        self.chain = chain
        cycle_str = " -> ".join(chain)
        super().__init__(f"circular variable reference: {cycle_str}")


class DependencyCycleError(BuildGraphError):
    """Circular required-before relation.

    Attributes:
        cycle: The names forming the cycle.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"dependency cycle: {cycle_str}")


class CommandFailedError(BuildGraphError):
    """A spawned command exited with a nonzero status.

    Attributes:
        command: The command line that failed.
        returncode: Its exit status.
    """

    def __init__(self, command: str, returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"command failed with exit status {returncode}: {command}")

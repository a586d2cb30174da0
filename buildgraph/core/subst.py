# SPDX-License-Identifier: MIT
"""Variable reification for command text.

Supported syntax:
- Parenthesized variables: $(VAR)
- Bare variables: $VAR (a letter or underscore, then letters, digits, _)
- Escaped dollars: $$ becomes a literal $

Substitution repeats until the text stops changing, so a variable's value
may itself refer to other variables:

    >>> reify("$(FOO)", {"FOO": "$(BAR)", "BAR": "baz"})
    'baz'

The Makefile backends never reify; make expands $(VAR) itself. The
execution and Visual Studio backends do.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from buildgraph.core.errors import CircularReferenceError, MissingVariableError

if TYPE_CHECKING:
    from collections.abc import Mapping

_VAR_PATTERN = re.compile(
    r"\$\$|\$\((?P<paren>[A-Za-z0-9_]+)\)|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
)

# Stand-in for an escaped dollar while substitution is still running
_DOLLAR_SENTINEL = "\x00DOLLAR\x00"


def escape(text: str) -> str:
    """Escape dollars so reify() leaves them alone."""
    return text.replace("$", "$$")


def references(text: str) -> list[str]:
    """Names of the variables referenced in text, in order of appearance."""
    names = []
    for match in _VAR_PATTERN.finditer(text):
        name = match.group("paren") or match.group("bare")
        if name:
            names.append(name)
    return names


def _substitute_once(text: str, variables: Mapping[str, str]) -> tuple[str, int]:
    """One substitution pass; returns the text and how many variables it replaced."""
    replaced = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal replaced
        if match.group(0) == "$$":
            return _DOLLAR_SENTINEL
        name = match.group("paren") or match.group("bare")
        if name not in variables:
            raise MissingVariableError(name)
        replaced += 1
        return variables[name]

    return _VAR_PATTERN.sub(replace, text), replaced


def reify(command: str, variables: Mapping[str, str]) -> str:
    """Substitute variables into command text until nothing changes.

    Args:
        command: Command text containing $(VAR) or $VAR references.
        variables: Variable name to value.

    Returns:
        The fully substituted text.

    Raises:
        MissingVariableError: A referenced variable is not in the map.
        CircularReferenceError: The text never stops changing, which
            happens only when variables refer to each other in a loop.
    """
    # A chain of distinct variables is at most len(variables) deep, plus one
    # pass that finds nothing left to replace.
    max_passes = len(variables) + 1
    text = command
    for _ in range(max_passes):
        text, replaced = _substitute_once(text, variables)
        if not replaced:
            return text.replace(_DOLLAR_SENTINEL, "$")
    raise CircularReferenceError(references(text))

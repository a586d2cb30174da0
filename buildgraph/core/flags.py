# SPDX-License-Identifier: MIT
"""Toolchain-scoped flags.

A flag is either a plain string, which applies to every toolchain, or a
ScopedFlag, which applies only when the active toolchain's id matches.
This lets one project description carry flags for GCC, Clang and MSVC
side by side:

    cflags = ["-DNDEBUG", ScopedFlag("gnu", "-Wall"), ScopedFlag("msc", "/W4")]

Configuration files can't hold Python objects, so the text form
``<gnu:-Wall>`` is accepted there and converted with parse_flag().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from buildgraph.core.errors import MalformedFlagError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class ScopedFlag:
    """A flag that only applies under one toolchain family.

    Attributes:
        toolchain: Toolchain id the flag is restricted to ('gnu', 'msc', ...).
        value: The flag text passed to the tool when the scope matches.
    """

    toolchain: str
    value: str

    def __str__(self) -> str:
        return f"<{self.toolchain}:{self.value}>"


Flag = Union[str, ScopedFlag]


def parse_flag(text: str) -> Flag:
    """Convert the text form of a flag into a Flag.

    ``<id:value>`` becomes a ScopedFlag; anything else is a plain flag.

    Raises:
        MalformedFlagError: If the text looks like a tag but has no scope.

    Examples:
        >>> parse_flag("<gnu:-Wall>")
        ScopedFlag(toolchain='gnu', value='-Wall')
        >>> parse_flag("-O2")
        '-O2'
    """
    if not (text.startswith("<") and text.endswith(">")):
        return text
    body = text[1:-1]
    toolchain, sep, value = body.partition(":")
    if not sep or not toolchain or not value:
        raise MalformedFlagError(text)
    return ScopedFlag(toolchain, value)


def filter_flag(flag: Flag, toolchain_id: str) -> str | None:
    """Resolve a flag against the active toolchain.

    Returns:
        The flag text, or None if the flag is scoped to another toolchain.
    """
    if isinstance(flag, ScopedFlag):
        if flag.toolchain == toolchain_id:
            return flag.value
        return None
    return flag


def filter_flags(flags: Iterable[Flag], toolchain_id: str) -> list[str]:
    """Resolve a list of flags, dropping those scoped to other toolchains.

    Order is preserved.

    Examples:
        >>> filter_flags(["x", ScopedFlag("gnu", "-Wall"), ScopedFlag("msc", "/W4")], "gnu")
        ['x', '-Wall']
    """
    result = []
    for flag in flags:
        value = filter_flag(flag, toolchain_id)
        if value is not None:
            result.append(value)
    return result

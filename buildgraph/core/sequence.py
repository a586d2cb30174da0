# SPDX-License-Identifier: MIT
"""Initialization order for optional components.

Extensions may require other extensions to be initialized first. Each
one gets a sequence number greater than the numbers of everything it
requires; sorting by that number (stably, so ties keep their declared
order) gives a valid initialization order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from buildgraph.core.errors import ConfigurationError, DependencyCycleError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass
class Extension:
    """An optional, separately initialized component.

    Attributes:
        name: Unique extension name.
        requires: Names of extensions that must be initialized first.
        loadable: Whether the extension may be built as a dynamic module.
        depends: Build graph nodes the extension contributes.
    """

    name: str
    requires: list[str] = field(default_factory=list)
    loadable: bool = True
    depends: list[object] = field(default_factory=list)


def calculate_sequence(extensions: Iterable[Extension]) -> dict[str, int]:
    """Assign a sequence number to every extension.

    An extension without requirements is 0; otherwise it is one more
    than the largest number among its requirements.

    Raises:
        ConfigurationError: A requirement names an unknown extension.
        DependencyCycleError: Requirements form a loop.
    """
    by_name = {ext.name: ext for ext in extensions}
    sequence: dict[str, int] = {}
    in_progress: list[str] = []

    def calculate(ext: Extension) -> int:
        if ext.name in sequence:
            return sequence[ext.name]
        if ext.name in in_progress:
            start = in_progress.index(ext.name)
            raise DependencyCycleError([*in_progress[start:], ext.name])
        if not ext.requires:
            sequence[ext.name] = 0
            return 0

        in_progress.append(ext.name)
        highest = 0
        for req in ext.requires:
            required = by_name.get(req)
            if required is None:
                raise ConfigurationError(
                    f"unrecognized dependency {req!r} for extension {ext.name!r}"
                )
            highest = max(highest, calculate(required))
        in_progress.pop()

        sequence[ext.name] = highest + 1
        return highest + 1

    for ext in by_name.values():
        calculate(ext)
    return sequence


def sequence_extensions(extensions: Sequence[Extension]) -> list[Extension]:
    """Order extensions so that each follows everything it requires."""
    sequence = calculate_sequence(extensions)
    return sorted(extensions, key=lambda ext: sequence[ext.name])

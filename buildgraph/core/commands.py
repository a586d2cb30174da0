# SPDX-License-Identifier: MIT
"""Platform-neutral shell primitives.

Entries and post-build steps may hold these instead of raw command text.
They are rendered for a Platform when a generator emits or runs them,
so the same graph produces `mkdir -p` for make and `mkdir` for nmake.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from buildgraph.core.errors import UnrecognizedNodeError

if TYPE_CHECKING:
    from buildgraph.configure.platform import Platform
    from buildgraph.core.flags import Flag
    from buildgraph.tools.toolchain import Stripper


def _is_directory(path: str, directory: bool | None) -> bool:
    if directory is None:
        return path.endswith(("/", "\\"))
    return directory


@dataclass(frozen=True)
class CreateCommand:
    """Create a file, or a directory with its parents.

    Attributes:
        path: What to create. A trailing slash means a directory unless
            ``directory`` says otherwise.
        directory: Force directory (True) or file (False) handling.
    """

    path: str
    directory: bool | None = None

    @property
    def is_directory(self) -> bool:
        return _is_directory(self.path, self.directory)


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a file or a directory tree."""

    path: str
    directory: bool | None = None

    @property
    def is_directory(self) -> bool:
        return _is_directory(self.path, self.directory)


@dataclass(frozen=True)
class StripCommand:
    """Strip symbols from a binary.

    Attributes:
        path: Binary to strip.
        options: Stripper options; the stripper's defaults when None.
    """

    path: str
    options: list[Flag] | None = field(default=None, hash=False)


Command = Union[str, CreateCommand, DeleteCommand, StripCommand]


def render_command(
    command: Command, platform: Platform, stripper: Stripper | None = None
) -> str:
    """Render a command for a platform's shell.

    Raises:
        UnrecognizedNodeError: For anything that isn't a Command.
    """
    if isinstance(command, str):
        return command
    if isinstance(command, CreateCommand):
        return platform.create_command(command.path.rstrip("/\\"), command.is_directory)
    if isinstance(command, DeleteCommand):
        return platform.delete_command(command.path.rstrip("/\\"), command.is_directory)
    if isinstance(command, StripCommand):
        return platform.strip_command(command.path, stripper, command.options)
    raise UnrecognizedNodeError(command, "command")

# SPDX-License-Identifier: MIT
"""Target platform descriptors.

A Platform holds the file suffixes for each kind of build product and
knows how to spell the few shell primitives the build graph needs
(create a file or directory, delete it, strip a binary).

The target platform is selected once, before the graph is built, with
set_target_platform(). Until then get_platform() returns the host's.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buildgraph.core.flags import Flag
    from buildgraph.tools.toolchain import Stripper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Platform:
    """File suffixes and shell primitives for one OS family.

    Attributes:
        name: Platform name ('posix', 'linux', 'windows', ...).
        exe_suffix: Suffix of executables.
        shared_lib_suffix: Suffix of dynamic libraries.
        static_lib_suffix: Suffix of static libraries and object libraries.
        object_suffix: Suffix of compiled object files.
        is_windows: Whether cmd.exe primitives are used.
    """

    name: str
    exe_suffix: str = ""
    shared_lib_suffix: str = ".so"
    static_lib_suffix: str = ".a"
    object_suffix: str = ".o"
    is_windows: bool = False

    @property
    def is_posix(self) -> bool:
        return not self.is_windows

    @property
    def is_macos(self) -> bool:
        return self.name == "macos"

    @property
    def is_linux(self) -> bool:
        return self.name in ("linux", "android")

    def local_path(self, path: str) -> str:
        """Convert a slash-separated path to the platform's native form."""
        if self.is_windows:
            return path.replace("/", "\\")
        return path

    def create_command(self, path: str, directory: bool = False) -> str:
        """Command that creates a directory (with parents) or an empty file."""
        path = self.local_path(path)
        if self.is_windows:
            if directory:
                return f"mkdir {path}"
            return f"echo . 2>{path}"
        if directory:
            return f"mkdir -p {path}"
        return f"touch {path}"

    def delete_command(self, path: str, directory: bool = False) -> str:
        """Command that removes a file or a directory tree, ignoring absence."""
        path = self.local_path(path)
        if self.is_windows:
            if directory:
                return f"rmdir /S /Q {path}"
            return f"del {path}"
        return f"rm -fr {path}"

    def strip_command(
        self,
        path: str,
        stripper: Stripper | None,
        options: Sequence[Flag] | None = None,
    ) -> str:
        """Command that strips symbols from a binary.

        Returns an empty string when stripping is unavailable.
        """
        if self.is_windows:
            logger.warning("Stripping is not supported on %s, skipping %s", self.name, path)
            return ""
        if stripper is None:
            logger.warning("No stripper configured, skipping %s", path)
            return ""
        return stripper.command(self.local_path(path), options)


POSIX = Platform("posix")
LINUX = Platform("linux")
ANDROID = Platform("android")
MACOS = Platform("macos", shared_lib_suffix=".dylib")
EMSCRIPTEN = Platform("emscripten", exe_suffix=".js", shared_lib_suffix=".js")
WINDOWS = Platform(
    "windows",
    exe_suffix=".exe",
    shared_lib_suffix=".dll",
    static_lib_suffix=".lib",
    object_suffix=".obj",
    is_windows=True,
)

PLATFORMS: dict[str, Platform] = {
    p.name: p for p in (POSIX, LINUX, ANDROID, MACOS, EMSCRIPTEN, WINDOWS)
}

_target_platform: Platform | None = None


def host_platform() -> Platform:
    """The Platform of the running interpreter."""
    if sys.platform.startswith("win") or sys.platform == "cygwin":
        return WINDOWS
    if sys.platform == "darwin":
        return MACOS
    if sys.platform.startswith("linux"):
        return LINUX
    return POSIX


def get_platform() -> Platform:
    """The current target platform (the host's unless one was selected)."""
    if _target_platform is None:
        return host_platform()
    return _target_platform


def set_target_platform(platform: str | Platform | None) -> Platform:
    """Select the target platform for subsequent graph construction.

    Args:
        platform: A Platform, a platform name, or None to go back to the
            host platform. Unknown names fall back to POSIX.

    Returns:
        The selected Platform.
    """
    global _target_platform
    if platform is None or isinstance(platform, Platform):
        _target_platform = platform
        return get_platform()
    selected = PLATFORMS.get(platform.lower())
    if selected is None:
        logger.warning("Unknown target platform %r, using posix", platform)
        selected = POSIX
    _target_platform = selected
    return selected

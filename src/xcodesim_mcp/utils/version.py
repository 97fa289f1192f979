"""Version parsing for simulator runtimes and Xcode itself."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from ..config import get_config
from ..errors import UnsupportedXcodeVersion
from .process import run_command

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass
class VersionInfo:
    """Version information with major.minor.patch components."""

    major: int
    minor: int = 0
    patch: int = 0
    raw: str = ""

    def __str__(self) -> str:
        return self.raw or f"{self.major}.{self.minor}.{self.patch}"

    @property
    def key(self) -> tuple[int, int, int]:
        """Tuple for ordering versions numerically."""
        return (self.major, self.minor, self.patch)

    @classmethod
    def from_string(cls, version_str: str) -> VersionInfo | None:
        """Parse the first version in a string like '14.4', '17.0.1' or 'Xcode 15.2'."""
        if not version_str:
            return None

        match = VERSION_PATTERN.search(version_str)
        if not match:
            return None

        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2) or 0),
            patch=int(match.group(3) or 0),
            raw=match.group(0),
        )


async def get_xcode_version() -> VersionInfo | None:
    """Version of the selected Xcode from ``xcodebuild -version``."""
    command = [get_config().xcodebuild, "-version"]
    try:
        result = await run_command(command, timeout=30.0)
    except (OSError, asyncio.TimeoutError) as e:
        logger.warning(f"Failed to run xcodebuild -version: {e}")
        return None
    if not result.ok:
        logger.warning(f"xcodebuild -version failed: {result.describe_failure()}")
        return None

    # First line: "Xcode 15.2"
    first_line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
    version = VersionInfo.from_string(first_line)
    logger.debug(f"Detected Xcode version: {version}")
    return version


async def check_xcode_version(minimum_major: int | None = None) -> VersionInfo:
    """Ensure the installed Xcode is recent enough.

    Raises:
        UnsupportedXcodeVersion: If the version is unknown or too old
    """
    minimum_major = minimum_major if minimum_major is not None else get_config().min_xcode_major
    version = await get_xcode_version()
    if version is None:
        raise UnsupportedXcodeVersion("failed to determine the Xcode version")
    if version.major < minimum_major:
        raise UnsupportedXcodeVersion(
            f"invalid Xcode major version ({version.major}), should not be less than ({minimum_major})",
            xcode_version=str(version),
        )
    return version

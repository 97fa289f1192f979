"""Build directory reconciliation.

``xcodebuild -showBuildSettings`` reports TARGET_BUILD_DIR differently when
called with ``-workspace``/``-scheme`` than with ``-project``/``-target``.
Splitting the raw value on the ``Build/`` segment yields a shared build root
and a leaf suffix that can be recombined across both query shapes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from ..config import get_config
from ..errors import BuildSettingMissing, TargetBuildDirUnresolved
from ..xcode.base import Container, ContainerKind
from ..xcode.project import XcodeProject
from ..xcode.settings import BuildSettingsProvider

logger = logging.getLogger(__name__)

TARGET_BUILD_DIR = "TARGET_BUILD_DIR"


@dataclass(frozen=True)
class BuildRoot:
    """Normalized build directory."""

    root: str
    """Shared ancestor ending at the Build directory (or the raw value)."""

    remainder: str
    """Leaf-relative suffix below the Build directory."""

    degraded: bool = False
    """True when the raw value did not split into exactly two parts."""


def normalize_build_root(raw: str, marker: str | None = None) -> BuildRoot:
    """Split a raw build directory on the build marker segment.

    Exactly one occurrence gives ``root=<before>/Build`` and the suffix as
    remainder. Otherwise the raw value is taken as already normalized.
    """
    marker = marker or get_config().build_dir_marker
    parts = raw.split(marker)
    if len(parts) != 2:
        logger.debug(f"Failed to parse build dir {raw}, using it as is")
        return BuildRoot(root=raw, remainder="", degraded=True)
    return BuildRoot(
        root=os.path.join(parts[0], marker.rstrip("/")),
        remainder=parts[1],
    )


def target_leaf_dir(raw: str) -> str:
    """Leaf suffix of a target's build dir, or the raw value when it does not split."""
    build_root = normalize_build_root(raw)
    if build_root.degraded:
        return raw
    return build_root.remainder


async def build_target_dir_for_scheme(
    container: Container,
    project: XcodeProject,
    scheme_name: str,
    configuration: str,
    *extra_options: str,
    provider: BuildSettingsProvider | None = None,
) -> str:
    """TARGET_BUILD_DIR of the scheme's build.

    Project containers are queried for the scheme's main target, workspace
    containers for the scheme itself.

    Raises:
        SchemeNotFound, ArchivableTargetNotFound, MainTargetNotFound: Project main target lookup
        SettingsQueryFailed: If the settings query fails
        TargetBuildDirUnresolved: If the settings carry no TARGET_BUILD_DIR
    """
    provider = provider or BuildSettingsProvider()
    queried: Container = container
    if container.kind is ContainerKind.PROJECT:
        queried = project
        name = project.main_target(scheme_name).name
    else:
        name = scheme_name

    settings = await provider.settings(queried, name, configuration, *extra_options)
    try:
        build_dir = settings.string(TARGET_BUILD_DIR)
    except BuildSettingMissing as e:
        raise TargetBuildDirUnresolved(name, queried.path, configuration) from e

    logger.info(f"Scheme {scheme_name} TARGET_BUILD_DIR: {build_dir}")
    return build_dir

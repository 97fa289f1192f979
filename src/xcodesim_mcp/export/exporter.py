"""Artifact export - locate generated .app bundles and copy them to a deploy dir.

For every app target in the main target's dependency closure:
1. Pick the simulator SDK (watch targets get the watch simulator SDK)
2. Query the target's TARGET_BUILD_DIR with that SDK forced
3. Search the candidate source dirs in a fixed order
4. Copy the first match into the deploy dir
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

from ..config import ExportConfig, get_config
from ..errors import (
    ArtifactExportFailed,
    BuildSettingMissing,
    SettingsQueryFailed,
    TargetArtifactNotFound,
    TargetBuildDirUnresolved,
)
from ..utils.process import stream_command
from ..xcode.project import Target, XcodeProject
from ..xcode.settings import BuildSettingsProvider
from .builddir import TARGET_BUILD_DIR, target_leaf_dir

logger = logging.getLogger(__name__)

SDKROOT = "SDKROOT"

Copier = Callable[[str, str], Awaitable[bool]]


def join_path(*parts: str) -> str:
    """Join path segments, keeping later absolute segments nested.

    ``join_path("/proj", "/abs/Build")`` is ``/proj/abs/Build``, unlike
    ``os.path.join`` which would drop ``/proj``.
    """
    non_empty = [p for p in parts if p]
    if not non_empty:
        return ""
    return os.path.normpath(os.sep.join(non_empty))


async def copy_dir(source: str, destination: str) -> bool:
    """Recursively copy a directory tree, preserving its structure.

    An existing destination is replaced, never merged into; a failed copy
    leaves no destination behind. The copy command's output goes to this
    process's standard streams.

    Returns:
        True if the copy succeeded
    """
    try:
        _remove_tree(destination)
        os.makedirs(destination)
        exit_code = await stream_command(
            ["cp", "-R", os.path.join(source, "."), destination],
            stdout_to_stderr=get_config().copy_output_to_stderr,
        )
    except OSError as e:
        logger.debug(f"Failed to copy {source} to {destination}: {e}")
        exit_code = None

    if exit_code == 0:
        return True
    shutil.rmtree(destination, ignore_errors=True)
    return False


def _remove_tree(path: str) -> None:
    if os.path.islink(path) or os.path.isfile(path):
        os.remove(path)
    elif os.path.isdir(path):
        shutil.rmtree(path)


def write_raw_build_log(text: str, path: str) -> str:
    """Write raw build output text to a file.

    Returns:
        Absolute path of the written file
    """
    path = os.path.abspath(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    Path(path).write_text(text, encoding="utf-8")
    logger.info(f"Raw build output written to {path}")
    return path


class ArtifactExporter:
    """Exports the main target's .app and the .app products of its dependencies."""

    def __init__(
        self,
        provider: BuildSettingsProvider | None = None,
        copier: Copier | None = None,
        config: ExportConfig | None = None,
    ):
        """Initialize exporter.

        Args:
            provider: Settings provider (a fresh query per call)
            copier: Directory copy coroutine, ``copy_dir`` by default
            config: Export configuration (global configuration if omitted)
        """
        self._provider = provider or BuildSettingsProvider()
        self._copy = copier or copy_dir
        self._config = config or get_config()

    async def simulator_sdk(
        self,
        project: XcodeProject,
        target: Target,
        configuration: str,
        simulator_platform: str,
    ) -> str:
        """SDK to query the target with.

        The platform's simulator SDK, unless the target's SDKROOT names the
        watch platform. The SDKROOT probe is best effort.
        """
        sdk = self._config.simulator_sdk(simulator_platform)
        try:
            settings = await self._provider.settings(project, target.name, configuration)
            sdk_root = settings.string(SDKROOT)
        except SettingsQueryFailed as e:
            logger.debug(f"Failed to fetch settings of {target.name} ({project.path}): {e}")
            return sdk
        except BuildSettingMissing:
            logger.debug(f"No SDKROOT found for target {target.name}")
            return sdk

        logger.debug(f"Target {target.name} SDKROOT: {sdk_root}")
        if self._config.watch_platform_marker in sdk_root:
            return self._config.watch_sdk
        return sdk

    async def target_build_dir(
        self,
        project: XcodeProject,
        target: Target,
        configuration: str,
        sdk: str,
    ) -> str:
        """TARGET_BUILD_DIR of a target built with the given SDK.

        Raises:
            ArtifactExportFailed: If the settings query fails
            TargetBuildDirUnresolved: If TARGET_BUILD_DIR is absent
        """
        try:
            settings = await self._provider.settings(
                project, target.name, configuration, "-sdk", sdk
            )
        except SettingsQueryFailed as e:
            raise ArtifactExportFailed(
                f"failed to get build settings of target {target.name}: {e}",
                container=project.path,
                target=target.name,
                configuration=configuration,
            ) from e

        try:
            build_dir = settings.string(TARGET_BUILD_DIR)
        except BuildSettingMissing as e:
            raise TargetBuildDirUnresolved(target.name, project.path, configuration) from e

        logger.debug(f"Target {target.name} TARGET_BUILD_DIR: {build_dir}")
        return build_dir

    @staticmethod
    def candidate_source_dirs(
        project: XcodeProject, scheme_build_root: str, target_dir: str
    ) -> list[str]:
        """Directories searched for a target's product, in priority order.

        1. scheme build root + target leaf dir (default layout)
        2. scheme build root alone (custom TARGET_BUILD_DIR)
        3. project dir + scheme build root (custom build dir, project not at root)

        When a stale product sits in an earlier candidate it wins over a
        fresh one in a later candidate.
        """
        return [
            join_path(scheme_build_root, target_dir),
            scheme_build_root,
            join_path(os.path.dirname(project.path), scheme_build_root),
        ]

    async def export_target(
        self,
        project: XcodeProject,
        target: Target,
        scheme_build_root: str,
        configuration: str,
        simulator_platform: str,
        deploy_dir: str,
    ) -> str:
        """Export one app target.

        Returns:
            Destination path of the exported bundle

        Raises:
            ArtifactExportFailed, TargetBuildDirUnresolved: Settings lookup failed
            TargetArtifactNotFound: No candidate dir held the bundle or every copy failed
        """
        sdk = await self.simulator_sdk(project, target, configuration, simulator_platform)
        build_dir = await self.target_build_dir(project, target, configuration, sdk)
        target_dir = target_leaf_dir(build_dir)

        destination = join_path(os.path.abspath(deploy_dir), target.product_path)
        searched: list[str] = []
        for source_dir in self.candidate_source_dirs(project, scheme_build_root, target_dir):
            source = join_path(source_dir, target.product_path)
            searched.append(source)
            logger.debug(f"Searching for the generated app in {source}")

            if not os.path.exists(source):
                logger.debug(f"Path does not exist: {source}")
                continue

            if not await self._copy(source, destination):
                logger.debug(f"Failed to copy the generated app from {source} to the deploy dir")
                continue

            logger.info(f"Exported {target.name}: {source} -> {destination}")
            return destination

        raise TargetArtifactNotFound(target.name, target.product_path, searched)

    async def export(
        self,
        project: XcodeProject,
        scheme_name: str,
        scheme_build_root: str,
        configuration: str,
        simulator_platform: str,
        deploy_dir: str,
    ) -> list[str]:
        """Export the scheme's main target and its .app dependencies.

        Args:
            project: Project that builds the scheme
            scheme_name: Scheme name (resolved again inside the project)
            scheme_build_root: Normalized build root of the scheme
            configuration: Build configuration
            simulator_platform: iOS or tvOS
            deploy_dir: Destination directory

        Returns:
            Destination paths in export order (main target first)

        Raises:
            SchemeNotFound, ArchivableTargetNotFound, MainTargetNotFound: Main target lookup
            ArtifactExportFailed, TargetBuildDirUnresolved, TargetArtifactNotFound: Per target
        """
        main_target = project.main_target(scheme_name)
        exported: list[str] = []

        for target in project.dependency_closure(main_target):
            logger.info(f"{target.name}...")
            if not target.product_path.endswith(self._config.app_suffix):
                logger.info(f"Target ({target.name}) is not an {self._config.app_suffix} - SKIP")
                continue

            destination = await self.export_target(
                project,
                target,
                scheme_build_root,
                configuration,
                simulator_platform,
                deploy_dir,
            )
            exported.append(destination)

        return exported

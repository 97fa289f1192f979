"""Build settings queries through ``xcodebuild -showBuildSettings``.

Projects are queried per target (``-project P -target T``), workspaces per
scheme (``-workspace W -scheme S``). The two shapes return different
TARGET_BUILD_DIR layouts; see ``export.builddir``.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_config
from ..errors import BuildSettingMissing, NoConfigurationResolved, SettingsQueryFailed
from ..utils.process import printable, run_command
from .base import Container
from .scheme import Scheme

logger = logging.getLogger(__name__)


class BuildSettings(dict):
    """Flattened key to string mapping from one settings query."""

    def string(self, key: str) -> str:
        """Value of a setting.

        Raises:
            BuildSettingMissing: If the key is absent
        """
        try:
            return self[key]
        except KeyError:
            raise BuildSettingMissing(key) from None


def parse_build_settings(output: str) -> BuildSettings:
    """Parse -showBuildSettings output.

    Every ``KEY = value`` line is kept; a key seen again (another target
    block) overwrites the earlier value.
    """
    settings = BuildSettings()
    for line in output.splitlines():
        line = line.strip()
        key, sep, value = line.partition(" = ")
        if not sep or not key or " " in key:
            continue
        settings[key] = value.strip()
    return settings


async def query_build_settings(
    selector: list[str],
    configuration: str,
    *extra_options: str,
    container: str | None = None,
) -> BuildSettings:
    """Run one settings query.

    Args:
        selector: Container/target selection, e.g. ["-project", p, "-target", t]
        configuration: Build configuration name
        extra_options: Passed verbatim to xcodebuild (e.g. "-sdk", "iphonesimulator")
        container: Container path for error context

    Raises:
        SettingsQueryFailed: If xcodebuild fails or prints no settings
    """
    config = get_config()
    command = [
        config.xcodebuild,
        "-showBuildSettings",
        *selector,
        "-configuration",
        configuration,
        *extra_options,
    ]
    try:
        result = await run_command(command, timeout=config.settings_timeout)
    except (OSError, asyncio.TimeoutError) as e:
        raise SettingsQueryFailed(
            f"failed to run `{printable(command)}`: {str(e) or type(e).__name__}",
            container=container,
            configuration=configuration,
        ) from e

    if not result.ok:
        raise SettingsQueryFailed(
            result.describe_failure(),
            container=container,
            configuration=configuration,
        )

    settings = parse_build_settings(result.stdout)
    if not settings:
        raise SettingsQueryFailed(
            f"no build settings in output of `{printable(command)}`",
            container=container,
            configuration=configuration,
        )
    logger.debug(f"Parsed {len(settings)} build settings from {container}")
    return settings


def resolve_configuration(explicit: str | None, scheme: Scheme) -> str:
    """Explicit configuration, else the scheme's archive action default.

    Raises:
        NoConfigurationResolved: If neither is set
    """
    if explicit:
        return explicit
    if scheme.archive_configuration:
        logger.info(
            f"No configuration given, using archive configuration "
            f"of scheme {scheme.name}: {scheme.archive_configuration}"
        )
        return scheme.archive_configuration
    raise NoConfigurationResolved(scheme.name)


class BuildSettingsProvider:
    """Settings lookup dispatched on the container kind.

    Each call is a fresh xcodebuild invocation; nothing is cached.
    """

    async def settings(
        self,
        container: Container,
        name: str,
        configuration: str,
        *extra_options: str,
    ) -> BuildSettings:
        """Settings for a target (project) or scheme (workspace).

        Raises:
            SettingsQueryFailed: If the query fails
        """
        logger.debug(
            f"Querying {container.kind.value} settings for {name} "
            f"({configuration}) {' '.join(extra_options)}"
        )
        return await container.build_settings(name, configuration, *extra_options)

"""Export configuration.

SDK names, bundle suffixes and environment keys are injected here once at
startup instead of living as module constants in every consumer.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportConfig:
    """Configuration shared by the settings provider, exporter and CLI."""

    simulator_sdks: dict[str, str] = field(
        default_factory=lambda: {
            "iOS": "iphonesimulator",
            "tvOS": "appletvsimulator",
        }
    )
    """Generic simulator SDK per simulator platform."""

    default_platform: str = "iOS"
    """Platform whose SDK is used when a platform has no SDK entry."""

    watch_sdk: str = "watchsimulator"
    """SDK forced for targets whose SDKROOT points at the watch platform."""

    watch_platform_marker: str = "WatchOS.platform"
    """Substring of SDKROOT identifying watch targets."""

    app_suffix: str = ".app"
    """Suffix of application bundle products."""

    build_dir_marker: str = "Build/"
    """Path segment the build-output directory is split on."""

    xcodebuild: str = "xcodebuild"
    """xcodebuild executable."""

    settings_timeout: float = 120.0
    """Timeout in seconds for a single -showBuildSettings query."""

    min_xcode_major: int = 7
    """Oldest supported Xcode major version."""

    raw_result_env_var: str = "XCODE_RAW_RESULT_TEXT_PATH"
    """Environment variable naming where raw build output text is written."""

    copy_output_to_stderr: bool = False
    """Route copy command stdout to stderr (set when serving over stdio)."""

    def simulator_sdk(self, platform: str) -> str:
        """Generic simulator SDK for a platform (iOS, tvOS)."""
        sdk = self.simulator_sdks.get(platform)
        if sdk is None:
            sdk = self.simulator_sdks[self.default_platform]
        return sdk

    @classmethod
    def from_env(cls) -> ExportConfig:
        """Build configuration honouring XCODEBUILD_PATH and XCODESIM_SETTINGS_TIMEOUT."""
        kwargs: dict[str, object] = {}
        xcodebuild = os.environ.get("XCODEBUILD_PATH")
        if xcodebuild:
            kwargs["xcodebuild"] = xcodebuild
        timeout = os.environ.get("XCODESIM_SETTINGS_TIMEOUT")
        if timeout:
            try:
                kwargs["settings_timeout"] = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid XCODESIM_SETTINGS_TIMEOUT={timeout}")
        return cls(**kwargs)  # type: ignore[arg-type]


# Global configuration (set at startup)
_config: ExportConfig = ExportConfig()


def configure_export(config: ExportConfig | None = None) -> ExportConfig:
    """Install the export configuration.

    Should be called once at server startup. Without an argument the
    configuration is read from the environment.
    """
    global _config
    _config = config or ExportConfig.from_env()
    logger.debug(f"Export configured: xcodebuild={_config.xcodebuild}, sdks={_config.simulator_sdks}")
    return _config


def get_config() -> ExportConfig:
    """Get current export configuration."""
    return _config

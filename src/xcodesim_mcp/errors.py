"""Exceptions raised while resolving and exporting simulator build artifacts."""

from __future__ import annotations

from typing import Any


class XcodeSimError(Exception):
    """Base exception carrying diagnostic context.

    Context keys are free-form but conventionally include ``container``,
    ``scheme``, ``target`` and ``configuration`` so the failure can be
    diagnosed without re-running the pipeline.
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "type": type(self).__name__,
        }
        if self.context:
            result["details"] = {k: str(v) for k, v in self.context.items()}
        return result


class UnsupportedContainerKind(XcodeSimError):
    """Raised when a path is neither an .xcodeproj nor an .xcworkspace."""

    def __init__(self, path: str, extension: str):
        super().__init__(
            f"project file extension should be .xcodeproj or .xcworkspace, but got: {extension or '(none)'}",
            container=path,
            extension=extension,
        )
        self.extension = extension


class ContainerOpenError(XcodeSimError):
    """Raised when a project or workspace descriptor cannot be read."""


class SchemeNotFound(XcodeSimError):
    """Raised when a container does not know the requested scheme."""

    def __init__(self, scheme: str, container: str):
        super().__init__(
            f"no scheme found with name: {scheme} in: {container}",
            scheme=scheme,
            container=container,
        )


class ArchivableTargetNotFound(XcodeSimError):
    """Raised when no build entry is marked for archiving and produces an app."""

    def __init__(self, scheme: str, container: str | None = None):
        super().__init__(
            f"archivable app entry not found in scheme: {scheme}",
            scheme=scheme,
            container=container,
        )


class MainTargetNotFound(XcodeSimError):
    """Raised when the archivable entry references an unknown target."""

    def __init__(self, scheme: str, blueprint_id: str, container: str | None = None):
        super().__init__(
            f"failed to find the project's main target ({blueprint_id}) for scheme: {scheme}",
            scheme=scheme,
            container=container,
            blueprint_id=blueprint_id,
        )


class NoConfigurationResolved(XcodeSimError):
    """Raised when neither the caller nor the scheme names a configuration."""

    def __init__(self, scheme: str):
        super().__init__(
            f"no configuration provided nor default defined for the scheme's ({scheme}) archive action",
            scheme=scheme,
        )


class SettingsQueryFailed(XcodeSimError):
    """Raised when ``xcodebuild -showBuildSettings`` fails or yields nothing."""


class BuildSettingMissing(XcodeSimError, KeyError):
    """Raised when a build setting key is absent from a settings mapping."""

    def __init__(self, key: str):
        XcodeSimError.__init__(self, f"build setting not found: {key}", key=key)
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class TargetBuildDirUnresolved(XcodeSimError):
    """Raised when the settings carry no TARGET_BUILD_DIR."""

    def __init__(self, name: str, container: str | None = None, configuration: str | None = None):
        super().__init__(
            f"failed to get TARGET_BUILD_DIR for: {name}",
            target=name,
            container=container,
            configuration=configuration,
        )


class ArtifactExportFailed(XcodeSimError):
    """Raised when a target's artifact cannot be located or copied."""


class TargetArtifactNotFound(ArtifactExportFailed):
    """Raised when the generated bundle of a target is in none of the candidate dirs."""

    def __init__(self, target: str, product_path: str, searched: list[str]):
        super().__init__(
            f"failed to copy the generated app ({product_path}) of target {target} to the deploy dir",
            target=target,
            product=product_path,
            searched=", ".join(searched),
        )
        self.target = target
        self.searched = searched


class SimulatorNotFound(XcodeSimError):
    """Raised when no simulator matches an exact platform version and device."""

    def __init__(self, platform: str, os_version: str, device: str):
        super().__init__(
            f"no simulator found for {platform} {os_version} - {device}",
            platform=platform,
            os_version=os_version,
            device=device,
        )


class NoSimulatorAvailable(XcodeSimError):
    """Raised when no OS version is installed for a platform and device."""

    def __init__(self, platform: str, device: str):
        super().__init__(
            f"no available simulator for {platform} - {device}",
            platform=platform,
            device=device,
        )


class UnsupportedXcodeVersion(XcodeSimError):
    """Raised when the installed Xcode is older than the supported minimum."""


class PathPolicyError(XcodeSimError, ValueError):
    """Raised when a path violates the export policy."""

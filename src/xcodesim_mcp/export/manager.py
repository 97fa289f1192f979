"""Export manager - runs the resolve/export pipeline for a simulator build.

Provides:
- Simulator destination lookup
- Scheme to built project resolution
- Scheme build root reconciliation
- Artifact export and raw build log capture
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Awaitable, Callable
from typing import Any

from ..config import get_config
from ..errors import XcodeSimError
from ..simulator import SimulatorCatalog, resolve_simulator_id
from ..utils.version import check_xcode_version
from ..xcode.container import find_built_project
from ..xcode.settings import BuildSettingsProvider
from .builddir import build_target_dir_for_scheme, normalize_build_root
from .exporter import ArtifactExporter, write_raw_build_log
from .policy import ExportPolicy
from .state import ExportRequest, ExportResult, ExportState

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], Awaitable[SimulatorCatalog]]
VersionCheck = Callable[[], Awaitable[Any]]


class ExportManager:
    """Runs export requests one at a time.

    Usage:
        manager = ExportManager()
        result = await manager.export_for_simulator(
            ExportRequest("/path/App.xcworkspace", "App", "/path/deploy")
        )
    """

    def __init__(
        self,
        policy: ExportPolicy | None = None,
        provider: BuildSettingsProvider | None = None,
        exporter: ArtifactExporter | None = None,
        catalog_loader: CatalogLoader | None = None,
        version_check: VersionCheck | None = None,
    ):
        """Initialize manager.

        Args:
            policy: Path policy applied to requests (no restriction if omitted)
            provider: Build settings provider
            exporter: Artifact exporter (built on ``provider`` if omitted)
            catalog_loader: Coroutine listing installed simulators
            version_check: Coroutine rejecting unsupported Xcode releases (run once)
        """
        self._policy = policy
        self._provider = provider or BuildSettingsProvider()
        self._exporter = exporter or ArtifactExporter(provider=self._provider)
        self._catalog_loader = catalog_loader or SimulatorCatalog.load
        self._version_check = version_check or check_xcode_version
        self._xcode_checked = False
        self._state = ExportState.IDLE
        self._lock = asyncio.Lock()
        self._last_result: ExportResult | None = None
        self._state_listeners: list[Callable[[ExportState], None]] = []

    @property
    def state(self) -> ExportState:
        """Current export state."""
        return self._state

    @property
    def last_result(self) -> ExportResult | None:
        """Result of the last finished run."""
        return self._last_result

    @property
    def policy(self) -> ExportPolicy | None:
        return self._policy

    def set_policy(self, policy: ExportPolicy | None) -> None:
        """Replace the path policy (e.g. when the project root changes)."""
        self._policy = policy

    def on_state_change(self, listener: Callable[[ExportState], None]) -> None:
        """Register state change listener."""
        self._state_listeners.append(listener)

    def _set_state(self, new_state: ExportState) -> None:
        """Update state and notify listeners."""
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            logger.info(f"Export state: {old_state.value} -> {new_state.value}")
            for listener in self._state_listeners:
                try:
                    listener(new_state)
                except Exception:
                    logger.exception("State listener error")

    def _validate(self, request: ExportRequest) -> ExportRequest:
        if self._policy is None:
            return request
        return ExportRequest(
            container_path=self._policy.validate_container_path(request.container_path),
            scheme=request.scheme,
            deploy_dir=self._policy.validate_deploy_dir(request.deploy_dir),
            configuration=request.configuration,
            simulator_platform=request.simulator_platform,
            simulator_os_version=request.simulator_os_version,
            simulator_device=request.simulator_device,
            build_log=request.build_log,
            build_log_path=request.build_log_path,
        )

    def _build_log_path(self, request: ExportRequest) -> str | None:
        """Explicit build log path, else the one named by the configured env var.

        Both are held to the same policy as the deploy dir.
        """
        path = request.build_log_path or os.environ.get(get_config().raw_result_env_var)
        if not path:
            return None
        if self._policy is not None:
            return self._policy.validate_deploy_dir(path)
        return path

    async def export_for_simulator(self, request: ExportRequest) -> ExportResult:
        """Resolve the scheme's artifacts and export them.

        Returns:
            Successful export result

        Raises:
            XcodeSimError: First fatal error of the pipeline (also recorded in
                ``last_result``)
        """
        async with self._lock:
            start_time = time.perf_counter()
            result = ExportResult(
                success=False,
                state=ExportState.FAILED,
                container_path=request.container_path,
                scheme=request.scheme,
                configuration=request.configuration or "",
            )
            self._set_state(ExportState.RESOLVING)

            try:
                request = self._validate(request)
                result.container_path = request.container_path
                log_path = self._build_log_path(request) if request.build_log is not None else None

                if not self._xcode_checked:
                    await self._version_check()
                    self._xcode_checked = True

                if request.simulator_device:
                    catalog = await self._catalog_loader()
                    result.simulator_id = await resolve_simulator_id(
                        request.simulator_platform,
                        request.simulator_os_version,
                        request.simulator_device,
                        catalog=catalog,
                    )

                built = await find_built_project(
                    request.container_path, request.scheme, request.configuration
                )
                result.configuration = built.configuration
                result.project_path = built.project.path

                sdk = get_config().simulator_sdk(request.simulator_platform)
                scheme_build_dir = await build_target_dir_for_scheme(
                    built.container,
                    built.project,
                    request.scheme,
                    built.configuration,
                    "-sdk",
                    sdk,
                    provider=self._provider,
                )
                result.scheme_build_dir = scheme_build_dir
                build_root = normalize_build_root(scheme_build_dir)

                self._set_state(ExportState.EXPORTING)
                result.exported = await self._exporter.export(
                    built.project,
                    request.scheme,
                    build_root.root,
                    built.configuration,
                    request.simulator_platform,
                    request.deploy_dir,
                )

                if log_path:
                    result.build_log_path = write_raw_build_log(request.build_log, log_path)

                result.success = True
                result.state = ExportState.READY
                return result

            except XcodeSimError as e:
                result.error = e.to_dict()
                raise

            except Exception as e:
                result.error = {"error": str(e) or type(e).__name__, "type": type(e).__name__}
                raise

            finally:
                result.duration_ms = (time.perf_counter() - start_time) * 1000
                self._last_result = result
                self._set_state(result.state)

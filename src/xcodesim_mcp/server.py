"""MCP Server for resolving and exporting Xcode simulator build artifacts."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import Context, FastMCP
from pydantic import AnyUrl

from .config import get_config
from .errors import XcodeSimError
from .export import ExportManager, ExportPolicy, ExportRequest
from .export.builddir import build_target_dir_for_scheme, normalize_build_root
from .simulator import resolve_simulator_id
from .utils.project import find_container, get_project_root
from .xcode import BuildSettingsProvider, ContainerKind, find_built_project, open_container
from .xcode import resolve_scheme as resolve_container_scheme

logger = logging.getLogger(__name__)

LAST_RESULT_URI = "export://last-result"

# Global export manager (single client mode)
_manager: ExportManager | None = None
_initial_project_path: str | None = None


def get_manager() -> ExportManager:
    """Get or create the export manager.

    Note: Single client mode - exports run one at a time.
    """
    global _manager
    if _manager is None:
        policy = ExportPolicy(workspace_root=_initial_project_path) if _initial_project_path else None
        _manager = ExportManager(policy=policy)
    return _manager


def _error(e: Exception) -> dict[str, Any]:
    if isinstance(e, XcodeSimError):
        return {"success": False, **e.to_dict()}
    return {"success": False, "error": str(e)}


async def resolve_project_root(ctx: Context, manager: ExportManager) -> Path | None:
    """Resolve the current project root, updating the manager's policy if it moved."""
    project_root = await get_project_root(ctx)
    if project_root:
        current = manager.policy.workspace_root if manager.policy else None
        new_path = os.path.abspath(project_root)
        if current != new_path:
            logger.info(f"Updating project root: {current} -> {new_path}")
            manager.set_policy(ExportPolicy(workspace_root=new_path))
    return project_root


def _container_path(container_path: str | None, project_root: Path | None) -> str:
    """Absolute container path; defaults to the container found in the project root."""
    if container_path:
        if not os.path.isabs(container_path) and project_root:
            return os.path.join(str(project_root), container_path)
        return os.path.abspath(container_path)
    if project_root:
        found = find_container(project_root)
        if found:
            return str(found)
    raise ValueError("container_path is required (no .xcworkspace/.xcodeproj in project root)")


def create_server(project_path: str | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        project_path: Initial project root. Containers and deploy directories
            are constrained to this path; can be updated from MCP client roots.
    """
    global _initial_project_path
    _initial_project_path = project_path
    mcp = FastMCP("xcodesim-mcp")
    manager = get_manager()
    provider = BuildSettingsProvider()

    async def notify_result_changed(ctx: Context) -> None:
        """Notify client that the last-result resource has changed."""
        try:
            if ctx.session:
                await ctx.session.send_resource_updated(AnyUrl(LAST_RESULT_URI))
        except Exception:
            logger.debug("Resource update notification failed", exc_info=True)

    # ============== Project Graph Tools ==============

    @mcp.tool()
    async def list_schemes(ctx: Context, container_path: str | None = None) -> dict:
        """
        List the schemes of an .xcodeproj or .xcworkspace.

        Args:
            container_path: Path to the project or workspace (defaults to the
                one found in the project root)
        """
        try:
            root = await resolve_project_root(ctx, manager)
            container = await open_container(_container_path(container_path, root))
            schemes = [
                {"name": s.name, "shared": s.is_shared, "archiveConfiguration": s.archive_configuration}
                for s in container.schemes()
            ]
            return {"success": True, "data": {"container": container.path, "schemes": schemes}}
        except Exception as e:
            return _error(e)

    @mcp.tool()
    async def resolve_scheme(
        ctx: Context, scheme: str, container_path: str | None = None
    ) -> dict:
        """
        Resolve a scheme to its description and the directory its references are relative to.

        For workspaces the scheme may be declared by any referenced project;
        the declaring project's directory is returned.

        Args:
            scheme: Scheme name
            container_path: Path to the project or workspace
        """
        try:
            root = await resolve_project_root(ctx, manager)
            resolved = await resolve_container_scheme(_container_path(container_path, root), scheme)
            return {
                "success": True,
                "data": {
                    "container": resolved.container.path,
                    "kind": resolved.container.kind.value,
                    "declaringContainer": resolved.declaring_container,
                    "schemeContainerDir": resolved.scheme_container_dir,
                    "scheme": resolved.scheme.to_dict(),
                },
            }
        except Exception as e:
            return _error(e)

    @mcp.tool()
    async def get_main_target(
        ctx: Context,
        scheme: str,
        container_path: str | None = None,
        configuration: str | None = None,
    ) -> dict:
        """
        Get the scheme's main (archivable app) target and its dependency closure.

        Args:
            scheme: Scheme name
            container_path: Path to the project or workspace
            configuration: Build configuration (defaults to the scheme's archive configuration)
        """
        try:
            root = await resolve_project_root(ctx, manager)
            built = await find_built_project(_container_path(container_path, root), scheme, configuration)
            main_target = built.project.main_target(scheme)
            closure = built.project.dependency_closure(main_target)
            return {
                "success": True,
                "data": {
                    "project": built.project.path,
                    "configuration": built.configuration,
                    "mainTarget": main_target.to_dict(),
                    "closure": [t.to_dict() for t in closure],
                },
            }
        except Exception as e:
            return _error(e)

    @mcp.tool()
    async def get_build_settings(
        ctx: Context,
        scheme: str,
        container_path: str | None = None,
        configuration: str | None = None,
        sdk: str | None = None,
        keys: list[str] | None = None,
    ) -> dict:
        """
        Get build settings for a scheme.

        Projects are queried for the scheme's main target, workspaces for the
        scheme; TARGET_BUILD_DIR differs between the two. The normalized build
        root is returned alongside.

        Args:
            scheme: Scheme name
            container_path: Path to the project or workspace
            configuration: Build configuration
            sdk: SDK override, e.g. iphonesimulator
            keys: Only return these settings
        """
        try:
            root = await resolve_project_root(ctx, manager)
            built = await find_built_project(_container_path(container_path, root), scheme, configuration)
            extra = ["-sdk", sdk] if sdk else []
            if built.container.kind is ContainerKind.PROJECT:
                queried, name = built.project, built.project.main_target(scheme).name
            else:
                queried, name = built.container, scheme
            settings = await provider.settings(queried, name, built.configuration, *extra)
            data: dict[str, Any] = {
                "container": queried.path,
                "name": name,
                "configuration": built.configuration,
                "settings": {k: settings[k] for k in keys if k in settings} if keys else dict(settings),
            }
            build_dir = settings.get("TARGET_BUILD_DIR")
            if build_dir:
                build_root = normalize_build_root(build_dir)
                data["buildRoot"] = {
                    "root": build_root.root,
                    "remainder": build_root.remainder,
                    "degraded": build_root.degraded,
                }
            return {"success": True, "data": data}
        except Exception as e:
            return _error(e)

    @mcp.tool()
    async def get_scheme_build_dir(
        ctx: Context,
        scheme: str,
        container_path: str | None = None,
        configuration: str | None = None,
        simulator_platform: str = "iOS",
    ) -> dict:
        """
        Get the scheme's simulator TARGET_BUILD_DIR and its normalized build root.

        Args:
            scheme: Scheme name
            container_path: Path to the project or workspace
            configuration: Build configuration
            simulator_platform: iOS or tvOS
        """
        try:
            root = await resolve_project_root(ctx, manager)
            built = await find_built_project(_container_path(container_path, root), scheme, configuration)
            build_dir = await build_target_dir_for_scheme(
                built.container,
                built.project,
                scheme,
                built.configuration,
                "-sdk",
                get_config().simulator_sdk(simulator_platform),
                provider=provider,
            )
            build_root = normalize_build_root(build_dir)
            return {
                "success": True,
                "data": {
                    "targetBuildDir": build_dir,
                    "root": build_root.root,
                    "remainder": build_root.remainder,
                    "degraded": build_root.degraded,
                },
            }
        except Exception as e:
            return _error(e)

    # ============== Simulator Tools ==============

    @mcp.tool()
    async def resolve_simulator(device: str, os_version: str = "latest", platform: str = "iOS") -> dict:
        """
        Resolve a simulator UDID.

        Args:
            device: Device name, e.g. "iPhone 11"
            os_version: OS version like "14.4", or "latest" for the newest installed
            platform: iOS or tvOS
        """
        try:
            simulator_id = await resolve_simulator_id(platform, os_version, device)
            return {"success": True, "data": {"simulatorId": simulator_id}}
        except Exception as e:
            return _error(e)

    # ============== Export Tools ==============

    @mcp.tool()
    async def export_artifacts(
        ctx: Context,
        scheme: str,
        deploy_dir: str,
        container_path: str | None = None,
        configuration: str | None = None,
        simulator_platform: str = "iOS",
        simulator_os_version: str = "latest",
        simulator_device: str | None = None,
        build_log: str | None = None,
        build_log_path: str | None = None,
    ) -> dict:
        """
        Export the .app bundles produced by a simulator build of a scheme.

        Run after `xcodebuild build` for the simulator. Copies the main target's
        .app and the .app products of its dependencies (e.g. watch apps) into
        deploy_dir. Fails if any of them cannot be found.

        Args:
            scheme: Scheme name
            deploy_dir: Destination directory
            container_path: Path to the project or workspace
            configuration: Build configuration (defaults to the scheme's archive configuration)
            simulator_platform: iOS or tvOS
            simulator_os_version: OS version or "latest"
            simulator_device: Device name; when given the simulator UDID is resolved too
            build_log: Raw build output text to store
            build_log_path: Where to store build_log
        """
        try:
            root = await resolve_project_root(ctx, manager)
            request = ExportRequest(
                container_path=_container_path(container_path, root),
                scheme=scheme,
                deploy_dir=deploy_dir if os.path.isabs(deploy_dir) or not root else os.path.join(str(root), deploy_dir),
                configuration=configuration,
                simulator_platform=simulator_platform,
                simulator_os_version=simulator_os_version,
                simulator_device=simulator_device,
                build_log=build_log,
                build_log_path=build_log_path,
            )
            result = await manager.export_for_simulator(request)
            return {"success": True, "data": result.to_dict(), "summary": result.to_summary()}
        except Exception as e:
            return _error(e)
        finally:
            await notify_result_changed(ctx)

    @mcp.tool()
    async def get_export_state() -> dict:
        """Get the export state and the last export result."""
        last = manager.last_result
        return {
            "success": True,
            "data": {
                "state": manager.state.value,
                "lastResult": last.to_dict() if last else None,
            },
        }

    # ============== Resources ==============

    @mcp.resource(LAST_RESULT_URI, mime_type="application/json")
    async def last_result_resource() -> str:
        """Last export result (JSON).

        Updates when: an export run finishes.
        """
        last = manager.last_result
        return json.dumps(last.to_dict() if last else None, indent=2)

    logger.info("xcodesim MCP Server initialized")
    return mcp

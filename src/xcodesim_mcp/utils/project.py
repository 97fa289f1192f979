"""Locating the Xcode project root and the container inside it.

Sources, first usable one wins:
1. roots announced by the MCP client
2. XCODESIM_PROJECT_ROOT / MCP_PROJECT_ROOT
3. the --project argument
4. the startup directory (marker search with --project-from-cwd)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from ..xcode.base import PROJECT_EXTENSION, WORKSPACE_EXTENSION

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger(__name__)

ROOT_MARKERS = (WORKSPACE_EXTENSION, PROJECT_EXTENSION)


@dataclass(frozen=True)
class ProjectRootConfig:
    """Startup inputs for project root detection."""

    startup_cwd: Path | None = None
    use_project_from_cwd: bool = False
    explicit_project_path: Path | None = None
    env_var_names: tuple[str, ...] = ("XCODESIM_PROJECT_ROOT", "MCP_PROJECT_ROOT")


_config = ProjectRootConfig()


def _as_path(value: str | Path | None) -> Path | None:
    return Path(value) if value else None


def configure_project_root(
    *,
    use_project_from_cwd: bool = False,
    explicit_project_path: str | Path | None = None,
    startup_cwd: str | Path | None = None,
) -> None:
    """Record the startup inputs; called once by the entry point."""
    global _config
    _config = ProjectRootConfig(
        startup_cwd=_as_path(startup_cwd),
        use_project_from_cwd=use_project_from_cwd,
        explicit_project_path=_as_path(explicit_project_path),
    )
    logger.debug(f"Project root inputs: {_config}")


def get_config() -> ProjectRootConfig:
    return _config


def parse_file_uri(uri: str) -> Path | None:
    """Absolute path of a file:// URI, or None for anything else."""
    parsed = urlparse(str(uri))
    if parsed.scheme != "file":
        logger.warning(f"Ignoring non-file root URI: {uri}")
        return None
    path = Path(unquote(parsed.path))
    return path if path.is_absolute() else None


def _containers(directory: Path, extension: str) -> list[Path]:
    return sorted(p for p in directory.glob(f"*{extension}") if p.is_dir())


def find_container(directory: str | Path) -> Path | None:
    """Xcode container directly inside a directory.

    A workspace is preferred over a project; ties are broken by name.
    """
    for extension in ROOT_MARKERS:
        found = _containers(Path(directory), extension)
        if found:
            return found[0]
    return None


def find_xcode_project_root(start_dir: Path | None = None) -> Path:
    """Closest directory at or above start_dir holding a workspace.

    Without a workspace anywhere above, the closest one holding a project,
    then the closest git checkout, then start_dir itself.
    """
    start = (start_dir or Path.cwd()).resolve()
    candidates = [start, *start.parents]

    for extension in ROOT_MARKERS:
        hit = next((d for d in candidates if _containers(d, extension)), None)
        if hit is not None:
            return hit

    # .git is a file in worktrees
    hit = next((d for d in candidates if (d / ".git").exists()), None)
    return hit or start


def _env_root(names: tuple[str, ...]) -> Path | None:
    for name in names:
        value = os.environ.get(name)
        if not value:
            continue
        if os.path.isdir(value):
            logger.info(f"Project root from ${name}: {value}")
            return Path(value)
        logger.warning(f"${name} is not a directory: {value}")
    return None


def _root_from_config(config: ProjectRootConfig) -> Path | None:
    root = _env_root(config.env_var_names)
    if root is not None:
        return root

    explicit = config.explicit_project_path
    if explicit is not None:
        if explicit.is_dir():
            return explicit
        logger.warning(f"--project is not a directory: {explicit}")

    if config.startup_cwd is not None and config.use_project_from_cwd:
        return find_xcode_project_root(config.startup_cwd)
    return config.startup_cwd


async def _client_root(ctx: Context) -> Path | None:
    try:
        roots = await ctx.list_roots()
    except Exception as e:
        # Roots capability is optional for clients
        logger.info(f"Client roots unavailable: {e}")
        return None
    if not roots:
        return None
    path = parse_file_uri(str(roots[0].uri))
    if path is None or not path.is_dir():
        logger.warning(f"Unusable client root: {roots[0].uri}")
        return None
    logger.info(f"Project root from MCP client: {path}")
    return path


async def get_project_root(ctx: Context | None = None) -> Path | None:
    """Project root for a tool call, or None when no source yields one."""
    if ctx is not None:
        root = await _client_root(ctx)
        if root is not None:
            return root
    return _root_from_config(get_config())


def get_project_root_sync() -> Path | None:
    """Project root from startup inputs only (no client roots)."""
    return _root_from_config(get_config())

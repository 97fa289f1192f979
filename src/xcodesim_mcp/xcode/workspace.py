"""Xcode workspace (.xcworkspace) model."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path

from ..errors import ContainerOpenError, SchemeNotFound
from .base import PROJECT_EXTENSION, ContainerKind
from .scheme import Scheme, find_schemes
from .settings import BuildSettings, query_build_settings

logger = logging.getLogger(__name__)

CONTENTS_FILE = "contents.xcworkspacedata"


def _resolve_location(location: str, group_dir: str, workspace_path: str) -> str | None:
    """Resolve a FileRef/Group location attribute to an absolute path.

    Location kinds:
    - group:<rel>     relative to the enclosing group (workspace dir at top level)
    - container:<rel> relative to the directory containing the workspace
    - absolute:<path> as is
    - self:           the project embedding this workspace
    """
    kind, _, rel = location.partition(":")
    if kind == "group":
        return os.path.normpath(os.path.join(group_dir, rel))
    if kind == "container":
        return os.path.normpath(os.path.join(os.path.dirname(workspace_path), rel))
    if kind == "absolute":
        return os.path.normpath(rel)
    if kind == "self":
        return os.path.dirname(workspace_path)
    logger.debug(f"Unsupported workspace location: {location}")
    return None


class XcodeWorkspace:
    """Read-only view of an .xcworkspace bundle."""

    kind = ContainerKind.WORKSPACE

    def __init__(self, path: str, project_paths: list[str], schemes: list[Scheme] | None = None):
        """Build the model.

        Args:
            path: Absolute path of the .xcworkspace bundle
            project_paths: Absolute paths of the referenced .xcodeproj bundles
            schemes: Schemes owned by the workspace itself (discovered if omitted)
        """
        self.path = os.path.abspath(path)
        self.project_paths = project_paths
        self._schemes = schemes if schemes is not None else find_schemes(self.path)

    @classmethod
    async def open(cls, path: str) -> XcodeWorkspace:
        """Open and parse an .xcworkspace bundle.

        Raises:
            ContainerOpenError: If contents.xcworkspacedata cannot be parsed
        """
        path = os.path.abspath(path)
        contents = os.path.join(path, CONTENTS_FILE)
        try:
            root = ET.parse(contents).getroot()
        except (ET.ParseError, OSError) as e:
            raise ContainerOpenError(f"failed to open workspace {path}: {e}", container=path) from e

        project_paths: list[str] = []

        def walk(element: ET.Element, group_dir: str) -> None:
            for child in element:
                location = child.get("location", "")
                resolved = _resolve_location(location, group_dir, path) if location else None
                if child.tag == "Group":
                    walk(child, resolved or group_dir)
                elif child.tag == "FileRef" and resolved:
                    if resolved.endswith(PROJECT_EXTENSION) and resolved not in project_paths:
                        project_paths.append(resolved)

        walk(root, os.path.dirname(path))
        logger.debug(f"Workspace {path} references {len(project_paths)} projects")
        return cls(path, project_paths)

    @property
    def name(self) -> str:
        return Path(self.path).stem

    def schemes(self) -> list[Scheme]:
        """Workspace schemes followed by the schemes of every referenced project."""
        result = list(self._schemes)
        for project_path in self.project_paths:
            result.extend(self._project_schemes(project_path))
        return result

    def _project_schemes(self, project_path: str) -> list[Scheme]:
        if not os.path.isdir(project_path):
            logger.warning(f"Workspace {self.path} references missing project {project_path}")
            return []
        return find_schemes(project_path)

    def scheme(self, name: str) -> tuple[Scheme, str]:
        """Scheme by name plus the path of the container declaring it.

        Workspace-owned schemes are checked first, then each referenced
        project in declaration order.

        Raises:
            SchemeNotFound: If no container declares the scheme
        """
        for scheme in self._schemes:
            if scheme.name == name:
                return scheme, self.path
        for project_path in self.project_paths:
            for scheme in self._project_schemes(project_path):
                if scheme.name == name:
                    return scheme, project_path
        raise SchemeNotFound(name, self.path)

    async def build_settings(
        self, name: str, configuration: str, *extra_options: str
    ) -> BuildSettings:
        """Scheme-level settings (``-workspace W -scheme name``)."""
        return await query_build_settings(
            ["-workspace", self.path, "-scheme", name],
            configuration,
            *extra_options,
            container=self.path,
        )

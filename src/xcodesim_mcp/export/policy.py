"""Export policy - path validation for containers and deploy directories.

Security measures:
- Container and deploy paths must live inside the workspace root or an
  explicitly allowed output directory
- '..' segments are resolved before the containment check
- Symlinked paths are rejected
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from ..errors import PathPolicyError


@dataclass
class ExportPolicy:
    """Path policy for export operations."""

    workspace_root: str
    allowed_output_dirs: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate and canonicalize workspace root."""
        self.workspace_root = self._validate_path(self.workspace_root, context="workspace_root")
        validated_outputs = []
        for output_dir in self.allowed_output_dirs:
            try:
                validated_outputs.append(
                    self._validate_path(output_dir, context="allowed_output_dir")
                )
            except PathPolicyError:
                continue  # Skip invalid output directories
        self.allowed_output_dirs = validated_outputs

    def _validate_path(self, path: str, context: str = "path") -> str:
        """Validate and canonicalize a path.

        Returns:
            Canonicalized absolute path

        Raises:
            PathPolicyError: If path is empty or a symlink
        """
        if not path:
            raise PathPolicyError(f"Empty {context}")

        abs_path = os.path.abspath(path)

        if os.path.islink(abs_path.rstrip(os.sep)):
            raise PathPolicyError(f"Symlink not allowed in {context}: {path}")

        return abs_path

    def _within(self, path: str, roots: list[str]) -> bool:
        for root in roots:
            try:
                if os.path.commonpath([path, root]) == root:
                    return True
            except ValueError:
                continue
        return False

    def validate_container_path(self, container_path: str) -> str:
        """Validate an .xcodeproj/.xcworkspace path is within the workspace.

        Raises:
            PathPolicyError: If path is invalid or outside workspace
        """
        if not os.path.isabs(container_path):
            container_path = os.path.join(self.workspace_root, container_path)
        validated = self._validate_path(container_path, context="container_path")
        if not self._within(validated, [self.workspace_root]):
            raise PathPolicyError(f"Container path outside workspace: {container_path}")
        return validated

    def validate_deploy_dir(self, deploy_dir: str) -> str:
        """Validate a deploy directory is within allowed directories.

        Raises:
            PathPolicyError: If path is invalid or not in allowed directories
        """
        if not os.path.isabs(deploy_dir):
            deploy_dir = os.path.join(self.workspace_root, deploy_dir)
        validated = self._validate_path(deploy_dir, context="deploy_dir")
        if not self._within(validated, [self.workspace_root] + self.allowed_output_dirs):
            raise PathPolicyError(f"Deploy dir not in allowed directories: {deploy_dir}")
        return validated

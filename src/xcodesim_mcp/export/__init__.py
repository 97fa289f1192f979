"""Artifact export for simulator builds.

Provides:
- Build directory reconciliation across project and workspace settings
- Candidate search and copy of generated .app bundles
- Sequential export runs with a small state machine
- Path policy for container and deploy paths
"""

from .builddir import BuildRoot, build_target_dir_for_scheme, normalize_build_root, target_leaf_dir
from .exporter import ArtifactExporter, copy_dir, write_raw_build_log
from .manager import ExportManager
from .policy import ExportPolicy
from .state import ExportRequest, ExportResult, ExportState

__all__ = [
    "BuildRoot",
    "normalize_build_root",
    "target_leaf_dir",
    "build_target_dir_for_scheme",
    "ArtifactExporter",
    "copy_dir",
    "write_raw_build_log",
    "ExportManager",
    "ExportPolicy",
    "ExportRequest",
    "ExportResult",
    "ExportState",
]

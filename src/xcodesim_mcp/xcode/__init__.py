"""Xcode project graph: containers, schemes, targets and build settings.

Provides:
- Project (.xcodeproj) and workspace (.xcworkspace) models behind one
  container capability
- Scheme to main target resolution and dependency closure
- Build settings queries shaped per container kind
"""

from .base import Container, ContainerKind, classify, is_workspace, is_xcodeproj
from .container import (
    BuiltProject,
    ResolvedScheme,
    find_built_project,
    open_container,
    resolve_scheme,
)
from .project import Target, XcodeProject
from .scheme import BuildableReference, BuildActionEntry, Scheme, referenced_container_abs_path
from .settings import BuildSettings, BuildSettingsProvider, resolve_configuration
from .workspace import XcodeWorkspace

__all__ = [
    "Container",
    "ContainerKind",
    "classify",
    "is_xcodeproj",
    "is_workspace",
    "open_container",
    "resolve_scheme",
    "find_built_project",
    "ResolvedScheme",
    "BuiltProject",
    "XcodeProject",
    "XcodeWorkspace",
    "Target",
    "Scheme",
    "BuildActionEntry",
    "BuildableReference",
    "referenced_container_abs_path",
    "BuildSettings",
    "BuildSettingsProvider",
    "resolve_configuration",
]

"""Container kinds and the capability shared by projects and workspaces."""

from __future__ import annotations

import os
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .scheme import Scheme
    from .settings import BuildSettings

PROJECT_EXTENSION = ".xcodeproj"
WORKSPACE_EXTENSION = ".xcworkspace"


class ContainerKind(str, Enum):
    """Kind of an Xcode container, decided by path extension only."""

    PROJECT = "project"
    WORKSPACE = "workspace"


def container_extension(path: str) -> str:
    """Extension of a container path, tolerating a trailing separator."""
    return os.path.splitext(os.path.normpath(path))[1]


def classify(path: str) -> ContainerKind | None:
    """Classify a container path, or None for any other extension."""
    extension = container_extension(path)
    if extension == PROJECT_EXTENSION:
        return ContainerKind.PROJECT
    if extension == WORKSPACE_EXTENSION:
        return ContainerKind.WORKSPACE
    return None


def is_xcodeproj(path: str) -> bool:
    return classify(path) is ContainerKind.PROJECT


def is_workspace(path: str) -> bool:
    return classify(path) is ContainerKind.WORKSPACE


class Container(Protocol):
    """What the pipeline needs from a project or a workspace.

    Settings queries differ per kind: a project is queried per target name,
    a workspace per scheme name.
    """

    path: str

    @property
    def kind(self) -> ContainerKind: ...

    def schemes(self) -> list[Scheme]: ...

    def scheme(self, name: str) -> tuple[Scheme, str]:
        """Scheme by name plus the absolute path of the container declaring it."""
        ...

    async def build_settings(
        self, name: str, configuration: str, *extra_options: str
    ) -> BuildSettings: ...

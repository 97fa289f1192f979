"""Container resolution: open a project or workspace and find a scheme in it."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from ..errors import ArchivableTargetNotFound, UnsupportedContainerKind
from .base import Container, ContainerKind, classify, container_extension
from .project import XcodeProject
from .scheme import Scheme, referenced_container_abs_path
from .settings import resolve_configuration
from .workspace import XcodeWorkspace

logger = logging.getLogger(__name__)


@dataclass
class ResolvedScheme:
    """A scheme together with where its relative references point."""

    container: Container
    scheme: Scheme
    scheme_container_dir: str
    """Directory the scheme's ReferencedContainer paths are relative to."""

    declaring_container: str
    """Absolute path of the project (or workspace) declaring the scheme."""


@dataclass
class BuiltProject:
    """The project that actually builds a scheme."""

    container: Container
    project: XcodeProject
    scheme: Scheme
    configuration: str


def ensure_supported(path: str) -> ContainerKind:
    """Classify a container path.

    Raises:
        UnsupportedContainerKind: For any extension other than .xcodeproj/.xcworkspace
    """
    kind = classify(path)
    if kind is None:
        raise UnsupportedContainerKind(path, container_extension(path))
    return kind


async def open_container(path: str) -> Container:
    """Open a project or workspace; the extension alone decides which.

    Raises:
        UnsupportedContainerKind: Before touching the file for other extensions
        ContainerOpenError: If the container cannot be parsed
    """
    kind = ensure_supported(path)
    if kind is ContainerKind.PROJECT:
        return await XcodeProject.open(path)
    return await XcodeWorkspace.open(path)


async def resolve_scheme(container_path: str, scheme_name: str) -> ResolvedScheme:
    """Open a container and resolve a scheme in it.

    For projects the scheme container dir is the project's parent directory,
    for workspaces it is the parent of the container that declares the
    scheme.

    Raises:
        UnsupportedContainerKind: Unknown container extension
        SchemeNotFound: The scheme is not known to the container
    """
    container = await open_container(container_path)
    scheme, declaring = container.scheme(scheme_name)
    scheme_container_dir = os.path.dirname(declaring)
    logger.info(f"Scheme {scheme_name} declared by {declaring}")
    return ResolvedScheme(
        container=container,
        scheme=scheme,
        scheme_container_dir=scheme_container_dir,
        declaring_container=declaring,
    )


async def find_built_project(
    container_path: str,
    scheme_name: str,
    configuration: str | None = None,
) -> BuiltProject:
    """Find the project that builds the scheme's archivable app.

    Raises:
        UnsupportedContainerKind: Unknown container extension
        SchemeNotFound: The scheme is not known to the container
        NoConfigurationResolved: No configuration given and none in the scheme
        ArchivableTargetNotFound: No archivable app entry in the scheme
        ContainerOpenError: The referenced project cannot be opened
    """
    resolved = await resolve_scheme(container_path, scheme_name)
    configuration = resolve_configuration(configuration, resolved.scheme)

    entry = resolved.scheme.archivable_app_entry()
    if entry is None:
        raise ArchivableTargetNotFound(scheme_name, container_path)

    project_path = referenced_container_abs_path(
        entry.buildable_reference, resolved.scheme_container_dir
    )
    if isinstance(resolved.container, XcodeProject) and resolved.container.path == project_path:
        project = resolved.container
    else:
        project = await XcodeProject.open(project_path)

    logger.info(f"Scheme {scheme_name} builds project {project.path} ({configuration})")
    return BuiltProject(
        container=resolved.container,
        project=project,
        scheme=resolved.scheme,
        configuration=configuration,
    )

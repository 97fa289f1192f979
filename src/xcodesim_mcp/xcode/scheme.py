"""Xcode scheme (.xcscheme) parsing."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from ..config import get_config
from ..errors import ContainerOpenError

logger = logging.getLogger(__name__)

SCHEME_EXTENSION = ".xcscheme"


@dataclass(frozen=True)
class BuildableReference:
    """Reference from a scheme entry to a target of some project."""

    blueprint_identifier: str
    buildable_name: str = ""
    blueprint_name: str = ""
    referenced_container: str = ""

    def is_app_reference(self) -> bool:
        """Whether the referenced product is an application bundle."""
        return self.buildable_name.endswith(get_config().app_suffix)


@dataclass(frozen=True)
class BuildActionEntry:
    """One entry of a scheme's build action."""

    buildable_reference: BuildableReference
    build_for_testing: bool = False
    build_for_running: bool = False
    build_for_profiling: bool = False
    build_for_archiving: bool = False
    build_for_analyzing: bool = False


@dataclass
class Scheme:
    """Parsed scheme, read-only after loading."""

    name: str
    path: str = ""
    build_action_entries: list[BuildActionEntry] = field(default_factory=list)
    archive_configuration: str = ""
    is_shared: bool = True

    def archivable_app_entry(self) -> BuildActionEntry | None:
        """First entry built for archiving whose product is an app."""
        for entry in self.build_action_entries:
            if entry.build_for_archiving and entry.buildable_reference.is_app_reference():
                return entry
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": self.path,
            "shared": self.is_shared,
            "archiveConfiguration": self.archive_configuration,
            "entries": [
                {
                    "blueprintIdentifier": e.buildable_reference.blueprint_identifier,
                    "buildableName": e.buildable_reference.buildable_name,
                    "blueprintName": e.buildable_reference.blueprint_name,
                    "referencedContainer": e.buildable_reference.referenced_container,
                    "buildForArchiving": e.build_for_archiving,
                }
                for e in self.build_action_entries
            ],
        }


def _flag(element: ET.Element, name: str) -> bool:
    return element.get(name, "").upper() == "YES"


def parse_scheme(path: str | Path, is_shared: bool = True) -> Scheme:
    """Parse an .xcscheme file.

    Args:
        path: Path to the .xcscheme file
        is_shared: Whether the scheme lives in xcshareddata

    Returns:
        Parsed scheme named after the file

    Raises:
        ContainerOpenError: If the file cannot be read or is not valid XML
    """
    path = Path(path)
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise ContainerOpenError(f"failed to parse scheme {path}: {e}", scheme=path.stem) from e

    entries: list[BuildActionEntry] = []
    for element in root.findall("./BuildAction/BuildActionEntries/BuildActionEntry"):
        ref = element.find("BuildableReference")
        if ref is None:
            continue
        entries.append(
            BuildActionEntry(
                buildable_reference=BuildableReference(
                    blueprint_identifier=ref.get("BlueprintIdentifier", ""),
                    buildable_name=ref.get("BuildableName", ""),
                    blueprint_name=ref.get("BlueprintName", ""),
                    referenced_container=ref.get("ReferencedContainer", ""),
                ),
                build_for_testing=_flag(element, "buildForTesting"),
                build_for_running=_flag(element, "buildForRunning"),
                build_for_profiling=_flag(element, "buildForProfiling"),
                build_for_archiving=_flag(element, "buildForArchiving"),
                build_for_analyzing=_flag(element, "buildForAnalyzing"),
            )
        )

    archive = root.find("ArchiveAction")
    archive_configuration = archive.get("buildConfiguration", "") if archive is not None else ""

    return Scheme(
        name=path.stem,
        path=str(path),
        build_action_entries=entries,
        archive_configuration=archive_configuration,
        is_shared=is_shared,
    )


def find_schemes(container_path: str | Path) -> list[Scheme]:
    """Load the schemes stored inside an .xcodeproj or .xcworkspace bundle.

    Shared schemes (xcshareddata) come first; a user scheme with the same
    name as a shared one is ignored.
    """
    container = Path(container_path)
    schemes: list[Scheme] = []
    seen: set[str] = set()

    shared = sorted((container / "xcshareddata" / "xcschemes").glob(f"*{SCHEME_EXTENSION}"))
    user = sorted(container.glob(f"xcuserdata/*.xcuserdatad/xcschemes/*{SCHEME_EXTENSION}"))

    for scheme_path, is_shared in [(p, True) for p in shared] + [(p, False) for p in user]:
        if scheme_path.stem in seen:
            logger.debug(f"Skipping duplicate scheme {scheme_path}")
            continue
        seen.add(scheme_path.stem)
        schemes.append(parse_scheme(scheme_path, is_shared=is_shared))

    return schemes


def referenced_container_abs_path(reference: BuildableReference, base_dir: str) -> str:
    """Resolve a reference's ReferencedContainer to an absolute project path.

    Args:
        reference: Buildable reference from a scheme entry
        base_dir: Directory relative references are resolved against

    Returns:
        Absolute path of the referenced project

    Raises:
        ContainerOpenError: If the location kind is unknown
    """
    kind, _, location = reference.referenced_container.partition(":")
    if kind == "container" and location:
        return os.path.abspath(os.path.join(base_dir, location))
    if kind == "absolute" and location:
        return os.path.abspath(location)
    raise ContainerOpenError(
        f"unknown referenced container: {reference.referenced_container!r}",
        target=reference.blueprint_name or None,
    )

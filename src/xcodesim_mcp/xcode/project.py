"""Xcode project (.xcodeproj) model: targets, schemes and the dependency graph."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import get_config
from ..errors import (
    ArchivableTargetNotFound,
    ContainerOpenError,
    MainTargetNotFound,
    SchemeNotFound,
)
from ..utils.process import run_command
from .base import ContainerKind
from .scheme import Scheme, find_schemes
from .settings import BuildSettings, query_build_settings

logger = logging.getLogger(__name__)

PBXPROJ_FILE = "project.pbxproj"

TARGET_ISAS = frozenset({"PBXNativeTarget", "PBXAggregateTarget", "PBXLegacyTarget"})


@dataclass
class Target:
    """A build target of a project."""

    id: str
    name: str
    product_path: str = ""
    product_type: str = ""
    dependency_ids: list[str] = field(default_factory=list)

    def is_app(self) -> bool:
        """Whether the product is an application bundle."""
        return self.product_path.endswith(get_config().app_suffix)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "productPath": self.product_path,
            "productType": self.product_type,
            "dependencies": list(self.dependency_ids),
        }


async def load_pbxproj(pbxproj_path: str | Path) -> dict[str, Any]:
    """Load a project.pbxproj file as a dictionary.

    JSON-formatted files are read directly; the usual OpenStep plist format
    is converted with ``plutil -convert json``.

    Raises:
        ContainerOpenError: If the file is missing or cannot be converted
    """
    pbxproj_path = Path(pbxproj_path)
    try:
        text = pbxproj_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContainerOpenError(f"failed to read {pbxproj_path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            result = await run_command(
                ["plutil", "-convert", "json", "-o", "-", str(pbxproj_path)], timeout=60.0
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise ContainerOpenError(f"failed to convert {pbxproj_path}: {str(e) or type(e).__name__}") from e
        if not result.ok:
            raise ContainerOpenError(f"failed to convert {pbxproj_path}: {result.describe_failure()}")
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ContainerOpenError(f"invalid plutil output for {pbxproj_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("objects"), dict):
        raise ContainerOpenError(f"{pbxproj_path} has no objects section")
    return data


class XcodeProject:
    """Read-only view of an .xcodeproj bundle."""

    kind = ContainerKind.PROJECT

    def __init__(
        self,
        path: str,
        data: dict[str, Any],
        schemes: list[Scheme] | None = None,
    ):
        """Build the model from parsed pbxproj data.

        Args:
            path: Absolute path of the .xcodeproj bundle
            data: project.pbxproj contents as a dictionary
            schemes: Schemes of the project (discovered from disk if omitted)
        """
        self.path = os.path.abspath(path)
        self._objects: dict[str, dict[str, Any]] = data.get("objects", {})
        self._schemes = schemes if schemes is not None else find_schemes(self.path)
        self._targets = self._parse_targets(data.get("rootObject", ""))

    @classmethod
    async def open(cls, path: str) -> XcodeProject:
        """Open and parse an .xcodeproj bundle.

        Raises:
            ContainerOpenError: If the bundle cannot be read
        """
        if not os.path.isdir(path):
            raise ContainerOpenError(f"project not found: {path}", container=path)
        data = await load_pbxproj(os.path.join(path, PBXPROJ_FILE))
        return cls(path, data)

    @property
    def name(self) -> str:
        return Path(self.path).stem

    @property
    def targets(self) -> list[Target]:
        return list(self._targets.values())

    def _parse_targets(self, root_id: str) -> dict[str, Target]:
        root = self._objects.get(root_id, {})
        target_ids = root.get("targets")
        if target_ids is None:
            # No root object, fall back to every target object
            target_ids = [k for k, v in self._objects.items() if v.get("isa") in TARGET_ISAS]

        targets: dict[str, Target] = {}
        for target_id in target_ids:
            obj = self._objects.get(target_id)
            if obj is None or obj.get("isa") not in TARGET_ISAS:
                logger.warning(f"Skipping unknown target object {target_id} in {self.path}")
                continue

            product = self._objects.get(obj.get("productReference", ""), {})
            dependency_ids = []
            for dep_id in obj.get("dependencies", []):
                dep = self._objects.get(dep_id, {})
                if dep.get("target"):
                    dependency_ids.append(dep["target"])
                else:
                    logger.debug(f"Dependency {dep_id} of {obj.get('name')} has no local target")

            targets[target_id] = Target(
                id=target_id,
                name=obj.get("name", ""),
                product_path=product.get("path", ""),
                product_type=obj.get("productType", ""),
                dependency_ids=dependency_ids,
            )
        return targets

    def target(self, target_id: str) -> Target | None:
        """Target by identifier."""
        return self._targets.get(target_id)

    def target_by_name(self, name: str) -> Target | None:
        """Target by name."""
        for target in self._targets.values():
            if target.name == name:
                return target
        return None

    def schemes(self) -> list[Scheme]:
        return list(self._schemes)

    def scheme(self, name: str) -> tuple[Scheme, str]:
        """Scheme by name; a project always declares its own schemes.

        Raises:
            SchemeNotFound: If the project has no such scheme
        """
        for scheme in self._schemes:
            if scheme.name == name:
                return scheme, self.path
        raise SchemeNotFound(name, self.path)

    def main_target(self, scheme_name: str) -> Target:
        """The archivable application target built by a scheme.

        The scheme is looked up in this project even when it was first
        resolved through a workspace.

        Raises:
            SchemeNotFound: If this project does not know the scheme
            ArchivableTargetNotFound: If no entry is archivable and an app
            MainTargetNotFound: If the entry's target is not in this project
        """
        scheme, _ = self.scheme(scheme_name)
        entry = scheme.archivable_app_entry()
        if entry is None:
            raise ArchivableTargetNotFound(scheme_name, self.path)

        blueprint_id = entry.buildable_reference.blueprint_identifier
        target = self._targets.get(blueprint_id)
        if target is None:
            raise MainTargetNotFound(scheme_name, blueprint_id, self.path)
        return target

    def dependency_closure(self, target: Target) -> list[Target]:
        """The target followed by its transitive dependencies.

        Depth-first in declared order; every target appears once even when
        the graph contains cycles.
        """
        ordered: list[Target] = [target]
        visited: set[str] = {target.id}
        stack = [(target, iter(target.dependency_ids))]

        while stack:
            current, pending = stack[-1]
            for dep_id in pending:
                if dep_id in visited:
                    continue
                visited.add(dep_id)
                dep = self._targets.get(dep_id)
                if dep is None:
                    logger.warning(f"Target {current.name} depends on unknown target {dep_id}")
                    continue
                ordered.append(dep)
                stack.append((dep, iter(dep.dependency_ids)))
                break
            else:
                stack.pop()

        return ordered

    async def build_settings(
        self, name: str, configuration: str, *extra_options: str
    ) -> BuildSettings:
        """Target-scoped settings (``-project P -target name``)."""
        return await query_build_settings(
            ["-project", self.path, "-target", name],
            configuration,
            *extra_options,
            container=self.path,
        )

"""Pytest fixtures for xcodesim-mcp tests."""

import json
import os
import sys
from pathlib import Path
from xml.sax.saxutils import quoteattr

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from xcodesim_mcp.config import ExportConfig, configure_export  # noqa: E402
from xcodesim_mcp.xcode.settings import BuildSettings  # noqa: E402


def _yes(flag: bool) -> str:
    return "YES" if flag else "NO"


def scheme_xml(entries: list[dict], archive_configuration: str | None = "Release") -> str:
    """Render an .xcscheme document.

    Each entry: id, name, product, container, archiving (default True).
    """
    rendered = []
    for entry in entries:
        archiving = entry.get("archiving", True)
        rendered.append(
            f"""         <BuildActionEntry
            buildForTesting = "YES"
            buildForRunning = "YES"
            buildForProfiling = "YES"
            buildForArchiving = "{_yes(archiving)}"
            buildForAnalyzing = "YES">
            <BuildableReference
               BuildableIdentifier = "primary"
               BlueprintIdentifier = {quoteattr(entry["id"])}
               BuildableName = {quoteattr(entry.get("product", ""))}
               BlueprintName = {quoteattr(entry.get("name", ""))}
               ReferencedContainer = {quoteattr(entry.get("container", ""))}>
            </BuildableReference>
         </BuildActionEntry>"""
        )
    archive = (
        f'   <ArchiveAction\n      buildConfiguration = "{archive_configuration}"\n      revealArchiveInOrganizer = "YES">\n   </ArchiveAction>\n'
        if archive_configuration is not None
        else ""
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Scheme\n   LastUpgradeVersion = "1240"\n   version = "1.3">\n'
        '   <BuildAction\n      parallelizeBuildables = "YES"\n      buildImplicitDependencies = "YES">\n'
        "      <BuildActionEntries>\n"
        + "\n".join(rendered)
        + "\n      </BuildActionEntries>\n   </BuildAction>\n"
        + archive
        + "</Scheme>\n"
    )


def write_scheme(
    container: Path,
    name: str,
    entries: list[dict],
    archive_configuration: str | None = "Release",
    shared: bool = True,
    user: str = "dev",
) -> Path:
    """Write a scheme into a container bundle (shared or per-user)."""
    if shared:
        schemes_dir = container / "xcshareddata" / "xcschemes"
    else:
        schemes_dir = container / "xcuserdata" / f"{user}.xcuserdatad" / "xcschemes"
    schemes_dir.mkdir(parents=True, exist_ok=True)
    path = schemes_dir / f"{name}.xcscheme"
    path.write_text(scheme_xml(entries, archive_configuration))
    return path


def pbxproj(targets: list[dict]) -> dict:
    """Build project.pbxproj contents.

    Each target: id, name, product (path of the product reference),
    deps (list of target ids), type (product type).
    """
    objects: dict = {
        "ROOT": {
            "isa": "PBXProject",
            "targets": [t["id"] for t in targets],
        }
    }
    for target in targets:
        target_id = target["id"]
        dependency_ids = []
        for dep in target.get("deps", []):
            dep_id = f"DEP_{target_id}_{dep}"
            objects[dep_id] = {"isa": "PBXTargetDependency", "target": dep}
            dependency_ids.append(dep_id)
        product_id = f"PRODUCT_{target_id}"
        objects[product_id] = {
            "isa": "PBXFileReference",
            "path": target.get("product", ""),
            "sourceTree": "BUILT_PRODUCTS_DIR",
        }
        objects[target_id] = {
            "isa": "PBXNativeTarget",
            "name": target["name"],
            "productReference": product_id,
            "productType": target.get("type", "com.apple.product-type.application"),
            "dependencies": dependency_ids,
        }
    return {"archiveVersion": "1", "objectVersion": "50", "objects": objects, "rootObject": "ROOT"}


def write_project(parent: Path, name: str, targets: list[dict], schemes: dict | None = None) -> Path:
    """Write an .xcodeproj bundle with a JSON project.pbxproj and shared schemes.

    ``schemes`` maps scheme name to entries (see ``scheme_xml``); an entry
    without ``container`` references this project.
    """
    project = parent / f"{name}.xcodeproj"
    project.mkdir(parents=True, exist_ok=True)
    (project / "project.pbxproj").write_text(json.dumps(pbxproj(targets)))
    for scheme_name, entries in (schemes or {}).items():
        entries = [
            {**e, "container": e.get("container", f"container:{name}.xcodeproj")} for e in entries
        ]
        write_scheme(project, scheme_name, entries)
    return project


def write_workspace(parent: Path, name: str, locations: list[str], groups: dict | None = None) -> Path:
    """Write an .xcworkspace bundle.

    ``locations`` are FileRef location attributes at top level; ``groups``
    maps a Group location to the FileRef locations inside it.
    """
    workspace = parent / f"{name}.xcworkspace"
    workspace.mkdir(parents=True, exist_ok=True)
    refs = [f"   <FileRef\n      location = {quoteattr(loc)}>\n   </FileRef>" for loc in locations]
    for group_location, children in (groups or {}).items():
        inner = "\n".join(f"      <FileRef location = {quoteattr(c)}></FileRef>" for c in children)
        refs.append(f"   <Group\n      location = {quoteattr(group_location)}>\n{inner}\n   </Group>")
    (workspace / "contents.xcworkspacedata").write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n<Workspace\n   version = "1.0">\n'
        + "\n".join(refs)
        + "\n</Workspace>\n"
    )
    return workspace


def write_tool(directory: Path, name: str, body: str) -> Path:
    """Executable shell script standing in for a command line tool."""
    tool = directory / name
    tool.write_text("#!/bin/sh\n" + body)
    tool.chmod(0o755)
    return tool


class FakeSettingsProvider:
    """Settings provider answering from a table instead of xcodebuild.

    ``table`` maps (name, tuple(extra_options)) or name to a settings dict;
    a value that is an exception instance is raised.
    """

    def __init__(self, table: dict):
        self.table = table
        self.calls: list[tuple] = []

    async def settings(self, container, name, configuration, *extra_options):
        self.calls.append((container.path, name, configuration, tuple(extra_options)))
        key = (name, tuple(extra_options))
        value = self.table[key] if key in self.table else self.table.get(name, {})
        if isinstance(value, Exception):
            raise value
        return BuildSettings(value)


@pytest.fixture(autouse=True)
def export_config():
    """Reset the global export configuration for every test."""
    config = configure_export(ExportConfig())
    yield config
    configure_export(ExportConfig())


@pytest.fixture
def app_project(tmp_path):
    """Project with an iOS app embedding a watch app, a framework and a scheme 'App'."""
    project = write_project(
        tmp_path,
        "App",
        targets=[
            {"id": "APP", "name": "App", "product": "App.app", "deps": ["WATCH", "KIT"]},
            {"id": "WATCH", "name": "Watch", "product": "Watch.app"},
            {
                "id": "KIT",
                "name": "Kit",
                "product": "Kit.framework",
                "type": "com.apple.product-type.framework",
            },
        ],
        schemes={
            "App": [
                {"id": "KIT", "name": "Kit", "product": "Kit.framework"},
                {"id": "APP", "name": "App", "product": "App.app"},
            ]
        },
    )
    return project

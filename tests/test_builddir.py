"""Tests for build directory reconciliation."""

import pytest

from conftest import FakeSettingsProvider, write_project, write_workspace
from xcodesim_mcp.errors import TargetBuildDirUnresolved
from xcodesim_mcp.export.builddir import (
    build_target_dir_for_scheme,
    normalize_build_root,
    target_leaf_dir,
)
from xcodesim_mcp.xcode import find_built_project


class TestNormalizeBuildRoot:
    """Tests for normalize_build_root."""

    def test_single_marker(self):
        build_root = normalize_build_root("/a/b/Build/Products/Debug")
        assert build_root.root == "/a/b/Build"
        assert build_root.remainder == "Products/Debug"
        assert build_root.degraded is False

    def test_derived_data_layout(self):
        build_root = normalize_build_root(
            "/Users/me/Library/Developer/Xcode/DerivedData/App-abc/Build/Products/Release-iphonesimulator"
        )
        assert build_root.root == "/Users/me/Library/Developer/Xcode/DerivedData/App-abc/Build"
        assert build_root.remainder == "Products/Release-iphonesimulator"

    def test_no_marker_degrades(self):
        """A custom build dir is used as is."""
        build_root = normalize_build_root("/custom/out")
        assert build_root.root == "/custom/out"
        assert build_root.remainder == ""
        assert build_root.degraded is True

    def test_two_markers_degrade(self):
        raw = "/a/Build/x/Build/Products/Debug"
        build_root = normalize_build_root(raw)
        assert build_root.root == raw
        assert build_root.degraded is True

    def test_custom_marker(self):
        build_root = normalize_build_root("/a/Out/Products/Debug", marker="Out/")
        assert build_root.root == "/a/Out"
        assert build_root.remainder == "Products/Debug"


class TestTargetLeafDir:
    """Tests for target_leaf_dir."""

    def test_remainder(self):
        assert target_leaf_dir("/a/b/Build/Products/Debug") == "Products/Debug"

    def test_degraded_returns_raw(self):
        assert target_leaf_dir("/custom/out") == "/custom/out"


class TestBuildTargetDirForScheme:
    """Tests for build_target_dir_for_scheme."""

    @pytest.mark.asyncio
    async def test_project_queries_main_target(self, app_project):
        built = await find_built_project(str(app_project), "App", "Debug")
        provider = FakeSettingsProvider(
            {("App", ("-sdk", "iphonesimulator")): {"TARGET_BUILD_DIR": "/d/Build/Products/Debug-iphonesimulator"}}
        )

        build_dir = await build_target_dir_for_scheme(
            built.container, built.project, "App", "Debug", "-sdk", "iphonesimulator", provider=provider
        )

        assert build_dir == "/d/Build/Products/Debug-iphonesimulator"
        assert provider.calls == [(built.project.path, "App", "Debug", ("-sdk", "iphonesimulator"))]

    @pytest.mark.asyncio
    async def test_workspace_queries_scheme(self, tmp_path):
        write_project(
            tmp_path,
            "App",
            [{"id": "APP", "name": "AppTarget", "product": "App.app"}],
            schemes={"AppScheme": [{"id": "APP", "product": "App.app"}]},
        )
        workspace = write_workspace(tmp_path, "App", ["group:App.xcodeproj"])
        built = await find_built_project(str(workspace), "AppScheme", "Debug")
        provider = FakeSettingsProvider({"AppScheme": {"TARGET_BUILD_DIR": "/d/Build/Products/Debug"}})

        await build_target_dir_for_scheme(built.container, built.project, "AppScheme", "Debug", provider=provider)

        assert provider.calls == [(str(workspace), "AppScheme", "Debug", ())]

    @pytest.mark.asyncio
    async def test_missing_target_build_dir(self, app_project):
        built = await find_built_project(str(app_project), "App", "Debug")
        provider = FakeSettingsProvider({"App": {"SDKROOT": "iphonesimulator"}})

        with pytest.raises(TargetBuildDirUnresolved) as exc_info:
            await build_target_dir_for_scheme(built.container, built.project, "App", "Debug", provider=provider)

        assert exc_info.value.context["target"] == "App"
        assert exc_info.value.context["configuration"] == "Debug"

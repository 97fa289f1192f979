"""Tests for the MCP server surface."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from xcodesim_mcp import server
from xcodesim_mcp.errors import SchemeNotFound
from xcodesim_mcp.export import ExportManager, ExportPolicy


@pytest.fixture(autouse=True)
def reset_manager():
    server._manager = None
    yield
    server._manager = None


class TestCreateServer:
    """Tests for tool and resource registration."""

    @pytest.mark.asyncio
    async def test_tools_registered(self, tmp_path):
        mcp = server.create_server(str(tmp_path))

        names = {tool.name for tool in await mcp.list_tools()}

        assert {
            "list_schemes",
            "resolve_scheme",
            "get_main_target",
            "get_build_settings",
            "get_scheme_build_dir",
            "resolve_simulator",
            "export_artifacts",
            "get_export_state",
        } <= names

    @pytest.mark.asyncio
    async def test_last_result_resource(self, tmp_path):
        mcp = server.create_server(str(tmp_path))

        resources = await mcp.list_resources()

        assert [str(r.uri).rstrip("/") for r in resources] == [server.LAST_RESULT_URI]
        assert resources[0].mimeType == "application/json"

    def test_manager_policy_from_project_path(self, tmp_path):
        server.create_server(str(tmp_path))
        assert server.get_manager().policy.workspace_root == str(tmp_path)


class TestHelpers:
    """Tests for module helpers."""

    def test_error_from_xcodesim_error(self):
        data = server._error(SchemeNotFound("App", "/p/App.xcodeproj"))
        assert data["success"] is False
        assert data["type"] == "SchemeNotFound"
        assert data["details"]["scheme"] == "App"

    def test_error_from_other_exception(self):
        assert server._error(ValueError("bad")) == {"success": False, "error": "bad"}

    def test_container_path_relative(self, tmp_path):
        assert server._container_path("ios/App.xcodeproj", tmp_path) == str(tmp_path / "ios" / "App.xcodeproj")

    def test_container_path_discovered(self, tmp_path):
        (tmp_path / "App.xcworkspace").mkdir()
        assert server._container_path(None, tmp_path) == str(tmp_path / "App.xcworkspace")

    def test_container_path_missing(self, tmp_path):
        with pytest.raises(ValueError, match="container_path"):
            server._container_path(None, tmp_path)

    @pytest.mark.asyncio
    async def test_resolve_project_root_updates_policy(self, tmp_path):
        manager = ExportManager(policy=ExportPolicy(workspace_root=str(tmp_path)), version_check=AsyncMock())
        moved = tmp_path / "other"
        moved.mkdir()

        with patch("xcodesim_mcp.server.get_project_root", new_callable=AsyncMock, return_value=moved):
            root = await server.resolve_project_root(MagicMock(), manager)

        assert root == moved
        assert manager.policy.workspace_root == str(moved)


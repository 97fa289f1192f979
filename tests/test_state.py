"""Tests for export state and result types."""

from xcodesim_mcp.export.state import ExportRequest, ExportResult, ExportState


class TestExportState:
    """Tests for ExportState enum."""

    def test_values(self):
        assert ExportState.IDLE.value == "idle"
        assert ExportState.RESOLVING.value == "resolving"
        assert ExportState.EXPORTING.value == "exporting"
        assert ExportState.READY.value == "ready"
        assert ExportState.FAILED.value == "failed"

    def test_is_string(self):
        assert ExportState.READY == "ready"


class TestExportRequest:
    """Tests for ExportRequest defaults."""

    def test_defaults(self):
        request = ExportRequest("/p/App.xcworkspace", "App", "/deploy")
        assert request.configuration is None
        assert request.simulator_platform == "iOS"
        assert request.simulator_os_version == "latest"
        assert request.simulator_device is None


class TestExportResult:
    """Tests for ExportResult serialization."""

    def test_success_to_dict(self):
        result = ExportResult(
            success=True,
            state=ExportState.READY,
            container_path="/p/App.xcworkspace",
            scheme="App",
            configuration="Debug",
            project_path="/p/App.xcodeproj",
            simulator_id="UDID",
            scheme_build_dir="/dd/Build/Products/Debug-iphonesimulator",
            exported=["/deploy/App.app"],
            duration_ms=12.3456,
        )

        data = result.to_dict()

        assert data["success"] is True
        assert data["state"] == "ready"
        assert data["exported"] == ["/deploy/App.app"]
        assert data["simulatorId"] == "UDID"
        assert data["projectPath"] == "/p/App.xcodeproj"
        assert data["durationMs"] == 12.35
        assert "error" not in data

    def test_failure_to_dict(self):
        result = ExportResult(
            success=False,
            state=ExportState.FAILED,
            container_path="/p/App.xcodeproj",
            scheme="App",
            error={"error": "no scheme found with name: App", "type": "SchemeNotFound"},
        )

        data = result.to_dict()

        assert data["error"]["type"] == "SchemeNotFound"
        assert "simulatorId" not in data
        assert "buildLogPath" not in data

    def test_summary(self):
        result = ExportResult(
            success=True,
            state=ExportState.READY,
            container_path="/p/App.xcodeproj",
            scheme="App",
            configuration="Release",
            exported=["/deploy/App.app", "/deploy/Watch.app"],
        )

        summary = result.to_summary()

        assert summary.startswith("[OK] Export succeeded")
        assert "Configuration: Release" in summary
        assert "/deploy/Watch.app" in summary

    def test_failed_summary(self):
        result = ExportResult(
            success=False,
            state=ExportState.FAILED,
            container_path="/p/App.xcodeproj",
            scheme="App",
            error={"error": "boom"},
        )

        summary = result.to_summary()

        assert summary.startswith("[FAILED]")
        assert "Error: boom" in summary

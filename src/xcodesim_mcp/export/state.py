"""Export state management and result types.

State machine for export runs:
IDLE → RESOLVING → EXPORTING → READY | FAILED
     ↑_______________________________|
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExportState(str, Enum):
    """Export run state machine states."""

    IDLE = "idle"
    RESOLVING = "resolving"
    EXPORTING = "exporting"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ExportRequest:
    """Inputs of one export run."""

    container_path: str
    scheme: str
    deploy_dir: str
    configuration: str | None = None
    simulator_platform: str = "iOS"
    simulator_os_version: str = "latest"
    simulator_device: str | None = None
    """Device name; the simulator id is only resolved when given."""
    build_log: str | None = None
    """Raw build output text to capture next to the artifacts."""
    build_log_path: str | None = None


@dataclass
class ExportResult:
    """Result of an export run."""

    success: bool
    state: ExportState
    container_path: str
    scheme: str
    configuration: str = ""
    project_path: str = ""
    simulator_id: str | None = None
    scheme_build_dir: str = ""
    exported: list[str] = field(default_factory=list)
    build_log_path: str | None = None
    error: dict[str, Any] | None = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "success": self.success,
            "state": self.state.value,
            "containerPath": self.container_path,
            "scheme": self.scheme,
            "configuration": self.configuration,
            "exported": list(self.exported),
            "durationMs": round(self.duration_ms, 2),
        }
        if self.project_path:
            result["projectPath"] = self.project_path
        if self.simulator_id:
            result["simulatorId"] = self.simulator_id
        if self.scheme_build_dir:
            result["schemeBuildDir"] = self.scheme_build_dir
        if self.build_log_path:
            result["buildLogPath"] = self.build_log_path
        if self.error:
            result["error"] = self.error
        return result

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        status = "[OK] Export succeeded" if self.success else "[FAILED] Export failed"

        parts = [
            status,
            f"  Container: {self.container_path}",
            f"  Scheme: {self.scheme}",
            f"  Configuration: {self.configuration or '-'}",
            f"  Duration: {self.duration_ms:.0f}ms",
        ]
        if self.simulator_id:
            parts.append(f"  Simulator: {self.simulator_id}")
        for path in self.exported:
            parts.append(f"    {path}")
        if self.error:
            parts.append(f"  Error: {self.error.get('error')}")

        return "\n".join(parts)

"""Simulator catalog read from ``xcrun simctl list devices --json``."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from ..errors import XcodeSimError
from ..utils.process import run_command
from ..utils.version import VersionInfo

logger = logging.getLogger(__name__)

RUNTIME_PREFIX = "com.apple.CoreSimulator.SimRuntime."


@dataclass
class SimulatorInfo:
    """A concrete simulator device."""

    udid: str
    name: str
    os_version: str
    """Platform and version, e.g. 'iOS 14.4'."""
    state: str = ""
    is_available: bool = True

    @property
    def id(self) -> str:
        return self.udid

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "udid": self.udid,
            "name": self.name,
            "osVersion": self.os_version,
            "state": self.state,
            "available": self.is_available,
        }


def runtime_name(key: str) -> str:
    """Normalize a simctl runtime key to '<platform> <version>'.

    'com.apple.CoreSimulator.SimRuntime.iOS-14-4' becomes 'iOS 14.4';
    keys already in that form (older Xcode releases) are kept.
    """
    if not key.startswith(RUNTIME_PREFIX):
        return key
    platform, _, version = key[len(RUNTIME_PREFIX):].partition("-")
    if not version:
        return platform
    return f"{platform} {version.replace('-', '.')}"


def _is_available(device: dict[str, Any]) -> bool:
    if "isAvailable" in device:
        return bool(device["isAvailable"])
    return device.get("availability", "") == "(available)"


class SimulatorCatalog:
    """Installed simulators grouped by runtime name."""

    def __init__(self, devices: dict[str, list[SimulatorInfo]]):
        self.devices = devices

    @classmethod
    def from_simctl(cls, data: dict[str, Any]) -> SimulatorCatalog:
        """Build the catalog from parsed ``simctl list devices --json`` output."""
        devices: dict[str, list[SimulatorInfo]] = {}
        for key, entries in data.get("devices", {}).items():
            name = runtime_name(key)
            devices.setdefault(name, []).extend(
                SimulatorInfo(
                    udid=entry.get("udid", ""),
                    name=entry.get("name", ""),
                    os_version=name,
                    state=entry.get("state", ""),
                    is_available=_is_available(entry),
                )
                for entry in entries
            )
        return cls(devices)

    @classmethod
    async def load(cls) -> SimulatorCatalog:
        """List installed simulators.

        Raises:
            XcodeSimError: If simctl cannot be run or its output is not JSON
        """
        command = ["xcrun", "simctl", "list", "devices", "--json"]
        try:
            result = await run_command(command, timeout=60.0)
        except (OSError, asyncio.TimeoutError) as e:
            raise XcodeSimError(f"failed to list simulators: {str(e) or type(e).__name__}") from e
        if not result.ok:
            raise XcodeSimError(f"failed to list simulators: {result.describe_failure()}")
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise XcodeSimError(f"invalid simctl output: {e}") from e
        return cls.from_simctl(data)

    def simulator_info(self, platform_version: str, device: str) -> SimulatorInfo | None:
        """Available simulator for an exact '<platform> <version>' and device name."""
        for info in self.devices.get(platform_version, []):
            if info.name == device and info.is_available:
                return info
        return None

    def latest_simulator(self, platform: str, device: str) -> tuple[SimulatorInfo, str] | None:
        """Available simulator with the newest OS version for a platform and device.

        Returns:
            (simulator, os_version) or None
        """
        best: tuple[tuple[int, int, int], SimulatorInfo, str] | None = None
        prefix = f"{platform} "
        for name, infos in self.devices.items():
            if not name.startswith(prefix):
                continue
            version = VersionInfo.from_string(name[len(prefix):])
            if version is None:
                logger.debug(f"Skipping runtime with unparsable version: {name}")
                continue
            for info in infos:
                if info.name != device or not info.is_available:
                    continue
                if best is None or version.key > best[0]:
                    best = (version.key, info, name[len(prefix):])
        if best is None:
            return None
        return best[1], best[2]

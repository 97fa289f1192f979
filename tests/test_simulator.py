"""Tests for simulator catalog and id resolution."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from xcodesim_mcp.errors import NoSimulatorAvailable, SimulatorNotFound, XcodeSimError
from xcodesim_mcp.simulator import SimulatorCatalog, resolve_simulator_id, runtime_name
from xcodesim_mcp.utils.process import CommandResult

SIMCTL_OUTPUT = {
    "devices": {
        "com.apple.CoreSimulator.SimRuntime.iOS-9-3": [
            {"udid": "IOS93-11", "name": "iPhone 11", "state": "Shutdown", "isAvailable": True},
        ],
        "com.apple.CoreSimulator.SimRuntime.iOS-14-4": [
            {"udid": "IOS144-11", "name": "iPhone 11", "state": "Shutdown", "isAvailable": True},
            {"udid": "IOS144-8", "name": "iPhone 8", "state": "Booted", "isAvailable": True},
        ],
        "com.apple.CoreSimulator.SimRuntime.iOS-15-0": [
            {"udid": "IOS150-11", "name": "iPhone 11", "state": "Shutdown", "isAvailable": False},
        ],
        "com.apple.CoreSimulator.SimRuntime.tvOS-14-3": [
            {"udid": "TV143", "name": "Apple TV", "state": "Shutdown", "isAvailable": True},
        ],
        "iOS 12.1": [
            {
                "udid": "IOS121-11",
                "name": "iPhone 11",
                "state": "Shutdown",
                "availability": "(available)",
            },
        ],
    }
}


@pytest.fixture
def catalog():
    return SimulatorCatalog.from_simctl(SIMCTL_OUTPUT)


class TestRuntimeName:
    """Tests for runtime key normalisation."""

    def test_identifier_keys(self):
        assert runtime_name("com.apple.CoreSimulator.SimRuntime.iOS-14-4") == "iOS 14.4"
        assert runtime_name("com.apple.CoreSimulator.SimRuntime.tvOS-14-3") == "tvOS 14.3"
        assert runtime_name("com.apple.CoreSimulator.SimRuntime.watchOS-7-2") == "watchOS 7.2"

    def test_plain_keys_unchanged(self):
        assert runtime_name("iOS 12.1") == "iOS 12.1"


class TestSimulatorCatalog:
    """Tests for SimulatorCatalog lookups."""

    def test_groups_by_runtime(self, catalog):
        assert "iOS 14.4" in catalog.devices
        assert [d.udid for d in catalog.devices["iOS 14.4"]] == ["IOS144-11", "IOS144-8"]
        assert catalog.devices["iOS 14.4"][1].state == "Booted"

    def test_legacy_availability_string(self, catalog):
        assert catalog.simulator_info("iOS 12.1", "iPhone 11").udid == "IOS121-11"

    def test_exact_lookup(self, catalog):
        assert catalog.simulator_info("iOS 14.4", "iPhone 8").udid == "IOS144-8"
        assert catalog.simulator_info("iOS 14.4", "iPad Pro") is None

    def test_unavailable_not_matched(self, catalog):
        assert catalog.simulator_info("iOS 15.0", "iPhone 11") is None

    def test_latest_compares_numerically(self, catalog):
        """14.4 beats 9.3 and 12.1; the unavailable 15.0 is ignored."""
        info, version = catalog.latest_simulator("iOS", "iPhone 11")
        assert info.udid == "IOS144-11"
        assert version == "14.4"

    def test_latest_none(self, catalog):
        assert catalog.latest_simulator("watchOS", "Apple Watch") is None

    @pytest.mark.asyncio
    async def test_load_runs_simctl(self):
        with patch("xcodesim_mcp.simulator.catalog.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(command=[], exit_code=0, stdout=json.dumps(SIMCTL_OUTPUT))
            loaded = await SimulatorCatalog.load()

        assert mock_run.call_args[0][0] == ["xcrun", "simctl", "list", "devices", "--json"]
        assert "tvOS 14.3" in loaded.devices

    @pytest.mark.asyncio
    async def test_load_failure(self):
        with patch("xcodesim_mcp.simulator.catalog.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(command=["xcrun"], exit_code=1, stderr="no xcrun")
            with pytest.raises(XcodeSimError):
                await SimulatorCatalog.load()

    @pytest.mark.asyncio
    async def test_load_invalid_json(self):
        with patch("xcodesim_mcp.simulator.catalog.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(command=[], exit_code=0, stdout="not json")
            with pytest.raises(XcodeSimError):
                await SimulatorCatalog.load()


class TestResolveSimulatorId:
    """Tests for resolve_simulator_id."""

    @pytest.mark.asyncio
    async def test_latest(self, catalog):
        assert await resolve_simulator_id("iOS", "latest", "iPhone 11", catalog=catalog) == "IOS144-11"

    @pytest.mark.asyncio
    async def test_exact_version_uses_platform_prefix(self, catalog):
        """The lookup key is the literal '<platform> <version>'."""
        with patch.object(catalog, "simulator_info", wraps=catalog.simulator_info) as spy:
            udid = await resolve_simulator_id("iOS", "14.4", "iPhone 11", catalog=catalog)

        spy.assert_called_once_with("iOS 14.4", "iPhone 11")
        assert udid == "IOS144-11"

    @pytest.mark.asyncio
    async def test_exact_version_is_string_match(self, catalog):
        with pytest.raises(SimulatorNotFound):
            await resolve_simulator_id("iOS", "14.4.0", "iPhone 11", catalog=catalog)

    @pytest.mark.asyncio
    async def test_tvos(self, catalog):
        assert await resolve_simulator_id("tvOS", "latest", "Apple TV", catalog=catalog) == "TV143"

    @pytest.mark.asyncio
    async def test_latest_none_available(self, catalog):
        with pytest.raises(NoSimulatorAvailable):
            await resolve_simulator_id("iOS", "latest", "iPad Pro", catalog=catalog)

    @pytest.mark.asyncio
    async def test_loads_catalog_when_not_given(self):
        with patch(
            "xcodesim_mcp.simulator.resolver.SimulatorCatalog.load",
            new_callable=AsyncMock,
            return_value=SimulatorCatalog.from_simctl(SIMCTL_OUTPUT),
        ):
            assert await resolve_simulator_id("iOS", "9.3", "iPhone 11") == "IOS93-11"

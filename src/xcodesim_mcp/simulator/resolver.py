"""Simulator destination resolution."""

from __future__ import annotations

import logging

from ..errors import NoSimulatorAvailable, SimulatorNotFound
from .catalog import SimulatorCatalog

logger = logging.getLogger(__name__)

LATEST = "latest"


async def resolve_simulator_id(
    platform: str,
    os_version: str,
    device: str,
    catalog: SimulatorCatalog | None = None,
) -> str:
    """Simulator UDID for a platform, OS version and device name.

    ``os_version == "latest"`` picks the newest installed OS version for the
    device; any other value must match '<platform> <os_version>' exactly.

    Raises:
        NoSimulatorAvailable: "latest" requested and nothing installed
        SimulatorNotFound: No simulator for the exact version and device
    """
    catalog = catalog or await SimulatorCatalog.load()

    if os_version == LATEST:
        found = catalog.latest_simulator(platform, device)
        if found is None:
            raise NoSimulatorAvailable(platform, device)
        info, version = found
        logger.info(f"Latest simulator for {device} ({platform} {version}) = {info.udid}")
        return info.udid

    info = catalog.simulator_info(f"{platform} {os_version}", device)
    if info is None:
        raise SimulatorNotFound(platform, os_version, device)
    logger.info(f"Simulator for {device} {os_version} = {info.udid}")
    return info.udid

"""Simulator lookup via simctl."""

from .catalog import SimulatorCatalog, SimulatorInfo, runtime_name
from .resolver import LATEST, resolve_simulator_id

__all__ = [
    "SimulatorCatalog",
    "SimulatorInfo",
    "runtime_name",
    "resolve_simulator_id",
    "LATEST",
]

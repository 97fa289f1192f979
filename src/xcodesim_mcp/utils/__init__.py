"""Utility modules for xcodesim-mcp."""

from .process import CommandResult, printable, run_command, stream_command
from .version import VersionInfo, check_xcode_version, get_xcode_version

__all__ = [
    "CommandResult",
    "printable",
    "run_command",
    "stream_command",
    "VersionInfo",
    "get_xcode_version",
    "check_xcode_version",
]

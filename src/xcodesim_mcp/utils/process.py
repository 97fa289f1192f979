"""Async subprocess helpers for the external Xcode tools.

Every invocation is awaited to completion before the caller continues; the
pipeline never runs two tools at once.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def printable(command: list[str]) -> str:
    """Shell-quoted rendering of a command for logs."""
    return shlex.join(command)


@dataclass
class CommandResult:
    """Captured outcome of a finished command."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0

    def describe_failure(self) -> str:
        """One-line description of a failed run for error messages."""
        detail = self.stderr.strip() or self.stdout.strip()
        if len(detail) > 500:
            detail = detail[-500:]
        return f"`{printable(self.command)}` exited with {self.exit_code}: {detail}"


async def run_command(
    command: list[str],
    cwd: str | None = None,
    timeout: float = 120.0,
) -> CommandResult:
    """Run command with output capture and timeout.

    Both streams are captured whole; plutil prints converted JSON on a
    single line.

    Args:
        command: Command and arguments
        cwd: Working directory
        timeout: Timeout in seconds

    Returns:
        Captured result (non-zero exit codes are not raised)

    Raises:
        asyncio.TimeoutError: If timeout exceeded (the process is killed)
        OSError: If the executable cannot be started
    """
    logger.debug(f"$ {printable(command)}")
    # Never use shell=True
    process = await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Command timeout after {timeout}s: {printable(command)}")
        process.kill()
        await process.wait()
        raise

    return CommandResult(
        command=list(command),
        exit_code=process.returncode or 0,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def stream_command(
    command: list[str],
    cwd: str | None = None,
    stdout_to_stderr: bool = False,
) -> int:
    """Run command with stdout/stderr inherited from this process.

    Args:
        command: Command and arguments
        cwd: Working directory
        stdout_to_stderr: Send the command's stdout to our stderr (stdout is
            reserved for the MCP stdio transport when serving)

    Returns:
        Exit code of the command
    """
    logger.debug(f"$ {printable(command)}")
    process = await asyncio.create_subprocess_exec(
        *command,
        cwd=cwd,
        stdout=sys.stderr if stdout_to_stderr else None,
    )
    return await process.wait()

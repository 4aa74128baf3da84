#!/usr/bin/env python3
"""Run external commands without a shell and capture their output."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import mcp_settings
from mcp_errors import LaunchFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


async def run_command(
    command: str,
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ProcessResult:
    """Run `command` with a discrete argument list.

    Arguments are handed to the OS as-is, so spaces or shell metacharacters in
    them are never interpreted. stdout is stripped of surrounding whitespace.
    A non-zero exit status is returned to the caller, not raised; LaunchFailure
    is raised only when the process cannot be started or exceeds its timeout.
    """
    argv: List[str] = [command, *[str(arg) for arg in args]]
    if timeout is None:
        timeout = mcp_settings.PROCESS_TIMEOUT

    logger.debug(f"Running: {argv} (cwd={cwd})")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        logger.error(f"Failed to start {command}: {e}")
        raise LaunchFailure(argv, f"Failed to start {command}: {e}") from e

    try:
        if timeout:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        else:
            stdout, stderr = await proc.communicate()
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        logger.error(f"{command} timed out after {timeout}s")
        raise LaunchFailure(argv, f"{command} timed out after {timeout}s") from e

    result = ProcessResult(
        stdout=stdout.decode("utf-8", errors="replace").strip(),
        stderr=stderr.decode("utf-8", errors="replace").strip(),
        exit_code=proc.returncode,
    )
    if not result.ok:
        logger.debug(f"{argv} exited with {result.exit_code}: {result.stderr}")
    return result


async def run_checked(
    command: str,
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ProcessResult:
    """Like run_command, but a non-zero exit raises LaunchFailure."""
    result = await run_command(command, args, cwd=cwd, timeout=timeout)
    if not result.ok:
        argv = [command, *[str(arg) for arg in args]]
        raise LaunchFailure(
            argv,
            f"{' '.join(argv)} exited with status {result.exit_code}: {result.stderr}",
            exit_code=result.exit_code,
            stderr=result.stderr,
        )
    return result

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Sequence
from pathlib import Path

from halyard.protocols.execution import CommandResult

logger = logging.getLogger(__name__)

# How long to wait for a killed process to be reaped.
_REAP_GRACE_SECONDS = 1.0


class AsyncSubprocessRunner:
    """Runs argument-list commands with a hard wall-clock limit.

    Each command gets its own process group so a timeout or a cancelled
    caller kills the whole tree instead of leaving stragglers behind.
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self._env = env

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: str | Path,
        timeout_seconds: float,
    ) -> CommandResult:
        if isinstance(args, str):
            raise ValueError("command must be an argument list, not a shell string")
        if not args:
            raise ValueError("command must not be empty")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")

        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(cwd),
            env=self._env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout_seconds,
            )
        except TimeoutError:
            self._terminate_process(process)
            await self._reap(process)
            logger.debug("command timed out after %ss: %s", timeout_seconds, args[0])
            return CommandResult(exit_code=process.returncode, stdout="", stderr="", timed_out=True)
        finally:
            # Also covers cancellation of the awaiting task.
            self._terminate_process(process)

        return CommandResult(
            exit_code=process.returncode,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        try:
            await asyncio.wait_for(process.wait(), timeout=_REAP_GRACE_SECONDS)
        except TimeoutError:
            logger.debug("process %d not reaped within grace period", process.pid)

    def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return

        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
        except OSError:  # pragma: no cover - platform dependent
            process.kill()


__all__ = ["AsyncSubprocessRunner"]

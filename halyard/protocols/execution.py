from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(slots=True)
class CommandResult:
    exit_code: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.exit_code == 0


@runtime_checkable
class CommandRunner(Protocol):
    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: str | Path,
        timeout_seconds: float,
    ) -> CommandResult: ...


__all__ = ["CommandResult", "CommandRunner"]

"""Best-effort repository metadata for session headers.

Every probe is bounded by its own timeout. A probe that times out, exits
nonzero, or cannot start simply leaves its field empty; nothing here
raises to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from halyard.execution.runner import AsyncSubprocessRunner
from halyard.models.session import GitInfo
from halyard.protocols.execution import CommandRunner

logger = logging.getLogger(__name__)

GIT_COMMAND_TIMEOUT_SECONDS = 5.0

# ``git rev-parse --abbrev-ref HEAD`` prints this literal when detached.
_DETACHED_HEAD = "HEAD"


async def _run_git(
    runner: CommandRunner,
    args: list[str],
    cwd: Path,
    timeout_seconds: float,
) -> str | None:
    """Return stripped stdout of ``git <args>``, or None on any failure."""
    try:
        result = await asyncio.wait_for(
            runner.run(["git", *args], cwd=cwd, timeout_seconds=timeout_seconds),
            timeout=timeout_seconds,
        )
    except (TimeoutError, OSError, ValueError) as exc:
        logger.debug("git %s failed: %s", " ".join(args), exc)
        return None

    if not result.ok:
        return None
    output = result.stdout.strip()
    return output or None


async def collect_git_info(
    cwd: str | Path,
    *,
    runner: CommandRunner | None = None,
    timeout_seconds: float = GIT_COMMAND_TIMEOUT_SECONDS,
) -> GitInfo | None:
    """Collect commit, branch, and origin URL for the repository at ``cwd``.

    Returns None when ``cwd`` is not inside a git repository.
    """
    cwd = Path(cwd)
    runner = runner or AsyncSubprocessRunner()

    if await _run_git(runner, ["rev-parse", "--git-dir"], cwd, timeout_seconds) is None:
        return None

    commit_hash, branch, repository_url = await asyncio.gather(
        _run_git(runner, ["rev-parse", "HEAD"], cwd, timeout_seconds),
        _run_git(runner, ["rev-parse", "--abbrev-ref", "HEAD"], cwd, timeout_seconds),
        _run_git(runner, ["remote", "get-url", "origin"], cwd, timeout_seconds),
    )

    if branch == _DETACHED_HEAD:
        branch = None

    return GitInfo(commit_hash=commit_hash, branch=branch, repository_url=repository_url)


__all__ = ["GIT_COMMAND_TIMEOUT_SECONDS", "collect_git_info"]

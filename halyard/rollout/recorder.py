"""Append-only JSONL record of a session's conversation items.

One file per session under ``<home>/sessions``::

    rollout-2025-05-07T17-24-21-5973b6c0-94b8-487b-a530-2aeb6098ae0e.jsonl

Line 1 is the :class:`~halyard.models.session.SessionMeta` header; each
following line is one conversation item, in the order it was queued.
Inspect with ``jq -C . <file>``.

A single writer task owns the file. Producers hand it pre-serialized lines
through a bounded mailbox, so a slow disk applies backpressure instead of
stalling the event loop or growing memory without bound.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO

from pydantic_core import PydanticSerializationError

from halyard.config import HalyardSettings
from halyard.core.logging import correlation_scope
from halyard.errors import (
    RolloutClosedError,
    RolloutQueueFullError,
    RolloutSerializationError,
)
from halyard.models.items import ConversationItem, OtherItem, ReasoningItem
from halyard.models.session import SessionMeta, format_session_timestamp, utc_now
from halyard.protocols.execution import CommandRunner
from halyard.rollout.git_info import GIT_COMMAND_TIMEOUT_SECONDS, collect_git_info

logger = logging.getLogger(__name__)

DEFAULT_MAILBOX_CAPACITY = 256

# Sentinel telling the writer to drain and exit.
_SHUTDOWN = object()


def is_persisted(item: ConversationItem) -> bool:
    """Reasoning and unrecognized items never reach the log."""
    return not isinstance(item, ReasoningItem | OtherItem)


def rollout_filename(session_id: uuid.UUID, started_at: datetime) -> str:
    # ``-`` instead of ``:`` keeps the name valid on every filesystem.
    return f"rollout-{started_at.strftime('%Y-%m-%dT%H-%M-%S')}-{session_id}.jsonl"


@dataclass(slots=True)
class _LogFile:
    handle: IO[str]
    path: Path
    started_at: datetime


def _create_log_file(sessions_dir: Path, session_id: uuid.UUID) -> _LogFile:
    sessions_dir.mkdir(parents=True, exist_ok=True)
    started_at = utc_now()
    path = sessions_dir / rollout_filename(session_id, started_at)
    handle = path.open("a", encoding="utf-8")
    return _LogFile(handle=handle, path=path, started_at=started_at)


def _write_line(handle: IO[str], line: str, fsync: bool) -> None:
    handle.write(line)
    handle.write("\n")
    handle.flush()
    if fsync:
        os.fsync(handle.fileno())


def _serialize(item: ConversationItem) -> str:
    try:
        return item.model_dump_json()
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise RolloutSerializationError(f"failed to serialize rollout item: {exc}") from exc


class RolloutRecorder:
    """Records every persisted conversation item of one session.

    Create with :meth:`create`. All writes happen on one background task;
    callers only ever touch the mailbox.
    """

    def __init__(
        self,
        *,
        session_id: uuid.UUID,
        path: Path,
        mailbox: asyncio.Queue[object],
        writer: asyncio.Task[None],
    ) -> None:
        self._session_id = session_id
        self._path = path
        self._mailbox = mailbox
        self._writer = writer

    @classmethod
    async def create(
        cls,
        sessions_dir: str | Path,
        session_id: uuid.UUID,
        instructions: str | None = None,
        *,
        cwd: str | Path | None = None,
        runner: CommandRunner | None = None,
        mailbox_capacity: int = DEFAULT_MAILBOX_CAPACITY,
        git_timeout_seconds: float = GIT_COMMAND_TIMEOUT_SECONDS,
        fsync: bool = True,
    ) -> RolloutRecorder:
        """Open the session log and start its writer.

        Raises ``OSError`` when the sessions directory or the log file cannot
        be created; the caller decides whether to continue without a rollout.
        Git metadata is collected by the writer, so this returns without
        waiting on it.
        """
        log_file = _create_log_file(Path(sessions_dir), session_id)
        mailbox: asyncio.Queue[object] = asyncio.Queue(maxsize=mailbox_capacity)

        writer = _RolloutWriter(
            log_file=log_file,
            mailbox=mailbox,
            session_id=session_id,
            instructions=instructions,
            cwd=Path(cwd) if cwd is not None else None,
            runner=runner,
            git_timeout_seconds=git_timeout_seconds,
            fsync=fsync,
        )
        with correlation_scope(session_id=str(session_id)):
            task = asyncio.create_task(writer.run(), name=f"rollout-writer-{session_id}")

        logger.debug("rollout started path=%s", log_file.path)
        return cls(session_id=session_id, path=log_file.path, mailbox=mailbox, writer=task)

    @classmethod
    async def from_settings(
        cls,
        settings: HalyardSettings,
        session_id: uuid.UUID,
        instructions: str | None = None,
        *,
        runner: CommandRunner | None = None,
    ) -> RolloutRecorder | None:
        """Create a recorder from configuration, or None if rollouts are disabled."""
        if not settings.rollout.enabled:
            logger.debug("rollout recording disabled by configuration")
            return None
        return await cls.create(
            settings.sessions_dir,
            session_id,
            instructions,
            cwd=settings.cwd,
            runner=runner,
            mailbox_capacity=settings.rollout.mailbox_capacity,
            git_timeout_seconds=settings.rollout.git_probe_timeout_s,
            fsync=settings.rollout.fsync,
        )

    @property
    def session_id(self) -> uuid.UUID:
        return self._session_id

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._writer.done()

    async def record_items(self, items: Iterable[ConversationItem]) -> None:
        """Queue ``items`` in order, waiting for mailbox space as needed."""
        for item in items:
            await self.record_item(item)

    async def record_item(self, item: ConversationItem) -> None:
        if not is_persisted(item):
            return
        line = _serialize(item)
        if self.closed:
            raise RolloutClosedError("rollout writer has stopped")
        await self._mailbox.put(line)

    def try_record_item(self, item: ConversationItem) -> None:
        """Queue ``item`` without waiting.

        Raises :class:`RolloutQueueFullError` when the mailbox is full and
        :class:`RolloutClosedError` once the writer has stopped. Either way
        the item will not be persisted.
        """
        if not is_persisted(item):
            return
        line = _serialize(item)
        if self.closed:
            raise RolloutClosedError("rollout writer has stopped")
        try:
            self._mailbox.put_nowait(line)
        except asyncio.QueueFull:
            raise RolloutQueueFullError("rollout mailbox is full") from None

    async def shutdown(self) -> None:
        """Write everything already queued, then stop the writer."""
        if not self.closed:
            await self._mailbox.put(_SHUTDOWN)
        await asyncio.shield(self._writer)


class _RolloutWriter:
    def __init__(
        self,
        *,
        log_file: _LogFile,
        mailbox: asyncio.Queue[object],
        session_id: uuid.UUID,
        instructions: str | None,
        cwd: Path | None,
        runner: CommandRunner | None,
        git_timeout_seconds: float,
        fsync: bool,
    ) -> None:
        self._log_file = log_file
        self._mailbox = mailbox
        self._session_id = session_id
        self._instructions = instructions
        self._cwd = cwd
        self._runner = runner
        self._git_timeout_seconds = git_timeout_seconds
        self._fsync = fsync

    async def run(self) -> None:
        try:
            if not await self._write_header():
                return
            while True:
                line = await self._mailbox.get()
                if line is _SHUTDOWN:
                    return
                try:
                    await self._write(line)
                except (OSError, ValueError) as exc:
                    logger.warning("rollout writer: failed to write line: %s", exc)
                    return
        finally:
            self._close()

    async def _write_header(self) -> bool:
        git = None
        if self._cwd is not None:
            git = await collect_git_info(
                self._cwd,
                runner=self._runner,
                timeout_seconds=self._git_timeout_seconds,
            )

        meta = SessionMeta(
            id=str(self._session_id),
            timestamp=format_session_timestamp(self._log_file.started_at),
            instructions=self._instructions,
            git=git,
        )
        try:
            await self._write(meta.to_json_line())
        except (OSError, ValueError) as exc:
            logger.warning("rollout writer: failed to write SessionMeta: %s", exc)
            return False
        return True

    async def _write(self, line: str) -> None:
        pending = asyncio.ensure_future(
            asyncio.to_thread(_write_line, self._log_file.handle, line, self._fsync)
        )
        try:
            await asyncio.shield(pending)
        except asyncio.CancelledError:
            # The handle is closed on exit; the worker thread must be done with it.
            await asyncio.wait({pending})
            if pending.exception() is not None:
                logger.warning(
                    "rollout writer: failed to write line: %s", pending.exception()
                )
            raise

    def _close(self) -> None:
        try:
            self._log_file.handle.close()
        except OSError as exc:
            logger.warning("rollout writer: failed to close %s: %s", self._log_file.path, exc)


__all__ = [
    "DEFAULT_MAILBOX_CAPACITY",
    "RolloutRecorder",
    "is_persisted",
    "rollout_filename",
]

"""Presentation sinks that receive published outline snapshots.

A sink treats every publication as a full replacement of that buffer's
outline, never as a diff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from .models import OutlineSnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class OutlineSink(Protocol):
    """Receiver of accepted outline snapshots.

    publish() may be a plain method or a coroutine function. The controller
    never calls it concurrently.
    """

    def publish(self, snapshot: OutlineSnapshot) -> None | Awaitable[None]: ...

    def clear(self, uri: str) -> None: ...


class SnapshotStore:
    """In-memory sink keeping the latest snapshot per buffer.

    Callers can await a specific generation with wait_for(), which is how the
    MCP tools return the outline produced by the edit they just submitted.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, OutlineSnapshot] = {}
        self._condition = asyncio.Condition()
        self._publish_count = 0

    async def publish(self, snapshot: OutlineSnapshot) -> None:
        """Replace the stored snapshot for snapshot.uri and wake waiters."""
        async with self._condition:
            self._snapshots[snapshot.uri] = snapshot
            self._publish_count += 1
            self._condition.notify_all()
        logger.debug(
            f"Stored outline for {snapshot.uri} (generation {snapshot.generation}, "
            f"{len(snapshot.roots)} roots)"
        )

    def clear(self, uri: str) -> None:
        """Forget the snapshot for a closed buffer."""
        self._snapshots.pop(uri, None)

    def get(self, uri: str) -> OutlineSnapshot | None:
        """Latest snapshot for a buffer, or None if none was published."""
        return self._snapshots.get(uri)

    def uris(self) -> list[str]:
        """Buffers that currently have a snapshot."""
        return sorted(self._snapshots)

    @property
    def publish_count(self) -> int:
        return self._publish_count

    async def wait_for(
        self, uri: str, generation: int, timeout: float | None = None
    ) -> OutlineSnapshot | None:
        """Wait until a snapshot with at least `generation` exists for uri.

        Args:
            uri: Buffer identity
            generation: Minimum generation to wait for
            timeout: Seconds to wait (None waits indefinitely)

        Returns:
            The snapshot, or None on timeout
        """

        def _ready() -> bool:
            snapshot = self._snapshots.get(uri)
            return snapshot is not None and snapshot.generation >= generation

        async def _wait() -> None:
            async with self._condition:
                await self._condition.wait_for(_ready)

        try:
            await asyncio.wait_for(_wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(f"Timed out waiting for outline of {uri} generation {generation}")
            return None
        return self._snapshots.get(uri)


__all__ = ["OutlineSink", "SnapshotStore"]

"""Synchronization controller: keeps one buffer's outline current.

Every focus or edit event bumps the buffer's generation and launches a new
extraction task. Extractions are never cancelled when superseded; instead a
completed extraction is accepted only if its generation is still the last one
issued for the active buffer. This gives last-issued-wins ordering even when
the symbol provider answers out of order.

State per controller:
    idle          no active buffer
    extracting    at least one extraction for the active buffer is pending
    has_snapshot  the latest issued generation has been accepted and published

Generation counters are kept per buffer identity for the lifetime of the
controller, including across close/reopen, so a late result from before a
close can never match a generation issued after it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any

from .annotations import scan_annotations
from .classifier import classify_symbols, coerce_symbols
from .config import OutlineConfig
from .events import BufferEvent, BufferEvents, BufferEventType, Subscription
from .exceptions import ProviderUnavailableError
from .languages import comment_tokens_for, is_supported
from .merger import merge_outline
from .models import ExtractionRequest, OutlineSnapshot, StructureNode, TextBuffer
from .providers import SymbolProvider
from .sinks import OutlineSink

logger = logging.getLogger(__name__)


class OutlineState(str, Enum):
    """Controller lifecycle states."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    HAS_SNAPSHOT = "has_snapshot"


async def _collect_symbols(
    buffer: TextBuffer, provider: SymbolProvider, config: OutlineConfig
) -> list[StructureNode]:
    try:
        raw = provider.get_symbols(buffer.uri, buffer.language_id, buffer.content)
        if inspect.isawaitable(raw):
            raw = await raw
    except ProviderUnavailableError as e:
        logger.warning(f"{e}; continuing without symbols")
        return []
    except Exception as e:
        logger.warning(
            f"Symbol provider failed for {buffer.uri}: {type(e).__name__}: {e}", exc_info=True
        )
        return []

    return classify_symbols(
        coerce_symbols(raw),
        max_depth=config.max_symbol_depth,
        dropped_children=config.dropped_children,
    )


async def _collect_annotations(buffer: TextBuffer) -> list[StructureNode]:
    try:
        return scan_annotations(buffer.content, comment_tokens_for(buffer.language_id))
    except Exception as e:
        logger.warning(f"Annotation scan failed for {buffer.uri}: {e}", exc_info=True)
        return []


async def extract_outline(
    buffer: TextBuffer, provider: SymbolProvider, config: OutlineConfig | None = None
) -> list[StructureNode]:
    """Run one full extraction: provider + classifier, scanner, merger.

    Unsupported languages short-circuit to an empty outline without calling
    the provider. Provider or scanner failures degrade their half of the
    outline to empty.

    Args:
        buffer: Buffer snapshot to extract from
        provider: Symbol provider to query
        config: Engine configuration (default: OutlineConfig())

    Returns:
        Ordered root nodes
    """
    config = config or OutlineConfig()
    if not is_supported(buffer.language_id, config.language_policy):
        logger.debug(
            f"Language '{buffer.language_id}' not supported, empty outline for {buffer.uri}"
        )
        return []

    symbols, annotations = await asyncio.gather(
        _collect_symbols(buffer, provider, config),
        _collect_annotations(buffer),
    )
    return merge_outline(symbols, annotations)


class OutlineController:
    """Owns the active buffer's outline and republishes it on every change.

    Architecture:
    - Event handlers are synchronous and only schedule work
    - Each extraction runs as its own task on the running event loop
    - Acceptance is gated on generation, publication is serialized

    Usage:
        controller = OutlineController(DefaultSymbolProvider(), SnapshotStore())
        controller.on_active_buffer_changed("file:///a.ts", text, "typescript")
        controller.on_buffer_edited("file:///a.ts", new_text)
        await controller.wait_idle()
    """

    def __init__(
        self,
        provider: SymbolProvider,
        sink: OutlineSink,
        config: OutlineConfig | None = None,
    ):
        self._provider = provider
        self._sink = sink
        self._config = config or OutlineConfig()

        self._buffer: TextBuffer | None = None
        self._snapshot: OutlineSnapshot | None = None
        self._state = OutlineState.IDLE
        self._generations: dict[str, int] = {}

        self._tasks: set[asyncio.Task[None]] = set()
        self._publish_lock = asyncio.Lock()
        self._subscriptions: list[Subscription] = []
        self._stats = {
            "issued": 0,
            "accepted": 0,
            "discarded": 0,
            "publish_failures": 0,
        }

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> OutlineState:
        return self._state

    @property
    def config(self) -> OutlineConfig:
        return self._config

    @property
    def current_uri(self) -> str | None:
        return self._buffer.uri if self._buffer else None

    @property
    def snapshot(self) -> OutlineSnapshot | None:
        """Latest accepted snapshot for the active buffer."""
        return self._snapshot

    def generation_for(self, uri: str) -> int:
        """Last generation issued for a buffer (0 if none)."""
        return self._generations.get(uri, 0)

    def get_stats(self) -> dict[str, int]:
        """Get extraction statistics."""
        return {**self._stats, "pending": len(self._tasks)}

    # -------------------------------------------------------------------------
    # Inbound events
    # -------------------------------------------------------------------------

    def on_active_buffer_changed(
        self, uri: str, content: str, language_id: str
    ) -> ExtractionRequest:
        """A buffer gained focus. Replaces the active buffer and re-extracts."""
        if self._buffer is not None and self._buffer.uri != uri:
            logger.debug(f"Active buffer changed: {self._buffer.uri} -> {uri}")
            self._snapshot = None
        self._buffer = TextBuffer(uri=uri, language_id=language_id, content=content)
        return self._issue()

    def on_buffer_edited(self, uri: str, content: str) -> ExtractionRequest | None:
        """The active buffer's content changed. Edits to other buffers are ignored."""
        if self._buffer is None or self._buffer.uri != uri:
            logger.debug(f"Ignoring edit for inactive buffer {uri}")
            return None
        self._buffer = self._buffer.model_copy(update={"content": content})
        return self._issue()

    def on_buffer_closed(self, uri: str) -> None:
        """A buffer was closed. Its outline is dropped whether or not it is active."""
        if self._buffer is not None and self._buffer.uri == uri:
            self._release()
        else:
            self._clear_sink(uri)

    def on_editor_lost_focus(self) -> None:
        """No buffer is active any more."""
        if self._buffer is not None:
            self._release()

    def refresh(self) -> ExtractionRequest | None:
        """Re-extract the active buffer without a content change."""
        if self._buffer is None:
            return None
        return self._issue()

    def handle_event(self, event: BufferEvent) -> None:
        """Dispatch a BufferEvent to the matching handler."""
        if event.type == BufferEventType.ACTIVE_CHANGED:
            if event.uri is None or event.content is None:
                logger.warning("Ignoring active_changed event without uri/content")
                return
            self.on_active_buffer_changed(event.uri, event.content, event.language_id or "")
        elif event.type == BufferEventType.EDITED:
            if event.uri is None or event.content is None:
                logger.warning("Ignoring edited event without uri/content")
                return
            self.on_buffer_edited(event.uri, event.content)
        elif event.type == BufferEventType.CLOSED:
            if event.uri is not None:
                self.on_buffer_closed(event.uri)
        elif event.type == BufferEventType.FOCUS_LOST:
            self.on_editor_lost_focus()

    # -------------------------------------------------------------------------
    # Subscription lifecycle
    # -------------------------------------------------------------------------

    def attach(self, events: BufferEvents) -> Subscription:
        """Subscribe to an event source; the handle is disposed by detach()."""
        subscription = events.subscribe(self.handle_event)
        self._subscriptions.append(subscription)
        return subscription

    def detach(self) -> None:
        """Dispose all subscriptions taken by attach()."""
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()

    async def wait_idle(self) -> None:
        """Wait until no extraction task is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Detach, cancel outstanding extractions and release the buffer."""
        self.detach()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._buffer = None
        self._snapshot = None
        self._state = OutlineState.IDLE
        logger.info(
            f"OutlineController closed. Stats: {self._stats['issued']} issued, "
            f"{self._stats['accepted']} accepted, {self._stats['discarded']} discarded"
        )

    # -------------------------------------------------------------------------
    # Extraction pipeline
    # -------------------------------------------------------------------------

    def _issue(self) -> ExtractionRequest:
        assert self._buffer is not None
        uri = self._buffer.uri
        generation = self._generations.get(uri, 0) + 1
        self._generations[uri] = generation

        request = ExtractionRequest(buffer=self._buffer, generation=generation)
        self._state = OutlineState.EXTRACTING
        self._stats["issued"] += 1

        task = asyncio.get_running_loop().create_task(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Issued extraction for {uri} (generation {generation})")
        return request

    def _is_current(self, request: ExtractionRequest) -> bool:
        return (
            self._buffer is not None
            and self._buffer.uri == request.uri
            and self._generations.get(request.uri) == request.generation
        )

    async def _run(self, request: ExtractionRequest) -> None:
        roots = await extract_outline(request.buffer, self._provider, self._config)
        await self._complete(request, roots)

    async def _complete(self, request: ExtractionRequest, roots: list[StructureNode]) -> None:
        if not self._is_current(request):
            self._stats["discarded"] += 1
            logger.debug(
                f"Discarding stale outline for {request.uri} (generation {request.generation}, "
                f"latest {self._generations.get(request.uri, 0)})"
            )
            return

        snapshot = OutlineSnapshot(
            roots=tuple(roots), generation=request.generation, uri=request.uri
        )
        self._snapshot = snapshot
        self._state = OutlineState.HAS_SNAPSHOT
        self._stats["accepted"] += 1

        async with self._publish_lock:
            # Superseded or released while waiting for an earlier publication
            if self._snapshot is not snapshot:
                return
            await self._publish(snapshot)

    async def _publish(self, snapshot: OutlineSnapshot) -> None:
        try:
            result: Any = self._sink.publish(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._stats["publish_failures"] += 1
            logger.error(f"Outline sink failed for {snapshot.uri}: {e}", exc_info=True)
            return
        logger.info(
            f"Published outline for {snapshot.uri} (generation {snapshot.generation}, "
            f"{len(snapshot.roots)} roots)"
        )

    def _release(self) -> None:
        assert self._buffer is not None
        uri = self._buffer.uri
        self._buffer = None
        self._snapshot = None
        self._state = OutlineState.IDLE
        self._clear_sink(uri)
        logger.debug(f"Released buffer {uri}")

    def _clear_sink(self, uri: str) -> None:
        try:
            self._sink.clear(uri)
        except Exception as e:
            logger.error(f"Outline sink failed to clear {uri}: {e}", exc_info=True)


__all__ = ["OutlineController", "OutlineState", "extract_outline"]

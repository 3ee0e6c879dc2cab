"""MCP tool implementations for buffer outlines.

This module exposes the outline engine over the MCP protocol. Tools that
change buffer state fire BufferEvents at the controller and then wait for
the snapshot of the generation they caused (or a newer one).

Following official Anthropic MCP Python SDK patterns:
- Tool functions decorated with @mcp.tool()
- Flat parameter signatures with Annotated types for validation
- Async functions for all tools
- Clear docstrings (become tool descriptions)
"""

import json
from pathlib import Path
from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from mcp.types import ToolAnnotations
from pydantic import Field

from .context import AppContext, AppContextType
from .engine import (
    BufferEvent,
    BufferEventType,
    OutlineSnapshot,
    TextBuffer,
    extract_outline,
    supported_languages,
)
from .engine.languages import language_for_extension
from .formatting import (
    format_buffer_not_found_error,
    format_outline_markdown,
    snapshot_to_dict,
)
from .server import mcp

OutputFormat = Literal["json", "markdown"]


def _infer_language(uri: str) -> str:
    path = urlparse(uri).path or uri
    return language_for_extension(Path(path).suffix) or "plaintext"


def _render(snapshot: OutlineSnapshot, format: OutputFormat) -> dict[str, Any] | str:  # noqa: A002
    if format == "markdown":
        return format_outline_markdown(snapshot)
    return snapshot_to_dict(snapshot)


async def _await_outline(
    app_ctx: AppContext, uri: str, format: OutputFormat  # noqa: A002
) -> dict[str, Any] | str:
    generation = app_ctx.controller.generation_for(uri)
    snapshot = await app_ctx.store.wait_for(uri, generation, timeout=app_ctx.wait_timeout)
    if snapshot is None:
        return {
            "status": "pending",
            "uri": uri,
            "generation": generation,
            "message": (
                f"Outline not ready after {app_ctx.wait_timeout}s. "
                "Use get_outline() to fetch it later."
            ),
        }
    return _render(snapshot, format)


# =============================================================================
# MCP Tools (following official SDK decorator pattern)
# =============================================================================


@mcp.tool(
    annotations=ToolAnnotations(
        title="Open Buffer",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def open_buffer(
    uri: Annotated[
        str,
        Field(description="Buffer identity (file URI or path)", min_length=1, max_length=4096),
    ],
    content: Annotated[
        str,
        Field(description="Full buffer content"),
    ],
    language_id: Annotated[
        str | None,
        Field(description="Language identifier (default: inferred from file extension)"),
    ] = None,
    format: Annotated[  # noqa: A002
        OutputFormat,
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """Make a buffer the active one and return its outline. Required: uri, content."""
    app_ctx = ctx.request_context.lifespan_context

    app_ctx.events.fire(
        BufferEvent(
            type=BufferEventType.ACTIVE_CHANGED,
            uri=uri,
            content=content,
            language_id=language_id or _infer_language(uri),
        )
    )
    return await _await_outline(app_ctx, uri, format)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Edit Buffer",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,  # Every edit issues a new generation
        openWorldHint=False,
    )
)
async def edit_buffer(
    uri: Annotated[
        str,
        Field(description="Identity of the active buffer", min_length=1, max_length=4096),
    ],
    content: Annotated[
        str,
        Field(description="Full new buffer content"),
    ],
    format: Annotated[  # noqa: A002
        OutputFormat,
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """Replace the active buffer's content and return the new outline. Required: uri, content."""
    app_ctx = ctx.request_context.lifespan_context

    if app_ctx.controller.current_uri != uri:
        return {
            "status": "failure",
            "error": (
                f"Buffer '{uri}' is not the active buffer "
                f"(active: {app_ctx.controller.current_uri or 'none'}). "
                "Use open_buffer() first."
            ),
        }

    app_ctx.events.fire(BufferEvent(type=BufferEventType.EDITED, uri=uri, content=content))
    return await _await_outline(app_ctx, uri, format)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Close Buffer",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def close_buffer(
    uri: Annotated[
        str,
        Field(description="Buffer identity to close", min_length=1, max_length=4096),
    ],
    *,
    ctx: AppContextType,
) -> dict[str, Any]:
    """Close a buffer and drop its outline. Required: uri."""
    app_ctx = ctx.request_context.lifespan_context

    was_active = app_ctx.controller.current_uri == uri
    app_ctx.events.fire(BufferEvent(type=BufferEventType.CLOSED, uri=uri))
    return {"status": "success", "uri": uri, "was_active": was_active}


@mcp.tool(
    annotations=ToolAnnotations(
        title="Get Outline",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def get_outline(
    uri: Annotated[
        str,
        Field(description="Buffer identity", min_length=1, max_length=4096),
    ],
    format: Annotated[  # noqa: A002
        OutputFormat,
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """Get the latest published outline of a buffer. Required: uri. Optional: format."""
    app_ctx = ctx.request_context.lifespan_context

    snapshot = app_ctx.store.get(uri)
    if snapshot is None:
        return {
            "status": "failure",
            "error": format_buffer_not_found_error(uri, app_ctx.store.uris()),
        }
    return _render(snapshot, format)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Outline File",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def outline_file(
    path: Annotated[
        str,
        Field(description="Path of a source file to outline", min_length=1, max_length=4096),
    ],
    format: Annotated[  # noqa: A002
        OutputFormat,
        Field(description="Output format"),
    ] = "json",
    *,
    ctx: AppContextType,
) -> dict[str, Any] | str:
    """One-shot outline of a file on disk (does not change the active buffer). Required: path."""
    app_ctx = ctx.request_context.lifespan_context

    file_path = Path(path).expanduser()
    try:
        content = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        return {"status": "failure", "error": f"Cannot read '{path}': {e}"}

    buffer = TextBuffer(
        uri=str(file_path),
        language_id=language_for_extension(file_path.suffix) or "plaintext",
        content=content,
    )
    roots = await extract_outline(buffer, app_ctx.provider, app_ctx.config)
    return _render(OutlineSnapshot(roots=tuple(roots), generation=1, uri=buffer.uri), format)


@mcp.tool(
    annotations=ToolAnnotations(
        title="List Supported Languages",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def list_supported_languages(
    *,
    ctx: AppContextType,
) -> str:
    """List language identifiers that get an outline under the active policy."""
    app_ctx = ctx.request_context.lifespan_context
    policy = app_ctx.config.language_policy
    return json.dumps(
        {"policy": policy.value, "languages": sorted(supported_languages(policy))}
    )


__all__ = [
    "close_buffer",
    "edit_buffer",
    "get_outline",
    "list_supported_languages",
    "open_buffer",
    "outline_file",
]

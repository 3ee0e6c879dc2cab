"""FastMCP server initialization for outline-mcp.

This module initializes the MCP server and manages shared resources via lifespan context.
All tool implementations are in the tools module.

Following the official Anthropic Python SDK patterns:
- Lifespan context manager for resource initialization and cleanup
- Context injection for tool access to shared resources
- FastMCP server with stdio transport
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from . import __version__
from .context import AppContext, AppContextType
from .engine import (
    BufferEvents,
    DefaultSymbolProvider,
    OutlineConfig,
    OutlineController,
    SnapshotStore,
    supported_languages,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Shared Resources and Lifespan Management
# =============================================================================


def get_wait_timeout() -> float:
    """Get tool wait timeout from environment.

    Reads OUTLINE_WAIT_TIMEOUT environment variable.
    Default: 10 seconds, Valid range: 0.1-300 (clamped automatically)

    Returns:
        Seconds a tool waits for the outline of the event it fired
    """
    try:
        timeout = float(os.getenv("OUTLINE_WAIT_TIMEOUT", "10"))
        return max(0.1, min(300.0, timeout))
    except ValueError:
        return 10.0


def create_app_context(config: OutlineConfig | None = None) -> AppContext:
    """Build the shared resources: provider, store, controller, event source.

    Args:
        config: Engine configuration (default: read from environment)

    Returns:
        AppContext with the controller attached to the event source
    """
    config = config or OutlineConfig.from_env()
    provider = DefaultSymbolProvider()
    store = SnapshotStore()
    events = BufferEvents()
    controller = OutlineController(provider, store, config)
    controller.attach(events)

    return AppContext(
        controller=controller,
        store=store,
        events=events,
        provider=provider,
        config=config,
        wait_timeout=get_wait_timeout(),
    )


@asynccontextmanager
async def app_lifespan(_server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle with resource initialization and cleanup.

    Environment Variables:
        OUTLINE_LANGUAGE_POLICY: minimal | extended (default: extended)
        OUTLINE_MAX_SYMBOL_DEPTH: classifier depth bound (default: 32)
        OUTLINE_DROPPED_CHILDREN: discard | promote (default: discard)
        OUTLINE_WAIT_TIMEOUT: seconds tools wait for an outline (default: 10)

    Args:
        _server: FastMCP server instance (unused, required by FastMCP signature)

    Yields:
        AppContext with initialized resources
    """
    logger.info("Initializing MCP server resources...")

    app_context = create_app_context()
    config = app_context.config

    logger.info(
        f"Outline config: policy={config.language_policy.value}, "
        f"max_symbol_depth={config.max_symbol_depth}, "
        f"dropped_children={config.dropped_children.value}"
    )
    logger.info(
        f"Supported languages: {', '.join(sorted(supported_languages(config.language_policy)))}"
    )

    try:
        yield app_context
    finally:
        logger.info("Shutting down MCP server...")
        await app_context.controller.close()


# Initialize MCP server with lifespan management
# Following Python MCP naming convention: {service}_mcp
mcp = FastMCP("outline_mcp", lifespan=app_lifespan)


# =============================================================================
# Server Entry Point
# =============================================================================


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def get_log_level() -> int:
    """Get log level from environment.

    Reads OUTLINE_LOG_LEVEL (a standard level name, any case).
    Unknown names fall back to INFO with a warning on stderr.

    Returns:
        Numeric logging level
    """
    name = os.getenv("OUTLINE_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    print(f"outline-mcp: unknown OUTLINE_LOG_LEVEL '{name}', using INFO", file=sys.stderr)
    return logging.INFO


def configure_logging() -> int:
    """Send log records to stderr; stdout carries the MCP stdio stream."""
    level = get_log_level()
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    return level


def main() -> None:
    """Run the outline server over stdio (``outline-mcp`` / ``python -m outline_mcp``)."""
    configure_logging()
    logger.info(f"Starting outline-mcp {__version__} on stdio")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping outline-mcp")
    except Exception as e:
        logger.exception(f"outline-mcp stopped on error: {e}")
        sys.exit(1)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "mcp",
    "main",
    "AppContext",
    "AppContextType",
    "create_app_context",
    "configure_logging",
    "get_log_level",
    "get_wait_timeout",
]

"""Shared context types for MCP server.

This module contains context types used across server and tools modules,
separated to avoid circular imports.
"""

from dataclasses import dataclass

from mcp.server.fastmcp import Context
from mcp.server.session import ServerSession

from .engine import BufferEvents, OutlineConfig, OutlineController, SnapshotStore, SymbolProvider


@dataclass
class AppContext:
    """Application context containing shared resources for MCP tools.

    Created during server startup and made available to all tools via the
    Context parameter. Tools drive the controller by firing buffer events and
    read published outlines from the snapshot store.
    """

    controller: OutlineController
    store: SnapshotStore
    events: BufferEvents
    provider: SymbolProvider
    config: OutlineConfig
    wait_timeout: float = 10.0  # Seconds a tool waits for its outline


# Type alias for MCP tool context parameter
AppContextType = Context[ServerSession, AppContext]


__all__ = ["AppContext", "AppContextType"]

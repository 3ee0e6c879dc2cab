"""outline-mcp: structure outlines for open text buffers, served over MCP.

The engine (outline_mcp.engine) extracts a typed, hierarchical outline from
a buffer's symbols and comment annotations and keeps it synchronized under
concurrent edit and focus events. The MCP server exposes it as tools.
"""

__version__ = "0.1.0"

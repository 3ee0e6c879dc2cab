"""Entry point for outline-mcp MCP server.

Orchestrates the import sequence to ensure tool decorators are registered
before the server starts:
1. Import tools module (triggers @mcp.tool() decorator registration)
2. Import server module (provides FastMCP instance and entry point)
3. Call server.main() to start the MCP server
"""


def main() -> None:
    """Entry point for direct execution and the outline-mcp console script."""
    # Import tools first to register @mcp.tool() decorators
    from . import tools  # noqa: F401 - imported for side effects (decorator registration)

    from .server import main as server_main

    server_main()


if __name__ == "__main__":
    main()

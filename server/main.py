# server/main.py
from fastmcp import FastMCP
from app.di import build_container
from app.logging import configure_logging
from server.registry import build_tool_registry, register_into_fastmcp

def create_app() -> FastMCP:
    """
    Build DI container, create FastMCP host, and register tools.
    Keep the server (protocol) separate from tool/service logic.
    """
    container = build_container()
    configure_logging(container.settings.LOG_LEVEL)

    mcp = FastMCP(container.settings.MCP_SERVER_NAME, version=container.settings.MCP_SERVER_VERSION)

    # Register tools (thin adapters)
    register_into_fastmcp(mcp, build_tool_registry(container))

    return mcp


def main() -> None:
    app = create_app()
    # stdio transport: client (agent/IDE) launches this process and speaks JSON-RPC on stdin/stdout
    app.run(transport="stdio")


if __name__ == "__main__":
    main()

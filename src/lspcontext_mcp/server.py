"""MCP server for lspcontext-mcp."""

import asyncio
import logging
import sys
from typing import Optional

from mcp.server import Server
from mcp.types import Tool, TextContent

from .config import ServerConfig
from .errors import ConfigError, LSPContextError
from .lsp import LSPClient, select_warmup
from .lsp.backend import Backend
from .tools.read_definition import read_definition
from .tools.find_references import find_references

logger = logging.getLogger(__name__)


# Create server
server = Server("lspcontext-mcp")

# Set once the language server is up
_backend: Optional[Backend] = None
_config: Optional[ServerConfig] = None


def configure(backend: Optional[Backend], config: Optional[ServerConfig]) -> None:
    """Bind the backend and config used by tool calls."""
    global _backend, _config
    _backend = backend
    _config = config


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    return [
        Tool(
            name="definition",
            description="Read the source code definition of a symbol (function, type, constant, etc.) from the codebase. Returns the full implementation code for the symbol. Qualified names such as 'MyClass::method' are supported. Every match of an ambiguous name is returned.",
            inputSchema={
                "type": "object",
                "properties": {
                    "symbolName": {
                        "type": "string",
                        "description": "The name of the symbol whose definition you want to find (e.g. 'mypackage.MyFunction', 'MyType', 'MyClass::method')"
                    }
                },
                "required": ["symbolName"]
            }
        ),
        Tool(
            name="references",
            description="Find all usages and references of a symbol throughout the codebase. Returns each referencing file with the reference positions and surrounding source lines.",
            inputSchema={
                "type": "object",
                "properties": {
                    "symbolName": {
                        "type": "string",
                        "description": "The name of the symbol to search for (e.g. 'mypackage.MyFunction', 'MyType', 'MyClass::method')"
                    }
                },
                "required": ["symbolName"]
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    if _backend is None or _config is None:
        return [TextContent(type="text", text="Error: language server is not running")]

    try:
        if name == "definition":
            result = await read_definition(_backend, arguments["symbolName"])
        elif name == "references":
            result = await find_references(
                _backend,
                arguments["symbolName"],
                context_lines=_config.context_lines,
            )
        else:
            result = f"Error: Unknown tool: {name}"

        return [TextContent(type="text", text=result)]

    except LSPContextError as e:
        logger.error("Tool %s failed: %s", name, e)
        return [TextContent(type="text", text=f"Error: {e}")]
    except Exception as e:
        logger.exception("Tool %s crashed", name)
        return [TextContent(type="text", text=f"Error: {e}")]


async def run_server(config: ServerConfig):
    """Start the language server, warm it up, and serve MCP over stdio."""
    from mcp.server.stdio import stdio_server

    client = LSPClient(config.lsp_command, config.workspace_dir)
    await client.start()

    try:
        await client.initialize()

        if config.warmup:
            await select_warmup(config.lsp_command).warm_up(client, config.workspace_dir)

        configure(client, config)

        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    finally:
        configure(None, None)
        await client.shutdown()


def setup_logging(level: str) -> None:
    """Log to stderr; stdout carries the MCP stream."""
    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(
        level=numeric_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Main entry point."""
    try:
        config = ServerConfig.from_env()
    except ConfigError as e:
        sys.exit(f"Error: {e}")
    setup_logging(config.log_level)
    logger.info("Workspace: %s, language server: %s", config.workspace_dir, " ".join(config.lsp_command))
    asyncio.run(run_server(config))


if __name__ == "__main__":
    main()

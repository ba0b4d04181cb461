"""MCP server wiring for gitlab-mcp.

The server exposes exactly two entry points: `tools/list` and `tools/call`.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

try:
    from mcp.server import Server
    from mcp.types import CallToolRequest, CallToolResult, ServerResult, Tool
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .config import load_config_from_env
from .dispatcher import Dispatcher
from .errors import SafeError
from .operations import list_operations

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

server = Server("gitlab-mcp", version=__version__)

_DISPATCHER: Dispatcher | None = None


def initialize_dispatcher_from_env() -> Dispatcher:
    """Build and cache the dispatcher from environment configuration.

    Called at server startup (fail-fast), and used lazily by `call_tool`.
    """
    global _DISPATCHER  # pylint: disable=global-statement
    if _DISPATCHER is None:
        _DISPATCHER = Dispatcher(config=load_config_from_env())
    return _DISPATCHER


def build_tools() -> list[Tool]:
    return [
        Tool(name=op.name, description=op.description, inputSchema=op.input_schema)
        for op in list_operations()
    ]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    tools = build_tools()
    logger.info("Listed %s tools", len(tools))
    return tools


async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
    """Execute a tool and return an MCP `CallToolResult`.

    Protocol faults propagate as `McpError`.
    """
    dispatcher = initialize_dispatcher_from_env()
    result = await dispatcher.invoke(name, arguments if arguments is not None else {})
    return result.to_call_tool_result()


async def _handle_call_tool(req: CallToolRequest) -> ServerResult:
    # Registered directly so McpError reaches the JSON-RPC layer as an error response
    # instead of being folded into an isError tool result.
    return ServerResult(await call_tool(req.params.name, req.params.arguments))


server.request_handlers[CallToolRequest] = _handle_call_tool


async def run_server() -> None:
    """Run the server over stdio."""
    # Fail fast on missing token / invalid host configuration.
    try:
        dispatcher = initialize_dispatcher_from_env()
    except SafeError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    logger.info("gitlab-mcp %s running on stdio, connected to %s", __version__, dispatcher.config.api_url)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test: every catalog entry renders as a valid MCP Tool."""
    tools = build_tools()
    names = [tool.name for tool in tools]
    if len(names) != len(set(names)):
        raise RuntimeError("Duplicate tool names in catalog")
    for op, tool in zip(list_operations(), tools):
        if set(tool.inputSchema.get("required", [])) != op.required_fields:
            raise RuntimeError(f"Schema/validator mismatch for {op.name}")
    print(f"gitlab-mcp self-test ok: {len(tools)} tools", file=sys.stderr)

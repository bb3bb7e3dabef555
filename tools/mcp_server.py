# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server & Tool Registry
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds the fixed list of X tools around ONE client handle and attaches
#   each of them to a FastMCP server under its name, description, input
#   schema and output schema.
#
# HOW IT WORKS (the flow):
#   1. The calling agent invokes a tool by name (e.g., "search_tweets")
#   2. FastMCP validates the arguments against execute()'s signature
#   3. The registered wrapper awaits tool.execute(...)
#   4a. Success → the payload dict is returned; FastMCP sends it both as
#       JSON text and as structuredContent
#   4b. Failure → the envelope JSON is raised as ToolError; FastMCP sends it
#       as the only text content with isError: true
#
# REGISTRATION IS ONE-SHOT:
#   register_tools() is called once at startup.  A second call on the same
#   server registers everything again; a duplicate name inside one call is a
#   programming error and raises ValueError.
# =============================================================================

import inspect
import json
import logging
import sys
from typing import Any, Optional, Sequence

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from core.x_client import XApi
from tools.contract import XTool
from tools.x_tools import (
    GetHomeTimelineTool,
    GetUserInfoTool,
    GetUserTweetsTool,
    LikeTweetTool,
    PostTweetTool,
    RetweetTool,
    SearchTweetsTool,
)

SERVER_NAME = "x-mcp-server"

logger = logging.getLogger(__name__)

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR: STDOUT is the MCP stdio transport, and anything printed
# there would corrupt the JSON-RPC stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for successful responses
#     - RED for failure envelopes
#     - YELLOW for intermediate status messages
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str, is_error: bool) -> None:
    """Log the compact response JSON in GREEN (or RED for failures)."""
    color = _RED if is_error else _GREEN
    compact = json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)
    logger.info(f"{color}  ← {tool_name} response: {compact}{_RESET}")


# =============================================================================
# Registry
# =============================================================================
def build_tools(client: XApi) -> list[XTool]:
    """The fixed, ordered set of tools, each bound to `client`."""
    return [
        PostTweetTool(client),
        GetHomeTimelineTool(client),
        GetUserTweetsTool(client),
        SearchTweetsTool(client),
        GetUserInfoTool(client),
        LikeTweetTool(client),
        RetweetTool(client),
    ]


def _make_handler(tool: XTool):
    """Wrap tool.execute in a coroutine FastMCP can introspect and call.

    The wrapper advertises execute()'s exact parameters, so FastMCP derives
    the same input schema and validates before the tool runs.
    """

    async def handler(**kwargs: Any) -> dict[str, Any]:
        _log_request(tool.name, **kwargs)
        response = await tool.execute(**kwargs)
        _log_response(tool.name, response.text, response.is_error)
        if response.is_error:
            raise ToolError(response.text)
        return response.structured_content

    signature = inspect.signature(tool.execute)
    handler.__signature__ = signature.replace(return_annotation=dict[str, Any])
    handler.__annotations__ = {**tool.parameters, "return": dict[str, Any]}
    handler.__name__ = tool.name
    handler.__doc__ = tool.description
    return handler


def register_tools(server: Any, client: XApi, tools: Optional[Sequence[XTool]] = None) -> list[XTool]:
    """Register every X tool on `server` and return the registered instances.

    Args:
        server: A FastMCP server (anything exposing FastMCP's tool()).
        client: The authenticated X client shared by all tools.
        tools: Override the tool list (defaults to build_tools(client)).

    Raises:
        ValueError: if two tools share a name.
    """
    tools = list(tools) if tools is not None else build_tools(client)

    seen: set[str] = set()
    for tool in tools:
        if tool.name in seen:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        seen.add(tool.name)

    for tool in tools:
        server.tool(
            _make_handler(tool),
            name=tool.name,
            description=tool.description,
            output_schema=tool.output_json_schema(),
        )
        _log_status(f"Registered tool {tool.name}")

    return tools


def create_server(client: XApi) -> FastMCP:
    """Create the FastMCP server with all X tools registered."""
    server = FastMCP(SERVER_NAME)
    register_tools(server, client)
    return server


# =============================================================================
# Server entry point
# =============================================================================
# python -m tools.mcp_server behaves exactly like main.py.
# =============================================================================
if __name__ == "__main__":
    from main import main

    sys.exit(main())

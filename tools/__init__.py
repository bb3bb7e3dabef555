# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the MCP tools and the FastMCP server that exposes
# them.
#
#   contract.py    the XTool base class every tool implements
#   x_tools.py     the seven tools (post, timelines, search, user, like, RT)
#   mcp_server.py  the registry: builds the tools and attaches them to FastMCP
#
# TOOL CONTRACT QUALITY:
#   Each tool has:
#     - A clear, descriptive name (e.g., "get_user_tweets", not "fetch")
#     - A description the calling agent reads to decide WHEN to call it
#     - Typed, documented parameters (so the agent knows WHAT to pass)
#     - A declared output schema (so the agent knows what it'll GET back)
# =============================================================================

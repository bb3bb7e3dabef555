# =============================================================================
# main.py  —  Entry Point for the X MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py            (or the installed `x-mcp-server` script)
#
# WHAT HAPPENS:
#   1. Loads .env (X_API_KEY, X_API_SECRET, X_ACCESS_TOKEN, ...)
#   2. Configures logging to stderr
#   3. Validates the credentials and builds the tweepy-backed client
#   4. Creates the FastMCP server with all seven tools registered
#   5. Serves MCP over stdio until the client disconnects
#
# CONNECTING FROM AN AGENT:
#   Point any MCP client at this script with stdio transport, e.g.
#     command: "uv", args: ["run", "python", "/abs/path/to/main.py"]
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

from core.settings import ConfigurationError, get_log_level, load_credentials
from core.x_client import TweepyXClient
from tools.mcp_server import SERVER_NAME, configure_logging, create_server

logger = logging.getLogger(__name__)


def main() -> int:
    """Start the X MCP server over stdio. Returns a process exit code."""
    # .env must be loaded before credentials are read from the environment.
    load_dotenv()
    configure_logging(get_log_level())

    try:
        credentials = load_credentials()
    except ConfigurationError as exc:
        logger.error(f"Fatal error initializing server: {exc}")
        return 1

    client = TweepyXClient.from_credentials(credentials)
    server = create_server(client)

    logger.info(f"{SERVER_NAME} starting...")
    server.run()
    return 0


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    sys.exit(main())

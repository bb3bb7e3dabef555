"""
Test suite for the X MCP server.

Modules:
- test_errors: error classification, sanitization and envelopes
- test_media: image/video validation before upload
- test_x_tools: the seven tools against a mocked X client
- test_mcp_server: registry and FastMCP dispatch
- test_x_client: tweepy adapter and error translation
- test_settings: credential loading
"""

# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains everything below the MCP layer: the data models, the
# X API client, media upload checks, configuration, and the error
# classifier that turns any failure into a sanitized response envelope.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The tools/ layer depends on
#   core/, never the other way round.
# =============================================================================

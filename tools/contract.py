# =============================================================================
# tools/contract.py  —  The Tool Contract every X tool implements
# =============================================================================
#
# A tool is an object with:
#   - name            stable dispatch key ("post_tweet")
#   - description     what the calling agent reads to decide WHEN to use it
#   - parameters      argument name -> Annotated type (with pydantic Field
#                     metadata: description, bounds), read off execute()
#   - output_schema   pydantic model describing the success payload
#   - execute(...)    async; always returns a ToolResponse, never raises
#
# The client handle is injected at construction and never replaced.
#
# ARGUMENT VALIDATION:
#   execute()'s signature IS the input schema.  FastMCP builds the JSON
#   schema from it and validates incoming arguments before execute() runs,
#   so execute() only ever sees well-typed, in-bounds values.
# =============================================================================

import inspect
import typing
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from pydantic import BaseModel

from core.models import ToolResponse
from core.x_client import XApi

DEFAULT_COUNT = 10
MAX_COUNT = 100


def effective_count(count: Optional[int]) -> int:
    """Default an omitted count to 10 and cap larger requests at 100."""
    if count is None:
        return DEFAULT_COUNT
    return min(count, MAX_COUNT)


class XTool(ABC):
    """Base class for the MCP tools that act on the configured X account."""

    name: ClassVar[str]
    description: ClassVar[str]
    output_schema: ClassVar[Optional[type[BaseModel]]] = None

    def __init__(self, client: XApi):
        self.client = client

    @property
    def parameters(self) -> dict[str, Any]:
        """Argument name -> declared (Annotated) type of execute()."""
        hints = typing.get_type_hints(type(self).execute, include_extras=True)
        return {name: hints[name] for name in inspect.signature(self.execute).parameters}

    def output_json_schema(self) -> Optional[dict[str, Any]]:
        if self.output_schema is None:
            return None
        return self.output_schema.model_json_schema()

    @abstractmethod
    async def execute(self, *args: Any, **kwargs: Any) -> ToolResponse:
        """Run the tool. Failures come back as an error ToolResponse."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"

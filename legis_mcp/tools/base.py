"""
Shared plumbing for MCP tools: parameter models, result envelopes and
the single place where errors are turned into ``isError`` results.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Type

import structlog
from mcp import types
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..congress_api import CongressApiService
from ..errors import CongressMcpError, ValidationError, describe_error

logger = structlog.get_logger()


@dataclass
class ToolContext:
    """Collaborators handed to every tool handler."""
    api: CongressApiService
    settings: Settings = field(default_factory=Settings)


Handler = Callable[[Any, ToolContext], Awaitable[types.CallToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    params: Type[BaseModel]
    handler: Handler
    action: str  # used in "Failed to <action>: ..." messages

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.params.model_json_schema(),
        )


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def text_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)


def json_result(data: Any) -> types.CallToolResult:
    return text_result(json.dumps(data, indent=2, default=str))


def error_result(action: str, error: BaseException) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"Failed to {action}: {describe_error(error)}")],
        isError=True,
    )


def format_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


async def run_tool(spec: ToolSpec, arguments: Optional[Dict[str, Any]], context: ToolContext) -> types.CallToolResult:
    """Validate arguments, run the handler and convert any failure to an error result"""
    try:
        params = spec.params.model_validate(arguments or {})
    except PydanticValidationError as e:
        error = ValidationError(format_validation_error(e), details=e.errors())
        logger.warning("tool_invalid_arguments", tool=spec.name, error=error.message)
        return error_result(spec.action, error)

    try:
        return await spec.handler(params, context)
    except CongressMcpError as e:
        logger.warning("tool_error", tool=spec.name, kind=e.kind, error=e.message)
        return error_result(spec.action, e)
    except Exception as e:
        logger.exception("tool_failed", tool=spec.name, error=str(e))
        return error_result(spec.action, e)

"""Error types, protocol faults and the API error normalizer.

Three outcomes are possible for a tool call:
- success, rendered as text
- remote rejection (GitLab answered with an error status), returned as data
- protocol fault (`McpError`), for malformed calls and local failures
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, CallToolResult, ErrorData, TextContent

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SafeError(Exception):
    """A host-side error safe to print.

    Used for configuration problems detected at startup. Must never include the token.
    """

    code: str
    message: str
    hint: str | None = None


class GitLabApiError(Exception):
    """GitLab responded with an error status."""

    def __init__(self, *, status_code: int, reason: str, body: Any) -> None:
        super().__init__(f"GitLab request failed with status {status_code}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Normalized outcome of a dispatched call."""

    text: str
    is_error: bool = False

    def to_call_tool_result(self) -> CallToolResult:
        """Render as an MCP `CallToolResult` with a single text item."""
        return CallToolResult(
            content=[TextContent(type="text", text=self.text)],
            isError=self.is_error,
        )


def invalid_params(message: str) -> McpError:
    return McpError(ErrorData(code=INVALID_PARAMS, message=message))


def method_not_found(message: str) -> McpError:
    return McpError(ErrorData(code=METHOD_NOT_FOUND, message=message))


def internal_fault(message: str) -> McpError:
    return McpError(ErrorData(code=INTERNAL_ERROR, message=message))


def format_api_error(tool_name: str, err: GitLabApiError) -> str:
    """Build the caller-visible text for a remote rejection."""
    body = json.dumps(err.body, default=str)
    return f"GitLab API error ({tool_name}): {err.status_code} {err.reason} - {body}"


async def normalize_api_call(tool_name: str, call: Callable[[], Awaitable[T]]) -> T | ToolResult:
    """Run one GitLab call site and normalize its failures.

    Returns the call's payload on success, a `ToolResult` with `is_error=True` when
    GitLab rejected the request, and raises an internal fault for anything else.
    `McpError` raised by local logic passes through unchanged.
    """
    try:
        return await call()
    except GitLabApiError as err:
        message = format_api_error(tool_name, err)
        logger.warning(message)
        return ToolResult(text=message, is_error=True)
    except McpError:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Error calling GitLab API for %s: %s", tool_name, exc)
        detail = str(exc) or type(exc).__name__
        raise internal_fault(f"Unexpected error during GitLab API call ({tool_name}): {detail}") from exc

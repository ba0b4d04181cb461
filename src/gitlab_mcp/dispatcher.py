"""Tool dispatch.

A call moves strictly through validate -> encode -> [resolve namespace] -> send ->
normalize. Malformed calls are rejected before any network access; GitLab error
statuses come back as data; anything else is raised as a protocol fault.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, METHOD_NOT_FOUND

from .audit import FAULTED, REJECTED, REMOTE_ERROR, SUCCEEDED, AuditLogger, build_event, new_correlation_id, target_from_args
from .config import GitLabConfig
from .encoding import EncodedRequest, wire_value
from .errors import ToolResult, internal_fault, method_not_found, normalize_api_call
from .gitlab_client import GitLabClient
from .namespace import JsonRequester, resolve_namespace
from .operations import Operation, get_operation, list_operations
from .schema import ValidatedArguments

logger = logging.getLogger(__name__)


def with_namespace(request: EncodedRequest, namespace_id: int | None) -> EncodedRequest:
    """Return `request` with `namespace_id` added to its body when resolved."""
    if namespace_id is None:
        return request
    body = dict(request.json_body or {})
    body["namespace_id"] = wire_value(namespace_id)
    return dataclasses.replace(request, json_body=body)


class Dispatcher:
    """Routes tool calls to GitLab.

    Holds no per-call state, so concurrent calls may share one instance.
    """

    def __init__(
        self,
        *,
        config: GitLabConfig,
        client: JsonRequester | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self._config = config
        self._client = client if client is not None else GitLabClient(config=config)
        self._audit = audit if audit is not None else AuditLogger()

    @property
    def config(self) -> GitLabConfig:
        return self._config

    def list_operations(self) -> tuple[Operation, ...]:
        return list_operations()

    async def invoke(self, name: str, arguments: Any) -> ToolResult:
        """Execute one tool call.

        Returns a `ToolResult` (with `is_error=True` for GitLab rejections).

        Raises:
            McpError: MethodNotFound, InvalidParams or InternalError.
        """
        correlation_id = new_correlation_id()
        target = target_from_args(arguments)
        start = self._audit.measure_start()
        logger.info("Tool called: %s", name)

        try:
            result = await self._invoke(name, arguments)
        except McpError as err:
            rejected = err.error.code in (INVALID_PARAMS, METHOD_NOT_FOUND)
            self._record(correlation_id, name, target, start, REJECTED if rejected else FAULTED, err.error.message)
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("Tool %s failed: %s", name, exc)
            self._record(correlation_id, name, target, start, FAULTED, "Internal error")
            raise internal_fault(f"Tool execution failed ({name})") from exc

        self._record(correlation_id, name, target, start, REMOTE_ERROR if result.is_error else SUCCEEDED, None)
        return result

    async def _invoke(self, name: str, arguments: Any) -> ToolResult:
        op = get_operation(name)
        if op is None:
            raise method_not_found(f"Unknown tool: {name}")

        validated = op.parse(arguments)
        request = op.encode(validated)

        if op.resolves_namespace:
            resolved = await normalize_api_call(
                f"{op.name} (group search)",
                lambda: self._resolve_namespace(validated),
            )
            if isinstance(resolved, ToolResult):
                return resolved
            request = with_namespace(request, resolved)

        logger.info("Calling GitLab: %s %s", request.method, request.path)
        outcome = await normalize_api_call(op.name, lambda: self._send(op, request))
        if isinstance(outcome, ToolResult):
            return outcome
        return ToolResult(text=json.dumps(outcome, indent=2, default=str))

    async def _resolve_namespace(self, validated: ValidatedArguments) -> int | None:
        return await resolve_namespace(
            self._client,
            group_name=validated.get("group_name"),
            namespace_id=validated.get("namespace_id"),
        )

    async def _send(self, op: Operation, request: EncodedRequest) -> Any:
        data = await self._client.request_json(
            method=request.method,
            path=request.path,
            params=request.params,
            json_body=request.json_body,
        )
        if op.shape is not None:
            return op.shape(data)
        return data

    def _record(
        self,
        correlation_id: str,
        operation: str,
        target: str,
        start: float,
        outcome: str,
        reason: str | None,
    ) -> None:
        self._audit.write_event(
            build_event(
                correlation_id=correlation_id,
                operation=operation,
                target=target,
                outcome=outcome,
                reason=reason,
                duration_ms=self._audit.measure_duration_ms(start),
            )
        )

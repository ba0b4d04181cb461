"""Group name to namespace id resolution for project creation.

Agents usually know a group by name, while GitLab's project creation endpoint wants
a numeric `namespace_id`. Resolution searches top-level groups and requires exactly one
exact match; an ambiguous match is an error, never a best-effort pick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import internal_fault, invalid_params

logger = logging.getLogger(__name__)


class JsonRequester(Protocol):
    async def request_json(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any: ...


@dataclass(frozen=True, slots=True)
class NamespaceCandidate:
    """A group returned by the search step."""

    id: int
    name: str
    path: str
    full_path: str

    def matches(self, wanted: str) -> bool:
        return wanted in (self.name, self.path, self.full_path)


def _candidates(data: Any) -> list[NamespaceCandidate]:
    if not isinstance(data, list):
        raise internal_fault("Unexpected response format from GitLab API")
    out: list[NamespaceCandidate] = []
    for group in data:
        if not isinstance(group, dict):
            raise internal_fault("Unexpected group entry in GitLab API response")
        gid = group.get("id")
        if not isinstance(gid, int) or isinstance(gid, bool):
            raise internal_fault("GitLab group entry has no numeric id")
        out.append(
            NamespaceCandidate(
                id=gid,
                name=group.get("name"),
                path=group.get("path"),
                full_path=group.get("full_path"),
            )
        )
    return out


async def search_groups(client: JsonRequester, group_name: str) -> list[NamespaceCandidate]:
    data = await client.request_json(
        method="GET",
        path="/groups",
        params={"search": group_name, "top_level_only": True},
    )
    return _candidates(data)


def pick_namespace(group_name: str, candidates: list[NamespaceCandidate]) -> int:
    """Choose the single exact match among search results.

    Raises:
        McpError: InvalidParams when there is no exact match or more than one.
    """
    matches = [c for c in candidates if c.matches(group_name)]
    if not matches:
        raise invalid_params(f'Group named "{group_name}" not found.')
    if len(matches) > 1:
        found = ", ".join(c.full_path for c in matches)
        raise invalid_params(
            f'Multiple groups found matching "{group_name}": {found}. '
            "Please provide a more specific group_name or use namespace_id."
        )
    return matches[0].id


async def resolve_namespace(
    client: JsonRequester,
    *,
    group_name: str | None,
    namespace_id: int | None,
) -> int | None:
    """Resolve the namespace a new project should be created in.

    An explicit `namespace_id` wins without any lookup. With neither value the
    result is None and GitLab falls back to the caller's personal namespace.
    """
    if namespace_id is not None:
        return namespace_id
    if not group_name:
        return None

    logger.info('Searching for group with name: "%s"', group_name)
    candidates = await search_groups(client, group_name)
    resolved = pick_namespace(group_name, candidates)
    logger.info('Found group "%s" with ID: %s', group_name, resolved)
    return resolved

"""GitLab REST client wrapper.

Provides:
- token header injection
- finite timeouts
- error statuses surfaced as `GitLabApiError` with status, reason and decoded body

No retries: every call is a single round-trip.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .config import GitLabConfig
from .errors import GitLabApiError

logger = logging.getLogger(__name__)


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text


class GitLabClient:
    """Minimal GitLab REST v4 client."""

    def __init__(self, *, config: GitLabConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create a GitLab REST client.

        Args:
            config: Base URL, token and timeouts.
            transport: Optional httpx transport for tests.
        """
        self._api_url = config.api_url.rstrip("/")
        self._token = config.token
        self._limits = config.limits
        self._transport = transport

    @property
    def api_url(self) -> str:
        return self._api_url

    def _headers(self) -> dict[str, str]:
        return {
            "PRIVATE-TOKEN": self._token,
            "Accept": "application/json",
        }

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request and return decoded JSON.

        Raises:
            GitLabApiError: GitLab responded with a 4xx/5xx status.
            httpx.HTTPError: The request never produced a response.
            ValueError: A success response was not valid JSON.
        """
        url = f"{self._api_url}{path}"
        timeout = httpx.Timeout(
            timeout=self._limits.total_timeout_s,
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            resp = await client.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json_body,
            )

        logger.info("GitLab API response status: %s (%s %s)", resp.status_code, method, path)

        if resp.status_code >= 400:
            raise GitLabApiError(
                status_code=resp.status_code,
                reason=resp.reason_phrase,
                body=_decode_body(resp),
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise ValueError("GitLab returned invalid JSON") from exc

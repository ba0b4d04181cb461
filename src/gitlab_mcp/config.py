"""Configuration loading for gitlab-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The access token is a secret and must never be emitted to agents, logs, or audit events.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import SafeError

DEFAULT_API_URL = "https://gitlab.com/api/v4"
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Network timeouts for a single GitLab request."""

    total_timeout_s: float = DEFAULT_TIMEOUT_S
    connect_timeout_s: float = 5.0
    read_timeout_s: float = DEFAULT_TIMEOUT_S


@dataclass(frozen=True, slots=True)
class GitLabConfig:
    """GitLab instance binding."""

    api_url: str
    token: str = field(repr=False)
    limits: LimitsConfig = field(default_factory=LimitsConfig)


def _parse_api_url(value: str | None) -> str:
    if not value or not value.strip():
        return DEFAULT_API_URL
    url = value.strip().rstrip("/")
    if not url.startswith(("https://", "http://")):
        raise SafeError(code="Config", message="GITLAB_API_URL must be an http(s) URL")
    return url


def _parse_timeout(value: str | None) -> float:
    if value is None or not value.strip():
        return DEFAULT_TIMEOUT_S
    try:
        timeout = float(value)
    except ValueError as exc:
        raise SafeError(code="Config", message="GITLAB_MCP_TIMEOUT_S must be a number") from exc
    if timeout <= 0:
        raise SafeError(code="Config", message="GITLAB_MCP_TIMEOUT_S must be positive")
    return timeout


def load_config_from_env() -> GitLabConfig:
    """Load and validate configuration from environment variables.

    Raises:
        SafeError: If configuration is missing/invalid.
    """
    token = os.getenv("GITLAB_PERSONAL_ACCESS_TOKEN")
    if not token or not token.strip():
        raise SafeError(
            code="Config",
            message="Missing required configuration (GITLAB_PERSONAL_ACCESS_TOKEN)",
            hint="Create a personal access token with the 'api' scope",
        )

    api_url = _parse_api_url(os.getenv("GITLAB_API_URL"))
    total_timeout_s = _parse_timeout(os.getenv("GITLAB_MCP_TIMEOUT_S"))

    return GitLabConfig(
        api_url=api_url,
        token=token.strip(),
        limits=LimitsConfig(
            total_timeout_s=total_timeout_s,
            read_timeout_s=min(DEFAULT_TIMEOUT_S, total_timeout_s),
        ),
    )

"""Foundational tests: configuration loading."""

from __future__ import annotations

import pytest
from gitlab_mcp.config import DEFAULT_API_URL, load_config_from_env
from gitlab_mcp.errors import SafeError


def test_load_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITLAB_PERSONAL_ACCESS_TOKEN", raising=False)

    with pytest.raises(SafeError) as exc:
        _ = load_config_from_env()

    assert exc.value.code == "Config"
    assert "GITLAB_PERSONAL_ACCESS_TOKEN" in exc.value.message


def test_load_config_rejects_blank_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "   ")

    with pytest.raises(SafeError):
        _ = load_config_from_env()


def test_load_config_defaults_to_gitlab_com(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "glpat-abc")
    monkeypatch.delenv("GITLAB_API_URL", raising=False)
    monkeypatch.delenv("GITLAB_MCP_TIMEOUT_S", raising=False)

    cfg = load_config_from_env()

    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.token == "glpat-abc"
    assert cfg.limits.total_timeout_s == 30.0


def test_load_config_parses_url_and_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "glpat-abc")
    monkeypatch.setenv("GITLAB_API_URL", "https://gitlab.example.com/api/v4/")
    monkeypatch.setenv("GITLAB_MCP_TIMEOUT_S", "12.5")

    cfg = load_config_from_env()

    assert cfg.api_url == "https://gitlab.example.com/api/v4"
    assert cfg.limits.total_timeout_s == 12.5
    assert cfg.limits.read_timeout_s == 12.5


@pytest.mark.parametrize("url", ["ftp://gitlab.example.com", "gitlab.example.com/api/v4"])
def test_load_config_rejects_non_http_url(monkeypatch: pytest.MonkeyPatch, url: str) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "glpat-abc")
    monkeypatch.setenv("GITLAB_API_URL", url)

    with pytest.raises(SafeError) as exc:
        _ = load_config_from_env()

    assert "http(s)" in exc.value.message


@pytest.mark.parametrize("timeout", ["soon", "0", "-3"])
def test_load_config_rejects_bad_timeout(monkeypatch: pytest.MonkeyPatch, timeout: str) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "glpat-abc")
    monkeypatch.delenv("GITLAB_API_URL", raising=False)
    monkeypatch.setenv("GITLAB_MCP_TIMEOUT_S", timeout)

    with pytest.raises(SafeError):
        _ = load_config_from_env()


def test_config_repr_hides_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_PERSONAL_ACCESS_TOKEN", "glpat-secret")
    monkeypatch.delenv("GITLAB_API_URL", raising=False)
    monkeypatch.delenv("GITLAB_MCP_TIMEOUT_S", raising=False)

    cfg = load_config_from_env()

    assert "glpat-secret" not in repr(cfg)

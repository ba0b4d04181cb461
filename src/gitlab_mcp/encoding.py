"""Parameter encoding for GitLab REST calls.

Conventions:
- identifiers used in a path are percent-encoded as one opaque segment ("a/b" -> "a%2Fb")
- comma-separated list values are forwarded as-is
- absent values are omitted, never sent as null or ""
- integral floats (JSON `7.0`) go on the wire as ints, in the path, query and body alike
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

QUERY = "query"
BODY = "body"


@dataclass(frozen=True, slots=True)
class EncodedRequest:
    """A GitLab call ready to send."""

    method: str
    path: str
    params: dict[str, Any] | None = None
    json_body: dict[str, Any] | None = None


def wire_value(value: Any) -> Any:
    """Render integral floats (JSON `2.0`) as ints, including inside lists."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [wire_value(v) for v in value]
    return value


def _segment_text(value: Any) -> str:
    return str(wire_value(value))


def encode_path_segment(value: Any) -> str:
    """Percent-encode an identifier as a single path segment, including any '/'."""
    return quote(_segment_text(value), safe="")


def path_fields(template: str) -> tuple[str, ...]:
    """Return the argument names referenced by `{name}` placeholders."""
    return tuple(_PLACEHOLDER_RE.findall(template))


def expand_path(template: str, arguments: Mapping[str, Any]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: encode_path_segment(arguments[m.group(1)]), template)


def compact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in values.items() if v is not None}


def encode_request(
    *,
    method: str,
    path_template: str,
    placement: str,
    arguments: Mapping[str, Any],
    renames: Mapping[str, str] | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> EncodedRequest:
    """Split validated arguments into path, query parameters and body.

    Path fields build the path only. Every other argument is forwarded (under its
    renamed key, if any) as a query parameter or body field, with integral floats
    sent as ints.
    `defaults` fill in keys the caller did not supply.
    """
    in_path = set(path_fields(path_template))
    renames = renames or {}

    forwarded: dict[str, Any] = dict(defaults or {})
    for name, value in arguments.items():
        if name in in_path:
            continue
        forwarded[renames.get(name, name)] = value
    forwarded = {k: wire_value(v) for k, v in compact(forwarded).items()}

    path = expand_path(path_template, arguments)
    if placement == QUERY:
        return EncodedRequest(method=method, path=path, params=forwarded or None)
    if placement == BODY:
        return EncodedRequest(method=method, path=path, json_body=forwarded)
    raise ValueError(f"Unknown argument placement: {placement}")

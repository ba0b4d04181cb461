"""Operation registry.

Each `Operation` is the single declaration for one tool: its advertised input schema,
its validator, and its HTTP template (verb, path, argument placement). The catalog
returned to callers and the set of names the dispatcher accepts both come from
`OPERATIONS`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import urlsplit

from . import schema as s
from .encoding import BODY, QUERY, EncodedRequest, encode_request, expand_path
from .errors import internal_fault, invalid_params
from .schema import Field, ValidatedArguments

_SCP_LIKE_RE = re.compile(r"^[\w.-]+@[\w.-]+:(?!//)(?P<path>.+)$")

ISSUE_STATES = ("opened", "closed", "all")
ISSUE_SCOPES = ("created_by_me", "assigned_to_me", "all")
VISIBILITIES = ("private", "internal", "public")


@dataclass(frozen=True, slots=True)
class Operation:
    """Descriptor for one invocable tool."""

    name: str
    description: str
    fields: Mapping[str, Field]
    method: str
    path: str
    placement: str = QUERY
    renames: Mapping[str, str] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    # Arguments consumed locally and never forwarded to GitLab.
    local: tuple[str, ...] = ()
    shape: Callable[[Any], Any] | None = None
    encoder: Callable[[Operation, ValidatedArguments], EncodedRequest] | None = None
    resolves_namespace: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "renames", MappingProxyType(dict(self.renames)))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    @property
    def input_schema(self) -> dict[str, Any]:
        return s.input_schema(self.fields)

    @property
    def required_fields(self) -> frozenset[str]:
        return frozenset(name for name, spec in self.fields.items() if spec.required)

    def validate(self, raw: Any) -> bool:
        return s.validate(self.fields, raw)

    def parse(self, raw: Any) -> ValidatedArguments:
        """Validate untyped input, raising InvalidParams on mismatch."""
        if not self.validate(raw):
            raise invalid_params(f"Invalid arguments for {self.name}")
        return ValidatedArguments(self.fields, raw)

    def encode(self, arguments: ValidatedArguments) -> EncodedRequest:
        if self.encoder is not None:
            return self.encoder(self, arguments)
        forwarded = {k: v for k, v in arguments.items() if k not in self.local}
        return encode_request(
            method=self.method,
            path_template=self.path,
            placement=self.placement,
            arguments=forwarded,
            renames=self.renames,
            defaults=self.defaults,
        )


def project_path_from_git_url(git_url: str) -> str:
    """Extract "group/subgroup/project" from an https, ssh or scp-style git remote."""
    candidate = git_url.strip()
    scp = _SCP_LIKE_RE.match(candidate)
    if scp:
        raw_path = scp.group("path")
    else:
        try:
            parts = urlsplit(candidate)
        except ValueError as exc:
            raise invalid_params("Invalid git_url format") from exc
        if not parts.scheme or not parts.netloc:
            raise invalid_params("Invalid git_url format")
        raw_path = parts.path

    project_path = raw_path.removeprefix("/").rstrip("/").removesuffix(".git")
    if not project_path:
        raise invalid_params("Could not extract project path from git_url")
    return project_path


def _encode_git_url(op: Operation, arguments: ValidatedArguments) -> EncodedRequest:
    project_path = project_path_from_git_url(arguments["git_url"])
    return EncodedRequest(method=op.method, path=expand_path(op.path, {"project_path": project_path}))


def _require_list(data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise internal_fault("Unexpected response format from GitLab API")
    return data


def _simplify_projects(data: Any) -> list[dict[str, Any]]:
    return [
        {
            "id": project.get("id"),
            "name": project.get("name"),
            "path_with_namespace": project.get("path_with_namespace"),
            "description": project.get("description"),
            "web_url": project.get("web_url"),
        }
        for project in _require_list(data)
    ]


def _simplify_notes(data: Any) -> list[dict[str, Any]]:
    out = []
    for note in _require_list(data):
        author = note.get("author")
        out.append(
            {
                "id": note.get("id"),
                "body": note.get("body"),
                "author": author.get("username") if isinstance(author, dict) else None,
                "created_at": note.get("created_at"),
                "system": note.get("system"),
            }
        )
    return out


def _simplify_groups(data: Any) -> list[dict[str, Any]]:
    return [
        {
            "id": group.get("id"),
            "name": group.get("name"),
            "path": group.get("path"),
            "full_path": group.get("full_path"),
        }
        for group in _require_list(data)
    ]


_PAGE = s.number("Page number for pagination (default: 1)")
_PER_PAGE = s.number("Number of results per page (default: 20)")
_ISSUE_IID = s.number("The internal ID (IID) of the issue", required=True)
_MR_IID = s.number("The internal ID (IID) of the merge request", required=True)


OPERATIONS: tuple[Operation, ...] = (
    Operation(
        name="search_repositories",
        description="Search for GitLab projects by name",
        fields={
            "search": s.string("Search query string", required=True),
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/projects",
        shape=_simplify_projects,
    ),
    Operation(
        name="get_project_from_git_url",
        description="Get GitLab project details from a git remote URL.",
        fields={
            "git_url": s.string(
                "The git remote URL (e.g., https://gitlab.example.com/group/project.git "
                "or git@gitlab.example.com:group/project.git)",
                required=True,
            ),
        },
        method="GET",
        path="/projects/{project_path}",
        encoder=_encode_git_url,
    ),
    Operation(
        name="list_issues",
        description="List issues for a specific GitLab project.",
        fields={
            "project_id": s.project_ref(),
            "state": s.enum("Filter by state", *ISSUE_STATES),
            "labels": s.string("Comma-separated list of label names"),
            "assignee_id": s.number_or_none('Filter by assignee ID or "None"'),
            "scope": s.enum("Filter by scope", *ISSUE_SCOPES),
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/projects/{project_id}/issues",
    ),
    Operation(
        name="get_my_issues",
        description="List issues assigned to or created by the authenticated user across all projects.",
        fields={
            "state": s.enum("Filter by state", *ISSUE_STATES),
            "scope": s.enum("Filter by scope (default: assigned_to_me)", *ISSUE_SCOPES),
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/issues",
        defaults={"scope": "assigned_to_me"},
    ),
    Operation(
        name="get_issue",
        description="Get details of a specific issue within a project.",
        fields={
            "project_id": s.project_ref(),
            "issue_iid": _ISSUE_IID,
        },
        method="GET",
        path="/projects/{project_id}/issues/{issue_iid}",
    ),
    Operation(
        name="create_issue_note",
        description="Add a comment (note) to a specific issue.",
        fields={
            "project_id": s.project_ref(),
            "issue_iid": _ISSUE_IID,
            "body": s.string("The content of the comment", required=True),
        },
        method="POST",
        path="/projects/{project_id}/issues/{issue_iid}/notes",
        placement=BODY,
    ),
    Operation(
        name="update_issue",
        description="Update attributes of an issue (e.g., description, labels, state).",
        fields={
            "project_id": s.project_ref(),
            "issue_iid": _ISSUE_IID,
            "title": s.string("New issue title"),
            "description": s.string("New issue description (can include Markdown checklists)"),
            "labels": s.string("Comma-separated list of label names to set (replaces existing)"),
            "add_labels": s.string("Comma-separated list of label names to add"),
            "remove_labels": s.string("Comma-separated list of label names to remove"),
            "state_event": s.enum("Event to change issue state", "close", "reopen"),
        },
        method="PUT",
        path="/projects/{project_id}/issues/{issue_iid}",
        placement=BODY,
    ),
    Operation(
        name="create_branch",
        description="Create a new branch in a project.",
        fields={
            "project_id": s.project_ref(),
            "branch_name": s.string("The name for the new branch", required=True),
            "ref": s.string("The branch name or commit SHA to create the new branch from", required=True),
        },
        method="POST",
        path="/projects/{project_id}/repository/branches",
        renames={"branch_name": "branch"},
    ),
    Operation(
        name="create_issue",
        description="Create a new issue in a project.",
        fields={
            "project_id": s.project_ref(),
            "title": s.string("The title of the issue", required=True),
            "description": s.string("The description of the issue"),
            "labels": s.string("Comma-separated list of label names"),
            "assignee_ids": s.number_array("Array of user IDs to assign"),
        },
        method="POST",
        path="/projects/{project_id}/issues",
        placement=BODY,
    ),
    Operation(
        name="create_merge_request",
        description="Create a new merge request in a GitLab project.",
        fields={
            "project_id": s.project_ref(),
            "source_branch": s.string("The source branch name", required=True),
            "target_branch": s.string("The target branch name", required=True),
            "title": s.string("Title of the merge request", required=True),
            "description": s.string("Optional description (Markdown supported)"),
            "assignee_id": s.number("Optional user ID of the assignee"),
            "reviewer_ids": s.number_array("Optional array of user IDs for reviewers"),
        },
        method="POST",
        path="/projects/{project_id}/merge_requests",
        placement=BODY,
    ),
    Operation(
        name="list_issue_notes",
        description="List comments (notes) for a specific issue, oldest first.",
        fields={
            "project_id": s.project_ref(),
            "issue_iid": _ISSUE_IID,
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/projects/{project_id}/issues/{issue_iid}/notes",
        defaults={"sort": "asc"},
        shape=_simplify_notes,
    ),
    Operation(
        name="create_merge_request_note",
        description="Add a comment (note) to a specific merge request.",
        fields={
            "project_id": s.project_ref(),
            "mr_iid": _MR_IID,
            "body": s.string("The content of the comment", required=True),
        },
        method="POST",
        path="/projects/{project_id}/merge_requests/{mr_iid}/notes",
        placement=BODY,
    ),
    Operation(
        name="list_merge_request_notes",
        description="List comments (notes) for a specific merge request, oldest first.",
        fields={
            "project_id": s.project_ref(),
            "mr_iid": _MR_IID,
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/projects/{project_id}/merge_requests/{mr_iid}/notes",
        defaults={"sort": "asc"},
        shape=_simplify_notes,
    ),
    Operation(
        name="search_user",
        description="Search for GitLab users by email or username.",
        fields={
            "search": s.string("The email or username to search for.", required=True),
        },
        method="GET",
        path="/users",
    ),
    Operation(
        name="search_groups",
        description="Search for GitLab groups by name or path.",
        fields={
            "search": s.string("Search query string", required=True),
            "top_level_only": s.boolean("Only return top-level groups (default: false)"),
            "page": _PAGE,
            "per_page": _PER_PAGE,
        },
        method="GET",
        path="/groups",
        shape=_simplify_groups,
    ),
    Operation(
        name="create_repository",
        description="Create a new GitLab project (repository).",
        fields={
            "name": s.string("The name of the new project (repository).", required=True),
            "group_name": s.string(
                "Optional: Name or full path of the top-level group (namespace) to create the project in. "
                "Ignored if namespace_id is provided."
            ),
            "namespace_id": s.number(
                "Optional: Direct Namespace ID for the project (group or user). Takes precedence over "
                "group_name. Defaults to the authenticated user if neither is specified."
            ),
            "path": s.string("Optional: Custom repository path (defaults to name)."),
            "description": s.string("Optional: Short project description."),
            "visibility": s.enum("Optional: Project visibility (default: private).", *VISIBILITIES),
            "initialize_with_readme": s.boolean("Optional: Initialize with a README (default: false)."),
        },
        method="POST",
        path="/projects",
        placement=BODY,
        local=("group_name", "namespace_id"),
        resolves_namespace=True,
    ),
)

_BY_NAME: Mapping[str, Operation] = MappingProxyType({op.name: op for op in OPERATIONS})


def list_operations() -> tuple[Operation, ...]:
    """Return the full ordered catalog."""
    return OPERATIONS


def get_operation(name: str) -> Operation | None:
    return _BY_NAME.get(name)

"""Contract/schema validation tests.

These tests ensure the advertised input schemas and the argument validators come from
the same declaration, and that validation is strict, structural and non-coercing.
"""

from __future__ import annotations

import pytest
from gitlab_mcp.operations import OPERATIONS, get_operation
from gitlab_mcp.schema import Field, ValidatedArguments, validate
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS

VALID_ARGS: dict[str, dict] = {
    "search_repositories": {"search": "api"},
    "get_project_from_git_url": {"git_url": "https://gitlab.example.com/grp/proj.git"},
    "list_issues": {"project_id": 42},
    "get_my_issues": {},
    "get_issue": {"project_id": "grp/proj", "issue_iid": 3},
    "create_issue_note": {"project_id": 42, "issue_iid": 3, "body": "hi"},
    "update_issue": {"project_id": 42, "issue_iid": 3},
    "create_branch": {"project_id": 42, "branch_name": "feat", "ref": "main"},
    "create_issue": {"project_id": 42, "title": "Bug"},
    "create_merge_request": {"project_id": 42, "source_branch": "feat", "target_branch": "main", "title": "MR"},
    "list_issue_notes": {"project_id": 42, "issue_iid": 3},
    "create_merge_request_note": {"project_id": 42, "mr_iid": 5, "body": "lgtm"},
    "list_merge_request_notes": {"project_id": 42, "mr_iid": 5},
    "search_user": {"search": "alice"},
    "search_groups": {"search": "core"},
    "create_repository": {"name": "x"},
}


def test_catalog_names_are_unique_and_covered() -> None:
    names = [op.name for op in OPERATIONS]
    assert len(names) == len(set(names))
    assert set(names) == set(VALID_ARGS)


@pytest.mark.parametrize("op", OPERATIONS, ids=lambda op: op.name)
def test_schema_required_fields_match_validator(op) -> None:  # noqa: ANN001
    schema = op.input_schema
    assert schema["type"] == "object"
    assert set(schema["required"]) == op.required_fields
    assert set(schema["properties"]) == set(op.fields)

    base = VALID_ARGS[op.name]
    assert op.validate(base) is True
    for required in schema["required"]:
        args = dict(base)
        del args[required]
        assert op.validate(args) is False, f"{op.name} accepted missing {required}"


@pytest.mark.parametrize("op", OPERATIONS, ids=lambda op: op.name)
def test_validator_rejects_non_mapping_input(op) -> None:  # noqa: ANN001
    assert op.validate(None) is False
    assert op.validate([]) is False
    assert op.validate("project_id=1") is False


@pytest.mark.parametrize(
    "tool_name,args",
    [
        ("create_issue", {"project_id": 42, "title": 7}),
        ("create_issue", {"project_id": True, "title": "Bug"}),
        ("create_issue", {"project_id": 42, "title": "Bug", "assignee_ids": [1, "2"]}),
        ("create_issue", {"project_id": 42, "title": "Bug", "assignee_ids": 1}),
        ("create_issue", {"project_id": 42, "title": "Bug", "description": None}),
        ("get_issue", {"project_id": 42, "issue_iid": "3"}),
        ("get_issue", {"project_id": 42, "issue_iid": True}),
        ("list_issues", {"project_id": 42, "state": "open"}),
        ("list_issues", {"project_id": 42, "scope": "mine"}),
        ("list_issues", {"project_id": 42, "assignee_id": "none"}),
        ("list_issues", {"project_id": 42, "page": "2"}),
        ("update_issue", {"project_id": 42, "issue_iid": 3, "state_event": "closed"}),
        ("create_repository", {"name": "x", "visibility": "secret"}),
        ("create_repository", {"name": "x", "initialize_with_readme": "true"}),
        ("create_repository", {"name": "x", "namespace_id": "12"}),
        ("search_groups", {"search": "core", "top_level_only": 1}),
    ],
)
def test_validator_rejects_wrong_types(tool_name: str, args: dict) -> None:
    op = get_operation(tool_name)
    assert op is not None
    assert op.validate(args) is False


def test_number_or_none_accepts_number_or_literal_none() -> None:
    op = get_operation("list_issues")
    assert op is not None
    assert op.validate({"project_id": 42, "assignee_id": 7}) is True
    assert op.validate({"project_id": 42, "assignee_id": "None"}) is True


def test_validator_ignores_undeclared_fields() -> None:
    op = get_operation("get_issue")
    assert op is not None
    assert op.validate({"project_id": 1, "issue_iid": 2, "extra": object()}) is True


def test_validate_does_not_mutate_or_coerce() -> None:
    fields = {"n": Field("number", "a number", required=True)}
    raw = {"n": 3, "other": "x"}
    assert validate(fields, raw) is True
    assert raw == {"n": 3, "other": "x"}


def test_parse_returns_only_declared_present_fields() -> None:
    op = get_operation("create_issue")
    assert op is not None

    parsed = op.parse({"project_id": 42, "title": "Bug", "unknown": 1})

    assert isinstance(parsed, ValidatedArguments)
    assert dict(parsed) == {"project_id": 42, "title": "Bug"}


def test_parse_raises_invalid_params() -> None:
    op = get_operation("create_issue")
    assert op is not None

    with pytest.raises(McpError) as exc:
        op.parse({"project_id": 42})

    assert exc.value.error.code == INVALID_PARAMS
    assert exc.value.error.message == "Invalid arguments for create_issue"


def test_enum_and_union_fields_render_json_schema() -> None:
    op = get_operation("list_issues")
    assert op is not None
    props = op.input_schema["properties"]

    assert props["project_id"]["type"] == ["number", "string"]
    assert props["state"] == {"type": "string", "enum": ["opened", "closed", "all"], "description": "Filter by state"}

    create_issue = get_operation("create_issue")
    assert create_issue is not None
    assert create_issue.input_schema["properties"]["assignee_ids"]["items"] == {"type": "number"}

"""Field declarations and structural argument validation.

Each `Field` renders its own JSON schema fragment and its own acceptance predicate,
so the advertised input schema and the validator cannot drift apart.

Validation is structural only: values are never coerced or mutated.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
ENUM = "enum"
ID = "id"
NUMBER_ARRAY = "number_array"
NUMBER_OR_NONE = "number_or_none"

NONE_LITERAL = "None"


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number argument.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class Field:
    """Declared shape of one operation argument."""

    kind: str
    description: str
    required: bool = False
    choices: tuple[str, ...] = ()

    def accepts(self, value: Any) -> bool:
        """Return True if a present value matches the declared type."""
        if self.kind == STRING:
            return isinstance(value, str)
        if self.kind == NUMBER:
            return is_number(value)
        if self.kind == BOOLEAN:
            return isinstance(value, bool)
        if self.kind == ENUM:
            return isinstance(value, str) and value in self.choices
        if self.kind == ID:
            return isinstance(value, str) or is_number(value)
        if self.kind == NUMBER_ARRAY:
            return isinstance(value, list) and all(is_number(item) for item in value)
        if self.kind == NUMBER_OR_NONE:
            return is_number(value) or value == NONE_LITERAL
        raise ValueError(f"Unknown field kind: {self.kind}")

    def json_schema(self) -> dict[str, Any]:
        """Render the JSON schema fragment advertised for this field."""
        if self.kind in (STRING, NUMBER, BOOLEAN):
            out: dict[str, Any] = {"type": self.kind}
        elif self.kind == ENUM:
            out = {"type": "string", "enum": list(self.choices)}
        elif self.kind in (ID, NUMBER_OR_NONE):
            out = {"type": ["number", "string"]}
        elif self.kind == NUMBER_ARRAY:
            out = {"type": "array", "items": {"type": "number"}}
        else:
            raise ValueError(f"Unknown field kind: {self.kind}")
        out["description"] = self.description
        return out


def string(description: str, *, required: bool = False) -> Field:
    return Field(STRING, description, required)


def number(description: str, *, required: bool = False) -> Field:
    return Field(NUMBER, description, required)


def boolean(description: str, *, required: bool = False) -> Field:
    return Field(BOOLEAN, description, required)


def enum(description: str, *choices: str, required: bool = False) -> Field:
    return Field(ENUM, description, required, tuple(choices))


def project_ref(description: str = "The ID or URL-encoded path of the project") -> Field:
    return Field(ID, description, required=True)


def number_array(description: str) -> Field:
    return Field(NUMBER_ARRAY, description)


def number_or_none(description: str) -> Field:
    return Field(NUMBER_OR_NONE, description)


def validate(fields: Mapping[str, Field], raw: Any) -> bool:
    """Return True if `raw` is a mapping satisfying every declared field.

    Required fields must be present and well-typed; optional fields are checked only
    when present. An explicit `None` is a present value and fails every type.
    Undeclared keys are ignored.
    """
    if not isinstance(raw, Mapping):
        return False
    for name, spec in fields.items():
        if name not in raw:
            if spec.required:
                return False
            continue
        if not spec.accepts(raw[name]):
            return False
    return True


def input_schema(fields: Mapping[str, Field]) -> dict[str, Any]:
    """Render the JSON schema object for a set of fields."""
    return {
        "type": "object",
        "properties": {name: spec.json_schema() for name, spec in fields.items()},
        "required": [name for name, spec in fields.items() if spec.required],
    }


class ValidatedArguments(Mapping[str, Any]):
    """Read-only view of arguments that passed validation.

    Holds only declared fields that were present in the raw input. Construct through
    `Operation.parse()`, never directly from untyped input.
    """

    __slots__ = ("_data",)

    def __init__(self, fields: Mapping[str, Field], raw: Mapping[str, Any]) -> None:
        self._data = MappingProxyType({name: raw[name] for name in fields if name in raw})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ValidatedArguments({dict(self._data)!r})"

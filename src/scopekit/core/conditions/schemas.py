"""Pydantic schemas for condition trees at the dict/JSON boundary.

The authoring layer exchanges conditions in camelCase::

    {"paramType": 5, "operator": "Matches", "children": [...]}

Enums are accepted by value or by name (``"AbiEncoded"`` and
``"ABI_ENCODED"`` are both fine) and ``compValue`` is 0x-prefixed hex.
"""

import re
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConditionIntegrityError
from .model import Condition, Operator, ParameterType

HEX_PATTERN = re.compile(r"^0x([0-9a-fA-F]{2})*$")


def _coerce_enum(enum: type[IntEnum], value: Any) -> Any:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, str):
        key = value.replace("_", "").lower()
        for member in enum:
            if member.name.replace("_", "").lower() == key:
                return member
        raise ValueError(f"Unknown {enum.__name__} `{value}`")
    return value


class ConditionSchema(BaseModel):
    """Schema for a condition node.

    Attributes:
        param_type: Encoding of the constrained value (``paramType``).
        operator: Role of the node.
        comp_value: 0x-hex comparison operand (``compValue``).
        children: Sub-conditions.
    """

    param_type: ParameterType = Field(..., alias="paramType")
    operator: Operator
    comp_value: str | None = Field(default=None, alias="compValue")
    children: list["ConditionSchema"] | None = None

    model_config = {"populate_by_name": True}

    @field_validator("param_type", mode="before")
    @classmethod
    def parse_param_type(cls, v: Any) -> Any:
        """Accept parameter types by name."""
        return _coerce_enum(ParameterType, v)

    @field_validator("operator", mode="before")
    @classmethod
    def parse_operator(cls, v: Any) -> Any:
        """Accept operators by name."""
        return _coerce_enum(Operator, v)

    @field_validator("comp_value")
    @classmethod
    def validate_comp_value(cls, v: str | None) -> str | None:
        """Validate that compValue is 0x-prefixed, even-length hex."""
        if v is not None and not HEX_PATTERN.match(v):
            raise ValueError("compValue must be 0x-prefixed hex with an even number of digits")
        return v.lower() if v is not None else None

    def to_condition(self) -> Condition:
        """Convert to the engine's condition type."""
        return Condition(
            param_type=self.param_type,
            operator=self.operator,
            comp_value=bytes.fromhex(self.comp_value[2:]) if self.comp_value is not None else None,
            children=tuple(child.to_condition() for child in self.children or ()),
        )

    @classmethod
    def from_condition(cls, condition: Condition) -> "ConditionSchema":
        """Build the schema for an engine condition."""
        return cls(
            param_type=condition.param_type,
            operator=condition.operator,
            comp_value="0x" + condition.comp_value.hex()
            if condition.comp_value is not None
            else None,
            children=[cls.from_condition(c) for c in condition.children] or None,
        )


def parse_condition(data: dict[str, Any] | str) -> Condition:
    """Validate a condition given as a dict or a JSON string.

    Raises:
        ConditionIntegrityError: If the input is not a well-formed condition.
    """
    try:
        if isinstance(data, str):
            schema = ConditionSchema.model_validate_json(data)
        else:
            schema = ConditionSchema.model_validate(data)
    except ValidationError as e:
        raise ConditionIntegrityError(f"Invalid condition: {e}") from e
    return schema.to_condition()


def dump_condition(condition: Condition) -> dict[str, Any]:
    """Render a condition as a camelCase dict, omitting unset fields."""
    return ConditionSchema.from_condition(condition).model_dump(
        by_alias=True, exclude_none=True
    )

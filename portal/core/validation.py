"""Schema-driven field validation.

A schema is an ordered sequence of ``FieldSchema`` objects, each holding a
list of data-only ``Constraint`` descriptors. ``validate`` interprets them
and returns either the coerced values or a field -> message map.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
NUMBER_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')


class FieldType(str, Enum):
    STRING = "string"
    EMAIL = "email"
    NUMBER = "number"


class ConstraintKind(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    EMAIL = "email"


@dataclass(frozen=True)
class Constraint:
    kind: ConstraintKind
    message: str
    value: Any = None


def required(message: str = "This field is required") -> Constraint:
    return Constraint(ConstraintKind.REQUIRED, message)


def min_length(length: int, message: Optional[str] = None) -> Constraint:
    return Constraint(ConstraintKind.MIN_LENGTH, message or f"Must be at least {length} characters", length)


def max_length(length: int, message: Optional[str] = None) -> Constraint:
    return Constraint(ConstraintKind.MAX_LENGTH, message or f"Must be at most {length} characters", length)


def pattern(regex: str, message: str = "Invalid format") -> Constraint:
    return Constraint(ConstraintKind.PATTERN, message, re.compile(regex))


def email(message: str = "Invalid email address") -> Constraint:
    return Constraint(ConstraintKind.EMAIL, message)


@dataclass(frozen=True)
class FieldSchema:
    name: str
    type: FieldType = FieldType.STRING
    constraints: Tuple[Constraint, ...] = ()
    type_message: Optional[str] = None

    def __post_init__(self):
        # Allow lists at the call site while keeping the schema hashable.
        object.__setattr__(self, "constraints", tuple(self.constraints))


@dataclass(frozen=True)
class ValidationResult:
    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _check(constraint: Constraint, text: str) -> bool:
    kind = constraint.kind
    if kind is ConstraintKind.REQUIRED:
        return bool(text)
    if kind is ConstraintKind.MIN_LENGTH:
        return len(text) >= constraint.value
    if kind is ConstraintKind.MAX_LENGTH:
        return len(text) <= constraint.value
    if kind is ConstraintKind.PATTERN:
        return constraint.value.search(text) is not None
    if kind is ConstraintKind.EMAIL:
        return EMAIL_PATTERN.match(text) is not None
    raise ValueError(f"Unknown constraint kind: {kind}")


def _coerce(field_schema: FieldSchema, raw: str, text: str) -> Tuple[Any, Optional[str]]:
    if field_schema.type is FieldType.NUMBER:
        if not NUMBER_PATTERN.match(text):
            return None, field_schema.type_message or "Must be a number"
        return (float(text) if "." in text else int(text)), None
    if field_schema.type is FieldType.EMAIL:
        if text and not EMAIL_PATTERN.match(text):
            return None, field_schema.type_message or "Invalid email address"
        return text, None
    # Plain strings keep their whitespace; only the checks use the trimmed text.
    return raw, None


def validate_field(field_schema: FieldSchema, raw: Optional[str]) -> Tuple[Any, Optional[str]]:
    """Validate a single field. Returns ``(typed_value, None)`` or ``(None, message)``."""
    raw = raw or ""
    text = raw.strip()
    for constraint in field_schema.constraints:
        if not _check(constraint, text):
            return None, constraint.message
    return _coerce(field_schema, raw, text)


def validate(schema: Sequence[FieldSchema], values: Mapping[str, Optional[str]]) -> ValidationResult:
    """Validate every field of ``schema`` against the raw ``values``.

    Fields are validated independently; each reports the message of its first
    failing constraint. Missing values are treated as empty strings.
    """
    data: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for field_schema in schema:
        typed, message = validate_field(field_schema, values.get(field_schema.name))
        if message is not None:
            errors[field_schema.name] = message
        else:
            data[field_schema.name] = typed

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(data=data)

"""
validation.py — Output-contract validator
==========================================
``validate(value, schema)`` checks a parsed JSON value against a pydantic
output contract and returns a ValidationOutcome holding either the fully
typed model or a SchemaValidationFailure. It never returns a partial value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from academy_agents.errors import SchemaValidationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ValidationOutcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[SchemaValidationFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the typed value or raise the stored failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def describe_errors(exc: ValidationError) -> tuple[str, list[str]]:
    """Return a one-line diagnostic plus the dotted path of every failing field."""
    fields: list[str] = []
    parts:  list[str] = []
    for err in exc.errors():
        path = _field_path(tuple(err.get("loc", ())))
        fields.append(path)
        parts.append(f"{path}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts), fields


def validate(value: Any, schema: type[T], raw_content: str = "") -> ValidationOutcome[T]:
    """Validate *value* against *schema* without mutating it."""
    try:
        typed = schema.model_validate(value)
    except ValidationError as exc:
        detail, fields = describe_errors(exc)
        logger.debug("%s rejected value: %s", schema.__name__, detail)
        return ValidationOutcome(error=SchemaValidationFailure(
            f"Schema validation failed for {schema.__name__}: {detail}",
            raw_content,
            cause=exc,
            fields=fields,
        ))
    return ValidationOutcome(value=typed)

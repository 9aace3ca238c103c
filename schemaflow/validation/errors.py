"""Validation Error System

Exceptions for programming errors (bad schema definitions, unknown
references) and for callers that prefer raising over Result values, plus
the accumulators the pipeline stages use to gather ValidationError records.

Error Format (to_dict):
{
    "error": {
        "type": "validation_error",
        "message": "Validation failed",
        "error_count": 1,
        "errors": [
            {"path": ["user", "email"], "code": "format", "message": "should match pattern ..."}
        ]
    }
}
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

from schemaflow.config import get_settings
from schemaflow.errors import ValidationError


class SchemaDefinitionError(ValueError):
    """Raised when a descriptor or schema is built from invalid parts."""


class SchemaReferenceError(LookupError):
    """Raised when a SchemaRef names a schema that cannot be found."""

    def __init__(self, name: str):
        super().__init__(f"schema {name!r} is not registered")
        self.name = name


class CircularReferenceError(ValueError):
    """Raised when document reference resolution loops or exceeds its depth."""


class ConfigFrozenError(TypeError):
    """Raised when overriding options of a frozen ValidationConfig."""


def render_errors(errors: Sequence[ValidationError], error_format: str | None = None) -> str:
    """Render errors one per line; settings DEFAULT_ERROR_FORMAT when no style is given."""
    error_format = error_format or get_settings().DEFAULT_ERROR_FORMAT
    return "\n".join(e.format(error_format) for e in errors)


@dataclass(eq=False)
class SchemaValidationError(Exception):
    """Raised by ``validate_or_raise`` with the complete error list."""
    errors: list[ValidationError]
    error_format: str | None = None
    schema_name: str | None = None

    def __post_init__(self):
        super().__init__(str(self))

    def __str__(self) -> str:
        return render_errors(self.errors, self.error_format)

    @property
    def first_error(self) -> ValidationError | None: return self.errors[0] if self.errors else None

    def errors_at(self, *path: str | int) -> list[ValidationError]:
        return [e for e in self.errors if e.path == path]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {"error": {"type": "validation_error", "message": "Validation failed",
            "schema": self.schema_name, "error_count": len(self.errors),
            "errors": [e.to_dict() for e in self.errors]}}


class ErrorAccumulator(ABC):
    """Abstract base for error accumulation strategies."""

    @abstractmethod
    def add(self, errors: Sequence[ValidationError]) -> bool:
        """Add errors. Returns True if evaluation should continue."""

    @abstractmethod
    def get_errors(self) -> list[ValidationError]:
        """Get accumulated errors."""

    def has_errors(self) -> bool: return bool(self.get_errors())


@dataclass
class CollectAllAccumulator(ErrorAccumulator):
    """Gathers every failure in report order; used across independent fields."""
    _errors: list[ValidationError] = field(default_factory=list)

    def add(self, errors: Sequence[ValidationError]) -> bool:
        self._errors.extend(errors)
        return True

    def get_errors(self) -> list[ValidationError]: return self._errors.copy()

"""Validation Error Builders

Ergonomic constructors for every code in the error vocabulary. Each builder
returns a ValidationError carrying the default message template unless the
caller supplies an override.
"""
from typing import Any, Iterable, Sequence

from .types import ErrorCode, PathSegment, ValidationError

CONSTRAINT_TEMPLATES: dict[ErrorCode, str] = {
    ErrorCode.MIN_LENGTH: "should have at least {limit} characters",
    ErrorCode.MAX_LENGTH: "should have at most {limit} characters",
    ErrorCode.MIN_ITEMS: "should have at least {limit} items",
    ErrorCode.MAX_ITEMS: "should have at most {limit} items",
    ErrorCode.SIZE: "should have exactly {limit} elements",
    ErrorCode.GT: "should be greater than {limit}",
    ErrorCode.LT: "should be less than {limit}",
    ErrorCode.GTEQ: "should be greater than or equal to {limit}",
    ErrorCode.LTEQ: "should be less than or equal to {limit}",
    ErrorCode.FORMAT: "should match pattern {limit}",
    ErrorCode.CHOICES: "should be one of {limit}",
}


def describe(value: Any, limit: int = 80) -> str:
    """Short repr of an offending value for messages."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[:limit - 3]}..."


# =============================================================================
# Field Stage
# =============================================================================

def required_error(path: Sequence[PathSegment], message: str | None = None) -> ValidationError:
    return ValidationError.new(path, ErrorCode.REQUIRED, message or "field is required")


def type_error(
    path: Sequence[PathSegment],
    expected: str,
    value: Any,
    message: str | None = None,
) -> ValidationError:
    return ValidationError.new(path, ErrorCode.TYPE, message or f"expected {expected}, got {describe(value)}")


def constraint_error(
    path: Sequence[PathSegment],
    code: ErrorCode,
    limit: Any,
    message: str | None = None,
) -> ValidationError:
    """Constraint failure using the override message or the template for ``code``."""
    if message is None:
        shown = getattr(limit, "pattern", limit)
        if isinstance(shown, (list, tuple, set, frozenset)): shown = list(shown)
        message = CONSTRAINT_TEMPLATES.get(code, "failed {limit} constraint").format(limit=shown)
    return ValidationError.new(path, code, message)


def custom_validation_error(path: Sequence[PathSegment], reason: str) -> ValidationError:
    return ValidationError.new(path, ErrorCode.CUSTOM_VALIDATION, reason)


def invalid_return_error(path: Sequence[PathSegment], returned: Any) -> ValidationError:
    return ValidationError.new(
        path, ErrorCode.CUSTOM_VALIDATION,
        f"Custom validator returned invalid format: {describe(returned)}",
    )


# =============================================================================
# Strict / Model / Computed Stages
# =============================================================================

def additional_properties_error(keys: Iterable[str], path: Sequence[PathSegment] = ()) -> ValidationError:
    return ValidationError.new(path, ErrorCode.ADDITIONAL_PROPERTIES, f"unknown fields: {sorted(keys)}")


def model_validation_error(message: str, path: Sequence[PathSegment] = ()) -> ValidationError:
    return ValidationError.new(path, ErrorCode.MODEL_VALIDATION, message)


def computed_field_error(name: str, reason: str, path: Sequence[PathSegment] = ()) -> ValidationError:
    return ValidationError.new((*path, name), ErrorCode.COMPUTED_FIELD, reason)


def computed_field_type_error(name: str, cause: ValidationError) -> ValidationError:
    """Re-code a descriptor failure on a computed value, keeping its nested path."""
    return ValidationError(
        path=cause.path,
        code=ErrorCode.COMPUTED_FIELD_TYPE,
        message=f"{cause.message} (in computed field {name})",
    )

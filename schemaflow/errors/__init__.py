"""Monadic Error Handling System

Key components:
- Result[T, E]: Monadic container for success/failure
- ValidationError: path-tagged, coded failure record
- ErrorCode: closed vocabulary of validation codes
- Builder functions: Ergonomic error construction

Usage:
    from schemaflow.errors import Ok, Err, ValidationError

    match validate(schema, payload):
        case Ok(record):
            save(record)
        case Err(errors):
            for error in errors:
                print(error.format("simple"))
"""
from .types import (
    # Core types
    Result,
    ValidationResult,
    Ok,
    Err,
    ErrorCode,
    ValidationError,
    Path,
    PathSegment,
    format_path,
    # Combinators
    collect_results,
)

from .builders import (
    CONSTRAINT_TEMPLATES,
    describe,
    required_error,
    type_error,
    constraint_error,
    custom_validation_error,
    invalid_return_error,
    additional_properties_error,
    model_validation_error,
    computed_field_error,
    computed_field_type_error,
)

__all__ = [
    "Result",
    "ValidationResult",
    "Ok",
    "Err",
    "ErrorCode",
    "ValidationError",
    "Path",
    "PathSegment",
    "format_path",
    "collect_results",
    "CONSTRAINT_TEMPLATES",
    "describe",
    "required_error",
    "type_error",
    "constraint_error",
    "custom_validation_error",
    "invalid_return_error",
    "additional_properties_error",
    "model_validation_error",
    "computed_field_error",
    "computed_field_type_error",
]

"""Schema-or-Type Entry Points

One validation surface for both kinds of target: a SchemaDefinition runs the
staged pipeline, anything else is taken as a type spec and goes through a
TypeAdapter. The ``validate_with_*`` and ``validate_for_llm`` variants return
the interchange document alongside the validated value.

Usage:
    validate_target(user_schema, payload)          # Ok(record)
    validate_target(("array", "integer"), ["1"])   # Ok([1])
    run_steps(["string", str.upper, string(max_length=5)], "hello")   # Ok("HELLO")
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

from schemaflow.errors import Err, Ok, Result, ValidationError, ValidationResult, custom_validation_error

from .adapter import TypeAdapter
from .options import ValidationConfig
from .pipeline import validate
from .registry import SchemaRegistry
from .resolver import Document, enforce_structured_output, resolve, resolve_references
from .schema import SchemaDefinition


def _validator_for(
    target: Any,
    config: ValidationConfig | None,
    registry: SchemaRegistry | None,
) -> Callable[[Any], ValidationResult]:
    if isinstance(target, SchemaDefinition):
        return lambda data: validate(target, data, config=config, registry=registry)
    return TypeAdapter(target, config=config, registry=registry).validate


def _document_for(target: Any, registry: SchemaRegistry | None) -> Document:
    if isinstance(target, SchemaDefinition):
        return resolve(target, registry=registry)
    return TypeAdapter(target, registry=registry).json_schema()


def validate_target(
    target: Any,
    data: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> ValidationResult:
    """Validate ``data`` against a SchemaDefinition or a type spec."""
    return _validator_for(target, config, registry)(data)


def validate_many(
    target: Any,
    inputs: Iterable[Any],
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> Result[list[Any], dict[int, list[ValidationError]]]:
    """Validate every input; failures are keyed by input index."""
    check = _validator_for(target, config, registry)
    values: list[Any] = []
    failures: dict[int, list[ValidationError]] = {}
    for index, data in enumerate(inputs):
        match check(data):
            case Ok(value):
                values.append(value)
            case Err(errors):
                failures[index] = errors
    return Err(failures) if failures else Ok(values)


def validate_with_schema(
    target: Any,
    data: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> Result[tuple[Any, Document], list[ValidationError]]:
    """Ok((value, document)) on success; the document is only rendered then."""
    return validate_target(target, data, config=config, registry=registry).map(
        lambda value: (value, _document_for(target, registry))
    )


def validate_with_resolved_schema(
    target: Any,
    data: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
    max_depth: int = 10,
) -> Result[tuple[Any, Document], list[ValidationError]]:
    """Like ``validate_with_schema`` with every local ``$ref`` inlined.

    Raises:
        CircularReferenceError: the target's document is recursive
    """
    return validate_with_schema(target, data, config=config, registry=registry).map(
        lambda pair: (pair[0], resolve_references(pair[1], max_depth=max_depth))
    )


def validate_for_llm(
    target: Any,
    data: Any,
    provider: str = "openai",
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> Result[tuple[Any, Document], list[ValidationError]]:
    """Like ``validate_with_schema`` with the provider profile applied to the document."""
    return validate_with_schema(target, data, config=config, registry=registry).map(
        lambda pair: (pair[0], enforce_structured_output(pair[1], provider))
    )


# ============================================================================
# Step Chains
# ============================================================================

def _run_step(
    step: Any,
    value: Any,
    config: ValidationConfig | None,
    registry: SchemaRegistry | None,
) -> ValidationResult:
    if isinstance(step, SchemaDefinition) or not callable(step):
        return validate_target(step, value, config=config, registry=registry)

    match step(value):
        case Ok(result):
            return Ok(result)
        case Err(ValidationError() as error):
            return Err([error])
        case Err(list() as errors):
            return Err(errors)
        case Err(reason):
            return Err([custom_validation_error((), str(reason))])
        case result:
            return Ok(result)


def run_steps(
    steps: Sequence[Any],
    value: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> Result[Any, tuple[int, list[ValidationError]]]:
    """Thread ``value`` through ``steps`` in order, stopping at the first failure.

    A step is a schema, a type spec, or a one-argument function. A function may
    return ``Ok``/``Err`` or a plain value, which is taken as the new value.

    Returns:
        Ok(final value) or Err((failing step index, errors))
    """
    current = value
    for index, step in enumerate(steps):
        match _run_step(step, current, config, registry):
            case Ok(result):
                current = result
            case Err(errors):
                return Err((index, errors))
    return Ok(current)

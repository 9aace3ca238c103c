"""Validation Pipeline

Runs a SchemaDefinition over a raw input mapping in four ordered stages:

1. field stage: every declared field is attempted, errors accumulate
2. strict check: unmatched input keys, only when the field stage is clean
3. model validators: sequential, the first failure stops the pipeline
4. computed fields: each evaluated independently, errors accumulate

A caller receives either the full record or the errors of the single stage
where the pipeline stopped, never a mix across stages.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Sequence

from schemaflow.errors import (
    Err,
    ErrorCode,
    Ok,
    Path,
    PathSegment,
    ValidationError,
    ValidationResult,
    additional_properties_error,
    computed_field_error,
    computed_field_type_error,
    describe,
    model_validation_error,
    required_error,
    type_error,
)
from schemaflow.logging import LoggerRegistry

from .errors import CollectAllAccumulator, SchemaValidationError
from .evaluator import EvaluationContext, evaluate
from .options import ValidationConfig
from .registry import SchemaRegistry
from .schema import SchemaDefinition

log = LoggerRegistry.get("pipeline")


def validate(
    schema: SchemaDefinition,
    data: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> ValidationResult:
    """Validate ``data`` against ``schema``.

    Args:
        schema: the schema to run
        data: raw input mapping
        config: replaces the schema's own config for this call
        registry: where SchemaRef names resolve (default registry if omitted)

    Returns:
        Ok(record) or Err(list of ValidationError)
    """
    context = EvaluationContext(config=config or schema.config, registry=registry)
    result = run_pipeline(schema, data, (), context)
    log.debug(
        "validation_completed",
        schema=schema.name,
        valid=result.is_ok(),
        error_count=0 if result.is_ok() else len(result.unwrap_err()),
    )
    return result


def validate_or_raise(
    schema: SchemaDefinition,
    data: Any,
    *,
    config: ValidationConfig | None = None,
    registry: SchemaRegistry | None = None,
) -> dict[str, Any]:
    """Like ``validate`` but returns the record or raises SchemaValidationError."""
    match validate(schema, data, config=config, registry=registry):
        case Ok(record):
            return record
        case Err(errors):
            error_format = (config or schema.config).error_format
            raise SchemaValidationError(errors, error_format=error_format, schema_name=schema.name)


def run_pipeline(
    schema: SchemaDefinition,
    data: Any,
    path: Sequence[PathSegment],
    context: EvaluationContext,
) -> ValidationResult:
    """All four stages; ``path`` prefixes every error (non-empty for nested schemas)."""
    path = tuple(path)
    if not isinstance(data, Mapping):
        return Err([type_error(path, "map", data)])

    match _field_stage(schema, data, path, context):
        case Err() as failed:
            return failed
        case Ok((record, consumed)):
            pass

    if context.config.rejects_extra_fields and (extras := context.keys.unmatched(data, consumed)):
        return Err([additional_properties_error(extras, path)])

    return _model_stage(schema, record, path).and_then(
        lambda validated: _computed_stage(schema, validated, path, context)
    )


# ============================================================================
# Stages
# ============================================================================

def _field_stage(
    schema: SchemaDefinition,
    data: Mapping[Any, Any],
    path: Path,
    context: EvaluationContext,
) -> Ok[tuple[dict[str, Any], list[Any]]] | Err[list[ValidationError]]:
    keys = context.keys
    accumulator = CollectAllAccumulator()
    record: dict[str, Any] = {}
    consumed: list[Any] = []

    for field in schema.fields:
        field_path = (*path, field.name)
        input_key, value = keys.lookup(data, field.name)
        if input_key is None:
            if field.required:
                accumulator.add([required_error(field_path, field.type.message_for("required"))])
            elif field.has_default:
                record[field.name] = copy.deepcopy(field.default)
            continue

        consumed.append(input_key)
        match evaluate(field.type, value, field_path, context):
            case Ok(result):
                record[field.name] = result
            case Err(errors):
                accumulator.add(errors)

    if accumulator.has_errors():
        return Err(accumulator.get_errors())
    return Ok((record, consumed))


def _model_stage(schema: SchemaDefinition, record: dict[str, Any], path: Path) -> ValidationResult:
    for validator in schema.model_validators:
        try:
            outcome = validator(record)
        except Exception as exc:
            log.warning("model_validator_raised", schema=schema.name, validator=validator.name, error=str(exc))
            return Err([model_validation_error(f"Exception in model validator {validator.name}: {exc}", path)])

        match outcome:
            case Ok(Mapping() as updated):
                record = dict(updated)
            case Err(str() as reason):
                return Err([model_validation_error(reason, path)])
            case Err(ValidationError() as error):
                return Err([error.with_code(ErrorCode.MODEL_VALIDATION).with_path_prefix(path)])
            case _:
                return Err([model_validation_error(
                    f"Invalid return from model validator {validator.name}: {describe(outcome)}", path,
                )])
    return Ok(record)


def _computed_stage(
    schema: SchemaDefinition,
    record: dict[str, Any],
    path: Path,
    context: EvaluationContext,
) -> ValidationResult:
    if not schema.computed_fields: return Ok(record)

    accumulator = CollectAllAccumulator()
    computed: dict[str, Any] = {}
    for definition in schema.computed_fields:
        match definition.function(record):
            case Err(str() as reason):
                accumulator.add([computed_field_error(definition.name, reason, path)])
                continue
            case Err(ValidationError() as error):
                accumulator.add([computed_field_error(definition.name, error.message, path)])
                continue
            case Err(other):
                accumulator.add([computed_field_error(definition.name, describe(other), path)])
                continue
            case Ok(value):
                pass
            case value:
                pass

        match evaluate(definition.type, value, (*path, definition.name), context):
            case Ok(result):
                computed[definition.name] = result
            case Err(errors):
                accumulator.add([computed_field_type_error(definition.name, e) for e in errors])

    if accumulator.has_errors():
        return Err(accumulator.get_errors())
    return Ok({**record, **computed})

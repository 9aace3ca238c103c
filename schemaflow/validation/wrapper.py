"""Single-Field Wrappers

A wrapper is an unregistered one-field SchemaDefinition used to validate a
single value with full field semantics: constraints, defaults, required-ness
and custom messages. Input may be the bare value or a mapping that holds it
under the field name.

Usage:
    count = create_wrapper("count", "integer", coerce=True, gt=0)
    validate_and_extract(count, "42")             # Ok(42)
    validate_and_extract(count, {"count": "0"})   # Err([... gt ...])
"""
from __future__ import annotations

from collections.abc import Mapping
from itertools import count
from typing import Any, Callable, Iterable

from schemaflow.errors import Err, Ok, ValidationResult, required_error

from .descriptors import MappingType, ObjectType, PrimitiveType, SchemaRef, TypeDescriptor, UnionType
from .errors import SchemaDefinitionError
from .keys import KeyMatcher
from .options import CoercionPolicy, ValidationConfig
from .pipeline import validate
from .registry import SchemaRegistry, build_field
from .resolver import Document, resolve
from .schema import MISSING, FieldDefinition, SchemaDefinition

WRAPPER_PREFIX = "Wrapper_"

_sequence = count(1)


def create_wrapper(
    field_name: str,
    type_spec: Any,
    *,
    required: bool = True,
    coerce: bool = False,
    description: str | None = None,
    example: Any = MISSING,
    default: Any = MISSING,
    **options: Any,
) -> SchemaDefinition:
    """Build a one-field wrapper schema.

    Args:
        field_name: name of the single field
        type_spec: descriptor or shorthand for the field type
        coerce: safe coercion when set, no coercion otherwise
        options: constraints and other field options (``gt=0``, ``validators=[...]``)

    Raises:
        SchemaDefinitionError: empty field name or unknown option
    """
    if not field_name or not isinstance(field_name, str):
        raise SchemaDefinitionError(f"wrapper field name must be a non-empty string, got {field_name!r}")

    field_options: dict[str, Any] = {"required": required, **options}
    if description is not None: field_options["description"] = description
    if example is not MISSING: field_options["example"] = example
    if default is not MISSING: field_options["default"] = default

    return SchemaDefinition(
        fields=(build_field(field_name, type_spec, field_options),),
        config=ValidationConfig(coercion=CoercionPolicy.SAFE if coerce else CoercionPolicy.NONE),
        name=f"{WRAPPER_PREFIX}{field_name}_{next(_sequence)}",
        title=f"Wrapper for {field_name}",
        description=f"Temporary validation schema for {field_name}",
    )


def create_flexible_wrapper(field_name: str, type_spec: Any, **options: Any) -> SchemaDefinition:
    """Wrapper meant for ``validate_flexible``; the schema itself is identical."""
    return create_wrapper(field_name, type_spec, **options)


def create_wrapper_factory(type_spec: Any, **base_options: Any) -> Callable[..., SchemaDefinition]:
    """Wrapper constructor bound to one type; per-call options override ``base_options``."""
    def factory(field_name: str, **options: Any) -> SchemaDefinition:
        return create_wrapper(field_name, type_spec, **{**base_options, **options})
    return factory


def create_multiple_wrappers(specs: Iterable[tuple], **global_options: Any) -> dict[str, SchemaDefinition]:
    """``(name, type_spec[, options])`` entries to a name -> wrapper mapping."""
    wrappers: dict[str, SchemaDefinition] = {}
    for spec in specs:
        field_name, type_spec, *rest = spec
        options = {**global_options, **(rest[0] if rest else {})}
        wrappers[field_name] = create_wrapper(field_name, type_spec, **options)
    return wrappers


# ============================================================================
# Validation
# ============================================================================

def _wrapped_field(wrapper: SchemaDefinition, field_name: str | None) -> FieldDefinition:
    if field_name is None:
        if len(wrapper.fields) != 1:
            raise SchemaDefinitionError(f"{wrapper.name!r} has {len(wrapper.fields)} fields; pass field_name")
        return wrapper.fields[0]
    if (field := wrapper.get_field(field_name)) is None:
        raise SchemaDefinitionError(f"{wrapper.name!r} has no field {field_name!r}")
    return field


def _accepts_mapping(descriptor: TypeDescriptor) -> bool:
    match descriptor:
        case PrimitiveType(name=name):
            return name in ("map", "any")
        case MappingType() | ObjectType() | SchemaRef():
            return True
        case UnionType(alternatives=alternatives):
            return any(_accepts_mapping(a) for a in alternatives)
        case _:
            return False


def _payload(data: Any, field: FieldDefinition, keys: KeyMatcher, *, flexible: bool) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        return {field.name: data}
    input_key, value = keys.lookup(data, field.name)
    if input_key is not None:
        return {field.name: value}
    # No key for the field: the mapping is the value only if the type can hold one.
    if flexible or _accepts_mapping(field.type):
        return {field.name: data}
    return {}


def _run(
    wrapper: SchemaDefinition,
    data: Any,
    field_name: str | None,
    registry: SchemaRegistry | None,
    *,
    flexible: bool,
) -> ValidationResult:
    field = _wrapped_field(wrapper, field_name)
    payload = _payload(data, field, KeyMatcher(wrapper.config.case_sensitive), flexible=flexible)
    match validate(wrapper, payload, registry=registry):
        case Ok(record) if field.name in record:
            return Ok(record[field.name])
        case Ok(_):
            return Err([required_error((field.name,), "field not found in validated result")])
        case failed:
            return failed


def validate_and_extract(
    wrapper: SchemaDefinition,
    data: Any,
    field_name: str | None = None,
    *,
    registry: SchemaRegistry | None = None,
) -> ValidationResult:
    """Validate ``data`` through ``wrapper`` and return the bare field value.

    A mapping without the field key is taken as the value itself only when the
    field type accepts mappings; otherwise the field counts as missing.
    """
    return _run(wrapper, data, field_name, registry, flexible=False)


def validate_flexible(
    wrapper: SchemaDefinition,
    data: Any,
    field_name: str | None = None,
    *,
    registry: SchemaRegistry | None = None,
) -> ValidationResult:
    """Like ``validate_and_extract``, but a mapping without the field key is always the value."""
    return _run(wrapper, data, field_name, registry, flexible=True)


def wrap_and_validate(field_name: str, type_spec: Any, value: Any, **options: Any) -> ValidationResult:
    """One-shot ``create_wrapper`` + ``validate_and_extract``."""
    return validate_and_extract(create_wrapper(field_name, type_spec, **options), value)


def validate_multiple(wrappers: Mapping[str, SchemaDefinition], data: Mapping[str, Any]):
    """Validate ``data[name]`` with each wrapper.

    Returns:
        Ok(name -> value), or Err(name -> errors) covering every failing name
    """
    values: dict[str, Any] = {}
    failures: dict[str, list] = {}
    for name, wrapper in wrappers.items():
        if name not in data:
            failures[name] = [required_error((name,), "field not provided")]
            continue
        match validate_and_extract(wrapper, data[name]):
            case Ok(value):
                values[name] = value
            case Err(errors):
                failures[name] = errors
    return Err(failures) if failures else Ok(values)


# ============================================================================
# Introspection
# ============================================================================

def unwrap_result(record: Mapping[str, Any], field_name: str) -> Any:
    return record.get(field_name)


def is_wrapper(schema: Any) -> bool:
    return isinstance(schema, SchemaDefinition) and bool(schema.name) and schema.name.startswith(WRAPPER_PREFIX)


def wrapper_info(schema: SchemaDefinition) -> dict[str, Any]:
    names = schema.field_names
    return {
        "is_wrapper": is_wrapper(schema),
        "field_name": names[0] if names else None,
        "field_count": len(names),
        "wrapper_type": "single_field" if len(names) == 1 else "multi_field",
        "created_at": schema.created_at,
        "schema_name": schema.name,
    }


def to_json_schema(wrapper: SchemaDefinition, **options: Any) -> Document:
    return resolve(wrapper, **options)

"""Constraint & Coercion Evaluator

``evaluate(descriptor, value, path)`` validates one value against one
descriptor and returns ``Ok(normalized)`` or ``Err([ValidationError, ...])``.

Order for every descriptor:
1. structural check (with policy-scoped coercion when the raw shape is off)
2. built-in constraints in attachment order, first failure wins
3. custom validators in attachment order, each fed the previous output

Composite kinds recurse with the element index or key appended to the path.
Exceptions raised by custom validators are not caught here.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence

from schemaflow.errors import (
    Err,
    Ok,
    Path,
    PathSegment,
    ValidationError,
    ValidationResult,
    collect_results,
    constraint_error,
    custom_validation_error,
    invalid_return_error,
    required_error,
    type_error,
)

from .coercion import Coercer, coercer_for
from .constraints import FORMAT_CHECKS, check_for
from .descriptors import (
    STRING_FORMATS,
    ArrayType,
    MappingType,
    ObjectType,
    PrimitiveType,
    SchemaRef,
    TupleType,
    TypeDescriptor,
    UnionType,
)
from .keys import KeyMatcher, textual_form
from .options import DEFAULT_CONFIG, ValidationConfig

if TYPE_CHECKING:
    from .registry import SchemaRegistry
    from .schema import SchemaDefinition


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Per-call settings: active config, coercer, and where SchemaRefs resolve."""
    config: ValidationConfig = DEFAULT_CONFIG
    registry: SchemaRegistry | None = None
    coercer: Coercer | None = field(default=None, compare=False)

    def __post_init__(self):
        if self.coercer is None:
            object.__setattr__(self, "coercer", coercer_for(self.config.coercion))

    @property
    def keys(self) -> KeyMatcher: return KeyMatcher(self.config.case_sensitive)

    def for_schema(self, schema: SchemaDefinition) -> EvaluationContext:
        """Context for a nested schema: its own config, the same registry."""
        if schema.config is self.config: return self
        return EvaluationContext(config=schema.config, registry=self.registry)

    def resolve(self, ref: SchemaRef) -> SchemaDefinition:
        if ref.schema is not None: return ref.schema
        if self.registry is not None: return self.registry.get(ref.name)
        from .registry import default_registry
        return default_registry.get(ref.name)


DEFAULT_CONTEXT = EvaluationContext()

UNION_MISMATCH = "value did not match any type in union"


def evaluate(
    descriptor: TypeDescriptor,
    value: Any,
    path: Sequence[PathSegment] = (),
    context: EvaluationContext | None = None,
) -> ValidationResult:
    """Validate ``value`` against ``descriptor``. Pure for pure custom validators."""
    context = context or DEFAULT_CONTEXT
    path = tuple(path)

    match descriptor:
        case PrimitiveType():
            result = _evaluate_primitive(descriptor, value, path, context)
        case ArrayType():
            result = _evaluate_array(descriptor, value, path, context)
        case MappingType():
            result = _evaluate_mapping(descriptor, value, path, context)
        case TupleType():
            result = _evaluate_tuple(descriptor, value, path, context)
        case UnionType():
            result = _evaluate_union(descriptor, value, path, context)
        case ObjectType():
            result = _evaluate_object(descriptor, value, path, context)
        case SchemaRef():
            result = _evaluate_ref(descriptor, value, path, context)
        case _:
            raise TypeError(f"not a type descriptor: {descriptor!r}")

    if result.is_err(): return result
    return _apply_constraints(descriptor, result.unwrap(), path).and_then(
        lambda v: _apply_validators(descriptor, v, path)
    )


def _mismatch(descriptor: TypeDescriptor, expected: str, value: Any, path: Path) -> Err:
    return Err([type_error(path, expected, value, descriptor.message_for("type"))])


# ============================================================================
# Primitives
# ============================================================================

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def matches_primitive(name: str, value: Any) -> bool:
    """Raw shape check for a primitive name, no coercion."""
    match name:
        case "string":
            return isinstance(value, str)
        case "integer":
            return _is_int(value)
        case "float":
            return isinstance(value, float) or _is_int(value)
        case "boolean":
            return isinstance(value, bool)
        case "any":
            return True
        case "map":
            return isinstance(value, Mapping)
        case "null":
            return value is None
        case _ if name in STRING_FORMATS:
            return isinstance(value, str) and FORMAT_CHECKS[name](value)
    return False


def _normalize_primitive(name: str, value: Any) -> Any:
    if name == "float" and _is_int(value): return float(value)
    if name == "map" and not isinstance(value, dict): return dict(value)
    return value


def _evaluate_primitive(descriptor: PrimitiveType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    name = descriptor.name
    if matches_primitive(name, value):
        return Ok(_normalize_primitive(name, value))

    if context.coercer.enabled:
        target = "string" if name in STRING_FORMATS else name
        if (coerced := context.coercer.coerce(value, target)).is_ok() and matches_primitive(name, coerced.unwrap()):
            return Ok(_normalize_primitive(name, coerced.unwrap()))

    if name in STRING_FORMATS and isinstance(value, str):
        return _mismatch(descriptor, f"{name} formatted string", value, path)
    return _mismatch(descriptor, name, value, path)


# ============================================================================
# Composites
# ============================================================================

def _evaluate_array(descriptor: ArrayType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    if not isinstance(value, (list, tuple)):
        if (wrapped := context.coercer.wrap_scalar(value)).is_err():
            return _mismatch(descriptor, "array", value, path)
        value = wrapped.unwrap()

    return collect_results([
        evaluate(descriptor.element, item, (*path, index), context)
        for index, item in enumerate(value)
    ])


def _key_segment(key: Any) -> PathSegment:
    return key if isinstance(key, (str, int)) and not isinstance(key, bool) else textual_form(key)


def _evaluate_mapping(descriptor: MappingType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    if not isinstance(value, Mapping):
        return _mismatch(descriptor, "map", value, path)

    output: dict[Any, Any] = {}
    errors: list[ValidationError] = []
    for key, item in value.items():
        entry_path = (*path, _key_segment(key))
        key_result = evaluate(descriptor.key, key, entry_path, context)
        value_result = evaluate(descriptor.value, item, entry_path, context)
        match key_result, value_result:
            case Ok(k), Ok(v):
                output[k] = v
            case _:
                if key_result.is_err(): errors.extend(key_result.unwrap_err())
                if value_result.is_err(): errors.extend(value_result.unwrap_err())
    return Err(errors) if errors else Ok(output)


def _evaluate_tuple(descriptor: TupleType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    if not isinstance(value, (list, tuple)):
        return _mismatch(descriptor, "tuple", value, path)
    if (expected := len(descriptor.elements)) != len(value):
        message = descriptor.message_for("type") or f"expected tuple of {expected} elements, got {len(value)}"
        return Err([type_error(path, "tuple", value, message)])

    return collect_results([
        evaluate(element, item, (*path, index), context)
        for index, (element, item) in enumerate(zip(descriptor.elements, value))
    ]).map(tuple)


def _evaluate_union(descriptor: UnionType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    errors: list[ValidationError] = []
    for alternative in descriptor.alternatives:
        match evaluate(alternative, value, path, context):
            case Ok(result):
                return Ok(result)
            case Err(alternative_errors):
                errors.extend(alternative_errors)

    deepest = max(errors, key=lambda e: len(e.path), default=None)
    if deepest is not None and len(deepest.path) > len(path):
        return Err([deepest])
    return Err([type_error(path, "union", value, descriptor.message_for("type") or UNION_MISMATCH)])


def _evaluate_object(descriptor: ObjectType, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    if not isinstance(value, Mapping):
        return _mismatch(descriptor, "map", value, path)

    keys = context.keys
    output: dict[str, Any] = {}
    errors: list[ValidationError] = []
    for name, field_descriptor in descriptor.fields:
        input_key, item = keys.lookup(value, name)
        if input_key is None:
            errors.append(required_error((*path, name)))
            continue
        match evaluate(field_descriptor, item, (*path, name), context):
            case Ok(result):
                output[name] = result
            case Err(field_errors):
                errors.extend(field_errors)
    return Err(errors) if errors else Ok(output)


def _evaluate_ref(descriptor: SchemaRef, value: Any, path: Path, context: EvaluationContext) -> ValidationResult:
    from .pipeline import run_pipeline

    schema = context.resolve(descriptor)
    return run_pipeline(schema, value, path, context.for_schema(schema))


# ============================================================================
# Constraints and Custom Validators
# ============================================================================

def _apply_constraints(descriptor: TypeDescriptor, value: Any, path: Path) -> ValidationResult:
    for constraint in descriptor.constraints:
        if not (check := check_for(constraint).validate(value)).is_valid:
            message = descriptor.message_for(constraint.kind.value)
            return Err([constraint_error(path, check.code, check.limit, message)])
    return Ok(value)


def _apply_validators(descriptor: TypeDescriptor, value: Any, path: Path) -> ValidationResult:
    for validator in descriptor.validators:
        match validator(value):
            case Ok(transformed):
                value = transformed
            case Err(ValidationError() as error):
                return Err([error.with_path_prefix(path)])
            case Err(str() as reason):
                return Err([custom_validation_error(path, reason)])
            case other:
                return Err([invalid_return_error(path, other)])
    return Ok(value)

"""Schema Registry and Dynamic Composition

``compose`` is the imperative way to author a SchemaDefinition: a field list
plus ordered model validators and computed-field triples. It produces exactly
the value the pipeline and the resolver consume, so nothing downstream needs
to know how a schema was authored.

Usage:
    schema = compose(
        [
            ("password", "string", {"min_length": 8}),
            ("password_confirmation", "string"),
        ],
        name="Signup",
        model_validators=[passwords_match],
        computed_fields=[("strength", "integer", score_password)],
    )
"""
from __future__ import annotations

from dataclasses import replace
from threading import RLock
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

from schemaflow.logging import LoggerRegistry

from .descriptors import (
    CONSTRAINT_NAMES,
    ConstraintKind,
    normalize_type,
    with_constraints,
    with_error_messages,
    with_validator,
)
from .errors import SchemaDefinitionError, SchemaReferenceError
from .options import DEFAULT_CONFIG, ValidationConfig
from .schema import (
    MISSING,
    ComputedFieldDefinition,
    FieldDefinition,
    ModelValidatorRef,
    SchemaDefinition,
)

log = LoggerRegistry.get("registry")

FIELD_OPTIONS = frozenset({
    "required", "optional", "default", "description", "example", "examples",
    "error_messages", "validators", "extra",
})
COMPUTED_OPTIONS = frozenset({"description", "example"})


class SchemaRegistry:
    """Name -> SchemaDefinition lookup used to resolve SchemaRef descriptors.

    Registration happens at composition time; validation only reads.
    """

    def __init__(self, schemas: Iterable[SchemaDefinition] = ()):
        self._schemas: dict[str, SchemaDefinition] = {}
        self._lock = RLock()
        for schema in schemas: self.register(schema)

    def register(self, schema: SchemaDefinition, *, replace_existing: bool = True) -> SchemaDefinition:
        if not schema.name:
            raise SchemaDefinitionError("only named schemas can be registered")
        with self._lock:
            if not replace_existing and schema.name in self._schemas:
                raise SchemaDefinitionError(f"schema {schema.name!r} is already registered")
            self._schemas[schema.name] = schema
        log.debug("schema_registered", schema=schema.name, fields=len(schema.fields))
        return schema

    def get(self, name: str) -> SchemaDefinition:
        if (schema := self._schemas.get(name)) is None:
            raise SchemaReferenceError(name)
        return schema

    def unregister(self, name: str) -> None:
        with self._lock: self._schemas.pop(name, None)

    def clear(self) -> None:
        with self._lock: self._schemas.clear()

    def names(self) -> list[str]: return list(self._schemas)

    def __contains__(self, name: object) -> bool: return name in self._schemas

    def __iter__(self) -> Iterator[SchemaDefinition]: return iter(list(self._schemas.values()))

    def __len__(self) -> int: return len(self._schemas)


default_registry = SchemaRegistry()


# ============================================================================
# Field / Validator / Computed Spec Normalization
# ============================================================================

def build_field(name: str, type_spec: Any, options: Mapping[str, Any] | None = None) -> FieldDefinition:
    """Build a FieldDefinition from ``(name, type, options)`` parts.

    Constraint keys in ``options`` are attached in option order. ``required``
    defaults to True; ``optional=True`` or a ``default`` makes the field optional.
    """
    options = dict(options or {})
    if unknown := set(options) - FIELD_OPTIONS - CONSTRAINT_NAMES:
        raise SchemaDefinitionError(f"field {name!r}: unknown options {sorted(unknown)}")

    descriptor = normalize_type(type_spec)
    constraints = [(ConstraintKind.parse(k), v) for k, v in options.items() if k in CONSTRAINT_NAMES]
    if constraints: descriptor = with_constraints(descriptor, *constraints)
    if messages := options.get("error_messages"): descriptor = with_error_messages(descriptor, messages)
    for validator in options.get("validators", ()):
        descriptor = with_validator(descriptor, validator)

    required = options.get("required", True) and not options.get("optional", False)
    examples = options.get("examples") or ()
    return FieldDefinition(
        name=name,
        type=descriptor,
        required=bool(required),
        default=options.get("default", MISSING),
        description=options.get("description"),
        example=options.get("example", MISSING),
        examples=tuple(examples),
        extra=tuple((options.get("extra") or {}).items()),
    )


def _as_field(spec: Any) -> FieldDefinition:
    if isinstance(spec, FieldDefinition): return spec
    if isinstance(spec, (tuple, list)) and len(spec) in (2, 3):
        return build_field(*spec)
    raise SchemaDefinitionError(f"invalid field specification: {spec!r}")


def _as_model_validator(spec: Any) -> ModelValidatorRef:
    if isinstance(spec, ModelValidatorRef): return spec
    if isinstance(spec, (tuple, list)) and len(spec) == 2 and isinstance(spec[0], str):
        return ModelValidatorRef(spec[1], name=spec[0])
    if callable(spec): return ModelValidatorRef(spec)
    raise SchemaDefinitionError(f"invalid model validator: {spec!r}")


def _as_computed_field(spec: Any) -> ComputedFieldDefinition:
    if isinstance(spec, ComputedFieldDefinition): return spec
    if not isinstance(spec, (tuple, list)) or len(spec) not in (3, 4):
        raise SchemaDefinitionError(f"invalid computed field specification: {spec!r}")
    name, type_spec, function, *rest = spec
    options = dict(rest[0]) if rest else {}
    if unknown := set(options) - COMPUTED_OPTIONS:
        raise SchemaDefinitionError(f"computed field {name!r}: unknown options {sorted(unknown)}")
    return ComputedFieldDefinition(
        name=name,
        type=normalize_type(type_spec),
        function=function,
        description=options.get("description"),
        example=options.get("example", MISSING),
    )


def _resolve_config(config: ValidationConfig | Mapping[str, Any] | None, strict: bool | None) -> ValidationConfig:
    if config is None: config = DEFAULT_CONFIG
    elif isinstance(config, Mapping): config = ValidationConfig(**config)
    if strict is not None and strict != config.strict:
        overrides: dict[str, Any] = {"strict": strict}
        if strict and config.extra == "allow": overrides["extra"] = "forbid"
        config = config.model_copy(update=overrides)
    if problems := config.check():
        raise SchemaDefinitionError(f"inconsistent configuration: {'; '.join(problems)}")
    return config


# ============================================================================
# Composition
# ============================================================================

def compose(
    fields: Sequence[Any],
    *,
    name: str | None = None,
    title: str | None = None,
    description: str | None = None,
    strict: bool | None = None,
    config: ValidationConfig | Mapping[str, Any] | None = None,
    model_validators: Sequence[Callable | tuple[str, Callable] | ModelValidatorRef] = (),
    computed_fields: Sequence[Any] = (),
    registry: SchemaRegistry | None = None,
) -> SchemaDefinition:
    """Build a SchemaDefinition at run time.

    Args:
        fields: FieldDefinition or ``(name, type_spec[, options])`` entries
        name: registers the schema under this name for SchemaRef lookup
        strict: shortcut overriding ``config.strict`` (implies ``extra="forbid"``)
        model_validators: callables or ``(name, callable)`` pairs, run in order
        computed_fields: ``(name, type_spec, function[, options])`` entries
        registry: where named schemas are registered (default registry if omitted)
    """
    schema = SchemaDefinition(
        fields=tuple(_as_field(f) for f in fields),
        model_validators=tuple(_as_model_validator(v) for v in model_validators),
        computed_fields=tuple(_as_computed_field(c) for c in computed_fields),
        config=_resolve_config(config, strict),
        name=name,
        title=title or name,
        description=description,
    )
    if name: (default_registry if registry is None else registry).register(schema)
    log.debug(
        "schema_composed",
        schema=name,
        fields=len(schema.fields),
        model_validators=len(schema.model_validators),
        computed_fields=len(schema.computed_fields),
    )
    return schema


def _reregister(original: SchemaDefinition, updated: SchemaDefinition, registry: SchemaRegistry | None) -> SchemaDefinition:
    # Named schemas stay current in the registry they were composed into.
    registry = default_registry if registry is None else registry
    if original.name and original.name in registry and registry.get(original.name) is original:
        registry.register(updated)
    return updated


def with_model_validator(
    schema: SchemaDefinition,
    validator: Callable | ModelValidatorRef,
    name: str | None = None,
    *,
    registry: SchemaRegistry | None = None,
) -> SchemaDefinition:
    """Return a copy of ``schema`` with one more model validator at the end.

    A named schema registered in ``registry`` is replaced there by the copy.
    """
    ref = _as_model_validator((name, validator) if name else validator)
    return _reregister(schema, replace(schema, model_validators=(*schema.model_validators, ref)), registry)


def with_computed_field(
    schema: SchemaDefinition,
    name: str,
    type_spec: Any,
    function: Callable[[dict[str, Any]], Any],
    *,
    registry: SchemaRegistry | None = None,
    **options: Any,
) -> SchemaDefinition:
    """Return a copy of ``schema`` with one more computed field at the end.

    A named schema registered in ``registry`` is replaced there by the copy.
    """
    computed = _as_computed_field((name, type_spec, function, options))
    return _reregister(schema, replace(schema, computed_fields=(*schema.computed_fields, computed)), registry)

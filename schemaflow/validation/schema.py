"""Schema Definitions

Immutable schema descriptions shared by the validation pipeline and the
interchange document resolver. Both read required-ness and the
declared/computed classification from here, so they cannot drift apart.

Usage:
    schema = SchemaDefinition(
        fields=(FieldDefinition("name", string(min_length=2)),),
        name="User",
    )
    required_fields(schema)  # ("name",)
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable

from .descriptors import TypeDescriptor
from .errors import SchemaDefinitionError
from .options import DEFAULT_CONFIG, ValidationConfig


class _Missing:
    """Sentinel for an absent default."""
    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None: cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str: return "MISSING"

    def __bool__(self) -> bool: return False


MISSING: Any = _Missing()

ModelValidatorFn = Callable[[dict[str, Any]], Any]
ComputeFn = Callable[[dict[str, Any]], Any]


def _function_name(fn: Callable) -> str:
    return getattr(fn, "__name__", None) or getattr(fn, "__qualname__", None) or repr(fn)


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    """A declared input field.

    A field with a default is always optional; ``default`` stays MISSING otherwise.
    """
    name: str
    type: TypeDescriptor
    required: bool = True
    default: Any = MISSING
    description: str | None = None
    example: Any = MISSING
    examples: tuple[Any, ...] = ()
    extra: tuple[tuple[str, Any], ...] = ()

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise SchemaDefinitionError(f"field name must be a non-empty string, got {self.name!r}")
        if self.default is not MISSING and self.required:
            object.__setattr__(self, "required", False)

    @property
    def has_default(self) -> bool: return self.default is not MISSING

    @property
    def all_examples(self) -> list[Any]:
        if self.examples: return list(self.examples)
        return [] if self.example is MISSING else [self.example]


@dataclass(frozen=True, slots=True)
class ModelValidatorRef:
    """A whole-record validator: record in, Ok(record) or Err(reason) out."""
    function: ModelValidatorFn = field(compare=False)
    name: str = ""

    def __post_init__(self):
        if not callable(self.function):
            raise SchemaDefinitionError(f"model validator must be callable, got {self.function!r}")
        if not self.name: object.__setattr__(self, "name", _function_name(self.function))

    def __call__(self, record: dict[str, Any]) -> Any: return self.function(record)


@dataclass(frozen=True, slots=True)
class ComputedFieldDefinition:
    """An output-only field derived from the validated record."""
    name: str
    type: TypeDescriptor
    function: ComputeFn = field(compare=False)
    description: str | None = None
    example: Any = MISSING

    def __post_init__(self):
        if not callable(self.function):
            raise SchemaDefinitionError(f"computed field {self.name!r} needs a callable, got {self.function!r}")

    @property
    def function_name(self) -> str: return _function_name(self.function)


@dataclass(frozen=True, slots=True)
class SchemaDefinition:
    """Ordered fields, model validators, computed fields and configuration."""
    fields: tuple[FieldDefinition, ...]
    model_validators: tuple[ModelValidatorRef, ...] = ()
    computed_fields: tuple[ComputedFieldDefinition, ...] = ()
    config: ValidationConfig = DEFAULT_CONFIG
    name: str | None = None
    title: str | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def __post_init__(self):
        seen: set[str] = set()
        for f in self.fields:
            if f.name in seen: raise SchemaDefinitionError(f"duplicate field: {f.name!r}")
            seen.add(f.name)
        for c in self.computed_fields:
            if c.name in seen:
                raise SchemaDefinitionError(f"computed field {c.name!r} collides with a declared field")
            seen.add(c.name)

    @property
    def field_names(self) -> tuple[str, ...]: return tuple(f.name for f in self.fields)

    @property
    def computed_field_names(self) -> tuple[str, ...]: return tuple(c.name for c in self.computed_fields)

    @property
    def strict(self) -> bool: return self.config.rejects_extra_fields

    def get_field(self, name: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.name == name), None)

    def with_config(self, config: ValidationConfig) -> SchemaDefinition:
        return replace(self, config=config)

    def summary(self) -> dict[str, Any]:
        """Counts and names for diagnostics."""
        return {
            "name": self.name,
            "title": self.title,
            "field_count": len(self.fields),
            "required_fields": list(required_fields(self)),
            "optional_fields": [f.name for f in self.fields if not f.required],
            "model_validator_count": len(self.model_validators),
            "computed_field_count": len(self.computed_fields),
            "computed_fields": list(self.computed_field_names),
            "config": self.config.summary(),
            "created_at": self.created_at.isoformat(),
        }


def required_fields(schema: SchemaDefinition) -> tuple[str, ...]:
    """Declared fields that must be present; never computed fields."""
    return tuple(f.name for f in schema.fields if f.required)

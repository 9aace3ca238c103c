"""Type Descriptors

Immutable, recursively composable descriptions of an expected value shape.
A descriptor is one variant of a closed tagged union; composition happens by
nesting (array-of-union, mapping-of-ref) and never by mutation.

Features:
- Frozen, slotted dataclass variants for safe sharing across calls
- Ordered constraints, per-kind error message overrides, custom validator hooks
- Pure transformers (with_constraints, with_error_message, with_validator)
- Shorthand normalization ("string", ("array", "integer"), ...)
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Union

from schemaflow.errors import ErrorCode

from .errors import SchemaDefinitionError

if TYPE_CHECKING:
    from .schema import SchemaDefinition

CustomValidator = Callable[[Any], Any]


class ConstraintKind(str, Enum):
    """Built-in constraint kinds. Values double as error codes."""
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN_ITEMS = "min_items"
    MAX_ITEMS = "max_items"
    SIZE = "size?"
    GT = "gt"
    LT = "lt"
    GTEQ = "gteq"
    LTEQ = "lteq"
    FORMAT = "format"
    CHOICES = "choices"

    @property
    def code(self) -> ErrorCode:
        return ErrorCode(self.value)

    @classmethod
    def parse(cls, kind: ConstraintKind | str) -> ConstraintKind:
        """Accept enum members, values, or the keyword-friendly ``size``."""
        if isinstance(kind, cls): return kind
        if kind == "size": return cls.SIZE
        try:
            return cls(kind)
        except ValueError:
            raise SchemaDefinitionError(f"unknown constraint: {kind!r}") from None


CONSTRAINT_NAMES = frozenset({k.value for k in ConstraintKind} | {"size"})


@dataclass(frozen=True, slots=True)
class Constraint:
    """A single (kind, parameter) rule attached to a descriptor."""
    kind: ConstraintKind
    value: Any

    def __post_init__(self):
        kind = ConstraintKind.parse(self.kind)
        object.__setattr__(self, "kind", kind)
        match kind:
            case ConstraintKind.FORMAT:
                if isinstance(self.value, str):
                    object.__setattr__(self, "value", re.compile(self.value))
                elif not isinstance(self.value, re.Pattern):
                    raise SchemaDefinitionError(f"format constraint needs a regex, got {self.value!r}")
            case ConstraintKind.CHOICES:
                if isinstance(self.value, (str, bytes)) or not isinstance(self.value, Iterable):
                    raise SchemaDefinitionError(f"choices constraint needs a collection, got {self.value!r}")
                object.__setattr__(self, "value", tuple(self.value))
            case _:
                if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
                    raise SchemaDefinitionError(f"{kind.value} constraint needs a number, got {self.value!r}")

    @property
    def parameter(self) -> Any:
        """JSON-friendly parameter (regex source for format, list for choices)."""
        if self.kind is ConstraintKind.FORMAT: return self.value.pattern
        if self.kind is ConstraintKind.CHOICES: return list(self.value)
        return self.value


# ============================================================================
# Descriptor Variants
# ============================================================================

@dataclass(frozen=True, slots=True, kw_only=True)
class DescriptorBase(ABC):
    """Fields shared by every descriptor variant."""
    constraints: tuple[Constraint, ...] = ()
    error_messages: tuple[tuple[str, str], ...] = ()
    validators: tuple[CustomValidator, ...] = field(default=(), compare=False)

    @property
    @abstractmethod
    def label(self) -> str:
        """Short human-readable name used in type errors."""

    def message_for(self, kind: str) -> str | None:
        """Custom override for a constraint kind (or ``type``), if any."""
        for key, message in self.error_messages:
            if key == kind: return message
        return None


PRIMITIVE_NAMES = frozenset({
    "string", "integer", "float", "boolean", "any", "map", "null",
    "email", "uuid", "date", "datetime", "time", "uri",
})

STRING_FORMATS = frozenset({"email", "uuid", "date", "datetime", "time", "uri"})


@dataclass(frozen=True, slots=True)
class PrimitiveType(DescriptorBase):
    name: str

    def __post_init__(self):
        if self.name not in PRIMITIVE_NAMES:
            raise SchemaDefinitionError(f"unknown primitive type: {self.name!r}")

    @property
    def label(self) -> str: return self.name


@dataclass(frozen=True, slots=True)
class ArrayType(DescriptorBase):
    element: TypeDescriptor

    @property
    def label(self) -> str: return f"array of {self.element.label}"


@dataclass(frozen=True, slots=True)
class MappingType(DescriptorBase):
    key: TypeDescriptor
    value: TypeDescriptor

    @property
    def label(self) -> str: return "map"


@dataclass(frozen=True, slots=True)
class TupleType(DescriptorBase):
    elements: tuple[TypeDescriptor, ...]

    @property
    def label(self) -> str: return "tuple"


@dataclass(frozen=True, slots=True)
class UnionType(DescriptorBase):
    alternatives: tuple[TypeDescriptor, ...]

    def __post_init__(self):
        if not self.alternatives:
            raise SchemaDefinitionError("union needs at least one alternative")

    @property
    def label(self) -> str: return "union"


@dataclass(frozen=True, slots=True)
class ObjectType(DescriptorBase):
    """Fixed-shape object; keys absent from ``fields`` are never consulted."""
    fields: tuple[tuple[str, TypeDescriptor], ...]

    @property
    def label(self) -> str: return "map"

    @property
    def field_map(self) -> dict[str, TypeDescriptor]:
        return dict(self.fields)


@dataclass(frozen=True, slots=True)
class SchemaRef(DescriptorBase):
    """Reference to a named schema, embedded or looked up in a registry."""
    name: str
    schema: SchemaDefinition | None = field(default=None, compare=False, repr=False)

    @property
    def label(self) -> str: return self.name


TypeDescriptor = Union[PrimitiveType, ArrayType, MappingType, TupleType, UnionType, ObjectType, SchemaRef]
DESCRIPTOR_TYPES = (PrimitiveType, ArrayType, MappingType, TupleType, UnionType, ObjectType, SchemaRef)


# ============================================================================
# Pure Transformers
# ============================================================================

def _as_constraint(item: Constraint | tuple[str, Any]) -> Constraint:
    if isinstance(item, Constraint): return item
    kind, value = item
    return Constraint(ConstraintKind.parse(kind), value)


def with_constraints(descriptor: TypeDescriptor, *constraints: Constraint | tuple[str, Any]) -> TypeDescriptor:
    """Append constraints, preserving attachment order."""
    added = tuple(_as_constraint(c) for c in constraints)
    return replace(descriptor, constraints=(*descriptor.constraints, *added))


def with_error_message(descriptor: TypeDescriptor, kind: str, message: str) -> TypeDescriptor:
    key = kind if kind in ("type", "required") else ConstraintKind.parse(kind).value
    kept = tuple((k, m) for k, m in descriptor.error_messages if k != key)
    return replace(descriptor, error_messages=(*kept, (key, message)))


def with_error_messages(descriptor: TypeDescriptor, messages: Mapping[str, str]) -> TypeDescriptor:
    for kind, message in messages.items():
        descriptor = with_error_message(descriptor, kind, message)
    return descriptor


def with_validator(descriptor: TypeDescriptor, validator: CustomValidator) -> TypeDescriptor:
    if not callable(validator):
        raise SchemaDefinitionError(f"custom validator must be callable, got {validator!r}")
    return replace(descriptor, validators=(*descriptor.validators, validator))


# ============================================================================
# Constructors
# ============================================================================

def _constraints_from(options: Mapping[str, Any]) -> tuple[Constraint, ...]:
    return tuple(Constraint(ConstraintKind.parse(kind), value) for kind, value in options.items())


def primitive(name: str, **constraints: Any) -> PrimitiveType:
    return PrimitiveType(name, constraints=_constraints_from(constraints))


def string(**constraints: Any) -> PrimitiveType: return primitive("string", **constraints)

def integer(**constraints: Any) -> PrimitiveType: return primitive("integer", **constraints)

def number(**constraints: Any) -> PrimitiveType: return primitive("float", **constraints)

def boolean() -> PrimitiveType: return PrimitiveType("boolean")

def any_() -> PrimitiveType: return PrimitiveType("any")

def null() -> PrimitiveType: return PrimitiveType("null")


def array(element: Any, **constraints: Any) -> ArrayType:
    return ArrayType(normalize_type(element), constraints=_constraints_from(constraints))


def mapping(key: Any, value: Any, **constraints: Any) -> MappingType:
    return MappingType(normalize_type(key), normalize_type(value), constraints=_constraints_from(constraints))


def tuple_(*elements: Any) -> TupleType:
    return TupleType(tuple(normalize_type(e) for e in elements))


def union(*alternatives: Any) -> UnionType:
    return UnionType(tuple(normalize_type(a) for a in alternatives))


def optional(inner: Any) -> UnionType:
    """Shorthand for ``union(inner, null())``."""
    return union(inner, "null")


def obj(fields: Mapping[str, Any] | None = None, **kwargs: Any) -> ObjectType:
    merged = {**(fields or {}), **kwargs}
    return ObjectType(tuple((name, normalize_type(spec)) for name, spec in merged.items()))


def ref(target: str | SchemaDefinition) -> SchemaRef:
    """Reference a schema by name, or embed a SchemaDefinition directly."""
    if isinstance(target, str): return SchemaRef(target)
    if not target.name:
        raise SchemaDefinitionError("only named schemas can be referenced")
    return SchemaRef(target.name, schema=target)


def normalize_type(spec: Any) -> TypeDescriptor:
    """Normalize shorthand type specs into descriptors.

    Accepted forms:
        descriptor                 -> unchanged
        "string" / "integer" / ... -> PrimitiveType
        ("array", inner)           -> ArrayType
        ("map", (key, value))      -> MappingType
        ("tuple", [a, b])          -> TupleType
        ("union", [a, b])          -> UnionType
        ("object", {name: spec})   -> ObjectType
        ("ref", name)              -> SchemaRef
        SchemaDefinition           -> SchemaRef embedding it
    """
    from .schema import SchemaDefinition

    if isinstance(spec, DESCRIPTOR_TYPES): return spec
    if isinstance(spec, SchemaDefinition): return ref(spec)
    if isinstance(spec, str): return PrimitiveType(spec)

    if isinstance(spec, tuple) and len(spec) == 2 and isinstance(spec[0], str):
        tag, inner = spec
        match tag:
            case "array":
                return ArrayType(normalize_type(inner))
            case "map" if isinstance(inner, (tuple, list)) and len(inner) == 2:
                return MappingType(normalize_type(inner[0]), normalize_type(inner[1]))
            case "tuple" if isinstance(inner, (tuple, list)):
                return tuple_(*inner)
            case "union" if isinstance(inner, (tuple, list)):
                return union(*inner)
            case "object" if isinstance(inner, Mapping):
                return obj(inner)
            case "ref":
                return ref(inner)

    raise SchemaDefinitionError(f"unsupported type specification: {spec!r}")

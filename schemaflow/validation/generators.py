"""Schema Generators

Render descriptors and schema definitions as JSON Schema. The document
builder reads required-ness and the declared/computed split from the same
SchemaDefinition helpers the pipeline uses.

Features:
- Descriptor -> JSON Schema fragment mapping (TypeMapper)
- Referenced schemas collected under "definitions" or inlined
- Depth-capped inlining with truncation for nested references
- Computed fields as readOnly properties with an x-computed-field marker
- JSON Schema draft 2020-12 text output (JSONSchemaGenerator)
"""
from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from typing import Any

from .descriptors import (
    ArrayType,
    ConstraintKind,
    MappingType,
    ObjectType,
    PrimitiveType,
    SchemaRef,
    TupleType,
    TypeDescriptor,
    UnionType,
)
from .registry import SchemaRegistry, default_registry
from .schema import MISSING, SchemaDefinition, required_fields

DEFINITIONS_PREFIX = "#/definitions/"
TRUNCATED: dict[str, Any] = {"type": "object"}

PRIMITIVE_SCHEMAS: dict[str, dict[str, Any]] = {
    "string": {"type": "string"},
    "integer": {"type": "integer"},
    "float": {"type": "number"},
    "boolean": {"type": "boolean"},
    "any": {},
    "map": {"type": "object"},
    "null": {"type": "null"},
    "email": {"type": "string", "format": "email"},
    "uuid": {"type": "string", "format": "uuid"},
    "date": {"type": "string", "format": "date"},
    "datetime": {"type": "string", "format": "date-time"},
    "time": {"type": "string", "format": "time"},
    "uri": {"type": "string", "format": "uri"},
}

_SIMPLE_KEYWORDS = {
    ConstraintKind.MIN_LENGTH: "minLength",
    ConstraintKind.MAX_LENGTH: "maxLength",
    ConstraintKind.GT: "exclusiveMinimum",
    ConstraintKind.LT: "exclusiveMaximum",
    ConstraintKind.GTEQ: "minimum",
    ConstraintKind.LTEQ: "maximum",
    ConstraintKind.FORMAT: "pattern",
    ConstraintKind.CHOICES: "enum",
}


def _size_keywords(descriptor: TypeDescriptor) -> tuple[str, str]:
    """(min, max) keywords that bound the size of values for this descriptor."""
    match descriptor:
        case ArrayType() | TupleType():
            return "minItems", "maxItems"
        case MappingType() | ObjectType():
            return "minProperties", "maxProperties"
        case PrimitiveType(name="map"):
            return "minProperties", "maxProperties"
        case _:
            return "minLength", "maxLength"


def constraint_keywords(descriptor: TypeDescriptor) -> dict[str, Any]:
    """JSON Schema keywords for the descriptor's constraints."""
    keywords: dict[str, Any] = {}
    low, high = _size_keywords(descriptor)
    for constraint in descriptor.constraints:
        match constraint.kind:
            case ConstraintKind.MIN_ITEMS:
                keywords[low if low != "minLength" else "minItems"] = constraint.value
            case ConstraintKind.MAX_ITEMS:
                keywords[high if high != "maxLength" else "maxItems"] = constraint.value
            case ConstraintKind.SIZE:
                keywords[low] = keywords[high] = constraint.value
            case kind:
                keywords[_SIMPLE_KEYWORDS[kind]] = constraint.parameter
    return keywords


class TypeMapper:
    """Maps descriptors to JSON Schema fragments.

    SchemaRefs render as ``$ref`` entries with the referenced document stored
    in ``definitions``, or inline when ``inline_refs`` is set. With
    ``max_depth`` set, references are always inlined and anything nested
    deeper than ``max_depth`` schemas is truncated to ``{"type": "object"}``.
    """

    def __init__(
        self,
        *,
        registry: SchemaRegistry | None = None,
        inline_refs: bool = False,
        max_depth: int | None = None,
        include_computed: bool = True,
    ):
        self.registry = default_registry if registry is None else registry
        self.inline_refs = inline_refs or max_depth is not None
        self.max_depth = max_depth
        self.include_computed = include_computed
        self.definitions: dict[str, dict[str, Any]] = {}
        self._inlining: list[str] = []

    def map(self, descriptor: TypeDescriptor, depth: int = 0) -> dict[str, Any]:
        match descriptor:
            case PrimitiveType(name=name):
                rendered = dict(PRIMITIVE_SCHEMAS[name])
            case ArrayType(element=element):
                rendered = {"type": "array", "items": self.map(element, depth)}
            case MappingType(key=key, value=value):
                rendered = {"type": "object", "additionalProperties": self.map(value, depth)}
                if key_schema := self._key_schema(key, depth): rendered["propertyNames"] = key_schema
            case TupleType(elements=elements):
                rendered = {
                    "type": "array",
                    "prefixItems": [self.map(e, depth) for e in elements],
                    "items": False,
                    "minItems": len(elements),
                    "maxItems": len(elements),
                }
            case UnionType(alternatives=alternatives):
                rendered = {"oneOf": [self.map(a, depth) for a in alternatives]}
            case ObjectType(fields=fields):
                rendered = {
                    "type": "object",
                    "properties": {name: self.map(d, depth) for name, d in fields},
                    "required": [name for name, _ in fields],
                }
            case SchemaRef():
                rendered = self._map_ref(descriptor, depth)
            case _:
                raise TypeError(f"not a type descriptor: {descriptor!r}")
        rendered.update(constraint_keywords(descriptor))
        return rendered

    def _key_schema(self, key: TypeDescriptor, depth: int) -> dict[str, Any] | None:
        rendered = self.map(key, depth)
        return None if rendered == {"type": "string"} else rendered

    def _map_ref(self, ref: SchemaRef, depth: int) -> dict[str, Any]:
        schema = ref.schema or self.registry.get(ref.name)
        if not self.inline_refs:
            if ref.name not in self.definitions:
                self.definitions[ref.name] = {}
                self.definitions[ref.name] = self.render(schema, depth + 1)
            return {"$ref": f"{DEFINITIONS_PREFIX}{ref.name}"}

        if ref.name in self._inlining:
            # Self-referencing schema: inlining would never terminate.
            return dict(TRUNCATED)
        if self.max_depth is not None and depth + 1 > self.max_depth:
            return dict(TRUNCATED)
        self._inlining.append(ref.name)
        try:
            return self.render(schema, depth + 1)
        finally:
            self._inlining.pop()

    def render(self, schema: SchemaDefinition, depth: int = 0) -> dict[str, Any]:
        """Object document for ``schema`` (no definitions, no summary counters)."""
        document: dict[str, Any] = {"type": "object"}
        if schema.title: document["title"] = schema.title
        if schema.description: document["description"] = schema.description

        properties: dict[str, Any] = {}
        for field in schema.fields:
            rendered = self.map(field.type, depth)
            if field.description: rendered["description"] = field.description
            if field.has_default: rendered["default"] = copy.deepcopy(field.default)
            if examples := field.all_examples: rendered["examples"] = copy.deepcopy(examples)
            rendered.update(copy.deepcopy(dict(field.extra)))
            properties[field.name] = rendered

        if self.include_computed:
            for computed in schema.computed_fields:
                rendered = self.map(computed.type, depth)
                if computed.description: rendered["description"] = computed.description
                if computed.example is not MISSING:
                    rendered["examples"] = [copy.deepcopy(computed.example)]
                rendered["readOnly"] = True
                rendered["x-computed-field"] = {"function": computed.function_name}
                properties[computed.name] = rendered

        document["properties"] = properties
        document["required"] = list(required_fields(schema))
        if schema.config.rejects_extra_fields: document["additionalProperties"] = False
        return document


def build_document(
    schema: SchemaDefinition,
    *,
    registry: SchemaRegistry | None = None,
    inline_refs: bool = False,
    max_depth: int | None = None,
    include_computed: bool = True,
) -> dict[str, Any]:
    """Top-level document: object schema, summary counters and definitions."""
    mapper = TypeMapper(
        registry=registry,
        inline_refs=inline_refs,
        max_depth=max_depth,
        include_computed=include_computed,
    )
    document = mapper.render(schema)
    document["x-model-validators"] = len(schema.model_validators)
    document["x-computed-fields"] = len(schema.computed_fields)
    if mapper.definitions: document["definitions"] = mapper.definitions
    return document


def type_schema(descriptor: TypeDescriptor, *, registry: SchemaRegistry | None = None) -> dict[str, Any]:
    """JSON Schema for a bare descriptor."""
    mapper = TypeMapper(registry=registry)
    rendered = mapper.map(descriptor)
    if mapper.definitions: rendered["definitions"] = mapper.definitions
    return rendered


class SchemaGenerator(ABC):
    """Base class for schema generators."""

    @abstractmethod
    def generate(self, schema: SchemaDefinition) -> str:
        """Generate schema representation."""

    def generate_all(self, *schemas: SchemaDefinition, separator: str = "\n\n") -> str:
        return separator.join(self.generate(s) for s in schemas)


class JSONSchemaGenerator(SchemaGenerator):
    """Generate JSON Schema draft 2020-12 text."""

    def __init__(self, *, indent: int | None = 2, registry: SchemaRegistry | None = None):
        self.indent, self.registry = indent, registry

    def generate(self, schema: SchemaDefinition) -> str:
        document = {"$schema": "https://json-schema.org/draft/2020-12/schema",
            **build_document(schema, registry=self.registry)}
        return json.dumps(document, indent=self.indent, default=str)

"""Type Adapter

Validate bare values (not records) against a type spec, with the same
evaluator, coercion policy and error model the pipeline uses.

Usage:
    tags = TypeAdapter(("array", "string"))
    tags.validate(["a", "b"])          # Ok(["a", "b"])
    TypeAdapter("integer").validate("42")   # Ok(42) under safe coercion
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable

from schemaflow.errors import Err, Ok, ValidationResult, collect_results

from .descriptors import TypeDescriptor, normalize_type
from .errors import SchemaValidationError
from .evaluator import EvaluationContext, evaluate
from .generators import type_schema
from .options import DEFAULT_CONFIG, ValidationConfig
from .registry import SchemaRegistry


class TypeAdapter:
    """Validator bound to one type descriptor."""

    def __init__(
        self,
        type_spec: Any,
        *,
        config: ValidationConfig | None = None,
        registry: SchemaRegistry | None = None,
    ):
        self.descriptor: TypeDescriptor = normalize_type(type_spec)
        self.config = config or DEFAULT_CONFIG
        self.registry = registry
        self._context = EvaluationContext(config=self.config, registry=registry)

    def __repr__(self) -> str:
        return f"TypeAdapter({self.descriptor.label!r}, coercion={self.config.coercion.value!r})"

    def validate(self, value: Any) -> ValidationResult:
        return evaluate(self.descriptor, value, (), self._context)

    def validate_or_raise(self, value: Any) -> Any:
        match self.validate(value):
            case Ok(result):
                return result
            case Err(errors):
                raise SchemaValidationError(errors, error_format=self.config.error_format)

    def validate_many(self, values: Iterable[Any]) -> ValidationResult:
        """Validate each value; errors carry the item index as their first path segment."""
        return collect_results([
            evaluate(self.descriptor, value, (index,), self._context)
            for index, value in enumerate(values)
        ])

    def json_schema(self) -> dict[str, Any]:
        return type_schema(self.descriptor, registry=self.registry)

    def dump(self, value: Any) -> Any:
        """Validated value as plain JSON-compatible data.

        Raises:
            SchemaValidationError: value does not validate
        """
        return _plain(self.validate_or_raise(value))

    def dump_json(self, value: Any, *, indent: int | None = None) -> str:
        return json.dumps(self.dump(value), indent=indent)


def _plain(value: Any) -> Any:
    match value:
        case Enum():
            return value.value
        case Mapping():
            return {k if isinstance(k, str) else str(k): _plain(v) for k, v in value.items()}
        case list() | tuple():
            return [_plain(v) for v in value]
        case _:
            return value

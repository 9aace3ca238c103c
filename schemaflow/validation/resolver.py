"""Interchange Document Resolver

Renders a SchemaDefinition into a JSON-Schema-compatible document and
post-processes documents for structured-output consumers.

Features:
- resolve(): schema -> document, with provider profiles and union/depth caps
- Provider profiles (generic, openai, anthropic)
- $ref inlining over "definitions" / "$defs" with cycle detection
- LLM-oriented trimming (descriptions, unions, property counts)
- Computed-field extraction and removal for input-only documents

Usage:
    document = resolve(schema, provider="openai")
    input_only = remove_computed_fields(document)
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from typing import Any, Callable

from schemaflow.config import get_settings
from schemaflow.logging import LoggerRegistry

from .errors import CircularReferenceError
from .generators import TRUNCATED, build_document
from .registry import SchemaRegistry
from .schema import SchemaDefinition

log = LoggerRegistry.get("resolver")

Document = dict[str, Any]

REF_PREFIXES = ("#/definitions/", "#/$defs/")


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    """Rewrite rules for one structured-output consumer."""
    name: str
    unsupported_formats: frozenset[str] = frozenset()
    closes_objects: bool = False
    ensures: tuple[str, ...] = ()

    @property
    def is_generic(self) -> bool: return not (self.unsupported_formats or self.closes_objects or self.ensures)


PROVIDER_PROFILES: dict[str, ProviderProfile] = {
    "generic": ProviderProfile("generic"),
    "openai": ProviderProfile(
        "openai",
        unsupported_formats=frozenset({"date", "time", "email"}),
        closes_objects=True,
        ensures=("properties",),
    ),
    "anthropic": ProviderProfile(
        "anthropic",
        unsupported_formats=frozenset({"uri", "uuid"}),
        closes_objects=True,
        ensures=("required",),
    ),
}


def get_profile(provider: str) -> ProviderProfile:
    if (profile := PROVIDER_PROFILES.get(provider)) is None:
        raise ValueError(f"Unknown provider: {provider!r}. Available: {', '.join(PROVIDER_PROFILES)}")
    return profile


@dataclass(frozen=True, slots=True)
class ResolverOptions:
    """How ``resolve`` renders a schema.

    In provider modes an unset ``max_union_len`` falls back to the schema's
    ``max_anyof_union_len`` and an unset ``max_depth`` to settings
    RESOLVER_MAX_DEPTH.
    """
    inline_refs: bool = False
    provider: str = "generic"
    max_union_len: int | None = None
    max_depth: int | None = None
    include_computed: bool = True

    def __post_init__(self):
        get_profile(self.provider)
        if self.max_union_len is not None and self.max_union_len < 1:
            raise ValueError("max_union_len must be at least 1")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must not be negative")


# ============================================================================
# Document Traversal
# ============================================================================

_SCHEMA_KEYS = ("items", "additionalProperties", "propertyNames", "not")
_SCHEMA_LIST_KEYS = ("prefixItems", "oneOf", "anyOf", "allOf")
_SCHEMA_MAP_KEYS = ("properties", "definitions", "$defs")


def map_subschemas(node: Document, fn: Callable[[Document], Document]) -> Document:
    """Copy of ``node`` with ``fn`` applied to each direct subschema."""
    out = dict(node)
    for key in _SCHEMA_KEYS:
        if isinstance(out.get(key), dict): out[key] = fn(out[key])
    for key in _SCHEMA_LIST_KEYS:
        if isinstance(out.get(key), list):
            out[key] = [fn(s) if isinstance(s, dict) else s for s in out[key]]
    for key in _SCHEMA_MAP_KEYS:
        if isinstance(out.get(key), dict):
            out[key] = {name: fn(s) if isinstance(s, dict) else s for name, s in out[key].items()}
    return out


def transform(node: Document, fn: Callable[[Document], Document]) -> Document:
    """Apply ``fn`` bottom-up to every schema node of a document."""
    return fn(map_subschemas(node, lambda child: transform(child, fn)))


def _is_object_node(node: Document) -> bool:
    return node.get("type") == "object" and isinstance(node.get("properties"), dict)


# ============================================================================
# Resolve
# ============================================================================

def resolve(
    schema: SchemaDefinition,
    options: ResolverOptions | None = None,
    *,
    registry: SchemaRegistry | None = None,
    **overrides: Any,
) -> Document:
    """Render ``schema`` as an interchange document.

    Args:
        schema: the schema to render
        options: ResolverOptions; keyword overrides are applied on top
        registry: where SchemaRef names resolve (default registry if omitted)

    Returns:
        JSON-Schema-compatible dict
    """
    options = options or ResolverOptions()
    if overrides: options = replace(options, **overrides)
    profile = get_profile(options.provider)

    max_depth, union_cap = options.max_depth, options.max_union_len
    if not profile.is_generic:
        if max_depth is None: max_depth = get_settings().RESOLVER_MAX_DEPTH
        if union_cap is None: union_cap = schema.config.max_anyof_union_len

    document = build_document(
        schema,
        registry=registry,
        inline_refs=options.inline_refs,
        max_depth=max_depth,
        include_computed=options.include_computed,
    )
    if union_cap is not None: document = cap_unions(document, union_cap)
    if not profile.is_generic: document = apply_profile(document, profile)

    log.debug(
        "schema_resolved",
        schema=schema.name,
        provider=profile.name,
        properties=len(document["properties"]),
        definitions=len(document.get("definitions", ())),
    )
    return document


def required_from_document(document: Document) -> tuple[str, ...]:
    """Required field names as recorded in a rendered document."""
    return tuple(document.get("required", ()))


def cap_unions(document: Document, limit: int) -> Document:
    """Truncate every oneOf/anyOf list to ``limit`` alternatives."""
    def cap(node: Document) -> Document:
        for key in ("oneOf", "anyOf"):
            if isinstance(node.get(key), list) and len(node[key]) > limit:
                node[key] = node[key][:limit]
        return node
    return transform(document, cap)


def apply_profile(document: Document, profile: ProviderProfile) -> Document:
    """Strip unsupported formats and close object schemas for ``profile``."""
    def rewrite(node: Document) -> Document:
        if node.get("format") in profile.unsupported_formats:
            del node["format"]
        if profile.closes_objects and _is_object_node(node) and not isinstance(node.get("additionalProperties"), dict):
            node["additionalProperties"] = False
        return node

    document = transform(document, rewrite)
    if document.get("type") == "object":
        if profile.closes_objects and not isinstance(document.get("additionalProperties"), dict):
            document["additionalProperties"] = False
        if "properties" in profile.ensures: document.setdefault("properties", {})
        if "required" in profile.ensures: document.setdefault("required", [])
    return document


def enforce_structured_output(document: Document, provider: str = "openai") -> Document:
    """Apply a provider profile to an existing document."""
    return apply_profile(copy.deepcopy(document), get_profile(provider))


def structured_output_problems(document: Document, provider: str = "openai") -> list[str]:
    """Reasons ``document`` would be refused by ``provider``, empty when acceptable."""
    profile = get_profile(provider)
    problems: list[str] = []
    if document.get("type") != "object":
        return problems
    if profile.closes_objects and document.get("additionalProperties") is True:
        problems.append(f"{profile.name} does not support additionalProperties: true")
    for key in profile.ensures:
        if key not in document:
            problems.append(f"{profile.name} requires object schemas to have {key}")

    def collect(node: Document) -> Document:
        if node.get("format") in profile.unsupported_formats:
            problems.append(f"{profile.name} does not support format {node['format']!r}")
        return node
    transform(document, collect)
    return problems


# ============================================================================
# Reference Resolution
# ============================================================================

def _definitions(document: Document) -> dict[str, Document]:
    return {**document.get("definitions", {}), **document.get("$defs", {})}


def _ref_name(ref: str) -> str | None:
    for prefix in REF_PREFIXES:
        if ref.startswith(prefix): return ref[len(prefix):]
    return None


def _inline(
    node: Document,
    definitions: dict[str, Document],
    chain: tuple[str, ...],
    max_depth: int,
    on_limit: Callable[[str, tuple[str, ...]], Document],
    preserve_titles: bool,
    preserve_descriptions: bool,
) -> Document:
    if isinstance(ref := node.get("$ref"), str) and (name := _ref_name(ref)) in definitions:
        if name in chain or len(chain) >= max_depth:
            return on_limit(name, chain)
        resolved = _inline(
            definitions[name], definitions, (*chain, name), max_depth,
            on_limit, preserve_titles, preserve_descriptions,
        )
        siblings = {k: v for k, v in node.items() if k != "$ref"}
        if not preserve_titles: siblings.pop("title", None)
        if not preserve_descriptions: siblings.pop("description", None)
        return {**resolved, **siblings}

    return map_subschemas(node, lambda child: _inline(
        child, definitions, chain, max_depth, on_limit, preserve_titles, preserve_descriptions,
    ))


def resolve_references(
    document: Document,
    *,
    max_depth: int = 10,
    preserve_titles: bool = True,
    preserve_descriptions: bool = True,
) -> Document:
    """Inline every local ``$ref`` and drop the definitions.

    References that do not point at a local definition are left untouched.

    Raises:
        CircularReferenceError: a definition references itself, or nesting
            exceeds ``max_depth``
    """
    def refuse(name: str, chain: tuple[str, ...]) -> Document:
        if name in chain:
            raise CircularReferenceError(f"circular reference: {' -> '.join((*chain, name))}")
        raise CircularReferenceError(f"reference nesting deeper than {max_depth} at {name!r}")

    return _resolve(document, max_depth, refuse, preserve_titles, preserve_descriptions)


def flatten_schema(document: Document, *, max_depth: int | None = None) -> Document:
    """Inline references, truncating cycles and deep nesting to ``{"type": "object"}``."""
    if max_depth is None: max_depth = get_settings().RESOLVER_MAX_DEPTH
    return _resolve(document, max_depth, lambda name, chain: dict(TRUNCATED), False, True)


def _resolve(
    document: Document,
    max_depth: int,
    on_limit: Callable[[str, tuple[str, ...]], Document],
    preserve_titles: bool,
    preserve_descriptions: bool,
) -> Document:
    definitions = _definitions(document)
    body = {k: v for k, v in document.items() if k not in ("definitions", "$defs")}
    if not definitions: return copy.deepcopy(body)
    resolved = _inline(body, definitions, (), max_depth, on_limit, preserve_titles, preserve_descriptions)
    return copy.deepcopy(resolved)


# ============================================================================
# LLM Optimization
# ============================================================================

def optimize_for_llm(
    document: Document,
    *,
    remove_descriptions: bool = False,
    simplify_unions: bool = True,
    max_properties: int | None = None,
) -> Document:
    """Shrink a document for prompt use.

    Args:
        remove_descriptions: drop every ``description``
        simplify_unions: keep at most 3 union alternatives
        max_properties: keep the first N properties of each object
    """
    def optimize(node: Document) -> Document:
        if remove_descriptions: node.pop("description", None)
        if max_properties is not None and _is_object_node(node) and len(node["properties"]) > max_properties:
            kept = dict(list(node["properties"].items())[:max_properties])
            node["properties"] = kept
            if isinstance(node.get("required"), list):
                node["required"] = [name for name in node["required"] if name in kept]
        return node

    document = transform(document, optimize)
    return cap_unions(document, 3) if simplify_unions else document


# ============================================================================
# Computed Fields
# ============================================================================

def _is_computed(property_schema: Any) -> bool:
    return isinstance(property_schema, dict) and "x-computed-field" in property_schema


def _is_output_only(property_schema: Any) -> bool:
    return _is_computed(property_schema) or (isinstance(property_schema, dict) and property_schema.get("readOnly") is True)


def extract_computed_fields(document: Document) -> list[dict[str, Any]]:
    """Metadata for each computed property of a rendered document."""
    return [
        {
            "name": name,
            "type": {k: v for k, v in prop.items()
                if k not in ("x-computed-field", "readOnly", "description", "examples")},
            "function": prop["x-computed-field"].get("function"),
            "read_only": prop.get("readOnly", False),
            "description": prop.get("description"),
            "examples": prop.get("examples"),
        }
        for name, prop in document.get("properties", {}).items()
        if _is_computed(prop)
    ]


def has_computed_fields(document: Document) -> bool:
    return any(_is_computed(p) for p in document.get("properties", {}).values())


def remove_computed_fields(document: Document) -> Document:
    """Input-only copy of a document: computed (readOnly) properties removed."""
    properties = document.get("properties")
    if not isinstance(properties, dict): return copy.deepcopy(document)

    computed = {name for name, p in properties.items() if _is_output_only(p)}
    result = copy.deepcopy(document)
    result["properties"] = {name: p for name, p in result["properties"].items() if name not in computed}
    if isinstance(result.get("required"), list):
        result["required"] = [name for name in result["required"] if name not in computed]
    if "x-computed-fields" in result: result["x-computed-fields"] = 0
    return result

"""Validation Engine

Type descriptors, a staged validation pipeline, and an interchange-document
resolver sharing one schema model.

Key Features:
- Immutable, composable type descriptors with ordered constraints
- Policy-scoped coercion (none / safe / aggressive)
- Field stage -> strict check -> model validators -> computed fields
- Path-annotated, coded errors as Result values
- Run-time schema composition and a name registry for nested schemas
- JSON Schema rendering with provider-compatibility profiles

Usage:
    from schemaflow.validation import compose, validate, resolve, Ok, Err

    user = compose(
        [
            ("name", "string", {"min_length": 2}),
            ("age", "integer", {"optional": True, "gteq": 0}),
        ],
        name="User",
        computed_fields=[("display", "string", lambda r: r["name"].title())],
    )

    match validate(user, {"name": "ada"}):
        case Ok(record):
            ...
        case Err(errors):
            ...

    document = resolve(user, provider="openai")
"""

from schemaflow.errors import Err, ErrorCode, Ok, ValidationError, ValidationResult

# Configuration
from .options import (
    CoercionPolicy,
    ValidationConfig,
    PRESETS,
    DEFAULT_CONFIG,
)

# Errors and exceptions
from .errors import (
    SchemaDefinitionError,
    SchemaReferenceError,
    CircularReferenceError,
    ConfigFrozenError,
    SchemaValidationError,
    ErrorAccumulator,
    CollectAllAccumulator,
    render_errors,
)

# Type descriptors
from .descriptors import (
    ConstraintKind,
    Constraint,
    DescriptorBase,
    PrimitiveType,
    ArrayType,
    MappingType,
    TupleType,
    UnionType,
    ObjectType,
    SchemaRef,
    TypeDescriptor,
    with_constraints,
    with_error_message,
    with_error_messages,
    with_validator,
    primitive,
    string,
    integer,
    number,
    boolean,
    any_,
    null,
    array,
    mapping,
    tuple_,
    union,
    optional,
    obj,
    ref,
    normalize_type,
)

# Coercion
from .coercion import (
    CoercionRule,
    Coercer,
    coercer_for,
    coerce,
)

# Key matching
from .keys import KeyMatcher, textual_form

# Schemas
from .schema import (
    MISSING,
    FieldDefinition,
    ModelValidatorRef,
    ComputedFieldDefinition,
    SchemaDefinition,
    required_fields,
)

# Registry and composition
from .registry import (
    SchemaRegistry,
    default_registry,
    build_field,
    compose,
    with_model_validator,
    with_computed_field,
)

# Evaluation
from .evaluator import EvaluationContext, evaluate
from .pipeline import validate, validate_or_raise
from .adapter import TypeAdapter

# Interchange documents
from .generators import (
    TypeMapper,
    SchemaGenerator,
    JSONSchemaGenerator,
    build_document,
    type_schema,
)
from .resolver import (
    ProviderProfile,
    PROVIDER_PROFILES,
    ResolverOptions,
    resolve,
    required_from_document,
    cap_unions,
    enforce_structured_output,
    structured_output_problems,
    resolve_references,
    flatten_schema,
    optimize_for_llm,
    extract_computed_fields,
    has_computed_fields,
    remove_computed_fields,
)

# Single-field wrappers and schema-or-type entry points
from .wrapper import (
    WRAPPER_PREFIX,
    create_wrapper,
    create_flexible_wrapper,
    create_wrapper_factory,
    create_multiple_wrappers,
    validate_and_extract,
    validate_flexible,
    wrap_and_validate,
    validate_multiple,
    unwrap_result,
    is_wrapper,
    wrapper_info,
    to_json_schema,
)
from .enhanced import (
    validate_target,
    validate_many,
    validate_with_schema,
    validate_with_resolved_schema,
    validate_for_llm,
    run_steps,
)

__all__ = [
    # Results
    "Ok",
    "Err",
    "ErrorCode",
    "ValidationError",
    "ValidationResult",
    # Configuration
    "CoercionPolicy",
    "ValidationConfig",
    "PRESETS",
    "DEFAULT_CONFIG",
    # Errors
    "SchemaDefinitionError",
    "SchemaReferenceError",
    "CircularReferenceError",
    "ConfigFrozenError",
    "SchemaValidationError",
    "ErrorAccumulator",
    "CollectAllAccumulator",
    "render_errors",
    # Descriptors
    "ConstraintKind",
    "DescriptorBase",
    "Constraint",
    "PrimitiveType",
    "ArrayType",
    "MappingType",
    "TupleType",
    "UnionType",
    "ObjectType",
    "SchemaRef",
    "TypeDescriptor",
    "with_constraints",
    "with_error_message",
    "with_error_messages",
    "with_validator",
    "primitive",
    "string",
    "integer",
    "number",
    "boolean",
    "any_",
    "null",
    "array",
    "mapping",
    "tuple_",
    "union",
    "optional",
    "obj",
    "ref",
    "normalize_type",
    # Coercion
    "CoercionRule",
    "Coercer",
    "coercer_for",
    "coerce",
    # Keys
    "KeyMatcher",
    "textual_form",
    # Schemas
    "MISSING",
    "FieldDefinition",
    "ModelValidatorRef",
    "ComputedFieldDefinition",
    "SchemaDefinition",
    "required_fields",
    # Registry
    "SchemaRegistry",
    "default_registry",
    "build_field",
    "compose",
    "with_model_validator",
    "with_computed_field",
    # Evaluation
    "EvaluationContext",
    "evaluate",
    "validate",
    "validate_or_raise",
    "TypeAdapter",
    # Documents
    "TypeMapper",
    "SchemaGenerator",
    "JSONSchemaGenerator",
    "build_document",
    "type_schema",
    "ProviderProfile",
    "PROVIDER_PROFILES",
    "ResolverOptions",
    "resolve",
    "required_from_document",
    "cap_unions",
    "enforce_structured_output",
    "structured_output_problems",
    "resolve_references",
    "flatten_schema",
    "optimize_for_llm",
    "extract_computed_fields",
    "has_computed_fields",
    "remove_computed_fields",
    # Wrappers and entry points
    "WRAPPER_PREFIX",
    "create_wrapper",
    "create_flexible_wrapper",
    "create_wrapper_factory",
    "create_multiple_wrappers",
    "validate_and_extract",
    "validate_flexible",
    "wrap_and_validate",
    "validate_multiple",
    "unwrap_result",
    "is_wrapper",
    "wrapper_info",
    "to_json_schema",
    "validate_target",
    "validate_many",
    "validate_with_schema",
    "validate_with_resolved_schema",
    "validate_for_llm",
    "run_steps",
]

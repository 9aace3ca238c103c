"""
Shared pytest fixtures for schemaflow tests.

Provides:
- registry: an isolated SchemaRegistry per test
- user_schema: the name/age schema used across pipeline and resolver tests
- aggressive / no_coercion: evaluation contexts for coercion policies
"""

import pytest

from schemaflow.validation import (
    EvaluationContext,
    SchemaRegistry,
    ValidationConfig,
    compose,
)


@pytest.fixture
def registry():
    """Fresh registry so named schemas never leak between tests."""
    return SchemaRegistry()


@pytest.fixture
def user_schema(registry):
    return compose(
        [
            ("name", "string", {"min_length": 2}),
            ("age", "integer", {"optional": True}),
        ],
        name="User",
        registry=registry,
    )


@pytest.fixture
def aggressive():
    return EvaluationContext(config=ValidationConfig(coercion="aggressive"))


@pytest.fixture
def no_coercion():
    return EvaluationContext(config=ValidationConfig(coercion="none"))

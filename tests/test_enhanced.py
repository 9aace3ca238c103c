"""
Schema-or-Type Entry Point Tests

Covers:
1. Dispatch: schemas run the pipeline, anything else goes through TypeAdapter
2. Batches with index-keyed failures
3. Validation paired with rendered, resolved or provider-ready documents
4. Step chains and how function steps report failure
"""

import pytest

from schemaflow.errors import Err, ErrorCode, Ok, ValidationError
from schemaflow.validation import (
    CircularReferenceError,
    ValidationConfig,
    compose,
    run_steps,
    string,
    validate_for_llm,
    validate_many,
    validate_target,
    validate_with_resolved_schema,
    validate_with_schema,
)


class TestValidateTarget:

    def test_schema_target(self, user_schema):
        assert validate_target(user_schema, {"name": "Ada"}) == Ok({"name": "Ada"})

    def test_type_spec_target(self):
        assert validate_target(("array", "integer"), ["1", 2]) == Ok([1, 2])

    def test_config_override(self):
        result = validate_target("integer", "1", config=ValidationConfig(coercion="none"))
        assert result.unwrap_err()[0].code is ErrorCode.TYPE

    def test_reference_through_registry(self, user_schema, registry):
        assert validate_target(("ref", "User"), {"name": "Ada"}, registry=registry) == Ok({"name": "Ada"})


class TestValidateMany:

    def test_all_valid(self, user_schema):
        assert validate_many(user_schema, [{"name": "Ada"}, {"name": "Bo"}]).is_ok()

    def test_failures_keyed_by_index(self):
        result = validate_many("integer", [1, "x", 3, "y"])
        assert set(result.unwrap_err()) == {1, 3}
        assert result.unwrap_err()[1][0].path == ()


class TestDocuments:

    def test_with_schema(self, user_schema):
        value, document = validate_with_schema(user_schema, {"name": "Ada"}).unwrap()
        assert value == {"name": "Ada"}
        assert document["required"] == ["name"]

    def test_with_schema_failure_has_no_document(self, user_schema):
        result = validate_with_schema(user_schema, {"name": "A"})
        assert result.unwrap_err()[0].code is ErrorCode.MIN_LENGTH

    def test_type_spec_document(self):
        assert validate_with_schema(string(max_length=3), "abc") == Ok(("abc", {"type": "string", "maxLength": 3}))

    def test_resolved_document_has_no_definitions(self, registry):
        compose([("city", "string")], name="Address", registry=registry)
        customer = compose([("address", ("ref", "Address"))], name="Customer", registry=registry)
        _, document = validate_with_resolved_schema(customer, {"address": {"city": "Oslo"}}, registry=registry).unwrap()
        assert "definitions" not in document
        assert document["properties"]["address"]["properties"] == {"city": {"type": "string"}}

    def test_resolved_document_refuses_recursion(self, registry):
        compose([("children", ("array", ("ref", "Node")))], name="Node", registry=registry)
        with pytest.raises(CircularReferenceError):
            validate_with_resolved_schema(registry.get("Node"), {"children": []}, registry=registry)

    def test_for_llm(self, user_schema):
        value, document = validate_for_llm(user_schema, {"name": "Ada"}, "openai").unwrap()
        assert value == {"name": "Ada"}
        assert document["additionalProperties"] is False


class TestRunSteps:

    def test_mixed_steps(self):
        assert run_steps(["string", str.upper, string(max_length=5)], "hello") == Ok("HELLO")

    def test_function_results(self):
        steps = [lambda v: Ok(v + 1), lambda v: v * 10]
        assert run_steps(steps, 1) == Ok(20)

    def test_failing_step_index(self):
        index, [error] = run_steps(["string", string(max_length=3)], "hello").unwrap_err()
        assert index == 1
        assert error.code is ErrorCode.MAX_LENGTH

    def test_function_failure_shapes(self):
        prebuilt = ValidationError.new(("x",), "custom_validation", "bad x")
        assert run_steps([lambda v: Err(prebuilt)], 1) == Err((0, [prebuilt]))
        assert run_steps([lambda v: Err([prebuilt, prebuilt])], 1) == Err((0, [prebuilt, prebuilt]))
        [error] = run_steps(["integer", lambda v: Err("too small")], 1).unwrap_err()[1]
        assert error.code is ErrorCode.CUSTOM_VALIDATION
        assert error.message == "too small"

    def test_schema_step(self, user_schema):
        steps = [lambda raw: {"name": raw.strip()}, user_schema]
        assert run_steps(steps, "  Ada ") == Ok({"name": "Ada"})

    def test_empty_chain(self):
        assert run_steps([], 5) == Ok(5)

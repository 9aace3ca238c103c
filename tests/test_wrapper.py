"""
Single-Field Wrapper Tests

Covers:
1. Wrapper construction: naming, coercion switch, no registration
2. Input shapes: bare value, keyed mapping, mapping as the value itself
3. Batches of wrappers and per-name error maps
4. Introspection and document rendering
"""

import pytest

from schemaflow.errors import Err, ErrorCode, Ok
from schemaflow.validation import (
    CoercionPolicy,
    SchemaDefinitionError,
    create_flexible_wrapper,
    create_multiple_wrappers,
    create_wrapper,
    create_wrapper_factory,
    default_registry,
    is_wrapper,
    string,
    to_json_schema,
    unwrap_result,
    validate_and_extract,
    validate_flexible,
    validate_multiple,
    wrap_and_validate,
    wrapper_info,
)


def errors_of(result):
    assert result.is_err(), f"expected failure, got {result!r}"
    return result.unwrap_err()


@pytest.fixture
def count_wrapper():
    return create_wrapper("count", "integer", coerce=True, gt=0)


class TestCreateWrapper:

    def test_schema_shape(self, count_wrapper):
        assert count_wrapper.field_names == ("count",)
        assert count_wrapper.name.startswith("Wrapper_count_")
        assert count_wrapper.title == "Wrapper for count"
        assert count_wrapper.description == "Temporary validation schema for count"
        assert count_wrapper.config.coercion is CoercionPolicy.SAFE

    def test_names_are_unique(self):
        assert create_wrapper("a", "string").name != create_wrapper("a", "string").name

    def test_not_registered(self, count_wrapper):
        assert count_wrapper.name not in default_registry

    def test_no_coercion_by_default(self):
        assert create_wrapper("a", "string").config.coercion is CoercionPolicy.NONE

    def test_empty_field_name(self):
        with pytest.raises(SchemaDefinitionError):
            create_wrapper("", "string")

    def test_unknown_option(self):
        with pytest.raises(SchemaDefinitionError):
            create_wrapper("a", "string", colour="red")


class TestValidateAndExtract:

    def test_bare_value(self, count_wrapper):
        assert validate_and_extract(count_wrapper, "42") == Ok(42)

    def test_keyed_mapping(self, count_wrapper):
        assert validate_and_extract(count_wrapper, {"count": 5}) == Ok(5)
        assert validate_and_extract(count_wrapper, {b"count": "7"}) == Ok(7)

    def test_constraint_failure_has_field_path(self, count_wrapper):
        [error] = errors_of(validate_and_extract(count_wrapper, {"count": "0"}))
        assert error.code is ErrorCode.GT
        assert error.path == ("count",)

    def test_without_coercion(self):
        wrapper = create_wrapper("count", "integer")
        [error] = errors_of(validate_and_extract(wrapper, "42"))
        assert error.code is ErrorCode.TYPE

    def test_mapping_without_key_is_missing_for_scalar_types(self, count_wrapper):
        [error] = errors_of(validate_and_extract(count_wrapper, {"other": 1}))
        assert error.code is ErrorCode.REQUIRED
        assert error.path == ("count",)

    def test_mapping_is_the_value_for_map_types(self):
        wrapper = create_wrapper("settings", ("map", ("string", "integer")))
        assert validate_and_extract(wrapper, {"retries": 3}) == Ok({"retries": 3})

    def test_default(self):
        wrapper = create_wrapper("role", "string", default="member")
        assert validate_and_extract(wrapper, {}) == Ok("member")

    def test_optional_field_absent(self):
        wrapper = create_wrapper("nickname", "string", required=False)
        [error] = errors_of(validate_and_extract(wrapper, {}))
        assert error.message == "field not found in validated result"

    def test_unknown_field_name(self, count_wrapper):
        with pytest.raises(SchemaDefinitionError):
            validate_and_extract(count_wrapper, 1, "total")

    def test_wrap_and_validate(self):
        assert wrap_and_validate("email", "email", "ada@example.com") == Ok("ada@example.com")
        assert wrap_and_validate("tags", ("array", "string"), ["a"], min_items=2).is_err()


class TestFlexible:

    def test_unkeyed_mapping_is_always_the_value(self):
        wrapper = create_flexible_wrapper("age", "integer", coerce=True)
        assert validate_flexible(wrapper, {"age": "25"}) == Ok(25)
        assert validate_flexible(wrapper, 25) == Ok(25)
        [error] = errors_of(validate_flexible(wrapper, {"years": 25}))
        assert error.code is ErrorCode.TYPE


class TestBatches:

    @pytest.fixture
    def wrappers(self):
        return create_multiple_wrappers(
            [("name", "string", {"min_length": 2}), ("age", "integer")],
            coerce=True,
        )

    def test_all_valid(self, wrappers):
        assert validate_multiple(wrappers, {"name": "Ada", "age": "36"}) == Ok({"name": "Ada", "age": 36})

    def test_errors_keyed_by_name(self, wrappers):
        result = validate_multiple(wrappers, {"name": "A"})
        failures = result.unwrap_err()
        assert set(failures) == {"name", "age"}
        assert failures["name"][0].code is ErrorCode.MIN_LENGTH
        assert failures["age"][0].message == "field not provided"

    def test_global_options_are_overridable(self):
        wrappers = create_multiple_wrappers([("a", "integer", {"coerce": False})], coerce=True)
        assert wrappers["a"].config.coercion is CoercionPolicy.NONE

    def test_factory(self):
        code = create_wrapper_factory(string(), min_length=3, coerce=True)
        assert validate_and_extract(code("sku"), "abc") == Ok("abc")
        assert validate_and_extract(code("sku"), "ab").is_err()
        assert validate_and_extract(code("sku", min_length=1), "ab") == Ok("ab")


class TestIntrospection:

    def test_is_wrapper(self, count_wrapper, user_schema):
        assert is_wrapper(count_wrapper)
        assert not is_wrapper(user_schema)
        assert not is_wrapper({"name": "Wrapper_x"})

    def test_wrapper_info(self, count_wrapper):
        info = wrapper_info(count_wrapper)
        assert info["is_wrapper"] is True
        assert info["field_name"] == "count"
        assert info["field_count"] == 1
        assert info["wrapper_type"] == "single_field"
        assert info["schema_name"] == count_wrapper.name
        assert info["created_at"] == count_wrapper.created_at

    def test_unwrap_result(self):
        assert unwrap_result({"count": 3}, "count") == 3
        assert unwrap_result({}, "count") is None

    def test_json_schema(self, count_wrapper):
        document = to_json_schema(count_wrapper)
        assert document["properties"] == {"count": {"type": "integer", "exclusiveMinimum": 0}}
        assert document["required"] == ["count"]

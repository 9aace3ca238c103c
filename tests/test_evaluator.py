"""
Constraint & Coercion Evaluator Tests

Covers:
1. Primitive shape checks and policy-scoped coercion
2. Constraint ordering: the first failing constraint wins
3. Custom validator chaining, failure shapes and exception propagation
4. Composite recursion (array, mapping, tuple, union, object, ref)
"""

import pytest

from schemaflow.errors import Err, ErrorCode, Ok, ValidationError
from schemaflow.validation import (
    EvaluationContext,
    SchemaReferenceError,
    SchemaRegistry,
    array,
    boolean,
    compose,
    evaluate,
    integer,
    mapping,
    number,
    obj,
    primitive,
    ref,
    string,
    tuple_,
    union,
    with_constraints,
    with_error_message,
    with_validator,
)
from schemaflow.validation.evaluator import UNION_MISMATCH


def errors_of(result):
    assert result.is_err(), f"expected failure, got {result!r}"
    return result.unwrap_err()


# =============================================================================
# Primitives
# =============================================================================

class TestPrimitives:

    def test_integer_accepts_int(self):
        assert evaluate(integer(), 5) == Ok(5)

    def test_bool_is_not_an_integer(self):
        [error] = errors_of(evaluate(integer(), True))
        assert error.code is ErrorCode.TYPE
        assert error.message == "expected integer, got True"

    def test_float_accepts_int_and_normalizes(self):
        result = evaluate(number(), 3)
        assert result == Ok(3.0)
        assert isinstance(result.unwrap(), float)

    def test_bool_is_not_a_float(self):
        assert evaluate(number(), False).is_err()

    def test_null_and_any(self):
        assert evaluate(primitive("null"), None) == Ok(None)
        assert evaluate(primitive("any"), object) == Ok(object)

    def test_map_primitive(self):
        assert evaluate(primitive("map"), {"a": 1}) == Ok({"a": 1})
        assert evaluate(primitive("map"), [1]).is_err()

    def test_string_formats(self):
        assert evaluate(primitive("email"), "ada@example.com").is_ok()
        assert evaluate(primitive("uuid"), "123e4567-e89b-12d3-a456-426614174000").is_ok()
        assert evaluate(primitive("date"), "2024-02-29").is_ok()
        assert evaluate(primitive("uri"), "https://example.com/x").is_ok()
        [error] = errors_of(evaluate(primitive("email"), "not-an-email"))
        assert error.message == "expected email formatted string, got 'not-an-email'"

    def test_evaluate_is_pure(self):
        descriptor = string(min_length=3)
        assert evaluate(descriptor, "ab") == evaluate(descriptor, "ab")


class TestCoercion:

    def test_safe_coercion_is_the_default(self):
        assert evaluate(integer(), "42") == Ok(42)
        assert evaluate(number(), "2.5") == Ok(2.5)
        assert evaluate(boolean(), "TRUE") == Ok(True)
        assert evaluate(boolean(), "0") == Ok(False)

    def test_safe_coercion_does_not_stringify(self):
        [error] = errors_of(evaluate(string(), 42))
        assert error.code is ErrorCode.TYPE

    def test_failed_coercion_is_a_type_error(self):
        [error] = errors_of(evaluate(integer(), "abc"))
        assert error.code is ErrorCode.TYPE
        assert error.message == "expected integer, got 'abc'"

    def test_no_coercion(self, no_coercion):
        assert evaluate(integer(), "42", context=no_coercion).is_err()

    def test_aggressive_stringifies(self, aggressive):
        assert evaluate(string(), 42, context=aggressive) == Ok("42")
        assert evaluate(string(), True, context=aggressive) == Ok("true")

    def test_aggressive_wraps_scalars(self, aggressive):
        assert evaluate(array("integer"), 5, context=aggressive) == Ok([5])

    def test_aggressive_integral_float(self, aggressive):
        assert evaluate(integer(), 3.0, context=aggressive) == Ok(3)
        assert evaluate(integer(), 3.5, context=aggressive).is_err()

    def test_constraints_see_coerced_value(self):
        [error] = errors_of(evaluate(integer(gt=10), "5"))
        assert error.code is ErrorCode.GT


# =============================================================================
# Constraints
# =============================================================================

class TestConstraintOrdering:

    def test_first_failing_constraint_short_circuits(self):
        descriptor = string(min_length=5, format=r"^\d+$")
        [error] = errors_of(evaluate(descriptor, "ab", ("code",)))
        assert error.code is ErrorCode.MIN_LENGTH
        assert error.path == ("code",)
        assert error.message == "should have at least 5 characters"

    def test_order_follows_attachment(self):
        descriptor = string(format=r"^\d+$", min_length=5)
        [error] = errors_of(evaluate(descriptor, "ab"))
        assert error.code is ErrorCode.FORMAT
        assert error.message == r"should match pattern ^\d+$"

    def test_custom_message_override(self):
        descriptor = with_error_message(string(min_length=3), "min_length", "too short")
        [error] = errors_of(evaluate(descriptor, "a"))
        assert error.message == "too short"

    def test_custom_type_message(self):
        descriptor = with_error_message(integer(), "type", "whole numbers only")
        [error] = errors_of(evaluate(descriptor, "x"))
        assert error.message == "whole numbers only"

    @pytest.mark.parametrize("descriptor,value,code", [
        (integer(gt=0), 0, ErrorCode.GT),
        (integer(lt=0), 0, ErrorCode.LT),
        (integer(gteq=1), 0, ErrorCode.GTEQ),
        (integer(lteq=-1), 0, ErrorCode.LTEQ),
        (string(max_length=1), "ab", ErrorCode.MAX_LENGTH),
        (string(choices=["a", "b"]), "c", ErrorCode.CHOICES),
        (array("integer", min_items=1), [], ErrorCode.MIN_ITEMS),
        (array("integer", max_items=1), [1, 2], ErrorCode.MAX_ITEMS),
        (string(size=2), "abc", ErrorCode.SIZE),
    ])
    def test_constraint_codes(self, descriptor, value, code):
        [error] = errors_of(evaluate(descriptor, value))
        assert error.code is code

    def test_inapplicable_constraint_passes(self):
        assert evaluate(primitive("any", min_length=3), 7) == Ok(7)


# =============================================================================
# Custom validators
# =============================================================================

class TestCustomValidators:

    def test_transformations_chain(self):
        descriptor = with_validator(with_validator(string(), lambda v: Ok(v.strip())), lambda v: Ok(v.upper()))
        assert evaluate(descriptor, "  ada ") == Ok("ADA")

    def test_string_reason(self):
        descriptor = with_validator(string(), lambda v: Err("no spaces allowed"))
        [error] = errors_of(evaluate(descriptor, "a b", ("slug",)))
        assert error == ValidationError(("slug",), ErrorCode.CUSTOM_VALIDATION, "no spaces allowed")

    def test_prebuilt_error_gets_path_prefix(self):
        inner = ValidationError.new(("inner",), ErrorCode.CUSTOM_VALIDATION, "bad")
        descriptor = with_validator(string(), lambda v: Err(inner))
        [error] = errors_of(evaluate(descriptor, "x", ("field",)))
        assert error.path == ("field", "inner")
        assert error.message == "bad"

    def test_invalid_return_shape(self):
        descriptor = with_validator(string(), lambda v: True)
        [error] = errors_of(evaluate(descriptor, "x"))
        assert error.code is ErrorCode.CUSTOM_VALIDATION
        assert error.message == "Custom validator returned invalid format: True"

    def test_exception_propagates(self):
        def explode(value):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            evaluate(with_validator(string(), explode), "x")

    def test_not_run_after_constraint_failure(self):
        calls = []
        descriptor = with_validator(string(min_length=3), lambda v: calls.append(v) or Ok(v))
        evaluate(descriptor, "a")
        assert calls == []

    def test_failure_stops_later_validators(self):
        calls = []
        descriptor = with_validator(
            with_validator(string(), lambda v: Err("first")),
            lambda v: calls.append(v) or Ok(v),
        )
        evaluate(descriptor, "x")
        assert calls == []


# =============================================================================
# Composites
# =============================================================================

class TestComposites:

    def test_array_reports_every_failing_element(self):
        errors = errors_of(evaluate(array("integer"), [1, "x", 3, "y"], ("ids",)))
        assert [e.path for e in errors] == [("ids", 1), ("ids", 3)]

    def test_array_outputs_list(self):
        assert evaluate(array("integer"), (1, "2")) == Ok([1, 2])

    def test_array_constraints_run_after_elements(self):
        [error] = errors_of(evaluate(array("integer", min_items=2), [1]))
        assert error.code is ErrorCode.MIN_ITEMS

    def test_array_rejects_non_sequence(self):
        [error] = errors_of(evaluate(array("integer"), "abc"))
        assert error.message == "expected array, got 'abc'"

    def test_mapping_errors_at_key(self):
        errors = errors_of(evaluate(mapping("string", "integer"), {"a": 1, "b": "no"}, ("scores",)))
        assert [e.path for e in errors] == [("scores", "b")]

    def test_mapping_key_errors(self):
        errors = errors_of(evaluate(mapping(string(min_length=2), "integer"), {"a": 1}))
        assert errors[0].code is ErrorCode.MIN_LENGTH
        assert errors[0].path == ("a",)

    def test_tuple_arity_checked_first(self):
        [error] = errors_of(evaluate(tuple_("string", "integer"), ["a", "b", "c"]))
        assert error.code is ErrorCode.TYPE
        assert error.message == "expected tuple of 2 elements, got 3"

    def test_tuple_positions(self):
        assert evaluate(tuple_("string", "integer"), ["a", 1]) == Ok(("a", 1))
        [error] = errors_of(evaluate(tuple_("string", "integer"), ["a", "b"]))
        assert error.path == (1,)

    def test_union_follows_declaration_order(self):
        assert evaluate(union("integer", "string"), "1") == Ok(1)
        assert evaluate(union("string", "integer"), "1") == Ok("1")

    def test_union_runs_each_branch_once(self):
        calls = []

        def reject(value):
            calls.append(value)
            return Err("no")

        descriptor = union(with_validator(string(), reject), "boolean")
        assert evaluate(descriptor, "true") == Ok(True)
        assert calls == ["true"]

    def test_union_falls_back_to_coercion(self):
        assert evaluate(union("integer", "boolean"), "true") == Ok(True)

    def test_union_first_success_wins(self):
        assert evaluate(union("float", "integer"), 3) == Ok(3.0)

    def test_union_synthetic_error(self):
        [error] = errors_of(evaluate(union("integer", "boolean"), [1], ("v",)))
        assert error.code is ErrorCode.TYPE
        assert error.path == ("v",)
        assert error.message == UNION_MISMATCH

    def test_union_reports_deepest_error(self):
        descriptor = union(obj(name="string"), "integer")
        [error] = errors_of(evaluate(descriptor, {"name": 5}))
        assert error.path == ("name",)

    def test_object_is_lenient(self):
        assert evaluate(obj(name="string"), {"name": "a", "extra": 1}) == Ok({"name": "a"})

    def test_object_missing_field(self):
        [error] = errors_of(evaluate(obj(name="string"), {}, ("owner",)))
        assert error == ValidationError(("owner", "name"), ErrorCode.REQUIRED, "field is required")

    def test_object_size_constraint(self):
        descriptor = obj(name="string")
        [error] = errors_of(evaluate(with_constraints(descriptor, ("size", 2)), {"name": "a", "x": 1}))
        assert error.code is ErrorCode.SIZE


class TestSchemaRefs:

    def test_unknown_reference_raises(self):
        context = EvaluationContext(registry=SchemaRegistry())
        with pytest.raises(SchemaReferenceError):
            evaluate(ref("Missing"), {}, context=context)

    def test_registry_lookup(self, registry):
        compose([("city", "string")], name="Address", registry=registry)
        context = EvaluationContext(registry=registry)
        assert evaluate(ref("Address"), {"city": "Oslo"}, context=context) == Ok({"city": "Oslo"})

    def test_nested_errors_are_prefixed(self, registry):
        compose([("city", "string")], name="Address", registry=registry)
        context = EvaluationContext(registry=registry)
        [error] = errors_of(evaluate(array(ref("Address")), [{"city": 1}], ("addresses",), context))
        assert error.path == ("addresses", 0, "city")

"""
Coercion Rule Tests

Covers:
1. Individual safe and aggressive rules
2. Policy gating in Coercer
3. Scalar wrapping and custom rules
"""

from dataclasses import dataclass
from typing import Any

import pytest

from schemaflow.errors import Err, Ok
from schemaflow.validation import CoercionPolicy, CoercionRule, Coercer, coerce, coercer_for
from schemaflow.validation.coercion import (
    IntegralFloatToInt,
    StringifyValue,
    StringToBool,
    StringToFloat,
    StringToInt,
)


class TestSafeRules:

    def test_string_to_int(self):
        assert StringToInt().coerce(" 42 ") == Ok(42)
        assert StringToInt().coerce("4.2").is_err()

    def test_string_to_float(self):
        assert StringToFloat().coerce("2.5") == Ok(2.5)
        assert StringToFloat().coerce("1e3") == Ok(1000.0)

    @pytest.mark.parametrize("token", ["nan", "inf", "-Infinity"])
    def test_string_to_float_rejects_non_finite(self, token):
        assert StringToFloat().coerce(token).is_err()

    @pytest.mark.parametrize("token,expected", [
        ("true", True), ("False", False), ("1", True), ("0", False), (" TRUE ", True),
    ])
    def test_string_to_bool_tokens(self, token, expected):
        assert StringToBool().coerce(token) == Ok(expected)

    def test_string_to_bool_rejects_other_tokens(self):
        assert StringToBool().coerce("yes").is_err()

    def test_blank_strings_are_not_numbers(self):
        assert not StringToInt().can_coerce("  ")


class TestAggressiveRules:

    def test_stringify(self):
        assert StringifyValue().coerce(12) == Ok("12")
        assert StringifyValue().coerce(False) == Ok("false")
        assert not StringifyValue().can_coerce(None)

    def test_integral_float(self):
        assert IntegralFloatToInt().coerce(4.0) == Ok(4)
        assert IntegralFloatToInt().coerce(4.5).is_err()
        assert IntegralFloatToInt().coerce(float("inf")).is_err()


class TestCoercer:

    def test_none_policy_converts_nothing(self):
        assert coerce("42", "integer", CoercionPolicy.NONE).is_err()
        assert not coercer_for("none").enabled

    def test_safe_policy_excludes_aggressive_rules(self):
        assert coerce(42, "string", "safe").is_err()
        assert coerce(4.0, "integer", "safe").is_err()

    def test_aggressive_policy_includes_safe_rules(self):
        assert coerce("42", "integer", "aggressive") == Ok(42)
        assert coerce(42, "string", "aggressive") == Ok("42")

    def test_failure_message(self):
        assert coerce([1], "integer") == Err("cannot coerce list to integer")

    def test_wrap_scalar_needs_aggressive(self):
        assert coercer_for("safe").wrap_scalar(1).is_err()
        assert coercer_for("aggressive").wrap_scalar(1) == Ok([1])
        assert coercer_for("aggressive").wrap_scalar({"a": 1}).is_err()
        assert coercer_for("aggressive").wrap_scalar(None).is_err()

    def test_add_rule_returns_new_coercer(self):

        @dataclass(frozen=True)
        class CommaDecimal(CoercionRule):
            @property
            def target(self) -> str: return "float"

            @property
            def level(self) -> CoercionPolicy: return CoercionPolicy.SAFE

            def can_coerce(self, value: Any) -> bool:
                return isinstance(value, str) and "," in value

            def coerce(self, value: Any):
                return Ok(float(value.replace(",", ".")))

        base = Coercer(CoercionPolicy.SAFE)
        extended = base.add_rule(CommaDecimal())
        assert extended.coerce("2,5", "float") == Ok(2.5)
        assert base.coerce("2,5", "float").is_err()

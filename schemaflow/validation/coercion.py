"""Policy-Scoped Coercion System

Coercion rules are explicit and opt-in. Each rule belongs to a policy level
and only fires when the active CoercionPolicy admits that level:

- none: no conversion, raw values are type-checked as given
- safe: lossless string/number/boolean conversions
- aggressive: safe rules plus stringification and scalar-to-array wrapping

Features:
- Type-safe coercion with Result types
- Extensible rule tuple (``Coercer.add_rule`` returns a new coercer)
- A failed coercion never raises; the caller's type check reports it
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from schemaflow.errors import Err, Ok, Result

from .options import CoercionPolicy

_LEVELS = {CoercionPolicy.NONE: 0, CoercionPolicy.SAFE: 1, CoercionPolicy.AGGRESSIVE: 2}


class CoercionRule(ABC):
    """Base class for coercion rules.

    Each rule defines:
    - The primitive name it coerces to
    - The policy level it requires
    - Validation of coercion feasibility
    - The actual coercion logic
    """

    @property
    @abstractmethod
    def target(self) -> str:
        """Primitive name this rule produces."""

    @property
    @abstractmethod
    def level(self) -> CoercionPolicy:
        """Lowest policy that enables this rule."""

    @abstractmethod
    def can_coerce(self, value: Any) -> bool:
        """Check if value has a shape this rule converts."""

    @abstractmethod
    def coerce(self, value: Any) -> Result[Any, str]:
        """Convert value. Returns Ok(converted) or Err(reason)."""

    def __call__(self, value: Any) -> Result[Any, str]:
        return self.coerce(value)


# ============================================================================
# Safe Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringToInt(CoercionRule):
    """Coerce integer strings (``" 42"``) to int."""

    @property
    def target(self) -> str: return "integer"

    @property
    def level(self) -> CoercionPolicy: return CoercionPolicy.SAFE

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def coerce(self, value: Any) -> Result[int, str]:
        try:
            return Ok(int(value.strip()))
        except ValueError:
            return Err(f"cannot coerce {value!r} to integer")


@dataclass(frozen=True, slots=True)
class StringToFloat(CoercionRule):
    """Coerce finite numeric strings to float."""

    @property
    def target(self) -> str: return "float"

    @property
    def level(self) -> CoercionPolicy: return CoercionPolicy.SAFE

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def coerce(self, value: Any) -> Result[float, str]:
        try:
            parsed = float(value.strip())
        except ValueError:
            return Err(f"cannot coerce {value!r} to float")
        if not math.isfinite(parsed):
            return Err(f"cannot coerce {value!r} to a finite float")
        return Ok(parsed)


@dataclass(frozen=True, slots=True)
class StringToBool(CoercionRule):
    """Coerce canonical tokens to boolean.

    Truthy: "true", "1"
    Falsy: "false", "0"
    Matching is case-insensitive and ignores surrounding whitespace.
    """
    true_values: frozenset[str] = frozenset({"true", "1"})
    false_values: frozenset[str] = frozenset({"false", "0"})

    @property
    def target(self) -> str: return "boolean"

    @property
    def level(self) -> CoercionPolicy: return CoercionPolicy.SAFE

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, str)

    def coerce(self, value: Any) -> Result[bool, str]:
        token = value.strip().lower()
        if token in self.true_values: return Ok(True)
        if token in self.false_values: return Ok(False)
        return Err(f"cannot coerce {value!r} to boolean")


# ============================================================================
# Aggressive Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringifyValue(CoercionRule):
    """Render any non-null value as a string; booleans as true/false."""

    @property
    def target(self) -> str: return "string"

    @property
    def level(self) -> CoercionPolicy: return CoercionPolicy.AGGRESSIVE

    def can_coerce(self, value: Any) -> bool:
        return value is not None

    def coerce(self, value: Any) -> Result[str, str]:
        if isinstance(value, bool): return Ok("true" if value else "false")
        return Ok(str(value))


@dataclass(frozen=True, slots=True)
class IntegralFloatToInt(CoercionRule):
    @property
    def target(self) -> str: return "integer"

    @property
    def level(self) -> CoercionPolicy: return CoercionPolicy.AGGRESSIVE

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, float)

    def coerce(self, value: Any) -> Result[int, str]:
        if math.isfinite(value) and value.is_integer(): return Ok(int(value))
        return Err(f"cannot coerce {value!r} to integer without losing precision")


# ============================================================================
# Coercer
# ============================================================================

@dataclass(frozen=True, slots=True)
class Coercer:
    """Applies the rules a policy admits.

    Usage:
        coercer = Coercer(CoercionPolicy.SAFE)
        coercer.coerce("123", "integer")   # Ok(123)
        coercer.coerce("abc", "integer")   # Err("cannot coerce 'abc' to integer")
    """
    policy: CoercionPolicy = CoercionPolicy.SAFE
    rules: tuple[CoercionRule, ...] = field(default_factory=lambda: (
        StringToInt(),
        StringToFloat(),
        StringToBool(),
        StringifyValue(),
        IntegralFloatToInt(),
    ))

    def add_rule(self, rule: CoercionRule) -> Coercer:
        """Add a coercion rule, returning new instance."""
        return Coercer(policy=self.policy, rules=(*self.rules, rule))

    @property
    def enabled(self) -> bool: return self.policy is not CoercionPolicy.NONE

    def _admits(self, rule: CoercionRule) -> bool:
        return _LEVELS[rule.level] <= _LEVELS[self.policy]

    def coerce(self, value: Any, target: str) -> Result[Any, str]:
        """Attempt to convert ``value`` to the primitive ``target``."""
        for rule in self.rules:
            if rule.target == target and self._admits(rule) and rule.can_coerce(value):
                if (result := rule.coerce(value)).is_ok():
                    return result
        return Err(f"cannot coerce {type(value).__name__} to {target}")

    def wrap_scalar(self, value: Any) -> Result[list, str]:
        """Aggressive only: wrap a non-collection value as a one-element list."""
        if self.policy is not CoercionPolicy.AGGRESSIVE:
            return Err("scalar wrapping requires aggressive coercion")
        if isinstance(value, (list, tuple, dict, set, frozenset)) or value is None:
            return Err(f"cannot wrap {type(value).__name__} as array")
        return Ok([value])


NO_COERCION = Coercer(CoercionPolicy.NONE)
SAFE_COERCION = Coercer(CoercionPolicy.SAFE)
AGGRESSIVE_COERCION = Coercer(CoercionPolicy.AGGRESSIVE)


def coercer_for(policy: CoercionPolicy | str) -> Coercer:
    match CoercionPolicy(policy):
        case CoercionPolicy.NONE:
            return NO_COERCION
        case CoercionPolicy.SAFE:
            return SAFE_COERCION
        case _:
            return AGGRESSIVE_COERCION


def coerce(value: Any, target: str, policy: CoercionPolicy | str = CoercionPolicy.SAFE) -> Result[Any, str]:
    """Convenience function using the shared coercer for ``policy``."""
    return coercer_for(policy).coerce(value, target)

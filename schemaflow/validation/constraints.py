"""Constraint Checks

Built-in constraint kinds and string-format checks as immutable atomic
checks. Each check answers for one value and never raises; a check applied
to a value of a kind it does not govern passes.

Features:
- Frozen dataclass checks built per Constraint
- Compiled regex reuse from the Constraint itself
- Rich check metadata (code, limit) for error construction
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

from schemaflow.errors import ErrorCode

from .descriptors import Constraint, ConstraintKind


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one check, with the context needed to build an error."""
    is_valid: bool
    code: ErrorCode | None = None
    limit: Any = None

    @classmethod
    def valid(cls) -> CheckResult: return _VALID

    @classmethod
    def invalid(cls, code: ErrorCode, limit: Any = None) -> CheckResult:
        return cls(is_valid=False, code=code, limit=limit)


_VALID = CheckResult(is_valid=True)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class AtomicCheck(ABC):
    """Base class for atomic checks."""

    @abstractmethod
    def validate(self, value: Any) -> CheckResult:
        """Check a value. Returns CheckResult."""

    def __call__(self, value: Any) -> CheckResult: return self.validate(value)


# ============================================================================
# Size Checks
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringLength(AtomicCheck):
    kind: ConstraintKind
    limit: int

    def validate(self, value: Any) -> CheckResult:
        if not isinstance(value, str): return CheckResult.valid()
        length = len(value)
        if self.kind is ConstraintKind.MIN_LENGTH and length < self.limit:
            return CheckResult.invalid(ErrorCode.MIN_LENGTH, self.limit)
        if self.kind is ConstraintKind.MAX_LENGTH and length > self.limit:
            return CheckResult.invalid(ErrorCode.MAX_LENGTH, self.limit)
        return CheckResult.valid()


@dataclass(frozen=True, slots=True)
class ItemCount(AtomicCheck):
    """min_items / max_items over lists, tuples and mappings."""
    kind: ConstraintKind
    limit: int

    def validate(self, value: Any) -> CheckResult:
        if not isinstance(value, (list, tuple, dict)): return CheckResult.valid()
        count = len(value)
        if self.kind is ConstraintKind.MIN_ITEMS and count < self.limit:
            return CheckResult.invalid(ErrorCode.MIN_ITEMS, self.limit)
        if self.kind is ConstraintKind.MAX_ITEMS and count > self.limit:
            return CheckResult.invalid(ErrorCode.MAX_ITEMS, self.limit)
        return CheckResult.valid()


@dataclass(frozen=True, slots=True)
class ExactSize(AtomicCheck):
    limit: int

    def validate(self, value: Any) -> CheckResult:
        if not isinstance(value, (str, list, tuple, dict, set, frozenset)): return CheckResult.valid()
        if len(value) != self.limit:
            return CheckResult.invalid(ErrorCode.SIZE, self.limit)
        return CheckResult.valid()


# ============================================================================
# Ordering Checks
# ============================================================================

@dataclass(frozen=True, slots=True)
class NumericBound(AtomicCheck):
    kind: ConstraintKind
    limit: int | float

    def validate(self, value: Any) -> CheckResult:
        if not _is_number(value): return CheckResult.valid()
        match self.kind:
            case ConstraintKind.GT:
                ok = value > self.limit
            case ConstraintKind.LT:
                ok = value < self.limit
            case ConstraintKind.GTEQ:
                ok = value >= self.limit
            case _:
                ok = value <= self.limit
        return CheckResult.valid() if ok else CheckResult.invalid(self.kind.code, self.limit)


# ============================================================================
# Pattern / Membership Checks
# ============================================================================

@dataclass(frozen=True, slots=True)
class RegexPattern(AtomicCheck):
    pattern: re.Pattern

    def validate(self, value: Any) -> CheckResult:
        if not isinstance(value, str): return CheckResult.valid()
        if self.pattern.search(value) is None:
            return CheckResult.invalid(ErrorCode.FORMAT, self.pattern.pattern)
        return CheckResult.valid()


@dataclass(frozen=True, slots=True)
class OneOf(AtomicCheck):
    choices: tuple[Any, ...]

    def validate(self, value: Any) -> CheckResult:
        if value not in self.choices:
            return CheckResult.invalid(ErrorCode.CHOICES, self.choices)
        return CheckResult.valid()


def check_for(constraint: Constraint) -> AtomicCheck:
    """Build the check implementing ``constraint``."""
    match constraint.kind:
        case ConstraintKind.MIN_LENGTH | ConstraintKind.MAX_LENGTH:
            return StringLength(constraint.kind, constraint.value)
        case ConstraintKind.MIN_ITEMS | ConstraintKind.MAX_ITEMS:
            return ItemCount(constraint.kind, constraint.value)
        case ConstraintKind.SIZE:
            return ExactSize(constraint.value)
        case ConstraintKind.GT | ConstraintKind.LT | ConstraintKind.GTEQ | ConstraintKind.LTEQ:
            return NumericBound(constraint.kind, constraint.value)
        case ConstraintKind.FORMAT:
            return RegexPattern(constraint.value)
        case ConstraintKind.CHOICES:
            return OneOf(constraint.value)
    raise ValueError(f"no check for constraint {constraint.kind!r}")


# ============================================================================
# String Format Checks
# ============================================================================

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _parses(parser, value: str) -> bool:
    try:
        parser(value)
    except ValueError:
        return False
    return True


def is_email(value: str) -> bool: return _EMAIL_PATTERN.match(value) is not None

def is_uuid(value: str) -> bool: return _parses(UUID, value)

def is_date(value: str) -> bool: return _parses(date.fromisoformat, value)

def is_datetime(value: str) -> bool: return _parses(datetime.fromisoformat, value.replace("Z", "+00:00"))

def is_time(value: str) -> bool: return _parses(time.fromisoformat, value)


def is_uri(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and (parsed.netloc or parsed.path))


FORMAT_CHECKS = {
    "email": is_email,
    "uuid": is_uuid,
    "date": is_date,
    "datetime": is_datetime,
    "time": is_time,
    "uri": is_uri,
}

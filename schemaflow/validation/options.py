"""Validation Configuration

The option surface consumed by the engine. Instances are frozen pydantic
models, so option names and values are checked on construction; cross-option
conflicts are reported separately by ``check()``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigFrozenError

ExtraPolicy = Literal["allow", "forbid", "ignore"]
ErrorFormat = Literal["detailed", "simple", "minimal"]


class CoercionPolicy(str, Enum):
    NONE = "none"
    SAFE = "safe"
    AGGRESSIVE = "aggressive"


class ValidationConfig(BaseModel):
    """Engine options.

    - strict: reject input keys not consumed by a declared field
    - extra: allow | forbid | ignore (forbid rejects like strict)
    - coercion: none | safe | aggressive
    - case_sensitive: field-name matching strategy
    - error_format: detailed | simple | minimal (rendering only)
    - frozen: refuse further merges
    - validate_assignment: carried for callers that re-validate on update
    - max_anyof_union_len: union cap used by provider-compatible documents
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    strict: bool = False
    extra: ExtraPolicy = "allow"
    coercion: CoercionPolicy = CoercionPolicy.SAFE
    frozen: bool = False
    validate_assignment: bool = False
    case_sensitive: bool = True
    error_format: ErrorFormat = "detailed"
    max_anyof_union_len: int = Field(default=5, ge=0)

    @classmethod
    def preset(cls, name: str) -> ValidationConfig:
        if (options := PRESETS.get(name)) is None:
            raise ValueError(f"Unknown preset: {name!r}. Available: {', '.join(PRESETS)}")
        return cls(**options)

    def merge(self, **overrides: Any) -> ValidationConfig:
        """Return a new config with ``overrides`` applied.

        Goes through validation again, unlike ``model_copy(update=...)``.
        """
        if self.frozen:
            raise ConfigFrozenError("Cannot modify frozen configuration")
        return type(self)(**{**self.model_dump(), **overrides})

    def check(self) -> list[str]:
        """Cross-option conflicts, empty when the combination is coherent."""
        problems: list[str] = []
        if self.strict and self.extra == "allow":
            problems.append("strict mode conflicts with extra: allow")
        if self.coercion is CoercionPolicy.AGGRESSIVE and self.validate_assignment:
            problems.append("aggressive coercion conflicts with validate_assignment")
        if self.max_anyof_union_len < 1:
            problems.append("max_anyof_union_len must be at least 1")
        return problems

    @property
    def should_coerce(self) -> bool: return self.coercion is not CoercionPolicy.NONE

    @property
    def allow_extra_fields(self) -> bool: return self.extra != "forbid"

    @property
    def rejects_extra_fields(self) -> bool:
        """Whether unmatched input keys fail the strict check."""
        return self.strict or self.extra == "forbid"

    def summary(self) -> str:
        parts = [
            "strict" if self.strict else "lenient",
            f"extra={self.extra}",
            f"coercion={self.coercion.value}",
            f"errors={self.error_format}",
        ]
        if not self.case_sensitive: parts.append("case-insensitive")
        if self.frozen: parts.append("frozen")
        return ", ".join(parts)


PRESETS: dict[str, dict[str, Any]] = {
    "strict": dict(strict=True, extra="forbid", coercion="none", validate_assignment=True,
        case_sensitive=True, error_format="detailed"),
    "lenient": dict(strict=False, extra="allow", coercion="safe", validate_assignment=False,
        case_sensitive=False, error_format="simple"),
    "api": dict(strict=True, extra="forbid", coercion="safe", validate_assignment=True,
        case_sensitive=True, error_format="detailed", frozen=True),
    "json_schema": dict(strict=False, extra="allow", coercion="none", error_format="minimal",
        max_anyof_union_len=3),
    "development": dict(strict=False, extra="allow", coercion="aggressive", validate_assignment=False,
        case_sensitive=False, error_format="detailed"),
    "production": dict(strict=True, extra="forbid", coercion="safe", validate_assignment=True,
        case_sensitive=True, error_format="simple", frozen=True),
}

DEFAULT_CONFIG = ValidationConfig()

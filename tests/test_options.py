"""
Validation Configuration Tests

Covers:
1. Defaults and option validation (pydantic)
2. Presets, merge and frozen configs
3. Cross-option conflict detection
4. Environment settings
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from schemaflow.config import Settings
from schemaflow.validation import (
    PRESETS,
    CoercionPolicy,
    ConfigFrozenError,
    ValidationConfig,
)


class TestDefaults:

    def test_default_values(self):
        config = ValidationConfig()
        assert config.strict is False
        assert config.extra == "allow"
        assert config.coercion is CoercionPolicy.SAFE
        assert config.case_sensitive is True
        assert config.error_format == "detailed"
        assert config.max_anyof_union_len == 5

    def test_unknown_option_rejected(self):
        with pytest.raises(PydanticValidationError):
            ValidationConfig(strcit=True)

    def test_invalid_value_rejected(self):
        with pytest.raises(PydanticValidationError):
            ValidationConfig(extra="sometimes")
        with pytest.raises(PydanticValidationError):
            ValidationConfig(coercion="maximum")

    def test_config_is_immutable(self):
        config = ValidationConfig()
        with pytest.raises(PydanticValidationError):
            config.strict = True

    def test_coercion_accepts_strings(self):
        assert ValidationConfig(coercion="aggressive").coercion is CoercionPolicy.AGGRESSIVE


class TestPresetsAndMerge:

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_presets_are_coherent(self, name):
        assert ValidationConfig.preset(name).check() == []

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            ValidationConfig.preset("paranoid")

    def test_merge_returns_new_config(self):
        base = ValidationConfig()
        merged = base.merge(case_sensitive=False)
        assert merged.case_sensitive is False
        assert base.case_sensitive is True

    def test_merge_revalidates(self):
        with pytest.raises(PydanticValidationError):
            ValidationConfig().merge(error_format="verbose")

    def test_frozen_config_refuses_merge(self):
        with pytest.raises(ConfigFrozenError):
            ValidationConfig.preset("api").merge(strict=False)


class TestConflicts:

    def test_strict_with_allow(self):
        assert ValidationConfig(strict=True).check() == ["strict mode conflicts with extra: allow"]

    def test_aggressive_with_validate_assignment(self):
        problems = ValidationConfig(coercion="aggressive", validate_assignment=True).check()
        assert problems == ["aggressive coercion conflicts with validate_assignment"]

    def test_zero_union_len(self):
        assert ValidationConfig(max_anyof_union_len=0).check() == ["max_anyof_union_len must be at least 1"]

    def test_extra_policy_helpers(self):
        assert ValidationConfig(extra="forbid").rejects_extra_fields
        assert not ValidationConfig(extra="forbid").allow_extra_fields
        assert ValidationConfig(strict=True, extra="forbid").rejects_extra_fields
        assert not ValidationConfig(extra="ignore").rejects_extra_fields
        assert not ValidationConfig(coercion="none").should_coerce

    def test_summary(self):
        assert ValidationConfig(case_sensitive=False).summary() == (
            "lenient, extra=allow, coercion=safe, errors=detailed, case-insensitive"
        )


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SCHEMAFLOW_LOG_LEVEL", raising=False)
        monkeypatch.delenv("SCHEMAFLOW_RESOLVER_MAX_DEPTH", raising=False)
        settings = Settings(_env_file=None)
        assert settings.LOG_LEVEL == "INFO"
        assert settings.RESOLVER_MAX_DEPTH == 5

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SCHEMAFLOW_RESOLVER_MAX_DEPTH", "2")
        assert Settings(_env_file=None).RESOLVER_MAX_DEPTH == 2

from __future__ import annotations

import pytest

from varietal.config import (
    InvalidConfigurationError,
    MissingConfigurationError,
    env_bool,
    env_choice,
    env_float,
    env_int,
    optional_env,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_optional_env_strips_and_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")
    monkeypatch.setenv("BLANK_VAR", " ")

    assert optional_env("EXAMPLE_VAR") == "value"
    assert optional_env("BLANK_VAR") is None


def test_env_int_parses_and_enforces_minimum(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert env_int("EXAMPLE_INT", 20) == 20

    monkeypatch.setenv("EXAMPLE_INT", "7")
    assert env_int("EXAMPLE_INT", 20, minimum=1) == 7

    monkeypatch.setenv("EXAMPLE_INT", "0")
    with pytest.raises(InvalidConfigurationError, match=">= 1"):
        env_int("EXAMPLE_INT", 20, minimum=1)

    monkeypatch.setenv("EXAMPLE_INT", "seven")
    with pytest.raises(InvalidConfigurationError, match="integer"):
        env_int("EXAMPLE_INT", 20)


def test_env_float_parses_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "0.25")
    assert env_float("EXAMPLE_FLOAT", 1.0) == 0.25

    monkeypatch.setenv("EXAMPLE_FLOAT", "fast")
    with pytest.raises(InvalidConfigurationError):
        env_float("EXAMPLE_FLOAT", 1.0)


def test_env_bool_accepts_common_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "Off")
    assert env_bool("EXAMPLE_FLAG", True) is False  # noqa: FBT003

    monkeypatch.setenv("EXAMPLE_FLAG", "YES")
    assert env_bool("EXAMPLE_FLAG", False) is True  # noqa: FBT003

    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")
    with pytest.raises(InvalidConfigurationError):
        env_bool("EXAMPLE_FLAG", False)  # noqa: FBT003


def test_env_choice_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_CHOICE", "API")
    assert env_choice("EXAMPLE_CHOICE", "database", choices=("database", "api")) == "api"

    monkeypatch.setenv("EXAMPLE_CHOICE", "redis")
    with pytest.raises(InvalidConfigurationError, match="database, api"):
        env_choice("EXAMPLE_CHOICE", "database", choices=("database", "api"))

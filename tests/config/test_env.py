from __future__ import annotations

import pytest

from mintsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    require_env_var,
    require_env_vars,
)
from mintsync.config.env import optional_float_env, optional_int_env


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_numbers_fall_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_NUMBER", raising=False)

    assert optional_float_env("EXAMPLE_NUMBER", 1.5) == 1.5
    assert optional_int_env("EXAMPLE_NUMBER", 3) == 3


def test_optional_numbers_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_NUMBER", "12")

    assert optional_float_env("EXAMPLE_NUMBER", 1.5) == 12.0
    assert optional_int_env("EXAMPLE_NUMBER", 3) == 12


@pytest.mark.parametrize("raw", ["abc", "0", "-4"])
def test_optional_int_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("EXAMPLE_NUMBER", raw)

    with pytest.raises(ConfigurationError, match="EXAMPLE_NUMBER"):
        optional_int_env("EXAMPLE_NUMBER", 3)

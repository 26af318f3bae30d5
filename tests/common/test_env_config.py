from __future__ import annotations

import logging

import pytest

from seriesgate.config import (
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    require_env_vars,
)
from seriesgate.config.env import optional_float_env, require_env_var


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
    assert exc.value.names == ("MISSING_A", "MISSING_B")


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_float_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_FLOAT", raising=False)
    assert optional_float_env("EXAMPLE_FLOAT", 1.5) == 1.5

    monkeypatch.setenv("EXAMPLE_FLOAT", "2.25")
    assert optional_float_env("EXAMPLE_FLOAT", None) == 2.25

    monkeypatch.setenv("EXAMPLE_FLOAT", "soon")
    with pytest.raises(ConfigurationError, match="EXAMPLE_FLOAT"):
        optional_float_env("EXAMPLE_FLOAT", None)


def test_configure_logging_sets_root_level() -> None:
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging(level=logging.DEBUG, force=True)
        assert root.level == logging.DEBUG
    finally:
        configure_logging(level=previous, force=True)

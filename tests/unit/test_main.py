"""Unit tests for exit-code routing at the process boundary."""

from __future__ import annotations

import pytest

from change_gate.config import ConfigLoadError
from change_gate.main import ExitCode, cli_entrypoint, exit_code_for
from change_gate.safety.resource_monitor import ResourceLimitExceeded


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ResourceLimitExceeded(("Memory usage",)), ExitCode.RESOURCE_LIMIT_EXCEEDED),
        (ConfigLoadError("config file not found: x"), ExitCode.CONFIG_ERROR),
        (FileNotFoundError("change.yaml"), ExitCode.CONFIG_ERROR),
        (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
    ],
)
def test_exit_code_for_direct_exceptions(exc: Exception, expected: ExitCode) -> None:
    assert exit_code_for(exc) is expected


def test_exit_code_follows_the_cause_chain() -> None:
    exc = RuntimeError("wrapper")
    exc.__cause__ = ConfigLoadError("invalid TOML")

    assert exit_code_for(exc) is ExitCode.CONFIG_ERROR


def test_unknown_subcommand_is_a_config_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["no-such-command"]) == ExitCode.CONFIG_ERROR
    assert "invalid choice" in capsys.readouterr().err

"""
Async command execution used by the deep-validation adapters.

External tools (pytest, benchmark harnesses, bandit) run through a pluggable
``CommandExecutor`` so adapters can be exercised with scripted results in tests.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass, field
from typing import NoReturn, Protocol, runtime_checkable

from change_gate.observability.logging import redact_text

_DEFAULT_MAX_OUTPUT_CHARS = 200_000


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Portable command invocation contract."""

    argv: tuple[str, ...]
    cwd: str | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float | None = None
    allowed_exit_codes: tuple[int, ...] = (0,)
    inherit_env: bool = True

    def __post_init__(self) -> None:
        argv = tuple(self.argv)
        if not argv:
            _fail("CommandSpec.argv", "must not be empty")
        for index, item in enumerate(argv):
            if not isinstance(item, str) or not item:
                _fail(f"CommandSpec.argv[{index}]", "expected non-empty string")
        object.__setattr__(self, "argv", argv)
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            _fail("CommandSpec.timeout_seconds", "must be > 0 when set")
        object.__setattr__(self, "allowed_exit_codes", tuple(self.allowed_exit_codes))
        if not self.allowed_exit_codes:
            _fail("CommandSpec.allowed_exit_codes", "must not be empty")

    def build_env(self) -> dict[str, str] | None:
        if self.inherit_env:
            if not self.env:
                return None
            merged = dict(os.environ)
            merged.update(self.env)
            return merged
        return dict(self.env)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one command run."""

    argv: tuple[str, ...]
    exit_code: int | None
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        if self.timed_out and self.exit_code is not None:
            _fail("CommandResult.exit_code", "must be None when timed_out is true")
        if self.duration_ms < 0:
            _fail("CommandResult.duration_ms", "must be >= 0")

    @property
    def ran(self) -> bool:
        """True when the process started and exited on its own."""

        return not self.timed_out and self.error is None and self.exit_code is not None

    def is_success(self, spec: CommandSpec | None = None) -> bool:
        if not self.ran:
            return False
        if spec is None:
            return self.exit_code == 0
        return self.exit_code in spec.allowed_exit_codes

    def describe_failure(self) -> str:
        """Short human-readable account of why the command did not succeed."""

        command = " ".join(self.argv)
        if self.timed_out:
            return f"{command!r} timed out"
        if self.error is not None:
            return f"{command!r} could not run: {self.error}"
        tail = (self.stderr.strip() or self.stdout.strip()).splitlines()[-5:]
        detail = f": {' | '.join(tail)}" if tail else ""
        return f"{command!r} exited with code {self.exit_code}{detail}"


@runtime_checkable
class CommandExecutor(Protocol):
    """Pluggable async command execution interface."""

    async def run(self, spec: CommandSpec) -> CommandResult: ...


class LocalSubprocessExecutor(CommandExecutor):
    """Async local subprocess executor with output capture and optional timeout."""

    def __init__(
        self,
        *,
        default_timeout_seconds: float | None = None,
        max_output_chars: int | None = _DEFAULT_MAX_OUTPUT_CHARS,
        redact_output: bool = True,
    ) -> None:
        if default_timeout_seconds is not None and default_timeout_seconds <= 0:
            _fail("LocalSubprocessExecutor.default_timeout_seconds", "must be > 0 when set")
        self._default_timeout_seconds = default_timeout_seconds
        self._max_output_chars = max_output_chars
        self._redact_output = redact_output

    async def run(self, spec: CommandSpec) -> CommandResult:
        started_ns = time.monotonic_ns()
        timeout = (
            spec.timeout_seconds
            if spec.timeout_seconds is not None
            else self._default_timeout_seconds
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                cwd=spec.cwd,
                env=spec.build_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return CommandResult(
                argv=spec.argv,
                exit_code=None,
                stdout="",
                stderr="",
                duration_ms=_elapsed_ms(started_ns),
                error=str(exc),
            )

        try:
            stdout_bytes, stderr_bytes = await _communicate_with_timeout(process, timeout)
            timed_out = False
            error_text: str | None = None
            exit_code = process.returncode
        except _CommandTimeoutError as exc:
            stdout_bytes = exc.stdout
            stderr_bytes = exc.stderr
            timed_out = True
            error_text = f"command timed out after {timeout:.3f}s"
            exit_code = None

        return CommandResult(
            argv=spec.argv,
            exit_code=exit_code,
            stdout=self._clean(stdout_bytes),
            stderr=self._clean(stderr_bytes),
            duration_ms=_elapsed_ms(started_ns),
            timed_out=timed_out,
            error=error_text,
        )

    def _clean(self, raw: bytes) -> str:
        text = _truncate_text(_normalize_output_text(raw), self._max_output_chars)
        return redact_text(text) if self._redact_output else text


class _CommandTimeoutError(Exception):
    def __init__(self, stdout: bytes, stderr: bytes) -> None:
        super().__init__("command timed out")
        self.stdout = stdout
        self.stderr = stderr


async def _communicate_with_timeout(
    process: asyncio.subprocess.Process,
    timeout_seconds: float | None,
) -> tuple[bytes, bytes]:
    try:
        if timeout_seconds is None:
            return await process.communicate()
        return await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except TimeoutError as exc:
        with suppress(ProcessLookupError):
            process.kill()
        stdout_bytes, stderr_bytes = await process.communicate()
        raise _CommandTimeoutError(stdout_bytes or b"", stderr_bytes or b"") from exc
    except asyncio.CancelledError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.communicate()
        raise


def _elapsed_ms(started_ns: int) -> int:
    return max(0, (time.monotonic_ns() - started_ns) // 1_000_000)


def _normalize_output_text(raw: bytes | None) -> str:
    if not raw:
        return ""
    text = raw.decode("utf-8", errors="replace")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _truncate_text(text: str, max_chars: int | None) -> str:
    if max_chars is None or len(text) <= max_chars:
        return text
    # Tool summaries are printed last, so the tail is what gets kept.
    omitted = len(text) - max_chars
    return f"...[truncated {omitted} chars]\n{text[-max_chars:]}"


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


__all__ = [
    "CommandExecutor",
    "CommandResult",
    "CommandSpec",
    "LocalSubprocessExecutor",
]

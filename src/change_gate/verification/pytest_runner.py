"""pytest-backed unit and integration test capability."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from change_gate.domain.models import (
    IntegrationTestSummary,
    ProposedChange,
    TestValidation,
    UnitTestSummary,
)
from change_gate.policy.path_matcher import to_relative_path
from change_gate.verification.backends import SuiteRunError
from change_gate.verification.commands import (
    CommandExecutor,
    CommandResult,
    CommandSpec,
    LocalSubprocessExecutor,
)

# 0: all passed, 1: some failed, 5: nothing collected.
_PYTEST_EXIT_CODES: tuple[int, ...] = (0, 1, 5)

_COUNT_PATTERN = re.compile(
    r"(\d+) (passed|failed|errors?|skipped|xfailed|xpassed|deselected|warnings?)"
)
_SUMMARY_LINE = re.compile(r"\b(?:passed|failed|errors?|no tests ran)\b.* in [\d.]+s")
_COVERAGE_TOTAL = re.compile(r"^TOTAL\s+.*?(\d+(?:\.\d+)?)%\s*$", re.MULTILINE)


class PytestSuiteRunner:
    """Run pytest for the unit and integration suites and summarize the outcome."""

    def __init__(
        self,
        project_root: Path | str,
        *,
        executor: CommandExecutor | None = None,
        pytest_command: Sequence[str] | None = None,
        unit_dir: str = "tests/unit",
        integration_dir: str = "tests/integration",
        coverage_target: str | None = None,
        scope_to_changed_files: bool = False,
        timeout_seconds: float | None = None,
    ) -> None:
        self._project_root = Path(os.path.abspath(project_root))
        self._executor = executor if executor is not None else LocalSubprocessExecutor()
        self._pytest_command = (
            tuple(pytest_command)
            if pytest_command
            else (sys.executable, "-m", "pytest", "-q", "-p", "no:cacheprovider")
        )
        self._unit_dir = unit_dir
        self._integration_dir = integration_dir
        self._coverage_target = coverage_target
        self._scope_to_changed_files = scope_to_changed_files
        self._timeout_seconds = timeout_seconds

    async def run_tests(self, change: ProposedChange) -> TestValidation:
        unit = await self._run_unit(change)
        integration = await self._run_integration()
        return TestValidation(unit_tests=unit, integration_tests=integration)

    async def _run_unit(self, change: ProposedChange) -> UnitTestSummary:
        if not (self._project_root / self._unit_dir).is_dir():
            return UnitTestSummary(passed=0, failed=0)

        targets: tuple[str, ...] = (self._unit_dir,)
        if self._scope_to_changed_files:
            selected = map_changed_files_to_tests(
                [to_relative_path(item, self._project_root) for item in change.files],
                project_root=self._project_root,
                unit_dir=self._unit_dir,
            )
            if selected:
                targets = selected

        argv = [*self._pytest_command, *targets]
        if self._coverage_target:
            argv.extend(["--cov", self._coverage_target, "--cov-report", "term"])

        result = await self._run(argv)
        counts = _summary_counts(result)
        return UnitTestSummary(
            passed=counts.get("passed", 0),
            failed=_failures(counts),
            coverage=parse_coverage_total(result.stdout),
            duration_ms=result.duration_ms,
        )

    async def _run_integration(self) -> IntegrationTestSummary:
        integration_root = self._project_root / self._integration_dir
        if not integration_root.is_dir():
            return IntegrationTestSummary(passed=0, failed=0)

        result = await self._run([*self._pytest_command, self._integration_dir])
        counts = _summary_counts(result)
        return IntegrationTestSummary(
            passed=counts.get("passed", 0),
            failed=_failures(counts),
            scenarios=_scenario_names(integration_root),
        )

    async def _run(self, argv: Sequence[str]) -> CommandResult:
        spec = CommandSpec(
            argv=tuple(argv),
            cwd=str(self._project_root),
            timeout_seconds=self._timeout_seconds,
            allowed_exit_codes=_PYTEST_EXIT_CODES,
        )
        result = await self._executor.run(spec)
        if not result.is_success(spec):
            raise SuiteRunError(result.describe_failure())
        return result


def parse_pytest_summary(output: str) -> dict[str, int]:
    """Return outcome counts from the last pytest summary line in ``output``."""

    for line in reversed(output.splitlines()):
        if _SUMMARY_LINE.search(line) is None:
            continue
        counts: dict[str, int] = {}
        for number, label in _COUNT_PATTERN.findall(line):
            key = {"error": "errors", "warning": "warnings"}.get(label, label)
            counts[key] = counts.get(key, 0) + int(number)
        return counts
    return {}


def parse_coverage_total(output: str) -> float:
    """Return the percentage from coverage's ``TOTAL`` row, or 0.0 when absent."""

    matches = _COVERAGE_TOTAL.findall(output)
    if not matches:
        return 0.0
    return float(matches[-1])


def map_changed_files_to_tests(
    changed_paths: Sequence[str],
    *,
    project_root: Path,
    unit_dir: str = "tests/unit",
) -> tuple[str, ...]:
    """Pick the unit test modules that exercise the changed files."""

    unit_root = project_root / unit_dir
    selected: set[str] = set()
    for path in changed_paths:
        clean = path.replace("\\", "/").strip()
        if not clean.endswith(".py") or ".." in PurePosixPath(clean).parts:
            continue
        if clean.startswith("tests/"):
            if (project_root / clean).is_file():
                selected.add(clean)
            continue
        module_stem = PurePosixPath(clean).stem
        if unit_root.is_dir():
            for candidate in unit_root.rglob(f"test_{module_stem}.py"):
                selected.add(candidate.relative_to(project_root).as_posix())
    return tuple(sorted(selected))


def _summary_counts(result: CommandResult) -> dict[str, int]:
    counts = parse_pytest_summary(result.stdout)
    # Exit code 1 means at least one test failed.
    if result.exit_code == 1 and _failures(counts) == 0:
        raise SuiteRunError(
            "pytest reported failures but no summary could be parsed: "
            f"{' '.join(result.argv)}"
        )
    return counts


def _failures(counts: dict[str, int]) -> int:
    return counts.get("failed", 0) + counts.get("errors", 0)


def _scenario_names(integration_root: Path) -> tuple[str, ...]:
    names = {
        path.stem.removeprefix("test_").replace("_", "-")
        for path in integration_root.rglob("test_*.py")
    }
    return tuple(sorted(names))


__all__ = [
    "PytestSuiteRunner",
    "map_changed_files_to_tests",
    "parse_coverage_total",
    "parse_pytest_summary",
]

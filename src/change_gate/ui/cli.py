"""Command-line interface router for change-gate."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import time
import uuid
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from change_gate.config import (
    ConfigLoadError,
    ConfigValidationError,
    constraints_from_config,
    load_config,
)
from change_gate.domain.models import ChangeType, ProposedChange, RiskLevel, ValidationResult
from change_gate.main import ExitCode
from change_gate.observability.logging import LoggingHandle, correlation_scope, setup_logging
from change_gate.policy.path_matcher import FileAccessMatcher, to_relative_path
from change_gate.safety.factory import build_resource_monitor, build_safety_validator
from change_gate.safety.resource_monitor import ResourceLimitExceeded
from change_gate.safety.sampler import ResourceSampler
from change_gate.ui.render import CLIRenderer, create_renderer


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="change-gate",
        description=(
            "change-gate — safety gate for autonomous code changes.\n\n"
            "Common workflows:\n"
            "  change-gate validate change.yaml     Decide whether a change may proceed\n"
            "  change-gate check-path src/app.py    Show the access tier of a path\n"
            "  change-gate resources --enforce      Sample usage against the ceilings\n"
            "  change-gate config                   Print the effective config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project-root",
        default=None,
        help="Project root the file policy applies to (default: project.root from config).",
    )
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: <project root>/change_gate.toml if present).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Override observability.log_level.",
    )
    common.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Emit machine-readable JSON on stdout.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate ------------------------------------------------------------
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[common],
        help="Run the safety gates and deep validation on a proposed change",
        description=(
            "Validate a proposed change read from a YAML/JSON file, or described with flags.\n\n"
            "Examples:\n"
            "  change-gate validate change.yaml\n"
            "  change-gate validate --id c1 --type bug_fix --file src/app/core.py\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    validate_parser.add_argument(
        "change_file", nargs="?", default=None, help="YAML or JSON file describing the change."
    )
    validate_parser.add_argument("--id", dest="change_id", default=None, help="Change id.")
    validate_parser.add_argument(
        "--type",
        dest="change_type",
        default=None,
        choices=tuple(item.value for item in ChangeType),
        help="Change type.",
    )
    validate_parser.add_argument(
        "--risk",
        default=RiskLevel.LOW.value,
        choices=tuple(item.value for item in RiskLevel),
        help="Risk level (default: low).",
    )
    validate_parser.add_argument(
        "--file",
        dest="files",
        action="append",
        default=[],
        help="Affected file; repeat for several.",
    )
    validate_parser.add_argument(
        "--created",
        dest="created_files",
        action="append",
        default=[],
        help="Affected file that the change creates; repeat for several.",
    )
    validate_parser.add_argument("--description", default="", help="Change description.")
    validate_parser.set_defaults(handler=_cmd_validate)

    # check-path ----------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check-path",
        parents=[common],
        help="Classify paths against the file access policy",
    )
    check_parser.add_argument("paths", nargs="+", help="Paths to classify.")
    check_parser.set_defaults(handler=_cmd_check_path)

    # resources -----------------------------------------------------------
    resources_parser = subparsers.add_parser(
        "resources",
        parents=[common],
        help="Sample process and workspace usage against the resource ceilings",
    )
    resources_parser.add_argument(
        "--enforce",
        action="store_true",
        default=False,
        help="Exit with code 3 when any ceiling is exceeded.",
    )
    resources_parser.set_defaults(handler=_cmd_resources)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    change = _proposed_change_from_args(args)
    validator = build_safety_validator(config)

    with _session_logging(config) as handle, correlation_scope(change_id=change.id):
        handle.logger.info("validation_started", extra={"file_count": len(change.files)})
        result = asyncio.run(validator.validate_change(change))

    exit_code = ExitCode.SUCCESS if result.valid else ExitCode.CHANGE_REJECTED
    if args.json:
        _emit_json({"command": "validate", "change": change.to_dict(), "result": result.to_dict()})
        return int(exit_code)

    renderer = _get_renderer(args)
    _render_validation(renderer, change, result)
    return int(exit_code)


def _cmd_check_path(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    root = Path(config["project"]["root"])
    matcher = FileAccessMatcher(constraints_from_config(config).file_access)

    rows: list[dict[str, object]] = []
    for raw in args.paths:
        relative = to_relative_path(raw, root)
        level, pattern = matcher.explain(relative)
        rows.append({"path": relative, "access": level.value, "pattern": pattern})

    if args.json:
        _emit_json({"command": "check-path", "paths": rows})
        return 0

    renderer = _get_renderer(args)
    for row in rows:
        suffix = f" ({row['pattern']})" if row["pattern"] else ""
        renderer.kv(str(row["path"]), f"{row['access']}{suffix}")
    return 0


def _cmd_resources(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    monitor = build_resource_monitor(config)

    with _session_logging(config):
        ResourceSampler(monitor, workspace=config["project"]["root"]).sample()
        check = monitor.check_resource_limits()
        warnings = monitor.usage_warnings()
        report = monitor.get_usage_report()
        enforce_error: ResourceLimitExceeded | None = None
        if args.enforce:
            try:
                monitor.enforce()
            except ResourceLimitExceeded as exc:
                enforce_error = exc

    if args.json:
        _emit_json(
            {
                "command": "resources",
                "usage": report.to_dict(),
                "within_limits": check.within_limits,
                "violations": list(check.violations),
                "warnings": list(warnings),
            }
        )
    else:
        renderer = _get_renderer(args)
        renderer.heading("Resource usage")
        for label, usage, unit in (
            ("Memory", report.memory, "MB"),
            ("CPU", report.cpu, "%"),
            ("Disk", report.disk, "MB"),
            ("API calls", report.api_calls, "/min"),
        ):
            renderer.kv(
                f"  {label}",
                f"{usage.usage:.1f}{unit} of {usage.limit:g}{unit} ({usage.percentage:.1f}%)",
            )
        for warning in warnings:
            renderer.warning(warning)
        if check.violations:
            renderer.section("Violations:")
            for violation in check.violations:
                renderer.fail(violation)
        else:
            renderer.ok("within limits")

    if enforce_error is not None:
        raise CLIError(str(enforce_error), exit_code=int(ExitCode.RESOURCE_LIMIT_EXCEEDED))
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)

    if args.json:
        _emit_json({"command": "config", "config": config})
        return 0

    renderer = _get_renderer(args)
    renderer.text(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=bool(getattr(args, "no_color", False)))


def _render_validation(
    renderer: CLIRenderer, change: ProposedChange, result: ValidationResult
) -> None:
    verdict = "APPROVED" if result.valid else "REJECTED"
    renderer.heading(f"Change {change.id}: {verdict}")
    renderer.kv("Reason", result.reason)
    if result.failures:
        renderer.section("Failures:")
        renderer.items([f"[{item.kind.value}] {item.message}" for item in result.failures])

    tests = result.test_results
    if tests is not None:
        renderer.section("Tests:")
        renderer.kv(
            "  unit",
            f"{tests.unit_tests.passed} passed, {tests.unit_tests.failed} failed, "
            f"coverage {tests.unit_tests.coverage:.1f}%",
        )
        renderer.kv(
            "  integration",
            f"{tests.integration_tests.passed} passed, {tests.integration_tests.failed} failed",
        )
    performance = result.performance_results
    if performance is not None and performance.benchmarks:
        renderer.section("Benchmarks:")
        for bench in performance.benchmarks:
            marker = renderer.fail if bench.regressed else renderer.ok
            marker(
                f"{bench.metric}: {bench.current:g} vs {bench.baseline:g} "
                f"({bench.change_percent:+.2f}%, threshold {bench.threshold_percent:g}%)"
            )
    quality = result.code_quality_results
    if quality is not None:
        metrics = quality.metrics
        renderer.section("Code quality:")
        renderer.kv("  cyclomatic", metrics.cyclomatic)
        renderer.kv("  cognitive", metrics.cognitive)
        renderer.kv(
            "  maintainability",
            f"{metrics.maintainability_index:.2f} ({metrics.maintainability_grade})",
        )
        renderer.kv("  duplication", f"{metrics.duplication_percentage:.2f}%")
        renderer.kv("  vulnerabilities", metrics.vulnerabilities)


# ---------------------------------------------------------------------------
# Helpers — config, logging, input
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {}
    base_dir: Path | None = None
    if args.project_root is not None:
        root = Path(os.path.abspath(Path(args.project_root).expanduser()))
        if not root.is_dir():
            raise CLIError(f"project root is not a directory: {root}", exit_code=2)
        overrides["project.root"] = root.as_posix()
        base_dir = root
    if args.log_level is not None:
        overrides["observability.log_level"] = args.log_level

    try:
        return load_config(args.config_path, cli_overrides=overrides, base_dir=base_dir)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc


@contextmanager
def _session_logging(config: Mapping[str, Any]) -> Iterator[LoggingHandle]:
    session_id = f"{time.strftime('%Y%m%dT%H%M%SZ', time.gmtime())}-{uuid.uuid4().hex[:8]}"
    handle = setup_logging(config["observability"], session_id=session_id)
    try:
        yield handle
    finally:
        handle.close()


def _proposed_change_from_args(args: argparse.Namespace) -> ProposedChange:
    if args.change_file is not None:
        if args.files or args.change_type is not None:
            raise CLIError("pass either a change file or --type/--file flags, not both", exit_code=2)
        return _load_change_file(Path(args.change_file))

    if args.change_type is None or not args.files:
        raise CLIError("a change file or --type with at least one --file is required", exit_code=2)
    try:
        return ProposedChange(
            id=args.change_id or f"cli-{uuid.uuid4().hex[:8]}",
            type=ChangeType(args.change_type),
            files=tuple(args.files),
            description=args.description,
            risk_level=RiskLevel(args.risk),
            created_files=tuple(args.created_files),
        )
    except ValueError as exc:
        raise CLIError(f"invalid change: {exc}", exit_code=2) from exc


def _load_change_file(path: Path) -> ProposedChange:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CLIError(f"unable to read change file {path}: {exc}", exit_code=2) from exc
    except yaml.YAMLError as exc:
        raise CLIError(f"invalid YAML/JSON in {path}: {exc}", exit_code=2) from exc
    if not isinstance(payload, Mapping):
        raise CLIError(f"{path}: change file must hold an object", exit_code=2)
    try:
        return ProposedChange.from_dict(payload)
    except ValueError as exc:
        raise CLIError(f"invalid change in {path}: {exc}", exit_code=2) from exc


__all__ = ["CLIError", "build_parser", "run_cli"]

"""Unit tests for the permission, complexity and scope gates."""

from __future__ import annotations

from pathlib import Path

import pytest

from change_gate.domain.models import (
    ChangeType,
    FailureKind,
    FileAccessPolicy,
    OperatingConstraints,
    ProposedChange,
    RiskLevel,
    default_constraints,
)
from change_gate.safety.gates import StaticGates


def _constraints() -> OperatingConstraints:
    return OperatingConstraints(
        allowed_operations=("Run existing tests",),
        prohibited_operations=(),
        file_access=FileAccessPolicy(
            read_only=("src/**",),
            write_allowed=("src/**/*.py",),
            prohibited=("*.env*", "src/**/test_*.py"),
        ),
        resource_limits=default_constraints().resource_limits,
    )


def _write(root: Path, relative: str, size: int = 10) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)


def _change(*files: str, **overrides: object) -> ProposedChange:
    values: dict[str, object] = {"id": "change-1", "type": ChangeType.BUG_FIX, "files": files}
    values.update(overrides)
    return ProposedChange(**values)  # type: ignore[arg-type]


def test_permitted_existing_file_passes_every_gate(tmp_path: Path) -> None:
    _write(tmp_path, "src/app/core.py")
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcomes = gates.evaluate(_change("src/app/core.py"))

    assert [item.gate for item in outcomes] == ["permissions", "complexity", "scope"]
    assert all(item.passed for item in outcomes)


def test_prohibited_file_is_reported_before_write_check(tmp_path: Path) -> None:
    _write(tmp_path, ".env")
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_file_permissions(_change(".env"))

    assert [item.message for item in outcome.failures] == [
        "File .env is in prohibited access list"
    ]
    assert outcome.failures[0].kind is FailureKind.PERMISSION_DENIED
    assert outcome.failures[0].path == ".env"


def test_every_offending_file_is_reported(tmp_path: Path) -> None:
    _write(tmp_path, "src/test_core.py")
    _write(tmp_path, "docs/index.md")
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_file_permissions(
        _change("src/test_core.py", "docs/index.md", "src/missing.py")
    )

    assert [item.message for item in outcome.failures] == [
        "File src/test_core.py is in prohibited access list",
        "File docs/index.md is not in write-allowed list",
        "File src/missing.py is not accessible",
    ]


def test_absolute_paths_are_checked_relative_to_project_root(tmp_path: Path) -> None:
    _write(tmp_path, "src/app/core.py")
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_file_permissions(_change(str(tmp_path / "src" / "app" / "core.py")))

    assert outcome.passed


def test_symlinked_project_root_matches_absolute_paths_lexically(tmp_path: Path) -> None:
    real = tmp_path / "real"
    _write(real, "src/app/core.py", size=200)
    link = tmp_path / "link"
    try:
        link.symlink_to(real, target_is_directory=True)
    except OSError:
        pytest.skip("symlink creation not permitted")
    gates = StaticGates(_constraints(), project_root=link)

    outcomes = gates.evaluate(
        _change(str(link / "src" / "app" / "core.py"), type=ChangeType.REFACTOR)
    )

    assert all(item.passed for item in outcomes), [item.failures for item in outcomes]


def test_created_files_may_be_absent(tmp_path: Path) -> None:
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_file_permissions(
        _change("src/app/new_module.py", created_files=("src/app/new_module.py",))
    )

    assert outcome.passed


def test_too_many_files_is_a_complexity_failure(tmp_path: Path) -> None:
    files = tuple(f"src/m{index}.py" for index in range(11))
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_complexity(_change(*files))

    assert [item.message for item in outcome.failures] == [
        "Too many files modified (11). Maximum is 10 per change."
    ]
    assert outcome.failures[0].kind is FailureKind.COMPLEXITY_EXCEEDED


def test_ten_files_are_within_limit(tmp_path: Path) -> None:
    files = tuple(f"src/m{index}.py" for index in range(10))
    gates = StaticGates(_constraints(), project_root=tmp_path)

    assert gates.check_complexity(_change(*files)).passed


@pytest.mark.parametrize(
    ("size", "message"),
    [
        (25_000, None),
        (
            25_025,
            "File src/big.py is too large (estimated 501 lines). "
            "Maximum is 500 lines changed per file.",
        ),
        (
            30_000,
            "File src/big.py is too large (estimated 600 lines). "
            "Maximum is 500 lines changed per file.",
        ),
    ],
)
def test_file_size_estimate(tmp_path: Path, size: int, message: str | None) -> None:
    _write(tmp_path, "src/big.py", size=size)
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_complexity(_change("src/big.py"))

    assert [item.message for item in outcome.failures] == ([message] if message else [])


def test_missing_files_are_skipped_by_size_check(tmp_path: Path) -> None:
    gates = StaticGates(_constraints(), project_root=tmp_path)

    assert gates.check_complexity(_change("src/absent.py")).passed


def test_feature_changes_are_out_of_scope(tmp_path: Path) -> None:
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_scope(_change("src/a.py", type=ChangeType.FEATURE))

    assert [item.message for item in outcome.failures] == [
        "Change type 'feature' is not allowed. Allowed types: optimization, bug_fix, refactor"
    ]
    assert outcome.failures[0].kind is FailureKind.SCOPE_VIOLATION


def test_high_risk_changes_are_out_of_scope(tmp_path: Path) -> None:
    gates = StaticGates(_constraints(), project_root=tmp_path)

    outcome = gates.check_scope(_change("src/a.py", risk_level=RiskLevel.HIGH))

    assert [item.message for item in outcome.failures] == [
        "High-risk changes are not allowed in autonomous mode"
    ]


def test_medium_risk_refactor_is_in_scope(tmp_path: Path) -> None:
    gates = StaticGates(_constraints(), project_root=tmp_path)

    change = _change("src/a.py", type=ChangeType.REFACTOR, risk_level=RiskLevel.MEDIUM)

    assert gates.check_scope(change).passed

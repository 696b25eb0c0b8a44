"""
Static admission gates for a proposed change.

Three gates run in a fixed order (file permissions, complexity, scope). Each gate
reports every offending file or attribute it finds, so a caller sees all reasons a
change was rejected at once.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path

from change_gate.constants import (
    ALLOWED_CHANGE_TYPES,
    BYTES_PER_ESTIMATED_LINE,
    MAX_ESTIMATED_LINES_PER_FILE,
    MAX_FILES_PER_CHANGE,
)
from change_gate.domain.models import (
    FailureKind,
    GateFailure,
    OperatingConstraints,
    ProposedChange,
    RiskLevel,
)
from change_gate.policy.path_matcher import FileAccessMatcher, to_relative_path


@dataclass(frozen=True, slots=True)
class GateOutcome:
    gate: str
    failures: tuple[GateFailure, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.failures


class StaticGates:
    """Permission, complexity and scope gates bound to one constraints load."""

    def __init__(self, constraints: OperatingConstraints, *, project_root: Path | str) -> None:
        self._matcher = FileAccessMatcher(constraints.file_access)
        self._project_root = Path(os.path.abspath(project_root))

    @property
    def matcher(self) -> FileAccessMatcher:
        return self._matcher

    def evaluate(self, change: ProposedChange) -> tuple[GateOutcome, ...]:
        return (
            self.check_file_permissions(change),
            self.check_complexity(change),
            self.check_scope(change),
        )

    def check_file_permissions(self, change: ProposedChange) -> GateOutcome:
        created = set(change.created_files)
        failures: list[GateFailure] = []
        for item in change.files:
            relative = to_relative_path(item, self._project_root)
            if self._matcher.is_prohibited(relative):
                failures.append(
                    GateFailure(
                        FailureKind.PERMISSION_DENIED,
                        f"File {relative} is in prohibited access list",
                        relative,
                    )
                )
                continue
            # Every change type writes to its files.
            if not self._matcher.is_write_allowed(relative):
                failures.append(
                    GateFailure(
                        FailureKind.PERMISSION_DENIED,
                        f"File {relative} is not in write-allowed list",
                        relative,
                    )
                )
                continue
            if not os.access(self._absolute(item), os.F_OK) and item not in created:
                failures.append(
                    GateFailure(
                        FailureKind.PERMISSION_DENIED,
                        f"File {relative} is not accessible",
                        relative,
                    )
                )
        return GateOutcome(gate="permissions", failures=tuple(failures))

    def check_complexity(self, change: ProposedChange) -> GateOutcome:
        failures: list[GateFailure] = []
        if len(change.files) > MAX_FILES_PER_CHANGE:
            failures.append(
                GateFailure(
                    FailureKind.COMPLEXITY_EXCEEDED,
                    (
                        f"Too many files modified ({len(change.files)}). "
                        f"Maximum is {MAX_FILES_PER_CHANGE} per change."
                    ),
                )
            )

        for item in change.files:
            try:
                size = os.stat(self._absolute(item)).st_size
            except OSError:
                continue
            estimated_lines = size / BYTES_PER_ESTIMATED_LINE
            if estimated_lines > MAX_ESTIMATED_LINES_PER_FILE:
                relative = to_relative_path(item, self._project_root)
                failures.append(
                    GateFailure(
                        FailureKind.COMPLEXITY_EXCEEDED,
                        (
                            f"File {relative} is too large "
                            f"(estimated {_round_half_up(estimated_lines)} lines). "
                            f"Maximum is {MAX_ESTIMATED_LINES_PER_FILE} lines changed per file."
                        ),
                        relative,
                    )
                )
        return GateOutcome(gate="complexity", failures=tuple(failures))

    def check_scope(self, change: ProposedChange) -> GateOutcome:
        failures: list[GateFailure] = []
        if change.type.value not in ALLOWED_CHANGE_TYPES:
            failures.append(
                GateFailure(
                    FailureKind.SCOPE_VIOLATION,
                    (
                        f"Change type '{change.type.value}' is not allowed. "
                        f"Allowed types: {', '.join(ALLOWED_CHANGE_TYPES)}"
                    ),
                )
            )
        if change.risk_level is RiskLevel.HIGH:
            failures.append(
                GateFailure(
                    FailureKind.SCOPE_VIOLATION,
                    "High-risk changes are not allowed in autonomous mode",
                )
            )
        return GateOutcome(gate="scope", failures=tuple(failures))

    def _absolute(self, item: str) -> Path:
        candidate = Path(item)
        if candidate.is_absolute():
            return candidate
        return self._project_root / candidate


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


__all__ = ["GateOutcome", "StaticGates"]

"""Stable constants shared across the gate, monitor and adapters."""

from __future__ import annotations

from typing import Final

# Schema version for change_gate.toml.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Complexity gate.
MAX_FILES_PER_CHANGE: Final[int] = 10
MAX_ESTIMATED_LINES_PER_FILE: Final[int] = 500
BYTES_PER_ESTIMATED_LINE: Final[int] = 50

# Scope gate. Order is part of the rejection message.
ALLOWED_CHANGE_TYPES: Final[tuple[str, ...]] = ("optimization", "bug_fix", "refactor")

# Code-quality thresholds; an issue is raised when a metric is strictly above its limit.
MAX_CYCLOMATIC_COMPLEXITY: Final[int] = 10
MAX_DUPLICATION_PERCENT: Final[float] = 5.0
MAX_SECURITY_VULNERABILITIES: Final[int] = 0

# Resource monitor.
API_CALL_WINDOW_MS: Final[int] = 60_000
MEMORY_WARNING_PERCENT: Final[float] = 80.0
CPU_WARNING_PERCENT: Final[float] = 90.0
BYTES_PER_MB: Final[int] = 1024 * 1024

__all__ = [
    "ALLOWED_CHANGE_TYPES",
    "API_CALL_WINDOW_MS",
    "BYTES_PER_ESTIMATED_LINE",
    "BYTES_PER_MB",
    "CONFIG_SCHEMA_VERSION",
    "CPU_WARNING_PERCENT",
    "MAX_CYCLOMATIC_COMPLEXITY",
    "MAX_DUPLICATION_PERCENT",
    "MAX_ESTIMATED_LINES_PER_FILE",
    "MAX_FILES_PER_CHANGE",
    "MAX_SECURITY_VULNERABILITIES",
    "MEMORY_WARNING_PERCENT",
]

"""
Static code-quality capability.

Metrics are computed over the change's Python files as they sit on disk:

- cyclomatic complexity: highest per-function score reported by radon,
- cognitive complexity: highest per-function score from an AST walk that charges
  nesting depth for every branch,
- maintainability: lowest radon maintainability index and its letter rank,
- duplication: share of lines inside repeated windows of normalized lines,
- security: bandit findings.
"""

from __future__ import annotations

import ast
import json
import os
from collections.abc import Sequence
from pathlib import Path

from radon.complexity import cc_visit
from radon.metrics import mi_rank, mi_visit

from change_gate.domain.models import CodeQualityReport, ProposedChange, QualityMetrics
from change_gate.policy.path_matcher import to_relative_path
from change_gate.verification.backends import QualityAnalysisError
from change_gate.verification.commands import CommandExecutor, CommandSpec, LocalSubprocessExecutor

DEFAULT_BANDIT_COMMAND: tuple[str, ...] = ("bandit", "-f", "json", "-q")
DEFAULT_DUPLICATION_WINDOW = 6

# bandit exits 1 when it reports findings.
_BANDIT_EXIT_CODES: tuple[int, ...] = (0, 1)


class StaticAnalysisQualityAnalyzer:
    """Compute quality metrics with radon, the AST and bandit."""

    def __init__(
        self,
        project_root: Path | str,
        *,
        executor: CommandExecutor | None = None,
        bandit_command: Sequence[str] = DEFAULT_BANDIT_COMMAND,
        run_security_scan: bool = True,
        duplication_window: int = DEFAULT_DUPLICATION_WINDOW,
        timeout_seconds: float | None = None,
    ) -> None:
        if duplication_window < 2:
            raise ValueError("duplication_window must be >= 2")
        self._project_root = Path(os.path.abspath(project_root))
        self._executor = executor if executor is not None else LocalSubprocessExecutor()
        self._bandit_command = tuple(bandit_command)
        self._run_security_scan = run_security_scan
        self._duplication_window = duplication_window
        self._timeout_seconds = timeout_seconds

    async def analyze_code_quality(self, change: ProposedChange) -> CodeQualityReport:
        sources = self._read_sources(change)
        if not sources:
            return CodeQualityReport.from_metrics(QualityMetrics())

        cyclomatic = 0
        cognitive = 0
        maintainability: float | None = None
        for relative, code in sources.items():
            try:
                tree = ast.parse(code, filename=relative)
                blocks = cc_visit(code)
                file_mi = float(mi_visit(code, True))
            except SyntaxError as exc:
                raise QualityAnalysisError(f"cannot parse {relative}: {exc}") from exc
            # radon reports classes alongside their methods; only functions count here.
            function_scores = [
                block.complexity for block in blocks if not hasattr(block, "methods")
            ]
            cyclomatic = max([cyclomatic, *function_scores])
            cognitive = max([cognitive, *(score for _, score in cognitive_complexities(tree))])
            maintainability = file_mi if maintainability is None else min(maintainability, file_mi)

        index = round(maintainability if maintainability is not None else 100.0, 2)
        percentage, blocks_count = duplication_stats(
            list(sources.values()), window=self._duplication_window
        )
        severities = await self._security_findings(list(sources))

        metrics = QualityMetrics(
            cyclomatic=cyclomatic,
            cognitive=cognitive,
            maintainability_index=index,
            maintainability_grade=mi_rank(index),
            duplication_percentage=percentage,
            duplication_blocks=blocks_count,
            vulnerabilities=len(severities),
            severities=severities,
        )
        return CodeQualityReport.from_metrics(metrics)

    def _read_sources(self, change: ProposedChange) -> dict[str, str]:
        sources: dict[str, str] = {}
        for item in change.files:
            relative = to_relative_path(item, self._project_root)
            if relative == ".." or relative.startswith("../"):
                continue
            path = self._project_root / relative
            if path.suffix != ".py" or not path.is_file():
                continue
            try:
                sources[relative] = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                raise QualityAnalysisError(f"unable to read {relative}: {exc}") from exc
        return sources

    async def _security_findings(self, relative_paths: Sequence[str]) -> tuple[str, ...]:
        if not self._run_security_scan or not self._bandit_command:
            return ()
        spec = CommandSpec(
            argv=(*self._bandit_command, *relative_paths),
            cwd=str(self._project_root),
            timeout_seconds=self._timeout_seconds,
            allowed_exit_codes=_BANDIT_EXIT_CODES,
        )
        result = await self._executor.run(spec)
        if not result.is_success(spec):
            raise QualityAnalysisError(f"security scan failed: {result.describe_failure()}")
        return parse_bandit_severities(result.stdout)


def parse_bandit_severities(output: str) -> tuple[str, ...]:
    """Return one upper-cased severity per finding in bandit's JSON report."""

    try:
        payload = json.loads(output)
    except json.JSONDecodeError as exc:
        raise QualityAnalysisError(f"security scan produced invalid JSON: {exc}") from exc
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise QualityAnalysisError("security scan report has no 'results' list")
    severities: list[str] = []
    for entry in results:
        severity = entry.get("issue_severity") if isinstance(entry, dict) else None
        severities.append(str(severity).upper() if severity else "UNDEFINED")
    return tuple(severities)


def cognitive_complexities(tree: ast.AST) -> list[tuple[str, int]]:
    """Return ``(qualified_name, score)`` for every outermost function in ``tree``.

    Nested functions are charged to their enclosing function.
    """

    scores: list[tuple[str, int]] = []

    def collect(node: ast.AST, prefix: str) -> None:
        for child in ast.iter_child_nodes(node):
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                scores.append((f"{prefix}{child.name}", _score_statements(child.body, 0)))
            elif isinstance(child, ast.ClassDef):
                collect(child, f"{prefix}{child.name}.")

    collect(tree, "")
    return scores


def duplication_stats(sources: Sequence[str], *, window: int) -> tuple[float, int]:
    """Return ``(duplicated_line_percentage, duplicated_block_count)``.

    Lines are stripped, and blank or comment-only lines are ignored. A block is a
    maximal run of repeated windows after the first occurrence of that window.
    """

    normalized = [_normalized_lines(source) for source in sources]
    total = sum(len(lines) for lines in normalized)
    if total == 0:
        return 0.0, 0

    occurrences: dict[tuple[str, ...], list[tuple[int, int]]] = {}
    for source_index, lines in enumerate(normalized):
        for start in range(len(lines) - window + 1):
            key = tuple(lines[start : start + window])
            occurrences.setdefault(key, []).append((source_index, start))

    copy_starts: set[tuple[int, int]] = set()
    for positions in occurrences.values():
        copy_starts.update(positions[1:])

    duplicated_lines: set[tuple[int, int]] = set()
    blocks = 0
    for source_index, start in sorted(copy_starts):
        if (source_index, start - 1) not in copy_starts:
            blocks += 1
        duplicated_lines.update((source_index, start + offset) for offset in range(window))

    return round(len(duplicated_lines) / total * 100.0, 2), blocks


def _normalized_lines(source: str) -> list[str]:
    lines: list[str] = []
    for raw in source.splitlines():
        stripped = raw.strip()
        if stripped and not stripped.startswith("#"):
            lines.append(stripped)
    return lines


def _score_statements(statements: Sequence[ast.AST], nesting: int) -> int:
    return sum(_score_node(statement, nesting) for statement in statements)


def _score_children(node: ast.AST, nesting: int) -> int:
    return sum(_score_node(child, nesting) for child in ast.iter_child_nodes(node))


def _score_node(node: ast.AST, nesting: int) -> int:
    if isinstance(node, ast.If):
        score = 1 + nesting + _score_node(node.test, nesting)
        score += _score_statements(node.body, nesting + 1)
        return score + _score_else(node.orelse, nesting)
    if isinstance(node, (ast.For, ast.AsyncFor)):
        score = 1 + nesting + _score_node(node.iter, nesting)
        score += _score_statements(node.body, nesting + 1)
        if node.orelse:
            score += 1 + _score_statements(node.orelse, nesting + 1)
        return score
    if isinstance(node, ast.While):
        score = 1 + nesting + _score_node(node.test, nesting)
        score += _score_statements(node.body, nesting + 1)
        if node.orelse:
            score += 1 + _score_statements(node.orelse, nesting + 1)
        return score
    if isinstance(node, (ast.Try, ast.TryStar)):
        score = _score_statements(node.body, nesting)
        for handler in node.handlers:
            score += 1 + nesting + _score_statements(handler.body, nesting + 1)
        score += _score_statements(node.orelse, nesting)
        return score + _score_statements(node.finalbody, nesting)
    if isinstance(node, ast.Match):
        score = 1 + nesting + _score_node(node.subject, nesting)
        for case in node.cases:
            score += _score_statements(case.body, nesting + 1)
        return score
    if isinstance(node, ast.IfExp):
        return 1 + nesting + _score_children(node, nesting + 1)
    if isinstance(node, ast.BoolOp):
        return 1 + _score_children(node, nesting)
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return _score_statements(node.body, nesting + 1)
    if isinstance(node, ast.Lambda):
        return _score_node(node.body, nesting + 1)
    return _score_children(node, nesting)


def _score_else(orelse: Sequence[ast.stmt], nesting: int) -> int:
    if not orelse:
        return 0
    if len(orelse) == 1 and isinstance(orelse[0], ast.If):
        branch = orelse[0]
        score = 1 + _score_node(branch.test, nesting)
        score += _score_statements(branch.body, nesting + 1)
        return score + _score_else(branch.orelse, nesting)
    return 1 + _score_statements(orelse, nesting + 1)


__all__ = [
    "DEFAULT_BANDIT_COMMAND",
    "DEFAULT_DUPLICATION_WINDOW",
    "StaticAnalysisQualityAnalyzer",
    "cognitive_complexities",
    "duplication_stats",
    "parse_bandit_severities",
]

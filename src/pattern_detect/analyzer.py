# Pattern Detect - Find near-duplicate code patterns
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Pattern analyzer - turns raw findings into per-file issues and a summary.

Severity comes from similarity alone; the suggested refactoring comes from
the category of the first fragment.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import validate_severity
from .detector import detect_duplicate_patterns, FileInput, as_source_file
from .indexer import find_source_files, read_source_files
from .models import (
    AnalysisReport,
    Category,
    DetectionOptions,
    DuplicatePattern,
    FileMetrics,
    FileResult,
    Issue,
    PatternSummary,
    ProgressTick,
)
from .sizing import recommend_options, describe

logger = logging.getLogger(__name__)

TOP_DUPLICATES = 10

REFACTORING_SUGGESTIONS: Dict[Category, str] = {
    Category.API_HANDLER: "Extract common middleware or create a base handler class",
    Category.VALIDATOR: "Consolidate validation logic into shared schema validators (Zod/Yup)",
    Category.UTILITY: "Move to a shared utilities file and reuse across modules",
    Category.CLASS_METHOD: "Consider inheritance or composition to share behavior",
    Category.COMPONENT: "Extract shared logic into a custom hook or HOC",
    Category.FUNCTION: "Extract into a shared helper function",
    Category.UNKNOWN: "Extract common logic into a reusable module",
}

# Severity filter name -> severities kept
SEVERITY_FILTERS = {
    "critical": {"critical"},
    "high": {"critical", "major"},
    "medium": {"critical", "major", "minor"},
}


def severity_for(similarity: float) -> str:
    if similarity > 0.95:
        return "critical"
    if similarity > 0.90:
        return "major"
    return "minor"


def refactoring_suggestion(category: Category, similarity: float) -> str:
    """Category-specific advice, with urgency for near-identical code."""
    if similarity > 0.95:
        urgency = " (CRITICAL: Nearly identical code)"
    elif similarity > 0.90:
        urgency = " (HIGH: Very similar, refactor soon)"
    else:
        urgency = ""
    return REFACTORING_SUGGESTIONS[category] + urgency


def _issue_for(duplicate: DuplicatePattern, file: str) -> Issue:
    if duplicate.file_a == file:
        other, line = duplicate.file_b, duplicate.line_range_a[0]
    else:
        other, line = duplicate.file_a, duplicate.line_range_b[0]

    return Issue(
        severity=severity_for(duplicate.similarity),
        message=(
            f"{duplicate.category} pattern {round(duplicate.similarity * 100)}% similar to "
            f"{other} ({duplicate.token_cost} tokens wasted)"
        ),
        file=file,
        line=line,
        suggestion=refactoring_suggestion(duplicate.category, duplicate.similarity),
    )


def build_file_results(
    paths: Iterable[str],
    duplicates: Sequence[DuplicatePattern],
    severity: str = "all",
) -> List[FileResult]:
    """
    One FileResult per input file.

    Metrics always count every duplicate touching the file; the severity
    filter only trims the issue list.
    """
    allowed = SEVERITY_FILTERS.get(validate_severity(severity))
    results = []

    for path in paths:
        file_duplicates = [d for d in duplicates if d.involves(path)]
        issues = [_issue_for(d, path) for d in file_duplicates]
        if allowed is not None:
            issues = [i for i in issues if i.severity in allowed]

        results.append(FileResult(
            file_name=path,
            issues=issues,
            metrics=FileMetrics(
                token_cost=sum(d.token_cost for d in file_duplicates),
                consistency_score=max(0.0, 1 - 0.1 * len(file_duplicates)),
            ),
        ))

    return results


def generate_summary(duplicates: Sequence[DuplicatePattern]) -> PatternSummary:
    """Totals, a per-category count and the highest-ranked findings."""
    by_type = {category: 0 for category in Category}
    for duplicate in duplicates:
        by_type[duplicate.category] += 1

    return PatternSummary(
        total_patterns=len(duplicates),
        total_token_cost=sum(d.token_cost for d in duplicates),
        patterns_by_type=by_type,
        top_duplicates=list(duplicates[:TOP_DUPLICATES]),
    )


def analyze_patterns(
    files: Iterable[FileInput],
    options: Optional[DetectionOptions] = None,
    severity: str = "all",
    on_duplicate: Optional[Callable[[DuplicatePattern], None]] = None,
    on_progress: Optional[Callable[[ProgressTick], None]] = None,
) -> AnalysisReport:
    """
    Detect duplicates in already-loaded files and derive per-file results.

    Args:
        files: SourceFile objects or (path, text) pairs
        options: Detection options (defaults if omitted)
        severity: Issue filter: all, critical, high or medium
        on_duplicate: Streaming sink, see detect_duplicate_patterns
        on_progress: Progress callback, see detect_duplicate_patterns
    """
    validate_severity(severity)
    options = options or DetectionOptions()
    sources = [as_source_file(f, n) for n, f in enumerate(files)]

    detection = detect_duplicate_patterns(
        sources,
        options,
        on_duplicate=on_duplicate,
        on_progress=on_progress,
    )
    paths = [s.path for s in sources]

    return AnalysisReport(
        results=build_file_results(paths, detection.duplicates, severity),
        detection=detection,
        summary=generate_summary(detection.duplicates),
        options=options,
        severity=severity,
        files=paths,
    )


def analyze_directory(
    root_path: Path,
    overrides: Optional[Mapping[str, Any]] = None,
    severity: Optional[str] = None,
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
    include_tests: bool = False,
    use_smart_defaults: bool = True,
    on_duplicate: Optional[Callable[[DuplicatePattern], None]] = None,
    on_progress: Optional[Callable[[ProgressTick], None]] = None,
) -> AnalysisReport:
    """
    Scan a directory, size the run from the file count and analyze it.

    Args:
        root_path: Directory to scan
        overrides: Explicitly chosen DetectionOptions fields; they win over
            the size-derived defaults field by field
        severity: Issue filter; None lets the sizing advisor choose
        include_patterns: Only files matching these globs
        exclude_patterns: Extra globs to skip
        include_tests: Keep test files
        use_smart_defaults: False selects the conservative defaults
    """
    paths = find_source_files(
        root_path,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        include_tests=include_tests,
    )

    advice = recommend_options(len(paths), overrides, use_smart_defaults)
    if severity is None:
        severity = advice.severity

    logger.info(f"Found {len(paths)} source files")
    for key, value in describe(advice).items():
        logger.info(f"   {key}: {value}")

    sources = read_source_files(paths, root_path)

    return analyze_patterns(
        sources,
        advice.options,
        severity=severity,
        on_duplicate=on_duplicate,
        on_progress=on_progress,
    )

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
Report generator - formats analysis results for output.

Supports text, markdown, and json output formats.
"""

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List
import json

import numpy as np

from .analyzer import severity_for
from .models import AnalysisReport, Category, DuplicatePattern


class OutputFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


CATEGORY_ICONS: Dict[Category, str] = {
    Category.API_HANDLER: "🌐",
    Category.VALIDATOR: "✓",
    Category.UTILITY: "🔧",
    Category.CLASS_METHOD: "📦",
    Category.COMPONENT: "⚛️",
    Category.FUNCTION: "ƒ",
    Category.UNKNOWN: "❓",
}

MAX_CRITICAL_SHOWN = 5


def report_results(
    report: AnalysisReport,
    root_path: Path,
    output_format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Generate a report for one analysis run.

    Args:
        report: Result of analyze_patterns / analyze_directory
        root_path: Root path (for display)
        output_format: Desired output format

    Returns:
        Formatted report string
    """
    if output_format == OutputFormat.TEXT:
        return _format_text(report, root_path)
    elif output_format == OutputFormat.MARKDOWN:
        return _format_markdown(report, root_path)
    elif output_format == OutputFormat.JSON:
        return _format_json(report, root_path)
    else:
        raise ValueError(f"Unknown format: {output_format}")


def similarity_stats(duplicates: List[DuplicatePattern]) -> Dict[str, float]:
    """Mean, median and max similarity (zeros when nothing was found)."""
    if not duplicates:
        return {"mean": 0.0, "median": 0.0, "max": 0.0}
    scores = np.array([d.similarity for d in duplicates], dtype=float)
    return {
        "mean": float(np.mean(scores)),
        "median": float(np.median(scores)),
        "max": float(np.max(scores)),
    }


def _sorted_categories(report: AnalysisReport) -> List[tuple]:
    counts = [(c, n) for c, n in report.summary.patterns_by_type.items() if n > 0]
    return sorted(counts, key=lambda item: item[1], reverse=True)


def _critical_issues(report: AnalysisReport):
    return [i for r in report.results for i in r.issues if i.severity == "critical"]


def _format_text(report: AnalysisReport, root_path: Path) -> str:
    """Plain text format with unicode decorations."""
    lines = []
    summary = report.summary
    stats = similarity_stats(report.duplicates)

    lines.append("━" * 60)
    lines.append("  PATTERN ANALYSIS SUMMARY")
    lines.append("━" * 60)
    lines.append("")
    lines.append(f"📂 Path: {root_path}")
    lines.append(f"📁 Files analyzed: {len(report.results)}")
    lines.append(f"🧩 Code blocks: {report.detection.blocks_extracted}")
    lines.append(f"⚠  Duplicate patterns found: {summary.total_patterns}")
    lines.append(f"💰 Token cost (wasted): {summary.total_token_cost:,}")
    if report.duplicates:
        lines.append(f"   Similarity: mean {stats['mean']:.0%} | median {stats['median']:.0%}")
    if report.detection.budget_exhausted:
        lines.append(
            f"⚠️  Comparison budget exhausted after {report.detection.comparisons_processed:,} "
            "comparisons - results are partial"
        )
    lines.append("")

    categories = _sorted_categories(report)
    if categories:
        lines.append("━" * 60)
        lines.append("  PATTERNS BY TYPE")
        lines.append("━" * 60)
        lines.append("")
        for category, count in categories:
            lines.append(f"{CATEGORY_ICONS[category]} {category.value:<15} {count}")
        lines.append("")

    if summary.top_duplicates:
        lines.append("━" * 60)
        lines.append("  TOP DUPLICATE PATTERNS")
        lines.append("━" * 60)
        lines.append("")
        for idx, dup in enumerate(summary.top_duplicates, start=1):
            icon = CATEGORY_ICONS[dup.category]
            lines.append(f"{idx}. {dup.similarity:.0%} {icon} {dup.category}")
            lines.append(f"   {dup.location_a}")
            lines.append(f"   ↔ {dup.location_b}")
            lines.append(f"   {dup.token_cost:,} tokens wasted")
            lines.append("")

    critical = _critical_issues(report)
    if critical:
        lines.append("━" * 60)
        lines.append("  CRITICAL ISSUES (>95% similar)")
        lines.append("━" * 60)
        lines.append("")
        for issue in critical[:MAX_CRITICAL_SHOWN]:
            lines.append(f"● {issue.file}:{issue.line}")
            lines.append(f"  {issue.message}")
            lines.append(f"  → {issue.suggestion}")
            lines.append("")

    if summary.total_patterns == 0:
        lines.append("✨ Great! No duplicate patterns detected.")
        lines.append("")

    lines.append("━" * 60)
    return "\n".join(lines)


def _format_markdown(report: AnalysisReport, root_path: Path) -> str:
    """Markdown format for documentation."""
    lines = []
    summary = report.summary
    stats = similarity_stats(report.duplicates)

    lines.append("# Duplicate Pattern Report")
    lines.append("")
    lines.append(f"**Path:** `{root_path}`  ")
    lines.append(f"**Threshold:** {report.options.min_similarity:.0%}  ")
    lines.append(f"**Files Analyzed:** {len(report.results)}  ")
    lines.append(f"**Patterns Found:** {summary.total_patterns}  ")
    lines.append(f"**Token Cost (wasted):** {summary.total_token_cost:,}")
    if report.duplicates:
        lines.append(f"**Mean Similarity:** {stats['mean']:.0%}")
    if report.detection.budget_exhausted:
        lines.append("")
        lines.append("> ⚠️ Comparison budget exhausted - results are partial.")
    lines.append("")

    categories = _sorted_categories(report)
    if categories:
        lines.append("## Patterns by Type")
        lines.append("")
        lines.append("| Type | Count |")
        lines.append("|------|-------|")
        for category, count in categories:
            lines.append(f"| {category.value} | {count} |")
        lines.append("")

    for idx, dup in enumerate(summary.top_duplicates, start=1):
        lines.append(f"## {idx}. {dup.category} - {dup.similarity:.0%} Similarity")
        lines.append("")
        lines.append(f"- **Severity:** {severity_for(dup.similarity)}")
        lines.append(f"- `{dup.location_a}`")
        lines.append(f"- `{dup.location_b}`")
        lines.append(f"- **Token cost:** {dup.token_cost:,}")
        lines.append("")
        lines.append("```")
        lines.append(dup.snippet)
        lines.append("```")
        lines.append("")

    files_with_issues = [r for r in report.results if r.issues]
    if files_with_issues:
        lines.append("## Issues by File")
        lines.append("")
        lines.append("| File | Issues | Token Cost | Consistency |")
        lines.append("|------|--------|------------|-------------|")
        for result in files_with_issues:
            lines.append(
                f"| `{result.file_name}` | {len(result.issues)} | "
                f"{result.metrics.token_cost:,} | {result.metrics.consistency_score:.2f} |"
            )
        lines.append("")

    return "\n".join(lines)


def _duplicate_to_dict(dup: DuplicatePattern) -> dict:
    data = asdict(dup)
    data["category"] = dup.category.value
    data["line_range_a"] = list(dup.line_range_a)
    data["line_range_b"] = list(dup.line_range_b)
    data["similarity"] = round(dup.similarity, 4)
    return data


def _format_json(report: AnalysisReport, root_path: Path) -> str:
    """JSON format for programmatic use."""
    summary = report.summary
    data = {
        "meta": {
            "path": str(root_path),
            "options": asdict(report.options),
            "severity": report.severity,
            "blocks_extracted": report.detection.blocks_extracted,
            "comparisons_processed": report.detection.comparisons_processed,
            "budget_exhausted": report.detection.budget_exhausted,
            "similarity": similarity_stats(report.duplicates),
            "timestamp": datetime.now().isoformat(),
        },
        "summary": {
            "total_patterns": summary.total_patterns,
            "total_token_cost": summary.total_token_cost,
            "patterns_by_type": {c.value: n for c, n in summary.patterns_by_type.items()},
            "top_duplicates": [_duplicate_to_dict(d) for d in summary.top_duplicates],
        },
        "duplicates": [_duplicate_to_dict(d) for d in report.duplicates],
        "results": [
            {
                "file_name": result.file_name,
                "issues": [asdict(issue) for issue in result.issues],
                "metrics": asdict(result.metrics),
            }
            for result in report.results
        ],
    }

    return json.dumps(data, indent=2)

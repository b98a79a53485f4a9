import json
from pathlib import Path

import pytest

from pattern_detect.analyzer import analyze_patterns
from pattern_detect.models import DetectionOptions, SourceFile
from pattern_detect.reporter import OutputFormat, report_results, similarity_stats

from conftest import unique_function

ROOT = Path("/repo")


@pytest.fixture
def report(order_files):
    return analyze_patterns(order_files, DetectionOptions(approx=False))


@pytest.fixture
def empty_report():
    files = [SourceFile(path=f"f{n}.js", text=unique_function(f"k{n}")) for n in range(2)]
    return analyze_patterns(files, DetectionOptions(approx=False))


def test_text_report_lists_duplicates_and_critical_issues(report):
    text = report_results(report, ROOT, OutputFormat.TEXT)

    assert "PATTERN ANALYSIS SUMMARY" in text
    assert "Duplicate patterns found: 1" in text
    assert "src/orders.js:1-10" in text
    assert "src/cart.js:1-10" in text
    assert "CRITICAL ISSUES" in text
    assert "utility" in text


def test_text_report_without_findings(empty_report):
    text = report_results(empty_report, ROOT)

    assert "No duplicate patterns detected" in text
    assert "TOP DUPLICATE PATTERNS" not in text


def test_markdown_report(report):
    text = report_results(report, ROOT, OutputFormat.MARKDOWN)

    assert text.startswith("# Duplicate Pattern Report")
    assert "| utility | 1 |" in text
    assert "- **Severity:** critical" in text
    assert "function calculateTotal(items) {" in text
    assert "| `src/orders.js` | 1 |" in text


def test_json_report_is_machine_readable(report):
    data = json.loads(report_results(report, ROOT, OutputFormat.JSON))

    assert set(data) == {"meta", "summary", "duplicates", "results"}
    assert data["meta"]["options"]["approx"] is False
    assert data["meta"]["blocks_extracted"] == 2
    assert data["summary"]["total_patterns"] == 1
    assert data["summary"]["patterns_by_type"]["utility"] == 1

    dup = data["duplicates"][0]
    assert dup["category"] == "utility"
    assert dup["line_range_a"] == [1, 10]
    assert dup["similarity"] == 1.0

    orders = data["results"][0]
    assert orders["file_name"] == "src/orders.js"
    assert orders["issues"][0]["severity"] == "critical"
    assert orders["metrics"]["consistency_score"] == pytest.approx(0.9)


def test_similarity_stats(report):
    assert similarity_stats([]) == {"mean": 0.0, "median": 0.0, "max": 0.0}
    assert similarity_stats(report.duplicates) == {"mean": 1.0, "median": 1.0, "max": 1.0}

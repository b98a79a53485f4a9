import pytest

from pattern_detect.analyzer import (
    REFACTORING_SUGGESTIONS,
    analyze_directory,
    analyze_patterns,
    build_file_results,
    generate_summary,
    refactoring_suggestion,
    severity_for,
)
from pattern_detect.config import ConfigurationError
from pattern_detect.models import Category, DetectionOptions, DuplicatePattern

from conftest import ORDER_SUM, ORDER_TOTAL


def make_dup(file_a, file_b, similarity, category=Category.UTILITY, token_cost=100, start_b=20):
    return DuplicatePattern(
        file_a=file_a,
        file_b=file_b,
        line_range_a=(3, 12),
        line_range_b=(start_b, start_b + 9),
        similarity=similarity,
        category=category,
        token_cost=token_cost,
        snippet="",
    )


@pytest.mark.parametrize("similarity, expected", [
    (1.0, "critical"),
    (0.96, "critical"),
    (0.95, "major"),
    (0.91, "major"),
    (0.90, "minor"),
    (0.4, "minor"),
])
def test_severity_from_similarity(similarity, expected):
    assert severity_for(similarity) == expected


def test_every_category_has_a_suggestion():
    assert set(REFACTORING_SUGGESTIONS) == set(Category)


def test_suggestion_carries_urgency():
    base = REFACTORING_SUGGESTIONS[Category.VALIDATOR]
    assert refactoring_suggestion(Category.VALIDATOR, 0.97) == base + " (CRITICAL: Nearly identical code)"
    assert refactoring_suggestion(Category.VALIDATOR, 0.93) == base + " (HIGH: Very similar, refactor soon)"
    assert refactoring_suggestion(Category.VALIDATOR, 0.6) == base


def test_issue_points_at_each_side_of_the_pair():
    dup = make_dup("a.js", "b.js", 0.97)
    results = {r.file_name: r for r in build_file_results(["a.js", "b.js"], [dup])}

    issue_a = results["a.js"].issues[0]
    assert issue_a.line == 3
    assert issue_a.severity == "critical"
    assert issue_a.type == "duplicate-pattern"
    assert "similar to b.js" in issue_a.message
    assert "97%" in issue_a.message

    issue_b = results["b.js"].issues[0]
    assert issue_b.line == 20
    assert "similar to a.js" in issue_b.message


def test_consistency_score_drops_with_each_duplicate():
    dups = [make_dup("a.js", f"o{n}.js", 0.5) for n in range(3)]
    result = build_file_results(["a.js", "quiet.js"], dups)

    assert result[0].metrics.consistency_score == pytest.approx(0.7)
    assert result[0].metrics.token_cost == 300
    assert result[1].metrics.consistency_score == 1.0
    assert result[1].issues == []


def test_consistency_score_never_goes_negative():
    dups = [make_dup("a.js", f"o{n}.js", 0.5) for n in range(12)]
    assert build_file_results(["a.js"], dups)[0].metrics.consistency_score == 0.0


def test_severity_filter_trims_issues_but_not_metrics():
    dups = [
        make_dup("a.js", "b.js", 0.99),
        make_dup("a.js", "c.js", 0.92),
        make_dup("a.js", "d.js", 0.5),
    ]

    def severities(level):
        result = build_file_results(["a.js"], dups, level)[0]
        assert result.metrics.consistency_score == pytest.approx(0.7)
        return [i.severity for i in result.issues]

    assert severities("all") == ["critical", "major", "minor"]
    assert severities("medium") == ["critical", "major", "minor"]
    assert severities("high") == ["critical", "major"]
    assert severities("critical") == ["critical"]


def test_unknown_severity_filter_is_rejected():
    with pytest.raises(ConfigurationError):
        build_file_results(["a.js"], [], "urgent")


def test_summary_counts_by_category():
    dups = [
        make_dup("a.js", "b.js", 0.9, Category.VALIDATOR, 10),
        make_dup("a.js", "c.js", 0.8, Category.VALIDATOR, 20),
        make_dup("b.js", "c.js", 0.7, Category.API_HANDLER, 30),
    ]
    summary = generate_summary(dups)

    assert summary.total_patterns == 3
    assert summary.total_token_cost == 60
    assert summary.patterns_by_type[Category.VALIDATOR] == 2
    assert summary.patterns_by_type[Category.API_HANDLER] == 1
    assert summary.patterns_by_type[Category.COMPONENT] == 0
    assert summary.top_duplicates == dups


def test_summary_keeps_top_ten():
    dups = [make_dup("a.js", f"o{n}.js", 0.5) for n in range(15)]
    assert generate_summary(dups).top_duplicates == dups[:10]


def test_analyze_patterns_builds_a_full_report(order_files):
    report = analyze_patterns(order_files, DetectionOptions(approx=False))

    assert report.files == ["src/orders.js", "src/cart.js"]
    assert report.summary.total_patterns == 1
    assert report.total_issues == 2
    assert report.duplicates == report.detection.duplicates
    assert report.results[0].issues[0].severity == "critical"


def test_analyze_directory_scans_and_sizes(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "orders.js").write_text(ORDER_TOTAL)
    (tmp_path / "src" / "cart.js").write_text(ORDER_SUM)
    (tmp_path / "src" / "cart.test.js").write_text(ORDER_SUM)
    (tmp_path / "README.md").write_text("# not code")

    report = analyze_directory(tmp_path, overrides={"approx": False})

    assert report.files == ["src/cart.js", "src/orders.js"]
    assert report.options.approx is False
    # Sized for two files
    assert report.options.min_lines == 6
    assert report.summary.total_patterns == 1
    assert report.duplicates[0].file_a == "src/cart.js"


def test_analyze_directory_can_include_tests(tmp_path):
    (tmp_path / "cart.js").write_text(ORDER_SUM)
    (tmp_path / "cart.test.js").write_text(ORDER_TOTAL)

    report = analyze_directory(tmp_path, overrides={"approx": False}, include_tests=True)

    assert report.files == ["cart.js", "cart.test.js"]
    assert report.summary.total_patterns == 1

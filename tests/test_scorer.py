import pytest

from pattern_detect.extractor import extract_blocks
from pattern_detect.models import Category, DuplicatePattern
from pattern_detect.scorer import jaccard_similarity, make_snippet, score_pair, sort_duplicates
from pattern_detect.tokenizer import tokenize

from conftest import ORDER_SUM, ORDER_TOTAL


def test_jaccard_of_known_sets():
    assert jaccard_similarity({"aaa", "bbb"}, {"aaa", "bbb"}) == 1.0
    assert jaccard_similarity({"aaa", "bbb"}, {"bbb", "ccc"}) == pytest.approx(1 / 3)
    assert jaccard_similarity({"aaa"}, {"bbb"}) == 0.0


def test_jaccard_counts_distinct_tokens():
    assert jaccard_similarity(["aaa", "aaa", "bbb"], ["aaa", "bbb", "bbb"]) == 1.0


def test_two_empty_token_sets_never_match():
    assert jaccard_similarity(set(), set()) == 0.0


def test_snippet_keeps_five_lines_and_marks_the_cut():
    raw = "\n".join(f"line{n}" for n in range(8))
    assert make_snippet(raw) == "line0\nline1\nline2\nline3\nline4\n..."


def _blocks():
    a = extract_blocks(ORDER_TOTAL, "orders.js")[0]
    b = extract_blocks(ORDER_SUM, "cart.js")[0]
    return a, b


def test_score_pair_builds_the_pattern_from_the_first_block():
    a, b = _blocks()

    dup = score_pair(a, b, set(tokenize(a.normalized_text)), set(tokenize(b.normalized_text)), 0.4)

    assert dup is not None
    assert dup.similarity == 1.0
    assert (dup.file_a, dup.file_b) == ("orders.js", "cart.js")
    assert dup.line_range_a == (1, 10)
    assert dup.line_range_b == (1, 10)
    assert dup.category == a.category
    assert dup.token_cost == a.token_cost + b.token_cost
    assert dup.snippet.startswith("function calculateTotal(items) {")
    assert dup.lines_of_code == a.lines_of_code


def test_score_pair_below_threshold_is_dropped():
    a, b = _blocks()
    assert score_pair(a, b, {"aaa", "bbb"}, {"bbb", "ccc"}, 0.5) is None
    assert score_pair(a, b, {"aaa", "bbb"}, {"bbb", "ccc"}, 0.3) is not None


def test_zero_similarity_never_matches_even_at_zero_threshold():
    a, b = _blocks()
    assert score_pair(a, b, {"aaa"}, {"bbb"}, 0.0) is None
    assert score_pair(a, b, set(), set(), 0.0) is None


def _pattern(similarity, token_cost, name="x"):
    return DuplicatePattern(
        file_a=f"{name}.js",
        file_b="other.js",
        line_range_a=(1, 5),
        line_range_b=(1, 5),
        similarity=similarity,
        category=Category.FUNCTION,
        token_cost=token_cost,
        snippet="",
    )


def test_sort_orders_by_similarity_then_cost():
    low = _pattern(0.5, 900, "low")
    high_cheap = _pattern(0.9, 10, "cheap")
    high_costly = _pattern(0.9, 300, "costly")

    assert sort_duplicates([low, high_cheap, high_costly]) == [high_costly, high_cheap, low]

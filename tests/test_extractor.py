from pattern_detect.extractor import count_code_lines, extract_blocks, is_block_heading
from pattern_detect.models import Category

from conftest import ORDER_TOTAL


def test_extracts_function_with_line_range():
    text = "// orders\nconst TAX = 0.2;\n\n" + ORDER_TOTAL + "\n"
    blocks = extract_blocks(text, "orders.js", min_lines=5)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.file == "orders.js"
    assert block.start_line == 4
    assert block.end_line == 13
    assert block.end_line - block.start_line + 1 == len(ORDER_TOTAL.splitlines())
    assert block.raw_text == ORDER_TOTAL


def test_block_shorter_than_min_lines_is_dropped():
    text = "function tiny(a) {\n  return a;\n}\n"
    assert extract_blocks(text, "tiny.js", min_lines=5) == []
    assert len(extract_blocks(text, "tiny.js", min_lines=3)) == 1


def test_min_lines_above_every_block_extracts_nothing():
    assert extract_blocks(ORDER_TOTAL, "orders.js", min_lines=20) == []


def test_nested_function_is_absorbed_by_outer_block():
    text = "\n".join([
        "function outer(list) {",
        "  function inner(x) {",
        "    return x * 2;",
        "  }",
        "  return list.map(inner);",
        "}",
    ])
    blocks = extract_blocks(text, "nested.js", min_lines=3)

    assert len(blocks) == 1
    assert blocks[0].start_line == 1
    assert blocks[0].end_line == 6


def test_arrow_and_exported_headings():
    assert is_block_heading("export const handler = async (req, res) => {")
    assert is_block_heading("export function parse(input) {")
    assert is_block_heading("const total = (items) => {")
    assert is_block_heading("  async load() {")
    assert not is_block_heading("const limit = 10;")
    assert not is_block_heading("if (ready) {")


def test_consecutive_blocks_are_extracted_separately():
    first = "\n".join(["function a(x) {", "  x.one();", "  x.two();", "  x.three();", "}"])
    second = "\n".join(["function b(y) {", "  y.four();", "  y.five();", "  y.six();", "}"])
    blocks = extract_blocks(first + "\n\n" + second, "two.js", min_lines=5)

    assert [(b.start_line, b.end_line) for b in blocks] == [(1, 5), (7, 11)]


def test_stray_closing_brace_does_not_break_later_blocks():
    text = "}\n" + ORDER_TOTAL
    blocks = extract_blocks(text, "stray.js", min_lines=5)

    assert len(blocks) == 1
    assert blocks[0].start_line == 2


def test_lines_of_code_skip_blank_and_comment_lines():
    lines = [
        "function documented(a) {",
        "  // add one",
        "",
        "  /* block */",
        "   * continued",
        "  return a + 1;",
        "}",
    ]
    assert count_code_lines(lines) == 3

    block = extract_blocks("\n".join(lines), "doc.js", min_lines=5)[0]
    assert block.lines_of_code == 3


def test_block_is_normalized_classified_and_costed():
    block = extract_blocks(ORDER_TOTAL, "orders.js", min_lines=5)[0]

    assert '"STR"' in block.normalized_text
    assert "computed order total" not in block.normalized_text
    assert block.category == Category.UTILITY
    assert block.token_cost == -(-len(ORDER_TOTAL) // 4)

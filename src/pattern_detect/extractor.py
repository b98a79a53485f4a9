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
Block extractor - finds function-like fragments by brace counting.

This is a line-oriented heuristic, not a parser:

- A block opens on a line that looks like a function heading (function
  keyword, arrow, async, exported or const-assigned callable) while no block
  is open, and closes on the first line after which brace depth is zero.
- Braces inside strings and comments are counted like any other brace.
- Nested functions are not extracted on their own; the outer block absorbs
  them.
"""

import re
from typing import List

from .models import CodeBlock
from .normalizer import normalize, classify, estimate_tokens


_HEADING_SUBSTRINGS = ("function ", "=>", "async ")
_HEADING_PATTERNS = [
    re.compile(r"^(export\s+)?(async\s+)?function\s+"),
    re.compile(r"^(export\s+)?const\s+\w+\s*=\s*(async\s*)?\("),
]
_COMMENT_PREFIXES = ("//", "/*", "*", "#")


def is_block_heading(line: str) -> bool:
    """True if ``line`` looks like the start of a function-like block."""
    trimmed = line.strip()
    if any(s in trimmed for s in _HEADING_SUBSTRINGS):
        return True
    return any(p.match(trimmed) for p in _HEADING_PATTERNS)


def count_code_lines(lines: List[str]) -> int:
    """Lines that are neither blank nor comment-only."""
    count = 0
    for line in lines:
        stripped = line.strip()
        if stripped and not stripped.startswith(_COMMENT_PREFIXES):
            count += 1
    return count


def _make_block(file: str, lines: List[str], start_idx: int, end_idx: int) -> CodeBlock:
    raw_text = "\n".join(lines)
    return CodeBlock(
        file=file,
        raw_text=raw_text,
        start_line=start_idx + 1,  # 1-indexed
        end_line=end_idx + 1,
        normalized_text=normalize(raw_text),
        category=classify(raw_text),
        token_cost=estimate_tokens(raw_text),
        lines_of_code=count_code_lines(lines),
    )


def extract_blocks(text: str, file: str, min_lines: int = 5) -> List[CodeBlock]:
    """
    Extract function-like blocks from one file.

    Args:
        text: Full file content
        file: Path of the file, recorded on every block
        min_lines: Blocks shorter than this (in physical lines) are dropped

    Returns:
        Blocks in source order
    """
    blocks: List[CodeBlock] = []
    current: List[str] = []
    block_start = 0
    depth = 0
    in_block = False

    for i, line in enumerate(text.split("\n")):
        if not in_block and is_block_heading(line):
            in_block = True
            block_start = i

        depth += line.count("{") - line.count("}")
        # A stray closing brace must not leave the counter negative for the rest of the file
        if depth < 0:
            depth = 0

        if not in_block:
            continue

        current.append(line)

        if depth == 0:
            if len(current) >= min_lines:
                blocks.append(_make_block(file, current, block_start, i))
            current = []
            in_block = False

    return blocks

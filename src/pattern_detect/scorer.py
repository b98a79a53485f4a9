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
Similarity scoring - Jaccard similarity over distinct tokens.
"""

from typing import AbstractSet, Iterable, List, Optional, Union

from .models import CodeBlock, DuplicatePattern

SNIPPET_LINES = 5

TokenCollection = Union[AbstractSet[str], Iterable[str]]


def jaccard_similarity(tokens_a: TokenCollection, tokens_b: TokenCollection) -> float:
    """
    |A & B| / |A | B| over distinct tokens, O(|A| + |B|).

    Returns 0.0 when both sides are empty, so a block without tokens never matches.
    """
    set_a = tokens_a if isinstance(tokens_a, (set, frozenset)) else set(tokens_a)
    set_b = tokens_b if isinstance(tokens_b, (set, frozenset)) else set(tokens_b)

    if len(set_a) > len(set_b):
        set_a, set_b = set_b, set_a
    intersection = sum(1 for token in set_a if token in set_b)
    union = len(set_a) + len(set_b) - intersection

    return intersection / union if union else 0.0


def make_snippet(raw_text: str, max_lines: int = SNIPPET_LINES) -> str:
    """First few lines of a block, for display."""
    return "\n".join(raw_text.split("\n")[:max_lines]) + "\n..."


def score_pair(
    block_a: CodeBlock,
    block_b: CodeBlock,
    tokens_a: TokenCollection,
    tokens_b: TokenCollection,
    min_similarity: float,
) -> Optional[DuplicatePattern]:
    """Score two blocks and build a DuplicatePattern if they pass the threshold."""
    similarity = jaccard_similarity(tokens_a, tokens_b)
    if similarity < min_similarity or similarity == 0.0:
        return None

    return DuplicatePattern(
        file_a=block_a.file,
        file_b=block_b.file,
        line_range_a=(block_a.start_line, block_a.end_line),
        line_range_b=(block_b.start_line, block_b.end_line),
        similarity=similarity,
        category=block_a.category,
        token_cost=block_a.token_cost + block_b.token_cost,
        snippet=make_snippet(block_a.raw_text),
        lines_of_code=block_a.lines_of_code,
    )


def sort_duplicates(duplicates: Iterable[DuplicatePattern]) -> List[DuplicatePattern]:
    """Similarity descending, then combined token cost descending (stable)."""
    return sorted(duplicates, key=lambda d: (-d.similarity, -d.token_cost))

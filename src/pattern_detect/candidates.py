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
Candidate selection - decides which block pairs are worth scoring.

Exact mode proposes every later block from another file (O(n^2)).
Approximate mode looks blocks up through an inverted index restricted to
rare tokens, so highly repetitive vocabulary cannot flood the candidate list.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Set

from .models import DetectionOptions

# A token found in at least this share of all blocks is too common to select on
RARE_TOKEN_FRACTION = 0.1

# Fewest blocks at which a token shared by two blocks can still be rare
MIN_APPROX_BLOCKS = int(2 / RARE_TOKEN_FRACTION) + 1

# Shared rare tokens must cover this share of the smaller block's distinct tokens
MIN_SHARED_FRACTION = 0.3

# Second clamp on candidates per block, applied after max_candidates_per_block
DEFAULT_CANDIDATE_HARD_CAP = 5


@dataclass(frozen=True)
class Candidate:
    """A block proposed for full scoring against the current one."""

    index: int
    shared: int = 0   # Shared rare tokens (0 in exact mode)


class TokenIndex:
    """
    Inverted index token -> ascending list of distinct block indices.

    Built once after extraction and read-only while scoring.
    """

    def __init__(self, token_sets: Sequence[Set[str]], files: Sequence[str]):
        self.token_sets = token_sets
        self.files = files
        self.postings: Dict[str, List[int]] = {}

        for idx, tokens in enumerate(token_sets):
            for token in tokens:
                self.postings.setdefault(token, []).append(idx)

    @classmethod
    def build(cls, token_sets: Sequence[Set[str]], files: Sequence[str]) -> "TokenIndex":
        return cls(token_sets, files)

    def __len__(self) -> int:
        return len(self.token_sets)

    def document_frequency(self, token: str) -> int:
        """Number of blocks containing ``token``."""
        return len(self.postings.get(token, ()))

    def rare_tokens(self, idx: int) -> List[str]:
        """Tokens of block ``idx`` that appear in under RARE_TOKEN_FRACTION of blocks."""
        limit = len(self.token_sets) * RARE_TOKEN_FRACTION
        return sorted(t for t in self.token_sets[idx] if self.document_frequency(t) < limit)

    def other_file_postings(self, token: str, idx: int) -> Iterator[int]:
        """Later blocks containing ``token`` that live in a different file than ``idx``."""
        own_file = self.files[idx]
        for other in self.postings.get(token, ()):
            if other > idx and self.files[other] != own_file:
                yield other


def exact_candidates(idx: int, files: Sequence[str]) -> Iterator[Candidate]:
    """Every later block not from the same file."""
    own_file = files[idx]
    for other in range(idx + 1, len(files)):
        if files[other] != own_file:
            yield Candidate(index=other)


def candidate_limit(options: DetectionOptions) -> int:
    return min(options.max_candidates_per_block, options.candidate_hard_cap)


def approximate_candidates(
    idx: int,
    index: TokenIndex,
    options: DetectionOptions,
) -> List[Candidate]:
    """
    Rank later, other-file blocks by how many of block ``idx``'s rare tokens they share.

    A block needs at least ``min_shared_tokens`` shared rare tokens and the
    shared count must be at least MIN_SHARED_FRACTION of the smaller block's
    distinct token count. Ties keep extraction order.
    """
    counts: Dict[int, int] = {}
    for token in index.rare_tokens(idx):
        for other in index.other_file_postings(token, idx):
            counts[other] = counts.get(other, 0) + 1

    own_size = len(index.token_sets[idx])
    kept = []
    for other, shared in counts.items():
        if shared < options.min_shared_tokens:
            continue
        min_size = min(own_size, len(index.token_sets[other]))
        if min_size == 0 or shared / min_size < MIN_SHARED_FRACTION:
            continue
        kept.append(Candidate(index=other, shared=shared))

    kept.sort(key=lambda c: (-c.shared, c.index))
    return kept[:candidate_limit(options)]

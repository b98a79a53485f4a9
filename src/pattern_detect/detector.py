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
Duplicate detector - drives extraction, indexing and scoring for one run.

Stages:
1. extracting - blocks pulled out of every file, normalized and tokenized
2. indexing   - inverted token index built (approximate mode only)
3. scoring    - candidates scored block by block, in extraction order
4. done       - findings sorted by similarity, then combined token cost

iter_detection() is a generator: it yields every DuplicatePattern as soon as
it is found and a ProgressTick at each batch boundary. Each yield hands
control back to the caller, which is also the only place a run can be
cancelled. detect_duplicate_patterns() drives it to completion.
"""

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Set, Tuple, Union

from .candidates import MIN_APPROX_BLOCKS, TokenIndex, approximate_candidates, exact_candidates
from .config import ConfigurationError, validate_files
from .extractor import extract_blocks
from .models import (
    CodeBlock,
    DetectionOptions,
    DetectionResult,
    DuplicatePattern,
    ProgressTick,
    SourceFile,
)
from .scorer import score_pair, sort_duplicates
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

# Exact mode is O(n^2); without an explicit budget it stops here
EXACT_MODE_COMPARISON_CEILING = 500_000

# Above this many blocks exact mode gets a performance warning
SLOW_EXACT_MODE_BLOCKS = 500

FileInput = Union[SourceFile, Tuple[str, str]]
DetectionEvent = Union[DuplicatePattern, ProgressTick]


class Stage(str, Enum):
    EXTRACTING = "extracting"
    INDEXING = "indexing"
    SCORING = "scoring"
    DONE = "done"


@dataclass
class DetectionState:
    """Mutable state of one run, owned by the detector and handed back to the caller."""

    options: DetectionOptions
    stage: Stage = Stage.EXTRACTING
    blocks: List[CodeBlock] = field(default_factory=list)
    tokens: List[List[str]] = field(default_factory=list)
    token_sets: List[Set[str]] = field(default_factory=list)
    index: Optional[TokenIndex] = None
    comparisons_processed: int = 0
    total_comparisons: Optional[int] = None
    budget_exhausted: bool = False
    cancelled: bool = False
    duplicates: List[DuplicatePattern] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def budget(self) -> float:
        """Maximum number of scorings for this run."""
        if self.options.max_comparisons is not None:
            return self.options.max_comparisons
        return math.inf if self.options.approx else EXACT_MODE_COMPARISON_CEILING

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def progress(self, blocks_processed: int) -> ProgressTick:
        elapsed = self.elapsed
        eta = None
        if self.total_comparisons is not None and self.comparisons_processed and elapsed > 0:
            rate = self.comparisons_processed / elapsed
            eta = max(0, self.total_comparisons - self.comparisons_processed) / rate

        return ProgressTick(
            blocks_processed=blocks_processed,
            total_blocks=len(self.blocks),
            comparisons_processed=self.comparisons_processed,
            elapsed=elapsed,
            duplicates_found=len(self.duplicates),
            total_comparisons=self.total_comparisons,
            eta=eta,
        )

    def to_result(self) -> DetectionResult:
        return DetectionResult(
            duplicates=sort_duplicates(self.duplicates),
            blocks_extracted=len(self.blocks),
            comparisons_processed=self.comparisons_processed,
            budget_exhausted=self.budget_exhausted,
            cancelled=self.cancelled,
            elapsed=self.elapsed,
        )


def as_source_file(item: FileInput, position: int = 0) -> SourceFile:
    if isinstance(item, SourceFile):
        return item
    if not isinstance(item, (tuple, list)) or len(item) != 2:
        raise ConfigurationError(f"File #{position} is not a SourceFile or (path, text) pair")
    path, text = item
    return SourceFile(path=path, text=text)


def _cross_file_pairs(files: List[str]) -> int:
    """Number of block pairs that do not share a file."""
    n = len(files)
    same_file = sum(c * (c - 1) // 2 for c in Counter(files).values())
    return n * (n - 1) // 2 - same_file


def log_duplicate(duplicate: DuplicatePattern) -> None:
    """Default streaming sink: one log record per finding."""
    logger.info(
        f"Found: {duplicate.category} {round(duplicate.similarity * 100)}% similar "
        f"{duplicate.location_a} <-> {duplicate.location_b} "
        f"(token cost: {duplicate.token_cost:,})"
    )


def iter_detection(
    files: Iterable[FileInput],
    options: DetectionOptions,
    state: Optional[DetectionState] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Iterator[DetectionEvent]:
    """
    Run detection lazily.

    Input is validated immediately; nothing else happens until the first
    item is requested.

    Args:
        files: SourceFile objects or (path, text) pairs, in a deterministic order
        options: Detection options
        state: State object to fill in; pass one to inspect counters afterwards
        should_stop: Polled at batch boundaries; returning True ends scoring

    Raises:
        ConfigurationError: for malformed files
    """
    sources = [as_source_file(f, n) for n, f in enumerate(files)]
    validate_files(sources)
    if state is None:
        state = DetectionState(options=options)
    return _run(sources, options, state, should_stop)


def _extract(sources: List[SourceFile], options: DetectionOptions, state: DetectionState) -> None:
    state.stage = Stage.EXTRACTING
    for source in sources:
        state.blocks.extend(extract_blocks(source.text, source.path, options.min_lines))

    for block in state.blocks:
        tokens = tokenize(block.normalized_text)
        state.tokens.append(tokens)
        state.token_sets.append(set(tokens))

    logger.info(f"Extracted {len(state.blocks)} code blocks for analysis")


def _run(
    sources: List[SourceFile],
    options: DetectionOptions,
    state: DetectionState,
    should_stop: Optional[Callable[[], bool]],
) -> Iterator[DetectionEvent]:
    _extract(sources, options, state)

    block_count = len(state.blocks)
    files = [b.file for b in state.blocks]

    if options.approx:
        state.stage = Stage.INDEXING
        state.index = TokenIndex.build(state.token_sets, files)
        logger.info("Using approximate candidate selection to reduce comparisons...")
        if 1 < block_count < MIN_APPROX_BLOCKS:
            logger.warning(
                f"Approximate mode needs at least {MIN_APPROX_BLOCKS} blocks to find anything "
                f"(got {block_count}): a token shared by two blocks is never rare below that. "
                "Use exact mode (approx=False, --no-approx) for small inputs."
            )
    else:
        if block_count > SLOW_EXACT_MODE_BLOCKS:
            logger.warning(
                f"Exact mode with {block_count} blocks may be slow (O(n^2) comparisons). "
                "Consider approximate mode or a larger minimum block size."
            )
        state.total_comparisons = _cross_file_pairs(files)
        logger.info(f"Processing {state.total_comparisons:,} comparisons in batches...")

    state.stage = Stage.SCORING
    budget = state.budget

    for i in range(block_count):
        if i > 0 and i % options.batch_size == 0:
            tick = state.progress(i)
            logger.info(tick.message)
            yield tick
            if should_stop is not None and should_stop():
                state.cancelled = True
                logger.warning(f"Detection cancelled after {i:,}/{block_count:,} blocks")
                break

        if options.approx:
            candidates = approximate_candidates(i, state.index, options)
        else:
            candidates = exact_candidates(i, files)

        for candidate in candidates:
            if state.comparisons_processed >= budget:
                state.budget_exhausted = True
                break
            state.comparisons_processed += 1

            j = candidate.index
            duplicate = score_pair(
                state.blocks[i],
                state.blocks[j],
                state.token_sets[i],
                state.token_sets[j],
                options.min_similarity,
            )
            if duplicate is not None:
                state.duplicates.append(duplicate)
                yield duplicate

        if state.budget_exhausted:
            break

    if state.budget_exhausted:
        logger.warning(
            f"Comparison budget exhausted ({state.comparisons_processed:,} comparisons). "
            "Results are partial; raise max_comparisons to score more pairs."
        )

    state.stage = Stage.DONE


def detect_duplicate_patterns(
    files: Iterable[FileInput],
    options: Optional[DetectionOptions] = None,
    on_duplicate: Optional[Callable[[DuplicatePattern], None]] = None,
    on_progress: Optional[Callable[[ProgressTick], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> DetectionResult:
    """
    Detect near-duplicate fragments across files.

    Args:
        files: SourceFile objects or (path, text) pairs
        options: Detection options (defaults if omitted)
        on_duplicate: Called per finding as it is discovered, when
            options.stream_results is set (defaults to logging each finding)
        on_progress: Called with a ProgressTick at every batch boundary
        should_stop: Polled at batch boundaries for cooperative cancellation

    Returns:
        DetectionResult with duplicates sorted by similarity, then token cost
    """
    options = options or DetectionOptions()
    state = DetectionState(options=options)

    sink = None
    if options.stream_results:
        sink = on_duplicate or log_duplicate

    for event in iter_detection(files, options, state, should_stop):
        if isinstance(event, ProgressTick):
            if on_progress is not None:
                on_progress(event)
        elif sink is not None:
            sink(event)

    return state.to_result()

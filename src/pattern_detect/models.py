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
Data models for pattern-detect.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Tuple


class Category(str, Enum):
    """Coarse label describing what a fragment appears to do."""

    API_HANDLER = "api-handler"
    VALIDATOR = "validator"
    UTILITY = "utility"
    CLASS_METHOD = "class-method"
    COMPONENT = "component"
    FUNCTION = "function"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceFile:
    """One input file, as handed to the engine by the caller."""

    path: str
    text: str


@dataclass(frozen=True)
class CodeBlock:
    """A function-like fragment extracted from a source file."""

    file: str                # Path of the owning file
    raw_text: str            # The fragment exactly as written
    start_line: int          # Starting line number (1-indexed)
    end_line: int            # Ending line number (inclusive)
    normalized_text: str     # Comment/literal/whitespace-insensitive form
    category: Category
    token_cost: int          # Estimated context-window cost
    lines_of_code: int       # Non-blank, non-comment lines


@dataclass(frozen=True)
class DuplicatePattern:
    """A pair of cross-file fragments whose similarity passed the threshold."""

    file_a: str
    file_b: str
    line_range_a: Tuple[int, int]
    line_range_b: Tuple[int, int]
    similarity: float
    category: Category
    token_cost: int          # Combined cost of both fragments
    snippet: str             # Preview of the first fragment
    lines_of_code: int = 0   # Code lines of the first fragment

    @property
    def location_a(self) -> str:
        return f"{self.file_a}:{self.line_range_a[0]}-{self.line_range_a[1]}"

    @property
    def location_b(self) -> str:
        return f"{self.file_b}:{self.line_range_b[0]}-{self.line_range_b[1]}"

    def involves(self, path: str) -> bool:
        """True if either side of the pair lives in ``path``."""
        return path == self.file_a or path == self.file_b


@dataclass(frozen=True)
class DetectionOptions:
    """
    Configuration for one detection run.

    Validated on construction, see ``config.validate_options``.
    """

    min_similarity: float = 0.40
    min_lines: int = 5
    batch_size: int = 100
    approx: bool = True
    min_shared_tokens: int = 8
    max_candidates_per_block: int = 100
    max_comparisons: Optional[int] = None   # None = mode-dependent ceiling
    stream_results: bool = False
    candidate_hard_cap: int = 5

    def __post_init__(self):
        from .config import validate_options
        validate_options(self)


@dataclass(frozen=True)
class ProgressTick:
    """Periodic progress notification emitted at batch boundaries."""

    blocks_processed: int
    total_blocks: int
    comparisons_processed: int
    elapsed: float
    duplicates_found: int
    total_comparisons: Optional[int] = None  # Exact mode only
    eta: Optional[float] = None              # Exact mode only

    @property
    def message(self) -> str:
        if self.total_comparisons:
            pct = self.comparisons_processed / self.total_comparisons * 100
            eta = f"~{self.eta:.0f}s remaining" if self.eta is not None else "~?s remaining"
            return (
                f"{pct:.1f}% ({self.comparisons_processed:,}/{self.total_comparisons:,} comparisons, "
                f"{self.elapsed:.1f}s elapsed, {eta}, {self.duplicates_found} duplicates)"
            )
        return (
            f"Processed {self.blocks_processed:,}/{self.total_blocks:,} blocks "
            f"({self.elapsed:.1f}s elapsed, {self.duplicates_found} duplicates)"
        )


@dataclass
class DetectionResult:
    """Outcome of a detection run."""

    duplicates: List[DuplicatePattern]
    blocks_extracted: int = 0
    comparisons_processed: int = 0
    budget_exhausted: bool = False
    cancelled: bool = False
    elapsed: float = 0.0

    @property
    def truncated(self) -> bool:
        """True if scoring stopped before every candidate was scored."""
        return self.budget_exhausted or self.cancelled


@dataclass(frozen=True)
class Issue:
    """A duplicate finding as seen from one of the two files involved."""

    severity: str            # critical, major, minor
    message: str
    file: str
    line: int
    suggestion: str
    type: str = "duplicate-pattern"


@dataclass(frozen=True)
class FileMetrics:
    token_cost: int
    consistency_score: float


@dataclass
class FileResult:
    """Per-file view over the duplicate list."""

    file_name: str
    issues: List[Issue]
    metrics: FileMetrics


@dataclass
class PatternSummary:
    total_patterns: int
    total_token_cost: int
    patterns_by_type: Dict[Category, int]
    top_duplicates: List[DuplicatePattern]


@dataclass
class AnalysisReport:
    """Everything a reporter needs to render one run."""

    results: List[FileResult]
    detection: DetectionResult
    summary: PatternSummary
    options: DetectionOptions
    severity: str = "all"
    files: List[str] = field(default_factory=list)

    @property
    def duplicates(self) -> List[DuplicatePattern]:
        return self.detection.duplicates

    @property
    def total_issues(self) -> int:
        return sum(len(r.issues) for r in self.results)

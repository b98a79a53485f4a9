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
Sizing advisor - picks detection defaults from a cheap file count.

Targets roughly 30 seconds per run on typical hardware, based on about
100,000 block-candidate comparisons per second. Every parameter moves
monotonically with the estimated block count B:

- candidates per block shrink as B grows
- similarity threshold, minimum block size and minimum shared tokens rise
- batch size grows (fewer, larger progress ticks)
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .config import ConfigurationError
from .models import DetectionOptions

BLOCKS_PER_FILE = 3
TARGET_CANDIDATE_COMPARISONS = 30_000

# Used when smart defaults are switched off
CONSERVATIVE_DEFAULTS = DetectionOptions(
    min_similarity=0.6,
    min_lines=8,
    batch_size=100,
    approx=True,
    min_shared_tokens=12,
    max_candidates_per_block=5,
    stream_results=False,
)


@dataclass(frozen=True)
class SizingAdvice:
    """Derived defaults for one repository size."""

    estimated_blocks: int
    options: DetectionOptions
    severity: str = "all"


def estimate_blocks(file_count: int) -> int:
    """Rough block count: about three function-like blocks per file."""
    return max(0, file_count) * BLOCKS_PER_FILE


def _clip(value: float, low: int, high: int) -> int:
    return int(np.clip(value, low, high))


def derive_defaults(file_count: int) -> SizingAdvice:
    """Tune every detection option for a repository with ``file_count`` files."""
    blocks = estimate_blocks(file_count)

    options = DetectionOptions(
        min_similarity=float(min(0.75, 0.5 + (blocks / 10_000) * 0.25)),
        min_lines=_clip(6 + blocks // 2000, 6, 12),
        batch_size=200 if blocks > 1000 else 100,
        approx=True,
        min_shared_tokens=_clip(10 + blocks // 2000, 10, 20),
        max_candidates_per_block=_clip(TARGET_CANDIDATE_COMPARISONS // max(blocks, 1), 3, 10),
        stream_results=False,
    )

    # Very large repositories only surface high-impact findings
    severity = "high" if blocks > 5000 else "all"

    return SizingAdvice(estimated_blocks=blocks, options=options, severity=severity)


def merge_options(defaults: DetectionOptions, overrides: Optional[Mapping[str, Any]]) -> DetectionOptions:
    """
    Per-field merge: every field present in ``overrides`` replaces the default.

    Raises:
        ConfigurationError: for keys that are not DetectionOptions fields,
            or for values that fail validation
    """
    if not overrides:
        return defaults

    known = {f.name for f in fields(DetectionOptions)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")

    return replace(defaults, **dict(overrides))


def recommend_options(
    file_count: int,
    overrides: Optional[Mapping[str, Any]] = None,
    use_smart_defaults: bool = True,
) -> SizingAdvice:
    """
    Derive defaults for ``file_count`` files, then apply explicit overrides.

    With ``use_smart_defaults=False`` the conservative defaults replace the
    size-derived ones; overrides still win field by field.
    """
    if use_smart_defaults:
        advice = derive_defaults(file_count)
    else:
        advice = SizingAdvice(
            estimated_blocks=estimate_blocks(file_count),
            options=CONSERVATIVE_DEFAULTS,
        )

    merged = merge_options(advice.options, overrides)
    return replace(advice, options=merged)


def describe(advice: SizingAdvice) -> Dict[str, Any]:
    """Flat view of the advice, for logging and reports."""
    data = {f.name: getattr(advice.options, f.name) for f in fields(DetectionOptions)}
    data["estimated_blocks"] = advice.estimated_blocks
    data["severity"] = advice.severity
    return data

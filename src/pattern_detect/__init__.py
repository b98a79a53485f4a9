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
Pattern Detect - Find code fragments that do the same thing but look different.

Extracts function-like blocks, normalizes away literals, comments and local
names, and scores cross-file pairs by token-set (Jaccard) similarity. An
inverted index over rare tokens keeps large codebases tractable.

No network access, no persisted state.
"""

__version__ = "0.1.0"

from .models import (
    Category,
    CodeBlock,
    DetectionOptions,
    DetectionResult,
    DuplicatePattern,
    SourceFile,
)
from .config import ConfigurationError, load_config, find_config_file
from .detector import detect_duplicate_patterns, iter_detection
from .sizing import recommend_options
from .analyzer import analyze_patterns, analyze_directory, generate_summary
from .reporter import report_results

__all__ = [
    "__version__",
    "Category",
    "CodeBlock",
    "DetectionOptions",
    "DetectionResult",
    "DuplicatePattern",
    "SourceFile",
    "ConfigurationError",
    "load_config",
    "find_config_file",
    "detect_duplicate_patterns",
    "iter_detection",
    "recommend_options",
    "analyze_patterns",
    "analyze_directory",
    "generate_summary",
    "report_results",
]

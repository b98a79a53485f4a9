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
File scanner - finds and reads the source files handed to the detector.

Finding files reads no content, so the sizing advisor can run on the file
count before anything is loaded.
"""

from pathlib import Path
from typing import List, Optional
from concurrent.futures import ThreadPoolExecutor
import fnmatch
import logging
import os

from .models import SourceFile

logger = logging.getLogger(__name__)

DEFAULT_INCLUDES = ["*.ts", "*.tsx", "*.js", "*.jsx", "*.mjs", "*.cjs", "*.py", "*.java"]

# Default patterns to always exclude
DEFAULT_EXCLUDES = [
    "*node_modules/*",
    "*dist/*",
    "*build/*",
    "*coverage/*",
    "*.git/*",
    "*.turbo/*",
    "*__pycache__/*",
    "*venv/*",
]

# Skipped unless include_tests is set
TEST_PATTERNS = [
    "*.test.*",
    "*.spec.*",
    "*__tests__/*",
    "*tests/*",
    "test_*.py",
    "*_test.py",
]


def _matches(rel_path: str, name: str, patterns: List[str]) -> bool:
    return any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(name, pat) for pat in patterns)


def find_source_files(
    root_path: Path,
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
    include_tests: bool = False,
) -> List[Path]:
    """
    Find source files under root_path, sorted by relative path.

    Args:
        root_path: Root directory to scan
        include_patterns: File must match at least one (defaults to common source types)
        exclude_patterns: Glob patterns to exclude (added to defaults)
        include_tests: Keep test files and fixtures

    Returns:
        Absolute file paths in a stable order
    """
    includes = list(include_patterns) if include_patterns else DEFAULT_INCLUDES
    excludes = DEFAULT_EXCLUDES + list(exclude_patterns or [])
    if not include_tests:
        excludes = excludes + TEST_PATTERNS

    source_files = []
    for file_path in root_path.rglob("*"):
        if not file_path.is_file():
            continue

        # Make relative for pattern matching (forward slashes on every platform)
        rel_path = file_path.relative_to(root_path).as_posix()

        if not _matches(rel_path, file_path.name, includes):
            continue
        if _matches(rel_path, file_path.name, excludes):
            continue

        source_files.append(file_path)

    return sorted(source_files, key=lambda p: p.relative_to(root_path).as_posix())


def _read_file(file_path: Path, root_path: Path) -> Optional[SourceFile]:
    try:
        text = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Failed to read {file_path}: {e}")
        return None
    return SourceFile(path=file_path.relative_to(root_path).as_posix(), text=text)


def read_source_files(paths: List[Path], root_path: Path) -> List[SourceFile]:
    """
    Read files in parallel, keeping the input order.

    Paths in the returned SourceFile objects are relative to root_path.
    Unreadable files are skipped.
    """
    with ThreadPoolExecutor(max_workers=os.cpu_count()) as executor:
        results = list(executor.map(lambda p: _read_file(p, root_path), paths))

    return [r for r in results if r is not None]

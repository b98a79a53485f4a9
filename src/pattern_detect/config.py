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
Configuration file support and option validation.

Looks for .patternrc or .pattern-detect.toml in the analyzed directory or
any of its parents. Also owns the checks that reject malformed input before
any extraction begins.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Any, Iterable, TYPE_CHECKING

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

if TYPE_CHECKING:
    from .models import DetectionOptions, SourceFile

logger = logging.getLogger(__name__)

CONFIG_NAMES = [".patternrc", ".pattern-detect.toml"]
CONFIG_SECTION = "patterns"

SEVERITY_LEVELS = ("all", "critical", "high", "medium")

# Keys accepted in the [patterns] section besides DetectionOptions fields
EXTRA_CONFIG_KEYS = {"severity", "include", "exclude", "include_tests", "smart_defaults"}


class ConfigurationError(ValueError):
    """Raised for malformed input or options, before any work is done."""


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for .patternrc or .pattern-detect.toml in start_path and parents.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_path.resolve()

    while True:
        for name in CONFIG_NAMES:
            config_path = current / name
            if config_path.is_file():
                return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load the [patterns] section of the nearest config file.

    Returns an empty dict if no config file is found or it cannot be parsed.

    Example config file (.patternrc or .pattern-detect.toml):
        [patterns]
        min_similarity = 0.6
        min_lines = 8
        approx = true
        min_shared_tokens = 10
        max_candidates_per_block = 5
        severity = "high"
        exclude = ["**/generated/**"]
    """
    config_path = find_config_file(path)

    if config_path is None:
        return {}

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
        return {}

    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        logger.warning(f"Ignoring [{CONFIG_SECTION}] in {config_path}: not a table")
        return {}

    logger.info(f"Loaded config from {config_path}")
    return section


def split_config(config: Dict[str, Any]) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Split a config section into DetectionOptions overrides and scan settings.

    Raises:
        ConfigurationError: for keys that are neither
    """
    from dataclasses import fields
    from .models import DetectionOptions

    option_names = {f.name for f in fields(DetectionOptions)}
    overrides: Dict[str, Any] = {}
    extras: Dict[str, Any] = {}

    for key, value in config.items():
        if key in option_names:
            overrides[key] = value
        elif key in EXTRA_CONFIG_KEYS:
            extras[key] = _scan_setting(key, value)
        else:
            raise ConfigurationError(f"Unknown config key '{key}'")

    return overrides, extras


def _scan_setting(key: str, value: Any) -> Any:
    if key in ("include", "exclude"):
        # A lone pattern is accepted as a one-item list
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{key} must be a list of glob patterns, got {value!r}")
        return value
    if key in ("include_tests", "smart_defaults"):
        if not isinstance(value, bool):
            raise ConfigurationError(f"{key} must be a boolean, got {value!r}")
        return value
    if key == "severity":
        if not isinstance(value, str):
            raise ConfigurationError(f"severity must be a string, got {value!r}")
        return validate_severity(value)
    return value


def _require_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def validate_options(options: "DetectionOptions") -> None:
    """Reject option values the engine cannot run with."""
    sim = options.min_similarity
    if isinstance(sim, bool) or not isinstance(sim, (int, float)):
        raise ConfigurationError(f"min_similarity must be a number, got {sim!r}")
    if not 0.0 <= sim <= 1.0:
        raise ConfigurationError(f"min_similarity must be within [0, 1], got {sim}")

    _require_int("min_lines", options.min_lines, 1)
    _require_int("batch_size", options.batch_size, 1)
    _require_int("min_shared_tokens", options.min_shared_tokens, 0)
    _require_int("max_candidates_per_block", options.max_candidates_per_block, 1)
    _require_int("candidate_hard_cap", options.candidate_hard_cap, 1)
    if options.max_comparisons is not None:
        _require_int("max_comparisons", options.max_comparisons, 0)

    for flag in ("approx", "stream_results"):
        if not isinstance(getattr(options, flag), bool):
            raise ConfigurationError(f"{flag} must be a boolean")


def validate_severity(severity: str) -> str:
    if severity not in SEVERITY_LEVELS:
        valid = ", ".join(SEVERITY_LEVELS)
        raise ConfigurationError(f"Unknown severity '{severity}'. Valid: {valid}")
    return severity


def validate_files(files: Iterable["SourceFile"]) -> None:
    """Every file needs a string path and string text."""
    for position, source in enumerate(files):
        if not isinstance(source.path, str):
            raise ConfigurationError(
                f"File #{position} has a non-string path: {type(source.path).__name__}"
            )
        if not isinstance(source.text, str):
            raise ConfigurationError(
                f"File {source.path!r} has non-string text: {type(source.text).__name__}"
            )

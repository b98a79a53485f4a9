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
CLI entry point for pattern-detect.

Usage:
    pattern-detect <path> [options]
    pattern-detect --help
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from click.core import ParameterSource

from . import __version__
from .analyzer import analyze_directory
from .config import ConfigurationError, SEVERITY_LEVELS, load_config, split_config
from .models import DuplicatePattern, ProgressTick
from .reporter import OutputFormat, report_results


# Extension to output format mapping for -o FILE.EXT
EXTENSION_FORMAT_MAP = {
    '.md': 'markdown',
    '.json': 'json',
    '.txt': 'text',
}

# CLI parameter name -> DetectionOptions field
OPTION_FIELDS = {
    "similarity": "min_similarity",
    "min_lines": "min_lines",
    "batch_size": "batch_size",
    "approx": "approx",
    "min_shared_tokens": "min_shared_tokens",
    "max_candidates": "max_candidates_per_block",
    "candidate_cap": "candidate_hard_cap",
    "max_comparisons": "max_comparisons",
    "stream_results": "stream_results",
}


def explicit_params(ctx: click.Context) -> set:
    """Names of parameters the user actually supplied (not click defaults)."""
    return {
        name for name in ctx.params
        if ctx.get_parameter_source(name) not in (ParameterSource.DEFAULT, ParameterSource.DEFAULT_MAP)
    }


def collect_overrides(ctx: click.Context, config_overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Config file values first, then explicitly typed CLI values on top.

    Anything left out falls through to the sizing advisor.
    """
    overrides = dict(config_overrides)
    supplied = explicit_params(ctx)
    for param, field_name in OPTION_FIELDS.items():
        if param in supplied:
            overrides[field_name] = ctx.params[param]
    return overrides


def print_progress(current: int, total: int, message: str, width: int = 30):
    """Print a progress bar with message."""
    if total == 0:
        pct = 100
    else:
        pct = int(current / total * 100)
    filled = int(width * current / max(total, 1))
    bar = "=" * filled + ">" + " " * (width - filled - 1) if filled < width else "=" * width
    # Use \r to overwrite line, \033[K to clear to end of line
    click.echo(f"\r   [{bar}] {pct:3d}% {message}\033[K", nl=False, err=True)
    if current >= total:
        click.echo(err=True)  # newline when complete


def echo_duplicate(duplicate: DuplicatePattern):
    """Streaming sink: show each finding as soon as it is found."""
    click.echo(f"\n   ✅ Found: {duplicate.category} {round(duplicate.similarity * 100)}% similar", err=True)
    click.echo(f"      {duplicate.location_a} ⇔ {duplicate.location_b}", err=True)
    click.echo(f"      Token cost: {duplicate.token_cost:,}", err=True)


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option(
    "-s", "--similarity",
    type=float,
    default=0.40,
    help="Minimum similarity score 0.0-1.0 (default: sized to the repository)"
)
@click.option(
    "-l", "--min-lines",
    type=int,
    default=5,
    help="Minimum lines per block (default: sized to the repository)"
)
@click.option(
    "--batch-size",
    type=int,
    default=100,
    help="Blocks per progress batch (default: sized to the repository)"
)
@click.option(
    "--approx/--no-approx",
    default=True,
    help="Approximate candidate selection (default: on; --no-approx compares every pair)"
)
@click.option(
    "--min-shared-tokens",
    type=int,
    default=8,
    help="Minimum shared rare tokens for a candidate (default: sized to the repository)"
)
@click.option(
    "--max-candidates",
    type=int,
    default=100,
    help="Maximum candidates per block (default: sized to the repository)"
)
@click.option(
    "--candidate-cap",
    type=int,
    default=5,
    help="Hard ceiling on candidates per block (default: 5)"
)
@click.option(
    "--max-comparisons",
    type=int,
    default=None,
    help="Total comparison budget (default: unlimited in approx mode, 500000 otherwise)"
)
@click.option(
    "--stream-results",
    is_flag=True,
    help="Print duplicates as they are found"
)
@click.option(
    "-i", "--include",
    multiple=True,
    help="Glob patterns to include (repeatable)"
)
@click.option(
    "-e", "--exclude",
    multiple=True,
    help="Glob patterns to exclude (repeatable)"
)
@click.option(
    "--include-tests",
    is_flag=True,
    help="Include test files in the analysis"
)
@click.option(
    "--severity",
    type=click.Choice(SEVERITY_LEVELS),
    default=None,
    help="Only report issues at this level: critical, high, medium, all"
)
@click.option(
    "--smart-defaults/--no-smart-defaults",
    default=True,
    help="Size defaults to the repository (default: on)"
)
@click.option(
    "-o", "--output",
    type=str,
    default=None,
    help="Output file path (e.g., report.md, data.json, report.txt)"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Log configuration and progress details"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Hide the progress bar"
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    path: str,
    similarity: float,
    min_lines: int,
    batch_size: int,
    approx: bool,
    min_shared_tokens: int,
    max_candidates: int,
    candidate_cap: int,
    max_comparisons: Optional[int],
    stream_results: bool,
    include: tuple,
    exclude: tuple,
    include_tests: bool,
    severity: Optional[str],
    smart_defaults: bool,
    output: Optional[str],
    verbose: bool,
    quiet: bool,
):
    """
    Find near-duplicate code patterns across files.

    PATH is the root directory to analyze.

    Examples:

      # Sized automatically, summary on the console
      pattern-detect ./src

      # High-precision search, markdown report
      pattern-detect ./src --similarity 0.8 -o report.md

      # Every pair, with a budget
      pattern-detect ./src --no-approx --max-comparisons 100000
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="   %(message)s",
    )

    output_format = OutputFormat.TEXT
    if output:
        ext = Path(output).suffix.lower()
        if ext not in EXTENSION_FORMAT_MAP:
            valid_exts = ', '.join(EXTENSION_FORMAT_MAP.keys())
            click.echo(f"❌ Invalid output extension '{ext}'. Valid: {valid_exts}", err=True)
            sys.exit(1)
        output_format = OutputFormat(EXTENSION_FORMAT_MAP[ext])

    root_path = Path(path).resolve()
    supplied = explicit_params(ctx)

    try:
        config_overrides, extras = split_config(load_config(root_path))
        overrides = collect_overrides(ctx, config_overrides)
    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)

    # Scan settings: explicit CLI value > config file > built-in default
    if not include and "include" in extras:
        include = tuple(extras["include"])
    if not exclude and "exclude" in extras:
        exclude = tuple(extras["exclude"])
    if "include_tests" not in supplied:
        include_tests = extras.get("include_tests", include_tests)
    if "smart_defaults" not in supplied:
        smart_defaults = extras.get("smart_defaults", smart_defaults)
    if severity is None:
        severity = extras.get("severity")

    if not quiet:
        click.echo(f"🔍 Analyzing patterns in {root_path}...", err=True)

    bar_shown = False

    def on_progress(tick: ProgressTick):
        nonlocal bar_shown
        if not quiet:
            print_progress(tick.blocks_processed, tick.total_blocks, tick.message)
            bar_shown = True

    try:
        report = analyze_directory(
            root_path,
            overrides=overrides,
            severity=severity,
            include_patterns=list(include),
            exclude_patterns=list(exclude),
            include_tests=include_tests,
            use_smart_defaults=smart_defaults,
            on_duplicate=echo_duplicate,
            on_progress=on_progress,
        )
    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)

    # Ticks stop short of the last block, so finish the bar line here
    if bar_shown:
        click.echo(err=True)

    if not report.files:
        click.echo("❌ No source files found. Check your path and filters.", err=True)
        sys.exit(1)

    rendered = report_results(report, root_path, output_format)

    if output:
        Path(output).write_text(rendered)
        click.echo(f"✅ Report written to: {output}", err=True)
    else:
        click.echo(rendered)


# Entry point alias for pyproject.toml
cli = main


if __name__ == "__main__":
    main()

"""bindiff quickstart: compare two builds from Python and drill into one function."""

import sys
from pathlib import Path

from rich.console import Console

from bindiff import BinDiffContext
from bindiff.analysis.function_diff import diff_function
from bindiff.analysis.pipeline import run_comparison
from bindiff.config.loader import load_config
from bindiff.extraction.loader import extract_functions
from bindiff.report.json_report import comparison_to_dict
from bindiff.report.reporter import render_function_diff


def main():
    if len(sys.argv) != 3:
        print("usage: quickstart.py OLD NEW")
        return 2
    old, new = Path(sys.argv[1]), Path(sys.argv[2])

    # 1. Load configuration
    ctx = BinDiffContext()
    ctx.config = load_config()

    # 2. Run the layered comparison
    result = run_comparison(old, new, ctx.config, runner=ctx.ensure_runner())
    summary = comparison_to_dict(result)
    print(f"Severity: {summary['severity']}")
    if result.is_identical:
        return 0

    # 3. Show instruction diffs for the first few modified functions
    runner = ctx.ensure_runner()
    old_fns = extract_functions(old, ctx.config, runner)
    new_fns = extract_functions(new, ctx.config, runner)
    console = Console()
    for fcr in result.function_diff.modified[:3]:
        diff = diff_function(old_fns[fcr.name], new_fns[fcr.name])
        render_function_diff(diff, console, ctx.config.diff.context_lines)
    return 1


if __name__ == "__main__":
    sys.exit(main())

"""CLI entry-point for code_score.

Usage:
    python -m code_score score <path> [--categories a,b] [--json] [--ci] [--top N]
                                      [--min-grade G] [--no-tools] [--no-details]
                                      [--config FILE] [--verbose]
    python -m code_score categories [--json]
    python -m code_score accept <path> <recommendation-key> [--pattern P ...]
    python -m code_score validate <result.json>

Exit codes: 0 success, 1 grade below --min-grade (or invalid result file),
2 usage or configuration error.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

import jsonschema

from code_score import __version__
from code_score.analyzers.registry import category_table
from code_score.api import score_project
from code_score.contracts.load import validate_file
from code_score.core.config import load_config
from code_score.errors import ConfigurationError
from code_score.insights.history import RecommendationHistory
from code_score.policy.grades import GRADES, exit_code_from_grade
from code_score.utils.exit_codes import ExitCode
from code_score.utils.json_norm import stable_json_dump


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _print_human(result_dict: dict) -> None:
    """Pretty-print a human-readable summary to stderr."""
    project = result_dict.get("project", {})
    print(
        f"\n{project.get('name', '?')} ({project.get('type', '?')})"
        f"  score {result_dict['score']:g}/{result_dict['maxScore']:g}"
        f"  {result_dict['percentage']:.1f}%  grade {result_dict['grade']}",
        file=sys.stderr,
    )
    for name, cat in result_dict.get("categories", {}).items():
        line = f"   {name:<22} {cat['score']:>5g}/{cat['maxScore']:<4g} {cat['grade']}"
        if cat.get("error"):
            line += f"  (failed: {cat['error']})"
        print(line, file=sys.stderr)

    recs = result_dict.get("recommendations", [])
    if recs:
        print("\n   Top recommendations:", file=sys.stderr)
        for rec in recs:
            print(f"      • [{rec['priority']}] {rec['text']}  ({rec['key']})", file=sys.stderr)
    print("", file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="code-score",
        description="Weighted engineering-quality score for a project tree.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command")

    # ── score ──────────────────────────────────────────────────────
    score_p = sub.add_parser("score", help="Score a project directory.")
    score_p.add_argument("path", type=Path, help="Project root to score.")
    score_p.add_argument("--categories", default=None, help="Comma-separated categories to run (default: all).")
    score_p.add_argument(
        "--json",
        dest="json_out",
        action="store_true",
        default=False,
        help="Print the full OverallResult JSON to stdout.",
    )
    score_p.add_argument(
        "--ci",
        "--deterministic",
        dest="ci_mode",
        action="store_true",
        default=False,
        help="Round floats for byte-stable JSON output.",
    )
    score_p.add_argument("--top", type=int, default=None, help="Number of recommendations to keep.")
    score_p.add_argument(
        "--min-grade",
        choices=GRADES,
        default=None,
        help="Exit 1 when the overall grade is below this grade.",
    )
    score_p.add_argument(
        "--no-tools",
        dest="no_tools",
        action="store_true",
        default=False,
        help="Do not run external tools (npm audit, pip-audit, linters).",
    )
    score_p.add_argument("--no-details", dest="no_details", action="store_true", default=False)
    score_p.add_argument("--config", type=Path, default=None, help="YAML config file.")
    score_p.add_argument("--verbose", "-v", action="store_true", default=False)

    # ── categories ─────────────────────────────────────────────────
    cat_p = sub.add_parser("categories", help="List categories and their point allocations.")
    cat_p.add_argument("--json", dest="json_out", action="store_true", default=False)

    # ── accept ─────────────────────────────────────────────────────
    acc_p = sub.add_parser("accept", help="Record an accepted recommendation in the project history.")
    acc_p.add_argument("path", type=Path, help="Project root.")
    acc_p.add_argument("key", help="Recommendation key as printed by `score`.")
    acc_p.add_argument("--pattern", dest="patterns", action="append", default=[], help="Pattern tag (repeatable).")

    # ── validate ───────────────────────────────────────────────────
    val_p = sub.add_parser("validate", help="Validate a saved result against the bundled schema.")
    val_p.add_argument("instance", type=Path, help="Path to a result JSON file.")

    return p


def _handle_score(args: argparse.Namespace) -> int:
    target: Path = args.path.resolve()
    if not target.is_dir():
        print(f"error: path is not a directory: {target}", file=sys.stderr)
        return ExitCode.ERROR
    if args.top is not None and args.top < 0:
        print("error: --top must be >= 0", file=sys.stderr)
        return ExitCode.ERROR

    try:
        config = load_config(target, args.config)
        changes: dict = {}
        if args.no_tools:
            changes["external_tools"] = False
        if args.top is not None:
            changes["recommendation_limit"] = args.top
        if changes:
            config = dataclasses.replace(config, **changes)
        _, result_dict = score_project(
            target,
            categories=_split_csv(args.categories) or None,
            verbose=args.verbose,
            include_details=not args.no_details,
            ci_mode=args.ci_mode,
            config=config,
        )
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return ExitCode.ERROR

    _print_human(result_dict)
    if args.json_out:
        stable_json_dump(result_dict, sys.stdout, ci_mode=args.ci_mode, indent=2)
    return exit_code_from_grade(result_dict["grade"], minimum=args.min_grade)


def _handle_categories(args: argparse.Namespace) -> int:
    table = category_table()
    if args.json_out:
        stable_json_dump(table, sys.stdout, indent=2)
        return ExitCode.SUCCESS
    for cat in table:
        checks = ", ".join(f"{c['name']} {c['maxPoints']:g}" for c in cat["checks"])
        print(f"{cat['name']:<22} {cat['maxScore']:>4g}  {checks}")
    print(f"{'total':<22} {sum(c['maxScore'] for c in table):>4g}")
    return ExitCode.SUCCESS


def _handle_accept(args: argparse.Namespace) -> int:
    root: Path = args.path.resolve()
    if not root.is_dir():
        print(f"error: path is not a directory: {root}", file=sys.stderr)
        return ExitCode.ERROR
    if args.key.count(":") < 2:
        print(f"error: not a recommendation key: {args.key!r}", file=sys.stderr)
        return ExitCode.ERROR
    history = RecommendationHistory.for_project(root)
    entry = history.record_accepted(args.key, patterns=args.patterns)
    path = history.save()
    print(f"accepted {entry.key} ({len(history.accepted())} total) -> {path}")
    return ExitCode.SUCCESS


def _handle_validate(args: argparse.Namespace) -> int:
    try:
        validate_file(args.instance)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read {args.instance}: {exc}", file=sys.stderr)
        return ExitCode.ERROR
    except (ValueError, jsonschema.ValidationError) as exc:
        message = exc.message if isinstance(exc, jsonschema.ValidationError) else str(exc)
        print(f"invalid: {message}", file=sys.stderr)
        return ExitCode.VIOLATION
    print(f"valid: {args.instance}")
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(getattr(args, "verbose", False)))

    if args.command == "score":
        return _handle_score(args)
    if args.command == "categories":
        return _handle_categories(args)
    if args.command == "accept":
        return _handle_accept(args)
    if args.command == "validate":
        return _handle_validate(args)

    parser.print_help(sys.stderr)
    return ExitCode.ERROR


if __name__ == "__main__":
    raise SystemExit(main())

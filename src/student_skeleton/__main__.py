"""CLI entry-point for student_skeleton.

Usage:
    python -m student_skeleton [ROOT]
    python -m student_skeleton [ROOT] --config student-skeleton.yaml
    python -m student_skeleton [ROOT] --dry-run --json
    python -m student_skeleton [ROOT] --check
    python -m student_skeleton [ROOT] --report out/conversion.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import jsonschema
import yaml

from student_skeleton import __version__
from student_skeleton.api import convert_repository
from student_skeleton.core.config import ConvertConfig
from student_skeleton.errors import ConversionError
from student_skeleton.utils.exit_codes import ExitCode
from student_skeleton.utils.json_norm import stable_json_dump, stable_json_dumps


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="student-skeleton",
        description=(
            "Reset a solution repository to the original 'student perspective' "
            "state: delete solution-only code and stub out the methods students "
            "have to implement."
        ),
    )
    p.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Repository root (default: current directory).",
    )
    p.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="YAML config file (default: ROOT/.student-skeleton.yaml if present).",
    )
    p.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=False,
        help="Compute the plan without writing or deleting any file.",
    )
    p.add_argument(
        "--check",
        action="store_true",
        default=False,
        help="Like --dry-run, but exit 1 if any file would change.",
    )
    p.add_argument(
        "--json",
        dest="json_out",
        action="store_true",
        default=False,
        help="Print the conversion report JSON to stdout.",
    )
    p.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Also write the conversion report JSON to this path.",
    )
    p.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every pipeline stage.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return p


def _print_human(report: dict) -> None:
    """Pretty-print a human-readable summary to stderr."""
    counts = report["plan"]["counts"]
    emission = report["emission"]
    verb = "Would convert" if report["dry_run"] else "Converted"
    print(f"\n{verb} {report['root']}", file=sys.stderr)
    print(
        f"   Types    : {counts['retained_types']} kept, "
        f"{counts['deleted_types']} deleted",
        file=sys.stderr,
    )
    print(f"   Stubbed  : {counts['stubbed_method']} method(s)", file=sys.stderr)
    print(
        f"   Removed  : {counts['removed_field']} field(s), "
        f"{counts['removed_constructor']} constructor(s), "
        f"{counts['removed_method']} method(s)",
        file=sys.stderr,
    )
    print(
        f"   Files    : {len(emission['written'])} rewritten, "
        f"{len(emission['deleted'])} deleted, "
        f"{len(emission['untouched'])} untouched",
        file=sys.stderr,
    )
    print("", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Entry-point — returns an exit code (see ``utils.exit_codes``)."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    root: Path = args.root.resolve()
    dry_run = bool(args.dry_run or args.check)

    try:
        config = (
            ConvertConfig.from_yaml(args.config)
            if args.config is not None
            else ConvertConfig.discover(root)
        )
    except (OSError, yaml.YAMLError, ConversionError) as e:
        print(f"error: cannot load config: {e}", file=sys.stderr)
        return ExitCode.ERROR

    try:
        _, report = convert_repository(root, config=config, dry_run=dry_run)
    except ConversionError as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR
    except jsonschema.ValidationError as e:
        print(f"error: conversion report failed validation: {e.message}", file=sys.stderr)
        return ExitCode.ERROR

    _print_human(report)

    if args.report is not None:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(stable_json_dumps(report), encoding="utf-8")

    if args.json_out:
        stable_json_dump(report, sys.stdout)

    if args.check and (report["emission"]["written"] or report["emission"]["deleted"]):
        return ExitCode.VIOLATION
    return ExitCode.SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())

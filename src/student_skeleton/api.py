"""
student_skeleton.api
====================

Programmatic entrypoint for embedding the converter in a build host.

Goals:
  - No argparse / CLI dependencies
  - One call per repository, returning both the typed result and a
    schema-validated, JSON-friendly dict

Non-goals:
  - Logging configuration and failure presentation — callers own them
  - Locking — callers serialize invocations on the same repository

Usage::

    from student_skeleton.api import convert_repository

    result, report = convert_repository(".")
    result, report = convert_repository(".", dry_run=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from student_skeleton.contracts.load import validate_instance
from student_skeleton.core.config import ConvertConfig
from student_skeleton.core.runner import run_conversion
from student_skeleton.model.result import ConversionResult

REPORT_SCHEMA = "conversion_report.schema.json"


def _to_path(p: str | Path) -> Path:
    return p if isinstance(p, Path) else Path(p)


def convert_repository(
    root: str | Path,
    *,
    config: ConvertConfig | None = None,
    config_path: str | Path | None = None,
    dry_run: bool = False,
) -> tuple[ConversionResult, dict[str, Any]]:
    """Convert the repository at *root* and return ``(result, report_dict)``.

    Parameters
    ----------
    root:
        Repository root; sources are read from ``config.source_subpath``.
    config:
        Explicit configuration.  Takes precedence over *config_path*.
    config_path:
        YAML file to load the configuration from.  When neither *config*
        nor *config_path* is given, ``<root>/.student-skeleton.yaml`` is
        used if present.
    dry_run:
        Compute the plan and a preview of the emission without touching
        any file.

    Raises
    ------
    ConfigurationError, ParseError, EmissionError
        Unchanged from the pipeline.
    """
    root_path = _to_path(root).resolve()
    if config is None:
        if config_path is not None:
            config = ConvertConfig.from_yaml(_to_path(config_path))
        else:
            config = ConvertConfig.discover(root_path)

    result = run_conversion(root_path, config, dry_run=dry_run)
    report = result.to_dict()
    validate_instance(report, REPORT_SCHEMA)
    return result, report

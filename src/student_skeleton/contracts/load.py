"""Load and validate JSON instances against the bundled schemas.

Usage::

    from student_skeleton.contracts.load import validate_instance, validate_file

    validate_instance(report, "conversion_report.schema.json")
    validate_file(Path("report.json"), "conversion_report.schema.json")
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_DIR = "data/schemas"


def _schema_path(name: str) -> Path:
    """Resolve a bundled schema.

    Priority:
    1. ``src/student_skeleton/data/schemas/`` relative to this file
    2. package data via importlib.resources (wheel / zip installs)
    """
    canonical = Path(__file__).resolve().parents[1] / SCHEMA_DIR / name
    if canonical.exists():
        return canonical
    with resources.as_file(
        resources.files("student_skeleton") / SCHEMA_DIR / name
    ) as p:
        return p


def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled JSON schema by filename."""
    path = _schema_path(name)
    return json.loads(path.read_text(encoding="utf-8"))


def validate_instance(instance: Any, schema_name: str) -> None:
    """Validate *instance* against the named schema.

    Raises ``jsonschema.ValidationError`` on failure.
    """
    schema = load_schema(schema_name)
    jsonschema.validate(instance=instance, schema=schema)


def validate_file(instance_path: Path, schema_name: str) -> None:
    """Load a JSON file and validate it against the named schema."""
    instance = json.loads(instance_path.read_text(encoding="utf-8"))
    sv = instance.get("schema_version") if isinstance(instance, dict) else None
    if schema_name == "conversion_report.schema.json" and sv != "conversion_report_v1":
        raise ValueError(
            f"{instance_path}: expected schema_version='conversion_report_v1', got {sv!r}"
        )
    validate_instance(instance, schema_name)

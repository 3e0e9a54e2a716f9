"""Conversion configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from student_skeleton.core.discover import DiscoverConfig
from student_skeleton.errors import ConfigurationError

# Looked up in the repository root when no --config is given.
DEFAULT_CONFIG_NAME = ".student-skeleton.yaml"


@dataclass(frozen=True)
class ConvertConfig:
    """Immutable conversion configuration.

    Defaults follow the course repository layout: Java sources under
    ``src/main/java`` with package roots named like ``h09``.
    """

    source_subpath: str = "src/main/java"
    source_extension: str = ".java"
    package_root_pattern: str = r"[A-Za-z]\d{2}"
    solution_only_annotation: str = "org.tudalgo.algoutils.student.annotation.SolutionOnly"
    implementation_required_annotation: str = (
        "org.tudalgo.algoutils.student.annotation.StudentImplementationRequired"
    )
    failure_call: str = "org.tudalgo.algoutils.student.Student.crash"
    message_template: str = "{label} - Remove if implemented"
    comment_template: str = "TODO {label}"
    indent_unit: str = "    "
    encoding: str = "utf-8"

    @classmethod
    def from_yaml(cls, path: Path) -> "ConvertConfig":
        """Load configuration from a YAML file; unknown keys are ignored."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                path, f"Config file must contain a mapping: {path}"
            )
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in known})

    @classmethod
    def discover(cls, root: Path) -> "ConvertConfig":
        """Use ``<root>/.student-skeleton.yaml`` when present, else defaults."""
        candidate = root / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            return cls.from_yaml(candidate)
        return cls()

    def source_root(self, root: Path) -> Path:
        return root / self.source_subpath

    def discover_config(self, root: Path) -> DiscoverConfig:
        return DiscoverConfig(
            root=self.source_root(root),
            extension=self.source_extension,
            package_root_pattern=self.package_root_pattern,
        )

    def stub_message(self, label: str | None) -> str:
        if not label:
            return "Remove if implemented"
        return self.message_template.format(label=label)

    def stub_comment(self, label: str | None) -> str:
        if not label:
            return "TODO"
        return self.comment_template.format(label=label)

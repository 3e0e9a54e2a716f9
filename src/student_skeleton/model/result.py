"""ConversionResult — the summary of one conversion run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from student_skeleton import __version__
from student_skeleton.model.plan import RedactionPlan
from student_skeleton.redaction.emitter import EmissionResult


@dataclass(slots=True)
class ConversionResult:
    """Assembled run summary matching ``conversion_report.schema.json``.

    Built by ``core.runner`` once the pipeline has finished.  For a dry run
    ``emission`` describes what a real run would do.
    """

    root: Path
    source_root: Path
    dry_run: bool
    discovered_files: int
    plan: RedactionPlan
    imports: dict[str, list[str]] = field(default_factory=dict)
    emission: EmissionResult = field(default_factory=EmissionResult)
    tool_version: str = __version__

    @property
    def has_pending_changes(self) -> bool:
        return bool(self.emission.written or self.emission.deleted)

    def to_dict(self) -> dict[str, Any]:
        try:
            source_root = self.source_root.relative_to(self.root).as_posix()
        except ValueError:
            source_root = self.source_root.as_posix()
        return {
            "schema_version": "conversion_report_v1",
            "tool_version": self.tool_version,
            "root": self.root.as_posix(),
            "source_root": source_root,
            "dry_run": self.dry_run,
            "discovered_files": self.discovered_files,
            "plan": self.plan.to_dict(),
            "imports": {k: list(v) for k, v in sorted(self.imports.items())},
            "emission": self.emission.to_dict(self.root),
        }

"""Redaction stages: classify → redact → resolve imports → emit.

Each stage is a plain function over the ``ProgramModel`` built by
``core.builder``:

    - ``classify(model)`` → ``Classification``
    - ``redact(model, classification, config)`` → ``RedactionPlan``
    - ``resolve_imports(model, plan)`` → import lines per retained file
    - ``emit(model, plan, imports, config)`` → ``EmissionResult``
"""

from __future__ import annotations

from student_skeleton.redaction.classifier import classify
from student_skeleton.redaction.emitter import EmissionResult, emit, preview, render_unit
from student_skeleton.redaction.engine import redact
from student_skeleton.redaction.imports import resolve_imports

__all__ = [
    "EmissionResult",
    "classify",
    "emit",
    "preview",
    "redact",
    "render_unit",
    "resolve_imports",
]

"""Runner — wires discovery → model → classification → redaction → emission."""

from __future__ import annotations

import logging
from pathlib import Path

from student_skeleton.core.builder import build_model
from student_skeleton.core.config import ConvertConfig
from student_skeleton.core.discover import discover_sources
from student_skeleton.model import MutationKind
from student_skeleton.model.result import ConversionResult
from student_skeleton.redaction import classify, emit, preview, redact, resolve_imports

_logger = logging.getLogger(__name__)


def run_conversion(
    root: Path,
    config: ConvertConfig | None = None,
    *,
    dry_run: bool = False,
) -> ConversionResult:
    """Convert the repository at *root* into its student-facing skeleton.

    This is the **only** entry point that runs the stages in order.  Typed
    failures from any stage propagate unchanged.  With ``dry_run`` nothing
    is written or deleted.
    """
    config = config or ConvertConfig()
    discover_cfg = config.discover_config(root)

    # ── 1. discovery ────────────────────────────────────────────────
    sources = discover_sources(discover_cfg)
    _logger.debug(
        "Discovered %d source file(s) under %s", len(sources), discover_cfg.root
    )

    # ── 2. whole-program model (all-or-nothing) ─────────────────────
    model = build_model(discover_cfg.root, sources, config)
    _logger.debug("Built model with %d type(s)", len(model.types))

    # ── 3. classification ───────────────────────────────────────────
    classification = classify(model)

    # ── 4. redaction ────────────────────────────────────────────────
    plan = redact(model, classification, config)
    for qname in sorted(plan.deleted):
        _logger.debug("Deleting solution-only type %s", qname)

    # ── 5. imports ──────────────────────────────────────────────────
    imports = resolve_imports(model, plan)

    # ── 6. emission ─────────────────────────────────────────────────
    if dry_run:
        emission = preview(model, plan, imports, config)
    else:
        emission = emit(model, plan, imports, config)

    _logger.info(
        "%s %d type(s), deleted %d, stubbed %d method(s)",
        "Would keep" if dry_run else "Kept",
        len(plan.retained),
        len(plan.deleted),
        len(plan.mutations(MutationKind.STUBBED_METHOD)),
    )

    return ConversionResult(
        root=root,
        source_root=discover_cfg.root,
        dry_run=dry_run,
        discovered_files=len(sources),
        plan=plan,
        imports=imports,
        emission=emission,
    )

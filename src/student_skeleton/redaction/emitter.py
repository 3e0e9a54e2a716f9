"""Emitter — serialize surviving types back to disk, delete removed ones.

Rendering works on the original source bytes: removed members and nested
types are cut out together with their leading comments and the blank line
they would leave behind, stubbed bodies are replaced, everything else is
copied verbatim.  Identical model state always renders to identical bytes,
and rendering an already-converted file reproduces it unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from student_skeleton.core.config import ConvertConfig
from student_skeleton.errors import EmissionError
from student_skeleton.model.declarations import (
    CompilationUnit,
    Member,
    ProgramModel,
    Span,
    TypeDeclaration,
)
from student_skeleton.model.plan import RedactionPlan

_BLANK = b" \t\r"


@dataclass(frozen=True, slots=True)
class _Edit:
    start: int
    end: int
    replacement: bytes = b""

    @property
    def is_removal(self) -> bool:
        return not self.replacement


@dataclass(slots=True)
class EmissionResult:
    """Which files were rewritten, deleted or left alone."""

    written: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    untouched: list[Path] = field(default_factory=list)

    def to_dict(self, root: Path) -> dict:
        def rel(paths: list[Path]) -> list[str]:
            out = []
            for p in paths:
                try:
                    out.append(p.relative_to(root).as_posix())
                except ValueError:
                    out.append(p.as_posix())
            return sorted(out)

        return {
            "written": rel(self.written),
            "deleted": rel(self.deleted),
            "untouched": rel(self.untouched),
        }


# ── text surgery ────────────────────────────────────────────────────────


def _line_bounds(content: bytes, pos: int) -> tuple[int, int]:
    """(start, end) of the line containing *pos*; end excludes the newline."""
    start = content.rfind(b"\n", 0, pos) + 1
    end = content.find(b"\n", pos)
    return start, len(content) if end == -1 else end


def removal_range(content: bytes, span: Span) -> tuple[int, int]:
    """Byte range to delete for a declaration occupying *span*.

    Whole lines are removed when the declaration sits on lines of its own.
    One adjacent blank line is absorbed so that no double blank line, and
    no blank line right after ``{`` or right before ``}``, is left over.
    """
    line_start = content.rfind(b"\n", 0, span.start) + 1
    if content[line_start : span.start].strip(_BLANK):
        return span.start, span.end
    _, line_end = _line_bounds(content, span.end)
    if content[span.end : line_end].strip(_BLANK):
        return span.start, span.end

    start = line_start
    end = min(line_end + 1, len(content))

    if end >= len(content):
        return start, end
    next_start, next_end = _line_bounds(content, end)
    next_line = content[next_start:next_end]
    if start == 0:
        return start, end
    prev_start, prev_end = _line_bounds(content, start - 1)
    prev_line = content[prev_start:prev_end]

    if not next_line.strip(_BLANK) and (
        not prev_line.strip(_BLANK) or prev_line.rstrip(_BLANK).endswith(b"{")
    ):
        end = min(next_end + 1, len(content))
    elif not prev_line.strip(_BLANK) and next_line.strip(_BLANK).startswith(b"}"):
        start = prev_start
    return start, end


def render_stub(member: Member, config: ConvertConfig) -> bytes:
    """Replacement block for a stubbed method body."""
    if member.stub is None:
        raise ValueError(f"{member.parent}#{member.name} has no stub")
    outer = member.indent
    inner = outer + config.indent_unit
    # A line comment cannot span lines.
    comment = " ".join(member.stub.comment.split())
    text = (
        "{\n"
        f"{inner}// {comment}\n"
        f"{inner}{member.stub.statement()}\n"
        f"{outer}}}"
    )
    return text.encode(config.encoding)


def _collect_edits(
    decl: TypeDeclaration,
    model: ProgramModel,
    plan: RedactionPlan,
    config: ConvertConfig,
    content: bytes,
) -> list[_Edit]:
    edits: list[_Edit] = []
    current = {m.key for m in decl.members()}
    for member in decl.declared:
        if member.key not in current:
            edits.append(_Edit(*removal_range(content, member.span)))
        elif member.stub is not None and member.body_span is not None:
            edits.append(
                _Edit(
                    member.body_span.start,
                    member.body_span.end,
                    render_stub(member, config),
                )
            )
    for name in decl.nested:
        nested = model.types[name]
        if plan.is_retained(name):
            edits.extend(_collect_edits(nested, model, plan, config, content))
        else:
            edits.append(_Edit(*removal_range(content, nested.span)))
    return edits


def _merge(edits: list[_Edit]) -> list[_Edit]:
    """Sort edits and fuse overlapping removals."""
    merged: list[_Edit] = []
    for edit in sorted(edits, key=lambda e: (e.start, e.end)):
        if merged and edit.start < merged[-1].end:
            last = merged[-1]
            if last.is_removal:
                merged[-1] = _Edit(last.start, max(last.end, edit.end))
                continue
        merged.append(edit)
    return merged


def _apply(content: bytes, span: Span, edits: list[_Edit]) -> bytes:
    out = bytearray()
    pos = span.start
    for edit in _merge(edits):
        start = max(edit.start, span.start)
        end = min(edit.end, span.end)
        if start < pos:
            continue
        out += content[pos:start]
        out += edit.replacement
        pos = end
    out += content[pos : span.end]
    return bytes(out)


# ── rendering ───────────────────────────────────────────────────────────

_DESCRIPTORS = frozenset({"package-info", "module-info"})


def _is_descriptor(path: Path) -> bool:
    return path.stem in _DESCRIPTORS


def render_type(
    qualified_name: str,
    model: ProgramModel,
    plan: RedactionPlan,
    config: ConvertConfig | None = None,
) -> bytes:
    """Source text of one retained type, mutations applied."""
    config = config or ConvertConfig()
    decl = model.types[qualified_name]
    content = model.unit_of(decl).source.content
    edits = _collect_edits(decl, model, plan, config, content)
    return _apply(content, decl.span, edits)


def render_unit(
    unit: CompilationUnit,
    model: ProgramModel,
    plan: RedactionPlan,
    imports: list[str],
    config: ConvertConfig | None = None,
) -> bytes:
    """Header, package, imports and retained top-level types of one file."""
    config = config or ConvertConfig()
    enc = config.encoding
    sections: list[bytes] = []
    if unit.header:
        sections.append(unit.header)
    if unit.package:
        sections.append(f"package {unit.package};".encode(enc))
    if imports:
        sections.append("\n".join(imports).encode(enc))
    for qname in unit.types:
        if plan.is_retained(qname):
            sections.append(render_type(qname, model, plan, config))
    return b"\n\n".join(sections) + b"\n"


def preview(
    model: ProgramModel,
    plan: RedactionPlan,
    imports: dict[str, list[str]],
    config: ConvertConfig | None = None,
) -> EmissionResult:
    """What ``emit`` would do, without touching the filesystem.

    ``written`` lists only files whose rendered bytes differ from their
    current content.
    """
    config = config or ConvertConfig()
    result = EmissionResult()
    for name, unit in sorted(model.units.items()):
        path = unit.source.path
        if plan.is_retained(name):
            data = render_unit(unit, model, plan, imports.get(name, []), config)
            if data != unit.source.content:
                result.written.append(path)
            else:
                result.untouched.append(path)
        elif _is_descriptor(path):
            result.untouched.append(path)
        else:
            result.deleted.append(path)
    return result


def emit(
    model: ProgramModel,
    plan: RedactionPlan,
    imports: dict[str, list[str]],
    config: ConvertConfig | None = None,
) -> EmissionResult:
    """Overwrite retained files, delete every other file.

    A file is retained when the type its name matches survives; files
    matching no type are deleted too.  Only package and module descriptors
    (``package-info.java``, ``module-info.java``) are left as they are.
    There is no rollback: a failure leaves earlier files already rewritten.
    """
    config = config or ConvertConfig()
    result = EmissionResult()
    for name, unit in sorted(model.units.items()):
        path = unit.source.path
        if plan.is_retained(name):
            data = render_unit(unit, model, plan, imports.get(name, []), config)
            try:
                path.write_bytes(data)
            except OSError as exc:
                raise EmissionError(path, "write") from exc
            result.written.append(path)
        elif _is_descriptor(path):
            result.untouched.append(path)
        else:
            try:
                path.unlink()
            except OSError as exc:
                raise EmissionError(path, "delete") from exc
            result.deleted.append(path)
    return result

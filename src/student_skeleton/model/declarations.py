"""Whole-program model — source files, compilation units, types and members.

The model is an arena: ``ProgramModel.types`` maps a canonical qualified name
(``pkg.Outer.Inner``) to its ``TypeDeclaration``.  Members never hold a live
reference to their parent type, only its qualified name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from . import MarkerKind, MemberKind, TypeKind


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open byte range ``[start, end)`` into a source file's content."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A discovered source file, read once and never modified in memory."""

    path: Path
    qualified_name: str
    content: bytes


@dataclass(frozen=True, slots=True)
class AnnotationMarker:
    """A resolved redaction marker attached to a type or member."""

    kind: MarkerKind
    label: str | None = None


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    """One ``import`` line of a compilation unit."""

    path: str
    static: bool = False
    wildcard: bool = False

    @property
    def simple_name(self) -> str:
        return self.path.rsplit(".", 1)[-1]

    @property
    def owner(self) -> str:
        """Everything before the last segment (the owner type of a static import)."""
        return self.path.rsplit(".", 1)[0] if "." in self.path else ""

    def render(self) -> str:
        static = "static " if self.static else ""
        star = ".*" if self.wildcard else ""
        return f"import {static}{self.path}{star};"


_JAVA_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def java_string_literal(value: str) -> str:
    """*value* as a double-quoted Java string literal."""
    return '"' + "".join(_JAVA_ESCAPES.get(c, c) for c in value) + '"'


@dataclass(frozen=True, slots=True)
class StubBody:
    """Synthetic replacement body of an implementation-required method."""

    call: str
    message: str
    comment: str
    returns_value: bool

    def statement(self) -> str:
        prefix = "return " if self.returns_value else ""
        return f"{prefix}{self.call}({java_string_literal(self.message)});"


@dataclass(frozen=True, slots=True)
class MemberKey:
    """Stable identity of a member: parent type, kind and ordinal."""

    parent: str
    kind: MemberKind
    index: int


@dataclass(slots=True)
class Member:
    """A field, method or constructor of a ``TypeDeclaration``."""

    kind: MemberKind
    name: str
    parent: str
    index: int
    span: Span
    indent: str = ""
    markers: tuple[AnnotationMarker, ...] = ()
    parameter_types: tuple[str, ...] = ()
    return_type: str | None = None
    body_span: Span | None = None
    references: frozenset[str] = frozenset()
    body_references: frozenset[str] = frozenset()
    stub: StubBody | None = None

    @property
    def key(self) -> MemberKey:
        return MemberKey(self.parent, self.kind, self.index)

    @property
    def has_body(self) -> bool:
        return self.body_span is not None

    @property
    def returns_void(self) -> bool:
        return self.return_type == "void"

    def has_marker(self, kind: MarkerKind) -> bool:
        return any(m.kind is kind for m in self.markers)

    def marker(self, kind: MarkerKind) -> AnnotationMarker | None:
        return next((m for m in self.markers if m.kind is kind), None)

    def signature(self) -> str:
        params = ", ".join(self.parameter_types)
        if self.kind is MemberKind.FIELD:
            return self.name
        if self.kind is MemberKind.CONSTRUCTOR:
            return f"{self.name}({params})"
        return f"{self.return_type} {self.name}({params})"


@dataclass(slots=True)
class TypeDeclaration:
    """A class-shaped declaration: top-level, nested, local or anonymous.

    Local and anonymous classes (``h09.Factory$1``) and enum-constant bodies
    (``h09.Op.PLUS``) are listed in their enclosing type's ``nested``.  For
    the first two, ``host`` is the member whose code contains them.
    """

    qualified_name: str
    simple_name: str
    kind: TypeKind
    package: str
    source: str
    span: Span
    enclosing: str | None = None
    host: MemberKey | None = None
    markers: tuple[AnnotationMarker, ...] = ()
    supertypes: tuple[str, ...] = ()
    nested: list[str] = field(default_factory=list)
    fields: list[Member] = field(default_factory=list)
    methods: list[Member] = field(default_factory=list)
    constructors: list[Member] = field(default_factory=list)
    declared: tuple[Member, ...] = ()
    references: frozenset[str] = frozenset()

    def members(self) -> Iterator[Member]:
        yield from self.fields
        yield from self.constructors
        yield from self.methods

    def has_marker(self, kind: MarkerKind) -> bool:
        return any(m.kind is kind for m in self.markers)

    def remove_member(self, member: Member) -> None:
        bucket = {
            MemberKind.FIELD: self.fields,
            MemberKind.METHOD: self.methods,
            MemberKind.CONSTRUCTOR: self.constructors,
        }[member.kind]
        bucket.remove(member)


@dataclass(slots=True)
class CompilationUnit:
    """Parsed form of one ``SourceFile``."""

    source: SourceFile
    package: str = ""
    header: bytes = b""
    imports: tuple[ImportDeclaration, ...] = ()
    types: tuple[str, ...] = ()


@dataclass(slots=True)
class ProgramModel:
    """Whole-program, cross-referencing model built once per run."""

    source_root: Path
    types: dict[str, TypeDeclaration] = field(default_factory=dict)
    units: dict[str, CompilationUnit] = field(default_factory=dict)

    def packages(self) -> frozenset[str]:
        return frozenset(t.package for t in self.types.values())

    def unit_of(self, decl: TypeDeclaration) -> CompilationUnit:
        return self.units[decl.source]

    def walk(self, qualified_name: str) -> Iterator[TypeDeclaration]:
        """Yield a type and, depth-first, every type nested in it."""
        decl = self.types[qualified_name]
        yield decl
        for name in decl.nested:
            yield from self.walk(name)

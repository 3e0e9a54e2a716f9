"""AST model builder — parse every source file into one ``ProgramModel``.

Parsing uses tree-sitter with the Java grammar.  The build is all-or-nothing:
a missing source root raises ``ConfigurationError`` and any file with syntax
errors makes the whole build fail with one ``ParseError`` listing every
offending file.  Later stages never see a partial model.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Collection, Iterable, Sequence

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

from student_skeleton.core.config import ConvertConfig
from student_skeleton.errors import ConfigurationError, ParseError, ParseFailure
from student_skeleton.model import MarkerKind, MemberKind, TypeKind
from student_skeleton.model.declarations import (
    AnnotationMarker,
    CompilationUnit,
    ImportDeclaration,
    Member,
    MemberKey,
    ProgramModel,
    SourceFile,
    Span,
    TypeDeclaration,
)

JAVA_LANGUAGE = Language(tsjava.language())

_TYPE_NODES: dict[str, TypeKind] = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
    "annotation_type_declaration": TypeKind.ANNOTATION,
}

_MEMBER_NODES: dict[str, MemberKind] = {
    "field_declaration": MemberKind.FIELD,
    "constant_declaration": MemberKind.FIELD,
    "method_declaration": MemberKind.METHOD,
    "constructor_declaration": MemberKind.CONSTRUCTOR,
    "compact_constructor_declaration": MemberKind.CONSTRUCTOR,
}

_COMMENT_NODES = frozenset({"line_comment", "block_comment"})
_IDENTIFIER_NODES = frozenset({"identifier", "type_identifier"})
_NAME_NODES = frozenset({"identifier", "scoped_identifier"})
_SUPERTYPE_CLAUSES = frozenset({"superclass", "super_interfaces", "extends_interfaces"})


# ── small CST helpers ───────────────────────────────────────────────────


def _text(node: Node, content: bytes) -> str:
    return content[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _collapse(s: str) -> str:
    return " ".join(s.split())


def _child_of_type(node: Node, *types: str) -> Node | None:
    return next((c for c in node.children if c.type in types), None)


def _identifiers(
    node: Node, content: bytes, skip: Callable[[Node], bool] | None = None
) -> frozenset[str]:
    """Collect identifier texts under *node*, not descending into skipped nodes."""
    found: set[str] = set()
    stack = [node]
    while stack:
        cur = stack.pop()
        if skip is not None and cur is not node and skip(cur):
            continue
        if cur.type in _IDENTIFIER_NODES:
            found.add(_text(cur, content))
            continue
        stack.extend(cur.children)
    return frozenset(found)


def _starts_line(content: bytes, pos: int) -> bool:
    line_start = content.rfind(b"\n", 0, pos) + 1
    return content[line_start:pos].strip() == b""


def _line_indent(content: bytes, pos: int) -> str:
    line_start = content.rfind(b"\n", 0, pos) + 1
    line = content[line_start:pos]
    indent = line[: len(line) - len(line.lstrip(b" \t"))]
    return indent.decode("utf-8")


def _span_with_comments(siblings: Sequence[Node], index: int, content: bytes) -> Span:
    """Span of ``siblings[index]`` widened over its attached comments.

    A comment above is attached only when it starts its own line and no blank
    line separates it from what follows.  Comments that begin on the line the
    declaration ends on are attached as trailing comments.
    """
    start = siblings[index].start_byte
    i = index - 1
    while i >= 0:
        sib = siblings[i]
        if sib.type not in _COMMENT_NODES:
            break
        if content[sib.end_byte : start].count(b"\n") > 1:
            break
        if not _starts_line(content, sib.start_byte):
            break
        start = sib.start_byte
        i -= 1

    end = siblings[index].end_byte
    i = index + 1
    while i < len(siblings):
        sib = siblings[i]
        if sib.type not in _COMMENT_NODES or b"\n" in content[end : sib.start_byte]:
            break
        end = sib.end_byte
        i += 1
    return Span(start, end)


_JAVA_ESCAPE = re.compile(r"\\(?:u+([0-9a-fA-F]{4})|([0-3][0-7]{0,2}|[4-7][0-7]?)|(.))", re.DOTALL)
_SIMPLE_ESCAPES = {
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "f": "\f",
    "r": "\r",
    "s": " ",
    '"': '"',
    "'": "'",
    "\\": "\\",
    "\n": "",
}


def _unescape(m: re.Match[str]) -> str:
    hexa, octal, char = m.groups()
    if hexa:
        return chr(int(hexa, 16))
    if octal:
        return chr(int(octal, 8))
    return _SIMPLE_ESCAPES.get(char, char)


def _java_string_value(literal: str) -> str:
    """Decoded value of a Java string literal or text block."""
    if literal.startswith('"""') and literal.endswith('"""'):
        literal = textwrap.dedent(literal[3:-3]).strip()
    elif len(literal) >= 2 and literal[0] == literal[-1] == '"':
        literal = literal[1:-1]
    return _JAVA_ESCAPE.sub(_unescape, literal)


def _first_error(node: Node) -> Node:
    stack = [node]
    while stack:
        cur = stack.pop(0)
        if cur.is_error or cur.is_missing:
            return cur
        stack[:0] = [c for c in cur.children if c.has_error or c.is_missing]
    return node


def resolve_name(
    name: str,
    unit: CompilationUnit,
    known: Collection[str],
    scopes: Iterable[str] = (),
) -> str:
    """Resolve a (possibly partially qualified) type name within *unit*.

    Lookup order: enclosing types, single-type imports, same package,
    on-demand imports.  Unresolvable names are returned unchanged.
    """
    if name in known:
        return name
    head, _, rest = name.partition(".")
    tail = f".{rest}" if rest else ""
    for scope in scopes:
        candidate = f"{scope}.{name}"
        if candidate in known:
            return candidate
    for imp in unit.imports:
        if not imp.static and not imp.wildcard and imp.simple_name == head:
            return imp.path + tail
    candidate = f"{unit.package}.{name}" if unit.package else name
    if candidate in known:
        return candidate
    for imp in unit.imports:
        if imp.wildcard and not imp.static and f"{imp.path}.{name}" in known:
            return f"{imp.path}.{name}"
    return name


@dataclass
class _UnitContext:
    source: SourceFile
    unit: CompilationUnit
    raw_supertypes: dict[str, list[str]]
    local_counters: dict[str, int] = field(default_factory=dict)

    @property
    def content(self) -> bytes:
        return self.source.content

    def next_local(self, enclosing: str) -> int:
        """1-based ordinal of the next local or anonymous class in *enclosing*."""
        n = self.local_counters.get(enclosing, 0) + 1
        self.local_counters[enclosing] = n
        return n


# ── builder ─────────────────────────────────────────────────────────────


class ModelBuilder:
    """Builds the whole-program model from discovered source files."""

    def __init__(self, config: ConvertConfig | None = None) -> None:
        self.config = config or ConvertConfig()
        self._parser = Parser(JAVA_LANGUAGE)
        self._markers = {
            self.config.solution_only_annotation: MarkerKind.SOLUTION_ONLY,
            self.config.implementation_required_annotation: MarkerKind.IMPLEMENTATION_REQUIRED,
        }

    def build(self, source_root: Path, sources: Sequence[SourceFile]) -> ProgramModel:
        if not source_root.is_dir():
            raise ConfigurationError(source_root)

        trees: list[tuple[SourceFile, Node]] = []
        failures: list[ParseFailure] = []
        for src in sources:
            root = self._parser.parse(src.content).root_node
            if root.has_error:
                bad = _first_error(root)
                failures.append(
                    ParseFailure(
                        path=src.path,
                        line=bad.start_point[0] + 1,
                        column=bad.start_point[1] + 1,
                    )
                )
                continue
            trees.append((src, root))
        if failures:
            raise ParseError(failures)

        model = ProgramModel(source_root=source_root)
        contexts: list[_UnitContext] = []
        for src, root in trees:
            ctx = _UnitContext(
                source=src,
                unit=CompilationUnit(source=src),
                raw_supertypes={},
            )
            self._build_unit(ctx, root, model)
            model.units[src.qualified_name] = ctx.unit
            contexts.append(ctx)

        # Supertypes resolve against the complete type arena.
        known = model.types.keys()
        for ctx in contexts:
            for qname, raw in ctx.raw_supertypes.items():
                decl = model.types[qname]
                scopes = _enclosing_chain(model, decl)
                decl.supertypes = tuple(
                    resolve_name(name, ctx.unit, known, scopes) for name in raw
                )
        return model

    # ── compilation unit ────────────────────────────────────────────

    def _build_unit(self, ctx: _UnitContext, root: Node, model: ProgramModel) -> None:
        content = ctx.content
        children = root.children
        imports: list[ImportDeclaration] = []
        header_nodes: list[Node] = []
        seen_package = False

        for child in children:
            if child.type == "package_declaration":
                name = _child_of_type(child, *_NAME_NODES)
                ctx.unit.package = _text(name, content) if name is not None else ""
                seen_package = True
            elif child.type == "import_declaration":
                imports.append(self._import(child, content))
            elif child.type in _COMMENT_NODES and not seen_package and not imports:
                header_nodes.append(child)

        if seen_package and header_nodes:
            ctx.unit.header = content[header_nodes[0].start_byte : header_nodes[-1].end_byte]
        ctx.unit.imports = tuple(imports)

        top_level: list[str] = []
        for i, child in enumerate(children):
            if child.type in _TYPE_NODES:
                span = _span_with_comments(children, i, content)
                decl = self._declare_type(ctx, child, span, None, model)
                top_level.append(decl.qualified_name)
        ctx.unit.types = tuple(top_level)

    @staticmethod
    def _import(node: Node, content: bytes) -> ImportDeclaration:
        name = _child_of_type(node, *_NAME_NODES)
        return ImportDeclaration(
            path=_text(name, content) if name is not None else "",
            static=_child_of_type(node, "static") is not None,
            wildcard=_child_of_type(node, "asterisk") is not None,
        )

    # ── types ───────────────────────────────────────────────────────

    def _declare_type(
        self,
        ctx: _UnitContext,
        node: Node,
        span: Span,
        enclosing: TypeDeclaration | None,
        model: ProgramModel,
        *,
        qname: str | None = None,
        host: MemberKey | None = None,
    ) -> TypeDeclaration:
        content = ctx.content
        package = ctx.unit.package
        simple = _text(node.child_by_field_name("name"), content)
        if qname is None:
            if enclosing is not None:
                qname = f"{enclosing.qualified_name}.{simple}"
            else:
                qname = f"{package}.{simple}" if package else simple

        decl = TypeDeclaration(
            qualified_name=qname,
            simple_name=simple,
            kind=_TYPE_NODES[node.type],
            package=package,
            source=ctx.source.qualified_name,
            span=span,
            enclosing=enclosing.qualified_name if enclosing else None,
            host=host,
            markers=self._markers_of(node, ctx, qname),
        )
        model.types[qname] = decl
        ctx.raw_supertypes[qname] = _supertype_names(node, content)
        self._collect_members(ctx, decl, node, _member_container(node), model)
        return decl

    def _declare_body(
        self,
        ctx: _UnitContext,
        body: Node,
        qname: str,
        simple: str,
        enclosing: TypeDeclaration,
        host: MemberKey | None,
        supertype: str | None,
        model: ProgramModel,
    ) -> TypeDeclaration:
        """Register an anonymous class body or an enum-constant body."""
        decl = TypeDeclaration(
            qualified_name=qname,
            simple_name=simple,
            kind=TypeKind.CLASS,
            package=ctx.unit.package,
            source=ctx.source.qualified_name,
            span=Span(body.start_byte, body.end_byte),
            enclosing=enclosing.qualified_name,
            host=host,
        )
        model.types[qname] = decl
        ctx.raw_supertypes[qname] = [supertype] if supertype else []
        self._collect_members(ctx, decl, body, body, model)
        return decl

    def _declare_hosted(
        self,
        ctx: _UnitContext,
        node: Node,
        enclosing: TypeDeclaration,
        host: MemberKey,
        model: ProgramModel,
    ) -> TypeDeclaration:
        """Register a local or anonymous class found inside a member."""
        content = ctx.content
        n = ctx.next_local(enclosing.qualified_name)
        if node.type == "class_body":
            created = node.parent.child_by_field_name("type") if node.parent else None
            return self._declare_body(
                ctx,
                node,
                f"{enclosing.qualified_name}${n}",
                str(n),
                enclosing,
                host,
                _type_name(created, content) if created is not None else None,
                model,
            )
        siblings = node.parent.children
        index = next(
            i for i, s in enumerate(siblings)
            if (s.start_byte, s.end_byte) == (node.start_byte, node.end_byte)
        )
        simple = _text(node.child_by_field_name("name"), content)
        return self._declare_type(
            ctx,
            node,
            _span_with_comments(siblings, index, content),
            enclosing,
            model,
            qname=f"{enclosing.qualified_name}${n}{simple}",
            host=host,
        )

    def _collect_members(
        self,
        ctx: _UnitContext,
        decl: TypeDeclaration,
        node: Node,
        container: Node | None,
        model: ProgramModel,
    ) -> None:
        content = ctx.content
        claimed: set[tuple[int, int]] = set()
        declared: list[Member] = []
        counters = {kind: 0 for kind in MemberKind}
        if container is not None:
            siblings = container.children
            for i, child in enumerate(siblings):
                if child.type in _TYPE_NODES:
                    nested_span = _span_with_comments(siblings, i, content)
                    nested = self._declare_type(ctx, child, nested_span, decl, model)
                    decl.nested.append(nested.qualified_name)
                    claimed.add((child.start_byte, child.end_byte))
                elif child.type in _MEMBER_NODES:
                    kind = _MEMBER_NODES[child.type]
                    hosted = _hosted_nodes(child)
                    member = self._member(
                        ctx,
                        child,
                        kind,
                        decl,
                        counters[kind],
                        _span_with_comments(siblings, i, content),
                        hosted,
                    )
                    counters[kind] += 1
                    declared.append(member)
                    claimed.add((child.start_byte, child.end_byte))
                    for h in hosted:
                        local = self._declare_hosted(ctx, h, decl, member.key, model)
                        decl.nested.append(local.qualified_name)

        for constant, body in _enum_constant_bodies(node):
            name = _text(constant.child_by_field_name("name"), content)
            const = self._declare_body(
                ctx,
                body,
                f"{decl.qualified_name}.{name}",
                name,
                decl,
                None,
                decl.qualified_name,
                model,
            )
            decl.nested.append(const.qualified_name)
            claimed.add((body.start_byte, body.end_byte))

        decl.declared = tuple(declared)
        decl.fields = [m for m in declared if m.kind is MemberKind.FIELD]
        decl.methods = [m for m in declared if m.kind is MemberKind.METHOD]
        decl.constructors = [m for m in declared if m.kind is MemberKind.CONSTRUCTOR]
        decl.references = _identifiers(
            node, content, skip=lambda n: (n.start_byte, n.end_byte) in claimed
        )

    # ── members ─────────────────────────────────────────────────────

    def _member(
        self,
        ctx: _UnitContext,
        node: Node,
        kind: MemberKind,
        parent: TypeDeclaration,
        index: int,
        span: Span,
        hosted: Sequence[Node] = (),
    ) -> Member:
        content = ctx.content
        body = node.child_by_field_name("body") if kind is not MemberKind.FIELD else None
        body_range = (body.start_byte, body.end_byte) if body is not None else None
        # Local and anonymous classes are modelled as types of their own.
        inner = {(h.start_byte, h.end_byte) for h in hosted}

        if kind is MemberKind.FIELD:
            names = [
                _text(d.child_by_field_name("name"), content)
                for d in node.children_by_field_name("declarator")
            ]
            name = ", ".join(names)
        else:
            name = _text(node.child_by_field_name("name"), content)

        return_type: str | None = None
        if kind is MemberKind.METHOD:
            type_node = node.child_by_field_name("type")
            return_type = "void" if type_node.type == "void_type" else _collapse(_text(type_node, content))
        elif kind is MemberKind.FIELD:
            return_type = _collapse(_text(node.child_by_field_name("type"), content))

        return Member(
            kind=kind,
            name=name,
            parent=parent.qualified_name,
            index=index,
            span=span,
            indent=_line_indent(content, node.start_byte),
            markers=self._markers_of(node, ctx, f"{parent.qualified_name}#{name}"),
            parameter_types=_parameter_types(node, content),
            return_type=return_type,
            body_span=Span(*body_range) if body_range is not None else None,
            references=_identifiers(
                node,
                content,
                skip=lambda n: (n.start_byte, n.end_byte) == body_range
                or (n.start_byte, n.end_byte) in inner,
            ),
            body_references=(
                _identifiers(body, content, skip=lambda n: (n.start_byte, n.end_byte) in inner)
                if body is not None
                else frozenset()
            ),
        )

    # ── annotations ─────────────────────────────────────────────────

    def _markers_of(
        self, node: Node, ctx: _UnitContext, owner: str
    ) -> tuple[AnnotationMarker, ...]:
        modifiers = _child_of_type(node, "modifiers")
        if modifiers is None:
            return ()
        content = ctx.content
        scopes = _scopes_of(owner)
        markers: list[AnnotationMarker] = []
        for ann in modifiers.named_children:
            if ann.type not in ("marker_annotation", "annotation"):
                continue
            name = _text(ann.child_by_field_name("name"), content)
            resolved = resolve_name(name, ctx.unit, self._markers.keys(), scopes)
            kind = self._markers.get(resolved)
            if kind is None:
                continue
            label = None
            if kind is MarkerKind.IMPLEMENTATION_REQUIRED:
                label = _annotation_value(ann, content)
            markers.append(AnnotationMarker(kind=kind, label=label))
        return tuple(markers)


def build_model(
    source_root: Path,
    sources: Sequence[SourceFile],
    config: ConvertConfig | None = None,
) -> ProgramModel:
    """Functional wrapper around ``ModelBuilder``."""
    return ModelBuilder(config).build(source_root, sources)


# ── module-level helpers that need the grammar's shapes ─────────────────


def _member_container(node: Node) -> Node | None:
    body = node.child_by_field_name("body")
    if body is None:
        return None
    if body.type == "enum_body":
        return _child_of_type(body, "enum_body_declarations")
    return body


def _type_name(node: Node, content: bytes) -> str:
    if node.type == "generic_type":
        return _type_name(node.named_children[0], content)
    return _collapse(_text(node, content))


def _supertype_names(node: Node, content: bytes) -> list[str]:
    names: list[str] = []
    for clause in node.children:
        if clause.type not in _SUPERTYPE_CLAUSES:
            continue
        for child in clause.named_children:
            targets = child.named_children if child.type == "type_list" else [child]
            names.extend(_type_name(t, content) for t in targets)
    return names


def _parameter_types(node: Node, content: bytes) -> tuple[str, ...]:
    params = node.child_by_field_name("parameters")
    if params is None or params.type != "formal_parameters":
        return ()
    types: list[str] = []
    for p in params.named_children:
        if p.type == "formal_parameter":
            types.append(_collapse(_text(p.child_by_field_name("type"), content)))
        elif p.type == "spread_parameter":
            t = next(
                c for c in p.named_children
                if c.type not in ("modifiers", "variable_declarator")
            )
            types.append(_collapse(_text(t, content)) + "...")
    return tuple(types)


def _annotation_value(ann: Node, content: bytes) -> str | None:
    args = ann.child_by_field_name("arguments")
    if args is None:
        return None
    value: Node | None = None
    for child in args.named_children:
        if child.type == "element_value_pair":
            key = child.child_by_field_name("key")
            if key is not None and _text(key, content) == "value":
                value = child.child_by_field_name("value")
                break
        elif child.type not in _COMMENT_NODES:
            value = child
            break
    if value is None:
        return None
    raw = _text(value, content)
    if value.type == "string_literal":
        return _java_string_value(raw)
    return raw


def _scopes_of(owner: str) -> list[str]:
    """Enclosing type names of a member or type owner, innermost first."""
    base = owner.split("#", 1)[0]
    parts = base.split(".")
    return [".".join(parts[:i]) for i in range(len(parts), 0, -1)]


def _enclosing_chain(model: ProgramModel, decl: TypeDeclaration) -> list[str]:
    chain = [decl.qualified_name]
    cur = decl.enclosing
    while cur is not None:
        chain.append(cur)
        cur = model.types[cur].enclosing
    return chain


def _hosted_nodes(node: Node) -> list[Node]:
    """Local class declarations and anonymous class bodies inside a member.

    Returned in document order; types nested inside those are left to their
    own members.
    """
    found: list[Node] = []
    stack = list(reversed(node.children))
    while stack:
        cur = stack.pop()
        if cur.type in _TYPE_NODES or (
            cur.type == "class_body" and cur.parent is not None
            and cur.parent.type == "object_creation_expression"
        ):
            found.append(cur)
            continue
        stack.extend(reversed(cur.children))
    return found


def _enum_constant_bodies(node: Node) -> Iterable[tuple[Node, Node]]:
    if node.type != "enum_declaration":
        return
    body = node.child_by_field_name("body")
    if body is None:
        return
    for constant in body.named_children:
        if constant.type != "enum_constant":
            continue
        class_body = constant.child_by_field_name("body")
        if class_body is not None:
            yield constant, class_body

"""Redaction engine — apply classified actions to the model in a fixed order.

1. stub substitution for implementation-required methods
2. type-level deletion (dominates member-level markers, covers nested types)
3. field deletion
4. constructor deletion (classes and records only)
5. method deletion
6. deletion of local and anonymous classes whose host member was removed
   or stubbed

Constructor deletion is unconditional: a class whose only constructor is
solution-only ends up with none.  Only the in-memory model is touched.
"""

from __future__ import annotations

from student_skeleton.core.config import ConvertConfig
from student_skeleton.model import MutationKind
from student_skeleton.model.declarations import Member, ProgramModel, StubBody
from student_skeleton.model.plan import (
    Classification,
    MemberMutation,
    RedactionPlan,
    Remove,
    Stub,
)


def make_stub(member: Member, label: str | None, config: ConvertConfig) -> StubBody:
    return StubBody(
        call=config.failure_call,
        message=config.stub_message(label),
        comment=config.stub_comment(label),
        returns_value=not member.returns_void,
    )


def _mutation(kind: MutationKind, member: Member, label: str | None = None) -> MemberMutation:
    return MemberMutation(
        kind=kind,
        member=member.key,
        name=member.name,
        signature=member.signature(),
        label=label,
    )


def redact(
    model: ProgramModel,
    classification: Classification,
    config: ConvertConfig | None = None,
) -> RedactionPlan:
    """Mutate *model* per *classification* and return the resulting plan."""
    config = config or ConvertConfig()
    mutations: dict[str, list[MemberMutation]] = {q: [] for q in model.types}

    # 1. stub substitution
    for qname, decl in model.types.items():
        for method in decl.methods:
            action = classification.for_member(method.key)
            if isinstance(action, Stub):
                method.stub = make_stub(method, action.label, config)
                mutations[qname].append(
                    _mutation(MutationKind.STUBBED_METHOD, method, action.label)
                )

    # 2. type-level deletion, nested types go with their enclosing type
    deleted: set[str] = set()
    for qname in model.types:
        if isinstance(classification.for_type(qname), Remove):
            deleted.update(d.qualified_name for d in model.walk(qname))
    retained = {q: muts for q, muts in mutations.items() if q not in deleted}

    # 3. fields
    for qname in retained:
        decl = model.types[qname]
        for fld in list(decl.fields):
            if isinstance(classification.for_member(fld.key), Remove):
                decl.remove_member(fld)
                retained[qname].append(_mutation(MutationKind.REMOVED_FIELD, fld))

    # 4. constructors
    for qname in retained:
        decl = model.types[qname]
        if not decl.kind.has_constructors:
            continue
        for ctor in list(decl.constructors):
            if isinstance(classification.for_member(ctor.key), Remove):
                decl.remove_member(ctor)
                retained[qname].append(_mutation(MutationKind.REMOVED_CONSTRUCTOR, ctor))

    # 5. methods
    for qname in retained:
        decl = model.types[qname]
        for method in list(decl.methods):
            if isinstance(classification.for_member(method.key), Remove):
                decl.remove_member(method)
                retained[qname].append(_mutation(MutationKind.REMOVED_METHOD, method))

    # 6. local and anonymous classes go with a removed or stubbed host
    for qname in list(retained):
        decl = model.types[qname]
        if decl.host is None or qname not in retained:
            continue
        holder = model.types[decl.host.parent]
        host = next((m for m in holder.members() if m.key == decl.host), None)
        if host is None or host.stub is not None:
            for d in model.walk(qname):
                deleted.add(d.qualified_name)
                retained.pop(d.qualified_name, None)

    return RedactionPlan(deleted=frozenset(deleted), retained=retained)

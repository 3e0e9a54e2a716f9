"""Annotation classifier — map every type and member to a redaction action.

Pure inspection pass: the model is never mutated and classifying the same
model twice yields equal results.  Later stages switch on the returned
``RedactionAction`` variants and never look at raw markers again.
"""

from __future__ import annotations

from student_skeleton.model import MarkerKind, MemberKind
from student_skeleton.model.declarations import Member, ProgramModel, TypeDeclaration
from student_skeleton.model.plan import (
    KEEP,
    REMOVE,
    Classification,
    RedactionAction,
    Stub,
)


def classify_type(decl: TypeDeclaration) -> RedactionAction:
    if decl.has_marker(MarkerKind.SOLUTION_ONLY):
        return REMOVE
    return KEEP


def classify_member(member: Member) -> RedactionAction:
    """SolutionOnly wins over ImplementationRequired on the same member."""
    if member.has_marker(MarkerKind.SOLUTION_ONLY):
        return REMOVE
    if member.kind is MemberKind.METHOD and member.has_body:
        marker = member.marker(MarkerKind.IMPLEMENTATION_REQUIRED)
        if marker is not None:
            return Stub(label=marker.label)
    return KEEP


def classify(model: ProgramModel) -> Classification:
    types: dict = {}
    members: dict = {}
    for qname, decl in model.types.items():
        types[qname] = classify_type(decl)
        for member in decl.members():
            members[member.key] = classify_member(member)
    return Classification(types=types, members=members)

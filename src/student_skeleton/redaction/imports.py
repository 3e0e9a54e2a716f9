"""Import resolver — recompute the import list of every surviving file.

An import survives only if what it names still exists after redaction and,
for single-name imports, the name is still referenced by surviving code.
Output lines are deduplicated and sorted lexicographically.
"""

from __future__ import annotations

from student_skeleton.model.declarations import (
    CompilationUnit,
    ImportDeclaration,
    ProgramModel,
)
from student_skeleton.model.plan import RedactionPlan


def _names_deleted(path: str, deleted: frozenset[str]) -> bool:
    """True if *path* is a deleted type or lives inside one."""
    return any(path == d or path.startswith(d + ".") for d in deleted)


def referenced_names(model: ProgramModel, plan: RedactionPlan, qualified_name: str) -> set[str]:
    """Identifiers still referenced by a retained type after redaction."""
    decl = model.types[qualified_name]
    names = set(decl.references)
    for member in decl.members():
        names |= member.references
        if member.stub is None:
            names |= member.body_references
    for nested in decl.nested:
        if plan.is_retained(nested):
            names |= referenced_names(model, plan, nested)
    return names


def _member_names(
    model: ProgramModel, plan: RedactionPlan, qualified_name: str
) -> tuple[set[str], set[str]]:
    """(current, removed) member names of a model type."""
    decl = model.types[qualified_name]
    current = {n for m in decl.members() for n in m.name.split(", ")}
    declared = {n for m in decl.declared for n in m.name.split(", ")}
    current |= {
        model.types[n].simple_name for n in decl.nested if plan.is_retained(n)
    }
    return current, declared - current


def _keep(
    imp: ImportDeclaration,
    model: ProgramModel,
    plan: RedactionPlan,
    referenced: set[str],
    surviving_packages: frozenset[str],
) -> bool:
    if _names_deleted(imp.path, plan.deleted):
        return False
    if imp.static:
        if imp.wildcard:
            return True
        if imp.owner in model.types:
            current, removed = _member_names(model, plan, imp.owner)
            if imp.simple_name in removed and imp.simple_name not in current:
                return False
        return imp.simple_name in referenced
    if imp.wildcard:
        return imp.path not in model.packages() or imp.path in surviving_packages
    return imp.simple_name in referenced


def resolve_unit_imports(
    unit: CompilationUnit, model: ProgramModel, plan: RedactionPlan
) -> list[str]:
    referenced: set[str] = set()
    for qname in unit.types:
        if plan.is_retained(qname):
            referenced |= referenced_names(model, plan, qname)
    surviving_packages = frozenset(model.types[q].package for q in plan.retained)
    lines = {
        imp.render()
        for imp in unit.imports
        if _keep(imp, model, plan, referenced, surviving_packages)
    }
    return sorted(lines)


def resolve_imports(model: ProgramModel, plan: RedactionPlan) -> dict[str, list[str]]:
    """Import lines per retained file, keyed by the file's qualified name."""
    return {
        name: resolve_unit_imports(unit, model, plan)
        for name, unit in sorted(model.units.items())
        if plan.is_retained(name)
    }

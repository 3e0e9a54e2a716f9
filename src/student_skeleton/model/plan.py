"""Redaction actions, classification lookup and the redaction plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from . import MutationKind
from .declarations import MemberKey


@dataclass(frozen=True, slots=True)
class Keep:
    """Entity survives unchanged."""


@dataclass(frozen=True, slots=True)
class Stub:
    """Method body is replaced by the failure stub."""

    label: str | None = None


@dataclass(frozen=True, slots=True)
class Remove:
    """Entity is dropped from the student tree."""


RedactionAction = Union[Keep, Stub, Remove]

KEEP = Keep()
REMOVE = Remove()


@dataclass(frozen=True, slots=True)
class Classification:
    """Per-entity actions produced by the classifier.

    Entities missing from the lookup are kept.
    """

    types: dict[str, RedactionAction] = field(default_factory=dict)
    members: dict[MemberKey, RedactionAction] = field(default_factory=dict)

    def for_type(self, qualified_name: str) -> RedactionAction:
        return self.types.get(qualified_name, KEEP)

    def for_member(self, key: MemberKey) -> RedactionAction:
        return self.members.get(key, KEEP)


@dataclass(frozen=True, slots=True)
class MemberMutation:
    """A change applied to one member of a retained type."""

    kind: MutationKind
    member: MemberKey
    name: str
    signature: str
    label: str | None = None

    def to_dict(self) -> dict:
        d: dict = {
            "kind": self.kind.value,
            "member": self.name,
            "signature": self.signature,
        }
        if self.label is not None:
            d["label"] = self.label
        return d


@dataclass(slots=True)
class RedactionPlan:
    """Partition of every discovered type into deleted and retained."""

    deleted: frozenset[str] = frozenset()
    retained: dict[str, list[MemberMutation]] = field(default_factory=dict)

    def is_retained(self, qualified_name: str) -> bool:
        return qualified_name in self.retained

    def mutations(self, kind: MutationKind | None = None) -> list[MemberMutation]:
        out = [m for muts in self.retained.values() for m in muts]
        if kind is not None:
            out = [m for m in out if m.kind is kind]
        return out

    def counts(self) -> dict[str, int]:
        counts = {k.value: 0 for k in MutationKind}
        for m in self.mutations():
            counts[m.kind.value] += 1
        counts["retained_types"] = len(self.retained)
        counts["deleted_types"] = len(self.deleted)
        return counts

    def to_dict(self) -> dict:
        return {
            "deleted": sorted(self.deleted),
            "retained": {
                name: [m.to_dict() for m in muts]
                for name, muts in sorted(self.retained.items())
            },
            "counts": self.counts(),
        }

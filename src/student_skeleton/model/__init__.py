"""Enums shared across the builder, redaction and emitter layers."""

from __future__ import annotations

from enum import Enum


class TypeKind(str, Enum):
    """Class-shaped declaration kinds recognised by the model builder."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    ANNOTATION = "annotation"

    @property
    def has_constructors(self) -> bool:
        """Kinds whose constructors are subject to redaction."""
        return self in (TypeKind.CLASS, TypeKind.RECORD)


class MemberKind(str, Enum):
    """Redactable member kinds."""

    FIELD = "field"
    METHOD = "method"
    CONSTRUCTOR = "constructor"


class MarkerKind(str, Enum):
    """Annotation markers that drive redaction."""

    SOLUTION_ONLY = "SolutionOnly"
    IMPLEMENTATION_REQUIRED = "ImplementationRequired"


class MutationKind(str, Enum):
    """What the redaction engine did to a retained member."""

    STUBBED_METHOD = "stubbed_method"
    REMOVED_FIELD = "removed_field"
    REMOVED_CONSTRUCTOR = "removed_constructor"
    REMOVED_METHOD = "removed_method"

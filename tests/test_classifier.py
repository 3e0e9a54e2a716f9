"""Tests for the annotation classifier."""

from __future__ import annotations

import pytest

from student_skeleton.model.plan import KEEP, REMOVE, Keep, Remove, Stub
from student_skeleton.redaction import classify
from student_skeleton.redaction.classifier import classify_member


class TestClassifySolutionRepo:
    @pytest.fixture
    def model(self, solution_repo):
        return solution_repo.model()

    def test_is_pure_and_repeatable(self, model) -> None:
        first = classify(model)
        second = classify(model)
        assert first == second
        assert all(m.stub is None for d in model.types.values() for m in d.members())
        assert len(model.types["h09.Sorter"].fields) == 2

    def test_solution_only_type_is_removed(self, model) -> None:
        c = classify(model)
        assert c.for_type("h09.internal.Helper") == REMOVE
        assert c.for_type("h09.Outer.Cache") == REMOVE
        assert c.for_type("h09.Sorter") == KEEP

    def test_member_actions(self, model, member) -> None:
        c = classify(model)
        assert isinstance(c.for_member(member(model, "h09.Sorter", "SECRET_KEY").key), Remove)
        assert isinstance(c.for_member(member(model, "h09.Sorter", "limit").key), Keep)
        assert c.for_member(member(model, "h09.Sorter", "sort").key) == Stub("T1")
        assert c.for_member(member(model, "h09.Main", "answer").key) == Stub("H9.1")
        assert isinstance(c.for_member(member(model, "h09.Counter", "Counter").key), Remove)

    def test_bodiless_method_is_kept(self, model, member) -> None:
        perimeter = member(model, "h09.Shape", "perimeter")
        assert classify_member(perimeter) == KEEP

    def test_unknown_entities_default_to_keep(self, model) -> None:
        c = classify(model)
        assert c.for_type("h09.DoesNotExist") == KEEP


class TestMarkerPrecedence:
    @pytest.fixture
    def model(self, java_repo):
        java_repo.write(
            "h09/Mixed.java",
            """
            package h09;

            import org.tudalgo.algoutils.student.annotation.SolutionOnly;
            import org.tudalgo.algoutils.student.annotation.StudentImplementationRequired;

            @StudentImplementationRequired("H0")
            public class Mixed {

                @StudentImplementationRequired("H1")
                int counter;

                @SolutionOnly
                @StudentImplementationRequired("H2")
                void both() {
                }

                @StudentImplementationRequired
                int unlabeled() {
                    return 0;
                }
            }
            """,
        )
        return java_repo.model()

    def test_solution_only_wins(self, model, member) -> None:
        assert classify(model).for_member(member(model, "h09.Mixed", "both").key) == REMOVE

    def test_implementation_required_only_applies_to_methods(self, model, member) -> None:
        c = classify(model)
        assert c.for_type("h09.Mixed") == KEEP
        assert c.for_member(member(model, "h09.Mixed", "counter").key) == KEEP

    def test_missing_label_stubs_without_label(self, model, member) -> None:
        action = classify(model).for_member(member(model, "h09.Mixed", "unlabeled").key)
        assert action == Stub(label=None)

"""End-to-end conversion of the sample solution repository.

Covers the guarantees a converted repository must satisfy:
  - no solution-only declaration survives
  - every implementation-required method is stubbed with its label
  - no surviving import names a deleted type
  - converting a converted repository changes nothing
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

import pytest

from student_skeleton.core.config import ConvertConfig
from student_skeleton.core.runner import run_conversion
from student_skeleton.errors import ConfigurationError, ParseError

STUBBED_LABELS = ["T1", "T2", "H9.1", "H2", "H4", "H5"]

SOLUTION_BODIES = [
    "Arrays.sort",
    "Math.max",
    "Helper.ANSWER",
    "Shape with area",
    "ordinal()",
    "return 1;",
]


def _java_texts(repo) -> dict[str, str]:
    return {
        p.relative_to(repo.source_root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(repo.source_root.rglob("*.java"))
    }


class TestConvertedRepository:
    @pytest.fixture
    def converted(self, solution_repo):
        result = run_conversion(solution_repo.root)
        return solution_repo, result

    def test_solution_only_code_is_gone(self, converted) -> None:
        repo, _ = converted
        texts = _java_texts(repo)
        assert "h09/internal/Helper.java" not in texts
        for name, text in texts.items():
            assert "SolutionOnly" not in text, name
        joined = "\n".join(texts.values())
        for needle in ("SECRET_KEY", "demo()", "fromName", "class Cache", "Counter(int"):
            assert needle not in joined

    def test_every_marked_method_is_stubbed(self, converted) -> None:
        repo, _ = converted
        joined = "\n".join(_java_texts(repo).values())
        for label in STUBBED_LABELS:
            call = f'org.tudalgo.algoutils.student.Student.crash("{label} - Remove if implemented");'
            assert call in joined, label
            assert f"// TODO {label}\n" in joined, label
        for body in SOLUTION_BODIES:
            assert body not in joined, body

    def test_bodiless_marked_method_is_untouched(self, converted) -> None:
        repo, _ = converted
        shape = repo.read("h09/Shape.java")
        assert '@StudentImplementationRequired("H3")\n    double perimeter();' in shape

    def test_no_import_names_a_deleted_type(self, converted) -> None:
        repo, result = converted
        for text in _java_texts(repo).values():
            imports = re.findall(r"^import .*;$", text, flags=re.MULTILINE)
            for line in imports:
                for deleted in result.plan.deleted:
                    assert deleted not in line

    def test_package_info_is_byte_identical(self, converted) -> None:
        repo, _ = converted
        original = Path(__file__).parent / "fixtures" / "repos" / "h09_solution"
        rel = "src/main/java/h09/package-info.java"
        assert (repo.root / rel).read_bytes() == (original / rel).read_bytes()

    def test_result_summary(self, converted) -> None:
        repo, result = converted
        assert result.discovered_files == 8
        assert result.source_root == repo.source_root
        assert not result.dry_run
        assert result.has_pending_changes


class TestIdempotence:
    def test_second_run_is_a_no_op(self, solution_repo) -> None:
        run_conversion(solution_repo.root)
        first = solution_repo.snapshot()
        run_conversion(solution_repo.root)
        assert solution_repo.snapshot() == first

    def test_dry_run_after_conversion_reports_nothing(self, solution_repo) -> None:
        run_conversion(solution_repo.root)
        result = run_conversion(solution_repo.root, dry_run=True)
        assert result.emission.written == []
        assert result.emission.deleted == []
        assert not result.has_pending_changes

    def test_output_is_deterministic(self, solution_repo, tmp_path: Path) -> None:
        twin = tmp_path / "twin"
        shutil.copytree(solution_repo.root, twin)
        run_conversion(solution_repo.root)
        run_conversion(twin)
        for rel, data in solution_repo.snapshot().items():
            assert (twin / rel).read_bytes() == data, rel


class TestDryRun:
    def test_nothing_is_written(self, solution_repo) -> None:
        before = solution_repo.snapshot()
        result = run_conversion(solution_repo.root, dry_run=True)
        assert solution_repo.snapshot() == before
        assert result.dry_run
        assert result.has_pending_changes
        assert result.plan.counts()["stubbed_method"] == 6


class TestFailures:
    def test_missing_source_root(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            run_conversion(tmp_path)

    def test_parse_error_leaves_every_file_untouched(self, solution_repo) -> None:
        solution_repo.write("h09/Broken.java", "package h09;\n\nclass Broken {\n")
        before = solution_repo.snapshot()
        with pytest.raises(ParseError):
            run_conversion(solution_repo.root)
        assert solution_repo.snapshot() == before

    def test_custom_source_subpath(self, java_repo) -> None:
        java_repo.write("h09/Plain.java", "package h09;\n\npublic class Plain {\n}\n")
        config = ConvertConfig(source_subpath="elsewhere")
        with pytest.raises(ConfigurationError, match="elsewhere"):
            run_conversion(java_repo.root, config)


class TestLocalAndAnonymousTypes:
    @pytest.fixture
    def converted(self, java_repo):
        java_repo.write(
            "h09/Op.java",
            """
            package h09;

            import org.tudalgo.algoutils.student.annotation.StudentImplementationRequired;

            public enum Op {
                PLUS {
                    @StudentImplementationRequired("H7")
                    public int apply(int a, int b) {
                        return a + b;
                    }
                };

                public abstract int apply(int a, int b);
            }
            """,
        )
        java_repo.write(
            "h09/Factory.java",
            """
            package h09;

            import org.tudalgo.algoutils.student.annotation.StudentImplementationRequired;

            public class Factory {

                public Runnable task() {
                    return new Runnable() {
                        @StudentImplementationRequired("H8")
                        public void run() {
                            System.out.println("solution");
                        }
                    };
                }

                public Object local() {
                    class Impl {
                        @StudentImplementationRequired("H9")
                        String name() {
                            return "solution";
                        }
                    }
                    return new Impl();
                }
            }
            """,
        )
        run_conversion(java_repo.root)
        return java_repo

    def test_solution_bodies_are_replaced(self, converted) -> None:
        joined = "\n".join(_java_texts(converted).values())
        assert "return a + b;" not in joined
        assert '"solution"' not in joined
        for label in ("H7", "H8", "H9"):
            assert f'Student.crash("{label} - Remove if implemented");' in joined, label

    def test_hosting_code_survives(self, converted) -> None:
        factory = converted.read("h09/Factory.java")
        assert "return new Runnable() {" in factory
        assert "return new Impl();" in factory

    def test_second_run_is_a_no_op(self, converted) -> None:
        before = converted.snapshot()
        run_conversion(converted.root)
        assert converted.snapshot() == before

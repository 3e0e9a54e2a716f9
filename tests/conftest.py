"""Shared fixtures: a writable copy of the sample solution repo and an
empty repo with a helper for writing Java sources into it."""

from __future__ import annotations

import shutil
import textwrap
from pathlib import Path

import pytest

from student_skeleton.core.builder import build_model
from student_skeleton.core.config import ConvertConfig
from student_skeleton.core.discover import discover_sources
from student_skeleton.model.declarations import Member, ProgramModel

FIXTURES = Path(__file__).resolve().parent / "fixtures"
SOLUTION_REPO = FIXTURES / "repos" / "h09_solution"


class JavaRepo:
    """A throwaway repository laid out like a course exercise."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.source_root = root / "src" / "main" / "java"
        self.source_root.mkdir(parents=True, exist_ok=True)

    def path(self, rel: str) -> Path:
        return self.source_root / rel

    def write(self, rel: str, content: str) -> Path:
        p = self.path(rel)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return p

    def read(self, rel: str) -> str:
        return self.path(rel).read_text(encoding="utf-8")

    def model(self, config: ConvertConfig | None = None) -> ProgramModel:
        config = config or ConvertConfig()
        cfg = config.discover_config(self.root)
        return build_model(cfg.root, discover_sources(cfg), config)

    def snapshot(self) -> dict[str, bytes]:
        return {
            p.relative_to(self.root).as_posix(): p.read_bytes()
            for p in sorted(self.root.rglob("*"))
            if p.is_file()
        }


def member_named(model: ProgramModel, qualified_name: str, name: str) -> Member:
    decl = model.types[qualified_name]
    return next(m for m in decl.declared if m.name == name)


@pytest.fixture
def java_repo(tmp_path: Path) -> JavaRepo:
    return JavaRepo(tmp_path / "repo")


@pytest.fixture
def solution_repo(tmp_path: Path) -> JavaRepo:
    """Writable copy of ``fixtures/repos/h09_solution``."""
    root = tmp_path / "h09_solution"
    shutil.copytree(SOLUTION_REPO, root)
    return JavaRepo(root)


@pytest.fixture
def member():
    return member_named

"""Source discovery — find source files and derive their qualified names."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from student_skeleton.model.declarations import SourceFile


@dataclass(frozen=True)
class DiscoverConfig:
    """Where to look and how to name what is found.

    ``package_root_pattern`` must match a whole path segment; the first
    matching segment starts the qualified name.
    """

    root: Path = field(default_factory=lambda: Path("."))
    extension: str = ".java"
    package_root_pattern: str = r"[A-Za-z]\d{2}"


def qualified_name_for(path: Path, cfg: DiscoverConfig) -> str:
    """Derive ``h09.sub.Type`` from ``<root>/.../h09/sub/Type.java``.

    Segments before the first package-root segment are discarded.  When no
    segment matches, the path relative to the source root is used.
    """
    pattern = re.compile(cfg.package_root_pattern)
    try:
        parts = list(path.relative_to(cfg.root).parts)
    except ValueError:
        parts = list(path.parts)
    start = next(
        (i for i, part in enumerate(parts) if pattern.fullmatch(part)), None
    )
    if start is not None:
        parts = parts[start:]
    if parts and parts[-1].endswith(cfg.extension):
        parts[-1] = parts[-1][: -len(cfg.extension)]
    return ".".join(parts)


def iter_source_paths(cfg: DiscoverConfig) -> Iterator[Path]:
    """Yield regular files with the configured extension, sorted.

    A missing root yields nothing.
    """
    root = cfg.root
    if not root.is_dir():
        return
    for p in sorted(root.rglob(f"*{cfg.extension}")):
        if p.is_file():
            yield p


def discover_sources(cfg: DiscoverConfig) -> list[SourceFile]:
    """Read every source file under *cfg.root* once."""
    return [
        SourceFile(
            path=p,
            qualified_name=qualified_name_for(p, cfg),
            content=p.read_bytes(),
        )
        for p in iter_source_paths(cfg)
    ]

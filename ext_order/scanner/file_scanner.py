"""Resolve include / include-recursive / exclude options into source units."""

from __future__ import annotations

import logging
from pathlib import Path

from ext_order.errors import SourceNotFoundError
from ext_order.models import OrderConfig, SourceUnit

logger = logging.getLogger(__name__)


def collect_files(config: OrderConfig) -> list[Path]:
    """Return matching files in a stable order, de-duplicated by resolved path."""
    missing = [d for d in [*config.include, *config.include_recursive] if not Path(d).is_dir()]
    if missing:
        raise SourceNotFoundError(missing)

    candidates: list[Path] = []
    for directory in config.include:
        candidates.extend(sorted(p for p in Path(directory).glob(config.pattern) if p.is_file()))
    for directory in config.include_recursive:
        candidates.extend(sorted(p for p in Path(directory).rglob(config.pattern) if p.is_file()))

    excluded = [Path(d).resolve() for d in config.exclude]
    files: list[Path] = []
    seen: set[Path] = set()
    for path in candidates:
        resolved = path.resolve()
        if resolved in seen or _should_skip(resolved, excluded):
            continue
        seen.add(resolved)
        files.append(path)

    logger.info("Collected %d file(s) matching %s", len(files), config.pattern)
    return files


def load_units(files: list[Path], encoding: str = "utf-8") -> list[SourceUnit]:
    """Read every file eagerly so the graph is built over fully loaded units."""
    return [SourceUnit(path.read_text(encoding=encoding, errors="replace"), path=path) for path in files]


def _should_skip(path: Path, excluded: list[Path]) -> bool:
    return any(path.is_relative_to(directory) for directory in excluded)

"""Collect artwork and metadata source files from disk."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .config import DEFAULT_IMAGE_EXTENSIONS

SOURCE_EXTENSIONS = ("toml", "yaml", "yml")
ANY_EXTENSION = "*"


def _matches(path: Path, extensions: Iterable[str] | str) -> bool:
    if extensions == ANY_EXTENSION:
        return True
    wanted = {str(ext).lower().lstrip(".") for ext in extensions}
    if ANY_EXTENSION in wanted:
        return True
    return path.suffix.lower().lstrip(".") in wanted


def _walk(directory: Path, depth: int, current: int = 0) -> list[Path]:
    if current > depth:
        return []
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return []
    found: list[Path] = []
    for entry in entries:
        if entry.is_dir():
            if entry.name.startswith("."):
                continue
            found.extend(_walk(entry, depth, current + 1))
        elif entry.is_file():
            found.append(entry)
    return found


def collect_files(
    path: str | os.PathLike[str],
    depth: int = 0,
    extensions: Iterable[str] | str = DEFAULT_IMAGE_EXTENSIONS,
) -> list[str]:
    target = Path(path).expanduser()
    if not target.is_absolute():
        target = Path.cwd() / target
    if target.is_dir():
        files = _walk(target, depth)
    elif target.is_file():
        files = [target]
    else:
        return []
    return sorted(str(Path(os.path.abspath(f))) for f in files if _matches(f, extensions))


def collect_sources(paths: Iterable[str | os.PathLike[str]]) -> list[str]:
    sources: list[str] = []
    for path in paths:
        for found in collect_files(path, 0, SOURCE_EXTENSIONS):
            if found not in sources:
                sources.append(found)
    return sources

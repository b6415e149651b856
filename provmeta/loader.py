"""Parse metadata sources into a MetadataDocument."""

from __future__ import annotations

import copy
import os
import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from .collect import collect_files
from .config import Settings
from .document import MetadataDocument, artwork_id, artwork_path, preview_owner
from .errors import ConfigurationError, RecoverableInputError
from .util import deep_merge
from .vocabulary import CERTIFICATE, LICENSE, canonical_name, synonyms_of

CERTIFICATE_SUFFIX = ".pdf"
REFERENCE_FIELDS = (CERTIFICATE, LICENSE)


def read_source(path: Path) -> dict[str, Any]:
    try:
        if path.suffix.lower() == ".toml":
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        else:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(
            f"cannot read metadata source {path}: {exc}",
            code="PARSE_ERROR",
            hint="Check the file exists and is valid TOML or YAML.",
        ) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"metadata source {path} must contain a table at the top level",
            code="PARSE_ERROR",
            hint="Declare global keys and artwork tables at the top level.",
        )
    return data


def is_certificate_header(key: str) -> bool:
    return key.strip().rstrip("*").lower().endswith(CERTIFICATE_SUFFIX)


def is_reference_field(key: str) -> bool:
    """True for keys whose table value is an inline license or certificate reference."""
    return any(field in synonyms_of(key) for field in REFERENCE_FIELDS)


def _is_supported(path: Path, settings: Settings) -> bool:
    return path.suffix.lower().lstrip(".") in settings.extensions


def resolve_header(header: str, base_dir: Path, settings: Settings) -> list[Path]:
    """Resolve an artwork header pattern to absolute image paths.

    Patterns ending in a separator list a directory, patterns with an extension
    name one file, and anything else is a filename prefix inside its parent.
    """
    pattern = header.strip().rstrip("*")
    if not pattern:
        return []
    expanded = Path(pattern).expanduser()
    target = expanded if expanded.is_absolute() else base_dir / expanded
    if pattern.endswith(("/", os.sep)):
        return [Path(p) for p in collect_files(target, 0, settings.extensions)]
    if target.suffix:
        if not _is_supported(target, settings):
            return []
        if target.stem == settings.preview_name or target.is_file():
            return [Path(os.path.abspath(target))]
        return []
    prefix = target.name
    return [
        Path(p)
        for p in collect_files(target.parent, 0, settings.extensions)
        if Path(p).name.startswith(prefix)
    ]


def _file_previews(document: MetadataDocument, candidates: dict[str, dict[str, Any]], settings: Settings) -> None:
    owners = [identifier for identifier in candidates if artwork_path(identifier).stem != settings.preview_name]
    for identifier in sorted(candidates):
        if identifier in owners:
            continue
        owner = preview_owner(identifier, owners, settings.working_name)
        if owner is not None:
            document.previews[identifier] = candidates.pop(identifier)
        elif artwork_path(identifier).is_file():
            continue
        else:
            candidates.pop(identifier)
            document.warn(
                RecoverableInputError(
                    f"preview {identifier} belongs to no declared artwork and does not exist",
                    code="PREVIEW_ORPHANED",
                    key=identifier,
                )
            )


def load_document(source_paths: Iterable[str | os.PathLike[str]], settings: Settings | None = None) -> MetadataDocument:
    settings = settings or Settings()
    sources = sorted({os.path.abspath(os.fspath(p)) for p in source_paths})
    document = MetadataDocument(sources=tuple(sources))
    artworks: dict[str, dict[str, Any]] = {}

    for source in sources:
        source_path = Path(source)
        base_dir = source_path.parent
        data = read_source(source_path)
        for key, value in data.items():
            key = str(key)
            if not isinstance(value, dict) or is_reference_field(key):
                document.globals[key] = value
                document.origins[key] = str(base_dir)
                continue
            if is_certificate_header(key):
                document.certificates[key] = copy.deepcopy(value)
                document.origins[key] = str(base_dir)
                continue
            matched = resolve_header(key, base_dir, settings)
            if not matched and canonical_name(key) is not None:
                # a structured vocabulary value such as a creator table
                document.globals[key] = value
                document.origins[key] = str(base_dir)
                continue
            if not matched:
                document.warn(
                    RecoverableInputError(
                        f"header {key!r} in {source} matched no artwork files",
                        code="HEADER_UNMATCHED",
                        key=key,
                    )
                )
                continue
            for path in matched:
                identifier = artwork_id(path)
                artworks[identifier] = deep_merge(artworks.get(identifier, {}), copy.deepcopy(value))
                document.origins[identifier] = str(base_dir)

    _file_previews(document, artworks, settings)
    document.artworks = {identifier: artworks[identifier] for identifier in sorted(artworks)}
    return document

"""Metadata document shared by the loader, the resolvers and downstream writers."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from .errors import RecoverableInputError
from .reference import FILE_SCHEME, from_file_uri
from .util import deep_merge
from .vocabulary import CERTIFICATE, synonyms_of

EXIF_DATE_TAGS = (
    "Exif:ModifyDate",
    "Exif:CreateDate",
    "Exif:DateTimeDigitized",
    "Exif:DateTime",
    "Exif:DateTimeOriginal",
)
XMP_DATE_TAGS = ("XMP-dc:Date",)
NON_EMBEDDED_PREFIXES = ("schema:", "nft:")


def artwork_id(path: str | Path) -> str:
    return FILE_SCHEME + str(Path(path).expanduser().resolve())


def artwork_path(identifier: str) -> Path:
    return Path(from_file_uri(identifier))


@dataclass
class MetadataDocument:
    sources: tuple[str, ...] = ()
    globals: dict[str, Any] = field(default_factory=dict)
    artworks: dict[str, dict[str, Any]] = field(default_factory=dict)
    previews: dict[str, dict[str, Any]] = field(default_factory=dict)
    certificates: dict[str, dict[str, Any]] = field(default_factory=dict)
    origins: dict[str, str] = field(default_factory=dict)
    warnings: list[dict[str, Any]] = field(default_factory=list)
    logs: list[dict[str, Any]] = field(default_factory=list)
    resolved: bool = False

    def warn(self, error: RecoverableInputError) -> None:
        self.warnings.append(error.as_warning())

    def origin_of(self, key: str) -> str | None:
        for candidate in [key] + synonyms_of(key):
            if candidate in self.origins:
                return self.origins[candidate]
        return None

    def rename_global(self, old: str, new: str) -> None:
        self.globals[new] = self.globals.pop(old)
        if old in self.origins:
            self.origins[new] = self.origins.pop(old)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": list(self.sources),
            "globals": copy.deepcopy(self.globals),
            "artworks": copy.deepcopy(self.artworks),
            "previews": copy.deepcopy(self.previews),
            "certificates": copy.deepcopy(self.certificates),
            "warnings": list(self.warnings),
            "logs": list(self.logs),
            "resolved": self.resolved,
        }


def artwork_ids(document: MetadataDocument) -> list[str]:
    return sorted(document.artworks.keys())


def preview_owner(preview: str, artworks: list[str], working_name: str = "artwork") -> str | None:
    preview_path = artwork_path(preview)
    for identifier in artworks:
        path = artwork_path(identifier)
        if preview_path.parent == path.parent / path.stem:
            return identifier
        if path.stem == working_name and preview_path.parent == path.parent:
            return identifier
    return None


def preview_for(document: MetadataDocument, identifier: str, working_name: str = "artwork") -> str | None:
    artworks = [identifier]
    for preview in sorted(document.previews):
        if preview_owner(preview, artworks, working_name) == identifier:
            return preview
    return None


def preview_extension(document: MetadataDocument, identifier: str, working_name: str = "artwork") -> str:
    preview = preview_for(document, identifier, working_name)
    if preview is not None:
        return artwork_path(preview).suffix
    return artwork_path(identifier).suffix


def artwork_view(document: MetadataDocument, identifier: str) -> dict[str, Any]:
    """Global attributes overlaid with the artwork's own; the artwork wins."""
    attributes = document.artworks.get(identifier)
    if attributes is None:
        attributes = document.previews[identifier]
    return deep_merge(copy.deepcopy(document.globals), copy.deepcopy(attributes))


def preview_view(document: MetadataDocument, identifier: str, working_name: str = "artwork") -> dict[str, Any] | None:
    preview = preview_for(document, identifier, working_name)
    if preview is None:
        return None
    return deep_merge(artwork_view(document, identifier), copy.deepcopy(document.previews[preview]))


def _as_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and len(value) >= 10:
        return value[:10]
    return value


def _as_datetime(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime.combine(value, time()).isoformat()
    return value


def embedded_tags(view: dict[str, Any]) -> dict[str, Any]:
    """Flatten an artwork view into the tag set an embedded-metadata writer expects."""
    tags: dict[str, Any] = {}
    for key, value in view.items():
        if key.startswith(NON_EMBEDDED_PREFIXES):
            continue
        if key == CERTIFICATE:
            if isinstance(value, dict) and value:
                tags[key] = next(iter(value))
            elif isinstance(value, str) and value:
                tags[key] = value
            continue
        if key in XMP_DATE_TAGS:
            tags[key] = _as_date(value)
        elif key in EXIF_DATE_TAGS:
            tags[key] = _as_datetime(value)
        else:
            tags[key] = value
    return tags

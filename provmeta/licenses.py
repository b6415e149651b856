"""Resolve license references to local file URIs or remote URLs."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from .config import Settings
from .document import MetadataDocument, artwork_path
from .errors import ConfigurationError, RecoverableInputError
from .reference import (
    Absent,
    InlineTable,
    from_file_uri,
    is_file_uri,
    parse_reference,
    reference_name,
    reference_uri,
    to_file_uri,
)
from .util import looks_like_url
from .vocabulary import LICENSE, MARKED, delete_with_synonyms, propagate, synonyms_of, value_of

_FALSE_WORDS = {"false", "no", "0", "off"}


def resolve_location(location: str, bases: list[Path]) -> str | None:
    """Return a ``file://`` URI for an existing file, the URL itself, or None."""
    text = location.strip()
    if not text:
        return None
    path = Path(from_file_uri(text)).expanduser()
    candidates = [path] if path.is_absolute() else [base / path for base in bases]
    for candidate in candidates:
        if candidate.is_file():
            return to_file_uri(candidate)
    if not is_file_uri(text) and looks_like_url(text):
        return text
    return None


def resolve_license(value: Any, bases: list[Path]) -> Any | None:
    ref = parse_reference(value)
    if ref is None or isinstance(ref, Absent):
        return None
    location = resolve_location(reference_uri(ref) or "", bases)
    if location is None:
        return None
    if isinstance(ref, InlineTable):
        return {location: copy.deepcopy(ref.attributes)}
    return location


def as_marked(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() not in _FALSE_WORDS


def rights_marked(license_value: Any, explicit: Any, prefixes: tuple[str, ...]) -> bool:
    if explicit is not None:
        return as_marked(explicit)
    name = reference_name(parse_reference(license_value)) or ""
    return not any(name.upper().startswith(prefix.upper()) for prefix in prefixes if prefix)


def _invalid(document: MetadataDocument, key: str, value: Any) -> None:
    document.warn(
        RecoverableInputError(
            f"license {value!r} is neither an existing file nor a valid URL",
            code="LICENSE_INVALID",
            hint="Point the license at a file next to the metadata source or at a URL.",
            key=key,
        )
    )


def resolve_licenses(document: MetadataDocument, settings: Settings | None = None) -> None:
    settings = settings or Settings()
    global_value = value_of(document.globals, LICENSE)
    global_license = None
    if global_value is not None:
        origin = document.origin_of(LICENSE)
        bases = [Path(origin), Path.cwd()] if origin else [Path.cwd()]
        global_license = resolve_license(global_value, bases)
        if global_license is None:
            _invalid(document, LICENSE, global_value)
    global_marked = document.globals.get(MARKED)

    for identifier, attributes in document.artworks.items():
        declared = value_of(attributes, LICENSE)
        resolved = None
        if declared is not None:
            bases = [artwork_path(identifier).parent]
            origin = document.origins.get(identifier)
            if origin:
                bases.insert(0, Path(origin))
            resolved = resolve_license(declared, bases)
            if resolved is None:
                delete_with_synonyms(attributes, LICENSE)
                _invalid(document, identifier, declared)
        if resolved is None and global_license is not None:
            resolved = copy.deepcopy(global_license)
        if resolved is None:
            if settings.license_required and declared is None and global_value is None:
                raise ConfigurationError(
                    f"no license declared for {identifier}",
                    code="LICENSE_MISSING",
                    hint="Declare a global license or one per artwork.",
                )
            continue
        propagate(attributes, LICENSE, resolved, overwrite=True)
        explicit = attributes.get(MARKED, global_marked)
        attributes[MARKED] = rights_marked(resolved, explicit, settings.public_domain_prefixes)

    delete_with_synonyms(document.globals, LICENSE)
    for member in synonyms_of(LICENSE):
        document.origins.pop(member, None)

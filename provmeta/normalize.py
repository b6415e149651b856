"""Field name canonicalisation and document-wide defaults."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from .config import DEFAULT_INFO_TAGS
from .document import MetadataDocument
from .errors import ConfigurationError, RecoverableInputError
from .vocabulary import (
    CERTIFICATE,
    COPYRIGHT_HOLDER,
    CREATOR,
    DATE_PUBLISHED,
    IDENTIFIER,
    JSONLD_CONTEXT,
    JSONLD_TYPE,
    VERSION,
    best_name,
    canonical_name,
    has_any,
    propagate,
    value_of,
)

SCHEMA_CONTEXT = "https://schema.org/"
DEFAULT_TYPE = "CreativeWork"
DEFAULT_VERSION = 1
PDF_TAG_PREFIX = "XMP-pdf:"


def _trim(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def normalize_attributes(attributes: dict[str, Any], document: MetadataDocument, *, is_global: bool = False) -> None:
    declared = set(attributes)
    for key in list(attributes):
        if key not in attributes:
            continue
        value = _trim(attributes[key])
        canonical = canonical_name(key)
        if canonical is None:
            attributes[key] = value
            continue
        target = key
        if canonical != key:
            target = best_name(key, value) or canonical
            if target in declared:
                del attributes[key]
                if is_global:
                    document.origins.pop(key, None)
                document.warn(
                    RecoverableInputError(
                        f"{key!r} ignored because {target!r} is set explicitly",
                        code="ALIAS_SHADOWED",
                        key=key,
                    )
                )
                continue
            if is_global:
                document.rename_global(key, target)
            else:
                del attributes[key]
        if target == CERTIFICATE:
            # an empty certificate is a recorded absence, so it is never propagated away
            attributes[target] = value
            continue
        propagate(attributes, target, value, overwrite=False)


def normalize_identifier(value: Any) -> str:
    """Lower-case the ``urn`` and chain segments of ``urn:<chain>:<collection>:<token>``.

    The collection address and token keep their casing.
    """
    text = str(value).strip() if value is not None else ""
    parts = text.split(":")
    if len(parts) != 4 or any(not part.strip() for part in parts) or parts[0].lower() != "urn":
        raise ConfigurationError(
            f"malformed identifier {text!r}",
            code="IDENTIFIER_ERROR",
            hint="Use the shape urn:<chain>:<collection>:<token>.",
        )
    return ":".join([parts[0].lower(), parts[1].lower(), parts[2], parts[3]])


def normalize_fields(document: MetadataDocument) -> None:
    normalize_attributes(document.globals, document, is_global=True)
    for attributes in document.artworks.values():
        normalize_attributes(attributes, document)
        identifier = value_of(attributes, IDENTIFIER)
        if identifier is not None:
            propagate(attributes, IDENTIFIER, normalize_identifier(identifier), overwrite=True)
    for attributes in document.previews.values():
        normalize_attributes(attributes, document)


def normalize_certificate_fields(table: dict[str, Any] | None, info_tags: Iterable[str] = DEFAULT_INFO_TAGS) -> dict[str, Any]:
    """Capitalise PDF info tags and lower-case template variables."""
    tags = {tag.lower(): tag for tag in info_tags}
    normalized: dict[str, Any] = {}
    for key, value in (table or {}).items():
        lower = str(key).strip().lower()
        if lower in tags:
            normalized[tags[lower]] = value
        elif lower.startswith(PDF_TAG_PREFIX.lower()):
            tag = lower[len(PDF_TAG_PREFIX):]
            normalized[PDF_TAG_PREFIX + tags.get(tag, tag[:1].upper() + tag[1:])] = value
        else:
            normalized[lower] = value
    return normalized


def _default(attributes: dict[str, Any], field: str, value: Any) -> None:
    if not has_any(attributes, field):
        propagate(attributes, field, value, overwrite=False)


def apply_defaults(document: MetadataDocument, today: date | None = None) -> None:
    today = today or date.today()
    _default(document.globals, JSONLD_CONTEXT, SCHEMA_CONTEXT)
    _default(document.globals, JSONLD_TYPE, DEFAULT_TYPE)
    _default(document.globals, DATE_PUBLISHED, today.isoformat())
    _default(document.globals, VERSION, DEFAULT_VERSION)
    if has_any(document.globals, COPYRIGHT_HOLDER):
        return
    global_creator = value_of(document.globals, CREATOR)
    for attributes in document.artworks.values():
        if has_any(attributes, COPYRIGHT_HOLDER):
            continue
        creator = value_of(attributes, CREATOR)
        if creator is None:
            creator = global_creator
        if creator is not None:
            propagate(attributes, COPYRIGHT_HOLDER, creator, overwrite=False)

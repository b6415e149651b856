"""Resolve certificate-of-authenticity references for every artwork.

Each artwork ends with either ``{uri: attributes}`` under the certificate field
or ``None`` recording an explicit absence. Declarations come from three places:
the artwork's own field, standalone ``*.pdf`` tables, and a global default. An
empty global declaration switches to force-absent mode, where artworks without
their own declaration get no certificate instead of a synthesized default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Union

from .config import Settings
from .document import MetadataDocument, artwork_path
from .errors import ConfigurationError, RecoverableInputError
from .normalize import PDF_TAG_PREFIX, normalize_certificate_fields
from .reference import (
    Absent,
    InlineTable,
    LocalFile,
    RemoteUrl,
    Scalar,
    classify,
    from_file_uri,
    merge_attributes,
    parse_reference,
    reference_name,
    reference_uri,
)
from .vocabulary import CERTIFICATE, CREATOR, display_name, value_of

Location = Union[LocalFile, RemoteUrl]

_NO_CONTEXT = ("", ".", "..")


@dataclass
class _Entry:
    identifier: str
    path: Path
    location: Location | None = None
    inline: dict[str, Any] = field(default_factory=dict)
    standalone: dict[str, Any] | None = None
    defaults: dict[str, Any] = field(default_factory=dict)
    declared: bool = False
    absent: bool = False


@dataclass
class _Global:
    declared: bool = False
    force_absent: bool = False
    text: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


def anchor(relative: str, artwork: Path) -> Path:
    """Resolve a relative certificate path inside ``<artwork dir>/<artwork stem>/``.

    The stem segment is inserted unless it already precedes the filename.
    """
    parts = list(PurePosixPath(relative).parts)
    parents = parts[:-1]
    if not parents or parents[-1] != artwork.stem:
        parents.append(artwork.stem)
    return Path(os.path.normpath(artwork.parent.joinpath(*parents, parts[-1])))


def default_location(artwork: Path, settings: Settings) -> LocalFile:
    return LocalFile(str(artwork.parent / artwork.stem / settings.certificate_file))


def _real(path: str | Path) -> LocalFile:
    # artwork ids are resolved, so absolute certificate paths must be too
    return LocalFile(str(Path(path).expanduser().resolve()))


def canonical_location(text: str, artwork: Path) -> Location | None:
    ref = classify(text)
    if isinstance(ref, LocalFile):
        return _real(ref.path)
    if isinstance(ref, RemoteUrl):
        return ref
    if isinstance(ref, Scalar) and ref.value.lower().endswith(".pdf"):
        path = Path(ref.value).expanduser()
        if path.is_absolute():
            return _real(path)
        return LocalFile(str(anchor(ref.value, artwork)))
    return None


def _invalid(document: MetadataDocument, key: str, value: Any) -> None:
    document.warn(
        RecoverableInputError(
            f"certificate {value!r} is not a .pdf path or URL",
            code="CERTIFICATE_INVALID",
            hint="Reference a PDF file or a remote URL.",
            key=key,
        )
    )


def _discard(document: MetadataDocument, header: str) -> None:
    document.warn(
        RecoverableInputError(
            f"certificate table {header!r} discarded because the artwork has no certificate",
            code="CERTIFICATE_DISCARDED",
            key=header,
        )
    )


def _read_global(document: MetadataDocument, settings: Settings) -> _Global:
    if CERTIFICATE not in document.globals:
        return _Global()
    ref = parse_reference(document.globals[CERTIFICATE])
    if ref is None or isinstance(ref, Absent):
        return _Global(declared=True, force_absent=True)
    if isinstance(ref, InlineTable):
        attributes = normalize_certificate_fields(ref.attributes, settings.info_tags)
        return _Global(declared=True, text=ref.uri, attributes=attributes)
    return _Global(declared=True, text=reference_uri(ref))


def _read_entry(document: MetadataDocument, identifier: str, attributes: dict[str, Any], settings: Settings) -> _Entry:
    entry = _Entry(identifier, artwork_path(identifier))
    if CERTIFICATE not in attributes:
        return entry
    entry.declared = True
    raw = attributes[CERTIFICATE]
    ref = parse_reference(raw)
    if ref is None or isinstance(ref, Absent):
        entry.absent = True
        return entry
    if isinstance(ref, InlineTable):
        entry.inline = normalize_certificate_fields(ref.attributes, settings.info_tags)
    entry.location = canonical_location(reference_uri(ref) or "", entry.path)
    if entry.location is None:
        _invalid(document, identifier, raw)
        entry.absent = True
    return entry


def _attach(entry: _Entry, table: dict[str, Any]) -> None:
    entry.standalone = merge_attributes([entry.standalone, table])


def _match_absolute(document: MetadataDocument, header: str, path: Path, table: dict[str, Any], entries: list[_Entry], state: _Global) -> bool:
    target = _real(path)
    hits = [e for e in entries if e.location is not None and e.location.uri == target.uri]
    for entry in hits:
        _attach(entry, table)
    if hits:
        return True
    directory = str(Path(target.path).parent)
    nearby = [
        e for e in entries
        if str(e.path.parent) == directory or str(e.path.parent / e.path.stem) == directory
    ]
    candidates = [e for e in nearby if not e.declared and e.location is None]
    if len(candidates) > 1:
        names = ", ".join(e.identifier for e in candidates)
        raise ConfigurationError(
            f"certificate table {header!r} matches several artworks: {names}",
            code="CERTIFICATE_AMBIGUOUS",
            hint="Declare the certificate on each artwork instead of as a shared table.",
        )
    if candidates:
        if state.force_absent:
            _discard(document, header)
        else:
            candidates[0].location = target
            _attach(candidates[0], table)
        return True
    if any(e.absent for e in nearby):
        _discard(document, header)
        return True
    return False


def _match_relative(document: MetadataDocument, header: str, table: dict[str, Any], entries: list[_Entry], state: _Global, settings: Settings) -> bool:
    relative = PurePosixPath(header)
    context = relative.parent.name
    if context in _NO_CONTEXT:
        raise ConfigurationError(
            f"certificate context not provided in {header!r}",
            code="CERTIFICATE_CONTEXT",
            hint="Name standalone certificate tables <artwork>/<certificate>.pdf.",
        )
    custom = relative.name != settings.certificate_file
    matched = False
    for entry in entries:
        if entry.path.stem != context:
            continue
        expected = LocalFile(str(anchor(header, entry.path)))
        if entry.location is not None and entry.location.uri == expected.uri:
            _attach(entry, table)
            matched = True
        elif not entry.declared and entry.location is None:
            if state.force_absent:
                _discard(document, header)
            else:
                entry.location = expected
                _attach(entry, table)
            matched = True
        elif custom and entry.location is not None and reference_name(entry.location) == relative.name:
            _attach(entry, table)
            matched = True
        elif entry.absent:
            _discard(document, header)
            matched = True
    return matched


def _match_tables(document: MetadataDocument, entries: list[_Entry], state: _Global, settings: Settings) -> None:
    for header in sorted(document.certificates):
        table = normalize_certificate_fields(document.certificates[header], settings.info_tags)
        text = header.strip()
        path = Path(from_file_uri(text)).expanduser()
        if path.is_absolute():
            matched = _match_absolute(document, header, path, table, entries, state)
        else:
            matched = _match_relative(document, text, table, entries, state, settings)
        if not matched:
            raise ConfigurationError(
                f"certificate table {header!r} matches no artwork",
                code="CERTIFICATE_UNMATCHED",
                hint="Check the table header names an artwork's certificate path.",
            )


def _apply_default(document: MetadataDocument, entry: _Entry, state: _Global, settings: Settings) -> None:
    if state.force_absent:
        entry.absent = True
        return
    if state.text is not None:
        location = canonical_location(state.text, entry.path)
        if location is not None:
            entry.location = location
            entry.defaults = dict(state.attributes)
            return
    entry.location = default_location(entry.path, settings)


def _info_tags(attributes: dict[str, Any], creator: Any, settings: Settings) -> dict[str, Any]:
    for tag in settings.info_tags:
        namespaced = PDF_TAG_PREFIX + tag
        if namespaced in attributes:
            attributes[tag] = attributes.pop(namespaced)
    if "Title" not in attributes:
        attributes["Title"] = settings.certificate_title
    if "Author" not in attributes:
        author = display_name(creator)
        if author:
            attributes["Author"] = author
    return attributes


def resolve_certificates(document: MetadataDocument, settings: Settings | None = None) -> None:
    settings = settings or Settings()
    state = _read_global(document, settings)
    if state.text is not None and canonical_location(state.text, Path(os.sep)) is None:
        # falls back to the per-artwork default path
        _invalid(document, CERTIFICATE, state.text)
        state.text = None

    entries = [
        _read_entry(document, identifier, attributes, settings)
        for identifier, attributes in document.artworks.items()
    ]
    _match_tables(document, entries, state, settings)

    global_creator = value_of(document.globals, CREATOR)
    for entry in entries:
        attributes = document.artworks[entry.identifier]
        if entry.location is None and not entry.absent:
            _apply_default(document, entry, state, settings)
        if entry.absent or entry.location is None:
            attributes[CERTIFICATE] = None
            continue
        merged = merge_attributes([entry.standalone, entry.inline, entry.defaults])
        creator = value_of(attributes, CREATOR)
        _info_tags(merged, creator if creator is not None else global_creator, settings)
        attributes[CERTIFICATE] = {entry.location.uri: merged}

    document.globals.pop(CERTIFICATE, None)
    document.origins.pop(CERTIFICATE, None)
    for header in list(document.certificates):
        del document.certificates[header]
        document.origins.pop(header, None)

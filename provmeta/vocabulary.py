"""Synonym vocabulary across the XMP, EXIF, schema.org and nft namespaces.

Group order matters: within a group the first member is the preferred name,
and lookups walk the groups in table order so the first match wins.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from .util import is_empty

PLAIN = "plain"
IDENTITY = "identity"
TYPE = "type"

JSONLD_PREFIX = "schema:"
PERSON_TYPE = "Person"


@dataclass(frozen=True)
class SynonymGroup:
    members: tuple[str, ...]
    kind: str = PLAIN

    @property
    def best(self) -> str:
        return self.members[0]

    @property
    def jsonld_member(self) -> str | None:
        for member in self.members:
            if member.startswith(JSONLD_PREFIX):
                return member
        return None


SYNONYM_GROUPS: tuple[SynonymGroup, ...] = (
    SynonymGroup(("XMP-dc:Contributor", "schema:contributor"), IDENTITY),
    SynonymGroup(("XMP-dc:Coverage",)),
    SynonymGroup(("XMP-dc:Creator", "Exif:Artist", "schema:creator"), IDENTITY),
    SynonymGroup(("XMP-dc:Date", "schema:datePublished")),
    SynonymGroup(("XMP-dc:Description", "nft:description", "schema:description")),
    SynonymGroup(("XMP-dc:Format",)),
    SynonymGroup(("XMP-dc:Identifier", "schema:@id")),
    SynonymGroup(("XMP-dc:Language",)),
    SynonymGroup(("XMP-dc:Publisher", "schema:publisher"), IDENTITY),
    SynonymGroup(("XMP-dc:Relation",)),
    SynonymGroup(("XMP-dc:Rights",)),
    SynonymGroup(("XMP-dc:Source",)),
    SynonymGroup(("XMP-dc:Subject",)),
    SynonymGroup(("XMP-dc:Title", "nft:name", "schema:name", "Exif:ImageDescription")),
    SynonymGroup(("XMP-dc:Type", "schema:@type"), TYPE),
    SynonymGroup(("XMP-xmpRights:Certificate",)),
    SynonymGroup(("XMP-xmpRights:Marked",)),
    SynonymGroup(("XMP-xmpRights:Owner", "schema:copyrightHolder"), IDENTITY),
    SynonymGroup(("XMP-xmpRights:UsageTerms", "schema:usageInfo")),
    SynonymGroup(("XMP-xmpRights:WebStatement", "schema:license")),
    SynonymGroup(("Exif:Copyright",)),
    SynonymGroup(("Exif:DateTimeDigitized", "Exif:CreateDate", "schema:dateCreated")),
    SynonymGroup(("Exif:DateTimeOriginal",)),
    SynonymGroup(("Exif:DateTime", "Exif:ModifyDate", "schema:dateModified")),
    SynonymGroup(("nft:image", "schema:image", "nft:image_url")),
    SynonymGroup(("nft:image_details",)),
    SynonymGroup(("nft:external_url", "schema:url")),
    SynonymGroup(("nft:attributes",)),
    SynonymGroup(("nft:properties",)),
    SynonymGroup(("schema:additionalProperty",)),
    SynonymGroup(("schema:associatedMedia",)),
    SynonymGroup(("schema:@context",)),
    SynonymGroup(("schema:copyrightYear",)),
    SynonymGroup(("schema:encodingFormat",)),
    SynonymGroup(("schema:sameAs",)),
    SynonymGroup(("schema:version",)),
)

CERTIFICATE = "XMP-xmpRights:Certificate"
CREATOR = "XMP-dc:Creator"
COPYRIGHT_HOLDER = "schema:copyrightHolder"
DATE_PUBLISHED = "schema:datePublished"
IDENTIFIER = "XMP-dc:Identifier"
JSONLD_CONTEXT = "schema:@context"
JSONLD_TYPE = "schema:@type"
LICENSE = "XMP-xmpRights:WebStatement"
MARKED = "XMP-xmpRights:Marked"
VERSION = "schema:version"


def _build_index() -> tuple[dict[str, tuple[SynonymGroup, str]], dict[str, tuple[SynonymGroup, str]]]:
    qualified: dict[str, tuple[SynonymGroup, str]] = {}
    local: dict[str, tuple[SynonymGroup, str]] = {}
    for group in SYNONYM_GROUPS:
        for member in group.members:
            qualified.setdefault(member.lower(), (group, member))
            suffix = member.split(":", 1)[1].lower()
            local.setdefault(suffix, (group, member))
            if suffix.startswith("@"):
                local.setdefault(suffix[1:], (group, member))
    return qualified, local


_QUALIFIED, _LOCAL = _build_index()


def _lookup(field: str) -> tuple[SynonymGroup, str] | None:
    if not isinstance(field, str):
        return None
    key = field.strip().lower()
    if key in _QUALIFIED:
        return _QUALIFIED[key]
    return _LOCAL.get(key)


def canonical_name(field: str) -> str | None:
    """Return the qualified spelling of ``field``, or None when it is not in the vocabulary."""
    found = _lookup(field)
    return found[1] if found else None


def group_of(field: str) -> SynonymGroup | None:
    found = _lookup(field)
    return found[0] if found else None


def synonyms_of(name: str) -> list[str]:
    group = group_of(name)
    return list(group.members) if group else []


def is_structured(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    if isinstance(value, list):
        return any(isinstance(item, dict) for item in value)
    return False


def best_name(field: str, value: Any = None) -> str | None:
    """Preferred name for ``field`` when setting ``value``.

    Structured values land in the schema.org member of the group so they can be
    emitted as JSON-LD; everything else uses the group's first member.
    """
    group = group_of(field)
    if group is None:
        return None
    if is_structured(value) and group.jsonld_member:
        return group.jsonld_member
    return group.best


def split_names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, dict):
        name = value.get("name")
        return [str(name).strip()] if name and str(name).strip() else []
    if isinstance(value, (list, tuple)):
        names: list[str] = []
        for item in value:
            names.extend(split_names(item))
        return names
    text = str(value).strip()
    return [text] if text else []


def structured_people(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, dict):
        value = [value]
    if isinstance(value, list) and any(isinstance(item, dict) for item in value):
        people: list[dict[str, Any]] = []
        for item in value:
            if isinstance(item, dict):
                people.append(copy.deepcopy(item))
            else:
                people.extend({"@type": PERSON_TYPE, "name": name} for name in split_names(item))
        return people
    return [{"@type": PERSON_TYPE, "name": name} for name in split_names(value)]


def display_name(value: Any) -> str:
    return ", ".join(split_names(value))


def _form_for(group: SynonymGroup, member: str, value: Any) -> Any:
    jsonld = member.startswith(JSONLD_PREFIX)
    if group.kind == IDENTITY:
        return structured_people(value) if jsonld else display_name(value)
    if group.kind == TYPE:
        types = split_names(value)
        if not jsonld:
            return ", ".join(types)
        if len(types) == 1:
            return types[0]
        return types
    return copy.deepcopy(value)


def propagate(obj: dict[str, Any], field: str, value: Any, overwrite: bool = True) -> None:
    """Write ``value`` into ``field`` and every synonym of it.

    ``field`` itself is always written. Other synonyms are only written when
    unset unless ``overwrite`` is true. An empty ``value`` deletes instead:
    every synonym when overwriting, otherwise just ``field``.
    """
    group = group_of(field)
    target = canonical_name(field) or field
    if group is None:
        if is_empty(value):
            obj.pop(field, None)
        else:
            obj[field] = value
        return
    if is_empty(value):
        for member in group.members if overwrite else (target,):
            obj.pop(member, None)
        return
    for member in (target,) + tuple(m for m in group.members if m != target):
        if member != target and not overwrite and not is_empty(obj.get(member)):
            continue
        form = _form_for(group, member, value)
        if is_empty(form):
            continue
        obj[member] = form


def delete_with_synonyms(obj: dict[str, Any], field: str) -> None:
    for member in synonyms_of(field) or [field]:
        obj.pop(member, None)


def has_any(obj: dict[str, Any], field: str) -> bool:
    return any(not is_empty(obj.get(member)) for member in synonyms_of(field) or [field])


def value_of(obj: dict[str, Any], field: str) -> Any:
    """First non-empty value across the synonyms of ``field``, structured forms preferred."""
    values = [obj[m] for m in synonyms_of(field) or [field] if not is_empty(obj.get(m))]
    structured = [v for v in values if is_structured(v)]
    if structured:
        return structured[0]
    return values[0] if values else None

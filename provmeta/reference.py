"""Tagged references to license and certificate documents."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Union

from .util import is_empty, looks_like_url

FILE_SCHEME = "file://"


def to_file_uri(path: str | os.PathLike[str]) -> str:
    return FILE_SCHEME + os.path.abspath(os.fspath(path))


def from_file_uri(uri: str) -> str:
    if uri.startswith(FILE_SCHEME):
        return uri[len(FILE_SCHEME):]
    return uri


def is_file_uri(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(FILE_SCHEME)


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass(frozen=True)
class RemoteUrl:
    url: str

    @property
    def uri(self) -> str:
        return self.url


@dataclass(frozen=True)
class LocalFile:
    path: str

    @property
    def uri(self) -> str:
        return to_file_uri(self.path)

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name


@dataclass(frozen=True)
class InlineTable:
    uri: str
    attributes: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)

    @property
    def name(self) -> str:
        return PurePosixPath(from_file_uri(self.uri)).name


@dataclass(frozen=True)
class Absent:
    pass


Reference = Union[Scalar, RemoteUrl, LocalFile, InlineTable, Absent]


def classify(value: str) -> Reference:
    text = value.strip()
    if not text:
        return Absent()
    if is_file_uri(text):
        return LocalFile(from_file_uri(text))
    if looks_like_url(text):
        return RemoteUrl(text)
    return Scalar(text)


def parse_reference(value: Any) -> Reference | None:
    """Turn a raw document value into a Reference; None means nothing was declared."""
    if value is None:
        return None
    if isinstance(value, dict):
        if not value:
            return Absent()
        uri, attributes = next(iter(value.items()))
        if is_empty(uri):
            return Absent()
        return InlineTable(str(uri).strip(), dict(attributes) if isinstance(attributes, dict) else {})
    if isinstance(value, str):
        return classify(value)
    return Scalar(str(value))


def reference_uri(ref: Reference | None) -> str | None:
    if isinstance(ref, (LocalFile, RemoteUrl, InlineTable)):
        return ref.uri
    if isinstance(ref, Scalar):
        return ref.value
    return None


def reference_name(ref: Reference | None) -> str | None:
    uri = reference_uri(ref)
    if uri is None:
        return None
    return PurePosixPath(from_file_uri(uri).rstrip("/")).name


def merge_attributes(layers: list[dict[str, Any] | None]) -> dict[str, Any]:
    """Merge attribute layers, highest precedence first.

    Callers pass standalone-table fields, then inline fields, then defaults; a
    key present in an earlier layer is never replaced by a later one.
    """
    merged: dict[str, Any] = {}
    for layer in reversed(layers):
        if not layer:
            continue
        for key, value in layer.items():
            merged[key] = copy.deepcopy(value)
    return merged

"""Resolution session with a per-source-set document cache."""

from __future__ import annotations

import os
import threading
from collections.abc import Iterable
from concurrent.futures import Future
from typing import Any

from .document import MetadataDocument
from .loader import load_document
from .pipeline import Context, run_resolution


class Session:
    """Load and resolve documents, caching one per distinct set of sources.

    Concurrent ``load`` calls for the same sources share one computation; the
    first caller does the work and the rest wait on its future. Failures are
    not cached.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.context = Context.from_config(config)
        self._lock = threading.Lock()
        self._cache: dict[str, MetadataDocument] = {}
        self._in_flight: dict[str, Future[MetadataDocument]] = {}

    @staticmethod
    def cache_key(sources: Iterable[str | os.PathLike[str]]) -> str:
        return "|".join(sorted({os.path.abspath(os.fspath(s)) for s in sources}))

    def load(self, sources: Iterable[str | os.PathLike[str]]) -> MetadataDocument:
        sources = list(sources)
        key = self.cache_key(sources)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future
        if not owner:
            return future.result()
        try:
            document = run_resolution(load_document(sources, self.context.settings), self.context)
        except BaseException as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            raise
        with self._lock:
            self._cache[key] = document
            self._in_flight.pop(key, None)
        future.set_result(document)
        return document

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

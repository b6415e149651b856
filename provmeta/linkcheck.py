"""Reachability checks for remote license and certificate references."""

from __future__ import annotations

from typing import Any

import requests

from .document import MetadataDocument, artwork_ids, artwork_view
from .util import cache_key, is_remote_url, read_cache, request_with_retry, write_cache
from .vocabulary import CERTIFICATE, LICENSE

CACHE_NAMESPACE = "linkcheck"


def remote_references(document: MetadataDocument) -> list[tuple[str, str, str]]:
    """List ``(artwork, field, url)`` for every remote reference in the document."""
    found = []
    for identifier in artwork_ids(document):
        view = artwork_view(document, identifier)
        for key in (LICENSE, CERTIFICATE):
            value = view.get(key)
            if isinstance(value, dict) and value:
                value = next(iter(value))
            if is_remote_url(value):
                found.append((identifier, key, value))
    return found


def check_url(url: str, config: dict[str, Any]) -> dict[str, Any]:
    cfg = config.get("linkcheck", {}) or {}
    cache_cfg = cfg.get("cache", {}) or {}
    use_cache = bool(cache_cfg.get("enabled"))
    key = cache_key({"url": url})
    if use_cache:
        cached = read_cache(CACHE_NAMESPACE, key, cache_cfg.get("ttl_seconds"))
        if isinstance(cached, dict):
            return dict(cached, cached=True)
    try:
        response = request_with_retry(
            "HEAD",
            url,
            retries=int(cfg.get("retries", 0) or 0),
            backoff_seconds=float(cfg.get("retry_backoff_seconds", 0.5) or 0.5),
            timeout=float(cfg.get("timeout", 10) or 10),
            allow_redirects=True,
        )
        if response.status_code == 405:
            response = request_with_retry("GET", url, timeout=float(cfg.get("timeout", 10) or 10), stream=True)
            response.close()
        result = {"url": url, "ok": response.status_code < 400, "status": response.status_code}
    except requests.RequestException as exc:
        # network errors are not cached
        return {"url": url, "ok": False, "status": None, "error": str(exc)}
    if use_cache:
        write_cache(CACHE_NAMESPACE, key, result)
    return result


def check_document(document: MetadataDocument, config: dict[str, Any]) -> list[dict[str, Any]]:
    results = []
    for identifier, field, url in remote_references(document):
        result = check_url(url, config)
        results.append(dict(result, artwork=identifier, field=field))
    return results

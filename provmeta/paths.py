"""Filesystem paths for config, the on-disk cache and generated reports."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "provmeta"


def _xdg_dir(env_key: str, fallback: str) -> Path:
    base = os.environ.get(env_key)
    if base:
        return Path(base).expanduser()
    return Path(fallback).expanduser()


def _override(env_key: str, default: Path) -> Path:
    value = os.environ.get(env_key)
    return Path(value).expanduser() if value else default


def config_dir() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", "~/.config") / APP_NAME


def cache_dir() -> Path:
    return _xdg_dir("XDG_CACHE_HOME", "~/.cache") / APP_NAME


def namespace_dir(namespace: str) -> Path:
    """Cache subdirectory for one kind of cached payload, created on demand."""
    return ensure_dir(cache_dir() / namespace)


def reports_dir() -> Path:
    return namespace_dir("reports")


def config_path() -> Path:
    return _override("PROVMETA_CONFIG", config_dir() / "config.yaml")


def secrets_path() -> Path:
    return _override("PROVMETA_SECRETS", config_dir() / "secrets.yaml")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path

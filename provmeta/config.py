"""Config loading and defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .paths import config_path, ensure_dir, secrets_path
from .util import deep_merge, resolve_env_values

DEFAULT_IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "tiff", "tif", "webp", "heic", "heif"]
DEFAULT_INFO_TAGS = ["Title", "Author", "Subject", "Keywords", "Creator", "Producer"]


def default_config() -> dict[str, Any]:
    return {
        "artworks": {
            "extensions": list(DEFAULT_IMAGE_EXTENSIONS),
            "preview_name": "preview",
            "working_name": "artwork",
        },
        "certificates": {
            "file_name": "certificate",
            "default_title": "Certificate of Authenticity",
            "info_tags": list(DEFAULT_INFO_TAGS),
        },
        "licenses": {
            "public_domain_prefixes": ["CC0"],
            "required": True,
        },
        "linkcheck": {
            "timeout": 10,
            "retries": 1,
            "retry_backoff_seconds": 0.5,
            "cache": {"enabled": True, "ttl_seconds": 86400},
        },
        "concurrency": {"default": 1},
        "logging": {},
        "report": {"enabled": False},
    }


@dataclass(frozen=True)
class Settings:
    extensions: tuple[str, ...] = tuple(DEFAULT_IMAGE_EXTENSIONS)
    preview_name: str = "preview"
    working_name: str = "artwork"
    certificate_name: str = "certificate"
    certificate_title: str = "Certificate of Authenticity"
    info_tags: tuple[str, ...] = tuple(DEFAULT_INFO_TAGS)
    public_domain_prefixes: tuple[str, ...] = ("CC0",)
    license_required: bool = True

    @property
    def certificate_file(self) -> str:
        return f"{self.certificate_name}.pdf"


def settings_from_config(config: dict[str, Any] | None) -> Settings:
    cfg = deep_merge(default_config(), config or {})
    artworks = cfg.get("artworks", {}) or {}
    certificates = cfg.get("certificates", {}) or {}
    licenses = cfg.get("licenses", {}) or {}
    return Settings(
        extensions=tuple(str(ext).lower().lstrip(".") for ext in artworks.get("extensions") or DEFAULT_IMAGE_EXTENSIONS),
        preview_name=str(artworks.get("preview_name") or "preview"),
        working_name=str(artworks.get("working_name") or "artwork"),
        certificate_name=str(certificates.get("file_name") or "certificate"),
        certificate_title=str(certificates.get("default_title") or "Certificate of Authenticity"),
        info_tags=tuple(str(tag) for tag in certificates.get("info_tags") or DEFAULT_INFO_TAGS),
        public_domain_prefixes=tuple(str(p) for p in licenses.get("public_domain_prefixes") or []),
        license_required=bool(licenses.get("required", True)),
    )


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found at {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        config = yaml.safe_load(handle) or {}
    secrets = {}
    secrets_file = secrets_path()
    if secrets_file.exists():
        with secrets_file.open("r", encoding="utf-8") as handle:
            secrets = yaml.safe_load(handle) or {}
    merged = deep_merge(default_config(), deep_merge(config, secrets))
    return resolve_env_values(merged)


def save_default_config(path: Path | None = None, overwrite: bool = False) -> Path:
    cfg_path = path or config_path()
    ensure_dir(cfg_path.parent)
    if cfg_path.exists() and not overwrite:
        return cfg_path
    with cfg_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(default_config(), handle, sort_keys=False)
    return cfg_path


def save_default_secrets(path: Path | None = None, overwrite: bool = False) -> Path:
    cfg_path = path or secrets_path()
    ensure_dir(cfg_path.parent)
    if cfg_path.exists() and not overwrite:
        return cfg_path
    with cfg_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump({}, handle, sort_keys=False)
    return cfg_path


def resolve_config_path(path_str: str | None) -> Path:
    if path_str:
        return Path(path_str).expanduser()
    return config_path()


def ensure_config_exists(path_str: str | None = None) -> Path:
    cfg_path = resolve_config_path(path_str)
    if not cfg_path.exists():
        cfg_path = save_default_config(cfg_path, overwrite=False)
    return cfg_path


def validate_config(config: dict[str, Any]) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    warnings: list[str] = []

    artworks = config.get("artworks", {}) or {}
    extensions = artworks.get("extensions") or []
    if not extensions:
        errors.append("artworks.extensions must list at least one extension")
    for ext in extensions:
        if str(ext).lower().lstrip(".") == "pdf":
            errors.append("artworks.extensions must not include pdf (reserved for certificates)")
    preview = artworks.get("preview_name")
    working = artworks.get("working_name")
    if preview and working and preview == working:
        errors.append("artworks.preview_name and artworks.working_name must differ")

    certificates = config.get("certificates", {}) or {}
    name = str(certificates.get("file_name") or "")
    if not name:
        errors.append("certificates.file_name is required")
    elif name.lower().endswith(".pdf"):
        warnings.append("certificates.file_name should not include the .pdf extension")
    for tag in certificates.get("info_tags") or []:
        if not str(tag)[:1].isupper():
            warnings.append(f"certificates.info_tags entry is not capitalised: {tag}")

    licenses = config.get("licenses", {}) or {}
    if not licenses.get("public_domain_prefixes"):
        warnings.append("licenses.public_domain_prefixes is empty; every licensed artwork will be marked")

    log_cfg = config.get("logging", {}) or {}
    path = log_cfg.get("path")
    if path and Path(str(path)).expanduser().is_dir():
        errors.append(f"logging.path points at a directory: {path}")

    return errors, warnings

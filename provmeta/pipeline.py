"""Resolution runner and phase logging."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .certificates import resolve_certificates
from .config import Settings, settings_from_config
from .document import MetadataDocument
from .errors import ConfigurationError, ProvmetaError
from .licenses import resolve_licenses
from .normalize import apply_defaults, normalize_fields
from .paths import ensure_dir
from .util import json_default


@dataclass
class Context:
    config: dict[str, Any] = field(default_factory=dict)
    settings: Settings = field(default_factory=Settings)

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> "Context":
        config = config or {}
        return cls(config=config, settings=settings_from_config(config))


Phase = Callable[[MetadataDocument, Context], None]

PHASES: list[tuple[str, Phase]] = [
    ("normalize", lambda document, context: normalize_fields(document)),
    ("licenses", lambda document, context: resolve_licenses(document, context.settings)),
    ("certificates", lambda document, context: resolve_certificates(document, context.settings)),
    ("defaults", lambda document, context: apply_defaults(document)),
]


def append_log(document: MetadataDocument, config: dict[str, Any], entry: dict[str, Any]) -> None:
    document.logs.append(entry)
    log_cfg = config.get("logging", {}) or {}
    path = log_cfg.get("path")
    if not path:
        return
    try:
        log_path = ensure_dir(Path(path).expanduser().parent) / Path(path).name
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=True, default=json_default) + "\n")
    except OSError:
        return


def run_phase(name: str, phase: Phase, document: MetadataDocument, context: Context, run_id: str) -> None:
    start_mono = time.monotonic()
    append_log(document, context.config, {"run_id": run_id, "step": name, "phase": "start", "ts": time.time()})
    try:
        phase(document, context)
    except Exception as exc:
        code = exc.code if isinstance(exc, ProvmetaError) else "INTERNAL_ERROR"
        append_log(
            document,
            context.config,
            {
                "run_id": run_id,
                "step": name,
                "phase": "end",
                "status": "error",
                "duration_s": time.monotonic() - start_mono,
                "ts": time.time(),
                "error": {"code": code, "message": str(exc)},
            },
        )
        raise
    append_log(
        document,
        context.config,
        {
            "run_id": run_id,
            "step": name,
            "phase": "end",
            "status": "ok",
            "duration_s": time.monotonic() - start_mono,
            "ts": time.time(),
        },
    )


def run_resolution(document: MetadataDocument, context: Context | None = None) -> MetadataDocument:
    context = context or Context()
    if document.resolved:
        raise ConfigurationError(
            "document is already resolved",
            code="ALREADY_RESOLVED",
            hint="Load the sources again to resolve a fresh document.",
        )
    run_id = uuid.uuid4().hex
    for name, phase in PHASES:
        run_phase(name, phase, document, context, run_id)
    document.resolved = True
    return document

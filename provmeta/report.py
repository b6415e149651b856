"""Generate human-readable resolution reports."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .document import MetadataDocument, artwork_ids, artwork_view
from .paths import reports_dir
from .util import cache_key
from .vocabulary import CERTIFICATE, CREATOR, LICENSE, MARKED, display_name


def _certificate_line(value: Any) -> str:
    if value is None:
        return "none (explicitly absent)"
    if isinstance(value, dict) and value:
        uri, attributes = next(iter(value.items()))
        title = (attributes or {}).get("Title")
        return f"{uri} ({title})" if title else uri
    return str(value)


def render_report(document: MetadataDocument) -> str:
    lines = []
    lines.append("# Provenance Metadata Report")
    lines.append("")
    lines.append(f"Generated: {datetime.now(timezone.utc).isoformat()}")
    lines.append("")
    lines.append("## Sources")
    for source in document.sources:
        lines.append(f"- {source}")
    lines.append("")
    lines.append("## Artworks")
    for identifier in artwork_ids(document):
        view = artwork_view(document, identifier)
        lines.append(f"### {identifier}")
        if view.get(CREATOR):
            lines.append(f"- creator: {display_name(view.get(CREATOR))}")
        lines.append(f"- license: {view.get(LICENSE) or 'none'}")
        if MARKED in view:
            lines.append(f"- rights marked: {view.get(MARKED)}")
        lines.append(f"- certificate: {_certificate_line(view.get(CERTIFICATE))}")
        lines.append("")
    if document.previews:
        lines.append("## Previews")
        for identifier in sorted(document.previews):
            lines.append(f"- {identifier}")
        lines.append("")
    if document.warnings:
        lines.append("## Warnings")
        for warn in document.warnings:
            lines.append(f"- {warn.get('code', 'unknown')}: {warn.get('message')}")
        lines.append("")
    return "\n".join(lines)


def write_report(document: MetadataDocument, config: dict[str, Any], path: str | None = None) -> str | None:
    report_cfg = config.get("report", {}) or {}
    if path is None and not report_cfg.get("enabled"):
        return None
    target = path or report_cfg.get("path")
    if target:
        out_path = Path(target).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        out_path = reports_dir() / f"{cache_key(list(document.sources))[:16]}.md"
    out_path.write_text(render_report(document), encoding="utf-8")
    return str(out_path)

# statsfr/data_pipeline/csv_export.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Sequence

from statsfr.utils.logger import get_logger
from statsfr.utils.time import today_iso

log = get_logger("data_pipeline.csv_export")

BOM = "\ufeff"
CSV_MIME = "text/csv;charset=utf-8"


@dataclass(frozen=True)
class CsvDownload:
    filename: str
    content: bytes
    mime: str = CSV_MIME


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isnan(value):
        return "NaN"
    if isinstance(value, float) and math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if isinstance(value, float) and value.is_integer():
        # 3.0 -> "3" (rendu identique à String(3) côté navigateur)
        return str(int(value))
    return str(value)


def _escape(cell: str) -> str:
    if "," in cell or "\n" in cell or '"' in cell:
        return '"' + cell.replace('"', '""') + '"'
    return cell


def data_to_csv(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_escape(_cell(c)) for c in row))
    return "\n".join(lines)


def generate_filename(base_name: str, now: datetime | None = None) -> str:
    return f"{base_name}_{today_iso(now)}.csv"


def build_download(csv_content: str, filename: str) -> CsvDownload:
    """Préfixe BOM pour qu'Excel détecte l'UTF-8."""
    return CsvDownload(filename=filename, content=(BOM + csv_content).encode("utf-8"))


def export_timeseries_csv(
    records: Sequence[Mapping[str, Any]],
    base_name: str,
    *,
    now: datetime | None = None,
) -> CsvDownload | None:
    """
    Colonnes = clés du premier enregistrement (ordre d'insertion).
    Liste vide: avertissement et None (rien à télécharger).
    """
    if not records:
        log.warning("No data to export")
        return None

    headers = list(records[0].keys())
    rows = [[rec.get(h) for h in headers] for rec in records]
    filename = generate_filename(base_name, now)
    log.info(f"Export CSV: {filename} ({len(rows)} lignes)")
    return build_download(data_to_csv(headers, rows), filename)


def save_csv(download: CsvDownload, directory: Path) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / download.filename
    path.write_bytes(download.content)
    return path

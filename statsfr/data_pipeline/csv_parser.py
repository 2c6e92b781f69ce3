# statsfr/data_pipeline/csv_parser.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

import pandas as pd

from statsfr.data_api.base import ApiError, HttpClient, default_client
from statsfr.utils.logger import get_logger

log = get_logger("data_pipeline.csv_parser")

Delimiter = Literal[",", ";"]
CellValue = Union[str, float]
CSVRow = dict[str, CellValue]

_ACCENTS = (
    (r"[éèê]", "e"),
    (r"[àâ]", "a"),
    (r"[ùû]", "u"),
    (r"[îï]", "i"),
    (r"[ôö]", "o"),
    (r"ç", "c"),
)

# littéraux numériques acceptés (décimal, exposant, hex/oct/bin, Infinity)
_NUMBER_RE = re.compile(
    r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|Infinity)"
)
_RADIX_RE = re.compile(r"0([xXoObB])([0-9a-fA-F]+)")
_RADIX = {"x": 16, "o": 8, "b": 2}


@dataclass
class ParseResult:
    headers: list[str]
    rows: list[CSVRow]
    delimiter: Delimiter = ","
    skipped_row_count: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.headers)


def detect_delimiter(csv_text: str) -> Delimiter:
    first_lines = "\n".join(csv_text.split("\n")[:5])
    return ";" if first_lines.count(";") > first_lines.count(",") else ","


def parse_line(line: str, delimiter: Delimiter) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    inside_quotes = False

    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if inside_quotes and i + 1 < n and line[i + 1] == '"':
                # guillemet échappé
                current.append('"')
                i += 1
            else:
                inside_quotes = not inside_quotes
        elif ch == delimiter and not inside_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields


def _to_number(s: str) -> float | None:
    """Equivalent de Number(s) côté navigateur: None si NaN."""
    if s == "":
        return 0.0
    m = _RADIX_RE.fullmatch(s)
    if m:
        try:
            return float(int(m.group(2), _RADIX[m.group(1).lower()]))
        except ValueError:
            return None
    if not _NUMBER_RE.fullmatch(s):
        return None
    if s.endswith("Infinity"):
        return -math.inf if s.startswith("-") else math.inf
    return float(s)


def parse_value(value: str, trim: bool = True) -> CellValue:
    """
    Coercition tolérante: "1 234,5" -> 1234.5 ; "" reste "" ; sinon texte.
    Seule la première virgule est convertie en point.
    """
    trimmed = value.strip() if trim else value
    if trimmed == "":
        return ""

    num = _to_number(re.sub(r"\s", "", trimmed).replace(",", ".", 1))
    if num is not None:
        return num
    return trimmed


def normalize_header(header: str) -> str:
    h = header.strip().lower()
    h = re.sub(r"\s+", "_", h)
    for pattern, repl in _ACCENTS:
        h = re.sub(pattern, repl, h)
    return re.sub(r"[^\w]", "", h, flags=re.ASCII)


def parse_csv(
    csv_text: str,
    *,
    delimiter: Literal[",", ";", "auto"] = "auto",
    has_header: bool = True,
    skip_empty_lines: bool = True,
    trim_values: bool = True,
) -> ParseResult:
    """
    Parse un texte CSV en en-têtes normalisés + lignes typées.

    Les lignes dont le nombre de champs diffère du nombre d'en-têtes sont
    ignorées: elles ne lèvent jamais d'exception, sont comptées dans
    `skipped_row_count` et décrites dans `warnings`.
    """
    actual: Delimiter = detect_delimiter(csv_text) if delimiter == "auto" else delimiter
    log.debug(f'Parsing CSV with delimiter: "{actual}"')

    lines = re.split(r"\r?\n", csv_text)
    if skip_empty_lines:
        lines = [ln for ln in lines if ln.strip()]

    if not lines:
        return ParseResult(headers=[], rows=[], delimiter=actual)

    if has_header:
        headers = [normalize_header(h) for h in parse_line(lines[0], actual)]
        start = 1
    else:
        headers = [f"col_{i}" for i in range(len(parse_line(lines[0], actual)))]
        start = 0

    log.debug(f"CSV headers: {', '.join(headers)}")

    result = ParseResult(headers=headers, rows=[], delimiter=actual)
    for i in range(start, len(lines)):
        line = lines[i]
        if not line.strip():
            continue

        values = parse_line(line, actual)
        if len(values) != len(headers):
            msg = f"Skipping malformed row {i + 1}: expected {len(headers)} columns, got {len(values)}"
            log.warning(msg)
            result.warnings.append(msg)
            result.skipped_row_count += 1
            continue

        result.rows.append({h: parse_value(v, trim_values) for h, v in zip(headers, values)})

    log.info(f"Parsed {result.row_count} rows (skipped={result.skipped_row_count})")
    return result


def fetch_and_parse_csv(url: str, *, http: HttpClient | None = None, **options: Any) -> ParseResult:
    """
    Télécharge puis parse un CSV distant. Seul le transport peut lever
    (ApiError); le contenu des lignes ne lève jamais.
    """
    http = http or default_client()
    log.info(f"Fetching CSV from: {url}")
    try:
        text = http.get_text(url)
    except Exception as e:
        log.error(f"Error fetching CSV {url}: {e}")
        raise ApiError(f"Failed to fetch CSV from {url}: {e}") from e

    log.info(f"Fetched {len(text)} bytes")
    return parse_csv(text, **options)


def extract_column(data: ParseResult, column_name: str) -> list[CellValue | None]:
    name = normalize_header(column_name)
    return [row.get(name) for row in data.rows]


def filter_rows(data: ParseResult, predicate: Callable[[CSVRow], bool]) -> list[CSVRow]:
    return [row for row in data.rows if predicate(row)]


def find_column(data: ParseResult, partial_name: str) -> str | None:
    needle = normalize_header(partial_name)
    for h in data.headers:
        if needle in h:
            return h
    return None

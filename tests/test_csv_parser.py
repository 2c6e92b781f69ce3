"""Tests for the lenient CSV parser."""

from __future__ import annotations

import random
from typing import Any

import pytest

from statsfr.data_api.base import ApiError, HttpStatusError
from statsfr.data_pipeline.csv_export import data_to_csv
from statsfr.data_pipeline.csv_parser import (
    detect_delimiter,
    extract_column,
    fetch_and_parse_csv,
    filter_rows,
    find_column,
    normalize_header,
    parse_csv,
    parse_line,
    parse_value,
)


def test_detect_delimiter_semicolon() -> None:
    assert detect_delimiter("a;b;c\n1;2;3") == ";"


def test_detect_delimiter_defaults_to_comma_on_tie() -> None:
    assert detect_delimiter("a;b,c") == ","
    assert detect_delimiter("") == ","


def test_detect_delimiter_only_looks_at_first_five_lines() -> None:
    text = "a,b\n1,2\n3,4\n5,6\n7,8\n" + "x;y;z;w;v;u;t\n" * 10
    assert detect_delimiter(text) == ","


def test_parse_line_handles_quotes_and_escaped_quotes() -> None:
    assert parse_line('a,"b,c",d', ",") == ["a", "b,c", "d"]
    assert parse_line('"say ""hi""",x', ",") == ['say "hi"', "x"]
    assert parse_line("a;b,c", ";") == ["a", "b,c"]
    assert parse_line("", ",") == [""]


def test_parse_value_coercion() -> None:
    assert parse_value("42") == 42
    assert parse_value(" 3,5 ") == 3.5
    assert parse_value("1 234") == 1234
    assert parse_value("") == ""
    assert parse_value("   ") == ""
    assert parse_value("2022-01") == "2022-01"
    assert parse_value(" Nantes ") == "Nantes"
    assert parse_value(" Nantes ", trim=False) == " Nantes "


def test_normalize_header_strips_accents_and_symbols() -> None:
    assert normalize_header("  Année ") == "annee"
    assert normalize_header("Taux de Décès (%)") == "taux_de_deces_"
    assert normalize_header("Âge moyen") == "age_moyen"
    assert normalize_header("Code  Commune") == "code_commune"


def test_parse_csv_basic_scenario() -> None:
    result = parse_csv("a,b\n1,2\n3,4")
    assert result.headers == ["a", "b"]
    assert result.rows == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
    assert result.row_count == 2
    assert result.skipped_row_count == 0


def test_parse_csv_semicolon_with_french_decimals() -> None:
    text = "Date;Valeur IPC\r\n2022-01;2,9\r\n2022-02;3,6\r\n"
    result = parse_csv(text)
    assert result.delimiter == ";"
    assert result.headers == ["date", "valeur_ipc"]
    assert result.rows[1] == {"date": "2022-02", "valeur_ipc": 3.6}


def test_malformed_rows_are_dropped_not_raised() -> None:
    # politique volontaire: une ligne au mauvais nombre de champs est ignorée et comptée
    text = "a,b\n1,2\n3\n4,5,6\n7,8"
    result = parse_csv(text)
    assert result.rows == [{"a": 1, "b": 2}, {"a": 7, "b": 8}]
    assert result.skipped_row_count == 2
    assert len(result.warnings) == 2
    assert "row 3" in result.warnings[0]


def test_empty_strings_are_not_coerced_to_zero() -> None:
    result = parse_csv("a,b\n,2")
    assert result.rows == [{"a": "", "b": 2}]


def test_blank_lines_kept_when_not_skipping_are_still_ignored_as_rows() -> None:
    result = parse_csv("a,b\n\n1,2\n", skip_empty_lines=False)
    assert result.rows == [{"a": 1, "b": 2}]
    assert result.skipped_row_count == 0


def test_parse_csv_without_header_generates_column_names() -> None:
    result = parse_csv("1;2;3\n4;5;6", has_header=False)
    assert result.headers == ["col_0", "col_1", "col_2"]
    assert result.row_count == 2


def test_parse_csv_explicit_delimiter_overrides_detection() -> None:
    result = parse_csv("a;b,c\n1;2,3", delimiter=",")
    assert result.headers == ["ab", "c"]
    assert result.rows == [{"ab": "1;2", "c": 3}]


def test_parse_csv_empty_text() -> None:
    result = parse_csv("\n\n")
    assert result.headers == []
    assert result.rows == []


def test_round_trip_through_exporter_keeps_headers_and_row_count() -> None:
    headers = ["Date", "Valeur", "Commentaire"]
    rows = [
        ["2022-01", 2.9, "hausse, forte"],
        ["2022-02", 3.6, 'dit "pic"'],
        ["2022-03", 4.5, ""],
    ]
    result = parse_csv(data_to_csv(headers, rows))
    assert result.headers == ["date", "valeur", "commentaire"]
    assert result.row_count == 3
    assert result.rows[0]["commentaire"] == "hausse, forte"
    assert result.rows[1]["commentaire"] == 'dit "pic"'


def _random_cell(rng: random.Random) -> str | float:
    kind = rng.random()
    if kind < 0.4:
        return rng.choice([float(rng.randint(-5000, 5000)), round(rng.uniform(-1000, 1000), 2)])
    # texte: commence toujours par une lettre pour ne jamais être lu comme un nombre
    alphabet = "éèàçùÉabcxyz ,\"'-"
    body = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 12)))
    return (rng.choice("éàçÉabcxyz") + body).rstrip()


def test_random_rows_survive_export_then_parse() -> None:
    rng = random.Random(2024)
    headers = ["Année", "Valeur", "Libellé", "Quantité"]
    for _ in range(25):
        rows = [[_random_cell(rng) for _ in headers] for _ in range(rng.randint(1, 15))]
        result = parse_csv(data_to_csv(headers, rows))

        assert result.delimiter == ","
        assert result.headers == [normalize_header(h) for h in headers]
        assert result.skipped_row_count == 0
        assert result.row_count == len(rows)
        for parsed, original in zip(result.rows, rows):
            assert list(parsed.values()) == original


def test_helpers_extract_filter_find() -> None:
    result = parse_csv("Année,Population totale\n2022,320732\n2023,323204")
    assert extract_column(result, "Année") == [2022, 2023]
    assert filter_rows(result, lambda r: r["annee"] > 2022) == [{"annee": 2023, "population_totale": 323204}]
    assert find_column(result, "population") == "population_totale"
    assert find_column(result, "chomage") is None


def test_to_frame_keeps_header_order() -> None:
    df = parse_csv("b,a\n1,2").to_frame()
    assert list(df.columns) == ["b", "a"]
    assert df.shape == (1, 2)


class _FakeHttp:
    def __init__(self, text: str | None = None, exc: Exception | None = None) -> None:
        self.text = text
        self.exc = exc
        self.urls: list[str] = []

    def get_text(self, url: str, **_kwargs: Any) -> str:
        self.urls.append(url)
        if self.exc is not None:
            raise self.exc
        assert self.text is not None
        return self.text


def test_fetch_and_parse_csv_parses_remote_text() -> None:
    http = _FakeHttp(text="x;y\n1;2\nbad\n")
    result = fetch_and_parse_csv("https://example.test/data.csv", http=http)  # type: ignore[arg-type]
    assert http.urls == ["https://example.test/data.csv"]
    assert result.rows == [{"x": 1, "y": 2}]
    assert result.skipped_row_count == 1


def test_fetch_and_parse_csv_wraps_transport_errors() -> None:
    err = HttpStatusError("HTTP 404: Not Found", status_code=404, url="https://example.test/x.csv")
    http = _FakeHttp(exc=err)
    with pytest.raises(ApiError, match="Failed to fetch CSV from https://example.test/x.csv"):
        fetch_and_parse_csv("https://example.test/x.csv", http=http)  # type: ignore[arg-type]

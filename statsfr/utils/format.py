# statsfr/utils/format.py
from __future__ import annotations

from .time import parse_date_like

# séparateur de milliers fr-FR (espace fine insécable)
NNBSP = "\u202f"

MONTHS_FR_ABBR = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]


def format_number_fr(value: float, decimals: int = 0) -> str:
    """
    Nombre au format français.
    Ex: 1234567 -> "1 234 567" ; 1234.5 (1 décimale) -> "1 234,5"
    """
    s = f"{value:,.{decimals}f}"
    return s.replace(",", NNBSP).replace(".", ",")


def format_percent_fr(value: float, decimals: int = 1) -> str:
    """Valeur décimale -> pourcentage (0.505 -> "50,5 %")."""
    return f"{format_number_fr(value * 100, decimals)}{NNBSP}%"


def format_date_month_year_fr(date_str: str) -> str:
    """"2025-01" -> "janv. 2025". Retourne l'entrée telle quelle si non parsable."""
    try:
        ts = parse_date_like(date_str)
    except ValueError:
        return date_str
    return f"{MONTHS_FR_ABBR[ts.month - 1]} {ts.year}"


def format_compact_fr(value: float) -> str:
    if value >= 1_000_000:
        return f"{format_number_fr(value / 1_000_000, 1)} M"
    if value >= 1_000:
        return f"{format_number_fr(value / 1_000, 1)} k"
    return format_number_fr(value)

from __future__ import annotations
from datetime import datetime, timezone
import pandas as pd

def parse_date_like(value: str) -> pd.Timestamp:
    # accepte "YYYY", "YYYY-MM", "YYYY-MM-DD"
    s = str(value).strip()
    if len(s) == 4 and s.isdigit():
        s = f"{s}-01-01"
    ts = pd.to_datetime(s, errors="coerce")
    if pd.isna(ts):
        raise ValueError(f"Date invalide: {value}")
    return ts

def today_iso(now: datetime | None = None) -> str:
    """Date du jour (UTC) au format YYYY-MM-DD, utilisée pour nommer les exports."""
    now = now or datetime.now(timezone.utc)
    return now.date().isoformat()

def to_month_start_index(dates: list[str]) -> pd.DatetimeIndex:
    idx = pd.DatetimeIndex([parse_date_like(d) for d in dates])
    return idx.to_period("M").to_timestamp()

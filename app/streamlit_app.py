# app/streamlit_app.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import streamlit as st

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from statsfr.utils import settings, get_logger
from statsfr.utils.format import format_compact_fr, format_date_month_year_fr, format_number_fr
from statsfr.data_pipeline.cache import TtlCache
from statsfr.data_pipeline.csv_export import export_timeseries_csv
from statsfr.data_pipeline.repository import DataRepository
from statsfr.data_pipeline.transforms import felt_to_frame, rolling_average, to_frame

log = get_logger("app")

st.set_page_config(page_title=settings.app_name, layout="wide")


@st.cache_resource
def get_repository() -> DataRepository:
    # un seul cache mémoire par process, partagé par toutes les sessions
    return DataRepository(TtlCache())


repo = get_repository()


def guarded(label: str, cache_key: str, fn: Callable[[], Any]) -> Any | None:
    """Erreur affichée + bouton 'Réessayer' qui purge l'entrée de cache concernée."""
    try:
        return fn()
    except Exception as e:
        log.error(f"{label}: {e}")
        st.error(f"Impossible de charger {label}. Vérifiez votre connexion ou réessayez plus tard.")
        if st.button("Réessayer", key=f"retry-{cache_key}"):
            repo.invalidate(cache_key)
            st.rerun()
        return None


def download_button(records: list[dict[str, Any]], base_name: str) -> None:
    dl = export_timeseries_csv(records, base_name)
    if dl is None:
        st.caption("Aucune donnée à exporter.")
        return
    st.download_button("Télécharger (CSV)", data=dl.content, file_name=dl.filename, mime=dl.mime, key=base_name)


st.title(settings.app_name)
st.caption(f"Source: INSEE (publications officielles), mise à jour {repo.get_last_update().isoformat()}")

tab_infl, tab_nantes, tab_france = st.tabs(["Inflation", "Nantes", "France"])

with tab_infl:
    key = repo.catalog["inflation_yoy"].cache_key()
    series = guarded("l'inflation", key, repo.get_inflation_yoy_timeseries)
    if series is not None:
        kpis = repo.get_inflation_kpis()
        c1, c2, c3 = st.columns(3)
        c1.metric("Dernier glissement annuel", f"{format_number_fr(kpis.latest_yoy, 1)} %")
        c2.metric("Moyenne 12 mois", f"{format_number_fr(kpis.avg_12_months, 1)} %")
        peak_label = format_date_month_year_fr(kpis.peak_date) if kpis.peak_date else "n.d."
        c3.metric("Pic", f"{format_number_fr(kpis.peak_10_years, 1)} %", peak_label, delta_color="off")

        felt = repo.get_felt_inflation_timeseries()
        df = felt_to_frame(felt).join(to_frame(rolling_average(series, 12), "moyenne_12m"))
        st.dataframe(df, use_container_width=True)
        download_button([p.to_dict() for p in felt], "inflation_ressentie")

with tab_nantes:
    code = settings.nantes_code_insee
    key = repo.catalog["population"].cache_key(code)
    pop = guarded("la population de Nantes", key, repo.get_population_timeseries)
    if pop:
        snap = repo.get_latest_snapshot()
        c1, c2, c3 = st.columns(3)
        c1.metric("Population", format_compact_fr(snap.population))
        c2.metric("Âge médian", f"{format_number_fr(snap.median_age or 0, 1)} ans")
        c3.metric("Croissance annuelle", f"{format_number_fr(snap.growth_rate or 0, 2)} %")
        st.dataframe(to_frame(pop, "population"), use_container_width=True)
        st.dataframe(pd.DataFrame(repo.get_age_group_shares_timeseries()), use_container_width=True)
        download_button([p.to_dict() for p in pop], f"population_{code}")

    foreign_key = repo.catalog["nantes_foreign"].cache_key()
    foreign = guarded("la population étrangère", foreign_key, repo.get_nantes_foreign_population_timeseries)
    if foreign:
        latest = repo.get_latest_nantes_foreign_stats()
        c1, c2 = st.columns(2)
        c1.metric(f"Étrangers ({latest['year']})", format_compact_fr(latest["foreigners"]),
                  f"{format_number_fr(latest['foreigners_percent'], 1)} %", delta_color="off")
        c2.metric(f"Immigrés ({latest['year']})", format_compact_fr(latest["immigrants"]),
                  f"{format_number_fr(latest['immigrants_percent'], 1)} %", delta_color="off")
        st.dataframe(pd.DataFrame(repo.get_nantes_top_nationalities()), use_container_width=True)
        download_button(foreign, "nantes_population_etrangere")

with tab_france:
    key = repo.catalog["france_population"].cache_key()
    fr = guarded("la population France", key, repo.get_france_population_timeseries)
    if fr:
        change = repo.get_france_population_change()
        if change is not None:
            st.metric("Évolution sur la période", f"{format_number_fr(change.absolute, 2)} M",
                      f"{format_number_fr(change.percent, 1)} %")
        ages = repo.get_france_age_group_shares()
        st.dataframe(pd.DataFrame(ages), use_container_width=True)
        download_button(ages, "france_structure_ages")

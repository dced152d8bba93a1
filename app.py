"""
Channel Sales Dashboard - monthly and weekly revenue, spend and ROAS per channel.
"""

import logging
from datetime import date
from pathlib import Path

import plotly.graph_objects as go
import streamlit as st
from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from salesboard.config import load_settings
from salesboard.engine import SalesEngine
from salesboard.errors import EntryNotFoundError, PersistenceError, ValidationError
from salesboard.frames import metrics_frame, roas_frame, series_frame, timeline_frame
from salesboard.models import Channel, Granularity
from salesboard.storage import select_adapter

st.set_page_config(page_title="Channel Sales Dashboard", page_icon="📈", layout="wide")

logger = logging.getLogger(__name__)

COLORS = {Channel.TRENDYOL.value: "#f27a1a", Channel.HEPSIBURADA.value: "#ff6000"}
DEMO_IMPORT = "\n".join([
    "# 2025 August split example",
    "2025-W31,Trendyol,12541,1097,50",
    "2025-W31,Hepsiburada,6865,297,24",
])


@st.cache_resource(show_spinner=False)
def get_engine():
    """Build the engine once per process with the configured storage.

    Returns the engine and the load error message, if any.
    """
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    adapter = select_adapter(settings)
    engine = SalesEngine(adapter)
    try:
        engine.load()
    except PersistenceError as e:
        logger.error("Failed to load stored data: %s", e)
        return engine, str(e)
    return engine, None


def report_write(result, action: str) -> None:
    if result.ok:
        st.success(f"{action}: saved.")
        return
    failed = ", ".join(w.describe() for w, _ in result.failed)
    st.warning(f"{action}: applied, but not saved yet ({failed}). Use 'Retry saving' to try again.")


def line_chart(frame, title: str) -> go.Figure:
    fig = go.Figure()
    for column in frame.columns:
        fig.add_trace(go.Scatter(
            x=list(frame.index), y=list(frame[column]), mode="lines+markers",
            name=column, line=dict(color=COLORS.get(column), width=2),
        ))
    fig.update_layout(title=title, height=300, margin=dict(l=10, r=10, t=40, b=10))
    return fig


def render_daily_form(engine: SalesEngine) -> None:
    st.subheader("Daily entry")
    with st.form("daily_entry", clear_on_submit=True):
        col1, col2, col3, col4, col5 = st.columns(5)
        day = col1.date_input("Date", value=date.today())
        channel = col2.selectbox("Channel", [c.value for c in Channel])
        revenue = col3.number_input("Revenue", value=0.0, step=100.0)
        spend = col4.number_input("Ad spend", value=0.0, step=10.0)
        units = col5.number_input("Units", value=0, step=1)
        submitted = st.form_submit_button("Add")
    if submitted:
        try:
            result = engine.add_daily_entry(day, channel, str(revenue), str(spend), units)
        except ValidationError as e:
            st.error(f"Invalid entry: {e}")
        else:
            report_write(result, "Daily entry added")


def render_daily_entries(engine: SalesEngine) -> None:
    entries = engine.daily_entries()
    if not entries:
        st.info("No daily entries yet.")
        return
    for entry in reversed(entries):
        col1, col2 = st.columns([20, 1])
        col1.write(
            f"{entry.date.isoformat()} · {entry.channel.value} · revenue {entry.revenue} · "
            f"spend {entry.spend} · units {entry.units}"
        )
        if col2.button("🗑️", key=f"del_{entry.id}"):
            try:
                result = engine.delete_daily_entry(entry.id)
            except EntryNotFoundError:
                st.error("Entry no longer exists.")
            else:
                report_write(result, "Daily entry deleted")
                st.rerun()


def load_demo() -> None:
    st.session_state.import_text = DEMO_IMPORT


def render_import(engine: SalesEngine) -> None:
    st.subheader("Bulk weekly import (CSV)")
    if "import_text" not in st.session_state:
        st.session_state.import_text = ""
    text = st.text_area("periodId,channel,revenue,spend,units", key="import_text", height=120)
    col1, col2, col3 = st.columns(3)
    if col1.button("Import weekly"):
        result = engine.import_weekly(text)
        st.info(f"Weekly import: {result.succeeded} lines applied, {result.failed} lines skipped.")
        if result.write is not None and not result.write.ok:
            report_write(result.write, "Weekly import")
    col2.button("Load demo", on_click=load_demo)
    if col3.button("Reset weekly"):
        report_write(engine.reset_periods(Granularity.WEEKLY), "Weekly periods reset")


def render_charts(engine: SalesEngine, granularity: Granularity) -> None:
    periods = engine.periods(granularity)
    if not periods:
        st.info(f"No {granularity.value.lower()} data yet.")
        return
    rows = engine.derived_metrics(granularity)

    col1, col2 = st.columns(2)
    col1.plotly_chart(line_chart(series_frame(periods, "revenue"), "Revenue"), use_container_width=True)
    col2.plotly_chart(line_chart(series_frame(periods, "spend"), "Ad spend"), use_container_width=True)
    col1.plotly_chart(line_chart(series_frame(periods, "units"), "Units"), use_container_width=True)
    col2.plotly_chart(line_chart(roas_frame(rows), "ROAS"), use_container_width=True)

    st.dataframe(metrics_frame(rows), use_container_width=True, hide_index=True)

    if granularity is Granularity.WEEKLY:
        timeline = timeline_frame(periods).set_index("period")
        st.plotly_chart(line_chart(timeline, "Weekly timeline (all channels)"), use_container_width=True)


def main():
    engine, load_error = get_engine()
    st.title("Channel Sales Dashboard")

    if load_error:
        st.error(f"Could not load stored data: {load_error}")
    if not engine.in_sync:
        col1, col2 = st.columns([4, 1])
        col1.warning(f"{len(engine.pending_writes)} changes not saved to storage.")
        if col2.button("Retry saving"):
            report_write(engine.flush(), "Retry")

    mode = st.radio("View", [g.value for g in Granularity], index=1, horizontal=True)
    render_charts(engine, Granularity(mode))

    st.markdown("---")
    render_daily_form(engine)
    render_daily_entries(engine)
    st.markdown("---")
    render_import(engine)


if __name__ == "__main__":
    main()

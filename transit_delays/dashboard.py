# --------------------------
# Imports & Page Config
# --------------------------
import streamlit as st
st.set_page_config(page_title="Transit Delay Dashboard", layout="wide", page_icon="🚌")

import pandas as pd
import plotly.express as px
from typing import Any, Dict, List, Optional

from transit_delays.client import DelayApiClient, DelayApiError
from transit_delays.config import get_settings
from transit_delays.dashboard_state import clamp_page, pop_flash, push_flash
from transit_delays.models import DELAY_REASONS

# --------------------------
# Backend Configuration
# --------------------------
API_URL = get_settings().api_url
PAGE_SIZE = 10


@st.cache_resource
def get_client() -> DelayApiClient:
    return DelayApiClient(API_URL)


client = get_client()


# --------------------------
# Helper Functions
# --------------------------
def show_error(prefix: str, err: DelayApiError):
    """Show the API message verbatim with a manual retry."""
    st.error(f"{prefix}: {err}")
    if st.button("🔄 Retry", key=f"retry_{prefix}"):
        st.rerun()


def load_aggregates() -> Optional[List[Dict[str, Any]]]:
    try:
        return client.get_delays_by_neighborhood().get("data", [])
    except DelayApiError as e:
        show_error("Error loading chart data", e)
        return None


def load_page(page: int, status: str) -> Optional[Dict[str, Any]]:
    try:
        return client.get_all_delays(page=page, limit=PAGE_SIZE, status=status)
    except DelayApiError as e:
        show_error("Error loading delays", e)
        return None


# --------------------------
# Session State
# --------------------------
if "page" not in st.session_state:
    st.session_state.page = 1
if "status_filter" not in st.session_state:
    st.session_state.status_filter = "active"
if "pending_delete" not in st.session_state:
    st.session_state.pending_delete = None

st.title("🚌 Transit Delay Dashboard")

flash = pop_flash(st.session_state)
if flash:
    level, message = flash
    getattr(st, level)(message)

with st.sidebar.expander("🔌 Backend Status", expanded=False):
    try:
        health = client.health()
        st.success(f"✅ {health.get('message', 'Connected')}")
    except DelayApiError as e:
        st.error(f"❌ Backend offline: {e}")

if st.sidebar.button("🔄 Refresh"):
    st.rerun()

# --------------------------
# Delays by Neighborhood
# --------------------------
st.header("📊 Active Delays by Neighborhood")
aggregates = load_aggregates()

if aggregates:
    df = pd.DataFrame(aggregates)

    col1, col2, col3 = st.columns(3)
    col1.metric("Active delays", int(df["count"].sum()))
    col2.metric("Neighborhoods", len(df))
    col3.metric("Most affected", df.iloc[0]["neighborhood"])

    chart_type = st.radio("Chart", ["Bar Chart", "Pie Chart"], horizontal=True)
    if chart_type == "Bar Chart":
        fig = px.bar(
            df,
            x="neighborhood",
            y="count",
            hover_data=["totalDelayMinutes", "avgDelayMinutes"],
            labels={"neighborhood": "Neighborhood", "count": "Number of Delays"},
        )
    else:
        fig = px.pie(df, names="neighborhood", values="count")
    st.plotly_chart(fig, use_container_width=True)
elif aggregates is not None:
    st.info("No active delays reported.")

# --------------------------
# Report a Delay
# --------------------------
st.header("📝 Report a Delay")
with st.form("delay_form", clear_on_submit=True):
    form_col1, form_col2 = st.columns(2)
    route_number = form_col1.text_input("Route Number *", placeholder="e.g., Route 42")
    neighborhood = form_col2.text_input("Neighborhood *", placeholder="e.g., Downtown")
    delay_minutes = form_col1.number_input("Delay (Minutes) *", min_value=0, step=1, value=0)
    reason = form_col2.selectbox("Reason *", ["Select a reason"] + DELAY_REASONS)
    bus_id = form_col1.text_input("Bus ID *", placeholder="e.g., BUS-1234")
    submitted = st.form_submit_button("Report Delay")

if submitted:
    try:
        client.create_delay({
            "routeNumber": route_number,
            "neighborhood": neighborhood,
            "delayMinutes": int(delay_minutes),
            "reason": "" if reason == "Select a reason" else reason,
            "busId": bus_id,
        })
        push_flash(st.session_state, "Delay reported successfully")
        st.rerun()
    except DelayApiError as e:
        st.error(str(e))

# --------------------------
# Delay Reports
# --------------------------
st.header("📋 Delay Reports")
status_options = ["active", "resolved", "all"]
status_filter = st.selectbox(
    "Filter",
    status_options,
    index=status_options.index(st.session_state.status_filter),
    format_func=str.capitalize
)
if status_filter != st.session_state.status_filter:
    st.session_state.status_filter = status_filter
    st.session_state.page = 1
    st.rerun()

result = load_page(st.session_state.page, st.session_state.status_filter)

if result is not None:
    delays = result.get("data", [])
    pagination = result.get("pagination", {})

    # Deleting or resolving the last row of the last page leaves us past the end
    last_valid_page = clamp_page(st.session_state.page, pagination)
    if not delays and last_valid_page != st.session_state.page:
        st.session_state.page = last_valid_page
        st.rerun()

    if not delays:
        st.info("No delays found.")

    for delay in delays:
        row = st.columns([2, 2, 1, 2, 2, 1, 2])
        row[0].write(delay["routeNumber"])
        row[1].write(delay["neighborhood"])
        row[2].write(f"{delay['delayMinutes']} min")
        row[3].write(delay["reason"])
        row[4].write(delay["busId"])
        row[5].write(delay["status"])

        with row[6]:
            if delay["status"] == "active" and st.button("✓ Resolve", key=f"resolve_{delay['id']}"):
                try:
                    client.resolve_delay(delay["id"])
                    push_flash(st.session_state, "Delay marked as resolved")
                    st.rerun()
                except DelayApiError as e:
                    st.error(f"Error resolving delay: {e}")
            if st.button("🗑️ Delete", key=f"delete_{delay['id']}"):
                st.session_state.pending_delete = delay["id"]

        if st.session_state.pending_delete == delay["id"]:
            st.warning("Are you sure you want to delete this resolved issue?")
            confirm_col, cancel_col = st.columns(2)
            if confirm_col.button("Yes, delete", key=f"confirm_{delay['id']}"):
                try:
                    client.delete_delay(delay["id"])
                    st.session_state.pending_delete = None
                    push_flash(st.session_state, "Resolved issue deleted successfully")
                    st.rerun()
                except DelayApiError as e:
                    st.error(f"Error deleting delay: {e}")
            if cancel_col.button("Cancel", key=f"cancel_{delay['id']}"):
                st.session_state.pending_delete = None
                st.rerun()

    if pagination.get("totalPages", 0) > 1:
        prev_col, info_col, next_col = st.columns([1, 2, 1])
        if prev_col.button("← Previous", disabled=not pagination.get("hasPrevPage")):
            st.session_state.page -= 1
            st.rerun()
        info_col.markdown(
            f"Page {pagination['currentPage']} of {pagination['totalPages']} "
            f"({pagination['totalItems']} total)"
        )
        if next_col.button("Next →", disabled=not pagination.get("hasNextPage")):
            st.session_state.page += 1
            st.rerun()

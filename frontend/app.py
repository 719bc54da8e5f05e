import os

import streamlit as st

from utils.api_client import APIClient
from components.charts import ChartBuilder, format_multiple
from components.freshness import render_freshness_badge

st.set_page_config(
    page_title="Bitcoin Price Gauge",
    page_icon="₿",
    layout="wide",
    initial_sidebar_state="expanded"
)

HORIZON_TITLES = {
    "365d": "365-day (daily SMA)",
    "30d": "30-day (hourly SMA)",
}


def init_session_state():
    defaults = {
        'backend_url': os.environ.get('GAUGE_BACKEND_URL', 'http://localhost:8000'),
        'connected': False,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

init_session_state()


def get_api_client(url: str) -> APIClient:
    return APIClient(url)

client = get_api_client(st.session_state.backend_url)


@st.cache_data(ttl=300, show_spinner=False)
def load_history(backend_url: str):
    return APIClient(backend_url).history_frames()


def render_sidebar():
    with st.sidebar:
        st.markdown("### Backend")
        url = st.text_input("API URL", value=st.session_state.backend_url)
        if url != st.session_state.backend_url:
            st.session_state.backend_url = url
            st.rerun()

        st.session_state.connected = client.is_connected()
        if st.session_state.connected:
            st.success("Connected")
        else:
            st.error("Backend offline")

        if st.button("Refresh", use_container_width=True):
            load_history.clear()
            st.rerun()

        st.markdown("---")
        st.caption(
            "Percentile ranks today's price multiple against the full history "
            "of multiples. Vol-adjusted percentile scales each log multiple by "
            "the rolling volatility of the prior window."
        )


def render_horizon(name: str, horizon: dict):
    st.plotly_chart(
        ChartBuilder.create_gauge_chart(horizon, HORIZON_TITLES.get(name, name)),
        use_container_width=True,
    )

    color = ChartBuilder.label_color(horizon.get("label"))
    st.markdown(
        f"<div style='text-align:center; font-size:18px; color:{color}; font-weight:600;'>"
        f"{horizon.get('label', '')}</div>",
        unsafe_allow_html=True,
    )

    sma = horizon.get("sma")
    higher = horizon.get("higherThanPercent")
    c1, c2, c3 = st.columns(3)
    c1.metric("Multiple", format_multiple(horizon.get("multiple")))
    c2.metric("Trailing SMA", f"${sma:,.0f}" if sma is not None else "n/a")
    c3.metric("Higher than", f"{higher * 100:.1f}%" if higher is not None else "n/a")
    st.caption(
        f"SMA as of {horizon.get('smaAsOfUTC')} · {horizon.get('sampleSize')} buckets · "
        f"{horizon.get('countHigherInWindow')} higher in last {horizon.get('windowLength')}"
    )


def render_summary():
    summary = client.summary()
    if "error" in summary:
        st.error(f"Summary unavailable: {summary['error']}")
        return

    left, right = st.columns([3, 1])
    with left:
        st.metric("BTC / USD", f"${summary['currentPriceUSD']:,.2f}")
    with right:
        render_freshness_badge(summary.get("priceAsOfUTC"), summary.get("priceSource", ""))

    horizons = summary.get("horizons", {})
    columns = st.columns(len(horizons) or 1)
    for column, (name, horizon) in zip(columns, horizons.items()):
        with column:
            render_horizon(name, horizon)


def render_history():
    frames = load_history(st.session_state.backend_url)
    if not frames:
        st.info("History unavailable")
        return

    tabs = st.tabs([HORIZON_TITLES.get(name, name) for name in frames])
    for tab, (name, df) in zip(tabs, frames.items()):
        with tab:
            st.plotly_chart(
                ChartBuilder.create_history_chart(df, title=HORIZON_TITLES.get(name, name)),
                use_container_width=True,
            )
            data = client.export_history(name, "csv")
            if data:
                st.download_button(
                    "Download CSV",
                    data=data,
                    file_name=f"history_{name}.csv",
                    mime="text/csv",
                    key=f"export_{name}",
                )


def main():
    render_sidebar()

    st.title("Bitcoin Price Gauge")
    if not st.session_state.connected:
        st.warning("Start the backend with: uvicorn main:app --reload (from backend/)")
        return

    render_summary()
    st.markdown("---")
    st.subheader("History")
    render_history()


if __name__ == "__main__":
    main()

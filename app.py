import logging

import streamlit as st

from agile_prices.config import REFRESH_INTERVAL_SECONDS
from agile_prices.presentation import (
    FetchStatus,
    SlotStyle,
    card_text,
    chart_frame,
    format_price,
    format_time,
    local_now,
    price_chart,
    same_day_slots,
    slot_style,
    view_status,
)
from agile_prices.price_repository import FetchError, PriceRepository
from agile_prices.refresh_loop import RefreshLoop
from agile_prices.streamlit_sink import StreamlitDisplaySink, slot_anchor

logger = logging.getLogger(__name__)

STYLE_COLOURS = {
    SlotStyle.CURRENT: "#3b82f6",
    SlotStyle.PAST: "#9ca3af",
    SlotStyle.FAVOURABLE: "#16a34a",
    SlotStyle.DEFAULT: "inherit",
}


if "repository" not in st.session_state:
    st.session_state["repository"] = PriceRepository()
    st.session_state["sink"] = StreamlitDisplaySink()
    st.session_state["refresh_loop"] = RefreshLoop(st.session_state["sink"])
repository = st.session_state["repository"]
sink = st.session_state["sink"]
refresh_loop = st.session_state["refresh_loop"]

st.set_page_config(
    page_title=sink.page_title(),
    page_icon="⚡",
    layout="wide"
)


def load_prices():
    st.session_state["fetch_status"] = FetchStatus.LOADING
    with st.spinner("Loading prices..."):
        try:
            series = repository.fetch()
        except FetchError as e:
            logger.error(f"Price fetch failed: {e}")
            st.session_state["fetch_status"] = FetchStatus.ERROR
            refresh_loop.set_series(None)
            return
    st.session_state["fetch_status"] = FetchStatus.LOADED
    refresh_loop.set_series(series)


if "fetch_status" not in st.session_state:
    load_prices()

st.title("Agile Prices ⚡")


def render_card(title, slot, colour="inherit"):
    with st.container(border=True):
        st.subheader(title)
        price, time_range = card_text(slot)
        st.markdown(f"<p style='color:{colour};font-size:1.25rem;font-weight:700'>{price}</p>",
                    unsafe_allow_html=True)
        if time_range is not None:
            st.caption(time_range)


def render_history(slots, current_slot, now):
    with st.container(border=True):
        st.subheader("Price History")
        with st.container(height=384):
            for slot in slots:
                colour = STYLE_COLOURS[slot_style(slot, current_slot, now)]
                st.markdown(
                    f"<div id='{slot_anchor(slot.key)}' style='color:{colour}'>"
                    f"{format_time(slot.valid_from)} - "
                    f"<b>{format_price(slot.value_inc_vat)}p/kWh</b></div>",
                    unsafe_allow_html=True,
                )


@st.fragment(run_every=REFRESH_INTERVAL_SECONDS)
def dashboard():
    status = view_status(st.session_state["fetch_status"], repository.series)
    if status == FetchStatus.LOADING:
        st.write("Loading prices...")
        return
    if status == FetchStatus.ERROR:
        st.error("Error fetching prices")
        return

    resolved = refresh_loop.tick()
    now = local_now()
    today = same_day_slots(repository.series, now)

    col_cards, col_history = st.columns([1, 2])
    with col_cards:
        render_card("Current Price", resolved.current_slot, STYLE_COLOURS[SlotStyle.CURRENT])
        render_card("Next Price", resolved.next_slot)
    with col_history:
        render_history(today, resolved.current_slot, now)

    st.altair_chart(price_chart(chart_frame(today, now)), use_container_width=True)
    sink.flush()


dashboard()

if st.button("Reload prices"):
    load_prices()
    st.rerun()

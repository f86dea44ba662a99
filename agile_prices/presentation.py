"""View helpers for the price dashboard.

Everything here is a pure function of the fetched series, the resolved state
and the wall clock; the Streamlit script only lays the results out.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

import altair as alt
import pandas as pd

from agile_prices.config import (
    CURRENT_COLOUR,
    DISPLAY_TIMEZONE,
    FUTURE_COLOUR,
    FUTURE_NEGATIVE_COLOUR,
    PAST_COLOUR,
    PAST_NEGATIVE_COLOUR,
    SVT_RATE,
)
from agile_prices.price_repository import PriceSeries, PriceSlot

UNKNOWN = "Unknown"


class FetchStatus(Enum):
    LOADING = "loading"
    ERROR = "error"
    LOADED = "loaded"


class SlotStyle(Enum):
    CURRENT = "current"
    PAST = "past"
    FAVOURABLE = "favourable"
    DEFAULT = "default"


def local_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz=DISPLAY_TIMEZONE)


def view_status(fetch_status: FetchStatus, series: Optional[PriceSeries]) -> FetchStatus:
    """Collapse the fetch state and the data on hand into what to show."""
    if fetch_status == FetchStatus.ERROR:
        return FetchStatus.ERROR
    if series is None:
        return FetchStatus.LOADING
    return FetchStatus.LOADED

# ---------------------------
# FORMATTING
# ---------------------------

def format_price(value: float) -> str:
    # Halves round up, as the tariff site shows them
    return str(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_time(ts: pd.Timestamp) -> str:
    return pd.Timestamp(ts).tz_convert(DISPLAY_TIMEZONE).strftime("%H:%M")


def format_time_range(slot: PriceSlot) -> str:
    return f"{format_time(slot.valid_from)} - {format_time(slot.valid_to)}"


def display_label(slot: PriceSlot) -> str:
    """Tab title for a slot, e.g. '5.00p (10:00)'."""
    return f"{format_price(slot.value_inc_vat)}p ({format_time(slot.valid_from)})"


def card_text(slot: Optional[PriceSlot]) -> tuple[str, Optional[str]]:
    """
    Text for a price card.

    Returns
    -------
    tuple of (str, str or None)
        Price in p/kWh and the slot's time range, or ("Unknown", None) if
        there is no slot.
    """
    if slot is None:
        return UNKNOWN, None
    return f"{format_price(slot.value_inc_vat)} p/kWh", format_time_range(slot)

# ---------------------------
# HISTORY LIST
# ---------------------------

def same_day_slots(series: PriceSeries, now: pd.Timestamp) -> list[PriceSlot]:
    """Slots starting on the same local calendar day as `now`."""
    today = pd.Timestamp(now).tz_convert(DISPLAY_TIMEZONE).date()
    return [
        slot for slot in series
        if slot.valid_from.tz_convert(DISPLAY_TIMEZONE).date() == today
    ]


def slot_style(slot: PriceSlot, current_slot: Optional[PriceSlot], now: pd.Timestamp) -> SlotStyle:
    if current_slot is not None and slot == current_slot:
        return SlotStyle.CURRENT
    if slot.valid_to < now:
        return SlotStyle.PAST
    if slot.value_inc_vat <= 0:
        return SlotStyle.FAVOURABLE
    return SlotStyle.DEFAULT

# ---------------------------
# CHART
# ---------------------------

def bar_colour(is_current: bool, is_past: bool, price: float) -> str:
    if is_current:
        return CURRENT_COLOUR
    if is_past:
        return PAST_NEGATIVE_COLOUR if price < 0 else PAST_COLOUR
    return FUTURE_NEGATIVE_COLOUR if price < 0 else FUTURE_COLOUR


def chart_frame(slots: list[PriceSlot], now: pd.Timestamp) -> pd.DataFrame:
    """
    Build one row per slot for the bar chart.

    Returns
    -------
    pd.DataFrame with columns:
        - time: slot start
        - end: slot end
        - label: slot start as HH:MM
        - range: slot time range, for the tooltip
        - price: unit rate inc. VAT (p/kWh)
        - is_current, is_past
        - colour
    """
    rows = []
    for slot in slots:
        is_current = slot.contains(now)
        is_past = now > slot.valid_to
        rows.append({
            "time": slot.valid_from,
            "end": slot.valid_to,
            "label": format_time(slot.valid_from),
            "range": format_time_range(slot),
            "price": slot.value_inc_vat,
            "is_current": is_current,
            "is_past": is_past,
            "colour": bar_colour(is_current, is_past, slot.value_inc_vat),
        })
    return pd.DataFrame(rows, columns=["time", "end", "label", "range", "price", "is_current", "is_past", "colour"])


def price_chart(frame: pd.DataFrame, height: int = 300) -> alt.LayerChart:
    bars = (
        alt.Chart(frame)
        .mark_bar()
        .encode(
            # Bars span the slot instants so repeated local times stay apart
            x=alt.X("time:T", title="Time", axis=alt.Axis(format="%H:%M")),
            x2="end:T",
            y=alt.Y("price:Q", title="Price (p/kWh)"),
            color=alt.Color("colour:N", scale=None),
            tooltip=[
                alt.Tooltip("range:N", title="Slot"),
                alt.Tooltip("price:Q", title="p/kWh", format=".2f"),
            ],
        )
    )

    svt = pd.DataFrame({"price": [SVT_RATE], "text": ["SVT"]})
    rule = alt.Chart(svt).mark_rule(strokeDash=[3, 3]).encode(y="price:Q")
    rule_label = (
        alt.Chart(svt)
        .mark_text(align="left", dx=4, dy=-6)
        .encode(y="price:Q", text="text:N")
    )

    return alt.layer(bars, rule, rule_label).properties(height=height)

import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from agile_prices.price_repository import PriceSeries, PriceSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedState:
    """Which slot is active right now, and which one follows it"""
    current_index: Optional[int] = None
    current_slot: Optional[PriceSlot] = None
    next_slot: Optional[PriceSlot] = None


EMPTY_STATE = ResolvedState()


def resolve(series: PriceSeries, now: pd.Timestamp) -> ResolvedState:
    """
    Find the slot active at `now` and the slot after it.

    Parameters
    ----------
    series : tuple of PriceSlot
        Slots sorted ascending by valid_to.
    now : pd.Timestamp
        Timezone-aware instant to resolve.

    Returns
    -------
    ResolvedState
        With all fields None if `now` is not inside any slot. A slot's
        start is inclusive and its end exclusive.
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone aware")

    index = None
    for i, slot in enumerate(series):
        if not slot.contains(now):
            continue
        if index is None:
            index = i
        else:
            # Overlapping data; the first match stays current
            logger.warning(f"Slots {index} and {i} both contain {now}, keeping slot {index}")
            break

    if index is None:
        return EMPTY_STATE

    next_slot = series[index + 1] if index + 1 < len(series) else None
    return ResolvedState(current_index=index, current_slot=series[index], next_slot=next_slot)

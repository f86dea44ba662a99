import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import requests

from agile_prices.config import PAGE_SIZE, REQUEST_TIMEOUT_SECONDS, TARIFF_URL

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the tariff endpoint cannot provide a usable page of prices."""


@dataclass(frozen=True)
class PriceSlot:
    """One half-hour unit rate, active over [valid_from, valid_to)."""
    valid_from: pd.Timestamp
    valid_to: pd.Timestamp
    value_inc_vat: float
    value_ext_vat: float
    payment_method: Optional[str] = None

    @property
    def key(self) -> str:
        return self.valid_from.isoformat()

    def contains(self, now: pd.Timestamp) -> bool:
        return self.valid_from <= now < self.valid_to


PriceSeries = tuple[PriceSlot, ...]

# ---------------------------
# PARSING
# ---------------------------

def parse_slot(record: dict) -> PriceSlot:
    """
    Build a PriceSlot from one record of the `results` list.

    Raises KeyError, TypeError or ValueError if the record is malformed.
    """
    valid_from = pd.to_datetime(record["valid_from"], utc=True)
    valid_to = pd.to_datetime(record["valid_to"], utc=True)
    if pd.isna(valid_from) or pd.isna(valid_to):
        raise ValueError("slot has an empty timestamp")
    if valid_from >= valid_to:
        raise ValueError(f"slot ends before it starts: {valid_from} >= {valid_to}")
    return PriceSlot(
        valid_from=valid_from,
        valid_to=valid_to,
        value_inc_vat=float(record["value_inc_vat"]),
        value_ext_vat=float(record["value_ext_vat"]),
        payment_method=record.get("payment_method"),
    )


def parse_series(body) -> PriceSeries:
    """
    Parse a tariff page into a series sorted by slot end time.

    Records that cannot be parsed are skipped and logged; a body without a
    `results` list raises FetchError.
    """
    if not isinstance(body, dict) or not isinstance(body.get("results"), list):
        raise FetchError("Response body has no 'results' list")

    slots = []
    for i, record in enumerate(body["results"]):
        try:
            slots.append(parse_slot(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed price record {i}: {e!r}")

    # Sort on the parsed instants, not the raw ISO strings
    slots.sort(key=lambda slot: slot.valid_to)
    return tuple(slots)


def series_to_frame(series: PriceSeries) -> pd.DataFrame:
    """
    Convert a series to a DataFrame indexed by slot start.

    Returns
    -------
    pd.DataFrame indexed by valid_from, with columns:
        - valid_to
        - value_inc_vat
        - value_ext_vat
    """
    df = pd.DataFrame({
        "valid_to": [slot.valid_to for slot in series],
        "value_inc_vat": [slot.value_inc_vat for slot in series],
        "value_ext_vat": [slot.value_ext_vat for slot in series],
    }, index=pd.DatetimeIndex([slot.valid_from for slot in series], name="valid_from"))
    return df

# ---------------------------
# REPOSITORY
# ---------------------------

class PriceRepository:
    """Fetches the first page of unit rates and holds the latest good result"""

    def __init__(self, url: str = TARIFF_URL, page_size: int = PAGE_SIZE,
                 timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.url = url
        self.page_size = page_size
        self.timeout = timeout
        self.series: Optional[PriceSeries] = None

    def fetch(self) -> PriceSeries:
        """
        Fetch one page of unit rates.

        The new series replaces the previous one wholesale. On failure the
        previous series is left untouched and FetchError is raised.
        """
        try:
            r = requests.get(self.url, params={"page_size": self.page_size}, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch prices from {self.url}: {e}")
            raise FetchError(f"Failed to fetch prices: {e}") from e
        except ValueError as e:
            logger.error(f"Price response was not valid JSON: {e}")
            raise FetchError("Price response was not valid JSON") from e

        series = parse_series(body)
        logger.info(f"Fetched {len(series)} price slots (count={body.get('count')}, "
                    f"more pages={body.get('next') is not None})")
        self.series = series
        return series

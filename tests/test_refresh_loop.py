import asyncio

import pandas as pd
import pytest

from agile_prices.price_repository import PriceSlot
from agile_prices.refresh_loop import ACTIVE, IDLE, LoggingDisplaySink, RefreshLoop


class RecordingSink:
    def __init__(self):
        self.titles = []
        self.scrolls = []

    def set_title(self, label):
        self.titles.append(label)

    def scroll_to_slot(self, key):
        self.scrolls.append(key)


class FakeClock:
    def __init__(self, now):
        self.now = pd.Timestamp(now, tz="UTC")
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.now


def make_slot(start, end, price):
    return PriceSlot(valid_from=pd.Timestamp(start, tz="UTC"), valid_to=pd.Timestamp(end, tz="UTC"),
                     value_inc_vat=price, value_ext_vat=price / 1.05)


@pytest.fixture
def series():
    return (
        make_slot("2024-01-15 10:00", "2024-01-15 10:30", 5.0),
        make_slot("2024-01-15 10:30", "2024-01-15 11:00", 3.0),
    )


@pytest.fixture
def event_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


def test_tick_without_series_has_no_side_effects():
    sink = RecordingSink()
    loop = RefreshLoop(sink, clock=FakeClock("2024-01-15 10:15"))
    assert loop.tick() is None
    assert sink.titles == []
    assert sink.scrolls == []


def test_title_set_once_for_same_slot(series):
    sink = RecordingSink()
    clock = FakeClock("2024-01-15 10:05")
    loop = RefreshLoop(sink, clock=clock)
    loop.set_series(series)

    loop.tick()
    clock.now = pd.Timestamp("2024-01-15 10:15", tz="UTC")
    resolved = loop.tick()

    assert resolved.current_slot == series[0]
    assert sink.titles == ["5.00p (10:00)"]
    assert sink.scrolls == [series[0].key]


def test_title_changes_when_slot_changes(series):
    sink = RecordingSink()
    loop = RefreshLoop(sink)
    loop.set_series(series)

    loop.tick(pd.Timestamp("2024-01-15 10:15", tz="UTC"))
    loop.tick(pd.Timestamp("2024-01-15 10:30", tz="UTC"))

    assert sink.titles == ["5.00p (10:00)", "3.00p (10:30)"]
    assert sink.scrolls == [series[0].key, series[1].key]
    assert loop.applied_label == "3.00p (10:30)"


def test_no_current_slot_leaves_title_alone(series):
    sink = RecordingSink()
    loop = RefreshLoop(sink)
    loop.set_series(series)

    resolved = loop.tick(pd.Timestamp("2024-01-15 12:00", tz="UTC"))

    assert resolved.current_slot is None
    assert loop.resolved is resolved
    assert sink.titles == []


def test_failed_fetch_stops_side_effects(series):
    sink = RecordingSink()
    loop = RefreshLoop(sink)
    loop.set_series(None)
    assert loop.tick(pd.Timestamp("2024-01-15 10:15", tz="UTC")) is None
    assert sink.titles == []

    loop.set_series(series)
    loop.tick(pd.Timestamp("2024-01-15 10:15", tz="UTC"))
    assert sink.titles == ["5.00p (10:00)"]


def test_start_ticks_immediately_and_periodically(series, event_loop):
    sink = RecordingSink()
    clock = FakeClock("2024-01-15 10:15")
    loop = RefreshLoop(sink, interval=0.01, clock=clock)
    loop.set_series(series)

    loop.start(event_loop)
    assert loop.state == ACTIVE
    assert clock.calls == 1
    assert sink.titles == ["5.00p (10:00)"]

    event_loop.run_until_complete(asyncio.sleep(0.1))
    assert clock.calls > 1
    assert sink.titles == ["5.00p (10:00)"]
    loop.stop()


def test_start_twice_is_noop(series, event_loop):
    clock = FakeClock("2024-01-15 10:15")
    loop = RefreshLoop(RecordingSink(), interval=10, clock=clock)
    loop.set_series(series)

    loop.start(event_loop)
    loop.start(event_loop)

    assert clock.calls == 1
    loop.stop()


def test_stop_cancels_pending_tick(series, event_loop):
    clock = FakeClock("2024-01-15 10:15")
    loop = RefreshLoop(RecordingSink(), interval=0.01, clock=clock)
    loop.set_series(series)

    loop.start(event_loop)
    loop.stop()
    event_loop.run_until_complete(asyncio.sleep(0.1))

    assert loop.state == IDLE
    assert clock.calls == 1


def test_new_series_while_active_ticks_immediately(series, event_loop):
    sink = RecordingSink()
    clock = FakeClock("2024-01-15 10:15")
    loop = RefreshLoop(sink, interval=10, clock=clock)

    loop.start(event_loop)
    assert sink.titles == []

    loop.set_series(series)
    assert clock.calls == 1
    assert sink.titles == ["5.00p (10:00)"]
    loop.stop()


def test_start_uses_running_loop(series):
    sink = RecordingSink()
    loop = RefreshLoop(sink, interval=0.01, clock=FakeClock("2024-01-15 10:15"))
    loop.set_series(series)

    async def run():
        loop.start()
        await asyncio.sleep(0.05)
        loop.stop()

    asyncio.run(run())
    assert sink.titles == ["5.00p (10:00)"]
    assert loop.state == IDLE


def test_logging_sink_keeps_title():
    sink = LoggingDisplaySink()
    sink.set_title("5.00p (10:00)")
    sink.scroll_to_slot("2024-01-15T10:00:00+00:00")
    assert sink.title == "5.00p (10:00)"

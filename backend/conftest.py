# backend/conftest.py
import pytest

from playback.clock import PlaybackClock
from utils.geo_loader import Station


class ManualTicker:
    """Ticker that only fires when the test calls fire()."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class FakeTime:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def tickers():
    return []


@pytest.fixture
def clock(fake_time, tickers):
    def factory(interval, callback):
        ticker = ManualTicker(interval, callback)
        tickers.append(ticker)
        return ticker

    c = PlaybackClock(ticker_factory=factory, time_source=fake_time)
    yield c
    c.shutdown()


@pytest.fixture
def stations():
    return [
        Station(id="jp_onahama", name="Onahama Offshore", lat=36.5, lon=141.0, station_type="offshore"),
        Station(id="21418", name="Northeast Tokyo", lat=38.688, lon=148.769),
        Station(id="41420", name="North Santo Domingo", lat=23.5, lon=-67.3),
        Station(id="45007", name="South Michigan", lat=42.674, lon=-87.026, station_type="lake"),
    ]

import sys
from pathlib import Path

# Ensure package import for tests without an install
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

from gridflex.config import ENV_EVENTS_DISABLED
from gridflex.events.setpoints import SetpointEventBus


@pytest.fixture(autouse=True)
def _no_udp(monkeypatch):
    """Keep tests from broadcasting setpoint events."""
    monkeypatch.setenv(ENV_EVENTS_DISABLED, "1")


@pytest.fixture()
def bus():
    return SetpointEventBus()


@pytest.fixture()
def recorded(bus):
    """Events published on the ``bus`` fixture, in order."""
    events = []
    unsubscribe = bus.subscribe(events.append)
    yield events
    unsubscribe()

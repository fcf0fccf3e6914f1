"""Test configuration for meshcanvas."""

import pytest

from meshcanvas.app.core import AppState
from meshcanvas.app.history import HistoryManager
from meshcanvas.app.point_store import PointStore
from meshcanvas.app.session import CanvasSession
from meshcanvas.types import GradientStop, Point


@pytest.fixture
def state():
    return AppState()


@pytest.fixture
def store(state):
    return PointStore(state)


@pytest.fixture
def history():
    return HistoryManager()


@pytest.fixture
def session():
    s = CanvasSession()
    yield s
    s.close()


@pytest.fixture
def bw_stops():
    """Black-to-white ramp."""
    return [
        GradientStop(id="stop-1", color="#000000", position=0.0),
        GradientStop(id="stop-2", color="#ffffff", position=100.0),
    ]


@pytest.fixture
def make_point():
    """Factory for points with explicit attributes, bypassing the store."""

    def _make(point_id="p", x=0.0, y=0.0, **attrs) -> Point:
        return Point(id=point_id, x=x, y=y, **attrs)

    return _make

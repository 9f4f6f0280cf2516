from __future__ import annotations

from datetime import datetime, timezone

import pytest

from requests_mock import Mocker


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> TimeController:
    return TimeController()


FIXED_NOW = datetime(2025, 7, 20, 6, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW

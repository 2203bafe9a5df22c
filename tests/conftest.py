"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from tensor_showcase.session import SessionState
from tensor_showcase.tensors import NumpyBackend


@pytest.fixture
def backend():
    """Seeded numpy backend."""
    return NumpyBackend(seed=42)


@pytest.fixture
def session():
    """Fresh session state."""
    return SessionState.create()


@pytest.fixture
def fixed_now():
    """Deterministic export timestamp."""
    return datetime(2024, 3, 1, 12, 30, 5, 123456, tzinfo=timezone.utc)


class StepClock:
    """Fake monotonic clock advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def step_clock():
    return StepClock()

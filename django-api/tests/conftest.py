"""Pytest configuration and shared fixtures."""

import datetime

import pytest
from rest_framework.test import APIClient

from scheduling.services import SessionService
from tests.fakes import FakeClock, InMemorySessionStore, RecordingTaskScheduler


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.UTC))


@pytest.fixture
def store(clock) -> InMemorySessionStore:
    return InMemorySessionStore(clock)


@pytest.fixture
def timers() -> RecordingTaskScheduler:
    return RecordingTaskScheduler()


@pytest.fixture
def service(store, timers, clock) -> SessionService:
    return SessionService(store, timers, clock=clock)

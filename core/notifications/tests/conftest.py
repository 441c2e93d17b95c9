"""Pytest fixtures for notification pipeline tests."""

import pytest

from core.notifications.preferences import PreferenceResolver
from core.notifications.tests.fakes import (
    FakeClock,
    FakeDirectory,
    FakeNotificationStore,
    FakeRealtime,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FakeNotificationStore(clock)


@pytest.fixture
def directory():
    directory = FakeDirectory()
    directory.add_user(1, "volunteer", "Alice Volunteer", "alice@example.com", "+15550001", "America/New_York")
    directory.add_user(2, "student", "Brian Student", "brian@example.com", "+25470002", "Asia/Bangkok")
    return directory


@pytest.fixture
def realtime():
    return FakeRealtime()


@pytest.fixture
def resolver(directory):
    return PreferenceResolver(directory, ttl_seconds=300)

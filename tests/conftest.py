from __future__ import annotations

import os
from datetime import datetime
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Memory backend and log mailer keep tests off the filesystem and network
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("MAIL_BACKEND", "log")

from task_tracker.main import app  # noqa: E402
from task_tracker.notifier import get_notifier  # noqa: E402
from task_tracker.repositories import InMemoryRepository, get_repository  # noqa: E402
from task_tracker.service import TaskService  # noqa: E402

from .fakes import FakeNotifier, FixedClock  # noqa: E402

# Wednesday afternoon, mid-month
NOW = datetime(2026, 10, 14, 15, 30, 0)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def service(repo: InMemoryRepository, notifier: FakeNotifier, clock: FixedClock) -> TaskService:
    return TaskService(repo, notifier, clock=clock)


@pytest.fixture()
def client(repo: InMemoryRepository, notifier: FakeNotifier) -> Iterator[TestClient]:
    """
    TestClient bound to a fresh in-memory store and a recording notifier.
    """
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

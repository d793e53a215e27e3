"""Test configuration utilities and shared fixtures."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from clinictariff.backend.app import create_app  # noqa: E402
from clinictariff.backend.app.services.engine import TariffEngine, build_engine  # noqa: E402
from clinictariff.backend.app.storage import InMemoryTariffStore, seed_store  # noqa: E402
from clinictariff.backend.config.schema import EngineSettings  # noqa: E402

# Mid-1404: the seeded 1404 table (31000 / 65000 / 41000) is in force.
DEFAULT_NOW = datetime(2025, 6, 1, 9, 30)


class FakeClock:
    """Deterministic clock that can be advanced by tests."""

    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryTariffStore:
    """Return an in-memory store seeded from the packaged YAML tables."""

    seeded = InMemoryTariffStore()
    seed_store(seeded)
    return seeded


@pytest.fixture()
def empty_store() -> InMemoryTariffStore:
    return InMemoryTariffStore()


@pytest.fixture()
def engine(store: InMemoryTariffStore, clock: FakeClock) -> TariffEngine:
    return build_engine(store, clock=clock, settings=EngineSettings())


@pytest.fixture()
def app(store: InMemoryTariffStore, clock: FakeClock) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(store=store, clock=clock, settings=EngineSettings())
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()

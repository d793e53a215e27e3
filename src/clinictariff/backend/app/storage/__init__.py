"""Storage backends for the tariff engine."""

from .base import TariffStore
from .memory import InMemoryTariffStore
from .seeding import seed_store
from .sqlite import SQLiteTariffStore

__all__ = ["InMemoryTariffStore", "SQLiteTariffStore", "TariffStore", "seed_store"]

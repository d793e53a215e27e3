"""SQLite-backed implementation of :class:`TariffStore`."""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from threading import Lock
from typing import Iterator, Sequence

from clinictariff.backend.app.models.domain import (
    OPEN,
    Factor,
    FactorKind,
    FrozenState,
    Override,
    Service,
    ServiceComponent,
    TariffTier,
    YearFreeze,
)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS services (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL,
        code TEXT,
        hashtagged INTEGER NOT NULL DEFAULT 0,
        flat_price TEXT NOT NULL DEFAULT '0'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS service_components (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        service_id INTEGER NOT NULL REFERENCES services(id),
        kind TEXT NOT NULL,
        coefficient TEXT NOT NULL,
        active INTEGER NOT NULL DEFAULT 1,
        deleted INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS factors (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        kind TEXT NOT NULL,
        tier TEXT NOT NULL,
        financial_year INTEGER NOT NULL,
        value TEXT NOT NULL,
        effective_from TEXT NOT NULL,
        effective_to TEXT,
        active INTEGER NOT NULL DEFAULT 1,
        deleted INTEGER NOT NULL DEFAULT 0,
        frozen INTEGER NOT NULL DEFAULT 0,
        frozen_at TEXT,
        frozen_by TEXT,
        description TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_factors_lookup
        ON factors (kind, tier, financial_year, active, deleted)
    """,
    """
    CREATE TABLE IF NOT EXISTS overrides (
        service_id INTEGER NOT NULL,
        department_id INTEGER NOT NULL,
        technical_factor TEXT,
        professional_factor TEXT,
        active INTEGER NOT NULL DEFAULT 1,
        deleted INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (service_id, department_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS year_freezes (
        financial_year INTEGER PRIMARY KEY,
        frozen_at TEXT NOT NULL,
        frozen_by TEXT NOT NULL,
        factors_frozen INTEGER NOT NULL DEFAULT 0
    )
    """,
)

_FACTOR_COLUMNS = (
    "kind, tier, financial_year, value, effective_from, effective_to, "
    "active, deleted, frozen, frozen_at, frozen_by, description"
)


def _optional_decimal(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _optional_text(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


class SQLiteTariffStore:
    """Persistent store; freezes run as a single conditional ``UPDATE``."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = str(path)
        self._lock = Lock()
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, timeout=30, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        return connection

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        connection = self._connect()
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def _initialise(self) -> None:
        with self._connection() as connection:
            for statement in _SCHEMA:
                connection.execute(statement)

    @staticmethod
    def _decode_factor(row: sqlite3.Row) -> Factor:
        freeze_state = OPEN
        if row["frozen"]:
            freeze_state = FrozenState(
                at=datetime.fromisoformat(row["frozen_at"]),
                by=row["frozen_by"] or "",
            )
        return Factor(
            id=row["id"],
            kind=FactorKind(row["kind"]),
            tier=TariffTier(row["tier"]),
            financial_year=row["financial_year"],
            value=Decimal(row["value"]),
            effective_from=date.fromisoformat(row["effective_from"]),
            effective_to=(
                date.fromisoformat(row["effective_to"]) if row["effective_to"] else None
            ),
            active=bool(row["active"]),
            deleted=bool(row["deleted"]),
            freeze_state=freeze_state,
            description=row["description"],
        )

    @staticmethod
    def _encode_factor(factor: Factor) -> tuple[object, ...]:
        return (
            factor.kind.value,
            factor.tier.value,
            factor.financial_year,
            str(factor.value),
            factor.effective_from.isoformat(),
            factor.effective_to.isoformat() if factor.effective_to else None,
            int(factor.active),
            int(factor.deleted),
            int(factor.is_frozen),
            factor.frozen_at.isoformat() if factor.frozen_at else None,
            factor.frozen_by,
            factor.description,
        )

    @staticmethod
    def _decode_component(row: sqlite3.Row) -> ServiceComponent:
        return ServiceComponent(
            kind=FactorKind(row["kind"]),
            coefficient=Decimal(row["coefficient"]),
            active=bool(row["active"]),
            deleted=bool(row["deleted"]),
        )

    def get_service(self, service_id: int) -> Service | None:
        with self._connection() as connection:
            row = connection.execute(
                "SELECT * FROM services WHERE id = ?", (service_id,)
            ).fetchone()
            if row is None:
                return None
            components = connection.execute(
                "SELECT * FROM service_components WHERE service_id = ? ORDER BY id",
                (service_id,),
            ).fetchall()
        return Service(
            id=row["id"],
            title=row["title"],
            code=row["code"],
            hashtagged=bool(row["hashtagged"]),
            flat_price=Decimal(row["flat_price"]),
            components=tuple(self._decode_component(item) for item in components),
        )

    def find_components(self, service_id: int) -> Sequence[ServiceComponent]:
        with self._connection() as connection:
            rows = connection.execute(
                "SELECT * FROM service_components WHERE service_id = ? ORDER BY id",
                (service_id,),
            ).fetchall()
        return tuple(self._decode_component(row) for row in rows)

    def add_service(self, service: Service) -> Service:
        with self._lock, self._connection() as connection:
            connection.execute(
                "INSERT OR REPLACE INTO services (id, title, code, hashtagged, flat_price) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    service.id,
                    service.title,
                    service.code,
                    int(service.hashtagged),
                    str(service.flat_price),
                ),
            )
            connection.execute(
                "DELETE FROM service_components WHERE service_id = ?", (service.id,)
            )
            connection.executemany(
                "INSERT INTO service_components "
                "(service_id, kind, coefficient, active, deleted) VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        service.id,
                        component.kind.value,
                        str(component.coefficient),
                        int(component.active),
                        int(component.deleted),
                    )
                    for component in service.components
                ],
            )
        return service

    def list_factors(self, financial_year: int | None = None) -> Sequence[Factor]:
        query = "SELECT * FROM factors"
        params: tuple[object, ...] = ()
        if financial_year is not None:
            query += " WHERE financial_year = ?"
            params = (financial_year,)
        with self._connection() as connection:
            rows = connection.execute(query + " ORDER BY id", params).fetchall()
        return [self._decode_factor(row) for row in rows]

    def get_factor(self, factor_id: int) -> Factor | None:
        with self._connection() as connection:
            row = connection.execute(
                "SELECT * FROM factors WHERE id = ?", (factor_id,)
            ).fetchone()
        return self._decode_factor(row) if row is not None else None

    def add_factor(self, factor: Factor) -> Factor:
        with self._lock, self._connection() as connection:
            cursor = connection.execute(
                f"INSERT INTO factors ({_FACTOR_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._encode_factor(factor),
            )
            factor_id = cursor.lastrowid
        stored = self.get_factor(int(factor_id))
        if stored is None:
            raise RuntimeError(f"Factor row {factor_id} vanished after insert")
        return stored

    def replace_factor(self, factor: Factor) -> Factor:
        if factor.id is None:
            raise ValueError("Cannot replace a factor without an identifier")
        assignments = ", ".join(f"{column.strip()} = ?" for column in _FACTOR_COLUMNS.split(","))
        with self._lock, self._connection() as connection:
            cursor = connection.execute(
                f"UPDATE factors SET {assignments} WHERE id = ?",
                (*self._encode_factor(factor), factor.id),
            )
            if cursor.rowcount == 0:
                raise KeyError(factor.id)
        return factor

    def find_override(self, service_id: int, department_id: int) -> Override | None:
        with self._connection() as connection:
            row = connection.execute(
                "SELECT * FROM overrides WHERE service_id = ? AND department_id = ?",
                (service_id, department_id),
            ).fetchone()
        if row is None:
            return None
        return Override(
            service_id=row["service_id"],
            department_id=row["department_id"],
            technical_factor=_optional_decimal(row["technical_factor"]),
            professional_factor=_optional_decimal(row["professional_factor"]),
            active=bool(row["active"]),
            deleted=bool(row["deleted"]),
        )

    def add_override(self, override: Override) -> Override:
        with self._lock, self._connection() as connection:
            connection.execute(
                "INSERT OR REPLACE INTO overrides "
                "(service_id, department_id, technical_factor, professional_factor, "
                "active, deleted) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    override.service_id,
                    override.department_id,
                    _optional_text(override.technical_factor),
                    _optional_text(override.professional_factor),
                    int(override.active),
                    int(override.deleted),
                ),
            )
        return override

    def freeze_factors(self, financial_year: int, actor_id: str, at: datetime) -> int:
        with self._connection() as connection:
            cursor = connection.execute(
                "UPDATE factors SET frozen = 1, frozen_at = ?, frozen_by = ? "
                "WHERE financial_year = ? AND active = 1 AND deleted = 0 AND frozen = 0",
                (at.isoformat(), actor_id, financial_year),
            )
            return cursor.rowcount

    def get_year_freeze(self, financial_year: int) -> YearFreeze | None:
        with self._connection() as connection:
            row = connection.execute(
                "SELECT * FROM year_freezes WHERE financial_year = ?", (financial_year,)
            ).fetchone()
        if row is None:
            return None
        return YearFreeze(
            financial_year=row["financial_year"],
            at=datetime.fromisoformat(row["frozen_at"]),
            by=row["frozen_by"],
            factors_frozen=row["factors_frozen"],
        )

    def record_year_freeze(self, record: YearFreeze) -> YearFreeze:
        with self._connection() as connection:
            connection.execute(
                "INSERT OR IGNORE INTO year_freezes "
                "(financial_year, frozen_at, frozen_by, factors_frozen) VALUES (?, ?, ?, ?)",
                (
                    record.financial_year,
                    record.at.isoformat(),
                    record.by,
                    record.factors_frozen,
                ),
            )
        stored = self.get_year_freeze(record.financial_year)
        if stored is None:
            raise RuntimeError(f"Freeze record for {record.financial_year} was not stored")
        return stored


__all__ = ["SQLiteTariffStore"]

"""Domain entities consumed and produced by the tariff engine.

Entities are immutable dataclasses; state changes (freezing a factor, soft
deleting it) produce new instances through ``dataclasses.replace`` so the
storage layer stays the single owner of mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Sequence, Union

__all__ = [
    "CalculationResult",
    "Factor",
    "FactorKind",
    "FactorPage",
    "FactorValidationReport",
    "FinancialYearStats",
    "FreezeState",
    "FrozenState",
    "OpenState",
    "OPEN",
    "Override",
    "PricingModeName",
    "Service",
    "ServiceComponent",
    "TariffTier",
    "YearFreeze",
]


class FactorKind(str, Enum):
    """Priced portion of a service a factor applies to."""

    TECHNICAL = "technical"
    PROFESSIONAL = "professional"


class TariffTier(str, Enum):
    """National tariff tier selected by a service's hashtag marker."""

    STANDARD = "standard"
    HASHTAGGED = "hashtagged"

    @classmethod
    def from_hashtag(cls, hashtagged: bool) -> TariffTier:
        return cls.HASHTAGGED if hashtagged else cls.STANDARD

    @property
    def is_hashtagged(self) -> bool:
        return self is TariffTier.HASHTAGGED


class PricingModeName(str, Enum):
    FACTOR_TABLE = "factor_table"
    LEGACY_CONSTANTS = "legacy_constants"
    FLAT_PRICE = "flat_price"


@dataclass(frozen=True)
class OpenState:
    """Factor row that can still be edited and used for lookups."""

    @property
    def is_frozen(self) -> bool:
        return False


@dataclass(frozen=True)
class FrozenState:
    """Factor row locked by a financial-year freeze."""

    at: datetime
    by: str

    @property
    def is_frozen(self) -> bool:
        return True


FreezeState = Union[OpenState, FrozenState]

OPEN = OpenState()


@dataclass(frozen=True)
class Factor:
    """A versioned coefficient value for one kind, tier and financial year."""

    id: int | None
    kind: FactorKind
    tier: TariffTier
    financial_year: int
    value: Decimal
    effective_from: date
    effective_to: date | None = None
    active: bool = True
    deleted: bool = False
    freeze_state: FreezeState = OPEN
    description: str | None = None

    @property
    def is_frozen(self) -> bool:
        return self.freeze_state.is_frozen

    @property
    def frozen_at(self) -> datetime | None:
        state = self.freeze_state
        return state.at if isinstance(state, FrozenState) else None

    @property
    def frozen_by(self) -> str | None:
        state = self.freeze_state
        return state.by if isinstance(state, FrozenState) else None

    @property
    def is_live(self) -> bool:
        """Return ``True`` for active rows that have not been soft deleted."""

        return self.active and not self.deleted

    def covers(self, as_of: date) -> bool:
        """Return ``True`` when ``as_of`` falls inside the inclusive effective range."""

        if as_of < self.effective_from:
            return False
        return self.effective_to is None or as_of <= self.effective_to

    def overlaps(self, other: Factor) -> bool:
        own_end = self.effective_to or date.max
        other_end = other.effective_to or date.max
        return self.effective_from <= other_end and other.effective_from <= own_end

    def freeze(self, at: datetime, by: str) -> Factor:
        if self.is_frozen:
            raise ValueError(f"Factor {self.id} is already frozen")
        return replace(self, freeze_state=FrozenState(at=at, by=by))


@dataclass(frozen=True)
class YearFreeze:
    """Explicit record of a financial year's one-way transition to frozen."""

    financial_year: int
    at: datetime
    by: str
    factors_frozen: int = 0


@dataclass(frozen=True)
class ServiceComponent:
    kind: FactorKind
    coefficient: Decimal
    active: bool = True
    deleted: bool = False

    @property
    def is_live(self) -> bool:
        return self.active and not self.deleted


@dataclass(frozen=True)
class Service:
    """Clinical service as exposed by the catalogue."""

    id: int
    title: str
    hashtagged: bool = False
    components: Sequence[ServiceComponent] = field(default_factory=tuple)
    flat_price: Decimal = Decimal("0")
    code: str | None = None

    @property
    def tier(self) -> TariffTier:
        return TariffTier.from_hashtag(self.hashtagged)

    def live_components(self, kind: FactorKind) -> list[ServiceComponent]:
        return [
            component
            for component in self.components
            if component.kind is kind and component.is_live
        ]


@dataclass(frozen=True)
class Override:
    """Department-specific replacement factor values for a shared service."""

    service_id: int
    department_id: int
    technical_factor: Decimal | None = None
    professional_factor: Decimal | None = None
    active: bool = True
    deleted: bool = False

    @property
    def is_live(self) -> bool:
        return self.active and not self.deleted


@dataclass(frozen=True)
class CalculationResult:
    """Price breakdown produced by the price calculator."""

    service_id: int
    service_title: str
    tier: TariffTier
    financial_year: int
    as_of: date
    pricing_mode: PricingModeName
    technical_coefficient: Decimal
    professional_coefficient: Decimal
    technical_factor: Decimal
    professional_factor: Decimal
    technical_amount: Decimal
    professional_amount: Decimal
    total: Decimal
    department_id: int | None = None
    technical_factor_id: int | None = None
    professional_factor_id: int | None = None
    overridden: tuple[FactorKind, ...] = ()

    @property
    def override_applied(self) -> bool:
        return bool(self.overridden)


@dataclass(frozen=True)
class FactorValidationReport:
    financial_year: int
    as_of: date
    missing: tuple[str, ...]
    professional: Factor | None
    technical_hashtagged: Factor | None
    technical_standard: Factor | None

    @property
    def is_valid(self) -> bool:
        return not self.missing


@dataclass(frozen=True)
class FactorPage:
    """One page of a filtered factor listing with the size of the full result."""

    items: tuple[Factor, ...]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return -(-self.total // self.page_size) if self.total else 0


@dataclass(frozen=True)
class FinancialYearStats:
    financial_year: int
    total: int
    active: int
    frozen: int
    professional: int
    technical: int
    hashtagged: int
    standard: int

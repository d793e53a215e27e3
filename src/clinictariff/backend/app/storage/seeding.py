"""Populate a :class:`TariffStore` from the YAML configuration."""

from __future__ import annotations

import logging
from typing import Sequence

from clinictariff.backend.app.models.domain import (
    Factor,
    FactorKind,
    Override,
    Service,
    ServiceComponent,
    TariffTier,
)
from clinictariff.backend.config.factor_tables import (
    FactorTable,
    ServiceCatalog,
    available_years,
    load_catalog,
    load_factor_table,
)

from .base import TariffStore

_LOGGER = logging.getLogger(__name__)


def factors_from_table(table: FactorTable) -> list[Factor]:
    """Convert configured factor definitions into unsaved domain factors."""

    return [
        Factor(
            id=None,
            kind=FactorKind(definition.kind),
            tier=TariffTier(definition.tier),
            financial_year=table.year,
            value=definition.value,
            effective_from=definition.effective_from,
            effective_to=definition.effective_to,
            active=definition.active,
            description=definition.description,
        )
        for definition in table.factors
    ]


def services_from_catalog(catalog: ServiceCatalog) -> list[Service]:
    return [
        Service(
            id=entry.id,
            title=entry.title,
            code=entry.code,
            hashtagged=TariffTier(entry.tier).is_hashtagged,
            flat_price=entry.flat_price,
            components=tuple(
                ServiceComponent(
                    kind=FactorKind(component.kind),
                    coefficient=component.coefficient,
                    active=component.active,
                )
                for component in entry.components
            ),
        )
        for entry in catalog.services
    ]


def overrides_from_catalog(catalog: ServiceCatalog) -> list[Override]:
    return [
        Override(
            service_id=entry.service_id,
            department_id=entry.department_id,
            technical_factor=entry.technical_factor,
            professional_factor=entry.professional_factor,
            active=entry.active,
        )
        for entry in catalog.overrides
    ]


def seed_store(
    store: TariffStore,
    years: Sequence[int] | None = None,
    *,
    include_catalog: bool = True,
) -> int:
    """Load factor tables (and optionally the catalogue) into ``store``.

    Years that already hold factor rows are skipped so restarting against a
    persistent store does not duplicate them. Returns the number of factor
    rows inserted.
    """

    inserted = 0
    for year in years or available_years():
        if store.list_factors(year):
            _LOGGER.debug("Skipping seed for financial year %s; factors already present", year)
            continue
        for factor in factors_from_table(load_factor_table(year)):
            store.add_factor(factor)
            inserted += 1

    if include_catalog:
        catalog = load_catalog()
        for service in services_from_catalog(catalog):
            if store.get_service(service.id) is None:
                store.add_service(service)
        for override in overrides_from_catalog(catalog):
            if store.find_override(override.service_id, override.department_id) is None:
                store.add_override(override)

    _LOGGER.info("Seeded tariff store with %s factor rows", inserted)
    return inserted


__all__ = [
    "factors_from_table",
    "overrides_from_catalog",
    "seed_store",
    "services_from_catalog",
]

import logging
from dataclasses import dataclass
from typing import Optional

from evstrack.clock import Clock, SystemClock
from evstrack.config import Settings, get_settings
from evstrack.integration.remote_mirror import RemoteMirror
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import ReferenceData
from evstrack.reference.demo_data import generate_demo_data
from evstrack.reference.loader import load_penalty_rates, load_reference_snapshot
from evstrack.store.collections import Collection
from evstrack.store.repository import EntityStore
from evstrack.workflow.cdrs import CDRService
from evstrack.workflow.invoices import InvoiceService
from evstrack.workflow.notifications import NotificationService
from evstrack.workflow.reports import ReportService
from evstrack.workflow.statements import StatementService

logger = logging.getLogger("evstrack.workflow")


@dataclass
class Services:
    settings: Settings
    reference: ReferenceData
    rates: PenaltyRateTable
    store: EntityStore
    clock: Clock
    notifications: NotificationService
    reports: ReportService
    cdrs: CDRService
    invoices: InvoiceService
    statements: StatementService


def build_services(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    store: Optional[EntityStore] = None,
) -> Services:
    """Wire the store, reference data and lifecycle services together."""
    settings = settings or get_settings()
    clock = clock or SystemClock()

    reference = load_reference_snapshot(settings.reference_snapshot)
    rates = load_penalty_rates(settings.penalty_rates_snapshot).with_overrides(settings.rate_overrides)

    if store is None:
        mirror = None
        if settings.remote_store_url:
            mirror = RemoteMirror(settings.remote_store_url, timeout=settings.remote_store_timeout)
        store = EntityStore(mirror=mirror)

        if mirror is not None:
            for collection in Collection:
                remote = mirror.pull(collection)
                if remote:
                    store.replace_snapshot(collection, remote)

    if settings.seed_demo_data and not store.list(Collection.REPORTS):
        seed = generate_demo_data(reference, settings.demo_year, settings.demo_seed, rates)
        for collection, entities in seed.items():
            store.extend(collection, entities)
        logger.info(f"seeded demo data for {settings.demo_year} (seed {settings.demo_seed})")

    notifications = NotificationService(store, clock)

    return Services(
        settings=settings,
        reference=reference,
        rates=rates,
        store=store,
        clock=clock,
        notifications=notifications,
        reports=ReportService(store, reference, clock, notifications),
        cdrs=CDRService(store, reference, rates, clock, notifications, language=settings.language),
        invoices=InvoiceService(store, reference, clock),
        statements=StatementService(store, reference, clock, settings.contractor_name),
    )

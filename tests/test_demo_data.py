from evstrack.models.cdr import CDRManagerDecision, CDRStatus
from evstrack.models.penalty import PenaltyStatus
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import ReferenceData
from evstrack.reference.demo_data import generate_demo_data
from evstrack.reference.loader import load_penalty_rates, load_reference_snapshot
from evstrack.scoring.compliance import report_compliance
from evstrack.store.collections import Collection


def _generate(seed=2025):
    return generate_demo_data(load_reference_snapshot(), 2025, seed, load_penalty_rates())


def test_same_seed_gives_same_year():
    assert _generate() == _generate()


def test_year_of_reports_is_plausible():
    data = _generate()
    reference = load_reference_snapshot()
    reports = data[Collection.REPORTS]

    assert 365 <= len(reports) <= 4 * 365
    assert {r.date.month for r in reports} == set(range(1, 13))
    assert all(0 <= report_compliance(r, reference) <= 100 for r in reports)


def test_invoices_only_for_approved_penalty_cdrs():
    data = _generate()
    cdrs = {c.id: c for c in data[Collection.CDRS]}

    assert data[Collection.PENALTY_INVOICES]
    for invoice in data[Collection.PENALTY_INVOICES]:
        cdr = cdrs[invoice.cdr_id]
        assert cdr.status == CDRStatus.APPROVED
        assert cdr.manager_decision == CDRManagerDecision.PENALTY
        assert invoice.status == PenaltyStatus.DEDUCTED
        assert invoice.total_amount > 0


def test_empty_reference_yields_empty_collections():
    empty = ReferenceData(snapshot_version="empty", users=[], zones=[], locations=[], forms=[])
    data = generate_demo_data(empty, 2025, 1, PenaltyRateTable())
    assert all(entities == [] for entities in data.values())

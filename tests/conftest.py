import pytest

from evstrack.clock import FixedClock
from evstrack.config import Settings
from evstrack.store.repository import EntityStore
from evstrack.workflow.services import build_services
from tests.fixtures.entities import NOW, RATES, small_reference


@pytest.fixture
def reference():
    return small_reference()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def services(mocker, reference, clock, store):
    """Lifecycle services wired to the small test reference data."""
    mocker.patch("evstrack.workflow.services.load_reference_snapshot", return_value=reference)
    mocker.patch("evstrack.workflow.services.load_penalty_rates", return_value=RATES)
    return build_services(settings=Settings(), clock=clock, store=store)

import pytest
import requests

from evstrack.integration.remote_mirror import RemoteMirror
from evstrack.store.collections import Collection
from evstrack.store.repository import EntityStore
from evstrack.store.serialization import to_document
from tests.fixtures.entities import make_report


@pytest.fixture
def session(mocker):
    return mocker.Mock(spec=requests.Session)


@pytest.fixture
def mirror(session):
    return RemoteMirror("https://store.example.test/api/", timeout=1.5, session=session)


def test_push_puts_document_by_id(mirror, session):
    report = make_report("r1")

    mirror.push_create(Collection.REPORTS, report)

    session.put.assert_called_once()
    args, kwargs = session.put.call_args
    assert args[0] == "https://store.example.test/api/reports/r1"
    assert kwargs["json"] == to_document(Collection.REPORTS, report)
    assert kwargs["timeout"] == 1.5


def test_push_failure_is_logged_not_raised(mirror, session, caplog):
    session.put.side_effect = requests.exceptions.ConnectionError("offline")

    mirror.push_update(Collection.REPORTS, make_report("r1"))

    assert "Failed to mirror reports/r1" in caplog.text


def test_http_error_status_is_swallowed(mirror, session, mocker):
    response = mocker.Mock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
    session.put.return_value = response

    mirror.push_create(Collection.REPORTS, make_report("r1"))


def test_store_keeps_local_write_when_mirror_is_down(session):
    session.put.side_effect = requests.exceptions.Timeout("slow")
    store = EntityStore(mirror=RemoteMirror("https://store.example.test", session=session))

    store.create(Collection.REPORTS, make_report("r1"))

    assert store.get(Collection.REPORTS, "r1") is not None


def test_pull_decodes_documents(mirror, session, mocker):
    report = make_report("r1")
    response = mocker.Mock()
    response.json.return_value = [to_document(Collection.REPORTS, report)]
    session.get.return_value = response

    pulled = mirror.pull(Collection.REPORTS)

    session.get.assert_called_once_with("https://store.example.test/api/reports", timeout=1.5)
    assert pulled == [report]


def test_pull_failure_returns_empty_list(mirror, session):
    session.get.side_effect = requests.exceptions.ConnectionError("offline")
    assert mirror.pull(Collection.CDRS) == []

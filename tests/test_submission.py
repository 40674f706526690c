"""
Tests for building and delivering measurement cards.
"""

import threading
import time
from unittest.mock import Mock

import pytest

from core.channel import CallbackChannel, LegacyHTTPChannel, OutboundChannel
from core.exceptions import SessionStateError, SubmissionRejectedError
from models.measurement import MeasurementStatus
from services.order_store import OrderStore
from services.roster import InMemoryRosterStore, SignerRoster
from services.session import Browsing, MeasurementSession, Signing, Submitted
from services.submission import SubmissionService, build_submission, to_completed_order
from services.sync_service import ORDER_COMPLETED, EventSyncService


@pytest.fixture
def store(order_factory):
    store = OrderStore()
    store.apply_snapshot([order_factory("O-1"), order_factory("O-2")], [])
    return store


@pytest.fixture
def emit():
    return Mock(return_value=True)


@pytest.fixture
def roster():
    return SignerRoster(InMemoryRosterStore(), ["NJA"])


@pytest.fixture
def service(store, emit, roster):
    return SubmissionService(store, CallbackChannel(emit), roster)


def _signed_session(store, value="50.05", signer="AB"):
    session = MeasurementSession()
    session.select(store.get_active("O-1"))
    session.edit("M1", value)
    session.open_signing()
    session.choose_signer(signer)
    return session


class TestBuildSubmission:

    def test_payload(self, store):
        session = _signed_session(store)

        payload = build_submission(session.order, session.entries, "AB", created_at="2026-03-01T12:00:00Z")

        assert payload.to_dict() == {
            "orderId": "O-1",
            "controller": "AB",
            "results": [{
                "id": "M1",
                "measured": "50.05",
                "status": "OK",
                "def": {
                    "id": "M1",
                    "nominal": 50.0,
                    "upperTol": 0.1,
                    "lowerTol": 0.1,
                    "gdtType": "diameter",
                    "description": "",
                },
            }],
        }
        assert payload.to_event()["id"] == "O-1"

    def test_completed_order(self, store):
        session = _signed_session(store, value="50.2")
        payload = build_submission(session.order, session.entries, "AB", created_at="2026-03-01T12:00:00Z")

        archived = to_completed_order(payload)

        assert archived.is_archived
        assert archived.completed_at == "2026-03-01T12:00:00Z"
        assert archived.controller == "AB"
        assert archived.results[0].status == MeasurementStatus.FAIL
        assert archived.results[0].definition.nominal == 50.0


class TestSubmit:

    def test_end_to_end_with_confirmation(self, store, service, emit, roster):
        session = MeasurementSession()
        session.select(store.get_active("O-1"))

        assert session.edit("M1", "50.05").status == MeasurementStatus.OK
        assert session.edit("M1", "50.2").status == MeasurementStatus.FAIL
        session.open_signing()
        session.choose_signer("AB")

        payload = service.submit(session)

        event, data = emit.call_args[0]
        assert event == "submit_measurement"
        assert data == {
            "id": "O-1",
            "controller": "AB",
            "results": [payload.results[0]],
        }
        assert data["results"][0]["status"] == "FAIL"

        # Optimistically removed, archived only when the service confirms
        assert store.get_active("O-1") is None
        assert store.get_archived("O-1") is None
        assert isinstance(session.state, Submitted)
        assert "AB" in roster.names()

        sync = EventSyncService(store)
        sync.handle_event(ORDER_COMPLETED, {"order": to_completed_order(payload).to_dict()})
        assert store.get_archived("O-1").controller == "AB"

        session.acknowledge()
        assert isinstance(session.state, Browsing)

    def test_rejection_restores_order(self, store, service, emit):
        emit.side_effect = ConnectionError("socket closed")
        session = _signed_session(store)

        with pytest.raises(SubmissionRejectedError):
            service.submit(session)

        assert store.get_active("O-1") is not None
        assert isinstance(session.state, Signing)

    def test_unacknowledged_emit_is_rejection(self, store, service, emit):
        emit.return_value = False
        session = _signed_session(store)

        with pytest.raises(SubmissionRejectedError):
            service.submit(session)
        assert store.get_active("O-1") is not None

    def test_requires_signer(self, store, service, emit):
        session = _signed_session(store, signer="")

        with pytest.raises(SessionStateError):
            service.submit(session)
        emit.assert_not_called()

    def test_channel_without_events_archives_locally(self, store, roster):
        channel = Mock(spec=OutboundChannel)
        channel.confirms_with_events = False
        service = SubmissionService(store, channel, roster)

        service.submit(_signed_session(store))

        channel.send_submission.assert_called_once()
        assert store.get_archived("O-1").controller == "AB"


class TestConcurrentSubmit:

    def test_double_submit_delivers_once(self, store, roster):
        emitted = []

        def slow_emit(event, data):
            time.sleep(0.05)
            emitted.append(event)
            return True

        service = SubmissionService(store, CallbackChannel(slow_emit), roster)
        session = _signed_session(store)
        errors = []
        start = threading.Barrier(2)

        def submit():
            start.wait()
            try:
                service.submit(session)
            except SessionStateError as e:
                errors.append(e)

        threads = [threading.Thread(target=submit) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert emitted == ["submit_measurement"]
        assert len(errors) == 1
        assert errors[0].state == "submitted"
        assert isinstance(session.state, Submitted)


class TestLegacySubmit:

    def test_retries_after_rejected_result_post_nothing_else(self, store, roster):
        client = Mock()
        client.post_generate.side_effect = SubmissionRejectedError("HTTP 502", order_id="O-1")
        service = SubmissionService(store, LegacyHTTPChannel(client, send_report=True), roster)
        session = _signed_session(store)

        for _ in range(2):
            with pytest.raises(SubmissionRejectedError):
                service.submit(session)

        assert client.post_generate.call_count == 2
        client.post_markup.assert_not_called()
        assert store.get_active("O-1") is not None
        assert store.get_archived("O-1") is None

    def test_accepted_result_archives_locally(self, store, roster):
        client = Mock()
        service = SubmissionService(store, LegacyHTTPChannel(client), roster)

        service.submit(_signed_session(store))

        client.post_generate.assert_called_once()
        assert store.get_archived("O-1").controller == "AB"


class TestDelete:

    def test_delete_sends_event(self, service, emit, store):
        service.delete_order("O-2")

        emit.assert_called_once_with("delete_order", {"id": "O-2"})
        # Removed only when order_deleted comes back
        assert store.get_active("O-2") is not None

import threading

from sqs_ui.model import STATUS_ERROR, STATUS_NOT_CONNECTED, STATUS_OK, QueueIdentity
from sqs_ui.session import QueueSession
from sqs_ui.status import COUNT_ATTRIBUTES, report_status
from tests.conftest import ORDERS_URL, REGION, client_error


def test_healthy_queue(make_session, sqs_client):
    snapshot = report_status(make_session(name="orders"))

    assert snapshot.status == STATUS_OK
    assert snapshot.error is None
    assert snapshot.queue_url == ORDERS_URL
    assert snapshot.total_approximate == 6
    sqs_client.get_queue_attributes.assert_called_once_with(
        QueueUrl=ORDERS_URL, AttributeNames=COUNT_ATTRIBUTES)


def test_snapshot_dict(make_session):
    data = report_status(make_session(name="orders")).to_dict()

    assert data == {
        "region": REGION,
        "queue_name": "orders",
        "queue_url": ORDERS_URL,
        "status": "ok",
        "number_of_messages": 6,
        "approximate_number_of_messages": 3,
        "approximate_number_of_messages_not_visible": 1,
        "approximate_number_of_messages_delayed": 2,
    }


def test_unbound_session(make_session, sqs_client):
    snapshot = make_session().status()

    assert snapshot.status == STATUS_NOT_CONNECTED
    assert snapshot.error == "no queue configured"
    assert snapshot.to_dict()["number_of_messages"] == 0
    assert sqs_client.mock_calls == []


def test_unresolvable_queue_is_not_connected(make_session, sqs_client):
    sqs_client.get_queue_url.side_effect = client_error("AWS.SimpleQueueService.NonExistentQueue", "missing")

    snapshot = report_status(make_session(name="ghost"))

    assert snapshot.status == STATUS_NOT_CONNECTED
    assert "ghost" in snapshot.error
    assert snapshot.queue_name == "ghost"
    assert snapshot.queue_url == ""
    sqs_client.get_queue_attributes.assert_not_called()


def test_attribute_failure_is_error(make_session, sqs_client):
    sqs_client.get_queue_attributes.side_effect = client_error("AccessDenied", "no attributes for you")

    snapshot = report_status(make_session(url=ORDERS_URL))

    assert snapshot.status == STATUS_ERROR
    assert snapshot.error == "AccessDenied: no attributes for you"
    assert snapshot.to_dict()["error"] == "AccessDenied: no attributes for you"


def test_attribute_timeout_is_error(make_session, sqs_client):
    release = threading.Event()
    sqs_client.get_queue_attributes.side_effect = lambda **kwargs: release.wait(2)
    session = make_session(url=ORDERS_URL, operation_timeout=0.05)

    try:
        snapshot = report_status(session)
    finally:
        release.set()

    assert snapshot.status == STATUS_ERROR
    assert "timed out" in snapshot.error


def test_unexpected_exception_never_escapes(make_session, sqs_client):
    sqs_client.get_queue_attributes.side_effect = RuntimeError("socket closed")

    snapshot = report_status(make_session(url=ORDERS_URL))

    assert snapshot.status == STATUS_ERROR
    assert snapshot.error == "socket closed"


def test_unparseable_counts_read_as_zero(make_session, sqs_client):
    sqs_client.get_queue_attributes.return_value = {
        "Attributes": {"ApproximateNumberOfMessages": "lots", "ApproximateNumberOfMessagesDelayed": "4"}
    }

    snapshot = report_status(make_session(url=ORDERS_URL))

    assert snapshot.status == STATUS_OK
    assert snapshot.approximate_visible == 0
    assert snapshot.approximate_in_flight == 0
    assert snapshot.approximate_delayed == 4


def test_repeated_reports_agree_on_stable_queue(make_session, sqs_client):
    session = make_session(name="orders")

    first = report_status(session)
    second = report_status(session)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert sqs_client.get_queue_attributes.call_count == 2
    sqs_client.get_queue_url.assert_called_once()


def test_repeated_reports_agree_when_backend_fails(make_session, sqs_client):
    sqs_client.get_queue_attributes.side_effect = client_error("AccessDenied", "denied")
    session = make_session(url=ORDERS_URL)

    first, second = report_status(session), report_status(session)

    assert first == second
    assert set(first.to_dict()) == set(second.to_dict())
    assert first.status == STATUS_ERROR


def test_session_without_client_is_not_connected(options):
    session = QueueSession(QueueIdentity(url=ORDERS_URL), None, REGION, options,
                           client_error="NoRegionError: You must specify a region.")

    snapshot = report_status(session)

    assert snapshot.status == STATUS_NOT_CONNECTED
    assert "NoRegionError" in snapshot.error
    assert snapshot.queue_url == ORDERS_URL

"""
Queue status snapshot used by /info and the UI poller.

report_status never raises: every failure is encoded into the snapshot's
status/error fields so the caller always has something to render.
"""
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError

from sqs_ui.clients import call_with_timeout
from sqs_ui.errors import QueueUIException, describe_error
from sqs_ui.model import STATUS_ERROR, STATUS_NOT_CONNECTED, STATUS_OK, QueueStatusSnapshot

logger = logging.getLogger(__name__)

ATTR_VISIBLE = "ApproximateNumberOfMessages"
ATTR_NOT_VISIBLE = "ApproximateNumberOfMessagesNotVisible"
ATTR_DELAYED = "ApproximateNumberOfMessagesDelayed"
COUNT_ATTRIBUTES = [ATTR_VISIBLE, ATTR_NOT_VISIBLE, ATTR_DELAYED]


def _count(attributes, name: str) -> int:
    try:
        return int(attributes.get(name, 0))
    except (TypeError, ValueError):
        return 0


def report_status(session) -> QueueStatusSnapshot:
    """
    Build a fresh status snapshot for a session

    Args:
        session: QueueSession to inspect

    Returns:
        QueueStatusSnapshot with status ok, not_connected or error
    """
    snapshot = QueueStatusSnapshot(
        region=session.region,
        queue_name=session.queue_name,
        queue_url=session.resolved_url or session.identity.url,
    )

    if not session.identity.is_bound:
        snapshot.status = STATUS_NOT_CONNECTED
        snapshot.error = "no queue configured"
        return snapshot

    try:
        queue_url = session.endpoint()
    except QueueUIException as e:
        snapshot.status = STATUS_NOT_CONNECTED
        snapshot.error = e.message
        return snapshot

    snapshot.queue_url = queue_url
    snapshot.region = session.region

    try:
        response = call_with_timeout(
            session.client.get_queue_attributes,
            session.operation_timeout,
            QueueUrl=queue_url,
            AttributeNames=COUNT_ATTRIBUTES,
        )
    except Exception as e:
        if isinstance(e, FutureTimeoutError):
            detail = f"timed out after {session.operation_timeout:g}s fetching queue attributes"
        else:
            detail = describe_error(e)
        logger.error(f"Failed to get queue attributes for {queue_url}: {detail}")
        snapshot.status = STATUS_ERROR
        snapshot.error = detail
        return snapshot

    attributes = response.get("Attributes", {})
    snapshot.approximate_visible = _count(attributes, ATTR_VISIBLE)
    snapshot.approximate_in_flight = _count(attributes, ATTR_NOT_VISIBLE)
    snapshot.approximate_delayed = _count(attributes, ATTR_DELAYED)
    snapshot.status = STATUS_OK
    return snapshot

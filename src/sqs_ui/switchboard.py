"""
Holder for the active queue session.

Readers take the shared lock just long enough to copy the reference.
replace() builds and resolves the new session before taking the exclusive
lock, so the lock is held only for the swap itself. Operations already
running against the previous session finish against it.
"""
import logging
from typing import Callable

from sqs_ui.errors import ReconfigurationError, describe_error
from sqs_ui.model import QueueIdentity
from sqs_ui.session import QueueSession
from sqs_ui.timedlocking import TimedRWLock

logger = logging.getLogger(__name__)


class Switchboard:

    def __init__(self, session: QueueSession, session_factory: Callable[[QueueIdentity], QueueSession]):
        self._session = session
        self._factory = session_factory
        self._lock = TimedRWLock(warn_threshold=1.0)

    def current(self) -> QueueSession:
        with self._lock.read("Switchboard.current"):
            return self._session

    def replace(self, identity: QueueIdentity) -> QueueSession:
        """
        Bind a new queue

        Args:
            identity: New queue name and/or URL

        Returns:
            The session now active

        Raises:
            ReconfigurationError: Identity is empty or the SQS client could not
                                  be created; the previous session stays active
        """
        if not identity.is_bound:
            raise ReconfigurationError("queue_name or queue_url must be provided")

        try:
            session = self._factory(identity)
        except Exception as e:
            logger.warning(f"Failed to build session for {identity}: {describe_error(e)}")
            raise ReconfigurationError(f"could not create SQS client: {describe_error(e)}",
                                       status_code=503) from e

        if not session.try_resolve():
            logger.warning(f"Queue {session.queue_name} not resolved yet, will retry on next use")

        with self._lock.write("Switchboard.replace"):
            previous = self._session
            self._session = session

        logger.info(f"SQS queue updated: {previous.queue_name or '<none>'} -> "
                    f"{session.queue_name} ({session.resolved_url or 'unresolved'})")
        return session

"""
Queue session: the binding of one SQS client to one queue.

A session moves Unbound -> Bound-Unresolved -> Bound-Resolved. The queue URL
is resolved at most once per session and cached; a failed lookup is retried
on a later call once its backoff window has passed. Sessions are replaced,
never re-pointed, when the operator switches queues.
"""
import logging
import time
import uuid
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from sqs_ui import fetch as fetch_engine
from sqs_ui import resolver
from sqs_ui.clients import build_sqs_client, call_with_timeout, client_region
from sqs_ui.errors import (
    BackendCallError,
    NotConfiguredError,
    ResolutionError,
    ValidationError,
    describe_error,
)
from sqs_ui.model import FetchResult, QueueIdentity, QueueStatusSnapshot
from sqs_ui.settings import AppConfig
from sqs_ui.status import report_status
from sqs_ui.timedlocking import TimedLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    """Per-session tunables, taken from AppConfig"""

    default_group_id: str = "default"
    operation_timeout: float = 10.0
    resolve_timeout: float = 5.0
    fetch_budget: float = fetch_engine.DEFAULT_BUDGET
    max_receive_batch: int = 10
    receive_wait_seconds: int = 0
    receive_visibility_timeout: int = 30
    single_call_receive: bool = False
    resolve_backoff: float = 1.0
    resolve_backoff_max: float = 30.0

    @classmethod
    def from_config(cls, config: AppConfig) -> "SessionOptions":
        return cls(
            default_group_id=config.default_group_id,
            operation_timeout=config.operation_timeout,
            resolve_timeout=config.resolve_timeout,
            fetch_budget=config.fetch_budget,
            max_receive_batch=config.max_receive_batch,
            receive_wait_seconds=config.receive_wait_seconds,
            receive_visibility_timeout=config.receive_visibility_timeout,
            single_call_receive=config.single_call_receive,
            resolve_backoff=config.resolve_backoff,
            resolve_backoff_max=config.resolve_backoff_max,
        )


class QueueSession:
    """All queue operations for one queue identity"""

    def __init__(self, identity: QueueIdentity, client, default_region: str = "",
                 options: Optional[SessionOptions] = None,
                 client_error: Optional[str] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.identity = identity
        self.client = client
        self.options = options or SessionOptions()
        self.client_error = client_error
        self._clock = clock

        self._region = default_region or resolver.region_from_url(identity.url)
        self._resolved_url = identity.url
        self._resolve_lock = TimedLock(warn_threshold=self.options.resolve_timeout + 1)
        self._last_error: Optional[ResolutionError] = None
        self._failures = 0
        self._retry_at = 0.0

    def __repr__(self):
        return f"QueueSession(name={self.queue_name!r}, url={self._resolved_url!r}, region={self._region!r})"

    @property
    def queue_name(self) -> str:
        return resolver.display_name(self.identity)

    @property
    def region(self) -> str:
        return self._region

    @property
    def resolved_url(self) -> str:
        return self._resolved_url

    @property
    def operation_timeout(self) -> float:
        return self.options.operation_timeout

    @property
    def is_fifo(self) -> bool:
        return resolver.is_fifo(self.queue_name) or resolver.is_fifo(
            resolver.queue_name_from_url(self._resolved_url))

    def ensure_configured(self):
        """Raise NotConfiguredError when neither name nor URL is bound"""
        if not self.identity.is_bound:
            raise NotConfiguredError()

    def endpoint(self) -> str:
        """
        Resolved queue URL, looking it up on first use

        Raises:
            NotConfiguredError: Session is unbound
            ResolutionError: No SQS client, or the lookup failed now or is
                             still inside its backoff window
        """
        self.ensure_configured()
        if self.client is None:
            raise ResolutionError(f"SQS client unavailable: {self.client_error or 'not configured'}")
        if self._resolved_url:
            return self._resolved_url

        with self._resolve_lock("QueueSession.endpoint"):
            if self._resolved_url:
                return self._resolved_url

            now = self._clock()
            if self._last_error is not None and now < self._retry_at:
                raise ResolutionError(self._last_error.message)

            try:
                url, region = resolver.resolve(
                    self.identity, self.client, self._region, self.options.resolve_timeout)
            except ResolutionError as e:
                self._failures += 1
                self._last_error = e
                self._retry_at = now + self._backoff_delay()
                logger.error(f"Failed to resolve queue URL for {self.queue_name} "
                             f"(attempt {self._failures}): {e.message}")
                raise

            self._resolved_url = url
            if not self._region:
                self._region = region
            self._last_error = None
            self._failures = 0
            return url

    def _backoff_delay(self) -> float:
        base = self.options.resolve_backoff
        if base <= 0:
            return 0.0
        return min(base * (2 ** (self._failures - 1)), self.options.resolve_backoff_max)

    def try_resolve(self) -> bool:
        """Best-effort resolution; True when the session has a URL"""
        if not self.identity.is_bound:
            return False
        try:
            self.endpoint()
        except (ResolutionError, NotConfiguredError):
            return False
        return True

    def send(self, body: str, group_id: Optional[str] = None) -> str:
        """
        Send one message, adding FIFO group/dedup ids when the queue needs them

        Returns:
            MessageId assigned by SQS
        """
        self.ensure_configured()
        if not body:
            raise ValidationError("message cannot be empty")

        queue_url = self.endpoint()
        kwargs = {
            "QueueUrl": queue_url,
            "MessageBody": body,
        }
        if self.is_fifo:
            kwargs["MessageGroupId"] = group_id or self.options.default_group_id
            kwargs["MessageDeduplicationId"] = uuid.uuid4().hex

        response = self._call("send message", self.client.send_message, **kwargs)
        message_id = response.get("MessageId", "")
        logger.info(f"Message sent to {self.queue_name}: {message_id}")
        return message_id

    def fetch(self, max_messages: int = 0, loop: Optional[bool] = None) -> FetchResult:
        """
        Peek at visible messages

        Args:
            max_messages: Per-call batch size; <=0 or above the configured cap uses the cap
            loop: Force loop (True) or single-call (False); None follows configuration
        """
        self.ensure_configured()
        queue_url = self.endpoint()

        cap = self.options.max_receive_batch
        if max_messages <= 0 or max_messages > cap:
            max_messages = cap
        if loop is None:
            loop = not self.options.single_call_receive

        return fetch_engine.fetch(
            self.client,
            queue_url,
            max_messages=max_messages,
            per_call_timeout=self.options.operation_timeout,
            visibility_timeout=self.options.receive_visibility_timeout,
            wait_seconds=self.options.receive_wait_seconds,
            budget=self.options.fetch_budget,
            loop=loop,
        )

    def purge(self):
        """Delete every message in the queue"""
        self.ensure_configured()
        queue_url = self.endpoint()
        self._call("purge queue", self.client.purge_queue, QueueUrl=queue_url)
        logger.info(f"Queue purged: {self.queue_name}")

    def status(self) -> QueueStatusSnapshot:
        return report_status(self)

    def _call(self, action: str, fn, **kwargs):
        timeout = self.options.operation_timeout
        try:
            return call_with_timeout(fn, timeout, **kwargs)
        except FutureTimeoutError as e:
            raise BackendCallError(f"failed to {action}: timed out after {timeout:g}s") from e
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to {action} on {self.queue_name}: {describe_error(e)}")
            raise BackendCallError(f"failed to {action}: {describe_error(e)}") from e


class SessionFactory:
    """Builds sessions (and their SQS clients) from configuration"""

    def __init__(self, config: AppConfig, client_builder=build_sqs_client):
        self.config = config
        self.client_builder = client_builder
        self.options = SessionOptions.from_config(config)

    def __call__(self, identity: QueueIdentity, strict: bool = True) -> QueueSession:
        """
        Create a session for an identity

        Args:
            identity: Queue to bind
            strict: Raise on client construction failure; otherwise return a
                    session that reports the failure through its status

        Returns:
            New, not yet resolved QueueSession
        """
        region = self.config.region or resolver.region_from_url(identity.url)
        try:
            client = self.client_builder(
                region=region,
                endpoint_url=self.config.endpoint_url,
                timeout=self.options.operation_timeout,
            )
        except Exception as e:
            if strict:
                raise
            logger.error(f"Could not create SQS client: {describe_error(e)}")
            return QueueSession(identity, None, region, self.options, client_error=describe_error(e))

        return QueueSession(identity, client, client_region(client) or region, self.options)

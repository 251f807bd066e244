"""
Batched receive: aggregate repeated ReceiveMessage calls into one result.

SQS short polling returns an unpredictable subset of the visible messages
on each call, so one call is not a reliable "show me what is there". The
engine keeps calling until the queue comes back empty, the iteration cap
is reached, or the time budget runs out.
"""
import logging
import time
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List

from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from sqs_ui.clients import call_with_timeout
from sqs_ui.errors import BackendCallError, FetchError, describe_error
from sqs_ui.model import FetchResult, Message

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = 10.0
MAX_ITERATIONS = 25
SQS_MAX_BATCH = 10
# long polls end at least this long before the per-call bound
WAIT_MARGIN = 1.0

TIMEOUT_ERRORS = (FutureTimeoutError, ReadTimeoutError, ConnectTimeoutError)


def _receive_once(client, queue_url: str, max_messages: int, visibility_timeout: int,
                  wait_seconds: int, timeout: float) -> List[Message]:
    response = call_with_timeout(
        client.receive_message,
        timeout,
        QueueUrl=queue_url,
        MaxNumberOfMessages=max_messages,
        VisibilityTimeout=visibility_timeout,
        WaitTimeSeconds=wait_seconds,
    )
    return [
        Message(id=m.get("MessageId", ""), body=m.get("Body", ""))
        for m in response.get("Messages", [])
    ]


def fetch(client, queue_url: str, *,
          max_messages: int = SQS_MAX_BATCH,
          per_call_timeout: float = 10.0,
          visibility_timeout: int = 30,
          wait_seconds: int = 0,
          budget: float = DEFAULT_BUDGET,
          max_iterations: int = MAX_ITERATIONS,
          loop: bool = True,
          clock: Callable[[], float] = time.monotonic) -> FetchResult:
    """
    Receive messages until the queue drains, the cap is hit or time runs out

    Args:
        client: SQS client
        queue_url: Resolved queue URL
        max_messages: Messages per ReceiveMessage call (1-10)
        per_call_timeout: Upper bound on a single call
        visibility_timeout: Visibility window applied to received messages
        wait_seconds: Long-poll wait hint per call
        budget: Deadline for the whole fetch, in seconds
        max_iterations: Cap on the number of calls
        loop: False performs a single call
        clock: Monotonic time source

    Returns:
        FetchResult with messages in arrival order

    Raises:
        FetchError: The deadline expired before any message arrived
        BackendCallError: A call failed before any message arrived
    """
    start = clock()
    deadline = start + budget
    cap = max_iterations if loop else 1
    max_messages = max(1, min(SQS_MAX_BATCH, max_messages))
    result = FetchResult()

    logger.debug(f"Receive {'loop' if loop else 'single-call'} on {queue_url} (max={max_messages})")

    for iteration in range(1, cap + 1):
        remaining = deadline - clock()
        if remaining <= 0:
            if not result.messages:
                raise FetchError(f"receive operation timed out after {budget:g}s")
            result.truncated = True
            logger.warning(f"Receive deadline reached after partial retrieval ({len(result.messages)} messages)")
            break

        call_timeout = min(per_call_timeout, remaining)
        wait = min(wait_seconds, int(max(0.0, call_timeout - WAIT_MARGIN)))
        try:
            batch = _receive_once(
                client, queue_url, max_messages, visibility_timeout, wait, call_timeout,
            )
        except TIMEOUT_ERRORS as e:
            result.iterations = iteration
            if not result.messages:
                raise FetchError(f"receive operation timed out after {clock() - start:.1f}s") from e
            result.truncated = True
            logger.warning(f"Receive timeout after partial retrieval ({len(result.messages)} messages)")
            break
        except (ClientError, BotoCoreError) as e:
            result.iterations = iteration
            detail = describe_error(e)
            if not result.messages:
                raise BackendCallError(f"failed to receive messages: {detail}") from e
            result.truncated = True
            result.partial_error = detail
            logger.warning(f"Receive failed after partial retrieval ({len(result.messages)} messages): {detail}")
            break

        result.iterations = iteration
        if not batch:
            break

        result.messages.extend(batch)
        logger.debug(f"Receive batch: {len(batch)} (total {len(result.messages)}, iteration {iteration})")

        if loop and iteration == cap:
            logger.warning(f"Receive loop iteration cap reached ({cap}), {len(result.messages)} messages")

    result.elapsed_ms = int((clock() - start) * 1000)
    logger.info(f"Messages fetched: {len(result.messages)} in {result.elapsed_ms}ms "
                f"({result.iterations} calls, single_call={not loop})")
    return result

"""
Factory for boto3 SQS clients.

Every client carries connect/read timeouts so a backend call can never hang
a request worker indefinitely. Every call runs on one shared, bounded
worker pool.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

import boto3
import botocore.config

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 2
# read timeout sits above the call bound so a finished long poll is never cut off
READ_TIMEOUT_MARGIN = 1.0
MAX_CALL_WORKERS = 32

_executor = ThreadPoolExecutor(max_workers=MAX_CALL_WORKERS, thread_name_prefix="sqs-call")


def build_sqs_client(region: str = "", endpoint_url: str = "",
                     timeout: float = 10.0,
                     max_attempts: int = DEFAULT_MAX_ATTEMPTS):
    """
    Create a boto3 SQS client

    Args:
        region: AWS region; empty lets boto3 resolve it from its own chain
        endpoint_url: Optional endpoint override (ElasticMQ, LocalStack)
        timeout: Connect timeout; the read timeout adds READ_TIMEOUT_MARGIN
        max_attempts: Total attempts including the first call

    Returns:
        boto3 SQS client
    """
    config = botocore.config.Config(
        connect_timeout=timeout,
        read_timeout=timeout + READ_TIMEOUT_MARGIN,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    kwargs = {"config": config}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url

    client = boto3.client("sqs", **kwargs)
    logger.debug(f"SQS client created (region={client.meta.region_name}, endpoint={client.meta.endpoint_url})")
    return client


def client_region(client) -> str:
    """Region the client was built for, or '' when unknown"""
    meta = getattr(client, "meta", None)
    region: Optional[str] = getattr(meta, "region_name", None)
    return region if isinstance(region, str) else ""


def call_with_timeout(fn, timeout: float, **kwargs):
    """
    Run a blocking backend call on the shared worker pool, waiting at most `timeout`.

    A call that overruns is abandoned rather than joined; botocore's own
    read timeout eventually reclaims the worker. A call still queued behind
    busy workers when the bound expires is cancelled.

    Raises:
        concurrent.futures.TimeoutError: If the call did not finish in time
    """
    future = _executor.submit(fn, **kwargs)
    try:
        return future.result(timeout=max(timeout, 0))
    except FutureTimeoutError:
        future.cancel()
        raise

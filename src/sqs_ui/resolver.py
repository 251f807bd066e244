"""
Queue identity resolution: name or URL -> (queue URL, region).
"""
import logging
import re
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Tuple
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError

from sqs_ui.clients import call_with_timeout
from sqs_ui.errors import ResolutionError, describe_error
from sqs_ui.model import QueueIdentity

logger = logging.getLogger(__name__)

# sqs.<region>.amazonaws.com, sqs.<region>.vpce.amazonaws.com, and the
# legacy <region>.queue.amazonaws.com host forms
_REGION_PATTERNS = (
    re.compile(r"(?:^|\.)sqs\.([a-z0-9-]+)\.(?:vpce\.)?amazonaws\.com(?:\.cn)?$"),
    re.compile(r"^([a-z0-9-]+)\.queue\.amazonaws\.com(?:\.cn)?$"),
)

DEFAULT_RESOLVE_TIMEOUT = 5.0


def region_from_url(queue_url: str) -> str:
    """Extract the region embedded in an SQS endpoint host, or '' if absent"""
    if not queue_url:
        return ""
    host = urlparse(queue_url).hostname or ""
    for pattern in _REGION_PATTERNS:
        match = pattern.search(host)
        if match:
            return match.group(1)
    return ""


def queue_name_from_url(queue_url: str) -> str:
    """Final path segment of a queue URL"""
    path = urlparse(queue_url).path if "://" in queue_url else queue_url.split("?")[0]
    return path.rstrip("/").split("/")[-1]


def is_fifo(queue_name: str) -> bool:
    """FIFO queue names must end in '.fifo'"""
    return bool(queue_name) and queue_name.lower().endswith(".fifo")


def display_name(identity: QueueIdentity) -> str:
    if identity.name:
        return identity.name
    if identity.url:
        return queue_name_from_url(identity.url)
    return ""


def lookup_queue_url(client, queue_name: str, timeout: float = DEFAULT_RESOLVE_TIMEOUT) -> str:
    """
    Resolve a queue name to its URL with one GetQueueUrl call

    Raises:
        ResolutionError: On timeout, missing queue, denied access or any
                         other backend failure
    """
    try:
        response = call_with_timeout(client.get_queue_url, timeout, QueueName=queue_name)
    except FutureTimeoutError:
        raise ResolutionError(f"timed out after {timeout:g}s resolving queue URL for {queue_name}")
    except (ClientError, BotoCoreError) as e:
        raise ResolutionError(f"failed to get queue URL for {queue_name}: {describe_error(e)}") from e

    url = response.get("QueueUrl", "")
    if not url:
        raise ResolutionError(f"failed to get queue URL for {queue_name}: empty response")
    return url


def resolve(identity: QueueIdentity, client, default_region: str = "",
            timeout: float = DEFAULT_RESOLVE_TIMEOUT) -> Tuple[str, str]:
    """
    Determine the queue URL and region for an identity

    Args:
        identity: Queue name and/or URL
        client: SQS client used for name lookups
        default_region: Region the client is configured for ('' if unknown)
        timeout: Bound on the name lookup

    Returns:
        (queue_url, region); region may be '' when it cannot be determined

    Raises:
        ResolutionError: If the identity is empty or the name lookup fails
    """
    if identity.url:
        url = identity.url
    elif identity.name:
        url = lookup_queue_url(client, identity.name, timeout)
        logger.info(f"Resolved queue URL: {identity.name} -> {url}")
    else:
        raise ResolutionError("no queue name or URL to resolve")

    region = default_region or region_from_url(url)
    if not region:
        logger.debug(f"Could not determine region from queue URL: {url}")
    return url, region

"""
Runtime configuration, loaded once from environment variables.

Values are parsed leniently: junk in a numeric or boolean variable falls
back to the default with a warning rather than stopping the process.
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "y", "on")
FALSE_VALUES = ("0", "false", "no", "n", "off")


@dataclass(frozen=True)
class AppConfig:
    queue_name: str = ""
    queue_url: str = ""
    region: str = ""
    endpoint_url: str = ""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    log_format: str = "text"
    default_group_id: str = "default"
    operation_timeout: float = 10.0
    resolve_timeout: float = 5.0
    fetch_budget: float = 10.0
    max_receive_batch: int = 10
    receive_wait_seconds: int = 0
    receive_visibility_timeout: int = 30
    single_call_receive: bool = False
    resolve_backoff: float = 1.0
    resolve_backoff_max: float = 30.0


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    value = env.get(name)
    if value is None:
        return default
    return value.strip()


def parse_int(env: Mapping[str, str], name: str, default: int,
              minimum: int = 0, maximum: Optional[int] = None) -> int:
    raw = _get(env, name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default
    if value < minimum or (maximum is not None and value > maximum):
        logger.warning(f"{name}={value} out of range, using {default}")
        return default
    return value


def parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _get(env, name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}: {raw!r}, using {default}")
        return default
    if value < 0:
        logger.warning(f"{name}={value} is negative, using {default}")
        return default
    return value


def parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _get(env, name).lower()
    if not raw:
        return default
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    logger.warning(f"Invalid boolean for {name}: {raw!r}, using {default}")
    return default


def load(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build an AppConfig from the environment

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Frozen AppConfig
    """
    if env is None:
        env = os.environ

    return AppConfig(
        queue_name=_get(env, "QUEUE_NAME"),
        queue_url=_get(env, "QUEUE_URL"),
        region=_get(env, "AWS_REGION") or _get(env, "AWS_DEFAULT_REGION"),
        endpoint_url=_get(env, "AWS_ENDPOINT_URL_SQS"),
        host=_get(env, "HOST", "0.0.0.0") or "0.0.0.0",
        port=parse_int(env, "PORT", 8080, minimum=1, maximum=65535),
        log_level=_get(env, "LOG_LEVEL", "info") or "info",
        log_format=_get(env, "LOG_FORMAT", "text") or "text",
        default_group_id=_get(env, "DEFAULT_GROUP_ID", "default") or "default",
        operation_timeout=parse_float(env, "OPERATION_TIMEOUT_SECONDS", 10.0),
        resolve_timeout=parse_float(env, "RESOLVE_TIMEOUT_SECONDS", 5.0),
        fetch_budget=parse_float(env, "FETCH_BUDGET_SECONDS", 10.0),
        # SQS accepts 1..10 messages per ReceiveMessage and waits of 0..20s
        max_receive_batch=parse_int(env, "MAX_RECEIVE_BATCH", 10, minimum=1, maximum=10),
        receive_wait_seconds=parse_int(env, "RECEIVE_WAIT_SECONDS", 0, minimum=0, maximum=20),
        receive_visibility_timeout=parse_int(env, "RECEIVE_VISIBILITY_TIMEOUT", 30,
                                             minimum=0, maximum=43200),
        single_call_receive=parse_bool(env, "SINGLE_CALL_RECEIVE", False),
        resolve_backoff=parse_float(env, "RESOLVE_BACKOFF_SECONDS", 1.0),
        resolve_backoff_max=parse_float(env, "RESOLVE_BACKOFF_MAX_SECONDS", 30.0),
    )

import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from unittest.mock import MagicMock

import pytest

from sqs_ui import clients


def test_client_read_timeout_sits_above_call_bound():
    client = clients.build_sqs_client(region="eu-west-1", endpoint_url="http://localhost:9324", timeout=4)

    assert client.meta.region_name == "eu-west-1"
    assert client.meta.endpoint_url == "http://localhost:9324"
    assert client.meta.config.connect_timeout == 4
    assert client.meta.config.read_timeout == 4 + clients.READ_TIMEOUT_MARGIN


def test_client_region():
    client = MagicMock()
    client.meta.region_name = "ap-south-1"
    assert clients.client_region(client) == "ap-south-1"
    assert clients.client_region(object()) == ""


def test_calls_run_on_shared_pool():
    def thread_name():
        return threading.current_thread().name

    names = {clients.call_with_timeout(thread_name, 1) for _ in range(5)}

    assert all(name.startswith("sqs-call") for name in names)
    assert threading.current_thread().name not in names


def test_call_passes_keyword_arguments():
    fn = MagicMock(return_value={"QueueUrl": "u"})

    assert clients.call_with_timeout(fn, 1, QueueName="orders") == {"QueueUrl": "u"}
    fn.assert_called_once_with(QueueName="orders")


def test_overrunning_call_times_out():
    release = threading.Event()
    try:
        with pytest.raises(FutureTimeoutError):
            clients.call_with_timeout(release.wait, 0.05, timeout=2)
    finally:
        release.set()


def test_call_errors_propagate():
    fn = MagicMock(side_effect=ValueError("bad"))

    with pytest.raises(ValueError, match="bad"):
        clients.call_with_timeout(fn, 1)

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from sqs_ui.model import QueueIdentity
from sqs_ui.session import QueueSession, SessionOptions

REGION = "us-east-1"
ORDERS_URL = "https://queue.example/acct/orders"


def client_error(code: str, message: str = "", operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def sqs_messages(*bodies, prefix="m"):
    return {"Messages": [{"MessageId": f"{prefix}{i}", "Body": body, "ReceiptHandle": f"rh-{prefix}{i}"}
                         for i, body in enumerate(bodies)]}


@pytest.fixture
def sqs_client() -> MagicMock:
    client = MagicMock(name="sqs")
    client.meta.region_name = REGION
    client.get_queue_url.return_value = {"QueueUrl": ORDERS_URL}
    client.receive_message.return_value = {"Messages": []}
    client.send_message.return_value = {"MessageId": "sent-1"}
    client.get_queue_attributes.return_value = {
        "Attributes": {
            "ApproximateNumberOfMessages": "3",
            "ApproximateNumberOfMessagesNotVisible": "1",
            "ApproximateNumberOfMessagesDelayed": "2",
        }
    }
    return client


@pytest.fixture
def options() -> SessionOptions:
    return SessionOptions(
        operation_timeout=2.0,
        resolve_timeout=2.0,
        fetch_budget=2.0,
        resolve_backoff=0,
    )


@pytest.fixture
def make_session(sqs_client, options):
    def _make(name="", url="", client=None, **overrides):
        opts = SessionOptions(**{**options.__dict__, **overrides}) if overrides else options
        return QueueSession(QueueIdentity(name=name, url=url), client or sqs_client, REGION, opts)
    return _make

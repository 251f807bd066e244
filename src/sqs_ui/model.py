"""
Data records passed between the queue session and the HTTP layer.

Using dataclasses keeps the wire contract explicit: each record owns the
exact set of fields it serializes, instead of building ad-hoc dicts at
every call site.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

STATUS_OK = "ok"
STATUS_NOT_CONNECTED = "not_connected"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class QueueIdentity:
    """
    Name and/or URL addressing a single queue.

    Attributes:
        name: Queue name as given by the operator (may be empty).
        url: Queue URL as given by the operator (may be empty).
    """

    name: str = ""
    url: str = ""

    @property
    def is_bound(self) -> bool:
        return bool(self.name or self.url)


@dataclass(frozen=True)
class Message:
    id: str
    body: str

    def to_dict(self) -> Dict[str, str]:
        return {"MessageId": self.id, "Body": self.body}


@dataclass
class FetchResult:
    """
    Outcome of one logical fetch.

    Attributes:
        messages: Messages in arrival order across all receive calls.
        truncated: True when the loop stopped on a timeout or error after
                   at least one message had been gathered.
        partial_error: Detail of the error that cut the fetch short, if any.
        iterations: Number of receive calls issued.
        elapsed_ms: Wall time spent in the fetch.
    """

    messages: List[Message] = field(default_factory=list)
    truncated: bool = False
    partial_error: Optional[str] = None
    iterations: int = 0
    elapsed_ms: int = 0

    def to_list(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self.messages]


@dataclass
class QueueStatusSnapshot:
    region: str = ""
    queue_name: str = ""
    queue_url: str = ""
    approximate_visible: int = 0
    approximate_in_flight: int = 0
    approximate_delayed: int = 0
    status: str = STATUS_NOT_CONNECTED
    error: Optional[str] = None

    @property
    def total_approximate(self) -> int:
        return self.approximate_visible + self.approximate_in_flight + self.approximate_delayed

    def to_dict(self) -> Dict:
        data = {
            "region": self.region,
            "queue_name": self.queue_name,
            "queue_url": self.queue_url,
            "status": self.status,
            "number_of_messages": self.total_approximate,
            "approximate_number_of_messages": self.approximate_visible,
            "approximate_number_of_messages_not_visible": self.approximate_in_flight,
            "approximate_number_of_messages_delayed": self.approximate_delayed,
        }
        if self.error:
            data["error"] = self.error
        return data

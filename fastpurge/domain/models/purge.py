"""Domain models for purge configuration, request bodies and delivery state."""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from fastpurge.domain.models.common import (
    BASE_DELAY_SECONDS,
    RETRY_THRESHOLD,
    HttpStatus,
    RequestId,
)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_BODY = 131072  # EdgeGrid content hash window


@dataclass(frozen=True)
class EdgeCredentials:
    """Value Object holding one edgerc section: the opaque signing context."""
    host: str = ""
    client_token: str = ""
    client_secret: str = ""
    access_token: str = ""
    max_body: int = DEFAULT_MAX_BODY

    def __repr__(self) -> str:
        # Secrets stay out of logs and tracebacks.
        return f"EdgeCredentials(host={self.host!r}, client_token=***, client_secret=***, access_token=***)"


@dataclass(frozen=True)
class PurgeConfig:
    """Immutable run configuration shared read-only by every delivery task."""
    method: str
    network: str
    file_type: str
    credentials: EdgeCredentials
    retry_threshold: int = RETRY_THRESHOLD
    base_delay: float = BASE_DELAY_SECONDS
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    retry_server_errors: bool = False

    @property
    def host(self) -> str:
        return self.credentials.host

    @property
    def endpoint_path(self) -> str:
        """/ccu/v3/{invalidate|delete}/url/{production|staging}"""
        return f"/ccu/v3/{self.method}/url/{self.network}"

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.host}{self.endpoint_path}"


@dataclass(frozen=True)
class RequestBody:
    """One chunk of work: the JSON document sent in a single purge request.

    Text-mode bodies have the shape {"objects": [...]}; JSON-mode bodies are
    the caller's document forwarded as-is.
    """
    payload: Dict[str, Any]

    @property
    def objects(self) -> List[Any]:
        """The "objects" list, or [] when a JSON-mode document has none."""
        objects = self.payload.get("objects")
        return list(objects) if isinstance(objects, list) else []

    def to_bytes(self) -> bytes:
        return json.dumps(self.payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class DeliveryOutcome(str, Enum):
    """Terminal states of a delivery attempt's retry loop."""
    SUCCEEDED = "succeeded"
    FAILED_TERMINAL = "failed_terminal"
    EXHAUSTED_RETRIES = "exhausted_retries"


def new_request_id() -> RequestId:
    return RequestId(str(uuid.uuid4()))


@dataclass
class DeliveryAttempt:
    """Mutable retry state for one chunk. Owned by exactly one task."""
    body: RequestBody
    request_id: RequestId = field(default_factory=new_request_id)
    attempt_count: int = 0
    last_status: Optional[HttpStatus] = None
    body_bytes: bytes = field(init=False, repr=False)

    def __post_init__(self):
        # Serialised once; the same bytes are resent on every retry.
        self.body_bytes = self.body.to_bytes()


@dataclass(frozen=True)
class DeliveryResult:
    """Per-chunk result reported back to the caller of the dispatcher.

    ``attempts`` is the number of requests sent, so a chunk accepted on its
    first try reports 1 (the 0-based index of its last attempt is
    ``attempts - 1``).
    """
    request_id: RequestId
    outcome: DeliveryOutcome
    attempts: int
    last_status: Optional[HttpStatus] = None
    object_count: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome is DeliveryOutcome.SUCCEEDED

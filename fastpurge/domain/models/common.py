"""Defines common Value Objects used across the purge domain.

These objects represent simple values like request identifiers and the
enumerated options accepted by the Fast Purge API, plus the size limits
fixed by the upstream service contract.
"""

from enum import Enum
from typing import NewType

# === Core Value Objects ===

RequestId = NewType("RequestId", str)            # UUID4 identifying one chunk
InvalidationObject = NewType("InvalidationObject", str)  # URL or ARL (S/..., L/...)
HttpStatus = NewType("HttpStatus", int)

# === Upstream Contract ===
# https://techdocs.akamai.com/purge-cache/reference/rate-limiting

MAX_BODY_SIZE = 50000
JSON_OVERHEAD = len('{"objects":[]}'.encode("utf-8"))
JSON_LINE_OVERHEAD = len('"",'.encode("utf-8"))

# === Retry Policy ===

RETRY_THRESHOLD = 10
BASE_DELAY_SECONDS = 5

STATUS_CREATED = 201
RATE_LIMITED_STATUSES = frozenset({429, 507})


class PurgeMethod(str, Enum):
    """Invalidation method: mark stale or remove outright."""
    INVALIDATE = "invalidate"
    DELETE = "delete"


class PurgeNetwork(str, Enum):
    """Target Akamai network."""
    PRODUCTION = "production"
    STAGING = "staging"


class FileType(str, Enum):
    """Shape of the invalidation list being read."""
    TEXT = "text"
    JSON = "json"


def allowed_values(enum_cls) -> list:
    return [member.value for member in enum_cls]

"""EdgeGrid implementation of the RequestSigner interface.

Uses the edgegrid-python library (`akamai.edgegrid.EdgeGridAuth`) to compute
the EG1-HMAC-SHA256 authorization header. EdgeGridAuth is a requests auth
handler, so the request is prepared with requests purely to be signed; it is
sent by httpx.
"""

import logging
from typing import Dict

import requests
from akamai.edgegrid import EdgeGridAuth

from fastpurge.domain.exceptions import SigningError
from fastpurge.domain.interfaces.signer import RequestSigner
from fastpurge.domain.models.purge import EdgeCredentials

logger = logging.getLogger(__name__)


class EdgeGridSigner(RequestSigner):
    """Signs purge requests with one edgerc section's credentials."""

    def __init__(self, credentials: EdgeCredentials):
        self._auth = EdgeGridAuth(
            client_token=credentials.client_token,
            client_secret=credentials.client_secret,
            access_token=credentials.access_token,
            max_body=credentials.max_body,
        )
        logger.debug(f"EdgeGridSigner initialized for host {credentials.host}")

    def sign(self, method: str, url: str, body: bytes, headers: Dict[str, str]) -> Dict[str, str]:
        try:
            prepared = requests.Request(method, url, data=body, headers=headers).prepare()
            self._auth(prepared)
        except (ValueError, TypeError, AttributeError, UnicodeError) as e:
            raise SigningError(f"Failed to sign {method} {url}: {e}") from e
        return dict(prepared.headers)

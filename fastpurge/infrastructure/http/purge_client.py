"""HTTP client for the Fast Purge (CCU v3) endpoint.

Owns one httpx.AsyncClient (connection pool) shared concurrently by all
delivery tasks. Each request is signed just before it is sent.
"""

import logging
from typing import Dict, Optional

import httpx

from fastpurge.domain.interfaces.signer import RequestSigner
from fastpurge.domain.models.purge import PurgeConfig

logger = logging.getLogger(__name__)

PURGE_HTTP_METHOD = "POST"


class FastPurgeClient:
    """Builds, signs and sends purge requests."""

    def __init__(
        self,
        config: PurgeConfig,
        signer: RequestSigner,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the client.

        Args:
            config: Validated run configuration (host, method, network).
            signer: Produces the Authorization header for each request.
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.config = config
        self.signer = signer
        self._http = httpx.AsyncClient(timeout=config.timeout, transport=transport)
        logger.info(f"FastPurgeClient initialized: endpoint={config.endpoint_url}")

    def build_request(self, body: bytes) -> httpx.Request:
        """Creates a signed POST request carrying ``body`` verbatim.

        Raises:
            SigningError: Propagated from the signer; never retried.
        """
        url = self.config.endpoint_url
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        signed_headers = self.signer.sign(PURGE_HTTP_METHOD, url, body, headers)
        return self._http.build_request(PURGE_HTTP_METHOD, url, content=body, headers=signed_headers)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Sends a request. Transport failures raise httpx.TransportError."""
        return await self._http.send(request)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "FastPurgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

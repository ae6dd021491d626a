"""Interface for request signing.

Defines the contract for attaching an authorization header to an outbound
purge request. The concrete EdgeGrid implementation lives in the
infrastructure layer.
"""

import abc
from typing import Dict


class RequestSigner(abc.ABC):
    """Abstract Base Class for request signers."""

    @abc.abstractmethod
    def sign(self, method: str, url: str, body: bytes, headers: Dict[str, str]) -> Dict[str, str]:
        """Computes the authorization header for a request.

        Args:
            method: HTTP method, e.g. "POST".
            url: Full request URL.
            body: Exact body bytes that will be sent.
            headers: Headers that will be sent with the request.

        Returns:
            A new header mapping including "Authorization".

        Raises:
            SigningError: If the credentials are malformed. Fatal, never retried.
        """
        pass

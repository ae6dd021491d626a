"""Per-chunk delivery with bounded retries.

Each chunk is delivered by a single sequential loop:

    Attempting -> Succeeded                  (201)
    Attempting -> RateLimited -> Attempting  (429, 507, transport errors)
    Attempting -> FailedTerminal             (any other status)
    Attempting -> ExhaustedRetries           (retry_threshold attempts used)

Between attempt i and i+1 the loop sleeps uniform(base*2^i/2, base*2^i)
seconds ("full jitter" over the upper half of the exponential value).
Attempts of one chunk never overlap; other chunks are unaffected by the sleep.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

import httpx

from fastpurge.domain.models.common import (
    BASE_DELAY_SECONDS,
    RATE_LIMITED_STATUSES,
    RETRY_THRESHOLD,
    STATUS_CREATED,
    HttpStatus,
)
from fastpurge.domain.models.purge import (
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryResult,
    RequestBody,
)
from fastpurge.infrastructure.http.purge_client import FastPurgeClient

logger = logging.getLogger(__name__)

# Classification of a single response
SUCCESS = "success"
RETRYABLE = "retryable"
TERMINAL = "terminal"


def backoff_delay(
    attempt_index: int,
    base: float = BASE_DELAY_SECONDS,
    rng: Optional[random.Random] = None,
) -> float:
    """Delay in seconds after 0-indexed attempt ``attempt_index``."""
    ceiling = base * (2 ** attempt_index)
    return (rng or random).uniform(ceiling / 2, ceiling)


def classify_status(status: int, retry_server_errors: bool = False) -> str:
    """Maps an HTTP status onto SUCCESS, RETRYABLE or TERMINAL.

    Only 429 and 507 are retried by default. Other 5xx responses end the loop
    unless ``retry_server_errors`` is set.
    """
    if status == STATUS_CREATED:
        return SUCCESS
    if status in RATE_LIMITED_STATUSES:
        return RETRYABLE
    if retry_server_errors and status >= 500:
        return RETRYABLE
    return TERMINAL


class DeliveryRetrier:
    """Runs the retry loop for one chunk at a time."""

    def __init__(
        self,
        client: FastPurgeClient,
        retry_threshold: int = RETRY_THRESHOLD,
        base_delay: float = BASE_DELAY_SECONDS,
        retry_server_errors: bool = False,
        log: Optional[logging.Logger] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the DeliveryRetrier.

        Args:
            client: Shared purge client used to build and send requests.
            retry_threshold: Maximum number of attempts per chunk.
            base_delay: Base of the exponential backoff, in seconds.
            retry_server_errors: Also retry 5xx statuses other than 507.
            log: Logger handle for per-chunk diagnostics.
            rng: Random source for jitter.
            sleep: Coroutine used to wait between attempts.
        """
        self.client = client
        self.retry_threshold = retry_threshold
        self.base_delay = base_delay
        self.retry_server_errors = retry_server_errors
        self.log = log or logger
        self.rng = rng
        self.sleep = sleep

    async def deliver(self, body: RequestBody) -> DeliveryResult:
        """Delivers one chunk, retrying until a terminal state is reached.

        Raises:
            SigningError: If the request cannot be signed. Never retried.
        """
        attempt = DeliveryAttempt(body=body)
        outcome = await self._run(attempt)
        return DeliveryResult(
            request_id=attempt.request_id,
            outcome=outcome,
            attempts=attempt.attempt_count,
            last_status=attempt.last_status,
            object_count=len(body.objects),
        )

    async def _run(self, attempt: DeliveryAttempt) -> DeliveryOutcome:
        while attempt.attempt_count < self.retry_threshold:
            request = self.client.build_request(attempt.body_bytes)
            index = attempt.attempt_count
            attempt.attempt_count += 1

            try:
                response = await self.client.send(request)
            except httpx.TransportError as e:
                self.log.warning(
                    f"request_id: {attempt.request_id}, attempt {attempt.attempt_count}/{self.retry_threshold}, "
                    f"request failed: {type(e).__name__}: {e}"
                )
            else:
                attempt.last_status = HttpStatus(response.status_code)
                self.log.info(
                    f"request_id: {attempt.request_id}, status: {response.status_code}, response: {response.text}"
                )
                verdict = classify_status(response.status_code, self.retry_server_errors)
                if verdict == SUCCESS:
                    return DeliveryOutcome.SUCCEEDED
                if verdict == TERMINAL:
                    self._log_terminal_failure(attempt, request, response)
                    return DeliveryOutcome.FAILED_TERMINAL

            if attempt.attempt_count < self.retry_threshold:
                delay = backoff_delay(index, self.base_delay, self.rng)
                self.log.info(
                    f"request_id: {attempt.request_id}, retrying in {delay:.2f}s "
                    f"(attempt {attempt.attempt_count + 1}/{self.retry_threshold})"
                )
                await self.sleep(delay)

        self.log.error(
            f"request_id: {attempt.request_id}, giving up after {attempt.attempt_count} attempts, "
            f"last status: {attempt.last_status}"
        )
        return DeliveryOutcome.EXHAUSTED_RETRIES

    def _log_terminal_failure(
        self,
        attempt: DeliveryAttempt,
        request: httpx.Request,
        response: httpx.Response,
    ) -> None:
        self.log.error(
            f"request_id: {attempt.request_id}, content_length: {len(attempt.body_bytes)}, "
            f"status: {response.status_code}, response: {response.text}, "
            f"authorization: {request.headers.get('Authorization')}, "
            f"request_body: {attempt.body_bytes.decode('utf-8', errors='replace')}"
        )

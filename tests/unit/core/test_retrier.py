import logging
import random

import httpx
import pytest

from conftest import ScriptedTransport, run
from fastpurge.core.services.chunker import build_request_body
from fastpurge.core.services.retrier import (
    RETRYABLE,
    SUCCESS,
    TERMINAL,
    backoff_delay,
    classify_status,
)
from fastpurge.domain.exceptions import SigningError
from fastpurge.domain.models.purge import DeliveryOutcome, RequestBody


@pytest.fixture
def body():
    return build_request_body(["https://example.com/a", "https://example.com/b"])


# --- Backoff ---

@pytest.mark.parametrize("attempt_index", range(10))
def test_backoff_delay_within_half_to_full_range(attempt_index):
    rng = random.Random(attempt_index)
    ceiling = 5 * 2 ** attempt_index
    for _ in range(200):
        delay = backoff_delay(attempt_index, rng=rng)
        assert ceiling / 2 <= delay <= ceiling


def test_backoff_delay_uses_base():
    assert backoff_delay(3, base=0) == 0


# --- Classification ---

@pytest.mark.parametrize(
    "status, retry_server_errors, expected",
    [
        (201, False, SUCCESS),
        (429, False, RETRYABLE),
        (507, False, RETRYABLE),
        (500, False, TERMINAL),
        (503, False, TERMINAL),
        (400, False, TERMINAL),
        (200, False, TERMINAL),
        (500, True, RETRYABLE),
        (503, True, RETRYABLE),
        (403, True, TERMINAL),
    ]
)
def test_classify_status(status, retry_server_errors, expected):
    assert classify_status(status, retry_server_errors) == expected


# --- Retry loop ---

def test_success_on_first_attempt(make_retrier, body, recorded_sleeps):
    transport = ScriptedTransport([201])
    result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.SUCCEEDED
    assert result.attempts == 1
    assert result.last_status == 201
    assert result.object_count == 2
    assert recorded_sleeps == []


def test_server_error_then_success_when_server_errors_retried(make_retrier, body, recorded_sleeps):
    transport = ScriptedTransport([500, 201])
    result = run(make_retrier(transport, retry_server_errors=True).deliver(body))

    assert result.outcome is DeliveryOutcome.SUCCEEDED
    assert len(transport.requests) == 2
    assert len(recorded_sleeps) == 1
    assert 2.5 <= recorded_sleeps[0] <= 5


def test_server_error_is_terminal_by_default(make_retrier, body, recorded_sleeps):
    transport = ScriptedTransport([500, 201])
    result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.FAILED_TERMINAL
    assert result.attempts == 1
    assert result.last_status == 500
    assert recorded_sleeps == []


def test_rate_limited_until_exhausted(make_retrier, body, recorded_sleeps):
    transport = ScriptedTransport([429] * 10, default_status=201)
    result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.EXHAUSTED_RETRIES
    assert result.attempts == 10
    assert len(transport.requests) == 10
    # No sleep after the final permitted attempt.
    assert len(recorded_sleeps) == 9
    for index, delay in enumerate(recorded_sleeps):
        assert 5 * 2 ** index / 2 <= delay <= 5 * 2 ** index


def test_insufficient_storage_is_retried(make_retrier, body):
    transport = ScriptedTransport([507, 429, 201])
    result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.SUCCEEDED
    assert result.attempts == 3


def test_transport_error_is_retried(make_retrier, body, recorded_sleeps, caplog):
    transport = ScriptedTransport([httpx.ConnectError("connection refused"), 201])
    with caplog.at_level(logging.WARNING):
        result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.SUCCEEDED
    assert result.attempts == 2
    assert len(recorded_sleeps) == 1
    assert "connection refused" in caplog.text


def test_transport_errors_exhaust_budget(make_retrier, body):
    transport = ScriptedTransport([httpx.ReadTimeout("timed out")] * 3)
    result = run(make_retrier(transport, retry_threshold=3).deliver(body))

    assert result.outcome is DeliveryOutcome.EXHAUSTED_RETRIES
    assert result.attempts == 3
    assert result.last_status is None


def test_terminal_failure_logs_diagnostics(make_retrier, body, caplog):
    transport = ScriptedTransport([400])
    with caplog.at_level(logging.ERROR):
        result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.FAILED_TERMINAL
    assert result.request_id in caplog.text
    assert "status: 400" in caplog.text
    assert f"content_length: {len(body.to_bytes())}" in caplog.text
    assert "EG1-HMAC-SHA256" in caplog.text
    assert "https://example.com/a" in caplog.text


def test_same_bytes_resent_on_every_attempt(make_retrier, body, fake_signer):
    transport = ScriptedTransport([429, 429, 201])
    run(make_retrier(transport).deliver(body))

    contents = {request.content for request in transport.requests}
    assert contents == {body.to_bytes()}
    assert len(fake_signer.calls) == 3


def test_request_targets_ccu_endpoint(make_retrier, body):
    transport = ScriptedTransport([201])
    run(make_retrier(transport).deliver(body))

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url).endswith("/ccu/v3/invalidate/url/production")
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Authorization"].startswith("EG1-HMAC-SHA256")


def test_explicit_logger_handle_is_used(make_retrier, body, caplog):
    log = logging.getLogger("test.delivery")
    transport = ScriptedTransport([201])
    with caplog.at_level(logging.INFO, logger="test.delivery"):
        run(make_retrier(transport, log=log).deliver(body))

    assert any(record.name == "test.delivery" for record in caplog.records)


def test_signing_error_is_not_retried(make_retrier, body, mocker):
    transport = ScriptedTransport([201])
    retrier = make_retrier(transport)
    mocker.patch.object(retrier.client.signer, "sign", side_effect=SigningError("bad secret"))

    with pytest.raises(SigningError):
        run(retrier.deliver(body))
    assert transport.requests == []


@pytest.mark.parametrize("objects", [5, None, "https://example.com/a", {"url": "/a"}])
def test_json_document_without_objects_list_is_delivered(make_retrier, objects):
    body = RequestBody(payload={"objects": objects, "hostname": "www.example.com"})
    transport = ScriptedTransport([201])

    result = run(make_retrier(transport).deliver(body))

    assert result.outcome is DeliveryOutcome.SUCCEEDED
    assert result.object_count == 0
    assert len(transport.requests) == 1


def test_json_document_with_no_objects_key_counts_zero(make_retrier):
    body = RequestBody(payload={"hostname": "www.example.com"})
    result = run(make_retrier(ScriptedTransport([201])).deliver(body))
    assert result.object_count == 0

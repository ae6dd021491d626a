import asyncio
import os
import random
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from fastpurge.core.services.retrier import DeliveryRetrier
from fastpurge.domain.interfaces.signer import RequestSigner
from fastpurge.domain.models.purge import EdgeCredentials, PurgeConfig
from fastpurge.infrastructure.config import settings
from fastpurge.infrastructure.http.purge_client import FastPurgeClient

TEST_HOST = "akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.purge.akamaiapis.net"

EDGERC_TEMPLATE = """[default]
host = {host}
client_token = akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_secret = XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX
access_token = akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx

[no-secret]
host = {host}
client_token = akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
access_token = akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
"""


class FakeSigner(RequestSigner):
    """Attaches a fixed Authorization header and records what it signed."""

    def __init__(self):
        self.calls = []

    def sign(self, method, url, body, headers):
        self.calls.append((method, url, body))
        signed = dict(headers)
        signed["Authorization"] = "EG1-HMAC-SHA256 client_token=test;signature=fake"
        return signed


class ScriptedTransport:
    """httpx.MockTransport handler replying with a scripted status sequence.

    Items may be an int status or an exception instance to raise.
    """

    def __init__(self, script: List, default_status: int = 201):
        self.script = list(script)
        self.default_status = default_status
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0) if self.script else self.default_status
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item, json={"httpStatus": item, "detail": "scripted"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def credentials() -> EdgeCredentials:
    return EdgeCredentials(
        host=TEST_HOST,
        client_token="akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx",
        client_secret="XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX",
        access_token="akab-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx",
    )


@pytest.fixture
def purge_config(credentials) -> PurgeConfig:
    return PurgeConfig(
        method="invalidate",
        network="production",
        file_type="text",
        credentials=credentials,
    )


@pytest.fixture
def fake_signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def recorded_sleeps() -> List[float]:
    return []


@pytest.fixture
def make_retrier(purge_config, fake_signer, recorded_sleeps) -> Callable[..., DeliveryRetrier]:
    """Builds a DeliveryRetrier over a scripted transport with a no-op sleep."""

    async def fake_sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    def _make(transport: ScriptedTransport, config: Optional[PurgeConfig] = None, **kwargs) -> DeliveryRetrier:
        client = FastPurgeClient(config or purge_config, fake_signer, transport=transport.transport)
        kwargs.setdefault("rng", random.Random(1234))
        return DeliveryRetrier(client, sleep=fake_sleep, **kwargs)

    return _make


def run(coro):
    """Drives a coroutine to completion, the way the CLI does."""
    return asyncio.run(coro)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def edgerc_file(tmp_path: Path) -> Path:
    path = tmp_path / "edgerc"
    path.write_text(EDGERC_TEMPLATE.format(host=TEST_HOST))
    return path


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keeps user config files and FASTPURGE_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith(settings.ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_FILE", tmp_path / "missing-config.yaml")
    monkeypatch.setattr(settings, "find_dotenv_path", lambda: None)
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.setattr(settings, "_config", {})
    settings.clear_test_config()
    yield
    settings.clear_test_config()

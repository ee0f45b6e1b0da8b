import json
from collections.abc import AsyncIterator
from typing import Callable

import httpx
import pytest
import pytest_asyncio

from nihongo_lens.main import app, get_upstream_client
from nihongo_lens.settings import Settings, get_settings
from nihongo_lens.upstream_client import UpstreamClient

_ENV_VARS = (
    "CODE",
    "API_KEY",
    "API_URL",
    "MODEL_NAME",
    "TTS_URL",
    "TTS_MODEL",
    "EDGE_TTS_URL",
    "UPSTREAM_TIMEOUT",
    "EXPLANATION_LANGUAGE",
)


class DummyStream(httpx.AsyncByteStream):
    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk

    async def aclose(self) -> None:  # pragma: no cover - nothing to close in tests
        return None


class Recorder:
    """Collects the requests a MockTransport handler receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def record(self, request: httpx.Request) -> None:
        self.requests.append(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_payload(self) -> dict:
        return json.loads(self.last.content.decode())


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    get_upstream_client.cache_clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def configure(recorder: Recorder):
    """Point the app at a mocked provider and the given settings."""

    def _configure(
        handler: Callable[[httpx.Request], httpx.Response],
        **settings_overrides,
    ) -> None:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorder.record(request)
            return handler(request)

        settings = Settings(_env_file=None, **settings_overrides)
        upstream = UpstreamClient(transport=httpx.MockTransport(recording_handler))
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_upstream_client] = lambda: upstream

    return _configure


@pytest_asyncio.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

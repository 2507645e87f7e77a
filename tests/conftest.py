"""
Shared pytest fixtures.

Settings are built explicitly per test so nothing depends on the real
environment or on a developer's ~/env/.env file.
"""
from __future__ import annotations

import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from appraisal import config
from appraisal.config import Settings

ANALYSIS = {
    "description": "A red mug",
    "valueRange": "$5-$10",
    "whereToBuySell": "Thrift stores",
    "backgroundInfo": "Mugs are common.",
}

IMAGE_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\nfake-image-bytes").decode()


@pytest.fixture(autouse=True)
def no_shared_env_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "_ENV_FILE", tmp_path / "missing.env")


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        values = dict(
            anthropic_api_key="test-anthropic-key",
            serpapi_api_key="",
            blob_read_write_token="",
            blob_api_url="https://blob.test",
            serpapi_base_url="https://serpapi.test/search.json",
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def enriched_settings(make_settings):
    return make_settings(serpapi_api_key="test-serp-key", blob_read_write_token="test-blob-token")


def text_message(*texts: str):
    """Fake anthropic Message with one text block per argument."""
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


def fake_anthropic(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def blob_handler(fail_delete: bool = False, fail_upload: bool = False):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            if fail_upload:
                return httpx.Response(503, json={"error": "unavailable"})
            return httpx.Response(200, json={"url": f"https://public.blob.test{request.url.path}"})
        if request.url.path == "/delete":
            if fail_delete:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json={})
        return httpx.Response(404)

    return handler


def lens_handler(matches=None, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"error": "server error"})
        body = {} if matches is None else {"visual_matches": matches}
        return httpx.Response(200, content=json.dumps(body).encode(), headers={"content-type": "application/json"})

    return handler

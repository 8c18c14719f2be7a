import io
import json
import socket
from urllib import error

import pytest

from minutes_api.errors import UpstreamError, classify_extraction_error
from minutes_api.services import gemini
from minutes_api.services.gemini import GeminiClient


def _reply(payload):
    return io.BytesIO(json.dumps(payload).encode("utf-8"))


def test_generate_joins_candidate_text_parts(monkeypatch):
    seen = {}

    def fake_urlopen(req, context=None, timeout=None):
        seen["url"] = req.full_url
        seen["headers"] = dict(req.header_items())
        seen["body"] = json.loads(req.data.decode("utf-8"))
        seen["timeout"] = timeout
        seen["context"] = context
        return _reply({"candidates": [{"content": {"parts": [{"text": '{"summary": '}, {"text": '"x"}'}]}}]})

    monkeypatch.setattr(gemini.request, "urlopen", fake_urlopen)
    client = GeminiClient(api_key="k-123", model="gemini-test", base_url="https://example.test/", timeout=5)

    assert client.generate("hello") == '{"summary": "x"}'
    assert seen["url"] == "https://example.test/v1beta/models/gemini-test:generateContent"
    assert seen["headers"]["X-goog-api-key"] == "k-123"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "hello"
    assert seen["timeout"] == 5
    # default TLS verification; no opt-out context is passed
    assert seen["context"] is None


def test_missing_key_fails_without_network(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("network should not be used")

    monkeypatch.setattr(gemini.request, "urlopen", fail)
    with pytest.raises(UpstreamError) as excinfo:
        GeminiClient(api_key=None).generate("hello")
    assert classify_extraction_error(str(excinfo.value)).status_code == 401


def test_http_error_body_is_kept_for_classification(monkeypatch):
    def fake_urlopen(req, context=None, timeout=None):
        body = io.BytesIO(b'{"error": {"code": 429, "message": "You exceeded your current quota."}}')
        raise error.HTTPError(req.full_url, 429, "Too Many Requests", hdrs=None, fp=body)

    monkeypatch.setattr(gemini.request, "urlopen", fake_urlopen)
    with pytest.raises(UpstreamError) as excinfo:
        GeminiClient(api_key="k").generate("hello")
    assert "HTTP 429" in str(excinfo.value)
    assert classify_extraction_error(str(excinfo.value)).status_code == 429


def test_socket_timeout_is_reported_as_timeout(monkeypatch):
    def fake_urlopen(req, context=None, timeout=None):
        raise socket.timeout("timed out")

    monkeypatch.setattr(gemini.request, "urlopen", fake_urlopen)
    with pytest.raises(UpstreamError) as excinfo:
        GeminiClient(api_key="k", timeout=2).generate("hello")
    assert classify_extraction_error(str(excinfo.value)).status_code == 504


def test_no_candidates_is_an_upstream_error(monkeypatch):
    def fake_urlopen(req, context=None, timeout=None):
        return _reply({"promptFeedback": {"blockReason": "SAFETY"}})

    monkeypatch.setattr(gemini.request, "urlopen", fake_urlopen)
    with pytest.raises(UpstreamError) as excinfo:
        GeminiClient(api_key="k").generate("hello")
    assert "SAFETY" in str(excinfo.value)

from __future__ import annotations

import json
import logging
import socket
from typing import Any, Dict, Optional
from urllib import request, error

from ..errors import UpstreamError

logger = logging.getLogger("minutes.gemini")


def _http_post(url: str, headers: Dict[str, str], data: Dict[str, Any], timeout: float = 60.0) -> Dict[str, Any]:
    body = json.dumps(data).encode("utf-8")
    hdrs = {"User-Agent": "meeting-minutes-extractor/1.0 python-urllib", **headers}
    req = request.Request(url, data=body, headers=hdrs, method="POST")
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
            return json.loads(raw.decode("utf-8"))
    except error.HTTPError as e:
        try:
            payload = e.read().decode("utf-8")
        except Exception:
            payload = str(e)
        raise UpstreamError(f"HTTP {e.code}: {payload}")
    except (socket.timeout, TimeoutError) as e:
        raise UpstreamError(f"Upstream request timeout after {timeout:g}s") from e
    except error.URLError as e:
        if isinstance(e.reason, (socket.timeout, TimeoutError)):
            raise UpstreamError(f"Upstream request timeout after {timeout:g}s") from e
        raise UpstreamError(f"Upstream request failed: {e.reason}") from e
    except json.JSONDecodeError as e:
        raise UpstreamError(f"Upstream returned a non-JSON envelope: {e}") from e


class GeminiClient:
    """Text-in/text-out client for the Gemini `generateContent` REST call.

    Built once at start-up and shared by all requests; it holds no per-request
    state. Any failure surfaces as `UpstreamError`, whose message is what the
    error classifier inspects.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamError("Missing API key for the upstream AI service")
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        res = _http_post(
            f"{self.base_url}/v1beta/models/{self.model}:generateContent",
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
            data=payload,
            timeout=self.timeout,
        )
        candidates = res.get("candidates") or []
        if not candidates:
            reason = (res.get("promptFeedback") or {}).get("blockReason")
            raise UpstreamError(f"Gemini returned no candidates (blockReason={reason})")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        logger.debug(f"gemini reply chars={len(text)} model={self.model}")
        return text

from __future__ import annotations

import requests

from crossreview_core.agents.base import BaseAgent
from crossreview_core.errors import AgentError
from crossreview_core.models import ProviderResponse, TokenUsage

_DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
_TIMEOUT = 120


class GeminiAgent(BaseAgent):
    """Gemini over the generateContent REST endpoint."""

    MODEL = "gemini-2.5-pro"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, api_base: str | None = None):
        super().__init__("gemini", "Gemini")
        self.model = model or self.MODEL
        self.api_base = (api_base or _DEFAULT_API_BASE).rstrip("/")
        self.session = requests.Session()
        self.session.headers["x-goog-api-key"] = api_key

    def _call_api(self, prompt: str) -> ProviderResponse:
        resp = self.session.post(
            f"{self.api_base}/models/{self.model}:generateContent",
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": self.TEMPERATURE, "maxOutputTokens": self.MAX_TOKENS},
            },
            timeout=_TIMEOUT,
        )
        if not resp.ok:
            raise AgentError(f"Gemini: generateContent failed ({resp.status_code}): {resp.text}")

        data = resp.json()
        parts = []
        for candidate in data.get("candidates", []):
            for part in candidate.get("content", {}).get("parts", []):
                if part.get("text"):
                    parts.append(part["text"])
        if not parts:
            raise AgentError("Gemini: response contained no text")

        meta = data.get("usageMetadata", {})
        return ProviderResponse(
            content="".join(parts).strip(),
            usage=TokenUsage(
                prompt_tokens=meta.get("promptTokenCount"),
                completion_tokens=meta.get("candidatesTokenCount"),
                total_tokens=meta.get("totalTokenCount"),
            ),
        )

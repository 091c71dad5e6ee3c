from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from crossreview_core.agents.base import BaseAgent
from crossreview_core.models import ProviderResponse, TokenUsage


class OpenAIAgent(BaseAgent):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, api_base: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. "
                "Install it with: pip install 'crossreview[openai]'"
            )
        super().__init__("openai", "OpenAI/Codex")
        self.model = model or self.MODEL
        self.client = _OpenAI(api_key=api_key, base_url=api_base) if api_base else _OpenAI(api_key=api_key)

    def _call_api(self, prompt: str) -> ProviderResponse:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        usage = response.usage
        return ProviderResponse(
            content=(response.choices[0].message.content or "").strip(),
            usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", None),
                completion_tokens=getattr(usage, "completion_tokens", None),
                total_tokens=getattr(usage, "total_tokens", None),
            ),
        )

from __future__ import annotations

from crossreview_core.agents.base import BaseAgent
from crossreview_core.models import ProviderResponse, TokenUsage


class AnthropicAgent(BaseAgent):
    MODEL = "claude-sonnet-4-20250514"
    # Slightly higher than OpenAI's 0.2; reviews here are free-form Markdown.
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str | None = None, api_base: str | None = None):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'crossreview[anthropic]'"
            )
        super().__init__("anthropic", "Claude")
        self.model = model or self.MODEL
        self.client = Anthropic(api_key=api_key, base_url=api_base) if api_base else Anthropic(api_key=api_key)

    def _call_api(self, prompt: str) -> ProviderResponse:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]

        usage = response.usage
        input_tokens = getattr(usage, "input_tokens", None)
        output_tokens = getattr(usage, "output_tokens", None)
        total = input_tokens + output_tokens if input_tokens is not None and output_tokens is not None else None
        return ProviderResponse(
            content="".join(text_blocks).strip(),
            usage=TokenUsage(prompt_tokens=input_tokens, completion_tokens=output_tokens, total_tokens=total),
        )

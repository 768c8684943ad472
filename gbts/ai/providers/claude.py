# ==============================================
# ClaudeProvider: Anthropic messages API
# ==============================================

import math

from .base import AIProvider


ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

# USD per 1M tokens
INPUT_COST_PER_1M = 3.0
OUTPUT_COST_PER_1M = 15.0


class ClaudeProvider(AIProvider):
    name = "claude"
    cost = 0.015
    speed = "fast"
    quality = "high"
    supports_streaming = True
    key_env_var = "CLAUDE_API_KEY"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, url: str = ANTHROPIC_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.url = url

    def transpile(self, prompt: str) -> str:
        body = self._post(
            self.url,
            {
                "model": self.model,
                "max_tokens": 4000,
                "temperature": 0.1,
                "messages": [{"role": "user", "content": prompt}],
            },
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
        )

        # Only text blocks carry the answer
        blocks = body.get("content")
        content = "\n".join(
            block["text"]
            for block in (blocks if isinstance(blocks, list) else [])
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
        )
        return self._require_content(content)

    def estimate_cost(self, prompt: str, response: str) -> float:
        input_tokens = math.ceil(len(prompt) / 4)
        output_tokens = math.ceil(len(response) / 4)
        return (input_tokens / 1_000_000) * INPUT_COST_PER_1M + (output_tokens / 1_000_000) * OUTPUT_COST_PER_1M

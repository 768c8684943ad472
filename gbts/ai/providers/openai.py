# ==============================================
# OpenAIProvider: chat completions API
# ==============================================

import math

from .base import AIProvider


OPENAI_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4"
SYSTEM_PROMPT = (
    "You are an expert GameBoy C programmer. "
    "Convert JavaScript/TypeScript to optimal GameBoy C code using GBDK."
)

# USD per 1M tokens
INPUT_COST_PER_1M = 30.0
OUTPUT_COST_PER_1M = 60.0


class OpenAIProvider(AIProvider):
    name = "openai"
    cost = 0.01
    speed = "medium"
    quality = "high"
    supports_streaming = True
    key_env_var = "OPENAI_API_KEY"

    system_prompt = SYSTEM_PROMPT

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, url: str = OPENAI_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.url = url

    def transpile(self, prompt: str) -> str:
        body = self._post(self.url, self._payload(prompt), headers=self._headers())

        choices = body.get("choices")
        first = choices[0] if isinstance(choices, list) and choices else {}
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if content is not None and not isinstance(content, str):
            content = None
        return self._require_content(content)

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 4000,
            "temperature": 0.1,
            "top_p": 0.9,
        }

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def display_name(self) -> str:
        return "OpenAI"

    def estimate_cost(self, prompt: str, response: str) -> float:
        input_tokens = math.ceil(len(prompt) / 4)
        output_tokens = math.ceil(len(response) / 4)
        return (input_tokens / 1_000_000) * INPUT_COST_PER_1M + (output_tokens / 1_000_000) * OUTPUT_COST_PER_1M

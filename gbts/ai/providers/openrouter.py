# ==============================================
# OpenRouterProvider: OpenAI-compatible router
# ==============================================
#
# Same wire format as OpenAI, different endpoint and two
# attribution headers. Pricing depends on the routed model.
#
# ==============================================

from .base import estimate_tokens
from .openai import OpenAIProvider


OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"


class OpenRouterProvider(OpenAIProvider):
    name = "openrouter"
    cost = 0.008
    speed = "medium"
    quality = "high"
    key_env_var = "OPENROUTER_API_KEY"

    system_prompt = (
        "You are an expert GameBoy C programmer. Convert JavaScript/TypeScript to optimal "
        "GameBoy C code using GBDK. Focus on memory efficiency, GameBoy hardware constraints, "
        "and proper GBDK functions."
    )

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, url: str = OPENROUTER_URL, **kwargs):
        super().__init__(api_key, model=model or DEFAULT_MODEL, url=url, **kwargs)

    def _headers(self) -> dict:
        headers = super()._headers()
        headers["HTTP-Referer"] = "https://github.com/Freuhlon/gbts"
        headers["X-Title"] = "GBTS - GameBoy TypeScript Transpiler"
        return headers

    def display_name(self) -> str:
        return "OpenRouter"

    def estimate_cost(self, prompt: str, response: str) -> float:
        tokens = estimate_tokens(prompt + response)
        cost_per_1k = 0.015 if "claude" in self.model else 0.03
        return tokens / 1000 * cost_per_1k

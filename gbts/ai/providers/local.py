# ==============================================
# LocalProvider: self-hosted model (Ollama generate API)
# ==============================================

from gbts.config import LocalLLMConfig

from .base import AIProvider


class LocalProvider(AIProvider):
    name = "local"
    cost = 0.0
    speed = "slow"
    quality = "medium"

    def __init__(self, settings: LocalLLMConfig, **kwargs):
        super().__init__(**kwargs)
        self.settings = settings

    def transpile(self, prompt: str) -> str:
        body = self._post(
            self.settings.endpoint,
            {
                "model": self.settings.model,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "temperature": self.settings.temperature,
                    "num_predict": self.settings.max_tokens,
                },
            },
        )
        response = body.get("response")
        return self._require_content(response if isinstance(response, str) else None)

    def estimate_cost(self, prompt: str, response: str) -> float:
        return 0.0

    def display_name(self) -> str:
        return "Local LLM"

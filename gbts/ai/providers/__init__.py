# ==============================================
# AI PROVIDERS
# ==============================================
#
# One class per text-generation backend. All of them speak
# HTTP through requests and return bare C code.
#
# Modules:
# --------
# - base.py        → AIProvider, C-code extraction helpers
# - claude.py      → Anthropic messages API
# - openai.py      → OpenAI chat completions
# - openrouter.py  → OpenRouter (OpenAI-compatible)
# - local.py       → Ollama-style local endpoint
#
# ==============================================

from .base import AIProvider, extract_c_code, looks_like_c_code
from .claude import ClaudeProvider
from .openai import OpenAIProvider
from .openrouter import OpenRouterProvider
from .local import LocalProvider

__all__ = [
    "AIProvider",
    "ClaudeProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "LocalProvider",
    "extract_c_code",
    "looks_like_c_code",
]

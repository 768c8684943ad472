# ==============================================
# AIProvider (base class)
# ==============================================
#
# PURPOSE:
#   Common behavior of every text-generation backend:
#     - POST a JSON payload with requests and map failures to
#       ProviderError / ProviderAuthError / ProviderRateLimitError
#     - pull the C code out of a chatty model response
#     - estimate what a call cost
#
# SUBCLASS CONTRACT:
# ------------------
#   - name, cost (USD per 1K tokens), speed, quality
#   - transpile(prompt) -> str            (C code only)
#   - estimate_cost(prompt, response) -> float
#
# ==============================================

import math
import re
from typing import Optional

import requests

from gbts.errors import ProviderError, ProviderAuthError, ProviderRateLimitError


C_INDICATORS = (
    "#include",
    "void main(",
    "int main(",
    "unsigned char",
    "signed char",
    "printf(",
    "scanf(",
    ";",
    "{",
    "}",
    "#define",
)

_C_FENCE = re.compile(r"```c\n([\s\S]*?)\n```")
_ANY_FENCE = re.compile(r"```\n([\s\S]*?)\n```")
_CODE_BLOCK = re.compile(r"```[\s\S]*?```")
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_INLINE_CODE = re.compile(r"`(.*?)`")


def estimate_tokens(text: str) -> int:
    """Rough token count: ~4 characters per token."""
    return math.ceil(len(text) / 4)


def looks_like_c_code(text: str) -> bool:
    """At least 3 C indicators → probably C."""
    matches = sum(1 for indicator in C_INDICATORS if indicator in text)
    return matches >= 3


def extract_c_code(response: str) -> str:
    """
    Extract C code from a model response.

    Order of preference:
    1. a ```c fenced block
    2. a plain ``` fenced block that looks like C
    3. the response without markdown, if it looks like C
    4. the response from the first C-looking line onward
    """
    match = _C_FENCE.search(response)
    if match and match.group(1):
        return match.group(1).strip()

    match = _ANY_FENCE.search(response)
    if match and match.group(1) and looks_like_c_code(match.group(1)):
        return match.group(1).strip()

    cleaned = _CODE_BLOCK.sub("", response)
    cleaned = _BOLD.sub(r"\1", cleaned)
    cleaned = _ITALIC.sub(r"\1", cleaned)
    cleaned = _INLINE_CODE.sub(r"\1", cleaned)
    cleaned = cleaned.strip()

    if looks_like_c_code(cleaned):
        return cleaned

    code_lines = []
    in_code = False
    for line in cleaned.split("\n"):
        stripped = line.strip()
        if not in_code and (
            "#include" in stripped
            or "void main(" in stripped
            or "int main(" in stripped
            or "unsigned char" in stripped
            or "signed char" in stripped
            or "#define" in stripped
        ):
            in_code = True
        if in_code:
            code_lines.append(line)

    return "\n".join(code_lines) if code_lines else cleaned


class AIProvider:
    """Base class for HTTP text-generation providers."""

    name = "base"
    cost = 0.0          # USD per 1K tokens
    speed = "medium"    # fast | medium | slow
    quality = "medium"  # high | medium | low
    supports_streaming = False

    # Shown in authentication errors
    key_env_var: Optional[str] = None

    def __init__(self, timeout: float = 120.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def transpile(self, prompt: str) -> str:
        raise NotImplementedError

    def estimate_cost(self, prompt: str, response: str) -> float:
        tokens = estimate_tokens(prompt) + estimate_tokens(response)
        return tokens / 1000 * self.cost

    def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> dict:
        """POST JSON and return the decoded body, mapping failures to provider errors."""
        label = self.display_name()
        try:
            response = self.session.post(url, json=payload, headers=headers or {}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"{label} API connection error: {e}", cause=e)

        status = response.status_code
        if status in (401, 403):
            hint = f" Check your {self.key_env_var}." if self.key_env_var else ""
            raise ProviderAuthError(
                f"{label} API authentication error: {status} - {_error_message(response)}.{hint}",
                status=status,
            )
        if status == 429:
            raise ProviderRateLimitError(
                f"{label} API rate limit exceeded: {_error_message(response)}",
                status=status,
            )
        if status >= 400:
            raise ProviderError(f"{label} API error: {status} - {_error_message(response)}", status=status)

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(f"{label} API returned invalid JSON", status=status, cause=e)

        if not isinstance(body, dict):
            raise ProviderError(
                f"{label} API returned {type(body).__name__} instead of a JSON object", status=status
            )
        return body

    def _require_content(self, content: Optional[str]) -> str:
        if not content:
            raise ProviderError(f"No content received from {self.display_name()} API")
        return extract_c_code(content)

    def display_name(self) -> str:
        return self.name.capitalize()


def _error_message(response: requests.Response) -> str:
    """Best-effort error text from a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "unknown error"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    if error:
        return str(error)
    return str(body)[:200]

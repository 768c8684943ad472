# ==============================================
# AITranspiler
# ==============================================
#
# PURPOSE:
#   Convert one piece of TypeScript/JavaScript into GameBoy C by
#   prompting a text-generation provider.
#
# HOW A CALL FLOWS:
#
#   transpile(js_code, context)
#     │
#     ├── daily budget spent?              → BudgetExceededError
#     ├── cache hit?                       → cached copy (from_cache=True)
#     ├── similar learning examples        → few-shot section of the prompt
#     ├── PromptEngine.build_prompt()
#     │
#     └── for attempt in 1..max_retries:
#           ├── estimated cost over limits → BudgetExceededError (no retry)
#           ├── provider.transpile(prompt)
#           ├── empty / not C              → retry after RETRY_DELAY
#           ├── post-process, score, estimate, validate
#           └── cache + learn, return TranspilationResult
#
# CLASS: AITranspiler
# -------------------
#   Stateful: holds providers, the cache, learning examples and the
#   running daily spend.
#
#   Constructor:
#   ------------
#   - __init__(config: AppConfig, providers: dict | None = None,
#              sleep=time.sleep)
#       Builds providers from API keys unless given explicitly.
#       Raises MissingAPIKeyError when none is available.
#
#   Public Methods:
#   ---------------
#   - transpile(js_code, context, use_cache=True, max_retries=3)
#   - validate(c_code) -> ValidationResult
#   - estimate_quality(c_code) -> float
#
# ==============================================

import hashlib
import json
import re
import time
import uuid
from datetime import date
from typing import Callable, Dict, List, Optional

from gbts.config import AppConfig
from gbts.errors import BudgetExceededError, MissingAPIKeyError, TranspilationError, GBTSError
from gbts.logger import Logger

from .cache import TranspilationCache
from .models import (
    GameBoyContext,
    PerformanceMetrics,
    TranspilationExample,
    TranspilationMetadata,
    TranspilationResult,
    ValidationIssue,
    ValidationResult,
)
from .prompt_engine import PromptEngine
from .providers import (
    AIProvider,
    ClaudeProvider,
    LocalProvider,
    OpenAIProvider,
    OpenRouterProvider,
    looks_like_c_code,
)


RETRY_DELAY_SECONDS = 2.0
MAX_LEARNING_EXAMPLES = 100
MAX_PROMPT_EXAMPLES = 3
LEARNING_QUALITY_THRESHOLD = 0.7

GAMEBOY_RAM_BYTES = 8192
GAMEBOY_ROM_BYTES = 32768

LEARNING_KEYWORDS = (
    "console.log", "function", "const", "let", "var", "if", "for", "while",
    "array", "object", "class", "async", "await", "Promise", "setTimeout",
    "addEventListener", "Math.", "parseInt", "parseFloat", "JSON.",
    "forEach", "map", "filter", "reduce", "push", "pop", "splice",
)


class AITranspiler:
    """
    Transpiles source code through AI providers with caching, retries
    and budget control.
    """

    def __init__(
        self,
        config: AppConfig,
        providers: Optional[Dict[str, AIProvider]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.prompt_engine = PromptEngine()
        self.cache = TranspilationCache(
            max_size=config.caching.max_size,
            ttl_seconds=config.caching.ttl_seconds,
        )
        self.learning_data: List[TranspilationExample] = []
        self.daily_spent: float = 0.0
        self.last_reset_date: str = self._today()
        self._sleep = sleep

        self.providers: Dict[str, AIProvider] = (
            dict(providers) if providers is not None else self._initialize_providers()
        )
        if not self.providers:
            Logger.error("No AI providers available!")
            Logger.info("Set CLAUDE_API_KEY, OPENAI_API_KEY or OPENROUTER_API_KEY environment variables")
            Logger.info("Claude: https://console.anthropic.com/")
            Logger.info("OpenAI: https://platform.openai.com/api-keys")
            raise MissingAPIKeyError(
                "AI Transpiler requires at least one AI provider. "
                "Set CLAUDE_API_KEY, OPENAI_API_KEY or OPENROUTER_API_KEY."
            )

        Logger.success(f"{len(self.providers)} AI provider(s) ready: {', '.join(self.providers)}")

    def _initialize_providers(self) -> Dict[str, AIProvider]:
        providers_config = self.config.providers
        keys = providers_config.api_keys
        models = providers_config.models
        timeout = self.config.toolchain.request_timeout

        providers: Dict[str, AIProvider] = {}
        if keys.get("claude"):
            providers["claude"] = ClaudeProvider(keys["claude"], model=models.get("claude"), timeout=timeout)
        if keys.get("openai"):
            providers["openai"] = OpenAIProvider(keys["openai"], model=models.get("openai"), timeout=timeout)
        if keys.get("openrouter"):
            providers["openrouter"] = OpenRouterProvider(
                keys["openrouter"], model=models.get("openrouter"), timeout=timeout
            )
        if providers_config.local.enabled:
            providers["local"] = LocalProvider(providers_config.local, timeout=timeout)
        return providers

    # ------------------------------------------
    # Transpilation
    # ------------------------------------------

    def transpile(
        self,
        js_code: str,
        context: GameBoyContext,
        use_cache: bool = True,
        max_retries: int = 3,
    ) -> TranspilationResult:
        """
        Transpile source code to GameBoy C.

        Args:
            js_code: TypeScript/JavaScript source
            context: Target description (and project context for chunks)
            use_cache: Reuse an earlier result for identical input
            max_retries: Provider attempts before giving up

        Returns:
            TranspilationResult

        Raises:
            TranspilationError: the context names an unknown target, mode or feature
            BudgetExceededError: daily or per-call budget would be exceeded
            GBTSError: the last attempt's error after all retries failed
        """
        problems = context.validate()
        if problems:
            raise TranspilationError("Invalid GameBoy context: " + "; ".join(problems))

        use_cache = use_cache and self.config.caching.enabled
        budget = self.config.budget

        self._reset_daily_budget_if_needed()
        if self.daily_spent >= budget.daily_budget:
            raise BudgetExceededError(
                f"Daily budget exceeded: ${self.daily_spent:.2f} / ${budget.daily_budget:.2f}"
            )

        cache_key = self._cache_key(js_code, context)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                Logger.info(f"Using cached AI transpilation (saved ${cached.cost:.4f})")
                return TranspilationResult(
                    c_code=cached.c_code,
                    provider=cached.provider,
                    duration=cached.duration,
                    cost=cached.cost,
                    quality=cached.quality,
                    from_cache=True,
                    metadata=cached.metadata,
                )

        examples = self.find_similar_examples(js_code)
        prompt = self.prompt_engine.build_prompt(js_code, context, examples)

        Logger.info(f"AI transpilation starting... (JS: {len(js_code)} chars)")
        start_time = time.time()

        provider_name = self._preferred_provider()
        provider = self.providers[provider_name]
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            estimated_cost = (len(prompt) + len(js_code)) / 4000 * provider.cost
            if estimated_cost > budget.max_cost_per_transpilation:
                raise BudgetExceededError(
                    f"Estimated cost ${estimated_cost:.4f} exceeds the per-transpilation limit "
                    f"${budget.max_cost_per_transpilation:.2f}"
                )
            if self.daily_spent + estimated_cost > budget.daily_budget:
                raise BudgetExceededError(
                    f"Would exceed daily budget. Estimated cost: ${estimated_cost:.4f}"
                )

            try:
                Logger.info(f"Attempt {attempt}/{max_retries} - sending to {provider.display_name()}...")
                c_code = provider.transpile(prompt)
                duration = time.time() - start_time

                actual_cost = provider.estimate_cost(prompt, c_code or "")
                self.daily_spent += actual_cost

                if not c_code or not c_code.strip():
                    raise TranspilationError("AI returned empty result")
                if not looks_like_c_code(c_code):
                    raise TranspilationError("AI result does not look like valid C code")

                result = self._build_result(js_code, c_code, provider_name, duration, actual_cost)

                if use_cache:
                    self.cache.set(cache_key, result)
                self._add_to_learning(js_code, result.c_code, context, result.quality, provider_name)

                Logger.success(
                    f"AI transpilation completed! Duration: {duration:.2f}s, Cost: ${actual_cost:.4f}"
                )
                Logger.info(
                    f"Quality: {result.quality * 100:.1f}%, ROM: ~{result.metadata.estimated_rom_size} bytes"
                )
                return result

            except GBTSError as e:
                last_error = e
                Logger.warn(f"Attempt {attempt} failed: {e}")
                if attempt < max_retries:
                    Logger.info(f"Retrying in {RETRY_DELAY_SECONDS:.0f} seconds...")
                    self._sleep(RETRY_DELAY_SECONDS)

        Logger.error(f"AI transpilation failed after {max_retries} attempts")
        if last_error is None:
            raise TranspilationError("AI transpilation failed with unknown error")
        raise last_error

    def _build_result(
        self, js_code: str, c_code: str, provider_name: str, duration: float, cost: float
    ) -> TranspilationResult:
        processed = self.post_process(c_code)
        metadata = TranspilationMetadata(
            original_size=len(js_code),
            transpiled_size=len(c_code),
            estimated_rom_size=self.estimate_rom_size(c_code),
            estimated_ram_usage=self.estimate_ram_usage(c_code),
            warnings=[],
            optimizations=self.detect_optimizations(processed),
        )

        if self.config.quality.require_validation:
            validation = self.validate(processed)
            if validation.score < self.config.quality.min_score:
                metadata.warnings.append(
                    f"Validation score {validation.score:.2f} below minimum {self.config.quality.min_score:.2f}"
                )
            metadata.warnings.extend(
                issue.message for issue in validation.issues if issue.type in ("error", "warning")
            )

        return TranspilationResult(
            c_code=processed,
            provider=provider_name,
            duration=duration,
            cost=cost,
            quality=self.estimate_quality(c_code),
            from_cache=False,
            metadata=metadata,
        )

    def _preferred_provider(self) -> str:
        providers_config = self.config.providers

        if self.config.budget.prefer_local and "local" in self.providers:
            return "local"

        if providers_config.primary in self.providers:
            return providers_config.primary

        for name in providers_config.fallback:
            if name in self.providers:
                Logger.warn(f"Preferred provider '{providers_config.primary}' not available, using '{name}'")
                return name

        available = next(iter(self.providers))
        Logger.warn(f"Preferred provider '{providers_config.primary}' not available, using '{available}'")
        return available

    @staticmethod
    def _cache_key(js_code: str, context: GameBoyContext) -> str:
        context_str = json.dumps(context.to_dict(), sort_keys=True)
        return hashlib.sha256((js_code + context_str).encode("utf-8")).hexdigest()[:16]

    @staticmethod
    def _today() -> str:
        return date.today().isoformat()

    def _reset_daily_budget_if_needed(self) -> None:
        today = self._today()
        if today != self.last_reset_date:
            self.daily_spent = 0.0
            self.last_reset_date = today
            Logger.info(f"Daily budget reset: ${self.config.budget.daily_budget:.2f}")

    # ------------------------------------------
    # Learning examples
    # ------------------------------------------

    @staticmethod
    def extract_keywords(code: str) -> List[str]:
        return [keyword for keyword in LEARNING_KEYWORDS if keyword in code]

    def find_similar_examples(self, js_code: str) -> List[TranspilationExample]:
        """Best past conversions sharing at least one keyword with js_code."""
        keywords = set(self.extract_keywords(js_code))

        similar = [
            example for example in self.learning_data
            if example.quality > LEARNING_QUALITY_THRESHOLD
            and keywords.intersection(self.extract_keywords(example.js_code))
        ]
        similar.sort(key=lambda example: example.quality, reverse=True)
        return similar[:MAX_PROMPT_EXAMPLES]

    def _add_to_learning(
        self, js_code: str, c_code: str, context: GameBoyContext, quality: float, provider: str
    ) -> None:
        if not self.config.quality.enable_learning:
            return

        rom_size = self.estimate_rom_size(c_code)
        self.learning_data.append(TranspilationExample(
            id=str(uuid.uuid4()),
            js_code=js_code,
            c_code=c_code,
            context=context,
            quality=quality,
            performance=PerformanceMetrics(
                estimated_cycles=rom_size * 4,
                memory_efficiency=1 - self.estimate_ram_usage(c_code) / GAMEBOY_RAM_BYTES,
                size_efficiency=1 - rom_size / GAMEBOY_ROM_BYTES,
                overall_score=quality,
            ),
            timestamp=time.time(),
            provider=provider,
        ))

        # Keep only the best examples
        if len(self.learning_data) > MAX_LEARNING_EXAMPLES:
            self.learning_data.sort(key=lambda example: example.quality, reverse=True)
            del self.learning_data[MAX_LEARNING_EXAMPLES:]

    # ------------------------------------------
    # Output heuristics
    # ------------------------------------------

    @staticmethod
    def post_process(c_code: str) -> str:
        """Add GameBoy headers and memory placement hints."""
        processed = c_code

        if "#include <gb/gb.h>" not in processed:
            processed = f"#include <gb/gb.h>\n{processed}"

        if "#include <stdio.h>" not in processed:
            processed = processed.replace("#include <gb/gb.h>", "#include <gb/gb.h>\n#include <stdio.h>", 1)

        # Frequently used game state → zero page
        processed = re.sub(
            r"(?<!__at\(0xFF80\) )unsigned char (player_\w+|enemy_\w+|bullet_\w+)",
            r"__at(0xFF80) unsigned char \1",
            processed,
        )
        # Constant strings → ROM
        processed = re.sub(r"(?<!__code )const char (\w+)\[\]", r"__code const char \1[]", processed)
        # Tiny arrays → registers
        processed = re.sub(
            r"(?<!register )unsigned char (\w+)\[([1-4])\]", r"register unsigned char \1[\2]", processed
        )
        return processed

    @staticmethod
    def estimate_quality(c_code: str) -> float:
        score = 0.5

        if "#include <gb/gb.h>" in c_code:
            score += 0.1
        if "unsigned char" in c_code:
            score += 0.1
        if "wait_vbl_done" in c_code:
            score += 0.1
        if "printf" in c_code:
            score += 0.05
        if re.search(r"void\s+main\s*\(", c_code):
            score += 0.1

        if "malloc" in c_code or "free" in c_code:
            score -= 0.2
        if "float" in c_code or "double" in c_code:
            score -= 0.15
        if "int " in c_code and "unsigned char" not in c_code:
            score -= 0.05

        # Too short = probably incomplete
        if len(c_code) < 50:
            score -= 0.2

        return max(0.0, min(1.0, score))

    @staticmethod
    def estimate_rom_size(c_code: str) -> int:
        non_empty = [line for line in c_code.split("\n") if line.strip()]
        return len(non_empty) * 8

    @staticmethod
    def estimate_ram_usage(c_code: str) -> int:
        char_vars = len(re.findall(r"unsigned char \w+", c_code))
        int_vars = len(re.findall(r"int \w+", c_code))
        array_sizes = [int(size) for size in re.findall(r"\w+\[(\d+)\]", c_code)]
        return char_vars + int_vars * 2 + sum(array_sizes)

    @staticmethod
    def detect_optimizations(c_code: str) -> List[str]:
        optimizations = []
        if "unsigned char" in c_code:
            optimizations.append("8-bit variables used for GameBoy efficiency")
        if "__at(0xFF80)" in c_code:
            optimizations.append("Zero page optimization applied")
        if "__code const" in c_code:
            optimizations.append("Constants stored in ROM")
        if "register" in c_code:
            optimizations.append("Register optimization hints added")
        return optimizations

    def validate(self, c_code: str) -> ValidationResult:
        """
        Static checks on generated C.

        Each error costs 0.25 of the score, each warning 0.1.
        """
        issues: List[ValidationIssue] = []
        lines = c_code.split("\n")

        for number, line in enumerate(lines, start=1):
            if re.search(r"\b(malloc|calloc|realloc|free)\s*\(", line):
                issues.append(ValidationIssue(
                    type="error",
                    message="Dynamic memory allocation is not available on GameBoy",
                    line=number,
                    suggestion="Use fixed-size static arrays",
                ))
            if re.search(r"\b(float|double)\b", line):
                issues.append(ValidationIssue(
                    type="warning",
                    message="Floating point is emulated in software on GameBoy",
                    line=number,
                    suggestion="Use fixed point arithmetic",
                ))

        if not re.search(r"\b(void|int)\s+main\s*\(", c_code):
            issues.append(ValidationIssue(type="info", message="No main() function found"))
        if "#include <gb/gb.h>" not in c_code:
            issues.append(ValidationIssue(
                type="warning",
                message="Missing GBDK header",
                suggestion="Add #include <gb/gb.h>",
            ))
        if c_code.count("{") != c_code.count("}"):
            issues.append(ValidationIssue(type="error", message="Unbalanced braces"))

        errors = sum(1 for issue in issues if issue.type == "error")
        warnings = sum(1 for issue in issues if issue.type == "warning")
        score = max(0.0, 1.0 - errors * 0.25 - warnings * 0.1)

        rom_size = self.estimate_rom_size(c_code)
        ram_usage = self.estimate_ram_usage(c_code)
        memory_efficiency = max(0.0, 1 - ram_usage / GAMEBOY_RAM_BYTES)
        size_efficiency = max(0.0, 1 - rom_size / GAMEBOY_ROM_BYTES)

        return ValidationResult(
            valid=errors == 0,
            issues=issues,
            score=score,
            estimated_performance=PerformanceMetrics(
                estimated_cycles=rom_size * 4,
                memory_efficiency=memory_efficiency,
                size_efficiency=size_efficiency,
                overall_score=(score + memory_efficiency + size_efficiency) / 3,
            ),
        )

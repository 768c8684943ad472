# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from the JSON config file
#   (gbts.config.json), environment variables and the .env file.
#   Provides typed config objects to all other modules.
#
# CLASSES:
# --------
# - LocalLLMConfig (dataclass)
#     endpoint: str       (default "http://localhost:11434/api/generate")
#     model: str          (default "codellama:7b")
#     temperature: float  (default 0.1)
#     max_tokens: int     (default 4000)
#     enabled: bool       (default False)
#
# - ProvidersConfig (dataclass)
#     primary: str              (default "claude")
#     fallback: list[str]       (default ["openai", "local"])
#     api_keys: dict[str, str]  (claude / openai / openrouter)
#     models: dict[str, str]    (per-provider model override)
#     local: LocalLLMConfig
#
# - CachingConfig, BudgetConfig, QualityConfig, ProjectConfig,
#   ToolchainConfig (dataclasses, defaults below)
#
# - AppConfig (dataclass)
#     All sections above plus the path the config was loaded from.
#
# FUNCTIONS:
# ----------
# - load_config(config_path=None, env_path=None) -> AppConfig
#     Defaults → JSON file (merged per section) → environment.
#     File keys may use snake_case or the camelCase of older
#     gbts.config.json files (caching.ttl is in milliseconds there).
#     Raises ConfigError for environment values that do not parse.
#
# - save_config(config, path=None) -> Path
#     Write the JSON file. API keys are never written.
#
# - validate_config(config) -> list[str]
#     Return human-readable errors (empty list when valid).
#
# USAGE:
# ------
#   from gbts.config import load_config
#   config = load_config()
#   print(config.budget.daily_budget)
#
# ==============================================

import os
import re
import json
import math
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from gbts.ai.models import GameBoyContext
from gbts.errors import ConfigError
from gbts.logger import Logger


CONFIG_FILE_NAME = "gbts.config.json"
TRANSPILER_MODES = ("ai", "ts2c")
GBDK_URL = "https://github.com/andreasjhkarlsson/gbdk-n/archive/master.zip"


@dataclass
class LocalLLMConfig:
    """Local (Ollama-style) LLM endpoint."""
    endpoint: str = "http://localhost:11434/api/generate"
    model: str = "codellama:7b"
    temperature: float = 0.1
    max_tokens: int = 4000
    enabled: bool = False


@dataclass
class ProvidersConfig:
    """AI provider selection and credentials."""
    primary: str = "claude"
    fallback: List[str] = field(default_factory=lambda: ["openai", "local"])
    api_keys: Dict[str, str] = field(default_factory=dict)
    models: Dict[str, str] = field(default_factory=dict)
    local: LocalLLMConfig = field(default_factory=LocalLLMConfig)


@dataclass
class CachingConfig:
    enabled: bool = True
    max_size: int = 1000
    ttl_seconds: float = 24 * 60 * 60


@dataclass
class BudgetConfig:
    """Spending limits in USD."""
    max_cost_per_transpilation: float = 0.10
    daily_budget: float = 5.00
    prefer_local: bool = False


@dataclass
class QualityConfig:
    min_score: float = 0.7
    require_validation: bool = True
    enable_learning: bool = True


@dataclass
class ProjectConfig:
    chunk_size: int = 4000          # max characters per chunk
    max_file_size: int = 8000       # max characters before chunking
    enable_modular_build: bool = True   # 1 .ts = 1 .c


@dataclass
class ToolchainConfig:
    """GBDK location and the transpiler used by the transpile step."""
    gbdk_path: str = field(default_factory=lambda: str(Path.cwd() / "bin" / "gbdk-n-master"))
    transpiler: str = "ai"
    ts2c_command: str = "ts2c"
    gbdk_url: str = GBDK_URL
    request_timeout: float = 120.0


@dataclass
class AppConfig:
    """Main application configuration."""
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    caching: CachingConfig = field(default_factory=CachingConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    project: ProjectConfig = field(default_factory=ProjectConfig)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    config_path: Optional[str] = None

    def gameboy_context(self) -> GameBoyContext:
        """Default target: original GameBoy, 8KB RAM, balanced optimization."""
        return GameBoyContext(
            target="dmg",
            available_ram=8,
            current_bank=1,
            features=["sprites", "background", "sound", "interrupts"],
            optimize_for="balance",
        )

    def to_dict(self, include_secrets: bool = False) -> dict:
        data = asdict(self)
        data.pop("config_path", None)
        if not include_secrets:
            data["providers"].pop("api_keys", None)
        return data


# Section name → dataclass, in the order they appear in the JSON file
_SECTIONS = {
    "providers": ProvidersConfig,
    "caching": CachingConfig,
    "budget": BudgetConfig,
    "quality": QualityConfig,
    "project": ProjectConfig,
    "toolchain": ToolchainConfig,
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# camelCase keys whose field has another name or unit
_RENAMED_KEYS = {
    "ttl": ("ttl_seconds", lambda milliseconds: milliseconds / 1000),
}


def _field_name(key: str) -> str:
    """maxCostPerTranspilation → max_cost_per_transpilation"""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _matches_type(current, value) -> bool:
    """True when value may replace current (ints are accepted for floats)."""
    if isinstance(current, bool) or isinstance(value, bool):
        return isinstance(current, bool) and isinstance(value, bool)
    if isinstance(current, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(current))


def _merge_section(section, overrides: dict, label: str) -> None:
    """
    Shallow-merge a JSON section into a config dataclass.

    Keys may be snake_case or camelCase. Unknown keys and values of the
    wrong type are reported with a warning and the current value is kept.
    The nested `local` block of the providers section is merged the same
    way instead of being replaced.
    """
    known = {f.name for f in fields(section)}
    for key, value in overrides.items():
        name, convert = _RENAMED_KEYS.get(key, (_field_name(key), None))
        if name not in known:
            Logger.warn(f"Unknown config key '{label}.{key}' ignored")
            continue

        current = getattr(section, name)
        if isinstance(current, LocalLLMConfig) and isinstance(value, dict):
            _merge_section(current, value, f"{label}.{key}")
            continue

        if not _matches_type(current, value):
            Logger.warn(
                f"Config key '{label}.{key}' should be {type(current).__name__}, "
                f"got {type(value).__name__}; keeping {current!r}"
            )
            continue

        if convert:
            value = convert(value)
        if isinstance(current, dict):
            current.update(value)
        elif isinstance(current, float):
            setattr(section, name, float(value))
        else:
            setattr(section, name, value)


def _apply_file(config: AppConfig, path: Path) -> None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        Logger.warn(f"Failed to load config {path}, using defaults: {e}")
        return

    if not isinstance(user_config, dict):
        Logger.warn(f"Config {path} is not a JSON object, using defaults")
        return

    for name, section_overrides in user_config.items():
        if name not in _SECTIONS:
            Logger.warn(f"Unknown config section '{name}' ignored")
        elif not isinstance(section_overrides, dict):
            Logger.warn(f"Config section '{name}' is not a JSON object, ignored")
        else:
            _merge_section(getattr(config, name), section_overrides, name)


def _env_float(name: str, errors: List[str]) -> Optional[float]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        errors.append(f"{name} must be a number (got '{raw}')")
        return None
    return value


def _apply_env(config: AppConfig) -> List[str]:
    """
    Environment variables win over the config file.

    Returns:
        Errors for values that could not be parsed
    """
    errors: List[str] = []
    providers = config.providers

    if os.getenv("GBTS_AI_PROVIDER"):
        providers.primary = os.getenv("GBTS_AI_PROVIDER")

    # API keys from environment (never read back from disk by save_config)
    for provider_name, env_name in (
        ("claude", "CLAUDE_API_KEY"),
        ("openai", "OPENAI_API_KEY"),
        ("openrouter", "OPENROUTER_API_KEY"),
    ):
        if os.getenv(env_name):
            providers.api_keys[provider_name] = os.getenv(env_name)

    daily_budget = _env_float("GBTS_DAILY_BUDGET", errors)
    if daily_budget is not None:
        config.budget.daily_budget = daily_budget

    max_cost = _env_float("GBTS_MAX_COST", errors)
    if max_cost is not None:
        config.budget.max_cost_per_transpilation = max_cost

    if os.getenv("GBTS_DISABLE_CACHE"):
        disabled = os.getenv("GBTS_DISABLE_CACHE").strip().lower() in ("1", "true", "yes")
        config.caching.enabled = not disabled

    if os.getenv("GBTS_LOCAL_LLM_ENDPOINT"):
        providers.local.endpoint = os.getenv("GBTS_LOCAL_LLM_ENDPOINT")
        providers.local.enabled = True

    if os.getenv("GBTS_GBDK_PATH"):
        config.toolchain.gbdk_path = os.getenv("GBTS_GBDK_PATH")

    if os.getenv("GBTS_TRANSPILER"):
        config.toolchain.transpiler = os.getenv("GBTS_TRANSPILER").strip().lower()

    # Asking for the local model explicitly turns it on
    if providers.primary == "local" or config.budget.prefer_local:
        providers.local.enabled = True

    return errors


def load_config(config_path: Optional[str] = None, env_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from defaults, the JSON config file and the environment.

    Args:
        config_path: JSON config file. Defaults to ./gbts.config.json
        env_path: .env file. Defaults to ./.env

    Returns:
        AppConfig: Application configuration

    Raises:
        ConfigError: an environment variable holds an unparseable value
    """
    load_dotenv(dotenv_path=env_path or Path.cwd() / ".env")

    path = Path(config_path) if config_path else Path.cwd() / CONFIG_FILE_NAME
    config = AppConfig(config_path=str(path))

    if path.exists():
        _apply_file(config, path)

    errors = _apply_env(config)
    if errors:
        raise ConfigError(errors)
    return config


def save_config(config: AppConfig, path: Optional[str] = None) -> Path:
    """
    Write the configuration as JSON (without API keys).

    Returns:
        Path the file was written to
    """
    target = Path(path or config.config_path or Path.cwd() / CONFIG_FILE_NAME)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return target


def validate_config(config: AppConfig) -> List[str]:
    errors = []

    if config.budget.max_cost_per_transpilation <= 0:
        errors.append("max_cost_per_transpilation must be positive")

    if config.budget.daily_budget <= 0:
        errors.append("daily_budget must be positive")

    if config.quality.min_score < 0 or config.quality.min_score > 1:
        errors.append("min_score must be between 0 and 1")

    if config.caching.max_size <= 0:
        errors.append("caching max_size must be positive")

    if config.project.chunk_size <= 0 or config.project.max_file_size <= 0:
        errors.append("project chunk_size and max_file_size must be positive")

    if config.toolchain.transpiler not in TRANSPILER_MODES:
        errors.append(
            f"transpiler must be one of {', '.join(TRANSPILER_MODES)} "
            f"(got '{config.toolchain.transpiler}')"
        )

    return errors

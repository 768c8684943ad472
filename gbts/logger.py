# ==============================================
# Logger: console status reporting
# ==============================================
#
# PURPOSE:
#   One place for the status lines every step prints.
#   A step is "loading" between start_loading() and the next
#   success()/error()/stop_loading() call.
#
# METHODS (class-level, no instance needed):
# ------------------------------------------
# - start_loading(text)  → "⏳ text..."
# - stop_loading()       → end the running step without a verdict,
#                          "⚠ step interrupted" if one was running
# - success(text)        → "✓ text"
# - info(text)           → "→ text"
# - warn(text)           → "⚠ text"   (stderr)
# - error(text)          → "✗ text"   (stderr)
#
# ==============================================

import sys
from typing import Optional


class Logger:
    """Prints step status lines, tracking the step currently running."""

    current_step: Optional[str] = None

    @classmethod
    def start_loading(cls, text: str) -> None:
        cls.current_step = text
        print(f"⏳ {text}...")

    @classmethod
    def stop_loading(cls) -> None:
        if cls.current_step:
            cls.warn(f"{cls.current_step} interrupted")
        cls.current_step = None

    @classmethod
    def success(cls, text: str) -> None:
        cls.current_step = None
        print(f"✓ {text}")

    @classmethod
    def info(cls, text: str) -> None:
        print(f"→ {text}")

    @classmethod
    def warn(cls, text: str) -> None:
        print(f"⚠ {text}", file=sys.stderr)

    @classmethod
    def error(cls, text) -> None:
        cls.current_step = None
        print(f"✗ {text}", file=sys.stderr)

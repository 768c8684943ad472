# ==============================================
# TranspilationCache
# ==============================================
#
# PURPOSE:
#   Remember transpilation results by content hash so the same
#   source + context never pays for a second provider call.
#
# CLASS: TranspilationCache
# -------------------------
#   Stateful: in-memory only, lives as long as the AITranspiler.
#
#   - get(key)          → result or None (expired entries are dropped)
#   - set(key, result)  → store; evicts the oldest entry past max_size
#   - clear()
#
# ==============================================

import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from .models import TranspilationResult


class TranspilationCache:
    def __init__(self, max_size: int = 1000, ttl_seconds: float = 24 * 60 * 60,
                 clock: Callable[[], float] = time.time):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # key → (stored_at, result), oldest first
        self._entries: "OrderedDict[str, Tuple[float, TranspilationResult]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[TranspilationResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, result = entry
        if self.ttl_seconds and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return result

    def set(self, key: str, result: TranspilationResult) -> None:
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = (self._clock(), result)

        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

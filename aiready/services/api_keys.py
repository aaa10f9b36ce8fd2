# aiready/services/api_keys.py
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from aiready.core.errors import AppError, ServiceUnavailableError

log = logging.getLogger("aiready.search")

T = TypeVar("T")

STRATEGIES = ("round_robin", "random", "least_used")


@dataclass
class KeyState:
    key: str
    uses: int = 0
    errors: int = 0
    disabled: bool = False
    last_used: Optional[datetime] = None


class ApiKeyManager:
    """
    Rotates a pool of API keys for one service.

    A key is disabled once it accumulates max_errors failures. When every key
    is disabled the service is reported unavailable.
    """

    def __init__(
        self,
        keys: Sequence[str],
        *,
        service: str = "Google Search",
        strategy: str = "round_robin",
        max_errors: int = 5,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown rotation strategy: {strategy}")
        self.service = service
        self.strategy = strategy
        self.max_errors = max_errors
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._keys: List[KeyState] = [KeyState(k) for k in dict.fromkeys(keys) if k]
        self._cursor = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._keys)

    def _active(self) -> List[KeyState]:
        return [k for k in self._keys if not k.disabled]

    def next_key(self) -> str:
        with self._lock:
            active = self._active()
            if not active:
                raise ServiceUnavailableError(self.service, details={"reason": "no API keys available"})

            if self.strategy == "random":
                state = random.choice(active)
            elif self.strategy == "least_used":
                state = min(active, key=lambda k: k.uses)
            else:
                state = active[self._cursor % len(active)]
                self._cursor = (self._cursor + 1) % len(active)

            state.uses += 1
            state.last_used = datetime.utcnow()
            return state.key

    def report_error(self, key: str) -> None:
        with self._lock:
            for state in self._keys:
                if state.key == key:
                    state.errors += 1
                    if state.errors >= self.max_errors and not state.disabled:
                        state.disabled = True
                        log.warning("%s key %s disabled after %s errors", self.service, _prefix(key), state.errors)
                    return

    def report_success(self, key: str) -> None:
        with self._lock:
            for state in self._keys:
                if state.key == key:
                    state.errors = 0
                    return

    def reset(self) -> None:
        with self._lock:
            for state in self._keys:
                state.errors = 0
                state.disabled = False

    def execute_with_retry(self, fn: Callable[[str], T]) -> T:
        """
        Call fn(key) with rotating keys, backing off exponentially
        (retry_delay * 2**attempt) between attempts.
        """
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            key = self.next_key()
            try:
                result = fn(key)
            except ServiceUnavailableError:
                raise
            except (AppError, OSError, ValueError) as e:
                last_error = e
                self.report_error(key)
                log.warning("%s attempt %s/%s failed: %s", self.service, attempt + 1, self.max_retries, e)
                if attempt + 1 < self.max_retries:
                    self._sleep(self.retry_delay * (2 ** attempt))
                continue
            self.report_success(key)
            return result

        raise ServiceUnavailableError(
            self.service,
            details={"attempts": self.max_retries, "last_error": str(last_error)},
        )

    def stats(self) -> List[Dict[str, Any]]:
        return [
            {
                "key_prefix": _prefix(s.key),
                "uses": s.uses,
                "errors": s.errors,
                "disabled": s.disabled,
                "last_used": s.last_used.isoformat() if s.last_used else None,
            }
            for s in self._keys
        ]


def _prefix(key: str) -> str:
    return f"{key[:5]}..."

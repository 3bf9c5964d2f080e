# FILE: orderdesk/core/rate_limit.py
"""
Fixed-window request counter keyed by client IP.

The store is created by the application and kept on ``app.state.rate_limiter``;
the expiry sweep is an asyncio task started/cancelled by the app lifespan.
Counts live in process memory: they reset on restart and are not shared
between workers.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Request

from orderdesk.core.config import settings

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer, else 'unknown'."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitStore(ABC):
    """Small interface so a shared-cache backend can replace the in-memory one."""

    def __init__(self, limit: Optional[int] = None, window_ms: Optional[int] = None):
        self.limit = limit if limit is not None else settings.RATE_LIMIT_MAX
        self.window_ms = (window_ms if window_ms is not None else
                          settings.RATE_LIMIT_WINDOW_SECONDS * 1000)

    @abstractmethod
    def allow(self,
              key: str,
              limit: Optional[int] = None,
              window_ms: Optional[int] = None,
              now_ms: Optional[int] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now_ms: Optional[int] = None) -> int:
        raise NotImplementedError


@dataclass
class _Window:
    count: int
    reset_at: int


class InMemoryRateLimitStore(RateLimitStore):

    def __init__(self, limit: Optional[int] = None, window_ms: Optional[int] = None):
        super().__init__(limit, window_ms)
        self._windows: Dict[str, _Window] = {}
        # sync routes run in the threadpool
        self._lock = threading.Lock()

    def allow(self,
              key: str,
              limit: Optional[int] = None,
              window_ms: Optional[int] = None,
              now_ms: Optional[int] = None) -> bool:
        limit = self.limit if limit is None else limit
        window_ms = self.window_ms if window_ms is None else window_ms
        now = _now_ms() if now_ms is None else now_ms

        with self._lock:
            w = self._windows.get(key)
            if w is None or now >= w.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + window_ms)
                return True
            if w.count >= limit:
                return False
            w.count += 1
            return True

    def sweep(self, now_ms: Optional[int] = None) -> int:
        now = _now_ms() if now_ms is None else now_ms
        with self._lock:
            expired = [k for k, w in self._windows.items() if now >= w.reset_at]
            for k in expired:
                del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)


async def run_sweeper(store: RateLimitStore, interval_seconds: float) -> None:
    """Purge expired windows forever; cancelled on shutdown."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = store.sweep()
        except Exception:
            logger.exception("Rate-limit sweep failed")
            continue
        if removed:
            logger.debug("Rate-limit sweep purged %d window(s)", removed)

"""
api/metrics.py -- Process-local hit counter for the static site under /app.

The counter belongs to the HTTP layer, not to auth/ or chirps/. The lifespan
in api/main.py creates one HitCounter per app and stores it on app.state.
The request middleware increments it, and /admin/metrics and /admin/reset
read and clear it.

Increments come from the event loop; reads and resets come from sync route
handlers on the thread pool. A lock keeps read-modify-write whole.
"""

from __future__ import annotations

import threading

from fastapi import Request


class HitCounter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0

    def increment(self) -> int:
        with self._lock:
            self._hits += 1
            return self._hits

    @property
    def value(self) -> int:
        with self._lock:
            return self._hits

    def reset(self) -> None:
        with self._lock:
            self._hits = 0


def get_hit_counter(request: Request) -> HitCounter:
    return request.app.state.hit_counter

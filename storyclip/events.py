"""Per-job progress channel.

Each generation request owns one ``ProgressChannel``; whoever streams
progress to a client subscribes for the lifetime of its connection and
calls the returned unsubscribe function when it goes away.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    job_id: str
    message: str
    data: Any = None
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {"job_id": self.job_id, "message": self.message, "data": self.data, "ts": self.ts}


Handler = Callable[[ProgressEvent], None]


class ProgressChannel:
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; returns a function that unregisters it."""
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Progress channel {self.job_id!r} is closed")
            self._handlers.append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return _unsubscribe

    def publish(self, message: str, data: Any = None) -> None:
        with self._lock:
            if self._closed:
                return
            handlers = list(self._handlers)
        event = ProgressEvent(job_id=self.job_id, message=message, data=data)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                log.exception("Progress handler failed for job %s", self.job_id)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._handlers.clear()

    def __enter__(self) -> "ProgressChannel":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

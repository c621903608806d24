"""Backoff schedule and cancellable waits for retried operations."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from rolegrant.errors import DeadlineExceededError, OperationCancelledError


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    initial_backoff_seconds: float = 5.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before 1-based ``attempt``; the first attempt never waits."""
        if attempt <= 1:
            return 0.0
        return self.initial_backoff_seconds * self.multiplier ** (attempt - 2)

    def schedule(self) -> list[float]:
        return [self.delay_before(attempt) for attempt in range(2, self.max_attempts + 1)]


class CancellationToken:
    """Cancellation signal shared between a caller and a running operation.

    The first ``cancel`` wins: its cause is kept so callers can test the
    failure they get back against it by identity.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause: BaseException | None = None
        self._timer: threading.Timer | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    def cancel(self, cause: BaseException | None = None) -> BaseException:
        with self._lock:
            if self._cause is None:
                if cause is None:
                    cause = OperationCancelledError("operation cancelled")
                self._cause = cause
            self._event.set()
            if self._timer is not None:
                self._timer.cancel()
            return self._cause

    def cancel_after(self, seconds: float) -> None:
        timer = threading.Timer(
            seconds,
            self.cancel,
            kwargs={"cause": DeadlineExceededError(f"deadline of {seconds:g}s exceeded")},
        )
        timer.daemon = True
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
        timer.start()

    def disarm(self) -> None:
        """Stop a pending ``cancel_after`` deadline without cancelling."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def wait(self, seconds: float) -> bool:
        """Block up to ``seconds``; True when cancellation fired first."""
        return self._event.wait(timeout=max(seconds, 0.0))


def cancellable_sleep(seconds: float, token: CancellationToken) -> bool:
    """Sleep for ``seconds`` unless ``token`` is cancelled; True when the full delay elapsed."""
    if token.cancelled:
        return False
    return not token.wait(seconds)

"""Single-flight wrapper around an asynchronous side-effecting action."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional


logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmissionPolicy(str, Enum):
    IGNORE = "ignore"
    QUEUE = "queue"


@dataclass(frozen=True)
class SubmissionState:
    status: SubmissionStatus = SubmissionStatus.IDLE
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None


class SubmissionExecutor:
    """Runs ``action(values)`` with pending/succeeded/failed tracking.

    Under the default IGNORE policy a call made while an attempt is pending
    returns ``None`` without invoking the action. Under QUEUE it waits for
    the in-flight attempt and then starts its own. Failures are captured in
    ``state.error`` and never retried here.
    """

    def __init__(
        self,
        action: Callable[[Any], Awaitable[Any]],
        policy: SubmissionPolicy = SubmissionPolicy.IGNORE,
    ):
        self._action = action
        self.policy = policy
        self.state = SubmissionState()
        self._listeners: List[Callable[[SubmissionState], None]] = []
        self._lock = asyncio.Lock() if policy is SubmissionPolicy.QUEUE else None

    @property
    def is_pending(self) -> bool:
        return self.state.status is SubmissionStatus.PENDING

    def on_change(self, listener: Callable[[SubmissionState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, state: SubmissionState) -> None:
        self.state = state
        for listener in list(self._listeners):
            listener(state)

    async def submit(self, values: Any) -> Optional[SubmissionState]:
        if self._lock is None:
            if self.is_pending:
                logger.debug("Submission ignored: another attempt is pending")
                return None
            return await self._run(values)

        async with self._lock:
            return await self._run(values)

    async def _run(self, values: Any) -> SubmissionState:
        # Pending must be visible before the first suspension point.
        self._transition(SubmissionState(SubmissionStatus.PENDING))
        try:
            result = await self._action(values)
        except asyncio.CancelledError:
            self._transition(SubmissionState())
            raise
        except Exception as e:
            logger.warning(f"Submission failed: {e} ({type(e).__name__})")
            self._transition(SubmissionState(SubmissionStatus.FAILED, error=e))
        else:
            self._transition(SubmissionState(SubmissionStatus.SUCCEEDED, result=result))
        return self.state

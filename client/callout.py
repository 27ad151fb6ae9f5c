"""
UNO call-out countdown.

When a player plays down to one card they must call UNO within a fixed time
(10 seconds by default). While the countdown runs, global progress is
blocked. Two ways out:

    - acknowledged: the call arrives in time, resolution is immediate
    - expired: the deadline passes, the penalty (two forced draws) is applied
      and awaited, then the timer resolves

The scheduler holds at most one timer. Starting a new one cancels the
previous task first so two resolutions can never race. Cancelling is always
safe, also when nothing is pending, and never applies a penalty or
resolution.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from constants import CALL_OUT_SECONDS

logger = logging.getLogger(__name__)


class CallOutStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass
class CallOutTimer:
    """
    One pending call-out.

    Attributes:
        target_player: Player who must call UNO.
        resolved_next_player: Player who becomes current once this resolves.
        deadline: Event-loop time at which the countdown expires.
        duration: Countdown length in seconds.
        acknowledged: Whether the call arrived in time.
        status: Lifecycle state.
        id: Short identifier for logs and snapshots.
    """

    target_player: str
    resolved_next_player: str
    deadline: float
    duration: float
    acknowledged: bool = False
    status: CallOutStatus = CallOutStatus.PENDING
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def seconds_remaining(self, now: Optional[float] = None) -> float:
        if now is None:
            now = asyncio.get_running_loop().time()
        return max(0.0, self.deadline - now)

    def to_dict(self, now: Optional[float] = None) -> dict:
        return {
            "id": self.id,
            "target_player": self.target_player,
            "resolved_next_player": self.resolved_next_player,
            "status": self.status.value,
            "seconds_remaining": round(self.seconds_remaining(now), 1),
        }


TimerCallback = Callable[[CallOutTimer], Awaitable[None]]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class CallOutScheduler:
    """
    Single-slot scheduler for call-out timers.

    Args:
        duration: Countdown length in seconds.
        on_expire: Awaited when a timer expires unacknowledged (applies the
            penalty). Runs before resolution.
        on_resolve: Awaited once a timer resolves by either path (unblocks
            the turn and refreshes state).
    """

    def __init__(
        self,
        duration: float = CALL_OUT_SECONDS,
        on_expire: Optional[TimerCallback] = None,
        on_resolve: Optional[TimerCallback] = None,
    ):
        self.duration = duration
        self._on_expire = on_expire
        self._on_resolve = on_resolve
        self.active: Optional[CallOutTimer] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self.active is not None

    def set_callbacks(
        self,
        on_expire: Optional[TimerCallback] = None,
        on_resolve: Optional[TimerCallback] = None,
    ) -> None:
        self._on_expire = on_expire
        self._on_resolve = on_resolve

    def start(self, target_player: str, resolved_next_player: str) -> CallOutTimer:
        """
        Start a countdown for ``target_player``, cancelling any previous one.

        Must be called from within the running event loop.
        """
        self.cancel()

        loop = asyncio.get_running_loop()
        timer = CallOutTimer(
            target_player=target_player,
            resolved_next_player=resolved_next_player,
            deadline=loop.time() + self.duration,
            duration=self.duration,
        )
        self.active = timer
        self._task = loop.create_task(self._countdown(timer))
        logger.info(
            f"Call-out {timer.id} started for {target_player} "
            f"({self.duration:g}s, next={resolved_next_player})"
        )
        return timer

    async def acknowledge(self) -> Optional[CallOutTimer]:
        """
        Record a timely UNO call and resolve without penalty.

        Returns:
            The resolved timer, or None if nothing was pending or the
            deadline has already passed.
        """
        timer = self.active
        if timer is None or timer.status != CallOutStatus.PENDING:
            return None
        if asyncio.get_running_loop().time() >= timer.deadline:
            return None

        timer.acknowledged = True
        timer.status = CallOutStatus.ACKNOWLEDGED
        task = self._task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        logger.info(f"Call-out {timer.id} acknowledged by {timer.target_player}")
        await self._resolve(timer)
        return timer

    def cancel(self) -> Optional[CallOutTimer]:
        """
        Discard the pending timer without penalty or resolution.

        Safe to call when nothing is pending, and from inside the timer's own
        callbacks.
        """
        timer = self.active
        task = self._task
        self.active = None
        self._task = None

        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

        if timer is not None:
            if timer.status == CallOutStatus.PENDING:
                timer.status = CallOutStatus.CANCELLED
            logger.info(f"Call-out {timer.id} for {timer.target_player} cancelled")
        return timer

    async def _countdown(self, timer: CallOutTimer) -> None:
        await asyncio.sleep(self.duration)

        if self.active is not timer or timer.status != CallOutStatus.PENDING:
            return

        timer.status = CallOutStatus.EXPIRED
        logger.info(f"Call-out {timer.id} expired; penalizing {timer.target_player}")
        if self._on_expire is not None:
            try:
                await self._on_expire(timer)
            except Exception:
                # Resolution proceeds even if the penalty failed
                logger.exception(f"Call-out penalty for {timer.target_player} failed")

        await self._resolve(timer)

    async def _resolve(self, timer: CallOutTimer) -> None:
        if self.active is not timer:
            return
        self.active = None
        self._task = None
        if self._on_resolve is not None:
            await self._on_resolve(timer)

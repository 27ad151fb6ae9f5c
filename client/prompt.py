"""
Wild-color prompt.

Playing a wild card needs a color declaration from the player. The prompt is
modeled as a future with an explicit timeout: ``choose_color`` publishes a
request (via the ``ask`` callback) and waits; ``answer`` resolves it. If no
answer arrives in time the wait resolves to ``None`` ("no choice").
"""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Optional, Protocol

from game import Color

logger = logging.getLogger(__name__)

AskCallback = Callable[[str, str, list[str]], Awaitable[None]]


class ColorPrompt(Protocol):
    async def choose_color(self, player: str, timeout: float) -> Optional[Color]: ...


class FutureColorPrompt:
    """
    Color prompt backed by one asyncio future per outstanding request.

    Args:
        ask: Coroutine called with (prompt_id, player, color choices) to
            publish the request, e.g. over a WebSocket.
    """

    def __init__(self, ask: Optional[AskCallback] = None):
        self._ask = ask
        self._pending: dict[str, tuple[str, asyncio.Future]] = {}

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)

    async def choose_color(self, player: str, timeout: float) -> Optional[Color]:
        """
        Ask ``player`` for a color and wait at most ``timeout`` seconds.

        Returns:
            The chosen color, or None on timeout or withdrawal.
        """
        prompt_id = uuid.uuid4().hex[:12]
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[prompt_id] = (player, future)
        try:
            if self._ask is not None:
                await self._ask(prompt_id, player, [c.value for c in Color.ordinary()])
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.info(f"Color prompt {prompt_id} for {player} timed out after {timeout}s")
            return None
        finally:
            self._pending.pop(prompt_id, None)

    def answer(self, prompt_id: str, color: str) -> bool:
        """
        Resolve an outstanding prompt.

        Returns:
            False if the prompt is unknown, already resolved, or the color is
            not one of the four declarable colors.
        """
        entry = self._pending.get(prompt_id)
        if entry is None:
            return False
        try:
            chosen = Color.parse(color)
        except ValueError:
            return False
        if chosen.is_wild:
            return False
        _, future = entry
        if future.done():
            return False
        future.set_result(chosen)
        return True

    def answer_latest(self, color: str) -> bool:
        """Resolve the most recent outstanding prompt (for clients that omit the id)."""
        if not self._pending:
            return False
        return self.answer(list(self._pending)[-1], color)

    def cancel_all(self) -> None:
        """Withdraw every outstanding prompt; waiting callers get None."""
        for _, future in list(self._pending.values()):
            if not future.done():
                future.set_result(None)

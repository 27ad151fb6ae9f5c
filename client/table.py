"""
The shared table: WebSocket connections around one game.

All four players sit at the same table (one screen or several browser tabs).
The Table owns the TurnController and pushes its output to every connected
socket:

    - ``game_state`` after every settled transition
    - ``choose_color`` when a wild card needs a color
    - ``notice`` for penalties and wins
"""

import asyncio
import logging
from typing import Optional

from fastapi import WebSocket

from api_client import ServerCollaborator
from config import TimingConfig
from controller import TurnController
from models.events import EventType, GameEvent
from prompt import FutureColorPrompt

logger = logging.getLogger(__name__)


class Table:
    """
    A single game table.

    Attributes:
        connections: Open WebSockets keyed by connection id.
        prompt: Outstanding wild-color prompts.
        controller: Turn engine for the table's game.
        lifecycle_lock: Serializes game starts and resets.
    """

    def __init__(
        self,
        server: ServerCollaborator,
        timing: Optional[TimingConfig] = None,
        avatars: Optional[list[str]] = None,
    ):
        self.connections: dict[str, WebSocket] = {}
        self.prompt = FutureColorPrompt(ask=self.ask_color)
        self.controller = TurnController(
            server,
            self.prompt,
            timing=timing,
            on_state_change=self.broadcast_state,
            event_emitter=self.on_event,
            avatars=avatars,
        )
        self.lifecycle_lock = asyncio.Lock()
        self._background: set[asyncio.Task] = set()

    def connect(self, connection_id: str, websocket: WebSocket) -> None:
        self.connections[connection_id] = websocket

    def disconnect(self, connection_id: str) -> Optional[WebSocket]:
        return self.connections.pop(connection_id, None)

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """
        Send a message to every connected socket.

        Args:
            message: JSON-serializable message dict.
            exclude: Optional connection ID to skip.
        """
        for connection_id, websocket in list(self.connections.items()):
            if connection_id == exclude:
                continue
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping message to {connection_id}: {e}")

    async def broadcast_state(self, state: Optional[dict] = None) -> None:
        """Push the current render view to everyone."""
        if state is None:
            state = self.controller.snapshot()
        await self.broadcast({"type": "game_state", "game_state": state})

    async def ask_color(self, prompt_id: str, player: str, colors: list[str]) -> None:
        await self.broadcast({
            "type": "choose_color",
            "prompt_id": prompt_id,
            "player": player,
            "colors": colors,
            "timeout": self.controller.timing.color_prompt_seconds,
        })

    async def reset(self) -> None:
        """Withdraw open color prompts and discard the current game."""
        async with self.lifecycle_lock:
            self.prompt.cancel_all()
            await self.controller.new_game()

    async def start(self, names: list[str]) -> None:
        async with self.lifecycle_lock:
            self.prompt.cancel_all()
            await self.controller.start_game(names)

    def on_event(self, event: GameEvent) -> None:
        """Log every game event and turn the noteworthy ones into notices."""
        logger.debug(
            f"Event {event.to_json()}",
            extra={"event_type": event.event_type.value, "game_id": event.game_id},
        )

        notice = None
        if event.event_type == EventType.CALL_OUT_PENALTY:
            notice = f"{event.player} missed the UNO call and draws {event.data.get('draws')} cards"
        elif event.event_type == EventType.GAME_WON:
            notice = f"{event.player} wins!"

        if notice is not None:
            self.spawn(self.broadcast({"type": "notice", "message": notice}))

    def spawn(self, coro) -> Optional[asyncio.Task]:
        """Run ``coro`` as a tracked background task; cancelled on close()."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            return None
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background task failed", exc_info=task.exception())

    async def close(self) -> None:
        """Stop timers and prompts, then close every socket."""
        session = self.controller.session
        if session is not None:
            session.call_out.cancel()
        self.prompt.cancel_all()
        for connection_id, websocket in list(self.connections.items()):
            try:
                await websocket.close(code=1001, reason="Server shutting down")
            except Exception as e:
                logger.debug(f"Closing {connection_id} failed: {e}")
        self.connections.clear()
        for task in list(self._background):
            task.cancel()

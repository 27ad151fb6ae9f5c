"""
Game session: the single owner of all client-side game state.

A GameSession is created when the server confirms a new game and discarded
when a new game starts. Components receive the session explicitly; nothing
is read from module-level state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from callout import CallOutScheduler
from game import GameResult, PlayerRegistry, TableState
from models.events import EventType, GameEvent
from rules import effective_color, playable_indexes
from turn_state import TurnPhase, TurnState

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """
    State of one game, from start to winner.

    Attributes:
        game_id: Server-assigned game identifier.
        registry: Seats in seating order with hands, scores and avatars.
        table: Top card and declared wild color.
        turn: Turn-order / direction state machine.
        call_out: Single-slot call-out scheduler.
        result: Set once a player's confirmed hand is empty.
        events: Ordered history of settled transitions.
        closed: True once the session has been discarded.
    """

    game_id: str
    registry: PlayerRegistry
    table: TableState
    turn: TurnState
    call_out: CallOutScheduler = field(default_factory=CallOutScheduler)
    result: Optional[GameResult] = None
    events: list[GameEvent] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False

    _event_emitter: Optional[Callable[[GameEvent], None]] = field(
        default=None, repr=False, compare=False
    )
    _sequence_num: int = field(default=0, repr=False, compare=False)

    def set_event_emitter(self, emitter: Optional[Callable[[GameEvent], None]]) -> None:
        """
        Set callback for event emission.

        Args:
            emitter: Callback function that receives GameEvent objects.
        """
        self._event_emitter = emitter

    def emit(self, event_type: EventType, player: Optional[str] = None, **data: Any) -> GameEvent:
        """Record an event and forward it to the emitter, if any."""
        self._sequence_num += 1
        event = GameEvent(
            event_type=event_type,
            game_id=self.game_id,
            sequence_num=self._sequence_num,
            player=player,
            data=data,
        )
        self.events.append(event)
        if self._event_emitter is not None:
            self._event_emitter(event)
        return event

    @property
    def is_active(self) -> bool:
        return not self.closed and self.result is None

    def finish(self, winner: str) -> bool:
        """
        Record the winner. Cancels any pending call-out without penalty.

        Returns:
            False if a winner was already recorded.
        """
        if self.result is not None:
            return False
        cancelled = self.call_out.cancel()
        if cancelled is not None:
            self.emit(EventType.CALL_OUT_CANCELLED, player=cancelled.target_player, reason="game_over")
        self.turn.finish(winner)
        self.result = GameResult(winner=winner)
        self.emit(EventType.GAME_WON, player=winner)
        logger.info(f"Game {self.game_id} won by {winner}")
        return True

    def discard(self) -> None:
        """Tear the session down (new game). Cancels any pending call-out."""
        if self.closed:
            return
        cancelled = self.call_out.cancel()
        if cancelled is not None:
            self.emit(EventType.CALL_OUT_CANCELLED, player=cancelled.target_player, reason="discarded")
        self.closed = True
        self.emit(EventType.SESSION_DISCARDED)

    def hand_of(self, name: str) -> list:
        seat = self.registry.get(name)
        return list(seat.hand) if seat else []

    def get_state(self, now: Optional[float] = None) -> dict:
        """
        Snapshot for rendering.

        Only the current player's hand is face-up; other hands show their
        card count.
        """
        current = self.turn.current_player
        timer = self.call_out.active
        if timer is not None and now is None:
            now = asyncio.get_running_loop().time()

        current_seat = self.registry.get(current)
        playable = (
            playable_indexes(current_seat.hand, self.table)
            if current_seat is not None and self.turn.phase == TurnPhase.ACTIVE
            else []
        )
        color = effective_color(self.table)

        return {
            "game_id": self.game_id,
            "phase": self.turn.phase.value,
            "players": [
                seat.to_dict(reveal=seat.name == current) for seat in self.registry
            ],
            "current_player": current,
            "direction": self.turn.direction,
            "top_card": self.table.top_card.to_dict() if self.table.top_card else None,
            "effective_color": color.value if color else None,
            "active_wild_color": (
                self.table.active_wild_color.value if self.table.active_wild_color else None
            ),
            "playable": playable,
            "blocked": self.turn.blocked,
            "pending_next_player": self.turn.pending_next_player,
            "call_out": timer.to_dict(now) if timer is not None else None,
            "winner": self.result.winner if self.result else None,
        }

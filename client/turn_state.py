"""
Turn-order and play-direction state machine.

Phases:
    ACTIVE   - current_player may act
    BLOCKED  - a call-out countdown is pending; current_player stays on the
               player who must call UNO, pending_next_player waits its turn
    FINISHED - a winner exists; absorbing

Transitions:
    ACTIVE  --advance-->  ACTIVE
    ACTIVE  --block---->  BLOCKED
    BLOCKED --unblock-->  ACTIVE   (current_player = pending_next_player)
    ACTIVE/BLOCKED --finish--> FINISHED
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import InvalidTransition


class TurnPhase(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"
    FINISHED = "finished"


CLOCKWISE = 1
COUNTER_CLOCKWISE = -1


@dataclass
class TurnState:
    """
    Whose turn it is and which way play goes.

    Attributes:
        current_player: Name of the player shown as acting.
        direction: +1 clockwise, -1 counter-clockwise.
        blocked: True while a call-out countdown is pending.
        pending_next_player: Player who becomes current once unblocked.
        winner: Set once the game is over.
    """

    current_player: str
    direction: int = CLOCKWISE
    blocked: bool = False
    pending_next_player: Optional[str] = None
    winner: Optional[str] = None

    @property
    def phase(self) -> TurnPhase:
        if self.winner is not None:
            return TurnPhase.FINISHED
        if self.blocked:
            return TurnPhase.BLOCKED
        return TurnPhase.ACTIVE

    @property
    def is_finished(self) -> bool:
        return self.winner is not None

    def _require(self, *phases: TurnPhase) -> None:
        if self.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise InvalidTransition(
                f"Turn state is {self.phase.value}; expected {allowed}"
            )

    def flip_direction(self) -> None:
        self.direction = -self.direction

    def advance(self, next_player: str, reverse: bool = False) -> None:
        """ACTIVE -> ACTIVE: hand the turn to ``next_player``."""
        self._require(TurnPhase.ACTIVE)
        if reverse:
            self.flip_direction()
        self.current_player = next_player

    def block(self, pending_next_player: str, reverse: bool = False) -> None:
        """ACTIVE -> BLOCKED: keep the acting player current until the call-out resolves."""
        self._require(TurnPhase.ACTIVE)
        if reverse:
            self.flip_direction()
        self.blocked = True
        self.pending_next_player = pending_next_player

    def unblock(self) -> str:
        """BLOCKED -> ACTIVE: the pending player becomes current. Returns their name."""
        self._require(TurnPhase.BLOCKED)
        self.current_player = self.pending_next_player
        self.blocked = False
        self.pending_next_player = None
        return self.current_player

    def finish(self, winner: str) -> None:
        """ACTIVE/BLOCKED -> FINISHED. Any pending call-out is dropped."""
        self._require(TurnPhase.ACTIVE, TurnPhase.BLOCKED)
        self.blocked = False
        self.pending_next_player = None
        self.winner = winner

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "current_player": self.current_player,
            "direction": self.direction,
            "blocked": self.blocked,
            "pending_next_player": self.pending_next_player,
            "winner": self.winner,
        }

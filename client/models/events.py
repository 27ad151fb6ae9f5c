"""
Session event definitions.

Every settled transition of a game session is recorded as an immutable
event, in order. The history is useful for debugging a session and is
handed to an optional emitter (the table service logs it).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import json


class EventType(str, Enum):
    """All event types a session can emit."""

    # Lifecycle events
    GAME_STARTED = "game_started"
    GAME_WON = "game_won"
    SESSION_DISCARDED = "session_discarded"

    # Gameplay events
    CARD_PLAYED = "card_played"
    CARD_DRAWN = "card_drawn"
    DIRECTION_CHANGED = "direction_changed"
    TURN_ADVANCED = "turn_advanced"
    STATE_REFRESHED = "state_refreshed"

    # Call-out events
    CALL_OUT_STARTED = "call_out_started"
    CALL_OUT_ACKNOWLEDGED = "call_out_acknowledged"
    CALL_OUT_PENALTY = "call_out_penalty"
    CALL_OUT_CANCELLED = "call_out_cancelled"


@dataclass
class GameEvent:
    """
    A record of something that happened in a session.

    Attributes:
        event_type: The type of event (from EventType enum).
        game_id: Server-assigned game identifier.
        sequence_num: Monotonically increasing sequence number within the session.
        timestamp: When the event occurred (UTC).
        player: Name of the player the event concerns (if any).
        data: Event-specific payload data.
    """

    event_type: EventType
    game_id: str
    sequence_num: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize event to dictionary for JSON output."""
        return {
            "event_type": self.event_type.value,
            "game_id": self.game_id,
            "sequence_num": self.sequence_num,
            "timestamp": self.timestamp.isoformat(),
            "player": self.player,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict) -> "GameEvent":
        """Deserialize event from dictionary."""
        timestamp = d["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            event_type=EventType(d["event_type"]),
            game_id=d["game_id"],
            sequence_num=d["sequence_num"],
            timestamp=timestamp,
            player=d.get("player"),
            data=d.get("data", {}),
        )

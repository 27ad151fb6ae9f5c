"""Models package for the UNO table client."""

from .events import EventType, GameEvent
from .wire import (
    CardPayload,
    DrawCardResponse,
    PlayCardResponse,
    PlayerPayload,
    StartGameResponse,
)

__all__ = [
    "EventType",
    "GameEvent",
    "CardPayload",
    "DrawCardResponse",
    "PlayCardResponse",
    "PlayerPayload",
    "StartGameResponse",
]

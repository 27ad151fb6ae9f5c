"""
Payload models for the remote game server's JSON responses.

The server uses capitalized field names (``NextPlayer``, ``TopCard``...) and
is not consistent about which fields it returns, so every field that the
engine can recover without is optional.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from game import Card


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CardPayload(WireModel):
    """A card as the server sends it."""
    color: str = Field(alias="Color")
    value: int = Field(alias="Value")
    text: Optional[str] = Field(default=None, alias="Text")
    score: Optional[int] = Field(default=None, alias="Score")

    def to_card(self) -> Card:
        return Card.from_wire({"Color": self.color, "Value": self.value})


class PlayerPayload(WireModel):
    """One player's hand and score (GetCards, and Start's Players list)."""
    player: str = Field(alias="Player")
    cards: list[CardPayload] = Field(default_factory=list, alias="Cards")
    score: int = Field(default=0, alias="Score")

    @field_validator("cards", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("score", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    def hand(self) -> list[Card]:
        return [c.to_card() for c in self.cards]


class StartGameResponse(WireModel):
    id: str = Field(alias="Id")
    players: list[PlayerPayload] = Field(default_factory=list, alias="Players")
    next_player: Optional[str] = Field(default=None, alias="NextPlayer")
    top_card: Optional[CardPayload] = Field(default=None, alias="TopCard")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @field_validator("players", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class DrawCardResponse(WireModel):
    next_player: Optional[str] = Field(default=None, alias="NextPlayer")
    player: Optional[str] = Field(default=None, alias="Player")
    card: Optional[CardPayload] = Field(default=None, alias="Card")


class PlayCardResponse(WireModel):
    """
    Response to a played card.

    Depending on the server version this is either a next-player record
    (``NextPlayer``) or the next player's hand (``Player``/``Cards``), or
    nothing usable at all.
    """
    next_player: Optional[str] = Field(default=None, alias="NextPlayer")
    player: Optional[str] = Field(default=None, alias="Player")
    cards: Optional[list[CardPayload]] = Field(default=None, alias="Cards")
    score: Optional[int] = Field(default=None, alias="Score")

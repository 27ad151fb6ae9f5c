"""
Card and table model for the UNO table client.

The remote server owns hands, the discard pile and scores. This module
holds the client's view of them:

    - Card: immutable color + rank value, identified by both and nothing else
    - TableState: top of the discard pile plus the wild color chosen for it
    - Seat / PlayerRegistry: fixed seating order with each player's hand,
      score and avatar
    - GameResult: the winner, once known

Card encoding (shared with the server):
    Colors: Red, Blue, Green, Yellow, and Black for wild cards
    Ranks:  0-9, 10 Draw Two, 11 Skip, 12 Reverse, 13 Draw Four, 14 Change Color
"""

import random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, Iterator, Optional

from constants import (
    ORDINARY_COLORS,
    RANK_CHANGE_COLOR,
    RANK_DRAW_FOUR,
    RANK_DRAW_TWO,
    RANK_LABELS,
    RANK_REVERSE,
    RANK_SKIP,
    WILD_COLOR,
)


class Color(str, Enum):
    """Card colors. BLACK marks wild cards, which have no intrinsic color."""

    RED = "Red"
    BLUE = "Blue"
    GREEN = "Green"
    YELLOW = "Yellow"
    BLACK = WILD_COLOR

    @property
    def is_wild(self) -> bool:
        return self is Color.BLACK

    @classmethod
    def ordinary(cls) -> list["Color"]:
        """The four colors a player may declare for a wild card."""
        return [cls(value) for value in ORDINARY_COLORS]

    @classmethod
    def parse(cls, value: str) -> "Color":
        """Parse a color name case-insensitively ("red", "Red", "RED")."""
        for color in cls:
            if color.value.lower() == str(value).strip().lower():
                return color
        raise ValueError(f"Unknown card color: {value!r}")


class Rank(IntEnum):
    ZERO = 0
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    DRAW_TWO = RANK_DRAW_TWO
    SKIP = RANK_SKIP
    REVERSE = RANK_REVERSE
    DRAW_FOUR = RANK_DRAW_FOUR
    CHANGE_COLOR = RANK_CHANGE_COLOR

    @property
    def label(self) -> str:
        return RANK_LABELS[int(self)]


WILD_RANKS = frozenset({Rank.DRAW_FOUR, Rank.CHANGE_COLOR})


@dataclass(frozen=True)
class Card:
    """
    A card as the server describes it.

    Attributes:
        color: Card color, BLACK for wild cards.
        rank: Numeric rank (see module docstring).
    """

    color: Color
    rank: Rank

    @property
    def is_wild(self) -> bool:
        return self.color.is_wild or self.rank in WILD_RANKS

    def to_dict(self) -> dict:
        """Convert card to dictionary for table snapshots."""
        return {
            "color": self.color.value,
            "rank": int(self.rank),
            "label": self.rank.label,
            "wild": self.is_wild,
        }

    @classmethod
    def from_wire(cls, data: dict) -> "Card":
        """
        Build a card from a server payload.

        Accepts the server's capitalized keys (Color/Value) as well as the
        snapshot form (color/rank).
        """
        color = data.get("Color", data.get("color"))
        value = data.get("Value", data.get("rank"))
        if color is None or value is None:
            raise ValueError(f"Card payload missing color or value: {data!r}")
        return cls(Color.parse(color), Rank(int(value)))

    def __str__(self) -> str:
        return f"{self.color.value} {self.rank.label}"


@dataclass
class TableState:
    """
    The visible table: top of the discard pile and the declared wild color.

    Attributes:
        top_card: Current top of the discard pile.
        active_wild_color: Color chosen by whoever played the wild on top.
            Cleared once a non-wild card is on top.
    """

    top_card: Optional[Card] = None
    active_wild_color: Optional[Color] = None


@dataclass
class Seat:
    """
    One player's place at the table.

    Attributes:
        name: Unique display name (also the server's player identifier).
        hand: Cards in hand, as last confirmed by the server.
        score: Cumulative score reported by the server.
        avatar: Avatar asset identifier assigned at game start.
    """

    name: str
    hand: list[Card] = field(default_factory=list)
    score: int = 0
    avatar: Optional[str] = None

    @property
    def card_count(self) -> int:
        return len(self.hand)

    def to_dict(self, reveal: bool = False) -> dict:
        """
        Convert seat to dictionary for table snapshots.

        Args:
            reveal: Include card faces. Other players only see the count.
        """
        return {
            "name": self.name,
            "avatar": self.avatar,
            "score": self.score,
            "card_count": self.card_count,
            "cards": [c.to_dict() for c in self.hand] if reveal else None,
        }


class PlayerRegistry:
    """
    Seats in fixed seating order.

    Created once per game from the server's initial deal; seats are updated
    in place and never reordered.
    """

    def __init__(self, seats: Iterable[Seat]):
        self._seats: list[Seat] = list(seats)
        names = [s.name for s in self._seats]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate seat names: {names}")
        self._index: dict[str, int] = {name: i for i, name in enumerate(names)}

    def __len__(self) -> int:
        return len(self._seats)

    def __iter__(self) -> Iterator[Seat]:
        return iter(self._seats)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    @property
    def names(self) -> list[str]:
        return [s.name for s in self._seats]

    def get(self, name: str) -> Optional[Seat]:
        idx = self._index.get(name)
        return self._seats[idx] if idx is not None else None

    def update(self, name: str, hand: list[Card], score: Optional[int] = None) -> Seat:
        """Replace a seat's hand (and score, if given) with confirmed values."""
        seat = self._seats[self._index[name]]
        seat.hand = list(hand)
        if score is not None:
            seat.score = score
        return seat

    def assign_avatars(self, avatars: list[str], rng: Optional[random.Random] = None) -> None:
        """Give each seat a distinct avatar drawn from a shuffled pool."""
        pool = list(avatars)
        (rng or random).shuffle(pool)
        for i, seat in enumerate(self._seats):
            seat.avatar = pool[i] if i < len(pool) else None


@dataclass(frozen=True)
class GameResult:
    """Set once when a player's confirmed hand is empty."""

    winner: str

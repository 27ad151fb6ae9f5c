"""
Local move legality, mirroring the server's rules.

Used to reject moves before they cost a round-trip. Every function here is
pure: nothing is mutated, so moves can be evaluated speculatively (e.g. to
highlight playable cards).

Matching rules:
    - Change Color is always playable
    - Draw Four is playable only when the player holds no non-wild card of
      the effective color
    - Anything else must match the effective color or the top card's rank
"""

from typing import Optional, Sequence

from constants import CALL_OUT_TRIGGER_HAND_SIZE
from game import Card, Color, Rank, TableState

# Ranks that make the following seat lose its turn
SKIPPING_RANKS = frozenset({Rank.SKIP, Rank.DRAW_TWO, Rank.DRAW_FOUR})


def effective_color(table: Optional[TableState]) -> Optional[Color]:
    """
    Color a card must match to be played.

    The top card's own color, or, when the top card is a wild, the color
    declared by whoever played it (if one was declared).
    """
    if table is None or table.top_card is None:
        return None
    top = table.top_card
    if top.is_wild and table.active_wild_color is not None:
        return table.active_wild_color
    return top.color


def is_playable(
    card: Optional[Card],
    table: Optional[TableState],
    acting_hand: Optional[Sequence[Card]] = None,
) -> bool:
    """
    Decide whether ``card`` may be played on ``table``.

    Args:
        card: Candidate card.
        table: Current table state.
        acting_hand: The acting player's hand, consulted for Draw Four.

    Returns:
        True if the move is locally legal. Missing card or table is illegal.
    """
    if card is None or table is None or table.top_card is None:
        return False

    current_color = effective_color(table)

    if card.rank == Rank.CHANGE_COLOR:
        return True

    if card.rank == Rank.DRAW_FOUR:
        return not any(
            c.color == current_color and not c.is_wild
            for c in (acting_hand or ())
        )

    return card.color == current_color or card.rank == table.top_card.rank


def playable_indexes(hand: Sequence[Card], table: Optional[TableState]) -> list[int]:
    """Positions in ``hand`` that could be played right now."""
    return [i for i, card in enumerate(hand) if is_playable(card, table, hand)]


def skips_following_seat(card: Card) -> bool:
    """Skip, Draw Two and Draw Four make the next seat lose its turn."""
    return card.rank in SKIPPING_RANKS


def reverses_direction(card: Card) -> bool:
    return card.rank == Rank.REVERSE


def needs_call_out(hand_size_before_play: int) -> bool:
    """A player who plays from a two-card hand is left with one and must call UNO."""
    return hand_size_before_play == CALL_OUT_TRIGGER_HAND_SIZE

"""
Table constants for the UNO client.

Numeric rank values follow the remote game server's card encoding:
    - 0-9: ordinary number cards
    - 10: Draw Two
    - 11: Skip
    - 12: Reverse
    - 13: Draw Four (wild)
    - 14: Change Color (wild)

Timing values come from config.py and can be customized via environment
variables (CALL_OUT_SECONDS, COLOR_PROMPT_SECONDS, PENALTY_DRAWS).
"""

from config import config


# =============================================================================
# Seating
# =============================================================================

SEAT_COUNT = 4

# A player holding this many cards before a play must call UNO afterwards
CALL_OUT_TRIGGER_HAND_SIZE = 2


# =============================================================================
# Card Encoding
# =============================================================================

ORDINARY_COLORS: tuple[str, ...] = ("Red", "Blue", "Green", "Yellow")
WILD_COLOR = "Black"

RANK_DRAW_TWO = 10
RANK_SKIP = 11
RANK_REVERSE = 12
RANK_DRAW_FOUR = 13
RANK_CHANGE_COLOR = 14

RANK_LABELS: dict[int, str] = {
    **{n: str(n) for n in range(10)},
    RANK_DRAW_TWO: "Draw2",
    RANK_SKIP: "Skip",
    RANK_REVERSE: "Reverse",
    RANK_DRAW_FOUR: "Draw4",
    RANK_CHANGE_COLOR: "ChangeColor",
}


# =============================================================================
# Timing
# =============================================================================

CALL_OUT_SECONDS: float = config.timing.call_out_seconds
COLOR_PROMPT_SECONDS: float = config.timing.color_prompt_seconds
PENALTY_DRAWS: int = config.timing.penalty_draws

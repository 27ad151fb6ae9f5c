"""
Exceptions raised by the turn engine.

Every GameError describes a rejected operation that left the session
untouched. The table service reports them to players as transient
notices using ``kind``.
"""

from typing import Optional


class GameError(Exception):
    """Base class for rejected game operations."""

    kind = "game_error"
    default_message = "Operation rejected"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class IllegalMove(GameError):
    kind = "illegal_move"
    default_message = "This card cannot be played"


class NotYourTurn(IllegalMove):
    kind = "not_your_turn"
    default_message = "It is not your turn"


class ServerRejected(GameError):
    """The authoritative server refused the request or could not be reached."""

    kind = "server_rejected"
    default_message = "The game server rejected the request"

    def __init__(self, message: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NoActiveGame(GameError):
    kind = "no_active_game"
    default_message = "No game is active"


class BlockedState(GameError):
    kind = "blocked"
    default_message = "Waiting for the UNO call"


class PromptTimeout(GameError):
    kind = "prompt_timeout"
    default_message = "No color was chosen in time"


class InvalidPlayerNames(GameError):
    kind = "invalid_player_names"
    default_message = "Exactly four unique, non-empty player names are required"


class InvalidTransition(GameError):
    kind = "invalid_transition"
    default_message = "The turn state does not allow this transition"


class AmbiguousServerResponse(GameError):
    """
    The server response did not name a usable next player.

    Raised and recovered inside reconciliation; never reported to players.
    """

    kind = "ambiguous_server_response"
    default_message = "Server response did not name a seated next player"

"""
Reconciliation between the client's prediction and the server's word.

The server is authoritative but not uniform: a play response may name the
next player in ``NextPlayer``, in ``Player``, or not at all. Next-player
resolution is therefore an explicit precedence chain, most to least
authoritative:

    1. server ``NextPlayer``
    2. server ``Player``
    3. local advance: one seat in the play direction, one more after
       Skip / Draw Two / Draw Four
    4. if the result is not a seated player: the next seat (+1) from the
       acting player

The first step that yields a name wins; step 4 only validates it. A draw
response's ``Player`` names the drawing player, so draws skip step 2.

After every confirmed interaction the engine also refreshes hands, scores
and the top card from the server and detects the winner.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from api_client import ServerCollaborator
from errors import AmbiguousServerResponse, ServerRejected
from game import Card, PlayerRegistry, Seat, TableState
from models.events import EventType
from models.wire import DrawCardResponse, PlayCardResponse, StartGameResponse
from rules import skips_following_seat
from session import GameSession
from turn_state import TurnState

logger = logging.getLogger(__name__)


class ResolutionSource(str, Enum):
    """Which precedence step produced the next player."""

    SERVER_NEXT_PLAYER = "server_next_player"
    SERVER_PLAYER = "server_player"
    LOCAL_ADVANCE = "local_advance"
    SEAT_FALLBACK = "seat_fallback"


@dataclass(frozen=True)
class ResolutionContext:
    """
    Everything next-player resolution may consult.

    Attributes:
        seating: Player names in seating order.
        acting_player: Player who just played or drew.
        direction: +1 or -1, before any reverse from this play is applied.
        next_player: Server ``NextPlayer`` field, if any.
        player: Server ``Player`` field, if any.
        played: Card that was played (None for draws).
    """

    seating: Sequence[str]
    acting_player: str
    direction: int
    next_player: Optional[str] = None
    player: Optional[str] = None
    played: Optional[Card] = None


@dataclass(frozen=True)
class NextPlayerResolution:
    name: str
    source: ResolutionSource


def _server_next_player(ctx: ResolutionContext) -> Optional[str]:
    return ctx.next_player or None


def _server_player(ctx: ResolutionContext) -> Optional[str]:
    return ctx.player or None


def _local_advance(ctx: ResolutionContext) -> Optional[str]:
    if ctx.acting_player not in ctx.seating:
        return None
    steps = ctx.direction
    if ctx.played is not None and skips_following_seat(ctx.played):
        steps += ctx.direction
    idx = list(ctx.seating).index(ctx.acting_player)
    return ctx.seating[(idx + steps) % len(ctx.seating)]


def _seat_fallback(ctx: ResolutionContext) -> str:
    seating = list(ctx.seating)
    if ctx.acting_player not in seating:
        return seating[0]
    return seating[(seating.index(ctx.acting_player) + 1) % len(seating)]


Step = tuple[ResolutionSource, Callable[[ResolutionContext], Optional[str]]]

PLAY_PRECEDENCE: tuple[Step, ...] = (
    (ResolutionSource.SERVER_NEXT_PLAYER, _server_next_player),
    (ResolutionSource.SERVER_PLAYER, _server_player),
    (ResolutionSource.LOCAL_ADVANCE, _local_advance),
)

DRAW_PRECEDENCE: tuple[Step, ...] = (
    (ResolutionSource.SERVER_NEXT_PLAYER, _server_next_player),
    (ResolutionSource.LOCAL_ADVANCE, _local_advance),
)


def _require_seated(name: Optional[str], ctx: ResolutionContext) -> str:
    if not name or name not in ctx.seating:
        raise AmbiguousServerResponse(f"Resolved next player {name!r} is not seated")
    return name


def resolve_next_player(
    seating: Sequence[str],
    acting_player: str,
    direction: int,
    *,
    next_player: Optional[str] = None,
    player: Optional[str] = None,
    played: Optional[Card] = None,
    precedence: Sequence[Step] = PLAY_PRECEDENCE,
) -> NextPlayerResolution:
    """
    Apply the precedence chain and return the next player with its source.

    Never raises for a bad server response: anything unusable falls back to
    the next seat.

    Raises:
        ValueError: If ``seating`` is empty.
    """
    if not seating:
        raise ValueError("Cannot resolve a next player without seats")

    ctx = ResolutionContext(
        seating=tuple(seating),
        acting_player=acting_player,
        direction=direction,
        next_player=next_player,
        player=player,
        played=played,
    )

    name: Optional[str] = None
    source = ResolutionSource.SEAT_FALLBACK
    for step_source, step in precedence:
        name = step(ctx)
        if name:
            source = step_source
            break

    if source == ResolutionSource.LOCAL_ADVANCE:
        logger.warning(
            f"Server named no next player after {acting_player}; "
            f"computed {name} locally (direction={direction})"
        )

    try:
        return NextPlayerResolution(_require_seated(name, ctx), source)
    except AmbiguousServerResponse as e:
        fallback = _seat_fallback(ctx)
        logger.warning(f"{e.message}; falling back to next seat {fallback}")
        return NextPlayerResolution(fallback, ResolutionSource.SEAT_FALLBACK)


class ReconciliationEngine:
    """
    Merges server responses into the session.

    Args:
        server: The authoritative server collaborator.
        avatars: Avatar identifiers handed out at game start.
        rng: Random source for avatar assignment (tests pass a seeded one).
    """

    def __init__(
        self,
        server: ServerCollaborator,
        avatars: Optional[list[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.server = server
        self.avatars = list(avatars or [])
        self.rng = rng

    def apply_start(self, names: Sequence[str], response: StartGameResponse) -> GameSession:
        """
        Create the session from a confirmed start.

        Seating follows ``names``. The first player is the server's
        ``NextPlayer`` when it is seated, otherwise the first seat.
        """
        dealt = {p.player: p for p in response.players}
        seats = []
        for name in names:
            payload = dealt.get(name)
            if payload is None:
                logger.warning(f"Start response has no hand for {name}")
                seats.append(Seat(name=name))
            else:
                seats.append(Seat(name=name, hand=payload.hand(), score=payload.score))

        registry = PlayerRegistry(seats)
        if self.avatars:
            registry.assign_avatars(self.avatars, self.rng)

        first = response.next_player if response.next_player in registry else names[0]
        top_card = response.top_card.to_card() if response.top_card else None

        session = GameSession(
            game_id=response.id,
            registry=registry,
            table=TableState(top_card=top_card),
            turn=TurnState(current_player=first),
        )
        return session

    def resolve_after_play(
        self, session: GameSession, acting_player: str, card: Card, response: PlayCardResponse,
    ) -> NextPlayerResolution:
        return resolve_next_player(
            session.registry.names,
            acting_player,
            session.turn.direction,
            next_player=response.next_player,
            player=response.player,
            played=card,
        )

    def resolve_after_draw(
        self, session: GameSession, acting_player: str, response: DrawCardResponse,
    ) -> NextPlayerResolution:
        return resolve_next_player(
            session.registry.names,
            acting_player,
            session.turn.direction,
            next_player=response.next_player,
            precedence=DRAW_PRECEDENCE,
        )

    async def refresh(self, session: GameSession) -> bool:
        """
        Pull the top card and every hand from the server.

        A failed hand fetch skips that seat; a failed top-card fetch aborts
        the refresh. Neither raises. A seat with an empty confirmed hand
        wins the game.

        Returns:
            True if the refresh completed.
        """
        if session.closed:
            return False

        try:
            top = await self.server.fetch_top_card(session.game_id)
        except ServerRejected as e:
            logger.error(f"Refresh of game {session.game_id} failed: {e.message}")
            return False
        if session.closed:
            return False

        session.table.top_card = top
        if not top.is_wild:
            session.table.active_wild_color = None

        changes: dict[str, int] = {}
        for name in session.registry.names:
            before = session.registry.get(name).card_count
            try:
                payload = await self.server.fetch_hand(session.game_id, name)
                hand = payload.hand()
            except ServerRejected as e:
                logger.warning(f"Fetching hand of {name} failed: {e.message}")
                continue
            except ValueError as e:
                logger.warning(f"Hand of {name} has an unreadable card: {e}")
                continue
            if session.closed:
                return False

            session.registry.update(name, hand, payload.score)
            if len(hand) != before:
                changes[name] = len(hand) - before
                logger.debug(f"{name}: {before} -> {len(hand)} cards")

            if not hand and session.result is None:
                session.finish(name)

        session.emit(EventType.STATE_REFRESHED, top_card=top.to_dict(), changes=changes)
        return True

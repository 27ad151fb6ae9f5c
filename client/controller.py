"""
Turn controller: the single entry point for player interactions.

Every interaction runs the same pipeline:

    guards -> (color prompt) -> server submit -> reconcile -> transition
           -> refresh -> notify

Guards reject before anything is sent, and a server rejection leaves the
session untouched. Moves are serialized by an in-flight flag; while a move
is in flight or a call-out is pending, new moves fail with BlockedState.
"""

import logging
import random
from typing import Any, Awaitable, Callable, Optional, Sequence

from api_client import ServerCollaborator
from callout import CallOutScheduler, CallOutTimer
from config import TimingConfig, config
from constants import SEAT_COUNT
from errors import (
    BlockedState,
    IllegalMove,
    InvalidPlayerNames,
    NoActiveGame,
    NotYourTurn,
    PromptTimeout,
    ServerRejected,
)
from logging_config import game_id_var, player_var
from models.events import EventType, GameEvent
from prompt import ColorPrompt
from reconcile import ReconciliationEngine
from rules import is_playable, needs_call_out, reverses_direction
from session import GameSession

logger = logging.getLogger(__name__)

RenderCallback = Callable[[dict], Awaitable[None]]
EventEmitter = Callable[[GameEvent], None]


def validate_player_names(names: Any) -> list[str]:
    """
    Return the stripped names, or raise InvalidPlayerNames.

    Exactly four names are required; none may be empty and no two may be
    equal.
    """
    if not isinstance(names, (list, tuple)):
        raise InvalidPlayerNames()
    cleaned = [n.strip() if isinstance(n, str) else "" for n in names]
    if len(cleaned) != SEAT_COUNT:
        raise InvalidPlayerNames(f"Exactly {SEAT_COUNT} player names are required")
    if not all(cleaned):
        raise InvalidPlayerNames("Player names must not be empty")
    if len(set(cleaned)) != len(cleaned):
        raise InvalidPlayerNames("Player names must be unique")
    return cleaned


class TurnController:
    """
    Orchestrates play, draw, UNO calls and game lifecycle.

    Args:
        server: Authoritative server collaborator.
        prompt: Asks a player for a wild color.
        timing: Call-out, color prompt and penalty settings.
        on_state_change: Awaited with a fresh snapshot after every settled
            transition.
        event_emitter: Receives every GameEvent the session records.
        avatars: Avatar identifiers assigned at game start.
        rng: Random source for avatar assignment.
    """

    def __init__(
        self,
        server: ServerCollaborator,
        prompt: ColorPrompt,
        timing: Optional[TimingConfig] = None,
        on_state_change: Optional[RenderCallback] = None,
        event_emitter: Optional[EventEmitter] = None,
        avatars: Optional[list[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.server = server
        self.prompt = prompt
        self.timing = timing or config.timing
        self.reconciler = ReconciliationEngine(
            server,
            avatars=config.AVATARS if avatars is None else avatars,
            rng=rng,
        )
        self._on_state_change = on_state_change
        self._event_emitter = event_emitter
        self._session: Optional[GameSession] = None
        self._in_flight = False

    @property
    def session(self) -> Optional[GameSession]:
        return self._session

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def set_event_emitter(self, emitter: Optional[EventEmitter]) -> None:
        self._event_emitter = emitter
        if self._session is not None:
            self._session.set_event_emitter(emitter)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start_game(self, names: Sequence[str]) -> GameSession:
        """
        Start a new game with four players in seating order.

        Any previous session is discarded, cancelling its call-out, once the
        server has confirmed the new game. A refused start leaves it running.

        Raises:
            InvalidPlayerNames: Names are not four unique non-empty strings.
            ServerRejected: The server refused to start the game.
        """
        cleaned = validate_player_names(names)

        response = await self.server.start(cleaned)
        try:
            session = self.reconciler.apply_start(cleaned, response)
        except ValueError as e:
            raise ServerRejected(f"Malformed start response: {e}") from e
        self._discard()

        session.call_out = CallOutScheduler(
            duration=self.timing.call_out_seconds,
            on_expire=lambda timer: self._apply_penalty(session, timer),
            on_resolve=lambda timer: self._resolve_call_out(session, timer),
        )
        session.set_event_emitter(self._event_emitter)
        self._session = session

        game_id_var.set(session.game_id)
        session.emit(
            EventType.GAME_STARTED,
            player=session.turn.current_player,
            players=session.registry.names,
            top_card=session.table.top_card.to_dict() if session.table.top_card else None,
        )
        logger.info(
            f"Game {session.game_id} started: {', '.join(cleaned)} "
            f"(first: {session.turn.current_player})"
        )
        await self._notify()
        return session

    async def new_game(self) -> None:
        """Discard the current session (if any) and publish the idle view."""
        if self._discard():
            await self._notify()

    def _discard(self) -> bool:
        previous = self._session
        self._session = None
        if previous is None:
            return False
        previous.discard()
        logger.info(f"Game {previous.game_id} discarded")
        return True

    # -------------------------------------------------------------------------
    # Moves
    # -------------------------------------------------------------------------

    def _require_session(self) -> GameSession:
        session = self._session
        if session is None or not session.is_active:
            raise NoActiveGame()
        return session

    def _require_open(self, session: GameSession) -> None:
        if session.turn.blocked or session.call_out.is_active:
            raise BlockedState()
        if self._in_flight:
            raise BlockedState("Another move is still being processed")

    def _still_current(self, session: GameSession) -> None:
        if session is not self._session or not session.is_active:
            raise NoActiveGame("The game ended while the move was pending")

    async def play_card(self, player: str, card_index: int) -> None:
        """
        Play the card at ``card_index`` from ``player``'s hand.

        Raises:
            NoActiveGame: No session, or the game is over.
            BlockedState: A call-out is pending or a move is in flight.
            NotYourTurn: ``player`` is not the current player.
            IllegalMove: No such card, or the card is not playable.
            PromptTimeout: A wild card was played and no color was chosen.
            ServerRejected: The server refused the play.
        """
        session = self._require_session()
        self._require_open(session)
        if player != session.turn.current_player:
            raise NotYourTurn()

        hand = session.hand_of(player)
        if isinstance(card_index, bool) or not isinstance(card_index, int) \
                or not 0 <= card_index < len(hand):
            raise IllegalMove(f"No card at position {card_index}")
        card = hand[card_index]
        if not is_playable(card, session.table, hand):
            raise IllegalMove(f"{card} cannot be played on {session.table.top_card}")

        self._in_flight = True
        player_var.set(player)
        try:
            await self._play(session, player, card, hand_size_before=len(hand))
        finally:
            self._in_flight = False
        await self._notify()

    async def _play(self, session: GameSession, player: str, card, hand_size_before: int) -> None:
        wild_color = None
        if card.is_wild:
            wild_color = await self.prompt.choose_color(player, self.timing.color_prompt_seconds)
            if wild_color is None:
                raise PromptTimeout()
            self._still_current(session)

        response = await self.server.play(session.game_id, card, wild_color)
        if session.closed:
            return

        resolution = self.reconciler.resolve_after_play(session, player, card, response)
        reverse = reverses_direction(card)
        session.table.active_wild_color = wild_color if card.is_wild else None
        session.emit(
            EventType.CARD_PLAYED,
            player=player,
            card=card.to_dict(),
            wild_color=wild_color.value if wild_color else None,
            next_player=resolution.name,
            source=resolution.source.value,
        )
        logger.info(
            f"{player} played {card}"
            + (f" as {wild_color.value}" if wild_color else "")
            + f"; next: {resolution.name} ({resolution.source.value})"
        )

        if needs_call_out(hand_size_before):
            await self.reconciler.refresh(session)
            if not session.is_active:
                return
            session.turn.block(resolution.name, reverse=reverse)
            if reverse:
                session.emit(EventType.DIRECTION_CHANGED, direction=session.turn.direction)
            timer = session.call_out.start(player, resolution.name)
            session.emit(
                EventType.CALL_OUT_STARTED,
                player=player,
                next_player=resolution.name,
                seconds=timer.duration,
            )
        else:
            session.turn.advance(resolution.name, reverse=reverse)
            if reverse:
                session.emit(EventType.DIRECTION_CHANGED, direction=session.turn.direction)
            session.emit(EventType.TURN_ADVANCED, player=resolution.name)
            await self.reconciler.refresh(session)

    async def draw_card(self, player: Optional[str] = None) -> None:
        """
        Draw one card for the current player and pass the turn.

        Raises:
            NoActiveGame, BlockedState, NotYourTurn, ServerRejected
        """
        session = self._require_session()
        self._require_open(session)
        acting = session.turn.current_player
        if player is not None and player != acting:
            raise NotYourTurn()

        self._in_flight = True
        player_var.set(acting)
        try:
            response = await self.server.draw(session.game_id)
            if session.closed:
                return
            resolution = self.reconciler.resolve_after_draw(session, acting, response)
            session.emit(
                EventType.CARD_DRAWN,
                player=acting,
                next_player=resolution.name,
                source=resolution.source.value,
            )
            logger.info(f"{acting} drew a card; next: {resolution.name}")
            session.turn.advance(resolution.name)
            session.emit(EventType.TURN_ADVANCED, player=resolution.name)
            await self.reconciler.refresh(session)
        finally:
            self._in_flight = False
        await self._notify()

    async def call_uno(self, player: Optional[str] = None) -> bool:
        """
        Acknowledge the pending call-out, if any.

        Any UNO press counts, whoever makes it; ``player`` is only logged.

        Returns:
            True if a pending call-out was acknowledged in time.
        """
        session = self._session
        if session is None or session.closed:
            return False
        timer = session.call_out.active
        if timer is None:
            return False
        if player is not None and player != timer.target_player:
            logger.info(f"{player} called UNO on behalf of {timer.target_player}")
        return await session.call_out.acknowledge() is not None

    # -------------------------------------------------------------------------
    # Call-out callbacks
    # -------------------------------------------------------------------------

    async def _apply_penalty(self, session: GameSession, timer: CallOutTimer) -> None:
        draws = self.timing.penalty_draws
        session.emit(EventType.CALL_OUT_PENALTY, player=timer.target_player, draws=draws)
        for _ in range(draws):
            if session.closed:
                return
            await self.server.draw(session.game_id, timer.target_player)

    async def _resolve_call_out(self, session: GameSession, timer: CallOutTimer) -> None:
        if session.closed:
            return
        if timer.acknowledged:
            session.emit(EventType.CALL_OUT_ACKNOWLEDGED, player=timer.target_player)

        # Moves stay rejected until the post-resolution refresh has landed
        self._in_flight = True
        try:
            if session.turn.blocked:
                next_player = session.turn.unblock()
                session.emit(EventType.TURN_ADVANCED, player=next_player)
            await self.reconciler.refresh(session)
            await self._notify()
        finally:
            self._in_flight = False

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Current render view; an idle view when no game exists."""
        if self._session is None:
            return {
                "game_id": None,
                "phase": "idle",
                "players": [],
                "current_player": None,
                "direction": None,
                "top_card": None,
                "effective_color": None,
                "active_wild_color": None,
                "playable": [],
                "blocked": False,
                "pending_next_player": None,
                "call_out": None,
                "winner": None,
            }
        return self._session.get_state()

    async def _notify(self) -> None:
        if self._on_state_change is not None:
            await self._on_state_change(self.snapshot())

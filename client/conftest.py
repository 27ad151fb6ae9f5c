"""
Shared fixtures: an in-memory game server and controllers wired to it.

FakeUnoServer implements the ServerCollaborator protocol. It keeps hands and
the top card, applies plays and draws to its own notion of the current
player, and lets tests queue responses or inject failures per operation.
"""

import asyncio
from typing import Optional

import pytest

from config import TimingConfig
from controller import TurnController
from errors import ServerRejected
from game import Card, Color, Rank
from models.wire import (
    CardPayload,
    DrawCardResponse,
    PlayCardResponse,
    PlayerPayload,
    StartGameResponse,
)

NAMES = ["Anna", "Ben", "Cleo", "Dario"]


def card(color: str, rank: int) -> Card:
    return Card(Color.parse(color), Rank(rank))


def payload(c: Card) -> CardPayload:
    return CardPayload(Color=c.color.value, Value=int(c.rank))


class FakeUnoServer:
    """Scriptable stand-in for the remote game server."""

    def __init__(
        self,
        hands: dict[str, list[Card]],
        top: Card,
        next_player: Optional[str] = None,
        game_id: str = "game-1",
    ):
        self.hands = {name: list(cards) for name, cards in hands.items()}
        self.scores = {name: 0 for name in hands}
        self.top = top
        self.start_next_player = next_player
        self.game_id = game_id
        self.current: Optional[str] = None
        self.deck: list[Card] = []

        self.play_responses: list[PlayCardResponse] = []
        self.draw_responses: list[DrawCardResponse] = []
        self.fail_on: set[str] = set()
        self.fail_hand_for: set[str] = set()
        # When set, top card fetches wait on it (holds a refresh open)
        self.top_gate: Optional[asyncio.Event] = None
        self.calls: list[tuple] = []

    @property
    def draw_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "draw")

    @property
    def play_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "play")

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ServerRejected(f"{operation} refused", status=400)

    def _player_payload(self, name: str) -> PlayerPayload:
        return PlayerPayload(
            Player=name,
            Cards=[payload(c) for c in self.hands[name]],
            Score=self.scores[name],
        )

    async def start(self, names: list[str]) -> StartGameResponse:
        self.calls.append(("start", list(names)))
        self._check("start")
        self.current = self.start_next_player or names[0]
        return StartGameResponse(
            Id=self.game_id,
            Players=[self._player_payload(n) for n in names if n in self.hands],
            NextPlayer=self.start_next_player,
            TopCard=payload(self.top),
        )

    async def fetch_top_card(self, game_id: str) -> Card:
        self.calls.append(("top", game_id))
        self._check("top")
        if self.top_gate is not None:
            await self.top_gate.wait()
        return self.top

    async def fetch_hand(self, game_id: str, player_name: str) -> PlayerPayload:
        self.calls.append(("hand", player_name))
        if player_name in self.fail_hand_for:
            raise ServerRejected(f"no hand for {player_name}", status=500)
        return self._player_payload(player_name)

    async def draw(self, game_id: str, player_name: Optional[str] = None) -> DrawCardResponse:
        drawer = player_name or self.current
        self.calls.append(("draw", drawer))
        self._check("draw")
        drawn = self.deck.pop(0) if self.deck else card("Red", 0)
        self.hands[drawer].append(drawn)
        if self.draw_responses:
            response = self.draw_responses.pop(0)
        else:
            response = DrawCardResponse(Player=drawer, Card=payload(drawn))
        if response.next_player:
            self.current = response.next_player
        return response

    async def play(self, game_id: str, c: Card, wild_color: Optional[Color] = None) -> PlayCardResponse:
        self.calls.append(("play", self.current, c, wild_color))
        self._check("play")
        hand = self.hands[self.current]
        hand.remove(c)
        self.top = c
        response = self.play_responses.pop(0) if self.play_responses else PlayCardResponse()
        if response.next_player:
            self.current = response.next_player
        return response


class ScriptedPrompt:
    """Color prompt that answers immediately with a fixed choice."""

    def __init__(self, answer: Optional[Color] = Color.GREEN):
        self.answer = answer
        self.asked: list[tuple[str, float]] = []

    async def choose_color(self, player: str, timeout: float) -> Optional[Color]:
        self.asked.append((player, timeout))
        return self.answer


@pytest.fixture
def timing():
    return TimingConfig(call_out_seconds=0.05, color_prompt_seconds=0.05, penalty_draws=2)


@pytest.fixture
def default_hands():
    return {
        "Anna": [card("Red", 5), card("Blue", 11), card("Black", 14), card("Green", 3)],
        "Ben": [card("Red", 7), card("Yellow", 2), card("Blue", 9)],
        "Cleo": [card("Green", 1), card("Red", 1), card("Yellow", 12)],
        "Dario": [card("Blue", 4), card("Yellow", 8), card("Green", 6)],
    }


@pytest.fixture
def fake_server(default_hands):
    return FakeUnoServer(default_hands, top=card("Red", 3), next_player="Anna")


@pytest.fixture
def prompt():
    return ScriptedPrompt()


@pytest.fixture
def renders():
    return []


@pytest.fixture
def controller(fake_server, prompt, timing, renders):
    async def on_state_change(state):
        renders.append(state)

    return TurnController(
        fake_server,
        prompt,
        timing=timing,
        on_state_change=on_state_change,
        avatars=[],
    )

"""
HTTP adapter for the remote authoritative UNO server.

The turn engine only depends on the ServerCollaborator protocol; UnoApiClient
implements it over aiohttp against the server's REST API:

    POST /api/Game/Start                      -> StartGameResponse
    GET  /api/Game/TopCard/{id}               -> CardPayload
    GET  /api/Game/GetCards/{id}?playerName=  -> PlayerPayload
    PUT  /api/Game/DrawCard/{id}[?playerName=] -> DrawCardResponse
    PUT  /api/Game/PlayCard/{id}?value=&color=&wildColor= -> PlayCardResponse

Any non-2xx status or transport failure raises ServerRejected. Retries are
left to the caller.
"""

import asyncio
import json
import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from config import config
from errors import ServerRejected
from game import Card, Color
from models.wire import (
    CardPayload,
    DrawCardResponse,
    PlayCardResponse,
    PlayerPayload,
    StartGameResponse,
)

logger = logging.getLogger(__name__)


class ServerCollaborator(Protocol):
    """Operations the turn engine needs from the authoritative server."""

    async def start(self, names: list[str]) -> StartGameResponse: ...

    async def fetch_top_card(self, game_id: str) -> Card: ...

    async def fetch_hand(self, game_id: str, player_name: str) -> PlayerPayload: ...

    async def draw(self, game_id: str, player_name: Optional[str] = None) -> DrawCardResponse: ...

    async def play(
        self, game_id: str, card: Card, wild_color: Optional[Color] = None,
    ) -> PlayCardResponse: ...


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _error_message(body: Any, text: str, status: int) -> str:
    if isinstance(body, dict):
        for key in ("error", "message", "Error", "Message"):
            if body.get(key):
                return str(body[key])
    return text.strip() or f"HTTP {status}"


class UnoApiClient:
    """
    aiohttp client for the UNO game server.

    The underlying ClientSession is created on first use (inside the running
    event loop) unless one is passed in; pass one to share connection pools.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(
            total=timeout_seconds if timeout_seconds is not None else config.HTTP_TIMEOUT_SECONDS
        )

    async def __aenter__(self) -> "UnoApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json_body: Any = None,
    ) -> Any:
        """
        Perform one request and return the decoded JSON body (None if not JSON).

        Raises:
            ServerRejected: On transport failure or non-2xx status.
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._http().request(method, url, params=params, json=json_body) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise ServerRejected(f"Game server unreachable: {e}") from e

        body = _parse_body(text)
        if status >= 400:
            message = _error_message(body, text, status)
            logger.info(f"{method} {path} rejected ({status}): {message}")
            raise ServerRejected(message, status=status)

        logger.debug(f"{method} {path} -> {status}")
        return body

    @staticmethod
    def _game_path(endpoint: str, game_id: str) -> str:
        if not game_id:
            raise ServerRejected("No game id")
        return f"/api/Game/{endpoint}/{quote(str(game_id), safe='')}"

    async def start(self, names: list[str]) -> StartGameResponse:
        body = await self._request("POST", "/api/Game/Start", json_body=list(names))
        try:
            return StartGameResponse.model_validate(body)
        except ValidationError as e:
            raise ServerRejected(f"Malformed start response: {e}") from e

    async def fetch_top_card(self, game_id: str) -> Card:
        body = await self._request("GET", self._game_path("TopCard", game_id))
        try:
            return CardPayload.model_validate(body).to_card()
        except (ValidationError, ValueError) as e:
            raise ServerRejected(f"Malformed top card: {e}") from e

    async def fetch_hand(self, game_id: str, player_name: str) -> PlayerPayload:
        body = await self._request(
            "GET",
            self._game_path("GetCards", game_id),
            params={"playerName": player_name},
        )
        try:
            return PlayerPayload.model_validate(body)
        except ValidationError as e:
            raise ServerRejected(f"Malformed hand for {player_name}: {e}") from e

    async def draw(self, game_id: str, player_name: Optional[str] = None) -> DrawCardResponse:
        """
        Draw one card, for the server's current player unless ``player_name``
        names someone else (forced penalty draws).
        """
        params = {"playerName": player_name} if player_name else None
        body = await self._request("PUT", self._game_path("DrawCard", game_id), params=params)
        if not isinstance(body, dict):
            return DrawCardResponse()
        try:
            return DrawCardResponse.model_validate(body)
        except ValidationError as e:
            raise ServerRejected(f"Malformed draw response: {e}") from e

    async def play(
        self, game_id: str, card: Card, wild_color: Optional[Color] = None,
    ) -> PlayCardResponse:
        params = {
            "value": str(int(card.rank)),
            "color": card.color.value,
            "wildColor": wild_color.value if wild_color else "",
        }
        body = await self._request("PUT", self._game_path("PlayCard", game_id), params=params)
        if not isinstance(body, dict):
            # Accepted, but nothing usable; reconciliation recovers locally
            return PlayCardResponse()
        try:
            return PlayCardResponse.model_validate(body)
        except ValidationError:
            logger.warning(f"Unrecognized play response shape: {body!r}")
            return PlayCardResponse()

"""
Tests for the HTTP adapter, against an in-process aiohttp server that
mimics the game server's REST API.

Run with: pytest test_api_client.py -v
"""

import pytest
from aiohttp import test_utils, web

from api_client import UnoApiClient
from errors import ServerRejected
from game import Card, Color, Rank


def build_app(seen: list) -> web.Application:
    async def start(request):
        names = await request.json()
        seen.append(("start", names))
        return web.json_response({
            "Id": 42,
            "Players": [
                {"Player": n, "Cards": [{"Color": "Red", "Value": 1, "Text": "One", "Score": 1}], "Score": 0}
                for n in names
            ],
            "NextPlayer": names[1],
            "TopCard": {"Color": "Blue", "Value": 11, "Text": "Skip", "Score": 20},
        })

    async def top_card(request):
        seen.append(("top", request.match_info["game_id"]))
        return web.json_response({"Color": "Black", "Value": 14, "Text": "ChangeColor"})

    async def get_cards(request):
        name = request.query["playerName"]
        seen.append(("hand", name))
        if name == "Ghost":
            return web.json_response({"error": "Unknown player"}, status=404)
        return web.json_response({"Player": name, "Cards": None, "Score": None})

    async def draw_card(request):
        seen.append(("draw", request.match_info["game_id"], request.query.get("playerName")))
        return web.json_response({
            "NextPlayer": "Ben",
            "Player": "Anna",
            "Card": {"Color": "Green", "Value": 3},
        })

    async def play_card(request):
        seen.append(("play", dict(request.query)))
        if request.query["value"] == "0":
            return web.Response(text="Card not allowed", status=400)
        if request.query["value"] == "1":
            return web.Response(text="OK")
        return web.json_response({"Player": "Cleo", "Cards": [], "Score": 0})

    app = web.Application()
    app.router.add_post("/api/Game/Start", start)
    app.router.add_get("/api/Game/TopCard/{game_id}", top_card)
    app.router.add_get("/api/Game/GetCards/{game_id}", get_cards)
    app.router.add_put("/api/Game/DrawCard/{game_id}", draw_card)
    app.router.add_put("/api/Game/PlayCard/{game_id}", play_card)
    return app


class TestUnoApiClient:

    @pytest.mark.asyncio
    async def test_start(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                response = await client.start(["Anna", "Ben", "Cleo", "Dario"])

        assert seen == [("start", ["Anna", "Ben", "Cleo", "Dario"])]
        assert response.id == "42"
        assert response.next_player == "Ben"
        assert response.top_card.to_card() == Card(Color.BLUE, Rank.SKIP)
        assert response.players[0].hand() == [Card(Color.RED, Rank.ONE)]

    @pytest.mark.asyncio
    async def test_top_card_and_hand(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                top = await client.fetch_top_card("game-7")
                hand = await client.fetch_hand("game-7", "Anna")

        assert top == Card(Color.BLACK, Rank.CHANGE_COLOR)
        assert seen[0] == ("top", "game-7")
        assert hand.player == "Anna"
        assert hand.hand() == []
        assert hand.score == 0

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        async with test_utils.TestServer(build_app([])) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                with pytest.raises(ServerRejected) as exc:
                    await client.fetch_hand("g1", "Ghost")

        assert exc.value.status == 404
        assert exc.value.message == "Unknown player"

    @pytest.mark.asyncio
    async def test_draw(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                response = await client.draw("g1")

        assert response.next_player == "Ben"
        assert response.player == "Anna"
        assert response.card.to_card() == Card(Color.GREEN, Rank.THREE)
        assert seen == [("draw", "g1", None)]

    @pytest.mark.asyncio
    async def test_draw_for_named_player(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                await client.draw("g1", "Anna")

        assert seen == [("draw", "g1", "Anna")]

    @pytest.mark.asyncio
    async def test_play_sends_query(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                response = await client.play("g1", Card(Color.BLACK, Rank.DRAW_FOUR), Color.YELLOW)

        assert seen == [("play", {"value": "13", "color": "Black", "wildColor": "Yellow"})]
        assert response.player == "Cleo"
        assert response.next_player is None

    @pytest.mark.asyncio
    async def test_play_without_wild_color(self):
        seen = []
        async with test_utils.TestServer(build_app(seen)) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                await client.play("g1", Card(Color.RED, Rank.FIVE))

        assert seen[0][1]["wildColor"] == ""

    @pytest.mark.asyncio
    async def test_play_rejected_with_text(self):
        async with test_utils.TestServer(build_app([])) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                with pytest.raises(ServerRejected) as exc:
                    await client.play("g1", Card(Color.RED, Rank.ZERO))

        assert exc.value.status == 400
        assert exc.value.message == "Card not allowed"

    @pytest.mark.asyncio
    async def test_non_json_play_is_empty_response(self):
        async with test_utils.TestServer(build_app([])) as server:
            async with UnoApiClient(str(server.make_url(""))) as client:
                response = await client.play("g1", Card(Color.RED, Rank.ONE))

        assert response.next_player is None
        assert response.player is None

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        async with test_utils.TestServer(build_app([])) as server:
            url = str(server.make_url(""))
        async with UnoApiClient(url, timeout_seconds=1.0) as client:
            with pytest.raises(ServerRejected) as exc:
                await client.fetch_top_card("g1")

        assert exc.value.status is None

    @pytest.mark.asyncio
    async def test_missing_game_id(self):
        async with UnoApiClient("http://127.0.0.1:1") as client:
            with pytest.raises(ServerRejected):
                await client.draw("")

"""WebSocket message handlers for the UNO table.

Each handler corresponds to a single message type from the browser.
Handlers are dispatched via the HANDLERS dict in main.py.

Rejected moves come back to the sender only, as
``{"type": "error", "kind": ..., "message": ...}``; state changes reach
everyone through the table's ``game_state`` broadcast.
"""

import logging
from dataclasses import dataclass

from fastapi import WebSocket

from errors import GameError, IllegalMove, PromptTimeout
from table import Table

logger = logging.getLogger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str


async def send_error(ctx: ConnectionContext, error: GameError) -> None:
    await ctx.websocket.send_json({
        "type": "error",
        "kind": error.kind,
        "message": error.message,
    })


async def _run(ctx: ConnectionContext, action: str, coro) -> bool:
    """Await a controller call and report a GameError to the sender."""
    try:
        await coro
        return True
    except PromptTimeout:
        logger.info(f"{action}: no color chosen, play withdrawn")
        return False
    except GameError as e:
        logger.info(f"{action} rejected for {ctx.connection_id}: {e.kind}: {e.message}")
        await send_error(ctx, e)
        return False


# ---------------------------------------------------------------------------
# Game lifecycle
# ---------------------------------------------------------------------------

async def handle_start_game(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    await _run(ctx, "start_game", table.start(data.get("names")))


async def handle_new_game(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    await table.reset()


async def handle_get_state(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    await ctx.websocket.send_json({
        "type": "game_state",
        "game_state": table.controller.snapshot(),
    })


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------

async def handle_play_card(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    player = data.get("player")
    index = data.get("index")
    if not isinstance(player, str) or not isinstance(index, int) or isinstance(index, bool):
        await send_error(ctx, IllegalMove("play_card needs a player name and a card index"))
        return
    await _run(ctx, "play_card", table.controller.play_card(player, index))


async def handle_draw_card(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    await _run(ctx, "draw_card", table.controller.draw_card(data.get("player")))


async def handle_call_uno(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    session = table.controller.session
    target = session.call_out.active.target_player if session and session.call_out.active else None
    if await table.controller.call_uno(data.get("player")):
        await table.broadcast({"type": "uno_called", "player": target})


async def handle_color_chosen(data: dict, ctx: ConnectionContext, *, table: Table, **kw) -> None:
    color = data.get("color")
    if not isinstance(color, str):
        return
    prompt_id = data.get("prompt_id")
    if prompt_id:
        accepted = table.prompt.answer(prompt_id, color)
    else:
        accepted = table.prompt.answer_latest(color)
    if not accepted:
        logger.debug(f"Ignoring color {color!r} for prompt {prompt_id!r}")


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    "start_game": handle_start_game,
    "new_game": handle_new_game,
    "get_state": handle_get_state,
    "play_card": handle_play_card,
    "draw_card": handle_draw_card,
    "call_uno": handle_call_uno,
    "color_chosen": handle_color_chosen,
}

# Run off the receive loop: a wild card play waits on a color_chosen that
# may arrive on the same socket
BACKGROUND_HANDLERS = {"play_card"}

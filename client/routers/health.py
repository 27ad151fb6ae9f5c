"""
Health check and table inspection endpoints.

Provides:
- /health - Basic liveness check (is the app running?)
- /ready - Readiness check (is the table wired up, and what is it doing?)
- /api/table - Current render view of the table's game
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Service references (set during app initialization)
_table = None


def set_health_dependencies(table=None):
    """Set dependencies for health checks."""
    global _table
    _table = table


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - can the app handle requests?

    Returns 503 until the table has been created during startup.
    """
    checks = {}
    ready = _table is not None

    if ready:
        controller = _table.controller
        session = controller.session
        checks["table"] = {
            "status": "ok",
            "connections": _table.connection_count,
            "game_id": session.game_id if session else None,
            "phase": session.turn.phase.value if session else "idle",
            "call_out_pending": bool(session and session.call_out.is_active),
            "move_in_flight": controller.in_flight,
        }
    else:
        checks["table"] = {"status": "not_configured"}

    return Response(
        content=json.dumps({
            "status": "ok" if ready else "starting",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }),
        status_code=200 if ready else 503,
        media_type="application/json",
    )


@router.get("/api/table")
async def table_state():
    """Render view of the current game (idle view if none)."""
    if _table is None:
        return Response(
            content=json.dumps({"error": "Table not ready"}),
            status_code=503,
            media_type="application/json",
        )
    return _table.controller.snapshot()

from __future__ import annotations

from uuid import UUID

import structlog

from app.core.logging import bound_battle_context

SESSION_ID = UUID("00000000-0000-4000-8000-0000000000aa")


def test_bound_battle_context_tags_and_then_clears() -> None:
    with bound_battle_context(session_id=SESSION_ID, round_no=3):
        assert structlog.contextvars.get_contextvars() == {
            "battle_session_id": str(SESSION_ID),
            "battle_round": 3,
        }

    assert "battle_session_id" not in structlog.contextvars.get_contextvars()


def test_bound_battle_context_without_round() -> None:
    with bound_battle_context(session_id=SESSION_ID):
        assert "battle_round" not in structlog.contextvars.get_contextvars()

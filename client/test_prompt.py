"""
Tests for the future-backed wild-color prompt.

Run with: pytest test_prompt.py -v
"""

import asyncio

import pytest

from game import Color
from prompt import FutureColorPrompt


class TestFutureColorPrompt:

    @pytest.mark.asyncio
    async def test_answer_resolves_wait(self):
        asked = []

        async def ask(prompt_id, player, colors):
            asked.append((prompt_id, player, colors))

        prompt = FutureColorPrompt(ask=ask)
        waiter = asyncio.create_task(prompt.choose_color("Anna", timeout=1.0))
        await asyncio.sleep(0)

        prompt_id, player, colors = asked[0]
        assert player == "Anna"
        assert colors == ["Red", "Blue", "Green", "Yellow"]
        assert prompt.answer(prompt_id, "green")

        assert await waiter == Color.GREEN
        assert prompt.pending_ids == []

    @pytest.mark.asyncio
    async def test_timeout_is_no_choice(self):
        prompt = FutureColorPrompt()
        assert await prompt.choose_color("Anna", timeout=0.02) is None
        assert prompt.pending_ids == []

    @pytest.mark.asyncio
    async def test_rejects_black_and_unknown(self):
        prompt = FutureColorPrompt()
        waiter = asyncio.create_task(prompt.choose_color("Anna", timeout=0.5))
        await asyncio.sleep(0)
        prompt_id = prompt.pending_ids[0]

        assert not prompt.answer(prompt_id, "Black")
        assert not prompt.answer(prompt_id, "Purple")
        assert not prompt.answer("nope", "Red")
        assert prompt.answer(prompt_id, "Red")
        assert not prompt.answer(prompt_id, "Blue")

        assert await waiter == Color.RED

    @pytest.mark.asyncio
    async def test_answer_latest(self):
        prompt = FutureColorPrompt()
        waiter = asyncio.create_task(prompt.choose_color("Anna", timeout=0.5))
        await asyncio.sleep(0)

        assert prompt.answer_latest("Yellow")
        assert await waiter == Color.YELLOW
        assert not prompt.answer_latest("Yellow")

    @pytest.mark.asyncio
    async def test_cancel_all_withdraws(self):
        prompt = FutureColorPrompt()
        waiter = asyncio.create_task(prompt.choose_color("Anna", timeout=5))
        await asyncio.sleep(0)

        prompt.cancel_all()
        assert await waiter is None

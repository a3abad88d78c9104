# tests/test_advisor.py
import threading
import time

import pytest

from arcade_arena.advisor import EMPTY_REPLY_TIP, FALLBACK_TIP, StrategyAdvisor, describe_call_break, describe_carrom
from arcade_arena.carrom import CarromBoard
from arcade_arena.engine import CallBreakEngine
from arcade_arena.llm_clients import ModelSpec


class _FakeRouter:
    def __init__(self, reply="Lead your long side suit.", delay=0.0, error=None):
        self.reply = reply
        self.delay = delay
        self.error = error
        self.calls = []

    def complete(self, model_spec, *, prompt, system_prompt=None, **kwargs):
        self.calls.append((model_spec, prompt, system_prompt))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


def test_tip_returns_router_text():
    router = _FakeRouter(reply="  Save your spades.  ")
    with StrategyAdvisor("openai:gpt-4o-mini", router=router) as advisor:
        tip = advisor.tip("Call Break", "I bid 3 and hold four spades")

    assert tip == "Save your spades."
    model_spec, prompt, system_prompt = router.calls[0]
    assert model_spec == ModelSpec(provider="openai", model="gpt-4o-mini")
    assert "Call Break" in prompt and "four spades" in prompt
    assert system_prompt


def test_provider_error_falls_back():
    router = _FakeRouter(error=RuntimeError("quota exceeded"))
    with StrategyAdvisor(router=router) as advisor:
        assert advisor.tip("Carrom", "two coins left") == FALLBACK_TIP


def test_empty_reply_uses_its_own_fallback():
    with StrategyAdvisor(router=_FakeRouter(reply="   ")) as advisor:
        assert advisor.tip("Carrom", "two coins left") == EMPTY_REPLY_TIP
        assert advisor.request_tip("Carrom", "x").result(timeout=2) == EMPTY_REPLY_TIP
    assert EMPTY_REPLY_TIP != FALLBACK_TIP


def test_slow_provider_times_out_to_fallback():
    router = _FakeRouter(delay=0.5)
    advisor = StrategyAdvisor(router=router, timeout_seconds=0.05, fallback="Keep calm.")
    try:
        start = time.monotonic()
        assert advisor.tip("Carrom", "queen on the board") == "Keep calm."
        assert time.monotonic() - start < 0.4
    finally:
        advisor.close()


def test_request_tip_resolves_future_and_callback():
    received = []
    done = threading.Event()

    def on_tip(text):
        received.append(text)
        done.set()

    with StrategyAdvisor(router=_FakeRouter(reply="Bid low.")) as advisor:
        future = advisor.request_tip("Call Break", "weak hand", callback=on_tip)
        assert future.result(timeout=2) == "Bid low."
        assert done.wait(timeout=2)

    assert received == ["Bid low."]


def test_request_tip_never_raises_on_failure():
    with StrategyAdvisor(router=_FakeRouter(error=ValueError("boom"))) as advisor:
        assert advisor.request_tip("Carrom", "x").result(timeout=2) == FALLBACK_TIP


def test_unknown_provider_is_rejected_up_front():
    with pytest.raises(ValueError):
        StrategyAdvisor("bard:v1", router=_FakeRouter())
    with pytest.raises(ValueError):
        ModelSpec.parse("gemini")


def test_describe_call_break_mentions_round_and_hand():
    engine = CallBreakEngine(rng_seed=2)
    engine.deal()
    text = describe_call_break(engine.observation_for(0))

    assert "Round 1 of 5" in text
    assert "Spades are trump" in text
    assert str(engine.state.players[0].hand[0]) in text


def test_describe_carrom_summarizes_board():
    text = describe_carrom(CarromBoard.new_game().snapshot())
    assert "19 coins left" in text
    assert "queen still on the board" in text
    assert "player to move" in text

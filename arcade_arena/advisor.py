# arcade_arena/advisor.py
from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Callable, Dict, Optional, Union

from .cards import dict_to_card
from .errors import AdvisoryServiceUnavailable
from .llm_clients import LLMRouter, ModelSpec

logger = logging.getLogger(__name__)

FALLBACK_TIP = "Focus on the basics and play safe!"
# Used when the provider answers but says nothing.
EMPTY_REPLY_TIP = "Keep your focus and watch the opponents!"

EMPTY_REPLY = "empty reply"

SYSTEM_PROMPT = "You are a professional game strategist for mobile board and card games."


class StrategyAdvisor:
    """
    Optional strategy commentary from an LLM.

    Tips are decoration only: every failure (provider error, empty reply,
    timeout) is turned into :class:`AdvisoryServiceUnavailable` internally and
    replaced by a fallback string before it reaches the caller, so game
    state transitions never wait on or fail because of the advisor.
    """

    def __init__(
        self,
        model: Union[str, ModelSpec] = "gemini:gemini-2.0-flash",
        *,
        router: Optional[LLMRouter] = None,
        timeout_seconds: float = 12.0,
        fallback: str = FALLBACK_TIP,
        empty_fallback: str = EMPTY_REPLY_TIP,
        max_workers: int = 2,
    ) -> None:
        self.model_spec = model if isinstance(model, ModelSpec) else ModelSpec.parse(model)
        self.router = router or LLMRouter()
        self.timeout_seconds = float(timeout_seconds)
        self.fallback = fallback
        self.empty_fallback = empty_fallback
        self._calls = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="advisor-call"
        )
        self._waiters = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="advisor-wait"
        )

    @property
    def label(self) -> str:
        return self.model_spec.label

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tip(self, game_name: str, context: str) -> str:
        """Blocking tip with timeout; returns the fallback on any failure."""
        future = self._calls.submit(self._ask, game_name, context)
        try:
            return future.result(timeout=self.timeout_seconds)
        except concurrent.futures.TimeoutError:
            future.cancel()
            exc = AdvisoryServiceUnavailable(
                label=self.label,
                reason=f"no reply within {self.timeout_seconds:.1f}s",
            )
            logger.warning("%s; using fallback tip", exc)
        except AdvisoryServiceUnavailable as exc:
            logger.warning("%s; using fallback tip", exc)
            if exc.reason == EMPTY_REPLY:
                return self.empty_fallback
        return self.fallback

    def request_tip(
        self,
        game_name: str,
        context: str,
        callback: Optional[Callable[[str], None]] = None,
    ) -> "concurrent.futures.Future[str]":
        """
        Fire-and-forget variant of :meth:`tip`.

        The returned future always resolves to a string. `callback`, if
        given, receives the same string once it is ready.
        """
        future = self._waiters.submit(self.tip, game_name, context)
        if callback is not None:
            future.add_done_callback(lambda f: callback(f.result()))
        return future

    def close(self) -> None:
        self._waiters.shutdown(wait=False, cancel_futures=True)
        self._calls.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "StrategyAdvisor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ask(self, game_name: str, context: str) -> str:
        prompt = (
            f"I am playing {game_name}. My current situation is: {context}. "
            "Give me a quick strategy tip in one or two short sentences."
        )
        try:
            text = self.router.complete(
                self.model_spec,
                prompt=prompt,
                system_prompt=SYSTEM_PROMPT,
            )
        except Exception as exc:  # noqa: BLE001
            raise AdvisoryServiceUnavailable(
                label=self.label, reason="provider call failed", error=exc
            ) from exc

        if not isinstance(text, str) or not text.strip():
            raise AdvisoryServiceUnavailable(label=self.label, reason=EMPTY_REPLY)
        logger.debug("Advisor %s tip: %s", self.label, text)
        return text.strip()


def describe_call_break(observation: Dict[str, Any]) -> str:
    """One-paragraph summary of a Call Break observation for the advisor."""
    game = observation.get("game") or {}
    player = observation.get("player") or {}
    seat = player.get("seat")
    hand = [str(dict_to_card(c)) for c in observation.get("hand") or []]
    bids = observation.get("bids") or {}
    tricks = observation.get("tricks_won") or {}

    parts = [
        f"Round {game.get('round_number')} of {game.get('num_rounds')}",
        f"{str(observation.get('trump_suit', 'spades')).title()} are trump",
        f"phase: {observation.get('phase')}",
        f"my hand: {', '.join(hand) if hand else 'empty'}",
    ]
    if seat in bids:
        parts.append(f"my bid: {bids[seat]}, tricks won so far: {tricks.get(seat, 0)}")
    trick = observation.get("current_trick") or {}
    plays = trick.get("plays") or []
    if plays:
        played = ", ".join(
            f"seat {p['seat']} played {dict_to_card(p['card'])}" for p in plays
        )
        parts.append(f"current trick: {played}")
    return "; ".join(parts)


def describe_carrom(snapshot: Dict[str, Any]) -> str:
    """One-paragraph summary of a Carrom board snapshot for the advisor."""
    scores = snapshot.get("scores") or {}
    live = [p for p in snapshot.get("pieces") or [] if p["kind"] != "striker" and not p["pocketed"]]
    queen_live = any(p["kind"] == "queen" for p in live)
    return (
        f"Score {scores.get('player', 0)} (me) vs {scores.get('opponent', 0)}; "
        f"{len(live)} coins left"
        f"{', queen still on the board' if queen_live else ', queen already pocketed'}; "
        f"striker at x={snapshot.get('striker_x', 0):.0f} on the baseline; "
        f"{snapshot.get('side_to_move', 'player')} to move"
    )

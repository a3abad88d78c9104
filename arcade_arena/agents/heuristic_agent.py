# arcade_arena/agents/heuristic_agent.py
from __future__ import annotations

from typing import Any, Dict, List

from ..cards import RANK_QUEEN, Card, dict_to_card
from ..rules import TRUMP_SUIT, winning_play
from .base import CallBreakAgent

# Dividing raw strength by this turns "likely winners" into a cautious bid.
_BID_DIVISOR = 1.5


def estimate_bid(hand: List[Card], min_bid: int = 1, max_bid: int = 8) -> int:
    """clamp(min, max, floor((spades + cards ranked Q or higher) / 1.5))."""
    spades = sum(1 for c in hand if c.suit == TRUMP_SUIT)
    high_cards = sum(1 for c in hand if c.rank >= RANK_QUEEN)
    estimate = int((spades + high_cards) // _BID_DIVISOR)
    return max(min_bid, min(max_bid, estimate))


def _discard_key(card: Card) -> tuple[bool, int]:
    # Cheapest first: non-trump before trump, then by rank.
    return card.suit == TRUMP_SUIT, card.rank


class HeuristicCallBreakAgent(CallBreakAgent):
    """
    Deterministic bot that only uses its own hand and public trick state.

    - choose_bid: `estimate_bid` on the hand.
    - choose_card: when following, the lowest legal card that would win the
      trick as it stands, else the lowest legal card (non-trump first).
      When leading, the highest non-trump card, else the highest spade.
    """

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        hand = [dict_to_card(c) for c in observation["hand"]]
        min_bid, max_bid = observation.get("bid_range", [1, 8])
        return estimate_bid(hand, min_bid, max_bid)

    def choose_card(self, observation: Dict[str, Any]) -> int:
        hand = [dict_to_card(c) for c in observation["hand"]]
        legal_indices: List[int] = observation["legal_move_indices"]
        seat = observation["player"]["seat"]
        trick = observation.get("current_trick") or {}
        plays = [(p["seat"], dict_to_card(p["card"])) for p in trick.get("plays", [])]

        if not plays:
            side_suits = [i for i in legal_indices if hand[i].suit != TRUMP_SUIT]
            pool = side_suits or legal_indices
            return max(pool, key=lambda i: hand[i].rank)

        winners = [
            i for i in legal_indices
            if winning_play(plays + [(seat, hand[i])])[0] == seat
        ]
        if winners:
            return min(winners, key=lambda i: _discard_key(hand[i]))
        return min(legal_indices, key=lambda i: _discard_key(hand[i]))

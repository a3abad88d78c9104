# arcade_arena/agents/random_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
import random

from ..cards import RANK_QUEEN
from ..rules import TRUMP_SUIT
from .base import CallBreakAgent


@dataclass
class RandomCallBreakAgent(CallBreakAgent):
    """
    A simple baseline agent with a bit of structure:

    - choose_bid: half the spades and high cards, then random jitter, clamped
      to the legal range.
    - choose_card: pick uniformly among legal moves.
    """

    rng: random.Random

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        hand = observation["hand"]  # list of dicts from card_to_dict
        min_bid, max_bid = observation.get("bid_range", [1, 8])

        strong = sum(
            1 for c in hand
            if c["suit"] == TRUMP_SUIT.value or int(c["rank"]) >= RANK_QUEEN
        )
        expected = max(min_bid, min(max_bid, strong // 2))

        low = max(min_bid, expected - 1)
        high = min(max_bid, expected + 1)
        return self.rng.randint(low, high)

    def choose_card(self, observation: Dict[str, Any]) -> int:
        legal_indices = observation["legal_move_indices"]
        return self.rng.choice(legal_indices)

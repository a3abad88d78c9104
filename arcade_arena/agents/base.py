# arcade_arena/agents/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class CallBreakAgent(Protocol):
    """
    Interface for non-human Call Break seats.

    `observation` is a JSON-like dict built by the engine containing only
    what the seat may legally see:
      - game-level info (round number, first bidder, trump suit)
      - the seat's own hand
      - public info (bids, current trick, trick history, tricks won, scores)
    """

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        """Return the bid (observation["bid_range"][0]..[1])."""

        raise NotImplementedError

    def choose_card(self, observation: Dict[str, Any]) -> int:
        """
        Return the index into the seat's current hand of the card to play.

        The observation will include:
          - "hand": list[card_dict]
          - "legal_move_indices": list[int]
        """
        raise NotImplementedError


@dataclass(frozen=True)
class Shot:
    """A Carrom shot: where to place the striker, then angle (radians) and power."""
    striker_x: float
    angle: float
    power: float


@runtime_checkable
class CarromAgent(Protocol):
    def choose_shot(self, observation: Dict[str, Any]) -> Shot:
        """Return the shot to take from the public board snapshot."""

        raise NotImplementedError

# arcade_arena/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import enum

from .cards import Card, Suit


class Phase(enum.Enum):
    SETUP = "setup"
    BIDDING = "bidding"
    PLAYING = "playing"
    ROUND_SUMMARY = "round_summary"
    MATCH_OVER = "match_over"


@dataclass
class PlayerState:
    seat: int
    name: str
    is_bot: bool = True
    hand: List[Card] = field(default_factory=list)
    bid: int = 0  # 0 = not yet bid this round
    tricks_won: int = 0
    score: float = 0.0


@dataclass
class Trick:
    leader: int
    # (seat, card) pairs in play order
    plays: List[tuple[int, Card]] = field(default_factory=list)
    # suit of the first card played
    led_suit: Optional[Suit] = None
    winner: Optional[int] = None

    def card_of(self, seat: int) -> Optional[Card]:
        for pid, card in self.plays:
            if pid == seat:
                return card
        return None


@dataclass
class RoundState:
    round_number: int
    first_bidder: int
    bids: Dict[int, int] = field(default_factory=dict)
    tricks: List[Trick] = field(default_factory=list)
    current_trick: Optional[Trick] = None


@dataclass
class RoundRecord:
    """Summary of a finished round, kept so totals can be replayed."""
    round_number: int
    first_bidder: int
    bids: Dict[int, int]
    tricks_won: Dict[int, int]
    deltas: Dict[int, float]


@dataclass
class MatchState:
    players: List[PlayerState]
    phase: Phase = Phase.SETUP
    round: Optional[RoundState] = None
    history: List[RoundRecord] = field(default_factory=list)
    # Most recently completed trick; survives into the round summary.
    last_trick: Optional[Trick] = None
    # Seat whose action is due (bidder or card player); None outside those phases.
    turn: Optional[int] = None

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def round_number(self) -> int:
        return self.round.round_number if self.round else len(self.history)

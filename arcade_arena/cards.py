# arcade_arena/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import enum
import random


class Suit(enum.Enum):
    SPADES = "spades"
    HEARTS = "hearts"
    CLUBS = "clubs"
    DIAMONDS = "diamonds"


# Display order for sorted hands: suit-major in this order, rank-descending.
SUIT_ORDER: List[Suit] = [Suit.SPADES, Suit.HEARTS, Suit.CLUBS, Suit.DIAMONDS]

RANK_JACK = 11
RANK_QUEEN = 12
RANK_KING = 13
RANK_ACE = 14

_RANK_LABELS = {RANK_JACK: "J", RANK_QUEEN: "Q", RANK_KING: "K", RANK_ACE: "A"}


@dataclass(frozen=True)
class Card:
    """
    A standard playing card.

    Ranks are numeric 2–14 with J=11, Q=12, K=13, A=14. Two cards are equal
    iff suit and rank match.
    """
    suit: Suit
    rank: int

    def __post_init__(self) -> None:
        if not isinstance(self.suit, Suit):
            raise ValueError(f"Unknown suit {self.suit!r}")
        if not (2 <= self.rank <= RANK_ACE):
            raise ValueError("Card rank must be between 2 and 14")

    @property
    def label(self) -> str:
        return _RANK_LABELS.get(self.rank, str(self.rank))

    def __str__(self) -> str:
        return f"{self.label} of {self.suit.value.title()}"


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    return {"suit": card.suit.value, "rank": card.rank}


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a dict back into a Card."""
    return Card(suit=Suit(data["suit"]), rank=int(data["rank"]))


def sort_key(card: Card) -> tuple[int, int]:
    return SUIT_ORDER.index(card.suit), -card.rank


def sort_hand(hand: List[Card]) -> List[Card]:
    """Return a display-ordered copy of ``hand``. Never affects legality."""
    return sorted(hand, key=sort_key)


class Deck:
    """A standard 52-card deck: 4 suits × ranks 2–14."""

    def __init__(self) -> None:
        self.cards: List[Card] = [
            Card(suit, rank) for suit in SUIT_ORDER for rank in range(2, RANK_ACE + 1)
        ]
        if len(set(self.cards)) != 52:
            raise RuntimeError("Deck must contain exactly 52 distinct cards")

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the deck in place (uniform permutation). Uses provided RNG if given."""
        if rng is None:
            random.shuffle(self.cards)
        else:
            rng.shuffle(self.cards)

    def deal(self, num_players: int, cards_per_player: int) -> List[List[Card]]:
        """
        Partition the deck into ``num_players`` contiguous hands.

        Seat ``i`` receives ``cards[i * n:(i + 1) * n]``. The whole deck must
        be consumed, so every card lands in exactly one hand.
        """
        if num_players * cards_per_player != len(self.cards):
            raise ValueError("Deal must use every card in the deck exactly once")

        return [
            self.cards[seat * cards_per_player:(seat + 1) * cards_per_player]
            for seat in range(num_players)
        ]

# arcade_arena/rules.py
from __future__ import annotations

from typing import Dict, List, Optional

from .cards import Card, Suit
from .state import PlayerState, Trick

# Spades are the permanent trump suit in Call Break.
TRUMP_SUIT = Suit.SPADES


def legal_moves(hand: List[Card], led_suit: Optional[Suit]) -> List[int]:
    """
    Return indices into `hand` that are legally playable given the led suit.

    Rules implemented:
    - If no led suit yet (leading the trick), any card is legal.
    - If the player holds cards of the led suit, they must follow suit.
    - Otherwise, if the player holds any spade, they must play a spade.
    - Otherwise any card is legal.
    """
    if led_suit is None:
        return list(range(len(hand)))

    follow_suit = [i for i, c in enumerate(hand) if c.suit == led_suit]
    if follow_suit:
        return follow_suit

    trumps = [i for i, c in enumerate(hand) if c.suit == TRUMP_SUIT]
    if trumps:
        return trumps

    return list(range(len(hand)))


def is_legal_play(hand: List[Card], card: Card, led_suit: Optional[Suit]) -> bool:
    if card not in hand:
        return False
    return hand.index(card) in legal_moves(hand, led_suit)


def winning_play(plays: List[tuple[int, Card]]) -> tuple[int, Card]:
    """
    Return the (seat, card) currently winning a possibly incomplete trick.

    The highest spade wins if any spade was played; otherwise the highest
    card of the suit led by the first play.
    """
    if not plays:
        raise ValueError("Cannot determine winner of an empty trick")

    best_seat, best_card = plays[0]
    for seat, card in plays[1:]:
        if card.suit == best_card.suit:
            if card.rank > best_card.rank:
                best_seat, best_card = seat, card
        elif card.suit == TRUMP_SUIT:
            # First spade over a led-suit winner; spades always beat non-trump.
            best_seat, best_card = seat, card
    return best_seat, best_card


def winner_of_trick(trick: Trick) -> int:
    """Determine the seat that wins a completed trick."""
    return winning_play(trick.plays)[0]


def round_score(bid: int, tricks_won: int, overtrick_value: float = 0.1) -> float:
    """
    Call Break scoring for one player and round.

    - Made the bid: bid + overtrick_value * (tricks_won - bid)
    - Missed: -bid

    Rounded to one decimal place so totals stay exact to the tenth.
    """
    if tricks_won >= bid:
        return round(bid + overtrick_value * (tricks_won - bid), 1)
    return float(-bid)


def score_round(
    players: List[PlayerState], overtrick_value: float = 0.1
) -> Dict[int, float]:
    """Score deltas per seat from each player's current bid and tricks won."""
    return {
        p.seat: round_score(p.bid, p.tricks_won, overtrick_value) for p in players
    }

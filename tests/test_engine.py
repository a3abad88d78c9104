# tests/test_engine.py
import random

import pytest

from arcade_arena.agents import HeuristicCallBreakAgent, RandomCallBreakAgent
from arcade_arena.cards import Card
from arcade_arena.commands import Bid, Deal, NextRound, PlayCard
from arcade_arena.engine import CallBreakEngine
from arcade_arena.errors import InvalidAction
from arcade_arena.state import Phase


def _human_engine(seed: int = 5) -> CallBreakEngine:
    return CallBreakEngine(agents=[None] * 4, player_names=["A", "B", "C", "D"], rng_seed=seed)


def _bot_engine(seed: int = 11) -> CallBreakEngine:
    agents = [
        HeuristicCallBreakAgent(),
        RandomCallBreakAgent(rng=random.Random(1)),
        HeuristicCallBreakAgent(),
        RandomCallBreakAgent(rng=random.Random(2)),
    ]
    return CallBreakEngine(agents=agents, player_names=["N", "E", "S", "W"], rng_seed=seed)


def _bid_all(engine: CallBreakEngine, value: int = 2) -> None:
    for _ in range(4):
        engine.bid(engine.state.turn, value)


def test_deal_gives_each_seat_13_distinct_cards():
    engine = _human_engine()
    events = engine.deal()

    assert events == [{"type": "round_started", "round_number": 1, "first_bidder": 0}]
    assert engine.phase == Phase.BIDDING
    assert engine.state.turn == 0
    hands = [p.hand for p in engine.state.players]
    assert all(len(h) == 13 for h in hands)
    assert len({c for h in hands for c in h}) == 52


def test_deal_twice_is_rejected():
    engine = _human_engine()
    engine.deal()
    result = engine.apply(Deal())
    assert not result.accepted
    assert result.code == "wrong_phase"


def test_bidding_goes_clockwise_then_first_bidder_leads():
    engine = _human_engine()
    engine.deal()

    order = []
    for value in (3, 4, 2, 1):
        order.append(engine.state.turn)
        engine.bid(engine.state.turn, value)

    assert order == [0, 1, 2, 3]
    assert engine.phase == Phase.PLAYING
    assert engine.state.turn == 0
    assert engine.state.round.bids == {0: 3, 1: 4, 2: 2, 3: 1}
    assert [p.bid for p in engine.state.players] == [3, 4, 2, 1]


@pytest.mark.parametrize("value", [0, 9, -1, 2.5, True])
def test_out_of_range_bid_is_rejected_without_state_change(value):
    engine = _human_engine()
    engine.deal()
    before = engine.snapshot()

    result = engine.apply(Bid(seat=0, value=value))

    assert not result.accepted
    assert result.code == "bid_out_of_range"
    assert engine.snapshot() == before
    assert engine.state.turn == 0
    assert engine.state.round.bids == {}


def test_bid_out_of_turn_raises():
    engine = _human_engine()
    engine.deal()
    with pytest.raises(InvalidAction) as excinfo:
        engine.bid(2, 3)
    assert excinfo.value.code == "wrong_turn"


def test_play_before_bidding_finishes_is_wrong_phase():
    engine = _human_engine()
    engine.deal()
    card = engine.state.players[0].hand[0]
    result = engine.apply(PlayCard(seat=0, card=card))
    assert result.code == "wrong_phase"


def test_card_not_in_hand_is_rejected():
    engine = _human_engine()
    engine.deal()
    _bid_all(engine)

    someone_elses = engine.state.players[1].hand[0]
    result = engine.apply(PlayCard(seat=0, card=someone_elses))
    assert not result.accepted
    assert result.code == "card_not_in_hand"


def test_illegal_card_is_rejected_and_state_unchanged():
    # Find a deal where seat 1 holds a card it may not play after seat 0 leads.
    for seed in range(50):
        engine = _human_engine(seed)
        engine.deal()
        _bid_all(engine)
        engine.play_card(0, engine.state.players[0].hand[0])

        legal = engine.legal_cards(1)
        illegal = [c for c in engine.state.players[1].hand if c not in legal]
        if illegal:
            break
    else:
        pytest.fail("no deal produced an illegal option for seat 1")

    before = engine.snapshot()
    result = engine.apply(PlayCard(seat=1, card=illegal[0]))

    assert not result.accepted
    assert result.code == "illegal_card"
    assert engine.snapshot() == before
    assert illegal[0] in engine.state.players[1].hand


def test_legal_cards_empty_when_not_your_turn():
    engine = _human_engine()
    engine.deal()
    _bid_all(engine)
    assert engine.legal_cards(1) == []
    assert len(engine.legal_cards(0)) == 13


def test_trick_winner_leads_next_trick():
    engine = _human_engine()
    engine.deal()
    _bid_all(engine)

    events = []
    for _ in range(4):
        seat = engine.state.turn
        events.extend(engine.play_card(seat, engine.legal_cards(seat)[0]))

    won = [e for e in events if e["type"] == "trick_won"]
    assert len(won) == 1
    winner = won[0]["seat"]
    assert engine.state.turn == winner
    assert engine.state.round.current_trick.leader == winner
    assert engine.state.players[winner].tricks_won == 1
    assert all(len(p.hand) == 12 for p in engine.state.players)


def test_step_bots_stops_at_human_seat():
    engine = CallBreakEngine(rng_seed=3)  # seat 0 human, three heuristic bots
    engine.deal()

    assert engine.step_bots() == []
    assert engine.state.turn == 0

    engine.bid(0, 3)
    events = engine.step_bots()
    assert [e["seat"] for e in events if e["type"] == "bid"] == [1, 2, 3]
    assert engine.phase == Phase.PLAYING
    # Seat 0 leads the first trick and is human, so nothing else happens.
    assert engine.state.turn == 0


def test_bots_never_see_other_hands():
    engine = CallBreakEngine(rng_seed=8)
    engine.deal()
    obs = engine.observation_for(0)

    own = [c for c in obs["hand"]]
    assert len(own) == 13
    assert "players" not in obs
    assert obs["hand_sizes"] == {0: 13, 1: 13, 2: 13, 3: 13}
    assert "legal_move_indices" not in obs
    other_cards = {
        (c.suit.value, c.rank)
        for p in engine.state.players[1:]
        for c in p.hand
    }
    assert not other_cards & {(c["suit"], c["rank"]) for c in own}


def test_observation_lists_legal_indices_on_turn():
    engine = _human_engine()
    engine.deal()
    _bid_all(engine)
    obs = engine.observation_for(0)
    assert obs["legal_move_indices"] == list(range(13))
    assert obs["bids"] == {0: 2, 1: 2, 2: 2, 3: 2}
    assert obs["trump_suit"] == "spades"


def test_full_match_invariants():
    engine = _bot_engine()
    match = engine.play_match()

    assert match.phase == Phase.MATCH_OVER
    assert len(match.history) == 5
    assert [r.first_bidder for r in match.history] == [0, 1, 2, 3, 0]
    for record in match.history:
        assert sum(record.tricks_won.values()) == 13
        assert set(record.bids) == {0, 1, 2, 3}
        assert all(1 <= b <= 8 for b in record.bids.values())

    # Final scores equal the sum of per-round deltas
    for p in match.players:
        total = sum(r.deltas[p.seat] for r in match.history)
        assert p.score == pytest.approx(total)

    snap = engine.snapshot()
    assert snap["phase"] == "match_over"
    assert snap["winners"] == engine.winning_seats()


def test_same_seed_gives_same_match():
    a = _bot_engine(seed=21).play_match()
    b = _bot_engine(seed=21).play_match()
    assert [p.score for p in a.players] == [p.score for p in b.players]
    assert [r.bids for r in a.history] == [r.bids for r in b.history]


def test_next_round_rotates_first_bidder():
    engine = _bot_engine()
    engine.deal()
    engine.step_bots()

    assert engine.phase == Phase.ROUND_SUMMARY
    assert engine.state.round is None
    assert engine.state.round_number == 1

    events = engine.apply(NextRound()).events
    assert events == [{"type": "round_started", "round_number": 2, "first_bidder": 1}]
    assert engine.state.turn == 1


def test_last_trick_survives_into_round_summary():
    engine = _bot_engine()
    engine.deal()
    engine.step_bots()

    last = engine.snapshot()["last_trick"]
    assert engine.phase == Phase.ROUND_SUMMARY
    assert len(last["plays"]) == 4
    assert last["winner"] in range(4)

    engine.next_round()
    assert engine.snapshot()["last_trick"] is None


def test_play_match_requires_all_bots():
    engine = CallBreakEngine(rng_seed=1)
    with pytest.raises(ValueError):
        engine.play_match()


class _UnrulyAgent:
    def choose_bid(self, observation):
        return 20

    def choose_card(self, observation):
        return 99


def test_bad_agent_choices_are_clamped_to_legal():
    engine = CallBreakEngine(agents=[_UnrulyAgent() for _ in range(4)], rng_seed=4)
    engine.deal()
    engine.step_bots()

    record = engine.state.history[0]
    assert record.bids == {0: 8, 1: 8, 2: 8, 3: 8}
    assert sum(record.tricks_won.values()) == 13


def test_winning_seats_reports_ties_and_prizes():
    engine = _human_engine()
    for p, score in zip(engine.state.players, [7.2, 3.0, 7.2, -4.0]):
        p.score = score

    assert engine.prize_for_seat(0, 100) == 0  # match not over yet

    engine.state.phase = Phase.MATCH_OVER
    assert engine.winning_seats() == [0, 2]
    assert engine.prize_for_seat(0, 100) == 300
    assert engine.prize_for_seat(2, 100) == 300
    assert engine.prize_for_seat(1, 100) == 0


def test_human_can_play_a_full_trick_with_card_objects():
    engine = _human_engine()
    engine.deal()
    _bid_all(engine, value=1)
    lead = engine.legal_cards(0)[-1]
    events = engine.play_card(0, Card(lead.suit, lead.rank))
    assert events[0]["type"] == "card_played"
    assert engine.state.round.current_trick.led_suit == lead.suit

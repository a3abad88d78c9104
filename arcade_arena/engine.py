# arcade_arena/engine.py
from __future__ import annotations

import copy
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .agents.base import CallBreakAgent
from .agents.heuristic_agent import HeuristicCallBreakAgent
from .cards import Card, Deck, card_to_dict, sort_hand
from .commands import Bid, CommandResult, Deal, NextRound, PlayCard, TrickCommand
from .config import CallBreakRules
from .errors import InvalidAction
from .rules import TRUMP_SUIT, legal_moves, score_round, winner_of_trick
from .state import MatchState, Phase, PlayerState, RoundRecord, RoundState, Trick

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAMES = ["You", "Bot Arjun", "Bot Priya", "Bot Rohan"]


class CallBreakEngine:
    """
    Rule engine for a 5-round, 4-seat Call Break match.

    Every mutation goes through :meth:`apply`, which runs the command against
    a deep copy of the match state and only swaps the copy in once the command
    has been fully validated and applied. A rejected command therefore leaves
    the state untouched. The convenience methods (:meth:`deal`, :meth:`bid`,
    :meth:`play_card`, :meth:`next_round`) raise :class:`InvalidAction`
    instead of returning a rejected result.

    Seats whose agent is ``None`` are human; the engine never acts for them.
    Bots act only when :meth:`step_bots` (or :meth:`play_match`) is called, so
    the engine has no timers and identical inputs give identical results.
    """

    def __init__(
        self,
        agents: Optional[Sequence[Optional[CallBreakAgent]]] = None,
        player_names: Optional[List[str]] = None,
        rng_seed: Optional[int] = None,
        rules: Optional[CallBreakRules] = None,
        game_label: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rules = rules or CallBreakRules()
        num_players = self.rules.num_players

        if agents is None:
            agents = [None] + [HeuristicCallBreakAgent() for _ in range(num_players - 1)]
        if len(agents) != num_players:
            raise ValueError(f"Call Break needs exactly {num_players} seats")
        self.agents: List[Optional[CallBreakAgent]] = list(agents)

        if player_names is None:
            player_names = DEFAULT_PLAYER_NAMES[:num_players]
        if len(player_names) != num_players:
            raise ValueError("player_names must match number of seats")

        self.rng = rng or random.Random(rng_seed)
        self.game_label = game_label
        self.state = MatchState(
            players=[
                PlayerState(seat=i, name=name, is_bot=self.agents[i] is not None)
                for i, name in enumerate(player_names)
            ]
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def apply(self, command: TrickCommand) -> CommandResult:
        """Apply one command; return an accepted or rejected result."""
        working = copy.deepcopy(self.state)
        try:
            events = self._dispatch(working, command)
        except InvalidAction as exc:
            logger.debug("Rejected %r: %s", command, exc)
            return CommandResult.rejected(self.snapshot(), str(exc), exc.code)
        self.state = working
        return CommandResult.ok(self.snapshot(), events)

    def deal(self) -> List[Dict[str, Any]]:
        return self._run(Deal())

    def bid(self, seat: int, value: int) -> List[Dict[str, Any]]:
        return self._run(Bid(seat=seat, value=value))

    def play_card(self, seat: int, card: Card) -> List[Dict[str, Any]]:
        return self._run(PlayCard(seat=seat, card=card))

    def next_round(self) -> List[Dict[str, Any]]:
        return self._run(NextRound())

    def legal_cards(self, seat: int) -> List[Card]:
        """Cards `seat` may play right now (empty when it is not their turn)."""
        state = self.state
        if state.phase != Phase.PLAYING or state.turn != seat:
            return []
        hand = state.players[seat].hand
        trick = state.round.current_trick if state.round else None
        led_suit = trick.led_suit if trick else None
        return [hand[i] for i in legal_moves(hand, led_suit)]

    def step_bots(self) -> List[Dict[str, Any]]:
        """Let consecutive bot seats act until a human is due or the phase ends."""
        events: List[Dict[str, Any]] = []
        while self.state.phase in (Phase.BIDDING, Phase.PLAYING):
            seat = self.state.turn
            assert seat is not None
            agent = self.agents[seat]
            if agent is None:
                break

            obs = self.observation_for(seat)
            if self.state.phase == Phase.BIDDING:
                value = agent.choose_bid(obs)
                if not isinstance(value, int) or isinstance(value, bool):
                    raise ValueError("Agent returned non-int bid")
                # Clamp to the legal range rather than stalling the match.
                value = max(self.rules.min_bid, min(self.rules.max_bid, value))
                events.extend(self.bid(seat, value))
            else:
                legal_indices = obs["legal_move_indices"]
                move_index = agent.choose_card(obs)
                if move_index not in legal_indices:
                    logger.warning(
                        "Seat %d chose illegal index %r; using %d",
                        seat,
                        move_index,
                        legal_indices[0],
                    )
                    move_index = legal_indices[0]
                card = self.state.players[seat].hand[move_index]
                events.extend(self.play_card(seat, card))
        return events

    def play_match(self) -> MatchState:
        """Play an all-bot match from the current phase to MATCH_OVER."""
        if any(agent is None for agent in self.agents):
            raise ValueError("play_match requires an agent in every seat")

        if self.state.phase == Phase.SETUP:
            self.deal()
        while self.state.phase != Phase.MATCH_OVER:
            if self.state.phase == Phase.ROUND_SUMMARY:
                self.next_round()
            else:
                self.step_bots()

        logger.info(
            "Finished match%s; winners: %s",
            f" {self.game_label}" if self.game_label else "",
            ", ".join(self.state.players[s].name for s in self.winning_seats()),
        )
        return self.state

    def winning_seats(self) -> List[int]:
        """
        Seats holding the highest cumulative score.

        More than one seat is returned on a tie; ties are not broken.
        """
        players = self.state.players
        best = max(p.score for p in players)
        return [p.seat for p in players if abs(p.score - best) < 1e-9]

    def prize_for_seat(self, seat: int, entry_fee: int) -> int:
        """Tokens won by `seat` at match end: a multiple of the entry fee for any top seat."""
        if self.state.phase != Phase.MATCH_OVER:
            return 0
        if seat in self.winning_seats():
            return entry_fee * self.rules.prize_multiplier
        return 0

    # -------------------------------------------------------------------------
    # Command handlers (operate on the working copy)
    # -------------------------------------------------------------------------

    def _run(self, command: TrickCommand) -> List[Dict[str, Any]]:
        result = self.apply(command)
        if not result.accepted:
            raise InvalidAction(result.error or "rejected", code=result.code or "invalid_action")
        return result.events

    def _dispatch(self, state: MatchState, command: TrickCommand) -> List[Dict[str, Any]]:
        if isinstance(command, Deal):
            self._require_phase(state, Phase.SETUP)
            return self._start_round(state, round_number=1)
        if isinstance(command, Bid):
            return self._handle_bid(state, command)
        if isinstance(command, PlayCard):
            return self._handle_play(state, command)
        if isinstance(command, NextRound):
            self._require_phase(state, Phase.ROUND_SUMMARY)
            return self._start_round(state, round_number=len(state.history) + 1)
        raise InvalidAction(f"Unknown command {command!r}", code="bad_input")

    def _require_phase(self, state: MatchState, phase: Phase) -> None:
        if state.phase != phase:
            raise InvalidAction(
                f"Expected phase {phase.value}, match is in {state.phase.value}",
                code="wrong_phase",
            )

    def _require_turn(self, state: MatchState, seat: int) -> None:
        if not isinstance(seat, int) or not 0 <= seat < state.num_players:
            raise InvalidAction(f"Unknown seat {seat!r}", code="bad_input")
        if seat != state.turn:
            raise InvalidAction(
                f"It is seat {state.turn}'s turn, not seat {seat}'s",
                code="wrong_turn",
            )

    def _start_round(self, state: MatchState, round_number: int) -> List[Dict[str, Any]]:
        deck = Deck()
        deck.shuffle(self.rng)
        hands = deck.deal(state.num_players, self.rules.cards_per_player)

        for player, hand in zip(state.players, hands):
            player.hand = sort_hand(hand)
            player.bid = 0
            player.tricks_won = 0

        # First bidder (and first leader) rotates one seat per round.
        first_bidder = (round_number - 1) % state.num_players
        state.round = RoundState(round_number=round_number, first_bidder=first_bidder)
        state.last_trick = None
        state.phase = Phase.BIDDING
        state.turn = first_bidder
        logger.info(
            "Dealt round %d/%d%s; seat %d bids first",
            round_number,
            self.rules.num_rounds,
            f" for {self.game_label}" if self.game_label else "",
            first_bidder,
        )
        return [{"type": "round_started", "round_number": round_number, "first_bidder": first_bidder}]

    def _handle_bid(self, state: MatchState, command: Bid) -> List[Dict[str, Any]]:
        self._require_phase(state, Phase.BIDDING)
        self._require_turn(state, command.seat)
        value = command.value
        if (
            not isinstance(value, int)
            or isinstance(value, bool)
            or not self.rules.min_bid <= value <= self.rules.max_bid
        ):
            raise InvalidAction(
                f"Bid must be an integer in [{self.rules.min_bid}, {self.rules.max_bid}], got {value!r}",
                code="bid_out_of_range",
            )

        round_state = state.round
        assert round_state is not None
        round_state.bids[command.seat] = value
        state.players[command.seat].bid = value
        events: List[Dict[str, Any]] = [{"type": "bid", "seat": command.seat, "value": value}]

        if len(round_state.bids) == state.num_players:
            state.phase = Phase.PLAYING
            state.turn = round_state.first_bidder
            round_state.current_trick = Trick(leader=round_state.first_bidder)
            events.append({"type": "bidding_complete", "bids": dict(round_state.bids)})
        else:
            state.turn = (command.seat + 1) % state.num_players
        return events

    def _handle_play(self, state: MatchState, command: PlayCard) -> List[Dict[str, Any]]:
        self._require_phase(state, Phase.PLAYING)
        self._require_turn(state, command.seat)

        round_state = state.round
        assert round_state is not None and round_state.current_trick is not None
        trick = round_state.current_trick
        player = state.players[command.seat]

        if command.card not in player.hand:
            raise InvalidAction(f"{command.card} is not in seat {command.seat}'s hand", code="card_not_in_hand")
        legal_indices = legal_moves(player.hand, trick.led_suit)
        if player.hand.index(command.card) not in legal_indices:
            raise InvalidAction(
                f"{command.card} is not a legal play"
                f" (led suit: {trick.led_suit.value if trick.led_suit else 'none'})",
                code="illegal_card",
            )

        player.hand.remove(command.card)
        trick.plays.append((command.seat, command.card))
        if trick.led_suit is None:
            trick.led_suit = command.card.suit
        events: List[Dict[str, Any]] = [
            {"type": "card_played", "seat": command.seat, "card": card_to_dict(command.card)}
        ]

        if len(trick.plays) < state.num_players:
            state.turn = (command.seat + 1) % state.num_players
            return events

        winner = winner_of_trick(trick)
        trick.winner = winner
        state.players[winner].tricks_won += 1
        round_state.tricks.append(trick)
        state.last_trick = trick
        events.append({"type": "trick_won", "seat": winner, "trick_index": len(round_state.tricks) - 1})

        if all(not p.hand for p in state.players):
            events.extend(self._finish_round(state))
        else:
            # Winner leads the next trick.
            round_state.current_trick = Trick(leader=winner)
            state.turn = winner
        return events

    def _finish_round(self, state: MatchState) -> List[Dict[str, Any]]:
        round_state = state.round
        assert round_state is not None

        deltas = score_round(state.players, self.rules.overtrick_value)
        for p in state.players:
            p.score = round(p.score + deltas[p.seat], 1)

        state.history.append(
            RoundRecord(
                round_number=round_state.round_number,
                first_bidder=round_state.first_bidder,
                bids=dict(round_state.bids),
                tricks_won={p.seat: p.tricks_won for p in state.players},
                deltas=deltas,
            )
        )
        state.round = None
        state.turn = None
        events: List[Dict[str, Any]] = [
            {"type": "round_over", "round_number": round_state.round_number, "deltas": deltas}
        ]

        if round_state.round_number >= self.rules.num_rounds:
            state.phase = Phase.MATCH_OVER
            best = max(p.score for p in state.players)
            winners = [p.seat for p in state.players if abs(p.score - best) < 1e-9]
            events.append({"type": "match_over", "winners": winners})
        else:
            state.phase = Phase.ROUND_SUMMARY
        logger.info(
            "Finished round %d/%d%s",
            round_state.round_number,
            self.rules.num_rounds,
            f" for {self.game_label}" if self.game_label else "",
        )
        return events

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Render view of the whole match (every hand included)."""
        state = self.state
        round_state = state.round
        last_trick = state.last_trick
        snap: Dict[str, Any] = {
            "game_id": self.game_label,
            "phase": state.phase.value,
            "round_number": state.round_number,
            "num_rounds": self.rules.num_rounds,
            "turn": state.turn,
            "trump_suit": TRUMP_SUIT.value,
            "players": [
                {
                    "seat": p.seat,
                    "name": p.name,
                    "is_bot": p.is_bot,
                    "hand": [card_to_dict(c) for c in p.hand],
                    "hand_size": len(p.hand),
                    "bid": p.bid,
                    "tricks_won": p.tricks_won,
                    "score": p.score,
                }
                for p in state.players
            ],
            "current_trick": _trick_to_dict(round_state.current_trick)
            if round_state and round_state.current_trick
            else None,
            "last_trick": _trick_to_dict(last_trick) if last_trick else None,
            "history": [
                {
                    "round_number": r.round_number,
                    "first_bidder": r.first_bidder,
                    "bids": dict(r.bids),
                    "tricks_won": dict(r.tricks_won),
                    "deltas": dict(r.deltas),
                }
                for r in state.history
            ],
        }
        if state.phase == Phase.MATCH_OVER:
            snap["winners"] = self.winning_seats()
        return snap

    def observation_for(self, seat: int) -> Dict[str, Any]:
        """What `seat` may legally see: its own hand plus public information."""
        state = self.state
        round_state = state.round
        player = state.players[seat]
        trick = round_state.current_trick if round_state else None

        obs: Dict[str, Any] = {
            "game": {
                "game_id": self.game_label,
                "round_number": state.round_number,
                "num_rounds": self.rules.num_rounds,
                "num_players": state.num_players,
                "first_bidder": round_state.first_bidder if round_state else None,
            },
            "player": {"seat": seat, "name": player.name, "score": player.score},
            "phase": state.phase.value,
            "trump_suit": TRUMP_SUIT.value,
            "hand": [card_to_dict(c) for c in player.hand],
            "bid_range": [self.rules.min_bid, self.rules.max_bid],
            "bids": dict(round_state.bids) if round_state else {},
            "scores": {p.seat: p.score for p in state.players},
            "tricks_won": {p.seat: p.tricks_won for p in state.players},
            "hand_sizes": {p.seat: len(p.hand) for p in state.players},
            "current_trick": _trick_to_dict(trick) if trick else None,
            "trick_index": len(round_state.tricks) if round_state else 0,
            "trick_history": [_trick_to_dict(t) for t in round_state.tricks] if round_state else [],
        }
        if state.phase == Phase.PLAYING and state.turn == seat and trick is not None:
            obs["legal_move_indices"] = legal_moves(player.hand, trick.led_suit)
        return obs


def _trick_to_dict(trick: Trick) -> Dict[str, Any]:
    return {
        "leader": trick.leader,
        "plays": [{"seat": seat, "card": card_to_dict(card)} for seat, card in trick.plays],
        "led_suit": trick.led_suit.value if trick.led_suit else None,
        "winner": trick.winner,
    }

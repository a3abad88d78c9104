# arcade_arena/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, Iterable, List, Optional

from .state import MatchState

# One row per (round, seat) of a Call Break match.
FIELDNAMES = [
    "game_id",
    "round_number",
    "first_bidder",
    "seat",
    "player_name",
    "bid",
    "tricks_won",
    "round_delta",
    "total_score",
]


def build_round_score_rows(
    match: MatchState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Flatten a match's round history into CSV rows.

    Only finished rounds are in ``match.history``, so a match abandoned
    mid-round still exports the rounds it completed. ``total_score`` is
    replayed from the deltas; the last row for a seat equals its final score.
    """
    totals = {p.seat: 0.0 for p in match.players}
    rows: List[Dict[str, Any]] = []
    for record in match.history:
        for p in match.players:
            totals[p.seat] = round(totals[p.seat] + record.deltas[p.seat], 1)
            rows.append(
                {
                    "game_id": game_id,
                    "round_number": record.round_number,
                    "first_bidder": record.first_bidder,
                    "seat": p.seat,
                    "player_name": p.name,
                    "bid": record.bids.get(p.seat, 0),
                    "tricks_won": record.tricks_won.get(p.seat, 0),
                    "round_delta": record.deltas[p.seat],
                    "total_score": totals[p.seat],
                }
            )
    return rows


def write_rows_csv(rows: Iterable[Dict[str, Any]], path) -> int:
    """Write score rows (keys from FIELDNAMES) to `path`; returns the row count."""
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            count += 1
    return count


def write_round_scores_csv(match: MatchState, path, game_id: Optional[str] = None) -> int:
    return write_rows_csv(build_round_score_rows(match, game_id=game_id), path)

# tests/test_game_log.py
import csv

import pytest

from arcade_arena.agents import HeuristicCallBreakAgent
from arcade_arena.engine import CallBreakEngine
from arcade_arena.game_log import FIELDNAMES, build_round_score_rows, write_round_scores_csv


def _finished_match():
    engine = CallBreakEngine(
        agents=[HeuristicCallBreakAgent() for _ in range(4)],
        player_names=["N", "E", "S", "W"],
        rng_seed=77,
    )
    return engine.play_match()


def test_build_round_score_rows_basic():
    match = _finished_match()
    rows = build_round_score_rows(match, game_id="g1")

    assert len(rows) == 5 * 4
    for row in rows:
        assert set(row) == set(FIELDNAMES)
        assert row["game_id"] == "g1"

    # Last row per seat carries the final total.
    last = {row["seat"]: row for row in rows}
    for p in match.players:
        assert last[p.seat]["total_score"] == pytest.approx(p.score)
        assert last[p.seat]["player_name"] == p.name

    first_round = [r for r in rows if r["round_number"] == 1]
    assert sum(r["tricks_won"] for r in first_round) == 13


def test_unfinished_match_exports_nothing():
    engine = CallBreakEngine(agents=[HeuristicCallBreakAgent() for _ in range(4)], rng_seed=1)
    engine.deal()
    assert build_round_score_rows(engine.state) == []


def test_write_round_scores_csv(tmp_path):
    match = _finished_match()
    out = tmp_path / "scores.csv"
    write_round_scores_csv(match, out, game_id="g2")

    with open(out, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == FIELDNAMES
        rows = list(reader)

    assert len(rows) == 20
    assert {r["round_number"] for r in rows} == {"1", "2", "3", "4", "5"}
    assert all(r["game_id"] == "g2" for r in rows)

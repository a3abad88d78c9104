# tests/test_score_stats.py
import pandas as pd
import pytest

from arcade_arena.game_log import FIELDNAMES
from arcade_arena.score_stats import bid_accuracy, load_scores, plot_round_means, round_stats


def _frame():
    rows = [
        # game, round, first, seat, name, bid, won, delta, total
        ("g1", 1, 0, 0, "A", 3, 4, 3.1, 3.1),
        ("g1", 1, 0, 1, "B", 4, 2, -4.0, -4.0),
        ("g1", 2, 1, 0, "A", 2, 2, 2.0, 5.1),
        ("g1", 2, 1, 1, "B", 3, 3, 3.0, -1.0),
        ("g2", 1, 0, 0, "A", 3, 3, 3.0, 3.0),
        ("g2", 1, 0, 1, "B", 2, 1, -2.0, -2.0),
    ]
    return pd.DataFrame(rows, columns=FIELDNAMES)


def test_round_stats_mean_and_ci():
    stats = round_stats(_frame())

    a1 = stats[(stats["player_name"] == "A") & (stats["round_number"] == 1)].iloc[0]
    assert a1["mean"] == pytest.approx(3.05)
    assert a1["count"] == 2
    assert a1["ci95"] > 0

    # A single game has no spread.
    a2 = stats[(stats["player_name"] == "A") & (stats["round_number"] == 2)].iloc[0]
    assert a2["std"] == 0.0
    assert a2["ci95"] == 0.0


def test_bid_accuracy():
    summary = bid_accuracy(_frame()).set_index("player_name")

    assert summary.loc["A", "rounds"] == 3
    assert summary.loc["A", "made_rate"] == pytest.approx(1.0)
    assert summary.loc["B", "made_rate"] == pytest.approx(1 / 3)
    assert summary.loc["B", "mean_miss"] == pytest.approx(-1.0)


def test_load_scores_checks_columns(tmp_path):
    good = tmp_path / "good.csv"
    _frame().to_csv(good, index=False)
    assert len(load_scores(good)) == 6

    bad = tmp_path / "bad.csv"
    _frame().drop(columns=["bid"]).to_csv(bad, index=False)
    with pytest.raises(ValueError):
        load_scores(bad)


def test_plot_round_means_writes_png(tmp_path):
    out = plot_round_means(round_stats(_frame()), tmp_path / "plots" / "means.png")
    assert out.exists()
    assert out.stat().st_size > 0

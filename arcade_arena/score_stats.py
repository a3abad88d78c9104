# arcade_arena/score_stats.py
from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .game_log import FIELDNAMES


def load_scores(csv_path) -> pd.DataFrame:
    """Load a match CSV written by `game_log.write_round_scores_csv`."""
    df = pd.read_csv(csv_path)
    missing = [c for c in FIELDNAMES if c not in df.columns]
    if missing:
        raise ValueError(f"{csv_path}: missing columns {missing}")
    return df


def round_stats(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per (player, round) mean cumulative score across games with a 95% CI.

    Columns: player_name, round_number, mean, std, count, se, ci95.
    """
    stats = (
        df.groupby(["player_name", "round_number"])["total_score"]
          .agg(["mean", "std", "count"])
          .reset_index()
    )
    # A single game has no spread.
    stats["std"] = stats["std"].fillna(0.0)
    stats["se"] = stats["std"] / np.sqrt(stats["count"])
    stats["ci95"] = 1.96 * stats["se"]
    return stats


def bid_accuracy(df: pd.DataFrame) -> pd.DataFrame:
    """
    How well each player's bids matched tricks won.

    miss = tricks_won - bid (negative = set, positive = overtricks).
    """
    df = df.copy()
    df["miss"] = df["tricks_won"] - df["bid"]
    df["made"] = df["miss"] >= 0
    summary = (
        df.groupby("player_name")
          .agg(
              rounds=("miss", "size"),
              made_rate=("made", "mean"),
              mean_miss=("miss", "mean"),
              mean_delta=("round_delta", "mean"),
          )
          .reset_index()
    )
    return summary


def plot_round_means(stats: pd.DataFrame, out_path) -> Path:
    """Write a per-round mean total score plot (with 95% CI bars) to `out_path`."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    out_path = Path(out_path)
    fig, ax = plt.subplots(figsize=(10, 6))
    for player in sorted(stats["player_name"].unique()):
        sub = stats[stats["player_name"] == player].sort_values("round_number")
        ax.errorbar(
            sub["round_number"],
            sub["mean"],
            yerr=sub["ci95"],
            marker="o",
            capsize=3,
            label=player,
        )
    ax.set_xlabel("Round")
    ax.set_ylabel("Mean total score across games")
    ax.set_title("Per-round mean total score with 95% CI")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path)
    plt.close(fig)
    return out_path

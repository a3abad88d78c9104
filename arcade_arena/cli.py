# arcade_arena/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

from .advisor import StrategyAdvisor
from .agents import AimingCarromAgent, CallBreakAgent, CarromAgent, HeuristicCallBreakAgent, RandomCallBreakAgent
from .carrom import CarromBoard, Side
from .config import load_settings
from .engine import CallBreakEngine
from .game_log import build_round_score_rows, write_rows_csv
from .paths import results_path
from .score_stats import bid_accuracy, load_scores, plot_round_means, round_stats

AGENT_KINDS = ("heuristic", "random")
DEFAULT_MAX_TICKS_PER_SHOT = 5000


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate Call Break and Carrom bot games, analyse results, or ask for a tip."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: INFO.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    cb = sub.add_parser("callbreak", help="Play bot-only Call Break matches and log per-round scores.")
    cb.add_argument(
        "--games",
        type=int,
        default=1,
        help="Number of full matches to play (default: 1).",
    )
    cb.add_argument(
        "--agents",
        nargs=4,
        choices=AGENT_KINDS,
        default=["heuristic"] * 4,
        help="Agent kind for each of the 4 seats (default: heuristic x4).",
    )
    cb.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base random seed for dealing and random agents.",
    )
    cb.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Output CSV path; relative paths land in arcade_arena/results/.",
    )
    cb.add_argument(
        "--parallel-games",
        type=int,
        default=4,
        help="Max number of matches to simulate concurrently (default: 4).",
    )

    cr = sub.add_parser("carrom", help="Play a bot-vs-bot Carrom board.")
    cr.add_argument(
        "--max-shots",
        type=int,
        default=60,
        help="Stop after this many shots if the board is not cleared (default: 60).",
    )
    cr.add_argument(
        "--max-ticks-per-shot",
        type=int,
        default=DEFAULT_MAX_TICKS_PER_SHOT,
        help="Safety cap on physics steps per shot.",
    )

    sm = sub.add_parser("summarize", help="Summarize a Call Break score CSV.")
    sm.add_argument("csv", type=str, help="CSV written by the callbreak command.")
    sm.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Optional PNG path for a per-round mean score plot.",
    )

    tp = sub.add_parser("tip", help="Ask the strategy advisor for a tip.")
    tp.add_argument("--game", type=str, default="Call Break", help="Game name.")
    tp.add_argument("--context", type=str, required=True, help="Plain-text description of the situation.")
    tp.add_argument(
        "--model",
        type=str,
        default=None,
        help="'<provider>:<model_name>'; defaults to ARCADE_ADVISOR_MODEL or gemini.",
    )

    return parser.parse_args(argv)


# --------------------------------------------------------------------------- #
# Call Break                                                                  #
# --------------------------------------------------------------------------- #


def _make_agent(kind: str, seed: int) -> CallBreakAgent:
    if kind == "random":
        return RandomCallBreakAgent(rng=random.Random(seed))
    return HeuristicCallBreakAgent()


def _play_single_match(game_index: int, *, args: argparse.Namespace) -> List[Dict[str, Any]]:
    """Run one match synchronously (meant for thread execution)."""
    game_id = f"match-{game_index}"
    settings = load_settings()
    agents = [
        _make_agent(kind, args.seed + game_index * 1000 + seat)
        for seat, kind in enumerate(args.agents)
    ]
    names = [f"Seat {seat} ({kind})" for seat, kind in enumerate(args.agents)]
    engine = CallBreakEngine(
        agents=agents,
        player_names=names,
        rng_seed=args.seed + game_index,
        rules=settings.call_break,
        game_label=game_id,
    )
    match = engine.play_match()
    return build_round_score_rows(match, game_id=game_id)


async def _run_callbreak(args: argparse.Namespace) -> None:
    csv_path = results_path(args.csv, default_stem="callbreak", suffix=".csv")
    parallel = max(1, min(args.parallel_games, args.games))
    logging.info("Agents: %s", ", ".join(args.agents))
    logging.info("Matches to play: %d (up to %d at once)", args.games, parallel)

    all_rows: List[Dict[str, Any]] = []
    for batch_start in range(0, args.games, parallel):
        batch = range(batch_start, min(batch_start + parallel, args.games))
        results = await asyncio.gather(
            *(asyncio.to_thread(_play_single_match, i, args=args) for i in batch)
        )
        for rows in results:
            all_rows.extend(rows)

    written = write_rows_csv(all_rows, csv_path)
    logging.info("Finished %d matches; wrote %d rows to %s", args.games, written, csv_path)


# --------------------------------------------------------------------------- #
# Carrom                                                                      #
# --------------------------------------------------------------------------- #


def simulate_carrom(
    board: CarromBoard,
    agents: Dict[Side, CarromAgent],
    *,
    max_shots: int,
    max_ticks_per_shot: int = DEFAULT_MAX_TICKS_PER_SHOT,
) -> CarromBoard:
    """Alternate bot shots until the board is cleared or `max_shots` is reached."""
    for _ in range(max_shots):
        if board.cleared:
            break
        shot = agents[board.side_to_move].choose_shot(board.snapshot())
        board.reposition_striker(shot.striker_x)
        board.strike(shot.angle, shot.power)
        ticks = 0
        while board.moving:
            if ticks >= max_ticks_per_shot:
                raise RuntimeError(f"Shot {board.shots_taken} did not settle in {max_ticks_per_shot} ticks")
            board.tick()
            ticks += 1
    return board


def _run_carrom(args: argparse.Namespace) -> None:
    settings = load_settings()
    board = CarromBoard.new_game(settings.carrom)
    agent = AimingCarromAgent()
    simulate_carrom(
        board,
        {Side.PLAYER: agent, Side.OPPONENT: agent},
        max_shots=args.max_shots,
        max_ticks_per_shot=args.max_ticks_per_shot,
    )
    logging.info(
        "Carrom finished after %d shots: player %d, opponent %d, %d coins left",
        board.shots_taken,
        board.scores[Side.PLAYER],
        board.scores[Side.OPPONENT],
        board.coins_remaining,
    )
    print(", ".join(f"{side.value}={points}" for side, points in board.scores.items()))


# --------------------------------------------------------------------------- #
# Analysis and advice                                                         #
# --------------------------------------------------------------------------- #


def _run_summarize(args: argparse.Namespace) -> None:
    df = load_scores(args.csv)
    stats = round_stats(df)
    print(stats.to_string(index=False))
    print()
    print(bid_accuracy(df).to_string(index=False))
    if args.plot:
        out = plot_round_means(stats, results_path(args.plot, default_stem="round_means", suffix=".png"))
        logging.info("Wrote plot to %s", out)


def _run_tip(args: argparse.Namespace) -> None:
    settings = load_settings()
    model: Optional[str] = args.model or settings.advisor_model
    with StrategyAdvisor(model, timeout_seconds=settings.advisor_timeout_seconds) as advisor:
        print(advisor.tip(args.game, args.context))


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "callbreak":
        asyncio.run(_run_callbreak(args))
    elif args.command == "carrom":
        _run_carrom(args)
    elif args.command == "summarize":
        _run_summarize(args)
    elif args.command == "tip":
        _run_tip(args)


if __name__ == "__main__":
    main()

'''
python3 -m arcade_arena.cli callbreak --games 50 --agents heuristic heuristic random random --seed 1 --csv heuristic_vs_random.csv
python3 -m arcade_arena.cli summarize arcade_arena/results/heuristic_vs_random.csv --plot heuristic_vs_random.png
python3 -m arcade_arena.cli carrom --max-shots 80
python3 -m arcade_arena.cli tip --context "I bid 4 and have won 1 trick with 6 cards left"
'''

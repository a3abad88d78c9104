from .base import CallBreakAgent, CarromAgent, Shot
from .carrom_agent import AimingCarromAgent
from .heuristic_agent import HeuristicCallBreakAgent, estimate_bid
from .random_agent import RandomCallBreakAgent

__all__ = [
    "CallBreakAgent",
    "CarromAgent",
    "Shot",
    "AimingCarromAgent",
    "HeuristicCallBreakAgent",
    "RandomCallBreakAgent",
    "estimate_bid",
]

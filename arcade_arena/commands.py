# arcade_arena/commands.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .cards import Card


@dataclass(frozen=True)
class Deal:
    """Start the match: shuffle and deal round 1."""


@dataclass(frozen=True)
class Bid:
    seat: int
    value: int


@dataclass(frozen=True)
class PlayCard:
    seat: int
    card: Card


@dataclass(frozen=True)
class NextRound:
    """Leave the round summary and deal the next round."""


@dataclass(frozen=True)
class Tick:
    """
    Advance the board.

    With no `dt`, run exactly one fixed physics step. With `dt` seconds of
    wall time, run as many fixed steps as it covers (see
    ``CarromBoard.advance``).
    """
    dt: Optional[float] = None


@dataclass(frozen=True)
class Strike:
    angle: float
    power: float


@dataclass(frozen=True)
class RepositionStriker:
    x: float


TrickCommand = Union[Deal, Bid, PlayCard, NextRound]
BoardCommand = Union[Tick, Strike, RepositionStriker]


@dataclass
class CommandResult:
    """Outcome of applying one command: accepted or rejected, plus the state view."""
    accepted: bool
    snapshot: Dict[str, Any]
    error: Optional[str] = None
    code: Optional[str] = None
    events: list[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def ok(
        cls, snapshot: Dict[str, Any], events: Optional[list[Dict[str, Any]]] = None
    ) -> "CommandResult":
        return cls(accepted=True, snapshot=snapshot, events=list(events or []))

    @classmethod
    def rejected(
        cls, snapshot: Dict[str, Any], error: str, code: str
    ) -> "CommandResult":
        return cls(accepted=False, snapshot=snapshot, error=error, code=code)

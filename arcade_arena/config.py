# arcade_arena/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "ARCADE_"


@dataclass(frozen=True)
class CallBreakRules:
    num_players: int = 4
    cards_per_player: int = 13
    num_rounds: int = 5
    min_bid: int = 1
    max_bid: int = 8
    overtrick_value: float = 0.1
    prize_multiplier: int = 3

    def __post_init__(self) -> None:
        if self.num_players * self.cards_per_player != 52:
            raise ValueError("Call Break must deal the full 52-card deck")
        if self.num_rounds < 1:
            raise ValueError("num_rounds must be at least 1")
        if not 1 <= self.min_bid <= self.max_bid <= self.cards_per_player:
            raise ValueError("Bid range must satisfy 1 <= min_bid <= max_bid <= hand size")


@dataclass(frozen=True)
class CarromPhysics:
    """
    Physical constants for the Carrom board.

    Distances are board units (the board is ``board_size`` units square),
    velocities are units per tick. ``friction`` and ``wall_restitution`` apply
    to every piece alike.
    """

    board_size: float = 400.0
    pocket_radius: float = 25.0
    coin_radius: float = 12.0
    coin_mass: float = 1.0
    striker_radius: float = 18.0
    striker_mass: float = 1.5
    friction: float = 0.985
    wall_restitution: float = 0.8
    min_velocity: float = 0.1
    max_power: float = 15.0
    max_speed: float = 30.0
    baseline_top: float = 325.0
    baseline_bottom: float = 355.0
    striker_min_x: float = 80.0
    striker_max_x: float = 320.0
    step_seconds: float = 1.0 / 60.0
    max_substeps: int = 8

    def __post_init__(self) -> None:
        if not 0.0 < self.friction <= 1.0:
            raise ValueError("friction must be in (0, 1]")
        if not 0.0 <= self.wall_restitution <= 1.0:
            raise ValueError("wall_restitution must be in [0, 1]")
        if self.striker_min_x > self.striker_max_x:
            raise ValueError("striker_min_x must not exceed striker_max_x")
        if self.max_power <= 0 or self.max_speed < self.max_power:
            raise ValueError("max_speed must be >= max_power > 0")
        if self.step_seconds <= 0 or self.max_substeps < 1:
            raise ValueError("step_seconds must be positive and max_substeps >= 1")

    @property
    def striker_y(self) -> float:
        # Centre line between the two baseline rails.
        return (self.baseline_top + self.baseline_bottom) / 2.0


@dataclass(frozen=True)
class Settings:
    call_break: CallBreakRules = field(default_factory=CallBreakRules)
    carrom: CarromPhysics = field(default_factory=CarromPhysics)
    advisor_model: str = "gemini:gemini-2.0-flash"
    advisor_timeout_seconds: float = 12.0


def _coerce(raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def _overrides_for(obj: Any, prefix: str, env: Dict[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for f in fields(obj):
        key = f"{prefix}{f.name.upper()}"
        if key in env:
            try:
                overrides[f.name] = _coerce(env[key], getattr(obj, f.name))
            except ValueError as exc:
                raise ValueError(f"Invalid value for {key}: {env[key]!r}") from exc
    return overrides


def load_settings(env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from defaults plus ``ARCADE_*`` environment overrides.

    A ``.env`` file is loaded first when ``env`` is not given. Examples:
    ``ARCADE_CARROM_FRICTION=0.99``, ``ARCADE_CALL_BREAK_NUM_ROUNDS=3``,
    ``ARCADE_ADVISOR_MODEL=openai:gpt-4o-mini``.
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    base = Settings()
    call_break = replace(
        base.call_break,
        **_overrides_for(base.call_break, f"{ENV_PREFIX}CALL_BREAK_", env),
    )
    carrom = replace(
        base.carrom,
        **_overrides_for(base.carrom, f"{ENV_PREFIX}CARROM_", env),
    )
    top_level = {
        name: _coerce(env[f"{ENV_PREFIX}{name.upper()}"], getattr(base, name))
        for name in ("advisor_model", "advisor_timeout_seconds")
        if f"{ENV_PREFIX}{name.upper()}" in env
    }
    settings = replace(base, call_break=call_break, carrom=carrom, **top_level)
    logger.debug("Loaded settings: %s", settings)
    return settings

# arcade_arena/carrom.py
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .commands import BoardCommand, CommandResult, RepositionStriker, Strike, Tick
from .config import CarromPhysics
from .errors import InvalidAction

logger = logging.getLogger(__name__)


class PieceKind(enum.Enum):
    STRIKER = "striker"
    LIGHT = "light"
    DARK = "dark"
    QUEEN = "queen"


class Side(enum.Enum):
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Side":
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


POCKET_POINTS: Dict[PieceKind, int] = {
    PieceKind.LIGHT: 20,
    PieceKind.DARK: 10,
    PieceKind.QUEEN: 50,
}

STRIKER_ID = "striker"

# Position tolerance for overlap tests.
_EPS = 1e-9
# Extra position-only passes per tick to settle chains of touching pieces.
_RELAX_PASSES = 8


@dataclass(frozen=True)
class Piece:
    """Read-only view of one piece; the board itself stores pieces in arrays."""
    id: str
    kind: PieceKind
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    radius: float
    mass: float
    pocketed: bool


@dataclass(frozen=True)
class PocketEvent:
    piece_id: str
    kind: PieceKind
    side: Side
    points: int
    pocket: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "pocketed",
            "piece_id": self.piece_id,
            "kind": self.kind.value,
            "side": self.side.value,
            "points": self.points,
            "pocket": self.pocket,
        }


class CarromBoard:
    """
    Physics engine for a single Carrom board.

    Pieces live in parallel numpy arrays indexed by piece number:
    ``positions`` and ``velocities`` are ``(N, 2)`` float arrays, ``radii``,
    ``masses`` and ``pocketed`` are length ``N``. Velocities are in board
    units per tick; the board has no clock of its own and only moves when
    :meth:`tick` (or :meth:`advance`) is called.
    """

    def __init__(self, physics: Optional[CarromPhysics] = None) -> None:
        self.physics = physics or CarromPhysics()
        size = self.physics.board_size

        self.ids: List[str] = []
        self.kinds: List[PieceKind] = []
        self.positions = np.zeros((0, 2), dtype=float)
        self.velocities = np.zeros((0, 2), dtype=float)
        self.radii = np.zeros(0, dtype=float)
        self.masses = np.zeros(0, dtype=float)
        self.pocketed = np.zeros(0, dtype=bool)
        self.pockets = np.array(
            [[0.0, 0.0], [size, 0.0], [0.0, size], [size, size]], dtype=float
        )

        self.scores: Dict[Side, int] = {Side.PLAYER: 0, Side.OPPONENT: 0}
        self.side_to_move = Side.PLAYER
        self.moving = False
        self.striker_x = size / 2.0
        self.queen_celebration = False
        self.shots_taken = 0
        self.last_events: List[PocketEvent] = []
        self._shot_events: List[PocketEvent] = []
        self._shooter: Optional[Side] = None
        self._accumulator = 0.0

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @classmethod
    def new_game(cls, physics: Optional[CarromPhysics] = None) -> "CarromBoard":
        """Standard layout: queen in the centre, two rings of coins, striker on the baseline."""
        board = cls(physics)
        cfg = board.physics
        centre = cfg.board_size / 2.0
        r = cfg.coin_radius

        board.add_piece(PieceKind.QUEEN, (centre, centre), piece_id="queen")

        step = 2 * math.pi / 6
        inner = r * 2.1
        for i in range(6):
            kind = PieceKind.LIGHT if i % 2 == 0 else PieceKind.DARK
            board.add_piece(
                kind,
                (centre + math.cos(i * step) * inner, centre + math.sin(i * step) * inner),
                piece_id=f"inner-{i}",
            )

        outer = r * 4.2
        for i in range(12):
            kind = PieceKind.DARK if i % 2 == 0 else PieceKind.LIGHT
            angle = i * 2 * math.pi / 12
            board.add_piece(
                kind,
                (centre + math.cos(angle) * outer, centre + math.sin(angle) * outer),
                piece_id=f"outer-{i}",
            )

        board.add_piece(PieceKind.STRIKER, (centre, cfg.striker_y), piece_id=STRIKER_ID)
        return board

    def add_piece(
        self,
        kind: PieceKind,
        position: Tuple[float, float],
        velocity: Tuple[float, float] = (0.0, 0.0),
        piece_id: Optional[str] = None,
        radius: Optional[float] = None,
        mass: Optional[float] = None,
    ) -> int:
        """Append a piece and return its index."""
        cfg = self.physics
        if kind == PieceKind.STRIKER:
            if STRIKER_ID in self.ids:
                raise ValueError("Board already has a striker")
            piece_id = STRIKER_ID
            default_radius, default_mass = cfg.striker_radius, cfg.striker_mass
        else:
            default_radius, default_mass = cfg.coin_radius, cfg.coin_mass
        piece_id = piece_id or f"{kind.value}-{len(self.ids)}"
        if piece_id in self.ids:
            raise ValueError(f"Duplicate piece id {piece_id!r}")

        self.ids.append(piece_id)
        self.kinds.append(kind)
        self.positions = np.vstack([self.positions, np.asarray(position, dtype=float)])
        self.velocities = np.vstack([self.velocities, np.asarray(velocity, dtype=float)])
        self.radii = np.append(self.radii, radius if radius is not None else default_radius)
        self.masses = np.append(self.masses, mass if mass is not None else default_mass)
        self.pocketed = np.append(self.pocketed, False)
        return len(self.ids) - 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def striker_index(self) -> int:
        try:
            return self.ids.index(STRIKER_ID)
        except ValueError:
            raise RuntimeError("Board has no striker") from None

    def index_of(self, piece_id: str) -> int:
        return self.ids.index(piece_id)

    def piece(self, piece_id: str) -> Piece:
        i = self.index_of(piece_id)
        return Piece(
            id=self.ids[i],
            kind=self.kinds[i],
            position=(float(self.positions[i, 0]), float(self.positions[i, 1])),
            velocity=(float(self.velocities[i, 0]), float(self.velocities[i, 1])),
            radius=float(self.radii[i]),
            mass=float(self.masses[i]),
            pocketed=bool(self.pocketed[i]),
        )

    @property
    def is_idle(self) -> bool:
        return not self.moving

    @property
    def coins_remaining(self) -> int:
        return sum(
            1 for i, kind in enumerate(self.kinds)
            if kind != PieceKind.STRIKER and not self.pocketed[i]
        )

    @property
    def cleared(self) -> bool:
        return self.coins_remaining == 0

    def winning_sides(self) -> List[Side]:
        best = max(self.scores.values())
        return [side for side in Side if self.scores[side] == best]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def apply(self, command: BoardCommand) -> CommandResult:
        """Apply one command; return an accepted or rejected result."""
        try:
            if isinstance(command, Tick):
                events = self.tick() if command.dt is None else self.advance(command.dt)
            elif isinstance(command, Strike):
                self.strike(command.angle, command.power)
                events = []
            elif isinstance(command, RepositionStriker):
                self.reposition_striker(command.x)
                events = []
            else:
                raise InvalidAction(f"Unknown command {command!r}", code="bad_input")
        except InvalidAction as exc:
            logger.debug("Rejected %r: %s", command, exc)
            return CommandResult.rejected(self.snapshot(), str(exc), exc.code)
        return CommandResult.ok(self.snapshot(), [e.to_dict() for e in events])

    def strike(self, angle: float, power: float) -> None:
        """Launch the striker at `angle` radians with `power` clamped to [0, max_power]."""
        if self.moving:
            raise InvalidAction("Cannot strike while pieces are moving", code="board_moving")
        if self.cleared:
            raise InvalidAction("Every coin has been pocketed", code="wrong_phase")
        if not (math.isfinite(angle) and math.isfinite(power)):
            raise InvalidAction("Angle and power must be finite numbers", code="bad_input")

        power = min(max(power, 0.0), self.physics.max_power)
        s = self.striker_index
        self.velocities[s] = (math.cos(angle) * power, math.sin(angle) * power)
        self.moving = True
        self.queen_celebration = False
        self._shot_events = []
        self._shooter = self.side_to_move
        self.shots_taken += 1
        logger.debug(
            "%s strikes from x=%.1f angle=%.3f power=%.2f",
            self.side_to_move.value,
            self.striker_x,
            angle,
            power,
        )

    def reposition_striker(self, x: float) -> float:
        """
        Slide the striker along the baseline; returns the x actually used.

        `x` is clamped to the baseline segment, then moved to the nearest spot
        where the striker does not overlap a coin resting on the baseline.
        """
        if self.moving:
            raise InvalidAction("Cannot move the striker while pieces are moving", code="board_moving")
        if not math.isfinite(x):
            raise InvalidAction("Striker position must be a finite number", code="bad_input")

        self._place_striker(x)
        return self.striker_x

    def _place_striker(self, x: float) -> None:
        cfg = self.physics
        self.striker_x = self._free_striker_x(min(max(x, cfg.striker_min_x), cfg.striker_max_x))
        s = self.striker_index
        self.pocketed[s] = False
        self.velocities[s] = 0.0
        self.positions[s] = (self.striker_x, cfg.striker_y)

    def _free_striker_x(self, x: float) -> float:
        cfg = self.physics
        s = self.striker_index
        # Open intervals of baseline x that would overlap each live coin.
        blocked: List[Tuple[float, float]] = []
        for i in np.flatnonzero(~self.pocketed):
            if i == s:
                continue
            reach = self.radii[s] + self.radii[i]
            dy = abs(self.positions[i, 1] - cfg.striker_y)
            if dy < reach:
                half = math.sqrt(reach * reach - dy * dy)
                cx = float(self.positions[i, 0])
                blocked.append((cx - half, cx + half))

        def is_free(cand: float) -> bool:
            return all(not (lo + _EPS < cand < hi - _EPS) for lo, hi in blocked)

        candidates = [x] + [edge for interval in blocked for edge in interval]
        free = [
            c for c in candidates
            if cfg.striker_min_x <= c <= cfg.striker_max_x and is_free(c)
        ]
        if not free:
            logger.warning("No free baseline spot for the striker; keeping x=%.1f", x)
            return x
        return min(free, key=lambda c: (abs(c - x), c))

    def advance(self, elapsed_seconds: float) -> List[PocketEvent]:
        """
        Fixed-timestep driver for a variable-rate external clock.

        Runs as many whole ``step_seconds`` ticks as `elapsed_seconds` (plus
        any carried remainder) covers, at most ``max_substeps`` per call.
        """
        if not math.isfinite(elapsed_seconds) or elapsed_seconds < 0:
            raise InvalidAction("elapsed time must be a non-negative number", code="bad_input")

        cfg = self.physics
        self._accumulator += elapsed_seconds
        events: List[PocketEvent] = []
        steps = 0
        while self._accumulator >= cfg.step_seconds and steps < cfg.max_substeps:
            events.extend(self.tick())
            self._accumulator -= cfg.step_seconds
            steps += 1
        if steps == cfg.max_substeps:
            # Drop backlog beyond one step rather than spiralling.
            self._accumulator = min(self._accumulator, cfg.step_seconds)
        return events

    def tick(self) -> List[PocketEvent]:
        """Advance the whole board by one fixed step."""
        events: List[PocketEvent] = []
        active = ~self.pocketed

        self._integrate(active)
        self._bounce_off_walls(active)
        events.extend(self._capture_pocketed())
        self.resolve_collisions()
        self._clamp_to_board()

        if self.moving and not self.velocities.any():
            self._end_shot()
        return events

    # ------------------------------------------------------------------
    # Physics steps
    # ------------------------------------------------------------------

    def _integrate(self, active: np.ndarray) -> None:
        cfg = self.physics
        bad = ~np.isfinite(self.velocities).all(axis=1)
        if bad.any():
            logger.warning("Zeroing non-finite velocity on %s", [self.ids[i] for i in np.flatnonzero(bad)])
            self.velocities[bad] = 0.0

        self.positions[active] += self.velocities[active]
        self.velocities[active] *= cfg.friction

        speeds = np.hypot(self.velocities[:, 0], self.velocities[:, 1])
        self.velocities[speeds < cfg.min_velocity] = 0.0

        fast = speeds > cfg.max_speed
        if fast.any():
            self.velocities[fast] *= (cfg.max_speed / speeds[fast])[:, None]

    def _bounce_off_walls(self, active: np.ndarray) -> None:
        cfg = self.physics
        size = cfg.board_size
        restitution = cfg.wall_restitution
        for axis in (0, 1):
            low = active & (self.positions[:, axis] < self.radii)
            high = active & (self.positions[:, axis] > size - self.radii)
            self.velocities[low, axis] = np.abs(self.velocities[low, axis]) * restitution
            self.positions[low, axis] = self.radii[low]
            self.velocities[high, axis] = -np.abs(self.velocities[high, axis]) * restitution
            self.positions[high, axis] = size - self.radii[high]

    def _capture_pocketed(self) -> List[PocketEvent]:
        events: List[PocketEvent] = []
        radius = self.physics.pocket_radius
        for i in np.flatnonzero(~self.pocketed):
            offsets = self.pockets - self.positions[i]
            distances = np.hypot(offsets[:, 0], offsets[:, 1])
            hits = np.flatnonzero(distances < radius)
            if hits.size:
                events.append(self._pocket(int(i), int(hits[0])))
        return events

    def _pocket(self, i: int, pocket: int) -> PocketEvent:
        self.pocketed[i] = True
        self.velocities[i] = 0.0
        kind = self.kinds[i]
        side = self._shooter or self.side_to_move
        points = POCKET_POINTS.get(kind, 0)
        if points:
            self.scores[side] += points
        if kind == PieceKind.QUEEN:
            self.queen_celebration = True

        event = PocketEvent(piece_id=self.ids[i], kind=kind, side=side, points=points, pocket=pocket)
        self._shot_events.append(event)
        logger.info("%s pocketed %s for %d points", side.value, self.ids[i], points)
        return event

    def resolve_collisions(self) -> int:
        """
        Separate and bounce every overlapping pair of live pieces, once per pair.

        Overlap is removed along the line of centres, half from each piece;
        when a rail stops one piece, its partner takes the rest. Velocities
        exchange momentum along that line with the 1D elastic formula;
        tangential components are unchanged. Pairs already moving apart keep
        their velocities. Pushing one pair apart can press a piece into a
        third, so a few position-only passes follow. Returns the number of
        contacts in the first pass.
        """
        contacts = 0
        live = np.flatnonzero(~self.pocketed)
        for i, j, normal in self._separate_overlaps(live):
            contacts += 1
            m1, m2 = self.masses[i], self.masses[j]
            v1n = float(self.velocities[i] @ normal)
            v2n = float(self.velocities[j] @ normal)
            if v1n - v2n <= 0:
                continue
            v1n_after = ((m1 - m2) * v1n + 2 * m2 * v2n) / (m1 + m2)
            v2n_after = ((m2 - m1) * v2n + 2 * m1 * v1n) / (m1 + m2)
            self.velocities[i] += (v1n_after - v1n) * normal
            self.velocities[j] += (v2n_after - v2n) * normal

        for _ in range(_RELAX_PASSES):
            if not self._separate_overlaps(live):
                break
        return contacts

    def _separate_overlaps(self, live: np.ndarray) -> List[Tuple[int, int, np.ndarray]]:
        """Push apart each overlapping pair in turn; returns the (i, j, normal) contacts."""
        pairs: List[Tuple[int, int, np.ndarray]] = []
        for a_pos, i in enumerate(live):
            for j in live[a_pos + 1:]:
                delta = self.positions[j] - self.positions[i]
                distance = math.hypot(delta[0], delta[1])
                overlap = self.radii[i] + self.radii[j] - distance
                if overlap <= _EPS:
                    continue
                normal = delta / distance if distance > 0 else np.array([1.0, 0.0])
                self._push_apart(int(i), int(j), normal, overlap)
                pairs.append((int(i), int(j), normal))
        return pairs

    def _push_apart(self, i: int, j: int, normal: np.ndarray, overlap: float) -> None:
        moved_i = self._shift(i, -normal * (overlap / 2.0))
        moved_j = self._shift(j, normal * (overlap - moved_i))
        if overlap - moved_i - moved_j > _EPS:
            self._shift(i, -normal * (overlap - moved_i - moved_j))

    def _shift(self, i: int, offset: np.ndarray) -> float:
        """Move piece `i` by `offset`, stopping at the rails; returns the distance covered along `offset`."""
        length = float(np.linalg.norm(offset))
        if length == 0.0:
            return 0.0
        size = self.physics.board_size
        r = self.radii[i]
        before = self.positions[i].copy()
        self.positions[i] = np.clip(before + offset, r, size - r)
        return float((self.positions[i] - before) @ offset) / length

    def _clamp_to_board(self) -> None:
        size = self.physics.board_size
        live = ~self.pocketed
        for axis in (0, 1):
            self.positions[live, axis] = np.clip(
                self.positions[live, axis], self.radii[live], size - self.radii[live]
            )

    def _end_shot(self) -> None:
        self.moving = False
        self._place_striker(self.striker_x)

        shooter = self._shooter or self.side_to_move
        scored = any(e.kind != PieceKind.STRIKER for e in self._shot_events)
        self.last_events = list(self._shot_events)
        self._shot_events = []
        self._shooter = None
        if not scored:
            self.side_to_move = shooter.other
        logger.info(
            "Shot %d by %s finished: %d pocketed; %s to move",
            self.shots_taken,
            shooter.value,
            len(self.last_events),
            self.side_to_move.value,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Render view: every piece plus scores, turn and board geometry."""
        cfg = self.physics
        return {
            "pieces": [
                {
                    "id": self.ids[i],
                    "kind": self.kinds[i].value,
                    "position": [float(self.positions[i, 0]), float(self.positions[i, 1])],
                    "velocity": [float(self.velocities[i, 0]), float(self.velocities[i, 1])],
                    "radius": float(self.radii[i]),
                    "mass": float(self.masses[i]),
                    "pocketed": bool(self.pocketed[i]),
                }
                for i in range(len(self.ids))
            ],
            "scores": {side.value: points for side, points in self.scores.items()},
            "side_to_move": self.side_to_move.value,
            "moving": self.moving,
            "striker_x": self.striker_x,
            "striker_y": cfg.striker_y,
            "striker_range": [cfg.striker_min_x, cfg.striker_max_x],
            "board_size": cfg.board_size,
            "pockets": self.pockets.tolist(),
            "pocket_radius": cfg.pocket_radius,
            "max_power": cfg.max_power,
            "friction": cfg.friction,
            "coins_remaining": self.coins_remaining,
            "cleared": self.cleared,
            "shots_taken": self.shots_taken,
            "queen_celebration": self.queen_celebration,
            "last_events": [e.to_dict() for e in self.last_events],
        }

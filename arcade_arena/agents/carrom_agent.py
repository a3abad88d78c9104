# arcade_arena/agents/carrom_agent.py
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple

from .base import CarromAgent, Shot

# Extra speed on top of the bare minimum so the coin still drops at the lip.
_POWER_MARGIN = 1.3
_MIN_POWER = 1.0


def _required_power(
    travel_to_contact: float,
    coin_travel: float,
    decay_per_unit: float,
    transfer: float,
) -> float:
    """
    Launch speed so the coin covers `coin_travel` after a head-on hit.

    With per-tick friction f, speed drops by roughly (1 - f) per unit of
    distance travelled, and a head-on elastic hit hands the coin `transfer`
    times the striker's speed at contact.
    """
    speed_at_contact = coin_travel * decay_per_unit / transfer
    return speed_at_contact + travel_to_contact * decay_per_unit


class AimingCarromAgent(CarromAgent):
    """
    Pure aiming policy over the public board snapshot.

    For every live coin and every pocket on the far side of it, find the
    baseline spot from which striker, coin and pocket line up, then take the
    candidate needing the least power (higher-value coins win ties). If no
    straight line is available, hit the nearest coin from directly below it.
    """

    def choose_shot(self, observation: Dict[str, Any]) -> Shot:
        pieces: List[Dict[str, Any]] = observation["pieces"]
        striker = next(p for p in pieces if p["kind"] == "striker")
        coins = [p for p in pieces if p["kind"] != "striker" and not p["pocketed"]]
        min_x, max_x = observation["striker_range"]
        striker_y = float(observation["striker_y"])
        max_power = float(observation["max_power"])
        decay = 1.0 - float(observation.get("friction", 0.985))
        striker_mass = float(striker["mass"])

        if not coins:
            return Shot(striker_x=float(observation["striker_x"]), angle=-math.pi / 2, power=0.0)

        best: Optional[Tuple[float, int, Shot]] = None
        for coin in coins:
            cx, cy = coin["position"]
            if cy >= striker_y:
                continue
            transfer = 2 * striker_mass / (striker_mass + float(coin["mass"]))
            contact = float(striker["radius"]) + float(coin["radius"])
            value = {"queen": 50, "light": 20, "dark": 10}.get(coin["kind"], 0)

            for px, py in observation["pockets"]:
                dx, dy = px - cx, py - cy
                length = math.hypot(dx, dy)
                if length == 0 or dy >= 0:
                    continue
                ux, uy = dx / length, dy / length
                # Walk back from the coin along the pocket line to the baseline.
                t = (striker_y - cy) / -uy
                sx = cx - ux * t
                if not min_x <= sx <= max_x:
                    continue
                gx, gy = cx - ux * contact, cy - uy * contact
                travel = math.hypot(gx - sx, gy - striker_y)
                power = max(
                    _MIN_POWER,
                    _POWER_MARGIN * _required_power(travel, length, decay, transfer),
                )
                if power > max_power:
                    continue
                shot = Shot(striker_x=sx, angle=math.atan2(gy - striker_y, gx - sx), power=power)
                key = (power, -value)
                if best is None or key < (best[0], best[1]):
                    best = (power, -value, shot)

        if best is not None:
            return best[2]

        nearest = min(coins, key=lambda c: abs(c["position"][1] - striker_y))
        sx = min(max(nearest["position"][0], min_x), max_x)
        angle = math.atan2(nearest["position"][1] - striker_y, nearest["position"][0] - sx)
        return Shot(striker_x=sx, angle=angle, power=max_power * 0.6)

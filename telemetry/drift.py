"""
Metrics Drift Model

Bounded random walk over the four IdP health gauges, applied once per
active tick.
"""

import random
from dataclasses import dataclass
from typing import Dict, Optional, Union

from schemas.health import IdpHealth


@dataclass(frozen=True)
class DriftRange:
    """Walk bounds for one gauge."""
    minimum: float
    maximum: float
    delta_low: float
    delta_high: float
    truncate: bool = True

    def step(self, value: float, rng: random.Random) -> Union[int, float]:
        moved = value + rng.uniform(self.delta_low, self.delta_high)
        clamped = max(float(self.minimum), min(float(self.maximum), moved))
        return int(clamped) if self.truncate else clamped


# db_pool is left as a float; the other three gauges are whole numbers
DRIFT_RANGES: Dict[str, DriftRange] = {
    "jetty_threads": DriftRange(10, 190, -5, 5),
    "heap_memory": DriftRange(200, 1900, -40, 60),
    "ldap_latency": DriftRange(2, 150, -10, 10),
    "db_pool": DriftRange(1, 45, -2, 2, truncate=False),
}


class MetricsDriftModel:
    """
    Advances gauges by a clamped random step.

    Names, units and maxima are carried through; status is re-derived
    from the new value.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        ranges: Optional[Dict[str, DriftRange]] = None,
    ):
        self._rng = rng or random.Random()
        self._ranges = ranges or DRIFT_RANGES

    def advance(self, health: IdpHealth) -> IdpHealth:
        values = [
            self._ranges[slot].step(getattr(health, slot).value, self._rng)
            for slot in IdpHealth.SLOTS
        ]
        return health.with_values(*values)

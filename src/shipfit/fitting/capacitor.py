"""
Capacitor Stability Simulator

Integrates EVE's capacitor recharge curve forward in fixed steps to decide
whether a constant drain settles at a stable charge level or empties the
capacitor:

    dC/dt = (capacity / tau) * 10 * (sqrt(C / capacity) - C / capacity) - drain

The step size, convergence threshold and time accumulation are fixed so
results are reproducible to the last digit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..core.logging import get_logger

logger = get_logger(__name__)

# Simulation step in seconds
SIM_STEP_SECONDS = 0.1

# Default simulated horizon in seconds
DEFAULT_MAX_SIM_SECONDS = 600.0

# Convergence is only tested after this much simulated time
MIN_SETTLE_SECONDS = 10.0

# Peak recharge occurs at 25% charge and equals PEAK_RECHARGE_FACTOR * capacity / tau
PEAK_RECHARGE_FACTOR = 2.5


@dataclass(frozen=True)
class CapSimResult:
    """
    Outcome of a capacitor simulation.

    stable_percent is set when stable, lasts_seconds when not.
    """

    stable: bool
    stable_percent: Optional[int] = None
    lasts_seconds: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "stable": self.stable,
            "stable_percent": self.stable_percent,
            "lasts_seconds": self.lasts_seconds,
        }


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def peak_recharge_rate(capacity: float, tau: float) -> float:
    """Peak recharge in GJ/s, reached at 25% capacitor."""
    if tau <= 0:
        return 0.0
    return PEAK_RECHARGE_FACTOR * capacity / tau


def simulate_capacitor(
    capacity: float,
    recharge_time_ms: float,
    drain_per_second: float,
    max_sim_seconds: float = DEFAULT_MAX_SIM_SECONDS,
) -> CapSimResult:
    """
    Simulate a capacitor under constant drain.

    Args:
        capacity: Capacitor capacity in GJ
        recharge_time_ms: Full recharge time in milliseconds
        drain_per_second: Constant drain in GJ/s
        max_sim_seconds: Simulated horizon in seconds

    Returns:
        CapSimResult. Stable results carry the settled charge as a
        percentage; unstable results carry the time the capacitor
        reached zero (capped at max_sim_seconds).
    """
    if drain_per_second <= 0:
        return CapSimResult(stable=True, stable_percent=100)

    tau = recharge_time_ms / 1000
    if capacity <= 0 or tau <= 0:
        # No reservoir or no recharge: any drain empties it immediately
        logger.debug(
            "Degenerate capacitor (capacity=%s, tau=%s) under drain %.2f GJ/s",
            capacity,
            tau,
            drain_per_second,
        )
        return CapSimResult(stable=False, lasts_seconds=0.0)

    dt = SIM_STEP_SECONDS
    cap = capacity
    recharge_scale = (capacity / tau) * 10
    peak = peak_recharge_rate(capacity, tau)

    # Drain well above peak recharge can never settle; integrate to exhaustion
    if drain_per_second > peak * 1.1:
        t = 0.0
        while t < max_sim_seconds:
            fraction = max(cap / capacity, 0.0)
            recharge = recharge_scale * (math.sqrt(fraction) - fraction)
            cap += (recharge - drain_per_second) * dt
            if cap <= 0:
                return CapSimResult(stable=False, lasts_seconds=t)
            t += dt
        return CapSimResult(stable=False, lasts_seconds=max_sim_seconds)

    prev_cap = cap
    t = 0.0
    while t < max_sim_seconds:
        fraction = max(cap / capacity, 0.0)
        recharge = recharge_scale * (math.sqrt(fraction) - fraction)
        cap += (recharge - drain_per_second) * dt

        if cap <= 0:
            return CapSimResult(stable=False, lasts_seconds=t)

        # Settled: change per step below 0.01 GJ per second
        if t > MIN_SETTLE_SECONDS and abs(cap - prev_cap) < 0.01 * dt * 10:
            return CapSimResult(stable=True, stable_percent=_round_half_up(cap / capacity * 100))
        prev_cap = cap
        t += dt

    # Horizon reached without emptying: treat as converged
    return CapSimResult(stable=True, stable_percent=_round_half_up(cap / capacity * 100))

"""
Ship Stats Calculator

Derives a ShipStats snapshot from a ship TypeEntity and a Fitting.
Base stats only: no stacking penalties and no module bonuses. Missing
attributes fall back to documented defaults so the calculation never fails.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from ..core.constants import (
    ATTR_ARMOR_EM_RESONANCE,
    ATTR_ARMOR_EXPLOSIVE_RESONANCE,
    ATTR_ARMOR_HP,
    ATTR_ARMOR_KINETIC_RESONANCE,
    ATTR_ARMOR_THERMAL_RESONANCE,
    ATTR_CALIBRATION_COST,
    ATTR_CALIBRATION_TOTAL,
    ATTR_CAP_CAPACITY,
    ATTR_CAP_RECHARGE_TIME,
    ATTR_CPU,
    ATTR_DAMAGE_MULTIPLIER,
    ATTR_DRONE_BANDWIDTH,
    ATTR_DRONE_BANDWIDTH_NEED,
    ATTR_DRONE_CAPACITY,
    ATTR_EM_DAMAGE,
    ATTR_EXPLOSION_RADIUS,
    ATTR_EXPLOSIVE_DAMAGE,
    ATTR_FALLOFF,
    ATTR_HULL_EM_RESONANCE,
    ATTR_HULL_EXPLOSIVE_RESONANCE,
    ATTR_HULL_KINETIC_RESONANCE,
    ATTR_HULL_THERMAL_RESONANCE,
    ATTR_INERTIA_MODIFIER,
    ATTR_KINETIC_DAMAGE,
    ATTR_LAUNCHER_SLOTS_LEFT,
    ATTR_MAX_TARGET_RANGE,
    ATTR_MAX_TARGETS,
    ATTR_MAX_VELOCITY,
    ATTR_MISSILE_DAMAGE_MULT,
    ATTR_MISSILE_FLIGHT_TIME,
    ATTR_MISSILE_VELOCITY,
    ATTR_MODULE_ACTIVATION_COST,
    ATTR_MODULE_CPU_USAGE,
    ATTR_MODULE_CYCLE_TIME,
    ATTR_MODULE_PG_USAGE,
    ATTR_OPTIMAL_RANGE,
    ATTR_POWERGRID,
    ATTR_SCAN_RESOLUTION,
    ATTR_SENSOR_GRAVIMETRIC_STRENGTH,
    ATTR_SENSOR_LADAR_STRENGTH,
    ATTR_SENSOR_MAGNETOMETRIC_STRENGTH,
    ATTR_SENSOR_RADAR_STRENGTH,
    ATTR_SHIELD_CAPACITY,
    ATTR_SHIELD_EM_RESONANCE,
    ATTR_SHIELD_EXPLOSIVE_RESONANCE,
    ATTR_SHIELD_KINETIC_RESONANCE,
    ATTR_SHIELD_THERMAL_RESONANCE,
    ATTR_SIGNATURE_RADIUS,
    ATTR_STRUCTURE_HP,
    ATTR_THERMAL_DAMAGE,
    ATTR_TRACKING_SPEED,
    ATTR_TURRET_SLOTS_LEFT,
    ATTR_VOLUME,
    ATTR_WARP_SPEED_MULT,
)
from ..core.logging import get_logger
from ..models.eve import TypeEntity
from ..models.fitting import FittedModule, Fitting, ModuleState, SlotType
from ..models.stats import (
    CapacitorStats,
    EngineeringStats,
    LayerStats,
    NavigationStats,
    OffenseStats,
    ResistanceProfile,
    SensorType,
    ShipStats,
    TargetingStats,
)
from .attributes import attr
from .capacitor import peak_recharge_rate, simulate_capacitor

logger = get_logger(__name__)

# Fallbacks for attributes a ship may not define
DEFAULT_CALIBRATION_TOTAL = 400.0
DEFAULT_SHIP_MASS = 1_000_000.0
DEFAULT_INERTIA = 1.0
DEFAULT_WARP_SPEED = 1.0
DEFAULT_SIGNATURE_RADIUS = 100.0
DEFAULT_MAX_TARGETS = 7.0
DEFAULT_MAX_TARGET_RANGE = 50_000.0
DEFAULT_SCAN_RESOLUTION = 300.0

# Tie-break order matters: the first listed sensor wins equal strengths
SENSOR_ATTRS: tuple[tuple[SensorType, int], ...] = (
    ("Radar", ATTR_SENSOR_RADAR_STRENGTH),
    ("Ladar", ATTR_SENSOR_LADAR_STRENGTH),
    ("Magnetometric", ATTR_SENSOR_MAGNETOMETRIC_STRENGTH),
    ("Gravimetric", ATTR_SENSOR_GRAVIMETRIC_STRENGTH),
)


# =============================================================================
# Closed-form Helpers
# =============================================================================


def calculate_align_time(mass: float, agility: float) -> float:
    """
    Time to reach 75% of max velocity (warp alignment).

    align_time = -ln(0.25) * agility * mass / 1,000,000
    """
    return -math.log(0.25) * agility * mass / 1_000_000


def avg_resonance(em: float, thermal: float, kinetic: float, explosive: float) -> float:
    """Mean of the four damage resonances."""
    return (em + thermal + kinetic + explosive) / 4


def calculate_ehp(hp: float, avg_resonance_value: float) -> float:
    """
    Effective HP against uniform damage.

    No resists (average resonance >= 1) returns hp unchanged; a layer with
    zero average resonance takes no damage and has infinite EHP.
    """
    if avg_resonance_value >= 1:
        return hp
    if avg_resonance_value <= 0:
        return math.inf
    return hp / avg_resonance_value


def layer_stats(hp: float, resist: ResistanceProfile) -> LayerStats:
    """Build LayerStats, deriving EHP from the resonance profile."""
    avg = avg_resonance(resist.em, resist.thermal, resist.kinetic, resist.explosive)
    return LayerStats(hp=hp, resist=resist, ehp=calculate_ehp(hp, avg), avg_resist=avg)


# =============================================================================
# Module Selection
# =============================================================================


def _active_modules(fitting: Fitting) -> Iterator[FittedModule]:
    for module in fitting.iter_rack_modules():
        if module.state is ModuleState.ACTIVE:
            yield module


def _base_damage(module: FittedModule) -> float:
    return (
        attr(module, ATTR_EM_DAMAGE)
        + attr(module, ATTR_THERMAL_DAMAGE)
        + attr(module, ATTR_KINETIC_DAMAGE)
        + attr(module, ATTR_EXPLOSIVE_DAMAGE)
    )


# =============================================================================
# Per-domain Calculators
# =============================================================================


def _calc_engineering(ship: TypeEntity, fitting: Fitting) -> EngineeringStats:
    cpu_total = attr(ship, ATTR_CPU)
    pg_total = attr(ship, ATTR_POWERGRID)

    cpu_used = 0.0
    pg_used = 0.0
    calibration_used = 0.0
    for module in fitting.iter_rack_modules():
        # Offlined modules free their CPU and powergrid
        if module.state is ModuleState.OFFLINE:
            continue
        if module.slot_type is SlotType.RIG:
            calibration_used += attr(module, ATTR_CALIBRATION_COST)
        cpu_used += attr(module, ATTR_MODULE_CPU_USAGE)
        pg_used += attr(module, ATTR_MODULE_PG_USAGE)

    bandwidth_used = 0.0
    bay_used = 0.0
    for drone in fitting.drones:
        bandwidth_used += attr(drone, ATTR_DRONE_BANDWIDTH_NEED)
        bay_used += attr(drone, ATTR_VOLUME)

    return EngineeringStats(
        cpu_total=cpu_total,
        cpu_used=cpu_used,
        cpu_remaining=cpu_total - cpu_used,
        pg_total=pg_total,
        pg_used=pg_used,
        pg_remaining=pg_total - pg_used,
        calibration_total=attr(ship, ATTR_CALIBRATION_TOTAL, DEFAULT_CALIBRATION_TOTAL),
        calibration_used=calibration_used,
        drone_bandwidth_total=attr(ship, ATTR_DRONE_BANDWIDTH),
        drone_bandwidth_used=bandwidth_used,
        drone_capacity=attr(ship, ATTR_DRONE_CAPACITY),
        drone_capacity_used=bay_used,
    )


def _resist_profile(
    ship: TypeEntity, em: int, thermal: int, kinetic: int, explosive: int
) -> ResistanceProfile:
    return ResistanceProfile(
        em=attr(ship, em, 1.0),
        thermal=attr(ship, thermal, 1.0),
        kinetic=attr(ship, kinetic, 1.0),
        explosive=attr(ship, explosive, 1.0),
    )


def _calc_layers(ship: TypeEntity) -> tuple[LayerStats, LayerStats, LayerStats]:
    shield = layer_stats(
        attr(ship, ATTR_SHIELD_CAPACITY),
        _resist_profile(
            ship,
            ATTR_SHIELD_EM_RESONANCE,
            ATTR_SHIELD_THERMAL_RESONANCE,
            ATTR_SHIELD_KINETIC_RESONANCE,
            ATTR_SHIELD_EXPLOSIVE_RESONANCE,
        ),
    )
    armor = layer_stats(
        attr(ship, ATTR_ARMOR_HP),
        _resist_profile(
            ship,
            ATTR_ARMOR_EM_RESONANCE,
            ATTR_ARMOR_THERMAL_RESONANCE,
            ATTR_ARMOR_KINETIC_RESONANCE,
            ATTR_ARMOR_EXPLOSIVE_RESONANCE,
        ),
    )
    hull = layer_stats(
        attr(ship, ATTR_STRUCTURE_HP),
        _resist_profile(
            ship,
            ATTR_HULL_EM_RESONANCE,
            ATTR_HULL_THERMAL_RESONANCE,
            ATTR_HULL_KINETIC_RESONANCE,
            ATTR_HULL_EXPLOSIVE_RESONANCE,
        ),
    )
    return shield, armor, hull


def capacitor_drain(fitting: Fitting) -> float:
    """Total GJ/s drained by active modules with an activation cost and cycle time."""
    drain = 0.0
    for module in _active_modules(fitting):
        activation_cost = attr(module, ATTR_MODULE_ACTIVATION_COST)
        cycle_ms = attr(module, ATTR_MODULE_CYCLE_TIME)
        if activation_cost > 0 and cycle_ms > 0:
            drain += activation_cost / (cycle_ms / 1000)
    return drain


def capacitor_stats(capacity: float, tau: float, drain_per_second: float) -> CapacitorStats:
    """Build CapacitorStats by simulating capacity/tau under the given drain."""
    sim = simulate_capacitor(capacity, tau * 1000, drain_per_second)
    return CapacitorStats(
        capacity=capacity,
        recharge_rate=tau,
        peak_recharge=peak_recharge_rate(capacity, tau),
        drain_per_second=drain_per_second,
        stable=sim.stable,
        stable_percent=sim.stable_percent,
        lasts_seconds=sim.lasts_seconds,
    )


def _calc_capacitor(ship: TypeEntity, fitting: Fitting) -> CapacitorStats:
    capacity = attr(ship, ATTR_CAP_CAPACITY)
    tau = attr(ship, ATTR_CAP_RECHARGE_TIME) / 1000
    return capacitor_stats(capacity, tau, capacitor_drain(fitting))


def _calc_offense(fitting: Fitting) -> OffenseStats:
    turret_dps = missile_dps = drone_dps = 0.0
    turret_alpha = missile_alpha = 0.0
    turret_optimal = turret_falloff = missile_range = 0.0

    for module in _active_modules(fitting):
        cycle_ms = attr(module, ATTR_MODULE_CYCLE_TIME)
        if cycle_ms <= 0:
            continue
        base_damage = _base_damage(module)

        # Turret vs launcher is decided by attribute presence
        if attr(module, ATTR_TRACKING_SPEED) > 0:
            volley = base_damage * attr(module, ATTR_DAMAGE_MULTIPLIER, 1.0)
            turret_alpha += volley
            turret_dps += volley / (cycle_ms / 1000)
            turret_optimal = max(turret_optimal, attr(module, ATTR_OPTIMAL_RANGE))
            turret_falloff = max(turret_falloff, attr(module, ATTR_FALLOFF))
        elif attr(module, ATTR_EXPLOSION_RADIUS) > 0:
            volley = base_damage * attr(module, ATTR_MISSILE_DAMAGE_MULT, 1.0)
            missile_alpha += volley
            missile_dps += volley / (cycle_ms / 1000)

            flight_ms = attr(module, ATTR_MISSILE_FLIGHT_TIME)
            velocity = attr(module, ATTR_MISSILE_VELOCITY)
            if flight_ms > 0 and velocity > 0:
                missile_range = max(missile_range, (flight_ms / 1000) * velocity)

    # Drones are assumed deployed; no state gate
    for drone in fitting.drones:
        cycle_ms = attr(drone, ATTR_MODULE_CYCLE_TIME)
        base_damage = _base_damage(drone)
        if cycle_ms > 0 and base_damage > 0:
            drone_dps += base_damage * attr(drone, ATTR_DAMAGE_MULTIPLIER, 1.0) / (cycle_ms / 1000)

    alpha = turret_alpha + missile_alpha
    return OffenseStats(
        turret_dps=turret_dps,
        missile_dps=missile_dps,
        drone_dps=drone_dps,
        total_dps=turret_dps + missile_dps + drone_dps,
        alpha=alpha,
        volley=alpha,
        turret_optimal=turret_optimal,
        turret_falloff=turret_falloff,
        missile_range=missile_range,
        drone_control_range=0.0,
    )


def _calc_navigation(ship: TypeEntity) -> NavigationStats:
    inertia = attr(ship, ATTR_INERTIA_MODIFIER, DEFAULT_INERTIA)
    mass = ship.mass if ship.mass is not None else DEFAULT_SHIP_MASS
    return NavigationStats(
        max_velocity=attr(ship, ATTR_MAX_VELOCITY),
        agility=inertia,
        warp_speed=attr(ship, ATTR_WARP_SPEED_MULT, DEFAULT_WARP_SPEED),
        align_time=calculate_align_time(mass, inertia),
        signature_radius=attr(ship, ATTR_SIGNATURE_RADIUS, DEFAULT_SIGNATURE_RADIUS),
        mass=mass,
        inertia_modifier=inertia,
    )


def strongest_sensor(ship: TypeEntity) -> tuple[SensorType, float]:
    """Return the sensor type with the highest strength (first listed wins ties)."""
    best_type, best_value = SENSOR_ATTRS[0][0], attr(ship, SENSOR_ATTRS[0][1])
    for sensor_type, attribute_id in SENSOR_ATTRS[1:]:
        value = attr(ship, attribute_id)
        if value > best_value:
            best_type, best_value = sensor_type, value
    return best_type, best_value


def _calc_targeting(ship: TypeEntity) -> TargetingStats:
    sensor_type, sensor_strength = strongest_sensor(ship)
    return TargetingStats(
        max_targets=attr(ship, ATTR_MAX_TARGETS, DEFAULT_MAX_TARGETS),
        max_target_range=attr(ship, ATTR_MAX_TARGET_RANGE, DEFAULT_MAX_TARGET_RANGE),
        scan_resolution=attr(ship, ATTR_SCAN_RESOLUTION, DEFAULT_SCAN_RESOLUTION),
        sensor_strength=sensor_strength,
        sensor_type=sensor_type,
    )


# =============================================================================
# Main Calculator
# =============================================================================


def calculate_ship_stats(ship: TypeEntity, fitting: Fitting) -> ShipStats:
    """
    Calculate base stats for a ship and fitting.

    Args:
        ship: Ship type definition
        fitting: Fitting whose racks, drones and module states are used

    Returns:
        Fresh ShipStats snapshot
    """
    shield, armor, hull = _calc_layers(ship)
    stats = ShipStats(
        engineering=_calc_engineering(ship, fitting),
        capacitor=_calc_capacitor(ship, fitting),
        offense=_calc_offense(fitting),
        navigation=_calc_navigation(ship),
        targeting=_calc_targeting(ship),
        shield=shield,
        armor=armor,
        hull=hull,
        total_ehp=shield.ehp + armor.ehp + hull.ehp,
        # Rack lengths are authoritative once the fitting exists
        high_slots=len(fitting.high_slots),
        mid_slots=len(fitting.mid_slots),
        low_slots=len(fitting.low_slots),
        rig_slots=len(fitting.rig_slots),
        turret_hardpoints=int(attr(ship, ATTR_TURRET_SLOTS_LEFT)),
        launcher_hardpoints=int(attr(ship, ATTR_LAUNCHER_SLOTS_LEFT)),
    )
    logger.debug(
        "Stats for %s (%s): cpu %.1f/%.1f, pg %.1f/%.1f, dps %.1f, ehp %.0f",
        fitting.name,
        ship.name,
        stats.engineering.cpu_used,
        stats.engineering.cpu_total,
        stats.engineering.pg_used,
        stats.engineering.pg_total,
        stats.offense.total_dps,
        stats.total_ehp,
    )
    return stats

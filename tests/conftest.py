"""
shipfit Test Suite - Shared Fixtures and Configuration

Provides synthetic type data (a frigate hull and a handful of modules),
a fake type data provider, and automatic reset of settings and logging
singletons between tests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Optional

import pytest

from shipfit.core.constants import (
    ATTR_ARMOR_HP,
    ATTR_CALIBRATION_COST,
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
    ATTR_HI_SLOTS,
    ATTR_INERTIA_MODIFIER,
    ATTR_KINETIC_DAMAGE,
    ATTR_LAUNCHER_SLOTS_LEFT,
    ATTR_LOW_SLOTS,
    ATTR_MAX_TARGET_RANGE,
    ATTR_MAX_TARGETS,
    ATTR_MAX_VELOCITY,
    ATTR_MED_SLOTS,
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
    ATTR_SENSOR_LADAR_STRENGTH,
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
    CATEGORY_CHARGE,
    CATEGORY_DRONE,
    CATEGORY_MODULE,
    CATEGORY_SHIP,
    EFFECT_HIGH_SLOT,
    EFFECT_LAUNCHER_FITTED,
    EFFECT_LOW_SLOT,
    EFFECT_MED_SLOT,
    EFFECT_RIG_SLOT,
    EFFECT_TURRET_FITTED,
)
from shipfit.fitting.slots import slot_counts_from_ship
from shipfit.models.eve import TypeEntity
from shipfit.models.fitting import (
    FittedModule,
    Fitting,
    ModuleData,
    ModuleState,
    SlotType,
    create_empty_fitting,
)

# =============================================================================
# Type IDs used throughout the suite
# =============================================================================

RIFTER_ID = 587
AUTOCANNON_ID = 2873
ROCKET_LAUNCHER_ID = 10631
AFTERBURNER_ID = 12056
DAMAGE_CONTROL_ID = 2048
BURST_AERATOR_ID = 31788
HOBGOBLIN_ID = 2454
EMP_AMMO_ID = 185


def make_type(
    type_id: int,
    name: str,
    group_id: int = 0,
    category_id: Optional[int] = CATEGORY_MODULE,
    attributes: Optional[dict[int, float]] = None,
    effects: Iterable[int] = (),
    mass: Optional[float] = None,
    volume: Optional[float] = None,
) -> TypeEntity:
    """Build a TypeEntity with just the fields a test cares about."""
    return TypeEntity(
        type_id=type_id,
        name=name,
        group_id=group_id,
        category_id=category_id,
        attributes=attributes or {},
        effects=list(effects),
        mass=mass,
        volume=volume,
    )


# =============================================================================
# Singleton Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_all_singletons(monkeypatch):
    """
    Reset settings and logging between tests.

    Retries are disabled so mocked HTTP failures surface immediately.
    """
    from shipfit.core.config import reset_settings
    from shipfit.core.logging import reset_logging

    monkeypatch.setenv("SHIPFIT_NO_RETRY", "1")
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


# =============================================================================
# Type Fixtures
# =============================================================================


@pytest.fixture
def rifter() -> TypeEntity:
    """Minmatar frigate: 4/3/4 slots, 3 turret and 2 launcher hardpoints."""
    return make_type(
        RIFTER_ID,
        "Rifter",
        group_id=25,
        category_id=CATEGORY_SHIP,
        mass=1_067_000.0,
        attributes={
            ATTR_HI_SLOTS: 4,
            ATTR_MED_SLOTS: 3,
            ATTR_LOW_SLOTS: 4,
            ATTR_TURRET_SLOTS_LEFT: 3,
            ATTR_LAUNCHER_SLOTS_LEFT: 2,
            ATTR_CPU: 130,
            ATTR_POWERGRID: 41,
            ATTR_CAP_CAPACITY: 250,
            ATTR_CAP_RECHARGE_TIME: 125_000,
            ATTR_SHIELD_CAPACITY: 450,
            ATTR_ARMOR_HP: 350,
            ATTR_STRUCTURE_HP: 350,
            ATTR_SHIELD_EM_RESONANCE: 1.0,
            ATTR_SHIELD_THERMAL_RESONANCE: 0.8,
            ATTR_SHIELD_KINETIC_RESONANCE: 0.6,
            ATTR_SHIELD_EXPLOSIVE_RESONANCE: 0.5,
            ATTR_MAX_VELOCITY: 365,
            ATTR_INERTIA_MODIFIER: 3.2,
            ATTR_SIGNATURE_RADIUS: 35,
            ATTR_MAX_TARGETS: 4,
            ATTR_MAX_TARGET_RANGE: 22_500,
            ATTR_SCAN_RESOLUTION: 660,
            ATTR_SENSOR_LADAR_STRENGTH: 8,
            ATTR_DRONE_CAPACITY: 5,
            ATTR_DRONE_BANDWIDTH: 5,
        },
    )


@pytest.fixture
def autocannon() -> TypeEntity:
    """Turret: 15 raw damage x2.0 every 2s = 15 DPS."""
    return make_type(
        AUTOCANNON_ID,
        "125mm Gatling AutoCannon II",
        group_id=55,
        effects=[EFFECT_HIGH_SLOT, EFFECT_TURRET_FITTED],
        attributes={
            ATTR_MODULE_CPU_USAGE: 4,
            ATTR_MODULE_PG_USAGE: 1,
            ATTR_MODULE_CYCLE_TIME: 2000,
            ATTR_DAMAGE_MULTIPLIER: 2.0,
            ATTR_TRACKING_SPEED: 0.4,
            ATTR_OPTIMAL_RANGE: 1200,
            ATTR_FALLOFF: 4000,
            ATTR_KINETIC_DAMAGE: 10,
            ATTR_EXPLOSIVE_DAMAGE: 5,
        },
    )


@pytest.fixture
def rocket_launcher() -> TypeEntity:
    """Launcher: 20 raw damage every 4s = 5 DPS, 4s flight at 2000 m/s."""
    return make_type(
        ROCKET_LAUNCHER_ID,
        "Rocket Launcher II",
        group_id=507,
        effects=[EFFECT_HIGH_SLOT, EFFECT_LAUNCHER_FITTED],
        attributes={
            ATTR_MODULE_CPU_USAGE: 29,
            ATTR_MODULE_PG_USAGE: 6,
            ATTR_MODULE_CYCLE_TIME: 4000,
            ATTR_EXPLOSION_RADIUS: 20,
            ATTR_MISSILE_VELOCITY: 2000,
            ATTR_MISSILE_FLIGHT_TIME: 4000,
            ATTR_MISSILE_DAMAGE_MULT: 1.0,
            ATTR_EM_DAMAGE: 20,
        },
    )


@pytest.fixture
def afterburner() -> TypeEntity:
    """Mid slot module draining 10 GJ every 10s = 1 GJ/s."""
    return make_type(
        AFTERBURNER_ID,
        "1MN Afterburner II",
        group_id=64,
        effects=[EFFECT_MED_SLOT],
        attributes={
            ATTR_MODULE_CPU_USAGE: 20,
            ATTR_MODULE_PG_USAGE: 1,
            ATTR_MODULE_ACTIVATION_COST: 10,
            ATTR_MODULE_CYCLE_TIME: 10_000,
        },
    )


@pytest.fixture
def damage_control() -> TypeEntity:
    return make_type(
        DAMAGE_CONTROL_ID,
        "Damage Control II",
        group_id=45,
        effects=[EFFECT_LOW_SLOT],
        attributes={ATTR_MODULE_CPU_USAGE: 30, ATTR_MODULE_PG_USAGE: 1},
    )


@pytest.fixture
def burst_aerator() -> TypeEntity:
    return make_type(
        BURST_AERATOR_ID,
        "Small Projectile Burst Aerator I",
        group_id=776,
        effects=[EFFECT_RIG_SLOT],
        attributes={ATTR_CALIBRATION_COST: 100},
    )


@pytest.fixture
def hobgoblin() -> TypeEntity:
    """Light drone: 20 thermal every 4s = 5 DPS, 5 Mbit/s, 5 m3."""
    return make_type(
        HOBGOBLIN_ID,
        "Hobgoblin I",
        group_id=100,
        category_id=CATEGORY_DRONE,
        volume=5.0,
        attributes={
            ATTR_DRONE_BANDWIDTH_NEED: 5,
            ATTR_MODULE_CYCLE_TIME: 4000,
            ATTR_THERMAL_DAMAGE: 20,
            ATTR_DAMAGE_MULTIPLIER: 1.0,
        },
    )


@pytest.fixture
def emp_ammo() -> TypeEntity:
    return make_type(EMP_AMMO_ID, "EMP S", group_id=83, category_id=CATEGORY_CHARGE)


@pytest.fixture
def all_types(
    rifter,
    autocannon,
    rocket_launcher,
    afterburner,
    damage_control,
    burst_aerator,
    hobgoblin,
    emp_ammo,
) -> list[TypeEntity]:
    return [
        rifter,
        autocannon,
        rocket_launcher,
        afterburner,
        damage_control,
        burst_aerator,
        hobgoblin,
        emp_ammo,
    ]


# =============================================================================
# Fake Type Data Provider
# =============================================================================


class FakeTypeLookup:
    """
    In-memory stand-in for TypeDataProvider.

    Types listed in failing raise from get_type, to exercise
    partial-failure handling. Types listed in delays answer after that
    many seconds.
    """

    def __init__(
        self,
        types: Iterable[TypeEntity],
        failing: Iterable[int] = (),
        delays: Optional[Mapping[int, float]] = None,
    ) -> None:
        self.types = {t.type_id: t for t in types}
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.get_type_calls: list[int] = []
        self.resolve_calls: list[list[str]] = []

    async def get_type(self, type_id: int) -> Optional[TypeEntity]:
        self.get_type_calls.append(type_id)
        if type_id in self.delays:
            await asyncio.sleep(self.delays[type_id])
        if type_id in self.failing:
            raise RuntimeError(f"lookup of {type_id} failed")
        return self.types.get(type_id)

    async def resolve_names(self, names: Iterable[str]) -> dict[str, int]:
        names = list(names)
        self.resolve_calls.append(names)
        by_name = {t.name.lower(): t.type_id for t in self.types.values()}
        return {name.lower(): by_name[name.lower()] for name in names if name.lower() in by_name}


@pytest.fixture
def fake_provider(all_types) -> FakeTypeLookup:
    return FakeTypeLookup(all_types)


@pytest.fixture
def type_factory():
    """The make_type() helper, for tests that need one-off types."""
    return make_type


@pytest.fixture
def provider_factory():
    """Build a FakeTypeLookup from types, failing ids and delays."""
    return FakeTypeLookup


# =============================================================================
# Fitting Builder
# =============================================================================


def build_fitting(
    ship: TypeEntity,
    high: Iterable[TypeEntity] = (),
    mid: Iterable[TypeEntity] = (),
    low: Iterable[TypeEntity] = (),
    rig: Iterable[TypeEntity] = (),
    drones: Iterable[TypeEntity] = (),
    state: ModuleState = ModuleState.ACTIVE,
) -> Fitting:
    """Empty fitting for ship with the given modules placed from slot 0 up."""
    fitting = create_empty_fitting(ship.type_id, ship.name, slot_counts_from_ship(ship))
    for slot_type, entities in (
        (SlotType.HIGH, high),
        (SlotType.MID, mid),
        (SlotType.LOW, low),
        (SlotType.RIG, rig),
    ):
        rack = fitting.rack(slot_type)
        for index, entity in enumerate(entities):
            rack[index] = FittedModule.place(
                ModuleData.from_type(entity, state=state), slot_type, index
            )
    for index, entity in enumerate(drones):
        fitting.drones.append(
            FittedModule.place(ModuleData.from_type(entity), SlotType.DRONE, index)
        )
    return fitting


@pytest.fixture
def fitting_builder():
    """The build_fitting() helper."""
    return build_fitting

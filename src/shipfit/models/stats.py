"""
Data Models for Derived Ship Statistics.

ShipStats is a disposable snapshot produced by the stats calculator and
optionally overlaid by the skill bonus engine. All records are frozen;
derived copies are made with dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Literal, Optional

SensorType = Literal["Radar", "Ladar", "Magnetometric", "Gravimetric"]


# =============================================================================
# Engineering Models
# =============================================================================


@dataclass(frozen=True)
class EngineeringStats:
    """CPU, powergrid, calibration and drone resources."""

    cpu_total: float
    cpu_used: float
    cpu_remaining: float
    pg_total: float
    pg_used: float
    pg_remaining: float
    calibration_total: float
    calibration_used: float
    drone_bandwidth_total: float
    drone_bandwidth_used: float
    drone_capacity: float
    drone_capacity_used: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {f.name: round(getattr(self, f.name), 2) for f in fields(self)}


# =============================================================================
# Tank Models
# =============================================================================


@dataclass(frozen=True)
class ResistanceProfile:
    """
    Damage resonance per type for a layer.

    Values are resonances (0.0-1.0, lower = more resist).
    """

    em: float = 1.0
    thermal: float = 1.0
    kinetic: float = 1.0
    explosive: float = 1.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "em": round(self.em, 4),
            "thermal": round(self.thermal, 4),
            "kinetic": round(self.kinetic, 4),
            "explosive": round(self.explosive, 4),
        }


@dataclass(frozen=True)
class LayerStats:
    """Stats for a single tank layer (shield/armor/hull)."""

    hp: float
    resist: ResistanceProfile
    ehp: float
    avg_resist: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "hp": round(self.hp, 0),
            "resist": self.resist.to_dict(),
            "ehp": round(self.ehp, 0),
            "avg_resist": round(self.avg_resist, 4),
        }


# =============================================================================
# Capacitor Models
# =============================================================================


@dataclass(frozen=True)
class CapacitorStats:
    """
    Capacitor statistics.

    recharge_rate is the recharge time constant tau in seconds.
    Exactly one of stable_percent / lasts_seconds is set.
    """

    capacity: float
    recharge_rate: float
    peak_recharge: float
    drain_per_second: float
    stable: bool
    stable_percent: Optional[float] = None
    lasts_seconds: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "capacity": round(self.capacity, 1),
            "recharge_rate": round(self.recharge_rate, 2),
            "peak_recharge": round(self.peak_recharge, 2),
            "drain_per_second": round(self.drain_per_second, 2),
            "stable": self.stable,
            "stable_percent": self.stable_percent,
            "lasts_seconds": (
                round(self.lasts_seconds, 1) if self.lasts_seconds is not None else None
            ),
        }


# =============================================================================
# Offense Models
# =============================================================================


@dataclass(frozen=True)
class OffenseStats:
    """Damage output by weapon class. Ranges are in meters."""

    turret_dps: float = 0.0
    missile_dps: float = 0.0
    drone_dps: float = 0.0
    total_dps: float = 0.0
    alpha: float = 0.0
    volley: float = 0.0
    turret_optimal: float = 0.0
    turret_falloff: float = 0.0
    missile_range: float = 0.0
    drone_control_range: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {f.name: round(getattr(self, f.name), 2) for f in fields(self)}


# =============================================================================
# Navigation / Targeting Models
# =============================================================================


@dataclass(frozen=True)
class NavigationStats:
    """Speed, agility and signature."""

    max_velocity: float
    agility: float
    warp_speed: float
    align_time: float
    signature_radius: float
    mass: float
    inertia_modifier: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "max_velocity": round(self.max_velocity, 1),
            "agility": round(self.agility, 4),
            "warp_speed": round(self.warp_speed, 2),
            "align_time": round(self.align_time, 2),
            "signature_radius": round(self.signature_radius, 1),
            "mass": round(self.mass, 0),
            "inertia_modifier": round(self.inertia_modifier, 4),
        }


@dataclass(frozen=True)
class TargetingStats:
    """Locking capability and sensor strength."""

    max_targets: float
    max_target_range: float
    scan_resolution: float
    sensor_strength: float
    sensor_type: SensorType

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "max_targets": self.max_targets,
            "max_target_range": round(self.max_target_range, 0),
            "scan_resolution": round(self.scan_resolution, 1),
            "sensor_strength": round(self.sensor_strength, 1),
            "sensor_type": self.sensor_type,
        }


# =============================================================================
# Ship Stats Snapshot
# =============================================================================


@dataclass(frozen=True)
class ShipStats:
    """
    Complete derived statistics for a ship and fitting.

    Slot counts are the fitting's rack lengths; hardpoints come from the
    ship's attributes.
    """

    engineering: EngineeringStats
    capacitor: CapacitorStats
    offense: OffenseStats
    navigation: NavigationStats
    targeting: TargetingStats
    shield: LayerStats
    armor: LayerStats
    hull: LayerStats
    total_ehp: float
    high_slots: int
    mid_slots: int
    low_slots: int
    rig_slots: int
    turret_hardpoints: int
    launcher_hardpoints: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "engineering": self.engineering.to_dict(),
            "capacitor": self.capacitor.to_dict(),
            "offense": self.offense.to_dict(),
            "navigation": self.navigation.to_dict(),
            "targeting": self.targeting.to_dict(),
            "shield": self.shield.to_dict(),
            "armor": self.armor.to_dict(),
            "hull": self.hull.to_dict(),
            "total_ehp": round(self.total_ehp, 0),
            "slots": {
                "high": self.high_slots,
                "mid": self.mid_slots,
                "low": self.low_slots,
                "rig": self.rig_slots,
            },
            "hardpoints": {
                "turret": self.turret_hardpoints,
                "launcher": self.launcher_hardpoints,
            },
        }


# =============================================================================
# Skill Models
# =============================================================================


@dataclass(frozen=True)
class SkillDeltas:
    """
    Skilled minus base value for each stat touched by support skills.

    Negative cap_recharge, inertia_modifier and align_time are improvements.
    """

    cpu_total: float = 0.0
    pg_total: float = 0.0
    cap_capacity: float = 0.0
    cap_recharge: float = 0.0
    shield_hp: float = 0.0
    armor_hp: float = 0.0
    hull_hp: float = 0.0
    total_ehp: float = 0.0
    max_velocity: float = 0.0
    inertia_modifier: float = 0.0
    align_time: float = 0.0
    max_targets: float = 0.0
    max_target_range: float = 0.0
    scan_resolution: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {f.name: round(getattr(self, f.name), 4) for f in fields(self)}


@dataclass(frozen=True)
class SkillRequirement:
    """A skill and the level a fitting needs it trained to."""

    skill_type_id: int
    skill_name: str
    required_level: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "skill_type_id": self.skill_type_id,
            "skill_name": self.skill_name,
            "required_level": self.required_level,
        }


@dataclass(frozen=True)
class SkillPlanStage:
    """One tier of a training plan, sorted by skill name."""

    name: str
    skills: tuple[SkillRequirement, ...]

    @property
    def total(self) -> int:
        return len(self.skills)

    def levels(self) -> dict[int, int]:
        """Skill id -> required level."""
        return {s.skill_type_id: s.required_level for s in self.skills}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "skills": [s.to_dict() for s in self.skills],
            "total": self.total,
        }


@dataclass(frozen=True)
class SkillPlan:
    """Minimum, Recommended and Mastery training stages."""

    stages: tuple[SkillPlanStage, SkillPlanStage, SkillPlanStage]

    @property
    def minimum(self) -> SkillPlanStage:
        return self.stages[0]

    @property
    def recommended(self) -> SkillPlanStage:
        return self.stages[1]

    @property
    def mastery(self) -> SkillPlanStage:
        return self.stages[2]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"stages": [stage.to_dict() for stage in self.stages]}

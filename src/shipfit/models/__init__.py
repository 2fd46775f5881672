"""
shipfit Models

Type data, fitting and stats records.
"""

from .eve import EveModel, GroupEntity, TypeEntity
from .fitting import (
    Charge,
    FittedModule,
    Fitting,
    ModuleData,
    ModuleState,
    SlotCounts,
    SlotType,
    create_empty_fitting,
)
from .stats import (
    CapacitorStats,
    EngineeringStats,
    LayerStats,
    NavigationStats,
    OffenseStats,
    ResistanceProfile,
    ShipStats,
    SkillDeltas,
    SkillPlan,
    SkillPlanStage,
    SkillRequirement,
    TargetingStats,
)

__all__ = [
    # Type data
    "EveModel",
    "GroupEntity",
    "TypeEntity",
    # Fitting
    "Charge",
    "FittedModule",
    "Fitting",
    "ModuleData",
    "ModuleState",
    "SlotCounts",
    "SlotType",
    "create_empty_fitting",
    # Stats
    "CapacitorStats",
    "EngineeringStats",
    "LayerStats",
    "NavigationStats",
    "OffenseStats",
    "ResistanceProfile",
    "ShipStats",
    "SkillDeltas",
    "SkillPlan",
    "SkillPlanStage",
    "SkillRequirement",
    "TargetingStats",
]

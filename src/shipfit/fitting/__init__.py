"""
shipfit Fitting Module

Stat calculation, skill overlays, skill plans, EFT import/export and the
editable fitting session.
"""

from shipfit.fitting.capacitor import simulate_capacitor
from shipfit.fitting.eft_import import EFTImportError, EFTImportResult, import_eft
from shipfit.fitting.eft_parser import (
    EFTFormatError,
    EFTParseError,
    fitting_to_eft,
    looks_like_eft,
    parse_eft,
    serialize_eft,
)
from shipfit.fitting.esi_convert import esi_fitting_to_local, fitting_to_esi_items
from shipfit.fitting.session import (
    FittingSession,
    FittingSessionError,
    NoShipSelectedError,
    SlotIndexError,
)
from shipfit.fitting.skill_plan import build_skill_plan
from shipfit.fitting.skills import (
    SkillFetchError,
    SkillMode,
    all_v_skill_map,
    apply_skill_bonuses,
    compute_stats_with_skills,
    fetch_character_skills,
)
from shipfit.fitting.slots import classify_slot, slot_counts_from_ship
from shipfit.fitting.stats import calculate_ehp, calculate_ship_stats
from shipfit.fitting.storage import FittingRepository

__all__ = [
    # Calculators
    "calculate_ship_stats",
    "calculate_ehp",
    "simulate_capacitor",
    # Skills
    "SkillMode",
    "SkillFetchError",
    "all_v_skill_map",
    "apply_skill_bonuses",
    "compute_stats_with_skills",
    "fetch_character_skills",
    "build_skill_plan",
    # EFT
    "EFTParseError",
    "EFTFormatError",
    "EFTImportError",
    "EFTImportResult",
    "parse_eft",
    "serialize_eft",
    "looks_like_eft",
    "fitting_to_eft",
    "import_eft",
    # ESI fittings
    "esi_fitting_to_local",
    "fitting_to_esi_items",
    # Slots
    "classify_slot",
    "slot_counts_from_ship",
    # Session and storage
    "FittingSession",
    "FittingSessionError",
    "NoShipSelectedError",
    "SlotIndexError",
    "FittingRepository",
]

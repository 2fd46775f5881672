"""
Support Skill Bonuses for Fitting Calculations.

Layers the twelve modelled support skills on top of base ShipStats. The
overlay is pure: apply_skill_bonuses() returns a new ShipStats plus the
per-stat deltas and never touches the snapshot it was given.

Three skill modes are supported:
1. none: base stats only
2. all_v (default): every support skill at level 5
3. my_skills: trained levels fetched from ESI for the logged-in character
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from ..core.constants import (
    CHARACTER_SKILLS_ENDPOINT,
    MAX_SKILL_LEVEL,
    SKILL_CAPACITOR_MANAGEMENT,
    SKILL_CAPACITOR_SYSTEMS_OPERATION,
    SKILL_CPU_MANAGEMENT,
    SKILL_EVASIVE_MANEUVERING,
    SKILL_HULL_UPGRADES,
    SKILL_LONG_RANGE_TARGETING,
    SKILL_MECHANICS,
    SKILL_NAVIGATION,
    SKILL_POWER_GRID_MANAGEMENT,
    SKILL_SHIELD_MANAGEMENT,
    SKILL_SIGNATURE_ANALYSIS,
    SKILL_TARGET_MANAGEMENT,
    SUPPORT_SKILL_IDS,
)
from ..core.logging import get_logger
from ..models.stats import ShipStats, SkillDeltas
from .stats import calculate_align_time, calculate_ship_stats, capacitor_stats, layer_stats

if TYPE_CHECKING:
    from ..core.async_client import AsyncESIClient
    from ..models.eve import TypeEntity
    from ..models.fitting import Fitting

logger = get_logger(__name__)

SkillMap = dict[int, int]

# Bonus per trained level
LEVEL_BONUS = 0.05


class SkillMode(str, Enum):
    """Which skill levels to overlay on base stats."""

    NONE = "none"
    ALL_V = "all_v"
    MY_SKILLS = "my_skills"


# =============================================================================
# Exceptions
# =============================================================================


class SkillFetchError(Exception):
    """Raised when skill fetching fails."""

    def __init__(self, message: str, is_auth_error: bool = False):
        super().__init__(message)
        self.is_auth_error = is_auth_error


# =============================================================================
# Skill Maps
# =============================================================================


def all_v_skill_map() -> SkillMap:
    """Every support skill at level V."""
    return {skill_id: MAX_SKILL_LEVEL for skill_id in SUPPORT_SKILL_IDS.values()}


def esi_skills_to_map(esi_skills: Iterable[Mapping[str, Any]]) -> SkillMap:
    """
    Convert an ESI skills list into a SkillMap of support skills only.

    Uses active_skill_level (the level usable right now, which can be
    lower than trained_skill_level on alpha clones).
    """
    support_ids = set(SUPPORT_SKILL_IDS.values())
    skill_map: SkillMap = {}
    for skill in esi_skills:
        skill_id = skill.get("skill_id")
        if skill_id in support_ids:
            skill_map[skill_id] = int(skill.get("active_skill_level", 0))
    return skill_map


async def fetch_character_skills(client: AsyncESIClient, character_id: int) -> SkillMap:
    """
    Fetch a character's support skill levels from ESI.

    Args:
        client: Entered AsyncESIClient carrying an access token
        character_id: Character to fetch

    Returns:
        SkillMap of support skills

    Raises:
        SkillFetchError: If the request fails or the response is malformed
    """
    from ..core.async_client import AsyncESIError

    endpoint = CHARACTER_SKILLS_ENDPOINT.format(character_id=character_id)
    try:
        payload = await client.get(endpoint, auth=True)
    except AsyncESIError as e:
        raise SkillFetchError(
            f"Failed to fetch skills from ESI: {e.message}",
            is_auth_error=e.status_code in (401, 403),
        ) from e

    if not isinstance(payload, dict):
        raise SkillFetchError("Invalid skills response from ESI")

    skill_map = esi_skills_to_map(payload.get("skills", []))
    logger.info(
        "Fetched %d support skills for character %d from ESI", len(skill_map), character_id
    )
    return skill_map


# =============================================================================
# Bonus Engine
# =============================================================================


def _level(skills: Mapping[int, int], skill_id: int) -> int:
    """Trained level clamped to 0..5 (absent = untrained)."""
    return max(0, min(MAX_SKILL_LEVEL, int(skills.get(skill_id, 0))))


def _bonus(skills: Mapping[int, int], skill_id: int) -> float:
    return 1 + LEVEL_BONUS * _level(skills, skill_id)


def _penalty(skills: Mapping[int, int], skill_id: int) -> float:
    return 1 - LEVEL_BONUS * _level(skills, skill_id)


def apply_skill_bonuses(
    stats: ShipStats, skills: Mapping[int, int]
) -> tuple[ShipStats, SkillDeltas]:
    """
    Overlay support skill bonuses on base stats.

    Primitive fields are bonused; derived fields (remaining CPU/PG, peak
    recharge, capacitor stability, layer EHP, total EHP, align time) are
    recomputed from the bonused inputs.

    Args:
        stats: Base stats snapshot (not modified)
        skills: Skill type ID -> trained level

    Returns:
        Tuple of (skilled stats, deltas of skilled minus base)
    """
    eng = stats.engineering
    cpu_total = eng.cpu_total * _bonus(skills, SKILL_CPU_MANAGEMENT)
    pg_total = eng.pg_total * _bonus(skills, SKILL_POWER_GRID_MANAGEMENT)
    engineering = replace(
        eng,
        cpu_total=cpu_total,
        cpu_remaining=cpu_total - eng.cpu_used,
        pg_total=pg_total,
        pg_remaining=pg_total - eng.pg_used,
    )

    cap = stats.capacitor
    # Skills change stability nonlinearly, so the capacitor is re-simulated
    capacitor = capacitor_stats(
        cap.capacity * _bonus(skills, SKILL_CAPACITOR_MANAGEMENT),
        cap.recharge_rate * _penalty(skills, SKILL_CAPACITOR_SYSTEMS_OPERATION),
        cap.drain_per_second,
    )

    shield = layer_stats(
        stats.shield.hp * _bonus(skills, SKILL_SHIELD_MANAGEMENT), stats.shield.resist
    )
    armor = layer_stats(stats.armor.hp * _bonus(skills, SKILL_HULL_UPGRADES), stats.armor.resist)
    hull = layer_stats(stats.hull.hp * _bonus(skills, SKILL_MECHANICS), stats.hull.resist)
    total_ehp = shield.ehp + armor.ehp + hull.ehp

    nav = stats.navigation
    inertia = nav.inertia_modifier * _penalty(skills, SKILL_EVASIVE_MANEUVERING)
    navigation = replace(
        nav,
        max_velocity=nav.max_velocity * _bonus(skills, SKILL_NAVIGATION),
        inertia_modifier=inertia,
        agility=inertia,
        align_time=calculate_align_time(nav.mass, inertia),
    )

    tgt = stats.targeting
    targeting = replace(
        tgt,
        max_targets=tgt.max_targets + _level(skills, SKILL_TARGET_MANAGEMENT),
        max_target_range=tgt.max_target_range * _bonus(skills, SKILL_LONG_RANGE_TARGETING),
        scan_resolution=tgt.scan_resolution * _bonus(skills, SKILL_SIGNATURE_ANALYSIS),
    )

    skilled = replace(
        stats,
        engineering=engineering,
        capacitor=capacitor,
        shield=shield,
        armor=armor,
        hull=hull,
        total_ehp=total_ehp,
        navigation=navigation,
        targeting=targeting,
    )

    deltas = SkillDeltas(
        cpu_total=engineering.cpu_total - eng.cpu_total,
        pg_total=engineering.pg_total - eng.pg_total,
        cap_capacity=capacitor.capacity - cap.capacity,
        cap_recharge=capacitor.recharge_rate - cap.recharge_rate,
        shield_hp=shield.hp - stats.shield.hp,
        armor_hp=armor.hp - stats.armor.hp,
        hull_hp=hull.hp - stats.hull.hp,
        total_ehp=total_ehp - stats.total_ehp,
        max_velocity=navigation.max_velocity - nav.max_velocity,
        inertia_modifier=navigation.inertia_modifier - nav.inertia_modifier,
        align_time=navigation.align_time - calculate_align_time(nav.mass, nav.inertia_modifier),
        max_targets=targeting.max_targets - tgt.max_targets,
        max_target_range=targeting.max_target_range - tgt.max_target_range,
        scan_resolution=targeting.scan_resolution - tgt.scan_resolution,
    )
    return skilled, deltas


def compute_stats_with_skills(
    ship: TypeEntity,
    fitting: Fitting,
    mode: SkillMode,
    skill_map: Optional[Mapping[int, int]] = None,
) -> tuple[ShipStats, Optional[SkillDeltas]]:
    """
    Calculate stats and overlay skills according to mode.

    Args:
        ship: Ship type definition
        fitting: Fitting to calculate
        mode: Skill overlay mode
        skill_map: Character skills, used in my_skills mode

    Returns:
        Tuple of (stats, deltas). Deltas are None when no overlay applied,
        including my_skills mode before the character's skills are known.
    """
    stats = calculate_ship_stats(ship, fitting)

    if mode is SkillMode.NONE:
        return stats, None

    skills = all_v_skill_map() if mode is SkillMode.ALL_V else skill_map
    if skills is None:
        logger.debug("Skill mode %s without a skill map, using base stats", mode.value)
        return stats, None

    return apply_skill_bonuses(stats, skills)

"""
Skill Plan Builder.

Collects the skills a ship and its fitted modules require, resolves their
prerequisite trees through the type data provider, and produces a
three-stage training plan:

1. Minimum: every required skill at its required level
2. Recommended: every skill at IV or better, plus the support skills at IV
3. Mastery: every Recommended skill at V

Lookups run concurrently and fail independently; whatever fails is left
out of the plan.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Optional

from ..core.constants import CATEGORY_SKILL, MAX_SKILL_LEVEL, SKILL_REQ_ATTRS, SUPPORT_SKILL_IDS
from ..core.logging import get_logger
from ..models.stats import SkillPlan, SkillPlanStage, SkillRequirement
from .attributes import attr

if TYPE_CHECKING:
    from ..models.eve import TypeEntity
    from ..models.fitting import Fitting
    from ..services.type_data import TypeLookup

logger = get_logger(__name__)

RECOMMENDED_LEVEL = 4

STAGE_MINIMUM = "Minimum"
STAGE_RECOMMENDED = "Recommended"
STAGE_MASTERY = "Mastery"


# =============================================================================
# Requirement Extraction
# =============================================================================


def extract_skill_requirements(entity: TypeEntity) -> dict[int, int]:
    """
    Read the requiredSkillN / requiredSkillNLevel attribute pairs.

    Returns:
        Dict of skill type ID -> required level (pairs with a zero id or
        level are ignored)
    """
    requirements: dict[int, int] = {}
    for skill_attr, level_attr in SKILL_REQ_ATTRS:
        skill_id = int(attr(entity, skill_attr))
        level = int(attr(entity, level_attr))
        if skill_id > 0 and level > 0:
            requirements[skill_id] = max(level, requirements.get(skill_id, 0))
    return requirements


def _merge_max(target: dict[int, int], source: Mapping[int, int]) -> None:
    """Merge requirements keeping the highest level per skill."""
    for skill_id, level in source.items():
        if level > target.get(skill_id, 0):
            target[skill_id] = level


def fitting_type_ids(fitting: Fitting) -> list[int]:
    """Distinct type IDs of rack modules and drones, in first-seen order."""
    ids: dict[int, None] = {}
    for module in fitting.iter_rack_modules():
        ids[module.type_id] = None
    for drone in fitting.drones:
        ids[drone.type_id] = None
    return list(ids)


# =============================================================================
# Prerequisite Resolution
# =============================================================================


async def _resolve_prerequisites(
    skill_id: int,
    provider: TypeLookup,
    visited: set[int],
    result: dict[int, int],
) -> None:
    """
    Walk the prerequisite tree below skill_id into result.

    visited guards against cycles and repeated subtrees; check-and-add
    happens before the first await so siblings never walk the same node.
    """
    if skill_id in visited:
        return
    visited.add(skill_id)

    try:
        skill_type = await provider.get_type(skill_id)
    except Exception as e:
        logger.warning("Skill %d lookup failed, skipping its prerequisites: %s", skill_id, e)
        return
    if skill_type is None:
        logger.debug("Skill %d not found, skipping its prerequisites", skill_id)
        return

    # Some attribute data points at non-skill types
    if skill_type.category_id is not None and skill_type.category_id != CATEGORY_SKILL:
        logger.warning(
            "Type %d (%s) is listed as a skill requirement but is not a skill",
            skill_id,
            skill_type.name,
        )
        return

    prerequisites = extract_skill_requirements(skill_type)
    _merge_max(result, prerequisites)
    await asyncio.gather(
        *(_resolve_prerequisites(pid, provider, visited, result) for pid in prerequisites)
    )


async def _resolve_names(provider: TypeLookup, skill_ids: Iterable[int]) -> dict[int, str]:
    ids = list(skill_ids)
    results = await asyncio.gather(
        *(provider.get_type(skill_id) for skill_id in ids), return_exceptions=True
    )

    names: dict[int, str] = {}
    for skill_id, result in zip(ids, results):
        if isinstance(result, BaseException):
            logger.warning("Name lookup for skill %d failed: %s", skill_id, result)
        elif result is not None:
            names[skill_id] = result.name
    return names


def _stage(name: str, levels: Mapping[int, int], names: Mapping[int, str]) -> SkillPlanStage:
    skills = [
        SkillRequirement(skill_type_id=skill_id, skill_name=names[skill_id], required_level=level)
        for skill_id, level in levels.items()
        if skill_id in names
    ]
    skills.sort(key=lambda s: (s.skill_name.lower(), s.skill_name))
    return SkillPlanStage(name=name, skills=tuple(skills))


# =============================================================================
# Plan Builder
# =============================================================================


async def build_skill_plan(
    ship: TypeEntity,
    fitting: Fitting,
    provider: TypeLookup,
    support_skill_ids: Optional[Iterable[int]] = None,
) -> SkillPlan:
    """
    Build a three-stage skill plan for a fitting.

    Args:
        ship: Ship type definition
        fitting: Fitting whose rack modules and drones are considered
        provider: Type data source used for module and skill lookups
        support_skill_ids: Skills added to Recommended at IV
            (default: the twelve support skills)

    Returns:
        SkillPlan with Minimum, Recommended and Mastery stages
    """
    support_ids = list(
        SUPPORT_SKILL_IDS.values() if support_skill_ids is None else support_skill_ids
    )

    # 1. Direct requirements from ship + every distinct module type
    module_ids = fitting_type_ids(fitting)
    module_results = await asyncio.gather(
        *(provider.get_type(type_id) for type_id in module_ids), return_exceptions=True
    )

    direct: dict[int, int] = {}
    _merge_max(direct, extract_skill_requirements(ship))
    for type_id, result in zip(module_ids, module_results):
        if isinstance(result, BaseException):
            logger.warning("Module type %d lookup failed: %s", type_id, result)
        elif result is None:
            logger.warning("Module type %d not found, its skills are not in the plan", type_id)
        else:
            _merge_max(direct, extract_skill_requirements(result))

    # 2. Transitive prerequisites
    all_requirements = dict(direct)
    visited: set[int] = set()
    outcomes = await asyncio.gather(
        *(
            _resolve_prerequisites(skill_id, provider, visited, all_requirements)
            for skill_id in direct
        ),
        return_exceptions=True,
    )
    for skill_id, outcome in zip(direct, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Prerequisites for skill %d incomplete: %s", skill_id, outcome)

    # 3. Names for required and support skills
    wanted = list(dict.fromkeys([*all_requirements, *support_ids]))
    names = await _resolve_names(provider, wanted)

    # 4. Stages
    recommended = {
        skill_id: max(level, RECOMMENDED_LEVEL) for skill_id, level in all_requirements.items()
    }
    for support_id in support_ids:
        recommended[support_id] = max(recommended.get(support_id, 0), RECOMMENDED_LEVEL)
    mastery = {skill_id: MAX_SKILL_LEVEL for skill_id in recommended}

    plan = SkillPlan(
        stages=(
            _stage(STAGE_MINIMUM, all_requirements, names),
            _stage(STAGE_RECOMMENDED, recommended, names),
            _stage(STAGE_MASTERY, mastery, names),
        )
    )
    logger.info(
        "Skill plan for %s: %d minimum, %d recommended skills",
        ship.name,
        plan.minimum.total,
        plan.recommended.total,
    )
    return plan

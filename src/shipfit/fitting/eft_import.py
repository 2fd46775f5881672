"""
EFT Import Flow.

Turns pasted EFT text into a Fitting bound to its ship type:

1. Quick format check, then parse into positional sections
2. Resolve every ship, module, drone, cargo and charge name in one batch
3. Verify the ship name resolves to a type in the Ship category
4. Resolve each section's types concurrently
5. Assemble racks, drones and cargo

Lines whose names do not resolve are skipped and reported as warnings
rather than failing the import.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..core.constants import CATEGORY_SHIP
from ..core.logging import get_logger
from ..models.fitting import (
    Charge,
    FittedModule,
    ModuleData,
    ModuleState,
    SlotCounts,
    SlotType,
    create_empty_fitting,
)
from .eft_parser import (
    EFTFormatError,
    EFTLine,
    EFTParseError,
    looks_like_eft,
    parse_eft,
    unique_item_names,
)
from .slots import slot_counts_from_ship

if TYPE_CHECKING:
    from ..models.eve import TypeEntity
    from ..models.fitting import Fitting
    from ..services.type_data import TypeLookup

logger = get_logger(__name__)


class EFTImportError(EFTParseError):
    """Raised when parsed EFT text cannot be bound to a ship."""


@dataclass
class EFTImportResult:
    """Imported fitting, its ship type, and the lines that were dropped."""

    fitting: Fitting
    ship: TypeEntity
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _ResolvedLine:
    line: EFTLine
    entity: TypeEntity
    charge: Optional[Charge]


# =============================================================================
# Section Resolution
# =============================================================================


async def _resolve_line(
    line: EFTLine,
    name_map: Mapping[str, int],
    provider: TypeLookup,
    warnings: list[str],
) -> Optional[_ResolvedLine]:
    type_id = name_map.get(line.name.lower())
    if type_id is None:
        warnings.append(f"Unknown item: {line.name}")
        return None

    entity = await provider.get_type(type_id)
    if entity is None:
        warnings.append(f"Could not load type data for {line.name}")
        return None

    charge: Optional[Charge] = None
    if line.charge:
        charge_id = name_map.get(line.charge.lower())
        charge_type = await provider.get_type(charge_id) if charge_id is not None else None
        if charge_type is None:
            warnings.append(f"Unknown charge {line.charge} on {line.name}, loaded empty")
        else:
            charge = Charge(type_id=charge_type.type_id, name=charge_type.name)

    return _ResolvedLine(line=line, entity=entity, charge=charge)


async def _resolve_section(
    lines: Sequence[EFTLine],
    name_map: Mapping[str, int],
    provider: TypeLookup,
    warnings: list[str],
) -> list[_ResolvedLine]:
    resolved = await asyncio.gather(
        *(_resolve_line(line, name_map, provider, warnings) for line in lines)
    )
    return [item for item in resolved if item is not None]


def _module_data(item: _ResolvedLine, slot_type: SlotType) -> ModuleData:
    if slot_type.has_fixed_state:
        state = ModuleState.PASSIVE
    elif item.line.offline:
        state = ModuleState.OFFLINE
    else:
        state = ModuleState.ACTIVE
    return ModuleData.from_type(item.entity, state=state, charge=item.charge)


def _fill_rack(fitting: Fitting, slot_type: SlotType, items: Sequence[_ResolvedLine]) -> None:
    rack = fitting.rack(slot_type)
    for index, item in enumerate(items):
        rack[index] = FittedModule.place(_module_data(item, slot_type), slot_type, index)


# =============================================================================
# Import
# =============================================================================


async def import_eft(text: str, provider: TypeLookup) -> EFTImportResult:
    """
    Import EFT text as a new Fitting.

    Args:
        text: EFT format fitting string
        provider: Type data source for name resolution and type lookups

    Returns:
        EFTImportResult with the fitting, ship type and skipped-line warnings

    Raises:
        EFTFormatError: If the text is not EFT or the header is malformed
        EFTImportError: If the ship name does not resolve to a ship
    """
    if not looks_like_eft(text):
        raise EFTFormatError("Text does not start with an EFT header [Ship Name, Fit Name]", 1)

    parsed = parse_eft(text)
    name_map = await provider.resolve_names(sorted(unique_item_names(parsed)))

    ship_id = name_map.get(parsed.ship_name.lower())
    if ship_id is None:
        raise EFTImportError(f"Unknown ship type: {parsed.ship_name}", 1)

    ship = await provider.get_type(ship_id)
    if ship is None:
        raise EFTImportError(f"Could not load type data for ship {parsed.ship_name}", 1)
    if ship.category_id != CATEGORY_SHIP:
        raise EFTImportError(f"{parsed.ship_name} is not a ship", 1)

    warnings: list[str] = []
    sections = (
        parsed.low_slots,
        parsed.mid_slots,
        parsed.high_slots,
        parsed.rig_slots,
        parsed.subsystems,
        parsed.drones,
        parsed.cargo,
    )
    low, mid, high, rigs, subsystems, drones, cargo = await asyncio.gather(
        *(_resolve_section(lines, name_map, provider, warnings) for lines in sections)
    )

    derived = slot_counts_from_ship(ship)
    slot_counts = SlotCounts(
        high=max(derived.high, len(high)),
        mid=max(derived.mid, len(mid)),
        low=max(derived.low, len(low)),
        rig=max(derived.rig, len(rigs)),
        subsystem=len(subsystems),
    )
    fitting = create_empty_fitting(
        ship_type_id=ship.type_id,
        ship_name=ship.name,
        slot_counts=slot_counts,
        ship_group_id=ship.group_id,
        name=parsed.fit_name,
    )

    _fill_rack(fitting, SlotType.LOW, low)
    _fill_rack(fitting, SlotType.MID, mid)
    _fill_rack(fitting, SlotType.HIGH, high)
    _fill_rack(fitting, SlotType.RIG, rigs)
    _fill_rack(fitting, SlotType.SUBSYSTEM, subsystems)

    for item in drones:
        data = ModuleData.from_type(item.entity)
        for _ in range(item.line.count):
            fitting.drones.append(
                FittedModule.place(data, SlotType.DRONE, len(fitting.drones))
            )

    for item in cargo:
        fitting.cargo.append(
            FittedModule.place(
                ModuleData.from_type(item.entity),
                SlotType.CARGO,
                len(fitting.cargo),
                quantity=item.line.count,
            )
        )

    for warning in warnings:
        logger.warning("EFT import of %s: %s", parsed.fit_name, warning)
    logger.info(
        "Imported %s (%s): %d modules, %d drones, %d skipped lines",
        parsed.fit_name,
        ship.name,
        sum(1 for _ in fitting.iter_rack_modules()),
        len(fitting.drones),
        len(warnings),
    )
    return EFTImportResult(fitting=fitting, ship=ship, warnings=warnings)

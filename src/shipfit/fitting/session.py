"""
Fitting Session.

Holds the fitting being edited together with its ship type and the stats
derived from them. Every mutation works on a clone of the current fitting,
swaps the clone in, and recomputes stats before returning, so a fitting
object handed out by the session is never changed afterwards and stats
always describe the current fitting.

Usage:
    session = FittingSession()
    session.set_ship(rifter)
    session.place(SlotType.HIGH, 0, ModuleData.from_type(autocannon))
    print(session.stats.offense.total_dps)
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Optional

from ..core.config import get_settings
from ..core.constants import EFFECT_LAUNCHER_FITTED, EFFECT_TURRET_FITTED
from ..core.logging import get_logger
from ..models.fitting import (
    Charge,
    FittedModule,
    Fitting,
    ModuleData,
    SlotCounts,
    SlotType,
    create_empty_fitting,
)
from .skills import SkillMap, SkillMode, compute_stats_with_skills
from .slots import slot_counts_from_ship

if TYPE_CHECKING:
    from pathlib import Path

    from ..models.eve import TypeEntity
    from ..models.stats import ShipStats, SkillDeltas
    from .storage import FittingRepository

logger = get_logger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class FittingSessionError(Exception):
    """Base exception for fitting session operations."""

    pass


class NoShipSelectedError(FittingSessionError):
    """Raised when a fitting operation runs before a ship is selected."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: no ship selected")


class SlotIndexError(FittingSessionError, IndexError):
    """Raised when a slot index is outside its rack or list."""

    def __init__(self, slot_type: SlotType, index: int, size: int):
        self.slot_type = slot_type
        self.index = index
        self.size = size
        super().__init__(f"{slot_type.value} index {index} out of range (size {size})")


def _check_index(slot_type: SlotType, index: int, size: int) -> None:
    if not 0 <= index < size:
        raise SlotIndexError(slot_type, index, size)


def _hardpoint_effect(data: ModuleData) -> Optional[int]:
    """Turret or launcher effect carried by a module, if any."""
    if EFFECT_TURRET_FITTED in data.effects:
        return EFFECT_TURRET_FITTED
    if EFFECT_LAUNCHER_FITTED in data.effects:
        return EFFECT_LAUNCHER_FITTED
    return None


# =============================================================================
# Session
# =============================================================================


class FittingSession:
    """
    Editable fitting with always-current stats.

    Thread-safe: mutations are serialized by an internal lock.
    """

    def __init__(
        self,
        skill_mode: Optional[SkillMode] = None,
        skill_map: Optional[Mapping[int, int]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._fitting: Optional[Fitting] = None
        self._ship: Optional[TypeEntity] = None
        self._stats: Optional[ShipStats] = None
        self._skill_deltas: Optional[SkillDeltas] = None
        self._skill_mode = skill_mode or SkillMode(get_settings().skill_mode)
        self._skill_map: Optional[SkillMap] = dict(skill_map) if skill_map is not None else None
        self._dirty = False

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def fitting(self) -> Optional[Fitting]:
        return self._fitting

    @property
    def ship(self) -> Optional[TypeEntity]:
        return self._ship

    @property
    def stats(self) -> Optional[ShipStats]:
        return self._stats

    @property
    def skill_deltas(self) -> Optional[SkillDeltas]:
        return self._skill_deltas

    @property
    def skill_mode(self) -> SkillMode:
        return self._skill_mode

    @property
    def skill_map(self) -> Optional[SkillMap]:
        return dict(self._skill_map) if self._skill_map is not None else None

    @property
    def dirty(self) -> bool:
        """True when the fitting changed since it was selected, loaded or saved."""
        return self._dirty

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _recompute(self) -> None:
        """Recalculate stats for the current fitting. Caller holds the lock."""
        if self._fitting is None or self._ship is None:
            self._stats = None
            self._skill_deltas = None
            return
        self._stats, self._skill_deltas = compute_stats_with_skills(
            self._ship, self._fitting, self._skill_mode, self._skill_map
        )

    def _mutate(self, operation: str, change: Callable[[Fitting], bool]) -> bool:
        """
        Apply change to a clone of the fitting and swap it in.

        change returns False to signal a no-op, in which case the current
        fitting, stats and dirty flag are left untouched.
        """
        with self._lock:
            if self._fitting is None or self._ship is None:
                raise NoShipSelectedError(operation)
            updated = self._fitting.clone()
            if not change(updated):
                return False
            updated.touch()
            self._fitting = updated
            self._recompute()
            self._dirty = True
            return True

    # -------------------------------------------------------------------------
    # Ship selection
    # -------------------------------------------------------------------------

    def set_ship(self, ship: TypeEntity, slot_counts: Optional[SlotCounts] = None) -> Fitting:
        """
        Start a new empty fitting for a ship.

        Args:
            ship: Ship type definition
            slot_counts: Rack sizes (default: derived from ship attributes)

        Returns:
            The new fitting
        """
        counts = slot_counts or slot_counts_from_ship(ship)
        with self._lock:
            self._ship = ship
            self._fitting = create_empty_fitting(
                ship_type_id=ship.type_id,
                ship_name=ship.name,
                slot_counts=counts,
                ship_group_id=ship.group_id,
            )
            self._recompute()
            self._dirty = False
            logger.debug("Selected ship %s (%d)", ship.name, ship.type_id)
            return self._fitting

    def clear_ship(self) -> None:
        """Drop the ship, fitting and stats."""
        with self._lock:
            self._ship = None
            self._fitting = None
            self._stats = None
            self._skill_deltas = None
            self._dirty = False

    def import_fitting(self, fitting: Fitting, ship: TypeEntity) -> None:
        """
        Replace the session state with an existing fitting.

        The session keeps its own copy; later changes to fitting are not seen.

        Raises:
            ValueError: If the fitting belongs to a different ship type
        """
        if fitting.ship_type_id != ship.type_id:
            raise ValueError(
                f"Fitting is for ship type {fitting.ship_type_id}, not {ship.type_id}"
            )
        with self._lock:
            self._ship = ship
            self._fitting = fitting.clone()
            self._recompute()
            self._dirty = True

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def set_fit_name(self, name: str) -> None:
        def change(fitting: Fitting) -> bool:
            fitting.name = name
            return True

        self._mutate("rename fitting", change)

    def set_description(self, description: str) -> None:
        def change(fitting: Fitting) -> bool:
            fitting.description = description
            return True

        self._mutate("set description", change)

    def set_tags(self, tags: Iterable[str]) -> None:
        tag_list = list(tags)

        def change(fitting: Fitting) -> bool:
            fitting.tags = tag_list
            return True

        self._mutate("set tags", change)

    # -------------------------------------------------------------------------
    # Rack operations
    # -------------------------------------------------------------------------

    def place(self, slot_type: SlotType, index: int, data: ModuleData) -> None:
        """
        Place a new module instance at a rack position, replacing any occupant.

        Raises:
            NoShipSelectedError: If no ship is selected
            SlotIndexError: If index is outside the rack
            ValueError: If slot_type is drone or cargo
        """

        def change(fitting: Fitting) -> bool:
            rack = fitting.rack(slot_type)
            _check_index(slot_type, index, len(rack))
            rack[index] = FittedModule.place(data, slot_type, index)
            return True

        self._mutate("place module", change)

    def fill_slots(self, slot_type: SlotType, data: ModuleData) -> int:
        """
        Place new instances of a module into every empty slot of a rack.

        Turret and launcher modules stop at the ship's hardpoint count,
        counting the matching modules already in the rack.

        Returns:
            Number of slots filled (0 leaves the session untouched)
        """
        hardpoint = _hardpoint_effect(data)
        filled = 0

        def change(fitting: Fitting) -> bool:
            nonlocal filled
            rack = fitting.rack(slot_type)
            limit: Optional[int] = None
            used = 0
            if hardpoint is not None and self._stats is not None:
                limit = (
                    self._stats.turret_hardpoints
                    if hardpoint == EFFECT_TURRET_FITTED
                    else self._stats.launcher_hardpoints
                )
                used = sum(1 for m in rack if m is not None and hardpoint in m.effects)

            for index, module in enumerate(rack):
                if module is not None:
                    continue
                if limit is not None and used + filled >= limit:
                    break
                rack[index] = FittedModule.place(data, slot_type, index)
                filled += 1
            return filled > 0

        self._mutate("fill slots", change)
        logger.debug("Filled %d %s slots with %s", filled, slot_type.value, data.name)
        return filled

    def remove_module(self, slot_type: SlotType, index: int) -> None:
        """Clear a rack position."""

        def change(fitting: Fitting) -> bool:
            rack = fitting.rack(slot_type)
            _check_index(slot_type, index, len(rack))
            rack[index] = None
            return True

        self._mutate("remove module", change)

    def toggle_state(self, slot_type: SlotType, index: int) -> None:
        """
        Cycle a module active -> passive -> offline -> active.

        Empty slots are ignored. Rig and subsystem modules keep their fixed
        passive state.
        """
        if slot_type.has_fixed_state:
            logger.warning("Ignoring state toggle on %s slot %d", slot_type.value, index)
            return

        def change(fitting: Fitting) -> bool:
            rack = fitting.rack(slot_type)
            _check_index(slot_type, index, len(rack))
            module = rack[index]
            if module is None:
                return False
            module.state = module.state.next()
            return True

        self._mutate("toggle module state", change)

    def set_charge(self, slot_type: SlotType, index: int, charge: Optional[Charge]) -> None:
        """Load a charge into a module, or unload it with None."""

        def change(fitting: Fitting) -> bool:
            rack = fitting.rack(slot_type)
            _check_index(slot_type, index, len(rack))
            module = rack[index]
            if module is None:
                return False
            module.charge = charge
            return True

        self._mutate("set charge", change)

    # -------------------------------------------------------------------------
    # Drones and cargo
    # -------------------------------------------------------------------------

    def add_drone(self, data: ModuleData) -> None:
        def change(fitting: Fitting) -> bool:
            fitting.drones.append(FittedModule.place(data, SlotType.DRONE, len(fitting.drones)))
            return True

        self._mutate("add drone", change)

    def remove_drone(self, index: int) -> None:
        def change(fitting: Fitting) -> bool:
            _check_index(SlotType.DRONE, index, len(fitting.drones))
            del fitting.drones[index]
            fitting.reindex_lists()
            return True

        self._mutate("remove drone", change)

    def add_cargo(self, data: ModuleData, quantity: int = 1) -> None:
        if quantity < 1:
            raise ValueError(f"Cargo quantity must be positive, got {quantity}")

        def change(fitting: Fitting) -> bool:
            fitting.cargo.append(
                FittedModule.place(data, SlotType.CARGO, len(fitting.cargo), quantity=quantity)
            )
            return True

        self._mutate("add cargo", change)

    def remove_cargo(self, index: int) -> None:
        def change(fitting: Fitting) -> bool:
            _check_index(SlotType.CARGO, index, len(fitting.cargo))
            del fitting.cargo[index]
            fitting.reindex_lists()
            return True

        self._mutate("remove cargo", change)

    # -------------------------------------------------------------------------
    # Skills
    # -------------------------------------------------------------------------

    def set_skill_mode(self, mode: SkillMode) -> None:
        with self._lock:
            self._skill_mode = mode
            self._recompute()

    def set_my_skills(self, skill_map: Mapping[int, int]) -> None:
        """Store the character's skills used by my_skills mode."""
        with self._lock:
            self._skill_map = dict(skill_map)
            self._recompute()

    def recompute_stats(self) -> Optional[ShipStats]:
        with self._lock:
            self._recompute()
            return self._stats

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, repository: FittingRepository) -> Path:
        """Write the current fitting to a repository and clear the dirty flag."""
        with self._lock:
            if self._fitting is None:
                raise NoShipSelectedError("save fitting")
            path = repository.save(self._fitting)
            self._dirty = False
            return path

    def load(self, repository: FittingRepository, fitting_id: str, ship: TypeEntity) -> Fitting:
        """
        Load a saved fitting into the session.

        Raises:
            KeyError: If the repository has no such fitting
            ValueError: If the fitting belongs to a different ship type
        """
        fitting = repository.load(fitting_id)
        self.import_fitting(fitting, ship)
        with self._lock:
            self._dirty = False
            return self._fitting

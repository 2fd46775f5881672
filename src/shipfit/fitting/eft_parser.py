"""
EFT (EVE Fitting Tool) Format Parser and Serializer.

The EFT format is the plain-text interchange format exported by the EVE
client and third-party fitting tools.

EFT Format Example:
    [Hurricane, My Hurricane Fit]
    Gyrostabilizer II
    Gyrostabilizer II
    Damage Control II

    50MN Microwarpdrive II
    Large Shield Extender II

    720mm Howitzer Artillery II, Republic Fleet EMP M
    720mm Howitzer Artillery II, Republic Fleet EMP M

    Medium Core Defense Field Extender I


    Warrior II x5

Sections are separated by blank lines and mapped by position:
1. Header: [Ship Type, Fit Name]
2. Low slots
3. Mid slots
4. High slots
5. Rigs
6. Subsystems (T3 cruisers only)
7. Drones (with "xN" quantity)
8. Cargo (with "xN" quantity)

A category with nothing in it produces no section, so a missing low
section cannot be told apart from an empty one. Empty-slot markers are
dropped and never used to infer which section is which.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..core.logging import get_logger
from ..models.fitting import FittedModule, ModuleState, SlotCounts

if TYPE_CHECKING:
    from ..models.fitting import Fitting

logger = get_logger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class EFTParseError(Exception):
    """Raised when EFT parsing fails."""

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number


class EFTFormatError(EFTParseError):
    """Raised when the header is not [Ship Name, Fit Name]."""


# =============================================================================
# Regex Patterns
# =============================================================================

# Header pattern: [Ship Type, Fit Name]
HEADER_PATTERN = re.compile(r"^\[(?P<ship_type>.+?),\s*(?P<fit_name>.+?)\]$")

# Loose header check used by looks_like_eft()
HEADER_PREFIX_PATTERN = re.compile(r"^\[.+,\s*.+\]")

# Drone/Cargo pattern: Item Name x5
QUANTITY_PATTERN = re.compile(r"^(?P<type_name>.+?)\s+x(?P<quantity>\d+)$")

# Offline marker: Module Name /OFFLINE
OFFLINE_PATTERN = re.compile(r"\s*/\s*offline$", re.IGNORECASE)

# Empty slot marker
EMPTY_SLOT_PATTERN = re.compile(r"^\[empty\b[^\]]*\]$", re.IGNORECASE)

OFFLINE_SUFFIX = "/OFFLINE"


# =============================================================================
# Parsed Types
# =============================================================================


@dataclass(frozen=True)
class EFTLine:
    """One item line: name with optional charge, quantity and offline flag."""

    name: str
    charge: Optional[str] = None
    quantity: Optional[int] = None
    offline: bool = False

    @property
    def count(self) -> int:
        """Quantity, defaulting to 1."""
        return self.quantity if self.quantity is not None else 1


@dataclass(frozen=True)
class ParsedEFT:
    """EFT fitting split into its positional sections."""

    ship_name: str
    fit_name: str
    low_slots: tuple[EFTLine, ...] = ()
    mid_slots: tuple[EFTLine, ...] = ()
    high_slots: tuple[EFTLine, ...] = ()
    rig_slots: tuple[EFTLine, ...] = ()
    subsystems: tuple[EFTLine, ...] = ()
    drones: tuple[EFTLine, ...] = ()
    cargo: tuple[EFTLine, ...] = ()

    def all_lines(self) -> list[EFTLine]:
        return [
            *self.low_slots,
            *self.mid_slots,
            *self.high_slots,
            *self.rig_slots,
            *self.subsystems,
            *self.drones,
            *self.cargo,
        ]


# =============================================================================
# Parser
# =============================================================================


def parse_eft_line(line: str) -> Optional[EFTLine]:
    """
    Parse a single EFT item line.

    Formats:
        "Module Name"
        "Module Name, Charge Name"
        "Item Name x5"              (drones/cargo with quantity)
        "Module Name, Charge x5"    (rare but valid)
        "Module Name /OFFLINE"

    Returns:
        EFTLine, or None for blank lines and empty-slot markers
    """
    line = line.strip()
    if not line or EMPTY_SLOT_PATTERN.match(line):
        return None

    offline = False
    offline_match = OFFLINE_PATTERN.search(line)
    if offline_match:
        offline = True
        line = line[: offline_match.start()].strip()

    quantity: Optional[int] = None
    quantity_match = QUANTITY_PATTERN.match(line)
    if quantity_match:
        line = quantity_match.group("type_name").strip()
        quantity = int(quantity_match.group("quantity"))

    name, sep, charge = line.partition(",")
    if sep:
        return EFTLine(
            name=name.strip(), charge=charge.strip() or None, quantity=quantity, offline=offline
        )
    return EFTLine(name=line.strip(), quantity=quantity, offline=offline)


def parse_eft(eft_string: str) -> ParsedEFT:
    """
    Parse an EFT format fitting string.

    Args:
        eft_string: EFT format fitting string

    Returns:
        ParsedEFT with every section as a tuple of EFTLine

    Raises:
        EFTFormatError: If the header is missing or malformed
    """
    lines = eft_string.strip().splitlines()
    if not lines:
        raise EFTFormatError("Empty fitting string", 1)

    header_line = lines[0].strip()
    header_match = HEADER_PATTERN.match(header_line)
    if not header_match:
        raise EFTFormatError(
            f'Invalid EFT header: "{header_line}". Expected format: [Ship Name, Fit Name]', 1
        )

    ship_name = header_match.group("ship_type").strip()
    fit_name = header_match.group("fit_name").strip()
    if not ship_name or not fit_name:
        raise EFTFormatError("EFT header needs both a ship name and a fit name", 1)

    sections: list[list[EFTLine]] = []
    current: list[EFTLine] = []

    for line in lines[1:]:
        stripped = line.strip()
        if not stripped:
            # Blank lines only close a section that has content
            if current:
                sections.append(current)
                current = []
            continue

        parsed = parse_eft_line(stripped)
        if parsed is not None:
            current.append(parsed)

    if current:
        sections.append(current)

    def section(index: int) -> tuple[EFTLine, ...]:
        return tuple(sections[index]) if index < len(sections) else ()

    if len(sections) > 7:
        logger.warning(
            "EFT text for %s has %d sections, ignoring everything after cargo",
            ship_name,
            len(sections),
        )

    parsed_fit = ParsedEFT(
        ship_name=ship_name,
        fit_name=fit_name,
        low_slots=section(0),
        mid_slots=section(1),
        high_slots=section(2),
        rig_slots=section(3),
        subsystems=section(4),
        drones=section(5),
        cargo=section(6),
    )
    logger.debug(
        "Parsed EFT [%s, %s]: %d sections, %d lines",
        ship_name,
        fit_name,
        len(sections),
        len(parsed_fit.all_lines()),
    )
    return parsed_fit


# =============================================================================
# Validation
# =============================================================================


def looks_like_eft(text: str) -> bool:
    """Quick check whether text starts with an EFT header. Not a full parse."""
    return HEADER_PREFIX_PATTERN.match(text.strip()) is not None


def unique_item_names(parsed: ParsedEFT) -> set[str]:
    """Ship name plus every item and charge name, for bulk name resolution."""
    names = {parsed.ship_name}
    for item in parsed.all_lines():
        names.add(item.name)
        if item.charge:
            names.add(item.charge)
    return names


# =============================================================================
# Serializer
# =============================================================================


def format_eft_line(item: EFTLine) -> str:
    """Format one item line. The quantity suffix is only written above 1."""
    line = item.name
    if item.charge:
        line += f", {item.charge}"
    if item.quantity is not None and item.quantity > 1:
        line += f" x{item.quantity}"
    if item.offline:
        line += f" {OFFLINE_SUFFIX}"
    return line


def _append_rack(
    lines: list[str], items: Sequence[EFTLine], slot_count: Optional[int], label: str
) -> None:
    count = len(items) if slot_count is None else slot_count
    for i in range(count):
        if i < len(items):
            lines.append(format_eft_line(items[i]))
        else:
            lines.append(f"[Empty {label} slot]")


def serialize_eft(parsed: ParsedEFT, slot_counts: Optional[SlotCounts] = None) -> str:
    """
    Serialize a fitting to EFT format text.

    Racks are padded with empty-slot markers up to slot_counts. Subsystems
    are omitted when empty. Drones are preceded by two blank lines.

    Args:
        parsed: Sections to write
        slot_counts: Rack sizes to pad to (default: no padding)

    Returns:
        EFT text (no trailing newline)
    """
    lines = [f"[{parsed.ship_name}, {parsed.fit_name}]"]

    _append_rack(lines, parsed.low_slots, slot_counts.low if slot_counts else None, "Low")
    lines.append("")
    _append_rack(lines, parsed.mid_slots, slot_counts.mid if slot_counts else None, "Mid")
    lines.append("")
    _append_rack(lines, parsed.high_slots, slot_counts.high if slot_counts else None, "High")
    lines.append("")
    _append_rack(lines, parsed.rig_slots, slot_counts.rig if slot_counts else None, "Rig")

    if parsed.subsystems:
        lines.append("")
        lines.extend(format_eft_line(sub) for sub in parsed.subsystems)

    if parsed.drones:
        lines.append("")
        lines.append("")
        lines.extend(format_eft_line(drone) for drone in parsed.drones)

    if parsed.cargo:
        lines.append("")
        lines.extend(format_eft_line(item) for item in parsed.cargo)

    return "\n".join(lines)


# =============================================================================
# Fitting Export
# =============================================================================


def _rack_lines(rack: Iterable[Optional[FittedModule]]) -> tuple[EFTLine, ...]:
    return tuple(
        EFTLine(
            name=module.name,
            charge=module.charge.name if module.charge else None,
            offline=module.state is ModuleState.OFFLINE,
        )
        for module in rack
        if module is not None
    )


def _grouped_lines(items: Iterable[FittedModule]) -> tuple[EFTLine, ...]:
    """Collapse repeated entries into one "Name xN" line, keeping first-seen order."""
    counts: dict[str, int] = {}
    for item in items:
        counts[item.name] = counts.get(item.name, 0) + item.quantity
    return tuple(EFTLine(name=name, quantity=count) for name, count in counts.items())


def fitting_to_eft(fitting: Fitting) -> str:
    """
    Export a Fitting as EFT text.

    Racks are padded to the fitting's rack lengths; drones and cargo are
    grouped by name.
    """
    parsed = ParsedEFT(
        ship_name=fitting.ship_name,
        fit_name=fitting.name or fitting.ship_name,
        low_slots=_rack_lines(fitting.low_slots),
        mid_slots=_rack_lines(fitting.mid_slots),
        high_slots=_rack_lines(fitting.high_slots),
        rig_slots=_rack_lines(fitting.rig_slots),
        subsystems=_rack_lines(fitting.subsystem_slots),
        drones=_grouped_lines(fitting.drones),
        cargo=_grouped_lines(fitting.cargo),
    )
    return serialize_eft(parsed, fitting.slot_counts)

"""
shipfit Fitting Commands

EFT validation, stat calculation, skill plans and fitting export.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from ..fitting.eft_import import EFTImportResult, import_eft
from ..fitting.eft_parser import EFTParseError, fitting_to_eft, parse_eft
from ..fitting.esi_convert import fitting_to_esi_items
from ..fitting.skill_plan import build_skill_plan
from ..fitting.skills import SkillMode, compute_stats_with_skills
from ..models.fitting import Fitting, utc_now_iso
from ..models.stats import SkillPlan
from ..services.type_data import open_type_provider

# =============================================================================
# Helpers
# =============================================================================


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _error(error: str, message: str, **extra: Any) -> dict[str, Any]:
    result = {"error": error, "message": message, "query_timestamp": utc_now_iso()}
    result.update(extra)
    return result


def _parse_error(e: EFTParseError) -> dict[str, Any]:
    return _error("eft_parse_error", str(e), line_number=e.line_number)


async def _import(text: str) -> EFTImportResult:
    async with open_type_provider() as provider:
        return await import_eft(text, provider)


# =============================================================================
# Commands
# =============================================================================


def cmd_eft_check(args: argparse.Namespace) -> dict[str, Any]:
    """
    Parse an EFT file without resolving any names.

    Reports the ship, fit name and the number of lines per section.
    """
    try:
        parsed = parse_eft(_read_text(args.file))
    except EFTParseError as e:
        return _parse_error(e)

    return {
        "query_timestamp": utc_now_iso(),
        "valid": True,
        "ship": parsed.ship_name,
        "fit_name": parsed.fit_name,
        "sections": {
            "low": len(parsed.low_slots),
            "mid": len(parsed.mid_slots),
            "high": len(parsed.high_slots),
            "rig": len(parsed.rig_slots),
            "subsystem": len(parsed.subsystems),
            "drones": sum(line.count for line in parsed.drones),
            "cargo": sum(line.count for line in parsed.cargo),
        },
    }


def cmd_stats(args: argparse.Namespace) -> dict[str, Any]:
    """
    Import an EFT file and calculate its stats.

    Resolves names and type data through ESI.
    """
    try:
        result = asyncio.run(_import(_read_text(args.file)))
    except EFTParseError as e:
        return _parse_error(e)

    mode = SkillMode(args.skills)
    stats, deltas = compute_stats_with_skills(result.ship, result.fitting, mode)
    return {
        "query_timestamp": utc_now_iso(),
        "ship": result.ship.name,
        "fit_name": result.fitting.name,
        "skill_mode": mode.value,
        "stats": stats.to_dict(),
        "skill_deltas": deltas.to_dict() if deltas else None,
        "warnings": result.warnings,
    }


def cmd_skill_plan(args: argparse.Namespace) -> dict[str, Any]:
    """Import an EFT file and build its three-stage skill plan."""

    async def run() -> tuple[EFTImportResult, SkillPlan]:
        async with open_type_provider() as provider:
            imported = await import_eft(_read_text(args.file), provider)
            plan = await build_skill_plan(imported.ship, imported.fitting, provider)
            return imported, plan

    try:
        imported, plan = asyncio.run(run())
    except EFTParseError as e:
        return _parse_error(e)

    return {
        "query_timestamp": utc_now_iso(),
        "ship": imported.ship.name,
        "fit_name": imported.fitting.name,
        "plan": plan.to_dict(),
        "warnings": imported.warnings,
    }


def cmd_export(args: argparse.Namespace) -> dict[str, Any]:
    """Export a saved fitting JSON document as EFT text and ESI items."""
    try:
        data = json.loads(_read_text(args.file))
        fitting = Fitting.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        return _error("invalid_fitting", f"Could not read fitting: {e}", file=args.file)

    return {
        "query_timestamp": utc_now_iso(),
        "fitting_id": fitting.id,
        "eft": fitting_to_eft(fitting),
        "esi_items": fitting_to_esi_items(fitting),
    }


# =============================================================================
# Parser Registration
# =============================================================================


def register_parsers(subparsers) -> None:
    """Register fitting command parsers."""

    check_parser = subparsers.add_parser(
        "eft-check",
        help="Validate an EFT file (offline)",
    )
    check_parser.add_argument("file", help="Path to EFT text file")
    check_parser.set_defaults(func=cmd_eft_check)

    stats_parser = subparsers.add_parser(
        "stats",
        help="Calculate fitting stats from an EFT file",
    )
    stats_parser.add_argument("file", help="Path to EFT text file")
    stats_parser.add_argument(
        "--skills",
        choices=[SkillMode.NONE.value, SkillMode.ALL_V.value],
        default=SkillMode.ALL_V.value,
        help="Skill overlay (default: all_v)",
    )
    stats_parser.set_defaults(func=cmd_stats)

    plan_parser = subparsers.add_parser(
        "skill-plan",
        help="Build a Minimum/Recommended/Mastery skill plan for an EFT file",
    )
    plan_parser.add_argument("file", help="Path to EFT text file")
    plan_parser.set_defaults(func=cmd_skill_plan)

    export_parser = subparsers.add_parser(
        "export",
        help="Export a saved fitting JSON as EFT text and ESI items",
    )
    export_parser.add_argument("file", help="Path to fitting JSON document")
    export_parser.set_defaults(func=cmd_export)

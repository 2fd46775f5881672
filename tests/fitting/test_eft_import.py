"""
Tests for importing EFT text into fittings.
"""

from __future__ import annotations

import pytest

from shipfit.fitting.eft_import import EFTImportError, import_eft
from shipfit.fitting.eft_parser import EFTFormatError, EFTParseError
from shipfit.models.fitting import Charge, ModuleState, SlotType

RIFTER_EFT = """[Rifter, PvE Rifter]
Damage Control II

1MN Afterburner II /OFFLINE

125mm Gatling AutoCannon II, EMP S
125mm Gatling AutoCannon II, EMP S
Rocket Launcher II

Small Projectile Burst Aerator I


Hobgoblin I x2

EMP S x200
"""


@pytest.mark.asyncio
class TestImportEft:
    """Test import_eft with an in-memory provider."""

    async def test_full_import(self, fake_provider):
        result = await import_eft(RIFTER_EFT, fake_provider)
        fitting = result.fitting

        assert result.warnings == []
        assert result.ship.name == "Rifter"
        assert fitting.name == "PvE Rifter"
        assert fitting.ship_type_id == 587
        assert fitting.slot_counts.high == 4
        assert fitting.low_slots[0].name == "Damage Control II"
        assert fitting.high_slots[2].name == "Rocket Launcher II"
        assert fitting.high_slots[3] is None

    async def test_charges_and_states(self, fake_provider):
        fitting = (await import_eft(RIFTER_EFT, fake_provider)).fitting

        assert fitting.high_slots[0].charge == Charge(185, "EMP S")
        assert fitting.high_slots[0].state is ModuleState.ACTIVE
        assert fitting.mid_slots[0].state is ModuleState.OFFLINE
        assert fitting.rig_slots[0].state is ModuleState.PASSIVE

    async def test_positional_sections_after_rigs(self, fake_provider):
        """With no subsystems, the section after rigs is read as subsystems."""
        fitting = (await import_eft(RIFTER_EFT, fake_provider)).fitting

        assert fitting.slot_counts.subsystem == 1
        assert fitting.subsystem_slots[0].name == "Hobgoblin I"
        assert fitting.drones[0].name == "EMP S"

    async def test_drones_and_cargo(self, fake_provider):
        text = (
            "[Rifter, Drones]\nDamage Control II\n\n1MN Afterburner II\n\n"
            "125mm Gatling AutoCannon II\n\nSmall Projectile Burst Aerator I\n\n"
            "Hobgoblin I\n\nHobgoblin I x2\n\nEMP S x200"
        )

        fitting = (await import_eft(text, fake_provider)).fitting

        assert [d.slot_index for d in fitting.drones] == [0, 1]
        assert all(d.slot_type is SlotType.DRONE for d in fitting.drones)
        assert len(fitting.cargo) == 1
        assert fitting.cargo[0].quantity == 200

    async def test_names_resolved_in_one_batch(self, fake_provider):
        await import_eft(RIFTER_EFT, fake_provider)

        assert len(fake_provider.resolve_calls) == 1
        assert "Rifter" in fake_provider.resolve_calls[0]
        assert fake_provider.resolve_calls[0] == sorted(fake_provider.resolve_calls[0])

    async def test_name_matching_is_case_insensitive(self, fake_provider):
        result = await import_eft("[rifter, lower]\ndamage control ii", fake_provider)

        assert result.fitting.low_slots[0].type_id == 2048

    async def test_unknown_items_become_warnings(self, fake_provider):
        text = "[Rifter, Partial]\nDamage Control II\nMystery Module\n\n1MN Afterburner II"

        result = await import_eft(text, fake_provider)

        assert result.warnings == ["Unknown item: Mystery Module"]
        assert result.fitting.low_slots[0].name == "Damage Control II"
        assert result.fitting.low_slots[1] is None
        assert result.fitting.mid_slots[0].name == "1MN Afterburner II"

    async def test_unknown_charge_loads_empty(self, fake_provider):
        text = "[Rifter, Ammo]\nDamage Control II\n\n1MN Afterburner II\n\n" + (
            "125mm Gatling AutoCannon II, Unobtainium S"
        )

        result = await import_eft(text, fake_provider)

        assert result.fitting.high_slots[0].charge is None
        assert "Unknown charge Unobtainium S on 125mm Gatling AutoCannon II, loaded empty" in (
            result.warnings
        )

    async def test_type_lookup_returning_none(self, rifter, provider_factory):
        provider = provider_factory([rifter])

        async def resolve_names(names):
            return {"rifter": 587, "damage control ii": 2048}

        provider.resolve_names = resolve_names

        result = await import_eft("[Rifter, Stale]\nDamage Control II", provider)

        assert result.warnings == ["Could not load type data for Damage Control II"]

    async def test_rack_grows_past_ship_slots(self, fake_provider):
        lows = "\n".join(["Damage Control II"] * 6)

        result = await import_eft(f"[Rifter, Overfit]\n{lows}", fake_provider)

        assert result.fitting.slot_counts.low == 6

    async def test_not_eft(self, fake_provider):
        with pytest.raises(EFTFormatError):
            await import_eft("just some text", fake_provider)

    async def test_unknown_ship(self, fake_provider):
        with pytest.raises(EFTImportError, match="Unknown ship type: Titanic") as exc_info:
            await import_eft("[Titanic, Big]\nDamage Control II", fake_provider)

        assert exc_info.value.line_number == 1
        assert isinstance(exc_info.value, EFTParseError)

    async def test_non_ship_header(self, fake_provider):
        with pytest.raises(EFTImportError, match="is not a ship"):
            await import_eft("[Damage Control II, Oops]\nDamage Control II", fake_provider)

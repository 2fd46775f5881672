"""
Tests for ESI saved-fitting conversion.
"""

from __future__ import annotations

import pytest

from shipfit.fitting.esi_convert import esi_fitting_to_local, fitting_to_esi_items
from shipfit.models.fitting import FittedModule, ModuleData, SlotCounts, SlotType


def _esi_fit(*items, name="PvE Rifter"):
    return {
        "fitting_id": 42,
        "name": name,
        "description": "Level 1 missions",
        "ship_type_id": 587,
        "items": [
            {"type_id": type_id, "flag": flag, "quantity": quantity}
            for type_id, flag, quantity in items
        ],
    }


@pytest.mark.asyncio
class TestEsiFittingToLocal:
    """Test conversion of ESI fittings."""

    async def test_positional_flags(self, rifter, fake_provider):
        esi_fit = _esi_fit(
            (2873, "HiSlot2", 1),
            (12056, "MedSlot0", 1),
            (2048, "LoSlot3", 1),
            (31788, "RigSlot0", 1),
        )

        fitting, warnings = await esi_fitting_to_local(esi_fit, rifter, fake_provider)

        assert warnings == []
        assert fitting.name == "PvE Rifter"
        assert fitting.description == "Level 1 missions"
        assert fitting.high_slots[2].name == "125mm Gatling AutoCannon II"
        assert fitting.high_slots[0] is None
        assert fitting.low_slots[3].slot_index == 3
        assert fitting.slot_counts == SlotCounts(high=4, mid=3, low=4, rig=3)

    async def test_drones_and_cargo(self, rifter, fake_provider):
        esi_fit = _esi_fit((2454, "DroneBay", 3), (185, "Cargo", 500))

        fitting, _ = await esi_fitting_to_local(esi_fit, rifter, fake_provider)

        assert len(fitting.drones) == 3
        assert [d.slot_index for d in fitting.drones] == [0, 1, 2]
        assert fitting.cargo[0].quantity == 500

    async def test_unknown_flag_classified_from_type(self, rifter, fake_provider):
        fitting, _ = await esi_fitting_to_local(
            _esi_fit((2048, "SomethingNew", 1)), rifter, fake_provider
        )

        assert fitting.low_slots[0].name == "Damage Control II"

    async def test_occupied_index_falls_back(self, rifter, fake_provider):
        esi_fit = _esi_fit((2873, "HiSlot0", 1), (10631, "HiSlot0", 1))

        fitting, _ = await esi_fitting_to_local(esi_fit, rifter, fake_provider)

        assert fitting.high_slots[0].type_id == 2873
        assert fitting.high_slots[1].type_id == 10631

    async def test_full_rack_warns(self, rifter, fake_provider):
        esi_fit = _esi_fit(*[(12056, f"MedSlot{i}", 1) for i in range(4)])

        fitting, warnings = await esi_fitting_to_local(esi_fit, rifter, fake_provider)

        assert all(module is not None for module in fitting.mid_slots)
        assert warnings == ["No free mid slot for 1MN Afterburner II"]

    async def test_failed_lookups_warn(self, rifter, all_types, provider_factory):
        provider = provider_factory(all_types, failing=[2048])
        esi_fit = _esi_fit((2048, "LoSlot0", 1), (99999, "LoSlot1", 1), (2873, "HiSlot0", 1))

        fitting, warnings = await esi_fitting_to_local(esi_fit, rifter, provider)

        assert warnings == [
            "Type 2048 (LoSlot0) could not be resolved",
            "Type 99999 (LoSlot1) could not be resolved",
        ]
        assert fitting.high_slots[0] is not None

    async def test_default_name(self, rifter, fake_provider):
        fitting, _ = await esi_fitting_to_local(_esi_fit(name=""), rifter, fake_provider)

        assert fitting.name == "New Rifter"


class TestFittingToEsiItems:
    def test_items(self, rifter, autocannon, hobgoblin, emp_ammo, fitting_builder):
        fitting = fitting_builder(rifter, drones=[hobgoblin, hobgoblin])
        fitting.high_slots[1] = FittedModule.place(
            ModuleData.from_type(autocannon), SlotType.HIGH, 1
        )
        fitting.cargo.append(
            FittedModule.place(ModuleData.from_type(emp_ammo), SlotType.CARGO, 0, quantity=100)
        )

        assert fitting_to_esi_items(fitting) == [
            {"type_id": 2873, "flag": "HiSlot1", "quantity": 1},
            {"type_id": 2454, "flag": "DroneBay", "quantity": 2},
            {"type_id": 185, "flag": "Cargo", "quantity": 100},
        ]

    @pytest.mark.asyncio
    async def test_round_trip_through_esi(
        self, rifter, autocannon, damage_control, hobgoblin, fake_provider, fitting_builder
    ):
        original = fitting_builder(
            rifter, high=[autocannon, autocannon], low=[damage_control], drones=[hobgoblin]
        )
        esi_fit = {"name": "Trip", "items": fitting_to_esi_items(original)}

        restored, warnings = await esi_fitting_to_local(esi_fit, rifter, fake_provider)

        assert warnings == []
        assert fitting_to_esi_items(restored) == fitting_to_esi_items(original)

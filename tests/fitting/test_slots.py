"""
Tests for slot classification and slot layout.
"""

from __future__ import annotations

import pytest

from shipfit.core.constants import (
    ATTR_HI_SLOTS,
    CATEGORY_DRONE,
    CATEGORY_SUBSYSTEM,
    EFFECT_HIGH_SLOT,
    EFFECT_LOW_SLOT,
    EFFECT_MED_SLOT,
)
from shipfit.fitting.slots import (
    ESI_FLAG_TO_SLOT,
    classify_slot,
    classify_type,
    slot_counts_from_ship,
    slot_to_esi_flag,
    slot_type_from_effects,
)
from shipfit.models.fitting import SlotCounts, SlotType


class TestClassifySlot:
    """Test slot classification precedence."""

    def test_drone_category_wins(self):
        assert classify_slot(CATEGORY_DRONE, 55, [EFFECT_HIGH_SLOT]) is SlotType.DRONE

    def test_subsystem_category(self):
        assert classify_slot(CATEGORY_SUBSYSTEM, 0) is SlotType.SUBSYSTEM

    def test_group_table_before_effects(self):
        assert classify_slot(7, 64, [EFFECT_LOW_SLOT]) is SlotType.MID

    def test_effect_fallback(self):
        assert classify_slot(7, 99999, [EFFECT_MED_SLOT]) is SlotType.MID

    def test_unclassifiable(self):
        assert classify_slot(7, 99999, []) is None

    def test_effect_order(self):
        assert slot_type_from_effects([EFFECT_LOW_SLOT, EFFECT_HIGH_SLOT]) is SlotType.HIGH

    def test_charge_type_is_cargo(self, emp_ammo):
        assert classify_type(emp_ammo) is SlotType.CARGO

    def test_classify_fixture_types(self, autocannon, rocket_launcher, burst_aerator, hobgoblin):
        assert classify_type(autocannon) is SlotType.HIGH
        assert classify_type(rocket_launcher) is SlotType.HIGH
        assert classify_type(burst_aerator) is SlotType.RIG
        assert classify_type(hobgoblin) is SlotType.DRONE


class TestSlotCountsFromShip:
    def test_from_attributes(self, rifter):
        assert slot_counts_from_ship(rifter) == SlotCounts(high=4, mid=3, low=4, rig=3)

    def test_defaults(self, type_factory):
        ship = type_factory(1, "Mystery Hull", category_id=6)

        assert slot_counts_from_ship(ship) == SlotCounts(high=8, mid=5, low=5, rig=3)

    def test_clamped_to_eight(self, type_factory):
        ship = type_factory(1, "Big Hull", category_id=6, attributes={ATTR_HI_SLOTS: 12})

        assert slot_counts_from_ship(ship).high == 8


class TestEsiFlags:
    @pytest.mark.parametrize(
        "slot_type,index,flag",
        [
            (SlotType.HIGH, 0, "HiSlot0"),
            (SlotType.MID, 2, "MedSlot2"),
            (SlotType.LOW, 7, "LoSlot7"),
            (SlotType.RIG, 1, "RigSlot1"),
            (SlotType.SUBSYSTEM, 3, "SubSystemSlot3"),
            (SlotType.DRONE, 4, "DroneBay"),
            (SlotType.CARGO, 0, "Cargo"),
        ],
    )
    def test_slot_to_flag(self, slot_type, index, flag):
        assert slot_to_esi_flag(slot_type, index) == flag

    def test_flag_table(self):
        assert ESI_FLAG_TO_SLOT["MedSlot4"] == (SlotType.MID, 4)
        assert "HiSlot8" not in ESI_FLAG_TO_SLOT

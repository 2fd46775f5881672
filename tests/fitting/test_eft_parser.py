"""
Tests for the EFT parser and serializer.
"""

from __future__ import annotations

import pytest

from shipfit.fitting.eft_parser import (
    EFTFormatError,
    EFTLine,
    ParsedEFT,
    fitting_to_eft,
    format_eft_line,
    looks_like_eft,
    parse_eft,
    parse_eft_line,
    serialize_eft,
    unique_item_names,
)
from shipfit.models.fitting import (
    Charge,
    FittedModule,
    ModuleData,
    ModuleState,
    SlotCounts,
    SlotType,
)

HURRICANE_EFT = """[Hurricane, My Hurricane Fit]
Gyrostabilizer II
Gyrostabilizer II
Damage Control II

50MN Microwarpdrive II
Large Shield Extender II

720mm Howitzer Artillery II, Republic Fleet EMP M
720mm Howitzer Artillery II, Republic Fleet EMP M

Medium Core Defense Field Extender I


Warrior II x5
"""


class TestParseEftLine:
    """Test single line parsing."""

    def test_plain_module(self):
        assert parse_eft_line("Damage Control II") == EFTLine(name="Damage Control II")

    def test_module_with_charge(self):
        line = parse_eft_line("720mm Howitzer Artillery II, Republic Fleet EMP M")

        assert line.name == "720mm Howitzer Artillery II"
        assert line.charge == "Republic Fleet EMP M"
        assert line.quantity is None

    def test_quantity(self):
        line = parse_eft_line("Warrior II x5")

        assert line == EFTLine(name="Warrior II", quantity=5)
        assert line.count == 5

    def test_count_defaults_to_one(self):
        assert parse_eft_line("Damage Control II").count == 1

    def test_offline_marker(self):
        line = parse_eft_line("50MN Microwarpdrive II /OFFLINE")

        assert line == EFTLine(name="50MN Microwarpdrive II", offline=True)

    def test_offline_with_charge(self):
        line = parse_eft_line("Heavy Missile Launcher II, Scourge Heavy Missile /offline")

        assert line.charge == "Scourge Heavy Missile"
        assert line.offline is True

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "[Empty Low slot]", "[empty high slot]", "[Empty Service slot]", "[Empty]"],
    )
    def test_ignored_lines(self, text):
        assert parse_eft_line(text) is None


class TestParseEft:
    """Test full fitting parsing."""

    def test_sections_by_position(self):
        parsed = parse_eft(HURRICANE_EFT)

        assert parsed.ship_name == "Hurricane"
        assert parsed.fit_name == "My Hurricane Fit"
        assert [line.name for line in parsed.low_slots] == [
            "Gyrostabilizer II",
            "Gyrostabilizer II",
            "Damage Control II",
        ]
        assert len(parsed.mid_slots) == 2
        assert len(parsed.high_slots) == 2
        assert parsed.rig_slots[0].name == "Medium Core Defense Field Extender I"
        # Double blank line before drones does not create an empty section
        assert parsed.subsystems[0] == EFTLine(name="Warrior II", quantity=5)
        assert parsed.drones == ()

    def test_empty_markers_dropped(self):
        parsed = parse_eft("[Rifter, Test]\n[Empty Low slot]\nDamage Control II\n\nWarp Scrambler II")

        assert parsed.low_slots == (EFTLine(name="Damage Control II"),)
        assert parsed.mid_slots == (EFTLine(name="Warp Scrambler II"),)

    def test_unlisted_empty_markers_dropped(self):
        parsed = parse_eft("[Rifter, Test]\n[Empty Service slot]\nDamage Control II")

        assert parsed.low_slots == (EFTLine(name="Damage Control II"),)

    def test_header_only(self):
        parsed = parse_eft("[Rifter, Empty]")

        assert parsed.all_lines() == []

    def test_empty_input(self):
        with pytest.raises(EFTFormatError) as exc_info:
            parse_eft("   ")

        assert exc_info.value.line_number == 1

    @pytest.mark.parametrize("header", ["Rifter, Test", "[Rifter]", "[Rifter Test]"])
    def test_invalid_header(self, header):
        with pytest.raises(EFTFormatError, match="Invalid EFT header"):
            parse_eft(f"{header}\nDamage Control II")

    def test_blank_fit_name(self):
        with pytest.raises(EFTFormatError):
            parse_eft("[Rifter,  ]")

    def test_extra_sections_ignored(self):
        text = "[Rifter, Many]\n" + "\n\n".join(f"Item {i}" for i in range(9))

        parsed = parse_eft(text)

        assert parsed.cargo == (EFTLine(name="Item 6"),)


class TestHelpers:
    def test_looks_like_eft(self):
        assert looks_like_eft("  [Rifter, Test]\nDamage Control II")
        assert not looks_like_eft("Rifter fit please")
        assert not looks_like_eft("[Rifter]")

    def test_unique_item_names(self):
        names = unique_item_names(parse_eft(HURRICANE_EFT))

        assert "Hurricane" in names
        assert "Republic Fleet EMP M" in names
        assert "Warrior II" in names
        assert len(names) == 9


class TestSerializeEft:
    """Test EFT output."""

    def test_format_eft_line(self):
        assert format_eft_line(EFTLine(name="Hobgoblin I", quantity=1)) == "Hobgoblin I"
        assert format_eft_line(EFTLine(name="Hobgoblin I", quantity=3)) == "Hobgoblin I x3"
        assert (
            format_eft_line(EFTLine(name="Launcher", charge="Rocket", offline=True))
            == "Launcher, Rocket /OFFLINE"
        )

    def test_padding_with_empty_markers(self):
        parsed = ParsedEFT(
            ship_name="Rifter",
            fit_name="Padded",
            low_slots=(EFTLine(name="Damage Control II"),),
        )

        text = serialize_eft(parsed, SlotCounts(high=1, mid=1, low=2, rig=0))

        assert text.splitlines() == [
            "[Rifter, Padded]",
            "Damage Control II",
            "[Empty Low slot]",
            "",
            "[Empty Mid slot]",
            "",
            "[Empty High slot]",
        ]

    def test_drones_after_double_blank(self):
        parsed = ParsedEFT(
            ship_name="Rifter",
            fit_name="Drones",
            low_slots=(EFTLine(name="Damage Control II"),),
            drones=(EFTLine(name="Hobgoblin I", quantity=2),),
        )

        assert serialize_eft(parsed).endswith("\n\n\nHobgoblin I x2")

    def test_round_trip_of_full_racks(self):
        text = (
            "[Rifter, Round Trip]\n"
            "Damage Control II\n\n"
            "1MN Afterburner II\n\n"
            "125mm Gatling AutoCannon II, EMP S\n\n"
            "Small Projectile Burst Aerator I"
        )

        assert serialize_eft(parse_eft(text)) == text


class TestFittingToEft:
    def test_export(self, rifter, autocannon, emp_ammo, hobgoblin, afterburner, fitting_builder):
        fitting = fitting_builder(rifter, mid=[afterburner], drones=[hobgoblin, hobgoblin])
        fitting.name = "Export"
        fitting.high_slots[0] = FittedModule.place(
            ModuleData.from_type(autocannon, charge=Charge(emp_ammo.type_id, emp_ammo.name)),
            SlotType.HIGH,
            0,
        )
        fitting.mid_slots[0].state = ModuleState.OFFLINE
        fitting.cargo.append(
            FittedModule.place(ModuleData.from_type(emp_ammo), SlotType.CARGO, 0, quantity=100)
        )

        lines = fitting_to_eft(fitting).splitlines()

        assert lines[0] == "[Rifter, Export]"
        assert "1MN Afterburner II /OFFLINE" in lines
        assert "125mm Gatling AutoCannon II, EMP S" in lines
        assert lines.count("[Empty High slot]") == 3
        assert lines.count("[Empty Rig slot]") == 3
        assert "Hobgoblin I x2" in lines
        assert lines[-1] == "EMP S x100"

    def test_export_parses_back(self, rifter, autocannon, damage_control, fitting_builder):
        fitting = fitting_builder(rifter, high=[autocannon], low=[damage_control])
        fitting.name = "Again"

        parsed = parse_eft(fitting_to_eft(fitting))

        assert parsed.ship_name == "Rifter"
        assert parsed.low_slots == (EFTLine(name="Damage Control II"),)

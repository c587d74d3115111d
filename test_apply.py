# Merge/apply: field-level patches, observation priority, alternate ranking
from Presets.apply import apply_preset
from Presets.battle_state import Slot
from Presets.candidates import Preset, PresetSource


def _garchomp(**kw) -> Preset:
    base = dict(
        source=PresetSource.SMOGON,
        species_forme="Garchomp",
        format="gen9ou",
        ability="Rough Skin",
        alt_abilities=["Sand Veil"],
        item="Rocky Helmet",
        alt_items=["Leftovers"],
        moves=["Stealth Rock", "Earthquake", "Dragon Tail", "Spikes"],
        alt_moves=["Fire Blast"],
        tera_types=["Steel"],
        nature="Jolly",
        evs={"hp": 252, "def": 4, "spe": 252},
        ivs={},
    )
    base.update(kw)
    return Preset(**base).with_id()


def test_fills_empty_slot():
    slot = Slot(slot_id="p2a", species_forme="Garchomp")
    patch = apply_preset(slot, _garchomp())
    assert patch["ability"] == "Rough Skin"
    assert patch["item"] == "Rocky Helmet"
    assert patch["moves"] == ["Stealth Rock", "Earthquake", "Dragon Tail", "Spikes"]
    assert patch["alt_moves"] == ["Fire Blast"]
    assert patch["nature"] == "Jolly"
    assert patch["evs"] == {"hp": 252, "atk": 0, "def": 4, "spa": 0, "spd": 0, "spe": 252}
    assert patch["ivs"]["spe"] == 31
    assert patch["tera_type"] == "Steel"
    assert patch["preset_id"] == _garchomp().id
    assert patch["preset_source"] == PresetSource.SMOGON
    assert "usage_id" not in patch


def test_same_preset_is_a_noop():
    preset = _garchomp()
    slot = Slot(slot_id="p2a", species_forme="Garchomp", preset_id=preset.id)
    assert apply_preset(slot, preset) == {}


def test_usage_change_is_not_a_noop():
    preset = _garchomp()
    usage = _garchomp(source=PresetSource.USAGE, alt_moves=[("Fire Blast", 0.2), ("Scale Shot", 0.5)])
    slot = Slot(slot_id="p2a", species_forme="Garchomp", preset_id=preset.id, usage_id="stale")
    patch = apply_preset(slot, preset, usage=usage)
    assert patch["usage_id"] == usage.id
    # usage shares rank the alternates
    assert patch["alt_moves"] == [("Scale Shot", 0.5), ("Fire Blast", 0.2)]


def test_revealed_values_win():
    slot = Slot(
        slot_id="p2a",
        species_forme="Garchomp",
        revealed_ability="Sand Veil",
        revealed_item="Choice Scarf",
        revealed_moves=["Outrage"],
    )
    patch = apply_preset(slot, _garchomp())
    assert patch["ability"] == "Sand Veil"
    assert patch["item"] == "Choice Scarf"
    assert patch["moves"] == ["Outrage", "Stealth Rock", "Earthquake", "Dragon Tail"]
    assert "Spikes" in patch["alt_moves"]


def test_four_revealed_moves_are_never_overwritten():
    revealed = ["Outrage", "Earthquake", "Fire Fang", "Swords Dance"]
    slot = Slot(slot_id="p2a", species_forme="Garchomp", revealed_moves=revealed, moves=list(revealed))
    patch = apply_preset(slot, _garchomp())
    assert "moves" not in patch
    assert patch["preset_id"] == _garchomp().id


def test_server_slot_keeps_observed_moves():
    server_moves = ["Earthquake", "Scale Shot", "Swords Dance", "Fire Fang"]
    slot = Slot(
        slot_id="p1a",
        species_forme="Garchomp",
        source=PresetSource.SERVER,
        server_moves=server_moves,
        revealed_moves=["Earthquake", "Scale Shot", "Swords Dance", "Fire Fang"],
    )
    patch = apply_preset(slot, _garchomp())
    assert patch["moves"] == server_moves


def test_server_slot_keeps_reported_ability_and_item():
    slot = Slot(
        slot_id="p1a",
        species_forme="Garchomp",
        source=PresetSource.SERVER,
        ability="Sand Veil",
        item="Life Orb",
    )
    patch = apply_preset(slot, _garchomp())
    assert "ability" not in patch and "item" not in patch
    assert patch["preset_id"] == _garchomp().id
    # the preset still supplements what the server left out
    assert patch["nature"] == "Jolly"
    assert patch["alt_abilities"] == ["Sand Veil"]


def test_presets_are_not_mutated():
    preset = _garchomp()
    before = preset.as_dict()
    apply_preset(Slot(slot_id="p2a", species_forme="Garchomp", revealed_moves=["Outrage"]), preset)
    assert preset.as_dict() == before


def test_legacy_defaults():
    preset = _garchomp(nature=None, evs={"atk": 200}, ivs={})
    patch = apply_preset(Slot(slot_id="p2a", species_forme="Garchomp"), preset, legacy=True)
    assert patch["ivs"] == {k: 30 for k in ("hp", "atk", "def", "spa", "spd", "spe")}
    assert patch["evs"]["atk"] == 200 and patch["evs"]["hp"] == 252


def run():
    test_fills_empty_slot()
    test_same_preset_is_a_noop()
    test_usage_change_is_not_a_noop()
    test_revealed_values_win()
    test_four_revealed_moves_are_never_overwritten()
    test_server_slot_keeps_observed_moves()
    test_server_slot_keeps_reported_ability_and_item()
    test_presets_are_not_mutated()
    test_legacy_defaults()
    print("OK: apply tests passed.")


if __name__ == "__main__":
    run()

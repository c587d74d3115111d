# Dex registry lookups, Showdown export parsing, format helpers
from Data.dex_registry import DexRegistry, _load_table
from Presets.battle_state import BattleState
from Presets.formats import (
    full_format,
    genless_format,
    guess_level_from_format,
    is_legacy_gen,
    is_random_format,
    parse_gen_from_format,
)

ITEMS_JS = """
// generated
exports.BattleItems = {
    leftovers: {name: "Leftovers", num: 234, gen: 2},
    /* orbs */
    redorb: {name: "Red Orb", num: 534, gen: 6, itemUser: ["Groudon"]},
};
"""


def test_lookups_are_copies_with_exists():
    dex = DexRegistry(pokedex={"Garchomp": {"name": "Garchomp", "baseStats": {"hp": 108}, "types": ["Dragon", "Ground"]}})
    hit = dex.get_species("garchomp")
    assert hit["name"] == "Garchomp" and hit["exists"] is True
    hit["name"] = "changed"
    assert dex.get_species("Garchomp")["name"] == "Garchomp"
    assert dex.get_species("Missingno") is None
    assert dex.get_item(None) is None
    assert dex.base_stats("Garchomp") == {"hp": 108}
    assert dex.species_types("Garchomp") == ["Dragon", "Ground"]
    assert dex.base_stats("Missingno") == {}


def test_load_js_export(tmp_path):
    (tmp_path / "items.js").write_text(ITEMS_JS, encoding="utf-8")
    items = _load_table(tmp_path, "items")
    assert set(items) == {"leftovers", "redorb"}
    assert items["redorb"]["itemUser"] == ["Groudon"]


def test_load_json_export_wins(tmp_path):
    (tmp_path / "abilities.json").write_text('{"Drought": {"name": "Drought"}}', encoding="utf-8")
    (tmp_path / "abilities.js").write_text(ITEMS_JS, encoding="utf-8")
    assert set(_load_table(tmp_path, "abilities")) == {"drought"}


def test_missing_tables_are_empty(tmp_path):
    assert _load_table(tmp_path, "items") == {}
    assert _load_table(None, "items") == {}


def test_format_helpers():
    assert parse_gen_from_format("gen3randombattle") == 3
    assert parse_gen_from_format("ou") == 9
    assert parse_gen_from_format(None, default=8) == 8
    assert genless_format("gen9ou") == "ou"
    assert full_format("ou", 8) == "gen8ou"
    assert full_format("Gen9 OU") == "gen9ou"
    assert is_random_format("gen9randombattle")
    assert not is_random_format("gen9ou")
    assert is_legacy_gen(2) and not is_legacy_gen(3)
    assert guess_level_from_format("gen9vgc2024regg") == 50
    assert guess_level_from_format("gen9lc") == 5
    assert guess_level_from_format("gen9ou") == 100


def test_state_from_dict():
    state = BattleState.from_dict({
        "battle_id": "battle-gen2ou-1",
        "format": "gen2ou",
        "p2": {"name": "bob", "active_index": 0, "slots": [{"slot_id": "p2:0", "species_forme": "Snorlax"}]},
        "field": {"dirty_weather": "Rain"},
    })
    assert state.gen == 2 and state.legacy
    assert state.default_level == 100
    assert state.sides["p2"].slots[0].species_forme == "Snorlax"
    assert state.field_state.dirty_weather == "Rain"
    assert "p1" not in state.sides


def run():
    import tempfile
    from pathlib import Path

    test_lookups_are_copies_with_exists()
    for test in (test_load_js_export, test_load_json_export_wins, test_missing_tables_are_empty):
        with tempfile.TemporaryDirectory() as d:
            test(Path(d))
    test_format_helpers()
    test_state_from_dict()
    print("OK: dex registry tests passed.")


if __name__ == "__main__":
    run()

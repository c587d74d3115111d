# Selector: species/forme matching and format ordering
from Data.dex_registry import DexRegistry
from Presets.battle_state import Slot
from Presets.candidates import Preset, PresetSource
from Presets.selector import (
    SelectMode,
    base_species,
    select_pokemon_presets,
    sort_presets_by_format,
)


def _p(species, fmt="gen9ou", source=PresetSource.SMOGON, name=None, **kw) -> Preset:
    return Preset(source=source, species_forme=species, format=fmt, name=name, **kw).with_id()


def test_base_species():
    assert base_species("Rotom-Wash") == "Rotom"
    assert base_species("Ho-Oh") == "Ho-Oh"
    assert base_species("Ting-Lu") == "Ting-Lu"
    dex = DexRegistry(pokedex={"Urshifu-Rapid-Strike": {"name": "Urshifu-Rapid-Strike", "baseSpecies": "Urshifu"}})
    assert base_species("Urshifu-Rapid-Strike", dex) == "Urshifu"


def test_species_and_format_filters():
    pool = [
        _p("Rotom-Wash"),
        _p("Rotom-Wash", fmt="gen8ou"),
        _p("Rotom"),
        _p("Ferrothorn"),
        Preset(source=PresetSource.SMOGON, species_forme="Rotom-Wash"),  # never stamped
    ]
    slot = Slot(slot_id="a", species_forme="Rotom-Wash")

    exact = select_pokemon_presets(pool, slot, format="gen9ou", select=SelectMode.SPECIES)
    assert [p.format for p in exact] == ["gen9ou", "gen8ou"]

    scoped = select_pokemon_presets(pool, slot, format="gen9ou", format_only=True, select=SelectMode.SPECIES)
    assert len(scoped) == 1 and scoped[0].format == "gen9ou"

    anything = select_pokemon_presets(pool, slot, format="gen9ou", select=SelectMode.ANY)
    assert {p.species_forme for p in anything} == {"Rotom-Wash", "Rotom"}


def test_select_one_prefers_transformed_then_current():
    pool = [_p("Rotom"), _p("Ditto"), _p("Garchomp")]
    slot = Slot(slot_id="a", species_forme="Ditto", transformed_forme="Garchomp")
    got = select_pokemon_presets(pool, slot, format="gen9ou", select=SelectMode.ONE)
    assert [p.species_forme for p in got] == ["Garchomp"]

    slot = Slot(slot_id="b", species_forme="Rotom-Heat")
    got = select_pokemon_presets(pool, slot, format="gen9ou", select=SelectMode.ONE)
    assert [p.species_forme for p in got] == ["Rotom"]


def test_source_and_custom_filter():
    pool = [
        _p("Amoonguss", source=PresetSource.SHEET, player_name="alice"),
        _p("Amoonguss", source=PresetSource.SHEET, player_name="bob"),
        _p("Amoonguss", source=PresetSource.USAGE),
    ]
    slot = Slot(slot_id="a", species_forme="Amoonguss")
    got = select_pokemon_presets(
        pool, slot, source=PresetSource.SHEET, filter=lambda p: p.player_name == "bob",
    )
    assert len(got) == 1 and got[0].player_name == "bob"


def test_no_species_is_empty():
    assert select_pokemon_presets([_p("Rotom")], Slot(slot_id="a", species_forme="")) == []


def test_sort_by_format():
    pool = [_p("Rotom", fmt="gen7ou"), _p("Rotom", fmt="gen9uu"), _p("Rotom", fmt="gen9ou")]
    pool.sort(key=sort_presets_by_format("gen9ou"))
    assert [p.format for p in pool] == ["gen9ou", "gen9uu", "gen7ou"]


def run():
    test_base_species()
    test_species_and_format_filters()
    test_select_one_prefers_transformed_then_current()
    test_source_and_custom_filter()
    test_no_species_is_empty()
    test_sort_by_format()
    print("OK: selector tests passed.")


if __name__ == "__main__":
    run()

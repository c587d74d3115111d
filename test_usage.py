# Usage role disambiguation
from Presets.candidates import Preset, PresetSource
from Presets.usage import find_matching_usage, sort_presets_by_usage


def _role(name, moves, alt_moves=()) -> Preset:
    return Preset(
        source=PresetSource.USAGE,
        species_forme="Torkoal",
        format="gen9randombattle",
        name=name,
        moves=list(moves),
        alt_moves=list(alt_moves),
    ).with_id()


SUPPORT = _role("Bulky Support", ["Stealth Rock", "Rapid Spin", "Lava Plume", "Yawn"], ["Earth Power"])
ATTACKER = _role("Wallbreaker", ["Eruption", "Solar Beam", "Earth Power", "Fire Blast"])


def test_covering_role_beats_more_popular_one():
    got = find_matching_usage([SUPPORT, ATTACKER], ["Eruption"])
    assert got is ATTACKER


def test_alternates_count_towards_coverage():
    got = find_matching_usage([ATTACKER, SUPPORT], ["Rapid Spin", "Earth Power"])
    assert got is SUPPORT


def test_reference_preset_moves():
    chosen = Preset(source=PresetSource.SMOGON, species_forme="Torkoal", moves=["Solar Beam", "Eruption"])
    assert find_matching_usage([SUPPORT, ATTACKER], chosen) is ATTACKER


def test_no_coverage_keeps_input_order_or_fallback():
    assert find_matching_usage([SUPPORT, ATTACKER], ["Body Press"]) is SUPPORT
    assert find_matching_usage([SUPPORT, ATTACKER], ["Body Press"], fallback=ATTACKER) is ATTACKER
    assert find_matching_usage([SUPPORT, ATTACKER], []) is SUPPORT


def test_empty_input():
    assert find_matching_usage([], ["Eruption"]) is None
    assert find_matching_usage([], ["Eruption"], fallback=SUPPORT) is SUPPORT


def test_sort_presets_by_usage():
    a = Preset(source=PresetSource.SMOGON, species_forme="Torkoal", moves=["Eruption"])
    b = Preset(source=PresetSource.SMOGON, species_forme="Torkoal", moves=["Yawn"])
    c = Preset(source=PresetSource.SMOGON, species_forme="Torkoal", moves=["Body Press"])
    ranked = sorted([a, c, b], key=sort_presets_by_usage([SUPPORT, ATTACKER]))
    assert ranked == [b, a, c]


def run():
    test_covering_role_beats_more_popular_one()
    test_alternates_count_towards_coverage()
    test_reference_preset_moves()
    test_no_coverage_keeps_input_order_or_fallback()
    test_empty_input()
    test_sort_presets_by_usage()
    print("OK: usage tests passed.")


if __name__ == "__main__":
    run()

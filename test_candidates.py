# Content-addressed preset ids and pool helpers
from Presets.candidates import (
    Preset,
    PresetSource,
    calc_preset_id,
    detect_complete_preset,
    flatten_alts,
    move_pool,
    pool_covers,
    restamp,
)


def _ferro(**kw) -> Preset:
    base = dict(
        source=PresetSource.SMOGON,
        species_forme="Ferrothorn",
        format="gen8ou",
        ability="Iron Barbs",
        item="Leftovers",
        moves=["Stealth Rock", "Leech Seed", "Gyro Ball", "Knock Off"],
    )
    base.update(kw)
    return Preset(**base)


def test_equal_content_equal_id():
    assert calc_preset_id(_ferro()) == calc_preset_id(_ferro())
    # display name doesn't take part in the digest
    assert calc_preset_id(_ferro(name="Utility")) == calc_preset_id(_ferro(name="Other"))


def test_any_semantic_change_changes_id():
    ref = calc_preset_id(_ferro())
    assert calc_preset_id(_ferro(item="Rocky Helmet")) != ref
    assert calc_preset_id(_ferro(moves=["Stealth Rock", "Leech Seed", "Gyro Ball", "Spikes"])) != ref
    assert calc_preset_id(_ferro(evs={"hp": 252})) != ref
    assert calc_preset_id(_ferro(source=PresetSource.USAGE)) != ref


def test_with_id_does_not_mutate():
    p = _ferro()
    stamped = p.with_id()
    assert p.id is None
    assert stamped.id == calc_preset_id(p)


def test_restamp_recomputes_id():
    p = _ferro().with_id()
    q = restamp(p, source=PresetSource.SERVER, name="Yours")
    assert q.id != p.id
    assert q.id == calc_preset_id(q)
    assert p.source == PresetSource.SMOGON


def test_dict_roundtrip_keeps_id_and_shares():
    p = _ferro(alt_items=[("Leftovers", 0.6), ("Rocky Helmet", 0.3)]).with_id()
    q = Preset.from_dict(p.as_dict())
    assert q.id == p.id
    assert q.alt_items == [("Leftovers", 0.6), ("Rocky Helmet", 0.3)]
    # missing id gets computed on load
    d = p.as_dict()
    d["id"] = None
    assert Preset.from_dict(d).id == p.id


def test_pools():
    p = _ferro(alt_moves=[("Spikes", 0.4), "Power Whip"])
    assert flatten_alts(p.alt_moves) == ["Spikes", "Power Whip"]
    assert pool_covers(move_pool(p), ["stealthrock", "Spikes"])
    assert not pool_covers(move_pool(p), ["Thunder Wave"])


def test_complete_preset_needs_exact_spread():
    full = _ferro(nature="Relaxed", evs={"hp": 252, "def": 88, "spd": 168}, ivs={"spe": 0}).with_id()
    open_sheet = _ferro(source=PresetSource.SHEET, nature="Relaxed").with_id()
    assert detect_complete_preset(full)
    assert not detect_complete_preset(open_sheet)
    assert not detect_complete_preset(_ferro(nature="Relaxed", evs={"hp": 252}, ivs={"spe": 0}))  # no id


def run():
    test_equal_content_equal_id()
    test_any_semantic_change_changes_id()
    test_with_id_does_not_mutate()
    test_restamp_recomputes_id()
    test_dict_roundtrip_keeps_id_and_shares()
    test_pools()
    test_complete_preset_needs_exact_spread()
    print("OK: candidate tests passed.")


if __name__ == "__main__":
    run()

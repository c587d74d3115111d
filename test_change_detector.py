# Change detector: only pass-relevant changes re-trigger the auto-preset pass
from Presets.battle_state import BattleState, Side, Slot
from Presets.change_detector import ChangeDetector, side_auto_nonce


def _state() -> BattleState:
    return BattleState(
        battle_id="battle-gen9ou-1",
        format="gen9ou",
        sides={
            "p1": Side(key="p1", name="alice", slots=[Slot(slot_id="p1:0", species_forme="Garchomp")]),
            "p2": Side(key="p2", name="bob", slots=[Slot(slot_id="p2:0", species_forme="Ferrothorn")]),
        },
    )


def test_nonce_summaries():
    side = _state().sides["p2"]
    assert side_auto_nonce(side) == "p2:0~?,?,0"
    side.slots[0].auto_preset = False
    side.slots[0].preset_id = "abc"
    # manually configured slots aren't eligible any more
    assert side_auto_nonce(side) == ""
    side.slots[0].auto_preset = True
    assert side_auto_nonce(side) == "p2:0~?,?,0"
    assert side_auto_nonce(None) == ""


def test_standalone_mode_includes_species():
    side = _state().sides["p1"]
    assert side_auto_nonce(side, "standalone") == "p1:0~Garchomp~?,?,0"


def test_ui_churn_does_not_retrigger():
    det = ChangeDetector()
    state = _state()
    assert det.changed(state, True)
    det.mark(state, True)
    assert not det.changed(state, True)

    state.sides["p2"].slots[0].nickname = "Ferro"
    state.sides["p2"].slots[0].evs = {"hp": 252}
    assert not det.changed(state, True)


def test_relevant_changes_retrigger():
    det = ChangeDetector()
    state = _state()
    det.mark(state, True)

    state.sides["p2"].slots[0].revealed_moves.append("Stealth Rock")
    assert det.changed(state, True)
    det.mark(state, True)

    state.sides["p2"].slots[0].item = "Leftovers"
    assert det.changed(state, True)
    det.mark(state, True)

    assert det.changed(state, False)
    state.format = "gen9uu"
    assert det.changed(state, True)

    det.reset()
    state.format = "gen9ou"
    assert det.changed(state, True)


def run():
    test_nonce_summaries()
    test_standalone_mode_includes_species()
    test_ui_churn_does_not_retrigger()
    test_relevant_changes_retrigger()
    print("OK: change detector tests passed.")


if __name__ == "__main__":
    run()

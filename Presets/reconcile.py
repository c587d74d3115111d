# reconcile.py
"""
One-shot application of leaked team sheets that arrive after the auto-preset
pass already ran.

Only slots that weren't observed directly (source != server) are touched. The
pass is latched by `BattleState.sheets_applied`: once a complete sheet matched
an eligible slot it never runs again for the battle, even if that wave changed
nothing (the auto pass may have applied it already) and more sheets show up
later.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from .apply import apply_preset
from .battle_state import BattleState
from .candidates import CandidatePool, PresetSource, has_id
from .patch import BattlePatch, SidePatch, diff_slot
from .pipeline import select_sheets
from .selector import SelectMode, select_pokemon_presets
from .usage import find_matching_usage

log = logging.getLogger("Presets.reconcile")


def should_reconcile(state: Optional[BattleState]) -> bool:
    return (
        state is not None
        and not state.sheets_applied
        and bool(state.battle_id)
        and bool(state.format)
        and bool(state.sheets_nonce)
        and bool(state.sheets)
        and state.has_slots()
    )


def reconcile_sheets(state: BattleState, pool: Optional[CandidatePool] = None, dex=None) -> BattlePatch:
    """Apply matching sheets to every eligible slot.

    `sheets_applied` is set on the patch as soon as any slot found its sheet,
    even when the slot already carried it and the patch stays empty.
    """
    started = time.perf_counter()
    patch = BattlePatch(battle_id=state.battle_id if state is not None else None)
    if not should_reconcile(state):
        reason = "(already applied)" if state is not None and state.sheets_applied else "(not ready)"
        log.debug(f"[Presets] (Sheets) {reason}")
        return patch

    usages_pool = pool.usages if pool is not None else []
    for key, side in state.iter_sides():
        side_patch = SidePatch()
        for original in side.slots:
            if original is None or original.source == PresetSource.SERVER:
                continue
            sheets = select_sheets(state, side, original, SelectMode.ONE, dex)
            if not sheets:
                continue
            sheet = sheets[0]
            patch.sheets_applied = True

            usages = select_pokemon_presets(
                usages_pool, original, format=state.format, format_only=True,
                source=PresetSource.USAGE, select=SelectMode.ONE, dex=dex,
            )
            usage = find_matching_usage(usages, sheet) if usages else None

            work = original.clone()
            for name, value in apply_preset(work, sheet, usage=usage if has_id(usage) else None, legacy=bool(state.legacy)).items():
                setattr(work, name, value)
            changes = diff_slot(original, work)
            if changes:
                side_patch.slots.append({"slot_id": original.slot_id, **changes})

        if side_patch.slots:
            patch.sides[key] = side_patch

    log.debug(
        f"[Presets] (Sheets) {'(no change)' if patch.is_empty() else '(resolved)'} "
        f"{time.perf_counter() - started:.4f}s"
    )
    return patch

# matching.py
"""
Structural matching of presets against what we already know about a slot.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from poke_env.data.normalize import to_id_str

from .battle_state import Slot
from .candidates import (
    Preset,
    ability_pool,
    clone_preset,
    has_id,
    in_pool,
    item_pool,
    move_pool,
    pool_covers,
)
from .spreads import calc_stats, stats_match


def known_ability(slot: Slot) -> Optional[str]:
    return slot.revealed_ability or None


def known_item(slot: Slot) -> Optional[str]:
    return slot.revealed_item or None


def guess_matching_presets(presets: Sequence[Preset], slot: Slot) -> List[Preset]:
    """Presets whose pools agree with the slot's revealed ability, item and moves.

    Unknown fields don't constrain the match; with nothing revealed every
    preset matches.
    """
    ability = known_ability(slot)
    item = known_item(slot)
    revealed = [m for m in slot.revealed_moves if m]

    out: List[Preset] = []
    for p in presets:
        if not has_id(p):
            continue
        if ability and ability_pool(p) and not in_pool(ability_pool(p), ability):
            continue
        if item and item_pool(p) and not in_pool(item_pool(p), item):
            continue
        if revealed and not pool_covers(move_pool(p), revealed):
            continue
        out.append(p)
    return out


def merge_server_matches(preset: Preset, slot: Slot) -> Preset:
    """Copy of `preset` with the slot's observed ability/item/moves swapped in
    wherever the preset's pools allow them."""
    out = clone_preset(preset)
    if in_pool(ability_pool(preset), slot.ability):
        out.ability = slot.ability
    if in_pool(item_pool(preset), slot.item):
        out.item = slot.item
    server_moves = [m for m in slot.server_moves if m]
    if server_moves and pool_covers(move_pool(preset), server_moves):
        out.moves = list(server_moves)
    return out


def guess_server_preset(
    presets: Sequence[Preset],
    slot: Slot,
    base_stats: Optional[dict] = None,
) -> Optional[Preset]:
    """First preset consistent with everything the server told us about the slot.

    The preset is merged with the observed values first; it then has to agree
    on ability, item and the full move set, and, when both base stats and a
    complete spread are available, reproduce the observed stats.
    """
    server_moves = {to_id_str(m) for m in slot.server_moves if m}
    for p in presets:
        if not has_id(p):
            continue
        merged = merge_server_matches(p, slot)
        if slot.ability and to_id_str(merged.ability or "") != to_id_str(slot.ability):
            continue
        if slot.item and to_id_str(merged.item or "") != to_id_str(slot.item):
            continue
        if server_moves and {to_id_str(m) for m in merged.moves} != server_moves:
            continue
        if base_stats and slot.server_stats and merged.nature and merged.evs:
            computed = calc_stats(base_stats, slot.level or merged.level or 100, merged.nature, merged.ivs, merged.evs)
            if not stats_match(slot.server_stats, computed):
                continue
        return merged
    return None

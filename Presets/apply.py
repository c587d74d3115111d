# apply.py
"""
Fold a chosen preset into a slot.

    apply_preset(slot, preset, usage=None, legacy=False) -> dict

Returns a field-level patch (only values that differ from the slot). The slot
and the presets are left untouched. Observed data always wins over guesses:

- revealed ability/item are kept over the preset's, and a server slot keeps
  the ability/item the server reported,
- revealed moves are kept and the preset only fills the remaining move slots,
- a slot that already revealed 4 moves keeps its moves unless the server
  itself told us the moveset.

Alternates are attached for manual switching, never auto-applied. When a usage
preset participates, its shares rank the alternates.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from poke_env.data.normalize import to_id_str

from .battle_state import Slot, empty_spread
from .candidates import AltEntry, Preset, alt_shares, flatten_alts, has_id

MAX_MOVES = 4


def _rank_alts(
    names: List[str],
    usage_alts: Optional[List[AltEntry]],
    exclude: Optional[List[str]] = None,
) -> List[AltEntry]:
    shares = alt_shares(usage_alts)
    skip = {to_id_str(n) for n in (exclude or []) if n}
    seen = set()
    pool: List[str] = []
    for n in names:
        nid = to_id_str(n)
        if nid and nid not in seen and nid not in skip:
            seen.add(nid)
            pool.append(n)
    if not shares:
        return list(pool)
    # stable: unranked names keep their relative order after the ranked ones
    ranked = sorted(pool, key=lambda n: -shares.get(to_id_str(n), -1.0))
    return [(n, shares[to_id_str(n)]) if to_id_str(n) in shares else n for n in ranked]


def _merge_moves(slot: Slot, preset: Preset) -> List[str]:
    if slot.is_server and slot.server_moves:
        return [m for m in slot.server_moves if m][:MAX_MOVES]
    out: List[str] = []
    for m in [*slot.revealed_moves, *preset.moves]:
        if m and to_id_str(m) not in {to_id_str(x) for x in out}:
            out.append(m)
        if len(out) >= MAX_MOVES:
            break
    return out


def _spread(values: Dict[str, int], kind: str, legacy: bool) -> Dict[str, int]:
    out = empty_spread(kind, legacy)
    out.update({k: int(v) for k, v in (values or {}).items() if k in out})
    return out


def apply_preset(
    slot: Slot,
    preset: Preset,
    usage: Optional[Preset] = None,
    legacy: bool = False,
) -> Dict[str, Any]:
    if not has_id(preset):
        return {}
    if not has_id(usage):
        usage = None

    if slot.preset_id == preset.id and (usage is None or slot.usage_id == usage.id):
        return {}

    usage_or_self = usage or preset
    target: Dict[str, Any] = {}

    # server-observed values are only ever supplemented
    observed_ability = slot.ability if slot.is_server else None
    ability = observed_ability or slot.revealed_ability or preset.ability or usage_or_self.ability
    target["ability"] = ability
    target["alt_abilities"] = _rank_alts(
        flatten_alts([*preset.alt_abilities, *(usage.alt_abilities if usage else [])]),
        usage_or_self.alt_abilities,
    )

    observed_item = slot.item if slot.is_server else None
    item = observed_item or slot.revealed_item or preset.item or usage_or_self.item
    target["item"] = item
    target["alt_items"] = _rank_alts(
        flatten_alts([*preset.alt_items, *(usage.alt_items if usage else [])]),
        usage_or_self.alt_items,
    )

    moves = _merge_moves(slot, preset)
    target["moves"] = moves
    target["alt_moves"] = _rank_alts(
        flatten_alts([*preset.moves, *preset.alt_moves, *(usage.alt_moves if usage else [])]),
        usage_or_self.alt_moves,
        exclude=moves,
    )

    spread_src = preset if preset.nature or preset.evs or preset.ivs else usage_or_self
    if spread_src.nature:
        target["nature"] = spread_src.nature
    if spread_src.ivs or spread_src.evs:
        target["ivs"] = _spread(spread_src.ivs, "iv", legacy)
        target["evs"] = _spread(spread_src.evs, "ev", legacy)

    tera = [t for t in preset.tera_types if t] or flatten_alts(usage_or_self.alt_tera_types)
    if tera:
        target["tera_type"] = tera[0]
        target["alt_tera_types"] = _rank_alts(
            [*tera, *flatten_alts(preset.alt_tera_types)],
            usage_or_self.alt_tera_types,
        )

    if preset.level and not slot.level:
        target["level"] = preset.level

    target["preset_id"] = preset.id
    target["preset_source"] = preset.source
    if usage is not None:
        target["usage_id"] = usage.id
    target["needs_manual_input"] = False

    if len(slot.revealed_moves) >= MAX_MOVES and not slot.is_server:
        target.pop("moves", None)

    return {k: v for k, v in target.items() if getattr(slot, k) != v}

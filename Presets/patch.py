# patch.py
"""
Field-level patches produced by a pass, and how to fold them back into state.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .battle_state import BattleState, Slot
from .candidates import Preset


@dataclass
class SidePatch:
    # each entry: {"slot_id": ..., <changed field>: <new value>, ...}
    slots: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class BattlePatch:
    battle_id: Optional[str]
    sides: Dict[str, SidePatch] = field(default_factory=dict)
    field: Dict[str, Any] = field(default_factory=dict)
    sheets_applied: bool = False

    def is_empty(self) -> bool:
        return not any(sp.slots for sp in self.sides.values()) and not self.field

    def as_dict(self) -> Dict[str, Any]:
        def encode(v: Any) -> Any:
            if isinstance(v, Preset):
                return v.as_dict()
            if isinstance(v, list):
                return [encode(x) for x in v]
            if isinstance(v, tuple):
                return [encode(x) for x in v]
            if isinstance(v, dict):
                return {k: encode(x) for k, x in v.items()}
            return getattr(v, "value", v)

        return {
            "battle_id": self.battle_id,
            "sides": {k: {"slots": encode(sp.slots)} for k, sp in self.sides.items() if sp.slots},
            "field": dict(self.field),
            "sheets_applied": self.sheets_applied,
        }


_SLOT_FIELDS = tuple(f.name for f in fields(Slot) if f.name != "slot_id")


def diff_slot(before: Slot, after: Slot) -> Dict[str, Any]:
    """Changed fields of `after` relative to `before` (slot_id excluded)."""
    return {
        name: copy.deepcopy(getattr(after, name))
        for name in _SLOT_FIELDS
        if getattr(before, name) != getattr(after, name)
    }


def apply_patch(state: BattleState, patch: Optional[BattlePatch]) -> BattleState:
    """New state with `patch` folded in; `state` itself is not modified."""
    out = copy.deepcopy(state)
    if patch is None:
        return out
    for key, side_patch in patch.sides.items():
        side = out.sides.get(key)
        if side is None:
            continue
        by_id = {s.slot_id: s for s in side.slots}
        for entry in side_patch.slots:
            slot = by_id.get(entry.get("slot_id"))
            if slot is None:
                continue
            for name, value in entry.items():
                if name != "slot_id":
                    setattr(slot, name, copy.deepcopy(value))
    for name, value in patch.field.items():
        setattr(out.field_state, name, value)
    if patch.sheets_applied:
        out.sheets_applied = True
    return out

# change_detector.py
"""
Fingerprints that gate the auto-preset pass.

A side's fingerprint only covers what the pass actually looks at: for every
slot still eligible for auto-assignment, its id plus either its preset id or,
while auto-assigned, its ability, item and number of revealed moves. UI-only
churn therefore never re-triggers a pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .battle_state import PLAYER_KEYS, BattleState, Side


def side_auto_nonce(side: Optional[Side], operating_mode: str = "battle") -> str:
    if side is None:
        return ""
    parts = []
    for slot in side.slots:
        if not slot.slot_id or not slot.needs_preset:
            continue
        if slot.auto_preset:
            summary = ",".join([slot.ability or "?", slot.item or "?", str(len(slot.revealed_moves))])
        else:
            summary = slot.preset_id
        bits = [slot.slot_id, slot.species_forme if operating_mode == "standalone" else None, summary]
        parts.append("~".join(str(b) for b in bits if b))
    return ":".join(parts)


@dataclass(frozen=True)
class BattleFingerprint:
    battle_id: Optional[str]
    format: Optional[str]
    ready: bool
    sides: Tuple[Tuple[str, str], ...]


def battle_fingerprint(state: BattleState, ready: bool) -> BattleFingerprint:
    nonces: Dict[str, str] = {key: side_auto_nonce(state.sides.get(key), state.operating_mode) for key in PLAYER_KEYS}
    return BattleFingerprint(
        battle_id=state.battle_id,
        format=state.format,
        ready=bool(ready),
        sides=tuple(sorted(nonces.items())),
    )


class ChangeDetector:
    """Remembers the last fingerprint a pass ran for."""

    def __init__(self):
        self._last: Optional[BattleFingerprint] = None

    def changed(self, state: BattleState, ready: bool) -> bool:
        return battle_fingerprint(state, ready) != self._last

    def mark(self, state: BattleState, ready: bool) -> None:
        self._last = battle_fingerprint(state, ready)

    def reset(self) -> None:
        self._last = None

# spreads.py
"""
Stat formulas and reverse spread inference for server-sourced slots.

Our own slots come with their real stats from the server but without the
spread that produced them. `guess_server_spread()` searches natures, EVs and
IVs for a spread that reproduces those stats; `guess_server_legacy_spread()`
does the same for gens 1-2 where only DVs vary.

The grids are evaluated with numpy: one stat at a time, every EV/IV candidate
at once.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from poke_env.data.normalize import to_id_str

from .battle_state import Slot
from .candidates import STATS

log = logging.getLogger("Presets.spreads")

MAX_EV = 252
MAX_TOTAL_EVS = 510

# name -> (boosted stat, lowered stat); neutral natures first
NATURES: Dict[str, Tuple[Optional[str], Optional[str]]] = {
    "Hardy": (None, None), "Docile": (None, None), "Serious": (None, None),
    "Bashful": (None, None), "Quirky": (None, None),
    "Lonely": ("atk", "def"), "Brave": ("atk", "spe"), "Adamant": ("atk", "spa"), "Naughty": ("atk", "spd"),
    "Bold": ("def", "atk"), "Relaxed": ("def", "spe"), "Impish": ("def", "spa"), "Lax": ("def", "spd"),
    "Timid": ("spe", "atk"), "Hasty": ("spe", "def"), "Jolly": ("spe", "spa"), "Naive": ("spe", "spd"),
    "Modest": ("spa", "atk"), "Mild": ("spa", "def"), "Quiet": ("spa", "spe"), "Rash": ("spa", "spd"),
    "Calm": ("spd", "atk"), "Gentle": ("spd", "def"), "Sassy": ("spd", "spe"), "Careful": ("spd", "spa"),
}

_NATURE_BY_ID = {to_id_str(n): n for n in NATURES}


def normalize_nature(nature: Optional[str]) -> Optional[str]:
    return _NATURE_BY_ID.get(to_id_str(nature or ""))


def nature_percent(nature: Optional[str], stat: str) -> int:
    plus, minus = NATURES.get(normalize_nature(nature) or "Hardy", (None, None))
    if stat == plus:
        return 110
    if stat == minus:
        return 90
    return 100


def _stat_grid(stat: str, base: int, level: int, ivs: np.ndarray, evs: np.ndarray, percent: int) -> np.ndarray:
    core = (2 * base + ivs + evs // 4) * level // 100
    if stat == "hp":
        # Shedinja
        if base == 1:
            return np.ones_like(core)
        return core + level + 10
    return (core + 5) * percent // 100


def calc_stat(stat: str, base: int, level: int, iv: int, ev: int, nature: Optional[str] = None) -> int:
    out = _stat_grid(stat, int(base), int(level), np.array([int(iv)]), np.array([int(ev)]), nature_percent(nature, stat))
    return int(out[0])


def calc_stats(
    base_stats: Dict[str, int],
    level: int,
    nature: Optional[str],
    ivs: Optional[Dict[str, int]] = None,
    evs: Optional[Dict[str, int]] = None,
) -> Dict[str, int]:
    ivs = ivs or {}
    evs = evs or {}
    return {
        k: calc_stat(k, base_stats.get(k, 0), level, ivs.get(k, 31), evs.get(k, 0), nature)
        for k in STATS
    }


def _min_ev_for(stat: str, base: int, level: int, target: int, iv: int, percent: int) -> Optional[int]:
    evs = np.arange(0, MAX_EV + 1, 4)
    values = _stat_grid(stat, base, level, np.full_like(evs, iv), evs, percent)
    hits = np.flatnonzero(values == target)
    return int(evs[hits[0]]) if hits.size else None


def _observed(slot: Slot) -> Dict[str, int]:
    return {k: int(v) for k, v in (slot.server_stats or {}).items() if k in STATS and v}


def guess_server_spread(slot: Slot, base_stats: Dict[str, int], level: Optional[int] = None) -> Dict[str, object]:
    """Nature/IVs/EVs reproducing the slot's server stats, or {} if none exists.

    Every nature is tried; per stat the smallest EV amount that works with 31
    IVs wins, then with 0 IVs. Among the natures with a legal result (EV total
    within 510) the one spending the most EVs is kept; ties go to the earlier
    nature.
    """
    observed = _observed(slot)
    level = int(level or slot.level or 100)
    if not observed or not base_stats:
        return {}

    best: Optional[Dict[str, object]] = None
    best_total = -1
    for nature in NATURES:
        ivs = {k: 31 for k in STATS}
        evs = {k: 0 for k in STATS}
        ok = True
        for stat, target in observed.items():
            pct = nature_percent(nature, stat)
            base = int(base_stats.get(stat, 0))
            found = None
            for iv in (31, 0):
                ev = _min_ev_for(stat, base, level, target, iv, pct)
                if ev is not None:
                    found = (iv, ev)
                    break
            if found is None:
                ok = False
                break
            ivs[stat], evs[stat] = found
        if not ok:
            continue
        total = sum(evs.values())
        if total > MAX_TOTAL_EVS:
            continue
        if total > best_total:
            best, best_total = {"nature": nature, "ivs": ivs, "evs": evs}, total

    if best is None:
        log.debug(f"[spreads] no spread reproduces {slot.species_forme} stats {observed}")
        return {}
    return best


def guess_server_legacy_spread(slot: Slot, base_stats: Dict[str, int], level: Optional[int] = None) -> Dict[str, object]:
    """Gens 1-2: EVs stay maxed, only the (even) IVs vary."""
    observed = _observed(slot)
    level = int(level or slot.level or 100)
    if not observed or not base_stats:
        return {}

    candidates = np.arange(30, -1, -2)
    ivs = {k: 30 for k in STATS}
    for stat, target in observed.items():
        values = _stat_grid(stat, int(base_stats.get(stat, 0)), level, candidates, np.full_like(candidates, MAX_EV), 100)
        hits = np.flatnonzero(values == target)
        if not hits.size:
            log.debug(f"[spreads] no legacy DVs reproduce {slot.species_forme} {stat}={target}")
            return {}
        ivs[stat] = int(candidates[hits[0]])

    return {"nature": "Hardy", "ivs": ivs, "evs": {k: MAX_EV for k in STATS}}


def stats_match(observed: Dict[str, int], computed: Dict[str, int]) -> bool:
    keys: List[str] = [k for k in STATS if observed.get(k)]
    return bool(keys) and all(int(observed[k]) == int(computed.get(k, -1)) for k in keys)

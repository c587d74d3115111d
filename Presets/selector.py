# selector.py
"""
Pick the presets of a pool that apply to a slot.

    select_pokemon_presets(pool, slot, format=..., format_only=..., source=..., select=..., filter=...)

`select` controls how broadly the slot's species is matched:

- SelectMode.SPECIES      exact current species forme only
- SelectMode.TRANSFORMED  the forme the slot is currently transformed into
- SelectMode.ONE          first forme (transformed, current, base species) with any hit
- SelectMode.ANY          every preset of any of those formes, pool order kept

No match is an empty list, never an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, List, Optional

from poke_env.data.normalize import to_id_str

from .battle_state import Slot
from .candidates import Preset, PresetSource, has_id
from .formats import full_format, parse_gen_from_format

PresetFilter = Callable[[Preset], bool]

# species whose names carry a hyphen that is not a forme separator
_HYPHENATED_SPECIES = {
    "hooh", "porygonz", "jangmoo", "hakamoo", "kommoo",
    "tinglu", "chienpao", "wochien", "chiyu", "typenull",
    "mrmime", "mimejr", "mrrime",
}


class SelectMode(str, Enum):
    SPECIES = "species"
    TRANSFORMED = "transformed"
    ONE = "one"
    ANY = "any"


def base_species(species_forme: Optional[str], dex=None) -> Optional[str]:
    if not species_forme:
        return None
    if dex is not None:
        entry = dex.get_species(species_forme)
        if entry and entry.get("baseSpecies"):
            return entry["baseSpecies"]
    if to_id_str(species_forme) in _HYPHENATED_SPECIES or "-" not in species_forme:
        return species_forme
    return species_forme.split("-")[0]


def preset_format(preset: Preset) -> str:
    return full_format(preset.format, preset.gen)


def same_format(preset: Preset, fmt: Optional[str]) -> bool:
    return bool(fmt) and preset_format(preset) == full_format(fmt)


def _forme_keys(slot: Slot, select: SelectMode, dex=None) -> List[str]:
    if select == SelectMode.SPECIES:
        keys = [slot.species_forme]
    elif select == SelectMode.TRANSFORMED:
        keys = [slot.transformed_forme]
    else:
        keys = [slot.transformed_forme, slot.species_forme, base_species(slot.species_forme, dex)]
    out: List[str] = []
    for k in keys:
        kid = to_id_str(k or "")
        if kid and kid not in out:
            out.append(kid)
    return out


def select_pokemon_presets(
    presets: Iterable[Preset],
    slot: Slot,
    *,
    format: Optional[str] = None,
    format_only: bool = False,
    source: Optional[PresetSource] = None,
    select: SelectMode = SelectMode.ANY,
    filter: Optional[PresetFilter] = None,
    dex=None,
) -> List[Preset]:
    if slot is None or not slot.species_forme:
        return []

    keys = _forme_keys(slot, select, dex)
    if not keys:
        return []

    eligible: List[Preset] = []
    for p in presets or []:
        if not has_id(p) or not p.species_forme:
            continue
        if format_only and not same_format(p, format):
            continue
        if source is not None and p.source != source:
            continue
        if filter is not None and not filter(p):
            continue
        if to_id_str(p.species_forme) not in keys:
            continue
        eligible.append(p)

    if select != SelectMode.ONE:
        return eligible

    for key in keys:
        hits = [p for p in eligible if to_id_str(p.species_forme) == key]
        if hits:
            return hits
    return []


def sort_presets_by_format(fmt: Optional[str]) -> Callable[[Preset], int]:
    """Sort key: same format, then same generation, then anything else."""
    target = full_format(fmt)
    gen = parse_gen_from_format(target)

    def key(preset: Preset) -> int:
        pf = preset_format(preset)
        if target and pf == target:
            return 0
        if parse_gen_from_format(pf, default=0) == gen:
            return 1
        return 2

    return key

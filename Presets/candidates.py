# candidates.py
"""
Configuration candidates ("presets") and their content-addressed ids.

A preset is a full or partial configuration proposed for a slot: ability,
item, moves, spread and tera types, plus ranked alternates. Presets are
immutable once handed to the engine; everything that needs a variation works
on a copy (see `clone_preset`).

Ids are digests of the semantic fields, so two presets built independently
from the same data collide to the same id:

    >>> a = Preset(source=PresetSource.SMOGON, species_forme="Ferrothorn", moves=["Stealth Rock"])
    >>> b = Preset(source=PresetSource.SMOGON, species_forme="Ferrothorn", moves=["Stealth Rock"])
    >>> calc_preset_id(a) == calc_preset_id(b)
    True
"""

from __future__ import annotations

import copy
import hashlib
import json
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from poke_env.data.normalize import to_id_str

# entries in alt_* lists are either a bare name or a (name, usage share) pair
AltEntry = Union[str, Tuple[str, float]]

STATS = ("hp", "atk", "def", "spa", "spd", "spe")


class PresetSource(str, Enum):
    SMOGON = "smogon"      # curated community sets (general pool)
    USAGE = "usage"        # aggregated usage stats / random battle roles
    SHEET = "sheet"        # leaked / open team sheets
    SERVER = "server"      # observed directly from our own side
    IMPORT = "import"      # pasted by the user


# fields that never take part in the content digest
_NON_SEMANTIC = ("id", "name")


@dataclass
class Preset:
    source: PresetSource
    species_forme: str
    id: Optional[str] = None
    name: Optional[str] = None
    format: Optional[str] = None
    gen: Optional[int] = None
    level: Optional[int] = None
    ability: Optional[str] = None
    alt_abilities: List[AltEntry] = field(default_factory=list)
    item: Optional[str] = None
    alt_items: List[AltEntry] = field(default_factory=list)
    moves: List[str] = field(default_factory=list)
    alt_moves: List[AltEntry] = field(default_factory=list)
    tera_types: List[str] = field(default_factory=list)
    alt_tera_types: List[AltEntry] = field(default_factory=list)
    nature: Optional[str] = None
    ivs: Dict[str, int] = field(default_factory=dict)
    evs: Dict[str, int] = field(default_factory=dict)
    player_name: Optional[str] = None
    nickname: Optional[str] = None
    gender: Optional[str] = None
    shiny: bool = False
    happiness: Optional[int] = None
    usage: Optional[float] = None

    def with_id(self) -> "Preset":
        """Copy of this preset stamped with its content id."""
        out = clone_preset(self)
        out.id = calc_preset_id(out)
        return out

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["source"] = self.source.value
        out["alt_abilities"] = [_alt_to_json(a) for a in self.alt_abilities]
        out["alt_items"] = [_alt_to_json(a) for a in self.alt_items]
        out["alt_moves"] = [_alt_to_json(a) for a in self.alt_moves]
        out["alt_tera_types"] = [_alt_to_json(a) for a in self.alt_tera_types]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preset":
        kw = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        kw["source"] = PresetSource(kw.get("source") or PresetSource.IMPORT.value)
        for key in ("alt_abilities", "alt_items", "alt_moves", "alt_tera_types"):
            kw[key] = [_alt_from_json(a) for a in (kw.get(key) or [])]
        preset = cls(**kw)
        if not preset.id:
            preset.id = calc_preset_id(preset)
        return preset


def _alt_to_json(entry: AltEntry) -> Any:
    if isinstance(entry, tuple):
        return [entry[0], entry[1]]
    return entry


def _alt_from_json(entry: Any) -> AltEntry:
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return (str(entry[0]), float(entry[1]))
    return str(entry)


def _stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def calc_preset_id(preset: Preset) -> str:
    """Deterministic digest of the semantic fields of `preset`."""
    payload = preset.as_dict()
    for key in _NON_SEMANTIC:
        payload.pop(key, None)
    return hashlib.sha256(_stable_json_dumps(payload).encode("utf-8")).hexdigest()


def clone_preset(preset: Preset) -> Preset:
    return copy.deepcopy(preset)


def restamp(preset: Preset, **changes: Any) -> Preset:
    """Copy with `changes` applied and a freshly computed id."""
    out = replace(clone_preset(preset), **changes)
    out.id = calc_preset_id(out)
    return out


def has_id(preset: Optional[Preset]) -> bool:
    return preset is not None and bool(preset.id)


def flatten_alts(alts: Optional[Iterable[AltEntry]]) -> List[str]:
    out: List[str] = []
    for a in alts or []:
        name = a[0] if isinstance(a, tuple) else a
        if name and name not in out:
            out.append(name)
    return out


def alt_shares(alts: Optional[Iterable[AltEntry]]) -> Dict[str, float]:
    return {to_id_str(a[0]): float(a[1]) for a in (alts or []) if isinstance(a, tuple)}


def ability_pool(preset: Preset) -> List[str]:
    return flatten_alts([*preset.alt_abilities, *([preset.ability] if preset.ability else [])])


def item_pool(preset: Preset) -> List[str]:
    return flatten_alts([*preset.alt_items, *([preset.item] if preset.item else [])])


def move_pool(preset: Preset) -> List[str]:
    return flatten_alts([*preset.alt_moves, *preset.moves])


def pool_covers(pool: Sequence[str], names: Iterable[str]) -> bool:
    ids = {to_id_str(n) for n in pool}
    return all(to_id_str(n) in ids for n in names if n)


def in_pool(pool: Sequence[str], name: Optional[str]) -> bool:
    return bool(name) and to_id_str(name) in {to_id_str(n) for n in pool}


def detect_complete_preset(preset: Optional[Preset]) -> bool:
    """True when the preset exposes an exact spread (nature, EVs and IVs).

    Open team sheets only reveal species/ability/item/moves/tera, so they never
    qualify.
    """
    if not has_id(preset):
        return False
    return bool(preset.nature) and bool(preset.evs) and bool(preset.ivs)


@dataclass
class CandidatePool:
    """An already-loaded pool: general presets plus usage presets for one format."""
    presets: List[Preset] = field(default_factory=list)
    usages: List[Preset] = field(default_factory=list)
    ready: bool = False

# battle_state.py
"""
Structured battle state consumed by the preset engine.

The engine never holds on to these objects: a pass clones the slots it works
on, and hands back a `BattlePatch` (see patch.py) for the caller to commit.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .candidates import STATS, Preset, PresetSource, _alt_from_json, _alt_to_json
from .formats import guess_level_from_format, is_legacy_gen, parse_gen_from_format

PLAYER_KEYS = ("p1", "p2", "p3", "p4")


@dataclass
class Slot:
    slot_id: str
    species_forme: str
    level: Optional[int] = None
    nickname: Optional[str] = None
    gender: Optional[str] = None
    types: List[str] = field(default_factory=list)

    ability: Optional[str] = None
    item: Optional[str] = None
    moves: List[str] = field(default_factory=list)
    revealed_ability: Optional[str] = None
    revealed_item: Optional[str] = None
    revealed_moves: List[str] = field(default_factory=list)

    transformed_forme: Optional[str] = None
    transformed_moves: List[str] = field(default_factory=list)
    transformed_abilities: List[str] = field(default_factory=list)

    preset_id: Optional[str] = None
    usage_id: Optional[str] = None
    preset_source: Optional[PresetSource] = None
    auto_preset: bool = True
    source: Optional[PresetSource] = None
    server_stats: Dict[str, int] = field(default_factory=dict)
    server_moves: List[str] = field(default_factory=list)
    presets: List[Preset] = field(default_factory=list)

    nature: Optional[str] = None
    ivs: Dict[str, int] = field(default_factory=dict)
    evs: Dict[str, int] = field(default_factory=dict)
    tera_type: Optional[str] = None
    dirty_tera_type: Optional[str] = None
    dirty_item: Optional[str] = None

    alt_abilities: List[Any] = field(default_factory=list)
    alt_items: List[Any] = field(default_factory=list)
    alt_moves: List[Any] = field(default_factory=list)
    alt_tera_types: List[Any] = field(default_factory=list)

    needs_manual_input: bool = False

    @property
    def is_transformed(self) -> bool:
        return bool(self.transformed_forme)

    @property
    def is_server(self) -> bool:
        return self.source == PresetSource.SERVER

    @property
    def needs_preset(self) -> bool:
        """Slots without a preset, or whose preset was auto-assigned."""
        return not self.preset_id or self.auto_preset

    def clone(self) -> "Slot":
        return copy.deepcopy(self)

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["source"] = self.source.value if self.source else None
        out["preset_source"] = self.preset_source.value if self.preset_source else None
        out["presets"] = [p.as_dict() for p in self.presets]
        for key in ("alt_abilities", "alt_items", "alt_moves", "alt_tera_types"):
            out[key] = [_alt_to_json(a) for a in getattr(self, key)]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slot":
        kw = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        for key in ("source", "preset_source"):
            if kw.get(key):
                kw[key] = PresetSource(kw[key])
        kw["presets"] = [Preset.from_dict(p) for p in (kw.get("presets") or [])]
        for key in ("alt_abilities", "alt_items", "alt_moves", "alt_tera_types"):
            kw[key] = [_alt_from_json(a) for a in (kw.get(key) or [])]
        return cls(**kw)


@dataclass
class Side:
    key: str
    name: Optional[str] = None
    slots: List[Slot] = field(default_factory=list)
    active_index: Optional[int] = None

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "Side":
        return cls(
            key=key,
            name=data.get("name"),
            slots=[Slot.from_dict(s) for s in (data.get("slots") or [])],
            active_index=data.get("active_index"),
        )


@dataclass
class FieldState:
    auto_weather: Optional[str] = None
    auto_terrain: Optional[str] = None
    dirty_weather: Optional[str] = None
    dirty_terrain: Optional[str] = None


@dataclass
class BattleState:
    battle_id: Optional[str]
    format: Optional[str]
    sides: Dict[str, Side] = field(default_factory=dict)
    gen: Optional[int] = None
    legacy: Optional[bool] = None
    default_level: int = 100
    operating_mode: str = "battle"
    sheets: List[Preset] = field(default_factory=list)
    sheets_nonce: int = 0
    sheets_applied: bool = False
    field_state: FieldState = field(default_factory=FieldState)

    def __post_init__(self):
        if self.gen is None:
            self.gen = parse_gen_from_format(self.format)
        if self.legacy is None:
            self.legacy = is_legacy_gen(self.gen)

    def iter_sides(self):
        for key in PLAYER_KEYS:
            side = self.sides.get(key)
            if side is not None:
                yield key, side

    def has_slots(self) -> bool:
        return any(side.slots for _, side in self.iter_sides())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BattleState":
        sides = {
            key: Side.from_dict(key, data[key] if key in data else data.get("sides", {}).get(key) or {})
            for key in PLAYER_KEYS
            if key in data or key in (data.get("sides") or {})
        }
        return cls(
            battle_id=data.get("battle_id"),
            format=data.get("format"),
            sides=sides,
            gen=data.get("gen"),
            legacy=data.get("legacy"),
            default_level=int(data.get("default_level") or guess_level_from_format(data.get("format"))),
            operating_mode=data.get("operating_mode") or "battle",
            sheets=[Preset.from_dict(p) for p in (data.get("sheets") or [])],
            sheets_nonce=int(data.get("sheets_nonce") or 0),
            sheets_applied=bool(data.get("sheets_applied", False)),
            field_state=FieldState(**{k: v for k, v in (data.get("field") or {}).items() if k in FieldState.__dataclass_fields__}),
        )


def empty_spread(kind: str, legacy: bool = False) -> Dict[str, int]:
    """Default IV/EV tables: IVs max (30 in legacy gens), EVs zero (252 in legacy gens)."""
    if kind == "iv":
        return {k: (30 if legacy else 31) for k in STATS}
    return {k: (252 if legacy else 0) for k in STATS}

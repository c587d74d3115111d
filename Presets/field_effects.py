# field_effects.py
"""
Passive weather/terrain helpers.

Key functions
-------------
- determine_weather(slot, format) -> str | None
    Weather the slot sets up on its own (Drought, Drizzle, primal orbs, ...).
- determine_terrain(slot) -> str | None
    Terrain the slot sets up on its own (Electric Surge, Hadron Engine, ...).
- propagate_field_effects(slot, field, format) -> dict
    Field patch for the active slot. Fields the user overrode (dirty_weather /
    dirty_terrain) are left alone.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from poke_env.data.normalize import to_id_str

from .battle_state import FieldState, Slot
from .formats import parse_gen_from_format

_WEATHER_ABILITIES = {
    "drought": "Sun",
    "orichalcumpulse": "Sun",
    "drizzle": "Rain",
    "sandstream": "Sand",
    "snowwarning": "Hail",
    "desolateland": "Harsh Sunshine",
    "primordialsea": "Heavy Rain",
    "deltastream": "Strong Winds",
}

# primal orbs only work for their own species
_WEATHER_ITEMS = {
    ("redorb", "groudon"): "Harsh Sunshine",
    ("blueorb", "kyogre"): "Heavy Rain",
}

_TERRAIN_ABILITIES = {
    "electricsurge": "Electric",
    "hadronengine": "Electric",
    "grassysurge": "Grassy",
    "mistysurge": "Misty",
    "psychicsurge": "Psychic",
}


def _species_base_id(slot: Slot) -> str:
    return to_id_str((slot.species_forme or "").split("-")[0])


def determine_weather(slot: Optional[Slot], fmt: Optional[str]) -> Optional[str]:
    if slot is None:
        return None
    gen = parse_gen_from_format(fmt)
    if gen < 3:
        return None

    weather = _WEATHER_ABILITIES.get(to_id_str(slot.ability or ""))
    if weather == "Hail" and gen > 8:
        weather = "Snow"
    if weather:
        return weather

    item = to_id_str(slot.dirty_item or slot.item or "")
    return _WEATHER_ITEMS.get((item, _species_base_id(slot)))


def determine_terrain(slot: Optional[Slot]) -> Optional[str]:
    if slot is None:
        return None
    return _TERRAIN_ABILITIES.get(to_id_str(slot.ability or ""))


def propagate_field_effects(slot: Optional[Slot], field: FieldState, fmt: Optional[str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    weather = determine_weather(slot, fmt)
    terrain = determine_terrain(slot)
    if weather and not field.dirty_weather and field.auto_weather != weather:
        out["auto_weather"] = weather
    if terrain and not field.dirty_terrain and field.auto_terrain != terrain:
        out["auto_terrain"] = terrain
    return out

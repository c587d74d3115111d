"""
Candidate pool loader for local Showdown / Smogon set dumps.

Layout under the showdown data dir (see dex_registry.find_showdown_dir):

    sets/<format>.json                 Smogon sets: species -> set name -> set
    stats/<format>.json                usage stats: {"pokemon": {species: {...}}}
    random-battles/gen<N>/sets.json    random battle roles: species -> {"level", "sets": [...]}
    gen<N>_random_sets.json            flattened variant of the above

Smogon sets become general presets; usage stats and random battle roles
become usage presets (one per role). Nothing here touches the network.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from Presets.candidates import CandidatePool, Preset, PresetSource
from Presets.formats import full_format, genless_format, is_random_format, parse_gen_from_format

from .dex_registry import find_showdown_dir

log = logging.getLogger("Dex.sets")

USAGE_PRESET_NAME = "Showdown Usage"

# Cache: (base dir, format) -> pool
_CACHE: Dict[Tuple[str, str], CandidatePool] = {}


def _read_json(p: Path) -> Any:
    if not p.is_file():
        return None
    try:
        with p.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        log.warning(f"[sets] failed to read {p}: {e}")
        return None


def _first_and_rest(value: Any) -> Tuple[Optional[str], List[str]]:
    if isinstance(value, list):
        names = [str(v) for v in value if v]
        return (names[0] if names else None), names[1:]
    if value:
        return str(value), []
    return None, []


def _spread_from(value: Any) -> Dict[str, int]:
    # Smogon dumps sometimes list several spreads; the first one wins
    if isinstance(value, list):
        value = value[0] if value else {}
    if not isinstance(value, dict):
        return {}
    return {str(k): int(v) for k, v in value.items() if k in ("hp", "atk", "def", "spa", "spd", "spe")}


def _species_name(key: str, dex=None) -> str:
    if dex is not None:
        entry = dex.get_species(key)
        if entry and entry.get("name"):
            return entry["name"]
    return key


def _smogon_set(species: str, set_name: str, defn: Dict[str, Any], fmt: str, gen: int) -> Optional[Preset]:
    moves: List[str] = []
    alt_moves: List[str] = []
    # moves: ["a", ["b", "c"], ...] -> first option per slot, the rest become alternates
    for slot in defn.get("moves") or []:
        first, rest = _first_and_rest(slot)
        if first and first not in moves:
            moves.append(first)
        alt_moves.extend(m for m in rest if m not in alt_moves)

    ability, alt_abilities = _first_and_rest(defn.get("ability") or defn.get("abilities"))
    item, alt_items = _first_and_rest(defn.get("item") or defn.get("items"))
    nature, _ = _first_and_rest(defn.get("nature"))
    tera_types = defn.get("teratypes") or defn.get("teraType") or defn.get("teraTypes") or []
    if isinstance(tera_types, str):
        tera_types = [tera_types]

    return Preset(
        source=PresetSource.SMOGON,
        species_forme=species,
        name=set_name,
        format=fmt,
        gen=gen,
        level=defn.get("level"),
        ability=ability,
        alt_abilities=alt_abilities,
        item=item,
        alt_items=alt_items,
        moves=moves[:4],
        alt_moves=[*moves[4:], *alt_moves],
        tera_types=list(tera_types),
        nature=nature,
        evs=_spread_from(defn.get("evs")),
        ivs=_spread_from(defn.get("ivs")),
    ).with_id()


def parse_smogon_sets(data: Any, fmt: str, dex=None) -> List[Preset]:
    out: List[Preset] = []
    if not isinstance(data, dict):
        return out
    gen = parse_gen_from_format(fmt)
    for species, sets in data.items():
        if not isinstance(sets, dict):
            continue
        name = _species_name(species, dex)
        for set_name, defn in sets.items():
            if isinstance(defn, dict):
                preset = _smogon_set(name, str(set_name), defn, fmt, gen)
                if preset is not None:
                    out.append(preset)
    return out


def _ranked(table: Any) -> List[Tuple[str, float]]:
    if not isinstance(table, dict):
        return []
    pairs = [(str(k), float(v)) for k, v in table.items() if k and isinstance(v, (int, float))]
    return sorted(pairs, key=lambda kv: -kv[1])


def _parse_usage_spread(key: str) -> Tuple[Optional[str], Dict[str, int]]:
    # "Jolly:0/252/0/0/4/252"
    try:
        nature, values = key.split(":", 1)
        nums = [int(v) for v in values.split("/")]
    except ValueError:
        return None, {}
    if len(nums) != 6:
        return None, {}
    return nature, dict(zip(("hp", "atk", "def", "spa", "spd", "spe"), nums))


def parse_usage_stats(data: Any, fmt: str, dex=None) -> List[Preset]:
    out: List[Preset] = []
    mons = data.get("pokemon") if isinstance(data, dict) else None
    if not isinstance(mons, dict):
        return out
    gen = parse_gen_from_format(fmt)
    for species, stats in mons.items():
        if not isinstance(stats, dict):
            continue
        abilities = _ranked(stats.get("abilities"))
        items = _ranked(stats.get("items"))
        moves = _ranked(stats.get("moves"))
        teras = _ranked(stats.get("teras"))
        spreads = _ranked(stats.get("spreads"))
        nature, evs = _parse_usage_spread(spreads[0][0]) if spreads else (None, {})
        usage = stats.get("usage")
        if isinstance(usage, dict):
            usage = usage.get("weighted") or usage.get("raw")

        out.append(Preset(
            source=PresetSource.USAGE,
            species_forme=_species_name(species, dex),
            name=USAGE_PRESET_NAME,
            format=fmt,
            gen=gen,
            ability=abilities[0][0] if abilities else None,
            alt_abilities=list(abilities),
            item=items[0][0] if items else None,
            alt_items=list(items),
            moves=[m for m, _ in moves[:4]],
            alt_moves=list(moves),
            tera_types=[teras[0][0]] if teras else [],
            alt_tera_types=list(teras),
            nature=nature,
            evs=evs,
            usage=float(usage) if isinstance(usage, (int, float)) else None,
        ).with_id())
    out.sort(key=lambda p: -(p.usage or 0.0))
    return out


def parse_random_sets(data: Any, fmt: str, dex=None) -> List[Preset]:
    """One usage preset per random battle role, in file order."""
    out: List[Preset] = []
    if not isinstance(data, dict):
        return out
    gen = parse_gen_from_format(fmt)
    for species, entry in data.items():
        if isinstance(entry, list):
            level, roles = None, entry
        elif isinstance(entry, dict):
            level, roles = entry.get("level"), entry.get("sets")
            if not isinstance(roles, list):
                roles = [entry]
        else:
            continue
        name = _species_name(species, dex)
        for role in roles:
            if not isinstance(role, dict):
                continue
            pool = role.get("movepool") or role.get("moves") or role.get("randomBattleMoves") or []
            pool = [m for m in pool if isinstance(m, str)]
            ability, alt_abilities = _first_and_rest(role.get("abilities") or role.get("ability"))
            item, alt_items = _first_and_rest(role.get("items") or role.get("item"))
            tera = role.get("teraTypes") or []
            out.append(Preset(
                source=PresetSource.USAGE,
                species_forme=name,
                name=role.get("role") or USAGE_PRESET_NAME,
                format=fmt,
                gen=gen,
                level=role.get("level") or level,
                ability=ability,
                alt_abilities=alt_abilities,
                item=item,
                alt_items=alt_items,
                moves=pool[:4],
                alt_moves=pool[4:],
                tera_types=list(tera[:1]),
                alt_tera_types=list(tera[1:]),
            ).with_id())
    return out


def load_candidate_pool(fmt: str, base_dir: Optional[Path] = None, dex=None, use_cache: bool = True) -> CandidatePool:
    """General + usage presets for `fmt` from the local dumps.

    `ready` is True once loading finished, even if nothing was found.
    """
    fmt = full_format(fmt)
    base = Path(base_dir) if base_dir else find_showdown_dir()
    cache_key = (str(base), fmt)
    if use_cache and cache_key in _CACHE:
        return _CACHE[cache_key]

    pool = CandidatePool(ready=True)
    if base is None:
        log.info(f"[sets] no showdown data dir found; empty pool for {fmt}")
        _CACHE[cache_key] = pool
        return pool

    gen = parse_gen_from_format(fmt)
    pool.presets = parse_smogon_sets(_read_json(base / "sets" / f"{fmt}.json"), fmt, dex)
    pool.usages = parse_usage_stats(_read_json(base / "stats" / f"{fmt}.json"), fmt, dex)

    if is_random_format(fmt):
        roles = _read_json(base / "random-battles" / f"gen{gen}" / "sets.json")
        if roles is None:
            roles = _read_json(base / f"gen{gen}_random_sets.json")
        pool.usages.extend(parse_random_sets(roles, fmt, dex))

    log.info(
        f"[sets] loaded {len(pool.presets)} presets + {len(pool.usages)} usages for {fmt} "
        f"({genless_format(fmt)}) from {base}"
    )
    if use_cache:
        _CACHE[cache_key] = pool
    return pool

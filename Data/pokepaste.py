"""pokepaste.py
Showdown teambuilder export ("PokePaste") -> Preset.

    The King (Slowking-Galar) @ Assault Vest
    Ability: Regenerator
    IVs: 0 Atk
    EVs: 248 HP / 84 SpA / 176 SpD
    Calm Nature
    - Future Sight
    - Scald / Surf

Values aren't validated for legality; names are only checked against the dex
when one is given. Up to 3 moves are read per move line: the first goes into
`moves` (while there's room), the rest into `alt_moves`.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple

from poke_env.data.normalize import to_id_str

from Presets.candidates import STATS, Preset, PresetSource
from Presets.formats import full_format, parse_gen_from_format
from Presets.spreads import NATURES, normalize_nature

log = logging.getLogger("Dex.paste")

MAX_MOVES = 4

TYPES = (
    "Normal", "Fire", "Water", "Electric", "Grass", "Ice", "Fighting", "Poison", "Ground",
    "Flying", "Psychic", "Bug", "Rock", "Ghost", "Dragon", "Dark", "Steel", "Fairy", "Stellar",
)

_MOVE = r"[A-Z0-9()\[\]\- ]+[A-Z0-9()\[\]]"

# order matters: the species line matches pretty much anything, so it goes last
_LINE_PARSERS: List[Tuple[str, Pattern[str]]] = [
    ("level", re.compile(r"^\s*Level:\s*(\d+)$", re.I)),
    ("ability", re.compile(r"^\s*Ability:\s*(.+)$", re.I)),
    ("shiny", re.compile(r"^\s*Shiny:\s*([A-Z]+)$", re.I)),
    ("happiness", re.compile(r"^\s*Happiness:\s*(\d+)$", re.I)),
    ("gigantamax", re.compile(r"^\s*Gigantamax:\s*([A-Z]+)$", re.I)),
    ("tera_types", re.compile(r"^\s*Tera\s*Type:\s*([A-Z]+)$", re.I)),
    ("ivs", re.compile(r"^\s*IVs:\s*(\d.+)$", re.I)),
    ("evs", re.compile(r"^\s*EVs:\s*(\d.+)$", re.I)),
    ("nature", re.compile(r"^\s*([A-Z]+)\s+Nature$", re.I)),
    ("moves", re.compile(
        rf"^\s*-\s*({_MOVE})(?:\s*[/,]\s*({_MOVE}))?(?:\s*[/,]\s*({_MOVE}))?$", re.I,
    )),
    ("name", re.compile(r"^=+\s*(?:\[([A-Z0-9]+)\]\s*)(.+[^\s])\s*={3}$", re.I)),
    ("species_forme", re.compile(
        r"(?:\s*\(([A-Z\xC0-\xFF0-9\-]{2,})\))?(?:\s*\(([MF])\))?(?:\s*@\s*([A-Z0-9\- ]+[A-Z0-9]))?$", re.I,
    )),
]

_SPREAD_PARSERS: Dict[str, Pattern[str]] = {
    "hp": re.compile(r"(\d+)\s*HP", re.I),
    "atk": re.compile(r"(\d+)\s*Atk", re.I),
    "def": re.compile(r"(\d+)\s*Def", re.I),
    "spa": re.compile(r"(\d+)\s*SpA", re.I),
    "spd": re.compile(r"(\d+)\s*SpD", re.I),
    "spe": re.compile(r"(\d+)\s*Spe", re.I),
}


def _clamp(lo: int, value: int, hi: int) -> int:
    return max(lo, min(value, hi))


def _lookup(dex, kind: str, name: Optional[str]) -> Optional[str]:
    """Canonical dex name, or the raw name when there's no dex to check against."""
    if not name:
        return None
    if dex is None:
        return name.strip()
    entry = getattr(dex, f"get_{kind}")(name)
    if not entry or not entry.get("exists"):
        return None
    return entry.get("name") or name.strip()


def _parse_species_line(preset: Preset, line: str, rx: Pattern[str], dex) -> None:
    m = rx.search(line)
    forme, gender, item = m.groups() if m else (None, None, None)
    remaining = (line[: m.start()] + line[m.end():]).strip() if m else line.strip()

    guessed = forme or remaining
    species = _lookup(dex, "species", guessed)
    if not species:
        return
    preset.species_forme = species

    if forme and remaining and guessed == forme:
        preset.nickname = remaining

    if gender:
        entry = dex.get_species(species) if dex is not None else None
        if not entry or entry.get("gender") != "N":
            preset.gender = gender.upper()

    if item:
        found = _lookup(dex, "item", item)
        if found:
            preset.item = found


def _parse_moves(preset: Preset, groups: Tuple[Optional[str], ...], dex) -> None:
    names = [_lookup(dex, "move", g.strip()) for g in groups if g]
    names = [n for n in names if n]

    added = False
    for n in names:
        target = preset.alt_moves if added or len(preset.moves) + 1 > MAX_MOVES else preset.moves
        if n in target:
            continue
        target.append(n)
        added = True


def import_pokepaste(text: Optional[str], fmt: Optional[str] = None, name: str = "Import", dex=None) -> Optional[Preset]:
    """Parse a single-Pokemon paste; None when no species could be determined."""
    if not text:
        return None

    gen = parse_gen_from_format(fmt)
    preset = Preset(
        source=PresetSource.IMPORT,
        species_forme="",
        name=name,
        format=full_format(fmt, gen) if fmt else None,
        gen=gen,
        level=100,
        ivs={s: 31 for s in STATS},
        evs={s: 0 for s in STATS},
        nature="Hardy",
    )

    lines = [l.strip() for l in text.splitlines() if l.strip()]
    for line in lines:
        key, rx = next(((k, r) for k, r in _LINE_PARSERS if r.search(line)), (None, None))
        if key is None:
            continue
        m = rx.search(line)

        if key == "species_forme":
            _parse_species_line(preset, line, rx, dex)
        elif key == "level":
            level = _clamp(0, int(m.group(1)), 100)
            if level:
                preset.level = level
        elif key == "ability":
            found = _lookup(dex, "ability", m.group(1))
            if found:
                preset.ability = found
        elif key == "shiny":
            preset.shiny = m.group(1).strip().lower()[:1] in ("y", "t")
        elif key == "happiness":
            preset.happiness = _clamp(0, int(m.group(1)), 255)
        elif key == "gigantamax":
            if to_id_str(m.group(1)).startswith("y") and preset.species_forme and dex is not None:
                gmax = dex.get_species(f"{preset.species_forme}-Gmax")
                if gmax and gmax.get("exists"):
                    preset.species_forme = gmax["name"]
        elif key == "tera_types":
            tera = m.group(1).capitalize()
            if tera in TYPES:
                preset.tera_types = [tera]
        elif key in ("ivs", "evs"):
            spread = getattr(preset, key)
            for stat, srx in _SPREAD_PARSERS.items():
                sm = srx.search(m.group(1))
                if sm:
                    spread[stat] = max(0, int(sm.group(1)))
        elif key == "nature":
            nature = normalize_nature(m.group(1))
            if nature in NATURES:
                preset.nature = nature
        elif key == "moves":
            _parse_moves(preset, m.groups(), dex)
        elif key == "name":
            detected_format, detected_name = m.groups()
            if detected_format and _looks_like_format(detected_format):
                preset.format = to_id_str(detected_format)
            if detected_name and detected_name.strip():
                preset.name = detected_name.strip()

    if not preset.species_forme:
        log.debug("[paste] no species found; ignoring paste")
        return None

    if gen > 8 and not preset.tera_types and dex is not None:
        preset.tera_types = list(dex.species_types(preset.species_forme))

    return preset.with_id()


def _looks_like_format(value: str) -> bool:
    return bool(re.match(r"^gen\d+", to_id_str(value)))

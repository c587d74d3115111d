"""dex_registry.py
Read-only legality oracle for species, abilities, moves and items.

Species and moves come from poke-env's bundled `GenData`; items and abilities
come from the raw Showdown exports (items.js / abilities.js, or their .json
variants) found in the first existing directory among (relative to the
project root or the current directory):
  - $POKESET_SHOWDOWN_DIR
  - showdown/
  - Resources/showdown/
  - tools/Data/showdown/

Provides:
  DexRegistry.get_species(name) -> dict | None
  DexRegistry.get_ability(name) -> dict | None
  DexRegistry.get_move(name) -> dict | None
  DexRegistry.get_item(name) -> dict | None
  get_dex_for_format(format) -> DexRegistry   (cached per generation)

Every hit is a copy of the raw entry with `name` and `exists: True` filled in.
Misses return None; nothing here raises for unknown names.
"""
from __future__ import annotations

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from poke_env.data import GenData
from poke_env.data.normalize import to_id_str

from Presets.formats import parse_gen_from_format

log = logging.getLogger("Dex")

_ROOT = Path(__file__).resolve().parent.parent


def showdown_dir_candidates() -> List[Path]:
    out = []
    env = os.getenv("POKESET_SHOWDOWN_DIR")
    if env:
        out.append(Path(env))
    for base in (_ROOT, Path.cwd()):
        out.extend([base / "showdown", base / "Resources" / "showdown", base / "tools" / "Data" / "showdown"])
    return out


def find_showdown_dir() -> Optional[Path]:
    for cand in showdown_dir_candidates():
        if cand.is_dir():
            return cand
    return None


def _strip_js_comments(src: str) -> str:
    src = re.sub(r"/\*.*?\*/", "", src, flags=re.S)
    src = re.sub(r"(^|\s)//.*?$", r"\1", src, flags=re.M)
    return src


def _parse_js_object_literal(text: str) -> Dict[str, Any]:
    # exports.BattleItems = {...};
    m = re.search(r"=\s*({.*})\s*;?\s*$", text, flags=re.S)
    if not m:
        m = re.search(r"({.*})\s*;?\s*$", text, flags=re.S)
    if not m:
        return {}
    obj = m.group(1)
    obj = re.sub(r",(\s*[}\]])", r"\1", obj)
    obj = re.sub(r'([:{,]\s*)([A-Za-z0-9_]+)\s*:', r'\1"\2":', obj)
    try:
        data = json.loads(obj)
    except ValueError:
        return {}
    return {to_id_str(k): v for k, v in data.items() if isinstance(v, dict)}


def _load_table(root: Optional[Path], stem: str) -> Dict[str, Dict[str, Any]]:
    if root is None:
        return {}
    for name in (f"{stem}.json", f"{stem}.js"):
        p = root / name
        if not p.is_file():
            continue
        try:
            with p.open("r", encoding="utf-8") as f:
                if name.endswith(".json"):
                    data = json.load(f)
                    if isinstance(data, dict):
                        return {to_id_str(k): v for k, v in data.items() if isinstance(v, dict)}
                else:
                    return _parse_js_object_literal(_strip_js_comments(f.read()))
        except (OSError, ValueError) as e:
            log.warning(f"[Dex] failed to load {p}: {e}")
    return {}


class DexRegistry:
    def __init__(
        self,
        gen: int = 9,
        pokedex: Optional[Dict[str, Dict[str, Any]]] = None,
        moves: Optional[Dict[str, Dict[str, Any]]] = None,
        items: Optional[Dict[str, Dict[str, Any]]] = None,
        abilities: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.gen = gen
        self.pokedex = {to_id_str(k): v for k, v in (pokedex or {}).items()}
        self.moves = {to_id_str(k): v for k, v in (moves or {}).items()}
        self.items = {to_id_str(k): v for k, v in (items or {}).items()}
        self.abilities = {to_id_str(k): v for k, v in (abilities or {}).items()}

    @classmethod
    def from_gen(cls, gen: int, showdown_dir: Optional[Path] = None) -> "DexRegistry":
        pokedex: Dict[str, Any] = {}
        moves: Dict[str, Any] = {}
        try:
            data = GenData.from_gen(gen)
            pokedex = dict(getattr(data, "pokedex", {}) or {})
            moves = dict(getattr(data, "moves", {}) or {})
        except Exception as e:
            # poke-env doesn't ship every generation; callers degrade to "no match"
            log.warning(f"[Dex] GenData unavailable for gen {gen}: {e}")
        root = showdown_dir or find_showdown_dir()
        return cls(
            gen=gen,
            pokedex=pokedex,
            moves=moves,
            items=_load_table(root, "items"),
            abilities=_load_table(root, "abilities"),
        )

    @staticmethod
    def _lookup(table: Dict[str, Dict[str, Any]], name: Optional[str], default_name: bool = True) -> Optional[Dict[str, Any]]:
        if not name:
            return None
        raw = table.get(to_id_str(name))
        if not isinstance(raw, dict):
            return None
        out = dict(raw)
        if default_name or "name" not in out:
            out.setdefault("name", name)
        out["exists"] = True
        return out

    def get_species(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._lookup(self.pokedex, name)

    def get_ability(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._lookup(self.abilities, name)

    def get_move(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._lookup(self.moves, name)

    def get_item(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._lookup(self.items, name)

    def base_stats(self, species: Optional[str]) -> Dict[str, int]:
        entry = self.get_species(species) or {}
        bs = entry.get("baseStats") or {}
        if not isinstance(bs, dict):
            return {}
        return {k: int(v) for k, v in bs.items()}

    def species_types(self, species: Optional[str]) -> List[str]:
        entry = self.get_species(species) or {}
        return [t for t in (entry.get("types") or []) if t]


@lru_cache(maxsize=16)
def _dex_for_gen(gen: int) -> DexRegistry:
    return DexRegistry.from_gen(gen)


def get_dex_for_format(fmt: Optional[str]) -> DexRegistry:
    return _dex_for_gen(parse_gen_from_format(fmt))

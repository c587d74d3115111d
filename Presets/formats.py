# formats.py
"""
Small helpers for Showdown format ids ("gen9ou", "gen3randombattle", ...).
"""

from __future__ import annotations

import re
from typing import Optional

from poke_env.data.normalize import to_id_str

DEFAULT_GEN = 9

_GEN_RX = re.compile(r"^gen(\d+)")


def parse_gen_from_format(fmt: Optional[str], default: int = DEFAULT_GEN) -> int:
    m = _GEN_RX.match(to_id_str(fmt or ""))
    if not m:
        return default
    return int(m.group(1)) or default


def genless_format(fmt: Optional[str]) -> str:
    return _GEN_RX.sub("", to_id_str(fmt or ""))


def full_format(fmt: Optional[str], gen: Optional[int] = None) -> str:
    """'ou' + gen 8 -> 'gen8ou'; already gen-prefixed ids are returned as ids."""
    fid = to_id_str(fmt or "")
    if not fid or _GEN_RX.match(fid):
        return fid
    return f"gen{gen or DEFAULT_GEN}{fid}"


def is_random_format(fmt: Optional[str]) -> bool:
    return "random" in to_id_str(fmt or "")


def is_legacy_gen(gen: int) -> bool:
    # no abilities, items-as-held-natures or EV caps before gen 3
    return 0 < gen < 3


def guess_level_from_format(fmt: Optional[str]) -> int:
    f = to_id_str(fmt or "")
    if "vgc" in f or "doubles" in f or "battlestadium" in f:
        return 50
    if "lc" == genless_format(f):
        return 5
    return 100

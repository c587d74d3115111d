#!/usr/bin/env python3
# tools/resolve_presets.py
"""Run the preset passes over a battle snapshot and print the resulting patches.

    python tools/resolve_presets.py battle.json --pool-dir tools/Data/showdown
    python tools/resolve_presets.py battle.json --sheets sheets.json
    python tools/resolve_presets.py battle.json --paste team.txt
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List

# Ensure repo root is on sys.path so `Data` and `Presets` can be imported
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from Data.dex_registry import DexRegistry
from Data.pokepaste import import_pokepaste
from Data.showdown_sets import load_candidate_pool
from Presets.battle_state import BattleState
from Presets.candidates import Preset
from Presets.engine import PresetEngine
from Presets.formats import parse_gen_from_format
from Presets.patch import BattlePatch, apply_patch
from Presets.settings import configure_logging, load_settings

log = logging.getLogger("Presets")


def _split_pastes(text: str) -> List[str]:
    chunks, cur = [], []
    for line in text.splitlines():
        if line.strip():
            cur.append(line)
        elif cur:
            chunks.append("\n".join(cur))
            cur = []
    if cur:
        chunks.append("\n".join(cur))
    return chunks


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Resolve Calcdex presets for a battle snapshot.")
    ap.add_argument("battle", help="battle state JSON")
    ap.add_argument("--pool-dir", default=None, help="showdown data dir with sets/ and stats/ (default: auto-detect)")
    ap.add_argument("--sheets", default=None, help="JSON list of team sheet presets to attach to the battle")
    ap.add_argument("--paste", default=None, help="PokePaste export; each set is added to the general pool")
    ap.add_argument("--prefs", default=None, help="prefs JSON (default: ~/.pokeset_prefs.json)")
    args = ap.parse_args(argv)

    settings = load_settings(args.prefs)
    if args.pool_dir:
        settings.showdown_dir = args.pool_dir
    configure_logging(settings)

    with open(args.battle, "r", encoding="utf-8") as f:
        state = BattleState.from_dict(json.load(f))
    if args.sheets:
        with open(args.sheets, "r", encoding="utf-8") as f:
            state.sheets.extend(Preset.from_dict(d) for d in json.load(f))
        state.sheets_nonce = state.sheets_nonce or 1

    showdown_dir = Path(settings.showdown_dir) if settings.showdown_dir else None
    dex = DexRegistry.from_gen(parse_gen_from_format(state.format), showdown_dir)
    pool = load_candidate_pool(state.format, showdown_dir, dex=dex)

    if args.paste:
        text = Path(args.paste).read_text(encoding="utf-8")
        for chunk in _split_pastes(text):
            preset = import_pokepaste(chunk, state.format, dex=dex)
            if preset is not None:
                pool.presets.append(preset)
            else:
                log.warning(f"[Presets] (Import) skipped unreadable set:\n{chunk}")

    patches: List[BattlePatch] = []
    engine = PresetEngine(lambda fmt: pool, patches.append, settings=settings, dex=dex)
    engine.on_battle_state(state)
    # sheets are reconciled against the state as committed by the auto pass
    current = apply_patch(state, patches[-1]) if patches else state
    engine.on_sheets(current)

    json.dump([p.as_dict() for p in patches], sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

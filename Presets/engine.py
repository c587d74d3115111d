# engine.py
"""
Runtime glue between battle-state notifications and the preset passes.

    engine = PresetEngine(pool_loader, commit, settings=load_settings(), dex=get_dex_for_format)
    engine.on_battle_state(state)   # auto-preset pass, gated by the change detector
    engine.on_sheets(state)         # one-shot sheet reconciliation

`pool_loader(format)` returns a `CandidatePool`; `commit(patch)` is the single
atomic write and is never called with an empty patch. `dex` is either a
registry or a callable mapping a format to one.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .battle_state import BattleState
from .candidates import CandidatePool
from .change_detector import ChangeDetector
from .patch import BattlePatch
from .pipeline import resolve_battle
from .reconcile import reconcile_sheets
from .settings import CalcdexSettings

log = logging.getLogger("Presets")

PoolLoader = Callable[[str], CandidatePool]
CommitSink = Callable[[BattlePatch], None]


class PresetEngine:
    def __init__(
        self,
        pool_loader: PoolLoader,
        commit: CommitSink,
        settings: Optional[CalcdexSettings] = None,
        dex=None,
    ):
        self.pool_loader = pool_loader
        self.commit = commit
        self.settings = settings or CalcdexSettings()
        self._dex = dex
        self._detector = ChangeDetector()
        self._sheets_applied = False
        self._battle_id: Optional[str] = None

    def _dex_for(self, fmt: Optional[str]):
        if callable(self._dex):
            return self._dex(fmt)
        return self._dex

    def _load_pool(self, fmt: Optional[str]) -> CandidatePool:
        if not fmt:
            return CandidatePool()
        return self.pool_loader(fmt) or CandidatePool()

    def _track_battle(self, state: BattleState) -> None:
        if state.battle_id != self._battle_id:
            self._battle_id = state.battle_id
            self._sheets_applied = bool(state.sheets_applied)
            self._detector.reset()

    @property
    def sheets_applied(self) -> bool:
        return self._sheets_applied

    def on_battle_state(self, state: BattleState) -> Optional[BattlePatch]:
        self._track_battle(state)
        pool = self._load_pool(state.format)
        if not self._detector.changed(state, pool.ready):
            return None
        self._detector.mark(state, pool.ready)

        patch = resolve_battle(state, pool, self.settings, self._dex_for(state.format))
        if patch.is_empty():
            return None
        self.commit(patch)
        log.info(f"[Presets] (AutoPreset) (dispatched) battle={state.battle_id} sides={sorted(patch.sides)}")
        return patch

    def on_sheets(self, state: BattleState) -> Optional[BattlePatch]:
        self._track_battle(state)
        if self._sheets_applied or state.sheets_applied:
            return None

        pool = self._load_pool(state.format)
        patch = reconcile_sheets(state, pool, self._dex_for(state.format))
        if patch.sheets_applied:
            self._sheets_applied = True
        if patch.is_empty():
            if patch.sheets_applied:
                log.debug(f"[Presets] (Sheets) (latched) battle={state.battle_id} sheets already in place")
            return None
        self.commit(patch)
        log.info(f"[Presets] (Sheets) (dispatched) battle={state.battle_id} sides={sorted(patch.sides)}")
        return patch

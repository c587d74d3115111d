# pipeline.py
"""
Auto-preset resolution pass.

For every slot still missing a preset (or holding an auto-assigned one) the
stages below run in order. Each stage receives the preset chosen so far and
returns either that same preset or its replacement:

  1. server_preset      our own slot: a pool preset consistent with what the server reported
  2. server_spread      our own slot: synthesize a preset from a spread inferred from real stats
  3. transformed        our own transformed slot: a preset of the transformed forme
  4. sheets             a complete leaked team sheet of this side
  5. format_presets     structural match among same-format presets, else the top one
  6. usage_override     usage stats over (or instead of) the general preset
  7. any_format         structural match among presets of any format
  8. bare_usage         usage stats even without any general preset

Nothing chosen afterwards means the terminal fallback: the slot is reset to
conservative defaults and flagged for manual input.

The chosen preset is merged with `apply.apply_preset`, so every slot yields a
field-level patch; `resolve_battle` folds them into a single `BattlePatch`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from poke_env.data.normalize import to_id_str

from .apply import apply_preset
from .battle_state import BattleState, Side, Slot, empty_spread
from .candidates import (
    CandidatePool,
    Preset,
    PresetSource,
    detect_complete_preset,
    has_id,
    move_pool,
    pool_covers,
    restamp,
)
from .field_effects import propagate_field_effects
from .formats import is_random_format
from .matching import guess_matching_presets, guess_server_preset
from .patch import BattlePatch, SidePatch, diff_slot
from .selector import SelectMode, select_pokemon_presets, sort_presets_by_format
from .settings import CalcdexSettings
from .spreads import guess_server_legacy_spread, guess_server_spread
from .usage import find_matching_usage, sort_presets_by_usage

log = logging.getLogger("Presets")

SERVER_PRESET_NAME = "Yours"


@dataclass
class SlotContext:
    state: BattleState
    side: Side
    slot: Slot                     # working copy; stages may flag it
    presets: List[Preset]          # general presets, best first
    usages: List[Preset]           # usage presets of this format, popularity order
    usage: Optional[Preset]        # usage role matching the slot's revealed moves
    settings: CalcdexSettings
    dex: object = None

    @property
    def randoms(self) -> bool:
        return is_random_format(self.state.format)

    def base_stats(self, species: Optional[str] = None) -> Dict[str, int]:
        if self.dex is None:
            return {}
        return self.dex.base_stats(species or self.slot.species_forme)


Stage = Callable[[SlotContext, Optional[Preset]], Optional[Preset]]


def _names_match(a: Optional[str], b: Optional[str]) -> bool:
    return to_id_str(a or "") == to_id_str(b or "")


def _attach_server_preset(slot: Slot, preset: Preset) -> None:
    if not any(p.source == PresetSource.SERVER for p in slot.presets):
        slot.presets.insert(0, preset)


def _is_server_slot(slot: Slot) -> bool:
    return slot.is_server and bool(slot.server_stats)


def stage_server_preset(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    slot = ctx.slot
    if has_id(chosen) or not _is_server_slot(slot):
        return chosen

    seen = set()
    attached: List[Preset] = []
    for p in [*slot.presets, *ctx.presets]:
        if has_id(p) and p.source != PresetSource.SERVER and p.id not in seen:
            seen.add(p.id)
            attached.append(p)

    species_presets = select_pokemon_presets(
        attached, slot, format=ctx.state.format, select=SelectMode.SPECIES, dex=ctx.dex,
    )
    found = guess_server_preset(species_presets, slot, ctx.base_stats())
    if not has_id(found):
        return chosen

    preset = restamp(
        found,
        source=PresetSource.SERVER,
        name=SERVER_PRESET_NAME,
        player_name=ctx.side.name,
        ability=slot.ability,
        item=slot.item,
        moves=[m for m in slot.server_moves if m],
        tera_types=[slot.tera_type] if slot.tera_type else list(found.tera_types),
    )
    _attach_server_preset(slot, preset)

    if slot.is_transformed and not _names_match(preset.species_forme, slot.transformed_forme):
        return chosen
    return preset


def stage_server_spread(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    slot = ctx.slot
    if has_id(chosen) or not _is_server_slot(slot) or slot.is_transformed:
        return chosen

    base = ctx.base_stats()
    guess = guess_server_legacy_spread if ctx.state.legacy else guess_server_spread
    spread = guess(slot, base)
    if not spread:
        return chosen

    preset = Preset(
        source=PresetSource.SERVER,
        species_forme=slot.species_forme,
        name=SERVER_PRESET_NAME,
        player_name=ctx.side.name,
        format=ctx.state.format,
        gen=ctx.state.gen,
        level=slot.level,
        gender=slot.gender,
        tera_types=[slot.tera_type] if slot.tera_type else [],
        ability=slot.ability,
        item=slot.item,
        moves=[m for m in slot.server_moves if m],
        nature=spread["nature"],
        ivs=dict(spread["ivs"]),
        evs=dict(spread["evs"]),
    ).with_id()
    _attach_server_preset(slot, preset)
    return preset


def stage_transformed(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    slot = ctx.slot
    if not _is_server_slot(slot) or not slot.is_transformed:
        return chosen
    if has_id(chosen) and _names_match(chosen.species_forme, slot.transformed_forme):
        return chosen

    transformed_moves = [m for m in slot.transformed_moves if m]
    if not transformed_moves:
        return None

    transformed_presets = select_pokemon_presets(
        ctx.presets, slot, format=ctx.state.format, format_only=True, select=SelectMode.TRANSFORMED, dex=ctx.dex,
    )
    for p in transformed_presets:
        if pool_covers(move_pool(p), transformed_moves):
            return p
    return None


def stage_sheets(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    if has_id(chosen) or not ctx.state.sheets:
        return chosen
    sheets = select_sheets(ctx.state, ctx.side, ctx.slot, SelectMode.ANY, ctx.dex)
    return sheets[0] if sheets else chosen


def select_sheets(state: BattleState, side: Side, slot: Slot, select: SelectMode, dex=None) -> List[Preset]:
    """Complete sheets for `slot`: the side's own sheets, or any while transformed."""
    sheets = select_pokemon_presets(
        state.sheets,
        slot,
        format=state.format,
        source=PresetSource.SHEET,
        select=select,
        filter=lambda p: slot.is_transformed or _names_match(p.player_name, side.name),
        dex=dex,
    )
    return [s for s in sheets if detect_complete_preset(s)]


def _structural_pick(ctx: SlotContext, format_only: bool) -> Optional[Preset]:
    slot = ctx.slot
    candidates = select_pokemon_presets(
        ctx.presets, slot, format=ctx.state.format, format_only=format_only, select=SelectMode.ONE, dex=ctx.dex,
    )
    if not candidates:
        return None
    matched = guess_matching_presets(candidates, slot)
    if matched:
        slot.auto_preset = True
        return matched[0]
    return candidates[0]


def stage_format_presets(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    if has_id(chosen) or not ctx.presets:
        return chosen
    return _structural_pick(ctx, format_only=True) or chosen


def stage_usage_override(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    # usage presets only compete with general presets here; without any, see stage_bare_usage
    if not ctx.presets or ctx.randoms or not has_id(ctx.usage):
        return chosen
    if not has_id(chosen):
        return ctx.usage
    if ctx.settings.prioritize_usage_stats and chosen.source != PresetSource.SERVER:
        return ctx.usage
    return chosen


def stage_any_format(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    if has_id(chosen) or not ctx.presets:
        return chosen
    return _structural_pick(ctx, format_only=False) or chosen


def stage_bare_usage(ctx: SlotContext, chosen: Optional[Preset]) -> Optional[Preset]:
    if has_id(chosen) or not has_id(ctx.usage):
        return chosen
    ctx.slot.auto_preset = False
    return ctx.usage


STAGES: Tuple[Tuple[str, Stage], ...] = (
    ("server_preset", stage_server_preset),
    ("server_spread", stage_server_spread),
    ("transformed", stage_transformed),
    ("sheets", stage_sheets),
    ("format_presets", stage_format_presets),
    ("usage_override", stage_usage_override),
    ("any_format", stage_any_format),
    ("bare_usage", stage_bare_usage),
)


def choose_preset(ctx: SlotContext, stages=STAGES) -> Tuple[Optional[Preset], Optional[str]]:
    """Run the stages in order; returns the final preset and the stage that set it."""
    chosen: Optional[Preset] = None
    chosen_by: Optional[str] = None
    for name, stage in stages:
        result = stage(ctx, chosen)
        if result is not chosen:
            chosen_by = name if has_id(result) else None
        chosen = result if has_id(result) else None
    return chosen, chosen_by


def reset_to_defaults(slot: Slot, state: BattleState) -> None:
    """Terminal fallback: neutral spread, no moves/alternates, manual input required."""
    if not slot.level and state.default_level:
        slot.level = state.default_level
    slot.ability = slot.revealed_ability or None
    slot.nature = "Hardy"
    slot.ivs = empty_spread("iv", bool(state.legacy))
    slot.evs = empty_spread("ev", bool(state.legacy))
    slot.moves = []
    slot.alt_abilities = []
    slot.alt_items = []
    slot.alt_moves = []
    slot.alt_tera_types = []
    slot.dirty_item = None
    if slot.dirty_tera_type and slot.types:
        slot.dirty_tera_type = slot.types[0]
    slot.needs_manual_input = True
    slot.auto_preset = False


def build_context(
    state: BattleState,
    side: Side,
    slot: Slot,
    pool: CandidatePool,
    settings: CalcdexSettings,
    dex=None,
) -> SlotContext:
    presets = select_pokemon_presets(
        pool.presets, slot, format=state.format, select=SelectMode.ANY,
        filter=lambda p: p.source != PresetSource.USAGE, dex=dex,
    )
    presets.sort(key=sort_presets_by_format(state.format))

    usages = select_pokemon_presets(
        pool.usages, slot, format=state.format, format_only=True,
        source=PresetSource.USAGE, select=SelectMode.ANY, dex=dex,
    )
    if len(usages) > 1:
        presets.sort(key=sort_presets_by_usage(usages))

    return SlotContext(
        state=state,
        side=side,
        slot=slot,
        presets=presets,
        usages=usages,
        usage=find_matching_usage(usages, slot.revealed_moves),
        settings=settings,
        dex=dex,
    )


def resolve_slot(ctx: SlotContext, stages=STAGES) -> Optional[Preset]:
    """Resolve `ctx.slot` in place; returns the applied preset (None on fallback)."""
    slot = ctx.slot
    preset, stage = choose_preset(ctx, stages)

    if not has_id(preset):
        reset_to_defaults(slot, ctx.state)
        log.debug(
            f"[Presets] no preset for {slot.species_forme} ({slot.slot_id}) of {ctx.side.key}; "
            f"{len(ctx.presets)} presets, {len(ctx.usages)} usages"
        )
        return None

    usage = ctx.usage
    if preset.source == PresetSource.USAGE:
        usage = preset
    elif len(ctx.usages) > 1:
        usage = find_matching_usage(ctx.usages, preset, fallback=usage)

    for name, value in apply_preset(slot, preset, usage=usage, legacy=bool(ctx.state.legacy)).items():
        setattr(slot, name, value)
    log.debug(f"[Presets] {slot.species_forme} ({slot.slot_id}) <- {preset.source.value}:{preset.name} via {stage}")
    return preset


def resolve_side(
    state: BattleState,
    side: Side,
    pool: CandidatePool,
    settings: CalcdexSettings,
    dex=None,
    field: Optional[Dict[str, object]] = None,
) -> SidePatch:
    """Resolve every eligible slot of `side`. Field changes land in `field`."""
    out = SidePatch()
    for index, original in enumerate(side.slots):
        if original is None or not original.needs_preset:
            continue
        work = original.clone()
        ctx = build_context(state, side, work, pool, settings, dex)
        resolve_slot(ctx)
        changes = diff_slot(original, work)
        if not changes:
            continue
        out.slots.append({"slot_id": original.slot_id, **changes})
        if field is not None and index == side.active_index:
            field.update(propagate_field_effects(work, state.field_state, state.format))
    return out


def should_resolve(state: Optional[BattleState], pool: Optional[CandidatePool]) -> bool:
    return (
        state is not None
        and bool(state.battle_id)
        and bool(state.format)
        and pool is not None
        and pool.ready
        and state.has_slots()
    )


def resolve_battle(
    state: BattleState,
    pool: CandidatePool,
    settings: Optional[CalcdexSettings] = None,
    dex=None,
) -> BattlePatch:
    """One full pass over every side. Returns an empty patch when there's nothing to do."""
    started = time.perf_counter()
    patch = BattlePatch(battle_id=state.battle_id if state is not None else None)
    if not should_resolve(state, pool):
        log.debug(f"[Presets] (AutoPreset) (not ready) {time.perf_counter() - started:.4f}s")
        return patch

    settings = settings or CalcdexSettings()
    for key, side in state.iter_sides():
        if not side.slots:
            continue
        side_patch = resolve_side(state, side, pool, settings, dex, patch.field)
        if side_patch.slots:
            patch.sides[key] = side_patch

    log.debug(
        f"[Presets] (AutoPreset) {'(no change)' if patch.is_empty() else '(resolved)'} "
        f"{time.perf_counter() - started:.4f}s"
    )
    return patch

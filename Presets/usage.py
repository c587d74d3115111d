# usage.py
"""
Usage-stat role disambiguation.

One species may have several usage presets in a single format (random battle
roles, or multiple statistical profiles). Picking the most popular one blindly
would often contradict moves we've already seen, so we pick the first role
whose move pool covers the reference moves instead.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, Union

from .candidates import Preset, has_id, move_pool, pool_covers

MoveReference = Union[Preset, Iterable[str], None]


def _reference_moves(reference: MoveReference) -> List[str]:
    if reference is None:
        return []
    if isinstance(reference, Preset):
        return [m for m in reference.moves if m]
    return [m for m in reference if m]


def find_matching_usage(
    usages: Sequence[Preset],
    reference: MoveReference,
    fallback: Optional[Preset] = None,
) -> Optional[Preset]:
    """First usage preset whose move pool covers `reference`'s moves.

    `usages` is expected in popularity order. Without any covering role the
    `fallback` is returned, or the first usage preset if none was given.
    """
    candidates = [u for u in usages or [] if has_id(u)]
    if not candidates:
        return fallback

    moves = _reference_moves(reference)
    if moves:
        for usage in candidates:
            if pool_covers(move_pool(usage), moves):
                return usage

    return fallback if has_id(fallback) else candidates[0]


def sort_presets_by_usage(usages: Sequence[Preset]) -> Callable[[Preset], int]:
    """Sort key ranking presets by the first usage role that covers their moves."""
    pools = [move_pool(u) for u in usages if has_id(u)]

    def key(preset: Preset) -> int:
        if preset.moves:
            for i, pool in enumerate(pools):
                if pool_covers(pool, preset.moves):
                    return i
        return len(pools)

    return key

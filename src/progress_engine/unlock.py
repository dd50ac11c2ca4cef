"""
Unlock graph evaluation.

Lock state is recomputed from completion state on every call and never
stored as derived truth: completions can arrive underneath (another device,
a merged remote snapshot) at any time.

Only modules a student can actually work through take part in the chain:
visible modules with at least one visible block, in stored order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Tuple

from progress_engine.models import ContentBlock, Module, Track, UserProgress

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleState:
    module_id: str
    locked: bool
    completed: bool
    completed_blocks: int
    total_blocks: int
    percent: int


def unlock_chain(track: Track) -> List[Module]:
    return [m for m in track.modules if m.is_visible and m.visible_blocks()]


def derive_module_completed(module: Module, completed_block_ids: AbstractSet[str]) -> bool:
    visible = module.visible_block_ids()
    return bool(visible) and visible <= completed_block_ids


def is_module_completed(progress: UserProgress, module_id: str) -> bool:
    unit = progress.unit_progress.get(module_id)
    return bool(unit and unit.module_completed)


def is_module_locked(track: Track, module_id: str, progress: UserProgress) -> bool:
    chain = unlock_chain(track)
    for idx, module in enumerate(chain):
        if module.id != module_id:
            continue
        if idx == 0:
            return False
        return not is_module_completed(progress, chain[idx - 1].id)
    # Hidden, empty or foreign modules are never open to students.
    return True


def is_track_completed(track: Track, progress: UserProgress) -> bool:
    chain = unlock_chain(track)
    return bool(chain) and all(is_module_completed(progress, m.id) for m in chain)


def module_states(track: Track, progress: UserProgress) -> List[ModuleState]:
    states: List[ModuleState] = []
    for module in unlock_chain(track):
        unit = progress.unit_progress.get(module.id)
        done_ids = unit.completed_block_ids if unit else frozenset()
        visible = module.visible_block_ids()
        done = len(visible & done_ids)
        states.append(
            ModuleState(
                module_id=module.id,
                locked=is_module_locked(track, module.id, progress),
                completed=is_module_completed(progress, module.id),
                completed_blocks=done,
                total_blocks=len(visible),
                percent=int(done * 100 / len(visible)) if visible else 0,
            )
        )
    return states


def first_available_module(track: Track, progress: UserProgress) -> Optional[Module]:
    """First unlocked module that is not yet completed, else the first module."""
    chain = unlock_chain(track)
    for module in chain:
        if not is_module_locked(track, module.id, progress) and not is_module_completed(progress, module.id):
            return module
    return chain[0] if chain else None


def next_item(
    track: Track,
    progress: UserProgress,
    module_id: str,
    block_id: str,
) -> Optional[Tuple[str, str]]:
    """
    Where "continue" should go after `block_id`: the next visible block of the
    same module, else the first visible block of the next module if that module
    is unlocked. Returns (module_id, block_id) or None.
    """
    chain = unlock_chain(track)
    ids = [m.id for m in chain]
    if module_id not in ids:
        return None
    idx = ids.index(module_id)
    blocks: List[ContentBlock] = chain[idx].visible_blocks()
    block_ids = [b.id for b in blocks]
    if block_id in block_ids:
        pos = block_ids.index(block_id)
        if pos + 1 < len(blocks):
            return module_id, blocks[pos + 1].id
    if idx + 1 < len(chain):
        nxt = chain[idx + 1]
        if is_module_locked(track, nxt.id, progress):
            logger.debug("next_item: module=%s still locked", nxt.id)
            return None
        return nxt.id, nxt.visible_blocks()[0].id
    return None

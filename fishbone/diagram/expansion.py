"""
Expansion State
===============

The set of paths whose children are drawn in full instead of being cut off
behind a "+N" indicator. It is view state only and is never persisted with
the diagram.

Because the set is keyed by positional paths, any mutation that renumbers
siblings would silently point an expanded key at a different bone. Rather
than clearing the whole set on every edit, the keys are migrated alongside
the mutation:

- delete: keys inside the deleted subtree are dropped, keys of later
  siblings (and everything below them) shift down by one index
- insert: children are only ever appended, so no existing path moves
- update: the node may lose children; ``prune_expansion`` drops keys that
  no longer resolve

All functions take and return ``frozenset`` values.
"""

from typing import FrozenSet, Iterable, Optional

from .models import Bone
from .mutator import locate
from .paths import decode_path, encode_path, is_effect_path, normalize_path

Expansion = FrozenSet[str]


def empty_expansion() -> Expansion:
    return frozenset()


def as_expansion(paths: Optional[Iterable[str]]) -> Expansion:
    """Normalise any iterable of paths (e.g. a JSON list) to an expansion set.

    Keys are stored in canonical form (``"bone-00"`` becomes ``"bone-0"``);
    entries that name no node are dropped.
    """
    if not paths:
        return frozenset()
    canonical = (normalize_path(p) for p in paths if isinstance(p, str))
    return frozenset(p for p in canonical if p is not None)


def is_expanded(expanded: Expansion, path: str) -> bool:
    return path in expanded


def toggle_expansion(expanded: Expansion, path: str) -> Expansion:
    """Remove ``path`` if present, add it otherwise."""
    if path in expanded:
        return expanded - {path}
    return expanded | {path}


def remap_after_delete(expanded: Expansion, deleted_path: str) -> Expansion:
    """Migrate expansion keys across the deletion of ``deleted_path``."""
    deleted = decode_path(deleted_path)
    if deleted is None or is_effect_path(deleted_path):
        return expanded

    parent, removed = deleted[:-1], deleted[-1]
    depth = len(deleted) - 1
    migrated = set()

    for key in expanded:
        indices = decode_path(key)
        if indices is None:
            # "effect" or foreign keys are not affected
            migrated.add(key)
            continue

        same_branch = len(indices) > depth and indices[:depth] == parent
        if not same_branch:
            migrated.add(key)
            continue

        index = indices[depth]
        if index == removed:
            continue  # inside the deleted subtree
        if index > removed:
            indices = indices[:depth] + [index - 1] + indices[depth + 1:]
            migrated.add(encode_path(indices))
        else:
            migrated.add(key)

    return frozenset(migrated)


def prune_expansion(expanded: Expansion, roots: Iterable[Bone]) -> Expansion:
    """Drop keys that no longer name a bone in ``roots``."""
    roots = tuple(roots)
    return frozenset(
        key for key in expanded
        if is_effect_path(key) or locate(roots, key) is not None
    )

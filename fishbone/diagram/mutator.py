"""
Tree Mutator
============

Pure, tree-in / tree-out operations on a diagram's ``roots``, addressed by
path:

    locate(roots, path)               -> Bone | None
    update(roots, path, bone)         -> MutationResult
    insert_child(roots, path, bone)   -> MutationResult
    delete(roots, path)               -> MutationResult

Nothing here mutates its input. Each operation copies only the sibling
tuples on the way from the root to the mutation point; every other subtree
in the result is the same object as in the input, so a caller can detect
what changed with ``is``.

Expected failures (bad path, index out of range, deleting the effect,
invalid content) are returned, never raised. A failed result carries the
input ``roots`` object unchanged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Tuple

from .models import Bone
from .paths import decode_path, encode_path, is_effect_path
from .validation import validate_bone

Roots = Tuple[Bone, ...]


class MutationError(str, Enum):
    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    NO_CHILDREN = "no_children"
    EFFECT_NOT_DELETABLE = "effect_not_deletable"
    EFFECT_NOT_A_BONE = "effect_not_a_bone"
    INVALID_CONTENT = "invalid_content"


# Failures that mean "the address is wrong" rather than "the edit is wrong"
ADDRESSING_ERRORS = frozenset({
    MutationError.INVALID_PATH,
    MutationError.NOT_FOUND,
})

STRUCTURAL_ERRORS = frozenset({
    MutationError.NO_CHILDREN,
    MutationError.EFFECT_NOT_DELETABLE,
    MutationError.EFFECT_NOT_A_BONE,
})


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation. On failure ``roots`` is the untouched input."""
    roots: Roots
    error: Optional[MutationError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


def _failed(roots: Roots, error: MutationError, message: str) -> MutationResult:
    return MutationResult(roots=roots, error=error, message=message)


def _as_tuple(roots) -> Roots:
    return roots if isinstance(roots, tuple) else tuple(roots)


# ============================================================
# LOOKUP
# ============================================================

def _walk_indices(roots: Roots, indices: List[int]) -> Tuple[Optional[Bone], Optional[MutationError]]:
    siblings = roots
    bone = None
    for depth, index in enumerate(indices):
        if depth > 0:
            if not bone.children:
                return None, MutationError.NO_CHILDREN
            siblings = bone.children
        if index >= len(siblings):
            return None, MutationError.NOT_FOUND
        bone = siblings[index]
    return bone, None


def resolve(roots: Roots, path: str) -> Tuple[Optional[Bone], Optional[MutationError]]:
    """Find the bone at ``path`` and say why not when it cannot be found."""
    if is_effect_path(path):
        return None, MutationError.EFFECT_NOT_A_BONE
    indices = decode_path(path)
    if indices is None:
        return None, MutationError.INVALID_PATH
    return _walk_indices(roots, indices)


def locate(roots: Roots, path: str) -> Optional[Bone]:
    """Return the bone at ``path``, or ``None`` if it does not exist."""
    bone, _ = resolve(roots, path)
    return bone


def walk(roots: Roots) -> Iterator[Tuple[str, Bone, int]]:
    """Yield ``(path, bone, depth)`` for every bone, pre-order."""
    stack = [([i], bone) for i, bone in reversed(list(enumerate(roots)))]
    while stack:
        indices, bone = stack.pop()
        yield encode_path(indices), bone, len(indices) - 1
        for i in range(len(bone.children) - 1, -1, -1):
            stack.append((indices + [i], bone.children[i]))


def count_bones(roots: Roots) -> int:
    return sum(1 for _ in walk(roots))


# ============================================================
# PATH COPY
# ============================================================

def _rebuild(siblings: Roots, indices: List[int],
             edit: Callable[[Roots, int], Roots]) -> Roots:
    """Copy the sibling tuples along ``indices`` and apply ``edit`` at the end.

    ``edit`` receives the sibling tuple that holds the target and the
    target's index in it, and returns the replacement tuple. Indices must
    already be known to resolve.
    """
    head = indices[0]
    if len(indices) == 1:
        return edit(siblings, head)
    parent = siblings[head]
    new_parent = parent.with_children(_rebuild(parent.children, indices[1:], edit))
    return siblings[:head] + (new_parent,) + siblings[head + 1:]


def _check_target(roots: Roots, path: str) -> Tuple[Optional[List[int]], Optional[MutationResult]]:
    _, error = resolve(roots, path)
    if error is not None:
        return None, _failed(roots, error, f"No bone at path '{path}' ({error.value})")
    return decode_path(path), None


# ============================================================
# MUTATIONS
# ============================================================

def update(roots: Roots, path: str, new_bone: Bone) -> MutationResult:
    """Replace the bone at ``path`` with ``new_bone`` wholesale.

    The caller carries over anything it wants to keep (usually the existing
    ``children``).
    """
    roots = _as_tuple(roots)
    ok, message = validate_bone(new_bone)
    if not ok:
        return _failed(roots, MutationError.INVALID_CONTENT, message)

    indices, failure = _check_target(roots, path)
    if failure:
        return failure

    def replace_node(siblings: Roots, index: int) -> Roots:
        return siblings[:index] + (new_bone,) + siblings[index + 1:]

    return MutationResult(roots=_rebuild(roots, indices, replace_node))


def insert_child(roots: Roots, path: str, new_child: Bone) -> MutationResult:
    """Append ``new_child`` to the children of the node at ``path``.

    Inserting under ``effect`` appends a new root category.
    """
    roots = _as_tuple(roots)
    ok, message = validate_bone(new_child)
    if not ok:
        return _failed(roots, MutationError.INVALID_CONTENT, message)

    if is_effect_path(path):
        return MutationResult(roots=roots + (new_child,))

    indices, failure = _check_target(roots, path)
    if failure:
        return failure

    def append_child(siblings: Roots, index: int) -> Roots:
        target = siblings[index]
        grown = target.with_children(target.children + (new_child,))
        return siblings[:index] + (grown,) + siblings[index + 1:]

    return MutationResult(roots=_rebuild(roots, indices, append_child))


def delete(roots: Roots, path: str) -> MutationResult:
    """Remove the bone at ``path`` and, with it, its whole subtree."""
    roots = _as_tuple(roots)
    if is_effect_path(path):
        return _failed(roots, MutationError.EFFECT_NOT_DELETABLE,
                       "The effect node cannot be deleted")

    indices, failure = _check_target(roots, path)
    if failure:
        return failure

    def drop(siblings: Roots, index: int) -> Roots:
        return siblings[:index] + siblings[index + 1:]

    return MutationResult(roots=_rebuild(roots, indices, drop))

"""
Path Addressing
===============

A bone has no stored id. It is named by the sibling indices leading to it
from the diagram's ``roots``::

    [2]        -> "bone-2"        third root category
    [2, 0]     -> "bone-2-0"      its first sub-cause
    [2, 0, 1]  -> "bone-2-0-1"    second cause under that

The literal ``"effect"`` names the synthetic effect node and is never
produced by ``encode_path``.

Paths are rebuilt from the live tree on every layout pass, so they only
need to be valid for one snapshot of the tree. Any insert or delete that
shifts sibling indices makes earlier paths stale.

Usage:
    from fishbone.diagram.paths import encode_path, decode_path

    encode_path([0, 3])       # -> "bone-0-3"
    decode_path("bone-0-3")   # -> [0, 3]
    decode_path("effect")     # -> None
    normalize_path(" bone-00-3 ")   # -> "bone-0-3"
"""

from typing import Iterable, List, Optional

EFFECT_PATH = "effect"
BONE_PREFIX = "bone"
SEPARATOR = "-"


def encode_path(indices: Iterable[int]) -> str:
    """Encode a root-to-node index sequence as a path token.

    Raises:
        ValueError: for an empty sequence or a negative index. These are
            programming errors; only ``decode_path`` deals with bad input.
    """
    indices = list(indices)
    if not indices:
        raise ValueError("Cannot encode an empty index sequence")
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"Invalid path index: {index!r}")
    return SEPARATOR.join([BONE_PREFIX] + [str(i) for i in indices])


def decode_path(path: Optional[str]) -> Optional[List[int]]:
    """Decode a path token into its index sequence.

    Segments after the ``bone`` prefix that are not non-negative integers are
    discarded. Returns ``None`` when the token is not a bone path at all
    (wrong prefix, ``effect``, not a string) or when no valid index is left.
    """
    if not isinstance(path, str):
        return None

    segments = path.strip().split(SEPARATOR)
    if segments[0] != BONE_PREFIX:
        return None

    indices = [int(s) for s in segments[1:] if s.isascii() and s.isdigit()]
    if not indices:
        return None
    return indices


def is_effect_path(path: Optional[str]) -> bool:
    return isinstance(path, str) and path.strip() == EFFECT_PATH


def normalize_path(path: Optional[str]) -> Optional[str]:
    """Canonical form of a path token, or ``None`` if it names no node.

    ``" bone-00-1 "`` becomes ``"bone-0-1"``; ``effect`` stays ``effect``.
    """
    if is_effect_path(path):
        return EFFECT_PATH
    indices = decode_path(path)
    if indices is None:
        return None
    return encode_path(indices)


def child_path(path: str, index: int) -> str:
    """Path of the ``index``-th child of ``path`` (``effect`` -> a root bone)."""
    if is_effect_path(path):
        return encode_path([index])
    indices = decode_path(path)
    if indices is None:
        raise ValueError(f"Not a bone path: {path!r}")
    return encode_path(indices + [index])


def parent_path(path: str) -> Optional[str]:
    """Path of the parent node. Root bones hang off ``effect``."""
    if is_effect_path(path):
        return None
    indices = decode_path(path)
    if indices is None:
        return None
    if len(indices) == 1:
        return EFFECT_PATH
    return encode_path(indices[:-1])


def path_depth(path: str) -> int:
    """Depth below the spine: 0 for a root bone, -1 for the effect node."""
    if is_effect_path(path):
        return -1
    indices = decode_path(path)
    if indices is None:
        raise ValueError(f"Not a bone path: {path!r}")
    return len(indices) - 1


def is_descendant(path: str, ancestor: str) -> bool:
    """True if ``path`` lies strictly below ``ancestor``."""
    if is_effect_path(ancestor):
        return decode_path(path) is not None
    p, a = decode_path(path), decode_path(ancestor)
    if p is None or a is None:
        return False
    return len(p) > len(a) and p[:len(a)] == a

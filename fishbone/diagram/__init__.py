# Bone tree, path addressing, tree mutator and expansion state

from fishbone.diagram.models import Bone, BoneStatus, Diagram
from fishbone.diagram.paths import EFFECT_PATH, decode_path, encode_path
from fishbone.diagram.mutator import (
    MutationError,
    MutationResult,
    delete,
    insert_child,
    locate,
    update,
)
from fishbone.diagram.expansion import toggle_expansion

__all__ = [
    "Bone",
    "BoneStatus",
    "Diagram",
    "EFFECT_PATH",
    "encode_path",
    "decode_path",
    "locate",
    "update",
    "insert_child",
    "delete",
    "MutationError",
    "MutationResult",
    "toggle_expansion",
]

# Fishbone layout engine
# Diagram + canvas size -> positioned primitives

from fishbone.layout.engine import FishboneLayout, compute_layout, root_positions
from fishbone.layout.primitives import (
    EffectCircle,
    ExpandIndicator,
    Label,
    Primitive,
    Rib,
    Spine,
    StatusDot,
    SubRib,
)
from fishbone.layout.theme import Theme, bone_colors

__all__ = [
    "FishboneLayout",
    "compute_layout",
    "root_positions",
    "Primitive",
    "Spine",
    "Rib",
    "SubRib",
    "Label",
    "EffectCircle",
    "ExpandIndicator",
    "StatusDot",
    "Theme",
    "bone_colors",
]

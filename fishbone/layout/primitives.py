"""
Layout Primitives
=================

The closed set of shapes the layout engine emits. Each variant carries
exactly the fields needed to draw it; a renderer dispatches on ``kind``.

    Spine            straight backbone segment (the last one ends in an arrow)
    Rib              angled segment joining a root bone to the spine
    SubRib           short segment for a sub-cause or a deeper cause
    Label            text, optionally boxed (root categories)
    EffectCircle     the effect node
    ExpandIndicator  the clickable "+N" / "−" glyph
    StatusDot        small resolved/issue marker beside a deep cause label

Primitives that stand for an editable node carry its ``path``; an
``ExpandIndicator`` also carries the path it toggles and reports
``is_expand_toggle``.
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

COORD_PRECISION = 2


def _rounded(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, COORD_PRECISION)
    if isinstance(value, tuple):
        return [_rounded(v) for v in value]
    return value


class _PrimitiveMixin:
    kind: ClassVar[str] = ""

    @property
    def is_expand_toggle(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        data = {"kind": self.kind}
        for f in fields(self):
            data[f.name] = _rounded(getattr(self, f.name))
        data["isExpandToggle"] = self.is_expand_toggle
        return data


@dataclass(frozen=True)
class Spine(_PrimitiveMixin):
    kind: ClassVar[str] = "spine"
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float
    arrow: bool = False
    path: Optional[str] = None


@dataclass(frozen=True)
class Rib(_PrimitiveMixin):
    kind: ClassVar[str] = "rib"
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float
    path: str
    depth: int = 0
    joint_radius: float = 6


@dataclass(frozen=True)
class SubRib(_PrimitiveMixin):
    kind: ClassVar[str] = "sub_rib"
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float
    path: str
    depth: int
    opacity: float = 1.0


@dataclass(frozen=True)
class Label(_PrimitiveMixin):
    kind: ClassVar[str] = "label"
    x: float
    y: float
    text: str
    color: str
    font_size: float
    font_weight: str
    anchor: str = "middle"       # start | middle | end
    path: Optional[str] = None
    depth: int = 0
    opacity: float = 1.0
    box: Optional[Tuple[float, float]] = None     # (width, height), centred on x/y
    box_fill: Optional[str] = None
    box_stroke: Optional[str] = None


@dataclass(frozen=True)
class EffectCircle(_PrimitiveMixin):
    kind: ClassVar[str] = "effect_circle"
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str
    stroke_width: float
    path: str = "effect"


@dataclass(frozen=True)
class ExpandIndicator(_PrimitiveMixin):
    kind: ClassVar[str] = "expand_indicator"
    cx: float
    cy: float
    r: float
    fill: str
    text: str
    path: str
    expanded: bool
    hidden_count: int
    halo: bool = False

    @property
    def is_expand_toggle(self) -> bool:
        return True


@dataclass(frozen=True)
class StatusDot(_PrimitiveMixin):
    kind: ClassVar[str] = "status_dot"
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str
    path: str
    status: str
    opacity: float = 0.9


Primitive = Union[Spine, Rib, SubRib, Label, EffectCircle, ExpandIndicator, StatusDot]

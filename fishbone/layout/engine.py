"""
Fishbone Layout Engine
======================

Turns a diagram into positioned primitives under the classic fishbone
grammar:

- a horizontal spine from a fixed left anchor to a right anchor, then a
  short arrowed segment into the effect circle
- one rib per root bone, tilted up for even indices and down for odd ones,
  with a boxed label past the rib's far end
- sub-causes as short horizontal ticks spread along their rib, alternating
  sides, each ending in a label
- one more level of causes fanned out from each sub-cause tick, with a
  status dot beside resolved and issue labels; nothing is drawn below that

Only the first ``MAX_SUB_CAUSES`` sub-causes and ``MAX_SUB_SUB_CAUSES``
deeper causes are drawn unless the owning path is in the expansion set. A
level with more children than that gets a "+N" (collapsed) or "−"
(expanded) indicator tagged with the path it toggles.

The layout is a pure function of its inputs: same diagram, size, theme,
expansion set and selection always give the same primitive list.

Usage:
    from fishbone.layout import compute_layout

    primitives = compute_layout(diagram, 1000, 600)
    primitives = compute_layout(diagram, 1000, 600, theme="dark",
                                expanded={"bone-0"}, selected="bone-0-1")
"""

import math
from typing import Iterable, List, Optional, Sequence, Union

from fishbone.diagram.models import Bone, Diagram
from fishbone.diagram.paths import EFFECT_PATH, encode_path, normalize_path

from .primitives import (
    EffectCircle,
    ExpandIndicator,
    Label,
    Primitive,
    Rib,
    Spine,
    StatusDot,
    SubRib,
)
from .theme import (
    CATEGORY_BOX_FILL,
    CATEGORY_BOX_STROKE,
    EFFECT_FILL,
    EFFECT_STROKE,
    EFFECT_TEXT,
    INDICATOR_COLLAPSED,
    INDICATOR_EXPANDED,
    SELECTED_BOX_FILL,
    SELECTED_COLOR,
    SPINE_COLORS,
    STATUS_DOT_COLORS,
    STATUS_DOT_STROKE,
    SUB_INDICATOR_COLLAPSED,
    Theme,
    as_theme,
    bone_colors,
)

EXPANDED_GLYPH = "−"   # minus sign


def root_positions(count: int) -> List[float]:
    """Fractions of the spine length at which ``count`` root ribs attach.

    One root sits in the middle, two and three use fixed splits, and four or
    more are spread evenly over an inset window so they keep clear of the
    left anchor and of the effect node.
    """
    if count <= 0:
        return []
    if count == 1:
        return [0.5]
    if count == 2:
        return [0.3, 0.7]
    if count == 3:
        return [0.25, 0.5, 0.75]

    if count <= 5:
        padding, usable = 0.15, 0.7
    else:
        padding, usable = 0.1, 0.8
    spacing = usable / (count - 1)
    return [padding + spacing * i for i in range(count)]


class FishboneLayout:
    """
    Compute the primitive list for one diagram snapshot.

    - Spine from (SPINE_LEFT, height / 2) to (width - SPINE_RIGHT_MARGIN, height / 2),
      never shorter than SPINE_MIN_LENGTH
    - Effect circle EFFECT_OFFSET past the spine end
    - Ribs at +/- RIB_ANGLE, length clamped to [RIB_MIN_LENGTH, RIB_MAX_LENGTH]
    - Sub-cause ticks SUB_RIB_LENGTH long, deeper causes LEAF_OFFSET_X out
    """

    SPINE_LEFT = 80
    SPINE_RIGHT_MARGIN = 200
    SPINE_MIN_LENGTH = 100
    SPINE_WIDTH = 10

    EFFECT_OFFSET = 90
    EFFECT_RADIUS = 55
    EFFECT_STROKE_WIDTH = 4
    EFFECT_FONT_SIZE = 16

    RIB_ANGLE = math.pi / 4
    RIB_MIN_LENGTH = 160
    RIB_MAX_LENGTH = 200
    RIB_WIDTH_RATIO = 0.18

    MAX_SUB_CAUSES = 4
    MAX_SUB_SUB_CAUSES = 3

    SUB_RIB_LENGTH = 70
    SUB_RIB_START = 0.2     # first sub-cause at 20% of the rib
    SUB_RIB_SPREAD = 0.6    # last one at 80%
    SUB_LABEL_GAP = 10

    LEAF_OFFSET_X = 20
    LEAF_SPACING_Y = 25
    LEAF_LINE_GAP = 3

    STATUS_DOT_RADIUS = 4
    STATUS_DOT_GAP = 8
    TEXT_WIDTH_RATIO = 0.7     # estimated glyph width per font size unit

    INDICATOR_RADIUS = 10
    ROOT_INDICATOR_OFFSET = 30
    SUB_INDICATOR_ROW = 12
    SUB_INDICATOR_MARGIN = 15

    # Per depth: stroke width, font size, font weight
    STROKE_WIDTHS = (4, 3, 2)
    FONT_SIZES = (16, 14, 11)
    FONT_WEIGHTS = ('700', '600', '500')

    def __init__(self, diagram: Diagram, width: float, height: float,
                 theme: Union[str, Theme] = Theme.LIGHT,
                 expanded: Optional[Iterable[str]] = None,
                 selected: Optional[str] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas must have a positive size, got {width}x{height}")
        self.diagram = diagram
        self.width = float(width)
        self.height = float(height)
        self.theme = as_theme(theme)
        self.expanded = frozenset(
            key for key in map(normalize_path, expanded or ()) if key is not None
        )
        self.selected = normalize_path(selected)
        self.primitives: List[Primitive] = []

    # ------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------

    @property
    def spine_y(self) -> float:
        return self.height / 2

    @property
    def spine_start(self) -> float:
        return float(self.SPINE_LEFT)

    @property
    def spine_end(self) -> float:
        return max(self.width - self.SPINE_RIGHT_MARGIN, self.spine_start + self.SPINE_MIN_LENGTH)

    @property
    def rib_length(self) -> float:
        return min(self.RIB_MAX_LENGTH, max(self.RIB_MIN_LENGTH, self.width * self.RIB_WIDTH_RATIO))

    def _colors(self, bone: Bone, depth: int, path: str):
        colors = bone_colors(bone.status, depth, self.theme)
        if self.selected == path:
            return SELECTED_COLOR, SELECTED_COLOR
        return colors.primary, colors.text

    def _visible(self, children: Sequence[Bone], path: str, limit: int):
        is_expanded = path in self.expanded
        if is_expanded:
            return list(children), is_expanded
        return list(children[:limit]), is_expanded

    def _indicator_text(self, total: int, shown: int, is_expanded: bool) -> str:
        return EXPANDED_GLYPH if is_expanded else f"+{total - shown}"

    # ------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------

    def compute(self) -> List[Primitive]:
        """Compute all primitives, back to front."""
        self.primitives = []
        self._layout_spine()

        roots = self.diagram.roots
        length = self.spine_end - self.spine_start
        for i, (bone, ratio) in enumerate(zip(roots, root_positions(len(roots)))):
            angle = -self.RIB_ANGLE if i % 2 == 0 else self.RIB_ANGLE
            sx = self.spine_start + length * ratio
            self._layout_root(bone, sx, self.spine_y, angle, encode_path([i]))

        self._layout_effect()
        return self.primitives

    def _layout_spine(self):
        color = SPINE_COLORS[self.theme]
        y = self.spine_y
        effect_left = self.spine_end + self.EFFECT_OFFSET - self.EFFECT_RADIUS
        self.primitives.append(Spine(
            x1=self.spine_start, y1=y, x2=self.spine_end, y2=y,
            color=color, width=self.SPINE_WIDTH,
        ))
        self.primitives.append(Spine(
            x1=self.spine_end, y1=y, x2=effect_left, y2=y,
            color=color, width=self.SPINE_WIDTH, arrow=True,
        ))

    def _layout_effect(self):
        cx = self.spine_end + self.EFFECT_OFFSET
        cy = self.spine_y
        stroke = SELECTED_COLOR if self.selected == EFFECT_PATH else EFFECT_STROKE
        self.primitives.append(EffectCircle(
            cx=cx, cy=cy, r=self.EFFECT_RADIUS,
            fill=EFFECT_FILL, stroke=stroke,
            stroke_width=self.EFFECT_STROKE_WIDTH,
        ))
        self.primitives.append(Label(
            x=cx, y=cy, text=self.diagram.effect_label,
            color=EFFECT_TEXT, font_size=self.EFFECT_FONT_SIZE, font_weight='700',
            anchor='middle', path=EFFECT_PATH, depth=-1,
        ))

    def _layout_root(self, bone: Bone, x: float, y: float, angle: float, path: str):
        length = self.rib_length
        x2 = x + math.cos(angle) * length
        y2 = y + math.sin(angle) * length
        stroke, text_color = self._colors(bone, 0, path)
        is_selected = self.selected == path

        self.primitives.append(Rib(
            x1=x, y1=y, x2=x2, y2=y2, color=stroke,
            width=self.STROKE_WIDTHS[0], path=path, depth=0,
        ))

        # Label sits further out along the rib so it never covers the rib
        font_size = self.FONT_SIZES[0]
        offset = max(20, 15 + len(bone.label) * 0.4)
        padding = 20
        text_width = len(bone.label) * font_size * self.TEXT_WIDTH_RATIO
        box = (max(text_width + padding * 2, 140), font_size + padding)
        self.primitives.append(Label(
            x=x2 + math.cos(angle) * offset,
            y=y2 + math.sin(angle) * offset,
            text=bone.label, color=text_color,
            font_size=font_size, font_weight=self.FONT_WEIGHTS[0],
            anchor='middle', path=path, depth=0, box=box,
            box_fill=SELECTED_BOX_FILL if is_selected else CATEGORY_BOX_FILL,
            box_stroke=SELECTED_COLOR if is_selected else CATEGORY_BOX_STROKE,
        ))

        if not bone.children:
            return

        visible, is_expanded = self._visible(bone.children, path, self.MAX_SUB_CAUSES)
        span = max(1, len(visible) - 1)
        rib_up = angle < 0

        for idx, child in enumerate(visible):
            ratio = self.SUB_RIB_START + idx * self.SUB_RIB_SPREAD / span
            mx = x + (x2 - x) * ratio
            my = y + (y2 - y) * ratio
            # Alternate sides of the rib, starting on the rib's own side
            alternate = idx % 2 == 0
            forward = alternate if rib_up else not alternate
            self._layout_sub_cause(child, mx, my, forward, f"{path}-{idx}")

        if len(bone.children) > self.MAX_SUB_CAUSES:
            self.primitives.append(ExpandIndicator(
                cx=x2 + math.cos(angle) * self.ROOT_INDICATOR_OFFSET,
                cy=y2 + math.sin(angle) * self.ROOT_INDICATOR_OFFSET,
                r=self.INDICATOR_RADIUS,
                fill=INDICATOR_EXPANDED if is_expanded else INDICATOR_COLLAPSED,
                text=self._indicator_text(len(bone.children), len(visible), is_expanded),
                path=path, expanded=is_expanded,
                hidden_count=len(bone.children) - len(visible),
                halo=True,
            ))

    def _layout_sub_cause(self, bone: Bone, x: float, y: float, forward: bool, path: str):
        direction = 1 if forward else -1
        end_x = x + direction * self.SUB_RIB_LENGTH
        end_y = y
        stroke, text_color = self._colors(bone, 1, path)
        anchor = 'start' if forward else 'end'

        self.primitives.append(SubRib(
            x1=x, y1=y, x2=end_x, y2=end_y, color=stroke,
            width=self.STROKE_WIDTHS[1], path=path, depth=1,
        ))
        self.primitives.append(Label(
            x=end_x + direction * self.SUB_LABEL_GAP, y=end_y,
            text=bone.label, color=text_color,
            font_size=self.FONT_SIZES[1], font_weight=self.FONT_WEIGHTS[1],
            anchor=anchor, path=path, depth=1,
        ))

        if not bone.children:
            return

        visible, is_expanded = self._visible(bone.children, path, self.MAX_SUB_SUB_CAUSES)
        middle = (len(visible) - 1) / 2

        for idx, leaf in enumerate(visible):
            leaf_path = f"{path}-{idx}"
            leaf_stroke, leaf_text = self._colors(leaf, 2, leaf_path)
            tx = end_x + direction * self.LEAF_OFFSET_X
            ty = end_y + (idx - middle) * self.LEAF_SPACING_Y
            self.primitives.append(SubRib(
                x1=end_x, y1=end_y,
                x2=tx - direction * self.LEAF_LINE_GAP, y2=ty,
                color=leaf_stroke, width=self.STROKE_WIDTHS[2],
                path=leaf_path, depth=2, opacity=0.8,
            ))
            self.primitives.append(Label(
                x=tx, y=ty, text=leaf.label, color=leaf_text,
                font_size=self.FONT_SIZES[2], font_weight=self.FONT_WEIGHTS[2],
                anchor=anchor, path=leaf_path, depth=2, opacity=0.9,
            ))
            if leaf.status in STATUS_DOT_COLORS:
                text_width = len(leaf.label) * self.FONT_SIZES[2] * self.TEXT_WIDTH_RATIO
                self.primitives.append(StatusDot(
                    cx=tx + direction * (text_width + self.STATUS_DOT_GAP), cy=ty,
                    r=self.STATUS_DOT_RADIUS,
                    fill=STATUS_DOT_COLORS[leaf.status], stroke=STATUS_DOT_STROKE,
                    path=leaf_path, status=leaf.status.value,
                ))

        if len(bone.children) > self.MAX_SUB_SUB_CAUSES:
            self.primitives.append(ExpandIndicator(
                cx=end_x + direction * self.LEAF_OFFSET_X,
                cy=end_y + len(visible) * self.SUB_INDICATOR_ROW + self.SUB_INDICATOR_MARGIN,
                r=self.INDICATOR_RADIUS,
                fill=INDICATOR_EXPANDED if is_expanded else SUB_INDICATOR_COLLAPSED,
                text=self._indicator_text(len(bone.children), len(visible), is_expanded),
                path=path, expanded=is_expanded,
                hidden_count=len(bone.children) - len(visible),
            ))


def compute_layout(diagram: Diagram, width: float, height: float,
                   theme: Union[str, Theme] = Theme.LIGHT,
                   expanded: Optional[Iterable[str]] = None,
                   selected: Optional[str] = None) -> List[Primitive]:
    """Lay out ``diagram`` on a ``width`` x ``height`` canvas."""
    return FishboneLayout(diagram, width, height, theme, expanded, selected).compute()

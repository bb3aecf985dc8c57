"""
Tests for the fishbone layout engine.

Tests cover:
    - Spine and effect geometry
    - Root distribution along the spine
    - Rib direction, sub-cause and leaf placement
    - Truncation with "+N" / "−" indicators and expansion
    - Status and selection colors, dark theme
    - Status dots beside resolved and issue causes
    - Determinism
"""

import math

import pytest

from fishbone.diagram.expansion import toggle_expansion
from fishbone.diagram.models import BoneStatus, Diagram
from fishbone.layout import (
    EffectCircle,
    ExpandIndicator,
    FishboneLayout,
    Label,
    Rib,
    Spine,
    StatusDot,
    SubRib,
    compute_layout,
    root_positions,
)
from fishbone.layout.engine import EXPANDED_GLYPH
from fishbone.layout.theme import (
    SELECTED_COLOR,
    SPINE_COLORS,
    STATUS_COLORS,
    STATUS_DOT_COLORS,
    Theme,
    bone_colors,
)
from tests.conftest import make_bone

WIDTH, HEIGHT = 1000, 600


def diagram_with(*roots):
    return Diagram.new("Test", "Tester", "user-1", "Defects", roots=roots)


def of_kind(primitives, cls):
    return [p for p in primitives if isinstance(p, cls)]


def sub_ribs(primitives, depth, under=""):
    return [
        p for p in of_kind(primitives, SubRib)
        if p.depth == depth and p.path.startswith(under)
    ]


# ============================================================
# ROOT DISTRIBUTION
# ============================================================

class TestRootPositions:

    def test_none(self):
        assert root_positions(0) == []

    def test_single_root_centred(self):
        assert root_positions(1) == [0.5]

    def test_two_and_three_use_fixed_splits(self):
        assert root_positions(2) == [0.3, 0.7]
        assert root_positions(3) == [0.25, 0.5, 0.75]

    @pytest.mark.parametrize("count", [4, 5, 6, 9])
    def test_many_roots_inset_and_evenly_spaced(self, count):
        positions = root_positions(count)
        assert len(positions) == count
        assert positions[0] > 0 and positions[-1] < 1
        gaps = [b - a for a, b in zip(positions, positions[1:])]
        assert all(math.isclose(g, gaps[0]) for g in gaps)

    def test_four_roots_window(self):
        positions = root_positions(4)
        assert math.isclose(positions[0], 0.15)
        assert math.isclose(positions[-1], 0.85)


# ============================================================
# SPINE / EFFECT
# ============================================================

class TestSpineAndEffect:

    def test_empty_diagram_has_spine_and_effect_only(self):
        primitives = compute_layout(diagram_with(), WIDTH, HEIGHT)

        assert of_kind(primitives, Rib) == []
        assert of_kind(primitives, SubRib) == []
        assert of_kind(primitives, ExpandIndicator) == []
        assert len(of_kind(primitives, Spine)) >= 1
        assert len(of_kind(primitives, EffectCircle)) == 1

    def test_spine_is_horizontal_at_mid_height(self):
        spines = of_kind(compute_layout(diagram_with(), WIDTH, HEIGHT), Spine)
        for spine in spines:
            assert spine.y1 == spine.y2 == HEIGHT / 2
        assert spines[0].x1 == FishboneLayout.SPINE_LEFT

    def test_final_segment_is_arrow_into_effect(self):
        primitives = compute_layout(diagram_with(), WIDTH, HEIGHT)
        arrow = of_kind(primitives, Spine)[-1]
        effect = of_kind(primitives, EffectCircle)[0]
        assert arrow.arrow
        assert math.isclose(arrow.x2, effect.cx - effect.r)

    def test_effect_past_spine_end(self):
        primitives = compute_layout(diagram_with(), WIDTH, HEIGHT)
        effect = of_kind(primitives, EffectCircle)[0]
        main = of_kind(primitives, Spine)[0]
        assert effect.cx > main.x2
        assert effect.path == "effect"

    def test_effect_label(self):
        labels = [p for p in compute_layout(diagram_with(), WIDTH, HEIGHT)
                  if isinstance(p, Label) and p.path == "effect"]
        assert [lbl.text for lbl in labels] == ["Defects"]

    def test_non_positive_canvas_rejected(self):
        with pytest.raises(ValueError):
            compute_layout(diagram_with(), 0, HEIGHT)

    @pytest.mark.parametrize("width", [100, 250, 279])
    def test_narrow_canvas_keeps_spine_pointing_right(self, width):
        main, arrow = of_kind(compute_layout(diagram_with(), width, HEIGHT), Spine)
        assert main.x2 - main.x1 == FishboneLayout.SPINE_MIN_LENGTH
        assert arrow.x1 == main.x2
        assert arrow.x2 > arrow.x1

    def test_narrow_canvas_roots_stay_on_spine(self, sample_diagram):
        primitives = compute_layout(sample_diagram, 250, HEIGHT)
        main = of_kind(primitives, Spine)[0]
        for rib in of_kind(primitives, Rib):
            assert main.x1 <= rib.x1 <= main.x2


# ============================================================
# RIBS AND SUB-CAUSES
# ============================================================

class TestRibs:

    def test_one_rib_per_root(self, sample_diagram):
        ribs = of_kind(compute_layout(sample_diagram, WIDTH, HEIGHT), Rib)
        assert [r.path for r in ribs] == ["bone-0", "bone-1", "bone-2"]

    def test_single_root_attaches_at_midpoint(self):
        primitives = compute_layout(diagram_with(make_bone("People")), WIDTH, HEIGHT)
        main = of_kind(primitives, Spine)[0]
        rib = of_kind(primitives, Rib)[0]
        assert math.isclose(rib.x1, (main.x1 + main.x2) / 2)

    def test_alternating_directions(self, sample_diagram):
        ribs = of_kind(compute_layout(sample_diagram, WIDTH, HEIGHT), Rib)
        # y grows downward: even ribs go up, odd ribs go down
        assert ribs[0].y2 < ribs[0].y1
        assert ribs[1].y2 > ribs[1].y1
        assert ribs[2].y2 < ribs[2].y1

    def test_fixed_rib_length(self, sample_diagram):
        for rib in of_kind(compute_layout(sample_diagram, WIDTH, HEIGHT), Rib):
            length = math.hypot(rib.x2 - rib.x1, rib.y2 - rib.y1)
            assert math.isclose(length, 180)   # 1000 * 0.18 within [160, 200]

    def test_root_label_beyond_rib_end(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT)
        rib = of_kind(primitives, Rib)[0]
        label = next(p for p in primitives if isinstance(p, Label) and p.path == "bone-0")
        assert label.y < rib.y2   # further up than the rib's end
        assert label.box is not None

    def test_sub_causes_sit_on_the_rib(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT)
        rib = of_kind(primitives, Rib)[0]
        for tick in sub_ribs(primitives, 1, "bone-0-"):
            # start point is on the rib segment
            t = (tick.x1 - rib.x1) / (rib.x2 - rib.x1)
            assert 0 < t < 1
            assert math.isclose(tick.y1, rib.y1 + (rib.y2 - rib.y1) * t)
            # short horizontal tick
            assert tick.y1 == tick.y2

    def test_sub_causes_alternate_sides(self, sample_diagram):
        ticks = sub_ribs(compute_layout(sample_diagram, WIDTH, HEIGHT), 1, "bone-0-")
        directions = [math.copysign(1, t.x2 - t.x1) for t in ticks]
        assert directions[0] != directions[1]

    def test_leaves_one_level_out(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT)
        leaves = sub_ribs(primitives, 2, "bone-0-0-")
        assert [p.path for p in leaves] == ["bone-0-0-0", "bone-0-0-1"]

    def test_nothing_rendered_below_leaf_level(self):
        deep = make_bone("Root", make_bone("Sub", make_bone("Leaf", make_bone("Too deep"))))
        primitives = compute_layout(diagram_with(deep), WIDTH, HEIGHT)
        paths = {getattr(p, "path", None) for p in primitives}
        assert "bone-0-0-0" in paths
        assert "bone-0-0-0-0" not in paths

    def test_every_bone_primitive_carries_a_path(self, sample_diagram):
        for p in compute_layout(sample_diagram, WIDTH, HEIGHT):
            if isinstance(p, (Rib, SubRib, ExpandIndicator)):
                assert p.path


# ============================================================
# TRUNCATION / EXPANSION
# ============================================================

class TestTruncation:

    def test_six_children_collapsed(self, wide_roots):
        primitives = compute_layout(diagram_with(*wide_roots), WIDTH, HEIGHT)

        assert len(sub_ribs(primitives, 1, "bone-0-")) == 4
        indicators = [i for i in of_kind(primitives, ExpandIndicator) if i.path == "bone-0"]
        assert len(indicators) == 1
        assert indicators[0].text == "+2"
        assert indicators[0].hidden_count == 2
        assert not indicators[0].expanded
        assert indicators[0].is_expand_toggle

    def test_six_children_expanded(self, wide_roots):
        diagram = diagram_with(*wide_roots)
        expanded = toggle_expansion(frozenset(), "bone-0")
        primitives = compute_layout(diagram, WIDTH, HEIGHT, expanded=expanded)

        assert len(sub_ribs(primitives, 1, "bone-0-")) == 6
        indicator = next(i for i in of_kind(primitives, ExpandIndicator) if i.path == "bone-0")
        assert indicator.text == EXPANDED_GLYPH == "\u2212"
        assert indicator.expanded
        assert indicator.hidden_count == 0

    def test_sub_sub_causes_truncated_at_three(self, wide_roots):
        primitives = compute_layout(diagram_with(*wide_roots), WIDTH, HEIGHT)
        assert len(sub_ribs(primitives, 2, "bone-0-0-")) == 3
        indicator = next(i for i in of_kind(primitives, ExpandIndicator) if i.path == "bone-0-0")
        assert indicator.text == "+2"

    def test_sub_level_expansion_is_independent(self, wide_roots):
        primitives = compute_layout(diagram_with(*wide_roots), WIDTH, HEIGHT,
                                    expanded={"bone-0-0"})
        assert len(sub_ribs(primitives, 2, "bone-0-0-")) == 5
        assert len(sub_ribs(primitives, 1, "bone-0-")) == 4

    def test_no_indicator_at_or_under_limit(self, sample_diagram):
        assert of_kind(compute_layout(sample_diagram, WIDTH, HEIGHT), ExpandIndicator) == []

    def test_ordinary_primitives_are_not_toggles(self, sample_diagram):
        for p in compute_layout(sample_diagram, WIDTH, HEIGHT):
            assert not p.is_expand_toggle


# ============================================================
# COLORS
# ============================================================

class TestColors:

    def test_status_overrides_depth_color(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT)
        staffing = next(p for p in primitives if isinstance(p, SubRib) and p.path == "bone-0-1")
        assert staffing.color == STATUS_COLORS[BoneStatus.ISSUE]["primary"]

    def test_depth_colors_lighten(self):
        root = bone_colors(None, 0, Theme.LIGHT)
        deep = bone_colors(None, 2, Theme.LIGHT)
        assert root.primary != deep.primary
        assert bone_colors(None, 7, Theme.LIGHT) == deep

    def test_dark_theme_changes_spine(self, sample_diagram):
        dark = compute_layout(sample_diagram, WIDTH, HEIGHT, theme="dark")
        assert of_kind(dark, Spine)[0].color == SPINE_COLORS[Theme.DARK]

    def test_selection_highlights_bone(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT, selected="bone-2")
        rib = next(p for p in of_kind(primitives, Rib) if p.path == "bone-2")
        assert rib.color == SELECTED_COLOR

    def test_selection_highlights_effect(self, sample_diagram):
        primitives = compute_layout(sample_diagram, WIDTH, HEIGHT, selected="effect")
        assert of_kind(primitives, EffectCircle)[0].stroke == SELECTED_COLOR


class TestStatusDots:

    @pytest.fixture
    def graded(self):
        return diagram_with(make_bone(
            "Process",
            make_bone(
                "Checks",
                make_bone("Skipped", status=BoneStatus.RESOLVED),
                make_bone("Ignored", status=BoneStatus.ISSUE),
                make_bone("Unclear", status=BoneStatus.PENDING),
            ),
            make_bone(
                "Handover",
                make_bone("Lost notes", status=BoneStatus.ISSUE),
                make_bone("Fine"),
            ),
            status=BoneStatus.ISSUE,
        ))

    def dots(self, diagram):
        return {p.path: p for p in of_kind(compute_layout(diagram, WIDTH, HEIGHT), StatusDot)}

    def test_resolved_and_issue_leaves_get_dots(self, graded):
        dots = self.dots(graded)
        assert set(dots) == {"bone-0-0-0", "bone-0-0-1", "bone-0-1-0"}
        assert dots["bone-0-0-0"].fill == STATUS_DOT_COLORS[BoneStatus.RESOLVED]
        assert dots["bone-0-0-1"].fill == STATUS_DOT_COLORS[BoneStatus.ISSUE]
        assert dots["bone-0-0-1"].status == "issue"

    def test_upper_levels_get_no_dot(self, sample_diagram):
        # Staffing is an issue at sub-cause level
        assert self.dots(sample_diagram) == {}

    def test_dot_sits_past_its_label(self, graded):
        primitives = compute_layout(graded, WIDTH, HEIGHT)
        labels = {p.path: p for p in of_kind(primitives, Label)}
        for dot in of_kind(primitives, StatusDot):
            label = labels[dot.path]
            assert dot.cy == label.y
            offset = dot.cx - label.x
            if label.anchor == "start":
                assert offset > 0
            else:
                assert offset < 0
            assert abs(offset) > len(label.text) * label.font_size * 0.5

    def test_dot_serialises(self, graded):
        dot = next(iter(self.dots(graded).values()))
        data = dot.to_dict()
        assert data["kind"] == "status_dot"
        assert data["r"] == 4
        assert data["opacity"] == 0.9


# ============================================================
# DETERMINISM / SERIALISATION
# ============================================================

class TestDeterminism:

    def test_same_inputs_same_output(self, sample_diagram):
        args = (sample_diagram, WIDTH, HEIGHT, "dark", {"bone-0"}, "bone-0-1")
        assert compute_layout(*args) == compute_layout(*args)

    def test_layout_does_not_touch_diagram(self, sample_diagram):
        before = sample_diagram.to_dict()
        compute_layout(sample_diagram, WIDTH, HEIGHT, expanded={"bone-0"})
        assert sample_diagram.to_dict() == before

    def test_to_dict(self, wide_roots):
        primitives = compute_layout(diagram_with(*wide_roots), WIDTH, HEIGHT)
        data = [p.to_dict() for p in primitives]
        kinds = {d["kind"] for d in data}
        assert {"spine", "rib", "sub_rib", "label", "effect_circle", "expand_indicator"} <= kinds
        toggles = [d for d in data if d["isExpandToggle"]]
        assert toggles and all(d["kind"] == "expand_indicator" for d in toggles)

"""
Diagram Export
==============
Renders layout primitives to SVG or PNG bytes with matplotlib.

Uses the matplotlib 'Agg' backend (headless) so exports work on a server
or in CI without a display. The figure is sized so that one layout unit is
one output pixel, and the y axis points down like the canvas the layout
was computed for.

Usage:
    from fishbone.reporting.export import export_diagram

    svg_bytes = export_diagram(diagram, fmt="svg")
    png_bytes = export_diagram(diagram, fmt="png", width=1400, height=800,
                               expanded={"bone-0"})
"""

import io
import logging
from typing import Iterable, Optional, Sequence

# Use non-interactive backend before importing pyplot
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.patches import Circle, FancyBboxPatch

from fishbone.diagram.models import Diagram
from fishbone.layout.engine import compute_layout
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
from fishbone.layout.theme import BACKGROUND_COLORS, Theme, as_theme

logger = logging.getLogger(__name__)

EXPORT_DPI = 100
EXPORT_FORMATS = ('svg', 'png')

# One layout unit is one pixel; matplotlib sizes text in points
PX_TO_PT = 72.0 / EXPORT_DPI

_ANCHOR_TO_HA = {'start': 'left', 'middle': 'center', 'end': 'right'}

_MIME_TYPES = {
    'svg': 'image/svg+xml',
    'png': 'image/png',
}


def mime_type(fmt: str) -> str:
    return _MIME_TYPES[fmt]


def _draw_line(ax, prim, zorder: int):
    ax.plot([prim.x1, prim.x2], [prim.y1, prim.y2],
            color=prim.color, linewidth=prim.width * PX_TO_PT,
            alpha=getattr(prim, 'opacity', 1.0),
            solid_capstyle='round', zorder=zorder)


def _draw_primitive(ax, prim: Primitive):
    if isinstance(prim, Spine):
        if prim.arrow:
            ax.annotate(
                '', xy=(prim.x2, prim.y2), xytext=(prim.x1, prim.y1),
                arrowprops=dict(arrowstyle='-|>', color=prim.color,
                                lw=prim.width * PX_TO_PT, mutation_scale=30),
                zorder=1,
            )
        else:
            _draw_line(ax, prim, zorder=1)

    elif isinstance(prim, Rib):
        _draw_line(ax, prim, zorder=2)
        ax.add_patch(Circle((prim.x1, prim.y1), prim.joint_radius,
                            facecolor=prim.color, edgecolor='none', zorder=3))

    elif isinstance(prim, SubRib):
        _draw_line(ax, prim, zorder=2)

    elif isinstance(prim, Label):
        if prim.box is not None:
            w, h = prim.box
            ax.add_patch(FancyBboxPatch(
                (prim.x - w / 2, prim.y - h / 2), w, h,
                boxstyle="round,pad=0,rounding_size=6",
                facecolor=prim.box_fill or 'white',
                edgecolor=prim.box_stroke or prim.color,
                linewidth=1.5, zorder=4,
            ))
        ax.text(prim.x, prim.y, prim.text,
                ha=_ANCHOR_TO_HA.get(prim.anchor, 'center'), va='center',
                fontsize=prim.font_size * PX_TO_PT,
                fontweight=int(prim.font_weight),
                color=prim.color, alpha=prim.opacity, zorder=5)

    elif isinstance(prim, EffectCircle):
        ax.add_patch(Circle((prim.cx, prim.cy), prim.r, facecolor=prim.fill,
                            edgecolor=prim.stroke,
                            linewidth=prim.stroke_width * PX_TO_PT, zorder=3))

    elif isinstance(prim, ExpandIndicator):
        if prim.halo:
            ax.add_patch(Circle((prim.cx, prim.cy), prim.r + 3, facecolor=prim.fill,
                                edgecolor='none', alpha=0.25, zorder=6))
        ax.add_patch(Circle((prim.cx, prim.cy), prim.r, facecolor=prim.fill,
                            edgecolor='white', linewidth=1.5, zorder=6))
        ax.text(prim.cx, prim.cy, prim.text, ha='center', va='center',
                fontsize=10 * PX_TO_PT, fontweight='bold', color='white', zorder=7)

    elif isinstance(prim, StatusDot):
        ax.add_patch(Circle((prim.cx, prim.cy), prim.r, facecolor=prim.fill,
                            edgecolor=prim.stroke, linewidth=PX_TO_PT,
                            alpha=prim.opacity, zorder=6))

    else:
        raise TypeError(f"Unknown primitive: {type(prim).__name__}")


def render_primitives(primitives: Sequence[Primitive], width: float, height: float,
                      fmt: str = 'svg', theme=Theme.LIGHT) -> bytes:
    """Draw already computed primitives and return the encoded image."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'; use one of {', '.join(EXPORT_FORMATS)}")

    background = BACKGROUND_COLORS[as_theme(theme)]

    fig = plt.figure(figsize=(width / EXPORT_DPI, height / EXPORT_DPI), dpi=EXPORT_DPI)
    try:
        ax = fig.add_axes([0, 0, 1, 1])
        fig.patch.set_facecolor(background)
        ax.set_facecolor(background)
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)  # canvas y grows downward
        ax.axis('off')

        for prim in primitives:
            _draw_primitive(ax, prim)

        buf = io.BytesIO()
        # keep labels as <text> elements in SVG output
        with plt.rc_context({'svg.fonttype': 'none'}):
            fig.savefig(buf, format=fmt, dpi=EXPORT_DPI, facecolor=background)
    finally:
        plt.close(fig)

    data = buf.getvalue()
    logger.debug("Rendered %d primitives to %s (%d bytes)", len(primitives), fmt, len(data))
    return data


def export_diagram(diagram: Diagram, fmt: str = 'svg', width: float = 1200,
                   height: float = 700, theme=Theme.LIGHT,
                   expanded: Optional[Iterable[str]] = None,
                   selected: Optional[str] = None) -> bytes:
    """Lay out ``diagram`` and render it in one step."""
    primitives = compute_layout(diagram, width, height, theme=theme,
                                expanded=expanded, selected=selected)
    return render_primitives(primitives, width, height, fmt=fmt, theme=theme)

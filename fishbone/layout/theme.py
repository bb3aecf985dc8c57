"""
Fishbone Color Palette
======================

Stroke and text colors for the layout engine. A bone's status overrides
its depth color; without a status, colors get lighter the deeper the bone
sits (root categories boldest). Dark theme inverts the depth ramp.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from fishbone.diagram.models import BoneStatus


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class BoneColors:
    primary: str      # stroke
    secondary: str    # fill / background tint
    text: str


# Status colors: primary stroke is shared, fill and text depend on theme
STATUS_COLORS = {
    BoneStatus.RESOLVED: {
        'primary': '#059669',
        Theme.LIGHT: ('#d1fae5', '#065f46'),
        Theme.DARK: ('#064e3b', '#10b981'),
    },
    BoneStatus.ISSUE: {
        'primary': '#dc2626',
        Theme.LIGHT: ('#fee2e2', '#991b1b'),
        Theme.DARK: ('#7f1d1d', '#ef4444'),
    },
    BoneStatus.PENDING: {
        'primary': '#d97706',
        Theme.LIGHT: ('#fef3c7', '#92400e'),
        Theme.DARK: ('#78350f', '#f59e0b'),
    },
}

# Depth ramps: index 0 = root category, 1 = sub-cause, 2+ = deeper
DEPTH_STROKE = {
    Theme.LIGHT: ('#1f2937', '#4b5563', '#6b7280'),
    Theme.DARK: ('#e5e7eb', '#d1d5db', '#9ca3af'),
}
DEPTH_TEXT = {
    Theme.LIGHT: ('#1f2937', '#374151', '#4b5563'),
    Theme.DARK: ('#f9fafb', '#e5e7eb', '#d1d5db'),
}
DEPTH_FILL = {
    Theme.LIGHT: '#f9fafb',
    Theme.DARK: '#374151',
}

SELECTED_COLOR = '#2563eb'
SELECTED_BOX_FILL = '#dbeafe'
CATEGORY_BOX_FILL = '#f8fafc'
CATEGORY_BOX_STROKE = '#374151'

SPINE_COLORS = {
    Theme.LIGHT: '#1e40af',
    Theme.DARK: '#e5e7eb',
}
BACKGROUND_COLORS = {
    Theme.LIGHT: '#ffffff',
    Theme.DARK: '#111827',
}

EFFECT_FILL = '#f59e0b'
EFFECT_STROKE = '#d97706'
EFFECT_TEXT = '#92400e'

INDICATOR_COLLAPSED = '#3b82f6'      # root level "+N"
SUB_INDICATOR_COLLAPSED = '#10b981'  # sub-cause level "+N"
INDICATOR_EXPANDED = '#ef4444'       # "−" at either level

# Deep causes only; pending gets no dot
STATUS_DOT_COLORS = {
    BoneStatus.RESOLVED: '#10b981',
    BoneStatus.ISSUE: '#ef4444',
}
STATUS_DOT_STROKE = '#ffffff'


def as_theme(theme: Union[str, Theme, None]) -> Theme:
    if theme is None:
        return Theme.LIGHT
    return Theme(theme)


def bone_colors(status: Optional[BoneStatus], depth: int,
                theme: Union[str, Theme] = Theme.LIGHT) -> BoneColors:
    """Colors for a bone at ``depth`` with the given status."""
    theme = as_theme(theme)
    if status is not None:
        palette = STATUS_COLORS[BoneStatus(status)]
        fill, text = palette[theme]
        return BoneColors(primary=palette['primary'], secondary=fill, text=text)

    level = min(max(depth, 0), 2)
    return BoneColors(
        primary=DEPTH_STROKE[theme][level],
        secondary=DEPTH_FILL[theme],
        text=DEPTH_TEXT[theme][level],
    )

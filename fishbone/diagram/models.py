"""
Bone Tree Data Model
====================

A diagram is a single synthetic *effect* node plus an ordered tuple of root
bones hanging off the spine. Every bone owns its children outright: there
are no ids, no parent pointers and no sharing across diagrams. A bone's
identity is its position (see ``fishbone.diagram.paths``).

Both types are frozen dataclasses. ``children`` and ``roots`` are tuples so
that the tree mutator can copy only the path it touches and every untouched
subtree stays the very same object.

Records are stored in the camelCase JSON shape of the original diagram
store::

    {
        "id": "...", "name": "...", "creator": "...", "creatorId": "...",
        "effectLabel": "...", "effectInfo": "...", "effectMeta": "...",
        "roots": [{"label": "People", "children": [...]}],
        "createdAt": "2026-01-01T00:00:00+00:00", "updatedAt": "..."
    }
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class BoneStatus(str, Enum):
    """Review status of a cause. Absence (``None``) means unset."""
    RESOLVED = "resolved"
    ISSUE = "issue"
    PENDING = "pending"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    # JS Date.toJSON() writes a trailing Z
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_status(value: Any) -> Optional[BoneStatus]:
    if value is None or value == "":
        return None
    return BoneStatus(value)


@dataclass(frozen=True)
class Bone:
    """A node in the cause tree (a category or a sub-cause)."""
    label: str
    info: Optional[str] = None
    metadata: Optional[str] = None
    status: Optional[BoneStatus] = None
    children: Tuple["Bone", ...] = ()

    def __post_init__(self):
        # Accept lists and raw strings from callers; store tuples and enums
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if self.status is not None and not isinstance(self.status, BoneStatus):
            object.__setattr__(self, "status", BoneStatus(self.status))

    def with_children(self, children) -> "Bone":
        return replace(self, children=tuple(children))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"label": self.label}
        if self.info is not None:
            data["info"] = self.info
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.status is not None:
            data["status"] = self.status.value
        data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bone":
        return cls(
            label=data.get("label", ""),
            info=data.get("info"),
            metadata=data.get("metadata"),
            status=_parse_status(data.get("status")),
            children=tuple(cls.from_dict(c) for c in data.get("children") or ()),
        )


@dataclass(frozen=True)
class Diagram:
    """The aggregate root: effect attributes, root bones and ownership."""
    id: str
    name: str
    creator: str
    creator_id: str
    effect_label: str
    effect_info: Optional[str] = None
    effect_string: Optional[str] = None
    effect_meta: Optional[str] = None
    roots: Tuple[Bone, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not isinstance(self.roots, tuple):
            object.__setattr__(self, "roots", tuple(self.roots))

    @classmethod
    def new(cls, name: str, creator: str, creator_id: str,
            effect_label: str, **fields) -> "Diagram":
        """Create a fresh diagram with a new id and matching timestamps."""
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            creator=creator,
            creator_id=creator_id,
            effect_label=effect_label,
            created_at=now,
            updated_at=now,
            **fields,
        )

    def with_roots(self, roots) -> "Diagram":
        """Return a copy with new roots and a refreshed ``updated_at``."""
        return replace(self, roots=tuple(roots), updated_at=utcnow())

    def touch(self, **changes) -> "Diagram":
        return replace(self, updated_at=utcnow(), **changes)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "creator": self.creator,
            "creatorId": self.creator_id,
            "effectLabel": self.effect_label,
        }
        if self.effect_info is not None:
            data["effectInfo"] = self.effect_info
        if self.effect_string is not None:
            data["effectString"] = self.effect_string
        if self.effect_meta is not None:
            data["effectMeta"] = self.effect_meta
        data["roots"] = [bone.to_dict() for bone in self.roots]
        data["createdAt"] = self.created_at.isoformat()
        data["updatedAt"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diagram":
        created = _parse_timestamp(data.get("createdAt")) or utcnow()
        updated = _parse_timestamp(data.get("updatedAt")) or created
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            creator=data.get("creator", ""),
            creator_id=data.get("creatorId", "anonymous"),
            effect_label=data.get("effectLabel", ""),
            effect_info=data.get("effectInfo"),
            effect_string=data.get("effectString"),
            effect_meta=data.get("effectMeta"),
            roots=tuple(Bone.from_dict(b) for b in data.get("roots") or ()),
            created_at=created,
            updated_at=updated,
        )

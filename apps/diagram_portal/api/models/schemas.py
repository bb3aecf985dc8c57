"""
Request Models
==============

Pydantic bodies shared by the diagram and editor routes. Field names follow
the portal's camelCase JSON; Python attributes are snake_case.

Field bounds are checked again by ``fishbone.diagram.validation`` before any
change is applied, so these models mostly give the docs a useful schema.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from fishbone.diagram.models import Bone

Status = Literal["resolved", "issue", "pending"]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# Bones
# ============================================================

class BonePayload(CamelModel):
    """A bone with its subtree, as nested JSON"""
    label: str = Field(..., min_length=1, max_length=100)
    info: Optional[str] = Field(None, max_length=500)
    metadata: Optional[str] = Field(None, max_length=200)
    status: Optional[Status] = None
    children: List["BonePayload"] = Field(default_factory=list)

    def to_bone(self) -> Bone:
        return Bone(
            label=self.label,
            info=self.info,
            metadata=self.metadata,
            status=self.status,
            children=tuple(child.to_bone() for child in self.children),
        )


BonePayload.model_rebuild()


class BoneUpdateRequest(CamelModel):
    """New fields for an existing bone; its children are kept"""
    label: str = Field(..., max_length=100)
    info: Optional[str] = Field(None, max_length=500)
    metadata: Optional[str] = Field(None, max_length=200)
    status: Optional[Status] = None
    expanded: List[str] = Field(default_factory=list)


class NewChildRequest(CamelModel):
    """Child to append; omitted label gets the default"""
    label: Optional[str] = Field(None, max_length=100)
    info: Optional[str] = Field(None, max_length=500)
    metadata: Optional[str] = Field(None, max_length=200)
    status: Optional[Status] = None
    children: List[BonePayload] = Field(default_factory=list)
    expanded: List[str] = Field(default_factory=list)


# ============================================================
# Diagrams
# ============================================================

class DiagramCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    creator: str = Field(..., min_length=1, max_length=50)
    effect_label: str = Field(..., alias="effectLabel", min_length=1, max_length=100)
    effect_info: Optional[str] = Field(None, alias="effectInfo", max_length=500)
    effect_string: Optional[str] = Field(None, alias="effectString", max_length=500)
    effect_meta: Optional[str] = Field(None, alias="effectMeta", max_length=200)
    roots: List[BonePayload] = Field(default_factory=list)


class DiagramUpdateRequest(CamelModel):
    """Partial update. Unknown keys (id, creatorId, timestamps) are ignored."""
    name: Optional[str] = Field(None, max_length=100)
    creator: Optional[str] = Field(None, max_length=50)
    effect_label: Optional[str] = Field(None, alias="effectLabel", max_length=100)
    effect_info: Optional[str] = Field(None, alias="effectInfo", max_length=500)
    effect_string: Optional[str] = Field(None, alias="effectString", max_length=500)
    effect_meta: Optional[str] = Field(None, alias="effectMeta", max_length=200)
    roots: Optional[List[BonePayload]] = None


class EffectUpdateRequest(CamelModel):
    effect_label: str = Field(..., alias="effectLabel", max_length=100)
    effect_info: Optional[str] = Field(None, alias="effectInfo", max_length=500)
    effect_string: Optional[str] = Field(None, alias="effectString", max_length=500)
    effect_meta: Optional[str] = Field(None, alias="effectMeta", max_length=200)


# ============================================================
# View state
# ============================================================

class LayoutRequest(CamelModel):
    width: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    theme: Literal["light", "dark"] = "light"
    expanded: List[str] = Field(default_factory=list)
    selected: Optional[str] = None


class ToggleRequest(CamelModel):
    path: str
    expanded: List[str] = Field(default_factory=list)

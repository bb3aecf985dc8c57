"""
Editor Routes
=============

The diagram session over HTTP. The server keeps no view state: the client
sends its expansion set (and selection) with each request and gets the
migrated set back.

POST   /diagrams/{id}/layout                  - Positioned primitives
GET    /diagrams/{id}/bones/{path}            - One bone with its subtree
PUT    /diagrams/{id}/bones/{path}            - Edit a bone, keep its children
DELETE /diagrams/{id}/bones/{path}            - Delete a bone and its subtree
POST   /diagrams/{id}/bones/{path}/children   - Append a child ("effect" adds a root)
PUT    /diagrams/{id}/effect                  - Edit the effect node
POST   /diagrams/{id}/expansion/toggle        - Flip one path in the expansion set
GET    /diagrams/{id}/export?format=svg|png   - Rendered image

All routes are owner-only.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from fishbone.database.store import DiagramStore
from fishbone.diagram.models import Bone, Diagram
from fishbone.diagram.session import DEFAULT_CHILD_LABEL, DiagramSession, canonical_path
from fishbone.reporting.export import mime_type, render_primitives
from fishbone.utils.safe_logging import get_safe_logger

from ..config import settings
from ..dependencies import get_diagram_store, require_diagram_owner
from ..models.schemas import (
    BoneUpdateRequest,
    EffectUpdateRequest,
    LayoutRequest,
    NewChildRequest,
    ToggleRequest,
)

logger = get_safe_logger(__name__)

router = APIRouter()


def _session(diagram: Diagram, store: DiagramStore, expanded=None,
             selected: Optional[str] = None) -> DiagramSession:
    return DiagramSession(diagram, store=store, expanded=expanded, selected=selected)


def _state(session: DiagramSession) -> dict:
    return {
        "diagram": session.diagram.to_dict(),
        "expanded": sorted(session.expanded),
        "selected": session.selected,
    }


# ============================================================
# Layout / export
# ============================================================

@router.post("/{diagram_id}/layout")
async def layout_diagram(
    request: LayoutRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Compute the primitives for the diagram on the given canvas."""
    width = request.width or settings.DEFAULT_CANVAS_WIDTH
    height = request.height or settings.DEFAULT_CANVAS_HEIGHT
    session = _session(diagram, store, request.expanded, request.selected)
    primitives = session.layout(width, height, theme=request.theme)
    return {
        "width": width,
        "height": height,
        "theme": request.theme,
        "expanded": sorted(session.expanded),
        "selected": session.selected,
        "primitives": [p.to_dict() for p in primitives],
    }


@router.get("/{diagram_id}/export")
async def export_diagram(
    format: str = Query("svg", pattern="^(svg|png)$"),
    width: Optional[float] = Query(None, gt=0),
    height: Optional[float] = Query(None, gt=0),
    theme: str = Query("light", pattern="^(light|dark)$"),
    expanded: Optional[List[str]] = Query(None),
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Render the diagram to SVG or PNG."""
    width = width or settings.DEFAULT_CANVAS_WIDTH
    height = height or settings.DEFAULT_CANVAS_HEIGHT
    session = _session(diagram, store, expanded)
    primitives = session.layout(width, height, theme=theme)
    content = render_primitives(primitives, width, height, fmt=format, theme=theme)

    filename = f"fishbone-{diagram.id}.{format}"
    logger.info(f"Exported diagram {diagram.id} as {format}")
    return Response(
        content=content,
        media_type=mime_type(format),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================
# Bones
# ============================================================

@router.get("/{diagram_id}/bones/{path}")
async def get_bone(
    path: str,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    bone = _session(diagram, store).get_bone(path)
    return {"path": path, "bone": bone.to_dict()}


@router.put("/{diagram_id}/bones/{path}")
async def update_bone(
    path: str,
    request: BoneUpdateRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Replace the bone's label, info, metadata and status. Children are kept."""
    session = _session(diagram, store, request.expanded)
    bone = session.update_bone(path, request.label, request.info,
                               request.metadata, request.status)
    session.save()
    return {"path": path, "bone": bone.to_dict(), **_state(session)}


@router.post("/{diagram_id}/bones/{path}/children", status_code=status.HTTP_201_CREATED)
async def add_child(
    path: str,
    request: NewChildRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Append a child under ``path``. Under ``effect`` this adds a root category."""
    session = _session(diagram, store, request.expanded)
    child = Bone(
        label=request.label if request.label is not None else DEFAULT_CHILD_LABEL,
        info=request.info,
        metadata=request.metadata,
        status=request.status,
        children=tuple(c.to_bone() for c in request.children),
    )
    new_path = session.add_child(path, child)
    session.save()
    return {"path": new_path, "bone": child.to_dict(), **_state(session)}


@router.delete("/{diagram_id}/bones/{path}")
async def delete_bone(
    path: str,
    expanded: Optional[List[str]] = Query(None),
    selected: Optional[str] = None,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Delete the bone and its subtree. Returns the migrated expansion set."""
    session = _session(diagram, store, expanded, selected)
    session.delete_bone(path)
    session.save()
    return _state(session)


# ============================================================
# Effect / expansion
# ============================================================

@router.put("/{diagram_id}/effect")
async def update_effect(
    request: EffectUpdateRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    session = _session(diagram, store)
    session.update_effect(request.effect_label, request.effect_info,
                          request.effect_meta, request.effect_string)
    session.save()
    return session.diagram.to_dict()


@router.post("/{diagram_id}/expansion/toggle")
async def toggle_expansion(
    request: ToggleRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Flip ``path`` in the client's expansion set. Nothing is stored."""
    session = _session(diagram, store, request.expanded)
    is_expanded = session.toggle(request.path)
    return {
        "path": canonical_path(request.path),
        "isExpanded": is_expanded,
        "expanded": sorted(session.expanded),
    }


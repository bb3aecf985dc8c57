"""
Diagram Routes
==============

GET    /diagrams             - Caller's diagrams (paginated with page/limit/search)
GET    /diagrams/public      - Every diagram, no login needed
GET    /diagrams/stats       - Totals across all diagrams
GET    /diagrams/{id}        - One diagram (owner only)
POST   /diagrams             - Create a diagram
PUT    /diagrams/{id}        - Partial update (owner only)
DELETE /diagrams/{id}        - Delete (owner only)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from fishbone.database.store import DiagramStore
from fishbone.diagram.models import Diagram

from ..dependencies import (
    CurrentUser,
    get_current_user,
    get_diagram_store,
    require_diagram_owner,
)
from ..models.schemas import DiagramCreateRequest, DiagramUpdateRequest
from ..services import diagram_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _wants_page(page, limit, search) -> bool:
    return bool(page or limit or search)


@router.get("")
async def list_my_diagrams(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    search: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    store: DiagramStore = Depends(get_diagram_store),
):
    """List the caller's diagrams. Paginated when any of page/limit/search is given."""
    logger.info("GET /diagrams for user %s", user.id)
    if _wants_page(page, limit, search):
        return diagram_service.paginate_diagrams(store, user.id, page, limit, search)
    return [d.to_dict() for d in diagram_service.list_diagrams(store, user.id)]


@router.get("/public")
async def list_public_diagrams(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    search: Optional[str] = None,
    store: DiagramStore = Depends(get_diagram_store),
):
    """List every diagram. No authentication required."""
    if _wants_page(page, limit, search):
        return diagram_service.paginate_diagrams(store, None, page, limit, search)
    return [d.to_dict() for d in diagram_service.list_diagrams(store)]


@router.get("/stats")
async def diagram_stats(
    user: CurrentUser = Depends(get_current_user),
    store: DiagramStore = Depends(get_diagram_store),
):
    return diagram_service.get_stats(store)


@router.get("/{diagram_id}")
async def get_diagram(diagram: Diagram = Depends(require_diagram_owner)):
    return diagram.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_diagram(
    request: DiagramCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    store: DiagramStore = Depends(get_diagram_store),
):
    """Create a diagram owned by the caller."""
    payload = request.model_dump(by_alias=True)
    diagram = diagram_service.create_diagram(store, payload, user.id)
    return diagram.to_dict()


@router.put("/{diagram_id}")
async def update_diagram(
    request: DiagramUpdateRequest,
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    """
    Replace the fields present in the body.

    Server-assigned fields (id, creatorId, createdAt, updatedAt) in the body
    are ignored.
    """
    changes = request.model_dump(by_alias=True, exclude_unset=True)
    updated = diagram_service.update_diagram(store, diagram, changes)
    return updated.to_dict()


@router.delete("/{diagram_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_diagram(
    diagram: Diagram = Depends(require_diagram_owner),
    store: DiagramStore = Depends(get_diagram_store),
):
    diagram_service.delete_diagram(store, diagram.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

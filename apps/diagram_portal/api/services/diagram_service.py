"""
Diagram Service
===============

CRUD, listing and statistics over the diagram store. Tree edits go through
``fishbone.diagram.session.DiagramSession``; this module only handles whole
diagrams.

Errors are raised as ``fishbone.errors`` exceptions and translated to HTTP
status codes by the app's exception handlers.
"""

import math
from dataclasses import replace
from typing import Any, Dict, List, Optional

from fishbone.database.store import DiagramStore
from fishbone.diagram.models import Bone, Diagram, utcnow
from fishbone.diagram.mutator import count_bones
from fishbone.diagram.validation import validate_diagram
from fishbone.errors import DiagramNotFoundError, InvalidContentError
from fishbone.utils.safe_logging import get_safe_logger

logger = get_safe_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Payload keys (camelCase, as sent by the portal) -> Diagram fields
EDITABLE_FIELDS = {
    "name": "name",
    "creator": "creator",
    "effectLabel": "effect_label",
    "effectInfo": "effect_info",
    "effectString": "effect_string",
    "effectMeta": "effect_meta",
}


def _bones_from_payload(roots: Optional[List[Dict[str, Any]]]) -> tuple:
    try:
        return tuple(Bone.from_dict(b) for b in roots or ())
    except ValueError as e:
        raise InvalidContentError(f"Invalid bone: {e}") from e


def _validated(diagram: Diagram) -> Diagram:
    is_valid, error = validate_diagram(diagram)
    if not is_valid:
        raise InvalidContentError(error)
    return diagram


# ============================================================
# QUERIES
# ============================================================

def matches_search(diagram: Diagram, search: str) -> bool:
    """Case-insensitive substring match on name, creator and effect label."""
    term = search.lower()
    return (
        term in diagram.name.lower()
        or term in diagram.creator.lower()
        or term in diagram.effect_label.lower()
    )


def list_diagrams(store: DiagramStore, owner_id: Optional[str] = None) -> List[Diagram]:
    """All diagrams, or only the ones created by ``owner_id``."""
    diagrams = store.all()
    if owner_id:
        diagrams = [d for d in diagrams if d.creator_id == owner_id]
    return diagrams


def paginate_diagrams(store: DiagramStore, owner_id: Optional[str] = None,
                      page: Optional[int] = None, limit: Optional[int] = None,
                      search: Optional[str] = None) -> Dict[str, Any]:
    """
    One page of diagrams.

    Returns:
        {"data": [...], "total": n, "page": p, "limit": l, "totalPages": t}
    """
    diagrams = list_diagrams(store, owner_id)
    if search:
        diagrams = [d for d in diagrams if matches_search(d, search)]

    total = len(diagrams)
    page = page or DEFAULT_PAGE
    limit = limit or DEFAULT_LIMIT
    skip = (page - 1) * limit

    return {
        "data": [d.to_dict() for d in diagrams[skip:skip + limit]],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }


def get_diagram(store: DiagramStore, diagram_id: str) -> Diagram:
    diagram = store.get(diagram_id)
    if diagram is None:
        logger.warning(f"Diagram with ID {diagram_id} not found")
        raise DiagramNotFoundError(diagram_id)
    return diagram


def get_stats(store: DiagramStore) -> Dict[str, Any]:
    """Totals across every stored diagram."""
    diagrams = store.all()
    total_diagrams = len(diagrams)
    total_bones = sum(count_bones(d.roots) for d in diagrams)

    creator_stats: Dict[str, int] = {}
    for diagram in diagrams:
        creator_stats[diagram.creator] = creator_stats.get(diagram.creator, 0) + 1

    average = math.floor(total_bones / total_diagrams + 0.5) if total_diagrams else 0
    return {
        "totalDiagrams": total_diagrams,
        "totalBones": total_bones,
        "creatorStats": creator_stats,
        "averageBonesPerDiagram": average,
    }


# ============================================================
# COMMANDS
# ============================================================

def create_diagram(store: DiagramStore, payload: Dict[str, Any], creator_id: str) -> Diagram:
    """Create and store a diagram from a camelCase payload."""
    fields = {
        attr: payload.get(key)
        for key, attr in EDITABLE_FIELDS.items()
        if key not in ("name", "creator", "effectLabel")
    }
    diagram = Diagram.new(
        name=(payload.get("name") or "").strip(),
        creator=(payload.get("creator") or "").strip(),
        creator_id=creator_id or "anonymous",
        effect_label=(payload.get("effectLabel") or "").strip(),
        roots=_bones_from_payload(payload.get("roots")),
        **fields,
    )
    store.put(_validated(diagram))
    logger.info(f"Created diagram {diagram.id}", name=diagram.name)
    return diagram


def update_diagram(store: DiagramStore, diagram: Diagram, changes: Dict[str, Any]) -> Diagram:
    """
    Apply a partial camelCase payload to ``diagram`` and store the result.

    Keys that are absent stay as they are. ``id``, ``creatorId`` and the
    timestamps are never taken from the payload.
    """
    updates = {
        attr: changes[key]
        for key, attr in EDITABLE_FIELDS.items()
        if key in changes
    }
    if "roots" in changes and changes["roots"] is not None:
        updates["roots"] = _bones_from_payload(changes["roots"])

    updated = _validated(replace(diagram, updated_at=utcnow(), **updates))
    store.put(updated)
    logger.info(f"Updated diagram {diagram.id}")
    return updated


def delete_diagram(store: DiagramStore, diagram_id: str) -> None:
    if not store.delete(diagram_id):
        raise DiagramNotFoundError(diagram_id)
    logger.info(f"Deleted diagram {diagram_id}")

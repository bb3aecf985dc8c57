"""
Diagram Session
===============

One open diagram plus the view state that goes with it: the expansion set
and the selected path. The session is the only place that turns mutator
results into exceptions and the only place that talks to the store.

Every successful mutation:
- swaps in the new ``roots`` and refreshes ``updated_at``
- migrates the expansion set so expanded keys keep pointing at the same
  bones
- clears the selection if it no longer names a node
- marks the session ``dirty`` until the next successful ``save()``

Usage:
    session = DiagramSession.load(store, diagram_id)
    session.toggle("bone-0")
    session.add_child("bone-0", Bone(label="Training"))
    primitives = session.layout(1000, 600)
    session.save()
"""

import logging
from dataclasses import replace
from typing import List, Optional, Union

from fishbone.errors import (
    AddressingError,
    DiagramNotFoundError,
    InvalidContentError,
    PersistenceError,
    StructuralError,
)
from fishbone.layout.engine import compute_layout

from .expansion import (
    Expansion,
    as_expansion,
    empty_expansion,
    prune_expansion,
    remap_after_delete,
    toggle_expansion,
)
from .models import Bone, BoneStatus, Diagram, utcnow
from .mutator import (
    ADDRESSING_ERRORS,
    MutationError,
    MutationResult,
    delete,
    insert_child,
    locate,
    update,
)
from .paths import EFFECT_PATH, child_path, is_effect_path, normalize_path
from .validation import validate_effect

logger = logging.getLogger(__name__)

DEFAULT_CHILD_LABEL = "New Cause"
DEFAULT_ROOT_LABEL = "New Category"


def canonical_path(path: Optional[str]) -> Optional[str]:
    """Canonical form of ``path``; unknown tokens are passed through for error messages."""
    return normalize_path(path) or path


def raise_for_result(result: MutationResult) -> None:
    """Turn a failed ``MutationResult`` into the matching exception."""
    if result.ok:
        return
    if result.error == MutationError.INVALID_CONTENT:
        raise InvalidContentError(result.message)
    if result.error in ADDRESSING_ERRORS:
        raise AddressingError(result.message)
    raise StructuralError(result.message)


class DiagramSession:
    """Editing state for a single diagram."""

    def __init__(self, diagram: Diagram, store=None, expanded=None,
                 selected: Optional[str] = None):
        self.diagram = diagram
        self.store = store
        self.expanded: Expansion = prune_expansion(as_expansion(expanded), diagram.roots)
        self.selected: Optional[str] = None
        self.dirty = False
        if selected is not None:
            self.select(selected)

    @classmethod
    def load(cls, store, diagram_id: str, expanded=None,
             selected: Optional[str] = None) -> "DiagramSession":
        """Open ``diagram_id`` from ``store``. Raises ``DiagramNotFoundError``."""
        diagram = store.get(diagram_id)
        if diagram is None:
            raise DiagramNotFoundError(diagram_id)
        logger.debug("Opened diagram %s (%d roots)", diagram.id, len(diagram.roots))
        return cls(diagram, store=store, expanded=expanded, selected=selected)

    @property
    def roots(self):
        return self.diagram.roots

    # ------------------------------------------------------------
    # View state
    # ------------------------------------------------------------

    def layout(self, width: float, height: float, theme: str = "light") -> List:
        return compute_layout(self.diagram, width, height, theme=theme,
                              expanded=self.expanded, selected=self.selected)

    def _resolves(self, path: Optional[str]) -> bool:
        if path is None:
            return False
        return is_effect_path(path) or locate(self.roots, path) is not None

    def select(self, path: Optional[str]) -> Optional[str]:
        """Select ``path``; ``None`` or an unknown path clears the selection."""
        path = canonical_path(path)
        self.selected = path if self._resolves(path) else None
        return self.selected

    def toggle(self, path: str) -> bool:
        """Flip the expansion of ``path``. Returns the new expanded state."""
        path = canonical_path(path)
        if not self._resolves(path):
            raise AddressingError(f"No node at path '{path}'")
        self.expanded = toggle_expansion(self.expanded, path)
        return path in self.expanded

    def is_expanded(self, path: str) -> bool:
        return canonical_path(path) in self.expanded

    # ------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------

    def _apply(self, result: MutationResult) -> Diagram:
        raise_for_result(result)
        self.diagram = self.diagram.with_roots(result.roots)
        self.expanded = prune_expansion(self.expanded, self.diagram.roots)
        if not self._resolves(self.selected):
            self.selected = None
        self.dirty = True
        return self.diagram

    def get_bone(self, path: str) -> Bone:
        path = canonical_path(path)
        if is_effect_path(path):
            raise StructuralError("The effect node is not a bone")
        bone = locate(self.roots, path)
        if bone is None:
            raise AddressingError(f"No bone at path '{path}'")
        return bone

    def update_bone(self, path: str, label: str, info: Optional[str] = None,
                    metadata: Optional[str] = None,
                    status: Union[BoneStatus, str, None] = None) -> Bone:
        """Replace a bone's own fields, keeping its children."""
        path = canonical_path(path)
        existing = self.get_bone(path)
        if isinstance(label, str):
            label = label.strip()
        try:
            new_bone = Bone(label=label, info=info, metadata=metadata,
                            status=status, children=existing.children)
        except ValueError as e:
            raise InvalidContentError("Status must be one of: resolved, issue, pending") from e
        self._apply(update(self.roots, path, new_bone))
        return new_bone

    def add_child(self, path: str, bone: Optional[Bone] = None) -> str:
        """Append ``bone`` under ``path``. Returns the new child's path."""
        path = canonical_path(path)
        bone = bone or Bone(label=DEFAULT_CHILD_LABEL)
        result = insert_child(self.roots, path, bone)
        self._apply(result)
        if is_effect_path(path):
            return child_path(EFFECT_PATH, len(self.roots) - 1)
        return child_path(path, len(self.get_bone(path).children) - 1)

    def add_root(self, label: str = DEFAULT_ROOT_LABEL) -> str:
        return self.add_child(EFFECT_PATH, Bone(label=label))

    def delete_bone(self, path: str) -> None:
        path = canonical_path(path)
        result = delete(self.roots, path)
        raise_for_result(result)
        self.expanded = remap_after_delete(self.expanded, path)
        if self.selected is not None:
            moved = remap_after_delete(frozenset({self.selected}), path)
            self.selected = next(iter(moved), None)
        self._apply(result)

    def update_effect(self, label: str, info: Optional[str] = None,
                      meta: Optional[str] = None,
                      effect_string: Optional[str] = None) -> Diagram:
        ok, message = validate_effect(label, info, meta, effect_string)
        if not ok:
            raise InvalidContentError(message)
        self.diagram = replace(
            self.diagram,
            effect_label=label.strip(),
            effect_info=info,
            effect_meta=meta,
            effect_string=effect_string if effect_string is not None else self.diagram.effect_string,
            updated_at=utcnow(),
        )
        self.dirty = True
        return self.diagram

    # ------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------

    def save(self) -> Diagram:
        """Write the whole diagram back. The in-memory tree survives a failure."""
        if self.store is None:
            raise PersistenceError("Session has no store to save to")
        try:
            self.store.put(self.diagram)
        except PersistenceError:
            self.dirty = True
            logger.error("Saving diagram %s failed; keeping unsaved changes", self.diagram.id)
            raise
        self.dirty = False
        logger.info("Saved diagram %s", self.diagram.id)
        return self.diagram

    def reset_view(self):
        self.expanded = empty_expansion()
        self.selected = None

"""
Fishbone Exceptions
===================

Raised at the service seams (session, store, API services). The core pure
functions never raise for expected conditions; they return ``None`` or a
``MutationResult`` carrying the failure instead.
"""


class FishboneError(Exception):
    """Base class for all fishbone errors."""


class InvalidContentError(FishboneError):
    """A bone or diagram field failed validation. Nothing was changed."""


class AddressingError(FishboneError):
    """A path did not decode, or named a node that does not exist."""


class StructuralError(FishboneError):
    """The operation would break the tree shape (e.g. deleting the effect)."""


class DiagramNotFoundError(FishboneError):
    """No diagram record with the requested id."""

    def __init__(self, diagram_id: str):
        super().__init__(f"Diagram with ID {diagram_id} not found")
        self.diagram_id = diagram_id


class PersistenceError(FishboneError):
    """The record store could not load or save a record."""

"""Generic deep-patch traversal.

Modules:
    nodes: Capability-based node classification and record field adaptation
    rewriter: Spawn-type field value and mapping key rewriting on one node
    walker: Identity-guarded recursive traversal dispatching to the rewriter

Nothing in this package knows about maps, configuration or payload text; it
operates on any object graph and an `IdentifierSet`.
"""
from __future__ import annotations

from .nodes import FieldRepresentation, NodeKind, classify, record_fields
from .rewriter import SPAWN_CONTAINER_NAMES, SPAWN_TYPE_FIELD_NAMES, rewrite_fields, rewrite_keys
from .walker import walk

__all__ = [
    "FieldRepresentation",
    "NodeKind",
    "SPAWN_CONTAINER_NAMES",
    "SPAWN_TYPE_FIELD_NAMES",
    "classify",
    "record_fields",
    "rewrite_fields",
    "rewrite_keys",
    "walk",
]

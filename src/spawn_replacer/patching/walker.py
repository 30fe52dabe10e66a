"""Cycle-safe recursive deep patch over an unknown object graph.

`walk` visits every node reachable from a root exactly once per call, keyed by
object identity, so self-references terminate and shared sub-objects are not
counted twice. At each node the field rewriter runs first; mappings then get
their keys rewritten (optional) and their values visited, sequences get every
element visited, and records get every readable non-scalar field visited.

The context name passed down is the name of the record field or container the
node was reached through. Mapping values and sequence elements inherit their
parent's context unchanged. Key rewriting uses it to recognise spawn-keyed maps.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..identifiers import IdentifierSet
from .nodes import NodeKind, classify, record_fields
from .rewriter import rewrite_fields, rewrite_keys

logger = logging.getLogger(__name__)

__all__ = ["walk"]


def walk(
    node: Any,
    identifiers: IdentifierSet,
    visited: Optional[Dict[int, Any]] = None,
    *,
    context_name: str = "",
    patch_dictionary_keys: bool = True,
) -> int:
    """Rewrite every matching spawn identifier reachable from `node`.

    Args:
        node: Root of the graph; any object.
        identifiers: Source/target identifiers.
        visited: Identity map (`id(obj)` to `obj`) shared across one top-level
            invocation. Holding the objects keeps their ids from being reused
            by fresh objects during the walk. A new map is created when omitted.
        context_name: Name the node was reached through.
        patch_dictionary_keys: Also rename matching mapping keys.

    Returns:
        Number of fields and keys rewritten.
    """
    if visited is None:
        visited = {}
    return _walk(node, identifiers, visited, context_name, patch_dictionary_keys)


def _walk(
    node: Any,
    identifiers: IdentifierSet,
    visited: Dict[int, Any],
    context_name: str,
    patch_keys: bool,
) -> int:
    kind = classify(node)
    if kind is NodeKind.SCALAR:
        return 0
    if id(node) in visited:
        return 0
    visited[id(node)] = node

    replaced = rewrite_fields(node, identifiers)

    if kind is NodeKind.MAPPING:
        if patch_keys:
            replaced += rewrite_keys(node, context_name, identifiers)
        try:
            values = list(node.values())
        except Exception as e:
            logger.debug("Cannot enumerate mapping under %s: %s", context_name, e)
            return replaced
        for value in values:
            replaced += _walk(value, identifiers, visited, context_name, patch_keys)
        return replaced

    if kind is NodeKind.SEQUENCE:
        try:
            items = list(node)
        except Exception as e:
            logger.debug("Cannot enumerate sequence under %s: %s", context_name, e)
            return replaced
        for item in items:
            replaced += _walk(item, identifiers, visited, context_name, patch_keys)
        return replaced

    for handle in record_fields(node):
        if not handle.readable:
            continue
        try:
            value = handle.get()
        except Exception as e:
            logger.debug("Skipping unreadable field %s on %s: %s", handle.name, type(node).__name__, e)
            continue
        if classify(value) is NodeKind.SCALAR:
            continue
        replaced += _walk(value, identifiers, visited, handle.name, patch_keys)
    return replaced

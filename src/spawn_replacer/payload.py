"""Spawn identifier substitution on serialized JSON payloads.

Used on bot-generation responses, which leave the server as JSON text rather
than as objects of the in-memory dataset. The payload is parsed into plain
dicts/lists, every object member whose key is a recognised spawn-type field and
whose value is a matching string is replaced, and the tree is re-serialized
only when something changed.

This path is total: blank input, non-JSON input, parse errors and
serialization errors all return the original text with a count of 0.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Tuple

from .identifiers import IdentifierSet
from .patching.rewriter import is_spawn_field

logger = logging.getLogger(__name__)

__all__ = ["patch_serialized_payload", "patch_json_tree"]


def patch_json_tree(node: Any, identifiers: IdentifierSet) -> int:
    """Rewrite matching spawn-type values in a parsed JSON tree in place."""
    replaced = 0
    if isinstance(node, dict):
        for key, value in list(node.items()):
            if value is None:
                continue
            if is_spawn_field(key) and isinstance(value, str):
                if identifiers.matches(value):
                    node[key] = identifiers.target
                    replaced += 1
                continue
            replaced += patch_json_tree(value, identifiers)
    elif isinstance(node, list):
        for item in node:
            if item is not None:
                replaced += patch_json_tree(item, identifiers)
    return replaced


def patch_serialized_payload(text: str, identifiers: IdentifierSet) -> Tuple[str, int]:
    """Substitute spawn identifiers inside a JSON text payload.

    Args:
        text: Serialized response body.
        identifiers: Source/target identifiers.

    Returns:
        `(new_text, count)`. When `count` is 0 `new_text` is `text` unchanged.
    """
    if not text or not text.strip():
        return text, 0
    trimmed = text.lstrip()
    if not trimmed.startswith(("{", "[")):
        return text, 0

    try:
        root = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.debug("Payload is not valid JSON; leaving untouched: %s", e)
        return text, 0

    replaced = patch_json_tree(root, identifiers)
    if replaced == 0:
        return text, 0

    try:
        patched = json.dumps(root, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, RecursionError) as e:
        logger.debug("Payload re-serialization failed; leaving untouched: %s", e)
        return text, 0
    return patched, replaced

"""Rewrite spawn-type field values and mapping keys on a single node.

Only a fixed list of well-known field names is ever touched. A field value is
rewritten when its textual form matches the source identifiers and the target
identifier can be represented in the field's native type. Mapping keys are
renamed only inside known spawn-keyed containers, or when the value under the
key itself looks like a spawn entry.

Key collision policy: when the target key already exists, the source entry is
dropped and the existing target entry is kept untouched.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any, FrozenSet, List, Tuple

from ..identifiers import IdentifierSet
from .nodes import FieldRepresentation, NodeKind, classify, field_key, record_fields, to_text

logger = logging.getLogger(__name__)

__all__ = [
    "SPAWN_TYPE_FIELD_NAMES",
    "SPAWN_CONTAINER_NAMES",
    "is_spawn_field",
    "is_spawn_container",
    "has_spawn_field",
    "rewrite_fields",
    "rewrite_keys",
]

SPAWN_TYPE_FIELD_NAMES: Tuple[str, ...] = (
    "WildSpawnType",
    "Role",
    "SpawnType",
    "BotType",
    "BotRole",
    "BossName",
    "BossEscortType",
)

SPAWN_CONTAINER_NAMES: Tuple[str, ...] = (
    "Waves",
    "MinMaxBots",
    "BossLocationSpawn",
    "BossLocationSpawnInfo",
)

_FIELD_KEYS: FrozenSet[str] = frozenset(field_key(n) for n in SPAWN_TYPE_FIELD_NAMES)
_CONTAINER_KEYS: FrozenSet[str] = frozenset(field_key(n) for n in SPAWN_CONTAINER_NAMES)


def is_spawn_field(name: Any) -> bool:
    return isinstance(name, str) and field_key(name) in _FIELD_KEYS


def is_spawn_container(name: Any) -> bool:
    return isinstance(name, str) and field_key(name) in _CONTAINER_KEYS


def has_spawn_field(value: Any) -> bool:
    """True when `value` exposes at least one recognised spawn-type field name."""
    kind = classify(value)
    if kind is NodeKind.MAPPING:
        return any(is_spawn_field(k) for k in value.keys())
    if kind is NodeKind.RECORD:
        return any(
            h.readable and any(is_spawn_field(n) for n in h.names) for h in record_fields(value)
        )
    return False


def rewrite_fields(node: Any, identifiers: IdentifierSet) -> int:
    """Rewrite recognised spawn-type fields of a record in place.

    Returns the number of fields written. Non-records yield 0. Unreadable
    fields, unwritable fields and targets the field type cannot hold are
    skipped silently.
    """
    replaced = 0
    for handle in record_fields(node):
        if not handle.readable or not any(is_spawn_field(n) for n in handle.names):
            continue
        try:
            current = handle.get()
        except Exception as e:
            logger.debug("Skipping unreadable field %s on %s: %s", handle.name, type(node).__name__, e)
            continue
        if current is None or not identifiers.matches(to_text(current)):
            continue
        if not handle.writable or handle.representation is FieldRepresentation.UNSUPPORTED:
            continue
        try:
            value = handle.coerce(identifiers.target)
        except ValueError:
            logger.debug(
                "Target %r not representable in field %s on %s",
                identifiers.target,
                handle.name,
                type(node).__name__,
            )
            continue
        try:
            handle.set(value)
        except Exception as e:
            logger.debug("Failed writing field %s on %s: %s", handle.name, type(node).__name__, e)
            continue
        replaced += 1
    return replaced


def rewrite_keys(mapping: Mapping[Any, Any], context_name: str, identifiers: IdentifierSet) -> int:
    """Rename source-identifier keys of a mutable mapping to the target.

    A key qualifies when it matches the source identifiers and either the
    mapping lives under a known spawn container (`context_name`) or the value
    under the key exposes a spawn-type field. Returns the number of keys
    changed; read-only mappings yield 0.
    """
    if not isinstance(mapping, MutableMapping):
        return 0

    in_container = is_spawn_container(context_name)
    to_change: List[str] = []
    for key, value in list(mapping.items()):
        if not isinstance(key, str) or not identifiers.matches(key):
            continue
        if in_container or (value is not None and has_spawn_field(value)):
            to_change.append(key)

    replaced = 0
    target = identifiers.target
    for old_key in to_change:
        try:
            if target in mapping:
                del mapping[old_key]
            else:
                mapping[target] = mapping.pop(old_key)
        except Exception as e:
            logger.debug("Failed renaming key %r in %s: %s", old_key, context_name, e)
            continue
        replaced += 1
    return replaced

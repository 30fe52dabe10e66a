"""Map-level patch orchestration over a locations dataset.

This module drives the deep-patch walker across every map of a locations
dataset. For each retained map it resolves the map's base record and patches,
depending on `PatchOptions`:

- the `Waves` container (per element, fresh identity map each),
- the `MinMaxBots` container (same),
- the whole base record as one unrestricted deep walk.

Map selection:
    1. The reserved members `Base` and `ExtensionData` are never maps.
    2. An explicit `override_map` restricts the pass to that single map.
    3. Otherwise `only_maps` (when non-empty) is an allow-list and
       `exclude_maps` a deny-list. A map named in both is excluded.

All name comparisons are case-insensitive. A map whose value cannot be read is
skipped without aborting the pass.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Tuple

from .identifiers import IdentifierSet
from .patching.nodes import NodeKind, classify, field_key, record_fields
from .patching.rewriter import rewrite_keys
from .patching.walker import walk

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "PatchOptions",
    "PatchResult",
    "RESERVED_MEMBERS",
    "get_member",
    "iter_maps",
    "patch_all_maps",
    "patch_container",
]

RESERVED_MEMBERS: Tuple[str, ...] = ("Base", "ExtensionData")
_RESERVED_KEYS = frozenset(field_key(n) for n in RESERVED_MEMBERS)


@dataclass(frozen=True)
class PatchOptions:
    """Toggles and map filters for one orchestration pass."""

    patch_waves: bool = True
    patch_min_max_bots: bool = True
    deep_patch: bool = True
    patch_dictionary_keys: bool = True
    only_maps: Tuple[str, ...] = ()
    exclude_maps: Tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PatchOptions":
        return cls(
            patch_waves=settings.PATCH_WAVES,
            patch_min_max_bots=settings.PATCH_MIN_MAX_BOTS,
            deep_patch=settings.DEEP_PATCH_ENABLED,
            patch_dictionary_keys=settings.PATCH_DICTIONARY_KEYS,
            only_maps=tuple(settings.ONLY_MAPS),
            exclude_maps=tuple(settings.EXCLUDE_MAPS),
        )

    def allows(self, map_name: str) -> bool:
        folded = map_name.casefold()
        if self.only_maps and folded not in {m.casefold() for m in self.only_maps}:
            return False
        if folded in {m.casefold() for m in self.exclude_maps}:
            return False
        return True


@dataclass(frozen=True)
class PatchResult:
    """Outcome of one orchestration pass.

    `replaced_by_map` lists only maps with at least one replacement, ordered
    case-insensitively by map name, and is read-only.
    """

    total_replaced: int = 0
    replaced_by_map: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_counts(cls, counts: Dict[str, int]) -> "PatchResult":
        ordered = {k: counts[k] for k in sorted(counts, key=str.casefold) if counts[k] > 0}
        return cls(
            total_replaced=sum(ordered.values()),
            replaced_by_map=MappingProxyType(ordered),
        )


def get_member(obj: Any, name: str) -> Any:
    """Return the member `name` of a mapping or record, ignoring case.

    Returns None when absent or unreadable.
    """
    wanted = field_key(name)
    kind = classify(obj)
    if kind is NodeKind.MAPPING:
        for key, value in obj.items():
            if isinstance(key, str) and field_key(key) == wanted:
                return value
        return None
    if kind is NodeKind.RECORD:
        for handle in record_fields(obj):
            if not handle.readable or not any(field_key(n) == wanted for n in handle.names):
                continue
            try:
                return handle.get()
            except Exception as e:
                logger.debug("Member %s unreadable on %s: %s", name, type(obj).__name__, e)
                return None
    return None


def iter_maps(dataset: Any) -> Iterator[Tuple[str, Any]]:
    """Yield `(map_name, reader)` pairs for every non-reserved dataset member.

    `reader` is a zero-argument callable so that an unreadable map only fails
    when it is actually selected.
    """
    kind = classify(dataset)
    if kind is NodeKind.MAPPING:
        for key in list(dataset.keys()):
            if isinstance(key, str) and field_key(key) not in _RESERVED_KEYS:
                yield key, (lambda k=key: dataset[k])
    elif kind is NodeKind.RECORD:
        for handle in record_fields(dataset):
            if not handle.readable or field_key(handle.name) in _RESERVED_KEYS:
                continue
            yield handle.name, handle.get


def patch_container(
    base: Any,
    container_name: str,
    identifiers: IdentifierSet,
    options: PatchOptions,
) -> int:
    """Patch one named container of a map's base record.

    Mapping containers get their keys rewritten (when enabled) and each value
    walked; sequence containers get each element walked; anything else is
    walked as a single node. Every member walk uses its own identity map.
    """
    container = get_member(base, container_name)
    if container is None:
        return 0

    kind = classify(container)
    replaced = 0
    if kind is NodeKind.MAPPING:
        if options.patch_dictionary_keys:
            replaced += rewrite_keys(container, container_name, identifiers)
        members = list(container.values())
    elif kind is NodeKind.SEQUENCE:
        members = list(container)
    else:
        members = [container]

    for member in members:
        if member is None:
            continue
        replaced += walk(
            member,
            identifiers,
            {},
            context_name=container_name,
            patch_dictionary_keys=options.patch_dictionary_keys,
        )
    return replaced


def patch_all_maps(
    dataset: Any,
    identifiers: IdentifierSet,
    options: PatchOptions,
    override_map: Optional[str] = None,
) -> PatchResult:
    """Rewrite spawn identifiers across every selected map of `dataset`.

    Args:
        dataset: Root object whose named members are per-map records (a
            mapping or a record).
        identifiers: Source/target identifiers.
        options: Container toggles and map filters.
        override_map: Restrict the pass to this one map (case-insensitive).

    Returns:
        A fresh `PatchResult`; never raises for per-map failures.
    """
    counts: Dict[str, int] = {}
    override = (override_map or "").strip()

    try:
        maps = list(iter_maps(dataset))
    except Exception as e:
        logger.warning("Cannot enumerate maps of %s: %s", type(dataset).__name__, e)
        return PatchResult()

    for map_name, read in maps:
        if override:
            if map_name.casefold() != override.casefold():
                continue
        elif not options.allows(map_name):
            continue

        try:
            location = read()
        except Exception as e:
            logger.debug("Skipping unreadable map %s: %s", map_name, e)
            continue
        if location is None:
            continue

        base = get_member(location, "Base")
        if base is None:
            base = location

        replaced = 0
        try:
            if options.patch_waves:
                replaced += patch_container(base, "Waves", identifiers, options)
            if options.patch_min_max_bots:
                replaced += patch_container(base, "MinMaxBots", identifiers, options)
            if options.deep_patch:
                replaced += walk(
                    base,
                    identifiers,
                    {},
                    context_name="Base",
                    patch_dictionary_keys=options.patch_dictionary_keys,
                )
        except Exception as e:  # pragma: no cover - fail open per map
            logger.warning("Patching map %s aborted after %d replacement(s): %s", map_name, replaced, e)

        if replaced > 0:
            counts[map_name] = counts.get(map_name, 0) + replaced
            logger.debug("Map %s: replaced %d", map_name, replaced)

    result = PatchResult.from_counts(counts)
    logger.info(
        "Spawn type patch replaced %d identifier(s) across %d map(s)",
        result.total_replaced,
        len(result.replaced_by_map),
    )
    return result

"""Configured source/target spawn-type identifiers.

An `IdentifierSet` is the immutable pair used by every patch pass: the ordered
collection of identifiers to replace and the single identifier written in
their place. Matching is case-insensitive; the target is always written with
the exact casing it was configured with.

Defaults mirror the shipped configuration: `assault` and `marksman` become
`pmcBot` unless configured otherwise.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import Settings

__all__ = ["DEFAULT_SOURCES", "DEFAULT_TARGET", "IdentifierSet"]

DEFAULT_SOURCES: Tuple[str, ...] = ("assault", "marksman")
DEFAULT_TARGET = "pmcBot"


@dataclass(frozen=True)
class IdentifierSet:
    """Case-insensitive set of source identifiers plus one target identifier.

    Build instances through `build` or `from_settings` so defaults and
    normalization are applied; the raw constructor trusts its arguments.
    """

    sources: Tuple[str, ...]
    target: str
    _folded: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_folded", frozenset(s.casefold() for s in self.sources))

    @classmethod
    def build(cls, sources: Optional[Iterable[str]], target: Optional[str]) -> "IdentifierSet":
        """Normalize raw configuration values into an identifier set.

        Blank entries are dropped and duplicates collapse case-insensitively
        (first spelling wins). A blank target falls back to `DEFAULT_TARGET`.
        The target is removed from the sources, since a value that already
        equals the target has nothing to rewrite. When no source is left, the
        sources fall back to `DEFAULT_SOURCES` (minus the target), so the set
        is never empty.
        """
        resolved_target = (target or "").strip() or DEFAULT_TARGET

        ordered: list[str] = []
        seen: set[str] = set()
        for raw in sources or ():
            if not isinstance(raw, str):
                continue
            value = raw.strip()
            if not value or value.casefold() in seen:
                continue
            seen.add(value.casefold())
            ordered.append(value)

        folded_target = resolved_target.casefold()
        kept = tuple(s for s in ordered if s.casefold() != folded_target)
        if not kept:
            kept = tuple(s for s in DEFAULT_SOURCES if s.casefold() != folded_target)
        return cls(
            sources=kept,
            target=resolved_target,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "IdentifierSet":
        return cls.build(settings.FROM_WILD_SPAWN_TYPES, settings.TO_WILD_SPAWN_TYPE)

    def matches(self, text: Optional[str]) -> bool:
        """Return True when `text` is one of the source identifiers."""
        if not text:
            return False
        return text.casefold() in self._folded

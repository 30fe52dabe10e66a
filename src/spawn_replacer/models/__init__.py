"""Typed models for the location dataset and raid request bodies."""
from __future__ import annotations

from .locations import (
    BossLocationSpawn,
    BossSupport,
    Location,
    LocationBase,
    Locations,
    MinMaxBot,
    StartLocalRaidRequest,
    Wave,
    WildSpawnType,
    load_locations,
)

__all__ = [
    "BossLocationSpawn",
    "BossSupport",
    "Location",
    "LocationBase",
    "Locations",
    "MinMaxBot",
    "StartLocalRaidRequest",
    "Wave",
    "WildSpawnType",
    "load_locations",
]

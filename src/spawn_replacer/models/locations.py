"""Pydantic models for the location database and raid requests.

These models give the location JSON a typed shape so spawn-type fields carry
their native representation (enum or plain text) when the patcher writes to
them. Field names match the JSON keys. Every model allows extra fields, so
members the patcher does not model are kept as plain dicts/lists and still
reachable by the deep walk.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class WildSpawnType(str, Enum):
    """Bot roles a location wave or boss spawn can reference."""

    assault = "assault"
    marksman = "marksman"
    pmcBot = "pmcBot"
    cursedAssault = "cursedAssault"
    exUsec = "exUsec"
    arenaFighter = "arenaFighter"
    arenaFighterEvent = "arenaFighterEvent"
    crazyAssaultEvent = "crazyAssaultEvent"
    assaultGroup = "assaultGroup"
    bossKilla = "bossKilla"
    bossBully = "bossBully"
    followerBully = "followerBully"
    bossKojaniy = "bossKojaniy"
    followerKojaniy = "followerKojaniy"
    bossGluhar = "bossGluhar"
    followerGluharAssault = "followerGluharAssault"
    followerGluharSecurity = "followerGluharSecurity"
    followerGluharScout = "followerGluharScout"
    bossSanitar = "bossSanitar"
    followerSanitar = "followerSanitar"
    bossTagilla = "bossTagilla"
    bossKnight = "bossKnight"
    followerBigPipe = "followerBigPipe"
    followerBirdEye = "followerBirdEye"
    bossZryachiy = "bossZryachiy"
    followerZryachiy = "followerZryachiy"
    bossBoar = "bossBoar"
    bossKolontay = "bossKolontay"
    bossPartisan = "bossPartisan"
    sectantPriest = "sectantPriest"
    sectantWarrior = "sectantWarrior"
    pmcUSEC = "pmcUSEC"
    pmcBEAR = "pmcBEAR"

    @classmethod
    def _missing_(cls, value: Any) -> Optional["WildSpawnType"]:
        """Accept roles added by newer server versions or other mods.

        Unknown names become pseudo-members carrying the raw string; they
        are not added to the enumeration itself.
        """
        if not isinstance(value, str) or not value:
            return None
        member = str.__new__(cls, value)
        member._name_ = value
        member._value_ = value
        return member


# Aliases keep annotations resolvable where a field shares the type's name.
_WildSpawnType = WildSpawnType


class _LocationModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Wave(_LocationModel):
    """A timed bot wave spawning on a location."""

    number: Optional[int] = None
    time_min: Optional[int] = None
    time_max: Optional[int] = None
    slots_min: Optional[int] = None
    slots_max: Optional[int] = None
    SpawnPoints: Optional[str] = None
    BotSide: Optional[str] = None
    BotPreset: Optional[str] = None
    WildSpawnType: Optional[_WildSpawnType] = None
    isPlayers: Optional[bool] = None


class MinMaxBot(_LocationModel):
    """Population bounds for one bot role on a location."""

    min: int = 0
    max: int = 0
    WildSpawnType: str = ""


class BossSupport(_LocationModel):
    BossEscortType: Optional[str] = None
    BossEscortDifficult: List[str] = Field(default_factory=list)
    BossEscortAmount: Optional[str] = None


class BossLocationSpawn(_LocationModel):
    """A boss spawn with its escort configuration."""

    BossName: str = ""
    BossChance: float = 0.0
    BossZone: Optional[str] = None
    BossEscortType: Optional[str] = None
    BossEscortAmount: Optional[str] = None
    Supports: Optional[List[BossSupport]] = None


_BossLocationSpawn = BossLocationSpawn


class LocationBase(_LocationModel):
    """The `base` record of a location: spawn containers plus metadata."""

    Id: Optional[str] = None
    Name: Optional[str] = None
    waves: List[Wave] = Field(default_factory=list)
    MinMaxBots: List[MinMaxBot] = Field(default_factory=list)
    BossLocationSpawn: List[_BossLocationSpawn] = Field(default_factory=list)


class Location(_LocationModel):
    base: LocationBase = Field(default_factory=LocationBase)


class Locations(_LocationModel):
    """Root of the location database: one member per map plus `base` metadata."""

    bigmap: Optional[Location] = None
    develop: Optional[Location] = None
    factory4_day: Optional[Location] = None
    factory4_night: Optional[Location] = None
    hideout: Optional[Location] = None
    interchange: Optional[Location] = None
    laboratory: Optional[Location] = None
    lighthouse: Optional[Location] = None
    privatearea: Optional[Location] = None
    rezervbase: Optional[Location] = None
    sandbox: Optional[Location] = None
    sandbox_high: Optional[Location] = None
    shoreline: Optional[Location] = None
    suburbs: Optional[Location] = None
    tarkovstreets: Optional[Location] = None
    terminal: Optional[Location] = None
    town: Optional[Location] = None
    woods: Optional[Location] = None
    # Dataset metadata, never treated as a map
    base: Optional[Dict[str, Any]] = None


class StartLocalRaidRequest(_LocationModel):
    """Body of the raid start request; only `location` is used."""

    location: Optional[str] = None
    timeVariant: Optional[str] = None
    mode: Optional[str] = None
    playerSide: Optional[str] = None


def load_locations(data: Mapping[str, Any]) -> Locations:
    """Validate a parsed locations JSON object into a `Locations` model."""
    return Locations.model_validate(dict(data))

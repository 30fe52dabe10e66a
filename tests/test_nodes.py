from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import pytest
from pydantic import BaseModel, ConfigDict

from spawn_replacer.patching.nodes import (
    FieldRepresentation,
    NodeKind,
    classify,
    field_key,
    parse_enum,
    record_fields,
    to_text,
)


class SpawnRole(Enum):
    ASSAULT = "assault"
    PMC_BOT = "pmcBot"


class Level(Enum):
    LOW = 1
    HIGH = 2


@dataclass
class Entry:
    Role: str
    SpawnType: SpawnRole
    BotType: Optional[SpawnRole]
    BossName: Any
    BotRole: int


class Loose(BaseModel):
    model_config = ConfigDict(extra="allow")

    Role: str = ""


class WithProperties:
    def __init__(self) -> None:
        self._role = "assault"
        self.plain = "x"

    @property
    def Role(self) -> str:
        return self._role

    @property
    def BotType(self) -> str:
        return "assault"

    @BotType.setter
    def BotType(self, value: str) -> None:
        self._role = value

    def _set_only(self, value: str) -> None:
        self._role = value

    SpawnType = property(None, _set_only)


def _by_name(obj):
    return {h.name: h for h in record_fields(obj)}


@pytest.mark.parametrize(
    "value",
    [None, "assault", b"raw", 3, 2.5, True, SpawnRole.ASSAULT, Level.LOW, int, len],
)
def test_scalars(value):
    assert classify(value) is NodeKind.SCALAR


def test_containers_and_records():
    assert classify({"a": 1}) is NodeKind.MAPPING
    assert classify([1]) is NodeKind.SEQUENCE
    assert classify((1,)) is NodeKind.SEQUENCE
    assert classify({1}) is NodeKind.SEQUENCE
    assert classify(deque([1])) is NodeKind.SEQUENCE
    assert classify(Entry("a", SpawnRole.ASSAULT, None, None, 1)) is NodeKind.RECORD
    assert classify(Loose()) is NodeKind.RECORD
    assert classify(WithProperties()) is NodeKind.RECORD


def test_field_key_ignores_case_and_separators():
    assert field_key("WildSpawnType") == field_key("wild_spawn_type") == field_key("wild-spawn-type")


def test_to_text_uses_enum_value_or_name():
    assert to_text(SpawnRole.PMC_BOT) == "pmcBot"
    assert to_text(Level.HIGH) == "HIGH"
    assert to_text(7) == "7"


def test_parse_enum_by_value_or_name_case_insensitive():
    assert parse_enum(SpawnRole, "PMCBOT") is SpawnRole.PMC_BOT
    assert parse_enum(SpawnRole, "pmc_bot") is SpawnRole.PMC_BOT
    assert parse_enum(Level, "high") is Level.HIGH
    with pytest.raises(ValueError):
        parse_enum(SpawnRole, "bossKilla")


def test_dataclass_field_representations():
    fields = _by_name(Entry("assault", SpawnRole.ASSAULT, None, "x", 3))
    assert fields["Role"].representation is FieldRepresentation.TEXT
    assert fields["SpawnType"].representation is FieldRepresentation.ENUM
    assert fields["BotType"].representation is FieldRepresentation.OPTIONAL_ENUM
    assert fields["BossName"].representation is FieldRepresentation.DYNAMIC
    assert fields["BotRole"].representation is FieldRepresentation.UNSUPPORTED
    assert all(h.readable and h.writable for h in fields.values())


def test_enum_coercion_rejects_unknown_member():
    fields = _by_name(Entry("assault", SpawnRole.ASSAULT, None, "x", 3))
    assert fields["SpawnType"].coerce("pmcbot") is SpawnRole.PMC_BOT
    assert fields["BotType"].coerce("pmcBot") is SpawnRole.PMC_BOT
    with pytest.raises(ValueError):
        fields["SpawnType"].coerce("bossKilla")
    with pytest.raises(ValueError):
        fields["BotRole"].coerce("pmcBot")


def test_pydantic_extras_are_dynamic_fields():
    model = Loose(Role="assault", BossName="marksman", nested={"a": 1})
    fields = _by_name(model)
    assert fields["Role"].representation is FieldRepresentation.TEXT
    assert fields["BossName"].representation is FieldRepresentation.DYNAMIC
    assert fields["nested"].get() == {"a": 1}
    fields["BossName"].set("pmcBot")
    assert model.BossName == "pmcBot"


def test_properties_expose_read_and_write_capabilities():
    fields = _by_name(WithProperties())
    assert fields["Role"].readable and not fields["Role"].writable
    assert fields["BotType"].readable and fields["BotType"].writable
    assert not fields["SpawnType"].readable
    assert fields["plain"].representation is FieldRepresentation.DYNAMIC
    assert "_role" not in fields


def test_non_records_have_no_fields():
    assert record_fields({"Role": "assault"}) == []
    assert record_fields(["assault"]) == []
    assert record_fields("assault") == []

from __future__ import annotations

import dataclasses

import pytest

from spawn_replacer.identifiers import DEFAULT_SOURCES, DEFAULT_TARGET, IdentifierSet


def test_matching_is_case_insensitive():
    ids = IdentifierSet.build(["assault"], "pmcBot")
    assert ids.matches("Assault")
    assert ids.matches("ASSAULT")
    assert not ids.matches("marksman")
    assert not ids.matches("")
    assert not ids.matches(None)


def test_empty_sources_fall_back_to_defaults():
    ids = IdentifierSet.build([], "pmcBot")
    assert ids.sources == DEFAULT_SOURCES
    ids = IdentifierSet.build(None, "pmcBot")
    assert ids.sources == DEFAULT_SOURCES
    ids = IdentifierSet.build(["  ", ""], "pmcBot")
    assert ids.sources == DEFAULT_SOURCES


def test_blank_target_falls_back_to_default():
    assert IdentifierSet.build(["assault"], "").target == DEFAULT_TARGET
    assert IdentifierSet.build(["assault"], "   ").target == DEFAULT_TARGET
    assert IdentifierSet.build(["assault"], None).target == DEFAULT_TARGET


def test_target_keeps_configured_casing_and_is_trimmed():
    ids = IdentifierSet.build(["assault"], "  PmcBot ")
    assert ids.target == "PmcBot"


def test_duplicates_collapse_first_spelling_wins():
    ids = IdentifierSet.build(["Assault", "assault", "marksman", "ASSAULT"], "pmcBot")
    assert ids.sources == ("Assault", "marksman")


def test_target_is_never_a_source():
    ids = IdentifierSet.build(["assault", "PMCBOT"], "pmcBot")
    assert ids.sources == ("assault",)
    assert not ids.matches("pmcBot")


def test_identifier_set_is_immutable():
    ids = IdentifierSet.build(["assault"], "pmcBot")
    with pytest.raises(dataclasses.FrozenInstanceError):
        ids.target = "other"  # type: ignore[misc]


def test_sources_equal_to_target_fall_back_to_defaults():
    ids = IdentifierSet.build(["pmcBot"], "pmcBot")
    assert ids.sources == DEFAULT_SOURCES
    ids = IdentifierSet.build(["Assault"], "assault")
    assert ids.sources == ("marksman",)
    assert ids.target == "assault"

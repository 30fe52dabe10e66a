from __future__ import annotations

import json
import os

import pytest

from spawn_replacer.config import Settings
from spawn_replacer.debug_dump import DEBUG_DIR_NAME, SUMMARY_FILE_NAME
from spawn_replacer.hooks import (
    ROUTE_BOT_GENERATE,
    ROUTE_LOCAL_END,
    ROUTE_LOCAL_START,
    ROUTE_RAID_CONFIGURATION,
    ReplacerContext,
    StaticRouter,
)
from spawn_replacer.models.locations import StartLocalRaidRequest, WildSpawnType, load_locations


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for k in list(os.environ.keys()):
        if k.startswith("SPAWN_REPLACER_"):
            monkeypatch.delenv(k, raising=False)
    monkeypatch.chdir(tmp_path)


def _dataset():
    return load_locations(
        {
            "bigmap": {"base": {"waves": [{"number": 0, "WildSpawnType": "assault"}]}},
            "woods": {"base": {"waves": [{"number": 0, "WildSpawnType": "marksman"}]}},
        }
    )


def _wave(data, name):
    return getattr(data, name).base.waves[0].WildSpawnType


def _summary(root):
    return (root / DEBUG_DIR_NAME / SUMMARY_FILE_NAME).read_text(encoding="utf-8")


def test_on_load_patches_every_map():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings())
    result = ctx.on_load()
    assert dict(result.replaced_by_map) == {"bigmap": 1, "woods": 1}
    assert _wave(data, "bigmap") is WildSpawnType.pmcBot
    assert _wave(data, "woods") is WildSpawnType.pmcBot


def test_disabled_context_does_nothing():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings(ENABLED=False))
    assert ctx.on_load().total_replaced == 0
    assert ctx.on_local_start({"location": "woods"}) is None
    assert ctx.on_bot_generate('{"Role":"assault"}') == '{"Role":"assault"}'
    assert _wave(data, "woods") is WildSpawnType.marksman


def test_local_start_restricted_to_request_location():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings())
    result = ctx.on_local_start({"location": "Woods"})
    assert dict(result.replaced_by_map) == {"woods": 1}
    assert _wave(data, "bigmap") is WildSpawnType.assault

    result = ctx.on_local_start(StartLocalRaidRequest(location="bigmap", mode="PVE_OFFLINE"))
    assert dict(result.replaced_by_map) == {"bigmap": 1}


def test_local_start_without_location_patches_all():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings())
    assert ctx.on_local_start({"location": "  "}).total_replaced == 2


def test_single_only_map_overrides_request_location():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings(ONLY_MAPS=["bigmap"]))
    result = ctx.on_local_start({"location": "woods"})
    assert dict(result.replaced_by_map) == {"bigmap": 1}
    assert _wave(data, "woods") is WildSpawnType.marksman


def test_route_toggles():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings(ROUTE_PATCHING_ENABLED=False))
    assert ctx.on_local_start() is None
    assert ctx.on_raid_configuration() is None
    assert ctx.on_local_end() is None

    ctx = ReplacerContext(data, settings=Settings(PATCH_ON_LOCAL_END=False))
    assert ctx.on_local_end() is None
    assert ctx.on_raid_configuration().total_replaced == 2
    assert ctx.on_local_end() is None


def test_bot_generate_patches_payload():
    ctx = ReplacerContext(_dataset(), settings=Settings())
    body = json.dumps({"err": 0, "data": [{"Info": {"Settings": {"Role": "assault"}}}]})
    patched = ctx.on_bot_generate(body)
    assert json.loads(patched)["data"][0]["Info"]["Settings"]["Role"] == "pmcBot"
    assert ctx.on_bot_generate('{"Role":"bossKilla"}') == '{"Role":"bossKilla"}'
    assert ctx.on_bot_generate(None) is None  # type: ignore[arg-type]

    ctx = ReplacerContext(_dataset(), settings=Settings(PATCH_ON_BOT_GENERATE=False))
    assert ctx.on_bot_generate(body) == body


def test_debug_dump_written_under_mod_root(tmp_path):
    ctx = ReplacerContext(_dataset(), mod_root=tmp_path, settings=Settings(DEBUG_DUMP=True))
    ctx.on_load()
    text = _summary(tmp_path)
    assert "- Startup" in text
    assert "From=[assault, marksman] To=[pmcBot]" in text
    assert "bigmap: replaced 1" in text
    assert "woods: replaced 1" in text

    # nothing left to replace: route passes do not append
    ctx.on_local_end()
    assert "RoutePatch" not in _summary(tmp_path)

    ctx.on_bot_generate('{"BotType":"marksman"}')
    assert "- BotGenerate" in _summary(tmp_path)


def test_settings_loaded_from_mod_root(tmp_path):
    cfg = tmp_path / "config"
    cfg.mkdir()
    (cfg / "config.jsonc").write_text(
        '{ "ToWildSpawnType": "exUsec", // boss guards\n "ExcludeMaps": ["woods"] }',
        encoding="utf-8",
    )
    data = _dataset()
    ctx = ReplacerContext(data, mod_root=tmp_path)
    assert ctx.snapshot().identifiers.target == "exUsec"
    assert dict(ctx.on_load().replaced_by_map) == {"bigmap": 1}
    assert _wave(data, "bigmap") is WildSpawnType.exUsec


def test_reload_swaps_identifiers():
    data = _dataset()
    ctx = ReplacerContext(data, settings=Settings())
    ctx.on_load()
    state = ctx.reload(Settings(FROM_WILD_SPAWN_TYPES=["pmcBot"], TO_WILD_SPAWN_TYPE="exUsec"))
    assert state.identifiers.sources == ("pmcBot",)
    assert ctx.on_raid_configuration().total_replaced == 2
    assert _wave(data, "woods") is WildSpawnType.exUsec


def test_snapshot_is_a_copy():
    ctx = ReplacerContext(_dataset(), settings=Settings())
    snap = ctx.snapshot()
    snap.settings.ENABLED = False
    assert ctx.snapshot().settings.ENABLED is True
    assert snap.options.patch_waves is True


def test_router_dispatch():
    data = _dataset()
    router = StaticRouter(ReplacerContext(data, settings=Settings()))
    assert set(router.routes) == {
        ROUTE_LOCAL_START,
        ROUTE_RAID_CONFIGURATION,
        ROUTE_LOCAL_END,
        ROUTE_BOT_GENERATE,
    }
    assert router.handle("/client/items", None, "body") == "body"

    out = router.handle(ROUTE_LOCAL_START, {"location": "woods"}, "start-body")
    assert out == "start-body"
    assert _wave(data, "woods") is WildSpawnType.pmcBot
    assert _wave(data, "bigmap") is WildSpawnType.assault

    assert router.handle(ROUTE_LOCAL_END, None, "end-body") == "end-body"
    assert _wave(data, "bigmap") is WildSpawnType.pmcBot

    out = router.handle(ROUTE_BOT_GENERATE, None, '{"data":[{"Role":"marksman"}]}')
    assert out == '{"data":[{"Role":"pmcBot"}]}'

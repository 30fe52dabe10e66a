"""Lifecycle and route hooks binding the patcher to a host server.

`ReplacerContext` is the single object a host creates at startup. It owns the
dataset handle, the mod root and a lock-guarded `RuntimeState` snapshot
(settings plus the identifier set derived from them). Every hook copies the
snapshot out under the lock before doing any work, so a configuration reload
during a long pass never mixes old and new values.

Triggers:
    on_load: full pass over all maps at startup
    on_local_start: raid start, optionally restricted to the raid's map
    on_raid_configuration: client fetched raid configuration
    on_local_end: raid end
    on_bot_generate: patch the serialized bot generation response

`StaticRouter` maps the host's route URLs to these hooks. Hooks never raise;
failures are logged and the original output is passed through.

The dataset itself is mutated without a lock. Hosts that can run two passes
over the same dataset concurrently must serialize them.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config import Settings, load_settings
from .debug_dump import write_debug_summary
from .identifiers import IdentifierSet
from .patcher import PatchOptions, PatchResult, patch_all_maps
from .payload import patch_serialized_payload

logger = logging.getLogger(__name__)

__all__ = [
    "ROUTE_BOT_GENERATE",
    "ROUTE_LOCAL_END",
    "ROUTE_LOCAL_START",
    "ROUTE_RAID_CONFIGURATION",
    "ReplacerContext",
    "RuntimeState",
    "StaticRouter",
]

ROUTE_LOCAL_START = "/client/match/local/start"
ROUTE_RAID_CONFIGURATION = "/client/raid/configuration"
ROUTE_LOCAL_END = "/client/match/local/end"
ROUTE_BOT_GENERATE = "/client/game/bot/generate"


@dataclass(frozen=True)
class RuntimeState:
    """Immutable snapshot of the run-time configuration."""

    settings: Settings
    identifiers: IdentifierSet
    mod_root: Optional[Path]

    @classmethod
    def from_settings(cls, settings: Settings, mod_root: Optional[Union[str, Path]] = None) -> "RuntimeState":
        return cls(
            settings=settings,
            identifiers=IdentifierSet.from_settings(settings),
            mod_root=Path(mod_root) if mod_root is not None else None,
        )

    @property
    def options(self) -> PatchOptions:
        return PatchOptions.from_settings(self.settings)


def _request_location(info: Any) -> Optional[str]:
    if info is None:
        return None
    if isinstance(info, Mapping):
        value = info.get("location")
    else:
        value = getattr(info, "location", None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ReplacerContext:
    """Holds the dataset and the current configuration snapshot.

    Args:
        dataset: Location dataset root mutated by the passes.
        mod_root: Directory holding `config/` and receiving `_debug/`.
        settings: Explicit settings; loaded from `mod_root` when omitted.
    """

    def __init__(
        self,
        dataset: Any,
        mod_root: Optional[Union[str, Path]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._dataset = dataset
        if settings is None:
            settings = load_settings(mod_root)
        self._state = RuntimeState.from_settings(settings, mod_root)

    @property
    def dataset(self) -> Any:
        return self._dataset

    def snapshot(self) -> RuntimeState:
        with self._lock:
            return replace(self._state, settings=self._state.settings.model_copy(deep=True))

    def reload(self, settings: Optional[Settings] = None) -> RuntimeState:
        """Replace the configuration snapshot (re-reading the config file by default)."""
        with self._lock:
            mod_root = self._state.mod_root
        if settings is None:
            settings = load_settings(mod_root)
        state = RuntimeState.from_settings(settings, mod_root)
        with self._lock:
            self._state = state
        logger.info(
            "Reloaded spawn replacer config: from=%s to=%s",
            list(state.identifiers.sources),
            state.identifiers.target,
        )
        return state

    def _dump(self, state: RuntimeState, tag: str, result: PatchResult) -> None:
        if state.settings.DEBUG_DUMP and state.mod_root is not None:
            write_debug_summary(state.mod_root, tag, state.identifiers, result)

    def on_load(self) -> PatchResult:
        """Startup pass over every map."""
        state = self.snapshot()
        result = PatchResult()
        if state.settings.ENABLED:
            result = patch_all_maps(self._dataset, state.identifiers, state.options)
            self._dump(state, "Startup", result)
        logger.info("Spawn replacer loaded (replaced %d at startup)", result.total_replaced)
        return result

    def _route_patch(self, toggle: str, info: Any = None) -> Optional[PatchResult]:
        state = self.snapshot()
        settings = state.settings
        if not settings.ENABLED or not settings.ROUTE_PATCHING_ENABLED:
            return None
        if not getattr(settings, toggle):
            return None

        override: Optional[str] = None
        only_maps = list(settings.ONLY_MAPS)
        if len(only_maps) == 1:
            override = only_maps[0]
        else:
            override = _request_location(info)

        try:
            result = patch_all_maps(self._dataset, state.identifiers, state.options, override)
        except Exception as e:  # pragma: no cover - fail open
            logger.warning("Route patch (%s) failed: %s", toggle, e)
            return None
        if result.total_replaced > 0:
            self._dump(state, "RoutePatch", result)
        return result

    def on_local_start(self, request: Any = None) -> Optional[PatchResult]:
        """Raid start; `request` may carry a `location` restricting the pass."""
        return self._route_patch("PATCH_ON_LOCAL_START", request)

    def on_raid_configuration(self) -> Optional[PatchResult]:
        return self._route_patch("PATCH_ON_RAID_CONFIGURATION")

    def on_local_end(self) -> Optional[PatchResult]:
        return self._route_patch("PATCH_ON_LOCAL_END")

    def on_bot_generate(self, output: str) -> str:
        """Return the bot generation response with spawn identifiers patched."""
        state = self.snapshot()
        if not state.settings.ENABLED or not state.settings.PATCH_ON_BOT_GENERATE:
            return output
        if not isinstance(output, str):
            return output
        patched, replaced = patch_serialized_payload(output, state.identifiers)
        if replaced > 0:
            logger.debug("Bot generation payload: replaced %d", replaced)
            self._dump(state, "BotGenerate", PatchResult(total_replaced=replaced))
            return patched
        return output


class StaticRouter:
    """Dispatch host route callbacks to a `ReplacerContext`.

    `handle` always returns the output to send: the patched body for the bot
    generation route, the untouched `output` everywhere else.
    """

    def __init__(self, context: ReplacerContext) -> None:
        self._context = context
        self._routes: Dict[str, Callable[[Any, Any], Any]] = {
            ROUTE_LOCAL_START: self._local_start,
            ROUTE_RAID_CONFIGURATION: self._raid_configuration,
            ROUTE_LOCAL_END: self._local_end,
            ROUTE_BOT_GENERATE: self._bot_generate,
        }

    @property
    def routes(self) -> tuple[str, ...]:
        return tuple(self._routes)

    def handle(self, url: str, info: Any, output: Any) -> Any:
        handler = self._routes.get(url)
        if handler is None:
            return output
        try:
            return handler(info, output)
        except Exception as e:  # pragma: no cover - fail open
            logger.warning("Route %s handler failed: %s", url, e)
            return output

    def _local_start(self, info: Any, output: Any) -> Any:
        self._context.on_local_start(info)
        return output

    def _raid_configuration(self, info: Any, output: Any) -> Any:
        self._context.on_raid_configuration()
        return output

    def _local_end(self, info: Any, output: Any) -> Any:
        self._context.on_local_end()
        return output

    def _bot_generate(self, info: Any, output: Any) -> Any:
        return self._context.on_bot_generate(output)

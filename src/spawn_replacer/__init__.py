"""Package initialization for spawn-replacer.

Rewrites bot spawn-type identifiers inside an in-memory location dataset and
inside serialized bot-generation payloads. The public entry points are
re-exported here for callers embedding the patcher in a host server.
"""
from __future__ import annotations

from .identifiers import IdentifierSet
from .patcher import PatchOptions, PatchResult, patch_all_maps
from .payload import patch_serialized_payload

__version__ = "1.0.1"

__all__ = [
    "IdentifierSet",
    "PatchOptions",
    "PatchResult",
    "patch_all_maps",
    "patch_serialized_payload",
    "__version__",
]

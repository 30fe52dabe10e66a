"""Error types raised by spawn-replacer collaborators.

The patching core never raises outward; these are used by the CLI when an
input file cannot be turned into a dataset or payload.
"""
from __future__ import annotations


class SpawnReplacerError(Exception):
    """Base error for spawn-replacer."""


class DatasetLoadError(SpawnReplacerError):
    """A dataset or payload file could not be read or validated."""

"""Capability-based classification and field access for arbitrary objects.

The walker never branches on concrete domain classes. Every object it meets is
classified once into a `NodeKind`, and records are adapted into a list of
`FieldHandle` objects that expose reading, writing and the field's native
representation. Representation metadata is resolved once per class and cached;
only per-instance members (pydantic extras, plain instance attributes) are
discovered on every call.

Classification:
    SCALAR: None, text, numbers, booleans, Enum members, dates, UUIDs, paths,
        classes, functions and anything else without enumerable members
    MAPPING: collections.abc.Mapping
    SEQUENCE: lists, tuples, sets, deques (non-text Sequence/Set)
    RECORD: pydantic models, dataclass instances, plain objects with
        __dict__ or __slots__

Representations (one coercion each):
    TEXT: str (including Optional[str]) -> target string as is
    ENUM / OPTIONAL_ENUM: Enum subclass -> member parsed case-insensitively
        by name or string value; a target that is not a member is rejected
    DYNAMIC: Any, object, unannotated attributes, pydantic extras -> raw string
    UNSUPPORTED: anything else -> never written
"""
from __future__ import annotations

import dataclasses
import datetime
import logging
import types
import typing
from collections.abc import Mapping, Sequence, Set
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import PurePath
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel

logger = logging.getLogger(__name__)

__all__ = [
    "NodeKind",
    "FieldRepresentation",
    "FieldHandle",
    "classify",
    "coerce",
    "field_key",
    "parse_enum",
    "record_fields",
    "to_text",
]


class NodeKind(Enum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    RECORD = "record"


class FieldRepresentation(Enum):
    TEXT = "text"
    ENUM = "enum"
    OPTIONAL_ENUM = "optional_enum"
    DYNAMIC = "dynamic"
    UNSUPPORTED = "unsupported"


_SCALAR_TYPES: Tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    memoryview,
    int,
    float,
    complex,
    bool,
    Enum,
    Decimal,
    UUID,
    PurePath,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
)


def classify(obj: Any) -> NodeKind:
    if obj is None or isinstance(obj, _SCALAR_TYPES):
        return NodeKind.SCALAR
    if isinstance(obj, Mapping):
        return NodeKind.MAPPING
    if isinstance(obj, (Sequence, Set, deque)):
        return NodeKind.SEQUENCE
    if isinstance(obj, BaseModel) or dataclasses.is_dataclass(obj):
        return NodeKind.RECORD
    if hasattr(obj, "__dict__") or getattr(type(obj), "__slots__", None):
        return NodeKind.RECORD
    return NodeKind.SCALAR


def field_key(name: str) -> str:
    """Normalize a field or key name for comparison.

    `WildSpawnType`, `wild_spawn_type` and `wild-spawn-type` all compare equal.
    """
    return name.replace("_", "").replace("-", "").casefold()


def to_text(value: Any) -> str:
    """Textual form of a field value as used for identifier matching."""
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    return str(value)


def parse_enum(enum_type: type, text: str) -> Enum:
    """Return the member of `enum_type` named (or valued) `text`, ignoring case.

    Enumerations that accept unknown values through `_missing_` get the
    value they build for `text`.

    Raises:
        ValueError: `text` is not a member of the enumeration.
    """
    folded = text.casefold()
    for member in enum_type:  # type: ignore[attr-defined]
        if member.name.casefold() == folded:
            return member
        if isinstance(member.value, str) and member.value.casefold() == folded:
            return member
    return enum_type(text)


def _coerce_text(enum_type: Optional[type], target: str) -> Any:
    return target


def _coerce_enum(enum_type: Optional[type], target: str) -> Any:
    if enum_type is None:
        raise ValueError("enum field without an enum type")
    return parse_enum(enum_type, target)


def _coerce_unsupported(enum_type: Optional[type], target: str) -> Any:
    raise ValueError("field type does not accept identifier text")


_COERCERS: Dict[FieldRepresentation, Callable[[Optional[type], str], Any]] = {
    FieldRepresentation.TEXT: _coerce_text,
    FieldRepresentation.ENUM: _coerce_enum,
    FieldRepresentation.OPTIONAL_ENUM: _coerce_enum,
    FieldRepresentation.DYNAMIC: _coerce_text,
    FieldRepresentation.UNSUPPORTED: _coerce_unsupported,
}


def coerce(representation: FieldRepresentation, enum_type: Optional[type], target: str) -> Any:
    """Convert `target` into the field's native representation.

    Raises:
        ValueError: the representation cannot hold `target`.
    """
    return _COERCERS[representation](enum_type, target)


def _is_enum_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Enum)


def _representation_for(annotation: Any) -> Tuple[FieldRepresentation, Optional[type]]:
    """Map a resolved type annotation to its field representation."""
    if annotation is None or annotation is Any or annotation is object:
        return FieldRepresentation.DYNAMIC, None
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _representation_for(typing.get_args(annotation)[0])
    if annotation is str:
        return FieldRepresentation.TEXT, None
    if _is_enum_type(annotation):
        return FieldRepresentation.ENUM, annotation
    union_type = getattr(types, "UnionType", None)
    if origin is typing.Union or (union_type is not None and origin is union_type):
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            inner, enum_type = _representation_for(members[0])
            if inner is FieldRepresentation.ENUM:
                return FieldRepresentation.OPTIONAL_ENUM, enum_type
            if inner in (FieldRepresentation.TEXT, FieldRepresentation.DYNAMIC):
                return inner, None
    return FieldRepresentation.UNSUPPORTED, None


@dataclass(frozen=True)
class _FieldSpec:
    attr: str
    aliases: Tuple[str, ...]
    readable: bool
    writable: bool
    representation: FieldRepresentation
    enum_type: Optional[type] = None


@dataclass(frozen=True)
class FieldHandle:
    """A readable and possibly writable named member of one record instance."""

    owner: Any
    spec: _FieldSpec

    @property
    def name(self) -> str:
        return self.spec.attr

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.spec.attr,) + self.spec.aliases

    @property
    def readable(self) -> bool:
        return self.spec.readable

    @property
    def writable(self) -> bool:
        return self.spec.writable

    @property
    def representation(self) -> FieldRepresentation:
        return self.spec.representation

    def get(self) -> Any:
        return getattr(self.owner, self.spec.attr)

    def set(self, value: Any) -> None:
        setattr(self.owner, self.spec.attr, value)

    def coerce(self, target: str) -> Any:
        return coerce(self.spec.representation, self.spec.enum_type, target)


def _resolved_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.debug("Could not resolve type hints for %s: %s", cls.__name__, e)
        return {}


def _property_specs(cls: type, hints: Dict[str, Any]) -> List[_FieldSpec]:
    specs: List[_FieldSpec] = []
    seen: set[str] = set()
    for klass in cls.__mro__:
        for name, member in vars(klass).items():
            if name in seen or name.startswith("_") or not isinstance(member, property):
                continue
            seen.add(name)
            annotation = hints.get(name)
            if annotation is None and member.fget is not None:
                try:
                    annotation = typing.get_type_hints(member.fget).get("return")
                except Exception:
                    annotation = None
            rep, enum_type = _representation_for(annotation)
            specs.append(
                _FieldSpec(
                    attr=name,
                    aliases=(),
                    readable=member.fget is not None,
                    writable=member.fset is not None,
                    representation=rep,
                    enum_type=enum_type,
                )
            )
    return specs


@lru_cache(maxsize=None)
def _class_specs(cls: type) -> Tuple[_FieldSpec, ...]:
    """Field specs declared on the class itself; cached per class."""
    if issubclass(cls, BaseModel):
        frozen = bool(cls.model_config.get("frozen", False))
        specs = []
        for name, info in cls.model_fields.items():
            rep, enum_type = _representation_for(info.annotation)
            aliases = tuple(a for a in (info.alias,) if isinstance(a, str) and a != name)
            specs.append(
                _FieldSpec(
                    attr=name,
                    aliases=aliases,
                    readable=True,
                    writable=not (frozen or info.frozen),
                    representation=rep,
                    enum_type=enum_type,
                )
            )
        return tuple(specs)

    hints = _resolved_hints(cls)
    specs = []
    declared: set[str] = set()
    if dataclasses.is_dataclass(cls):
        frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
        for f in dataclasses.fields(cls):
            if f.name.startswith("_"):
                continue
            if f.name in hints:
                rep, enum_type = _representation_for(hints[f.name])
            elif not isinstance(f.type, str):
                rep, enum_type = _representation_for(f.type)
            else:
                # unresolvable string annotation
                rep, enum_type = FieldRepresentation.UNSUPPORTED, None
            specs.append(_FieldSpec(f.name, (), True, not frozen, rep, enum_type))
            declared.add(f.name)
    else:
        slots: List[str] = []
        for klass in cls.__mro__:
            raw = vars(klass).get("__slots__", ())
            slots.extend([raw] if isinstance(raw, str) else list(raw))
        for name in slots:
            if name.startswith("_") or name in declared:
                continue
            rep, enum_type = _representation_for(hints.get(name))
            specs.append(_FieldSpec(name, (), True, True, rep, enum_type))
            declared.add(name)
    specs.extend(s for s in _property_specs(cls, hints) if s.attr not in declared)
    return tuple(specs)


def _instance_specs(obj: Any, known: set[str]) -> List[_FieldSpec]:
    """Members that only exist on the instance (extras, plain attributes)."""
    if isinstance(obj, BaseModel):
        extra = obj.model_extra or {}
        return [
            _FieldSpec(name, (), True, True, FieldRepresentation.DYNAMIC)
            for name in extra
            if isinstance(name, str) and not name.startswith("_") and name not in known
        ]
    try:
        attrs = vars(obj)
    except TypeError:
        return []
    hints = _resolved_hints(type(obj))
    specs = []
    for name in attrs:
        if not isinstance(name, str) or name.startswith("_") or name in known:
            continue
        rep, enum_type = _representation_for(hints.get(name))
        specs.append(_FieldSpec(name, (), True, True, rep, enum_type))
    return specs


def record_fields(obj: Any) -> List[FieldHandle]:
    """Enumerate the named fields of a record instance.

    Class-declared fields come first in declaration order, followed by
    instance-only members. Returns an empty list for non-records.
    """
    if classify(obj) is not NodeKind.RECORD:
        return []
    specs = list(_class_specs(type(obj)))
    known = {s.attr for s in specs}
    specs.extend(_instance_specs(obj, known))
    return [FieldHandle(obj, spec) for spec in specs]

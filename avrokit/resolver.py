"""Resolution between Avro type names and Python types."""

from __future__ import annotations

import datetime
import threading
from fractions import Fraction
from typing import Any

from avrokit.types import AvroError, LogicalType, Type


def _as_type(obj: Any) -> type:
    return obj if isinstance(obj, type) else type(obj)


class TypeResolver:
    """Maps Avro type names to Python types and back.

    All primitive and logical types are registered on creation.
    """

    def __init__(self) -> None:
        self._names: dict[str, type] = {}
        self._types: dict[type, list[str]] = {}
        self._lock = threading.Lock()

        self.register(str(Type.NULL), type(None))
        self.register(str(Type.INT), int)
        self.register(str(Type.LONG), int)
        self.register(str(Type.FLOAT), float)
        self.register(str(Type.DOUBLE), float)
        self.register(str(Type.STRING), str)
        self.register(str(Type.BYTES), bytes)
        self.register(str(Type.BOOLEAN), bool)

        self.register(f"{Type.INT}.{LogicalType.DATE}", datetime.date)
        self.register(f"{Type.INT}.{LogicalType.TIME_MILLIS}", datetime.timedelta)
        self.register(f"{Type.LONG}.{LogicalType.TIMESTAMP_MILLIS}", datetime.datetime)
        self.register(f"{Type.LONG}.{LogicalType.TIMESTAMP_MICROS}", datetime.datetime)
        self.register(f"{Type.LONG}.{LogicalType.TIME_MICROS}", datetime.timedelta)
        self.register(f"{Type.BYTES}.{LogicalType.DECIMAL}", Fraction)

    def register(self, name: str, obj: Any) -> None:
        """Register ``name`` for the type of ``obj`` (or ``obj`` itself if it is a type)."""
        typ = _as_type(obj)
        with self._lock:
            self._names[name] = typ
            self._types.setdefault(typ, []).append(name)

    def name(self, typ: Any) -> list[str]:
        """Return the names registered for a type, or raise AvroError."""
        typ = _as_type(typ)
        with self._lock:
            names = self._types.get(typ)
        if names is None:
            raise AvroError(f"avro: unable to resolve type {typ.__qualname__}")
        return list(names)

    def type(self, name: str) -> type:
        """Return the type registered for a name, or raise AvroError."""
        with self._lock:
            typ = self._names.get(name)
        if typ is None:
            raise AvroError(f"avro: unable to resolve type with name {name}")
        return typ
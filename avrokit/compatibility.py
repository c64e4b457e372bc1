"""Reader/writer schema compatibility checks."""

from __future__ import annotations

import threading
from typing import Optional

from avrokit.schema import (
    ArraySchema,
    EnumSchema,
    Field,
    FixedSchema,
    MapSchema,
    RecordSchema,
    Schema,
    UnionSchema,
)
from avrokit.types import AvroError, Type


class IncompatibleSchemaError(AvroError):
    """Raised when a reader schema cannot read data written with a writer schema."""


_IN_PROGRESS = object()

_PROMOTIONS = {
    Type.INT: frozenset({Type.LONG, Type.FLOAT, Type.DOUBLE}),
    Type.LONG: frozenset({Type.FLOAT, Type.DOUBLE}),
    Type.FLOAT: frozenset({Type.DOUBLE}),
    Type.STRING: frozenset({Type.BYTES}),
    Type.BYTES: frozenset({Type.STRING}),
}


class SchemaCompatibility:
    """Determines and caches the compatibility of reader and writer schemas."""

    def __init__(self) -> None:
        self._cache: dict = {}
        self._lock = threading.RLock()

    def compatible(self, reader: Schema, writer: Schema) -> None:
        """Raise IncompatibleSchemaError unless ``reader`` can read ``writer`` data."""
        key = (reader.fingerprint(), writer.fingerprint())
        with self._lock:
            if key in self._cache:
                cached = self._cache[key]
                if cached is _IN_PROGRESS or cached is None:
                    # A pending entry means we are inside a recursive check.
                    return
                raise IncompatibleSchemaError(cached)

            self._cache[key] = _IN_PROGRESS
            try:
                self._match(reader, writer)
            except IncompatibleSchemaError as exc:
                self._cache[key] = str(exc)
                raise IncompatibleSchemaError(str(exc)) from None
            except BaseException:
                del self._cache[key]
                raise
            self._cache[key] = None

    def _match(self, reader: Schema, writer: Schema) -> None:
        if reader.type == Type.REF:
            reader = reader.schema
        if writer.type == Type.REF:
            writer = writer.schema

        if reader.type != writer.type:
            if writer.type == Type.UNION:
                for schema in writer.types:
                    self.compatible(reader, schema)
                return

            if reader.type == Type.UNION:
                for schema in reader.types:
                    try:
                        self.compatible(schema, writer)
                    except IncompatibleSchemaError:
                        continue
                    return
                raise IncompatibleSchemaError(
                    f"reader union lacking writer schema {str(writer.type)}"
                )

            if reader.type in _PROMOTIONS.get(writer.type, frozenset()):
                return

            raise IncompatibleSchemaError(
                f"reader schema {str(reader.type)} not compatible with "
                f"writer schema {str(writer.type)}"
            )

        if reader.type == Type.ARRAY:
            assert isinstance(reader, ArraySchema) and isinstance(writer, ArraySchema)
            self.compatible(reader.items, writer.items)
        elif reader.type == Type.MAP:
            assert isinstance(reader, MapSchema) and isinstance(writer, MapSchema)
            self.compatible(reader.values, writer.values)
        elif reader.type == Type.FIXED:
            assert isinstance(reader, FixedSchema) and isinstance(writer, FixedSchema)
            self._check_name(reader, writer)
            if reader.size != writer.size:
                raise IncompatibleSchemaError(
                    f"{reader.full_name} reader and writer fixed sizes do not match"
                )
        elif reader.type == Type.ENUM:
            assert isinstance(reader, EnumSchema) and isinstance(writer, EnumSchema)
            self._check_name(reader, writer)
            for symbol in writer.symbols:
                if symbol not in reader.symbols:
                    raise IncompatibleSchemaError(
                        f"reader {reader.full_name} is missing symbol {symbol}"
                    )
        elif reader.type == Type.RECORD:
            assert isinstance(reader, RecordSchema) and isinstance(writer, RecordSchema)
            self._check_name(reader, writer)
            self._check_record_fields(reader, writer)
        elif reader.type == Type.UNION:
            assert isinstance(writer, UnionSchema)
            for schema in writer.types:
                self.compatible(reader, schema)

    @staticmethod
    def _check_name(reader, writer) -> None:
        if reader.full_name != writer.full_name:
            raise IncompatibleSchemaError(
                f"reader schema {reader.full_name} and writer schema "
                f"{writer.full_name}  names do match"
            )

    def _check_record_fields(self, reader: RecordSchema, writer: RecordSchema) -> None:
        for field in reader.fields:
            written = _find_field(writer.fields, field.name)
            if written is None:
                if field.has_default:
                    continue
                raise IncompatibleSchemaError(
                    f"reader field {field.name} is missing in writer schema "
                    f"and has no default"
                )
            self.compatible(field.type, written.type)


def _find_field(fields, name: str) -> Optional[Field]:
    return next((f for f in fields if f.name == name), None)
"""Decoding of Avro binary data from a stream or an in-memory buffer."""

from __future__ import annotations

import datetime
import struct
from fractions import Fraction
from typing import Any, BinaryIO, Iterator, Optional

from avrokit.schema import Schema, schema_type_name
from avrokit.types import AvroError, LogicalType, Type

_MAX_INT_BYTES = 5
_MAX_LONG_BYTES = 10
_MASK32 = (1 << 32) - 1
_MASK64 = (1 << 64) - 1

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_EPOCH_DATE = datetime.date(1970, 1, 1)


class ReadError(AvroError):
    """Raised when Avro data cannot be decoded."""


def _report(operation: str, msg: str) -> ReadError:
    return ReadError(f"avro: {operation}: {msg}")


def _decimal_from_bytes(data: bytes, scale: int) -> Fraction:
    unscaled = int.from_bytes(data, "big", signed=True)
    return Fraction(unscaled, 10**scale)


class Reader:
    """Reads Avro-encoded values from a binary stream or a byte buffer."""

    def __init__(self, stream: Optional[BinaryIO] = None, buf_size: int = 1024) -> None:
        self._stream = stream
        self._buf_size = buf_size
        self._buf = b""
        self._head = 0
        self._tail = 0

    def reset(self, data: bytes) -> "Reader":
        """Detach any stream and read from ``data`` instead."""
        self._stream = None
        self._buf = bytes(data)
        self._head = 0
        self._tail = len(self._buf)
        return self

    def _load_more(self) -> None:
        if self._stream is None:
            self._head = self._tail
            raise ReadError("avro: unexpected end of data")
        while True:
            chunk = self._stream.read(self._buf_size)
            if chunk is None:
                # Nothing available yet on a non-blocking stream; try again.
                continue
            if not chunk:
                raise ReadError("avro: unexpected end of data")
            self._buf = bytes(chunk)
            self._head = 0
            self._tail = len(self._buf)
            return

    def _read_byte(self) -> int:
        if self._head == self._tail:
            self._load_more()
        byte = self._buf[self._head]
        self._head += 1
        return byte

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` raw bytes."""
        parts = []
        remaining = size
        while remaining > 0:
            if self._head == self._tail:
                self._load_more()
            end = min(self._tail, self._head + remaining)
            parts.append(self._buf[self._head:end])
            remaining -= end - self._head
            self._head = end
        return b"".join(parts)

    def read_bool(self) -> bool:
        """Read a boolean."""
        byte = self._read_byte()
        if byte not in (0, 1):
            raise _report("ReadBool", "invalid bool")
        return byte == 1

    def _read_varint(self, max_bytes: int, mask: int, operation: str, kind: str) -> int:
        value = 0
        for offset in range(max_bytes):
            byte = self._read_byte()
            value |= (byte & 0x7F) << (7 * offset)
            if not byte & 0x80:
                value &= mask
                return (value >> 1) ^ -(value & 1)
        raise _report(operation, f"{kind} overflow")

    def read_int(self) -> int:
        """Read a zig-zag encoded 32-bit int."""
        return self._read_varint(_MAX_INT_BYTES, _MASK32, "ReadInt", "int")

    def read_long(self) -> int:
        """Read a zig-zag encoded 64-bit long."""
        return self._read_varint(_MAX_LONG_BYTES, _MASK64, "ReadLong", "long")

    def read_float(self) -> float:
        """Read a little-endian 32-bit float."""
        return struct.unpack("<f", self.read(4))[0]

    def read_double(self) -> float:
        """Read a little-endian 64-bit float."""
        return struct.unpack("<d", self.read(8))[0]

    def read_bytes(self) -> bytes:
        """Read length-prefixed bytes."""
        size = self.read_long()
        if size < 0:
            raise _report("ReadBytes", "invalid bytes length")
        return self.read(size)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        size = self.read_long()
        if size < 0:
            raise _report("ReadString", "invalid string length")
        data = self.read(size)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise _report("ReadString", "invalid utf-8 string") from None

    def read_block_header(self) -> tuple[int, int]:
        """Read a block header, returning the item count and the block size in bytes."""
        length = self.read_long()
        if length < 0:
            size = self.read_long()
            return -length, size
        return length, 0

    def iter_array(self) -> Iterator[int]:
        """Walk the blocks of an array, yielding the index of each item to be read."""
        index = 0
        while True:
            count, _ = self.read_block_header()
            if count == 0:
                return
            for _ in range(count):
                yield index
                index += 1

    def iter_map(self) -> Iterator[str]:
        """Walk the blocks of a map, yielding each key; the caller reads its value."""
        while True:
            count, _ = self.read_block_header()
            if count == 0:
                return
            for _ in range(count):
                yield self.read_string()

    def read_next(self, schema: Schema) -> Any:
        """Read the next value described by ``schema`` as plain Python data."""
        logical = getattr(schema, "logical", None)
        logical_type = logical.type if logical is not None else None
        typ = schema.type

        if typ == Type.BOOLEAN:
            return self.read_bool()
        if typ == Type.INT:
            value = self.read_int()
            if logical_type == LogicalType.DATE:
                return _EPOCH_DATE + datetime.timedelta(days=value)
            if logical_type == LogicalType.TIME_MILLIS:
                return datetime.timedelta(milliseconds=value)
            return value
        if typ == Type.LONG:
            value = self.read_long()
            if logical_type == LogicalType.TIME_MICROS:
                return datetime.timedelta(microseconds=value)
            if logical_type == LogicalType.TIMESTAMP_MILLIS:
                return _EPOCH + datetime.timedelta(milliseconds=value)
            if logical_type == LogicalType.TIMESTAMP_MICROS:
                return _EPOCH + datetime.timedelta(microseconds=value)
            return value
        if typ == Type.FLOAT:
            return self.read_float()
        if typ == Type.DOUBLE:
            return self.read_double()
        if typ == Type.STRING:
            return self.read_string()
        if typ == Type.BYTES:
            data = self.read_bytes()
            if logical_type == LogicalType.DECIMAL:
                return _decimal_from_bytes(data, logical.scale)
            return data
        if typ == Type.RECORD:
            return {field.name: self.read_next(field.type) for field in schema.fields}
        if typ == Type.REF:
            return self.read_next(schema.schema)
        if typ == Type.ENUM:
            index = self.read_int()
            if not 0 <= index < len(schema.symbols):
                raise _report("Read", "unknown enum symbol")
            return schema.symbols[index]
        if typ == Type.ARRAY:
            return [self.read_next(schema.items) for _ in self.iter_array()]
        if typ == Type.MAP:
            result = {}
            for key in self.iter_map():
                result[key] = self.read_next(schema.values)
            return result
        if typ == Type.UNION:
            index = self.read_long()
            if not 0 <= index < len(schema.types):
                raise _report("Read", "unknown union type")
            chosen = schema.types[index]
            if chosen.type == Type.NULL:
                return None
            return {schema_type_name(chosen): self.read_next(chosen)}
        if typ == Type.FIXED:
            data = self.read(schema.size)
            if logical_type == LogicalType.DECIMAL:
                return _decimal_from_bytes(data, logical.scale)
            return data
        raise _report("Read", f"unexpected schema type: {typ}")

    def skip_n_bytes(self, n: int) -> None:
        """Skip ``n`` bytes."""
        remaining = n
        while remaining > 0:
            if self._head == self._tail:
                self._load_more()
            step = min(remaining, self._tail - self._head)
            self._head += step
            remaining -= step

    def skip_bool(self) -> None:
        """Skip a boolean."""
        self._read_byte()

    def _skip_varint(self, max_bytes: int) -> None:
        for _ in range(max_bytes):
            if not self._read_byte() & 0x80:
                return

    def skip_int(self) -> None:
        """Skip an int, consuming at most five bytes."""
        self._skip_varint(_MAX_INT_BYTES)

    def skip_long(self) -> None:
        """Skip a long, consuming at most ten bytes."""
        self._skip_varint(_MAX_LONG_BYTES)

    def skip_float(self) -> None:
        """Skip a float."""
        self.skip_n_bytes(4)

    def skip_double(self) -> None:
        """Skip a double."""
        self.skip_n_bytes(8)

    def skip_string(self) -> None:
        """Skip a length-prefixed string."""
        size = self.read_long()
        if size > 0:
            self.skip_n_bytes(size)

    def skip_bytes(self) -> None:
        """Skip length-prefixed bytes."""
        size = self.read_long()
        if size > 0:
            self.skip_n_bytes(size)
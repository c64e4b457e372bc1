"""Core Avro schema vocabulary: type names, naming rules, logical types and fingerprints."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional


class AvroError(Exception):
    """Raised when a schema or value violates the Avro specification."""


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


class Type(_StrEnum):
    """An Avro schema type."""

    RECORD = "record"
    ERROR = "error"
    REF = "<ref>"
    ENUM = "enum"
    ARRAY = "array"
    MAP = "map"
    UNION = "union"
    FIXED = "fixed"
    STRING = "string"
    BYTES = "bytes"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    NULL = "null"


class Order(_StrEnum):
    """The sort order of a record field."""

    ASC = "ascending"
    DESC = "descending"
    IGNORE = "ignore"


class LogicalType(_StrEnum):
    """An Avro logical type."""

    DECIMAL = "decimal"
    UUID = "uuid"
    DATE = "date"
    TIME_MILLIS = "time-millis"
    TIME_MICROS = "time-micros"
    TIMESTAMP_MILLIS = "timestamp-millis"
    TIMESTAMP_MICROS = "timestamp-micros"
    DURATION = "duration"


class FingerprintType(_StrEnum):
    """A schema fingerprinting algorithm."""

    CRC64_AVRO = "CRC64-AVRO"
    MD5 = "MD5"
    SHA256 = "SHA256"


_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def validate_name(name: str) -> None:
    """Raise AvroError unless ``name`` is a valid Avro name part."""
    if not name:
        raise AvroError("name must be a non-empty")
    if _NAME_RE.fullmatch(name) is None:
        raise AvroError(f"invalid name {name}")


_CRC64_EMPTY = 0xC15D213AA4D7A795


def _build_crc64_table() -> tuple[int, ...]:
    table = []
    for value in range(256):
        fp = value
        for _ in range(8):
            fp = (fp >> 1) ^ (_CRC64_EMPTY & -(fp & 1))
        table.append(fp)
    return tuple(table)


_CRC64_TABLE = _build_crc64_table()


def crc64_avro(data: bytes) -> bytes:
    """Return the 8-byte big-endian Avro CRC-64 (Rabin) fingerprint of ``data``."""
    fp = _CRC64_EMPTY
    for byte in data:
        fp = (fp >> 8) ^ _CRC64_TABLE[(fp ^ byte) & 0xFF]
    return fp.to_bytes(8, "big")


_HASHERS: dict[FingerprintType, Callable[[bytes], bytes]] = {
    FingerprintType.CRC64_AVRO: crc64_avro,
    FingerprintType.MD5: lambda data: hashlib.md5(data).digest(),
    FingerprintType.SHA256: lambda data: hashlib.sha256(data).digest(),
}


class SchemaName:
    """The name, namespace, full name and aliases of a named schema."""

    def __init__(
        self,
        name: str,
        namespace: str = "",
        aliases: Optional[Iterable[str]] = None,
    ) -> None:
        namespace = namespace or ""
        if "." in name:
            namespace, _, name = name.rpartition(".")

        full = f"{namespace}.{name}" if namespace else name
        for part in full.split("."):
            try:
                validate_name(part)
            except AvroError as exc:
                raise AvroError(
                    f"avro: invalid name part {part!r} in name {full!r}: {exc}"
                ) from exc

        qualified = []
        for alias in aliases or ():
            if "." not in alias:
                try:
                    validate_name(alias)
                except AvroError as exc:
                    raise AvroError(f"avro: invalid name {alias!r}: {exc}") from exc
                qualified.append(f"{namespace}.{alias}" if namespace else alias)
                continue
            for part in alias.split("."):
                try:
                    validate_name(part)
                except AvroError as exc:
                    raise AvroError(
                        f"avro: invalid name part {part!r} in name {alias!r}: {exc}"
                    ) from exc
            qualified.append(alias)

        self.name = name
        self.namespace = namespace
        self.full_name = full
        self.aliases = qualified


class Fingerprinted:
    """Mixin computing cached fingerprints of an object's canonical string form."""

    def _fingerprint_cache(self) -> dict:
        cache = self.__dict__.get("_fingerprints")
        if cache is None:
            cache = {}
            self.__dict__["_fingerprints"] = cache
        return cache

    def fingerprint(self) -> bytes:
        """Return the SHA-256 fingerprint of the canonical form."""
        return self.fingerprint_using(FingerprintType.SHA256)

    def fingerprint_using(self, typ) -> bytes:
        """Return the fingerprint of the canonical form using the given algorithm."""
        try:
            algorithm = FingerprintType(typ)
        except ValueError:
            raise AvroError(f"avro: unknown fingerprint algorithm {typ}") from None

        cache = self._fingerprint_cache()
        if algorithm not in cache:
            cache[algorithm] = _HASHERS[algorithm](str(self).encode("utf-8"))
        return cache[algorithm]


@dataclass(frozen=True)
class PrimitiveLogicalSchema:
    """A logical type that carries no properties."""

    type: LogicalType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", LogicalType(self.type))

    def __str__(self) -> str:
        return f'"logicalType":"{self.type.value}"'


@dataclass(frozen=True)
class DecimalLogicalSchema:
    """The decimal logical type with its precision and scale."""

    precision: int
    scale: int = 0

    @property
    def type(self) -> LogicalType:
        return LogicalType.DECIMAL

    def __str__(self) -> str:
        scale = f',"scale":{self.scale}' if self.scale > 0 else ""
        return f'"logicalType":"decimal","precision":{self.precision}{scale}'
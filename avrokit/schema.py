"""Avro schema model: primitive, named and complex schemas with canonical forms."""

from __future__ import annotations

import json
import struct
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Union

from avrokit.types import (
    AvroError,
    DecimalLogicalSchema,
    Fingerprinted,
    LogicalType,
    Order,
    PrimitiveLogicalSchema,
    SchemaName,
    Type,
    validate_name,
)

LogicalSchema = Union[PrimitiveLogicalSchema, DecimalLogicalSchema]

SCHEMA_RESERVED = frozenset(
    {
        "doc",
        "fields",
        "items",
        "name",
        "namespace",
        "size",
        "symbols",
        "values",
        "type",
        "aliases",
        "logicalType",
        "precision",
        "scale",
    }
)
FIELD_RESERVED = frozenset({"default", "doc", "name", "order", "type", "aliases"})


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT = _NoDefault()
"""Marker passed as a field default when the field has no default."""


def _as_type(value: Any) -> Any:
    try:
        return Type(value)
    except ValueError:
        return value


def _filter_props(props: Optional[Mapping[str, Any]], reserved: frozenset) -> dict:
    return {k: v for k, v in (props or {}).items() if k not in reserved}


def _dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def _logical_obj(logical: Optional[LogicalSchema]) -> dict:
    if logical is None:
        return {}
    obj: dict = {"logicalType": str(logical.type)}
    if isinstance(logical, DecimalLogicalSchema):
        obj["precision"] = logical.precision
        if logical.scale > 0:
            obj["scale"] = logical.scale
    return obj


class Schema(Fingerprinted, ABC):
    """An Avro schema."""

    _props: dict = {}

    @property
    @abstractmethod
    def type(self) -> Type:
        """The schema type."""

    @abstractmethod
    def __str__(self) -> str:
        """Return the canonical form of the schema."""

    @abstractmethod
    def _to_obj(self) -> Any:
        """Return a JSON-serialisable form of the schema."""

    def prop(self, name: str) -> Any:
        """Return a custom property of the schema, or None."""
        return self._props.get(name)

    def to_json(self) -> str:
        """Return the full JSON form of the schema."""
        return _dumps(self._to_obj())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class _NamedSchema(Schema):
    def __init__(self, name: str, namespace: str, aliases: Optional[Iterable[str]]) -> None:
        self._name = SchemaName(name, namespace, aliases)

    @property
    def name(self) -> str:
        return self._name.name

    @property
    def namespace(self) -> str:
        return self._name.namespace

    @property
    def full_name(self) -> str:
        return self._name.full_name

    @property
    def aliases(self) -> list:
        return self._name.aliases


class Schemas(list):
    """A list of schemas that can be searched by type name."""

    def get(self, name: str) -> tuple[Optional[Schema], int]:
        """Return the schema with the given type or full name and its position."""
        for index, schema in enumerate(self):
            if schema_type_name(schema) == name:
                return schema, index
        return None, -1


class SchemaCache:
    """A cache of schemas by name."""

    def __init__(self) -> None:
        self._cache: dict[str, Schema] = {}

    def add(self, name: str, schema: Schema) -> None:
        """Store a schema under the given name."""
        self._cache[name] = schema

    def get(self, name: str) -> Optional[Schema]:
        """Return the schema stored under the name, or None."""
        return self._cache.get(name)


class PrimitiveSchema(Schema):
    """A primitive type schema, optionally with a logical type."""

    def __init__(self, type, logical: Optional[LogicalSchema] = None, *, props=None) -> None:
        self._type = _as_type(type)
        self.logical = logical
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self):
        return self._type

    def __str__(self) -> str:
        if self.logical is None:
            return f'"{self._type}"'
        return f'{{"type":"{self._type}",{self.logical}}}'

    def _to_obj(self) -> Any:
        if self.logical is None:
            return str(self._type)
        return {"type": str(self._type), **_logical_obj(self.logical)}


class _InvalidDefault(Exception):
    pass


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", float(value)))[0]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_default(schema: Schema, value: Any) -> Any:
    typ = schema.type
    if typ == Type.NULL:
        if value is None:
            return None
        raise _InvalidDefault
    if typ in (Type.STRING, Type.BYTES, Type.ENUM, Type.FIXED):
        if isinstance(value, str):
            return value
        raise _InvalidDefault
    if typ == Type.BOOLEAN:
        if isinstance(value, bool):
            return value
        raise _InvalidDefault
    if typ in (Type.INT, Type.LONG):
        if _is_number(value):
            return int(value)
        raise _InvalidDefault
    if typ == Type.FLOAT:
        if _is_number(value):
            return _to_float32(value)
        raise _InvalidDefault
    if typ == Type.DOUBLE:
        if _is_number(value):
            return float(value)
        raise _InvalidDefault
    if typ == Type.ARRAY:
        if not isinstance(value, list):
            raise _InvalidDefault
        return [_check_default(schema.items, item) for item in value]
    if typ == Type.MAP:
        if not isinstance(value, dict):
            raise _InvalidDefault
        return {k: _check_default(schema.values, v) for k, v in value.items()}
    if typ == Type.UNION:
        return _check_default(schema.types[0], value)
    if typ == Type.RECORD:
        if not isinstance(value, dict):
            raise _InvalidDefault
        result = dict(value)
        for field in schema.fields:
            field_default = result.get(field.name, field.default)
            result[field.name] = _check_default(field.type, field_default)
        return result
    raise _InvalidDefault


def _validate_default(name: str, schema: Schema, value: Any) -> Any:
    if value is None and schema.type != Type.NULL:
        if not (schema.type == Type.UNION and schema.nullable()):
            return None
    try:
        return _check_default(schema, value)
    except _InvalidDefault:
        raise AvroError(
            f"avro: invalid default for field {name}. {value!r} not a {schema.type}"
        ) from None


class Field:
    """A field of a record schema."""

    def __init__(
        self,
        name: str,
        type: Schema,
        *,
        aliases=None,
        doc: str = "",
        default: Any = NO_DEFAULT,
        order=None,
        props=None,
    ) -> None:
        validate_name(name)
        aliases = list(aliases or [])
        for alias in aliases:
            validate_name(alias)

        if order is None or order == "":
            resolved = Order.ASC
        else:
            try:
                resolved = Order(order)
            except ValueError:
                raise AvroError(f"avro: field {name!r} order {order!r} is invalid") from None

        self.name = name
        self.aliases = aliases
        self.doc = doc or ""
        self.type = type
        self.order = resolved
        self._props = _filter_props(props, FIELD_RESERVED)
        self.has_default = False
        self._default: Any = None
        if default is not NO_DEFAULT:
            self._default = _validate_default(name, type, default)
            self.has_default = True

    @property
    def default(self) -> Any:
        """The default value of the field, or None."""
        return self._default

    def prop(self, name: str) -> Any:
        """Return a custom property of the field, or None."""
        return self._props.get(name)

    def __str__(self) -> str:
        return f'{{"name":"{self.name}","type":{self.type}}}'

    def __repr__(self) -> str:
        return f"Field({self})"

    def _to_obj(self) -> dict:
        obj: dict = {"name": self.name}
        if self.aliases:
            obj["aliases"] = list(self.aliases)
        if self.doc:
            obj["doc"] = self.doc
        obj["type"] = self.type._to_obj()
        if self.order != Order.ASC:
            obj["order"] = str(self.order)
        if self.has_default:
            obj["default"] = self.default
        return obj

    def to_json(self) -> str:
        """Return the full JSON form of the field."""
        return _dumps(self._to_obj())


class RecordSchema(_NamedSchema):
    """A record (or error) schema."""

    def __init__(
        self,
        name: str,
        namespace: str,
        fields: Iterable[Field],
        *,
        aliases=None,
        doc: str = "",
        props=None,
        is_error: bool = False,
    ) -> None:
        super().__init__(name, namespace, aliases)
        self.fields = list(fields)
        self.doc = doc or ""
        self.is_error = is_error
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self) -> Type:
        return Type.RECORD

    def _kind(self) -> str:
        return "error" if self.is_error else "record"

    def __str__(self) -> str:
        fields = ",".join(str(f) for f in self.fields)
        return f'{{"name":"{self.full_name}","type":"{self._kind()}","fields":[{fields}]}}'

    def _to_obj(self) -> dict:
        obj: dict = {"name": self.full_name}
        if self.aliases:
            obj["aliases"] = list(self.aliases)
        if self.doc:
            obj["doc"] = self.doc
        obj["type"] = self._kind()
        obj["fields"] = [f._to_obj() for f in self.fields]
        return obj


class EnumSchema(_NamedSchema):
    """An enum schema."""

    def __init__(
        self,
        name: str,
        namespace: str,
        symbols: Iterable[str],
        *,
        aliases=None,
        doc: str = "",
        default: Any = None,
        props=None,
    ) -> None:
        super().__init__(name, namespace, aliases)
        symbols = list(symbols or [])
        if not symbols:
            raise AvroError("avro: enum must have a non-empty array of symbols")
        for sym in symbols:
            if not isinstance(sym, str):
                raise AvroError(f"avro: invalid symbol {sym!r}")
            try:
                validate_name(sym)
            except AvroError:
                raise AvroError(f"avro: invalid symbol {sym!r}") from None

        resolved = ""
        if isinstance(default, str) and default:
            if default not in symbols:
                raise AvroError(f"avro: symbol default {default!r} must be a symbol")
            resolved = default

        self.symbols = symbols
        self.default = resolved
        self.doc = doc or ""
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self) -> Type:
        return Type.ENUM

    def __str__(self) -> str:
        symbols = ",".join(f'"{s}"' for s in self.symbols)
        return f'{{"name":"{self.full_name}","type":"enum","symbols":[{symbols}]}}'

    def _to_obj(self) -> dict:
        obj: dict = {"name": self.full_name}
        if self.aliases:
            obj["aliases"] = list(self.aliases)
        if self.doc:
            obj["doc"] = self.doc
        obj["type"] = "enum"
        obj["symbols"] = list(self.symbols)
        if self.default:
            obj["default"] = self.default
        return obj


class ArraySchema(Schema):
    """An array schema."""

    def __init__(self, items: Schema, *, props=None) -> None:
        self.items = items
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self) -> Type:
        return Type.ARRAY

    def __str__(self) -> str:
        return f'{{"type":"array","items":{self.items}}}'

    def _to_obj(self) -> dict:
        return {"type": "array", "items": self.items._to_obj()}


class MapSchema(Schema):
    """A map schema."""

    def __init__(self, values: Schema, *, props=None) -> None:
        self.values = values
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self) -> Type:
        return Type.MAP

    def __str__(self) -> str:
        return f'{{"type":"map","values":{self.values}}}'

    def _to_obj(self) -> dict:
        return {"type": "map", "values": self.values._to_obj()}


class UnionSchema(Schema):
    """A union schema."""

    def __init__(self, types: Iterable[Schema]) -> None:
        types = Schemas(types)
        seen = set()
        for schema in types:
            if schema.type == Type.UNION:
                raise AvroError("avro: union type cannot be a union")
            key = schema_type_name(schema)
            if key in seen:
                raise AvroError("avro: union type must be unique")
            seen.add(key)
        self.types = types

    @property
    def type(self) -> Type:
        return Type.UNION

    def nullable(self) -> bool:
        """Whether this is a union of null and exactly one other type."""
        if len(self.types) != 2:
            return False
        return self.types[0].type == Type.NULL or self.types[1].type == Type.NULL

    def indices(self) -> tuple[int, int]:
        """Return the positions of the null and the other type; (0, 0) if not nullable."""
        if not self.nullable():
            return 0, 0
        if self.types[0].type == Type.NULL:
            return 0, 1
        return 1, 0

    def __str__(self) -> str:
        return "[" + ",".join(str(t) for t in self.types) + "]"

    def _to_obj(self) -> list:
        return [t._to_obj() for t in self.types]


class FixedSchema(_NamedSchema):
    """A fixed-size bytes schema, optionally with a logical type."""

    def __init__(
        self,
        name: str,
        namespace: str,
        size: int,
        logical: Optional[LogicalSchema] = None,
        *,
        aliases=None,
        props=None,
    ) -> None:
        super().__init__(name, namespace, aliases)
        if not isinstance(size, int) or isinstance(size, bool):
            raise AvroError(f"avro: fixed size {size!r} must be an integer")
        self.size = size
        self.logical = logical
        self._props = _filter_props(props, SCHEMA_RESERVED)

    @property
    def type(self) -> Type:
        return Type.FIXED

    def __str__(self) -> str:
        logical = f",{self.logical}" if self.logical is not None else ""
        return f'{{"name":"{self.full_name}","type":"fixed","size":{self.size}{logical}}}'

    def _to_obj(self) -> dict:
        obj: dict = {"name": self.full_name}
        if self.aliases:
            obj["aliases"] = list(self.aliases)
        obj["type"] = "fixed"
        obj["size"] = self.size
        obj.update(_logical_obj(self.logical))
        return obj


class NullSchema(Schema):
    """The null schema."""

    @property
    def type(self) -> Type:
        return Type.NULL

    def __str__(self) -> str:
        return '"null"'

    def _to_obj(self) -> str:
        return "null"


class RefSchema(Schema):
    """A reference to a named schema defined elsewhere."""

    def __init__(self, schema: _NamedSchema) -> None:
        self.schema = schema

    @property
    def type(self) -> Type:
        return Type.REF

    def __str__(self) -> str:
        return f'"{self.schema.full_name}"'

    def _to_obj(self) -> str:
        return self.schema.full_name

    def fingerprint_using(self, typ) -> bytes:
        return self.schema.fingerprint_using(typ)


def schema_type_name(schema: Schema) -> str:
    """Return the full name of a named schema, or its type with any logical type."""
    if schema.type == Type.REF:
        schema = schema.schema
    if isinstance(schema, _NamedSchema):
        return schema.full_name
    name = str(schema.type)
    logical = getattr(schema, "logical", None)
    if logical is not None:
        name += "." + str(LogicalType(logical.type))
    return name
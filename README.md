# avrokit

A small library with no dependencies for working with Apache Avro schemas
and with data in the Avro binary encoding.

## What it provides

- `avrokit.types`: the vocabulary shared by the rest of the package.
  `Type`, `Order`, `LogicalType` and `FingerprintType` are string enums.
  `validate_name` checks an Avro name part. `SchemaName` splits and
  qualifies a name, its namespace and its aliases. `PrimitiveLogicalSchema`
  and `DecimalLogicalSchema` describe logical types. `crc64_avro` computes
  the Avro CRC-64 fingerprint of raw bytes. Every error in the package is
  an `AvroError`.
- `avrokit.schema`: the schema object model. It has `PrimitiveSchema`,
  `RecordSchema` (with `Field`), `EnumSchema`, `ArraySchema`, `MapSchema`,
  `UnionSchema`, `FixedSchema`, `NullSchema` and `RefSchema`. It also has
  the helpers `Schemas`, a list you can search by type name with `get`,
  `SchemaCache`, and `schema_type_name`.
- `avrokit.compatibility`: `SchemaCompatibility` checks whether a reader
  schema can read data written with a writer schema.
- `avrokit.reader`: `Reader`, a buffered binary decoder.
- `avrokit.resolver`: `TypeResolver`, which maps Avro type names to Python
  types and back.

## Building schemas

```python
from avrokit.schema import Field, PrimitiveSchema, RecordSchema
from avrokit.types import Type

record = RecordSchema(
    "User",
    "org.example",
    [
        Field("id", PrimitiveSchema(Type.LONG, None)),
        Field("name", PrimitiveSchema(Type.STRING, None), default="anonymous"),
    ],
    doc="A user",
    props={"owner": "team"},
)

print(record)                 # Parsing Canonical Form
print(record.to_json())       # full JSON form, including doc and defaults
print(record.prop("owner"))   # "team"
print(record.fingerprint().hex())
```

`str(schema)` returns the Parsing Canonical Form. `schema.to_json()`
returns the fuller JSON form, which includes aliases, docs, defaults and
non-ascending field orders. `schema.prop(name)` returns a custom property.
Properties with reserved names are dropped.

The following raise `AvroError`:

- invalid names, aliases or enum symbols
- an empty symbol list
- an enum default that is not one of its symbols
- nested or duplicate union members
- an unknown field order
- a field default that does not fit the field's type

`UnionSchema.nullable()` tells whether a union is null plus exactly one
other type. `UnionSchema.indices()` gives the positions of the null and of
the other type.

## Fingerprints

`schema.fingerprint()` returns the SHA-256 digest of the canonical form as
`bytes`. `schema.fingerprint_using(...)` lets you choose the algorithm:
`FingerprintType.CRC64_AVRO`, `FingerprintType.MD5` or
`FingerprintType.SHA256`. Results are cached on the schema. An unknown
algorithm raises `AvroError`. A `RefSchema` returns the fingerprint of the
schema it refers to.

## Checking compatibility

```python
from avrokit.compatibility import IncompatibleSchemaError, SchemaCompatibility
from avrokit.schema import PrimitiveSchema
from avrokit.types import Type

checker = SchemaCompatibility()
checker.compatible(PrimitiveSchema(Type.LONG, None), PrimitiveSchema(Type.INT, None))

try:
    checker.compatible(PrimitiveSchema(Type.INT, None), PrimitiveSchema(Type.STRING, None))
except IncompatibleSchemaError as err:
    print(err)
```

`compatible(reader, writer)` returns `None` when the schemas are
compatible and raises `IncompatibleSchemaError` when they are not.

- Numeric promotions are accepted: int to long, float or double; long to
  float or double; float to double.
- string and bytes are accepted in both directions.
- For named types, names must match.
- Fixed sizes must match.
- The reader's enum must hold every symbol the writer's enum has.
- Every reader field must exist in the writer or have a default.

Results are cached per pair of fingerprints, and recursive schemas are
handled.

## Reading binary data

```python
import io

from avrokit.reader import Reader
from avrokit.schema import ArraySchema, PrimitiveSchema
from avrokit.types import Type

reader = Reader(io.BytesIO(bytes([0x04, 0x36, 0x38, 0x00])), 10)
print(reader.read_next(ArraySchema(PrimitiveSchema(Type.INT, None))))  # [27, 28]

reader = Reader().reset(bytes([0x01]))
print(reader.read_bool())  # True
```

`Reader` reads from a binary stream in chunks of `buf_size` bytes.
`reset(data)` switches it to an in-memory buffer.

Primitive reads:

- `read`
- `read_bool`
- `read_int`
- `read_long`
- `read_float`
- `read_double`
- `read_bytes`
- `read_string`
- `read_block_header`

Skips:

- `skip_n_bytes`
- `skip_bool`
- `skip_int`
- `skip_long`
- `skip_float`
- `skip_double`
- `skip_string`
- `skip_bytes`

`iter_array` and `iter_map` walk the blocks of an array or map. The caller
reads each item.

`read_next(schema)` decodes a whole value into plain Python data:

| Schema | Returned value |
| --- | --- |
| record, map | `dict` |
| array | `list` |
| enum | symbol string |
| union | `None` for the null branch; otherwise `{type_name: value}` |
| int with `date` | `datetime.date` |
| int with `time-millis`, long with `time-micros` | `datetime.timedelta` |
| long with a timestamp logical type | UTC `datetime.datetime` |
| bytes or fixed with `decimal` | `fractions.Fraction` |

The following raise `ReadError`:

- a truncated stream
- a varint that overflows
- an invalid bool byte
- a negative length
- invalid UTF-8
- an out-of-range enum or union index
- an unknown schema type

## Type resolution

```python
import datetime

from avrokit.resolver import TypeResolver

resolver = TypeResolver()
print(resolver.type("long"))               # <class 'int'>
print(resolver.name(datetime.timedelta))   # ['int.time-millis', 'long.time-micros']
```

Unknown names or types raise `AvroError`.

## What it does not do

The package has none of the following:

- a parser that turns JSON schema text into schema objects; schemas are
  built from the classes in `avrokit.schema`
- an encoder or writer
- support for object container files
- a schema registry client
- a command-line tool

## Running the tests

```
pip install -e ".[test]"
pytest
```
import pytest

from avrokit.compatibility import IncompatibleSchemaError, SchemaCompatibility
from avrokit.schema import (
    ArraySchema,
    EnumSchema,
    Field,
    FixedSchema,
    MapSchema,
    NullSchema,
    PrimitiveSchema,
    RecordSchema,
    RefSchema,
    UnionSchema,
)
from avrokit.types import AvroError, Type

NS = "org.hamba.avro"


def prim(name):
    return PrimitiveSchema(Type(name))


def union(*names):
    return UnionSchema([prim(n) for n in names])


def fixed(name, size):
    return FixedSchema(name, NS, size)


def enum(name, symbols):
    return EnumSchema(name, NS, symbols)


def record(name, fields):
    return RecordSchema(name, NS, fields)


def ref_dereference():
    reader_inner = record("test1", [Field("b", prim("int"))])
    reader = record(
        "test", [Field("a", reader_inner), Field("b", RefSchema(reader_inner))]
    )
    writer_inner = record("test1", [Field("b", prim("int"))])
    writer = record("test", [Field("a", writer_inner)])
    writer.fields.append(Field("b", RefSchema(writer)))
    return reader, writer


def self_recursive():
    rec = record("test", [])
    rec.fields.append(Field("a", RefSchema(rec)))
    return rec


CASES = [
    ("Primitive Matching", lambda: (prim("int"), prim("int")), True),
    ("Int Promote Long", lambda: (prim("long"), prim("int")), True),
    ("Int Promote Float", lambda: (prim("float"), prim("int")), True),
    ("Int Promote Double", lambda: (prim("double"), prim("int")), True),
    ("Long Promote Float", lambda: (prim("float"), prim("long")), True),
    ("Long Promote Double", lambda: (prim("double"), prim("long")), True),
    ("Float Promote Double", lambda: (prim("double"), prim("float")), True),
    ("String Promote Bytes", lambda: (prim("bytes"), prim("string")), True),
    ("Bytes Promote String", lambda: (prim("string"), prim("bytes")), True),
    (
        "Union Match",
        lambda: (union("int", "long", "string"), union("string", "int", "long")),
        True,
    ),
    (
        "Union Reader Missing Schema",
        lambda: (union("int", "string"), union("string", "int", "long")),
        False,
    ),
    (
        "Union Writer Missing Schema",
        lambda: (union("int", "long", "string"), union("string", "int")),
        True,
    ),
    (
        "Union Writer Not Union",
        lambda: (union("int", "long", "string"), prim("int")),
        True,
    ),
    ("Union Writer Not Union With Error", lambda: (union("string"), prim("int")), False),
    ("Union Reader Not Union", lambda: (prim("int"), union("int")), True),
    (
        "Union Reader Not Union With Error",
        lambda: (prim("int"), union("string", "int", "long")),
        False,
    ),
    (
        "Array Match",
        lambda: (ArraySchema(prim("int")), ArraySchema(prim("int"))),
        True,
    ),
    (
        "Array Items Mismatch",
        lambda: (ArraySchema(prim("int")), ArraySchema(prim("string"))),
        False,
    ),
    ("Map Match", lambda: (MapSchema(prim("int")), MapSchema(prim("int"))), True),
    (
        "Map Items Mismatch",
        lambda: (MapSchema(prim("int")), MapSchema(prim("string"))),
        False,
    ),
    ("Fixed Match", lambda: (fixed("test", 12), fixed("test", 12)), True),
    ("Fixed Name Mismatch", lambda: (fixed("test1", 12), fixed("test", 12)), False),
    ("Fixed Size Mismatch", lambda: (fixed("test", 13), fixed("test", 12)), False),
    (
        "Enum Match",
        lambda: (enum("test", ["TEST1", "TEST2"]), enum("test", ["TEST1", "TEST2"])),
        True,
    ),
    (
        "Enum Name Mismatch",
        lambda: (enum("test1", ["TEST1", "TEST2"]), enum("test", ["TEST1", "TEST2"])),
        False,
    ),
    (
        "Enum Reader Missing Symbol",
        lambda: (enum("test", ["TEST1"]), enum("test", ["TEST1", "TEST2"])),
        False,
    ),
    (
        "Enum Writer Missing Symbol",
        lambda: (enum("test", ["TEST1", "TEST2"]), enum("test", ["TEST1"])),
        True,
    ),
    (
        "Record Match",
        lambda: (
            record("test", [Field("a", prim("int")), Field("b", prim("string"))]),
            record("test", [Field("b", prim("string")), Field("a", prim("int"))]),
        ),
        True,
    ),
    (
        "Record Name Mismatch",
        lambda: (
            record(
                "test1",
                [Field("a", prim("int"), default=1), Field("b", prim("string"))],
            ),
            record(
                "test",
                [Field("b", prim("string"), default="b"), Field("a", prim("int"))],
            ),
        ),
        False,
    ),
    (
        "Record Schema Mismatch",
        lambda: (
            record("test", [Field("a", prim("string")), Field("b", prim("string"))]),
            record("test", [Field("b", prim("string")), Field("a", prim("int"))]),
        ),
        False,
    ),
    (
        "Record Reader Field Missing",
        lambda: (
            record("test", [Field("a", prim("int"))]),
            record("test", [Field("b", prim("string")), Field("a", prim("int"))]),
        ),
        True,
    ),
    (
        "Record Writer Field Missing With Default",
        lambda: (
            record(
                "test",
                [Field("a", prim("int")), Field("b", prim("string"), default="test")],
            ),
            record("test", [Field("a", prim("int"))]),
        ),
        True,
    ),
    (
        "Record Writer Field Missing Without Default",
        lambda: (
            record("test", [Field("a", prim("int")), Field("b", prim("string"))]),
            record("test", [Field("a", prim("int"))]),
        ),
        False,
    ),
    ("Ref Dereference", ref_dereference, False),
    ("Breaks Recursion", lambda: (self_recursive(), self_recursive()), True),
]


@pytest.mark.parametrize(
    "build, ok", [(c[1], c[2]) for c in CASES], ids=[c[0] for c in CASES]
)
def test_compatible(build, ok):
    reader, writer = build()
    sc = SchemaCompatibility()

    if ok:
        assert sc.compatible(reader, writer) is None
    else:
        with pytest.raises(IncompatibleSchemaError):
            sc.compatible(reader, writer)


def test_compatible_uses_cache_with_no_error():
    reader, writer = prim("int"), prim("int")
    sc = SchemaCompatibility()

    sc.compatible(reader, writer)

    assert sc.compatible(reader, writer) is None


def test_compatible_uses_cache_with_error():
    reader, writer = prim("int"), prim("string")
    sc = SchemaCompatibility()

    with pytest.raises(IncompatibleSchemaError):
        sc.compatible(reader, writer)
    with pytest.raises(IncompatibleSchemaError) as info:
        sc.compatible(reader, writer)

    assert str(info.value) == "reader schema int not compatible with writer schema string"


def test_error_is_avro_error():
    with pytest.raises(AvroError):
        SchemaCompatibility().compatible(prim("boolean"), prim("int"))


def test_missing_enum_symbol_message():
    with pytest.raises(IncompatibleSchemaError) as info:
        SchemaCompatibility().compatible(
            enum("test", ["TEST1"]), enum("test", ["TEST1", "TEST2"])
        )
    assert str(info.value) == "reader org.hamba.avro.test is missing symbol TEST2"


def test_null_union_accepts_null_writer():
    reader = UnionSchema([NullSchema(), prim("string")])
    assert SchemaCompatibility().compatible(reader, NullSchema()) is None
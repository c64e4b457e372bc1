import pytest

from avrokit.types import (
    AvroError,
    DecimalLogicalSchema,
    FingerprintType,
    Fingerprinted,
    LogicalType,
    Order,
    PrimitiveLogicalSchema,
    SchemaName,
    Type,
    crc64_avro,
    validate_name,
)


class _Canonical(Fingerprinted):
    def __init__(self, text):
        self.text = text
        self.renders = 0

    def __str__(self):
        self.renders += 1
        return self.text


NULL = '"null"'
RECORD = '{"name":"org.hamba.avro.test","type":"record","fields":[{"name":"field","type":"int"}]}'
ENUM = '{"name":"org.hamba.avro.test","type":"enum","symbols":["TEST"]}'
ARRAY = '{"type":"array","items":"int"}'
MAP = '{"type":"map","values":"int"}'
UNION = '["null","int"]'
FIXED = '{"name":"org.hamba.avro.test","type":"fixed","size":12}'
REF_RECORD = (
    '{"name":"org.hamba.avro.valid_name","type":"record","fields":'
    '[{"name":"intField","type":"int"},{"name":"Ref","type":"org.hamba.avro.valid_name"}]}'
)


@pytest.mark.parametrize("name", ["test", "_x", "Abc_12", "a"])
def test_validate_name_accepts(name):
    assert validate_name(name) is None


@pytest.mark.parametrize("name", ["", "0test", "test+", "a.b", "é"])
def test_validate_name_rejects(name):
    with pytest.raises(AvroError):
        validate_name(name)


def test_schema_name_with_namespace():
    n = SchemaName("test", "org.hamba.avro", [])
    assert n.name == "test"
    assert n.namespace == "org.hamba.avro"
    assert n.full_name == "org.hamba.avro.test"


def test_schema_name_without_namespace():
    n = SchemaName("test", "", None)
    assert n.full_name == "test"
    assert n.namespace == ""


def test_schema_name_dotted_name_overrides_namespace():
    n = SchemaName("a.b.c", "other", [])
    assert n.name == "c"
    assert n.namespace == "a.b"
    assert n.full_name == "a.b.c"


def test_schema_name_aliases_are_qualified():
    n = SchemaName("test", "org.hamba.avro", ["valid_alias", "x.y"])
    assert n.aliases == ["org.hamba.avro.valid_alias", "x.y"]


def test_schema_name_alias_without_namespace():
    assert SchemaName("test", "", ["alias"]).aliases == ["alias"]


@pytest.mark.parametrize(
    "name,namespace,aliases",
    [
        ("0test", "org.hamba.avro", []),
        ("test+", "org.hamba.avro", []),
        ("", "org.hamba.avro", []),
        ("test", "org.hamba.avro+", []),
        ("test", "org", ["test+"]),
        ("test", "org", ["a.b+"]),
    ],
)
def test_schema_name_invalid(name, namespace, aliases):
    with pytest.raises(AvroError):
        SchemaName(name, namespace, aliases)


def test_null_sha256_fingerprint():
    want = bytes.fromhex("f072cbec3bf8841871d4284230c5e983dc211a56837aed862487148f947d1a1f")
    assert Fingerprinted.fingerprint(_Canonical(NULL)) == want


@pytest.mark.parametrize(
    "canonical,typ,want",
    [
        (NULL, FingerprintType.CRC64_AVRO, "63dd24e7cc258f8a"),
        (NULL, FingerprintType.MD5, "9b41ef67651c18488a8b08bb67c75699"),
        (
            NULL,
            FingerprintType.SHA256,
            "f072cbec3bf8841871d4284230c5e983dc211a56837aed862487148f947d1a1f",
        ),
        ('"string"', FingerprintType.CRC64_AVRO, "8f014872634503c7"),
        (RECORD, FingerprintType.CRC64_AVRO, "af3030f01c9976da"),
        (ENUM, FingerprintType.CRC64_AVRO, "0cb0a2a65f9608d1"),
        (ARRAY, FingerprintType.CRC64_AVRO, "522b814fc963b4be"),
        (MAP, FingerprintType.CRC64_AVRO, "db39e2c2534c8973"),
        (UNION, FingerprintType.CRC64_AVRO, "d51cc0922b46b1d7"),
        (FIXED, FingerprintType.CRC64_AVRO, "017c1f7fa76da0a1"),
        (REF_RECORD, FingerprintType.CRC64_AVRO, "e1d61e7c2fe33c2b"),
    ],
)
def test_fingerprint_using(canonical, typ, want):
    assert Fingerprinted.fingerprint_using(_Canonical(canonical), typ) == bytes.fromhex(want)


def test_fingerprint_using_accepts_string_name():
    got = Fingerprinted.fingerprint_using(_Canonical(NULL), "CRC64-AVRO")
    assert got == bytes.fromhex("63dd24e7cc258f8a")
    assert got == crc64_avro(NULL.encode())


def test_fingerprint_using_unknown_type():
    with pytest.raises(AvroError):
        Fingerprinted.fingerprint_using(_Canonical('"string"'), "test")


def test_fingerprint_is_cached():
    c = _Canonical(NULL)
    first = Fingerprinted.fingerprint_using(c, FingerprintType.MD5)
    second = Fingerprinted.fingerprint_using(c, FingerprintType.MD5)
    assert first == second == bytes.fromhex("9b41ef67651c18488a8b08bb67c75699")
    assert c.renders == 1


def test_crc64_avro_direct():
    assert crc64_avro(b'"null"') == bytes.fromhex("63dd24e7cc258f8a")
    assert len(crc64_avro(b"anything")) == 8


def test_primitive_logical_schema():
    ls = PrimitiveLogicalSchema(LogicalType.DATE)
    assert ls.type is LogicalType.DATE
    assert str(ls) == '"logicalType":"date"'


def test_primitive_logical_schema_coerces_string():
    assert PrimitiveLogicalSchema("uuid").type is LogicalType.UUID


def test_primitive_logical_schema_rejects_unknown():
    with pytest.raises(ValueError):
        PrimitiveLogicalSchema("test")


def test_decimal_logical_schema_with_scale():
    dec = DecimalLogicalSchema(4, 2)
    assert dec.type is LogicalType.DECIMAL
    assert dec.precision == 4
    assert dec.scale == 2
    assert str(dec) == '"logicalType":"decimal","precision":4,"scale":2'


def test_decimal_logical_schema_without_scale():
    dec = DecimalLogicalSchema(4, 0)
    assert dec.scale == 0
    assert str(dec) == '"logicalType":"decimal","precision":4'


def test_enums_render_values():
    assert str(Type.RECORD) == "record"
    assert Type("null") is Type.NULL
    assert Order("descending") is Order.DESC
    assert str(LogicalType.TIMESTAMP_MICROS) == "timestamp-micros"
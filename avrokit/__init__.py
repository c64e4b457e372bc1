"""Avro schema model, fingerprints, compatibility checks, type resolution and binary decoding."""

__version__ = "0.1.0"

__all__ = ["types", "schema", "compatibility", "resolver", "reader"]
"""
tests/test_type_mapper.py
Per-engine primitive mapping and the opening Zod expression of a field chain.
"""

from __future__ import annotations

import pytest

from zodgen.models import DatabaseProvider
from zodgen.type_mapper import zod_base_expression, zod_primitive


class TestZodPrimitive:
    @pytest.mark.parametrize(
        "provider, declared, expected",
        [
            ("postgresql", "BigInt", "string"),
            ("cockroachdb", "BigInt", "string"),
            ("mysql", "BigInt", "number"),
            ("sqlite", "DateTime", "string"),
            ("mysql", "Decimal", "string"),
            ("sqlite", "Decimal", "number"),
            ("sqlserver", "Int", "number"),
            ("postgresql", "Bytes", "buffer"),
        ],
    )
    def test_engine_tables(self, provider: str, declared: str, expected: str) -> None:
        assert zod_primitive(provider, declared) == expected

    def test_enum_provider_accepted(self) -> None:
        assert zod_primitive(DatabaseProvider.SQLITE, "DateTime") == "string"

    def test_unknown_engine_falls_back_to_postgres(self) -> None:
        assert zod_primitive("oracle", "BigInt") == "string"

    def test_unknown_type_is_unknown(self) -> None:
        assert zod_primitive("postgresql", "Geometry") == "unknown"


class TestZodBaseExpression:
    def test_datetime_coerces_except_on_sqlite(self) -> None:
        assert zod_base_expression("postgresql", "DateTime") == "z.coerce.date()"
        assert zod_base_expression("sqlite", "DateTime") == "z.string()"

    def test_special_cases(self) -> None:
        assert zod_base_expression("postgresql", "Json") == "z.unknown()"
        assert zod_base_expression("postgresql", "Bytes") == "z.instanceof(Buffer)"
        assert zod_base_expression("sqlite", "Decimal") == "z.string()"

    def test_direct_primitives(self) -> None:
        assert zod_base_expression("postgresql", "String") == "z.string()"
        assert zod_base_expression("postgresql", "Boolean") == "z.boolean()"
        assert zod_base_expression("postgresql", "Int") == "z.number()"
        assert zod_base_expression("postgresql", "BigInt") == "z.string()"
        assert zod_base_expression("mysql", "BigInt") == "z.number()"

    def test_unknown_type(self) -> None:
        assert zod_base_expression("mysql", "Geometry") == "z.unknown()"

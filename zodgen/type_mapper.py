# File: zodgen/type_mapper.py
"""
zodgen - Database Type Mapper
==============================
The one place where engine-specific type policy lives.

``zod_primitive`` answers "what does this declared scalar look like when
it comes out of this engine", and ``zod_base_expression`` turns that into
the Zod expression that starts a field chain.  Both are total: unknown
engines fall back to the PostgreSQL table and unknown types map to
``unknown``.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List

from zodgen.models import DatabaseProvider

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.type_mapper")

# ---------------------------------------------------------------------------
# Per-engine primitive tables
# ---------------------------------------------------------------------------

_SQLITE_TYPES: Dict[str, str] = {
    "String": "string",
    "Boolean": "boolean",
    "Int": "number",
    "BigInt": "number",
    "Float": "number",
    "Decimal": "number",
    "DateTime": "string",
    "Json": "unknown",
    "Bytes": "buffer",
}

_MYSQL_TYPES: Dict[str, str] = {
    "String": "string",
    "Boolean": "boolean",
    "Int": "number",
    "BigInt": "number",
    "Float": "number",
    "Decimal": "string",
    "DateTime": "date",
    "Json": "unknown",
    "Bytes": "buffer",
}

# Shared by postgresql and cockroachdb
_POSTGRES_TYPES: Dict[str, str] = {
    "String": "string",
    "Boolean": "boolean",
    "Int": "number",
    "BigInt": "string",
    "Float": "number",
    "Decimal": "string",
    "DateTime": "date",
    "Json": "unknown",
    "Bytes": "buffer",
}

_SQLSERVER_TYPES: Dict[str, str] = {
    "String": "string",
    "Boolean": "boolean",
    "Int": "number",
    "BigInt": "number",
    "Float": "number",
    "Decimal": "string",
    "DateTime": "date",
    "Json": "unknown",
    "Bytes": "buffer",
}

_ENGINE_TABLES: Dict[str, Dict[str, str]] = {
    DatabaseProvider.SQLITE.value: _SQLITE_TYPES,
    DatabaseProvider.MYSQL.value: _MYSQL_TYPES,
    DatabaseProvider.POSTGRESQL.value: _POSTGRES_TYPES,
    DatabaseProvider.COCKROACHDB.value: _POSTGRES_TYPES,
    DatabaseProvider.SQLSERVER.value: _SQLSERVER_TYPES,
}

# Primitives that ``z.<name>()`` can construct directly
_DIRECT_PRIMITIVES: FrozenSet[str] = frozenset(
    {"string", "number", "boolean", "bigint", "date", "unknown"}
)


def _engine_key(provider: object) -> str:
    return provider.value if isinstance(provider, DatabaseProvider) else str(provider)


def zod_primitive(provider: object, declared_type: str) -> str:
    """
    Primitive kind for *declared_type* on *provider*.

    >>> zod_primitive("postgresql", "BigInt")
    'string'
    >>> zod_primitive("sqlite", "DateTime")
    'string'
    """
    table: Dict[str, str] = _ENGINE_TABLES.get(_engine_key(provider), _POSTGRES_TYPES)
    return table.get(declared_type, "unknown")


def zod_base_expression(provider: object, declared_type: str) -> str:
    """
    Zod expression that opens a field chain for *declared_type*.

    Special cases bypass the primitive table:
        DateTime → ``z.string()`` on SQLite, ``z.coerce.date()`` elsewhere
        Json     → ``z.unknown()``
        Bytes    → ``z.instanceof(Buffer)``
        Decimal  → ``z.string()`` (arbitrary precision survives as text)
    """
    engine: str = _engine_key(provider)

    if declared_type == "DateTime":
        if engine == DatabaseProvider.SQLITE.value:
            return "z.string()"
        return "z.coerce.date()"
    if declared_type == "Json":
        return "z.unknown()"
    if declared_type == "Bytes":
        return "z.instanceof(Buffer)"
    if declared_type == "Decimal":
        return "z.string()"

    primitive: str = zod_primitive(engine, declared_type)
    if primitive not in _DIRECT_PRIMITIVES:
        logger.debug(
            "No direct Zod constructor for %s on %s; using z.unknown().",
            declared_type,
            engine,
        )
        return "z.unknown()"
    return f"z.{primitive}()"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "zod_base_expression",
    "zod_primitive",
]

logger.debug("zodgen.type_mapper loaded — %d public symbols.", len(__all__))

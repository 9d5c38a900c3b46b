"""Type mapping from declared ORM field types to canonical column categories.

Pure lookup functions, no state.  Canonical categories are deliberately
coarse (a family, not a precise type): ``DecimalField(max_digits=10)`` and a
live ``numeric(12, 4)`` column are both ``numeric``.  Anything not recognised
maps to ``CanonicalType.UNKNOWN`` rather than raising.
"""

from collections.abc import Iterable
from enum import Enum


class CanonicalType(str, Enum):
    """Column type families used for declared-vs-live comparison."""

    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    NUMERIC = "numeric"
    UUID = "uuid"
    JSON = "json"
    BINARY = "binary"
    ENUM = "enum"
    ARRAY = "array"
    UNKNOWN = "unknown"


_DJANGO_TYPES: dict[str, CanonicalType] = {
    # integer family (auto fields and relations default to integer keys)
    "AutoField": CanonicalType.INTEGER,
    "BigAutoField": CanonicalType.INTEGER,
    "SmallAutoField": CanonicalType.INTEGER,
    "IntegerField": CanonicalType.INTEGER,
    "BigIntegerField": CanonicalType.INTEGER,
    "SmallIntegerField": CanonicalType.INTEGER,
    "PositiveIntegerField": CanonicalType.INTEGER,
    "PositiveSmallIntegerField": CanonicalType.INTEGER,
    "PositiveBigIntegerField": CanonicalType.INTEGER,
    "ForeignKey": CanonicalType.INTEGER,
    "OneToOneField": CanonicalType.INTEGER,
    # text family
    "CharField": CanonicalType.TEXT,
    "TextField": CanonicalType.TEXT,
    "EmailField": CanonicalType.TEXT,
    "SlugField": CanonicalType.TEXT,
    "URLField": CanonicalType.TEXT,
    "FilePathField": CanonicalType.TEXT,
    "FileField": CanonicalType.TEXT,
    "ImageField": CanonicalType.TEXT,
    "GenericIPAddressField": CanonicalType.TEXT,
    "IPAddressField": CanonicalType.TEXT,
    "CICharField": CanonicalType.TEXT,
    "CIEmailField": CanonicalType.TEXT,
    "CITextField": CanonicalType.TEXT,
    # boolean
    "BooleanField": CanonicalType.BOOLEAN,
    "NullBooleanField": CanonicalType.BOOLEAN,
    # temporal family
    "DateTimeField": CanonicalType.TIMESTAMP,
    "DateField": CanonicalType.TIMESTAMP,
    "TimeField": CanonicalType.TIMESTAMP,
    "DurationField": CanonicalType.TIMESTAMP,
    # numeric family
    "DecimalField": CanonicalType.NUMERIC,
    "FloatField": CanonicalType.NUMERIC,
    # others
    "UUIDField": CanonicalType.UUID,
    "JSONField": CanonicalType.JSON,
    "HStoreField": CanonicalType.JSON,
    "BinaryField": CanonicalType.BINARY,
    "ArrayField": CanonicalType.ARRAY,
}

_PRISMA_SCALARS: dict[str, CanonicalType] = {
    "String": CanonicalType.TEXT,
    "Int": CanonicalType.INTEGER,
    "BigInt": CanonicalType.INTEGER,
    "Float": CanonicalType.NUMERIC,
    "Decimal": CanonicalType.NUMERIC,
    "Boolean": CanonicalType.BOOLEAN,
    "DateTime": CanonicalType.TIMESTAMP,
    "Json": CanonicalType.JSON,
    "Bytes": CanonicalType.BINARY,
}

# @db.* native type attributes (PostgreSQL connector)
_PRISMA_NATIVE_TYPES: dict[str, CanonicalType] = {
    "Uuid": CanonicalType.UUID,
    "Text": CanonicalType.TEXT,
    "VarChar": CanonicalType.TEXT,
    "Char": CanonicalType.TEXT,
    "Citext": CanonicalType.TEXT,
    "Inet": CanonicalType.TEXT,
    "Xml": CanonicalType.TEXT,
    "Bit": CanonicalType.TEXT,
    "VarBit": CanonicalType.TEXT,
    "Integer": CanonicalType.INTEGER,
    "SmallInt": CanonicalType.INTEGER,
    "BigInt": CanonicalType.INTEGER,
    "Oid": CanonicalType.INTEGER,
    "Boolean": CanonicalType.BOOLEAN,
    "Timestamp": CanonicalType.TIMESTAMP,
    "Timestamptz": CanonicalType.TIMESTAMP,
    "Date": CanonicalType.TIMESTAMP,
    "Time": CanonicalType.TIMESTAMP,
    "Timetz": CanonicalType.TIMESTAMP,
    "Decimal": CanonicalType.NUMERIC,
    "Money": CanonicalType.NUMERIC,
    "Real": CanonicalType.NUMERIC,
    "DoublePrecision": CanonicalType.NUMERIC,
    "Json": CanonicalType.JSON,
    "JsonB": CanonicalType.JSON,
    "ByteA": CanonicalType.BINARY,
}

_POSTGRES_TYPES: dict[str, CanonicalType] = {
    "smallint": CanonicalType.INTEGER,
    "integer": CanonicalType.INTEGER,
    "int": CanonicalType.INTEGER,
    "int2": CanonicalType.INTEGER,
    "int4": CanonicalType.INTEGER,
    "int8": CanonicalType.INTEGER,
    "bigint": CanonicalType.INTEGER,
    "serial": CanonicalType.INTEGER,
    "bigserial": CanonicalType.INTEGER,
    "smallserial": CanonicalType.INTEGER,
    "oid": CanonicalType.INTEGER,
    "character varying": CanonicalType.TEXT,
    "varchar": CanonicalType.TEXT,
    "character": CanonicalType.TEXT,
    "char": CanonicalType.TEXT,
    "bpchar": CanonicalType.TEXT,
    "text": CanonicalType.TEXT,
    "citext": CanonicalType.TEXT,
    "name": CanonicalType.TEXT,
    "inet": CanonicalType.TEXT,
    "cidr": CanonicalType.TEXT,
    "macaddr": CanonicalType.TEXT,
    "xml": CanonicalType.TEXT,
    "bit": CanonicalType.TEXT,
    "bit varying": CanonicalType.TEXT,
    "boolean": CanonicalType.BOOLEAN,
    "bool": CanonicalType.BOOLEAN,
    "timestamp": CanonicalType.TIMESTAMP,
    "timestamptz": CanonicalType.TIMESTAMP,
    "timestamp with time zone": CanonicalType.TIMESTAMP,
    "timestamp without time zone": CanonicalType.TIMESTAMP,
    "date": CanonicalType.TIMESTAMP,
    "time": CanonicalType.TIMESTAMP,
    "timetz": CanonicalType.TIMESTAMP,
    "time with time zone": CanonicalType.TIMESTAMP,
    "time without time zone": CanonicalType.TIMESTAMP,
    "interval": CanonicalType.TIMESTAMP,
    "numeric": CanonicalType.NUMERIC,
    "decimal": CanonicalType.NUMERIC,
    "real": CanonicalType.NUMERIC,
    "double precision": CanonicalType.NUMERIC,
    "float4": CanonicalType.NUMERIC,
    "float8": CanonicalType.NUMERIC,
    "money": CanonicalType.NUMERIC,
    "uuid": CanonicalType.UUID,
    "json": CanonicalType.JSON,
    "jsonb": CanonicalType.JSON,
    "hstore": CanonicalType.JSON,
    "bytea": CanonicalType.BINARY,
    "array": CanonicalType.ARRAY,
    "user-defined": CanonicalType.ENUM,
}


def django_canonical_type(field_type: str) -> CanonicalType:
    """Map a Django field class name (``"CharField"``) to its canonical type.

    Example:
        >>> django_canonical_type("PositiveIntegerField")
        <CanonicalType.INTEGER: 'integer'>
        >>> django_canonical_type("MyCustomField")
        <CanonicalType.UNKNOWN: 'unknown'>
    """
    return _DJANGO_TYPES.get(field_type, CanonicalType.UNKNOWN)


def prisma_canonical_type(
    field_type: str,
    native_type: str | None = None,
    is_list: bool = False,
    enum_names: Iterable[str] = (),
) -> CanonicalType:
    """Map a Prisma scalar (optionally refined by ``@db.X``) to a canonical type.

    Args:
        field_type: Prisma type name without list/optional markers.
        native_type: Name of the ``@db.*`` attribute, e.g. ``"Uuid"``.
        is_list: True for ``Type[]`` fields (PostgreSQL arrays).
        enum_names: Enum names declared in the same schema.
    """
    if is_list:
        return CanonicalType.ARRAY
    if field_type in enum_names:
        return CanonicalType.ENUM
    if native_type and native_type in _PRISMA_NATIVE_TYPES:
        return _PRISMA_NATIVE_TYPES[native_type]
    return _PRISMA_SCALARS.get(field_type, CanonicalType.UNKNOWN)


def postgres_canonical_type(data_type: str, udt_name: str | None = None) -> CanonicalType:
    """Map an ``information_schema`` data type to a canonical type.

    ``udt_name`` disambiguates ``USER-DEFINED`` columns: enums stay ``enum``
    while extension types such as ``citext`` resolve through the table.
    """
    key = data_type.strip().lower()
    if key == "user-defined" and udt_name:
        udt = udt_name.strip().lower()
        if udt in _POSTGRES_TYPES and udt != "user-defined":
            return _POSTGRES_TYPES[udt]
    if key.startswith("_"):
        # pg_catalog spelling of array types (e.g. "_int4")
        return CanonicalType.ARRAY
    return _POSTGRES_TYPES.get(key, CanonicalType.UNKNOWN)

# File: migen/factory.py
"""
Migen - Column Factory
=======================
Maps a raw type name reported by schema introspection onto the matching
``TableColumn`` variant.

The lookup table below is the single source of truth.  Matching is
case-insensitive; length arguments (``varchar(255)``) and modifiers
(``unsigned``, ``zerofill``, time zone qualifiers) are stripped before
lookup.  Unknown names degrade to ``TableColumnUnsupported``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Tuple, Type

from migen.columns import COLUMN_CLASSES, TableColumn
from migen.models import ColumnType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.factory")

_ARGS_RE: re.Pattern[str] = re.compile(r"\(.*?\)")
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")
_TIME_ZONE_RE: re.Pattern[str] = re.compile(r"\s+with(out)?\s+(local\s+)?time\s+zone$")

# ---------------------------------------------------------------------------
# Type-name lookup table
# ---------------------------------------------------------------------------

TYPE_ALIASES: Dict[str, ColumnType] = {
    # Abstract names
    **{member.value: member for member in ColumnType if member != ColumnType.UNSUPPORTED},
    # Serial integers (auto-incremented)
    "smallserial": ColumnType.SMALLINT,
    "serial2": ColumnType.SMALLINT,
    "serial": ColumnType.INTEGER,
    "serial4": ColumnType.INTEGER,
    "bigserial": ColumnType.BIGINT,
    "serial8": ColumnType.BIGINT,
    # Integers
    "int1": ColumnType.TINYINT,
    "int2": ColumnType.SMALLINT,
    "int": ColumnType.INTEGER,
    "int4": ColumnType.INTEGER,
    "mediumint": ColumnType.INTEGER,
    "int8": ColumnType.BIGINT,
    "bit": ColumnType.BOOLEAN,
    "bool": ColumnType.BOOLEAN,
    # Fractional
    "real": ColumnType.FLOAT,
    "float4": ColumnType.FLOAT,
    "float8": ColumnType.DOUBLE,
    "double precision": ColumnType.DOUBLE,
    "binary_float": ColumnType.FLOAT,
    "binary_double": ColumnType.DOUBLE,
    "numeric": ColumnType.DECIMAL,
    "dec": ColumnType.DECIMAL,
    "number": ColumnType.DECIMAL,
    "smallmoney": ColumnType.MONEY,
    # Character
    "nchar": ColumnType.CHAR,
    "character": ColumnType.CHAR,
    "bpchar": ColumnType.CHAR,
    "varchar": ColumnType.STRING,
    "nvarchar": ColumnType.STRING,
    "varchar2": ColumnType.STRING,
    "nvarchar2": ColumnType.STRING,
    "character varying": ColumnType.STRING,
    "uuid": ColumnType.STRING,
    "enum": ColumnType.STRING,
    "set": ColumnType.STRING,
    "tinytext": ColumnType.TEXT,
    "mediumtext": ColumnType.TEXT,
    "longtext": ColumnType.TEXT,
    "ntext": ColumnType.TEXT,
    "clob": ColumnType.TEXT,
    "nclob": ColumnType.TEXT,
    "long": ColumnType.TEXT,
    # Binary
    "varbinary": ColumnType.BINARY,
    "blob": ColumnType.BINARY,
    "tinyblob": ColumnType.BINARY,
    "mediumblob": ColumnType.BINARY,
    "longblob": ColumnType.BINARY,
    "bytea": ColumnType.BINARY,
    "image": ColumnType.BINARY,
    "raw": ColumnType.BINARY,
    # Date & time
    "year": ColumnType.DATE,
    "timetz": ColumnType.TIME,
    "datetime2": ColumnType.DATETIME,
    "smalldatetime": ColumnType.DATETIME,
    "datetimeoffset": ColumnType.DATETIME,
    "timestamptz": ColumnType.TIMESTAMP,
    # Documents
    "jsonb": ColumnType.JSON,
}

# Synonyms that imply an auto-incremented column.
SERIAL_TYPES: FrozenSet[str] = frozenset(
    {"smallserial", "serial2", "serial", "serial4", "bigserial", "serial8"}
)

# Abstract primary key types that imply an unsigned column.
UNSIGNED_PK_TYPES: FrozenSet[ColumnType] = frozenset({ColumnType.UPK, ColumnType.UBIGPK})


def normalize_type_name(raw_type: str) -> Tuple[str, bool]:
    """
    Reduce *raw_type* to a lookup key.

    Returns ``(key, unsigned)`` where *unsigned* reports an ``unsigned``
    modifier found in the raw name.

    Examples:
        >>> normalize_type_name("INT(11) UNSIGNED")
        ('int', True)
        >>> normalize_type_name("timestamp(6) without time zone")
        ('timestamp', False)
    """
    text: str = _ARGS_RE.sub("", raw_type.strip().lower())
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = _TIME_ZONE_RE.sub("", text)
    words: List[str] = text.split(" ")
    unsigned: bool = "unsigned" in words
    words = [w for w in words if w not in ("unsigned", "signed", "zerofill")]
    return " ".join(words), unsigned


def resolve_column_type(raw_type: str) -> ColumnType:
    """Look up the ``ColumnType`` for *raw_type*, or ``UNSUPPORTED``."""
    key, _ = normalize_type_name(raw_type)
    return TYPE_ALIASES.get(key, ColumnType.UNSUPPORTED)


class ColumnFactory:
    """Builds ``TableColumn`` variants from introspection data."""

    @staticmethod
    def build(configuration: Dict[str, Any]) -> TableColumn:
        """
        Build the column variant matching ``configuration["type"]``.

        Every other key is passed to the column model unchanged.

        Raises:
            ValueError: If the type name is missing or empty.
        """
        raw_type: Any = configuration.get("type")
        if raw_type is None or not str(raw_type).strip():
            raise ValueError(
                f"Column '{configuration.get('name', '')}' has no type name."
            )
        raw_type = str(raw_type).strip()

        key, unsigned = normalize_type_name(raw_type)
        column_type: ColumnType = TYPE_ALIASES.get(key, ColumnType.UNSUPPORTED)
        column_class: Type[TableColumn] = COLUMN_CLASSES[column_type]

        attributes: Dict[str, Any] = dict(configuration)
        attributes["type"] = raw_type
        if unsigned or column_type in UNSIGNED_PK_TYPES:
            attributes["is_unsigned"] = True
        if key in SERIAL_TYPES:
            attributes["auto_increment"] = True

        if column_type == ColumnType.UNSUPPORTED:
            logger.warning(
                "Unsupported column type '%s' for column '%s' — "
                "rendering through the generic column builder.",
                raw_type,
                configuration.get("name", ""),
            )
        else:
            logger.debug(
                "Column '%s': type '%s' → %s.",
                configuration.get("name", ""),
                raw_type,
                column_class.__name__,
            )
        return column_class(**attributes)


def build_column(type_name: str, **attributes: Any) -> TableColumn:
    """Keyword-argument shortcut for ``ColumnFactory.build``."""
    return ColumnFactory.build({"type": type_name, **attributes})


__all__: List[str] = [
    "TYPE_ALIASES",
    "SERIAL_TYPES",
    "UNSIGNED_PK_TYPES",
    "ColumnFactory",
    "build_column",
    "normalize_type_name",
    "resolve_column_type",
]

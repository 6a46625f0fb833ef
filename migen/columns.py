# File: migen/columns.py
"""
Migen - Column Models & Definition Rendering
=============================================
One model per logical column type.  Every variant knows how to render its
own type-specific builder call; the shared tail of the chain (unsigned,
not-null, default, append, comment) is built by ``TableColumn`` itself.

Rendering a column is a pure function of ``(column, table)``::

    column.render_definition(table)
    # "$this->integer(11)->notNull()->append('AUTO_INCREMENT PRIMARY KEY')"

Each call allocates a fresh ``ColumnDefinition`` scratch object, so
rendering the same column twice yields identical output and columns of
one table may be rendered independently.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from migen.dialects import PORTABLE_RULES, DialectRules, rules_for
from migen.models import ColumnType, DefaultValue, TablePrimaryKey

if TYPE_CHECKING:
    from migen.structure import TableStructure

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.columns")

_LENGTH_SPLIT_RE: re.Pattern[str] = re.compile(r"\s*,\s*")


def escape_quotes(value: str) -> str:
    """Escape single quotes for a single-quoted target string literal."""
    return value.replace("'", "\\'")


# ---------------------------------------------------------------------------
# Per-render scratch state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ColumnDefinition:
    """
    Builder chain under construction for one render call.

    The type-specific step may clear the capability flags when it emits a
    primary key shortcut, so the shared step does not repeat what the
    shortcut already implies.
    """

    parts: List[str] = field(default_factory=list)
    is_pk_possible: bool = True
    is_not_null_possible: bool = True

    def take_pk_shortcut(self, call: str) -> None:
        self.is_pk_possible = False
        self.is_not_null_possible = False
        self.parts.append(call)


# ---------------------------------------------------------------------------
# Base column
# ---------------------------------------------------------------------------


class TableColumn(BaseModel):
    """
    A single table column as reported by schema introspection.

    ``size`` and ``precision`` back the same "length" concept; use
    ``set_length`` to keep them in sync.
    """

    model_config = ConfigDict(
        strict=False,
        validate_assignment=True,
        extra="forbid",
    )

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.UNSUPPORTED
    METHOD: ClassVar[str] = ""
    UNSIGNED_POSSIBLE: ClassVar[bool] = False
    COMPARED_PROPERTIES: ClassVar[Tuple[str, ...]] = (
        "type",
        "is_not_null",
        "size",
        "precision",
        "scale",
        "is_unique",
        "is_unsigned",
        "default",
        "append",
        "comment",
    )

    name: str = Field(default="", description="Column name.")
    type: str = Field(default="", description="Type name as reported by introspection.")
    is_not_null: Optional[bool] = Field(
        default=None, description="True = NOT NULL, False = nullable, None = unspecified."
    )
    size: Optional[int] = Field(default=None, description="Column size.")
    precision: Optional[int] = Field(default=None, description="Numeric / fractional precision.")
    scale: Optional[int] = Field(default=None, description="Numeric scale.")
    is_unique: bool = Field(default=False, description="Single-column UNIQUE constraint?")
    is_unsigned: bool = Field(default=False, description="UNSIGNED numeric?")
    check: Optional[str] = Field(default=None, description="CHECK constraint text.")
    default: Optional[DefaultValue] = Field(default=None, description="Default value.")
    is_primary_key: bool = Field(default=False, description="Reported as primary key?")
    auto_increment: bool = Field(default=False, description="Auto-incremented?")
    append: Optional[str] = Field(default=None, description="Raw SQL appended verbatim.")
    comment: Optional[str] = Field(default=None, description="Column comment.")

    @field_validator("default", mode="before")
    @classmethod
    def _wrap_literal_default(cls, v: Any) -> Any:
        if v is None or isinstance(v, DefaultValue):
            return v
        if isinstance(v, dict) and "value" in v:
            return v
        return DefaultValue.literal(v)

    # -- Length ---------------------------------------------------------------

    @property
    def length(self) -> Union[int, str, None]:
        return self.size

    def set_length(self, value: Any) -> None:
        self.size = value
        self.precision = value

    def _render_length(self, table: "TableStructure") -> str:
        if table.general_schema:
            return ""
        length: Union[int, str, None] = self.length
        return "" if length is None else str(length)

    # -- Primary key helpers --------------------------------------------------

    def is_column_in_pk(self, pk: TablePrimaryKey) -> bool:
        return self.name in pk.columns

    def is_sole_pk(self, table: "TableStructure") -> bool:
        """True when this column alone forms the table's primary key."""
        return not table.primary_key.is_composite() and self.is_column_in_pk(table.primary_key)

    def is_column_append_pk(self, dialect: Any) -> bool:
        """Whether ``append`` already carries primary key information."""
        return rules_for(dialect).is_append_pk(self.append)

    def prepare_schema_append(
        self, table: "TableStructure", primary_key: bool, auto_increment: bool
    ) -> Optional[str]:
        return rules_for(table.dialect).schema_append(primary_key, auto_increment)

    def remove_pk_append(self, dialect: Any) -> Optional[str]:
        """
        Upper-cased ``append`` with primary key keywords removed.

        None unless ``append`` carries a primary key for *dialect*.
        """
        return rules_for(dialect).remove_pk(self.append)

    # -- Definition building --------------------------------------------------

    def build_specific_definition(
        self, table: "TableStructure", definition: ColumnDefinition
    ) -> None:
        definition.parts.append(f"{self.METHOD}({self._render_length(table)})")

    def build_general_definition(
        self, table: "TableStructure", definition: ColumnDefinition
    ) -> None:
        parts: List[str] = definition.parts

        if self.UNSIGNED_POSSIBLE and self.is_unsigned:
            parts.append("unsigned()")
        if definition.is_not_null_possible and self.is_not_null:
            parts.append("notNull()")
        if self.default is not None:
            if self.default.is_expression:
                parts.append(f"defaultExpression('{escape_quotes(self.default.as_text())}')")
            else:
                parts.append(f"defaultValue('{escape_quotes(self.default.as_text())}')")

        append: Optional[str] = self.append
        if definition.is_pk_possible and self.is_sole_pk(table):
            pk_rules: DialectRules = (
                PORTABLE_RULES if table.general_schema else rules_for(table.dialect)
            )
            append = pk_rules.schema_append(True, self.auto_increment)
            if self.append:
                append = f"{append} {self.append}" if append else self.append
        if append:
            parts.append(f"append('{escape_quotes(append)}')")

        if self.comment:
            parts.append(f"comment('{escape_quotes(self.comment)}')")

    def build_definition(self, table: "TableStructure") -> List[str]:
        """Builder calls of this column, without the leading ``$this``."""
        definition: ColumnDefinition = ColumnDefinition()
        self.build_specific_definition(table, definition)
        self.build_general_definition(table, definition)
        return definition.parts

    def render_definition(self, table: "TableStructure") -> str:
        return "->".join(["$this", *self.build_definition(table)])

    def render(self, table: "TableStructure", indent: int = 12) -> str:
        return " " * indent + f"'{self.name}' => {self.render_definition(table)},"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self.type or self.COLUMN_TYPE.value}>"


# ---------------------------------------------------------------------------
# Primary key variants
# ---------------------------------------------------------------------------


class TableColumnPK(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.PK
    METHOD: ClassVar[str] = "primaryKey"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True

    def build_specific_definition(
        self, table: "TableStructure", definition: ColumnDefinition
    ) -> None:
        call: str = f"{self.METHOD}({self._render_length(table)})"
        if self.is_sole_pk(table):
            definition.take_pk_shortcut(call)
        else:
            definition.parts.append(call)


class TableColumnBigPK(TableColumnPK):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.BIGPK
    METHOD: ClassVar[str] = "bigPrimaryKey"


# ---------------------------------------------------------------------------
# Integer variants
# ---------------------------------------------------------------------------


class TableColumnTinyInt(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.TINYINT
    METHOD: ClassVar[str] = "tinyInteger"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True


class TableColumnSmallInt(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.SMALLINT
    METHOD: ClassVar[str] = "smallInteger"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True


class TableColumnInt(TableColumn):
    """Integer; collapses into ``primaryKey()`` as a sole general-schema key."""

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.INTEGER
    METHOD: ClassVar[str] = "integer"
    SHORTCUT: ClassVar[str] = "primaryKey()"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True

    def build_specific_definition(
        self, table: "TableStructure", definition: ColumnDefinition
    ) -> None:
        if table.general_schema and self.is_sole_pk(table):
            definition.take_pk_shortcut(self.SHORTCUT)
        else:
            definition.parts.append(f"{self.METHOD}({self._render_length(table)})")


class TableColumnBigInt(TableColumnInt):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.BIGINT
    METHOD: ClassVar[str] = "bigInteger"
    SHORTCUT: ClassVar[str] = "bigPrimaryKey()"


# ---------------------------------------------------------------------------
# Fractional numbers
# ---------------------------------------------------------------------------


class TableColumnFloat(TableColumn):
    """Length of floating point columns is their precision."""

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.FLOAT
    METHOD: ClassVar[str] = "float"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True

    @property
    def length(self) -> Union[int, str, None]:
        return self.precision

class TableColumnDouble(TableColumnFloat):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.DOUBLE
    METHOD: ClassVar[str] = "double"


class TableColumnDecimal(TableColumn):
    """Length is ``"precision, scale"``."""

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.DECIMAL
    METHOD: ClassVar[str] = "decimal"
    UNSIGNED_POSSIBLE: ClassVar[bool] = True

    @property
    def length(self) -> Union[int, str, None]:
        if self.precision is None:
            return None
        if self.scale is None:
            return self.precision
        return f"{self.precision}, {self.scale}"

    def set_length(self, value: Any) -> None:
        parts: Sequence[Any]
        if isinstance(value, (list, tuple)):
            parts = value
        elif value is None:
            parts = []
        else:
            parts = _LENGTH_SPLIT_RE.split(str(value).strip())
        if len(parts) > 0 and parts[0] not in (None, ""):
            self.precision = parts[0]
        if len(parts) > 1 and parts[1] not in (None, ""):
            self.scale = parts[1]


class TableColumnMoney(TableColumnDecimal):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.MONEY
    METHOD: ClassVar[str] = "money"


# ---------------------------------------------------------------------------
# Character & binary
# ---------------------------------------------------------------------------


class TableColumnChar(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.CHAR
    METHOD: ClassVar[str] = "char"


class TableColumnString(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.STRING
    METHOD: ClassVar[str] = "string"


class TableColumnText(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.TEXT
    METHOD: ClassVar[str] = "text"


class TableColumnBinary(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.BINARY
    METHOD: ClassVar[str] = "binary"


# ---------------------------------------------------------------------------
# Date & time
# ---------------------------------------------------------------------------


class TableColumnTime(TableColumnFloat):
    """Time-like columns carry fractional second precision as their length."""

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.TIME
    METHOD: ClassVar[str] = "time"
    UNSIGNED_POSSIBLE: ClassVar[bool] = False


class TableColumnDateTime(TableColumnTime):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.DATETIME
    METHOD: ClassVar[str] = "dateTime"


class TableColumnTimestamp(TableColumnTime):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.TIMESTAMP
    METHOD: ClassVar[str] = "timestamp"


# ---------------------------------------------------------------------------
# Length-less types
# ---------------------------------------------------------------------------


class TableColumnDate(TableColumn):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.DATE
    METHOD: ClassVar[str] = "date"

    def _render_length(self, table: "TableStructure") -> str:
        return ""


class TableColumnBoolean(TableColumnDate):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.BOOLEAN
    METHOD: ClassVar[str] = "boolean"


class TableColumnJson(TableColumnDate):
    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.JSON
    METHOD: ClassVar[str] = "json"


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------


class TableColumnUnsupported(TableColumn):
    """
    Column whose type has no dedicated builder method.

    Rendered through the schema's generic column builder with the raw type
    name, so generation still completes.
    """

    COLUMN_TYPE: ClassVar[ColumnType] = ColumnType.UNSUPPORTED

    def build_specific_definition(
        self, table: "TableStructure", definition: ColumnDefinition
    ) -> None:
        length: str = self._render_length(table)
        args: str = f"'{escape_quotes(self.type or 'string')}'"
        if length:
            args += f", {length}"
        definition.parts.append(f"getDb()->getSchema()->createColumnSchemaBuilder({args})")


# ---------------------------------------------------------------------------
# Variant table
# ---------------------------------------------------------------------------

COLUMN_CLASSES: Dict[ColumnType, Type[TableColumn]] = {
    ColumnType.PK: TableColumnPK,
    ColumnType.UPK: TableColumnPK,
    ColumnType.BIGPK: TableColumnBigPK,
    ColumnType.UBIGPK: TableColumnBigPK,
    ColumnType.CHAR: TableColumnChar,
    ColumnType.STRING: TableColumnString,
    ColumnType.TEXT: TableColumnText,
    ColumnType.TINYINT: TableColumnTinyInt,
    ColumnType.SMALLINT: TableColumnSmallInt,
    ColumnType.INTEGER: TableColumnInt,
    ColumnType.BIGINT: TableColumnBigInt,
    ColumnType.FLOAT: TableColumnFloat,
    ColumnType.DOUBLE: TableColumnDouble,
    ColumnType.DECIMAL: TableColumnDecimal,
    ColumnType.DATETIME: TableColumnDateTime,
    ColumnType.TIMESTAMP: TableColumnTimestamp,
    ColumnType.TIME: TableColumnTime,
    ColumnType.DATE: TableColumnDate,
    ColumnType.BINARY: TableColumnBinary,
    ColumnType.BOOLEAN: TableColumnBoolean,
    ColumnType.MONEY: TableColumnMoney,
    ColumnType.JSON: TableColumnJson,
    ColumnType.UNSUPPORTED: TableColumnUnsupported,
}


__all__: List[str] = [
    "escape_quotes",
    "ColumnDefinition",
    "TableColumn",
    "TableColumnPK",
    "TableColumnBigPK",
    "TableColumnTinyInt",
    "TableColumnSmallInt",
    "TableColumnInt",
    "TableColumnBigInt",
    "TableColumnFloat",
    "TableColumnDouble",
    "TableColumnDecimal",
    "TableColumnMoney",
    "TableColumnChar",
    "TableColumnString",
    "TableColumnText",
    "TableColumnBinary",
    "TableColumnTime",
    "TableColumnDateTime",
    "TableColumnTimestamp",
    "TableColumnDate",
    "TableColumnBoolean",
    "TableColumnJson",
    "TableColumnUnsupported",
    "COLUMN_CLASSES",
]

# File: migen/models.py
"""
Migen - Core Data Models
=========================
Pydantic V2 models describing the pieces of a table schema that surround
the column definitions (primary key, foreign keys, indexes), the default
value sum type, the closed enumerations shared by the whole pipeline and
the generation configuration.

Columns themselves live in ``migen.columns`` and the aggregate
``TableStructure`` in ``migen.structure``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Dialect(str, Enum):
    """Database dialects the renderer knows about."""

    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    OCI = "oci"
    CUBRID = "cubrid"
    GENERIC = "generic"


class ColumnType(str, Enum):
    """Abstract column types produced by schema introspection."""

    PK = "pk"
    UPK = "upk"
    BIGPK = "bigpk"
    UBIGPK = "ubigpk"
    CHAR = "char"
    STRING = "string"
    TEXT = "text"
    TINYINT = "tinyint"
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    DATE = "date"
    BINARY = "binary"
    BOOLEAN = "boolean"
    MONEY = "money"
    JSON = "json"
    UNSUPPORTED = "unsupported"


class DefaultKind(str, Enum):
    """The two cases of a column default."""

    LITERAL = "literal"
    EXPRESSION = "expression"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Default value
# ---------------------------------------------------------------------------


class DefaultValue(BaseModel):
    """
    Column default: either a literal value or a raw SQL expression.

    Literals are rendered through ``defaultValue('...')`` and expressions
    through ``defaultExpression('...')``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: DefaultKind = Field(default=DefaultKind.LITERAL, description="Literal or expression.")
    value: Any = Field(..., description="Literal value or raw SQL text.")

    @classmethod
    def literal(cls, value: Any) -> "DefaultValue":
        return cls(kind=DefaultKind.LITERAL, value=value)

    @classmethod
    def expression(cls, sql: str) -> "DefaultValue":
        return cls(kind=DefaultKind.EXPRESSION, value=sql)

    @property
    def is_expression(self) -> bool:
        return self.kind == DefaultKind.EXPRESSION

    def as_text(self) -> str:
        """Stringify the value the way it is written into the migration."""
        if self.is_expression:
            return str(self.value)
        if isinstance(self.value, bool):
            return "1" if self.value else "0"
        return str(self.value)

    def __repr__(self) -> str:
        return f"<Default {self.kind.value}: {self.value!r}>"


# ---------------------------------------------------------------------------
# Primary key, foreign key, index
# ---------------------------------------------------------------------------


class TablePrimaryKey(BaseModel):
    """Ordered primary key column names with an optional constraint name."""

    model_config = _SHARED_CONFIG

    GENERIC_PRIMARY_KEY: ClassVar[str] = "PRIMARYKEY"

    name: Optional[str] = Field(default=None, description="Constraint name.")
    columns: List[str] = Field(default_factory=list, description="Key columns in order.")

    def is_composite(self) -> bool:
        return len(self.columns) > 1

    def render(self, table_name: str, indent: int = 8) -> str:
        """Render the structure-level ``addPrimaryKey`` statement."""
        columns: str = "', '".join(self.columns)
        return (
            " " * indent
            + f"$this->addPrimaryKey('{self.name or self.GENERIC_PRIMARY_KEY}', "
            f"'{table_name}', ['{columns}']);"
        )

    def __repr__(self) -> str:
        return f"<PrimaryKey {self.name or '-'} {self.columns}>"


class TableForeignKey(BaseModel):
    """Foreign key constraint between this table and ``ref_table``."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(default=None, description="Constraint name.")
    columns: List[str] = Field(..., min_length=1, description="Local columns.")
    ref_table: str = Field(..., min_length=1, description="Referenced table.")
    ref_columns: List[str] = Field(..., min_length=1, description="Referenced columns.")
    on_delete: Optional[str] = Field(default=None, description="ON DELETE action.")
    on_update: Optional[str] = Field(default=None, description="ON UPDATE action.")

    @model_validator(mode="after")
    def _validate_column_parity(self) -> "TableForeignKey":
        if len(self.columns) != len(self.ref_columns):
            raise ValueError(
                f"Foreign key '{self.name}' has {len(self.columns)} local column(s) "
                f"but {len(self.ref_columns)} referenced column(s)."
            )
        return self

    def render_name(self, table_name: str) -> str:
        """Constraint name, generated as ``fk-<table>-<cols>`` when missing or numeric."""
        if self.name is None or self.name.isdigit():
            return f"fk-{table_name}-{'-'.join(self.columns)}"
        return self.name

    def render(
        self,
        table_name: str,
        rendered_table: str,
        rendered_ref_table: str,
        indent: int = 8,
    ) -> str:
        """Render the multi-line ``addForeignKey`` statement."""
        pad: str = " " * (indent + 4)
        args: List[str] = [
            f"'{self.render_name(table_name)}'",
            f"'{rendered_table}'",
            _render_column_list(self.columns),
            f"'{rendered_ref_table}'",
            _render_column_list(self.ref_columns),
        ]
        if self.on_delete or self.on_update:
            args.append(f"'{self.on_delete}'" if self.on_delete else "null")
        if self.on_update:
            args.append(f"'{self.on_update}'")
        body: str = ",\n".join(pad + arg for arg in args)
        return " " * indent + "$this->addForeignKey(\n" + body + "\n" + " " * indent + ");"

    def __repr__(self) -> str:
        return f"<FK {self.columns} → {self.ref_table}{self.ref_columns}>"


def _render_column_list(columns: List[str]) -> str:
    """``'a'`` for a single column, ``['a', 'b']`` for several."""
    if len(columns) == 1:
        return f"'{columns[0]}'"
    return "['" + "', '".join(columns) + "']"


class TableIndex(BaseModel):
    """Non-primary index."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Index name.")
    columns: List[str] = Field(..., min_length=1, description="Indexed columns in order.")
    unique: bool = Field(default=False, description="UNIQUE index?")

    @field_validator("columns")
    @classmethod
    def _no_duplicate_columns(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            raise ValueError(f"Duplicate columns in index: {v}")
        return v

    def is_single_unique(self) -> bool:
        """True when this index is a unique constraint over exactly one column."""
        return self.unique and len(self.columns) == 1

    def render(self, table_name: str, indent: int = 8) -> str:
        return (
            " " * indent
            + f"$this->createIndex('{self.name}', '{table_name}', "
            + _render_column_list(self.columns)
            + (", true" if self.unique else "")
            + ");"
        )


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------

DEFAULT_TABLE_OPTIONS_INIT: str = (
    "$tableOptions = null;\n"
    "        if ($this->db->driverName === 'mysql') {\n"
    "            $tableOptions = 'CHARACTER SET utf8 COLLATE utf8_unicode_ci ENGINE=InnoDB';\n"
    "        }"
)


class GenerationConfig(BaseModel):
    """Settings that control how structures are built and rendered."""

    model_config = _SHARED_CONFIG

    dialect: Dialect = Field(default=Dialect.MYSQL, description="Target database dialect.")
    general_schema: bool = Field(
        default=True,
        description="Render portable builder calls instead of dialect-exact ones.",
    )
    use_table_prefix: bool = Field(
        default=True, description="Render table names as '{{%name}}'."
    )
    db_prefix: str = Field(default="", description="Connection table prefix to strip.")
    table_options_init: Optional[str] = Field(
        default=DEFAULT_TABLE_OPTIONS_INIT,
        description="Code placed before createTable() (None to skip).",
    )
    table_options: Optional[str] = Field(
        default="$tableOptions",
        description="Extra createTable() argument (None to skip).",
    )
    namespace: Optional[str] = Field(default=None, description="Migration namespace.")
    migration_path: str = Field(
        default="./migrations", description="Directory migration files are written to."
    )
    overwrite_existing: bool = Field(
        default=False, description="Replace migration files that already exist."
    )

    @field_validator("dialect", mode="before")
    @classmethod
    def _coerce_dialect(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, Dialect):
            from migen.dialects import identify_dialect

            return identify_dialect(v)
        return v

    @field_validator("namespace")
    @classmethod
    def _normalize_namespace(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        parts: List[str] = [p for p in v.replace("/", "\\").split("\\") if p]
        return "\\".join(parts) or None


__all__: List[str] = [
    "Dialect",
    "ColumnType",
    "DefaultKind",
    "DefaultValue",
    "TablePrimaryKey",
    "TableForeignKey",
    "TableIndex",
    "GenerationConfig",
    "DEFAULT_TABLE_OPTIONS_INIT",
]

logger.debug("migen.models loaded — %d public symbols.", len(__all__))

# File: migen/structure.py
"""
Migen - Table Structure
========================
``TableStructure`` aggregates everything known about one table: primary
key, ordered columns, foreign keys, indexes, the active dialect and the
rendering flags.  It is the context every column consults while rendering
and it assembles the column lines into the surrounding statements::

    $this->createTable('{{%post}}', [
        'id' => $this->primaryKey(),
        'title' => $this->string()->notNull(),
    ], $tableOptions);

Rendering never mutates the structure.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from migen.columns import TableColumn
from migen.dialects import identify_dialect, rules_for
from migen.factory import ColumnFactory
from migen.models import Dialect, TableForeignKey, TableIndex, TablePrimaryKey

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.structure")

_INDENT: int = 8


class TableStructure(BaseModel):
    """
    Complete structure of a single table.

    ``columns``, ``foreign_keys`` and ``indexes`` keep insertion order.
    They may be given as mappings or as lists (keyed by ``name``); column
    entries given as plain dicts are built through ``ColumnFactory``.
    """

    model_config = ConfigDict(
        strict=False,
        validate_assignment=True,
        extra="forbid",
    )

    name: str = Field(..., min_length=1, description="Table name (with prefix).")
    dialect: Dialect = Field(default=Dialect.GENERIC, description="Database dialect.")
    general_schema: bool = Field(default=True, description="Portable rendering mode.")
    use_prefix: bool = Field(default=True, description="Render '{{%name}}' table names.")
    db_prefix: str = Field(default="", description="Connection table prefix.")
    primary_key: TablePrimaryKey = Field(default_factory=TablePrimaryKey)
    columns: Dict[str, TableColumn] = Field(default_factory=dict)
    foreign_keys: Dict[str, TableForeignKey] = Field(default_factory=dict)
    indexes: Dict[str, TableIndex] = Field(default_factory=dict)
    table_options_init: Optional[str] = Field(default=None)
    table_options: Optional[str] = Field(default=None)

    # -- Input coercion -----------------------------------------------------

    @field_validator("dialect", mode="before")
    @classmethod
    def _coerce_dialect(cls, v: Any) -> Dialect:
        return identify_dialect(v)

    @field_validator("db_prefix", mode="before")
    @classmethod
    def _coerce_prefix(cls, v: Any) -> str:
        return v or ""

    @field_validator("columns", mode="before")
    @classmethod
    def _coerce_columns(cls, v: Any) -> Any:
        if isinstance(v, dict):
            items: List[Any] = []
            for key, column in v.items():
                if isinstance(column, dict):
                    column = {"name": key, **column}
                items.append(column)
        else:
            items = list(v or [])
        columns: Dict[str, Any] = {}
        for column in items:
            if isinstance(column, dict):
                column = ColumnFactory.build(column)
            columns[column.name] = column
        return columns

    @field_validator("foreign_keys", mode="before")
    @classmethod
    def _coerce_foreign_keys(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            keyed: Dict[str, Any] = {}
            for position, fk in enumerate(v):
                name: Any = fk.name if isinstance(fk, TableForeignKey) else fk.get("name")
                keyed[str(name) if name is not None else str(position)] = fk
            return keyed
        return v

    @field_validator("indexes", mode="before")
    @classmethod
    def _coerce_indexes(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return {(i.name if isinstance(i, TableIndex) else i["name"]): i for i in v}
        return v

    @model_validator(mode="after")
    def _validate_referenced_columns(self) -> "TableStructure":
        known: Set[str] = set(self.columns)
        missing: List[str] = [c for c in self.primary_key.columns if c not in known]
        if missing:
            raise ValueError(
                f"Primary key of table '{self.name}' references unknown columns: {missing}"
            )
        for key, fk in self.foreign_keys.items():
            missing = [c for c in fk.columns if c not in known]
            if missing:
                raise ValueError(
                    f"Foreign key '{fk.name or key}' of table '{self.name}' "
                    f"references unknown columns: {missing}"
                )
        for index in self.indexes.values():
            missing = [c for c in index.columns if c not in known]
            if missing:
                raise ValueError(
                    f"Index '{index.name}' of table '{self.name}' "
                    f"references unknown columns: {missing}"
                )
        return self

    # -- Queries ------------------------------------------------------------

    def is_composite_pk(self) -> bool:
        return self.primary_key.is_composite()

    def is_append_pk(self, append: Optional[str], dialect: Any = None) -> bool:
        """Whether *append* encodes a primary key for *dialect* (default: own dialect)."""
        return rules_for(self.dialect if dialect is None else dialect).is_append_pk(append)

    def get_column(self, name: str) -> Optional[TableColumn]:
        return self.columns.get(name)

    # -- Name rendering -----------------------------------------------------

    def _render_table_name(self, table_name: str) -> str:
        if not self.use_prefix:
            return table_name
        if self.db_prefix and table_name.startswith(self.db_prefix):
            table_name = table_name[len(self.db_prefix):]
        return "{{%" + table_name + "}}"

    def render_name(self) -> str:
        return self._render_table_name(self.name)

    def render_ref_table_name(self, foreign_key: TableForeignKey) -> str:
        return self._render_table_name(foreign_key.ref_table)

    # -- Statement rendering ------------------------------------------------

    def render_table(self) -> str:
        """``createTable`` statement with one line per column."""
        lines: List[str] = []
        if self.table_options_init is not None:
            lines.append(" " * _INDENT + self.table_options_init)
            lines.append("")
        lines.append(" " * _INDENT + f"$this->createTable('{self.render_name()}', [")
        for column in self.columns.values():
            lines.append(column.render(self))
        options: str = f", {self.table_options}" if self.table_options is not None else ""
        lines.append(" " * _INDENT + f"]{options});")
        return "\n".join(lines)

    def render_pk(self) -> str:
        """``addPrimaryKey`` statement for composite keys, empty otherwise."""
        if not self.primary_key.is_composite():
            return ""
        return "\n" + self.primary_key.render(self.render_name(), _INDENT)

    def render_indexes(self) -> str:
        fk_names: Set[Optional[str]] = {fk.name for fk in self.foreign_keys.values()}
        output: List[str] = []
        for index in self.indexes.values():
            if index.name in fk_names:
                continue
            output.append("\n" + index.render(self.render_name(), _INDENT))
        return "".join(output)

    def render_foreign_keys(self) -> str:
        return "".join(
            "\n"
            + fk.render(self.name, self.render_name(), self.render_ref_table_name(fk), _INDENT)
            for fk in self.foreign_keys.values()
        )

    def render(self) -> str:
        """Body of the ``up()`` method creating this table."""
        logger.debug("Rendering table '%s' (%d columns).", self.name, len(self.columns))
        return (
            self.render_table()
            + self.render_pk()
            + self.render_indexes()
            + self.render_foreign_keys()
            + "\n"
        )

    # -- Update statements --------------------------------------------------

    def render_add_column(self, column: TableColumn, indent: int = _INDENT) -> str:
        return (
            " " * indent
            + f"$this->addColumn('{self.render_name()}', '{column.name}', "
            + f"{column.render_definition(self)});"
        )

    def render_alter_column(self, column: TableColumn, indent: int = _INDENT) -> str:
        return (
            " " * indent
            + f"$this->alterColumn('{self.render_name()}', '{column.name}', "
            + f"{column.render_definition(self)});"
        )

    def render_drop_column(self, name: str, indent: int = _INDENT) -> str:
        return " " * indent + f"$this->dropColumn('{self.render_name()}', '{name}');"

    def render_drop_table(self, indent: int = _INDENT) -> str:
        return " " * indent + f"$this->dropTable('{self.render_name()}');"

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} [{self.dialect.value}] "
            f"({len(self.columns)} cols, {len(self.foreign_keys)} FKs, "
            f"{len(self.indexes)} indexes)>"
        )


__all__: List[str] = ["TableStructure"]

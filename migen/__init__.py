# File: migen/__init__.py
"""
Migen — Database Migration Generator
=====================================

Renders existing table structures as Yii2 migration code.  Every column is
written as a fluent builder chain that depends on the column's logical
type, the database dialect and the generation mode::

    'id' => $this->primaryKey(),
    'title' => $this->string()->notNull()->comment('Post title'),

Architecture overview::

    ┌──────────────┐     ┌────────────────────┐     ┌───────────────────┐
    │  CLI / Entry │────▶│ MigrationGenerator │────▶│ MigrationTemplate │
    │   (cli.py)   │     │   (generator.py)   │     │  (templates.py)   │
    └──────────────┘     └─────────┬──────────┘     └─────────┬─────────┘
                                   │                          ▼
                    ┌──────────────┼─────────┐      ┌───────────────────┐
                    ▼              ▼         ▼      │  TableStructure   │
             ┌──────────┐  ┌──────────┐ ┌────────┐  │  (structure.py)   │
             │validators│  │ factory  │ │ models │  └─────────┬─────────┘
             └──────────┘  └────┬─────┘ └────────┘            ▼
                                └──────────────────▶ columns ─▶ dialects

Usage::

    # As a library
    from migen import TableStructure, build_column
    table = TableStructure(
        name="post",
        dialect="mysql",
        primary_key={"columns": ["id"]},
        columns=[build_column("int", name="id"), build_column("varchar", name="title")],
    )
    print(table.render())

    # From the command line
    python -m migen --schema schema.yaml --output ./migrations --verbose
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from migen.columns import COLUMN_CLASSES, ColumnDefinition, TableColumn, escape_quotes
from migen.dialects import DialectRules, identify_dialect, rules_for
from migen.factory import ColumnFactory, build_column
from migen.generator import (
    GenerationReport,
    MigrationGenerator,
    build_table_structure,
    generate_from_file,
    load_schema_file,
    order_tables,
    parse_raw_schema,
)
from migen.models import (
    ColumnType,
    DefaultKind,
    DefaultValue,
    Dialect,
    GenerationConfig,
    TableForeignKey,
    TableIndex,
    TablePrimaryKey,
)
from migen.structure import TableStructure
from migen.templates import MigrationTemplate
from migen.utils import Timer, migration_class_name, to_snake_case, write_file
from migen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestration
    "MigrationGenerator",
    "GenerationReport",
    "build_table_structure",
    "generate_from_file",
    "load_schema_file",
    "order_tables",
    "parse_raw_schema",
    # Models
    "ColumnType",
    "DefaultKind",
    "DefaultValue",
    "Dialect",
    "GenerationConfig",
    "TableForeignKey",
    "TableIndex",
    "TablePrimaryKey",
    "TableStructure",
    # Columns
    "COLUMN_CLASSES",
    "ColumnDefinition",
    "ColumnFactory",
    "TableColumn",
    "build_column",
    "escape_quotes",
    # Dialects
    "DialectRules",
    "identify_dialect",
    "rules_for",
    # Templates & validation
    "MigrationTemplate",
    "ValidationResult",
    "validate_full",
    # Utilities
    "Timer",
    "migration_class_name",
    "to_snake_case",
    "write_file",
]

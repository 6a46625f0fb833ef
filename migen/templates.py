# File: migen/templates.py
"""
Migen - Migration Template Engine
==================================
Wraps rendered table statements into complete migration class files::

    <?php

    use yii\\db\\Migration;

    class m240105_093000_create_table_post extends Migration
    {
        public function up()
        {
            $this->createTable('{{%post}}', [ ... ]);
        }

        public function down()
        {
            $this->dropTable('{{%post}}');
        }
    }

All string assembly uses ``List[str]`` + ``"\\n".join()``.  Template
methods are stateless.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from migen.columns import TableColumn
from migen.models import GenerationConfig
from migen.structure import TableStructure

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.templates")

_INDENT: str = "    "


class MigrationTemplate:
    """
    Stateless migration file renderer.

    ``render_create`` produces a create-table migration, ``render_add_columns``
    an update migration adding columns to an existing table.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()

    def _header(self) -> List[str]:
        lines: List[str] = ["<?php", ""]
        if self._config.namespace:
            lines.append(f"namespace {self._config.namespace};")
            lines.append("")
        lines.append("use yii\\db\\Migration;")
        lines.append("")
        return lines

    def _class(self, class_name: str, up_body: str, down_body: str) -> str:
        lines: List[str] = self._header()
        lines.append(f"class {class_name} extends Migration")
        lines.append("{")
        lines.append(f"{_INDENT}public function up()")
        lines.append(f"{_INDENT}{{")
        lines.append(up_body.rstrip("\n"))
        lines.append(f"{_INDENT}}}")
        lines.append("")
        lines.append(f"{_INDENT}public function down()")
        lines.append(f"{_INDENT}{{")
        lines.append(down_body.rstrip("\n"))
        lines.append(f"{_INDENT}}}")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    def render_create(self, table: TableStructure, class_name: str) -> str:
        """Migration creating *table* (and dropping it on rollback)."""
        logger.debug("Rendering create migration %s for '%s'.", class_name, table.name)
        return self._class(class_name, table.render(), table.render_drop_table())

    def render_add_columns(
        self,
        table: TableStructure,
        columns: Sequence[TableColumn],
        class_name: str,
    ) -> str:
        """Migration adding *columns* to *table* (and dropping them on rollback)."""
        up: List[str] = [table.render_add_column(column) for column in columns]
        down: List[str] = [table.render_drop_column(column.name) for column in reversed(columns)]
        return self._class(class_name, "\n".join(up), "\n".join(down))


__all__: List[str] = ["MigrationTemplate"]

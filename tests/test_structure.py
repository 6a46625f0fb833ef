"""
tests/test_structure.py
Unit tests for migen.structure.TableStructure.

Tests cover:
- Input coercion (lists, mappings, raw column dicts)
- Referential integrity checks on construction
- Table name rendering with and without prefixes
- createTable / addPrimaryKey / createIndex / addForeignKey output
- Single-statement helpers used by update migrations
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from migen.columns import TableColumnInt, TableColumnString
from migen.factory import build_column
from migen.models import Dialect, TableForeignKey, TableIndex
from migen.structure import TableStructure


@pytest.fixture()
def post_table(make_table) -> TableStructure:
    return make_table(
        [
            build_column("int", name="id", size=11, is_not_null=True, auto_increment=True),
            build_column("varchar(255)", name="title", size=255, is_not_null=True),
        ],
        pk=["id"],
        name="post",
    )


@pytest.fixture()
def comment_table(make_table) -> TableStructure:
    return make_table(
        [
            build_column("int", name="id", is_not_null=True),
            build_column("int", name="post_id", is_not_null=True),
        ],
        pk=["id"],
        name="comment",
        foreign_keys=[
            {
                "name": "fk-comment-post_id",
                "columns": ["post_id"],
                "ref_table": "post",
                "ref_columns": ["id"],
                "on_delete": "CASCADE",
            }
        ],
        indexes=[{"name": "fk-comment-post_id", "columns": ["post_id"]}],
    )


# ===========================================================================
# Construction
# ===========================================================================


class TestConstruction:
    def test_columns_from_list_keep_order(self, post_table: TableStructure) -> None:
        assert list(post_table.columns) == ["id", "title"]
        assert isinstance(post_table.columns["id"], TableColumnInt)

    def test_columns_from_mapping_of_dicts(self) -> None:
        table = TableStructure(
            name="tag",
            columns={"id": {"type": "int"}, "label": {"type": "varchar", "size": 32}},
        )
        assert list(table.columns) == ["id", "label"]
        assert isinstance(table.columns["label"], TableColumnString)
        assert table.columns["label"].name == "label"

    def test_dialect_coerced(self) -> None:
        assert TableStructure(name="t", dialect="postgresql").dialect == Dialect.PGSQL
        assert TableStructure(name="t", dialect="nosuchdb").dialect == Dialect.GENERIC

    def test_default_dialect_is_generic(self) -> None:
        assert TableStructure(name="t").dialect == Dialect.GENERIC

    def test_foreign_key_without_name_keyed_by_position(self, make_table) -> None:
        table = make_table(
            [build_column("int", name="post_id")],
            foreign_keys=[{"columns": ["post_id"], "ref_table": "post", "ref_columns": ["id"]}],
        )
        assert list(table.foreign_keys) == ["0"]

    def test_indexes_keyed_by_name(self, comment_table: TableStructure) -> None:
        assert isinstance(comment_table.indexes["fk-comment-post_id"], TableIndex)

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TableStructure(name="")

    def test_unknown_pk_column_rejected(self, make_table) -> None:
        with pytest.raises(ValidationError, match="Primary key"):
            make_table([build_column("int", name="id")], pk=["uuid"])

    def test_unknown_fk_column_rejected(self, make_table) -> None:
        with pytest.raises(ValidationError, match="Foreign key 'fk-x'"):
            make_table(
                [build_column("int", name="id")],
                foreign_keys=[
                    {"name": "fk-x", "columns": ["nope"], "ref_table": "a", "ref_columns": ["id"]}
                ],
            )

    def test_unknown_index_column_rejected(self, make_table) -> None:
        with pytest.raises(ValidationError, match="Index 'idx'"):
            make_table([build_column("int", name="id")], indexes=[{"name": "idx", "columns": ["x"]}])

    def test_fk_column_parity_enforced(self) -> None:
        with pytest.raises(ValidationError):
            TableForeignKey(columns=["a", "b"], ref_table="t", ref_columns=["id"])


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_composite_pk(self, make_table) -> None:
        columns = [build_column("int", name="a"), build_column("int", name="b")]
        assert make_table(columns, pk=["a", "b"]).is_composite_pk()
        assert not make_table(columns, pk=["a"]).is_composite_pk()

    def test_is_append_pk_uses_own_dialect(self, make_table) -> None:
        table = make_table([build_column("int", name="id")], dialect="mssql")
        assert not table.is_append_pk("PRIMARY KEY")
        assert table.is_append_pk("PRIMARY KEY", dialect="mysql")

    def test_get_column(self, post_table: TableStructure) -> None:
        assert post_table.get_column("title") is post_table.columns["title"]
        assert post_table.get_column("missing") is None


# ===========================================================================
# Name rendering
# ===========================================================================


class TestNameRendering:
    def test_prefixed_name(self, post_table: TableStructure) -> None:
        assert post_table.render_name() == "{{%post}}"

    def test_db_prefix_is_stripped(self, make_table) -> None:
        table = make_table([build_column("int", name="id")], name="app_user", db_prefix="app_")
        assert table.render_name() == "{{%user}}"

    def test_without_prefix(self, make_table) -> None:
        table = make_table(
            [build_column("int", name="id")], name="app_user", db_prefix="app_", use_prefix=False
        )
        assert table.render_name() == "app_user"

    def test_ref_table_name(self, comment_table: TableStructure) -> None:
        fk = comment_table.foreign_keys["fk-comment-post_id"]
        assert comment_table.render_ref_table_name(fk) == "{{%post}}"


# ===========================================================================
# Statement rendering
# ===========================================================================


class TestStatementRendering:
    def test_render_table(self, post_table: TableStructure) -> None:
        assert post_table.render_table() == (
            "        $this->createTable('{{%post}}', [\n"
            "            'id' => $this->primaryKey(),\n"
            "            'title' => $this->string()->notNull(),\n"
            "        ]);"
        )

    def test_render_table_with_options(self, post_table: TableStructure) -> None:
        post_table.table_options_init = "$tableOptions = null;"
        post_table.table_options = "$tableOptions"
        assert post_table.render_table() == (
            "        $tableOptions = null;\n"
            "\n"
            "        $this->createTable('{{%post}}', [\n"
            "            'id' => $this->primaryKey(),\n"
            "            'title' => $this->string()->notNull(),\n"
            "        ], $tableOptions);"
        )

    def test_render_table_specific(self, post_table: TableStructure) -> None:
        post_table.general_schema = False
        assert post_table.render_table().splitlines()[1:3] == [
            "            'id' => $this->integer(11)->notNull()->append('AUTO_INCREMENT PRIMARY KEY'),",
            "            'title' => $this->string(255)->notNull(),",
        ]

    def test_render_pk_composite(self, make_table) -> None:
        table = make_table(
            [build_column("int", name="a"), build_column("int", name="b")], pk=["a", "b"]
        )
        assert table.render_pk() == (
            "\n        $this->addPrimaryKey('PRIMARYKEY', '{{%test}}', ['a', 'b']);"
        )

    def test_render_pk_named(self, make_table) -> None:
        table = TableStructure(
            name="test",
            primary_key={"name": "pk-test", "columns": ["a", "b"]},
            columns=[build_column("int", name="a"), build_column("int", name="b")],
        )
        assert "addPrimaryKey('pk-test'" in table.render_pk()

    def test_render_pk_single_column_is_empty(self, post_table: TableStructure) -> None:
        assert post_table.render_pk() == ""

    def test_render_indexes(self, make_table) -> None:
        table = make_table(
            [build_column("varchar", name="title"), build_column("int", name="status")],
            indexes=[
                {"name": "idx-test-title", "columns": ["title"], "unique": True},
                {"name": "idx-test-title-status", "columns": ["title", "status"]},
            ],
        )
        assert table.render_indexes() == (
            "\n        $this->createIndex('idx-test-title', '{{%test}}', 'title', true);"
            "\n        $this->createIndex('idx-test-title-status', '{{%test}}', "
            "['title', 'status']);"
        )

    def test_index_shadowed_by_foreign_key_is_skipped(self, comment_table: TableStructure) -> None:
        assert comment_table.render_indexes() == ""

    def test_render_foreign_keys(self, comment_table: TableStructure) -> None:
        assert comment_table.render_foreign_keys() == (
            "\n"
            "        $this->addForeignKey(\n"
            "            'fk-comment-post_id',\n"
            "            '{{%comment}}',\n"
            "            'post_id',\n"
            "            '{{%post}}',\n"
            "            'id',\n"
            "            'CASCADE'\n"
            "        );"
        )

    def test_foreign_key_update_only_passes_null_delete(self, make_table) -> None:
        table = make_table(
            [build_column("int", name="a"), build_column("int", name="b")],
            name="link",
            foreign_keys=[
                {
                    "columns": ["a", "b"],
                    "ref_table": "target",
                    "ref_columns": ["x", "y"],
                    "on_update": "CASCADE",
                }
            ],
        )
        assert table.render_foreign_keys() == (
            "\n"
            "        $this->addForeignKey(\n"
            "            'fk-link-a-b',\n"
            "            '{{%link}}',\n"
            "            ['a', 'b'],\n"
            "            '{{%target}}',\n"
            "            ['x', 'y'],\n"
            "            null,\n"
            "            'CASCADE'\n"
            "        );"
        )

    def test_numeric_fk_name_is_regenerated(self) -> None:
        fk = TableForeignKey(name="12", columns=["a"], ref_table="t", ref_columns=["id"])
        assert fk.render_name("link") == "fk-link-a"

    def test_render_concatenates_sections(self, comment_table: TableStructure) -> None:
        output = comment_table.render()
        assert output.startswith("        $this->createTable('{{%comment}}', [\n")
        assert output.endswith("        );\n")
        assert output.index("createTable") < output.index("addForeignKey")
        assert "createIndex" not in output

    def test_render_does_not_mutate(self, comment_table: TableStructure) -> None:
        before = comment_table.model_dump()
        first = comment_table.render()
        assert comment_table.render() == first
        assert comment_table.model_dump() == before


# ===========================================================================
# Single-statement helpers
# ===========================================================================


class TestColumnStatements:
    def test_add_column(self, make_table) -> None:
        two = build_column("int", name="two")
        table = make_table([build_column("int", name="one"), two], name="test_multiple")
        assert table.render_add_column(two) == (
            "        $this->addColumn('{{%test_multiple}}', 'two', $this->integer());"
        )

    def test_alter_column(self, post_table: TableStructure) -> None:
        assert post_table.render_alter_column(post_table.columns["title"]) == (
            "        $this->alterColumn('{{%post}}', 'title', $this->string()->notNull());"
        )

    def test_drop_column(self, post_table: TableStructure) -> None:
        assert post_table.render_drop_column("title") == (
            "        $this->dropColumn('{{%post}}', 'title');"
        )

    def test_drop_table(self, post_table: TableStructure) -> None:
        assert post_table.render_drop_table() == "        $this->dropTable('{{%post}}');"

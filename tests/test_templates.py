"""
tests/test_templates.py
Unit tests for migen.templates.MigrationTemplate.

Every test renders a complete migration file and checks the text
exactly or by its significant lines.
"""

from __future__ import annotations

import pytest

from migen.factory import build_column
from migen.models import DEFAULT_TABLE_OPTIONS_INIT, GenerationConfig
from migen.structure import TableStructure
from migen.templates import MigrationTemplate

CLASS_NAME: str = "m240105_093000_create_table_post"


@pytest.fixture()
def post_structure() -> TableStructure:
    return TableStructure(
        name="post",
        dialect="mysql",
        primary_key={"columns": ["id"]},
        columns=[
            build_column("int", name="id", size=11, is_not_null=True, auto_increment=True),
            build_column("varchar(255)", name="title", size=255, is_not_null=True),
        ],
        table_options_init=DEFAULT_TABLE_OPTIONS_INIT,
        table_options="$tableOptions",
    )


class TestRenderCreate:
    def test_full_file(self, post_structure: TableStructure) -> None:
        expected: str = (
            "<?php\n"
            "\n"
            "use yii\\db\\Migration;\n"
            "\n"
            "class m240105_093000_create_table_post extends Migration\n"
            "{\n"
            "    public function up()\n"
            "    {\n"
            "        $tableOptions = null;\n"
            "        if ($this->db->driverName === 'mysql') {\n"
            "            $tableOptions = 'CHARACTER SET utf8 COLLATE utf8_unicode_ci ENGINE=InnoDB';\n"
            "        }\n"
            "\n"
            "        $this->createTable('{{%post}}', [\n"
            "            'id' => $this->primaryKey(),\n"
            "            'title' => $this->string()->notNull(),\n"
            "        ], $tableOptions);\n"
            "    }\n"
            "\n"
            "    public function down()\n"
            "    {\n"
            "        $this->dropTable('{{%post}}');\n"
            "    }\n"
            "}\n"
        )
        assert MigrationTemplate().render_create(post_structure, CLASS_NAME) == expected

    def test_namespace_line(self, post_structure: TableStructure) -> None:
        template = MigrationTemplate(GenerationConfig(namespace="app/migrations/"))
        lines = template.render_create(post_structure, CLASS_NAME).splitlines()
        assert lines[:5] == [
            "<?php",
            "",
            "namespace app\\migrations;",
            "",
            "use yii\\db\\Migration;",
        ]

    def test_no_namespace_by_default(self, post_structure: TableStructure) -> None:
        assert "namespace" not in MigrationTemplate().render_create(post_structure, CLASS_NAME)

    def test_composite_pk_and_foreign_keys_inside_up(self) -> None:
        structure = TableStructure(
            name="post_tag",
            primary_key={"columns": ["post_id", "tag"]},
            columns=[
                build_column("bigint", name="post_id", is_not_null=True),
                build_column("varchar", name="tag", is_not_null=True),
            ],
            foreign_keys=[
                {"columns": ["post_id"], "ref_table": "post", "ref_columns": ["id"]}
            ],
        )
        content = MigrationTemplate().render_create(structure, "m240105_093000_create_table_post_tag")
        up, down = content.split("public function down()")
        assert "$this->addPrimaryKey('PRIMARYKEY', '{{%post_tag}}', ['post_id', 'tag']);" in up
        assert "'fk-post_tag-post_id'," in up
        assert "dropTable" in down
        assert "'post_id' => $this->bigInteger()->notNull()," in up

    def test_ends_with_single_newline(self, post_structure: TableStructure) -> None:
        content = MigrationTemplate().render_create(post_structure, CLASS_NAME)
        assert content.endswith("}\n")
        assert not content.endswith("\n\n")


class TestRenderAddColumns:
    def test_add_columns(self) -> None:
        one = build_column("int", name="one")
        two = build_column("varchar", name="two", size=32, is_not_null=True)
        structure = TableStructure(name="test_multiple", columns=[one, two])
        content = MigrationTemplate().render_add_columns(
            structure, [one, two], "m240105_093000_update_table_test_multiple"
        )
        assert (
            "    public function up()\n"
            "    {\n"
            "        $this->addColumn('{{%test_multiple}}', 'one', $this->integer());\n"
            "        $this->addColumn('{{%test_multiple}}', 'two', $this->string()->notNull());\n"
            "    }\n"
        ) in content
        assert (
            "    public function down()\n"
            "    {\n"
            "        $this->dropColumn('{{%test_multiple}}', 'two');\n"
            "        $this->dropColumn('{{%test_multiple}}', 'one');\n"
            "    }\n"
        ) in content
        assert "class m240105_093000_update_table_test_multiple extends Migration" in content

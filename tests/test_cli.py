"""
tests/test_cli.py
End-to-end tests for the ``migen`` command line.

``cli_main`` always terminates through ``sys.exit``; every test checks the
exit code and, where relevant, the files and report printed.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from migen.cli import (
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


def _write_schema(path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    path.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    return path


class TestGeneration:
    def test_generates_files(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(schema_yaml_path), "-o", str(output_dir), "-q"])
        assert code == EXIT_SUCCESS
        names = sorted(p.name for p in output_dir.iterdir())
        assert len(names) == 4
        assert all(n.endswith(".php") for n in names)
        assert any(n.endswith("_create_table_post_tag.php") for n in names)

    def test_dry_run_prints_migrations(
        self,
        schema_yaml_path: pathlib.Path,
        output_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-s", str(schema_yaml_path), "-o", str(output_dir), "--dry-run", "-q"])
        assert code == EXIT_SUCCESS
        assert list(output_dir.iterdir()) == []
        out = capsys.readouterr().out
        assert "Migen - Migration Generation Report" in out
        assert "$this->createTable('{{%user}}', [" in out

    def test_table_filter_and_specific_mode(
        self,
        schema_yaml_path: pathlib.Path,
        output_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(
            [
                "-s", str(schema_yaml_path),
                "-o", str(output_dir),
                "-t", "user",
                "--specific",
                "--dialect", "sqlite",
                "--dry-run",
                "-q",
            ]
        )
        assert code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "'id' => $this->integer(11)->notNull()->append('PRIMARY KEY AUTOINCREMENT')," in out
        assert "create_table_post" not in out

    def test_prefix_and_namespace_overrides(
        self,
        schema_yaml_path: pathlib.Path,
        output_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(
            [
                "-s", str(schema_yaml_path),
                "-o", str(output_dir),
                "-t", "user",
                "--no-prefix",
                "--namespace", "console\\migrations",
                "--dry-run",
                "-q",
            ]
        )
        assert code == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "namespace console\\migrations;" in out
        assert "$this->createTable('user', [" in out

    def test_unknown_table_is_generation_error(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(schema_yaml_path), "-o", str(output_dir), "-t", "ghost", "-q"])
        assert code == EXIT_GENERATION_ERROR

    def test_validation_error_exit_code(
        self,
        tmp_path: pathlib.Path,
        output_dir: pathlib.Path,
        minimal_schema_dict: Dict[str, Any],
    ) -> None:
        minimal_schema_dict["tables"].append(dict(minimal_schema_dict["tables"][0]))
        path = _write_schema(tmp_path / "dup.yaml", minimal_schema_dict)
        assert _run(["-s", str(path), "-o", str(output_dir), "-q"]) == EXIT_VALIDATION_ERROR
        assert list(output_dir.iterdir()) == []

    def test_no_strict_generates_anyway(
        self,
        tmp_path: pathlib.Path,
        output_dir: pathlib.Path,
        minimal_schema_dict: Dict[str, Any],
    ) -> None:
        minimal_schema_dict["tables"][0]["columns"][1]["name"] = "bad'name"
        path = _write_schema(tmp_path / "bad.yaml", minimal_schema_dict)
        code = _run(["-s", str(path), "-o", str(output_dir), "--no-strict", "-q"])
        assert code == EXIT_VALIDATION_ERROR
        assert len(list(output_dir.iterdir())) == 1

    def test_fail_on_warnings(
        self,
        tmp_path: pathlib.Path,
        output_dir: pathlib.Path,
        minimal_schema_dict: Dict[str, Any],
    ) -> None:
        minimal_schema_dict["config"]["table_options_init"] = None
        path = _write_schema(tmp_path / "warn.yaml", minimal_schema_dict)
        assert _run(["-s", str(path), "-o", str(output_dir), "-q"]) == EXIT_SUCCESS
        for existing in output_dir.iterdir():
            existing.unlink()
        code = _run(["-s", str(path), "-o", str(output_dir), "--fail-on-warnings", "-q"])
        assert code == EXIT_VALIDATION_ERROR


class TestValidateOnly:
    def test_valid_schema(
        self, schema_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["-s", str(schema_yaml_path), "--validate-only", "-q"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Schema Validation Report" in out
        assert "Valid:    Yes" in out

    def test_invalid_schema(
        self,
        tmp_path: pathlib.Path,
        minimal_schema_dict: Dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        minimal_schema_dict["tables"].append(dict(minimal_schema_dict["tables"][0]))
        path = _write_schema(tmp_path / "dup.yaml", minimal_schema_dict)
        assert _run(["-s", str(path), "--validate-only", "-q"]) == EXIT_VALIDATION_ERROR
        assert "DUPLICATE_TABLE_NAME" in capsys.readouterr().out

    def test_unparseable_schema(self, tmp_path: pathlib.Path) -> None:
        path = _write_schema(tmp_path / "empty.yaml", {"config": {}})
        assert _run(["-s", str(path), "--validate-only", "-q"]) == EXIT_INPUT_ERROR


class TestArguments:
    def test_missing_schema_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["-s", str(tmp_path / "nope.yaml"), "-q"]) == EXIT_INPUT_ERROR

    def test_schema_is_required(self) -> None:
        assert _run([]) == 2

    def test_general_and_specific_are_exclusive(self, schema_yaml_path: pathlib.Path) -> None:
        assert _run(["-s", str(schema_yaml_path), "--general", "--specific"]) == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert "Migen v1.0.0" in capsys.readouterr().out

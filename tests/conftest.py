"""
tests/conftest.py
Shared fixtures for the migen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import logging
import pathlib
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml

from migen.columns import TableColumn
from migen.factory import build_column
from migen.structure import TableStructure


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_migen_logger() -> Any:
    """Undo the handler set up by CLI runs so caplog sees migen records."""
    yield
    migen_logger = logging.getLogger("migen")
    migen_logger.handlers.clear()
    migen_logger.setLevel(logging.NOTSET)
    migen_logger.propagate = True


# ---------------------------------------------------------------------------
# Structure builders
# ---------------------------------------------------------------------------


TableFactory = Callable[..., TableStructure]


@pytest.fixture()
def make_table() -> TableFactory:
    """
    Build a ``TableStructure`` around the given columns.

    ``pk`` lists the primary key columns; the remaining keyword arguments
    go to ``TableStructure`` (``dialect``, ``general_schema``...).
    """

    def _make(
        columns: List[TableColumn],
        pk: Optional[List[str]] = None,
        name: str = "test",
        **kwargs: Any,
    ) -> TableStructure:
        kwargs.setdefault("dialect", "mysql")
        return TableStructure(
            name=name,
            primary_key={"columns": pk or []},
            columns=columns,
            **kwargs,
        )

    return _make


@pytest.fixture()
def render_column(make_table: TableFactory) -> Callable[..., str]:
    """Render a single column's builder chain inside a one-column table."""

    def _render(column: TableColumn, pk: bool = False, **kwargs: Any) -> str:
        table = make_table([column], pk=[column.name] if pk else None, **kwargs)
        return column.render_definition(table)

    return _render


@pytest.fixture()
def int_pk_column() -> TableColumn:
    return build_column("int", name="id", size=11, is_not_null=True, auto_increment=True)


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


@pytest.fixture()
def minimal_schema_dict() -> Dict[str, Any]:
    """Smallest valid dump: one table with an auto-incremented integer key."""
    return {
        "config": {"dialect": "mysql", "general_schema": True},
        "tables": [
            {
                "name": "post",
                "columns": [
                    {
                        "name": "id",
                        "type": "int",
                        "size": 11,
                        "allow_null": False,
                        "is_primary_key": True,
                        "auto_increment": True,
                    },
                    {"name": "title", "type": "varchar(255)", "size": 255, "allow_null": False},
                ],
            }
        ],
    }


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "migrations"
    path.mkdir()
    return path

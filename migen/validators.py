# File: migen/validators.py
"""
Migen - Structure & Configuration Validators
=============================================
Pydantic enforces per-model correctness when structures are built (foreign
key column parity, referenced columns existing in their own table).  This
module adds **cross-entity checks** over the whole dump: duplicate tables,
foreign keys pointing at tables or columns missing from the dump, tables
without primary keys, unsupported column types, FK dependency cycles and
configuration sanity.

Findings are collected into a ``ValidationResult``; nothing is raised.

Usage:
    from migen.validators import validate_full
    result = validate_full(structures, config)
    if not result.is_valid:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Set

from migen.columns import TableColumnPK, TableColumnUnsupported
from migen.models import GenerationConfig
from migen.structure import TableStructure
from migen.utils import is_valid_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight finding descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


_QUOTE_RE: re.Pattern[str] = re.compile(r"['\\]")


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------


def table_dependencies(structures: Sequence[TableStructure]) -> Dict[str, Set[str]]:
    """
    Map each table to the tables of the dump it references by foreign key.

    Self references and references to tables outside the dump are left out.
    """
    names: Set[str] = {s.name for s in structures}
    return {
        s.name: {
            fk.ref_table
            for fk in s.foreign_keys.values()
            if fk.ref_table in names and fk.ref_table != s.name
        }
        for s in structures
    }


def unresolved_tables(dependencies: Dict[str, Set[str]]) -> List[str]:
    """Tables that Kahn's algorithm cannot order, i.e. members of FK cycles."""
    remaining: Dict[str, Set[str]] = {k: set(v) for k, v in dependencies.items()}
    ready: Deque[str] = deque(name for name, deps in remaining.items() if not deps)
    resolved: Set[str] = set()
    while ready:
        name: str = ready.popleft()
        resolved.add(name)
        for other, deps in remaining.items():
            if name in deps:
                deps.discard(name)
                if not deps and other not in resolved and other not in ready:
                    ready.append(other)
    return [name for name in dependencies if name not in resolved]


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_table_names(structures: Sequence[TableStructure]) -> ValidationResult:
    """Duplicate table names, quote characters, unusual identifiers."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for table in structures:
        ctx: Dict[str, Any] = {"table": table.name}
        if table.name in seen:
            result.add_error(
                "DUPLICATE_TABLE_NAME",
                f"Table name '{table.name}' is defined more than once.",
                ctx,
            )
        seen.add(table.name)

        if _QUOTE_RE.search(table.name):
            result.add_error(
                "TABLE_NAME_QUOTE",
                f"Table name '{table.name}' contains a quote or backslash.",
                ctx,
            )
        elif not is_valid_identifier(table.name):
            result.add_warning(
                "TABLE_NAME_NOT_IDENTIFIER",
                f"Table name '{table.name}' is not a plain identifier.",
                ctx,
            )
    return result


def validate_column_names(structures: Sequence[TableStructure]) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for table in structures:
        for name in table.columns:
            ctx: Dict[str, Any] = {"table": table.name, "column": name}
            if _QUOTE_RE.search(name):
                result.add_error(
                    "COLUMN_NAME_QUOTE",
                    f"Column '{name}' in table '{table.name}' contains a quote or backslash.",
                    ctx,
                )
            elif not is_valid_identifier(name):
                result.add_warning(
                    "COLUMN_NAME_NOT_IDENTIFIER",
                    f"Column '{name}' in table '{table.name}' is not a plain identifier.",
                    ctx,
                )
    return result


def validate_primary_keys(structures: Sequence[TableStructure]) -> ValidationResult:
    """Tables without a primary key and nullable key columns."""
    result: ValidationResult = ValidationResult()
    for table in structures:
        if not table.primary_key.columns:
            result.add_warning(
                "MISSING_PRIMARY_KEY",
                f"Table '{table.name}' has no primary key.",
                {"table": table.name},
            )
            continue
        for name in table.primary_key.columns:
            column = table.columns[name]
            if not column.is_not_null and not isinstance(column, TableColumnPK):
                result.add_warning(
                    "NULLABLE_PRIMARY_KEY",
                    f"Primary key column '{name}' in table '{table.name}' is nullable.",
                    {"table": table.name, "column": name},
                )
    return result


def validate_foreign_keys(structures: Sequence[TableStructure]) -> ValidationResult:
    """
    Foreign key targets.

    A referenced table missing from the dump is only a warning (it may
    already exist in the target database); a referenced column missing from
    a table that *is* in the dump is an error.
    """
    result: ValidationResult = ValidationResult()
    by_name: Dict[str, TableStructure] = {s.name: s for s in structures}

    for table in structures:
        for fk in table.foreign_keys.values():
            fk_name: str = fk.render_name(table.name)
            ctx: Dict[str, Any] = {"table": table.name, "foreign_key": fk_name}
            target: Optional[TableStructure] = by_name.get(fk.ref_table)
            if target is None:
                result.add_warning(
                    "FK_TARGET_TABLE_MISSING",
                    f"Foreign key '{fk_name}' references table '{fk.ref_table}' "
                    f"which is not part of the dump.",
                    ctx,
                )
                continue
            missing: List[str] = [c for c in fk.ref_columns if c not in target.columns]
            if missing:
                result.add_error(
                    "FK_TARGET_COLUMN_MISSING",
                    f"Foreign key '{fk_name}' references unknown columns "
                    f"{missing} of table '{fk.ref_table}'.",
                    ctx,
                )
    return result


def validate_indexes(structures: Sequence[TableStructure]) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for table in structures:
        fk_names: Set[Optional[str]] = {fk.name for fk in table.foreign_keys.values()}
        for index in table.indexes.values():
            if index.name in fk_names:
                result.add_info(
                    "INDEX_SHADOWED_BY_FK",
                    f"Index '{index.name}' of table '{table.name}' shares its name "
                    f"with a foreign key and is not rendered.",
                    {"table": table.name, "index": index.name},
                )
    return result


def validate_column_types(structures: Sequence[TableStructure]) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for table in structures:
        for column in table.columns.values():
            if isinstance(column, TableColumnUnsupported):
                result.add_warning(
                    "UNSUPPORTED_COLUMN_TYPE",
                    f"Column '{column.name}' in table '{table.name}' has type "
                    f"'{column.type}' without a dedicated builder method.",
                    {"table": table.name, "column": column.name, "type": column.type},
                )
    return result


def validate_circular_dependencies(structures: Sequence[TableStructure]) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    cyclic: List[str] = unresolved_tables(table_dependencies(structures))
    if cyclic:
        result.add_warning(
            "FK_DEPENDENCY_CYCLE",
            f"Tables {cyclic} reference each other in a cycle; "
            f"they keep declaration order.",
            {"tables": cyclic},
        )
    return result


def validate_generation_config(config: GenerationConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if config.db_prefix and not config.use_table_prefix:
        result.add_warning(
            "DB_PREFIX_UNUSED",
            f"db_prefix '{config.db_prefix}' is ignored while use_table_prefix is off.",
        )
    if (
        config.table_options is not None
        and config.table_options.startswith("$")
        and not config.table_options_init
    ):
        result.add_warning(
            "TABLE_OPTIONS_UNDEFINED",
            f"table_options refers to '{config.table_options}' but no "
            f"table_options_init defines it.",
        )
    return result


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def validate_structures(structures: Sequence[TableStructure]) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    checks: List[Callable[[Sequence[TableStructure]], ValidationResult]] = [
        validate_table_names,
        validate_column_names,
        validate_primary_keys,
        validate_foreign_keys,
        validate_indexes,
        validate_column_types,
        validate_circular_dependencies,
    ]
    for check in checks:
        logger.debug("Running validator: %s", check.__name__)
        result.merge(check(structures))
    return result


def validate_full(
    structures: Sequence[TableStructure],
    config: GenerationConfig,
) -> ValidationResult:
    """
    **Master validation entry point** used by the generator and the CLI.
    """
    logger.info(
        "Starting validation of %d tables (dialect=%s).",
        len(structures),
        config.dialect.value,
    )
    result: ValidationResult = ValidationResult()
    result.merge(validate_structures(structures))
    result.merge(validate_generation_config(config))

    if result.has_errors:
        logger.error("Validation FAILED. %s", result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "table_dependencies",
    "unresolved_tables",
    "validate_table_names",
    "validate_column_names",
    "validate_primary_keys",
    "validate_foreign_keys",
    "validate_indexes",
    "validate_column_types",
    "validate_circular_dependencies",
    "validate_generation_config",
    "validate_structures",
    "validate_full",
]

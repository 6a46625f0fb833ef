# File: migen/generator.py
"""
Migen - Migration Generation Pipeline
======================================
Connects the phases of migration generation:

    Schema dump → TableStructure → Validation → Ordering → Rendering → Files

A schema dump is a JSON or YAML document holding introspection records::

    config:
      dialect: mysql
      general_schema: false
    tables:
      - name: post
        columns:
          - {name: id, type: int, size: 11, allow_null: false,
             is_primary_key: true, auto_increment: true}
          - {name: title, type: varchar(255), size: 255, allow_null: false}
        indexes:
          - {name: idx-title, columns: [title], unique: true}
        foreign_keys: []

Error handling strategy:
    - Input problems raise ``ValueError`` / ``FileNotFoundError`` from the
      loader and parser functions.
    - ``MigrationGenerator.generate_from_file`` records every failure in the
      returned ``GenerationReport`` instead of raising.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import yaml

from migen.factory import ColumnFactory
from migen.models import DefaultValue, GenerationConfig, TableForeignKey, TableIndex, TablePrimaryKey
from migen.structure import TableStructure
from migen.templates import MigrationTemplate
from migen.utils import Timer, count_lines, migration_class_name, write_file
from migen.validators import ValidationResult, table_dependencies, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.generator")

# Introspection record keys → column model attributes.
_COLUMN_KEYS: Dict[str, str] = {
    "name": "name",
    "type": "type",
    "size": "size",
    "precision": "precision",
    "scale": "scale",
    "check": "check",
    "is_primary_key": "is_primary_key",
    "auto_increment": "auto_increment",
    "unsigned": "is_unsigned",
    "comment": "comment",
    "append": "append",
}
_CONFIG_KEYS: Tuple[str, ...] = ("config", "generation_config", "generator_config")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``MigrationGenerator.generate_from_file()``."""

    success: bool = False
    output_directory: str = ""
    dry_run: bool = False

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)

    # Rendered migrations, filename → content
    files: Dict[str, str] = field(default_factory=dict)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append("=" * 60)
        lines.append("  Migen - Migration Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}{' (dry run)' if self.dry_run else ''}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<22s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        sections: List[Tuple[str, List[str], str]] = [
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
            ("Skipped Tables", self.skipped_tables, "⊘"),
            ("Skipped Files", self.skipped_files, "⊘"),
        ]
        for title, items, icon in sections:
            if items:
                lines.append("─" * 60)
                lines.append(f"  {title} ({len(items)}):")
                for item in items:
                    lines.append(f"    {icon} {item}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema dump file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# Introspection records → TableStructure
# ---------------------------------------------------------------------------


def _build_indexes(raw_indexes: Sequence[Dict[str, Any]]) -> List[TableIndex]:
    """Non-primary indexes; primary indexes duplicate the primary key."""
    return [
        TableIndex(
            name=raw["name"],
            columns=list(raw.get("columns") or []),
            unique=bool(raw.get("unique", False)),
        )
        for raw in raw_indexes
        if not raw.get("primary", False)
    ]


def _column_configuration(raw: Dict[str, Any], unique_columns: Set[str]) -> Dict[str, Any]:
    configuration: Dict[str, Any] = {
        target: raw[key] for key, target in _COLUMN_KEYS.items() if key in raw
    }
    unknown: Set[str] = set(raw) - set(_COLUMN_KEYS) - {
        "allow_null",
        "default",
        "default_expression",
        "length",
    }
    if unknown:
        logger.warning(
            "Column '%s': ignoring unknown keys %s.", raw.get("name"), sorted(unknown)
        )

    configuration["is_not_null"] = None if raw.get("allow_null", True) else True
    configuration["is_unique"] = raw.get("name") in unique_columns
    if raw.get("default_expression") is not None:
        configuration["default"] = DefaultValue.expression(str(raw["default_expression"]))
    elif raw.get("default") is not None:
        configuration["default"] = DefaultValue.literal(raw["default"])
    return configuration


def build_table_structure(raw_table: Dict[str, Any], config: GenerationConfig) -> TableStructure:
    """
    Build a ``TableStructure`` from one table's introspection records.

    Raises:
        ValueError: On missing names or types and on referential integrity
            violations.
    """
    name: Any = raw_table.get("name")
    if not name:
        raise ValueError("Table record without a name.")

    indexes: List[TableIndex] = _build_indexes(raw_table.get("indexes") or [])
    unique_columns: Set[str] = {i.columns[0] for i in indexes if i.is_single_unique()}

    columns: List[Any] = []
    for raw_column in raw_table.get("columns") or []:
        column = ColumnFactory.build(_column_configuration(raw_column, unique_columns))
        if raw_column.get("length") is not None:
            column.set_length(raw_column["length"])
        columns.append(column)

    raw_pk: Any = raw_table.get("primary_key")
    if isinstance(raw_pk, dict):
        primary_key = TablePrimaryKey.model_validate(raw_pk)
    elif isinstance(raw_pk, (list, tuple)):
        primary_key = TablePrimaryKey(columns=list(raw_pk))
    else:
        primary_key = TablePrimaryKey(columns=[c.name for c in columns if c.is_primary_key])

    foreign_keys: List[TableForeignKey] = [
        TableForeignKey.model_validate(raw_fk) for raw_fk in raw_table.get("foreign_keys") or []
    ]

    structure: TableStructure = TableStructure(
        name=name,
        dialect=config.dialect,
        general_schema=config.general_schema,
        use_prefix=config.use_table_prefix,
        db_prefix=config.db_prefix,
        primary_key=primary_key,
        columns=columns,
        foreign_keys=foreign_keys,
        indexes=indexes,
        table_options_init=config.table_options_init,
        table_options=config.table_options,
    )
    logger.debug("Built %r.", structure)
    return structure


def apply_config_overrides(raw: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge *overrides* into the dump's config section, in place."""
    if overrides:
        key: str = next((k for k in _CONFIG_KEYS if k in raw), _CONFIG_KEYS[0])
        raw[key] = {**(raw.get(key) or {}), **overrides}
    return raw


def parse_raw_schema(raw: Dict[str, Any]) -> Tuple[List[TableStructure], GenerationConfig]:
    """
    Parse a raw dump (from JSON/YAML) into table structures and config.

    Expected top-level keys:
        - "tables": list of table records
        - "config" (or "generation_config"): generation settings

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    tables: Any = raw.get("tables")
    if not isinstance(tables, list):
        raise ValueError("Cannot find table records in input. Expected top-level key 'tables'.")

    config_data: Dict[str, Any] = {}
    for key in _CONFIG_KEYS:
        if key in raw:
            config_data = raw[key] or {}
            break
    else:
        logger.info("No generation config found in input — using defaults.")

    try:
        config: GenerationConfig = GenerationConfig.model_validate(config_data)
    except ValueError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    structures: List[TableStructure] = []
    for raw_table in tables:
        try:
            structures.append(build_table_structure(raw_table, config))
        except ValueError as exc:
            raise ValueError(
                f"Table '{raw_table.get('name', '?')}' validation failed: {exc}"
            ) from exc
    return structures, config


def order_tables(structures: Sequence[TableStructure]) -> List[TableStructure]:
    """
    Order tables so that every table follows the tables it references.

    Kahn's algorithm, stable with respect to declaration order.  Tables
    caught in a reference cycle are appended in declaration order.
    """
    dependencies: Dict[str, Set[str]] = table_dependencies(structures)
    ordered: List[TableStructure] = []
    placed_names: Set[str] = set()
    placed: Set[int] = set()

    progress: bool = True
    while progress:
        progress = False
        for position, structure in enumerate(structures):
            if position in placed or not dependencies[structure.name] <= placed_names:
                continue
            ordered.append(structure)
            placed.add(position)
            placed_names.add(structure.name)
            progress = True

    leftovers: List[TableStructure] = [
        s for position, s in enumerate(structures) if position not in placed
    ]
    if leftovers:
        logger.warning(
            "Foreign key cycle between tables %s — keeping declaration order.",
            [s.name for s in leftovers],
        )
        ordered.extend(leftovers)
    return ordered


# ---------------------------------------------------------------------------
# MigrationGenerator — orchestrator
# ---------------------------------------------------------------------------


class MigrationGenerator:
    """
    Renders create-table migrations for a set of table structures.

    Usage::

        generator = MigrationGenerator(config)
        files = generator.generate(structures)

        report = MigrationGenerator().generate_from_file(Path("schema.yaml"))
        print(report.summary())

    The generator is reusable; create once, call ``generate()`` many times.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        moment: Optional[datetime] = None,
    ) -> None:
        """
        Args:
            config: Generation settings (defaults when omitted).
            strict_validation: Abort before rendering on validation errors.
            fail_on_warnings: Treat validation warnings as errors.
            moment: Timestamp used for class names (now when omitted).
        """
        self._config: GenerationConfig = config or GenerationConfig()
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._moment: Optional[datetime] = moment

    @property
    def config(self) -> GenerationConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public: in-memory generation
    # -----------------------------------------------------------------

    def generate(self, structures: Sequence[TableStructure]) -> Dict[str, str]:
        """
        One create-table migration per structure, in FK dependency order.

        Returns a dict of ``<class name>.php`` → file content.
        """
        moment: datetime = self._moment or datetime.now()
        template: MigrationTemplate = MigrationTemplate(self._config)
        files: Dict[str, str] = {}
        for offset, structure in enumerate(order_tables(structures)):
            class_name: str = migration_class_name(structure.name, moment, offset)
            files[f"{class_name}.php"] = template.render_create(structure, class_name)
        logger.info("Rendered %d migration(s).", len(files))
        return files

    # -----------------------------------------------------------------
    # Public: file pipeline
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Optional[Path] = None,
        *,
        dry_run: bool = False,
        tables: Optional[Sequence[str]] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load dump → parse → validate → render → write.

        Args:
            schema_path: Path to the JSON/YAML schema dump.
            output_dir: Target directory (``config.migration_path`` when omitted).
            dry_run: Render but do not write files.
            tables: Only generate these tables (all when omitted).
            config_overrides: Values replacing the dump's config section.
        """
        report: GenerationReport = GenerationReport(dry_run=dry_run)
        pipeline_start: float = time.perf_counter()

        # Step 1: Load
        with Timer("load_schema") as t_load:
            try:
                raw_data: Dict[str, Any] = load_schema_file(Path(schema_path))
            except (FileNotFoundError, ValueError) as exc:
                raw_data = {}
                report.generation_errors.append(str(exc))
        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Schema File",
            success=not report.generation_errors,
            elapsed_seconds=t_load.elapsed,
            detail=report.generation_errors[-1] if report.generation_errors
            else f"from {Path(schema_path).name}",
        ))
        if report.generation_errors:
            return self._finalise_report(report, pipeline_start)

        # Step 2: Parse
        with Timer("parse_schema") as t_parse:
            try:
                apply_config_overrides(raw_data, config_overrides or {})
                structures, config = parse_raw_schema(raw_data)
            except ValueError as exc:
                report.generation_errors.append(str(exc))
        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Schema",
            success=not report.generation_errors,
            elapsed_seconds=t_parse.elapsed,
            detail=report.generation_errors[-1] if report.generation_errors
            else f"{len(structures)} tables parsed",
        ))
        if report.generation_errors:
            return self._finalise_report(report, pipeline_start)

        self._config = config
        if tables:
            wanted: Set[str] = set(tables)
            report.skipped_tables.extend(s.name for s in structures if s.name not in wanted)
            missing: List[str] = sorted(wanted - {s.name for s in structures})
            if missing:
                report.generation_errors.append(f"Tables not found in the dump: {missing}")
                return self._finalise_report(report, pipeline_start)
            structures = [s for s in structures if s.name in wanted]

        target: Path = Path(output_dir if output_dir is not None else config.migration_path)
        report.output_directory = str(target.resolve())

        # Step 3: Validate
        if not self._step_validate(structures, report) and self._strict_validation:
            return self._finalise_report(report, pipeline_start)

        # Step 4: Render
        with Timer("render") as t_render:
            try:
                report.files = self.generate(structures)
            except ValueError as exc:
                report.generation_errors.append(f"Rendering failed: {exc}")
        report.total_tables_processed = len(structures)
        report.total_lines = sum(count_lines(c) for c in report.files.values())
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Migrations",
            success=not report.generation_errors,
            elapsed_seconds=t_render.elapsed,
            detail=f"{len(report.files)} files, ~{report.total_lines:,} lines",
        ))
        if report.generation_errors:
            return self._finalise_report(report, pipeline_start)

        # Step 5: Write
        if dry_run:
            report.total_files = len(report.files)
            report.total_bytes = sum(len(c.encode("utf-8")) for c in report.files.values())
            logger.info("Dry run: %d file(s) not written.", len(report.files))
        else:
            self._step_write(target, report)

        return self._finalise_report(report, pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_validate(
        self, structures: Sequence[TableStructure], report: GenerationReport
    ) -> bool:
        """Run validation; True when generation may proceed."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(structures, self._config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"
        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Structures",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False
        if result.has_warnings:
            for warn in result.warnings:
                logger.warning("  ⚠ %s", warn)
            if self._fail_on_warnings:
                report.validation_errors.append("Validation warnings treated as errors.")
                return False
        return True

    def _step_write(self, target: Path, report: GenerationReport) -> None:
        with Timer("write") as t:
            for filename, content in report.files.items():
                path: Path = target / filename
                if path.exists() and not self._config.overwrite_existing:
                    report.skipped_files.append(filename)
                    logger.warning("Migration %s exists — skipped.", path)
                    continue
                try:
                    report.total_bytes += write_file(path, content)
                    report.total_files += 1
                except OSError as exc:
                    report.export_errors.append(f"{filename}: {exc}")
                    logger.error("Could not write %s: %s", path, exc)

        report.step_metrics.append(GenerationStepMetric(
            step_name="Write Files",
            success=not report.export_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_files} files, {report.total_bytes:,} bytes",
        ))

    def _finalise_report(self, report: GenerationReport, pipeline_start: float) -> GenerationReport:
        """Set final status and timing on the report."""
        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        return report


def generate_from_file(
    schema_path: Path,
    output_dir: Optional[Path] = None,
    dry_run: bool = False,
) -> GenerationReport:
    """Module-level shortcut for ``MigrationGenerator().generate_from_file()``."""
    return MigrationGenerator().generate_from_file(schema_path, output_dir, dry_run=dry_run)


__all__: List[str] = [
    "GenerationReport",
    "GenerationStepMetric",
    "MigrationGenerator",
    "apply_config_overrides",
    "build_table_structure",
    "generate_from_file",
    "load_schema_file",
    "order_tables",
    "parse_raw_schema",
]

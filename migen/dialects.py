# File: migen/dialects.py
"""
Migen - Dialect Strategy Table
===============================
Everything that differs between database dialects when a column is
rendered lives here, in one lookup table keyed by ``Dialect``:

    - the append text marking a column as (auto-incremented) primary key,
    - the keywords that identify such an append,
    - the keywords stripped when primary key semantics are removed.

Unknown dialects use the MySQL/CUBRID branch.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from migen.models import Dialect

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("migen.dialects")

_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s+")

PRIMARY_KEY: str = "PRIMARY KEY"


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DialectRules:
    """Primary key and auto-increment idioms of one dialect."""

    pk_prefix: str = ""
    auto_increment: str = ""
    auto_increment_first: bool = False
    pk_markers: Tuple[str, ...] = (PRIMARY_KEY,)
    strip_keywords: Tuple[str, ...] = (PRIMARY_KEY,)

    def schema_append(self, primary_key: bool, auto_increment: bool) -> Optional[str]:
        """Append text for the given primary key / auto-increment combination."""
        parts: List[str] = []
        if primary_key:
            parts.append(f"{self.pk_prefix} {PRIMARY_KEY}".strip())
        if auto_increment and self.auto_increment:
            if self.auto_increment_first:
                parts.insert(0, self.auto_increment)
            else:
                parts.append(self.auto_increment)
        append: str = " ".join(parts)
        return append or None

    def is_append_pk(self, append: Optional[str]) -> bool:
        if not append:
            return False
        upper: str = normalize_append(append)
        return all(marker in upper for marker in self.pk_markers)

    def remove_pk(self, append: Optional[str]) -> Optional[str]:
        """
        Upper-cased *append* without primary key and auto-increment keywords.

        None when *append* carries no primary key for this dialect or when
        nothing is left after stripping.
        """
        if not self.is_append_pk(append):
            return None
        return self.strip_pk(normalize_append(append))

    def strip_pk(self, append: Optional[str]) -> Optional[str]:
        """Drop primary key keywords from *append*, keeping the letter case of the rest."""
        if not append:
            return None
        remainder: str = append
        for keyword in self.strip_keywords:
            remainder = _keyword_pattern(keyword).sub(" ", remainder)
        remainder = _WHITESPACE_RE.sub(" ", remainder).strip()
        return remainder or None


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    words: str = r"\s+".join(re.escape(word) for word in keyword.split())
    return re.compile(rf"\b{words}\b", re.IGNORECASE)


_MYSQL_RULES: DialectRules = DialectRules(
    auto_increment="AUTO_INCREMENT",
    auto_increment_first=True,
    strip_keywords=(PRIMARY_KEY, "AUTO_INCREMENT"),
)

DIALECT_RULES: Dict[Dialect, DialectRules] = {
    Dialect.MSSQL: DialectRules(
        pk_prefix="IDENTITY",
        pk_markers=("IDENTITY", PRIMARY_KEY),
        strip_keywords=(PRIMARY_KEY, "IDENTITY"),
    ),
    Dialect.PGSQL: DialectRules(),
    Dialect.OCI: DialectRules(),
    Dialect.SQLITE: DialectRules(
        auto_increment="AUTOINCREMENT",
        strip_keywords=(PRIMARY_KEY, "AUTOINCREMENT"),
    ),
    Dialect.MYSQL: _MYSQL_RULES,
    Dialect.CUBRID: _MYSQL_RULES,
    Dialect.GENERIC: _MYSQL_RULES,
}

# Used for non-shortcut primary keys under the general schema.
PORTABLE_RULES: DialectRules = DialectRules()


def rules_for(dialect: Any) -> DialectRules:
    """Strategy for *dialect*, falling back to the MySQL/CUBRID branch."""
    if not isinstance(dialect, Dialect):
        dialect = identify_dialect(dialect)
    return DIALECT_RULES.get(dialect, _MYSQL_RULES)


def normalize_append(append: str) -> str:
    """Upper-case *append* and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", append.upper()).strip()


# ---------------------------------------------------------------------------
# Dialect identification
# ---------------------------------------------------------------------------

_DIALECT_ALIASES: Dict[str, Dialect] = {
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "pgsql": Dialect.PGSQL,
    "postgres": Dialect.PGSQL,
    "postgresql": Dialect.PGSQL,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "mssql": Dialect.MSSQL,
    "sqlsrv": Dialect.MSSQL,
    "sqlserver": Dialect.MSSQL,
    "dblib": Dialect.MSSQL,
    "oci": Dialect.OCI,
    "oracle": Dialect.OCI,
    "cubrid": Dialect.CUBRID,
    "generic": Dialect.GENERIC,
}


def identify_dialect(name: Any) -> Dialect:
    """
    Map a free-form dialect name to ``Dialect``.

    Accepts plain names (``"postgresql"``), driver names (``"sqlsrv"``) and
    schema class names (``"yii\\db\\mysql\\Schema"``). Anything unrecognised
    becomes ``Dialect.GENERIC``.
    """
    if isinstance(name, Dialect):
        return name
    text: str = str(name or "").strip().lower()
    if text in _DIALECT_ALIASES:
        return _DIALECT_ALIASES[text]
    for token in re.split(r"[\\/.:+ _-]+", text):
        if token in _DIALECT_ALIASES:
            return _DIALECT_ALIASES[token]
    logger.warning("Unknown dialect '%s' — using generic rendering rules.", name)
    return Dialect.GENERIC


__all__: List[str] = [
    "DialectRules",
    "DIALECT_RULES",
    "PORTABLE_RULES",
    "PRIMARY_KEY",
    "identify_dialect",
    "normalize_append",
    "rules_for",
]

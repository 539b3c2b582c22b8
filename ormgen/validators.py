# File: ormgen/validators.py
"""
ormgen - Configuration Validators
=================================
Pydantic handles per-field structure of ``GenerationConfig``.  This module
adds the semantic checks that need more than one field at a time:

- ``validate_config``: checks that need only the configuration (empty
  rule patterns, bridge tables, duplicate declarations, conflicting
  irregular inflections, ...).  Run before the driver is called.
- ``validate_against_schema``: cross-references configuration with the
  assembled schema.  Entries naming unknown tables or columns are reported
  as warnings; they never change what gets generated.

Both return a ``ValidationResult``; ``raise_for_errors`` turns errors into a
``ConfigValidationError``.

Usage:
    result = validate_config(config)
    raise_for_errors(result)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from ormgen.errors import ConfigValidationError
from ormgen.inflection import DEFAULT_IRREGULAR, conflicting_irregulars
from ormgen.models import (
    GenerationConfig,
    RelationshipKind,
    SchemaModel,
    Table,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
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
    """Accumulates ``ValidationIssue`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def is_valid(self) -> bool:
        return not any(e.is_error for e in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Configuration-only checks
# ---------------------------------------------------------------------------


def validate_replacements(config: GenerationConfig) -> ValidationResult:
    result = ValidationResult()
    for index, rule in enumerate(config.replacements):
        ctx: Dict[str, Any] = {"rule": index}
        present: Dict[str, Any] = rule.match.present_fields()
        if not present:
            result.add_error(
                "RPL001",
                f"Replacement #{index} has an empty match pattern.",
                ctx,
            )
        if present.get("domain_name") == "":
            result.add_error(
                "RPL002",
                f"Replacement #{index} matches on an empty domain_name.",
                ctx,
            )
        if rule.replace.is_empty:
            result.add_error(
                "RPL003",
                f"Replacement #{index} has nothing to replace.",
                ctx,
            )
        if any(not name for name in rule.tables):
            result.add_error(
                "RPL004",
                f"Replacement #{index} is scoped to an empty table name.",
                ctx,
            )
    return result


def validate_relationship_declarations(config: GenerationConfig) -> ValidationResult:
    result = ValidationResult()
    seen: Set[Tuple[str, str, RelationshipKind]] = set()
    names: Set[Tuple[str, str]] = set()

    for decl in config.relationships:
        label: str = decl.resolved_name
        ctx: Dict[str, Any] = {
            "relationship": label,
            "from_table": decl.from_table,
            "to_table": decl.to_table,
        }
        is_many_to_many: bool = decl.kind == RelationshipKind.MANY_TO_MANY

        if is_many_to_many and not decl.bridge_table:
            result.add_error(
                "REL001",
                f"Many-to-many relationship '{label}' needs a bridge_table.",
                ctx,
            )
        if not is_many_to_many and decl.bridge_table:
            result.add_error(
                "REL002",
                f"Relationship '{label}' is {decl.kind.value} but names "
                f"bridge_table '{decl.bridge_table}'.",
                ctx,
            )
        if len(decl.from_columns) != len(decl.to_columns):
            result.add_error(
                "REL003",
                f"Relationship '{label}' maps {len(decl.from_columns)} column(s) "
                f"to {len(decl.to_columns)}.",
                ctx,
            )

        key: Tuple[str, str, RelationshipKind] = (
            decl.from_table,
            decl.to_table,
            decl.kind,
        )
        if key in seen:
            result.add_error(
                "REL004",
                f"Relationship {decl.from_table} -> {decl.to_table} "
                f"({decl.kind.value}) is declared more than once.",
                ctx,
            )
        seen.add(key)

        if (decl.from_table, label) in names:
            result.add_error(
                "REL005",
                f"Relationship name '{label}' is used twice on table "
                f"'{decl.from_table}'.",
                ctx,
            )
        names.add((decl.from_table, label))
    return result


def validate_inflections(config: GenerationConfig) -> ValidationResult:
    result = ValidationResult()
    inflections = config.inflections

    for table_name in ("plural", "plural_exact", "singular", "singular_exact", "irregular"):
        table: Dict[str, str] = getattr(inflections, table_name)
        if any(not key for key in table):
            result.add_error(
                "INF001",
                f"Inflection table '{table_name}' contains an empty key.",
                {"table": table_name},
            )

    merged: Dict[str, str] = dict(DEFAULT_IRREGULAR)
    merged.update({k.lower(): v for k, v in inflections.irregular.items()})
    for plural, singulars in conflicting_irregulars(merged):
        result.add_error(
            "INF002",
            f"Irregular plural '{plural}' is claimed by {sorted(singulars)}.",
            {"plural": plural, "singulars": sorted(singulars)},
        )
    return result


def validate_aliases(config: GenerationConfig) -> ValidationResult:
    result = ValidationResult()
    for table_name, alias in config.aliases.tables.items():
        for field_name in ("up_plural", "up_singular", "down_plural", "down_singular"):
            if getattr(alias, field_name) == "":
                result.add_error(
                    "ALS001",
                    f"Alias '{field_name}' for table '{table_name}' is empty.",
                    {"table": table_name, "field": field_name},
                )
        for kind, mapping in (("column", alias.columns), ("relationship", alias.relationships)):
            for key, value in mapping.items():
                if not value:
                    result.add_error(
                        "ALS002",
                        f"Empty {kind} alias for '{table_name}.{key}'.",
                        {"table": table_name, kind: key},
                    )
    return result


def validate_tags(config: GenerationConfig) -> ValidationResult:
    result = ValidationResult()
    if any(not tag.strip() for tag in config.tags):
        result.add_error("TAG001", "Tag list contains an empty tag name.")
    dupes: List[str] = sorted({t for t in config.tags if config.tags.count(t) > 1})
    if dupes:
        result.add_warning(
            "TAG002",
            f"Tags listed more than once: {dupes}.",
            {"tags": dupes},
        )
    return result


def validate_config(config: GenerationConfig) -> ValidationResult:
    """Run every configuration-only check."""
    result = ValidationResult()
    for check in (
        validate_replacements,
        validate_relationship_declarations,
        validate_inflections,
        validate_aliases,
        validate_tags,
    ):
        result.merge(check(config))

    logger.debug("Config validation: %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Cross-reference checks
# ---------------------------------------------------------------------------


def validate_against_schema(
    config: GenerationConfig,
    schema: SchemaModel,
) -> ValidationResult:
    """Report configuration entries that refer to nothing in *schema*."""
    result = ValidationResult()
    tables: Dict[str, Table] = {t.name: t for t in schema.tables}

    for table_name, alias in config.aliases.tables.items():
        table: Optional[Table] = tables.get(table_name)
        if table is None:
            result.add_warning(
                "ALS010",
                f"Aliases configured for unknown table '{table_name}'.",
                {"table": table_name},
            )
            continue
        for column_name in alias.columns:
            if table.get_column(column_name) is None:
                result.add_warning(
                    "ALS011",
                    f"Alias configured for unknown column '{table_name}.{column_name}'.",
                    {"table": table_name, "column": column_name},
                )

    for index, rule in enumerate(config.replacements):
        for table_name in rule.tables:
            if table_name not in tables:
                result.add_warning(
                    "RPL010",
                    f"Replacement #{index} is scoped to unknown table '{table_name}'.",
                    {"rule": index, "table": table_name},
                )

    known_columns: Set[str] = {
        col.name for table in schema.tables for col in table.columns
    }
    for column_name in config.tag_ignore:
        if column_name not in known_columns:
            result.add_warning(
                "TAG010",
                f"tag_ignore entry '{column_name}' matches no column.",
                {"column": column_name},
            )

    logger.debug("Schema cross-reference validation: %s", result.summary())
    return result


def raise_for_errors(result: ValidationResult, phase: str = "config") -> None:
    """
    Log warnings and raise ``ConfigValidationError`` if *result* has errors.
    """
    for warning in result.warnings:
        logger.warning("%s", warning)

    errors: List[ValidationIssue] = result.errors
    if not errors:
        return

    for error in errors:
        logger.error("%s", error)
    raise ConfigValidationError(
        f"Invalid configuration: {len(errors)} error(s); first: {errors[0].message}",
        issues=errors,
        phase=phase,
        entities=[e.code for e in errors],
    )


__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_replacements",
    "validate_relationship_declarations",
    "validate_inflections",
    "validate_aliases",
    "validate_tags",
    "validate_config",
    "validate_against_schema",
    "raise_for_errors",
]

logger.debug("ormgen.validators loaded.")

# File: ormgen/replacements.py
"""
ormgen - Type Replacement Engine
================================
Rewrites column types and metadata with the ordered ``replacements`` list.

For every column of every table the rules are folded in declaration order:

    column_0 = driver column
    column_n = apply_patch(rule_n.replace, column_{n-1})   if rule_n matches
             = column_{n-1}                                otherwise

* A rule is skipped when its ``tables`` scope is non-empty and does not
  contain the current table.
* Only fields that are present (not ``None``) on the match pattern take part
  and each must equal the column's field exactly.  Matching is evaluated
  against the column as updated by earlier rules.
* A present ``domain_name`` only matches a column carrying a non-empty
  domain name of the same value; a column without a domain simply does not
  match.
* Present patch fields overwrite the column's (last matching rule wins per
  field); patch imports are appended, never de-duplicated.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from ormgen.models import Column, ColumnPatch, ColumnPattern, ReplaceRule, SchemaModel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.replacements")


def rule_applies_to(rule: ReplaceRule, table_name: str) -> bool:
    """True when *rule* is unscoped or scoped to *table_name*."""
    return not rule.tables or table_name in rule.tables


def column_matches(pattern: ColumnPattern, column: Column) -> bool:
    """
    True when every present field of *pattern* equals the column's.

    A pattern without any present field matches nothing.
    """
    present: Dict[str, Any] = pattern.present_fields()
    if not present:
        return False

    for field_name, expected in present.items():
        actual: Any = getattr(column, field_name)
        if field_name == "domain_name" and not actual:
            return False
        if actual != expected:
            return False
    return True


def apply_patch(patch: ColumnPatch, column: Column) -> Column:
    """Return a new column with *patch* applied; *column* is left untouched."""
    update: Dict[str, Any] = patch.present_fields()
    update["imports"] = [*column.imports, *patch.imports]
    update["annotations"] = list(column.annotations)
    return column.model_copy(update=update)


def replace_column(
    table_name: str,
    column: Column,
    rules: Sequence[ReplaceRule],
) -> Column:
    """Fold *rules* over *column* in declaration order."""
    for index, rule in enumerate(rules):
        if not rule_applies_to(rule, table_name):
            continue
        if not column_matches(rule.match, column):
            continue
        column = apply_patch(rule.replace, column)
        logger.debug(
            "Rule #%d rewrote %s.%s -> type=%r.",
            index,
            table_name,
            column.name,
            column.type,
        )
    return column


def apply_replacements(schema: SchemaModel, rules: Sequence[ReplaceRule]) -> int:
    """
    Rewrite every column of *schema* in place.

    Returns the number of columns that were changed by at least one rule.
    """
    if not rules:
        logger.info("No replacement rules configured.")
        return 0

    changed: int = 0
    for table in schema.tables:
        for position, column in enumerate(table.columns):
            replaced: Column = replace_column(table.name, column, rules)
            if replaced is not column:
                table.columns[position] = replaced
                changed += 1

    logger.info(
        "Applied %d replacement rule(s): %d column(s) rewritten.",
        len(rules),
        changed,
    )
    return changed


__all__: List[str] = [
    "rule_applies_to",
    "column_matches",
    "apply_patch",
    "replace_column",
    "apply_replacements",
]

logger.debug("ormgen.replacements loaded.")

# File: ormgen/aliases.py
"""
ormgen - Alias Resolver
=======================
Computes the identifier names used by rendering for every table, column and
relationship.

Precedence, applied per name:

    explicit alias from configuration  >  inflection + casing default

Table defaults::

    up_plural     = up_case(plural(name))       users   -> Users
    up_singular   = up_case(singular(name))     users   -> User
    down_plural   = down_case(plural(name))     users   -> users
    down_singular = down_case(singular(name))   users   -> user

Columns default to ``up_case(column_name)``; relationships default to the
target table's ``up_plural`` (to-many) or ``up_singular`` (to-one).

The resolver does not look for collisions between resolved names; two
tables may well end up with the same alias.

This module also owns column annotations (``tag:"value"`` strings), which
are derived from column names with a configurable casing.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ormgen.inflection import Inflector
from ormgen.models import (
    Aliases,
    Relationship,
    ResolvedTableAlias,
    SchemaModel,
    Table,
    TableAlias,
    TagCasing,
)
from ormgen.utils import (
    CasingFunction,
    to_camel_case,
    to_snake_case,
    to_title_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.aliases")

# Casing function per annotation casing mode.
CASING_FUNCTIONS: Dict[TagCasing, CasingFunction] = {
    TagCasing.CAMEL: to_camel_case,
    TagCasing.TITLE: to_title_case,
    TagCasing.SNAKE: to_snake_case,
}

IGNORED_TAG_VALUE: str = "-"


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class AliasResolver:
    """
    Resolve aliases for tables, columns and relationships.

    Args:
        aliases: Explicit aliases from configuration.
        inflector: Inflection engine used for default names.
        up_case: Casing for "Up" names and column defaults.
        down_case: Casing for "Down" names.
    """

    def __init__(
        self,
        aliases: Optional[Aliases] = None,
        inflector: Optional[Inflector] = None,
        *,
        up_case: CasingFunction = to_title_case,
        down_case: CasingFunction = to_camel_case,
    ) -> None:
        self._aliases: Aliases = aliases or Aliases()
        self._inflector: Inflector = inflector or Inflector()
        self._up_case: CasingFunction = up_case
        self._down_case: CasingFunction = down_case

    def default_table_alias(self, table_name: str) -> ResolvedTableAlias:
        plural: str = self._inflector.plural(table_name)
        singular: str = self._inflector.singular(table_name)
        return ResolvedTableAlias(
            up_plural=self._up_case(plural),
            up_singular=self._up_case(singular),
            down_plural=self._down_case(plural),
            down_singular=self._down_case(singular),
        )

    def default_column_alias(self, column_name: str) -> str:
        return self._up_case(column_name)

    def explicit_column_alias(self, table_name: str, column_name: str) -> Optional[str]:
        """The configured alias of a column, whether or not the column exists."""
        return self._aliases.for_table(table_name).columns.get(column_name)

    def resolve_table(self, table: Table) -> ResolvedTableAlias:
        """Aliases for *table*, explicit entries first."""
        explicit: TableAlias = self._aliases.for_table(table.name)
        default: ResolvedTableAlias = self.default_table_alias(table.name)

        columns: Dict[str, str] = {}
        for column in table.columns:
            columns[column.name] = explicit.columns.get(
                column.name
            ) or self.default_column_alias(column.name)

        return ResolvedTableAlias(
            up_plural=explicit.up_plural or default.up_plural,
            up_singular=explicit.up_singular or default.up_singular,
            down_plural=explicit.down_plural or default.down_plural,
            down_singular=explicit.down_singular or default.down_singular,
            columns=columns,
            relationships=dict(explicit.relationships),
        )

    def resolve(self, schema: SchemaModel) -> "ResolvedAliases":
        resolved: Dict[str, ResolvedTableAlias] = {}
        for table in schema.tables:
            resolved[table.name] = self.resolve_table(table)
            logger.debug(
                "Table '%s' aliased as %s / %s.",
                table.name,
                resolved[table.name].up_singular,
                resolved[table.name].up_plural,
            )

        logger.info("Resolved aliases for %d table(s).", len(resolved))
        return ResolvedAliases(self, resolved)


# ---------------------------------------------------------------------------
# Resolved aliases
# ---------------------------------------------------------------------------


class ResolvedAliases:
    """
    Alias lookups for rendering.  Lookups never fail: anything not resolved
    up front is computed from the resolver's defaults (and the explicit
    configuration) on demand.
    """

    __slots__ = ("_resolver", "_tables")

    def __init__(
        self,
        resolver: AliasResolver,
        tables: Dict[str, ResolvedTableAlias],
    ) -> None:
        self._resolver: AliasResolver = resolver
        self._tables: Dict[str, ResolvedTableAlias] = tables

    @property
    def tables(self) -> Dict[str, ResolvedTableAlias]:
        return self._tables

    def table(self, table_name: str) -> ResolvedTableAlias:
        alias: Optional[ResolvedTableAlias] = self._tables.get(table_name)
        if alias is None:
            alias = self._resolver.resolve_table(Table(name=table_name))
            self._tables[table_name] = alias
        return alias

    def column(self, table_name: str, column_name: str) -> str:
        alias: ResolvedTableAlias = self.table(table_name)
        name: Optional[str] = alias.columns.get(column_name)
        if name is None:
            name = self._resolver.explicit_column_alias(table_name, column_name)
        return name or self._resolver.default_column_alias(column_name)

    def default_relationship_alias(self, relationship: Relationship) -> str:
        target: ResolvedTableAlias = self.table(relationship.to_table)
        if relationship.kind.is_to_many:
            return target.up_plural
        return target.up_singular

    def relationship(self, table_name: str, relationship: Relationship) -> str:
        explicit: Optional[str] = self.table(table_name).relationships.get(
            relationship.name
        )
        return explicit or self.default_relationship_alias(relationship)

    def fill_relationships(self, schema: SchemaModel) -> None:
        """Record an alias for every relationship on every table."""
        for table in schema.tables:
            alias: ResolvedTableAlias = self.table(table.name)
            filled: Dict[str, str] = dict(alias.relationships)
            for rel in table.relationships:
                filled[rel.name] = self.relationship(table.name, rel)
            alias.relationships = filled

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return {name: alias.model_dump() for name, alias in self._tables.items()}

    def __repr__(self) -> str:
        return f"<ResolvedAliases {len(self._tables)} tables>"


# ---------------------------------------------------------------------------
# Column annotations
# ---------------------------------------------------------------------------


def column_annotations(
    column_name: str,
    tags: Sequence[str],
    tag_ignore: Sequence[str],
    casing: TagCasing = TagCasing.SNAKE,
) -> List[str]:
    """
    Annotation strings for one column, in *tags* order.

    >>> column_annotations("userID", ["json", "db"], [], TagCasing.SNAKE)
    ['json:"user_id"', 'db:"user_id"']
    """
    if column_name in tag_ignore:
        value: str = IGNORED_TAG_VALUE
    else:
        value = CASING_FUNCTIONS[TagCasing(casing)](column_name)
    return [f'{tag}:"{value}"' for tag in tags]


def annotate_columns(
    schema: SchemaModel,
    tags: Sequence[str],
    tag_ignore: Sequence[str],
    casing: TagCasing = TagCasing.SNAKE,
) -> int:
    """Set ``annotations`` on every column; returns the number annotated."""
    if not tags:
        return 0

    count: int = 0
    for table in schema.tables:
        for column in table.columns:
            column.annotations = column_annotations(
                column.name, tags, tag_ignore, casing
            )
            count += 1

    logger.info("Annotated %d column(s) with %d tag(s).", count, len(tags))
    return count


__all__: List[str] = [
    "CASING_FUNCTIONS",
    "IGNORED_TAG_VALUE",
    "AliasResolver",
    "ResolvedAliases",
    "column_annotations",
    "annotate_columns",
]

logger.debug("ormgen.aliases loaded.")

# File: ormgen/relationships.py
"""
ormgen - Relationship Resolver
==============================
Derives the relationship graph from foreign-key constraints and explicit
declarations, then synthesizes missing inverse relationships.

Two passes, keyed by ordered ``(from_table, to_table)`` pairs:

    Pass 1  materialize
            a. one relationship per FK constraint (owning table -> foreign
               table), unless an explicit declaration covers the same pair
            b. every explicit declaration, verbatim
    Pass 2  back-references (unless disabled)
            every relationship whose inverse is not already present on the
            reverse pair gets one, marked ``synthetic_back_reference``.  An
            entry on the reverse pair counts as the inverse when its columns
            mirror the relationship's, or when either side has no columns.
            Self-references get no inverse.

Ordering is a stable sort on ``(from_table, to_table, declaration index)``;
FK-derived relationships are indexed first, then explicit declarations,
then synthesized inverses.  The same input always yields the same list in
the same order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ormgen.aliases import ResolvedAliases
from ormgen.errors import ResolutionError
from ormgen.models import (
    Constraint,
    ConstraintKind,
    Relationship,
    RelationshipDeclaration,
    RelationshipKind,
    SchemaModel,
    Table,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.relationships")

TablePair = Tuple[str, str]
RelationshipKey = Tuple[
    str, str, RelationshipKind, str, Tuple[str, ...], Tuple[str, ...]
]


# ---------------------------------------------------------------------------
# Constraint augmentation
# ---------------------------------------------------------------------------


def _require_table(schema: SchemaModel, name: str, context: str) -> Table:
    table: Optional[Table] = schema.get_table(name)
    if table is None:
        raise ResolutionError(
            f"{context} references unknown table '{name}'",
            entities=[name],
        )
    return table


def _require_columns(table: Table, columns: Sequence[str], context: str) -> None:
    missing: List[str] = [c for c in columns if table.get_column(c) is None]
    if missing:
        raise ResolutionError(
            f"{context} references unknown column(s) on table '{table.name}'",
            entities=[f"{table.name}.{c}" for c in missing],
        )


def merge_constraints(
    schema: SchemaModel,
    extra: Dict[str, List[Constraint]],
) -> int:
    """
    Append configured constraints to their tables.

    Raises:
        ResolutionError: unknown table/column, or a constraint name that
            already exists on the table.
    """
    added: int = 0
    for table_name, constraints in extra.items():
        table: Table = _require_table(schema, table_name, "Configured constraint")
        existing: Set[str] = {c.name for c in table.constraints}

        for constraint in constraints:
            context: str = f"Constraint '{constraint.name}'"
            if constraint.name in existing:
                raise ResolutionError(
                    f"{context} already exists on table '{table_name}'",
                    entities=[f"{table_name}.{constraint.name}"],
                )
            _require_columns(table, constraint.columns, context)
            if constraint.is_foreign_key:
                foreign: Table = _require_table(
                    schema, constraint.foreign_table or "", context
                )
                _require_columns(foreign, constraint.foreign_columns, context)

            table.constraints.append(constraint.model_copy(deep=True))
            existing.add(constraint.name)
            added += 1

    if added:
        logger.info("Merged %d configured constraint(s).", added)
    return added


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def foreign_key_kind(table: Table, constraint: Constraint) -> RelationshipKind:
    """``one_to_one`` when the FK columns are unique on *table*."""
    fk_columns: Set[str] = set(constraint.columns)
    for other in table.constraints:
        if other.kind in (ConstraintKind.PRIMARY_KEY, ConstraintKind.UNIQUE):
            if set(other.columns) == fk_columns:
                return RelationshipKind.ONE_TO_ONE
    return RelationshipKind.MANY_TO_ONE


def invert(relationship: Relationship) -> Relationship:
    """The back-reference of *relationship*."""
    return Relationship(
        name=relationship.name,
        from_table=relationship.to_table,
        to_table=relationship.from_table,
        kind=relationship.kind.inverse(),
        bridge_table=relationship.bridge_table,
        from_columns=list(relationship.to_columns),
        to_columns=list(relationship.from_columns),
        synthetic_back_reference=True,
    )


class RelationshipResolver:
    """
    Build every table's ``relationships`` list.

    Args:
        declarations: Explicit relationships from configuration.
        no_back_referencing: Skip inverse synthesis.
    """

    def __init__(
        self,
        declarations: Optional[Sequence[RelationshipDeclaration]] = None,
        *,
        no_back_referencing: bool = False,
    ) -> None:
        self._declarations: List[RelationshipDeclaration] = list(declarations or [])
        self._no_back_referencing: bool = no_back_referencing

    # -----------------------------------------------------------------
    # Pass 1
    # -----------------------------------------------------------------

    def _from_foreign_keys(
        self,
        schema: SchemaModel,
        covered: Set[TablePair],
    ) -> List[Relationship]:
        derived: List[Relationship] = []
        for table in schema.tables:
            for constraint in table.foreign_keys:
                foreign_table: str = constraint.foreign_table or ""
                _require_table(schema, foreign_table, f"Foreign key '{constraint.name}'")
                if (table.name, foreign_table) in covered:
                    logger.debug(
                        "FK '%s' on '%s' covered by an explicit declaration.",
                        constraint.name,
                        table.name,
                    )
                    continue
                derived.append(Relationship(
                    name=constraint.name,
                    from_table=table.name,
                    to_table=foreign_table,
                    kind=foreign_key_kind(table, constraint),
                    from_columns=list(constraint.columns),
                    to_columns=list(constraint.foreign_columns),
                ))
        return derived

    def _from_declarations(self, schema: SchemaModel) -> List[Relationship]:
        explicit: List[Relationship] = []
        for decl in self._declarations:
            context: str = f"Relationship '{decl.resolved_name}'"
            from_table: Table = _require_table(schema, decl.from_table, context)
            to_table: Table = _require_table(schema, decl.to_table, context)
            if decl.bridge_table:
                _require_table(schema, decl.bridge_table, context)
            if not decl.bridge_table:
                _require_columns(from_table, decl.from_columns, context)
                _require_columns(to_table, decl.to_columns, context)

            explicit.append(Relationship(
                name=decl.resolved_name,
                from_table=decl.from_table,
                to_table=decl.to_table,
                kind=decl.kind,
                bridge_table=decl.bridge_table,
                from_columns=list(decl.from_columns),
                to_columns=list(decl.to_columns),
            ))
        return explicit

    # -----------------------------------------------------------------
    # Pass 2
    # -----------------------------------------------------------------

    @staticmethod
    def _back_references(materialized: Sequence[Relationship]) -> List[Relationship]:
        by_pair: Dict[TablePair, List[Relationship]] = {}
        for rel in materialized:
            by_pair.setdefault(rel.pair, []).append(rel)

        synthesized: List[Relationship] = []
        for rel in materialized:
            if rel.from_table == rel.to_table:
                continue
            reverse: List[Relationship] = by_pair.setdefault(
                (rel.to_table, rel.from_table), []
            )
            if any(_covers_reverse(other, rel) for other in reverse):
                continue
            inverse: Relationship = invert(rel)
            synthesized.append(inverse)
            reverse.append(inverse)
        return synthesized

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def resolve(
        self,
        schema: SchemaModel,
        aliases: Optional[ResolvedAliases] = None,
    ) -> List[Relationship]:
        """
        Resolve relationships and store them on the tables of *schema*.

        When *aliases* (``ResolvedAliases``) is given, an alias is recorded
        for every resulting relationship.

        Returns the ordered list of all relationships.

        Raises:
            ResolutionError: a constraint or declaration names an unknown
                table or column.
        """
        covered: Set[TablePair] = {
            (d.from_table, d.to_table) for d in self._declarations
        }
        derived: List[Relationship] = self._from_foreign_keys(schema, covered)
        explicit: List[Relationship] = self._from_declarations(schema)

        indexed: List[Tuple[int, Relationship]] = list(enumerate(derived + explicit))
        indexed.sort(key=lambda item: (item[1].from_table, item[1].to_table, item[0]))
        materialized: List[Relationship] = _dedupe([rel for _, rel in indexed])

        synthesized: List[Relationship] = []
        if self._no_back_referencing:
            logger.info("Back-referencing disabled; no inverses synthesized.")
        else:
            synthesized = self._back_references(materialized)

        offset: int = len(materialized)
        ordered: List[Tuple[int, Relationship]] = list(enumerate(materialized))
        ordered.extend((offset + i, rel) for i, rel in enumerate(synthesized))
        ordered.sort(key=lambda item: (item[1].from_table, item[1].to_table, item[0]))
        result: List[Relationship] = _dedupe([rel for _, rel in ordered])

        by_table: Dict[str, List[Relationship]] = {t.name: [] for t in schema.tables}
        for rel in result:
            by_table[rel.from_table].append(rel)
        for table in schema.tables:
            table.relationships = by_table[table.name]

        if aliases is not None:
            aliases.fill_relationships(schema)

        logger.info(
            "Resolved %d relationship(s): %d from foreign keys, %d explicit, "
            "%d back-reference(s).",
            len(result),
            len(derived),
            len(explicit),
            len(synthesized),
        )
        return result


def _covers_reverse(candidate: Relationship, rel: Relationship) -> bool:
    """
    True when *candidate* (on the reverse pair) already stands for the
    inverse of *rel*: its columns mirror those of *rel*, or either side
    declares no columns and so covers the whole pair.
    """
    if not (candidate.from_columns or candidate.to_columns):
        return True
    if not (rel.from_columns or rel.to_columns):
        return True
    return (
        candidate.from_columns == rel.to_columns
        and candidate.to_columns == rel.from_columns
    )


def _relationship_key(rel: Relationship) -> RelationshipKey:
    return (
        rel.from_table,
        rel.to_table,
        rel.kind,
        rel.name,
        tuple(rel.from_columns),
        tuple(rel.to_columns),
    )


def _dedupe(relationships: Sequence[Relationship]) -> List[Relationship]:
    """Drop repeated relationships (same tables, kind, name and columns); first occurrence wins."""
    seen: Set[RelationshipKey] = set()
    unique: List[Relationship] = []
    for rel in relationships:
        key: RelationshipKey = _relationship_key(rel)
        if key in seen:
            logger.debug("Dropping duplicate relationship %r.", rel)
            continue
        seen.add(key)
        unique.append(rel)
    return unique


__all__: List[str] = [
    "merge_constraints",
    "foreign_key_kind",
    "invert",
    "RelationshipResolver",
]

logger.debug("ormgen.relationships loaded.")

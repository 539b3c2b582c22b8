# File: ormgen/models.py
"""
ormgen - Core Data Models
=========================
Pydantic V2 models representing the in-memory schema model and the
generation configuration.  These models are the single source of truth for
the whole pipeline:

    Driver.assemble() → Alias phase → Type replacement → Relationships → Render

The schema model is independent of any data source: drivers translate their
catalog into ``SchemaModel`` and the resolver phases mutate it in place, one
phase at a time.

Rule patterns (``ColumnPattern`` / ``ColumnPatch``) encode "presence" with
``Optional[...] = None``: ``None`` is a wildcard / "leave untouched", while
any other value (including ``""`` and ``False``) participates.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RelationshipKind(str, Enum):
    """Relationship cardinalities."""

    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_ONE = "many_to_one"
    MANY_TO_MANY = "many_to_many"

    @property
    def is_to_many(self) -> bool:
        return self in (RelationshipKind.ONE_TO_MANY, RelationshipKind.MANY_TO_MANY)

    def inverse(self) -> "RelationshipKind":
        """Cardinality seen from the other side of the relationship."""
        return _INVERSE_KIND[self]


_INVERSE_KIND: Dict[RelationshipKind, RelationshipKind] = {
    RelationshipKind.ONE_TO_ONE: RelationshipKind.ONE_TO_ONE,
    RelationshipKind.ONE_TO_MANY: RelationshipKind.MANY_TO_ONE,
    RelationshipKind.MANY_TO_ONE: RelationshipKind.ONE_TO_MANY,
    RelationshipKind.MANY_TO_MANY: RelationshipKind.MANY_TO_MANY,
}


class ConstraintKind(str, Enum):
    """Table-level constraint kinds tracked by the schema model."""

    PRIMARY_KEY = "primary_key"
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"


class TagCasing(str, Enum):
    """Casing applied to column names inside metadata annotations."""

    CAMEL = "camel"
    TITLE = "title"
    SNAKE = "snake"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


def _normalise_kind(value: Any) -> Any:
    """Accept ``one-to-many`` / ``One_To_Many`` spellings."""
    if isinstance(value, str) and not isinstance(value, Enum):
        return value.strip().lower().replace("-", "_")
    return value


# ---------------------------------------------------------------------------
# Schema model
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """
    A single column as reported by a driver.

    ``type`` is the type used in generated code; ``db_type`` is the native
    storage-engine type.  ``imports`` is ordered and may hold duplicates:
    replacement rules append to it and rendering decides how to merge.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(default="", description="Type used in generated code.")
    db_type: str = Field(default="", description="Native database type.")
    full_db_type: str = Field(default="", description="Native type incl. modifiers.")
    udt_name: str = Field(default="", description="User-defined type name.")
    arr_type: str = Field(default="", description="Element type for array columns.")
    nullable: bool = Field(default=False, description="Whether NULL is allowed.")
    default: str = Field(default="", description="Default value expression text.")
    comment: str = Field(default="", description="Column comment.")
    generated: bool = Field(default=False, description="Generated/computed column.")
    autoincr: bool = Field(default=False, description="Auto-incrementing column.")
    domain_name: Optional[str] = Field(
        default=None, description="Domain the column type belongs to, if any."
    )
    annotations: List[str] = Field(
        default_factory=list, description="Metadata annotations (tag strings)."
    )
    imports: List[str] = Field(
        default_factory=list, description="Imports needed by the column type."
    )

    def __repr__(self) -> str:
        return f"<Column {self.name}: {self.type or '?'} ({self.db_type or '?'})>"


class Constraint(BaseModel):
    """Primary key, unique or foreign-key constraint on a table."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Constraint name.")
    kind: ConstraintKind = Field(..., description="Constraint kind.")
    columns: List[str] = Field(..., min_length=1, description="Local columns.")
    foreign_table: Optional[str] = Field(
        default=None, description="Referenced table (foreign keys only)."
    )
    foreign_columns: List[str] = Field(
        default_factory=list, description="Referenced columns (foreign keys only)."
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _normalise_kind(v)

    @model_validator(mode="after")
    def _check_foreign_key(self) -> "Constraint":
        if self.kind == ConstraintKind.FOREIGN_KEY:
            if not self.foreign_table:
                raise ValueError(f"Foreign key '{self.name}' has no foreign_table.")
            if len(self.foreign_columns) != len(self.columns):
                raise ValueError(
                    f"Foreign key '{self.name}' maps {len(self.columns)} column(s) "
                    f"to {len(self.foreign_columns)} foreign column(s)."
                )
        elif self.foreign_table or self.foreign_columns:
            raise ValueError(
                f"Constraint '{self.name}' of kind '{self.kind.value}' "
                f"cannot reference a foreign table."
            )
        return self

    @property
    def is_foreign_key(self) -> bool:
        return self.kind == ConstraintKind.FOREIGN_KEY


class Relationship(BaseModel):
    """A resolved relationship between two tables."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Relationship name.")
    from_table: str = Field(..., min_length=1)
    to_table: str = Field(..., min_length=1)
    kind: RelationshipKind
    bridge_table: Optional[str] = Field(
        default=None, description="Join table for many-to-many relationships."
    )
    from_columns: List[str] = Field(default_factory=list)
    to_columns: List[str] = Field(default_factory=list)
    synthetic_back_reference: bool = Field(
        default=False, description="True when synthesized as an inverse."
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _normalise_kind(v)

    @property
    def pair(self) -> tuple:
        return (self.from_table, self.to_table)

    def __repr__(self) -> str:
        marker: str = " (back-ref)" if self.synthetic_back_reference else ""
        return (
            f"<Relationship {self.name}: {self.from_table} -> {self.to_table} "
            f"{self.kind.value}{marker}>"
        )


class Table(BaseModel):
    """A table with its columns, constraints and resolved relationships."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Table name.")
    columns: List[Column] = Field(default_factory=list)
    constraints: List[Constraint] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_columns(self) -> "Table":
        seen: Set[str] = set()
        dupes: List[str] = []
        for col in self.columns:
            if col.name in seen:
                dupes.append(col.name)
            seen.add(col.name)
        if dupes:
            raise ValueError(
                f"Duplicate column names in table '{self.name}': {sorted(set(dupes))}"
            )
        return self

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key(self) -> Optional[Constraint]:
        for con in self.constraints:
            if con.kind == ConstraintKind.PRIMARY_KEY:
                return con
        return None

    @property
    def foreign_keys(self) -> List[Constraint]:
        return [c for c in self.constraints if c.is_foreign_key]

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} ({len(self.columns)} cols, "
            f"{len(self.constraints)} constraints, "
            f"{len(self.relationships)} rels)>"
        )


class SchemaModel(BaseModel):
    """
    The root model: every table the driver assembled.

    Built once per run, mutated in place by the resolver phases and then
    handed to rendering.
    """

    model_config = _SHARED_CONFIG

    tables: List[Table] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_table_names(self) -> "SchemaModel":
        names: List[str] = [t.name for t in self.tables]
        if len(names) != len(set(names)):
            dupes: List[str] = [n for n in names if names.count(n) > 1]
            raise ValueError(f"Duplicate table names: {sorted(set(dupes))}")
        return self

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    @property
    def total_columns(self) -> int:
        return sum(len(t.columns) for t in self.tables)

    @property
    def relationships(self) -> List[Relationship]:
        return [rel for t in self.tables for rel in t.relationships]

    def __repr__(self) -> str:
        return (
            f"<SchemaModel {len(self.tables)} tables, "
            f"{self.total_columns} columns, "
            f"{len(self.relationships)} relationships>"
        )


# ---------------------------------------------------------------------------
# Type replacement rules
# ---------------------------------------------------------------------------

# Column fields that may appear in a match pattern or a patch.
PATTERN_FIELDS: List[str] = [
    "name",
    "type",
    "db_type",
    "full_db_type",
    "udt_name",
    "arr_type",
    "nullable",
    "default",
    "comment",
    "generated",
    "autoincr",
    "domain_name",
]


class ColumnPattern(BaseModel):
    """Partial column: only fields that are not ``None`` constrain a match."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = None
    type: Optional[str] = None
    db_type: Optional[str] = None
    full_db_type: Optional[str] = None
    udt_name: Optional[str] = None
    arr_type: Optional[str] = None
    nullable: Optional[bool] = None
    default: Optional[str] = None
    comment: Optional[str] = None
    generated: Optional[bool] = None
    autoincr: Optional[bool] = None
    domain_name: Optional[str] = None

    def present_fields(self) -> Dict[str, Any]:
        """Fields explicitly set on this pattern, in declaration order."""
        return {
            name: getattr(self, name)
            for name in PATTERN_FIELDS
            if getattr(self, name) is not None
        }


class ColumnPatch(BaseModel):
    """Partial column applied on match; ``imports`` are appended."""

    model_config = _SHARED_CONFIG

    type: Optional[str] = None
    db_type: Optional[str] = None
    full_db_type: Optional[str] = None
    udt_name: Optional[str] = None
    arr_type: Optional[str] = None
    nullable: Optional[bool] = None
    default: Optional[str] = None
    comment: Optional[str] = None
    generated: Optional[bool] = None
    autoincr: Optional[bool] = None
    domain_name: Optional[str] = None
    imports: List[str] = Field(default_factory=list)

    def present_fields(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in PATTERN_FIELDS
            if name != "name" and getattr(self, name) is not None
        }

    @property
    def is_empty(self) -> bool:
        return not self.present_fields() and not self.imports


class ReplaceRule(BaseModel):
    """One entry of the ordered ``replacements`` list."""

    model_config = _SHARED_CONFIG

    tables: List[str] = Field(
        default_factory=list,
        description="Tables the rule is scoped to; empty means every table.",
    )
    match: ColumnPattern = Field(default_factory=ColumnPattern)
    replace: ColumnPatch = Field(default_factory=ColumnPatch)


# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------


class TableAlias(BaseModel):
    """User-provided aliases for one table; unset names use defaults."""

    model_config = _SHARED_CONFIG

    up_plural: Optional[str] = None
    up_singular: Optional[str] = None
    down_plural: Optional[str] = None
    down_singular: Optional[str] = None
    columns: Dict[str, str] = Field(default_factory=dict)
    relationships: Dict[str, str] = Field(default_factory=dict)


class Aliases(BaseModel):
    model_config = _SHARED_CONFIG

    tables: Dict[str, TableAlias] = Field(default_factory=dict)

    def for_table(self, name: str) -> TableAlias:
        return self.tables.get(name) or TableAlias()


class ResolvedTableAlias(BaseModel):
    """Fully-populated aliases for one table."""

    model_config = _SHARED_CONFIG

    up_plural: str
    up_singular: str
    down_plural: str
    down_singular: str
    columns: Dict[str, str] = Field(default_factory=dict)
    relationships: Dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Inflections and relationships (configuration)
# ---------------------------------------------------------------------------


class Inflections(BaseModel):
    """User overrides for the inflection engine, in declaration order."""

    model_config = _SHARED_CONFIG

    plural: Dict[str, str] = Field(default_factory=dict, description="suffix -> replacement")
    plural_exact: Dict[str, str] = Field(default_factory=dict)
    singular: Dict[str, str] = Field(default_factory=dict, description="suffix -> replacement")
    singular_exact: Dict[str, str] = Field(default_factory=dict)
    irregular: Dict[str, str] = Field(default_factory=dict, description="singular -> plural")


class RelationshipDeclaration(BaseModel):
    """An explicit relationship declared in configuration."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = None
    from_table: str = Field(..., min_length=1)
    to_table: str = Field(..., min_length=1)
    kind: RelationshipKind
    bridge_table: Optional[str] = None
    from_columns: List[str] = Field(default_factory=list)
    to_columns: List[str] = Field(default_factory=list)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _normalise_kind(v)

    @property
    def resolved_name(self) -> str:
        return self.name or f"{self.from_table}_{self.to_table}"


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Master configuration consumed by the pipeline.

    How it is loaded is up to the caller; ``ormgen.generator.load_config_file``
    reads it from YAML or JSON.
    """

    model_config = _SHARED_CONFIG

    tags: List[str] = Field(
        default_factory=list, description="Annotation keys emitted per column."
    )
    tag_ignore: List[str] = Field(
        default_factory=list,
        description="Column names whose annotations are set to '-'.",
    )
    tag_casing: TagCasing = Field(
        default=TagCasing.SNAKE, description="Casing of annotation values."
    )
    relation_tag: str = Field(
        default="-", description="Annotation key used for relationship fields."
    )
    aliases: Aliases = Field(default_factory=Aliases)
    constraints: Dict[str, List[Constraint]] = Field(
        default_factory=dict, description="Extra constraints keyed by table name."
    )
    relationships: List[RelationshipDeclaration] = Field(default_factory=list)
    replacements: List[ReplaceRule] = Field(default_factory=list)
    inflections: Inflections = Field(default_factory=Inflections)
    no_back_referencing: bool = Field(
        default=False, description="Disable synthesized inverse relationships."
    )
    generator: str = Field(
        default="", description="Attribution used in generated file headers."
    )

    @field_validator("tag_casing", mode="before")
    @classmethod
    def _lower_casing(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, Enum):
            return v.strip().lower()
        return v


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RelationshipKind",
    "ConstraintKind",
    "TagCasing",
    "Column",
    "Constraint",
    "Relationship",
    "Table",
    "SchemaModel",
    "PATTERN_FIELDS",
    "ColumnPattern",
    "ColumnPatch",
    "ReplaceRule",
    "TableAlias",
    "Aliases",
    "ResolvedTableAlias",
    "Inflections",
    "RelationshipDeclaration",
    "GenerationConfig",
]

logger.debug("ormgen.models loaded — %d public symbols.", len(__all__))

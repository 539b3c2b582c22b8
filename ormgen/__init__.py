# File: ormgen/__init__.py
"""
ormgen — Schema-Driven Data-Access Code Generation
==================================================

Takes a relational schema from a pluggable driver, applies configurable
transformation rules and hands the fully-resolved model to a renderer.

Architecture overview::

    ┌──────────┐    ┌─────────────────────────────────────────┐    ┌──────────┐
    │  Driver  │───▶│               Generator                 │───▶│ Renderer │
    │(drivers) │    │ aliases → replacements → relationships  │    │(templates│
    └──────────┘    └─────────────────────────────────────────┘    └──────────┘
                         │              │               │
                    inflection     validators        errors

Usage::

    from ormgen import FileDriver, Generator, load_config_file
    report = Generator(FileDriver(path), load_config_file(cfg)).run()

    # From the command line
    python -m ormgen --schema schema.yaml --config ormgen.yaml --output ./out
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from ormgen.errors import (
    ConfigValidationError,
    DriverError,
    OrmgenError,
    ResolutionError,
)
from ormgen.models import (
    Aliases,
    Column,
    ColumnPatch,
    ColumnPattern,
    Constraint,
    ConstraintKind,
    GenerationConfig,
    Inflections,
    Relationship,
    RelationshipDeclaration,
    RelationshipKind,
    ReplaceRule,
    ResolvedTableAlias,
    SchemaModel,
    Table,
    TableAlias,
    TagCasing,
)
from ormgen.inflection import Inflector
from ormgen.aliases import AliasResolver, ResolvedAliases, annotate_columns
from ormgen.replacements import apply_replacements, replace_column
from ormgen.relationships import RelationshipResolver, merge_constraints
from ormgen.drivers import ColumnFilter, Driver, FileDriver, StaticDriver
from ormgen.templates import ManifestRenderer, RenderContext, Renderer
from ormgen.validators import ValidationResult, validate_config
from ormgen.generator import (
    GenerationReport,
    Generator,
    load_config_file,
    parse_config,
)

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "Generator",
    "GenerationReport",
    "load_config_file",
    "parse_config",
    # Errors
    "OrmgenError",
    "DriverError",
    "ConfigValidationError",
    "ResolutionError",
    # Models
    "Aliases",
    "Column",
    "ColumnPatch",
    "ColumnPattern",
    "Constraint",
    "ConstraintKind",
    "GenerationConfig",
    "Inflections",
    "Relationship",
    "RelationshipDeclaration",
    "RelationshipKind",
    "ReplaceRule",
    "ResolvedTableAlias",
    "SchemaModel",
    "Table",
    "TableAlias",
    "TagCasing",
    # Phases
    "Inflector",
    "AliasResolver",
    "ResolvedAliases",
    "annotate_columns",
    "apply_replacements",
    "replace_column",
    "RelationshipResolver",
    "merge_constraints",
    "ValidationResult",
    "validate_config",
    # Ports
    "Driver",
    "ColumnFilter",
    "StaticDriver",
    "FileDriver",
    "Renderer",
    "RenderContext",
    "ManifestRenderer",
]

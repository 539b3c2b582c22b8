# File: ormgen/generator.py
"""
ormgen - Generation Pipeline (Orchestrator)
===========================================

Sequences one generation run::

    1. Validate configuration            (ConfigValidationError)
    2. Driver.assemble()                 (DriverError)
    3. Cross-check config vs. schema     (ConfigValidationError / warnings)
    4. Alias phase                       aliases + column annotations
    5. Type replacement phase            ordered rule fold over every column
    6. Relationship phase                constraints, FK/explicit, back-refs
    7. Hand-off to the renderer          RenderContext -> {path: content}

Error handling strategy:
    - Phases run strictly one after another on a single model.
    - Any exception aborts the run and propagates unchanged; nothing is
      retried and no partial model reaches the renderer.
    - Warnings from validation are logged and recorded in the report.

The ``Generator`` is single-use per ``run()`` call but may be run again;
every run asks the driver for a fresh model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ormgen import __version__
from ormgen.aliases import AliasResolver, ResolvedAliases, annotate_columns
from ormgen.drivers import Driver, load_document
from ormgen.errors import ConfigValidationError
from ormgen.inflection import Inflector
from ormgen.models import GenerationConfig, Relationship, SchemaModel
from ormgen.relationships import RelationshipResolver, merge_constraints
from ormgen.replacements import apply_replacements
from ormgen.templates import ManifestRenderer, RenderContext, Renderer, generated_header
from ormgen.utils import Timer, count_lines
from ormgen.validators import (
    ValidationResult,
    raise_for_errors,
    validate_against_schema,
    validate_config,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Produced by ``Generator.run()`` after a successful run."""

    dialect: str = ""
    header: str = ""
    total_tables: int = 0
    total_columns: int = 0
    total_relationships: int = 0
    back_references: int = 0
    columns_replaced: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    files: Dict[str, str] = field(default_factory=dict)
    aliases: Optional[ResolvedAliases] = None

    @property
    def total_lines(self) -> int:
        return sum(count_lines(content) for content in self.files.values())

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        lines.append(f"{'=' * 60}")
        lines.append("  ormgen — Generation Report")
        lines.append(f"{'=' * 60}")
        lines.append(f"  Dialect:          {self.dialect}")
        lines.append(f"  Tables:           {self.total_tables}")
        lines.append(f"  Columns:          {self.total_columns}")
        lines.append(f"  Columns replaced: {self.columns_replaced}")
        lines.append(
            f"  Relationships:    {self.total_relationships} "
            f"({self.back_references} back-references)"
        )
        lines.append(f"  Files rendered:   {len(self.files)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append(f"{'─' * 60}")
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                lines.append(
                    f"    ✓ {step.step_name:<24s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        if self.warnings:
            lines.append(f"{'─' * 60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Configuration loading
# ---------------------------------------------------------------------------


def parse_config(raw: Dict[str, Any]) -> GenerationConfig:
    """
    Build a ``GenerationConfig`` from a raw mapping.

    Raises:
        ConfigValidationError: the mapping does not describe a valid config.
    """
    try:
        return GenerationConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(
            f"Config validation failed: {exc}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def load_config_file(path: Path) -> GenerationConfig:
    """
    Load a YAML/JSON configuration file.

    Raises:
        ConfigValidationError: missing, unparsable or invalid file.
    """
    try:
        raw: Dict[str, Any] = load_document(Path(path))
    except (FileNotFoundError, ValueError) as exc:
        raise ConfigValidationError(str(exc), entities=[str(path)]) from exc

    logger.info("Loaded config file: %s (%d top-level keys).", path, len(raw))
    return parse_config(raw)


# ---------------------------------------------------------------------------
# Generator (orchestrator)
# ---------------------------------------------------------------------------


class Generator:
    """
    Run the resolution pipeline and hand the result to a renderer.

    Usage::

        generator = Generator(FileDriver(Path("schema.yaml")), config)
        report = generator.run()
        print(report.summary())

    Args:
        driver: Source of the schema model.
        config: Validated generation configuration.
        renderer: Rendering collaborator; ``ManifestRenderer`` by default.
        templates: Opaque template sources passed through to the renderer.
    """

    def __init__(
        self,
        driver: Driver,
        config: Optional[GenerationConfig] = None,
        renderer: Optional[Renderer] = None,
        templates: Sequence[str] = (),
    ) -> None:
        self._driver: Driver = driver
        self._config: GenerationConfig = config or GenerationConfig()
        self._renderer: Renderer = renderer or ManifestRenderer()
        self._templates: tuple = tuple(templates)

    @property
    def config(self) -> GenerationConfig:
        return self._config

    # -----------------------------------------------------------------
    # Phases
    # -----------------------------------------------------------------

    def _step(self, report: GenerationReport, name: str, timer: Timer, detail: str) -> None:
        report.step_metrics.append(GenerationStepMetric(
            step_name=name,
            elapsed_seconds=timer.elapsed,
            detail=detail,
        ))
        logger.info("%s: %s (%.3fs).", name, detail, timer.elapsed)

    def _validate(self, report: GenerationReport) -> None:
        with Timer("validate_config") as t:
            result: ValidationResult = validate_config(self._config)
            raise_for_errors(result)
        report.warnings.extend(str(w) for w in result.warnings)
        self._step(report, "Validate Config", t, result.summary())

    def _assemble(self, report: GenerationReport) -> SchemaModel:
        with Timer("assemble") as t:
            schema: SchemaModel = self._driver.assemble()
        report.dialect = self._driver.name
        self._step(
            report,
            "Assemble Schema",
            t,
            f"{len(schema.tables)} tables, {schema.total_columns} columns",
        )
        return schema

    def _cross_check(self, schema: SchemaModel, report: GenerationReport) -> None:
        with Timer("cross_check") as t:
            result: ValidationResult = validate_against_schema(self._config, schema)
            raise_for_errors(result)
        report.warnings.extend(str(w) for w in result.warnings)
        self._step(report, "Cross-check Config", t, result.summary())

    def _resolve_aliases(
        self,
        schema: SchemaModel,
        report: GenerationReport,
    ) -> ResolvedAliases:
        with Timer("aliases") as t:
            resolver = AliasResolver(
                self._config.aliases,
                Inflector(self._config.inflections),
            )
            aliases: ResolvedAliases = resolver.resolve(schema)
            annotated: int = annotate_columns(
                schema,
                self._config.tags,
                self._config.tag_ignore,
                self._config.tag_casing,
            )
        self._step(
            report,
            "Resolve Aliases",
            t,
            f"{len(aliases.tables)} tables, {annotated} columns annotated",
        )
        return aliases

    def _replace_types(self, schema: SchemaModel, report: GenerationReport) -> None:
        with Timer("replacements") as t:
            report.columns_replaced = apply_replacements(
                schema, self._config.replacements
            )
        self._step(
            report,
            "Replace Types",
            t,
            f"{len(self._config.replacements)} rules, "
            f"{report.columns_replaced} columns rewritten",
        )

    def _resolve_relationships(
        self,
        schema: SchemaModel,
        aliases: ResolvedAliases,
        report: GenerationReport,
    ) -> None:
        with Timer("relationships") as t:
            merge_constraints(schema, self._config.constraints)
            resolver = RelationshipResolver(
                self._config.relationships,
                no_back_referencing=self._config.no_back_referencing,
            )
            relationships: List[Relationship] = resolver.resolve(schema, aliases)
        report.total_relationships = len(relationships)
        report.back_references = sum(
            1 for rel in relationships if rel.synthetic_back_reference
        )
        self._step(
            report,
            "Resolve Relationships",
            t,
            f"{len(relationships)} relationships",
        )

    def _header(self) -> str:
        attribution: str = self._config.generator or (
            f"ormgen {self._driver.name} v{__version__}"
        )
        return generated_header(attribution)

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def resolve(self, report: Optional[GenerationReport] = None) -> RenderContext:
        """
        Run every resolution phase and return the render context without
        rendering it.
        """
        report = report if report is not None else GenerationReport()

        self._validate(report)
        schema: SchemaModel = self._assemble(report)
        self._cross_check(schema, report)
        aliases: ResolvedAliases = self._resolve_aliases(schema, report)
        self._replace_types(schema, report)
        self._resolve_relationships(schema, aliases, report)

        report.total_tables = len(schema.tables)
        report.total_columns = schema.total_columns
        report.header = self._header()
        report.aliases = aliases

        return RenderContext(
            schema=schema,
            aliases=aliases,
            header=report.header,
            dialect=self._driver.name,
            relation_tag=self._config.relation_tag,
            tags=tuple(self._config.tags),
            templates=self._templates,
        )

    def run(self) -> GenerationReport:
        """
        Execute the full pipeline.

        Raises:
            DriverError, ConfigValidationError, ResolutionError: unchanged
                from the phase that failed.
        """
        report = GenerationReport()
        with Timer("run") as total:
            context: RenderContext = self.resolve(report)
            with Timer("render") as t:
                report.files = self._renderer.render(context)
            self._step(report, "Render", t, f"{len(report.files)} files")
            del context
        report.total_elapsed_seconds = total.elapsed

        logger.info(
            "Generation complete: %d tables, %d files in %.3fs.",
            report.total_tables,
            len(report.files),
            report.total_elapsed_seconds,
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Generator",
    "GenerationReport",
    "GenerationStepMetric",
    "parse_config",
    "load_config_file",
]

logger.debug("ormgen.generator loaded.")

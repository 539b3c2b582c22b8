# File: ormgen/templates.py
"""
ormgen - Rendering Port
=======================
The seam between the resolution core and whatever turns the resolved model
into source files.

``Generator`` builds one immutable ``RenderContext`` per run and passes it to
a ``Renderer``.  A renderer returns ``{relative_path: content}``; writing
files is left to the caller.

``ManifestRenderer`` is the built-in renderer.  It emits a JSON manifest of
the resolved model and aliases, and fills ``$header``, ``$dialect`` and
``$tables`` placeholders in any template sources passed along.  Its output is
byte-identical for identical input.
"""

from __future__ import annotations

import json
import logging
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ormgen.aliases import ResolvedAliases
from ormgen.models import SchemaModel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.templates")


def generated_header(generator: str) -> str:
    """The first line of every generated file."""
    return f"Code generated by {generator}. DO NOT EDIT."


@dataclass(frozen=True)
class RenderContext:
    """Everything a renderer receives.  The model must not be mutated."""

    schema: SchemaModel
    aliases: ResolvedAliases
    header: str
    dialect: str = ""
    relation_tag: str = "-"
    tags: Tuple[str, ...] = ()
    templates: Tuple[str, ...] = field(default_factory=tuple)


class Renderer(ABC):
    """Turns a ``RenderContext`` into ``{relative_path: content}``."""

    @abstractmethod
    def render(self, context: RenderContext) -> Dict[str, str]:
        ...


class ManifestRenderer(Renderer):
    """
    Emit ``<base_name>.json`` describing the resolved model, plus one file per
    template source (``template_00.txt``, ``template_01.txt``, ...).
    """

    def __init__(self, base_name: str = "models") -> None:
        self._base_name: str = base_name

    @staticmethod
    def build_manifest(context: RenderContext) -> Dict[str, Any]:
        tables: List[Dict[str, Any]] = []
        for table in context.schema.tables:
            tables.append({
                "name": table.name,
                "aliases": context.aliases.table(table.name).model_dump(mode="json"),
                "columns": [c.model_dump(mode="json") for c in table.columns],
                "constraints": [c.model_dump(mode="json") for c in table.constraints],
                "relationships": [
                    r.model_dump(mode="json") for r in table.relationships
                ],
            })
        return {
            "header": context.header,
            "dialect": context.dialect,
            "tags": list(context.tags),
            "relation_tag": context.relation_tag,
            "tables": tables,
        }

    def render(self, context: RenderContext) -> Dict[str, str]:
        files: Dict[str, str] = {}
        manifest: Dict[str, Any] = self.build_manifest(context)
        files[f"{self._base_name}.json"] = (
            json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"
        )

        substitutions: Dict[str, str] = {
            "header": context.header,
            "dialect": context.dialect,
            "tables": ", ".join(context.schema.table_names),
        }
        for index, source in enumerate(context.templates):
            rendered: str = string.Template(source).safe_substitute(substitutions)
            files[f"template_{index:02d}.txt"] = rendered

        logger.info("Rendered %d file(s).", len(files))
        return files


__all__: List[str] = [
    "generated_header",
    "RenderContext",
    "Renderer",
    "ManifestRenderer",
]

logger.debug("ormgen.templates loaded.")

# File: ormgen/drivers.py
"""
ormgen - Driver Port
====================
The contract the pipeline uses to obtain a ``SchemaModel``.

Concrete drivers (one per storage engine) live outside this package and
implement ``Driver``.  The core only ever calls ``assemble()``; drivers
typically build the model through ``table_columns()``.

Two drivers ship with the package:

- ``StaticDriver`` serves an in-memory ``SchemaModel`` (tests, embedding).
- ``FileDriver`` reads a YAML/JSON schema document.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ormgen.errors import DriverError
from ormgen.models import Column, SchemaModel, Table

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.drivers")


class ColumnFilter(BaseModel):
    """Restrict the columns returned for a table."""

    model_config = ConfigDict(extra="forbid")

    only: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    def allows(self, column_name: str) -> bool:
        if self.only and column_name not in self.only:
            return False
        return column_name not in self.exclude


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


class Driver(ABC):
    """
    Schema introspection contract.

    Implementations raise ``DriverError`` when the catalog cannot be read.
    Calls are blocking; any concurrency stays inside the driver.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short dialect name, used in the generator attribution."""

    @abstractmethod
    def assemble(self) -> SchemaModel:
        """Return the complete schema model."""

    @abstractmethod
    def table_columns(
        self,
        table_name: str,
        column_filter: Optional[ColumnFilter] = None,
    ) -> List[Column]:
        """Return the ordered columns of one table."""


# ---------------------------------------------------------------------------
# In-memory driver
# ---------------------------------------------------------------------------


class StaticDriver(Driver):
    """
    Serve a pre-built schema.

    ``assemble()`` returns a fresh deep copy on every call so the pipeline
    can mutate it freely.
    """

    def __init__(
        self,
        schema: SchemaModel,
        *,
        name: str = "static",
        column_filters: Optional[Dict[str, ColumnFilter]] = None,
    ) -> None:
        self._schema: SchemaModel = schema
        self._name: str = name
        self._column_filters: Dict[str, ColumnFilter] = column_filters or {}

    @property
    def name(self) -> str:
        return self._name

    def table_columns(
        self,
        table_name: str,
        column_filter: Optional[ColumnFilter] = None,
    ) -> List[Column]:
        table: Optional[Table] = self._schema.get_table(table_name)
        if table is None:
            raise DriverError(
                f"Table '{table_name}' does not exist",
                entities=[table_name],
            )
        active: ColumnFilter = column_filter or ColumnFilter()
        return [
            col.model_copy(deep=True)
            for col in table.columns
            if active.allows(col.name)
        ]

    def assemble(self) -> SchemaModel:
        tables: List[Table] = []
        for table in self._schema.tables:
            columns: List[Column] = self.table_columns(
                table.name, self._column_filters.get(table.name)
            )
            tables.append(Table(
                name=table.name,
                columns=columns,
                constraints=[c.model_copy(deep=True) for c in table.constraints],
            ))
        logger.info("Assembled %d table(s) from %s driver.", len(tables), self._name)
        return SchemaModel(tables=tables)


# ---------------------------------------------------------------------------
# File driver
# ---------------------------------------------------------------------------


def load_document(path: Path) -> Dict[str, Any]:
    """
    Read a YAML or JSON mapping from *path*.

    ``.json`` files go through ``json``; anything else through PyYAML
    (a superset of JSON).

    Raises:
        FileNotFoundError: the file does not exist.
        ValueError: the file cannot be parsed or is not a mapping.
    """
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    text: str = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Cannot parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    return data


class FileDriver(Driver):
    """
    Read the schema from a YAML/JSON document::

        dialect: psql
        tables:
          - name: users
            columns:
              - {name: id, type: int, db_type: serial}
            constraints:
              - {name: users_pkey, kind: primary_key, columns: [id]}
    """

    def __init__(self, path: Path) -> None:
        self._path: Path = Path(path)
        self._static: Optional[StaticDriver] = None

    @property
    def name(self) -> str:
        return self._load().name

    def _load(self) -> StaticDriver:
        if self._static is not None:
            return self._static

        try:
            raw: Dict[str, Any] = load_document(self._path)
        except (FileNotFoundError, ValueError) as exc:
            raise DriverError(str(exc), entities=[str(self._path)]) from exc

        dialect: str = str(raw.pop("dialect", "file"))
        try:
            schema: SchemaModel = SchemaModel.model_validate(raw)
        except ValidationError as exc:
            raise DriverError(
                f"Invalid schema document: {exc}",
                entities=[str(self._path)],
            ) from exc

        logger.debug("Loaded schema document %s (%s).", self._path, dialect)
        self._static = StaticDriver(schema, name=dialect)
        return self._static

    def table_columns(
        self,
        table_name: str,
        column_filter: Optional[ColumnFilter] = None,
    ) -> List[Column]:
        return self._load().table_columns(table_name, column_filter)

    def assemble(self) -> SchemaModel:
        return self._load().assemble()


__all__: List[str] = [
    "ColumnFilter",
    "Driver",
    "StaticDriver",
    "FileDriver",
    "load_document",
]

logger.debug("ormgen.drivers loaded.")

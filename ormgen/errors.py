# File: ormgen/errors.py
"""
ormgen - Error Hierarchy
========================

Every failure raised by the generation pipeline derives from
``OrmgenError``.  Each error carries the pipeline *phase* it belongs to and
the identifiers of the offending entities so that user-visible messages
always point at something concrete.

    OrmgenError
    ├── DriverError            (phase "assemble")
    ├── ConfigValidationError  (phase "config")
    └── ResolutionError        (phase "relationships" by default)

None of these are retried or swallowed by the orchestrator.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

logger: logging.Logger = logging.getLogger("ormgen.errors")


class OrmgenError(Exception):
    """Base class for all pipeline errors."""

    default_phase: str = "generation"

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        entities: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.phase: str = phase or self.default_phase
        self.entities: List[str] = list(entities or [])
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        if self.entities:
            return f"[{self.phase}] {self.message} ({', '.join(self.entities)})"
        return f"[{self.phase}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "phase": self.phase,
            "message": self.message,
            "entities": self.entities,
            "details": self.details,
        }


class DriverError(OrmgenError):
    """Schema introspection failed; no partial model is retained."""

    default_phase = "assemble"


class ConfigValidationError(OrmgenError):
    """
    Malformed or conflicting configuration.

    ``issues`` holds the individual validation items (see
    ``ormgen.validators.ValidationIssue``) when the error comes from the
    validation pipeline.
    """

    default_phase = "config"

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[Sequence[Any]] = None,
        phase: Optional[str] = None,
        entities: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, phase=phase, entities=entities, details=details)
        self.issues: List[Any] = list(issues or [])


class ResolutionError(OrmgenError):
    """Internal inconsistency, e.g. a relationship naming an unknown table."""

    default_phase = "relationships"


__all__: List[str] = [
    "OrmgenError",
    "DriverError",
    "ConfigValidationError",
    "ResolutionError",
]

"""
Exception hierarchy for the world facts harvester.

Row-level problems (an unresolvable name, a malformed single field) are
logged and skipped by the builders and never surface as exceptions.
Everything defined here is fatal for the builder that raised it.
"""

from typing import Optional, Any, Dict


class HarvestError(Exception):
    """
    Base exception for all harvester errors.

    Carries a human-readable message plus an optional dictionary of context
    that is appended to the string representation.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(HarvestError):
    """Invalid configuration or seed data."""


class FetchError(HarvestError):
    """
    Transport failure while retrieving a document or a binary resource.
    """

    def __init__(self, url: str, kind: str = "unknown", original_error: Optional[Exception] = None):
        super().__init__(f"Failed to fetch {url}", {"kind": kind})
        self.url = url
        self.kind = kind
        self.original_error = original_error

    def __str__(self) -> str:
        base = super().__str__()
        if self.original_error:
            return f"{base} | Caused by: {type(self.original_error).__name__}: {self.original_error}"
        return base


class ScanError(HarvestError):
    """
    The table scanner could not produce rows: the document has no tables,
    no table matches the schema, or a column selector is malformed.
    """


class SchemaError(HarvestError):
    """
    A scanned row does not have the shape its builder declared, or carries
    a structurally impossible value (wrong code length, non-numeric code).
    """


class BuilderError(HarvestError):
    """
    Fatal failure of a single pipeline stage.
    """

    def __init__(self, builder: str, cause: Exception):
        super().__init__(f"Builder '{builder}' failed: {cause}", {"builder": builder})
        self.builder = builder
        self.cause = cause

    def __str__(self) -> str:
        return self.message

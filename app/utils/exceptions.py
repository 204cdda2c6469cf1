"""
Custom Exception Hierarchy

Provides specific exception types for the CDR core with structured
error information that the API layer renders directly.
"""
from typing import Optional, Dict, Any


class CdrCoreError(Exception):
    """Base exception for all CDR core errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class CatalogError(CdrCoreError):
    """Errors while loading or validating a rule/test catalog file."""

    def __init__(
        self,
        message: str,
        path: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="CATALOG_ERROR",
            details={"path": path, **(details or {})}
        )
        self.path = path


class TrackingEntryNotFoundError(CdrCoreError):
    """A tracking operation referenced a CDR that is not being tracked."""

    def __init__(
        self,
        cdr_id: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"No tracking entry for CDR '{cdr_id}'",
            code="TRACKING_ENTRY_NOT_FOUND",
            details={"cdr_id": cdr_id, **(details or {})}
        )
        self.cdr_id = cdr_id


class ComponentNotFoundError(CdrCoreError):
    """An answer referenced a component the CDR does not define."""

    def __init__(
        self,
        cdr_id: str,
        component_id: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"CDR '{cdr_id}' has no component '{component_id}'",
            code="COMPONENT_NOT_FOUND",
            details={"cdr_id": cdr_id, "component_id": component_id, **(details or {})}
        )
        self.cdr_id = cdr_id
        self.component_id = component_id


class InvalidComponentValueError(CdrCoreError):
    """An answer value is not acceptable for the component's type."""

    def __init__(
        self,
        message: str,
        component_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INVALID_COMPONENT_VALUE",
            details={"component_id": component_id, **(details or {})}
        )
        self.component_id = component_id


class InvalidSectionError(CdrCoreError):
    """Documentation section numbers are limited to 1-3."""

    def __init__(
        self,
        section: Any,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Invalid documentation section: {section!r}",
            code="INVALID_SECTION",
            details={"section": section, **(details or {})}
        )
        self.section = section


class EncounterNotFoundError(CdrCoreError):
    """A request referenced an encounter whose tracking was never initialized."""

    def __init__(
        self,
        encounter_id: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"No tracking session for encounter '{encounter_id}'",
            code="ENCOUNTER_NOT_FOUND",
            details={"encounter_id": encounter_id, **(details or {})}
        )
        self.encounter_id = encounter_id

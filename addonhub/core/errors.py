# addonhub/core/errors.py
from __future__ import annotations

__all__ = [
    "CatalogError",
    "CatalogNotFoundError",
    "CatalogUnavailableError",
    "DependencySpecError",
]



class CatalogError(RuntimeError):
    """Base class for remote catalog failures."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url: str | None = url



class CatalogNotFoundError(CatalogError):
    """The catalog answered 404. Terminal, never retried."""



class CatalogUnavailableError(CatalogError):
    """Retries exhausted on a transient failure (timeouts, 408/429, 5xx)."""



class DependencySpecError(ValueError):
    """Raised for dependency spec text that does not follow name[>=version]."""

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw: str | None = raw

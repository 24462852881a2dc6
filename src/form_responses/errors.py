from __future__ import annotations


class PortalError(Exception):
    """Base class for failures surfaced at the ingestion, query and export boundaries."""


class ValidationError(PortalError, ValueError):
    pass


class RecordNotFound(PortalError, LookupError):
    pass


class StoreError(PortalError, RuntimeError):
    pass


class ExportError(PortalError, RuntimeError):
    pass

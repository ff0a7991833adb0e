"""Exception hierarchy for the divider card tools."""
from __future__ import annotations


class DividerCardsError(Exception):
    """Base class for all errors raised by this package."""


class IconConversionError(DividerCardsError):
    """An icon could not be turned into an inline raster."""


class FetchError(IconConversionError):
    """The proxy fetch for an icon did not succeed."""


class IconDecodeError(IconConversionError):
    """The fetched icon could not be decoded or rendered."""


class IconTimeoutError(IconConversionError, TimeoutError):
    """Rendering an icon did not finish in time."""


class RenderError(DividerCardsError):
    """The snapshot of the card grid could not be captured."""


class AssemblyError(DividerCardsError):
    """The PDF document could not be assembled or written."""


class ExportError(DividerCardsError):
    """Generic failure of an export attempt."""


class EmptyExportError(DividerCardsError):
    """An export was requested with no cards on the surface."""


class ExportInProgressError(DividerCardsError):
    """Another export is still running on this exporter."""


class CatalogError(DividerCardsError):
    """The set catalog lookup failed."""


class DuplicateSetError(DividerCardsError):
    """A set with the same code is already in the list."""


class PrintError(DividerCardsError):
    """The platform print command is unavailable or failed."""


class StateFileError(DividerCardsError):
    """The saved set list could not be read."""

"""
Exceptions raised by ovara.

Only I/O failures are raised. Store and session operations on unknown
identifiers are no-ops and never raise.
"""


class OvaraError(Exception):
    """Base class for ovara errors."""


class ImageLoadError(OvaraError):
    """An image or image directory could not be read."""


class ExportError(OvaraError):
    """Label files could not be written."""


class PersistenceError(OvaraError):
    """The project collection could not be saved or loaded."""

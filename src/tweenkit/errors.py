"""Exception types raised by the evaluator and exporters."""


class ExportError(Exception):
    """Base exception for export failures."""
    pass


class ExportSetupError(ExportError):
    """Raised before any frame work begins when an export cannot be set up."""
    pass


class InvalidExportOptionsError(ExportSetupError, ValueError):
    """Raised when export options are out of range or inconsistent."""
    pass


class EncoderUnavailableError(ExportSetupError):
    """Raised when no usable encoder was found during codec negotiation."""
    pass


class RasterizerUnavailableError(ExportSetupError):
    """Raised when the requested rasterization strategy cannot run here."""
    pass


class ExportCancelledError(ExportError):
    """Raised when the caller cancels an export between frames."""
    pass


class SceneFormatError(ValueError):
    """Raised when a scene document cannot be parsed."""
    pass


class SceneValidationError(ValueError):
    """Raised when scene timeline or artboard parameters are invalid."""
    pass

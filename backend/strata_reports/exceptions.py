"""
Domain exceptions for the report engine.

The engine raises these instead of fastapi.HTTPException so it stays
usable outside the web layer. A global exception handler in main.py
translates them into HTTP responses.
"""


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidSpecError(AppError):
    """Structural spec violation by the caller (400).

    Column/row length mismatches, tables wider than the page, or chart
    series that do not line up with their labels.
    """

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class ChartRenderFailure(AppError):
    """A single chart could not be rasterized.

    Non-fatal: report sequences catch it and omit the chart.
    """

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class RenderError(AppError):
    """Fatal engine fault; no document is produced (500)."""

    def __init__(self, message: str = "Report rendering failed"):
        super().__init__(message, status_code=500)


class DocumentFinalizeFailure(RenderError):
    """The PDF writer failed while emitting or finalizing the document."""

    def __init__(self, message: str = "PDF finalization failed"):
        super().__init__(message)

"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class BoothDlError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(BoothDlError):
    """Raised for issues related to settings loading, validation or saving."""


class ArchiveBuildError(BoothDlError):
    """
    Raised when the fetched files could not be packed into the archive.

    The number of otherwise successful downloads is kept so the caller can report
    "downloaded N files but failed to package them".
    """

    def __init__(self, message: str, success_count: int = 0):
        super().__init__(message)
        self.success_count = success_count


class OutputError(BoothDlError):
    """Raised when the assembled archive cannot be written to its destination."""

"""Exception types shared by the parser, store, and CLI layers"""


class SOPHubError(Exception):
    """Base class for all sophub errors."""


class ParseFailure(SOPHubError, ValueError):
    """YAML input is not valid YAML, not a mapping, or not a valid SOP shape."""


class ImportFailure(SOPHubError):
    """A source file could not be parsed during import."""

    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to parse {path} - check the format")


class NotFoundError(SOPHubError, LookupError):
    """No SOP exists with the requested id."""


class ValidationError(SOPHubError, ValueError):
    """Input rejected by the store before persisting."""

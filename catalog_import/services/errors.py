"""Exceptions raised by the catalog import pipeline."""


class ImportPipelineError(Exception):
    """Base class for catalog import failures."""


class ParseError(ImportPipelineError):
    """Raised when an uploaded file cannot be turned into rows."""


class StateError(ImportPipelineError):
    """Raised when a job is not in the status an operation requires."""


class CommitRowError(ImportPipelineError):
    """Raised when a single preview row cannot be applied to the catalog."""

    def __init__(self, row_number: int, message: str):
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number

"""Error types for depbump.

Core modules raise these; only the CLI turns them into exit codes.
"""

from typing import Any


class DepbumpError(Exception):
    """Base class for every depbump failure."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class SourceError(DepbumpError):
    """A single remote version source failed."""

    def __init__(self, source_name: str, message: str):
        super().__init__(f"{source_name}: {message}", details={"source": source_name})
        self.source_name = source_name


class ResolutionFailure(DepbumpError):
    """No remote source produced a usable version."""

    def __init__(self, errors: list[SourceError]):
        summary = "; ".join(str(e) for e in errors) or "no sources configured"
        super().__init__(f"Could not resolve latest version ({summary})")
        self.errors = errors


class MutationFailure(DepbumpError):
    """The manifest could not be rewritten."""


class BuildFailure(DepbumpError):
    """The project failed to build after the manifest was rewritten."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message, details={"output": output})
        self.output = output


class OperatorAbort(DepbumpError):
    """The operator declined a prompt or gave invalid input."""


class StaleBackupError(OperatorAbort):
    """A leftover backup from an earlier run blocked the update."""

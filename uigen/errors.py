"""
Exception types shared by the detector and the sandbox renderer.
"""

from typing import Optional


class UigenError(Exception):
    """Base class for errors raised by the uigen core."""
    pass


class RegistryError(UigenError):
    """Raised when a package registry is malformed (duplicate names, bad patterns)."""
    pass


class TransformError(UigenError):
    """Raised when generated source cannot be rewritten into an executable unit."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} ({line}:{column})"
        super().__init__(message)


class ExecutionError(UigenError):
    """Raised by an executor when the sandboxed program fails to produce output."""
    pass


class SandboxTimeout(ExecutionError):
    """Raised when the sandboxed program exceeds its wall-clock budget."""
    pass


class SandboxResourceError(ExecutionError):
    """Raised when the sandboxed program exceeds its memory budget."""
    pass

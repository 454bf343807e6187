from __future__ import annotations

from typing import Optional, Tuple


class ExbnError(Exception):
    """Base class for every error raised by exbn."""


class NetworkError(ExbnError, ValueError):
    pass


class CycleError(NetworkError):
    def __init__(self, message: str, edge: Optional[Tuple[str, str]] = None):
        super().__init__(message)
        self.edge = edge


class PermutationError(NetworkError):
    pass


class CPTLookupError(ExbnError, IndexError):
    def __init__(
        self,
        message: str,
        variable: Optional[str] = None,
        row: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(message)
        self.variable = variable
        self.row = row
        self.column = column


class EvidenceError(ExbnError, ValueError):
    pass


class StateSpaceError(ExbnError, RuntimeError):
    pass


class BIFParseError(ExbnError, ValueError):
    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line

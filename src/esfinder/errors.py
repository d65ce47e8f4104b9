# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Exception hierarchy for esfinder.

Errors on a directly named input are raised to the caller. Errors on files
discovered while scanning a directory are reported on the warning channel
instead (see diagnostics.py).
"""

from typing import Optional


class EsfinderError(Exception):
    """Base class for all esfinder errors."""

    pass


class UnresolvablePathError(EsfinderError, FileNotFoundError):
    """Raised when a requested file or specifier maps to no existing file."""

    def __init__(self, specifier: str, base_dir: Optional[str] = None):
        self.specifier = specifier
        self.base_dir = base_dir
        if base_dir is None:
            message = f"Cannot resolve file path: {specifier}"
        else:
            message = f"Cannot resolve '{specifier}' from {base_dir}"
        super().__init__(message)


class ParseError(EsfinderError):
    """Raised when a parser backend cannot parse a file."""

    def __init__(self, filepath: str, reason: str, line: Optional[int] = None):
        self.filepath = filepath
        self.reason = reason
        self.line = line
        location = f"{filepath}:{line}" if line is not None else filepath
        super().__init__(f"Failed to parse {location}: {reason}")


class BackendUnavailableError(EsfinderError):
    """Raised when a parser backend cannot run in this environment."""

    def __init__(self, backend: str, requirement: str, alternatives: Optional[list] = None):
        self.backend = backend
        self.requirement = requirement
        self.alternatives = list(alternatives or [])
        message = f"Parser backend '{backend}' is not available: requires {requirement}."
        if self.alternatives:
            message += f" Try parser_backend={self.alternatives[0]!r} instead."
        super().__init__(message)

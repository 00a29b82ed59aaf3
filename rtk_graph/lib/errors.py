#!/usr/bin/env python3
"""
errors.py

Error types shared by the RTK parsing, graph and tree modules.

Parse and data errors abort the call that raised them. Resolution problems
(unmatched mnemonic keywords, duplicate node ids) are collected as
ResolutionWarning values and never raised.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


class RTKError(Exception):
    """Base class for all RTK graph errors."""


class RTKParseError(RTKError):
    """A CSV row (or the whole file) could not be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.line_number = line_number


class RTKDataError(RTKError):
    """Structurally invalid build input or an unusable tree root."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class RTKConfigError(RTKError):
    """A configuration or auxiliary data file is unreadable or invalid."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


# ---------------------------------------------------------------------------
# Non-fatal diagnostics
# ---------------------------------------------------------------------------

MISSING_MNEMONIC = "missing_mnemonic"
DUPLICATE_NODE = "duplicate_node"


@dataclass(frozen=True)
class ResolutionWarning:
    """A non-fatal problem found while building the graph."""
    kind: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"

# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Warning channel for partial-failure reporting.

Directory-wide operations never abort because one discovered file is
unreadable, unparseable or imports something that does not exist. Those
problems are recorded here as structured warnings and logged, and the
operation carries on.

Warning Format:
- type: one of the WarningType values
- file: Absolute path of the file the warning is about
- message: Human-readable summary
- timestamp: ISO 8601 timestamp
- specifier: Import specifier involved (optional)
- line: Line number (optional)
- metadata: Additional string fields (optional)
"""

import json
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class WarningType:
    """Warning type identifiers."""

    UNRESOLVED_IMPORT = "unresolved_import"
    UNRESOLVED_TARGET = "unresolved_target"
    PARSE_FAILURE = "parse_failure"
    READ_FAILURE = "read_failure"


@dataclass
class AnalysisWarning:
    """A structured warning emitted during analysis."""

    type: str
    file: str
    message: str
    timestamp: str
    specifier: Optional[str] = None
    line: Optional[int] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary.

        Returns:
            Dictionary with all fields, excluding None values for optional fields.
        """
        result: Dict[str, Any] = {
            "type": self.type,
            "file": self.file,
            "message": self.message,
            "timestamp": self.timestamp,
        }

        if self.specifier is not None:
            result["specifier"] = self.specifier
        if self.line is not None:
            result["line"] = self.line
        if self.metadata:
            result["metadata"] = self.metadata

        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisWarning":
        """Create AnalysisWarning from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            type=data["type"],
            file=data["file"],
            message=data["message"],
            timestamp=data["timestamp"],
            specifier=data.get("specifier"),
            line=data.get("line"),
            metadata=data.get("metadata", {}),
        )

    def format_human_readable(self) -> str:
        location = f"{self.file}:{self.line}" if self.line is not None else self.file
        return f"⚠️ {location} - {self.message}"


class WarningCollector:
    """Thread-safe accumulator for analysis warnings.

    Every emitted warning is also logged at WARNING level with the
    structured fields attached as ``extra_fields`` so the JSON log handler
    records them.
    """

    def __init__(self) -> None:
        self._warnings: List[AnalysisWarning] = []
        self._lock = threading.Lock()

    def emit(
        self,
        warning_type: str,
        filepath: str,
        message: str,
        specifier: Optional[str] = None,
        line: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> AnalysisWarning:
        """Record a warning and log it.

        Returns:
            The recorded warning.
        """
        warning = AnalysisWarning(
            type=warning_type,
            file=filepath,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            specifier=specifier,
            line=line,
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._warnings.append(warning)

        logger.warning(
            warning.format_human_readable(), extra={"extra_fields": {"warning": warning.to_dict()}}
        )
        return warning

    def get_warnings(self, warning_type: Optional[str] = None) -> List[AnalysisWarning]:
        """Return a snapshot of recorded warnings, optionally filtered by type."""
        with self._lock:
            warnings = list(self._warnings)
        if warning_type is not None:
            warnings = [w for w in warnings if w.type == warning_type]
        return warnings

    def clear(self) -> None:
        with self._lock:
            self._warnings.clear()

    def summary(self) -> Dict[str, int]:
        """Count recorded warnings by type."""
        with self._lock:
            return dict(Counter(w.type for w in self._warnings))

    def __len__(self) -> int:
        with self._lock:
            return len(self._warnings)

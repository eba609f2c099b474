"""
Standardized warning and message system for KForge.

Provides structured message items with stable codes so the CLI and tests
can identify conditions without matching on free-form text.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class MessageLevel(Enum):
    """Severity level for messages."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class WarningCode(Enum):
    """Stable codes for known analysis conditions."""
    # Scan results
    W_AMBIGUOUS_REGIONS = "W_AMBIGUOUS_REGIONS"
    E_NO_REGIONS = "E_NO_REGIONS"

    # Classification
    E_UNKNOWN_FORMAT = "E_UNKNOWN_FORMAT"

    # Input
    E_BAD_PATH = "E_BAD_PATH"
    E_MISSING_ARGUMENT = "E_MISSING_ARGUMENT"

    # Generic
    E_UNKNOWN = "E_UNKNOWN"


# Default remediation hints for each code
WARNING_REMEDIATIONS: Dict[WarningCode, str] = {
    WarningCode.W_AMBIGUOUS_REGIONS:
        "Only one region holds the real kernel. Check sizes and offsets and pick it yourself.",
    WarningCode.E_NO_REGIONS:
        "The image may be uncompressed, encrypted, or use an unsupported container.",
    WarningCode.E_UNKNOWN_FORMAT:
        "No extraction recipe exists for this format. Other regions are still planned.",
    WarningCode.E_BAD_PATH:
        "Pass a path to a regular file, e.g. --file vmlinuz.",
    WarningCode.E_MISSING_ARGUMENT:
        "Run with --help to see required options.",
    WarningCode.E_UNKNOWN:
        "Re-run with --verbose for details.",
}


@dataclass
class WarningItem:
    """
    Structured message with stable code.

    Attributes:
        level: Severity (INFO, WARN, ERROR)
        code: Stable code for programmatic handling
        title: Short, user-facing title
        detail: Longer explanation
        remediation: Suggested action
    """
    level: MessageLevel
    code: WarningCode
    title: str
    detail: str = ""
    remediation: str = ""

    def __post_init__(self):
        """Set default remediation if not provided."""
        if not self.remediation and self.code in WARNING_REMEDIATIONS:
            self.remediation = WARNING_REMEDIATIONS[self.code]

    @classmethod
    def warn(
        cls,
        code: WarningCode,
        title: str,
        detail: str = "",
        remediation: str = "",
    ) -> "WarningItem":
        """Create a WARN-level item."""
        return cls(MessageLevel.WARN, code, title, detail, remediation)

    @classmethod
    def error(
        cls,
        code: WarningCode,
        title: str,
        detail: str = "",
        remediation: str = "",
    ) -> "WarningItem":
        """Create an ERROR-level item."""
        return cls(MessageLevel.ERROR, code, title, detail, remediation)


AMBIGUOUS_REGIONS = WarningItem.warn(
    WarningCode.W_AMBIGUOUS_REGIONS,
    "Identified more than one compressed section! Only one of them contains "
    "the actual kernel. Please identify it yourself.",
)

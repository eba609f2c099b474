"""
Exception taxonomy for KForge.

Every fatal condition derives from KForgeError so the CLI can map the whole
family to a single exit code. The non-fatal multi-region condition is not an
exception; it is reported as a W_AMBIGUOUS_REGIONS message (see messages.py).
"""


class KForgeError(Exception):
    """Base exception for KForge analysis failures."""


class UsageError(KForgeError):
    """Raised when a required command-line argument is missing."""


class PathError(KForgeError):
    """Raised when the firmware path is missing or not a regular file."""


class EmptyScanError(KForgeError):
    """Raised when the scanner reports no compressed regions."""


class UnknownFormatError(KForgeError):
    """Raised when a region's format tag has no compression profile."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Unable to find valid compression! Got '{tag}' instead.")


class ScanError(KForgeError):
    """Raised when a candidate stream cannot be measured."""

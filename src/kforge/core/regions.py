"""Candidate regions reported by a scanner."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CandidateRegion:
    """A byte range suspected to hold a compressed payload."""
    format_tag: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        """Return end offset (exclusive)."""
        return self.offset + self.length

    def describe(self) -> str:
        """Return a short human-readable range description."""
        return f"{self.format_tag} @ {self.offset:#x}-{self.end:#x} ({self.length} bytes)"

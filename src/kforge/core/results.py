"""
Result object for an analysis run.

Collects blueprints alongside structured warnings and errors so the CLI can
render output and choose an exit code from one value.
"""

from dataclasses import dataclass, field
from typing import List

from .blueprint import Blueprint
from .messages import WarningItem


@dataclass
class AnalysisResult:
    """
    Outcome of planning every region found in one image.

    Attributes:
        ok: False once any region failed classification
        source: Path of the analyzed image
        blueprints: One blueprint per successfully classified region
        warnings: Non-blocking conditions
        errors: Per-region failures
    """
    ok: bool
    source: str = ""
    blueprints: List[Blueprint] = field(default_factory=list)
    warnings: List[WarningItem] = field(default_factory=list)
    errors: List[WarningItem] = field(default_factory=list)

    def add_warning(self, item: WarningItem) -> None:
        """Add a warning."""
        self.warnings.append(item)

    def add_error(self, item: WarningItem) -> None:
        """Add an error and mark result as failed."""
        self.errors.append(item)
        self.ok = False

    def to_summary(self) -> str:
        """Generate a human-readable summary string."""
        status = "SUCCESS" if self.ok else "FAILED"
        lines = [f"[{status}] {self.source}" if self.source else f"[{status}]"]
        lines.append(f"  Blueprints: {len(self.blueprints)}")

        if self.warnings:
            lines.append("  Warnings:")
            for warn in self.warnings:
                lines.append(f"    - {warn.title}")

        if self.errors:
            lines.append("  Errors:")
            for err in self.errors:
                lines.append(f"    - {err.title}")

        return "\n".join(lines)

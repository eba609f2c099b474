"""
Core module for KForge.

This module provides:
- Compression profiles and tag classification (profiles.py)
- Blueprint planning (blueprint.py)
- Multi-region policy and file analysis (policy.py)
- Result and message objects (results.py, messages.py)
- Exception taxonomy (errors.py)

The CLI renders what this module returns; it holds no planning logic of
its own.
"""

from .errors import (
    KForgeError,
    UsageError,
    PathError,
    EmptyScanError,
    UnknownFormatError,
    ScanError,
)
from .regions import CandidateRegion
from .profiles import CompressionProfile, COMPRESSION_PROFILES, classify
from .blueprint import Blueprint, BlueprintStep, plan_blueprint, BLUEPRINT_BASENAME
from .messages import MessageLevel, WarningCode, WarningItem
from .results import AnalysisResult
from .policy import Scanner, ScanState, scan_state, plan_regions, analyze_file

__all__ = [
    # Errors
    "KForgeError",
    "UsageError",
    "PathError",
    "EmptyScanError",
    "UnknownFormatError",
    "ScanError",
    # Model
    "CandidateRegion",
    "CompressionProfile",
    "COMPRESSION_PROFILES",
    "classify",
    # Planning
    "Blueprint",
    "BlueprintStep",
    "plan_blueprint",
    "BLUEPRINT_BASENAME",
    # Policy
    "Scanner",
    "ScanState",
    "scan_state",
    "plan_regions",
    "analyze_file",
    # Results
    "AnalysisResult",
    "MessageLevel",
    "WarningCode",
    "WarningItem",
]

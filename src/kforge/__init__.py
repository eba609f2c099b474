"""
KForge - kernel patching blueprints for compressed firmware images

Locates the compressed payload in an image and prints the exact commands to
extract, patch, recompress and reinsert it in place.
"""

__version__ = "1.0.0"
KFORGE_VERSION = f"v{__version__}"

from kforge.core import (
    CandidateRegion,
    CompressionProfile,
    Blueprint,
    classify,
    plan_blueprint,
    plan_regions,
    analyze_file,
)
from kforge.scanner import SignatureScanner, scan_bytes

__all__ = [
    "CandidateRegion",
    "CompressionProfile",
    "Blueprint",
    "classify",
    "plan_blueprint",
    "plan_regions",
    "analyze_file",
    "SignatureScanner",
    "scan_bytes",
    "__version__",
    "KFORGE_VERSION",
]

"""
Multi-region policy.

Decides what a scan result means: no regions is fatal, one region is planned
quietly, several regions are all planned after a single ambiguity warning.
Classification failures stay local to the region that caused them.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from .blueprint import plan_blueprint
from .errors import EmptyScanError, PathError, UnknownFormatError
from .messages import AMBIGUOUS_REGIONS, WarningCode, WarningItem
from .profiles import classify
from .regions import CandidateRegion
from .results import AnalysisResult


Scanner = Callable[[bytes], Sequence[CandidateRegion]]


class ScanState(Enum):
    """Outcome of a scan, by region count."""
    EMPTY = "empty"
    SINGLE = "single"
    MULTIPLE = "multiple"


def scan_state(regions: Sequence[CandidateRegion]) -> ScanState:
    if not regions:
        return ScanState.EMPTY
    if len(regions) == 1:
        return ScanState.SINGLE
    return ScanState.MULTIPLE


def plan_regions(
    regions: Sequence[CandidateRegion],
    directory: str,
    filename: str,
    logger: logging.Logger,
) -> AnalysisResult:
    """
    Classify and plan every region found in an image.

    Args:
        regions: Scanner output, in scanner order
        directory: Directory holding the image
        filename: Image file name
        logger: Logger that receives warnings and per-region errors

    Returns:
        AnalysisResult with one blueprint per classified region. ok is False
        if any region had an unknown format.

    Raises:
        EmptyScanError: If regions is empty.
    """
    state = scan_state(regions)
    if state is ScanState.EMPTY:
        raise EmptyScanError(f"Unable to find any compressed sections in '{filename}'")

    result = AnalysisResult(ok=True, source=f"{directory}/{filename}")

    if state is ScanState.MULTIPLE:
        logger.warning(AMBIGUOUS_REGIONS.title)
        result.add_warning(AMBIGUOUS_REGIONS)

    for region in regions:
        logger.debug("Planning region %s", region.describe())
        try:
            profile = classify(region.format_tag)
        except UnknownFormatError as e:
            logger.error(str(e))
            result.add_error(WarningItem.error(
                WarningCode.E_UNKNOWN_FORMAT,
                str(e),
                detail=region.describe(),
            ))
            continue
        result.blueprints.append(plan_blueprint(directory, filename, region, profile))

    return result


def analyze_file(path: Path, scanner: Scanner, logger: logging.Logger) -> AnalysisResult:
    """
    Read an image, scan it once, and plan every region found.

    Raises:
        PathError: If path does not exist or is not a regular file.
        EmptyScanError: If the scanner finds nothing.
    """
    if not path.exists():
        raise PathError(f"File '{path}' does not exist.")
    if not path.is_file():
        raise PathError(f"'{path}' is not a regular file.")

    directory = str(path.parent)
    filename = path.name
    logger.info("Analyzing '%s/%s'...", directory, filename)

    data = path.read_bytes()
    logger.debug("Read %d bytes", len(data))

    regions = list(scanner(data))
    logger.debug("Scanner reported %d region(s)", len(regions))
    return plan_regions(regions, directory, filename, logger)

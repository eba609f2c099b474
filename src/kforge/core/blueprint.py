"""
Blueprint planner.

Turns one classified region into the fixed eight-step recipe for pulling the
compressed payload out of an image, patching it by hand, and writing it back
in place. Rendering is pure string formatting; nothing here touches disk.
"""

import shlex
from dataclasses import dataclass
from typing import Tuple

from .profiles import CompressionProfile
from .regions import CandidateRegion


BLUEPRINT_BASENAME = "vmlinux"
BLUEPRINT_STEP_COUNT = 8

PATCHING_GUIDANCE = (
    "# ----------------- Patch out integrity checks ----------------- #\n"
    "└── Tip 1: Look for memcmp() calls in proximity of machine_halt(),\n"
    "kernel_restart() etc.\n"
    "└── Tip 2: Look for integrity related strings and patch these\n"
    "functions. Eg. \"firmware integrity\""
)


@dataclass(frozen=True)
class BlueprintStep:
    """One numbered instruction in a blueprint."""
    step_number: int
    description: str
    command_text: str


@dataclass(frozen=True)
class Blueprint:
    """Eight-step extraction and reinsertion plan for one region."""
    region: CandidateRegion
    profile: CompressionProfile
    steps: Tuple[BlueprintStep, ...]

    @property
    def title(self) -> str:
        return (
            f"Kernel Modification Blueprint (Type: {self.region.format_tag}, "
            f"Offset: {self.region.offset}, Size: {self.region.length} bytes)"
        )


def _hex(value: int) -> str:
    return f"{value:#x}"


def plan_blueprint(
    directory: str,
    filename: str,
    region: CandidateRegion,
    profile: CompressionProfile,
) -> Blueprint:
    """
    Build the blueprint for a single classified region.

    Directory and file names are shell-quoted in the emitted commands.

    Args:
        directory: Directory holding the firmware image
        filename: Firmware image file name (no directory part)
        region: Detected region; offset and length are used verbatim
        profile: Compression profile resolved for the region's tag

    Returns:
        Blueprint with exactly eight steps numbered 1..8.

    Raises:
        ValueError: If the region has a negative offset or length.
    """
    if region.offset < 0 or region.length < 0:
        raise ValueError(
            f"Region offset and length must be non-negative, got "
            f"offset={region.offset} length={region.length}"
        )

    directory = shlex.quote(directory)
    backup = shlex.quote(f"{filename}.orig")
    filename = shlex.quote(filename)
    offset = _hex(region.offset)
    length = _hex(region.length)
    payload = f"{BLUEPRINT_BASENAME}{profile.suffix}"

    commands = [
        ("Extraction",
         f"$ cd {directory}\n"
         f"$ dd if={filename} of={payload} ibs=1 skip=$[{offset}] count=$[{length}]"),
        ("Decompression",
         f"$ {profile.decompress_cmd} {payload}"),
        ("Backup Original Files",
         f"$ cp {BLUEPRINT_BASENAME} {BLUEPRINT_BASENAME}.orig\n"
         f"$ cp {filename} {backup}"),
        ("DIY Vmlinux Patching",
         PATCHING_GUIDANCE),
        ("Recompression",
         f"$ {profile.compress_cmd} {BLUEPRINT_BASENAME}"),
        # New payload is written in place, so it must not outgrow the old one
        ("Size Verification",
         f"$ wc -c {payload} | awk '{{printf \"0x%x\\n\", $1}}'\n"
         "\n"
         "# ----------------- Do This Before Proceeding ----------------- #\n"
         f"└── Output must be <= {length}\n"
         "└── Else, recompress again with more aggressive parameters."),
        ("Zero Out Original Section",
         f"$ dd if=/dev/zero of={filename} bs=1 seek=$[{offset}] count=$[{length}] conv=notrunc"),
        ("Overwrite Original Section",
         f"$ dd if={payload} of={filename} bs=1 seek=$[{offset}] conv=notrunc"),
    ]

    steps = tuple(
        BlueprintStep(step_number=number, description=description, command_text=text)
        for number, (description, text) in enumerate(commands, 1)
    )
    return Blueprint(region=region, profile=profile, steps=steps)

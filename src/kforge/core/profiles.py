"""
Compression profile table and region classifier.

The table is closed: a tag that is not listed here cannot be planned, and
classify() raises instead of guessing.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .errors import UnknownFormatError


@dataclass(frozen=True)
class CompressionProfile:
    """File suffix and shell command templates for one compression format."""
    tag: str
    suffix: str
    decompress_cmd: str
    compress_cmd: str


_PROFILES = (
    CompressionProfile("zstd", ".zst", "zstd -k -d", "zstd -k -19"),
    CompressionProfile("xz", ".xz", "xz -k -d", "xz -k -9"),
    CompressionProfile("gzip", ".gz", "gzip -k -d", "gzip -k -9"),
    CompressionProfile("bzip2", ".bz2", "bzip2 -k -d", "bzip2 -k -9"),
    CompressionProfile("lz4", ".lz4", "lz4 -k -d", "lz4 -k -9"),
    CompressionProfile("lzop", ".lzo", "lzop -k -d", "lzop -k -9"),
    CompressionProfile("lzma", ".lzma", "lzma -k -d", "lzma -k -9"),
    # lzfse has no -k style flags; input/output are named explicitly
    CompressionProfile(
        "lzfse",
        ".lzfse",
        "lzfse -decode -o vmlinux -i",
        "lzfse -encode -o vmlinux.lzfse -i",
    ),
)

COMPRESSION_PROFILES: Mapping[str, CompressionProfile] = MappingProxyType(
    {profile.tag: profile for profile in _PROFILES}
)


def classify(tag: str) -> CompressionProfile:
    """
    Resolve a scanner format tag to its compression profile.

    Matching is exact and case-sensitive.

    Raises:
        UnknownFormatError: If the tag is not in the profile table.
    """
    try:
        return COMPRESSION_PROFILES[tag]
    except KeyError:
        raise UnknownFormatError(tag) from None

"""
Signature scanner for compressed streams inside firmware images.

Finds candidate streams by magic bytes and measures each one's exact length
so the planner can address it byte for byte. Most formats are measured by
running a real decoder over the candidate and checking how much input it
left unused: the standard library codecs for gzip, xz, lzma and bzip2,
zstandard for zstd and python-lz4 for lz4. lzop and lzfse have no decoder
here and are measured by walking their block headers instead.

Magic hits that fall inside an already accepted stream are ignored, as are
hits whose stream fails to decode or runs past the end of the image.
"""

import bz2
import logging
import lzma
import re
import struct
import zlib
from dataclasses import dataclass
from typing import Callable, List, Optional

import lz4.block
import lz4.frame
import zstandard

from kforge.core.errors import ScanError
from kforge.core.regions import CandidateRegion


LZ4_LEGACY_MAGIC = 0x184C2102
LZ4_LEGACY_CHUNK = 8 * 1024 * 1024
LZ4_LEGACY_CHUNK_BOUND = LZ4_LEGACY_CHUNK + LZ4_LEGACY_CHUNK // 255 + 16
LZOP_MAX_BLOCK = 64 * 1024 * 1024

# python-lz4 reports a well-formed block that decodes to fewer bytes than
# requested with this message; corrupt input fails differently
LZ4_SHORT_CHUNK = re.compile(r"wrote \d+ bytes")

# lzop header/block flags
LZOP_F_ADLER32_D = 0x0001
LZOP_F_ADLER32_C = 0x0002
LZOP_F_H_EXTRA_FIELD = 0x0040
LZOP_F_CRC32_D = 0x0100
LZOP_F_CRC32_C = 0x0200
LZOP_F_H_FILTER = 0x0800

# lzfse block magics
LZFSE_END = b"bvx$"
LZFSE_RAW = b"bvx-"
LZFSE_V1 = b"bvx1"
LZFSE_V2 = b"bvx2"
LZFSE_LZVN = b"bvxn"
LZFSE_V1_HEADER_SIZE = 770
LZFSE_V2_FIXED_HEADER_SIZE = 32
LZFSE_LZVN_HEADER_SIZE = 12


Measurer = Callable[[bytes, int], int]


@dataclass(frozen=True)
class Signature:
    """Magic pattern for one compression format."""
    tag: str
    pattern: re.Pattern
    measure: Measurer


def _u16be(data: bytes, pos: int) -> int:
    if pos + 2 > len(data):
        raise ScanError("truncated header")
    return struct.unpack_from(">H", data, pos)[0]


def _u32be(data: bytes, pos: int) -> int:
    if pos + 4 > len(data):
        raise ScanError("truncated header")
    return struct.unpack_from(">I", data, pos)[0]


def _u32le(data: bytes, pos: int) -> int:
    if pos + 4 > len(data):
        raise ScanError("truncated header")
    return struct.unpack_from("<I", data, pos)[0]


def _u64le(data: bytes, pos: int) -> int:
    if pos + 8 > len(data):
        raise ScanError("truncated header")
    return struct.unpack_from("<Q", data, pos)[0]


def _u8(data: bytes, pos: int) -> int:
    if pos >= len(data):
        raise ScanError("truncated header")
    return data[pos]


def _bits(value: int, shift: int, width: int) -> int:
    return (value >> shift) & ((1 << width) - 1)


def _decoded_length(decomp, data: bytes, offset: int, errors) -> int:
    """Run a streaming decompressor from offset and return consumed input length."""
    try:
        produced = decomp.decompress(memoryview(data)[offset:])
    except errors as e:
        raise ScanError(f"decode failed: {e}") from e
    if not decomp.eof:
        raise ScanError("stream truncated")
    if not produced:
        raise ScanError("stream decodes to nothing")
    return len(data) - offset - len(decomp.unused_data)


def measure_gzip(data: bytes, offset: int) -> int:
    return _decoded_length(zlib.decompressobj(wbits=31), data, offset, zlib.error)


def measure_xz(data: bytes, offset: int) -> int:
    return _decoded_length(lzma.LZMADecompressor(format=lzma.FORMAT_XZ), data, offset, lzma.LZMAError)


def measure_bzip2(data: bytes, offset: int) -> int:
    return _decoded_length(bz2.BZ2Decompressor(), data, offset, (OSError, ValueError))


def measure_lzma(data: bytes, offset: int) -> int:
    """
    Measure a legacy .lzma ("alone") stream.

    Header: properties byte, 32-bit dictionary size, 64-bit uncompressed size
    (all ones when unknown). The header is sanity-checked first because the
    magic is short and matches often in unrelated data.
    """
    dict_size = _u32le(data, offset + 1)
    if not 4096 <= dict_size <= 1 << 31:
        raise ScanError(f"implausible dictionary size {dict_size:#x}")
    raw_size = _u64le(data, offset + 5)
    if raw_size != 0xFFFFFFFFFFFFFFFF and not 0 < raw_size < 1 << 32:
        raise ScanError(f"implausible uncompressed size {raw_size:#x}")
    return _decoded_length(lzma.LZMADecompressor(format=lzma.FORMAT_ALONE), data, offset, lzma.LZMAError)


def measure_zstd(data: bytes, offset: int) -> int:
    decomp = zstandard.ZstdDecompressor().decompressobj()
    return _decoded_length(decomp, data, offset, zstandard.ZstdError)


def measure_lz4(data: bytes, offset: int) -> int:
    """Measure an lz4 stream in either legacy or frame format."""
    if _u32le(data, offset) == LZ4_LEGACY_MAGIC:
        return _measure_lz4_legacy(data, offset)
    decomp = lz4.frame.LZ4FrameDecompressor()
    return _decoded_length(decomp, data, offset, (RuntimeError, ValueError))


def _lz4_chunk_is_final(chunk: bytes) -> bool:
    """
    Decode one legacy chunk; return True if it is a short (final) chunk.

    Every chunk but the last decodes to exactly LZ4_LEGACY_CHUNK bytes.
    """
    try:
        lz4.block.decompress(chunk, uncompressed_size=LZ4_LEGACY_CHUNK)
    except lz4.block.LZ4BlockError as e:
        if LZ4_SHORT_CHUNK.search(str(e)):
            return True
        raise ScanError(f"decode failed: {e}") from e
    return False


def _measure_lz4_legacy(data: bytes, offset: int) -> int:
    # Legacy streams have no end mark; they run until a short chunk, or until
    # the next value that cannot be a chunk size (EOF, a new magic, or e.g.
    # a trailing size word)
    pos = offset + 4
    chunks = 0
    while pos + 4 <= len(data):
        chunk_size = _u32le(data, pos)
        if chunk_size == LZ4_LEGACY_MAGIC or not 0 < chunk_size <= LZ4_LEGACY_CHUNK_BOUND:
            break
        if pos + 4 + chunk_size > len(data):
            break
        final = _lz4_chunk_is_final(data[pos + 4:pos + 4 + chunk_size])
        pos += 4 + chunk_size
        chunks += 1
        if final:
            break
    if not chunks:
        raise ScanError("no lz4 chunks")
    return pos - offset


def measure_lzop(data: bytes, offset: int) -> int:
    """Walk an lzop file header and its block table."""
    pos = offset + 9
    version = _u16be(data, pos)
    pos += 4  # version, library version
    if version >= 0x0940:
        pos += 2  # version needed to extract
    method = _u8(data, pos)
    if method not in (1, 2, 3):
        raise ScanError(f"unknown lzop method {method}")
    pos += 1
    if version >= 0x0940:
        pos += 1  # level
    flags = _u32be(data, pos)
    pos += 4
    if flags & LZOP_F_H_FILTER:
        pos += 4
    pos += 8  # mode, mtime low
    if version >= 0x0940:
        pos += 4  # mtime high
    name_len = _u8(data, pos)
    pos += 1 + name_len + 4  # name, header checksum
    if flags & LZOP_F_H_EXTRA_FIELD:
        extra_len = _u32be(data, pos)
        pos += 4 + extra_len + 4

    while True:
        dst_len = _u32be(data, pos)
        pos += 4
        if dst_len == 0:
            break
        if dst_len > LZOP_MAX_BLOCK:
            raise ScanError(f"block too large ({dst_len:#x})")
        src_len = _u32be(data, pos)
        pos += 4
        if src_len > dst_len:
            raise ScanError("compressed block larger than its output")
        if flags & LZOP_F_ADLER32_D:
            pos += 4
        if flags & LZOP_F_CRC32_D:
            pos += 4
        if src_len < dst_len:
            if flags & LZOP_F_ADLER32_C:
                pos += 4
            if flags & LZOP_F_CRC32_C:
                pos += 4
        pos += src_len
        if pos > len(data):
            raise ScanError("stream truncated")
    return pos - offset


def _lzfse_block_length(data: bytes, pos: int) -> int:
    """Return the full length of the lzfse block starting at pos."""
    magic = data[pos:pos + 4]
    if magic == LZFSE_RAW:
        return 8 + _u32le(data, pos + 4)
    if magic == LZFSE_V1:
        literal_bytes = _u32le(data, pos + 20)
        lmd_bytes = _u32le(data, pos + 24)
        return LZFSE_V1_HEADER_SIZE + literal_bytes + lmd_bytes
    if magic == LZFSE_V2:
        literal_bytes = _bits(_u64le(data, pos + 8), 20, 20)
        lmd_bytes = _bits(_u64le(data, pos + 16), 40, 20)
        header_size = _bits(_u64le(data, pos + 24), 0, 32)
        if header_size < LZFSE_V2_FIXED_HEADER_SIZE:
            raise ScanError(f"bad v2 header size {header_size}")
        return header_size + literal_bytes + lmd_bytes
    if magic == LZFSE_LZVN:
        return LZFSE_LZVN_HEADER_SIZE + _u32le(data, pos + 8)
    raise ScanError(f"no lzfse block magic at {pos:#x}")


def measure_lzfse(data: bytes, offset: int) -> int:
    """Walk lzfse blocks until the end-of-stream block."""
    pos = offset
    while data[pos:pos + 4] != LZFSE_END:
        pos += _lzfse_block_length(data, pos)
        if pos + 4 > len(data):
            raise ScanError("stream truncated")
    return pos + len(LZFSE_END) - offset


SIGNATURES = (
    Signature("gzip", re.compile(rb"\x1f\x8b\x08"), measure_gzip),
    Signature("xz", re.compile(rb"\xfd7zXZ\x00"), measure_xz),
    Signature("bzip2", re.compile(rb"BZh[1-9]1AY&SY"), measure_bzip2),
    Signature("lzma", re.compile(rb"\x5d\x00\x00"), measure_lzma),
    Signature("zstd", re.compile(rb"\x28\xb5\x2f\xfd"), measure_zstd),
    Signature("lz4", re.compile(rb"\x02\x21\x4c\x18|\x04\x22\x4d\x18"), measure_lz4),
    Signature("lzop", re.compile(rb"\x89LZO\x00\r\n\x1a\n"), measure_lzop),
    Signature("lzfse", re.compile(rb"bvx[12n\-]"), measure_lzfse),
)


class SignatureScanner:
    """
    Default scanner: bytes in, candidate regions out.

    Instances are callables so they fit wherever a scanner function is
    expected.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, signatures=SIGNATURES):
        self.logger = logger or logging.getLogger("kforge.scanner")
        self.signatures = tuple(signatures)

    def __call__(self, data: bytes) -> List[CandidateRegion]:
        return self.scan(data)

    def scan(self, data: bytes) -> List[CandidateRegion]:
        """Return validated regions ordered by offset."""
        hits = sorted(
            (match.start(), index)
            for index, signature in enumerate(self.signatures)
            for match in signature.pattern.finditer(data)
        )
        self.logger.debug("%d signature hit(s) in %d bytes", len(hits), len(data))

        regions: List[CandidateRegion] = []
        covered_until = 0
        for offset, index in hits:
            if offset < covered_until:
                continue
            signature = self.signatures[index]
            try:
                length = signature.measure(data, offset)
            except ScanError as e:
                self.logger.debug("Rejected %s candidate at %#x: %s", signature.tag, offset, e)
                continue
            region = CandidateRegion(format_tag=signature.tag, offset=offset, length=length)
            self.logger.debug("Found %s", region.describe())
            regions.append(region)
            covered_until = region.end
        return regions


def scan_bytes(data: bytes, logger: Optional[logging.Logger] = None) -> List[CandidateRegion]:
    """Scan data with the default signature set."""
    return SignatureScanner(logger).scan(data)

"""Shared test fixtures — synthetic CR2 file generators."""

import io
import struct

import pytest

HEADER_SIZE = 16


class IFDRef:
    """Placeholder entry value: the absolute offset of IFD number ``index``."""

    def __init__(self, index):
        self.index = index


class RawOffset:
    """Placeholder next-IFD link: a literal offset instead of an IFD index."""

    def __init__(self, offset):
        self.offset = offset


def build_cr2_header(first_ifd=HEADER_SIZE, raw_offset=0x4000, byte_order=b'II',
                     tiff_magic=42, cr2_magic=b'CR', version=(2, 0)):
    """Build the 16-byte CR2 header (fields always packed little-endian)."""
    return (byte_order + struct.pack('<HI', tiff_magic, first_ifd)
            + cr2_magic + bytes(version) + struct.pack('<I', raw_offset))


def build_cr2_layout(ifds, next_links=None, raw_offset=0x4000, **header_kwargs):
    """Build a CR2 file with the given IFDs laid out right after the header.

    Args:
        ifds: List of lists, each inner list contains
            (tag_id, type_id, count, value) tuples for one IFD.
            ``value`` is an int (packed into the 4-byte field),
            bytes (stored out-of-line, field holds its offset), or
            an IFDRef (field holds that IFD's offset).
        next_links: One item per IFD: the index of the next IFD, None for
            end of chain, or a RawOffset.  Defaults to a straight chain.
        raw_offset: Value of the header's raw-data offset field.
        header_kwargs: Passed through to build_cr2_header().

    Returns:
        (bytes, list of IFD start offsets)
    """
    if next_links is None:
        next_links = [i + 1 for i in range(len(ifds) - 1)] + [None] if ifds else []

    ifd_starts = []
    offset = HEADER_SIZE
    for entries in ifds:
        ifd_starts.append(offset)
        ool = sum(len(v) for _, _, _, v in entries if isinstance(v, bytes))
        offset += 2 + 12 * len(entries) + 4 + ool

    first = ifd_starts[0] if ifd_starts else 0
    header_kwargs.setdefault('first_ifd', first)
    result = build_cr2_header(raw_offset=raw_offset, **header_kwargs)

    for i, entries in enumerate(ifds):
        data_start = ifd_starts[i] + 2 + 12 * len(entries) + 4
        ifd_bytes = struct.pack('<H', len(entries))
        data_bytes = b''

        for tag_id, type_id, count, value in entries:
            ifd_bytes += struct.pack('<HHI', tag_id, type_id, count)
            if isinstance(value, bytes):
                ifd_bytes += struct.pack('<I', data_start + len(data_bytes))
                data_bytes += value
            elif isinstance(value, IFDRef):
                ifd_bytes += struct.pack('<I', ifd_starts[value.index])
            else:
                ifd_bytes += struct.pack('<I', value)

        link = next_links[i]
        if link is None:
            next_ifd = 0
        elif isinstance(link, RawOffset):
            next_ifd = link.offset
        else:
            next_ifd = ifd_starts[link]
        ifd_bytes += struct.pack('<I', next_ifd)

        result += ifd_bytes + data_bytes

    return result, ifd_starts


def build_cr2(ifds, **kwargs):
    """Same as build_cr2_layout() but returns only the file bytes."""
    return build_cr2_layout(ifds, **kwargs)[0]


class CountingBytesIO(io.BytesIO):
    """BytesIO that records every read as (offset, length)."""

    def __init__(self, data=b''):
        super().__init__(data)
        self.reads = []

    def read(self, size=-1):
        start = self.tell()
        data = super().read(size)
        self.reads.append((start, len(data)))
        return data


# A representative CR2 layout: IFD0 (JPEG preview + camera info),
# IFD1 (thumbnail), IFD2 (RGB preview), IFD3 (raw image with CR2Slice).
CANON_IFD0 = [
    (256, 3, 1, 5184),                         # ImageWidth
    (257, 3, 1, 3456),                         # ImageLength
    (258, 3, 3, struct.pack('<3H', 8, 8, 8)),  # BitsPerSample
    (259, 3, 1, 6),                            # Compression
    (271, 2, 6, b'Canon\x00'),                 # Make
    (272, 2, 20, b'Canon EOS 600D\x00\x00\x00\x00\x00\x00'),  # Model
    (273, 4, 1, 0x4000),                       # StripOffsets
    (274, 3, 1, 1),                            # Orientation
    (279, 4, 1, 0x1000),                       # StripByteCounts
    (282, 5, 1, struct.pack('<II', 72, 1)),    # XResolution
    (283, 5, 1, struct.pack('<II', 72, 1)),    # YResolution
    (296, 3, 1, 2),                            # ResolutionUnit
    (306, 2, 20, b'2016:07:14 10:21:33\x00'),  # DateTime
]
CANON_IFD1 = [
    (513, 4, 1, 0x5000),  # JPEGInterchangeFormat
    (514, 4, 1, 0x800),   # JPEGInterchangeFormatLength
]
CANON_IFD2 = [
    (256, 3, 1, 592),
    (257, 3, 1, 395),
    (259, 3, 1, 1),
]
CANON_IFD3 = [
    (259, 3, 1, 6),
    (273, 4, 1, 0x4000),
    (279, 4, 1, 0x20000),
    (50752, 3, 3, struct.pack('<3H', 1, 2960, 2912)),  # CR2Slice
]


@pytest.fixture
def canon_cr2_bytes():
    """Synthetic four-IFD CR2 file, raw offset pointing at IFD3."""
    data, starts = build_cr2_layout([CANON_IFD0, CANON_IFD1, CANON_IFD2, CANON_IFD3])
    # Rebuild with the header's raw offset set to IFD3, as real CR2 files do
    return build_cr2([CANON_IFD0, CANON_IFD1, CANON_IFD2, CANON_IFD3],
                     raw_offset=starts[3])


@pytest.fixture
def tmp_cr2(tmp_path, canon_cr2_bytes):
    """Synthetic CR2 file written to disk."""
    filepath = tmp_path / 'IMG_0001.CR2'
    filepath.write_bytes(canon_cr2_bytes)
    return filepath


@pytest.fixture
def tmp_empty_ifd_cr2(tmp_path):
    """Header + one IFD with zero tags (raw offset 0x4000)."""
    filepath = tmp_path / 'empty.cr2'
    filepath.write_bytes(build_cr2([[]]))
    return filepath


@pytest.fixture
def tmp_bad_tag_cr2(tmp_path):
    """One IFD whose middle tag has unknown type code 13."""
    filepath = tmp_path / 'bad_tag.cr2'
    filepath.write_bytes(build_cr2([[
        (256, 3, 1, 100),
        (0xC5D9, 13, 1, 0),
        (257, 3, 1, 50),
    ]]))
    return filepath

"""CR2 file header parsing.

A CR2 file opens with a 16-byte header: the TIFF byte-order marker and
magic number, the first IFD offset, then Canon's ``CR`` signature, a
major/minor version (2.0) and the absolute offset of the raw sensor data.
"""

import logging
from typing import BinaryIO, Tuple

from cr2meta.errors import FileFormatError, ReadError, UnsupportedFeatureError
from cr2meta.models import ByteOrder
from cr2meta.tiff.bytes import decode_scalar

logger = logging.getLogger(__name__)

HEADER_SIZE = 16
TIFF_MAGIC = 0x002A
CR2_MAGIC = b'CR'
SUPPORTED_VERSION = (2, 0)


class CR2Header:
    """Parsed CR2 file header."""
    __slots__ = ('byte_order', 'first_ifd_offset', 'version', 'raw_offset')

    def __init__(self, byte_order: ByteOrder, first_ifd_offset: int,
                 version: Tuple[int, int], raw_offset: int):
        self.byte_order = byte_order
        self.first_ifd_offset = first_ifd_offset
        self.version = version
        self.raw_offset = raw_offset

    def __repr__(self) -> str:
        return (f'CR2Header(byte_order={self.byte_order.name}, '
                f'first_ifd_offset={self.first_ifd_offset:#x}, '
                f'version={self.version}, raw_offset={self.raw_offset:#x})')


def read_header(f: BinaryIO) -> CR2Header:
    """Read and validate the 16-byte CR2 header at offset 0.

    Checks run in file order and the first mismatch raises:
    FileFormatError for anything that is not a CR2 file at all,
    UnsupportedFeatureError for a big-endian file or a CR2 version
    other than 2.0.
    """
    try:
        f.seek(0)
        data = f.read(HEADER_SIZE)
    except OSError as e:
        raise ReadError(f'cannot read header: {e}') from e

    bo = data[0:2]
    if bo == ByteOrder.LITTLE_ENDIAN.value:
        byte_order = ByteOrder.LITTLE_ENDIAN
    elif bo == ByteOrder.BIG_ENDIAN.value:
        raise UnsupportedFeatureError('only Intel (II) byte order is supported',
                                      feature='big-endian byte order')
    else:
        raise FileFormatError(f'unknown byte order marker {bo!r}')

    if len(data) < HEADER_SIZE:
        raise FileFormatError(f'truncated header: {len(data)} of {HEADER_SIZE} bytes')

    magic = decode_scalar(data[2:4], 'u16', byte_order)
    if magic != TIFF_MAGIC:
        raise FileFormatError(f'TIFF magic mismatch: expected {TIFF_MAGIC:#06x}, '
                              f'found {magic:#06x}')

    first_ifd_offset = decode_scalar(data[4:8], 'u32', byte_order)

    if data[8:10] != CR2_MAGIC:
        raise FileFormatError(f'CR2 magic mismatch: found {data[8:10]!r}')

    version = (data[10], data[11])
    if version != SUPPORTED_VERSION:
        raise UnsupportedFeatureError(
            f'CR2 version {version[0]}.{version[1]} (only 2.0 is supported)',
            feature='CR2 version', version=version)

    raw_offset = decode_scalar(data[12:16], 'u32', byte_order)

    header = CR2Header(byte_order, first_ifd_offset, version, raw_offset)
    logger.debug('Parsed %r', header)
    return header

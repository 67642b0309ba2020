"""TIFF tag records -- type table, tag names, and value decoding."""

import logging
import struct
from typing import BinaryIO, Dict, List, Mapping, Optional, Tuple, Union

from cr2meta.errors import EncodingError, OffsetError, ReadError, UnknownTypeError
from cr2meta.models import ByteOrder, TagValue, ValueKind

logger = logging.getLogger(__name__)

TAG_RECORD_SIZE = 12
INLINE_SIZE = 4

# TIFF type definitions: {type_id: (element_size_bytes, type_name)}
TIFF_TYPES: Dict[int, Tuple[int, str]] = {
    1: (1, 'BYTE'),
    2: (1, 'ASCII'),
    3: (2, 'SHORT'),
    4: (4, 'LONG'),
    5: (8, 'RATIONAL'),     # num/denom, two LONGs
    6: (1, 'SBYTE'),
    7: (1, 'UNDEFINED'),
    8: (2, 'SSHORT'),
    9: (4, 'SLONG'),
    10: (8, 'SRATIONAL'),   # num/denom, two SLONGs
    11: (4, 'FLOAT'),
    12: (8, 'DOUBLE'),
}

ASCII_TYPE = 2

# {type_id: (struct_format_char, ValueKind)}
_ELEMENT_DECODERS: Dict[int, Tuple[str, ValueKind]] = {
    1: ('B', ValueKind.U32),
    3: ('H', ValueKind.U32),
    4: ('I', ValueKind.U32),
    5: ('II', ValueKind.RATIONAL),
    6: ('b', ValueKind.I32),
    7: ('B', ValueKind.U32),
    8: ('h', ValueKind.I32),
    9: ('i', ValueKind.I32),
    10: ('ii', ValueKind.SRATIONAL),
    11: ('f', ValueKind.F64),
    12: ('d', ValueKind.F64),
}

# Well-known TIFF / EXIF tag names, plus the Canon CR2 additions
TAG_NAMES: Dict[int, str] = {
    254: 'NewSubfileType', 255: 'SubfileType',
    256: 'ImageWidth', 257: 'ImageLength',
    258: 'BitsPerSample', 259: 'Compression', 262: 'PhotometricInterpretation',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 274: 'Orientation', 277: 'SamplesPerPixel',
    278: 'RowsPerStrip', 279: 'StripByteCounts',
    282: 'XResolution', 283: 'YResolution', 284: 'PlanarConfiguration',
    296: 'ResolutionUnit', 305: 'Software', 306: 'DateTime',
    315: 'Artist', 316: 'HostComputer',
    330: 'SubIFDs',
    513: 'JPEGInterchangeFormat', 514: 'JPEGInterchangeFormatLength',
    531: 'YCbCrPositioning',
    700: 'XMP', 33432: 'Copyright',
    33434: 'ExposureTime', 33437: 'FNumber',
    34665: 'ExifIFDPointer', 34850: 'ExposureProgram',
    34853: 'GPSInfoIFDPointer', 34855: 'ISOSpeedRatings',
    34864: 'SensitivityType', 34866: 'RecommendedExposureIndex',
    36864: 'ExifVersion', 36867: 'DateTimeOriginal', 36868: 'DateTimeDigitized',
    37121: 'ComponentsConfiguration',
    37377: 'ShutterSpeedValue', 37378: 'ApertureValue',
    37380: 'ExposureBiasValue', 37381: 'MaxApertureValue',
    37383: 'MeteringMode', 37385: 'Flash', 37386: 'FocalLength',
    37500: 'MakerNote', 37510: 'UserComment',
    37520: 'SubSecTime', 37521: 'SubSecTimeOriginal', 37522: 'SubSecTimeDigitized',
    40960: 'FlashpixVersion', 40961: 'ColorSpace',
    40962: 'PixelXDimension', 40963: 'PixelYDimension',
    40965: 'InteroperabilityIFDPointer',
    41486: 'FocalPlaneXResolution', 41487: 'FocalPlaneYResolution',
    41488: 'FocalPlaneResolutionUnit',
    41985: 'CustomRendered', 41986: 'ExposureMode', 41987: 'WhiteBalance',
    41990: 'SceneCaptureType',
    42032: 'CameraOwnerName', 42033: 'BodySerialNumber',
    42034: 'LensSpecification', 42036: 'LensModel', 42037: 'LensSerialNumber',
    # Canon CR2-specific tags (RAW IFD)
    50752: 'CR2Slice', 50885: 'SRawType',
}

# Pointer tags whose value is the offset of another IFD: {tag_id: origin}
SUB_IFD_POINTER_TAGS: Dict[int, str] = {
    330: 'subifd',
    34665: 'exif',
    34853: 'gps',
    40965: 'interop',
}


def element_size(dtype: int) -> int:
    """Byte size of one element of TIFF type ``dtype``.

    Raises UnknownTypeError for anything outside the 12 defined types.
    """
    try:
        return TIFF_TYPES[dtype][0]
    except KeyError:
        raise UnknownTypeError(dtype) from None


def tag_name(tag_id: int, names: Optional[Mapping[int, str]] = None) -> str:
    """Human-readable tag name, or ``Tag_<id>`` for unknown ids."""
    if names is not None and tag_id in names:
        return names[tag_id]
    return TAG_NAMES.get(tag_id, f'Tag_{tag_id}')


class TagRecord:
    """A single 12-byte IFD entry as read from the directory table."""
    __slots__ = ('tag_id', 'dtype', 'count', 'value_field', 'entry_offset')

    def __init__(self, tag_id: int, dtype: int, count: int,
                 value_field: bytes, entry_offset: int):
        self.tag_id = tag_id
        self.dtype = dtype
        self.count = count
        self.value_field = value_field
        self.entry_offset = entry_offset

    @property
    def element_size(self) -> int:
        return element_size(self.dtype)

    @property
    def total_size(self) -> int:
        return self.element_size * self.count

    @property
    def is_inline(self) -> bool:
        return self.total_size <= INLINE_SIZE

    def value_offset(self, byte_order: ByteOrder) -> int:
        """The 4-byte field read as an absolute file offset."""
        return struct.unpack(byte_order.struct_prefix + 'I', self.value_field)[0]

    def __repr__(self) -> str:
        return (f'TagRecord(tag_id={self.tag_id}, dtype={self.dtype}, '
                f'count={self.count}, entry_offset={self.entry_offset})')


def read_tag_record(f: BinaryIO, byte_order: ByteOrder) -> TagRecord:
    """Read one tag record at the current cursor position."""
    try:
        entry_offset = f.tell()
        data = f.read(TAG_RECORD_SIZE)
    except OSError as e:
        raise ReadError(f'cannot read tag record: {e}') from e
    if len(data) < TAG_RECORD_SIZE:
        raise OffsetError(f'tag record at {entry_offset:#x} runs past end of file',
                          offset=entry_offset, size=TAG_RECORD_SIZE)
    tag_id, dtype, count = struct.unpack(byte_order.struct_prefix + 'HHI', data[:8])
    return TagRecord(tag_id, dtype, count, data[8:12], entry_offset)


def _read_at(f: BinaryIO, offset: int, size: int) -> bytes:
    """Read ``size`` bytes at ``offset`` and restore the caller's cursor."""
    saved = f.tell()
    try:
        f.seek(offset)
        return f.read(size)
    finally:
        f.seek(saved)


def read_tag_payload(f: BinaryIO, record: TagRecord, byte_order: ByteOrder,
                     file_size: int) -> bytes:
    """Return the raw value bytes of a tag.

    Values of 4 bytes or less sit in the record itself and need no I/O.
    Larger values live at the absolute offset stored in the record; they are
    fetched without moving the directory cursor.
    """
    total = record.total_size
    if total <= INLINE_SIZE:
        return record.value_field[:total]

    offset = record.value_offset(byte_order)
    if offset + total > file_size:
        raise OffsetError(
            f'tag {record.tag_id} value at {offset:#x} (+{total} bytes) '
            f'lies outside the file ({file_size} bytes)',
            offset=offset, size=total)
    try:
        data = _read_at(f, offset, total)
    except OSError as e:
        raise ReadError(f'cannot read tag {record.tag_id} value at {offset:#x}: {e}') from e
    if len(data) != total:
        raise OffsetError(f'short read of tag {record.tag_id} value at {offset:#x}',
                          offset=offset, size=total)
    return data


def decode_values(record: TagRecord, payload: bytes,
                  byte_order: ByteOrder) -> Union[str, List[TagValue]]:
    """Decode a tag payload into a text string or a list of TagValues."""
    if record.dtype == ASCII_TYPE:
        text = payload.rstrip(b'\x00')
        try:
            return text.decode('ascii')
        except UnicodeDecodeError as e:
            raise EncodingError(f'tag {record.tag_id} is not valid ASCII: {e.reason}',
                                data=payload) from e

    fmt_char, kind = _ELEMENT_DECODERS[record.dtype]
    size = record.element_size
    unpack = struct.Struct(byte_order.struct_prefix + fmt_char).unpack
    values = []
    for pos in range(0, size * record.count, size):
        fields = unpack(payload[pos:pos + size])
        if kind in (ValueKind.RATIONAL, ValueKind.SRATIONAL):
            values.append(TagValue(kind, fields))
        else:
            values.append(TagValue(kind, fields[0]))
    return values


def decode_tag(f: BinaryIO, byte_order: ByteOrder, file_size: int,
               names: Optional[Mapping[int, str]] = None,
               record: Optional[TagRecord] = None
               ) -> Tuple[str, int, Union[str, List[TagValue]]]:
    """Decode the tag record at the cursor (or the given ``record``).

    Returns (name, tag_id, value).  On return the cursor sits just past the
    12-byte record regardless of where the value was stored.
    """
    if record is None:
        record = read_tag_record(f, byte_order)
    payload = read_tag_payload(f, record, byte_order, file_size)
    value = decode_values(record, payload, byte_order)
    name = tag_name(record.tag_id, names)
    logger.debug('Tag %s (%d) type=%s count=%d %s', name, record.tag_id,
                 TIFF_TYPES[record.dtype][1], record.count,
                 'inline' if record.is_inline else f'@{record.value_offset(byte_order):#x}')
    return name, record.tag_id, value

"""Fixed-width scalar decoding from raw byte windows."""

import struct
from typing import Dict, Optional, Tuple, Union

from cr2meta.models import ByteOrder

# {scalar_name: (size_bytes, struct_format_char)}
SCALAR_FORMATS: Dict[str, Tuple[int, str]] = {
    'u8': (1, 'B'),
    'u16': (2, 'H'),
    'u32': (4, 'I'),
    'u64': (8, 'Q'),
    'i8': (1, 'b'),
    'i16': (2, 'h'),
    'i32': (4, 'i'),
    'i64': (8, 'q'),
    'f32': (4, 'f'),
    'f64': (8, 'd'),
}

SCALAR_SIZES: Dict[str, int] = {name: size for name, (size, _) in SCALAR_FORMATS.items()}


def decode_scalar(window: bytes, scalar: str,
                  byte_order: ByteOrder = ByteOrder.LITTLE_ENDIAN
                  ) -> Optional[Union[int, float]]:
    """Decode ``window`` as one ``scalar`` value.

    Returns None unless ``len(window)`` is exactly the scalar's size.
    Raises KeyError for an unknown scalar name.
    """
    size, fmt_char = SCALAR_FORMATS[scalar]
    if len(window) != size:
        return None
    return struct.unpack(byte_order.struct_prefix + fmt_char, window)[0]

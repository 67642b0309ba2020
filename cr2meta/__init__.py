"""cr2meta -- Canon CR2 raw file metadata reader."""

__version__ = "1.0.0"

from cr2meta.config import DecodeOptions
from cr2meta.errors import (
    CR2Error,
    EncodingError,
    FileFormatError,
    OffsetError,
    ReadError,
    TagError,
    UnknownTypeError,
    UnsupportedFeatureError,
)
from cr2meta.models import (
    ByteOrder,
    Directory,
    Image,
    SkippedTag,
    TagValue,
    ValueKind,
)
from cr2meta.reader import image_to_dict, open_cr2

__all__ = [
    "__version__",
    "open_cr2",
    "image_to_dict",
    "DecodeOptions",
    "ByteOrder",
    "ValueKind",
    "TagValue",
    "Directory",
    "Image",
    "SkippedTag",
    "CR2Error",
    "FileFormatError",
    "UnsupportedFeatureError",
    "TagError",
    "ReadError",
    "EncodingError",
    "OffsetError",
    "UnknownTypeError",
]

"""Exceptions raised while decoding a CR2 file.

Header-level problems (``FileFormatError``, ``UnsupportedFeatureError``)
always abort the open.  Failures confined to a single tag derive from
``TagError`` and may be skipped when decoding in lenient mode.
"""

from typing import Optional, Tuple


class CR2Error(Exception):
    """Base class for every decoding failure."""

    kind = 'error'

    def __str__(self) -> str:
        return f'{self.kind}: {super().__str__()}'


class FileFormatError(CR2Error):
    """A structural marker did not match (magic number, CR2 signature)."""

    kind = 'file format error'


class UnsupportedFeatureError(CR2Error):
    """A recognized but unhandled variant (big-endian, other CR2 versions)."""

    kind = 'feature not implemented'

    def __init__(self, message: str, feature: str,
                 version: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.feature = feature
        self.version = version


class TagError(CR2Error):
    """Failure confined to decoding one tag record."""

    kind = 'tag error'


class ReadError(TagError):
    """The underlying open, read or seek failed."""

    kind = 'IO error'


class EncodingError(TagError):
    """Bytes expected to be ASCII text were not."""

    kind = 'encoding error'

    def __init__(self, message: str, data: bytes = b''):
        super().__init__(message)
        self.data = data


class OffsetError(TagError):
    """An offset pointed outside the file."""

    kind = 'seek error'

    def __init__(self, message: str, offset: int, size: int = 0):
        super().__init__(message)
        self.offset = offset
        self.size = size


class UnknownTypeError(TagError):
    """A tag's type code is not one of the 12 TIFF field types."""

    kind = 'unknown type'

    def __init__(self, type_code: int):
        super().__init__(f'unrecognized TIFF field type {type_code}')
        self.type_code = type_code

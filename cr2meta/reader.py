"""Open a CR2 file and decode its full directory tree."""

import logging
import os
import time
from typing import BinaryIO, Dict, Optional, Union

from cr2meta.config import DecodeOptions
from cr2meta.errors import ReadError
from cr2meta.models import Image, ValueKind
from cr2meta.tiff import read_header, walk_directories

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO]


def _decode(f: BinaryIO, source_name: str, options: DecodeOptions) -> Image:
    try:
        file_size = f.seek(0, 2)
    except OSError as e:
        raise ReadError(f'cannot determine size of {source_name}: {e}') from e

    header = read_header(f)
    directories, skipped = walk_directories(f, header, options, file_size)
    return Image(
        source=source_name,
        byte_order=header.byte_order,
        version=header.version,
        first_ifd_offset=header.first_ifd_offset,
        raw_offset=header.raw_offset,
        directories=tuple(directories),
        skipped_tags=tuple(skipped),
    )


def open_cr2(source: Source, options: Optional[DecodeOptions] = None) -> Image:
    """Decode a CR2 file's header and every reachable IFD.

    Args:
        source: Path to the file, or an already-open binary stream that
            supports seek(). Streams are left open.
        options: Decoding options; defaults to ``DecodeOptions.default()``.

    Returns:
        A fully populated Image.

    Raises:
        CR2Error: a subclass naming what went wrong. No partial Image is
            ever returned.
    """
    if options is None:
        options = DecodeOptions.default()

    t0 = time.monotonic()
    if hasattr(source, 'read'):
        source_name = getattr(source, 'name', None) or repr(source)
        image = _decode(source, str(source_name), options)
    else:
        path = os.fspath(source)
        try:
            f = open(path, 'rb')
        except OSError as e:
            raise ReadError(f'cannot open {path}: {e}') from e
        with f:
            image = _decode(f, path, options)

    logger.info('Decoded %s: %d IFD(s), raw data at %#x (%.1f ms)',
                image.source, len(image.directories), image.raw_offset,
                (time.monotonic() - t0) * 1000)
    return image


def _value_to_json(value):
    if isinstance(value, str):
        return value
    out = []
    for v in value:
        if v.kind in (ValueKind.RATIONAL, ValueKind.SRATIONAL):
            out.append(list(v.value))
        else:
            out.append(v.value)
    return out


def image_to_dict(image: Image) -> Dict:
    """Convert an Image into plain JSON-serializable data."""
    return {
        'source': image.source,
        'byte_order': image.byte_order.value.decode('ascii'),
        'version': f'{image.version[0]}.{image.version[1]}',
        'first_ifd_offset': image.first_ifd_offset,
        'raw_offset': image.raw_offset,
        'directories': [
            {
                'offset': d.offset,
                'origin': d.origin,
                'entry_count': d.entry_count,
                'next_offset': d.next_offset,
                'tags': {name: _value_to_json(v) for name, v in d.tags.items()},
            }
            for d in image.directories
        ],
        'skipped_tags': [
            {
                'directory_offset': s.directory_offset,
                'entry_offset': s.entry_offset,
                'tag_id': s.tag_id,
                'reason': s.reason,
            }
            for s in image.skipped_tags
        ],
    }

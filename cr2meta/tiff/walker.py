"""IFD discovery -- walks the next-IFD chain (and optionally sub-IFDs).

Directories are found through a FIFO worklist seeded with the header's
first IFD offset.  Every offset is checked against the set of offsets
already queued before it is enqueued, so a chain that loops back on
itself terminates.
"""

import logging
import struct
from collections import deque
from typing import BinaryIO, Deque, List, Optional, Set, Tuple

from cr2meta.config import DecodeOptions
from cr2meta.errors import FileFormatError, OffsetError, ReadError, TagError
from cr2meta.models import Directory, SkippedTag, ValueKind
from cr2meta.tiff.header import HEADER_SIZE, CR2Header
from cr2meta.tiff.tags import (
    SUB_IFD_POINTER_TAGS,
    TAG_RECORD_SIZE,
    decode_tag,
    read_tag_record,
)

logger = logging.getLogger(__name__)


def _read_exact(f: BinaryIO, offset: int, size: int) -> bytes:
    try:
        f.seek(offset)
        data = f.read(size)
    except OSError as e:
        raise ReadError(f'cannot read {size} bytes at {offset:#x}: {e}') from e
    if len(data) != size:
        raise OffsetError(f'short read of {size} bytes at {offset:#x}',
                          offset=offset, size=size)
    return data


def read_directory(f: BinaryIO, header: CR2Header, offset: int,
                   options: DecodeOptions, file_size: int,
                   origin: str = 'chain'
                   ) -> Tuple[Directory, int, List[SkippedTag]]:
    """Read one IFD. Returns (directory, next_ifd_offset, skipped_tags).

    Tag-level failures propagate when ``options.strict`` is set; otherwise
    the offending tag is skipped and reported in ``skipped_tags``.
    """
    endian = header.byte_order.struct_prefix

    if offset + 2 > file_size:
        raise OffsetError(f'IFD offset {offset:#x} lies outside the file '
                          f'({file_size} bytes)', offset=offset, size=2)
    num_entries = struct.unpack(endian + 'H', _read_exact(f, offset, 2))[0]
    if num_entries > options.max_tag_count:
        raise FileFormatError(f'implausible tag count {num_entries} in IFD at {offset:#x}')

    table_end = offset + 2 + TAG_RECORD_SIZE * num_entries
    if table_end + 4 > file_size:
        raise OffsetError(f'IFD at {offset:#x} with {num_entries} tags runs past '
                          f'end of file', offset=offset, size=table_end + 4 - offset)

    tags = {}
    tag_ids = {}
    skipped = []

    if options.expand_tags:
        for i in range(num_entries):
            entry_offset = offset + 2 + TAG_RECORD_SIZE * i
            f.seek(entry_offset)
            record = None
            try:
                record = read_tag_record(f, header.byte_order)
                name, tag_id, value = decode_tag(
                    f, header.byte_order, file_size,
                    names=options.extra_tag_names, record=record)
            except TagError as e:
                if options.strict:
                    raise
                tag_id = record.tag_id if record is not None else None
                logger.warning('Skipping tag %s at %#x in IFD %#x: %s',
                               tag_id, entry_offset, offset, e)
                skipped.append(SkippedTag(offset, entry_offset, tag_id, str(e)))
                continue
            if name in tags:
                logger.warning('Duplicate tag %s in IFD %#x; keeping the last one',
                               name, offset)
            tags[name] = value
            tag_ids[name] = tag_id

    next_offset = struct.unpack(endian + 'I', _read_exact(f, table_end, 4))[0]
    logger.debug('IFD %#x (%s): %d entries, next %#x',
                 offset, origin, num_entries, next_offset)
    directory = Directory(offset=offset, origin=origin, tags=tags, tag_ids=tag_ids,
                          entry_count=num_entries, next_offset=next_offset)
    return directory, next_offset, skipped


def _sub_ifd_offsets(directory: Directory) -> List[Tuple[int, str]]:
    """Offsets of IFDs referenced by pointer tags in ``directory``."""
    found = []
    for name, tag_id in directory.tag_ids.items():
        origin = SUB_IFD_POINTER_TAGS.get(tag_id)
        if origin is None:
            continue
        value = directory.tags[name]
        if isinstance(value, str):
            continue
        for v in value:
            if v.kind is ValueKind.U32 and v.value:
                found.append((v.value, origin))
    return found


def walk_directories(f: BinaryIO, header: CR2Header,
                     options: Optional[DecodeOptions] = None,
                     file_size: Optional[int] = None
                     ) -> Tuple[List[Directory], List[SkippedTag]]:
    """Read every IFD reachable from the header, in discovery order.

    Returns (directories, skipped_tags).
    """
    if options is None:
        options = DecodeOptions.default()
    if file_size is None:
        file_size = f.seek(0, 2)

    first = header.first_ifd_offset
    if first < HEADER_SIZE:
        raise FileFormatError(f'first IFD offset {first:#x} points inside the header')

    pending: Deque[Tuple[int, str]] = deque([(first, 'chain')])
    seen: Set[int] = {first}
    directories: List[Directory] = []
    skipped: List[SkippedTag] = []

    def enqueue(offset: int, origin: str, source: int):
        if offset < HEADER_SIZE:
            raise FileFormatError(f'{origin} IFD pointer {offset:#x} in IFD {source:#x} '
                                  f'points inside the header')
        if offset in seen:
            logger.warning('IFD chain loop: %#x (from IFD %#x) already visited',
                           offset, source)
            return
        seen.add(offset)
        pending.append((offset, origin))

    while pending:
        if len(directories) >= options.max_directories:
            logger.warning('Stopping after %d IFDs; %d more were queued',
                           len(directories), len(pending))
            break
        offset, origin = pending.popleft()
        directory, next_offset, tag_skips = read_directory(
            f, header, offset, options, file_size, origin=origin)
        directories.append(directory)
        skipped.extend(tag_skips)

        if next_offset:
            enqueue(next_offset, origin, offset)
        if options.follow_sub_ifds:
            for sub_offset, sub_origin in _sub_ifd_offsets(directory):
                enqueue(sub_offset, sub_origin, offset)

    return directories, skipped

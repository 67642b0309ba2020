"""Low-level CR2/TIFF binary parser package.

Re-exports the public names so callers can use ``from cr2meta.tiff import X``.
"""

# --- bytes.py: fixed-width scalar decoding ---
from cr2meta.tiff.bytes import (  # noqa: F401
    SCALAR_FORMATS,
    SCALAR_SIZES,
    decode_scalar,
)

# --- header.py: 16-byte CR2 header ---
from cr2meta.tiff.header import (  # noqa: F401
    HEADER_SIZE,
    TIFF_MAGIC,
    CR2_MAGIC,
    SUPPORTED_VERSION,
    CR2Header,
    read_header,
)

# --- tags.py: type table, tag names, tag record decoding ---
from cr2meta.tiff.tags import (  # noqa: F401
    TIFF_TYPES,
    TAG_NAMES,
    SUB_IFD_POINTER_TAGS,
    TAG_RECORD_SIZE,
    INLINE_SIZE,
    TagRecord,
    element_size,
    tag_name,
    read_tag_record,
    read_tag_payload,
    decode_values,
    decode_tag,
)

# --- walker.py: IFD chain traversal ---
from cr2meta.tiff.walker import (  # noqa: F401
    read_directory,
    walk_directories,
)

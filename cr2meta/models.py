"""Data models for decoded CR2 images and their directories."""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union


class ByteOrder(enum.Enum):
    """Byte order declared by the first two bytes of the file."""
    LITTLE_ENDIAN = b'II'
    BIG_ENDIAN = b'MM'

    @property
    def struct_prefix(self) -> str:
        return '<' if self is ByteOrder.LITTLE_ENDIAN else '>'


class ValueKind(enum.Enum):
    """Payload kinds a decoded tag element can take."""
    U32 = 'u32'
    I32 = 'i32'
    U64 = 'u64'
    I64 = 'i64'
    TEXT = 'text'
    F64 = 'f64'
    RATIONAL = 'rational'     # (numerator, denominator), unsigned
    SRATIONAL = 'srational'   # (numerator, denominator), signed


@dataclass(frozen=True)
class TagValue:
    """One decoded tag element."""
    kind: ValueKind
    value: Union[int, float, str, Tuple[int, int]]

    @property
    def widened(self) -> 'TagValue':
        """Single-scalar form of the value.

        Rationals collapse into one U64/I64 value the way their 8 bytes
        read as a little-endian 64-bit integer: numerator in the low 32
        bits, denominator in the high 32 bits.  Other kinds return self.
        """
        if self.kind is ValueKind.RATIONAL:
            num, den = self.value
            return TagValue(ValueKind.U64, num | (den << 32))
        if self.kind is ValueKind.SRATIONAL:
            num, den = self.value
            raw = (num & 0xFFFFFFFF) | ((den & 0xFFFFFFFF) << 32)
            return TagValue(ValueKind.I64, raw - (1 << 64) if raw & (1 << 63) else raw)
        return self

    def to_python(self):
        """Plain Python value (rationals as a ``(num, den)`` tuple)."""
        return self.value


TagData = Union[str, Tuple[TagValue, ...]]


@dataclass(frozen=True)
class Directory:
    """One Image File Directory and its decoded tags.

    Read-only once built: ``tags`` and ``tag_ids`` are mapping proxies and
    numeric values are stored as tuples.
    """
    offset: int
    origin: str = 'chain'  # "chain" | "exif" | "gps" | "interop" | "subifd"
    tags: Mapping[str, TagData] = field(default_factory=dict)
    tag_ids: Mapping[str, int] = field(default_factory=dict)
    entry_count: int = 0
    next_offset: int = 0

    def __post_init__(self):
        tags = {name: data if isinstance(data, str) else tuple(data)
                for name, data in self.tags.items()}
        object.__setattr__(self, 'tags', MappingProxyType(tags))
        object.__setattr__(self, 'tag_ids', MappingProxyType(dict(self.tag_ids)))

    def __contains__(self, name: str) -> bool:
        return name in self.tags

    def __len__(self) -> int:
        return len(self.tags)

    def get(self, name: str, default=None) -> Optional[TagData]:
        return self.tags.get(name, default)

    def values(self, name: str):
        """Return a tag's value as plain Python values.

        Text tags come back as ``str``; everything else as a list.
        Raises KeyError if the tag is absent.
        """
        data = self.tags[name]
        if isinstance(data, str):
            return data
        return [v.to_python() for v in data]


@dataclass(frozen=True)
class SkippedTag:
    """A tag that failed to decode and was skipped in lenient mode."""
    directory_offset: int
    entry_offset: int
    tag_id: Optional[int]
    reason: str


@dataclass(frozen=True)
class Image:
    """A fully decoded CR2 file."""
    source: str
    byte_order: ByteOrder
    version: Tuple[int, int]
    first_ifd_offset: int
    raw_offset: int
    directories: Tuple[Directory, ...] = ()
    skipped_tags: Tuple[SkippedTag, ...] = ()

    def directory_at(self, offset: int) -> Optional[Directory]:
        """Return the directory read from ``offset``, if any."""
        for directory in self.directories:
            if directory.offset == offset:
                return directory
        return None

    def find(self, name: str) -> Optional[TagData]:
        """Return the first value recorded for a tag name across all IFDs."""
        for directory in self.directories:
            if name in directory:
                return directory.tags[name]
        return None

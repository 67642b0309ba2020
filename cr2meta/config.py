"""Decoding options -- strictness, walk limits, and extra tag names."""

import json
from dataclasses import dataclass, field, fields
from typing import Dict

# Real CR2 IFDs carry well under 100 tags; a count far beyond that means
# the directory offset landed in pixel data.
DEFAULT_MAX_TAG_COUNT = 1000

# Upper bound on directories read in one walk (CR2 files have 4 chained
# IFDs plus a handful of EXIF/makernote sub-IFDs).
DEFAULT_MAX_DIRECTORIES = 500


@dataclass
class DecodeOptions:
    """Configures one ``open_cr2`` pass.

    ``strict`` selects the tag failure policy: when true (the default) the
    first tag that fails to decode aborts the whole open; when false the tag
    is skipped, logged, and listed in ``Image.skipped_tags``.
    """

    strict: bool = True
    expand_tags: bool = True
    follow_sub_ifds: bool = False
    max_directories: int = DEFAULT_MAX_DIRECTORIES
    max_tag_count: int = DEFAULT_MAX_TAG_COUNT
    extra_tag_names: Dict[int, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> 'DecodeOptions':
        """Return the built-in defaults."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'DecodeOptions':
        """Load options from a JSON file and merge with defaults.

        JSON format::

            {
              "strict": false,
              "follow_sub_ifds": true,
              "max_directories": 64,
              "extra_tag_names": {"0xc5d9": "CanonVendorTag", "4097": "Foo"}
            }

        Every key is optional.  Tag ids in ``extra_tag_names`` may be decimal
        or ``0x``-prefixed hex strings.  A value of the wrong JSON type raises
        ValueError naming the key.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: expected a JSON object, got {type(data).__name__}')

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f'Unknown option(s) in {path}: {", ".join(sorted(unknown))}')

        options = cls.default()
        for key, value in data.items():
            if key == 'extra_tag_names':
                if not isinstance(value, dict):
                    raise ValueError(f'{key} in {path} must be an object mapping tag ids '
                                     f'to names, got {type(value).__name__}')
                try:
                    options.extra_tag_names.update(
                        {int(str(tag), 0): str(name) for tag, name in value.items()})
                except ValueError:
                    raise ValueError(f'{key} in {path} has a tag id that is not a '
                                     f'decimal or 0x-prefixed number') from None
                continue

            expected = type(getattr(options, key))
            # bool is an int subclass, so compare exact types
            if type(value) is not expected:
                raise ValueError(f'{key} in {path} must be {expected.__name__}, '
                                 f'got {type(value).__name__}')
            if expected is int and value < 1:
                raise ValueError(f'{key} in {path} must be at least 1, got {value}')
            setattr(options, key, value)
        return options

"""CLI interface for cr2meta — info and tags subcommands."""

import json
import logging
import sys
from pathlib import Path

import click

import cr2meta
from cr2meta import log
from cr2meta.config import DecodeOptions
from cr2meta.errors import CR2Error
from cr2meta.models import ValueKind
from cr2meta.reader import image_to_dict, open_cr2

# Longest value list printed in full before it is elided
_MAX_PRINTED_VALUES = 8


def decode_options(func):
    """Attach the options shared by every decoding subcommand."""
    shared = [
        click.option('--lenient', is_flag=True,
                     help='Skip tags that fail to decode instead of aborting.'),
        click.option('--sub-ifds', is_flag=True,
                     help='Also follow EXIF, GPS, Interoperability and SubIFDs pointers.'),
        click.option('--config', 'config_path',
                     type=click.Path(exists=True, dir_okay=False),
                     help='JSON file with decoding options.'),
        click.option('--log', 'log_path', type=click.Path(), help='Write log to file.'),
        click.option('--no-color', is_flag=True, help='Disable ANSI colors.'),
    ]
    for option in reversed(shared):
        func = option(func)
    return func


class _Session:
    """Console + optional log file for one command invocation."""

    def __init__(self, log_path, no_color):
        if no_color:
            log.set_color_enabled(False)
        try:
            self.log_file = open(log_path, 'w') if log_path else None
        except OSError as e:
            click.echo(log.cli_error(f'Error: cannot open log file {log_path}: {e.strerror}'),
                       err=True)
            sys.exit(1)
        self.handler = log.CLILogHandler(self._emit)
        self.logger = logging.getLogger('cr2meta')
        self._saved_level = self.logger.level

    def __enter__(self):
        self.logger.addHandler(self.handler)
        if self.logger.level == logging.NOTSET or self.logger.level > logging.WARNING:
            self.logger.setLevel(logging.WARNING)
        return self

    def __exit__(self, *exc):
        self.logger.removeHandler(self.handler)
        self.logger.setLevel(self._saved_level)
        if self.log_file:
            self.log_file.close()
        return False

    def _emit(self, console_line, file_line, err=True):
        click.echo(console_line, err=err)
        if self.log_file:
            self.log_file.write(file_line + '\n')
            self.log_file.flush()

    def msg(self, text, styled=None):
        self._emit(styled if styled is not None else text, log.log_info(text), err=False)

    def error(self, text):
        self._emit(log.cli_error(text), log.log_error(text))


def _build_options(lenient, sub_ifds, config_path) -> DecodeOptions:
    if config_path:
        try:
            options = DecodeOptions.from_json(config_path)
        except (ValueError, OSError) as e:
            raise click.BadParameter(str(e), param_hint='--config')
    else:
        options = DecodeOptions.default()
    if lenient:
        options.strict = False
    if sub_ifds:
        options.follow_sub_ifds = True
    return options


def _load(session, path, options):
    try:
        return open_cr2(path, options)
    except CR2Error as e:
        session.error(f'Error: {e}')
        sys.exit(1)


def _format_value(value) -> str:
    if isinstance(value, str):
        return repr(value)
    parts = []
    for v in value[:_MAX_PRINTED_VALUES]:
        if v.kind in (ValueKind.RATIONAL, ValueKind.SRATIONAL):
            parts.append(f'{v.value[0]}/{v.value[1]}')
        else:
            parts.append(str(v.value))
    if len(value) > _MAX_PRINTED_VALUES:
        parts.append(f'... ({len(value)} values)')
    return ', '.join(parts)


def _report_skipped(session, image):
    if image.skipped_tags:
        session.msg(f'{len(image.skipped_tags)} tag(s) skipped',
                    log.cli_warning(f'{len(image.skipped_tags)} tag(s) skipped'))


@click.group()
@click.version_option(version=cr2meta.__version__, prog_name='cr2meta')
def main():
    """cr2meta — Canon CR2 metadata reader.

    Decodes the CR2 header and every TIFF Image File Directory (IFD)
    in a Canon raw file.
    """
    pass


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@decode_options
def info(path, lenient, sub_ifds, config_path, log_path, no_color):
    """Show header fields and the IFD layout of a CR2 file."""
    options = _build_options(lenient, sub_ifds, config_path)
    with _Session(log_path, no_color) as session:
        image = _load(session, path, options)

        session.msg(f'File: {Path(path).name}', log.cli_header(f'File: {Path(path).name}'))
        session.msg(f'Byte order: {image.byte_order.value.decode("ascii")}')
        session.msg(f'CR2 version: {image.version[0]}.{image.version[1]}')
        session.msg(f'First IFD offset: {image.first_ifd_offset:#x}')
        session.msg(f'Raw data offset: {image.raw_offset:#x}')
        session.msg(f'Directories: {len(image.directories)}')
        for i, d in enumerate(image.directories):
            line = (f'  IFD#{i} at {d.offset:#x} ({d.origin}): '
                    f'{d.entry_count} entries, {len(d)} decoded')
            session.msg(line, log.cli_dim(line))
        _report_skipped(session, image)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--ifd', 'ifd_index', type=int, help='Only show this directory (by index).')
@click.option('--json-out', type=click.Path(), help='Write decoded tags as JSON to file.')
@click.option('--verbose', '-v', is_flag=True, help='Show tag ids and value kinds.')
@decode_options
def tags(path, ifd_index, json_out, verbose, lenient, sub_ifds, config_path,
         log_path, no_color):
    """List every decoded tag of a CR2 file."""
    options = _build_options(lenient, sub_ifds, config_path)
    with _Session(log_path, no_color) as session:
        image = _load(session, path, options)

        indexed = list(enumerate(image.directories))
        if ifd_index is not None:
            if not 0 <= ifd_index < len(indexed):
                session.error(f'Error: no IFD #{ifd_index} '
                              f'({len(indexed)} directories found)')
                sys.exit(1)
            indexed = [indexed[ifd_index]]

        for n, (i, d) in enumerate(indexed):
            if n:
                session.msg(log.SEPARATOR, log.cli_separator())
            title = f'IFD#{i} at {d.offset:#x} ({d.origin})'
            session.msg(title, log.cli_header(title))
            for name, value in d.tags.items():
                if verbose:
                    kind = 'text' if isinstance(value, str) else (
                        value[0].kind.value if value else 'empty')
                    line = f'  {name} [{d.tag_ids[name]}, {kind}]: {_format_value(value)}'
                else:
                    line = f'  {name}: {_format_value(value)}'
                session.msg(line)
        _report_skipped(session, image)

        if json_out:
            data = image_to_dict(image)
            if ifd_index is not None:
                data['directories'] = [data['directories'][ifd_index]]
            with open(json_out, 'w') as f:
                json.dump(data, f, indent=2)
            done = f'Results written to {json_out}'
            session.msg(done, log.cli_success(done))


if __name__ == '__main__':
    main()

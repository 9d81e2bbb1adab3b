# Licensed under the GPLv3 - see LICENSE
"""Command-line tool to compress, decompress and inspect LZ4 frame files.

Usage::

    lzframe compress INPUT [-o OUTPUT] [--verify]
    lzframe decompress INPUT [-o OUTPUT]
    lzframe info INPUT
    lzframe INPUT

Without a command, files ending in ``.lz4`` are decompressed and all others
compressed.
"""
import argparse
import logging
import os
import sys

from .. import lz4f
from ..errors import FrameError


__all__ = ['main']

COMMANDS = ('compress', 'decompress', 'info')
GLOBAL_OPTIONS = ('-v', '--verbose')
SUFFIX = '.lz4'


def default_output(name, command):
    """Output file name, obtained by adding or removing the suffix."""
    if command == 'compress':
        return name + SUFFIX
    if name.endswith(SUFFIX) and len(name) > len(SUFFIX):
        return name[:-len(SUFFIX)]
    return name + '.out'


def make_reporter(quiet):
    """Create a reporter printing progress, or `None` if ``quiet``."""
    if quiet:
        return None

    def reporter(event, **values):
        if event == 'compressed':
            print(f"Content size: {values['content_size']} bytes")
            if values['uncompressed']:
                print("Content does not compress; stored uncompressed.")
            else:
                print(f"Compressed content size: {values['payload_nbytes']}"
                      " bytes")
        elif event == 'blocks':
            print(f"Blocks: {values['nblocks']}")
        elif event == 'decoded':
            print(f"Decoded content size: {values['content_size']} bytes")

    return reporter


def compress(args):
    output = args.output or default_output(args.input, 'compress')
    with open(args.input, 'rb') as fh:
        data = fh.read()
    reporter = make_reporter(args.quiet)
    with lz4f.open(output, 'wb', reporter=reporter) as fw:
        fw.write_frame(data)

    if args.verify:
        with lz4f.open(output, 'rb') as fr:
            decoded = fr.read_frame().data
        if decoded != data:
            raise FrameError(f"decoded content of {output} does not match "
                             f"{args.input}.")
        if not args.quiet:
            print("Decoded content matches input.")

    if not args.quiet:
        print(f"Wrote {output}")


def decompress(args):
    output = args.output or default_output(args.input, 'decompress')
    reporter = make_reporter(args.quiet)
    with lz4f.open(args.input, 'rb', reporter=reporter) as fr:
        data = fr.read_frame().data
    with open(output, 'wb') as fw:
        fw.write(data)
    if not args.quiet:
        print(f"Wrote {output}")


def info(args):
    file_info = lz4f.info(args.input)
    print(repr(file_info))
    if not file_info:
        raise FrameError(f"{args.input} is not a readable LZ4 frame file.")


def make_parser():
    parser = argparse.ArgumentParser(
        prog='lzframe',
        description='Compress, decompress or inspect LZ4 frame files.',
        epilog='Without a command, files ending in .lz4 are decompressed '
        'and all others compressed.')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log debugging information')
    sub = parser.add_subparsers(dest='command', required=True)

    commands = (('compress', compress, 'compress a file'),
                ('decompress', decompress, 'decompress a file'),
                ('info', info, 'show frame information'))
    for name, func, description in commands:
        sub_parser = sub.add_parser(name, help=description)
        sub_parser.add_argument('input', help='input file')
        if name != 'info':
            sub_parser.add_argument(
                '-o', '--output', help='output file (default: input file '
                'name with {0} suffix {1})'.format(
                    SUFFIX, 'added' if name == 'compress' else 'removed'))
            sub_parser.add_argument('-q', '--quiet', action='store_true',
                                    help='do not print progress')
        if name == 'compress':
            sub_parser.add_argument(
                '--verify', action='store_true',
                help='decode the output and compare it with the input')
        sub_parser.set_defaults(func=func)

    return parser


def _bare_input(args):
    """Return the first positional argument, skipping option values."""
    args = iter(args)
    for arg in args:
        if arg in ('-o', '--output'):
            next(args, None)
        elif not arg.startswith('-'):
            return arg
    return None


def main(args=None):
    if args is None:
        args = sys.argv[1:]
    args = list(args)
    # Bare input file: choose the command from the extension.
    first = _bare_input(args)
    if first is not None and first not in COMMANDS:
        command = 'decompress' if first.endswith(SUFFIX) else 'compress'
        # Options of the main parser go before the command, all others after.
        args = ([arg for arg in args if arg in GLOBAL_OPTIONS] + [command]
                + [arg for arg in args if arg not in GLOBAL_OPTIONS])

    args = make_parser().parse_args(args)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not os.path.isfile(args.input):
        print(f"lzframe: no file found at {args.input}", file=sys.stderr)
        return 1

    try:
        args.func(args)
    except (FrameError, OSError) as exc:
        print(f"lzframe: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())

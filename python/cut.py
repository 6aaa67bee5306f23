#!/usr/bin/env python3
"""
Name: cut
Description: select portions of each line of a file
Author: Rich Lafferty, rich@alcor.concordia.ca (Original Perl Author)
License: perl
"""

import sys
import os
import argparse
import csv
import re
from enum import Enum

__version__ = "0.1.0"

RANGE_RE = re.compile(r'([0-9]+)-([0-9]+)')

class Mode(Enum):
    FIELDS = 'fields'
    BYTES = 'bytes'
    CHARS = 'chars'

def parse_index(value: str) -> int:
    """
    Converts a 1-based list value into a 0-based index.
    A sign, anything that is not a plain decimal number, zero, or a value
    past sys.maxsize is illegal.
    """
    if value.startswith('+') or not re.fullmatch(r'[0-9]+', value) or not 0 < int(value) <= sys.maxsize:
        raise ValueError(f'illegal list value: "{value}"')
    return int(value) - 1

def parse_pos(spec: str) -> list:
    """
    Parses a cut-style list string (e.g., "1,7,3-5") into a list of
    half-open ranges of 0-based indices.

    The ranges keep the order they were written in; nothing is sorted,
    merged or de-duplicated, so "1,7,3-5" gives
    [range(0, 1), range(6, 7), range(2, 5)].
    A single bad value makes the whole list invalid.
    """
    positions = []
    for part in spec.split(','):
        # Case 1: a single number 'N'
        try:
            n = parse_index(part)
            positions.append(range(n, n + 1))
            continue
        except ValueError:
            match = RANGE_RE.fullmatch(part)
            if not match:
                raise

        # Case 2: an inclusive range 'N-M'
        n1 = parse_index(match.group(1))
        n2 = parse_index(match.group(2))
        if n1 >= n2:
            raise ValueError(
                f"First number in range ({n1 + 1}) "
                f"must be lower than second number ({n2 + 1})"
            )
        positions.append(range(n1, n2 + 1))
    return positions

def extract_chars(line: str, char_pos: list) -> str:
    """Selects characters (codepoints) in the order given by char_pos."""
    return "".join(line[span.start:span.stop] for span in char_pos)

def extract_bytes(line: str, byte_pos: list) -> str:
    """
    Selects bytes of the UTF-8 encoded line in the order given by byte_pos.
    A selection that splits a multi-byte character decodes to U+FFFD.
    """
    raw = line.encode('utf-8')
    selected = b"".join(raw[span.start:span.stop] for span in byte_pos)
    return selected.decode('utf-8', errors='replace')

def extract_fields(record, field_pos: list) -> list:
    """Selects fields of an already split record in the order given by field_pos."""
    return [field for span in field_pos for field in record[span.start:span.stop]]

EXTRACTORS = {
    Mode.FIELDS: extract_fields,
    Mode.BYTES: extract_bytes,
    Mode.CHARS: extract_chars,
}

class Extract:
    """The one active extraction mode together with the positions it selects."""
    def __init__(self, mode: Mode, positions: list):
        self.mode = mode
        self.positions = positions

    def extract(self, unit):
        return EXTRACTORS[self.mode](unit, self.positions)

    def __repr__(self):
        return f"Extract({self.mode.name}, {self.positions!r})"

def get_extract(fields=None, bytes_=None, chars=None) -> Extract:
    """
    Builds the Extract for whichever list was given on the command line.
    Fields win over bytes, and bytes over chars.
    """
    if fields is not None:
        return Extract(Mode.FIELDS, parse_pos(fields))
    if bytes_ is not None:
        return Extract(Mode.BYTES, parse_pos(bytes_))
    if chars is not None:
        return Extract(Mode.CHARS, parse_pos(chars))
    raise ValueError("Must have --fields, --bytes, or --chars")

def check_delimiter(delimiter: str) -> str:
    """Checks that the field delimiter is exactly one byte."""
    if len(delimiter.encode('utf-8')) != 1:
        raise ValueError(f'--delim "{delimiter}" must be a single byte')
    return delimiter

def open_input(filename: str):
    """Returns a binary stream for a file name, or for stdin if it is '-'."""
    if filename == '-':
        return sys.stdin.buffer
    return open(filename, 'rb')

def read_lines(stream):
    """Yields the lines of a binary stream as text, line endings included."""
    for raw_line in stream:
        yield raw_line.decode('utf-8')

def chomp(line: str) -> str:
    """Removes a trailing '\\n' or '\\r\\n'."""
    if line.endswith('\n'):
        line = line[:-1]
        if line.endswith('\r'):
            line = line[:-1]
    return line

def handle_lines(stream, extract: Extract):
    """Processes the stream in byte or character mode."""
    for line in read_lines(stream):
        print(extract.extract(chomp(line)))

def handle_fields(stream, extract: Extract, delimiter: str):
    """Processes the stream in field mode, one delimited record at a time."""
    reader = csv.reader(read_lines(stream), delimiter=delimiter)
    writer = csv.writer(sys.stdout, delimiter=delimiter, lineterminator='\n')
    for record in reader:
        # Blank lines are not records.
        if not record:
            continue
        writer.writerow(extract.extract(record))

def run(files: list, extract: Extract, delimiter: str) -> int:
    """Cuts every file in turn and returns the exit status."""
    program_name = os.path.basename(sys.argv[0])
    exit_status = 0

    for filename in files:
        try:
            stream = open_input(filename)
        except OSError as e:
            print(f"{program_name}: {filename}: {e.strerror}", file=sys.stderr)
            exit_status = 1
            continue

        try:
            if extract.mode is Mode.FIELDS:
                handle_fields(stream, extract, delimiter)
            else:
                handle_lines(stream, extract)
        except (UnicodeDecodeError, csv.Error) as e:
            print(f"{program_name}: {filename}: {e}", file=sys.stderr)
            exit_status = 1
        finally:
            if filename != '-':
                stream.close()

    return exit_status

def main():
    """Parses arguments and dispatches to the correct handler."""
    parser = argparse.ArgumentParser(
        description="Select portions of each line of a file.",
        usage="%(prog)s [-b list | -c list | -f list] [-d delim] [file ...]"
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    # The main modes are mutually exclusive.
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument('-f', '--fields', dest='field_list', metavar='LIST',
                            help='The list specifies fields.')
    mode_group.add_argument('-b', '--bytes', dest='byte_list', metavar='LIST',
                            help='The list specifies byte positions.')
    mode_group.add_argument('-c', '--chars', dest='char_list', metavar='LIST',
                            help='The list specifies character positions.')

    parser.add_argument('-d', '--delim', '--delimiter', dest='delimiter', default='\t',
                        help="Use DELIM instead of TAB for field delimiter.")

    parser.add_argument('files', nargs='*', help='Files to process. Reads from stdin if none are given.')

    args = parser.parse_args()
    program_name = os.path.basename(sys.argv[0])

    try:
        delimiter = check_delimiter(args.delimiter)
        extract = get_extract(args.field_list, args.byte_list, args.char_list)
    except ValueError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(run(args.files or ['-'], extract, delimiter))

if __name__ == "__main__":
    main()

"""
Command line interface for ReMarkup.

    remarkup unmarkup page.html -o page.editable.html
    remarkup remarkup page.html page.translated.html -o page.de.html
"""

import argparse
import logging
import sys
from typing import List, Optional

from remarkup.api import ReMarkup
from remarkup.exceptions import ReMarkupError
from remarkup.process.filters import strip_spaces

logger = logging.getLogger(__name__)


def read_file(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def write_output(content: str, path: Optional[str]) -> None:
    if path is None:
        sys.stdout.write(content)
        return
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='remarkup',
        description='Strip HTML attributes for editing and restore them afterwards',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    unmarkup = subparsers.add_parser(
        'unmarkup', help='Strip all non-preserved attributes from an HTML fragment'
    )
    unmarkup.add_argument('html_file', type=str)
    unmarkup.add_argument('-o', '--output_file', type=str, default=None)
    unmarkup.add_argument(
        '--strip_spaces',
        action='store_true',
        help='Also collapse whitespace in text content',
    )

    remarkup = subparsers.add_parser(
        'remarkup', help='Restore the attributes of an original fragment onto an edited one'
    )
    remarkup.add_argument('original_file', type=str)
    remarkup.add_argument('modified_file', type=str)
    remarkup.add_argument('-o', '--output_file', type=str, default=None)
    remarkup.add_argument(
        '--nonexistent_child_distance',
        type=float,
        default=None,
        help='Penalty per child element present in only one of two subtrees',
    )
    remarkup.add_argument('--timeout', type=float, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'unmarkup':
            config = {}
            if args.strip_spaces:
                config['additional_element_filters'] = [strip_spaces]
            result = ReMarkup(config=config).un_markup(read_file(args.html_file))
        else:
            config = {}
            if args.nonexistent_child_distance is not None:
                config['nonexistent_child_distance'] = args.nonexistent_child_distance
            if args.timeout is not None:
                config['timeout'] = args.timeout
            result = ReMarkup(config=config).re_markup(
                read_file(args.original_file), read_file(args.modified_file)
            )
    except (OSError, ReMarkupError) as e:
        logger.error(str(e))
        return 1

    write_output(result, args.output_file)
    return 0


if __name__ == '__main__':
    sys.exit(main())

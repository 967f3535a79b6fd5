"""
Command line interface.

    crskit epsg 4326 27700          print the WKT of EPSG codes
    crskit format --indent 2 FILE   reformat WKT read from FILE (or - for stdin)
    crskit tree FILE                print the parsed WKT element tree
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from crskit.core.authority.epsg import open_epsg_factory
from crskit.core.config import settings
from crskit.core.errors import CRSKitException
from crskit.core.logging_config import setup_logging
from crskit.core.wkt.element import WKTElement
from crskit.core.wkt.formatter import format_wkt
from crskit.core.wkt.parser import parse_wkt

logger = logging.getLogger(__name__)


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _command_epsg(args: argparse.Namespace) -> int:
    overrides = {}
    if args.database is not None:
        overrides["epsg_database"] = args.database
    if args.dialect is not None:
        overrides["sql_dialect"] = args.dialect
    config = settings.model_copy(update=overrides)

    indent = args.indent if args.indent is not None else config.wkt_indent
    with open_epsg_factory(config) as factory:
        for code in args.codes:
            obj = factory.create_object(code)
            print(format_wkt(obj, indent=indent))
    return 0


def _command_format(args: argparse.Namespace) -> int:
    obj = parse_wkt(_read_text(args.source))
    indent = args.indent if args.indent is not None else settings.wkt_indent
    print(format_wkt(obj, indent=indent))
    return 0


def _command_tree(args: argparse.Namespace) -> int:
    print(WKTElement.parse_tree(_read_text(args.source)).print_tree())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crskit",
        description="Read, write and look up coordinate reference systems.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR; default: CRSKIT_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    epsg = subparsers.add_parser("epsg", help="Print the WKT of EPSG codes")
    epsg.add_argument("codes", nargs="+", help="EPSG codes, e.g. 4326 or EPSG:27700")
    epsg.add_argument("--database", type=Path, help="EPSG sqlite database (default: PROJ database)")
    epsg.add_argument(
        "--dialect",
        choices=["access", "ansi", "oracle", "postgres"],
        help="SQL dialect of the database",
    )
    epsg.add_argument("--indent", type=int, help="Indent nested elements by N spaces")
    epsg.set_defaults(handler=_command_epsg)

    fmt = subparsers.add_parser("format", help="Reformat WKT text")
    fmt.add_argument("source", help="WKT file, or - for standard input")
    fmt.add_argument("--indent", type=int, help="Indent nested elements by N spaces")
    fmt.set_defaults(handler=_command_format)

    tree = subparsers.add_parser("tree", help="Print the WKT element tree")
    tree.add_argument("source", help="WKT file, or - for standard input")
    tree.set_defaults(handler=_command_tree)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level or settings.log_level or "WARNING")

    try:
        return args.handler(args)
    except CRSKitException as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"crskit: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"crskit: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
CLI entry point for rtwroster.

Usage:
    rtwroster records <file> --start type     Summarise the records of a data file
    rtwroster requires "<expr>"               Parse a requirement and print its tree
    rtwroster build -c rtwroster.yaml         Resolve a mod and write the model as JSON
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from rtwroster import __version__
from rtwroster.parser.errors import RosterError


def cmd_records(args):
    """Extract records from a data file and list their headers."""
    from .loader import read_text
    from .parser.records import extract_records

    try:
        records = extract_records(read_text(Path(args.file)), tuple(args.start))
    except (RosterError, OSError) as e:
        print(f"Extraction error: {e}", file=sys.stderr)
        return 1

    print(f"Extracted: {args.file}")
    print(f"Records: {len(records)}")
    shown = records if args.verbose else records[:20]
    for record in shown:
        print(f"  L{record.start_line}: {record.header} ({len(record.lines)} lines)")
    if len(records) > len(shown):
        print(f"  ... and {len(records) - len(shown)} more")
    return 0


def cmd_requires(args):
    """Parse a requirement expression and print the tree."""
    from .parser.requires import parse_requires

    try:
        node = parse_requires(args.expression)
    except RosterError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    print(node)
    return 0


def cmd_build(args):
    """Load, resolve and export one module."""
    from .config import RosterConfig
    from .loader import load_raw_model
    from .resolver.builder import build_model

    try:
        config = RosterConfig(Path(args.config) if args.config else None)
        module = build_model(config, load_raw_model(config))
    except RosterError as e:
        print(f"Build error: {e}", file=sys.stderr)
        return 1

    output = json.dumps(module.to_dict(), indent=2 if args.pretty else None, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Wrote {args.output}: {len(module.factions)} factions")
    else:
        print(output)
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Total War mod roster resolver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    rtwroster records data/export_descr_unit.txt --start type
    rtwroster requires 'factions { romans_julii, } and not major_event "marian_reforms"'
    rtwroster build -c rtwroster.yaml -o roster.json
"""
    )
    parser.add_argument('--version', action='version', version=f'rtwroster {__version__}')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # records
    records_p = subparsers.add_parser('records', help='Summarise the records of a data file')
    records_p.add_argument('file', help='File to split')
    records_p.add_argument('-s', '--start', action='append', default=None,
                           help='Keyword that starts a record (repeatable, default: type)')
    records_p.add_argument('-v', '--verbose', action='store_true')
    records_p.set_defaults(func=cmd_records)

    # requires
    requires_p = subparsers.add_parser('requires', help='Parse a requirement expression')
    requires_p.add_argument('expression', help='Requirement text')
    requires_p.set_defaults(func=cmd_requires)

    # build
    build_p = subparsers.add_parser('build', help='Resolve a mod into a roster model')
    build_p.add_argument('-c', '--config', help='Config file (default: search paths)')
    build_p.add_argument('-o', '--output', help='Write JSON here instead of stdout')
    build_p.add_argument('--pretty', action='store_true', help='Indent the JSON')
    build_p.set_defaults(func=cmd_build)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == 'records' and not args.start:
        args.start = ['type']

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

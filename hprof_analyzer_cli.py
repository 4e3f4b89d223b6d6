#!/usr/bin/env python3
"""
HPROF Analyzer - Command Line Entry Point

Decodes the symbol records at the start of an HPROF heap dump and prints
the stack traces they describe.
"""

import argparse
import json
import sys

from dotenv import load_dotenv

from hprof_analyzer.config import AnalyzerConfig, UnparsedTagPolicy, LOG_LEVELS
from hprof_analyzer.driver import analyze_file
from hprof_analyzer.errors import HprofError
from hprof_analyzer.field_reader import ID_STRUCTS
from hprof_analyzer.log import init_logging


def build_parser():
    parser = argparse.ArgumentParser(
        description='HPROF Analyzer - stack traces from Java heap dumps',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the stack traces recorded before the heap dump
  %(prog)s app.hprof

  # Keep going past heap dump records until the end of the file
  %(prog)s --skip-unparsed app.hprof

  # Warn about broken references instead of aborting, save JSON results
  %(prog)s --lenient -o results.json app.hprof

Environment variables (also read from .env):
  HPROF_ID_SIZE, HPROF_UNPARSED_TAGS, HPROF_LENIENT,
  HPROF_VERIFY_LENGTHS, HPROF_LOG_LEVEL
        """
    )

    parser.add_argument(
        'dump_files',
        nargs='*',
        metavar='hprof_dump',
        help='Path to the HPROF dump file'
    )

    parser.add_argument(
        '--id-size',
        type=int,
        choices=sorted(ID_STRUCTS),
        help='Force the identifier width in bytes (default: width declared in the header)'
    )

    parser.add_argument(
        '--skip-unparsed',
        action='store_true',
        help='Skip records without a decoder (heap dumps, samples, ...) instead of stopping'
    )

    parser.add_argument(
        '--lenient',
        action='store_true',
        help='Report dangling references and truncation as warnings instead of aborting'
    )

    parser.add_argument(
        '--verify-lengths',
        action='store_true',
        help='Check each decoded record against its declared payload length'
    )

    parser.add_argument(
        '--log-level',
        choices=LOG_LEVELS,
        help='Python logging level (default: warning)'
    )

    parser.add_argument(
        '--output',
        '-o',
        help='Also write the results as JSON to this file'
    )

    return parser


def build_config(args) -> AnalyzerConfig:
    """Environment settings overridden by command line flags."""
    config = AnalyzerConfig.from_env()
    if args.id_size is not None:
        config.id_size = args.id_size
    if args.skip_unparsed:
        config.unparsed_tags = UnparsedTagPolicy.SKIP
    if args.lenient:
        config.lenient = True
    if args.verify_lengths:
        config.verify_lengths = True
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv=None):
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.dump_files) != 1:
        print(f"usage: {parser.prog} <hprof dump>")
        return 0

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    init_logging(config.log_level)

    dump_file = args.dump_files[0]
    print(f"Analyzing {dump_file} ...")

    try:
        result = analyze_file(dump_file, config)
    except HprofError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"Results saved to: {args.output}", file=sys.stderr)

    return 0


if __name__ == '__main__':
    sys.exit(main())

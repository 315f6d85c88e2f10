"""
Command-line interface for statmerge.

Available commands:
- run: Merge the new statistics database into the old one
- match: Preview the metadata alignment
- report: Render a saved run summary
"""

import sys

from utils.logging import setup_logging

from .commands import cmd_match, cmd_report, cmd_run
from .parser import create_parser


def main() -> None:
    """Main entry point for the statmerge CLI"""
    parser = create_parser()
    args = parser.parse_args()

    setup_logging(args.log_level, log_file=args.log_file, json_format=args.json_logs)

    if args.command == 'run':
        cmd_run(args)
    elif args.command == 'match':
        cmd_match(args)
    elif args.command == 'report':
        cmd_report(args)
    else:
        parser.print_help()
        sys.exit(1)


__all__ = [
    'main',
    'cmd_run',
    'cmd_match',
    'cmd_report',
    'create_parser',
]


if __name__ == '__main__':
    main()

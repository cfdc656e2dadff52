import logging
from sys import exit

from jobevents.cli.parser import get_parent_parser
from jobevents.cli.initdb import get_parser as get_init_parser, run_init
from jobevents.cli.query import get_parser as get_query_parser, run_query
from jobevents.cli.emit import get_parser as get_emit_parser, run_emit

parser = get_parent_parser('jobevents', 'jobevents CLI')

subparsers = parser.add_subparsers(dest='command', title='command', help='CLI commands')
get_init_parser(subparsers)
get_query_parser(subparsers)
get_emit_parser(subparsers)

args = parser.parse_args()

if args.version:
    from jobevents.metadata import version
    print('jobevents', version)
    exit(0)

if args.verbose:
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(level=logging.WARNING)

status = 0
if args.command == 'init':
    status = run_init(args)
elif args.command == 'query':
    status = run_query(args)
elif args.command == 'emit':
    status = run_emit(args)
else:
    parser.print_help()

if status:
    exit(status)

from releasegate.config import GateConfig
from releasegate.errors import GateError
from releasegate.services.discovery import discover_units
from releasegate.services.orchestrator import DeployOrchestrator
from releasegate.services.router import EventRouter
import json
import argparse
import logging
import sys


# run pip install -e .
# then do your thing
def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def list_units(args):
    """
    list the deployable units of a local checkout
    """
    units = discover_units(args.directory, args.units_dir)
    _print_json([{"name": u.name, "sourceDir": u.source_dir} for u in units])


def run_deploy(args):
    """
    build + deploy (or only check) every unit at a revision
    """
    check = args.check or args.command == 'verify'
    try:
        config = GateConfig.from_env().require("git_url")
        result = DeployOrchestrator.from_config(config).run(args.ref, args.version, verify_only=check)
        _print_json(result.to_payload(verify_only=check))
    except GateError as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        sys.exit(1)
    if not result.success:
        sys.exit(1)


def handle_event(args):
    """
    feed a saved pipeline event to the router
    """
    try:
        with open(args.file, encoding='utf-8') as f:
            event = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Could not read event file {args.file}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        router = EventRouter.from_config(GateConfig.from_env())
        _print_json(router.handle(event))
    except GateError as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(
        prog='rgate',
        description='Release gate for pipeline-driven deploys of runtime '
        '          actions. Deploys units on pipeline start events and '
        '          approves or cancels approval steps after checking them.'
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        help='Logging level (default: INFO)'
    )

    # since we're having different functions, use subparsers for each one
    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands'
    )

    discover_parser = subparsers.add_parser(
        'discover',
        help='List the deployable units in a local checkout'
    )
    discover_parser.add_argument('directory', help='Root of the checkout')
    discover_parser.add_argument(
        '--units-dir',
        default='runtime-actions',
        help='Folder holding one subfolder per unit (default: runtime-actions)'
    )
    discover_parser.set_defaults(func=list_units)

    for name, help_text in (('deploy', 'Build and deploy every unit at a revision'),
                            ('verify', 'Check every unit at a revision is deployed')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--ref', required=True, help='Branch, tag or commit to check out')
        sub.add_argument('--version', required=True, help='Release version, e.g. dev')
        sub.add_argument('--check', action='store_true', help='Only check, do not deploy')
        sub.set_defaults(func=run_deploy)

    event_parser = subparsers.add_parser(
        'handle-event',
        help='Route a pipeline event read from a JSON file'
    )
    event_parser.add_argument('file', help='Path to the event JSON')
    event_parser.set_defaults(func=handle_event)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    # execute the passed function
    args.func(args)


if __name__ == '__main__':
    main()

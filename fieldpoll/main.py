"""
fieldpoll - Multi-Protocol Field Device Polling Gateway

Command-line entry point.
"""

import argparse
import json
import logging
import sys

from fieldpoll.config import default_config_path
from fieldpoll.errors import ConfigurationError
from fieldpoll.pal.gateway import Gateway

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
CONFIG_HELP = 'Path to the INI configuration (default: $FIELDPOLL_CONFIG or config.ini)'


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the gateway"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # pymodbus logs every failed connect at ERROR
    logging.getLogger("pymodbus").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="fieldpoll - Multi-Protocol Field Device Polling Gateway"
    )
    parser.add_argument('--config', '-c', default=None, help=CONFIG_HELP)

    # Accept --config after the subcommand as well
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', '-c', default=argparse.SUPPRESS, help=CONFIG_HELP)

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Serve command (default)
    serve_parser = subparsers.add_parser('serve', parents=[common], help='Run the HTTP gateway')
    serve_parser.add_argument('--host', help='Bind address (default from [Gateway])')
    serve_parser.add_argument('--port', '-p', type=int, help='Bind port (default from [Gateway])')

    # Poll command
    poll_parser = subparsers.add_parser('poll', parents=[common], help='Acquire one snapshot and print it as JSON')
    poll_parser.add_argument('family', help='Device family section name (e.g. Elite)')
    poll_parser.add_argument('--ip', help='Single device IP (default: all configured IPs)')

    # Families command
    subparsers.add_parser('families', parents=[common], help='List configured families and their devices')

    return parser


def cmd_serve(gateway: Gateway, args: argparse.Namespace) -> int:
    import uvicorn

    from fieldpoll.web import create_app

    settings = gateway.settings
    uvicorn.run(
        create_app(gateway),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_poll(gateway: Gateway, args: argparse.Namespace) -> int:
    from fieldpoll.web.app import record_to_json

    try:
        orchestrator = gateway.orchestrator(args.family)
    except KeyError:
        print(f"Unknown device family: {args.family}", file=sys.stderr)
        return 2

    if args.ip:
        output = record_to_json(orchestrator.get_one(args.ip))
    else:
        output = [record_to_json(record) for record in orchestrator.get_all()]

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def cmd_families(gateway: Gateway, args: argparse.Namespace) -> int:
    for family in gateway.families():
        ips = gateway.orchestrator(family).address_map.ips
        print(f"{family}: {', '.join(ips) if ips else '(no devices)'}")
    return 0


COMMANDS = {
    'serve': cmd_serve,
    'poll': cmd_poll,
    'families': cmd_families,
}


def cli_main(argv: list[str] | None = None) -> int:
    """Command-line interface entry point"""
    args = build_parser().parse_args(argv)
    command = args.command or 'serve'
    config_path = args.config or default_config_path()

    try:
        gateway = Gateway.from_config(config_path)
    except ConfigurationError as e:
        setup_logging()
        logging.getLogger("fieldpoll").error("Configuration error: %s", e)
        return 2

    setup_logging(gateway.settings.log_level)

    if command == 'serve' and not hasattr(args, 'host'):
        args.host = None
        args.port = None

    return COMMANDS[command](gateway, args)


if __name__ == '__main__':
    sys.exit(cli_main())

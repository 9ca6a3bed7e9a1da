"""
CLI Main Entry Point

Parses the command line, runs the command validators, authenticates and
executes the selected command.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from m365_search.commands import COMMANDS
from m365_search.commands.base import BaseCommand
from m365_search.config import Config
from m365_search.request import Request
from m365_search.utils.error_handling import CliError
from m365_search.utils.logging_config import setup_logging, LogContext

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def report_error(message: str):
    """Write a user-facing error to stderr"""
    print(f"Error: {message}", file=sys.stderr)


def build_parser(commands: Dict[str, BaseCommand] = COMMANDS) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Each command name ('search externalconnection add') becomes a chain of
    nested subcommands; the leaf parser holds the command options.
    """
    parser = argparse.ArgumentParser(prog='m365', description='Microsoft 365 CLI')
    parser.add_argument(
        '--log_level',
        type=str,
        default=None,
        choices=LOG_LEVELS,
        help='Logging level (default: LOG_LEVEL environment variable or WARNING)'
    )
    parser.add_argument(
        '--json_logs',
        action='store_true',
        default=False,
        help='Use JSON log formatting'
    )

    subparsers = {(): parser.add_subparsers(dest='group', required=True)}

    for name, command in commands.items():
        words = name.split()
        for depth, word in enumerate(words):
            path = tuple(words[:depth])
            if depth == len(words) - 1:
                leaf = subparsers[path].add_parser(word, help=command.description,
                                                   description=command.description)
                command.add_arguments(leaf)
                leaf.set_defaults(command=command)
            elif path + (word,) not in subparsers:
                group = subparsers[path].add_parser(word)
                subparsers[path + (word,)] = group.add_subparsers(
                    dest=f"group_{depth + 1}", required=True
                )

    return parser


def run_command(command: BaseCommand, options: argparse.Namespace,
                config: Optional[Config] = None, client: Optional[Request] = None) -> int:
    """
    Validate and execute a command.

    Validators run before configuration is loaded, so a rejected command
    makes no token request and no Graph request.

    Returns:
        Process exit code
    """
    with LogContext(command=command.name, connection_id=getattr(options, 'id', None)):
        rejection = command.validate(options)
        if rejection is not None:
            logger.debug(f"Validation failed: {rejection}")
            report_error(rejection)
            return 1

        logger.debug(f"Telemetry: {command.telemetry_properties(options)}")

        owns_client = client is None
        try:
            if config is None:
                config = Config()
            if client is None:
                client = Request(config.get_access_token(), timeout=config.request_timeout)
        except CliError as e:
            logger.error(f"Failed to prepare command: {str(e)}")
            report_error(str(e))
            return 1

        try:
            result = command.command_action(options, config.resource, client)
        finally:
            if owns_client:
                client.close()

        if not result.success:
            report_error(result.error.message)
            return 1

        logger.info(f"Command '{command.name}' completed")
        return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point"""

    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = args.log_level or os.getenv('LOG_LEVEL', 'WARNING').upper()
    if log_level not in LOG_LEVELS:
        log_level = 'WARNING'
    setup_logging(log_level=log_level, json_format=args.json_logs)

    try:
        exit_code = run_command(args.command, args)

    except KeyboardInterrupt:
        logger.warning("Command interrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Command failed with error: {str(e)}", exc_info=True)
        report_error(str(e))
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == '__main__':
    main()

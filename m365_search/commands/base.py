"""
Base Command Abstract Class

This module defines the base interface for all CLI commands.
Commands declare their options and validators here; the CLI registers the
options on argparse, runs the validators before the action and reports the
CommandResult the action returns.
"""

import argparse
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from m365_search.request import Request
from m365_search.utils.error_handling import CommandError

logger = logging.getLogger(__name__)

# '-i, --id <id>' (value required) or '--authorizedAppIds [authorizedAppIds]' (value optional)
OPTION_PATTERN = re.compile(r'^(?P<flags>[^<\[]+?)\s*(?:<(?P<required>\w+)>|\[(?P<optional>\w+)\])?$')

Validator = Callable[[argparse.Namespace], Optional[str]]


@dataclass
class CommandResult:
    """Outcome of a command action"""
    success: bool
    error: Optional[CommandError] = None

    @classmethod
    def ok(cls) -> 'CommandResult':
        return cls(success=True)

    @classmethod
    def failed(cls, error: CommandError) -> 'CommandResult':
        return cls(success=False, error=error)


def _dest_name(flag: str) -> str:
    """Convert a long flag such as '--authorizedAppIds' to 'authorized_app_ids'."""
    name = flag.lstrip('-')
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).replace('-', '_').lower()


class BaseCommand(ABC):
    """Abstract base class for CLI commands"""

    def __init__(self):
        self.options: List[Dict[str, Any]] = []
        self.validators: List[Validator] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Space separated command name, e.g. 'search externalconnection add'"""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    def add_arguments(self, parser: argparse.ArgumentParser):
        """
        Register the command options on an argparse parser.

        Options with a <value> placeholder require a value. Options with a
        [value] placeholder may be passed without one and then hold ''.
        """
        for option in self.options:
            match = OPTION_PATTERN.match(option['option'])
            if not match:
                raise ValueError(f"Invalid option declaration: {option['option']}")

            flags = [flag.strip() for flag in match.group('flags').split(',')]
            kwargs: Dict[str, Any] = {
                'dest': _dest_name(flags[-1]),
                'help': option.get('help'),
            }

            if match.group('required'):
                kwargs['required'] = True
                kwargs['metavar'] = match.group('required')
            elif match.group('optional'):
                kwargs['nargs'] = '?'
                kwargs['const'] = ''
                kwargs['default'] = None
                kwargs['metavar'] = match.group('optional')
            else:
                kwargs['action'] = 'store_true'

            parser.add_argument(*flags, **kwargs)

    def validate(self, options: argparse.Namespace) -> Optional[str]:
        """
        Run validators in order.

        Returns:
            The first rejection message, or None if all validators pass
        """
        for validator in self.validators:
            result = validator(options)
            if result is not None:
                return result
        return None

    def telemetry_properties(self, options: argparse.Namespace) -> Dict[str, Any]:
        """Properties describing how the command was invoked"""
        return {}

    @abstractmethod
    def command_action(self, options: argparse.Namespace, resource: str,
                       client: Request) -> CommandResult:
        """
        Execute the command.

        Args:
            options: Parsed and validated options
            resource: Graph resource base URL
            client: Authenticated HTTP client

        Returns:
            CommandResult
        """
        pass

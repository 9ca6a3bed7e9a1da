"""
search externalconnection add

Adds a new external connection for Microsoft Search.
"""

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from m365_search.commands.base import BaseCommand, CommandResult
from m365_search.request import Request, RequestOptions
from m365_search.utils.error_handling import handle_rejected_odata_json

logger = logging.getLogger(__name__)

MIN_ID_LENGTH = 3
MAX_ID_LENGTH = 32
RESERVED_PREFIX = 'Microsoft'

RESERVED_IDS = (
    'None',
    'Directory',
    'Exchange',
    'ExchangeArchive',
    'LinkedIn',
    'Mailbox',
    'OneDriveBusiness',
    'SharePoint',
    'Teams',
    'Yammer',
    'Connectors',
    'TaskFabric',
    'PowerBI',
    'Assistant',
    'TopicEngine',
    'MSFT_All_Connectors',
)


@dataclass
class ConnectionSpec:
    id: str
    name: str
    description: str
    authorized_app_ids: Optional[str] = None

    @classmethod
    def from_options(cls, options: argparse.Namespace) -> 'ConnectionSpec':
        return cls(
            id=options.id,
            name=options.name,
            description=options.description,
            authorized_app_ids=getattr(options, 'authorized_app_ids', None)
        )


def validate_connection_id(connection_id: str) -> Optional[str]:
    """
    Check a connection ID against the Microsoft Search naming rules.

    Returns:
        None if the ID is valid, otherwise the reason it is rejected
    """
    if len(connection_id) < MIN_ID_LENGTH or len(connection_id) > MAX_ID_LENGTH:
        return f'ID must be between {MIN_ID_LENGTH} and {MAX_ID_LENGTH} characters in length.'

    # str.isalnum() accepts non-ASCII letters
    if not (connection_id.isascii() and connection_id.isalnum()):
        return 'ID must only contain alphanumeric characters.'

    if len(connection_id) > len(RESERVED_PREFIX) and connection_id.startswith(RESERVED_PREFIX):
        return f'ID cannot begin with {RESERVED_PREFIX}'

    if connection_id in RESERVED_IDS:
        return f"ID cannot be one of the following values: {', '.join(RESERVED_IDS)}."

    return None


def build_payload(spec: ConnectionSpec) -> Dict[str, Any]:
    """
    Build the externalConnection request body.

    authorizedAppIds is split on ',' as given: whitespace and empty entries
    are kept.
    """
    app_ids: List[str] = []
    if spec.authorized_app_ids:
        app_ids = spec.authorized_app_ids.split(',')

    return {
        'id': spec.id,
        'name': spec.name,
        'description': spec.description,
        'configuration': {
            'authorizedAppIds': app_ids
        }
    }


class SearchExternalConnectionAddCommand(BaseCommand):
    """Creates an external connection through Microsoft Graph"""

    def __init__(self):
        super().__init__()
        self.options.extend([
            {'option': '-i, --id <id>', 'help': 'Unique identifier of the connection'},
            {'option': '-n, --name <name>', 'help': 'Display name of the connection'},
            {'option': '-d, --description <description>', 'help': 'Description of the connection'},
            {
                'option': '--authorizedAppIds [authorizedAppIds]',
                'help': 'Comma-separated list of app IDs allowed to manage the connection'
            },
        ])
        self.validators.append(lambda options: validate_connection_id(options.id))

    @property
    def name(self) -> str:
        return 'search externalconnection add'

    @property
    def description(self) -> str:
        return 'Adds a new External Connection for Microsoft Search'

    def telemetry_properties(self, options: argparse.Namespace) -> Dict[str, Any]:
        return {
            'authorizedAppIds': getattr(options, 'authorized_app_ids', None) is not None
        }

    def command_action(self, options: argparse.Namespace, resource: str,
                       client: Request) -> CommandResult:
        spec = ConnectionSpec.from_options(options)

        request_options = RequestOptions(
            url=f"{resource}/v1.0/external/connections",
            headers={
                'accept': 'application/json;odata.metadata=none'
            },
            response_type='json',
            data=build_payload(spec)
        )

        logger.info(f"Creating external connection {spec.id}")

        try:
            client.post(request_options)
        except (requests.exceptions.RequestException, ValueError) as e:
            error = handle_rejected_odata_json(e)
            logger.error(f"Failed to create external connection {spec.id}: {error.message}")
            return CommandResult.failed(error)

        logger.info(f"External connection {spec.id} created")
        return CommandResult.ok()

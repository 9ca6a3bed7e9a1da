"""
Error Handling Utilities

Exception hierarchy for the CLI and translation of Microsoft Graph (OData)
error responses into user-facing command errors.
"""

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class CliError(Exception):
    """Base exception for CLI errors"""
    pass


class CommandError(CliError):
    """User-facing failure reported by a command"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(CliError):
    """Error in CLI configuration"""
    pass


class AuthenticationError(CliError):
    """Error acquiring an access token"""
    pass


def _parse_error_body(response: requests.Response) -> Optional[Any]:
    """Return the JSON error body of a response, or None if it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def handle_rejected_odata_json(error: Exception) -> CommandError:
    """
    Translate an error raised by the HTTP layer into a CommandError.

    Graph reports failures either in the OData v3 shape
    ({"odata.error": {"code": ..., "message": {"value": ...}}}) or in the
    OData v4 shape ({"error": {"code": ..., "message": ...}}). Anything else
    falls back to the raw response text or the exception message.

    Args:
        error: Exception raised while sending the request

    Returns:
        CommandError carrying the service message and code when available
    """
    response = getattr(error, 'response', None)

    if not isinstance(error, requests.HTTPError) or response is None:
        logger.debug(f"Request failed without a service response: {error!r}")
        return CommandError(str(error))

    logger.debug(f"Service responded with HTTP {response.status_code}: {response.text[:500]}")

    body = _parse_error_body(response)

    if isinstance(body, dict):
        odata_error = body.get('odata.error')
        if isinstance(odata_error, dict):
            message = odata_error.get('message')
            if isinstance(message, dict) and message.get('value'):
                return CommandError(message['value'], odata_error.get('code'))

        graph_error = body.get('error')
        if isinstance(graph_error, dict) and graph_error.get('message'):
            return CommandError(graph_error['message'], graph_error.get('code'))

    if response.text:
        return CommandError(response.text)

    return CommandError(str(error))

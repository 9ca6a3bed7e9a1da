"""
Authenticated HTTP client for Microsoft Graph requests.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class RequestOptions:
    """
    Describes a single Graph request.

    The response of a 'json' request is parsed, any other response_type
    returns the raw text.
    """
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    response_type: str = 'json'
    data: Optional[Dict[str, Any]] = None


class Request:
    """Sends requests to Graph with a bearer token"""

    def __init__(self, access_token: str, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        """
        Args:
            access_token: Bearer token for the Authorization header
            timeout: Request timeout in seconds
            session: Session to send requests with (a new one if omitted)
        """
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, options: RequestOptions) -> Dict[str, str]:
        headers = {
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': 'application/json',
        }
        headers.update(options.headers)
        return headers

    def post(self, options: RequestOptions) -> Any:
        """
        POST options.data as JSON to options.url.

        Returns:
            Parsed JSON (None for an empty body) or response text

        Raises:
            requests.RequestException: On transport failure or non-2xx status
            ValueError: If a JSON response cannot be parsed
        """
        logger.debug(f"POST {options.url}")
        logger.debug(f"Payload: {options.data}")

        response = self.session.post(
            options.url,
            json=options.data,
            headers=self._headers(options),
            timeout=self.timeout
        )
        response.raise_for_status()

        logger.debug(f"Response {response.status_code} from {options.url}")

        if options.response_type == 'json':
            return response.json() if response.content else None
        return response.text

    def close(self):
        self.session.close()

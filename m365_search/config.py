"""
Configuration Management

Handles configuration loading from environment variables and access token
acquisition for Microsoft Graph.
"""

import os
import logging
from typing import Optional
import requests

from m365_search.utils.error_handling import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_RESOURCE = 'https://graph.microsoft.com'
DEFAULT_AUTHORITY_URL = 'https://login.microsoftonline.com'


class Config:
    """Configuration manager for the CLI"""

    def __init__(self):
        """Initialize configuration from environment variables"""

        # Microsoft Graph configuration
        self.resource = os.getenv('M365_GRAPH_RESOURCE', DEFAULT_GRAPH_RESOURCE).rstrip('/')
        self.authority_url = os.getenv('M365_AUTHORITY_URL', DEFAULT_AUTHORITY_URL).rstrip('/')

        # Authentication
        self.access_token = os.getenv('M365_ACCESS_TOKEN', '')
        self.tenant_id = os.getenv('M365_TENANT_ID', '')
        self.client_id = os.getenv('M365_CLIENT_ID', '')
        self.client_secret = os.getenv('M365_CLIENT_SECRET', '')

        # HTTP configuration
        self.request_timeout = os.getenv('M365_REQUEST_TIMEOUT', '30')  # seconds

        self._token: Optional[str] = None

        # Validate required config
        self._validate()

    @property
    def uses_client_credentials(self) -> bool:
        return not self.access_token

    def _validate(self):
        """Validate required configuration"""
        try:
            self.request_timeout = int(self.request_timeout)
        except ValueError:
            raise ConfigurationError(
                f"M365_REQUEST_TIMEOUT must be an integer, got: {self.request_timeout}"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("M365_REQUEST_TIMEOUT must be a positive number of seconds")

        if self.uses_client_credentials:
            missing = [
                name for name, value in (
                    ('M365_TENANT_ID', self.tenant_id),
                    ('M365_CLIENT_ID', self.client_id),
                    ('M365_CLIENT_SECRET', self.client_secret),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    "Set M365_ACCESS_TOKEN, or configure client credentials "
                    f"(missing: {', '.join(missing)})"
                )

        logger.info("Configuration loaded:")
        logger.info(f"  - Graph resource: {self.resource}")
        logger.info(f"  - Auth: {'client credentials' if self.uses_client_credentials else 'access token'}")
        logger.info(f"  - Request timeout: {self.request_timeout}s")

    @property
    def token_url(self) -> str:
        return f"{self.authority_url}/{self.tenant_id}/oauth2/v2.0/token"

    def get_access_token(self) -> str:
        """
        Return a bearer token for the Graph resource.

        Uses M365_ACCESS_TOKEN when set. Otherwise requests a token with the
        OAuth2 client credentials grant; the token is kept for the rest of
        the invocation.

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the token endpoint fails or returns no token
        """
        if self.access_token:
            return self.access_token

        if self._token:
            return self._token

        payload = {
            'grant_type': 'client_credentials',
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'scope': f"{self.resource}/.default",
        }

        logger.info(f"Requesting access token from: {self.token_url}")

        try:
            response = requests.post(self.token_url, data=payload, timeout=self.request_timeout)
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to acquire access token: {str(e)}")
            raise AuthenticationError(f"Failed to acquire access token: {str(e)}") from e
        except ValueError as e:
            logger.error(f"Token endpoint returned invalid JSON: {str(e)}")
            raise AuthenticationError("Token endpoint returned an invalid response") from e

        token = data.get('access_token')
        if not token:
            logger.error("Token response missing access_token")
            raise AuthenticationError("Token endpoint response did not contain an access token")

        logger.debug(f"Access token acquired, expires in {data.get('expires_in', 'unknown')}s")
        self._token = token
        return token

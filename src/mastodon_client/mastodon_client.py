"""
Mastodon Client for ical-to-masto.

This module provides functionality to register an application with a
Mastodon-compatible instance (Mastodon, Pleroma, Akkoma), obtain an
OAuth2 access token, and post statuses with it.

Usage:
    >>> from config import load_config, load_token
    >>> config = load_config("config.toml")
    >>> client = MastodonClient.from_token(load_token(config))
    >>> result = client.post_status("Hello from ical-to-masto!")
    >>> print(f"Posted: {result['url']}")

Authentication Flow:
    1. Register app with the instance using register_app()
       - Returns client_id and client_secret
    2. Generate authorization URL using get_authorization_url()
       - User visits URL and authorizes the app
    3. Exchange authorization code for access token using get_access_token()
       - Returns access_token for API calls
    4. Store credentials with config.save_token()

API Reference:
    Mastodon API: https://docs.joinmastodon.org/api/
    Mastodon.py: https://mastodonpy.readthedocs.io/

Security:
    - No credentials are logged
    - Client credentials and access tokens should be kept secret
"""
import logging
from typing import Optional, Dict, Any, List, Tuple
from mastodon import Mastodon, MastodonError


logger = logging.getLogger(__name__)

# Redirect URI for manual code entry: the instance shows the code to the user
# instead of redirecting.
OOB_REDIRECT_URI = 'urn:ietf:wg:oauth:2.0:oob'


class MastodonClient:
    """Client for posting to Mastodon-compatible instances.

    This class encapsulates Mastodon API interactions using the Mastodon.py
    library and provides methods for authentication and posting.

    Attributes:
        instance_url: URL of the instance (e.g., https://mastodon.social)
        client_id: OAuth client ID for the registered app
        client_secret: OAuth client secret for the registered app
        access_token: OAuth access token for authenticated API calls
        scopes: OAuth scopes requested for the app
        api: Mastodon API client instance (None without an access token)

    Example:
        >>> client = MastodonClient(
        ...     instance_url="https://mastodon.social",
        ...     client_id="...",
        ...     client_secret="...",
        ...     access_token="..."
        ... )
        >>> client.post_status("Hello Mastodon!")
    """

    # Default app name for registration
    DEFAULT_APP_NAME = "ical-to-masto"

    # Default scopes for OAuth
    DEFAULT_SCOPES = ['read', 'write:statuses']

    def __init__(
        self,
        instance_url: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        scopes: Optional[List[str]] = None
    ):
        """Initialize Mastodon client with credentials.

        Args:
            instance_url: URL of the instance (e.g., https://mastodon.social)
            client_id: OAuth client ID (obtained from app registration)
            client_secret: OAuth client secret (obtained from app registration)
            access_token: OAuth access token (obtained from user authorization)
            scopes: OAuth scopes (default: ['read', 'write:statuses'])

        Raises:
            ValueError: If instance_url is empty
        """
        if not instance_url:
            raise ValueError("Instance URL is required")

        self.instance_url = instance_url.rstrip('/')
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.scopes = list(scopes) if scopes else list(self.DEFAULT_SCOPES)
        self.api: Optional[Mastodon] = None

        if access_token:
            self.api = self._create_api(access_token=access_token)
            logger.info(f"Mastodon client initialized for {self.instance_url}")

    def _create_api(self, access_token: Optional[str] = None) -> Mastodon:
        # Pleroma and Akkoma report versions Mastodon.py can't compare,
        # so feature version checks are turned off.
        return Mastodon(
            client_id=self.client_id,
            client_secret=self.client_secret,
            access_token=access_token,
            api_base_url=self.instance_url,
            version_check_mode='none'
        )

    @classmethod
    def from_token(cls, token_data: Dict[str, Any]) -> 'MastodonClient':
        """Create MastodonClient from a token file dictionary.

        Args:
            token_data: Dictionary from config.load_token()

        Returns:
            MastodonClient instance ready to post

        Example:
            >>> from config import load_config, load_token
            >>> client = MastodonClient.from_token(load_token(load_config()))
        """
        return cls(
            instance_url=token_data['base'],
            client_id=token_data['client_id'],
            client_secret=token_data['client_secret'],
            access_token=token_data['token'],
            scopes=token_data.get('scopes')
        )

    def to_token(self, redirect_uri: str = OOB_REDIRECT_URI) -> Dict[str, Any]:
        """Return the credentials as a token file dictionary.

        Raises:
            ValueError: If the client has no access token yet
        """
        if not self.access_token:
            raise ValueError("No access token to save; complete authorization first")
        return {
            'base': self.instance_url,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect': redirect_uri,
            'token': self.access_token,
            'scopes': self.scopes,
        }

    @staticmethod
    def register_app(
        instance_url: str,
        app_name: str = DEFAULT_APP_NAME,
        scopes: Optional[List[str]] = None,
        redirect_uri: str = OOB_REDIRECT_URI,
        website: Optional[str] = None
    ) -> Tuple[str, str]:
        """Register a new application with a Mastodon-compatible instance.

        This method creates a new OAuth application on the instance and
        returns the client credentials needed for authentication.

        Args:
            instance_url: URL of the instance (e.g., https://mastodon.social)
            app_name: Name of the application (default: "ical-to-masto")
            scopes: List of OAuth scopes (default: ['read', 'write:statuses'])
            redirect_uri: OAuth redirect URI registered for the app
            website: Optional website shown on posts made by the app

        Returns:
            Tuple of (client_id, client_secret)

        Raises:
            MastodonError: If app registration fails

        Example:
            >>> client_id, client_secret = MastodonClient.register_app(
            ...     "https://mastodon.social"
            ... )
        """
        if scopes is None:
            scopes = MastodonClient.DEFAULT_SCOPES

        try:
            client_id, client_secret = Mastodon.create_app(
                app_name,
                scopes=scopes,
                redirect_uris=redirect_uri,
                website=website,
                api_base_url=instance_url
            )
            logger.info(f"Successfully registered app '{app_name}' on {instance_url}")
            return client_id, client_secret
        except MastodonError as e:
            logger.error(f"Failed to register app on {instance_url}: {e}")
            raise

    def get_authorization_url(self, redirect_uri: str = OOB_REDIRECT_URI) -> str:
        """Generate OAuth authorization URL for user authentication.

        Args:
            redirect_uri: OAuth redirect URI (default: out-of-band manual code entry)

        Returns:
            Authorization URL string

        Raises:
            ValueError: If client is not initialized with client credentials

        Example:
            >>> client = MastodonClient(instance_url="...", client_id="...", client_secret="...")
            >>> print(f"Visit this URL to authorize: {client.get_authorization_url()}")
        """
        if not self.client_id or not self.client_secret:
            raise ValueError("Client ID and secret required to generate authorization URL")

        mastodon = self._create_api()
        return mastodon.auth_request_url(
            scopes=self.scopes,
            redirect_uris=redirect_uri
        )

    def get_access_token(
        self,
        authorization_code: str,
        redirect_uri: str = OOB_REDIRECT_URI
    ) -> str:
        """Exchange authorization code for access token.

        On success the token is also kept on the client, so it can post
        right away and be saved with to_token().

        Args:
            authorization_code: Code received after user authorization
            redirect_uri: OAuth redirect URI (must match the one used in authorization URL)

        Returns:
            Access token string

        Raises:
            ValueError: If client credentials or the code are missing
            MastodonError: If token exchange fails
        """
        if not self.client_id or not self.client_secret:
            raise ValueError("Client ID and secret required to get access token")
        if not authorization_code or not authorization_code.strip():
            raise ValueError("Authorization code is empty")

        try:
            mastodon = self._create_api()
            access_token = mastodon.log_in(
                code=authorization_code.strip(),
                redirect_uri=redirect_uri,
                scopes=self.scopes
            )
        except MastodonError as e:
            logger.error(f"Failed to get access token: {e}")
            raise

        logger.info("Successfully obtained access token")
        self.access_token = access_token
        self.api = self._create_api(access_token=access_token)
        return access_token

    def post_status(
        self,
        status: str,
        visibility: str = 'public',
        sensitive: bool = False,
        spoiler_text: Optional[str] = None,
        language: Optional[str] = None,
        in_reply_to_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Post a status.

        Args:
            status: Text content of the status (max 500 characters for most instances)
            visibility: Post visibility ('public', 'unlisted', 'private', 'direct')
            sensitive: Whether to mark the post as sensitive content
            spoiler_text: Content warning text (if provided, post will be hidden behind CW)
            language: ISO 639 language code of the status
            in_reply_to_id: ID of the status this one replies to

        Returns:
            Dictionary containing the posted status information

        Raises:
            ValueError: If the client has no access token
            MastodonError: If the instance rejects the status

        Example:
            >>> result = client.post_status("Hello from ical-to-masto!")
            >>> print(f"Posted: {result['url']}")
        """
        if not self.api:
            raise ValueError("Cannot post status: no access token")

        try:
            result = self.api.status_post(
                status=status,
                in_reply_to_id=in_reply_to_id,
                sensitive=sensitive,
                visibility=visibility,
                spoiler_text=spoiler_text,
                language=language
            )
        except MastodonError as e:
            logger.error(f"Failed to post status to {self.instance_url}: {e}")
            raise

        logger.info(f"Successfully posted status: {result.get('url') or result['id']}")
        return result

    def verify_credentials(self) -> Dict[str, Any]:
        """Verify that the access token is valid and get account information.

        Returns:
            Dictionary containing account information

        Raises:
            ValueError: If the client has no access token
            MastodonError: If the instance rejects the token

        Example:
            >>> account = client.verify_credentials()
            >>> print(f"Authenticated as: @{account['username']}")
        """
        if not self.api:
            raise ValueError("Cannot verify credentials: no access token")

        try:
            account = self.api.account_verify_credentials()
        except MastodonError as e:
            logger.error(f"Failed to verify credentials: {e}")
            raise

        logger.info(f"Verified credentials for @{account['username']}")
        return account

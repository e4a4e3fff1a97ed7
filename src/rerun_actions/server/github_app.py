"""GitHub App authentication."""

import time

import httpx
import jwt

from rerun_actions.server.config import Settings, get_settings


GITHUB_API_URL = "https://api.github.com"


class GitHubAppAuth:
    """GitHub App authentication manager.

    Installation tokens are requested per delivery and never cached.
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize GitHub App authentication.

        Args:
            settings: Server settings (uses default if not provided)
        """
        self.settings = settings or get_settings()
        self._private_key = self.settings.get_private_key()
        self._app_id = self.settings.github_app_id
        self._api_url = (self.settings.github_api_url or GITHUB_API_URL).rstrip("/")

    def generate_jwt(self, expiration_seconds: int = 600) -> str:
        """Generate a JWT for GitHub App authentication.

        Args:
            expiration_seconds: JWT expiration time in seconds

        Returns:
            JWT token string
        """
        now = int(time.time())
        payload = {
            "iat": now - 60,  # clock drift
            "exp": now + expiration_seconds,
            "iss": str(self._app_id),
        }
        return jwt.encode(payload, self._private_key, algorithm="RS256")

    async def get_installation_token(self, installation_id: int) -> str:
        """Get an installation access token.

        Args:
            installation_id: GitHub App installation ID

        Returns:
            Installation access token

        Raises:
            httpx.HTTPError: If the token request fails
        """
        jwt_token = self.generate_jwt()

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self._api_url}/app/installations/{installation_id}/access_tokens",
                headers={
                    "Authorization": f"Bearer {jwt_token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
            )
            response.raise_for_status()
            data = response.json()

        return data["token"]

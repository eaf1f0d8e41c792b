"""LINE Login (OAuth 2.0 / v2.1) client.

Only the three calls the auth flow needs: build the authorize URL, exchange
the authorization code, and read the profile behind an access token.
"""
from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx

from .config import settings
from .errors import BadRequestError
from .security import create_oauth_state

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://access.line.me/oauth2/v2.1/authorize"
TOKEN_URL = "https://api.line.me/oauth2/v2.1/token"
PROFILE_URL = "https://api.line.me/v2/profile"
DEFAULT_SCOPE = "profile openid"


class LineOAuthError(BadRequestError):
    pass


class LineOAuthClient:
    def __init__(
        self,
        channel_id: str | None = None,
        channel_secret: str | None = None,
        redirect_uri: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.channel_id = channel_id or settings.line_channel_id
        self.channel_secret = channel_secret or settings.line_channel_secret
        self.redirect_uri = redirect_uri or settings.line_redirect_uri
        self.timeout = timeout or settings.line_http_timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def generate_auth_url(self) -> dict:
        state = create_oauth_state()
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.channel_id,
                "redirect_uri": self.redirect_uri,
                "state": state,
                "scope": DEFAULT_SCOPE,
            }
        )
        return {"url": f"{AUTHORIZE_URL}?{query}", "state": state}

    def exchange_code_for_token(self, code: str) -> dict:
        """Trade an authorization code for tokens.

        The token endpoint does not return the LINE user id, so it is read
        from the profile and merged into the result as ``user_id``.
        """
        with self._client() as client:
            try:
                resp = client.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.channel_id,
                        "client_secret": self.channel_secret,
                    },
                )
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.warning(
                    "LINE token exchange rejected: status=%s body=%s",
                    exc.response.status_code,
                    exc.response.text[:200],
                )
                raise LineOAuthError("Failed to exchange LINE authorization code") from exc
            except httpx.HTTPError as exc:
                logger.exception("LINE token exchange failed")
                raise LineOAuthError("Failed to exchange LINE authorization code") from exc

            token = resp.json()
            if not token.get("access_token"):
                raise LineOAuthError("LINE did not return an access token")
            if not token.get("user_id"):
                profile = self._fetch_profile(client, token["access_token"])
                token["user_id"] = profile["userId"]
            return token

    def get_user_profile(self, access_token: str) -> dict:
        with self._client() as client:
            return self._fetch_profile(client, access_token)

    def _fetch_profile(self, client: httpx.Client, access_token: str) -> dict:
        try:
            resp = client.get(PROFILE_URL, headers={"Authorization": f"Bearer {access_token}"})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("LINE profile request failed: %s", exc)
            raise LineOAuthError("Failed to fetch LINE profile") from exc
        profile = resp.json()
        if not profile.get("userId"):
            raise LineOAuthError("LINE profile has no userId")
        return profile


def get_line_oauth() -> LineOAuthClient:
    return LineOAuthClient()

"""Google OAuth utilities for resolving the authenticated principal.

The OAuth redirect dance stores the principal in the signed session cookie
(Starlette SessionMiddleware). Everything else in the app only needs the
principal's stable id.
"""

import logging
from urllib.parse import urlencode

import httpx
from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid profile email"

SESSION_USER_KEY = "user"
SESSION_STATE_KEY = "oauth_state"


class Principal(BaseModel):
    """Authenticated identity resolved from the identity provider."""

    id: str = Field(..., min_length=1, description="Stable user id (Google subject)")
    name: str | None = Field(None, description="Display name")
    email: str | None = Field(None, description="Email address")
    picture: str | None = Field(None, description="Avatar URL")
    provider: str = Field("google", description="Identity provider")


class AuthenticationRequired(HTTPException):
    """No principal could be resolved for a request that needs one."""

    def __init__(self, detail: str = "Login required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def build_authorization_url(client_id: str, redirect_uri: str, state: str) -> str:
    """Build the Google consent screen URL."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": GOOGLE_SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


async def fetch_google_principal(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
) -> Principal:
    """Exchange an authorization code for the user's Google profile.

    Raises:
        httpx.HTTPError: If either Google call fails
        ValueError: If the profile has no subject id
    """
    async with httpx.AsyncClient(timeout=10.0) as client:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise ValueError("Google token response did not include an access token")

        profile_response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        profile_response.raise_for_status()
        profile = profile_response.json()

    if not profile.get("sub"):
        raise ValueError("Google profile did not include a subject id")

    return Principal(
        id=profile["sub"],
        name=profile.get("name"),
        email=profile.get("email"),
        picture=profile.get("picture"),
    )


def get_principal(request: Request) -> Principal | None:
    """Resolve the principal stored in the session cookie, if any."""
    data = request.session.get(SESSION_USER_KEY)
    if not data:
        return None
    try:
        return Principal.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Discarding malformed principal in session: {e}")
        return None


def require_principal(principal: Principal | None = Depends(get_principal)) -> Principal:
    """Dependency that requires an authenticated principal.

    Raises:
        AuthenticationRequired: If nobody is logged in
    """
    if principal is None:
        raise AuthenticationRequired()
    return principal

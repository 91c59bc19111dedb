from typing import Optional

from fastapi import Depends, Header, Request

from lbk_points.db.models import User
from lbk_points.errors import AuthenticationError, NotFoundError
from lbk_points.security import verify_token
from lbk_points.services import Services


def get_services(request: Request) -> Services:
    """
    Components built once at startup and stored on app.state.
    """
    return request.app.state.services


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> User:
    """
    Resolve the caller's account from the bearer token.
    """
    if not authorization:
        raise AuthenticationError("Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise AuthenticationError("Invalid authorization header format")

    claims = verify_token(token.strip(), services.settings.jwt_secret)
    try:
        return await services.accounts.get_account(claims["user_id"])
    except NotFoundError:
        # Token outlived its account
        raise AuthenticationError("Invalid token")

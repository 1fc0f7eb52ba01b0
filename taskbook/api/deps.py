"""Request dependencies: engine lookup and bearer identity."""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskbook.core.engine import Engine
from taskbook.core.errors import UnauthorizedError
from taskbook.models import User

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def resolve_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    engine: Engine = Depends(get_engine),
) -> Optional[User]:
    """Resolve the bearer token leniently.

    A missing or unverifiable token yields None instead of an error;
    require_user decides whether the route may proceed anonymously.
    """
    if credentials is None:
        return None
    return engine.auth.resolve_token(credentials.credentials)


def require_user(user: Optional[User] = Depends(resolve_identity)) -> User:
    if user is None:
        raise UnauthorizedError("Authentication failed")
    return user

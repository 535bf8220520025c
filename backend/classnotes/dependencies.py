"""
ClassNotes Backend - Route Dependencies
=========================================

What:  FastAPI dependencies that hand services and the authenticated
       identity to route handlers.
How:   Services are built once by create_app() and stored on app.state;
       these functions fetch them from the current request's app so each
       app instance (e.g. one per test) uses its own objects.

Auth gate:
    no Authorization header     → AuthenticationError (401)
    token fails verification    → InvalidTokenError / TokenExpiredError (403)
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from classnotes.exceptions import AuthenticationError
from classnotes.services.auth_service import AuthService
from classnotes.services.catalog_service import CatalogService
from classnotes.services.note_service import NoteService
from classnotes.services.security_base import TokenIdentity

# auto_error=False: a missing header is reported through our own handler
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenIdentity:
    """Resolve the bearer token on the request to the caller's identity."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="No authorization header")
    return auth_service.verify_token(credentials.credentials)

"""
FastAPI dependencies: service wiring and bearer-token authentication.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError

from config import get_settings
from repositories.client import get_supabase_client
from repositories.sale_repository import SaleRepository
from services.auth_service import AuthUser, decode_access_token
from services.event_publisher import build_event_publisher
from services.sale_service import SaleService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="Enter JWT Bearer token")


def get_sale_service() -> SaleService:
    client = get_supabase_client()
    return SaleService(SaleRepository(client), build_event_publisher(get_settings(), client))


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> AuthUser:
    """Resolve the caller from the Authorization header or fail with 401."""

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized

    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Token validation failed: %s", e)
        raise unauthorized

    return AuthUser(
        user_id=str(payload["sub"]),
        username=str(payload.get("name", "")),
        role=str(payload.get("role", "User")),
    )


SaleServiceDep = Annotated[SaleService, Depends(get_sale_service)]
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]

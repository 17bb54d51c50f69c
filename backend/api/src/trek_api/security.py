"""Caller identity for API routes.

Trust Model:
- API Gateway validates the JWT before the request reaches the backend
- After validation it injects x-user-sub, x-user-email and x-user-role
  headers carrying the token claims
- The backend trusts these headers since they come from API Gateway, not the
  client

When the API runs behind a REST API with a Cognito authorizer the claims are
read from ``event.requestContext.authorizer.claims`` instead (via Mangum).
"""

from fastapi import Depends, Request
from pydantic import BaseModel

from trek_shared.models.enums import UserRole
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.utils.logging import get_logger

logger = get_logger(__name__)

# Claim names used by the Cognito authorizer fallback
_CLAIM_FOR_HEADER = {
    "x-user-sub": "sub",
    "x-user-email": "email",
    "x-user-role": "custom:role",
}


class CurrentUser(BaseModel):
    """Identity of the caller."""

    sub: str
    email: str | None = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _get_header_case_insensitive(request: Request, header_name: str) -> str | None:
    """Extract header value with case-insensitive lookup."""
    for name, value in request.headers.items():
        if name.lower() == header_name.lower():
            return value.strip() if value else None
    return None


def _get_identity_value(request: Request, header_name: str) -> str | None:
    value = _get_header_case_insensitive(request, header_name)
    if not value:
        event = request.scope.get("aws.event", {})
        claims = event.get("requestContext", {}).get("authorizer", {}).get("claims", {})
        value = claims.get(_CLAIM_FOR_HEADER[header_name])
    return value or None


def get_current_user(request: Request) -> CurrentUser:
    """Resolve the caller from gateway-injected identity.

    Unknown role values are treated as a regular user.

    Raises:
        BookingError: AUTH_REQUIRED when no subject is present
    """
    sub = _get_identity_value(request, "x-user-sub")
    if not sub:
        logger.warning("Missing user identity on %s", request.url.path)
        raise BookingError(ErrorCode.AUTH_REQUIRED)

    raw_role = (_get_identity_value(request, "x-user-role") or "").lower()
    role = UserRole.ADMIN if raw_role == UserRole.ADMIN.value else UserRole.USER
    return CurrentUser(
        sub=sub,
        email=_get_identity_value(request, "x-user-email"),
        role=role,
    )


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dependency for admin-only routes.

    Raises:
        BookingError: ADMIN_REQUIRED for non-admin callers
    """
    if not user.is_admin:
        logger.warning("Admin route denied for %s", user.sub)
        raise BookingError(ErrorCode.ADMIN_REQUIRED)
    return user

"""
API security helpers.

Owner identity arrives as a bearer token ``<owner_id>.<signature>`` where
the signature is an HMAC-SHA256 of the owner id under SECRET_KEY.
"""
import base64
import hashlib
import hmac
from typing import Optional
from fastapi import Header, HTTPException, status

from app.core.config import settings


def _sign(owner_id: str) -> str:
    mac = hmac.new(settings.SECRET_KEY.encode(), owner_id.encode(), hashlib.sha256)
    return base64.urlsafe_b64encode(mac.digest()).decode().rstrip("=")


def issue_owner_token(owner_id: str) -> str:
    """Mint a bearer token for an owner id."""
    owner_id = str(owner_id).strip()
    if not owner_id or "." in owner_id:
        raise ValueError("owner_id must be non-empty and must not contain '.'")
    return f"{owner_id}.{_sign(owner_id)}"


def verify_owner_token(token: str) -> Optional[str]:
    """Return the owner id of a valid token, None otherwise."""
    if not token or "." not in token:
        return None
    owner_id, _, signature = token.rpartition(".")
    if not owner_id or not hmac.compare_digest(signature, _sign(owner_id)):
        return None
    return owner_id


async def require_owner(
    authorization: Optional[str] = Header(default=None),
    x_owner_id: Optional[str] = Header(default=None, alias="X-Owner-Id"),
) -> str:
    """Resolve the authenticated owner of the request."""
    if not settings.API_AUTH_ENABLED:
        if x_owner_id and x_owner_id.strip():
            return x_owner_id.strip()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.OWNER_HEADER} header"
        )

    if settings.SECRET_KEY == "your-secret-key-change-this":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API auth is enabled but SECRET_KEY is not configured"
        )

    scheme, _, token = (authorization or "").partition(" ")
    owner_id = verify_owner_token(token.strip()) if scheme.lower() == "bearer" else None
    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing access token"
        )
    return owner_id

"""
shared/utils/security.py
Firebase ID token verification, role resolution, and token helpers.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from config.settings import settings
from shared.models.models import UserRole

logger = logging.getLogger(__name__)

HASURA_CLAIMS_NAMESPACE = "https://hasura.io/jwt/claims"


class InvalidTokenError(Exception):
    """ID token is malformed, expired, revoked or signed by the wrong project."""


def init_firebase() -> None:
    """Initialise the default Firebase app once per process."""
    if firebase_admin._apps:
        return
    try:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    except (IOError, ValueError) as e:
        logger.warning(f"Firebase credentials unavailable ({e}); falling back to application default")
        cred = credentials.ApplicationDefault()
    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    firebase_admin.initialize_app(cred, options)


def verify_id_token(token: str) -> dict:
    """
    Verify a Firebase ID token and return its decoded claims.
    Raises InvalidTokenError on any verification failure.
    """
    try:
        return firebase_auth.verify_id_token(token)
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError) as e:
        raise InvalidTokenError(str(e)) from e


def token_fingerprint(token: str) -> str:
    """SHA-256 of the raw token; the deny-list never stores tokens themselves."""
    return hashlib.sha256(token.encode()).hexdigest()


def get_token_remaining_ttl(claims: dict) -> int:
    """Returns seconds until token expiry. Used for the deny-list TTL."""
    exp = claims.get("exp", 0)
    remaining = exp - datetime.now(timezone.utc).timestamp()
    return max(0, int(remaining))


def hasura_claims(claims: dict) -> dict:
    return claims.get(HASURA_CLAIMS_NAMESPACE) or {}


def role_from_claims(claims: dict) -> Optional[UserRole]:
    """
    Resolve the caller's role from custom claims.
    `user_type` wins; the Hasura default role is the fallback.
    """
    raw = claims.get("user_type") or hasura_claims(claims).get("x-hasura-default-role")
    try:
        return UserRole(raw) if raw else None
    except ValueError:
        return None


def user_id_from_claims(claims: dict) -> str:
    return (
        hasura_claims(claims).get("x-hasura-user-id")
        or claims.get("uid")
        or claims["sub"]
    )

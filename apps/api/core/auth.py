"""
Authentication dependencies.

Sign-up, sign-in and sessions live with the hosted auth provider. Requests
carry the provider's bearer token; this module verifies it and resolves the
caller's Profile.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from core.database import get_db
from core.exceptions import UnauthorizedError
from core.security import decode_access_token
from models import Profile

logger = logging.getLogger(__name__)

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def _find_profile(db: Session, user_id: UUID) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == user_id).first()


def provision_profile(db: Session, user_id: UUID) -> Profile:
    """
    The caller's profile, inserting it on first sight.

    A new client fires its first requests in parallel, so two of them can both
    miss the row and both insert it. The loser's flush hits the primary key;
    it rolls back and reads the winner's row.
    """
    profile = _find_profile(db, user_id)
    if profile is not None:
        return profile

    db.add(Profile(id=user_id))
    try:
        db.flush()
        logger.info(f"Provisioned profile for user {user_id}")
    except IntegrityError:
        db.rollback()
        logger.info(f"Profile for user {user_id} was provisioned by a concurrent request")
    return _find_profile(db, user_id)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """
    Get the current user's profile from the bearer token.

    The provider creates users on its side; the matching profile row is
    provisioned here on the first authenticated request.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        user_id_uuid = UUID(user_id)
    except ValueError:
        raise UnauthorizedError("Invalid user ID format")

    return provision_profile(db, user_id_uuid)

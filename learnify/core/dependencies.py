import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from learnify.core.config import Settings
from learnify.core.database import get_db
from learnify.core.exceptions import AuthenticationError, AuthorizationError
from learnify.core.security import JWTManager, TokenBlacklist
from learnify.models.user import User
from learnify.utils.dates import as_utc
from learnify.utils.mailer import MailSender
from learnify.utils.media_store import MediaStore
from learnify.utils.payment import PaymentGateway

logger = logging.getLogger(__name__)


# ==================== Lifespan resources ====================


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_jwt_manager(request: Request) -> JWTManager:
    return request.app.state.jwt_manager


def get_token_blacklist(request: Request) -> TokenBlacklist:
    return request.app.state.token_blacklist


def get_media_store(request: Request) -> MediaStore:
    return request.app.state.media_store


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_mail_sender(request: Request) -> MailSender:
    return request.app.state.mail_sender


# ==================== Authentication ====================


def changed_password_after(user: User, payload: dict) -> bool:
    """Compare at millisecond precision; older tokens only carry whole-second `iat`."""
    if not user.password_changed_at:
        return False
    issued_at_ms = payload.get("iat_ms", payload.get("iat", 0) * 1000)
    return issued_at_ms < int(as_utc(user.password_changed_at).timestamp() * 1000)


def _authenticate(
    request: Request,
    db: Session,
    jwt_manager: JWTManager,
    blacklist: TokenBlacklist,
) -> User:
    token = jwt_manager.extract_token(request)
    if not token:
        raise AuthenticationError("You are not logged in! Please log in to get access.")

    if blacklist.is_blacklisted(token):
        raise AuthenticationError("Token has been revoked. Please log in again!")

    payload = jwt_manager.verify_token(token, "access")
    user_id = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError("Invalid token. Please log in again!")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("The user belonging to this token no longer exists.")

    if changed_password_after(user, payload):
        raise AuthenticationError("User recently changed password! Please log in again.")

    request.state.token = token
    request.state.token_payload = payload
    return user


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    blacklist: TokenBlacklist = Depends(get_token_blacklist),
) -> User:
    """
    Requires a valid token (cookie or Bearer header) and returns its user.
    Raises 401 if the token is missing, invalid, revoked or stale.
    """
    return _authenticate(request, db, jwt_manager, blacklist)


async def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    blacklist: TokenBlacklist = Depends(get_token_blacklist),
) -> Optional[User]:
    """
    Returns the user when a valid token is supplied and None otherwise.
    Invalid tokens are treated as an anonymous request.
    """
    try:
        return _authenticate(request, db, jwt_manager, blacklist)
    except AuthenticationError as e:
        logger.debug(f"Treating request as anonymous: {e.message}")
        return None


async def require_instructor(
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.is_instructor:
        raise AuthorizationError("Only instructors can perform this action")
    return current_user

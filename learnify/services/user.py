# learnify/services/user.py
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session

from learnify.core.config import Settings
from learnify.core.decorator import db_exception
from learnify.core.enums import MediaFolder
from learnify.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ValidationError,
)
from learnify.core.hasher import PasswordHelper
from learnify.core.security import JWTManager, TokenBlacklist
from learnify.models.user import User
from learnify.schemas.user import (
    ChangePasswordRequest,
    ProfileUpdate,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
)
from learnify.utils.dates import as_utc, utcnow
from learnify.utils.mailer import MailSender, reset_password_email
from learnify.utils.media_store import MediaStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session, settings: Settings, jwt_manager: Optional[JWTManager] = None):
        self.db = db
        self.settings = settings
        self.jwt_manager = jwt_manager
        self.password_helper = PasswordHelper()

    def _hash(self, password: str) -> str:
        return self.password_helper.hash_password(
            password, rounds=self.settings.password_hash_rounds
        )

    def _issue_token(self, user: User) -> str:
        return self.jwt_manager.create_access_token(user)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    # ==================== Authentication ====================

    @db_exception
    def signup(self, data: SignupRequest) -> Tuple[User, str]:
        if self.get_by_email(data.email):
            raise ConflictError("User already exists with this email.")

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=self._hash(data.password),
            role=data.role.value,
            last_active=utcnow(),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User registered: {user.id} ({user.role})")
        return user, self._issue_token(user)

    @db_exception
    def signin(self, data: SigninRequest) -> Tuple[User, str]:
        user = self.get_by_email(data.email)
        if not user or not self.password_helper.check_password(
            data.password, user.hashed_password
        ):
            logger.warning(f"Failed sign-in attempt for {data.email}")
            raise AuthenticationError("Invalid email or password")

        user.last_active = utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User signed in: {user.id}")
        return user, self._issue_token(user)

    def signout(self, token: str, payload: Dict[str, Any], blacklist: TokenBlacklist) -> None:
        ttl = int(payload.get("exp", 0) - utcnow().timestamp())
        blacklist.add_token(token, ttl)
        logger.info(f"User signed out: {payload.get('user_id')}")

    # ==================== Profile ====================

    @db_exception
    async def update_profile(
        self,
        user: User,
        data: ProfileUpdate,
        avatar: Optional[UploadFile],
        media_store: MediaStore,
    ) -> User:
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        new_email = updates.get("email")
        if new_email and new_email != user.email and self.get_by_email(new_email):
            raise ConflictError("Email is already in use.")

        old_public_id = None
        if avatar is not None and avatar.filename:
            asset = await media_store.upload(avatar, MediaFolder.AVATARS)
            old_public_id = user.avatar_public_id
            user.avatar = asset.url
            user.avatar_public_id = asset.public_id

        for field, value in updates.items():
            setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)

        if old_public_id:
            media_store.delete(old_public_id)

        logger.info(f"Profile updated: {user.id}")
        return user

    @db_exception
    def change_password(self, user: User, data: ChangePasswordRequest) -> Tuple[User, str]:
        if not self.password_helper.check_password(data.current_password, user.hashed_password):
            raise AuthenticationError("Your current password is wrong.")

        user.hashed_password = self._hash(data.new_password)
        user.password_changed_at = utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Password changed: {user.id}")
        return user, self._issue_token(user)

    # ==================== Password reset ====================

    @db_exception
    async def forgot_password(self, email: str, mail_sender: MailSender) -> None:
        """Email a 6-digit reset code. Unknown addresses are ignored silently."""
        user = self.get_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return

        code = f"{secrets.randbelow(10**6):06d}"
        ttl = self.settings.reset_code_ttl_minutes
        user.reset_password_token = code
        user.reset_password_expires_at = utcnow() + timedelta(minutes=ttl)
        self.db.commit()

        try:
            await mail_sender.send(
                user.email,
                "Your password reset code",
                reset_password_email(user.name, code, ttl),
            )
        except ExternalServiceError:
            user.reset_password_token = None
            user.reset_password_expires_at = None
            self.db.commit()
            raise

        logger.info(f"Password reset code issued for user {user.id}")

    @db_exception
    def reset_password(self, data: ResetPasswordRequest) -> Tuple[User, str]:
        user = self.get_by_email(data.email)
        expires_at = as_utc(user.reset_password_expires_at) if user else None

        valid = (
            user is not None
            and user.reset_password_token is not None
            and expires_at is not None
            and expires_at > utcnow()
            and hmac.compare_digest(user.reset_password_token, data.otp)
        )
        if not valid:
            raise ValidationError("Reset code is invalid or has expired")

        user.hashed_password = self._hash(data.new_password)
        user.reset_password_token = None
        user.reset_password_expires_at = None
        user.password_changed_at = utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Password reset: {user.id}")
        return user, self._issue_token(user)

    # ==================== Account ====================

    @db_exception
    def delete_account(self, user: User, media_store: MediaStore) -> None:
        """Remove the user with their enrollments, purchases and progress."""
        if user.created_courses:
            raise ConflictError(
                "You still own courses. Delete or transfer them before deleting your account."
            )

        avatar_public_id = user.avatar_public_id
        user_id = user.id
        self.db.delete(user)
        self.db.commit()

        media_store.delete(avatar_public_id)
        logger.info(f"Account deleted: {user_id}")

# core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import redis
from fastapi import Request
from jose import JWTError, jwt

from learnify.core.config import Settings
from learnify.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT token management for authentication"""

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.issuer = settings.jwt_issuer
        self.cookie_name = settings.auth_cookie_name

    @property
    def max_age(self) -> int:
        return int(self.user_token_expire.total_seconds())

    def create_access_token(self, user, custom_expiration: Optional[timedelta] = None) -> str:
        """
        Create JWT access token for user

        Args:
            user: User model instance
            custom_expiration: Override default expiration

        Returns:
            JWT access token string
        """
        now = datetime.now(timezone.utc)
        expire = now + (custom_expiration or self.user_token_expire)

        payload = {
            "sub": str(user.id),
            "user_id": user.id,
            "role": user.role,
            "email": user.email,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
            "iat_ms": int(now.timestamp() * 1000),
            "iss": self.issuer,
            "type": "access",
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info(f"Access token created for user: {user.id}")
        return token

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True},
                issuer=self.issuer,
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise AuthenticationError("Invalid token. Please log in again!")

        if payload.get("type") != token_type:
            raise AuthenticationError(f"Invalid token type. Expected {token_type}")

        return payload

    def extract_token(self, request: Request) -> Optional[str]:
        """Read the token from the auth cookie, falling back to a Bearer header."""
        token = request.cookies.get(self.cookie_name)
        if token:
            return token

        authorization = request.headers.get("Authorization")
        if not authorization:
            return None
        try:
            scheme, credentials = authorization.split()
        except ValueError:
            raise AuthenticationError("Invalid authorization header")
        if scheme.lower() != "bearer":
            raise AuthenticationError("Invalid authentication scheme")
        return credentials


class TokenBlacklist:
    """Revoked token store, backed by Redis when a client is configured"""

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis_client = redis_client
        self._memory_blacklist = {}  # token -> expiry timestamp

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenBlacklist":
        if not settings.redis_url:
            logger.info("Token blacklist kept in process memory")
            return cls()
        logger.info("Token blacklist backed by Redis")
        return cls(redis.Redis.from_url(settings.redis_url, decode_responses=True))

    def add_token(self, token: str, ttl: int) -> None:
        """
        Add token to blacklist

        Args:
            token: JWT token to blacklist
            ttl: Seconds until the token would have expired anyway
        """
        if ttl <= 0:
            return
        if self.redis_client:
            self.redis_client.setex(f"blacklist:{token}", ttl, "1")
        else:
            now = datetime.now(timezone.utc).timestamp()
            self._prune(now)
            self._memory_blacklist[token] = now + ttl

    def _prune(self, now: float) -> None:
        expired = [t for t, expires_at in self._memory_blacklist.items() if expires_at < now]
        for token in expired:
            del self._memory_blacklist[token]

    def is_blacklisted(self, token: str) -> bool:
        if self.redis_client:
            return bool(self.redis_client.get(f"blacklist:{token}"))

        expires_at = self._memory_blacklist.get(token)
        if expires_at is None:
            return False
        if expires_at < datetime.now(timezone.utc).timestamp():
            del self._memory_blacklist[token]
            return False
        return True

    def close(self) -> None:
        if self.redis_client:
            self.redis_client.close()

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import AuthorizationRequired, InvalidCredentials
from ..enums import UserRole
from ..models.user import User

logger = logging.getLogger(__name__)

_PBKDF2_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Хэш пароля в формате pbkdf2_sha256$<iterations>$<salt>$<hex>"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${_PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_hash.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Выпуск JWT для API с id, email и ролью пользователя"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "id": user.id,
        "email": user.email,
        "role": UserRole(user.role).value,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Проверка токена; любые проблемы превращаются в AuthorizationRequired"""
    if not token:
        raise AuthorizationRequired("Invalid token format")

    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("Token verification failed: token expired")
        raise AuthorizationRequired("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise AuthorizationRequired("Invalid token")


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(self, email: str, password: str, name: Optional[str] = None,
                    role: UserRole = UserRole.BUYER) -> User:
        """Регистрация пользователя (используется сидом и тестами)"""
        user = User(email=email.lower(), name=name, password_hash=hash_password(password), role=role)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created user {user.id} with role {role.value}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentials()
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Выдать сессию: пользователь, accessToken и срок действия сессии"""
        user = self.authenticate(email, password)
        token = create_access_token(user)
        expires = datetime.now(timezone.utc) + timedelta(days=settings.session_max_age_days)

        logger.info(f"User {user.id} signed in")
        return {
            "user": user,
            "access_token": token,
            "expires": expires,
        }

    def get_user_from_token(self, token: str) -> User:
        payload = decode_access_token(token)
        user_id = payload.get("id")
        user = self.db.get(User, user_id) if user_id else None
        if not user:
            raise AuthorizationRequired("User not found")
        return user

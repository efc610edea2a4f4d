from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import AuthorizationRequired
from ..enums import UserRole
from ..models.user import User
from ..services.auth_service import AuthService
from ..services.cart_service import CartService
from ..services.catalog_service import CatalogService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: Session = Depends(get_db)
) -> User:
    """Пользователь из bearer-токена; без токена или с битым токеном - 401"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return AuthService(db).get_user_from_token(credentials.credentials)
    except AuthorizationRequired as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )


def require_roles(*roles: UserRole):
    """Проверка роли пользователя по строке роли"""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if UserRole(user.role) not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return dependency


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)

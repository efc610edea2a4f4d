from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import InvalidCredentials
from ...schemas.auth import LoginRequest, SessionResponse, SessionUser
from ...services.auth_service import AuthService
from ..dependencies import get_auth_service

router = APIRouter()


@router.post("/auth/login", response_model=SessionResponse)
async def login(
        credentials: LoginRequest,
        auth_service: AuthService = Depends(get_auth_service)
):
    """Вход по email и паролю, выдаёт сессию с accessToken"""
    try:
        session = auth_service.login(credentials.email, credentials.password)
    except InvalidCredentials as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )

    return SessionResponse(
        user=SessionUser.model_validate(session["user"]),
        access_token=session["access_token"],
        expires=session["expires"]
    )

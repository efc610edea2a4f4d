import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

import httpx
from pydantic import BaseModel, Field

from ..config import settings
from ..enums import UserRole
from ..exceptions import AuthorizationRequired, NetworkError, RequestFailed, StorefrontError
from .http import error_message

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: UserRole


class Session(BaseModel):
    user: SessionUser
    access_token: str = Field(..., alias="accessToken")
    expires: Optional[datetime] = None

    class Config:
        populate_by_name = True


SessionListener = Callable[[Optional[Session]], Awaitable[None]]


class SessionProvider:
    """Держит текущую сессию и оповещает подписчиков о её смене"""

    def __init__(
            self,
            session: Optional[Session] = None,
            base_url: Optional[str] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._session = session
        self._listeners: List[SessionListener] = []
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    @property
    def role(self) -> Optional[UserRole]:
        return self._session.user.role if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def set_session(self, session: Optional[Session]) -> None:
        # Подписчиков будим только при смене ссылки на сессию
        if session is self._session:
            return

        self._session = session
        if session:
            logger.info(f"Session changed: user {session.user.id} ({session.user.role.value})")
        else:
            logger.info("Session cleared")

        # Все подписчики получают сессию; первая ошибка поднимается после обхода
        first_error: Optional[StorefrontError] = None
        for listener in list(self._listeners):
            try:
                await listener(session)
            except StorefrontError as e:
                logger.error(f"❌ Session listener failed: {e}")
                first_error = first_error or e

        if first_error is not None:
            raise first_error

    async def clear(self) -> None:
        await self.set_session(None)

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Вход по email и паролю через /api/auth/login.

        Ошибки входа поднимаются. Сбой подписчика (например, загрузки корзины)
        только логируется: сессия к этому моменту уже сохранена.
        """
        async with httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=settings.client_timeout
        ) as client:
            try:
                response = await client.post("/api/auth/login", json={"email": email, "password": password})
            except httpx.HTTPError as e:
                logger.error(f"❌ Sign in request failed: {e}")
                raise NetworkError(f"Network error: {e}") from e

        if response.status_code == 401:
            raise AuthorizationRequired(error_message(response, "Invalid email or password"))
        if not response.is_success:
            raise RequestFailed(error_message(response, "Sign in failed"), response.status_code)

        session = Session.model_validate(response.json())
        try:
            await self.set_session(session)
        except StorefrontError as e:
            logger.warning(f"Signed in as {session.user.id}, but session listeners failed: {e}")
        return session

    async def sign_out(self) -> None:
        await self.clear()

import logging
from typing import Any, List, Mapping, Optional, Protocol, Union

import httpx

from ..config import settings
from ..exceptions import AuthorizationRequired, NetworkError

logger = logging.getLogger(__name__)

HeaderInput = Union[httpx.Headers, Mapping[str, str], None]


class Navigator(Protocol):
    """Куда отправлять пользователя при отсутствии авторизации"""

    def redirect(self, url: str) -> None:
        ...


class LoggingNavigator:
    """Навигатор по умолчанию: запоминает и логирует редиректы"""

    def __init__(self):
        self.history: List[str] = []

    def redirect(self, url: str) -> None:
        self.history.append(url)
        logger.info(f"Redirecting to {url}")


def build_headers(token: str, headers: HeaderInput = None, multipart: bool = False) -> httpx.Headers:
    """Заголовки запроса: Authorization всегда, JSON Content-Type если не задан иной и тело не form/multipart"""
    merged = httpx.Headers(headers or {})
    if not multipart and "content-type" not in merged:
        merged["Content-Type"] = "application/json"
    merged["Authorization"] = f"Bearer {token}"
    return merged


def error_message(response: httpx.Response, fallback: str) -> str:
    """Сообщение об ошибке от сервера, иначе fallback"""
    try:
        data = response.json()
    except ValueError:
        return fallback

    if isinstance(data, dict):
        for key in ("detail", "error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class AuthenticatedClient:
    """HTTP-клиент, подписывающий каждый запрос bearer-токеном активной сессии"""

    def __init__(
            self,
            session_provider,
            base_url: Optional[str] = None,
            navigator: Optional[Navigator] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.session_provider = session_provider
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.navigator = navigator or LoggingNavigator()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=settings.client_timeout
        )

    async def request(
            self,
            method: str,
            url: str,
            *,
            json: Any = None,
            data: Optional[Mapping[str, Any]] = None,
            files: Any = None,
            headers: HeaderInput = None
    ) -> httpx.Response:
        token = self.session_provider.access_token
        if not token:
            logger.warning(f"{method} {url} rejected: no active session")
            self.navigator.redirect(settings.login_url)
            raise AuthorizationRequired("Authorization required", details={"url": url})

        # form и multipart тело кодирует и помечает сам httpx
        encoded_body = files is not None or data is not None
        request_headers = build_headers(token, headers, multipart=encoded_body)

        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                data=data,
                files=files,
                headers=request_headers
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {url} failed: {e}")
            raise NetworkError(f"Network error: {e}", details={"method": method, "url": url}) from e

        if response.status_code == 401:
            logger.warning(f"{method} {url} returned 401, session expired")
            self.navigator.redirect(f"{settings.login_url}?error=session-expired")
            raise AuthorizationRequired(
                error_message(response, "Authorization required"),
                details={"url": url, "status_code": 401}
            )

        return response

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

import httpx
import logging
from typing import Optional, List

from shop_orders.application.interfaces import AuthService
from shop_orders.domain.models import Caller
from shop_orders.domain.exceptions import UnauthenticatedError, AuthServiceError

logger = logging.getLogger(__name__)


class HTTPAuthClient(AuthService):
    """Определяет пользователя по bearer-токену через сервис аутентификации"""

    def __init__(self, base_url: str, api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport

    async def get_caller(self, authorization: Optional[str]) -> Caller:
        if not authorization or not authorization.lower().startswith("bearer "):
            raise UnauthenticatedError("Нет bearer-токена")

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}/auth/v1/user",
                    headers={"Authorization": authorization, "apikey": self._api_key},
                    timeout=10.0
                )
        except httpx.RequestError as e:
            logger.error(f"Auth service ошибка подключения: {e}")
            raise AuthServiceError(f"Auth service не доступен: {str(e)}")

        if response.status_code == 200:
            data = response.json()
            if not data.get("id"):
                raise UnauthenticatedError("Токен без пользователя")
            return Caller(id=str(data["id"]), email=data.get("email"))
        elif response.status_code in (401, 403):
            raise UnauthenticatedError("Токен не принят")
        else:
            raise AuthServiceError(f"Auth service ошибка: {response.status_code}")


class OrdersAPIError(Exception):
    def __init__(self, error: str, status_code: int):
        self.error = error
        self.status_code = status_code
        super().__init__(f"{error} ({status_code})")


class HTTPOrdersClient:
    """Клиент API заказов.

    Статус меняется только через update-status: прямой записи в обход
    проверки прав нет.
    """

    def __init__(self, base_url: str, access_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._transport = transport

    async def fetch_orders(self) -> List[dict]:
        return await self._request("GET", "/api/orders")

    async def fetch_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/api/orders/{order_id}")

    async def create_order(self, order_data: dict) -> dict:
        return await self._request("POST", "/api/orders", json=order_data)

    async def update_order_status(self, order_id: str, status: str) -> bool:
        data = await self._request(
            "POST",
            "/api/orders/update-status",
            json={"orderId": order_id, "newStatus": status}
        )
        return bool(data.get("success"))

    async def _request(self, method: str, path: str, json: Optional[dict] = None):
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    json=json,
                    headers={"Authorization": f"Bearer {self._access_token}"},
                    timeout=10.0
                )
        except httpx.RequestError as e:
            logger.error(f"Orders API ошибка подключения: {e}")
            raise OrdersAPIError("SERVER_ERROR", 503)

        if response.is_success:
            return response.json()

        try:
            error = response.json().get("error", "SERVER_ERROR")
        except ValueError:
            error = "SERVER_ERROR"
        logger.warning(f"Orders API {method} {path}: {response.status_code} {error}")
        raise OrdersAPIError(error, response.status_code)

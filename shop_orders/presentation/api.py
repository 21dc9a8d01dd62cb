import logging
from typing import Optional, List
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shop_orders.database import AsyncSessionLocal
from shop_orders.presentation.schemas import (
    UpdateOrderStatusRequest, SuccessResponse, ErrorResponse, CreateOrderRequest, OrderResponse
)
from shop_orders.application.update_order_status import UpdateOrderStatusUseCase, UpdateOrderStatusDTO
from shop_orders.application.create_order import CreateOrderUseCase, CreateOrderDTO
from shop_orders.application.get_order import GetOrderUseCase
from shop_orders.application.list_orders import ListOrdersUseCase
from shop_orders.domain.exceptions import DomainException, MissingParamsError
from shop_orders.infrastructure.unit_of_work import UnitOfWork
from shop_orders.infrastructure.http_clients import HTTPAuthClient
from shop_orders.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS_CODES = {
    "MISSING_PARAMS": status.HTTP_400_BAD_REQUEST,
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_ALLOWED_FOR_USER": status.HTTP_403_FORBIDDEN,
    "INVALID_STATUS": status.HTTP_400_BAD_REQUEST,
    "CONCURRENT_MODIFICATION": status.HTTP_400_BAD_REQUEST,
    "UPDATE_FAILED": status.HTTP_400_BAD_REQUEST,
    "SERVER_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Коды, для которых клиенту отдаются подробности
DETAILED_ERRORS = ("UPDATE_FAILED", "SERVER_ERROR")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# Фабрики зависимостей
def get_unit_of_work():
    return UnitOfWork(AsyncSessionLocal)


def get_auth_service():
    return HTTPAuthClient(settings.AUTH_BASE_URL, settings.AUTH_API_KEY)


def get_update_order_status_use_case(uow=Depends(get_unit_of_work)):
    return UpdateOrderStatusUseCase(uow, max_attempts=settings.STATUS_UPDATE_ATTEMPTS)


def get_create_order_use_case(uow=Depends(get_unit_of_work)):
    return CreateOrderUseCase(uow)


def get_get_order_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListOrdersUseCase(uow)


def error_response(error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": error}
    if details and error in DETAILED_ERRORS:
        content["details"] = details
    return JSONResponse(status_code=ERROR_STATUS_CODES[error], content=content)


def domain_error_response(exc: DomainException) -> JSONResponse:
    return error_response(exc.code, str(exc))


def server_error_response(exc: Exception) -> JSONResponse:
    logger.exception(f"Необработанная ошибка: {exc}")
    return error_response("SERVER_ERROR", str(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Тело не той формы — тот же MISSING_PARAMS, что и пустые поля"""
    logger.info(f"Некорректное тело запроса {request.url.path}: {exc.errors()}")
    return error_response("MISSING_PARAMS")


@router.post(
    "/orders/update-status",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES
)
async def update_order_status(
    request: UpdateOrderStatusRequest,
    authorization: Optional[str] = Header(None),
    auth=Depends(get_auth_service),
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Сменить статус заказа"""
    if not request.order_id or not request.new_status:
        return domain_error_response(MissingParamsError("Нужны orderId и newStatus"))
    try:
        caller = await auth.get_caller(authorization)
        dto = UpdateOrderStatusDTO(order_id=request.order_id, new_status=request.new_status)
        await use_case(caller.id, dto)
        return SuccessResponse()
    except DomainException as e:
        return domain_error_response(e)
    except Exception as e:
        return server_error_response(e)


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    authorization: Optional[str] = Header(None),
    auth=Depends(get_auth_service),
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать новый заказ"""
    try:
        caller = await auth.get_caller(authorization)
        dto = CreateOrderDTO(**request.model_dump())
        order = await use_case(caller.id, dto)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        return domain_error_response(e)
    except Exception as e:
        return server_error_response(e)


@router.get(
    "/orders",
    response_model=List[OrderResponse],
    responses=ERROR_RESPONSES
)
async def list_orders(
    authorization: Optional[str] = Header(None),
    auth=Depends(get_auth_service),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Заказы пользователя, новые сверху"""
    try:
        caller = await auth.get_caller(authorization)
        orders = await use_case(caller.id)
        return [OrderResponse.from_domain(order) for order in orders]
    except DomainException as e:
        return domain_error_response(e)
    except Exception as e:
        return server_error_response(e)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def get_order(
    order_id: str,
    authorization: Optional[str] = Header(None),
    auth=Depends(get_auth_service),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Получить заказ по ID"""
    try:
        caller = await auth.get_caller(authorization)
        order = await use_case(caller.id, order_id)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        return domain_error_response(e)
    except Exception as e:
        return server_error_response(e)

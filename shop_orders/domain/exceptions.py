class DomainException(Exception):
    code = "SERVER_ERROR"


class MissingParamsError(DomainException):
    code = "MISSING_PARAMS"


class UnauthenticatedError(DomainException):
    code = "UNAUTHENTICATED"


class AuthServiceError(DomainException):
    code = "SERVER_ERROR"


class OrderNotFoundError(DomainException):
    code = "ORDER_NOT_FOUND"


class InvalidStatusError(DomainException):
    code = "INVALID_STATUS"

    def __init__(self, status):
        self.status = status
        super().__init__(f"Недопустимый статус: {status}")


class ForbiddenError(DomainException):
    code = "FORBIDDEN"


class NotAllowedForUserError(DomainException):
    code = "NOT_ALLOWED_FOR_USER"


class ConcurrentModificationError(DomainException):
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, order_id: str, attempts: int):
        self.order_id = order_id
        self.attempts = attempts
        super().__init__(f"Заказ {order_id} изменен параллельно, попыток: {attempts}")


class UpdateFailedError(DomainException):
    code = "UPDATE_FAILED"

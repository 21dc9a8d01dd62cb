import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from shop_orders.config import settings
from shop_orders.database import engine
from shop_orders.presentation.api import router, request_validation_error_handler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    logger.info("Shop Orders запущен")
    yield
    # Схема БД создается миграциями Alembic, здесь только закрываем пул
    await engine.dispose()
    logger.info("Приложение останавливается...")


app = FastAPI(
    title="Shop Orders",
    description="Сервис заказов магазина",
    version="1.0.0",
    lifespan=lifespan
)

app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Shop Orders работает"}


@app.get("/health")
async def health():
    return {"status": "healthy"}

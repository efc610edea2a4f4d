import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import engine, Base, check_connection
from .api.routes.auth import router as auth_router
from .api.routes.cart import router as cart_router
from .api.routes.products import router as products_router
from . import models  # noqa: F401  регистрирует таблицы в Base.metadata

# Настройка логирования
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    logger.info("Starting Storefront Service...")

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Storefront Service started successfully!")
    except Exception as e:
        logger.error(f"❌ Failed to start Storefront Service: {e}")
        raise

    yield  # Приложение работает

    logger.info("✅ Storefront Service shut down successfully!")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Витрина: каталог, корзина и оформление заказа",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(cart_router, prefix="/api", tags=["cart"])
    app.include_router(products_router, prefix="/api", tags=["products"])

    @app.get("/health")
    async def health_check():
        """Проверка здоровья сервиса"""
        db_status = "connected" if check_connection() else "disconnected"
        if db_status != "connected":
            raise HTTPException(status_code=503, detail="Service unhealthy")

        return {
            "status": "healthy",
            "service": settings.app_name,
            "database": db_status,
            "version": "1.0.0"
        }

    @app.get("/")
    async def root():
        """Корневой endpoint"""
        return {
            "service": settings.app_name,
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "login": "/api/auth/login",
                "cart": "/api/cart",
                "products": "/api/products"
            }
        }

    @app.exception_handler(404)
    async def not_found_handler(request, exc):
        return JSONResponse(
            status_code=404,
            content={"error": "Resource not found", "detail": str(exc.detail) if hasattr(exc, 'detail') else "Not found"}
        )

    @app.exception_handler(500)
    async def internal_error_handler(request, exc):
        logger.error(f"Internal server error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": "Something went wrong"}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )

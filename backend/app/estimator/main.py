"""
Discount Estimator - Application Entry Point

Run separately from the booking service:
    uvicorn app.estimator.main:app --port 8001
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.middleware import RequestLoggingMiddleware
from app.estimator.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(service="estimator")
    logger = get_logger(__name__)
    logger.info(
        "estimator_starting",
        app=settings.ESTIMATOR_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        token_algorithm=settings.TOKEN_ALGORITHM,
    )
    yield
    logger.info("estimator_shutdown")


app = FastAPI(
    title=settings.ESTIMATOR_NAME,
    version=settings.APP_VERSION,
    description="Stateless loyalty discount estimation from signed entitlement tokens",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware, service="estimator")

register_exception_handlers(app)
app.include_router(router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.ESTIMATOR_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }

import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from community_hub.config import ResourceConfig, Settings, settings
from community_hub.database import SessionLocal, get_db, init_db
from community_hub.exceptions import (
    CapacityExceeded, CommunityHubError, InvalidInput, InvalidTransition, NotFound
)
from community_hub.locks import KeyedLockRegistry
from community_hub.loyalty.tiers import TierTable
from community_hub.resources.capacity_pool import CapacityPool
from community_hub.bookings import router as bookings_router
from community_hub.resources import router as resources_router
from community_hub.loyalty import router as loyalty_router
from community_hub.reports import router as reports_router

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    CapacityExceeded: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
}


def install_error_handlers(app: FastAPI) -> None:
    """Translate service errors into JSON responses with a stable `code`"""

    async def handle_service_error(request: Request, exc: CommunityHubError):
        status_code = status.HTTP_400_BAD_REQUEST
        for error_type, code in ERROR_STATUS_CODES.items():
            if isinstance(exc, error_type):
                status_code = code
                break
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code}
        )

    app.add_exception_handler(CommunityHubError, handle_service_error)


def seed_resources(
    session_factory: sessionmaker,
    locks: KeyedLockRegistry,
    resources: Iterable[ResourceConfig]
) -> int:
    """Register configured resources and apply configured capacity changes.

    A capacity below what is already reserved is not applied; the stored
    capacity is kept and a warning is logged.
    """
    db = session_factory()
    try:
        pool = CapacityPool(db, locks)
        count = 0
        for resource in resources:
            stored = pool.register(
                resource.resource_id,
                resource.service_type,
                resource.name,
                resource.total_capacity,
                exist_ok=True
            )
            if stored.total_capacity != resource.total_capacity:
                try:
                    pool.set_capacity(resource.resource_id, resource.total_capacity)
                except InvalidInput as e:
                    logger.warning(
                        "Keeping capacity %d for %s: %s",
                        stored.total_capacity, resource.resource_id, e.message
                    )
            count += 1
        return count
    finally:
        db.close()


def create_app(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None
) -> FastAPI:
    app_settings = app_settings or settings
    session_factory = session_factory or SessionLocal

    logging.basicConfig(
        level=app_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = session_factory()
        try:
            init_db(db.get_bind())
        finally:
            db.close()
        seeded = seed_resources(session_factory, app.state.locks, app_settings.RESOURCES)
        logger.info("Loaded %d configured resource(s)", seeded)
        yield

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        version="1.0.0",
        description="Community services booking, capacity and loyalty API",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = app_settings
    app.state.locks = KeyedLockRegistry()
    app.state.tier_table = TierTable.from_config(app_settings.TIER_TABLE)

    if session_factory is not SessionLocal:
        def get_session():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()
        app.dependency_overrides[get_db] = get_session

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # Include routers
    app.include_router(
        bookings_router.router,
        prefix=f"{app_settings.API_V1_STR}/bookings",
        tags=["Bookings"]
    )

    app.include_router(
        resources_router.router,
        prefix=f"{app_settings.API_V1_STR}/resources",
        tags=["Resources & Capacity"]
    )

    app.include_router(
        loyalty_router.router,
        prefix=f"{app_settings.API_V1_STR}/loyalty",
        tags=["Loyalty"]
    )

    app.include_router(
        reports_router.router,
        prefix=f"{app_settings.API_V1_STR}/reports",
        tags=["Reports"]
    )

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": app_settings.PROJECT_NAME,
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

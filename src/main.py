"""
Entitlement & SLA Engine - Main Application
===========================================

Entitlement resolution and service date commitments for cases and quotes.

Modules:
- Entitlements: Match records to the most specific service entitlement
- SLA: Compute service dates and SLA timestamps, with capacity planner lookups

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Config manager, record store, capacity planner client
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from src.config import settings
from src.core import ApplicationException

# Entitlement Module
from src.entitlements.application import EntitlementResolver, IEntitlementRepository
from src.entitlements.infrastructure import EngineConfigManager, InMemoryEntitlementRepository
from src.entitlements.interfaces import router as entitlements_router

# SLA Module
from src.sla.application import SLAScheduler, ICapacityPlanner
from src.sla.infrastructure import CapacityPlannerClient
from src.sla.interfaces import router as sla_router

# Middleware and Logging
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler
)
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


def create_app(
    config_manager: Optional[EngineConfigManager] = None,
    repository: Optional[IEntitlementRepository] = None,
    capacity_planner: Optional[ICapacityPlanner] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Collaborators that are not passed in are built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        Application lifespan manager.

        STARTUP:
        1. Setup structured logging
        2. Load engine configuration (fatal if missing or invalid)
        3. Start config file watcher
        4. Build record store and capacity planner client
        5. Build resolver and scheduler

        SHUTDOWN:
        1. Stop config watcher
        2. Close capacity planner client
        """
        # === STARTUP ===
        setup_logging(settings.log_level, settings.environment)
        logger.info("Starting Entitlement Service", extra={
            "version": settings.app_version,
            "environment": settings.environment
        })

        manager = config_manager
        if manager is None:
            logger.info("Loading engine configuration")
            manager = EngineConfigManager()
            manager.load(settings.engine_config_path)
            manager.start_watching()

        store = repository
        if store is None:
            if settings.entitlement_data_path:
                store = InMemoryEntitlementRepository.from_yaml(settings.entitlement_data_path)
            else:
                logger.info("No entitlement seed configured, starting with an empty record store")
                store = InMemoryEntitlementRepository()

        owned_client = None
        planner = capacity_planner
        if planner is None and settings.capacity_planner_url:
            owned_client = CapacityPlannerClient()
            planner = owned_client
        elif planner is None:
            logger.info("Capacity planner not configured - Rolloff requests use entitlement dates")

        # Store services in app state for dependency injection
        app.state.settings = settings
        app.state.config_manager = manager
        app.state.capacity_planner = planner
        app.state.entitlement_resolver = EntitlementResolver(store, manager)
        app.state.sla_scheduler = SLAScheduler(manager, planner)

        logger.info("Entitlement Service started successfully")

        yield  # Application runs here

        # === SHUTDOWN ===
        logger.info("Shutting down Entitlement Service")

        if config_manager is None:
            manager.stop_watching()

        if owned_client is not None:
            await owned_client.close()

        logger.info("Entitlement Service shutdown complete")

    app = FastAPI(
        title="Entitlement & SLA Engine API",
        description="""
        ## Entitlement Resolution and Service Date Engine

        ### Entitlements
        - `POST /entitlements/resolve` - Best entitlement per case or quote
        - `POST /entitlements/resolve-all` - Every valid entitlement, grouped by kind

        ### Service Dates
        - `POST /sla/calculate` - Service date and SLA timestamp for one record
        - `POST /sla/calculate-batch` - Same for many records, one capacity call per baseline
        - `POST /sla/service-date/validate` - Check a manual service date override
        - `POST /sla/sla-datetime` - Combine a chosen date and time into an SLA timestamp

        No endpoint writes: callers persist the returned assignments.
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(entitlements_router)
    app.include_router(sla_router)

    # === Health Check Endpoint ===

    @app.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {
                            "engine_config": "loaded",
                            "field_mappings": 9,
                            "capacity_planner": "configured"
                        }
                    }
                }
            }
        }
    })
    async def health_check(request: Request):
        """Health check endpoint for load balancers and orchestrators."""
        manager = getattr(request.app.state, "config_manager", None)
        loaded = manager is not None and manager.is_loaded
        checks = {
            "engine_config": "loaded" if loaded else "not_loaded",
            "field_mappings": len(manager.config.field_mappings) if loaded else 0,
            "capacity_planner": (
                "configured" if getattr(request.app.state, "capacity_planner", None)
                else "not_configured"
            )
        }

        return {
            "status": "healthy" if loaded else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )

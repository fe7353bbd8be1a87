
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common import ids
from dashboard_service.client import HttpStockService
from dashboard_service.config import (
    DASHBOARD_CLAIM_TIMEOUT_MS,
    DASHBOARD_LOAD_TIMEOUT_MS,
    INVENTORY_SERVICE_URL,
)
from dashboard_service.dashboard import Dashboard
from dashboard_service.models import (
    DashboardSnapshot,
    ErrorDetail,
    ErrorResponse,
    IntentResponse,
    LoadPhase,
)

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("dashboard_service")


def dashboard_from_env() -> Dashboard:
    service = HttpStockService(
        INVENTORY_SERVICE_URL,
        load_timeout_ms=DASHBOARD_LOAD_TIMEOUT_MS,
        claim_timeout_ms=DASHBOARD_CLAIM_TIMEOUT_MS,
    )
    return Dashboard(
        service,
        load_timeout_ms=DASHBOARD_LOAD_TIMEOUT_MS,
        claim_timeout_ms=DASHBOARD_CLAIM_TIMEOUT_MS,
    )


def create_app(dashboard: Optional[Dashboard] = None) -> FastAPI:
    if dashboard is None:
        dashboard = dashboard_from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        dashboard.start_load()
        logger.info("Dashboard started, loading inventory")
        yield
        await dashboard.close()

    app = FastAPI(title="Inventory Dashboard", lifespan=lifespan)
    app.state.dashboard = dashboard

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-Id")
        if not correlation_id:
            correlation_id = ids.generate_correlation_id()

        # Store in request state for access in endpoints
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response

    @app.get("/")
    def home():
        return {
            "message": "Welcome to Inventory Management System.",
            "dashboard": "/dashboard",
        }

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "dashboard"}

    @app.get("/dashboard", response_model=DashboardSnapshot)
    async def get_dashboard():
        return dashboard.snapshot()

    @app.post("/dashboard/items/{item_id}/claim", response_model=IntentResponse)
    async def claim(request: Request, item_id: str):
        correlation_id = request.state.correlation_id
        if dashboard.load_state.phase != LoadPhase.READY or dashboard.item_state(item_id) is None:
            logger.warning(f"Claim for unavailable item {item_id}, correlation {correlation_id}")
            return JSONResponse(
                status_code=404,
                content=ErrorResponse(
                    error=ErrorDetail(
                        code="ITEM_NOT_AVAILABLE",
                        message="Item is not on the current inventory list",
                        item_id=item_id,
                        correlation_id=correlation_id,
                    )
                ).model_dump(),
            )

        accepted = dashboard.request_claim(item_id) is not None
        logger.info(f"Claim intent for {item_id} accepted={accepted}, correlation {correlation_id}")
        return IntentResponse(accepted=accepted, snapshot=dashboard.snapshot())

    @app.post("/dashboard/retry", response_model=IntentResponse)
    async def retry():
        accepted = dashboard.retry_load() is not None
        return IntentResponse(accepted=accepted, snapshot=dashboard.snapshot())

    @app.post("/dashboard/reload", response_model=IntentResponse)
    async def reload():
        accepted = dashboard.reload() is not None
        return IntentResponse(accepted=accepted, snapshot=dashboard.snapshot())

    @app.post("/dashboard/refresh", response_model=IntentResponse)
    async def refresh():
        accepted = await dashboard.refresh()
        return IntentResponse(accepted=accepted, snapshot=dashboard.snapshot())

    return app


app = create_app()

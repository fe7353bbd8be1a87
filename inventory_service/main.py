
import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventory_service.backend import (
    ChaosError,
    ForcedFailureError,
    InventoryError,
    ItemNotFoundError,
    MockInventoryBackend,
    OutOfStockError,
)
from inventory_service.config import (
    INVENTORY_DELAY_MS,
    INVENTORY_FAIL_MODE,
    INVENTORY_FAILURE_RATE,
    INVENTORY_LOAD_DELAY_MS,
    INVENTORY_RANDOM_SEED,
)
from inventory_service.models import ChaosSettings, ClaimResponse, ErrorDetail, ErrorResponse, Item
from inventory_service.store import InventoryStore
from common import ids

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("inventory_service")

ERROR_STATUS = {
    ItemNotFoundError: 404,
    OutOfStockError: 409,
    ForcedFailureError: 500,
    ChaosError: 503,
}


def settings_from_env() -> ChaosSettings:
    return ChaosSettings(
        load_delay_ms=INVENTORY_LOAD_DELAY_MS,
        claim_delay_ms=INVENTORY_DELAY_MS,
        failure_rate=INVENTORY_FAILURE_RATE,
        fail_mode=INVENTORY_FAIL_MODE,
        seed=INVENTORY_RANDOM_SEED,
    )


def error_response(exc: InventoryError, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), 500),
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                item_id=exc.item_id,
                correlation_id=correlation_id,
            )
        ).model_dump(),
    )


def create_app(backend: Optional[MockInventoryBackend] = None) -> FastAPI:
    if backend is None:
        backend = MockInventoryBackend(InventoryStore(), settings_from_env())

    app = FastAPI(title="Inventory Service")
    app.state.backend = backend

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-Id")
        if not correlation_id:
            correlation_id = ids.generate_correlation_id()

        # Store in request state
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "inventory"}

    @app.get("/inventory", response_model=List[Item])
    async def list_inventory(request: Request):
        correlation_id = request.state.correlation_id
        logger.info(f"Inventory list requested, correlation {correlation_id}")
        try:
            return await backend.fetch_inventory()
        except InventoryError as e:
            logger.warning(f"Inventory list failed ({e.code}), correlation {correlation_id}")
            return error_response(e, correlation_id)

    @app.get("/inventory/{item_id}", response_model=Item)
    def get_item(request: Request, item_id: str):
        """Debug endpoint to check a single item without chaos"""
        item = backend.store.get_item(item_id)
        if item is None:
            return error_response(
                ItemNotFoundError(f"Item {item_id} not found", item_id=item_id),
                request.state.correlation_id,
            )
        return item

    @app.post("/inventory/{item_id}/claim", response_model=ClaimResponse)
    async def claim(request: Request, item_id: str):
        correlation_id = request.state.correlation_id
        logger.info(f"Claim request for {item_id}, correlation {correlation_id}")
        try:
            item = await backend.claim_one(item_id)
        except InventoryError as e:
            logger.warning(f"Claim for {item_id} failed ({e.code}), correlation {correlation_id}")
            return error_response(e, correlation_id)
        return ClaimResponse(success=True, item=item)

    return app


app = create_app()

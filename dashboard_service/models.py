
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Item(BaseModel):
    id: str
    name: str
    stock: int = Field(ge=0)


class LoadPhase(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ItemSnapshot(BaseModel):
    id: str
    name: str
    stock: int
    server_stock: int
    pending: bool
    last_error: Optional[str] = None
    sold_out: bool


class DashboardSnapshot(BaseModel):
    phase: LoadPhase
    error: Optional[str] = None
    items: List[ItemSnapshot] = []


class IntentResponse(BaseModel):
    accepted: bool
    snapshot: DashboardSnapshot


class ErrorDetail(BaseModel):
    code: str
    message: str
    item_id: Optional[str] = None
    correlation_id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail

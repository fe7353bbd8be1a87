
from pydantic import BaseModel, Field
from typing import Optional


class Item(BaseModel):
    id: str
    name: str
    stock: int = Field(ge=0)


class ClaimResponse(BaseModel):
    success: bool
    item: Item


class ChaosSettings(BaseModel):
    load_delay_ms: int = Field(default=0, ge=0)
    claim_delay_ms: int = Field(default=0, ge=0)
    failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    fail_mode: bool = False
    seed: Optional[int] = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    item_id: Optional[str] = None
    correlation_id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail

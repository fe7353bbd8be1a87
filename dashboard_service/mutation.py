"""
Per-item optimistic claim state.

A claim takes one unit off the displayed count straight away and marks the
item pending. The remote answer then either confirms the server's count or
rolls the display back to the last confirmed value. Every change goes through
``apply_event``, which returns a new state and never mutates its input.

    Idle --ClaimRequested--> Pending --ClaimSucceeded--> Idle
                                     --ClaimFailed-----> Idle (with last_error)

While pending, further claims are ignored and refreshed counts are held back
until the claim resolves.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from dashboard_service.models import Item, ItemSnapshot


class ItemMutationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    name: str
    server_stock: int = Field(ge=0)
    display_stock: int = Field(ge=0)
    pending: bool = False
    last_error: Optional[str] = None
    deferred_stock: Optional[int] = None

    @classmethod
    def from_item(cls, item: Item) -> "ItemMutationState":
        return cls(
            item_id=item.id,
            name=item.name,
            server_stock=item.stock,
            display_stock=item.stock,
        )

    @property
    def can_claim(self) -> bool:
        return not self.pending and self.display_stock > 0

    @property
    def at_rest(self) -> bool:
        return not self.pending and self.deferred_stock is None

    def snapshot(self) -> ItemSnapshot:
        return ItemSnapshot(
            id=self.item_id,
            name=self.name,
            stock=self.display_stock,
            server_stock=self.server_stock,
            pending=self.pending,
            last_error=self.last_error,
            sold_out=self.display_stock == 0,
        )


# ── Events ───────────────────────────────────────


class ClaimRequested(BaseModel):
    pass


class ClaimSucceeded(BaseModel):
    stock: int = Field(ge=0)


class ClaimFailed(BaseModel):
    message: str


class ItemRefreshed(BaseModel):
    name: str
    stock: int = Field(ge=0)


ItemEvent = Union[ClaimRequested, ClaimSucceeded, ClaimFailed, ItemRefreshed]


# ── Transitions ──────────────────────────────────


def on_claim_requested(state: ItemMutationState, event: ClaimRequested) -> ItemMutationState:
    if not state.can_claim:
        return state
    return state.model_copy(
        update={
            "display_stock": state.display_stock - 1,
            "pending": True,
            "last_error": None,
        }
    )


def on_claim_succeeded(state: ItemMutationState, event: ClaimSucceeded) -> ItemMutationState:
    if not state.pending:
        return state
    # The response is newer than any refresh that arrived meanwhile
    return state.model_copy(
        update={
            "server_stock": event.stock,
            "display_stock": event.stock,
            "pending": False,
            "last_error": None,
            "deferred_stock": None,
        }
    )


def on_claim_failed(state: ItemMutationState, event: ClaimFailed) -> ItemMutationState:
    if not state.pending:
        return state
    confirmed = state.server_stock if state.deferred_stock is None else state.deferred_stock
    return state.model_copy(
        update={
            "server_stock": confirmed,
            "display_stock": confirmed,
            "pending": False,
            "last_error": event.message,
            "deferred_stock": None,
        }
    )


def on_item_refreshed(state: ItemMutationState, event: ItemRefreshed) -> ItemMutationState:
    if state.pending:
        return state.model_copy(update={"name": event.name, "deferred_stock": event.stock})
    return state.model_copy(
        update={
            "name": event.name,
            "server_stock": event.stock,
            "display_stock": event.stock,
        }
    )


_HANDLERS = {
    ClaimRequested: on_claim_requested,
    ClaimSucceeded: on_claim_succeeded,
    ClaimFailed: on_claim_failed,
    ItemRefreshed: on_item_refreshed,
}


def apply_event(state: ItemMutationState, event: ItemEvent) -> ItemMutationState:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown item event {type(event).__name__}")
    return handler(state, event)

"""
Whole-list load lifecycle.

    Loading --LoadSucceeded--> Ready --LoadRequested--> Loading
            --LoadFailed-----> Failed --LoadRequested--> Loading

Each LoadRequested starts a new generation; completions that carry an older
generation, or arrive when nothing is loading, are ignored. A failed load
keeps no items.
"""

from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from dashboard_service.models import Item, LoadPhase


class InventoryLoadState(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: LoadPhase = LoadPhase.LOADING
    items: Tuple[Item, ...] = ()
    error: Optional[str] = None
    generation: int = 1


class LoadRequested(BaseModel):
    pass


class LoadSucceeded(BaseModel):
    generation: int
    items: Tuple[Item, ...]


class LoadFailed(BaseModel):
    generation: int
    message: str


class InventoryRefreshed(BaseModel):
    items: Tuple[Item, ...]


LoadEvent = Union[LoadRequested, LoadSucceeded, LoadFailed, InventoryRefreshed]


def _is_current(state: InventoryLoadState, generation: int) -> bool:
    return state.phase == LoadPhase.LOADING and state.generation == generation


def apply_event(state: InventoryLoadState, event: LoadEvent) -> InventoryLoadState:
    if isinstance(event, LoadRequested):
        if state.phase == LoadPhase.LOADING:
            return state
        return InventoryLoadState(generation=state.generation + 1)

    if isinstance(event, LoadSucceeded):
        if not _is_current(state, event.generation):
            return state
        return InventoryLoadState(
            phase=LoadPhase.READY,
            items=event.items,
            generation=state.generation,
        )

    if isinstance(event, LoadFailed):
        if not _is_current(state, event.generation):
            return state
        return InventoryLoadState(
            phase=LoadPhase.FAILED,
            error=event.message,
            generation=state.generation,
        )

    if isinstance(event, InventoryRefreshed):
        if state.phase != LoadPhase.READY:
            return state
        return state.model_copy(update={"items": event.items})

    raise TypeError(f"Unknown load event {type(event).__name__}")

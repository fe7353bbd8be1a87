
import pytest

from dashboard_service.loading import (
    InventoryLoadState,
    InventoryRefreshed,
    LoadFailed,
    LoadRequested,
    LoadSucceeded,
    apply_event,
)
from dashboard_service.models import Item, LoadPhase

ITEMS = (Item(id="a", name="Widget", stock=5), Item(id="b", name="Gadget", stock=0))


def test_initial_state_is_loading():
    state = InventoryLoadState()
    assert state.phase == LoadPhase.LOADING
    assert state.items == ()
    assert state.error is None


def test_success_moves_to_ready():
    state = InventoryLoadState()
    state = apply_event(state, LoadSucceeded(generation=state.generation, items=ITEMS))
    assert state.phase == LoadPhase.READY
    assert state.items == ITEMS


def test_failure_keeps_no_items():
    state = InventoryLoadState()
    state = apply_event(state, LoadFailed(generation=state.generation, message="down"))
    assert state.phase == LoadPhase.FAILED
    assert state.items == ()
    assert state.error == "down"


def test_request_while_loading_is_a_noop():
    state = InventoryLoadState()
    assert apply_event(state, LoadRequested()) == state


@pytest.mark.parametrize(
    "finish",
    [
        lambda gen: LoadFailed(generation=gen, message="down"),
        lambda gen: LoadSucceeded(generation=gen, items=ITEMS),
    ],
)
def test_request_after_completion_starts_new_generation(finish):
    state = InventoryLoadState()
    state = apply_event(state, finish(state.generation))
    retried = apply_event(state, LoadRequested())
    assert retried.phase == LoadPhase.LOADING
    assert retried.generation == state.generation + 1
    assert retried.items == ()
    assert retried.error is None


def test_stale_completion_is_ignored():
    state = InventoryLoadState()
    state = apply_event(state, LoadFailed(generation=state.generation, message="down"))
    state = apply_event(state, LoadRequested())
    stale = apply_event(state, LoadSucceeded(generation=state.generation - 1, items=ITEMS))
    assert stale == state


def test_completion_outside_loading_is_ignored():
    state = InventoryLoadState()
    ready = apply_event(state, LoadSucceeded(generation=state.generation, items=ITEMS))
    assert apply_event(ready, LoadFailed(generation=ready.generation, message="late")) == ready


def test_refresh_replaces_items_only_when_ready():
    fresh = (Item(id="a", name="Widget", stock=1),)
    loading = InventoryLoadState()
    assert apply_event(loading, InventoryRefreshed(items=fresh)) == loading

    ready = apply_event(loading, LoadSucceeded(generation=loading.generation, items=ITEMS))
    refreshed = apply_event(ready, InventoryRefreshed(items=fresh))
    assert refreshed.phase == LoadPhase.READY
    assert refreshed.items == fresh
    assert refreshed.generation == ready.generation


def test_unknown_event_raises():
    with pytest.raises(TypeError):
        apply_event(InventoryLoadState(), object())

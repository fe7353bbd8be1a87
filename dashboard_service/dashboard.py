"""
Dashboard controller.

Owns one InventoryLoadState and, once the list is ready, one
ItemMutationState per item. Intents from the presentation layer
(``request_claim``, ``retry_load``, ``reload``, ``refresh``) apply their
synchronous transition immediately and run the remote call in a task; the
result comes back as an event. Every exception raised by the stock service is
caught here and turned into a transition, so callers only ever see state.

All methods must be called from the event loop that runs the tasks.
"""

import asyncio
import logging
from typing import Any, Awaitable, Coroutine, Dict, Iterable, Optional, Set, Tuple

from dashboard_service import loading, mutation
from dashboard_service.client import StockService
from dashboard_service.errors import error_message
from dashboard_service.loading import (
    InventoryLoadState,
    InventoryRefreshed,
    LoadFailed,
    LoadRequested,
    LoadSucceeded,
)
from dashboard_service.models import DashboardSnapshot, Item, LoadPhase
from dashboard_service.mutation import (
    ClaimFailed,
    ClaimRequested,
    ClaimSucceeded,
    ItemMutationState,
    ItemRefreshed,
)

logger = logging.getLogger("dashboard")

LOAD_TIMEOUT_MESSAGE = "Inventory request timed out"
CLAIM_TIMEOUT_MESSAGE = "Claim request timed out"


def _as_items(raw_items: Iterable[Any]) -> Tuple[Item, ...]:
    items = tuple(Item.model_validate(raw, from_attributes=True) for raw in raw_items)
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Inventory contains duplicate item id {item.id!r}")
        seen.add(item.id)
    return items


class Dashboard:
    def __init__(
        self,
        service: StockService,
        load_timeout_ms: Optional[int] = None,
        claim_timeout_ms: Optional[int] = None,
    ):
        self._service = service
        self._load_timeout_ms = load_timeout_ms
        self._claim_timeout_ms = claim_timeout_ms
        self._load_state = InventoryLoadState()
        self._items: Dict[str, ItemMutationState] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._fetching_generation: Optional[int] = None
        self._refreshing = False
        # Survives refresh and reload so an item never has two claims outstanding
        self._claims_in_flight: Set[str] = set()

    # ── Observation ──────────────────────────────

    @property
    def service(self) -> StockService:
        return self._service

    @property
    def load_state(self) -> InventoryLoadState:
        return self._load_state

    def item_state(self, item_id: str) -> Optional[ItemMutationState]:
        return self._items.get(item_id)

    def snapshot(self) -> DashboardSnapshot:
        state = self._load_state
        items = []
        if state.phase == LoadPhase.READY:
            items = [self._items[item.id].snapshot() for item in state.items if item.id in self._items]
        return DashboardSnapshot(phase=state.phase, error=state.error, items=items)

    # ── Load intents ─────────────────────────────

    def start_load(self) -> Optional[asyncio.Task]:
        """Issue the fetch for the current loading cycle if it has not been issued yet."""
        state = self._load_state
        if state.phase != LoadPhase.LOADING or self._fetching_generation == state.generation:
            return None
        return self._spawn_load()

    def retry_load(self) -> Optional[asyncio.Task]:
        if self._load_state.phase != LoadPhase.FAILED:
            logger.info("Retry ignored, inventory is %s", self._load_state.phase.value)
            return None
        self._dispatch_load(LoadRequested())
        logger.info("Retrying inventory load (generation %d)", self._load_state.generation)
        return self._spawn_load()

    def reload(self) -> Optional[asyncio.Task]:
        """Throw away the current list and item states and load from scratch."""
        if self._load_state.phase != LoadPhase.READY:
            logger.info("Reload ignored, inventory is %s", self._load_state.phase.value)
            return None
        pending = sorted(item_id for item_id, state in self._items.items() if state.pending)
        if pending:
            # Their responses will be dropped when they arrive
            logger.warning("Reload interrupts pending claims for %s", ", ".join(pending))
        self._dispatch_load(LoadRequested())
        return self._spawn_load()

    async def refresh(self) -> bool:
        """
        Fetch the list again without leaving Ready and reconcile each item.

        Items that are not pending take the fresh count; pending items keep it
        aside until their claim resolves. Returns False when no refresh ran or
        it failed, in which case nothing changes.
        """
        if self._load_state.phase != LoadPhase.READY or self._refreshing:
            return False

        generation = self._load_state.generation
        self._refreshing = True
        try:
            raw_items = await self._call(self._service.fetch_inventory(), self._load_timeout_ms)
            items = _as_items(raw_items)
        except asyncio.TimeoutError:
            logger.warning("Inventory refresh timed out")
            return False
        except Exception as e:
            logger.warning("Inventory refresh failed: %s", error_message(e), exc_info=e)
            return False
        finally:
            self._refreshing = False

        if self._load_state.phase != LoadPhase.READY or self._load_state.generation != generation:
            logger.info("Dropping refresh result for a superseded inventory list")
            return False

        refreshed: Dict[str, ItemMutationState] = {}
        for item in items:
            current = self._items.get(item.id)
            if current is None:
                refreshed[item.id] = ItemMutationState.from_item(item)
            else:
                refreshed[item.id] = mutation.apply_event(
                    current, ItemRefreshed(name=item.name, stock=item.stock)
                )
        for item_id, state in self._items.items():
            if item_id not in refreshed and state.pending:
                # Kept aside, unlisted, until its claim resolves
                refreshed[item_id] = state
        removed = set(self._items) - set(refreshed)
        if removed:
            logger.info("Items no longer listed: %s", ", ".join(sorted(removed)))
        self._items = refreshed
        self._load_state = loading.apply_event(self._load_state, InventoryRefreshed(items=items))
        logger.info("Inventory refreshed, %d items", len(items))
        return True

    # ── Item intents ─────────────────────────────

    def request_claim(self, item_id: str) -> Optional[asyncio.Task]:
        if self._load_state.phase != LoadPhase.READY:
            logger.warning("Claim for %s ignored, inventory is %s", item_id, self._load_state.phase.value)
            return None
        state = self._items.get(item_id)
        if state is None:
            logger.warning("Claim for unknown item %s ignored", item_id)
            return None
        if item_id in self._claims_in_flight:
            logger.info("Claim for %s ignored, an earlier claim is still outstanding", item_id)
            return None
        if not state.can_claim:
            logger.info(
                "Claim for %s ignored (pending=%s, stock=%d)", item_id, state.pending, state.display_stock
            )
            return None

        self._items[item_id] = mutation.apply_event(state, ClaimRequested())
        self._claims_in_flight.add(item_id)
        generation = self._load_state.generation
        return self._spawn(self._run_claim(item_id, generation))

    # ── Task management ──────────────────────────

    async def wait_idle(self) -> None:
        """Wait until every outstanding load and claim has resolved."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _call(self, awaitable: Awaitable[Any], timeout_ms: Optional[int]) -> Any:
        if timeout_ms is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout_ms / 1000.0)

    # ── Load effects ─────────────────────────────

    def _dispatch_load(self, event: loading.LoadEvent) -> None:
        previous = self._load_state
        self._load_state = loading.apply_event(previous, event)
        if self._load_state.generation != previous.generation:
            self._items = {}
        if previous.phase == LoadPhase.LOADING and self._load_state.phase == LoadPhase.READY:
            self._items = {item.id: ItemMutationState.from_item(item) for item in self._load_state.items}

    def _spawn_load(self) -> asyncio.Task:
        generation = self._load_state.generation
        self._fetching_generation = generation
        return self._spawn(self._run_load(generation))

    async def _run_load(self, generation: int) -> None:
        try:
            raw_items = await self._call(self._service.fetch_inventory(), self._load_timeout_ms)
            items = _as_items(raw_items)
        except asyncio.TimeoutError:
            logger.warning("Inventory load timed out (generation %d)", generation)
            self._dispatch_load(LoadFailed(generation=generation, message=LOAD_TIMEOUT_MESSAGE))
            return
        except Exception as e:
            message = error_message(e)
            logger.warning("Inventory load failed (generation %d): %s", generation, message, exc_info=e)
            self._dispatch_load(LoadFailed(generation=generation, message=message))
            return

        if generation != self._load_state.generation:
            logger.info("Dropping inventory from superseded load (generation %d)", generation)
            return
        self._dispatch_load(LoadSucceeded(generation=generation, items=items))
        logger.info("Inventory ready, %d items", len(items))

    # ── Claim effects ────────────────────────────

    async def _run_claim(self, item_id: str, generation: int) -> None:
        try:
            event = await self._claim_event(item_id)
        finally:
            self._claims_in_flight.discard(item_id)

        state = self._items.get(item_id)
        if generation != self._load_state.generation or state is None:
            logger.info("Dropping claim result for %s from a discarded item list", item_id)
            return
        if not any(item.id == item_id for item in self._load_state.items):
            logger.info("Claim for %s resolved after it left the list, discarding its state", item_id)
            del self._items[item_id]
            return
        self._items[item_id] = mutation.apply_event(state, event)

    async def _claim_event(self, item_id: str) -> mutation.ItemEvent:
        try:
            raw_item = await self._call(self._service.claim_one(item_id), self._claim_timeout_ms)
            item = Item.model_validate(raw_item, from_attributes=True)
        except asyncio.TimeoutError:
            logger.warning("Claim for %s timed out", item_id)
            return ClaimFailed(message=CLAIM_TIMEOUT_MESSAGE)
        except Exception as e:
            message = error_message(e)
            logger.warning("Claim for %s failed: %s", item_id, message, exc_info=e)
            return ClaimFailed(message=message)
        logger.info("Claimed %s, server stock %d", item_id, item.stock)
        return ClaimSucceeded(stock=item.stock)

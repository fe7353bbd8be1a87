
import random

import pytest

from inventory_service.backend import (
    ChaosError,
    ForcedFailureError,
    ItemNotFoundError,
    MockInventoryBackend,
    OutOfStockError,
)
from inventory_service.models import ChaosSettings, Item
from inventory_service.store import DEFAULT_ITEMS, InventoryStore


def make_store():
    return InventoryStore([Item(id="a", name="Widget", stock=2), Item(id="b", name="Gadget", stock=0)])


def test_default_store_lists_seed_items():
    store = InventoryStore()
    assert [item.id for item in store.list_items()] == [item.id for item in DEFAULT_ITEMS]


def test_stores_do_not_share_state():
    first = InventoryStore()
    second = InventoryStore()
    first.claim("1")
    assert first.get_item("1").stock == second.get_item("1").stock - 1


def test_duplicate_ids_are_rejected():
    with pytest.raises(ValueError):
        InventoryStore([Item(id="a", name="x", stock=1), Item(id="a", name="y", stock=1)])


def test_claim_decrements_until_empty():
    store = make_store()
    assert store.claim("a") == (True, Item(id="a", name="Widget", stock=1))
    assert store.claim("a") == (True, Item(id="a", name="Widget", stock=0))
    assert store.claim("a") == (False, Item(id="a", name="Widget", stock=0))


def test_claim_unknown_item():
    assert make_store().claim("zzz") == (False, None)


def test_listed_items_are_copies():
    store = make_store()
    listed = store.list_items()
    listed[0].stock = 99
    assert store.get_item("a").stock == 2


@pytest.mark.asyncio
async def test_backend_without_chaos_claims_and_lists():
    backend = MockInventoryBackend(make_store(), ChaosSettings())
    item = await backend.claim_one("a")
    assert item.stock == 1
    items = await backend.fetch_inventory()
    assert [(i.id, i.stock) for i in items] == [("a", 1), ("b", 0)]


@pytest.mark.asyncio
async def test_backend_out_of_stock_and_unknown():
    backend = MockInventoryBackend(make_store(), ChaosSettings())
    with pytest.raises(OutOfStockError) as exc_info:
        await backend.claim_one("b")
    assert exc_info.value.item_id == "b"
    with pytest.raises(ItemNotFoundError):
        await backend.claim_one("zzz")


@pytest.mark.asyncio
async def test_backend_forced_failure_leaves_stock_alone():
    store = make_store()
    backend = MockInventoryBackend(store, ChaosSettings(fail_mode=True))
    with pytest.raises(ForcedFailureError):
        await backend.fetch_inventory()
    with pytest.raises(ForcedFailureError):
        await backend.claim_one("a")
    assert store.get_item("a").stock == 2


@pytest.mark.asyncio
async def test_backend_always_failing_chaos():
    backend = MockInventoryBackend(make_store(), ChaosSettings(failure_rate=1.0))
    with pytest.raises(ChaosError):
        await backend.fetch_inventory()
    with pytest.raises(ChaosError):
        await backend.claim_one("a")


@pytest.mark.asyncio
async def test_backend_partial_chaos_is_reproducible_with_seeded_rng():
    settings = ChaosSettings(failure_rate=0.5)

    async def outcomes(seed):
        backend = MockInventoryBackend(InventoryStore(), settings, rng=random.Random(seed))
        results = []
        for _ in range(20):
            try:
                await backend.fetch_inventory()
                results.append(True)
            except ChaosError:
                results.append(False)
        return results

    first = await outcomes(7)
    assert first == await outcomes(7)
    assert True in first and False in first


import asyncio
from typing import List, Tuple

import pytest

from dashboard_service.dashboard import Dashboard
from dashboard_service.models import Item

ITEMS = [
    Item(id="a", name="Widget", stock=5),
    Item(id="b", name="Gadget", stock=2),
    Item(id="c", name="Gizmo", stock=0),
]


class ScriptedStockService:
    """StockService whose calls stay outstanding until the test resolves them."""

    def __init__(self):
        self.fetches: List[asyncio.Future] = []
        self.claims: List[Tuple[str, asyncio.Future]] = []

    async def fetch_inventory(self) -> List[Item]:
        future = asyncio.get_running_loop().create_future()
        self.fetches.append(future)
        return await future

    async def claim_one(self, item_id: str) -> Item:
        future = asyncio.get_running_loop().create_future()
        self.claims.append((item_id, future))
        return await future

    def claim_calls(self, item_id: str) -> int:
        return sum(1 for claimed, _ in self.claims if claimed == item_id)

    def _open_claim(self, item_id: str) -> asyncio.Future:
        for claimed, future in self.claims:
            if claimed == item_id and not future.done():
                return future
        raise AssertionError(f"No outstanding claim for {item_id}")

    def resolve_fetch(self, items, index: int = -1) -> None:
        self.fetches[index].set_result(list(items))

    def fail_fetch(self, exc: Exception, index: int = -1) -> None:
        self.fetches[index].set_exception(exc)

    def resolve_claim(self, item_id: str, stock: int) -> None:
        self._open_claim(item_id).set_result(Item(id=item_id, name=item_id, stock=stock))

    def fail_claim(self, item_id: str, exc: Exception) -> None:
        self._open_claim(item_id).set_exception(exc)


async def _settle() -> None:
    # Let spawned tasks run up to their next suspension point
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def service():
    return ScriptedStockService()


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def make_ready():
    async def _make_ready(service, items=ITEMS, **kwargs):
        dashboard = Dashboard(service, **kwargs)
        dashboard.start_load()
        await _settle()
        service.resolve_fetch(items)
        await _settle()
        return dashboard

    return _make_ready

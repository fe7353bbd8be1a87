"""
Mock inventory backend with injectable chaos.

Every call waits for a configured delay and may then fail at random, which is
what the dashboard has to cope with. The backend owns its store; build one per
app or per test.
"""

import asyncio
import logging
import random
from typing import List, Optional

from inventory_service.models import ChaosSettings, Item
from inventory_service.store import InventoryStore

logger = logging.getLogger("inventory_backend")


class InventoryError(Exception):
    code = "INVENTORY_ERROR"

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.item_id = item_id


class ItemNotFoundError(InventoryError):
    code = "ITEM_NOT_FOUND"


class OutOfStockError(InventoryError):
    code = "OUT_OF_STOCK"


class ForcedFailureError(InventoryError):
    code = "INVENTORY_FAILURE"


class ChaosError(InventoryError):
    code = "CHAOS_FAILURE"


class MockInventoryBackend:
    def __init__(
        self,
        store: Optional[InventoryStore] = None,
        settings: Optional[ChaosSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store if store is not None else InventoryStore()
        self.settings = settings if settings is not None else ChaosSettings()
        self._rng = rng if rng is not None else random.Random(self.settings.seed)

    async def _delay(self, delay_ms: int) -> None:
        if delay_ms > 0:
            logger.info("Injecting delay of %dms", delay_ms)
            await asyncio.sleep(delay_ms / 1000.0)

    def _roll_chaos(self) -> bool:
        rate = self.settings.failure_rate
        if rate <= 0:
            return False
        if rate >= 1:
            return True
        return self._rng.random() < rate

    async def fetch_inventory(self) -> List[Item]:
        await self._delay(self.settings.load_delay_ms)

        if self.settings.fail_mode:
            logger.error("Forced failure active. Failing inventory load")
            raise ForcedFailureError("Forced failure mode enabled")
        if self._roll_chaos():
            logger.warning("Chaos failure while loading inventory")
            raise ChaosError("Failed to load inventory. The network is having a bad day.")

        items = self.store.list_items()
        logger.info("Loaded %d items", len(items))
        return items

    async def claim_one(self, item_id: str) -> Item:
        await self._delay(self.settings.claim_delay_ms)

        if self.settings.fail_mode:
            logger.error("Forced failure active. Failing claim for %s", item_id)
            raise ForcedFailureError("Forced failure mode enabled", item_id=item_id)
        if self._roll_chaos():
            logger.warning("Chaos failure while claiming %s", item_id)
            raise ChaosError("Failed to claim item. Please try again.", item_id=item_id)

        success, item = self.store.claim(item_id)
        if item is None:
            logger.warning("Claim for unknown item %s", item_id)
            raise ItemNotFoundError(f"Item {item_id} not found", item_id=item_id)
        if not success:
            logger.warning("Out of stock for %s", item_id)
            raise OutOfStockError(f"{item.name} is out of stock", item_id=item_id)

        logger.info("Claimed %s. Remaining: %d", item_id, item.stock)
        return item

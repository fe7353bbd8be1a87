
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from inventory_service.models import Item

logger = logging.getLogger("inventory_store")

DEFAULT_ITEMS = (
    Item(id="1", name="Wireless Mouse", stock=12),
    Item(id="2", name="Mechanical Keyboard", stock=5),
    Item(id="3", name="USB-C Hub", stock=3),
    Item(id="4", name="27in Monitor", stock=1),
    Item(id="5", name="Laptop Stand", stock=0),
)


class InventoryStore:
    def __init__(self, items: Optional[Iterable[Item]] = None):
        if items is None:
            items = DEFAULT_ITEMS
        # Insertion order is the listing order
        self._inventory: Dict[str, Item] = {}
        for item in items:
            if item.id in self._inventory:
                raise ValueError(f"Duplicate item id {item.id!r}")
            self._inventory[item.id] = item.model_copy()

    def list_items(self) -> List[Item]:
        return [item.model_copy() for item in self._inventory.values()]

    def get_item(self, item_id: str) -> Optional[Item]:
        item = self._inventory.get(item_id)
        return item.model_copy() if item is not None else None

    def set_stock(self, item_id: str, stock: int) -> Item:
        """Overwrite the count of an item, standing in for another client's activity."""
        item = self._inventory[item_id]
        updated = Item(id=item.id, name=item.name, stock=stock)
        self._inventory[item_id] = updated
        return updated.model_copy()

    def claim(self, item_id: str) -> Tuple[bool, Optional[Item]]:
        """
        Take one unit of an item.

        Returns (success, item) where item is the state after the claim, or the
        unchanged item when it is out of stock. Unknown ids return (False, None).
        """
        current = self._inventory.get(item_id)
        if current is None:
            return False, None
        if current.stock < 1:
            return False, current.model_copy()
        updated = Item(id=current.id, name=current.name, stock=current.stock - 1)
        self._inventory[item_id] = updated
        logger.debug("Claimed one %s, remaining %d", item_id, updated.stock)
        return True, updated.model_copy()


import os

INVENTORY_LOAD_DELAY_MS = int(os.getenv("INVENTORY_LOAD_DELAY_MS", "3000"))
INVENTORY_DELAY_MS = int(os.getenv("INVENTORY_DELAY_MS", "500"))
INVENTORY_FAILURE_RATE = float(os.getenv("INVENTORY_FAILURE_RATE", "0.2"))
INVENTORY_FAIL_MODE = os.getenv("INVENTORY_FAIL_MODE", "false").lower() in ("1", "true", "yes")

# Unset means a fresh, unseeded RNG per backend
_seed = os.getenv("INVENTORY_RANDOM_SEED")
INVENTORY_RANDOM_SEED = int(_seed) if _seed else None

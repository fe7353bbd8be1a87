
import os

INVENTORY_SERVICE_URL = os.getenv("INVENTORY_SERVICE_URL", "http://localhost:8001")
DASHBOARD_LOAD_TIMEOUT_MS = int(os.getenv("DASHBOARD_LOAD_TIMEOUT_MS", "10000"))
DASHBOARD_CLAIM_TIMEOUT_MS = int(os.getenv("DASHBOARD_CLAIM_TIMEOUT_MS", "5000"))

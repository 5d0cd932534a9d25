import os
from dotenv import load_dotenv
load_dotenv()
# ---- Node REST API ----
NODE_API_BASE_URL = os.environ.get("NODE_API_BASE_URL", "http://localhost:8080/api/v1")
NODE_API_TOKEN = os.environ.get("NODE_API_TOKEN")          # bearer token, optional

QUERY_TIMEOUT_SEC = float(os.environ.get("QUERY_TIMEOUT_SEC", "5"))
QUERY_MAX_RETRIES = int(os.environ.get("QUERY_MAX_RETRIES", "3"))
QUERY_REQUESTS_PER_SEC = float(os.environ.get("QUERY_REQUESTS_PER_SEC", "10"))

# ---- Reconciliation ----

# size of the global window scanned when the per-address index comes back empty
FALLBACK_SCAN_LIMIT = int(os.environ.get("FALLBACK_SCAN_LIMIT", "50"))

# ---- Overview ----
OVERVIEW_BLOCK_LIMIT = int(os.environ.get("OVERVIEW_BLOCK_LIMIT", "5"))
OVERVIEW_TX_LIMIT = int(os.environ.get("OVERVIEW_TX_LIMIT", "5"))

# ---- Logging ----
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

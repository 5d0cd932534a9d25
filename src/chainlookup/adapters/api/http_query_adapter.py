import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests

from chainlookup.config.settings import (
    NODE_API_BASE_URL,
    NODE_API_TOKEN,
    QUERY_MAX_RETRIES,
    QUERY_REQUESTS_PER_SEC,
    QUERY_TIMEOUT_SEC,
)

from chainlookup.adapters.api.rate_limiter import SimpleRateLimiter, backoff_sleep
from chainlookup.core.errors import AuthenticationError, DataSourceError, RateLimitError
from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.core.dto import AddressBalance, Block, ChainInfo, Transaction
from chainlookup.io.schemas import (
    balance_from_dict,
    block_from_dict,
    blocks_from_list,
    chain_info_from_dict,
    transaction_from_dict,
    transactions_from_list,
    wallets_from_list,
)


logger = logging.getLogger(__name__)

# marker for "the service answered not found"
_MISSING = object()


class HttpQueryAdapter(QueryServicePort):
    """
    Query port backed by the node's REST API (`/api/v1`).
    """

    def __init__(
        self,
        base_url: str = NODE_API_BASE_URL,
        token: Optional[str] = NODE_API_TOKEN,
        timeout_sec: float = QUERY_TIMEOUT_SEC,
        max_retries: int = QUERY_MAX_RETRIES,
        requests_per_sec: float = QUERY_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout_sec
        self._max_retries = max_retries

        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        missing_statuses: Iterable[int] = (),
    ) -> Any:
        url = f"{self._base_url}/{path.lstrip('/')}"
        missing = set(missing_statuses)
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            if attempt:
                backoff_sleep(attempt - 1)
            try:
                self._rl.wait()
                resp = self._session.get(
                    url,
                    params=params,
                    headers=self._headers(),
                    timeout=self._timeout,
                )
            except requests.RequestException as e:
                # timeouts and connection errors are worth another attempt
                logger.debug("GET %s attempt %d failed: %s", url, attempt + 1, e)
                last_err = e
                continue

            status = resp.status_code
            if status in missing:
                return _MISSING
            if status == 401:
                raise AuthenticationError(f"Unauthorized: {url}")
            if status == 429:
                last_err = RateLimitError(f"Rate limited: {url}")
                continue
            if status >= 500:
                logger.debug("GET %s attempt %d: HTTP %d", url, attempt + 1, status)
                last_err = DataSourceError(f"HTTP {status} from {url}")
                continue
            if status >= 400:
                raise DataSourceError(f"HTTP {status} from {url}")

            try:
                return resp.json()
            except ValueError as e:
                raise DataSourceError(f"Invalid JSON from {url}") from e

        if isinstance(last_err, DataSourceError):
            raise last_err
        raise DataSourceError(
            f"{url} failed after {self._max_retries} attempt(s): {last_err}"
        ) from last_err

    @staticmethod
    def _seg(value: str) -> str:
        # ids are opaque user input; never let them change the route
        return quote(value, safe="")

    # ---------- port methods ----------

    def get_block(self, block_id: str) -> Optional[Block]:
        data = self._get(f"blocks/{self._seg(block_id)}", missing_statuses=(404,))
        if data is _MISSING:
            return None
        return block_from_dict(data)

    def get_block_by_height(self, height: int) -> Optional[Block]:
        if int(height) < 0:
            raise ValueError("height must be >= 0")
        data = self._get(f"blocks/height/{int(height)}", missing_statuses=(404,))
        if data is _MISSING:
            return None
        return block_from_dict(data)

    def get_transaction(self, tx_id: str) -> Optional[Transaction]:
        data = self._get(f"transactions/{self._seg(tx_id)}", missing_statuses=(404,))
        if data is _MISSING:
            return None
        return transaction_from_dict(data)

    def get_address_balance(self, address: str) -> Optional[AddressBalance]:
        # the node answers 400 for strings that are not well-formed addresses
        data = self._get(
            f"wallets/{self._seg(address)}/balance",
            missing_statuses=(400, 404),
        )
        if data is _MISSING:
            return None
        return balance_from_dict(address, data)

    def get_transactions_for_address(self, address: str) -> List[Transaction]:
        data = self._get(f"wallets/{self._seg(address)}/transactions")
        return transactions_from_list(data)

    def list_transactions(self, limit: int) -> List[Transaction]:
        data = self._get("transactions", params={"limit": int(limit)})
        # the node may ignore `limit`; enforce the bound client-side
        return transactions_from_list(data)[: int(limit)]

    def list_blocks(self, limit: int) -> List[Block]:
        data = self._get("blocks", params={"limit": int(limit)})
        return blocks_from_list(data)[: int(limit)]

    def list_wallets(self) -> List[str]:
        # protected route: needs the bearer token
        return wallets_from_list(self._get("wallets"))

    def get_chain_info(self) -> ChainInfo:
        return chain_info_from_dict(self._get("info"))

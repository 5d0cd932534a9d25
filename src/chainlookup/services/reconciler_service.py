from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Set, Tuple

from chainlookup.config.settings import FALLBACK_SCAN_LIMIT
from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.core.dto import Transaction
from chainlookup.core.enums import HistorySource
from chainlookup.core.errors import ReconciliationFailed
from chainlookup.core.models import ReconciledHistory


logger = logging.getLogger(__name__)


Strategy = Callable[[str, int], List[Transaction]]


class ReconcilerService:
    """
    Produces the transaction history of one address.

    Strategies are tried in order; the next one runs only when the current one
    fails or yields nothing for the address:
      1. the node's per-address index
      2. a bounded scan of the most recent transactions chain-wide, filtered locally

    A history built by the scan is flagged `possibly_incomplete`.
    """

    def __init__(self, query: QueryServicePort) -> None:
        self.query = query
        self._strategies: List[Tuple[HistorySource, Strategy]] = [
            (HistorySource.PRIMARY, self._from_index),
            (HistorySource.FALLBACK, self._from_global_scan),
        ]

    def reconcile(self, address: str, fallback_scan_limit: int = FALLBACK_SCAN_LIMIT) -> ReconciledHistory:
        if int(fallback_scan_limit) <= 0:
            raise ValueError("fallback_scan_limit must be > 0")
        limit = int(fallback_scan_limit)

        last_err: Optional[Exception] = None
        last = len(self._strategies) - 1

        for i, (source, strategy) in enumerate(self._strategies):
            try:
                txs = self.normalize(address, strategy(address, limit))
            except Exception as e:
                last_err = e
                if i == last:
                    raise ReconciliationFailed(address, e) from e
                logger.warning("%s history for %s unavailable (%s); trying next strategy", source.value, address, e)
                continue

            if txs or i == last:
                if source is not HistorySource.PRIMARY:
                    logger.info(
                        "history for %s built from %s scan of %d transaction(s): %d match(es)",
                        address, source.value, limit, len(txs),
                    )
                return ReconciledHistory(
                    address=address,
                    transactions=tuple(txs),
                    source=source,
                    scan_limit=limit if source is HistorySource.FALLBACK else None,
                )
            logger.debug("%s history for %s is empty", source.value, address)

        # unreachable with a non-empty strategy list
        raise ReconciliationFailed(address, last_err)

    # -------------------------
    # Strategies
    # -------------------------

    def _from_index(self, address: str, limit: int) -> List[Transaction]:
        return self.query.get_transactions_for_address(address)

    def _from_global_scan(self, address: str, limit: int) -> List[Transaction]:
        return self.query.list_transactions(limit)

    # -------------------------
    # Helpers
    # -------------------------

    @staticmethod
    def normalize(address: str, txs: Iterable[Transaction]) -> List[Transaction]:
        """
        Keep transactions touching `address`, drop repeated ids (first wins),
        newest first. Equal timestamps keep their source order.
        """
        seen: Set[str] = set()
        out: List[Transaction] = []
        for t in txs:
            if not t.touches(address) or t.id in seen:
                continue
            seen.add(t.id)
            out.append(t)
        # list.sort is stable under reverse=True
        out.sort(key=lambda t: t.timestamp, reverse=True)
        return out

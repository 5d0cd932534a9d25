from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from chainlookup.config.settings import OVERVIEW_BLOCK_LIMIT, OVERVIEW_TX_LIMIT
from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.core.models import Overview


logger = logging.getLogger(__name__)


class OverviewService:
    """
    Dashboard snapshot: node info plus the latest blocks and transactions.
    The three reads are independent, so they are issued in parallel.
    """

    def __init__(self, query: QueryServicePort) -> None:
        self.query = query

    def snapshot(
        self,
        block_limit: int = OVERVIEW_BLOCK_LIMIT,
        tx_limit: int = OVERVIEW_TX_LIMIT,
    ) -> Overview:
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="overview") as pool:
            info_f = pool.submit(self.query.get_chain_info)
            blocks_f = pool.submit(self.query.list_blocks, block_limit)
            txs_f = pool.submit(self.query.list_transactions, tx_limit)

            # .result() re-raises the first failure in the caller
            overview = Overview(
                info=info_f.result(),
                blocks=list(blocks_f.result()),
                transactions=list(txs_f.result()),
            )

        logger.debug(
            "overview: height=%d, %d block(s), %d transaction(s)",
            overview.info.height, len(overview.blocks), len(overview.transactions),
        )
        return overview

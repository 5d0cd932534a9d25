import json
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.core.dto import AddressBalance, Block, ChainInfo, Transaction
from chainlookup.io.schemas import (
    blocks_from_list,
    parse_decimal,
    transactions_from_list,
    wallets_from_list,
)

class StaticQueryAdapter(QueryServicePort):
    """
    In-memory query service for dev/testing.

    `address_index` stands in for the node's per-address index; when omitted the
    index is complete (derived from every known transaction). Pass a partial dict
    to simulate addresses the node has not indexed yet.
    """

    def __init__(self,
                 blocks: Optional[List[Block]] = None,
                 transactions: Optional[List[Transaction]] = None,
                 balances: Optional[Dict[str, Decimal]] = None,
                 wallets: Optional[List[str]] = None,
                 address_index: Optional[Dict[str, List[Transaction]]] = None,
                 info: Optional[ChainInfo] = None,
                 ):
        self._blocks = sorted(blocks or [], key=lambda b: b.height, reverse=True)
        self._txs = list(transactions or [])
        known = {t.id for t in self._txs}
        for b in self._blocks:
            for t in b.transactions:
                if t.id not in known:
                    known.add(t.id)
                    self._txs.append(t)
        self._txs.sort(key=lambda t: t.timestamp, reverse=True)
        self._balances = dict(balances or {})
        self._wallets = list(wallets or [])
        self._index = address_index
        self._info = info

    @classmethod
    def from_json(cls, path: str) -> "StaticQueryAdapter":
        """
        Load a fixture shaped like the API payloads:
        {"blocks": [...], "transactions": [...], "balances": {"addr": 10}, "wallets": ["addr"]}
        """
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(
            blocks=blocks_from_list(data.get("blocks")),
            transactions=transactions_from_list(data.get("transactions")),
            balances={k: parse_decimal(v, "balance") for k, v in (data.get("balances") or {}).items()},
            wallets=wallets_from_list(data.get("wallets")),
        )

    def get_block(self, block_id):
        for b in self._blocks:
            if b.hash == block_id:
                return b
        return None

    def get_block_by_height(self, height):
        if int(height) < 0:
            raise ValueError("height must be >= 0")
        for b in self._blocks:
            if b.height == int(height):
                return b
        return None

    def get_transaction(self, tx_id):
        for t in self._txs:
            if t.id == tx_id:
                return t
        return None

    def get_address_balance(self, address):
        if address not in self._balances:
            return None
        return AddressBalance(address=address, balance=self._balances[address])

    def get_transactions_for_address(self, address):
        if self._index is not None:
            return list(self._index.get(address, []))
        return [t for t in self._txs if t.touches(address)]

    def list_transactions(self, limit):
        return self._txs[: int(limit)]

    def list_blocks(self, limit):
        return self._blocks[: int(limit)]

    def list_wallets(self):
        return list(self._wallets)

    def get_chain_info(self):
        if self._info is not None:
            return self._info
        return ChainInfo(
            height=self._blocks[0].height if self._blocks else 0,
            transaction_count=len(self._txs),
            status="running",
            version="static",
        )

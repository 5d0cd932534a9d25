from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from chainlookup.core.dto import AddressBalance, Block, ChainInfo, Transaction

class QueryServicePort(ABC):
    """
    Abstract Class for reading chain state from the node's query API.

    Point lookups return None when the service reports "not found".
    Any other failure raises DataSourceError (or a subclass).
    """

    # --- Point lookups ---

    @abstractmethod
    def get_block(self, block_id: str) -> Optional[Block]:
        raise NotImplementedError

    @abstractmethod
    def get_block_by_height(self, height: int) -> Optional[Block]:
        raise NotImplementedError

    @abstractmethod
    def get_transaction(self, tx_id: str) -> Optional[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def get_address_balance(self, address: str) -> Optional[AddressBalance]:
        raise NotImplementedError

    # --- Per-address index (empty list is a valid answer) ---

    @abstractmethod
    def get_transactions_for_address(self, address: str) -> List[Transaction]:
        raise NotImplementedError

    # --- Global windows, most recent first ---

    @abstractmethod
    def list_transactions(self, limit: int) -> List[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def list_blocks(self, limit: int) -> List[Block]:
        raise NotImplementedError

    # --- Wallet addresses known to the node ---

    @abstractmethod
    def list_wallets(self) -> List[str]:
        raise NotImplementedError

    # --- Node status ---
    @abstractmethod
    def get_chain_info(self) -> ChainInfo:
        raise NotImplementedError

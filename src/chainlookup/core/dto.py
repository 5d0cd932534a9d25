from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple


# sender used by the node for coinbase / issuance transactions
SYSTEM_SENDER = "system"


@dataclass(frozen=True)
class Transaction:
    id: str
    from_address: str
    to_address: str
    amount: Decimal
    timestamp: int          # unix seconds
    inputs: Tuple[str, ...] = ()

    @property
    def is_coinbase(self) -> bool:
        return self.from_address == SYSTEM_SENDER

    def touches(self, address: str) -> bool:
        return self.from_address == address or self.to_address == address


@dataclass(frozen=True)
class Block:
    height: int
    hash: str
    prev_block_hash: str
    timestamp: int
    nonce: int
    transactions: Tuple[Transaction, ...] = ()


@dataclass(frozen=True)
class AddressBalance:
    address: str
    balance: Decimal


@dataclass(frozen=True)
class ChainInfo:
    height: int
    transaction_count: int
    status: str
    version: str

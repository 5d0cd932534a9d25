from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from chainlookup.core.dto import Block, ChainInfo, Transaction
from chainlookup.core.enums import EntityKind, HistorySource



# Resolution results

@dataclass(frozen=True)
class BlockMatch:
    block: Block
    kind: EntityKind = EntityKind.BLOCK


@dataclass(frozen=True)
class TransactionMatch:
    tx: Transaction
    kind: EntityKind = EntityKind.TRANSACTION


@dataclass(frozen=True)
class AddressMatch:
    address: str
    balance: Decimal
    kind: EntityKind = EntityKind.ADDRESS


@dataclass(frozen=True)
class NotFound:
    kind: EntityKind = EntityKind.NOT_FOUND


ResolvedEntity = Union[BlockMatch, TransactionMatch, AddressMatch, NotFound]



# Reconciled history

@dataclass(frozen=True)
class ReconciledHistory:
    """
    Transactions touching `address`, newest first, no duplicate ids.
    """

    address: str
    transactions: Tuple[Transaction, ...]
    source: HistorySource = HistorySource.PRIMARY
    scan_limit: Optional[int] = None      # set when produced by the fallback scan

    @property
    def possibly_incomplete(self) -> bool:
        # the fallback only sees the most recent `scan_limit` transactions chain-wide
        return self.source is HistorySource.FALLBACK



# Dashboard snapshot

@dataclass(frozen=True)
class Overview:
    info: ChainInfo
    blocks: List[Block]
    transactions: List[Transaction]

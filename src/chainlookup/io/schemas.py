from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from chainlookup.core.dto import AddressBalance, Block, ChainInfo, Transaction
from chainlookup.core.errors import DataSourceError
from chainlookup.core.models import (
    AddressMatch,
    BlockMatch,
    Overview,
    ReconciledHistory,
    ResolvedEntity,
    TransactionMatch,
)


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def parse_decimal(val: Any, field: str) -> Decimal:
    try:
        out = Decimal(str(val))
    except (InvalidOperation, ValueError) as e:
        raise DataSourceError(f"Invalid {field}: {val!r}") from e
    if not out.is_finite():
        raise DataSourceError(f"Invalid {field}: {val!r}")
    return out


def _non_negative(val, field: str):
    if val < 0:
        raise DataSourceError(f"Invalid {field}: {val!r} is negative")
    return val


def _require(d: Any, what: str) -> Dict[str, Any]:
    if not isinstance(d, dict):
        raise DataSourceError(f"Invalid {what} payload: {d!r}")
    return d


# -------------------------
# Wire -> DTO
# -------------------------

def transaction_from_dict(d: Any) -> Transaction:
    d = _require(d, "transaction")
    try:
        return Transaction(
            id=str(d["id"]),
            from_address=str(d.get("from") or ""),
            to_address=str(d.get("to") or ""),
            amount=_non_negative(parse_decimal(d["amount"], "amount"), "amount"),
            timestamp=int(d["timestamp"]),
            inputs=tuple(str(i) for i in (d.get("inputs") or [])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Invalid transaction payload: {d!r}") from e


def transactions_from_list(rows: Any) -> List[Transaction]:
    # the node serialises an empty slice as null
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise DataSourceError(f"Expected a list of transactions, got: {rows!r}")
    return [transaction_from_dict(r) for r in rows]


def block_from_dict(d: Any) -> Block:
    d = _require(d, "block")
    try:
        return Block(
            height=_non_negative(int(d["height"]), "height"),
            hash=str(d["hash"]),
            prev_block_hash=str(d.get("prevBlockHash") or ""),
            timestamp=int(d["timestamp"]),
            nonce=int(d["nonce"]),
            transactions=tuple(transactions_from_list(d.get("transactions"))),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Invalid block payload: {d!r}") from e


def blocks_from_list(rows: Any) -> List[Block]:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise DataSourceError(f"Expected a list of blocks, got: {rows!r}")
    return [block_from_dict(r) for r in rows]


def wallets_from_list(rows: Any) -> List[str]:
    if rows is None:
        return []
    if not isinstance(rows, list) or not all(isinstance(r, str) for r in rows):
        raise DataSourceError(f"Expected a list of addresses, got: {rows!r}")
    return list(rows)


def balance_from_dict(address: str, d: Any) -> AddressBalance:
    d = _require(d, "balance")
    if "balance" not in d:
        raise DataSourceError(f"Invalid balance payload: {d!r}")
    return AddressBalance(address=address, balance=parse_decimal(d["balance"], "balance"))


def chain_info_from_dict(d: Any) -> ChainInfo:
    d = _require(d, "info")
    try:
        return ChainInfo(
            height=int(d.get("height", 0)),
            transaction_count=int(d.get("transactions", 0)),
            status=str(d.get("status") or ""),
            version=str(d.get("version") or ""),
        )
    except (TypeError, ValueError) as e:
        raise DataSourceError(f"Invalid info payload: {d!r}") from e


# -------------------------
# DTO -> JSON-ready dicts
# -------------------------

def transaction_to_dict(tx: Transaction) -> Dict[str, Any]:
    return {
        "id": tx.id,
        "from": tx.from_address,
        "to": tx.to_address,
        "amount": _dec_to_str(tx.amount),
        "timestamp": tx.timestamp,
        "inputs": list(tx.inputs),
    }


def block_to_dict(b: Block) -> Dict[str, Any]:
    return {
        "height": b.height,
        "hash": b.hash,
        "prevBlockHash": b.prev_block_hash,
        "timestamp": b.timestamp,
        "nonce": b.nonce,
        "transactions": [transaction_to_dict(t) for t in b.transactions],
    }


def resolved_to_dict(entity: ResolvedEntity) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": entity.kind.value}
    if isinstance(entity, BlockMatch):
        out["block"] = block_to_dict(entity.block)
    elif isinstance(entity, TransactionMatch):
        out["tx"] = transaction_to_dict(entity.tx)
    elif isinstance(entity, AddressMatch):
        out["address"] = entity.address
        out["balance"] = _dec_to_str(entity.balance)
    return out


def history_to_dict(
    history: ReconciledHistory,
    transactions: Optional[List[Transaction]] = None,
) -> Dict[str, Any]:
    """
    `transactions` overrides the history's list (e.g. after a time-window filter).
    """
    txs = history.transactions if transactions is None else transactions
    return {
        "address": history.address,
        "source": history.source.value,
        "possibly_incomplete": history.possibly_incomplete,
        "scan_limit": history.scan_limit,
        "transactions": [transaction_to_dict(t) for t in txs],
    }


def overview_to_dict(ov: Overview) -> Dict[str, Any]:
    return {
        "info": {
            "height": ov.info.height,
            "transactions": ov.info.transaction_count,
            "status": ov.info.status,
            "version": ov.info.version,
        },
        "blocks": [block_to_dict(b) for b in ov.blocks],
        "transactions": [transaction_to_dict(t) for t in ov.transactions],
    }

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from chainlookup.core.dto import Transaction
from chainlookup.core.models import ReconciledHistory


def write_json(payload: Dict[str, Any], out_dir: str, filename: str = "result.json") -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return str(out_path)


def write_history_md(
    history: ReconciledHistory,
    out_dir: str,
    transactions: Optional[Sequence[Transaction]] = None,
    filename: str = "history.md",
) -> str:
    """
    Readable history: in/out direction, counterparty and amount per transaction.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    txs = history.transactions if transactions is None else transactions
    addr = history.address

    def fmt_ts(ts: int) -> str:
        return dt.datetime.fromtimestamp(ts, tz=dt.timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    lines = [
        f"# Transaction history for `{addr}`",
        "",
        f"- Transactions: **{len(txs)}**",
        f"- Source: **{history.source.value}**",
    ]
    if history.possibly_incomplete:
        lines.append(
            f"- Note: built from the latest {history.scan_limit} transactions chain-wide; "
            "older activity may be missing."
        )
    lines += [
        "",
        "| Time (UTC) | Direction | Counterparty | Amount | Tx |",
        "|---|---|---|---:|---|",
    ]
    for t in txs:
        outgoing = t.from_address == addr
        counterparty = t.to_address if outgoing else t.from_address
        sign = "-" if outgoing else "+"
        lines.append(
            f"| {fmt_ts(t.timestamp)} | {'out' if outgoing else 'in'} | `{counterparty}` "
            f"| {sign}{format(t.amount, 'f')} | `{t.id}` |"
        )

    out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(out_path)

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from chainlookup.config import settings
from chainlookup.core.enums import EntityKind
from chainlookup.core.errors import ChainLookupError, InvalidQuery
from chainlookup.ports.query_service_port import QueryServicePort
from chainlookup.services.explorer_session import ExplorerSession
from chainlookup.services.filters import day_window, filter_by_time_window, parse_day
from chainlookup.services.overview_service import OverviewService
from chainlookup.services.reconciler_service import ReconcilerService
from chainlookup.services.resolver_service import ResolverService
from chainlookup.io.output_writer import write_history_md, write_json
from chainlookup.io.schemas import block_to_dict, history_to_dict, overview_to_dict, resolved_to_dict

from chainlookup.adapters.api.http_query_adapter import HttpQueryAdapter
from chainlookup.adapters.api.static_query_adapter import StaticQueryAdapter


logger = logging.getLogger("chainlookup")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2
EXIT_NOT_FOUND = 3


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="chainlookup", description="Block / transaction / address lookups against a node API")
    p.add_argument("--base-url", default=settings.NODE_API_BASE_URL, help="Node API base URL")
    p.add_argument("--use-static", action="store_true", help="Use static in-memory adapter (dev/testing)")
    p.add_argument("--fixture", help="JSON fixture for --use-static (blocks, transactions, balances, wallets)")
    p.add_argument("--out", help="Also write the result to this folder")
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (DEBUG, INFO, ...)")

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="Resolve a block hash, transaction id or address")
    s.add_argument("query")

    h = sub.add_parser("history", help="Transaction history of an address")
    h.add_argument("address")
    h.add_argument("--start", help="First day to include (YYYY-MM-DD, UTC)")
    h.add_argument("--end", help="Last day to include (YYYY-MM-DD, UTC)")
    h.add_argument("--scan-limit", type=int, default=settings.FALLBACK_SCAN_LIMIT,
                   help="Transactions scanned chain-wide when the address index is empty")

    b = sub.add_parser("block", help="Fetch a block by height")
    b.add_argument("--height", type=int, required=True, help="Block height (>= 0)")

    sub.add_parser("wallets", help="List wallet addresses held by the node (needs NODE_API_TOKEN)")

    o = sub.add_parser("overview", help="Node info with latest blocks and transactions")
    o.add_argument("--blocks", type=int, default=settings.OVERVIEW_BLOCK_LIMIT, help="Number of blocks")
    o.add_argument("--txs", type=int, default=settings.OVERVIEW_TX_LIMIT, help="Number of transactions")
    return p


def _make_query(args: argparse.Namespace) -> QueryServicePort:
    if args.use_static:
        if args.fixture:
            return StaticQueryAdapter.from_json(args.fixture)
        return StaticQueryAdapter()
    return HttpQueryAdapter(base_url=args.base_url)


def _emit(payload: Dict[str, Any], args: argparse.Namespace) -> None:
    print(json.dumps(payload, indent=2))
    if args.out:
        path = write_json(payload, args.out, filename=f"{args.command}.json")
        logger.info("Wrote: %s", path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        query = _make_query(args)
        session = ExplorerSession(ResolverService(query), ReconcilerService(query))

        if args.command == "search":
            result = session.search(args.query)
            _emit(resolved_to_dict(result), args)
            return EXIT_NOT_FOUND if result.kind is EntityKind.NOT_FOUND else EXIT_OK

        if args.command == "history":
            start, end = day_window(parse_day(args.start), parse_day(args.end))
            history = session.load_history(args.address, args.scan_limit)
            txs = list(filter_by_time_window(history.transactions, start, end))
            _emit(history_to_dict(history, txs), args)
            if args.out:
                logger.info("Wrote: %s", write_history_md(history, args.out, transactions=txs))
            if history.possibly_incomplete:
                logger.warning(
                    "history for %s came from a scan of the latest %d transactions; it may be incomplete",
                    history.address, history.scan_limit,
                )
            return EXIT_OK

        if args.command == "block":
            block = query.get_block_by_height(args.height)
            if block is None:
                print(f"No block at height {args.height}", file=sys.stderr)
                return EXIT_NOT_FOUND
            _emit(block_to_dict(block), args)
            return EXIT_OK

        if args.command == "wallets":
            _emit({"wallets": query.list_wallets()}, args)
            return EXIT_OK

        ov = OverviewService(query).snapshot(block_limit=args.blocks, tx_limit=args.txs)
        _emit(overview_to_dict(ov), args)
        return EXIT_OK

    except (InvalidQuery, ValueError) as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except (ChainLookupError, OSError) as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())

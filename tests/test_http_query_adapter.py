import unittest
from decimal import Decimal
from unittest import mock

import requests

from chainlookup.adapters.api.http_query_adapter import HttpQueryAdapter
from chainlookup.core.enums import EntityKind
from chainlookup.core.errors import (
    AuthenticationError,
    DataSourceError,
    RateLimitError,
    ResolutionFailed,
)
from chainlookup.services.resolver_service import ResolverService


BASE = "http://node.test/api/v1"

BLOCK_JSON = {
    "hash": "00ab",
    "prevBlockHash": "",
    "timestamp": 100,
    "height": 0,
    "nonce": 42,
    "transactions": [
        {"id": "T1", "from": "system", "to": "A1", "amount": 10, "timestamp": 100, "inputs": None},
    ],
}


def _resp(status: int, body=None, bad_json: bool = False) -> mock.Mock:
    r = mock.Mock(spec=requests.Response)
    r.status_code = status
    if bad_json:
        r.json.side_effect = ValueError("not json")
    else:
        r.json.return_value = body
    return r


class HttpQueryAdapterTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("chainlookup.adapters.api.http_query_adapter.backoff_sleep")
        self.backoff = patcher.start()
        self.addCleanup(patcher.stop)
        self.session = mock.Mock(spec=requests.Session)

    def _adapter(self, **overrides) -> HttpQueryAdapter:
        defaults = dict(
            base_url=BASE + "/",
            token=None,
            timeout_sec=2,
            max_retries=3,
            requests_per_sec=1000.0,
            session=self.session,
        )
        defaults.update(overrides)
        return HttpQueryAdapter(**defaults)

    def _url(self, call) -> str:
        return call.args[0]

    def test_get_block_parses_payload(self) -> None:
        self.session.get.return_value = _resp(200, BLOCK_JSON)
        block = self._adapter().get_block("00ab")

        self.assertEqual(block.height, 0)
        self.assertEqual(block.nonce, 42)
        self.assertEqual(block.transactions[0].amount, Decimal("10"))
        self.assertEqual(block.transactions[0].inputs, ())
        self.assertEqual(self._url(self.session.get.call_args), f"{BASE}/blocks/00ab")
        self.assertEqual(self.session.get.call_args.kwargs["timeout"], 2)

    def test_404_is_not_found(self) -> None:
        self.session.get.return_value = _resp(404, {"error": "not found"})
        adapter = self._adapter()

        self.assertIsNone(adapter.get_block("nope"))
        self.assertIsNone(adapter.get_transaction("nope"))
        self.assertIsNone(adapter.get_address_balance("nope"))
        self.backoff.assert_not_called()

    def test_balance_400_means_not_an_address(self) -> None:
        self.session.get.return_value = _resp(400, {"error": "bad address"})
        self.assertIsNone(self._adapter().get_address_balance("X"))

    def test_400_on_other_lookups_is_an_error(self) -> None:
        self.session.get.return_value = _resp(400, {"error": "bad request"})
        with self.assertRaises(DataSourceError):
            self._adapter().get_transaction("X")
        self.assertEqual(self.session.get.call_count, 1)

    def test_bearer_token_is_attached(self) -> None:
        self.session.get.return_value = _resp(200, {"balance": 7})
        bal = self._adapter(token="secret").get_address_balance("A1")

        self.assertEqual(bal.balance, Decimal("7"))
        headers = self.session.get.call_args.kwargs["headers"]
        self.assertEqual(headers["Authorization"], "Bearer secret")

    def test_no_token_no_auth_header(self) -> None:
        self.session.get.return_value = _resp(200, {"balance": 0})
        self._adapter().get_address_balance("A1")
        self.assertNotIn("Authorization", self.session.get.call_args.kwargs["headers"])

    def test_401_raises_without_retry(self) -> None:
        self.session.get.return_value = _resp(401, {"error": "expired"})
        with self.assertRaises(AuthenticationError):
            self._adapter().get_block("B1")
        self.assertEqual(self.session.get.call_count, 1)

    def test_server_errors_are_retried_then_raised(self) -> None:
        self.session.get.return_value = _resp(503)
        with self.assertRaises(DataSourceError):
            self._adapter(max_retries=3).get_transaction("T1")
        self.assertEqual(self.session.get.call_count, 3)
        self.assertEqual(self.backoff.call_count, 2)

    def test_timeout_then_success(self) -> None:
        self.session.get.side_effect = [
            requests.Timeout("read timed out"),
            _resp(200, {"id": "T1", "from": "A1", "to": "A2", "amount": 3, "timestamp": 9}),
        ]
        tx = self._adapter().get_transaction("T1")

        self.assertEqual(tx.id, "T1")
        self.assertEqual(tx.from_address, "A1")
        self.assertEqual(self.session.get.call_count, 2)

    def test_persistent_timeout_is_data_source_error(self) -> None:
        self.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(DataSourceError) as ctx:
            self._adapter(max_retries=2).get_block("B1")
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_rate_limit_exhaustion(self) -> None:
        self.session.get.return_value = _resp(429)
        with self.assertRaises(RateLimitError):
            self._adapter(max_retries=2).list_transactions(5)

    def test_malformed_payload_is_an_error(self) -> None:
        self.session.get.return_value = _resp(200, bad_json=True)
        with self.assertRaises(DataSourceError):
            self._adapter().get_block("B1")

        self.session.get.return_value = _resp(200, {"nohash": True})
        with self.assertRaises(DataSourceError):
            self._adapter().get_block("B1")

        self.session.get.return_value = _resp(200, {"balance": "lots"})
        with self.assertRaises(DataSourceError):
            self._adapter().get_address_balance("A1")

        bad_transactions = [
            {"id": "T"},                                                     # no amount / timestamp
            {"id": "T", "from": "A", "to": "B", "amount": 1},                # no timestamp
            {"id": "T", "from": "A", "to": "B", "timestamp": 5},             # no amount
            {"id": "T", "from": "A", "to": "B", "amount": -1, "timestamp": 5},
            {"id": "T", "from": "A", "to": "B", "amount": 1, "timestamp": "soon"},
        ]
        for body in bad_transactions:
            self.session.get.return_value = _resp(200, body)
            with self.assertRaises(DataSourceError, msg=body):
                self._adapter().get_transaction("T")

        bad_blocks = [
            dict(BLOCK_JSON, height=-1),
            {k: v for k, v in BLOCK_JSON.items() if k != "timestamp"},
            {k: v for k, v in BLOCK_JSON.items() if k != "nonce"},
            dict(BLOCK_JSON, transactions=[{"id": "T1", "amount": 1}]),
        ]
        for body in bad_blocks:
            self.session.get.return_value = _resp(200, body)
            with self.assertRaises(DataSourceError, msg=body):
                self._adapter().get_block("00ab")

    def test_malformed_transaction_fails_resolution(self) -> None:
        self.session.get.side_effect = [_resp(404), _resp(200, {"id": "T"})]

        with self.assertRaises(ResolutionFailed) as ctx:
            ResolverService(self._adapter()).resolve("T")

        self.assertEqual(ctx.exception.probe_kind, "transaction")
        self.assertIsInstance(ctx.exception.cause, DataSourceError)

    def test_get_block_by_height(self) -> None:
        self.session.get.return_value = _resp(200, BLOCK_JSON)
        block = self._adapter().get_block_by_height(0)

        self.assertEqual(block.hash, "00ab")
        self.assertEqual(self._url(self.session.get.call_args), f"{BASE}/blocks/height/0")

    def test_get_block_by_height_not_found(self) -> None:
        self.session.get.return_value = _resp(404, {"error": "no block"})
        self.assertIsNone(self._adapter().get_block_by_height(99))

    def test_negative_height_is_rejected_before_request(self) -> None:
        with self.assertRaises(ValueError):
            self._adapter().get_block_by_height(-1)
        self.session.get.assert_not_called()

    def test_list_wallets_sends_token(self) -> None:
        self.session.get.return_value = _resp(200, ["A1", "A2"])
        wallets = self._adapter(token="secret").list_wallets()

        self.assertEqual(wallets, ["A1", "A2"])
        self.assertEqual(self._url(self.session.get.call_args), f"{BASE}/wallets")
        self.assertEqual(self.session.get.call_args.kwargs["headers"]["Authorization"], "Bearer secret")

    def test_list_wallets_rejects_non_address_rows(self) -> None:
        self.session.get.return_value = _resp(200, [{"address": "A1"}])
        with self.assertRaises(DataSourceError):
            self._adapter().list_wallets()

    def test_list_wallets_unauthorized(self) -> None:
        self.session.get.return_value = _resp(401)
        with self.assertRaises(AuthenticationError):
            self._adapter().list_wallets()

    def test_null_list_is_empty(self) -> None:
        self.session.get.return_value = _resp(200, None)
        self.assertEqual(self._adapter().get_transactions_for_address("A1"), [])

    def test_list_transactions_enforces_limit(self) -> None:
        rows = [
            {"id": f"T{i}", "from": "A", "to": "B", "amount": 1, "timestamp": 100 - i}
            for i in range(20)
        ]
        self.session.get.return_value = _resp(200, rows)
        txs = self._adapter().list_transactions(5)

        self.assertEqual([t.id for t in txs], ["T0", "T1", "T2", "T3", "T4"])
        self.assertEqual(self.session.get.call_args.kwargs["params"], {"limit": 5})

    def test_ids_are_path_escaped(self) -> None:
        self.session.get.return_value = _resp(404)
        self._adapter().get_transaction("../info")
        self.assertEqual(self._url(self.session.get.call_args), f"{BASE}/transactions/..%2Finfo")

    def test_chain_info(self) -> None:
        self.session.get.return_value = _resp(
            200, {"height": 12, "transactions": 30, "status": "running", "version": "1.0.0"}
        )
        info = self._adapter().get_chain_info()

        self.assertEqual(info.height, 12)
        self.assertEqual(info.transaction_count, 30)
        self.assertEqual(self._url(self.session.get.call_args), f"{BASE}/info")


class ResolverOverHttpTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("chainlookup.adapters.api.http_query_adapter.backoff_sleep")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.session = mock.Mock(spec=requests.Session)
        self.adapter = HttpQueryAdapter(
            base_url=BASE, token=None, max_retries=1, requests_per_sec=1000.0, session=self.session,
        )

    def test_random_string_is_not_found(self) -> None:
        # block 404, tx 404, balance 400 (not an address)
        self.session.get.side_effect = [_resp(404), _resp(404), _resp(400)]
        result = ResolverService(self.adapter).resolve("X")

        self.assertEqual(result.kind, EntityKind.NOT_FOUND)
        self.assertEqual(self.session.get.call_count, 3)

    def test_server_error_is_not_treated_as_absent(self) -> None:
        self.session.get.side_effect = [_resp(404), _resp(500), _resp(200, {"balance": 1})]

        with self.assertRaises(ResolutionFailed) as ctx:
            ResolverService(self.adapter).resolve("A1")

        self.assertEqual(ctx.exception.probe_kind, "transaction")
        self.assertEqual(self.session.get.call_count, 2)


if __name__ == "__main__":
    unittest.main()

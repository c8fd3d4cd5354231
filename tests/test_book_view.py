import unittest

from orderbook_gateway.schemas.orderbook import AcquisitionState
from orderbook_gateway.services.book_view import build_book_view
from orderbook_gateway.services.orderbook_parser import parse_order_book


def _ready(payload: dict) -> AcquisitionState:
    snapshot = parse_order_book(payload, fetched_at=1700000000.0)
    return AcquisitionState(status="READY", snapshot=snapshot, fetched_at=snapshot.fetched_at, cycle_seq=1)


class BookViewTest(unittest.TestCase):
    def test_end_to_end_single_level_book(self):
        view = build_book_view(
            _ready({"asks": [["1.50", "10"]], "bids": [["1.40", "5"]]}),
            symbol="FTN-USDT",
        )

        self.assertEqual(view.status, "READY")
        self.assertEqual(view.spread.absolute_spread, "0.100000")
        self.assertEqual(view.spread.spread_percent, "7.1429")
        self.assertEqual(view.max_total, "15.00")
        self.assertEqual(view.asks_view[0].depth_ratio, 100.0)
        self.assertAlmostEqual(view.bids_view[0].depth_ratio, 46.6667, places=4)
        self.assertEqual(view.asks_view[0].price, "1.500000")
        self.assertEqual(view.asks_view[0].amount, "10.00")
        self.assertEqual(view.asks_view[0].total, "15.00")
        self.assertEqual(view.best_ask, "1.500000")
        self.assertEqual(view.best_bid, "1.400000")

    def test_truncation_reports_hidden_levels(self):
        asks = [[str(1 + i / 100), "1"] for i in range(45)]
        bids = [[str(1 - i / 100), "1"] for i in range(12)]

        view = build_book_view(_ready({"asks": asks, "bids": bids}), symbol="FTN-USDT", row_limit=30)

        self.assertEqual(len(view.asks_view), 30)
        self.assertEqual(view.asks_hidden, 15)
        self.assertEqual(view.total_asks, 45)
        self.assertEqual(len(view.bids_view), 12)
        self.assertEqual(view.bids_hidden, 0)
        self.assertEqual(view.total_bids, 12)

    def test_columns_are_best_first(self):
        view = build_book_view(
            _ready({"asks": [["1.5", "1"], ["1.6", "1"]], "bids": [["1.4", "1"], ["1.3", "1"]]}),
            symbol="FTN-USDT",
        )

        self.assertEqual([r.price for r in view.asks_view], ["1.500000", "1.600000"])
        self.assertEqual([r.price for r in view.bids_view], ["1.400000", "1.300000"])

    def test_one_sided_book_has_no_spread(self):
        view = build_book_view(_ready({"bids": [["1.4", "5"]]}), symbol="FTN-USDT")

        self.assertIsNone(view.spread)
        self.assertIsNone(view.best_ask)
        self.assertEqual(view.best_bid, "1.400000")
        self.assertEqual(view.asks_view, [])

    def test_failed_state_without_snapshot_exposes_error_only(self):
        view = build_book_view(
            AcquisitionState(status="FAILED", error="direct timed out", cycle_seq=3),
            symbol="FTN-USDT",
        )

        self.assertEqual(view.status, "FAILED")
        self.assertEqual(view.error, "direct timed out")
        self.assertIsNone(view.spread)
        self.assertEqual(view.max_total, "1.00")
        self.assertEqual(view.total_asks, 0)

    def test_stale_snapshot_still_rendered_on_failure(self):
        state = _ready({"asks": [["1.5", "1"]], "bids": [["1.4", "1"]]}).model_copy(
            update={"status": "FAILED", "error": "down", "stale": True}
        )

        view = build_book_view(state, symbol="FTN-USDT")

        self.assertTrue(view.stale)
        self.assertEqual(len(view.asks_view), 1)
        self.assertIsNotNone(view.spread)

    def test_negative_price_depth_ratio_is_clamped_to_zero(self):
        view = build_book_view(
            _ready({"asks": [["-2", "5"]], "bids": [["1.40", "5"]]}),
            symbol="FTN-USDT",
        )

        self.assertEqual(view.asks_view[0].depth_ratio, 0.0)
        self.assertEqual(view.asks_view[0].total, "-10.00")
        self.assertEqual(view.bids_view[0].depth_ratio, 100.0)

    def test_huge_price_renders_without_error(self):
        view = build_book_view(
            _ready({"asks": [["1e22", "1"]], "bids": [["1.40", "5"]]}),
            symbol="FTN-USDT",
        )

        self.assertEqual(view.best_ask, "10000000000000000000000.000000")
        self.assertEqual(view.max_total, "10000000000000000000000.00")
        self.assertEqual(view.spread.absolute_spread, "9999999999999999999998.600000")
        self.assertEqual(view.asks_view[0].depth_ratio, 100.0)


if __name__ == "__main__":
    unittest.main()

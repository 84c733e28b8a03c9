"""
tests/test_normalizers.py - Тесты нормализации курсов и новостей.
"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from valutawatch_hub.core.exceptions import UpstreamRejected
from valutawatch_hub.parser_service.normalizers import (
    DEFAULT_NEWS_DESCRIPTION,
    DEFAULT_NEWS_SOURCE,
    DEFAULT_NEWS_TITLE,
    normalize_news,
    normalize_rates,
)

# 2024-01-01 00:00:00 UTC
JAN_FIRST: float = 1704067200.0


class BrokenLocalization:
    """Коллаборатор локализации, который всегда падает."""

    def display_name(self, code: str) -> str:
        raise RuntimeError("locale service down")

    def symbol(self, code: str) -> str:
        raise RuntimeError("locale service down")

    def flag_url(self, code: str) -> str:
        return ""


class TestNormalizeRates(unittest.TestCase):
    """Тесты нормализации курсов."""

    def test_base_synthesized_and_sorted(self) -> None:
        """Тест: базовая валюта добавляется с курсом 1, список отсортирован."""
        records = normalize_rates(
            {"ZAR": 18.0, "EUR": 0.9}, "usd", updated_at="2024-01-01T00:00:00Z"
        )

        self.assertEqual([r.currency for r in records], ["EUR", "USD", "ZAR"])
        usd = records[1]
        self.assertEqual(usd.rate, 1)
        self.assertEqual(usd.id, "USD")
        self.assertEqual(usd.updated_at, "2024-01-01T00:00:00Z")

    def test_records_are_localized(self) -> None:
        records = normalize_rates({"ZAR": 18.0}, "USD", updated_at="x")
        zar = records[-1]

        self.assertEqual(zar.currency_name, "South African Rand")
        self.assertEqual(zar.symbol, "R")
        self.assertEqual(zar.flag, "https://flagcdn.com/w40/za.png")

    def test_unknown_code_falls_back_to_code(self) -> None:
        records = normalize_rates({"XYZ": 2.0}, "USD", updated_at="x")
        xyz = next(r for r in records if r.currency == "XYZ")

        self.assertEqual(xyz.currency_name, "XYZ")
        self.assertEqual(xyz.symbol, "XYZ")
        self.assertEqual(xyz.flag, "https://flagcdn.com/w40/us.png")

    def test_failing_localization_does_not_abort(self) -> None:
        records = normalize_rates(
            {"EUR": 0.9}, "USD", updated_at="x", localization=BrokenLocalization()
        )

        self.assertEqual(records[0].currency_name, "EUR")
        self.assertEqual(records[0].symbol, "EUR")
        # Пустой URL флага заменяется кодом
        self.assertEqual(records[0].flag, "EUR")

    def test_invalid_rates_skipped(self) -> None:
        records = normalize_rates(
            {"EUR": "abc", "GBP": -1, "JPY": float("inf"), "CHF": None, "ZAR": "18.5"},
            "USD",
            updated_at="x",
        )

        self.assertEqual([r.currency for r in records], ["USD", "ZAR"])
        self.assertEqual(records[1].rate, 18.5)

    def test_base_rate_forced_to_one(self) -> None:
        records = normalize_rates({"USD": 2.0, "EUR": 0.9}, "USD", updated_at="x")
        self.assertEqual(records[1].rate, 1.0)

    def test_one_record_per_code(self) -> None:
        records = normalize_rates({"eur": 0.9, "EUR": 0.8}, "USD", updated_at="x")
        self.assertEqual([r.currency for r in records], ["EUR", "USD"])
        self.assertEqual(records[0].rate, 0.9)

    def test_updated_at_defaults_to_now(self) -> None:
        records = normalize_rates({}, "USD", now=JAN_FIRST)

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].updated_at, "2024-01-01T00:00:00.000Z")

    def test_no_valid_rates_rejected_when_required(self) -> None:
        """Тест: без единого корректного курса база не синтезируется."""
        with self.assertRaises(UpstreamRejected):
            normalize_rates({"EUR": "abc", "ZAR": -1}, "USD", updated_at="x", require_data=True)

        with self.assertRaises(UpstreamRejected):
            normalize_rates({}, "USD", updated_at="x", require_data=True)

    def test_base_only_payload_accepted_when_required(self) -> None:
        records = normalize_rates({"USD": 1.0}, "USD", updated_at="x", require_data=True)
        self.assertEqual([r.currency for r in records], ["USD"])


class TestNormalizeNews(unittest.TestCase):
    """Тесты нормализации ленты новостей."""

    def test_items_without_title_and_link_dropped(self) -> None:
        items = [
            {"title": "Rand rallies", "link": "https://example.com/a"},
            {"description": "no title, no link"},
            "not a dict",
            None,
            {"title": "Only title"},
        ]

        news = normalize_news(items, "ZAR", now=JAN_FIRST)

        self.assertEqual(len(news), 2)
        self.assertEqual(
            {record.id for record in news},
            {"ZAR-https://example.com/a", "ZAR-1"},
        )

    def test_defaults_applied(self) -> None:
        news = normalize_news([{"link": "https://example.com/b"}], "EUR", now=JAN_FIRST)
        record = news[0]

        self.assertEqual(record.title, DEFAULT_NEWS_TITLE)
        self.assertEqual(record.source, DEFAULT_NEWS_SOURCE)
        self.assertEqual(record.description, DEFAULT_NEWS_DESCRIPTION)
        self.assertEqual(record.published_at, "2024-01-01T00:00:00.000Z")
        self.assertEqual(record.currency, "EUR")

    def test_description_markup_stripped(self) -> None:
        news = normalize_news(
            [
                {
                    "title": "Rand",
                    "link": "https://example.com/c",
                    "author": "Reuters",
                    "description": "<p><b>Rand</b>   rallies\n against <a href='x'>dollar</a></p>",
                }
            ],
            "ZAR",
            now=JAN_FIRST,
        )

        self.assertEqual(news[0].description, "Rand rallies against dollar")
        self.assertEqual(news[0].source, "Reuters")

    def test_sorted_by_published_at_descending(self) -> None:
        items = [
            {"title": "old", "link": "l1", "pubDate": "2024-01-01 08:00:00"},
            {"title": "new", "link": "l2", "pubDate": "2024-01-03 08:00:00"},
            {"title": "mid", "link": "l3", "pubDate": "2024-01-02 08:00:00"},
        ]

        news = normalize_news(items, "USD", now=JAN_FIRST)

        self.assertEqual([record.title for record in news], ["new", "mid", "old"])

    def test_capped_at_twelve(self) -> None:
        items = [{"title": f"t{i}", "link": f"https://example.com/{i}"} for i in range(20)]

        news = normalize_news(items, "USD", now=JAN_FIRST)

        self.assertEqual(len(news), 12)

    def test_duplicate_links_collapsed(self) -> None:
        items = [
            {"title": "first", "link": "https://example.com/same"},
            {"title": "second", "link": "https://example.com/same"},
        ]

        news = normalize_news(items, "USD", now=JAN_FIRST)

        self.assertEqual(len(news), 1)
        self.assertEqual(news[0].title, "first")

    def test_empty_feed(self) -> None:
        self.assertEqual(normalize_news([], "USD", now=JAN_FIRST), [])


if __name__ == "__main__":
    unittest.main()

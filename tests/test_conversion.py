"""
tests/test_conversion.py - Тесты конвертации и разбора текстовых запросов.
"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from valutawatch_hub.core.conversion import (
    ConversionQuery,
    build_rate_map,
    convert,
    format_amount,
    parse_conversion_query,
)
from valutawatch_hub.core.exceptions import MissingRate
from valutawatch_hub.parser_service.normalizers import normalize_rates


class TestConvert(unittest.TestCase):
    """Тесты конвертации через опорную валюту."""

    def setUp(self) -> None:
        self.rates = {"USD": 1.0, "EUR": 0.9, "ZAR": 18.0, "JPY": 148.25}

    def test_usd_to_zar(self) -> None:
        self.assertAlmostEqual(convert(100, "USD", "ZAR", self.rates), 1800.0)

    def test_cross_rate_between_non_base_currencies(self) -> None:
        self.assertAlmostEqual(convert(90, "EUR", "ZAR", self.rates), 1800.0)

    def test_round_trip(self) -> None:
        """Тест: конвертация туда и обратно возвращает исходную сумму."""
        for source, target in (("EUR", "ZAR"), ("JPY", "EUR"), ("USD", "JPY")):
            with self.subTest(source=source, target=target):
                there = convert(123.45, source, target, self.rates)
                back = convert(there, target, source, self.rates)
                self.assertAlmostEqual(back, 123.45, places=9)

    def test_same_currency(self) -> None:
        self.assertAlmostEqual(convert(42, "EUR", "EUR", self.rates), 42)

    def test_missing_rate(self) -> None:
        with self.assertRaises(MissingRate) as context:
            convert(1, "USD", "GBP", self.rates)
        self.assertEqual(context.exception.from_currency, "USD")
        self.assertEqual(context.exception.to_currency, "GBP")

    def test_zero_source_rate(self) -> None:
        with self.assertRaises(MissingRate):
            convert(1, "XXX", "USD", {"XXX": 0.0, "USD": 1.0})

    def test_end_to_end_from_normalized_rates(self) -> None:
        """Тест: курсы провайдера -> нормализация -> 100 USD = 1800 ZAR."""
        records = normalize_rates(
            {"EUR": 0.9, "ZAR": 18.0}, "USD", updated_at="2024-01-01T00:00:00Z"
        )
        rate_map = build_rate_map(records)

        self.assertEqual(rate_map, {"EUR": 0.9, "USD": 1.0, "ZAR": 18.0})
        self.assertAlmostEqual(convert(100, "USD", "ZAR", rate_map), 1800.0)


class TestParseConversionQuery(unittest.TestCase):
    """Тесты разбора запроса вида "100 usd in zar"."""

    def test_basic_query(self) -> None:
        self.assertEqual(
            parse_conversion_query("100 usd in zar"),
            ConversionQuery(amount=100.0, from_currency="USD", to_currency="ZAR"),
        )

    def test_to_keyword_and_extra_spaces(self) -> None:
        query = parse_conversion_query("  2.5   EUR  TO gbp ")
        self.assertEqual(query, ConversionQuery(2.5, "EUR", "GBP"))

    def test_leading_dot_amount(self) -> None:
        self.assertEqual(parse_conversion_query(".5 usd in eur").amount, 0.5)

    def test_invalid_queries(self) -> None:
        for value in ("", "   ", "100 usd zar", "abc usd in zar", "100 dollars in zar",
                      "-5 usd in zar", "100 usd into zar"):
            with self.subTest(value=value):
                self.assertIsNone(parse_conversion_query(value))


class TestFormatAmount(unittest.TestCase):

    def test_known_symbol_prefix(self) -> None:
        self.assertEqual(format_amount(1800, "ZAR"), "R 1,800.00")
        self.assertEqual(format_amount(100, "USD"), "$ 100.00")

    def test_unknown_symbol_suffix(self) -> None:
        self.assertEqual(format_amount(1800, "XYZ"), "1,800.00 XYZ")


if __name__ == "__main__":
    unittest.main()

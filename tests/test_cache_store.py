"""
tests/test_cache_store.py - Тесты кэша с TTL и снимка состояния.
"""

import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import NOW, FakeClock

from valutawatch_hub.core.models import NewsRecord, RateRecord, TrendPoint
from valutawatch_hub.infra.persistence import SnapshotStorage
from valutawatch_hub.parser_service.cache_store import (
    NEWS_TABLE,
    RATES_TABLE,
    TREND_TABLE,
    CacheError,
    CacheStore,
    news_key,
    rates_key,
    trend_key,
)


def make_rate(code: str, rate: float) -> RateRecord:
    return RateRecord(
        id=code,
        currency=code,
        currency_name=code,
        symbol=code,
        rate=rate,
        flag="https://flagcdn.com/w40/us.png",
        updated_at="2024-01-01T00:00:00Z",
    )


class TestCacheFreshness(unittest.TestCase):
    """Тесты свежести и ленивого удаления записей."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.store = CacheStore(clock=self.clock)
        self.data = [make_rate("EUR", 0.9), make_rate("USD", 1.0)]

    def test_get_after_set_returns_data(self) -> None:
        """Тест: get сразу после set возвращает данные."""
        self.store.set(RATES_TABLE, "USD", self.data, ttl=60)

        entry = self.store.get(RATES_TABLE, "USD")
        self.assertIsNotNone(entry)
        self.assertEqual(entry.data, self.data)
        self.assertEqual(entry.expires_at, self.clock.now + 60)
        self.assertTrue(entry.is_valid(self.clock.now))

    def test_entry_purged_after_ttl(self) -> None:
        """Тест: после истечения TTL запись удаляется при purge."""
        self.store.set(RATES_TABLE, "USD", self.data, ttl=60)
        self.clock.advance(61)

        self.assertEqual(self.store.purge_expired(), 1)
        self.assertIsNone(self.store.get(RATES_TABLE, "USD"))

    def test_entry_expires_exactly_at_boundary(self) -> None:
        """Тест: запись с expires_at == now уже недействительна."""
        self.store.set(RATES_TABLE, "USD", self.data, ttl=60)
        self.clock.advance(60)

        entry = self.store.get(RATES_TABLE, "USD")
        self.assertFalse(entry.is_valid(self.clock.now))
        self.assertEqual(self.store.purge_expired(), 1)

    def test_purge_keeps_fresh_entries(self) -> None:
        self.store.set(RATES_TABLE, "USD", self.data, ttl=600)
        self.store.set(NEWS_TABLE, "USD", [], ttl=10)
        self.clock.advance(30)

        self.assertEqual(self.store.purge_expired(), 1)
        self.assertIsNotNone(self.store.get(RATES_TABLE, "USD"))
        self.assertIsNone(self.store.get(NEWS_TABLE, "USD"))

    def test_later_write_wins(self) -> None:
        self.store.set(RATES_TABLE, "USD", self.data, ttl=60)
        self.store.set(RATES_TABLE, "USD", [make_rate("USD", 1.0)], ttl=120)

        entry = self.store.get(RATES_TABLE, "USD")
        self.assertEqual(len(entry.data), 1)
        self.assertEqual(entry.expires_at, self.clock.now + 120)

    def test_tables_have_independent_keys(self) -> None:
        """Тест: одинаковый ключ в разных таблицах не пересекается."""
        self.store.set(RATES_TABLE, "USD", self.data, ttl=60)

        self.assertIsNone(self.store.get(NEWS_TABLE, "USD"))
        self.assertIsNone(self.store.get(TREND_TABLE, "USD"))

    def test_negative_ttl_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.store.set(RATES_TABLE, "USD", self.data, ttl=-1)

    def test_unknown_table_raises_cache_error(self) -> None:
        with self.assertRaises(CacheError) as context:
            self.store.get("crypto", "BTC")
        self.assertEqual(context.exception.operation, "get")


class TestRequestGenerations(unittest.TestCase):
    """Тесты отбрасывания ответов устаревших запросов."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.store = CacheStore(clock=self.clock)

    def test_stale_token_is_ignored(self) -> None:
        """Тест: ответ первого запроса после начала второго не пишется в кэш."""
        first = self.store.begin_request(RATES_TABLE, "USD")
        second = self.store.begin_request(RATES_TABLE, "USD")

        self.assertFalse(
            self.store.set(RATES_TABLE, "USD", [make_rate("USD", 1.0)], 60, token=first)
        )
        self.assertIsNone(self.store.get(RATES_TABLE, "USD"))

        self.assertTrue(
            self.store.set(RATES_TABLE, "USD", [make_rate("USD", 1.0)], 60, token=second)
        )
        self.assertIsNotNone(self.store.get(RATES_TABLE, "USD"))

    def test_generations_are_per_key(self) -> None:
        usd_token = self.store.begin_request(RATES_TABLE, "USD")
        self.store.begin_request(RATES_TABLE, "EUR")

        self.assertTrue(self.store.set(RATES_TABLE, "USD", [], 60, token=usd_token))

    def test_clear_keeps_generations(self) -> None:
        """Тест: запрос, начатый до очистки кэша, остается устаревшим после нее."""
        old = self.store.begin_request(RATES_TABLE, "USD")
        self.store.clear()
        new = self.store.begin_request(RATES_TABLE, "USD")

        self.assertNotEqual(old, new)
        self.assertFalse(
            self.store.set(RATES_TABLE, "USD", [make_rate("EUR", 0.9)], 60, token=old)
        )
        self.assertTrue(
            self.store.set(RATES_TABLE, "USD", [make_rate("USD", 1.0)], 60, token=new)
        )
        self.assertEqual(self.store.get(RATES_TABLE, "USD").data[0].currency, "USD")


class TestBaseCurrency(unittest.TestCase):
    """Тесты предпочитаемой базовой валюты."""

    def setUp(self) -> None:
        self.store = CacheStore(clock=FakeClock())

    def test_default_is_usd(self) -> None:
        self.assertEqual(self.store.get_base_currency(), "USD")

    def test_code_is_normalized(self) -> None:
        self.store.set_base_currency("  eur ")
        self.assertEqual(self.store.get_base_currency(), "EUR")

    def test_empty_and_non_string_codes_ignored(self) -> None:
        """Тест: мягкая проверка формата игнорирует пустые значения."""
        self.store.set_base_currency("ZAR")
        self.store.set_base_currency("")
        self.store.set_base_currency("   ")
        self.store.set_base_currency(None)
        self.store.set_base_currency(42)

        self.assertEqual(self.store.get_base_currency(), "ZAR")

    def test_format_only_check_accepts_unknown_code(self) -> None:
        """Тест: код вне реестра принимается (строгая проверка на уровне CLI)."""
        self.store.set_base_currency("xyz")
        self.assertEqual(self.store.get_base_currency(), "XYZ")

    def test_clear_keeps_base_currency(self) -> None:
        self.store.set_base_currency("GBP")
        self.store.set(RATES_TABLE, "GBP", [], 60)

        self.store.clear()

        self.assertEqual(self.store.get_base_currency(), "GBP")
        self.assertIsNone(self.store.get(RATES_TABLE, "GBP"))


class TestCacheKeys(unittest.TestCase):

    def test_trend_key_is_composite(self) -> None:
        self.assertEqual(trend_key("usd", "eur", " zar "), "USD:EUR->ZAR")

    def test_rates_and_news_keys_are_codes(self) -> None:
        self.assertEqual(rates_key(" usd"), "USD")
        self.assertEqual(news_key("zar"), "ZAR")


class TestCacheSnapshot(unittest.TestCase):
    """Тесты сохранения и восстановления снимка кэша."""

    def setUp(self) -> None:
        self.temp_dir = tempfile.mkdtemp()
        self.filepath = Path(self.temp_dir) / "data" / "currencies-store.json"
        self.clock = FakeClock()

    def tearDown(self) -> None:
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_round_trip_through_snapshot(self) -> None:
        """Тест: новый CacheStore восстанавливает записи и базовую валюту."""
        store = CacheStore(clock=self.clock, storage=SnapshotStorage(str(self.filepath)))
        rates = [make_rate("EUR", 0.9), make_rate("USD", 1.0)]
        trend = [TrendPoint(date="2024-01-07", label="Jan 7", from_rate=1.0, to_rate=18.0)]
        news = [
            NewsRecord(
                id="ZAR-https://example.com/a",
                title="Rand rallies",
                link="https://example.com/a",
                source="Reuters",
                published_at="2024-01-07T10:00:00Z",
                description="Rand rallies",
                currency="ZAR",
            )
        ]
        store.set(RATES_TABLE, "USD", rates, ttl=3600)
        store.set(TREND_TABLE, "USD:USD->ZAR", trend, ttl=600)
        store.set(NEWS_TABLE, "ZAR", news, ttl=1800)
        store.set_base_currency("zar")

        restored = CacheStore(clock=self.clock, storage=SnapshotStorage(str(self.filepath)))

        self.assertEqual(restored.get_base_currency(), "ZAR")
        self.assertEqual(restored.get(RATES_TABLE, "USD").data, rates)
        self.assertEqual(restored.get(TREND_TABLE, "USD:USD->ZAR").data, trend)
        self.assertEqual(restored.get(NEWS_TABLE, "ZAR").data, news)
        self.assertEqual(
            restored.get(RATES_TABLE, "USD").expires_at, self.clock.now + 3600
        )

    def test_snapshot_uses_namespace(self) -> None:
        store = CacheStore(clock=self.clock, storage=SnapshotStorage(str(self.filepath)))
        store.set_base_currency("EUR")

        with open(self.filepath, "r", encoding="utf-8") as f:
            raw = json.load(f)

        self.assertIn("currencies-store", raw)
        self.assertEqual(raw["currencies-store"]["base_currency"], "EUR")

    def test_corrupt_snapshot_loads_as_empty(self) -> None:
        """Тест: поврежденный JSON не приводит к ошибке."""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        self.filepath.write_text("{not json", encoding="utf-8")

        store = CacheStore(clock=self.clock, storage=SnapshotStorage(str(self.filepath)))

        self.assertEqual(store.get_base_currency(), "USD")
        self.assertEqual(store.get_cache_info()["rates"]["entries"], 0)

    def test_corrupt_entry_is_skipped(self) -> None:
        """Тест: поврежденная запись пропускается, остальные восстанавливаются."""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        state = {
            "currencies-store": {
                "base_currency": "GBP",
                "rates_cache": {
                    "USD": {"key": "USD", "data": [{"id": "USD"}], "expires_at": NOW + 3600},
                    "EUR": {
                        "key": "EUR",
                        "data": [make_rate("EUR", 1.0).to_dict()],
                        "expires_at": NOW + 3600,
                    },
                },
                "news_cache": "garbage",
            }
        }
        self.filepath.write_text(json.dumps(state), encoding="utf-8")

        store = CacheStore(clock=self.clock, storage=SnapshotStorage(str(self.filepath)))

        self.assertEqual(store.get_base_currency(), "GBP")
        self.assertIsNone(store.get(RATES_TABLE, "USD"))
        self.assertIsNotNone(store.get(RATES_TABLE, "EUR"))
        self.assertEqual(store.get_cache_info()["news"]["entries"], 0)

    def test_cache_info_counts(self) -> None:
        store = CacheStore(clock=self.clock)
        store.set(RATES_TABLE, "USD", [], ttl=60)
        store.set(RATES_TABLE, "EUR", [], ttl=0)

        info = store.get_cache_info()

        self.assertEqual(info["rates"]["entries"], 2)
        self.assertEqual(info["rates"]["fresh"], 1)
        self.assertEqual(info["rates"]["keys"], ["EUR", "USD"])
        self.assertFalse(info["persistent"])


if __name__ == "__main__":
    unittest.main()
